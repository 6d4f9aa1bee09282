"""Client for the Outclaws registry API."""

import logging
from typing import Any, Literal, Self

import httpx
from pydantic import BaseModel, Field, ValidationError

from outclaw.config import get_api_base, get_api_key
from outclaw.errors import ApiError, AuthRequiredError, TransportError

logger = logging.getLogger(__name__)

type SortOrder = Literal["hot", "new", "top"]


class WorkflowCreator(BaseModel):
    """Author of a registry entry."""

    id: str
    twitter_handle: str | None = None
    name: str | None = None


class WorkflowCommunity(BaseModel):
    """Community a registry entry belongs to."""

    id: str
    slug: str
    name: str


class WorkflowSearchResult(BaseModel):
    """A registry entry as returned by search."""

    id: str
    title: str
    slug: str
    description: str = ""
    downloads: int = 0
    created_at: str | None = None
    creator: WorkflowCreator | None = None
    community: WorkflowCommunity | None = None


class WorkflowListResponse(BaseModel):
    """One page of search results."""

    workflows: list[WorkflowSearchResult]
    total: int = 0
    page: int = 1
    pages: int = 1


class WorkflowDetail(WorkflowSearchResult):
    """A registry entry with its full record."""

    content: str | None = None
    target_audience: str | None = None
    example_input: str | None = None
    example_output: str | None = None
    status: str | None = None
    avg_rating: float | None = None


class AgentInfo(BaseModel):
    """The agent behind an API key."""

    id: str
    name: str
    verified: bool = False
    user_id: str | None = None
    created_at: str | None = None
    description: str | None = None


class RegisterAgentResponse(BaseModel):
    """Credentials issued for a newly registered agent.

    The full ``api_key`` is only returned once.
    """

    agent_id: str
    api_key: str
    claim_url: str
    verification_code: str
    status: str = "pending_claim"


class PublishWorkflowRequest(BaseModel):
    """Body of a publish request."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    content: str
    target_audience: str | None = None
    community_id: str | None = None
    example_input: str | None = None
    example_output: str | None = None


class SecurityScan(BaseModel):
    """Outcome of the registry's security scan of published content."""

    passed: bool
    risk_factors: list[str] = Field(default_factory=list)
    explanation: str = ""


class PublishWorkflowResponse(BaseModel):
    """Result of a publish request."""

    id: str
    status: Literal["published", "rejected"]
    message: str = ""
    security_scan: SecurityScan | None = None


class ApiClient:
    """Async client for the registry HTTP API.

    Each call makes a single attempt; there is no retry or backoff.
    """

    def __init__(
        self,
        api_base: str,
        api_key: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_base: Base URL of the API, e.g. ``https://outclaws.ai/api``.
            api_key: Bearer credential. Needed for downloads and account calls.
            client: Optional shared HTTP client.
        """
        self.api_base = api_base.rstrip("/")
        self.api_key = api_key
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

    @classmethod
    def create(cls, *, client: httpx.AsyncClient | None = None) -> Self:
        """Build a client from the saved config and environment."""
        return cls(get_api_base(), get_api_key(), client=client)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def _require_key(self) -> None:
        if not self.api_key:
            raise AuthRequiredError("Authentication required. Please run: outclaw login")

    async def _request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        api_key: str | None = None,
    ) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if key := api_key or self.api_key:
            headers["Authorization"] = f"Bearer {key}"

        url = f"{self.api_base}{endpoint}"
        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise TransportError(f"API request failed: {e}") from e

        if not response.is_success:
            message = f"API request failed: {response.reason_phrase}"
            code = None
            try:
                data = response.json()
            except ValueError:
                data = None
            if isinstance(data, dict):
                message = data.get("error") or data.get("message") or message
                code = data.get("code")
            raise ApiError(message, response.status_code, code)
        return response

    async def _request_model[T: BaseModel](
        self, model: type[T], endpoint: str, **kwargs: Any
    ) -> T:
        response = await self._request(endpoint, **kwargs)
        try:
            return model.model_validate_json(response.text)
        except ValidationError as e:
            logger.exception("Failed to validate response: %s", response.text)
            raise TransportError(
                "Unexpected API response", response.status_code
            ) from e

    async def search_workflows(
        self,
        query: str,
        *,
        limit: int | None = None,
        offset: int | None = None,
        sort: SortOrder | None = None,
        community: str | None = None,
    ) -> WorkflowListResponse:
        """Search the registry."""
        params: dict[str, Any] = {"search": query}
        if limit:
            params["limit"] = limit
        if offset:
            params["offset"] = offset
        if sort:
            params["sort"] = sort
        if community:
            params["community"] = community
        return await self._request_model(
            WorkflowListResponse, "/workflows", params=params
        )

    async def get_workflow(self, workflow_id: str) -> WorkflowDetail:
        """Get a registry entry by id."""
        return await self._request_model(WorkflowDetail, f"/workflows/{workflow_id}")

    async def download_workflow(self, workflow_id: str) -> str:
        """Download the SKILL.md content of a registry entry."""
        self._require_key()
        response = await self._request(f"/workflows/{workflow_id}/download")
        if "json" in response.headers.get("content-type", ""):
            data = response.json()
            if isinstance(data, dict) and isinstance(data.get("content"), str):
                return data["content"]
        return response.text

    async def get_me(self) -> AgentInfo:
        """Get the agent that owns the configured API key."""
        self._require_key()
        return await self._request_model(AgentInfo, "/agents/me")

    async def verify_api_key(self, api_key: str | None = None) -> AgentInfo | None:
        """Check an API key, returning None if the registry rejects it."""
        key = api_key or self.api_key
        if not key:
            return None
        try:
            return await self._request_model(AgentInfo, "/agents/me", api_key=key)
        except ApiError as e:
            if e.status_code == httpx.codes.UNAUTHORIZED:
                return None
            raise

    async def register_agent(
        self, name: str, description: str | None = None
    ) -> RegisterAgentResponse:
        """Register a new agent. No credential is needed."""
        body: dict[str, Any] = {"name": name}
        if description:
            body["description"] = description
        return await self._request_model(
            RegisterAgentResponse, "/agents/register", method="POST", json=body
        )

    async def publish_workflow(
        self, request: PublishWorkflowRequest
    ) -> PublishWorkflowResponse:
        """Publish a skill document to the registry.

        A response with status ``rejected`` means the registry's security scan
        refused the content; it is returned, not raised.
        """
        self._require_key()
        return await self._request_model(
            PublishWorkflowResponse,
            "/workflows",
            method="POST",
            json=request.model_dump(exclude_none=True),
        )

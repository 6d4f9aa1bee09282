"""Fetch skill documents from resolved sources.

Each fetcher makes a single attempt and surfaces failures as outclaw errors.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from outclaw.errors import (
    AuthRequiredError,
    NotSupportedError,
    SkillNotFoundError,
    TransportError,
)
from outclaw.skills.manifest import SkillSource
from outclaw.skills.parser import SKILL_FILENAME
from outclaw.sources.specifier import (
    HostedRef,
    LocalSource,
    RegistrySource,
    Specifier,
    UrlSource,
)

if TYPE_CHECKING:
    from outclaw.api_client import ApiClient, WorkflowSearchResult

logger = logging.getLogger(__name__)

DEFAULT_REF = "main"
RAW_CONTENT_BASE = "https://raw.githubusercontent.com"
HOSTED_WEB_BASE = "https://github.com"
SEARCH_LIMIT = 5

_NAME_LINE = re.compile(r"^name:\s*(.+)$", re.MULTILINE)


@dataclass
class FetchResult:
    """A fetched skill document and its provenance."""

    name: str
    content: str
    source: SkillSource
    registry_id: str | None = None
    warning: str | None = None


def extract_skill_name(content: str, fallback: str) -> str:
    """Return the ``name:`` header value of a document, or ``fallback``."""
    if match := _NAME_LINE.search(content):
        return match.group(1).strip().strip("'\"")
    return fallback


def raw_skill_url(spec: HostedRef) -> str:
    """Build the raw content URL of a hosted skill's SKILL.md."""
    base_path = f"{spec.subpath.strip('/')}/" if spec.subpath else ""
    ref = spec.ref or DEFAULT_REF
    return f"{RAW_CONTENT_BASE}/{spec.owner}/{spec.repo}/{ref}/{base_path}{SKILL_FILENAME}"


class HostedRefFetcher:
    """Fetch SKILL.md from a hosted repository's raw content host."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        """Initialize with the HTTP client to use."""
        self._client = client

    async def fetch(self, spec: HostedRef) -> FetchResult:
        """Download SKILL.md for a hosted ref.

        Raises:
            SkillNotFoundError: The document does not exist (404).
            TransportError: Any other HTTP or network failure.
        """
        url = raw_skill_url(spec)
        logger.debug("fetching hosted skill: %s", url)
        try:
            response = await self._client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to fetch skill: {e}") from e

        if response.status_code == httpx.codes.NOT_FOUND:
            raise SkillNotFoundError(f"{SKILL_FILENAME} not found at {url}")
        if not response.is_success:
            raise TransportError(
                f"Failed to fetch skill: {response.reason_phrase}",
                response.status_code,
            )

        content = response.text
        return FetchResult(
            name=extract_skill_name(content, spec.repo),
            content=content,
            source=SkillSource(
                type="github",
                url=f"{HOSTED_WEB_BASE}/{spec.owner}/{spec.repo}",
                ref=spec.ref,
            ),
        )


def _pick_match(
    term: str, results: list[WorkflowSearchResult]
) -> tuple[WorkflowSearchResult, bool]:
    """Return the exact title/slug match, else the first result.

    The flag is True when the choice was ambiguous.
    """
    lowered = term.lower()
    for result in results:
        if result.title.lower() == lowered or result.slug.lower() == lowered:
            return result, False
    return results[0], len(results) > 1


class RegistryFetcher:
    """Fetch a skill from the registry by id or by slug."""

    def __init__(self, api: ApiClient) -> None:
        """Initialize with the registry client."""
        self._api = api

    async def fetch(self, spec: RegistrySource) -> FetchResult:
        """Download a registry skill.

        Raises:
            AuthRequiredError: No API key is configured.
            SkillNotFoundError: A search returned no results.
            TransportError: The registry request failed.
        """
        if not self._api.api_key:
            raise AuthRequiredError(
                "You must be logged in to install from the registry."
            )

        if spec.is_uuid:
            workflow_id = spec.id_or_slug
            content = await self._api.download_workflow(workflow_id)
            workflow = await self._api.get_workflow(workflow_id)
            return FetchResult(
                name=extract_skill_name(content, workflow.title),
                content=content,
                source=SkillSource(type="registry", id=workflow_id),
                registry_id=workflow_id,
            )

        results = await self._api.search_workflows(spec.id_or_slug, limit=SEARCH_LIMIT)
        if not results.workflows:
            raise SkillNotFoundError(
                f"No skill found matching '{spec.id_or_slug}' in the registry."
            )

        workflow, ambiguous = _pick_match(spec.id_or_slug, results.workflows)
        warning = None
        if ambiguous:
            warning = (
                f"Multiple skills found. Installing '{workflow.title}'. "
                "Use the registry id for an exact match."
            )
            logger.warning("%s", warning)

        content = await self._api.download_workflow(workflow.id)
        return FetchResult(
            name=extract_skill_name(content, workflow.title),
            content=content,
            source=SkillSource(type="registry", id=workflow.id),
            registry_id=workflow.id,
            warning=warning,
        )


class UrlFetcher:
    """Placeholder for generic URL sources."""

    async def fetch(self, spec: UrlSource) -> FetchResult:
        """Always fails; URL installation is not implemented."""
        raise NotSupportedError(f"URL installation not yet implemented: {spec.url}")


class LocalFetcher:
    """Placeholder for local path sources."""

    async def fetch(self, spec: LocalSource) -> FetchResult:
        """Always fails; local installation is not implemented."""
        raise NotSupportedError(
            f"Local installation not yet implemented: {spec.path}"
        )


async def fetch(
    spec: Specifier,
    *,
    http_client: httpx.AsyncClient,
    api: ApiClient | None = None,
) -> FetchResult:
    """Fetch a skill with the strategy matching the specifier kind.

    Args:
        spec: A resolved specifier.
        http_client: Client used for hosted raw content.
        api: Registry client, required for registry sources.
    """
    match spec:
        case HostedRef():
            return await HostedRefFetcher(http_client).fetch(spec)
        case RegistrySource():
            if api is None:
                raise AuthRequiredError(
                    "You must be logged in to install from the registry."
                )
            return await RegistryFetcher(api).fetch(spec)
        case UrlSource():
            return await UrlFetcher().fetch(spec)
        case LocalSource():
            return await LocalFetcher().fetch(spec)
    raise NotSupportedError(f"unknown source: {spec!r}")

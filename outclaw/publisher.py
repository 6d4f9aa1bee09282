"""Publish pipeline: locate, read, describe, upload."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from outclaw.api_client import PublishWorkflowRequest
from outclaw.errors import SkillNotFoundError, SkillValidationError
from outclaw.skills.parser import SKILL_FILENAME, parse_skill_text

if TYPE_CHECKING:
    from outclaw.api_client import ApiClient, PublishWorkflowResponse

logger = logging.getLogger(__name__)


def locate_skill_file(path: Path) -> Path:
    """Return the SKILL.md a path refers to.

    A directory means the SKILL.md inside it; anything else is the document
    itself.

    Raises:
        SkillNotFoundError: If the path or the document does not exist.
    """
    if not path.exists():
        raise SkillNotFoundError(f"Path not found: {path}")
    skill_file = path / SKILL_FILENAME if path.is_dir() else path
    if not skill_file.is_file():
        raise SkillNotFoundError(f"{SKILL_FILENAME} not found at {skill_file}")
    return skill_file


def build_publish_request(
    content: str,
    *,
    title: str | None = None,
    description: str | None = None,
    community: str | None = None,
) -> PublishWorkflowRequest:
    """Describe a document for publishing.

    Title and description default to the header's ``name`` and
    ``description``. The header is read leniently; the registry runs its own
    checks on the content.

    Raises:
        SkillValidationError: If no title or description can be determined.
    """
    header, _ = parse_skill_text(content)
    title = (title or str(header.get("name") or "")).strip()
    description = (description or str(header.get("description") or "")).strip()
    target_audience = header.get("target-audience")
    try:
        return PublishWorkflowRequest(
            title=title,
            description=description,
            content=content,
            target_audience=str(target_audience) if target_audience else None,
            community_id=community,
        )
    except ValidationError as e:
        err = e.errors()[0]
        raise SkillValidationError(err["msg"], field=str(err["loc"][0])) from e


async def publish_skill(
    path: Path,
    api: ApiClient,
    *,
    title: str | None = None,
    description: str | None = None,
    community: str | None = None,
) -> PublishWorkflowResponse:
    """Upload the skill at ``path`` to the registry.

    Raises:
        SkillNotFoundError: The document does not exist.
        SkillValidationError: The document cannot be described for publishing.
        AuthRequiredError: The client has no credential.
        TransportError: The request failed.
    """
    skill_file = locate_skill_file(path)
    try:
        content = skill_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SkillValidationError(f"unreadable {SKILL_FILENAME}: {e}") from e

    request = build_publish_request(
        content, title=title, description=description, community=community
    )
    logger.debug("publishing %s as %r", skill_file, request.title)
    response = await api.publish_workflow(request)
    if response.status == "rejected":
        logger.warning("publish of %s rejected: %s", skill_file, response.message)
    return response

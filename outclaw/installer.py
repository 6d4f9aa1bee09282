"""Install pipeline: resolve, fetch, validate, persist."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from outclaw.skills.parser import validate_skill_text
from outclaw.sources.fetchers import fetch
from outclaw.sources.specifier import resolve

if TYPE_CHECKING:
    from pathlib import Path

    import httpx

    from outclaw.api_client import ApiClient
    from outclaw.skills.manager import SkillManager
    from outclaw.skills.manifest import SkillSource

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Outcome of a successful install."""

    name: str
    path: Path
    source: SkillSource
    warning: str | None = None


async def install_from_specifier(
    specifier: str,
    manager: SkillManager,
    *,
    http_client: httpx.AsyncClient,
    api: ApiClient | None = None,
    force: bool = False,
) -> InstallResult:
    """Install the skill a specifier points at into ``manager``'s scope.

    Fetched content is validated before anything is written to disk, and the
    skill is installed under the ``name`` of its validated header.

    Raises:
        SkillValidationError: The fetched document is not a valid skill.
        SkillConflictError: The skill exists and ``force`` is False.
        OutclawError: Any resolution or fetch failure.
    """
    spec = resolve(specifier)
    logger.debug("resolved %r to %r", specifier, spec)

    result = await fetch(spec, http_client=http_client, api=api)
    meta = validate_skill_text(result.content)
    if meta.name != result.name:
        logger.debug("installing %r under its header name %r", result.name, meta.name)

    path = manager.install_skill(
        meta.name, result.content, source=result.source, force=force
    )
    return InstallResult(
        name=meta.name, path=path, source=result.source, warning=result.warning
    )

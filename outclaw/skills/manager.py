"""Skill manager for the on-disk registry of one scope."""

from __future__ import annotations

import logging
import shutil
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from outclaw.errors import (
    SkillConflictError,
    SkillNotFoundError,
    SkillValidationError,
)
from outclaw.skills.manifest import Manifest, ManifestEntry, ManifestStore, SkillSource
from outclaw.skills.models import CreateSkillOptions, SkillInfo
from outclaw.skills.parser import SKILL_FILENAME, SkillParser, generate_skill_md

if TYPE_CHECKING:
    from pathlib import Path

    from outclaw.paths import Scope, ScopePaths

logger = logging.getLogger(__name__)

INSTALLED_VERSION = "1.0.0"
DEFAULT_CREATE_VERSION = "1.0.0"


def check_skill_name(name: str) -> None:
    """Reject names that would escape the skills directory.

    Raises:
        SkillValidationError: If the name is empty or contains path separators.
    """
    if not name.strip():
        raise SkillValidationError("Skill name must not be empty.", field="name")
    if "/" in name or "\\" in name or ".." in name:
        raise SkillValidationError(
            "Invalid skill name. Must not contain '/', '\\', or '..'.", field="name"
        )


class SkillManager:
    """Manager for listing, creating, installing and removing skills in a scope."""

    def __init__(self, paths: ScopePaths) -> None:
        """Initialize the skill manager.

        Args:
            paths: Resolved skills directory and lock file of the scope.
        """
        self._paths = paths
        self._manifest = ManifestStore(paths.lock_file)

    @property
    def scope(self) -> Scope:
        """Return the scope this manager operates on."""
        return self._paths.scope

    @property
    def skill_dir(self) -> Path:
        """Return the skills root directory."""
        return self._paths.skills_dir

    def skill_path(self, name: str) -> Path:
        """Return the directory a skill lives in."""
        check_skill_name(name)
        return self._paths.skill_dir(name)

    def _load_skill(self, entry: Path) -> SkillInfo | None:
        try:
            skill = SkillParser(entry).parse()
        except (SkillNotFoundError, SkillValidationError) as e:
            logger.debug("skipping invalid skill %s: %s", entry, e)
            return None
        return SkillInfo(
            meta=skill.meta,
            content=skill.content,
            base_dir=skill.base_dir,
            scope=self._paths.scope,
        )

    def list_skills(self) -> list[SkillInfo]:
        """List all valid skills in the scope."""
        if not self.skill_dir.is_dir():
            logger.debug("skill dir not found: %s", self.skill_dir)
            return []

        result: list[SkillInfo] = []
        for entry in sorted(self.skill_dir.iterdir()):
            if entry.name.startswith(".") or not entry.is_dir():
                continue
            if (skill := self._load_skill(entry)) is not None:
                result.append(skill)

        logger.debug("found %s skills under: %s", len(result), self.skill_dir)
        return result

    def get_skill(self, name: str) -> SkillInfo | None:
        """Get a skill by name, or None if it is missing, invalid or badly named."""
        try:
            path = self.skill_path(name)
        except SkillValidationError:
            return None
        return self._load_skill(path)

    def skill_exists(self, name: str) -> bool:
        """Check whether the skill's SKILL.md is present."""
        try:
            path = self.skill_path(name)
        except SkillValidationError:
            return False
        return (path / SKILL_FILENAME).is_file()

    def create_skill(self, options: CreateSkillOptions) -> Path:
        """Scaffold a new skill. The manifest is not touched.

        Raises:
            SkillConflictError: If the skill directory already exists.
        """
        path = self.skill_path(options.name)
        if path.exists():
            raise SkillConflictError(
                f"Skill '{options.name}' already exists at {path}"
            )

        header: dict[str, Any] = {
            "name": options.name,
            "description": options.description,
            "version": options.version or DEFAULT_CREATE_VERSION,
        }
        if options.disable_model_invocation is not None:
            header["disable-model-invocation"] = options.disable_model_invocation
        if options.user_invocable is not None:
            header["user-invocable"] = options.user_invocable
        if options.allowed_tools:
            header["allowed-tools"] = options.allowed_tools
        for key, value in (
            ("argument-hint", options.argument_hint),
            ("model", options.model),
            ("context", options.context),
            ("agent", options.agent),
        ):
            if value:
                header[key] = value

        body = options.content or f"# {options.name}\n\nYour skill instructions here...\n"

        path.mkdir(parents=True)
        (path / SKILL_FILENAME).write_text(
            generate_skill_md(header, body), encoding="utf-8"
        )
        logger.info("created skill %s at %s", options.name, path)
        return path

    def install_skill(
        self,
        name: str,
        content: str,
        *,
        source: SkillSource,
        force: bool = False,
    ) -> Path:
        """Write SKILL.md content verbatim and record it in the manifest.

        Raises:
            SkillConflictError: If the skill exists and ``force`` is False.
        """
        path = self.skill_path(name)
        if path.exists() and not force:
            raise SkillConflictError(
                f"Skill '{name}' already exists. Use --force to overwrite."
            )

        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True)
        (path / SKILL_FILENAME).write_text(content, encoding="utf-8")

        self._manifest.upsert(
            ManifestEntry(
                name=name,
                version=INSTALLED_VERSION,
                installed_at=datetime.now(UTC),
                source=source,
                scope=self._paths.scope,
            )
        )
        logger.info("installed skill %s to %s", name, path)
        return path

    def uninstall_skill(self, name: str) -> None:
        """Remove a skill directory and its manifest entry.

        Raises:
            SkillNotFoundError: If the skill directory does not exist.
        """
        path = self.skill_path(name)
        if not path.exists():
            raise SkillNotFoundError(f"Skill '{name}' not found")

        shutil.rmtree(path)
        self._manifest.remove(name)
        logger.info("uninstalled skill %s", name)

    def get_manifest(self) -> Manifest:
        """Return the scope's manifest."""
        return self._manifest.read()

"""SKILL.md parsing and generation.

A skill document is a YAML frontmatter block delimited by ``---`` lines,
followed by a markdown body.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import frontmatter
import yaml
from pydantic import ValidationError

from outclaw.errors import SkillNotFoundError, SkillValidationError
from outclaw.skills.models import Skill, SkillFrontmatter, SkillStructure

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

SKILL_FILENAME = "SKILL.md"

# Order in which generate_skill_md writes header keys.
FIELD_ORDER = (
    "name",
    "description",
    "version",
    "disable-model-invocation",
    "user-invocable",
    "allowed-tools",
    "argument-hint",
    "model",
    "context",
    "agent",
    "license",
    "author",
    "keywords",
    "repository",
)


def _first_violation(exc: ValidationError) -> SkillValidationError:
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err["loc"]) or None
    return SkillValidationError(err["msg"], field=field)


def parse_skill_text(text: str) -> tuple[dict[str, Any], str]:
    """Split SKILL.md content into raw frontmatter and a stripped body.

    Raises:
        SkillValidationError: If the frontmatter is not valid YAML mapping.
    """
    try:
        post = frontmatter.loads(text)
    except (yaml.YAMLError, TypeError) as e:
        raise SkillValidationError(f"invalid frontmatter: {e}") from e
    if not isinstance(post.metadata, dict):
        raise SkillValidationError("frontmatter must be a mapping")
    return dict(post.metadata), post.content.strip()


def validate_frontmatter(data: Mapping[str, Any]) -> SkillFrontmatter:
    """Validate raw frontmatter against the schema.

    Raises:
        SkillValidationError: Carrying the first schema violation.
    """
    try:
        return SkillFrontmatter.model_validate(dict(data))
    except ValidationError as e:
        raise _first_violation(e) from e


def validate_skill_text(text: str) -> SkillFrontmatter:
    """Validate a whole SKILL.md document held in memory."""
    data, body = parse_skill_text(text)
    meta = validate_frontmatter(data)
    if not body:
        raise SkillValidationError("Skill content is required", field="content")
    return meta


class SkillParser:
    """Reads the skill document stored in one skill directory."""

    def __init__(self, base_path: Path) -> None:
        """Initialize the parser.

        Args:
            base_path: The skill directory containing SKILL.md.
        """
        self.base_path = base_path

    @property
    def skill_file(self) -> Path:
        """Return the path of the primary document."""
        return self.base_path / SKILL_FILENAME

    def _read(self) -> str:
        try:
            return self.skill_file.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise SkillNotFoundError(f"{SKILL_FILENAME} not found in {self.base_path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise SkillValidationError(f"unreadable {SKILL_FILENAME}: {e}") from e

    def parse(self) -> Skill:
        """Parse and validate SKILL.md.

        Raises:
            SkillNotFoundError: If SKILL.md does not exist.
            SkillValidationError: If the file cannot be read as UTF-8 text, or
                the header or body is invalid.
        """
        data, body = parse_skill_text(self._read())
        meta = validate_frontmatter(data)
        try:
            return Skill(meta=meta, content=body, base_dir=self.base_path)
        except ValidationError as e:
            raise SkillValidationError("Skill content is required", field="content") from e

    def parse_frontmatter(self) -> SkillFrontmatter:
        """Parse and validate only the header."""
        data, _ = parse_skill_text(self._read())
        return validate_frontmatter(data)

    def get_structure(self) -> SkillStructure:
        """Describe the files of the skill directory."""
        structure = SkillStructure()
        if not self.base_path.is_dir():
            return structure

        for entry in sorted(self.base_path.iterdir()):
            if entry.is_file() and entry.name == SKILL_FILENAME:
                structure.has_skill_md = True
            elif entry.is_dir():
                match entry.name:
                    case "references":
                        structure.has_references = True
                    case "scripts":
                        structure.has_scripts = True
                    case "examples":
                        structure.has_examples = True
            structure.files.append(entry.name)
        return structure

    def is_valid(self) -> bool:
        """Check if a valid skill exists at this path."""
        try:
            self.parse()
        except (SkillNotFoundError, SkillValidationError):
            return False
        return True


def _header_values(header: SkillFrontmatter | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(header, SkillFrontmatter):
        dumped = header.model_dump(
            by_alias=True, exclude_unset=True, exclude_none=True
        )
        return dumped
    return {str(k).replace("_", "-"): v for k, v in header.items()}


def generate_skill_md(header: SkillFrontmatter | Mapping[str, Any], body: str) -> str:
    """Generate SKILL.md content from frontmatter and body.

    Only fields that are set are written, in ``FIELD_ORDER``. Comments and the
    original key order of a parsed document are not preserved.
    """
    values = _header_values(header)
    lines: list[str] = []
    for key in FIELD_ORDER:
        value = values.get(key)
        if value is None:
            continue
        if key == "allowed-tools" and isinstance(value, list) and value:
            value = ", ".join(value)
        elif hasattr(value, "model_dump"):
            value = value.model_dump(exclude_none=True)
        lines.append(
            yaml.safe_dump(
                {key: value},
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
                width=float("inf"),
            ).rstrip("\n")
        )

    header_text = "\n".join(lines)
    return f"---\n{header_text}\n---\n\n{body}\n"

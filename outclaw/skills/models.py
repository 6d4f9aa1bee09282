"""Skill data models.

Ref: https://agentskills.io/specification
"""

from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from outclaw.paths import Scope

NAME_PATTERN = r"^[a-z0-9-]+$"
VERSION_PATTERN = r"^\d+\.\d+\.\d+$"


def _split_tools(value: Any) -> Any:
    """Accept ``"Read, Grep"`` as well as ``["Read", "Grep"]``."""
    if isinstance(value, str):
        return [t.strip() for t in value.split(",")]
    return value


class SkillAuthor(BaseModel):
    """Structured author of a skill."""

    name: str
    email: str | None = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    url: str | None = Field(default=None, pattern=r"^https?://\S+$")


class SkillFrontmatter(BaseModel):
    """Definition of the SKILL.md frontmatter."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(min_length=1, pattern=NAME_PATTERN)
    description: str = Field(min_length=10)
    version: str | None = Field(default=None, pattern=VERSION_PATTERN)
    disable_model_invocation: bool = Field(
        default=False, alias="disable-model-invocation"
    )
    user_invocable: bool = Field(default=True, alias="user-invocable")
    allowed_tools: Annotated[list[str] | None, BeforeValidator(_split_tools)] = Field(
        default=None, alias="allowed-tools"
    )
    argument_hint: str | None = Field(default=None, alias="argument-hint")
    model: str | None = None
    context: Literal["normal", "fork"] | None = None
    agent: str | None = None
    license: str | None = None
    author: str | SkillAuthor | None = None
    keywords: list[str] | None = None
    repository: str | None = None


class Skill(BaseModel):
    """Content loaded from SKILL.md."""

    meta: SkillFrontmatter
    content: str = Field(min_length=1)
    base_dir: Path

    @property
    def name(self) -> str:
        """Return the skill name from its header."""
        return self.meta.name

    @property
    def description(self) -> str:
        """Return the skill description from its header."""
        return self.meta.description


class SkillInfo(Skill):
    """A skill together with the scope it was found in."""

    scope: Scope


class SkillStructure(BaseModel):
    """What a skill directory contains."""

    has_skill_md: bool = False
    has_references: bool = False
    has_scripts: bool = False
    has_examples: bool = False
    files: list[str] = Field(default_factory=list)


class CreateSkillOptions(BaseModel):
    """Fields for scaffolding a new skill."""

    name: str = Field(pattern=NAME_PATTERN)
    description: str = Field(min_length=10)
    version: str | None = None
    disable_model_invocation: bool | None = None
    user_invocable: bool | None = None
    allowed_tools: list[str] | None = None
    argument_hint: str | None = None
    model: str | None = None
    context: Literal["normal", "fork"] | None = None
    agent: str | None = None
    content: str | None = None

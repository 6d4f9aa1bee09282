"""Tests for SKILL.md parsing and generation."""

from pathlib import Path

import pytest

from outclaw.errors import SkillNotFoundError, SkillValidationError
from outclaw.skills.models import SkillAuthor, SkillFrontmatter
from outclaw.skills.parser import (
    SkillParser,
    generate_skill_md,
    parse_skill_text,
    validate_skill_text,
)

VALID_SKILL = """\
---
name: code-review
description: Reviews code for best practices
---

## Instructions

Review the code carefully.
"""

FULL_SKILL = """\
---
# comments are not preserved
repository: https://github.com/acme/widgets
name: full-skill
description: "Exercises every header field: all of them"
version: 2.1.0
disable-model-invocation: true
user-invocable: false
allowed-tools: Read, Grep ,Bash
argument-hint: "[file] [options]"
model: sonnet
context: fork
agent: reviewer
license: MIT
author:
  name: Ada
  email: ada@example.com
  url: https://example.com/ada
keywords:
  - review
  - lint
---

Body text.
"""


def _write_skill(base: Path, content: str) -> Path:
    base.mkdir(parents=True, exist_ok=True)
    (base / "SKILL.md").write_text(content, encoding="utf-8")
    return base


class TestParse:
    """Tests for SkillParser.parse."""

    def test_parse_valid(self, tmp_path: Path) -> None:
        """Header defaults are applied and the body is stripped."""
        skill = SkillParser(_write_skill(tmp_path / "s", VALID_SKILL)).parse()

        assert skill.name == "code-review"
        assert skill.meta.disable_model_invocation is False
        assert skill.meta.user_invocable is True
        assert skill.meta.version is None
        assert skill.content == "## Instructions\n\nReview the code carefully."
        assert skill.base_dir == tmp_path / "s"

    def test_parse_all_fields(self, tmp_path: Path) -> None:
        """Aliased keys, comma separated tools and structured author."""
        meta = SkillParser(_write_skill(tmp_path / "s", FULL_SKILL)).parse().meta

        assert meta.allowed_tools == ["Read", "Grep", "Bash"]
        assert meta.disable_model_invocation is True
        assert meta.user_invocable is False
        assert meta.argument_hint == "[file] [options]"
        assert meta.context == "fork"
        assert meta.author == SkillAuthor(
            name="Ada", email="ada@example.com", url="https://example.com/ada"
        )
        assert meta.keywords == ["review", "lint"]

    def test_short_description(self, tmp_path: Path) -> None:
        """A five character description fails validation."""
        text = "---\nname: demo\ndescription: short\n---\n\nBody."
        with pytest.raises(SkillValidationError) as exc_info:
            SkillParser(_write_skill(tmp_path / "s", text)).parse()
        assert exc_info.value.field == "description"

    @pytest.mark.parametrize(
        ("header", "field"),
        [
            ("name: Bad_Name\ndescription: long enough text", "name"),
            ("description: long enough text", "name"),
            ("name: ok\ndescription: long enough text\nversion: v1", "version"),
            ("name: ok\ndescription: long enough text\ncontext: other", "context"),
        ],
    )
    def test_schema_violations(self, tmp_path: Path, header: str, field: str) -> None:
        """The first violation names the offending field."""
        text = f"---\n{header}\n---\n\nBody."
        with pytest.raises(SkillValidationError) as exc_info:
            SkillParser(_write_skill(tmp_path / "s", text)).parse()
        assert exc_info.value.field == field

    def test_empty_body(self, tmp_path: Path) -> None:
        """A document without a body is invalid."""
        text = "---\nname: demo\ndescription: long enough text\n---\n\n   \n"
        with pytest.raises(SkillValidationError):
            SkillParser(_write_skill(tmp_path / "s", text)).parse()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """YAML syntax errors are validation errors."""
        text = "---\nname: [invalid\ndescription: : bad yaml {{\n---\n\nBody."
        with pytest.raises(SkillValidationError):
            SkillParser(_write_skill(tmp_path / "s", text)).parse()

    def test_missing_file(self, tmp_path: Path) -> None:
        """A directory without SKILL.md is not found."""
        (tmp_path / "s").mkdir()
        with pytest.raises(SkillNotFoundError):
            SkillParser(tmp_path / "s").parse()
        assert not SkillParser(tmp_path / "s").is_valid()

    def test_not_utf8(self, tmp_path: Path) -> None:
        """Undecodable documents are invalid rather than crashing."""
        base = tmp_path / "s"
        base.mkdir()
        (base / "SKILL.md").write_bytes(b"\xff\xfe---\nname: x\n")
        with pytest.raises(SkillValidationError):
            SkillParser(base).parse()
        assert not SkillParser(base).is_valid()

    def test_document_is_directory(self, tmp_path: Path) -> None:
        """A SKILL.md that is a directory is invalid."""
        (tmp_path / "s" / "SKILL.md").mkdir(parents=True)
        with pytest.raises(SkillValidationError):
            SkillParser(tmp_path / "s").parse()

    def test_parse_frontmatter(self, tmp_path: Path) -> None:
        """Header only parsing."""
        meta = SkillParser(_write_skill(tmp_path / "s", VALID_SKILL)).parse_frontmatter()
        assert meta.description == "Reviews code for best practices"


class TestStructure:
    """Tests for SkillParser.get_structure."""

    def test_structure(self, tmp_path: Path) -> None:
        """Known subdirectories are detected."""
        base = _write_skill(tmp_path / "s", VALID_SKILL)
        (base / "scripts").mkdir()
        (base / "references").mkdir()
        (base / "notes.txt").write_text("x")

        structure = SkillParser(base).get_structure()

        assert structure.has_skill_md
        assert structure.has_scripts
        assert structure.has_references
        assert not structure.has_examples
        assert structure.files == ["SKILL.md", "notes.txt", "references", "scripts"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A missing directory has an empty structure."""
        structure = SkillParser(tmp_path / "nope").get_structure()
        assert not structure.has_skill_md
        assert structure.files == []


class TestGenerate:
    """Tests for generate_skill_md."""

    def test_only_set_fields(self) -> None:
        """Unset optionals are omitted, not written as null."""
        meta = SkillFrontmatter.model_validate(
            {"name": "demo", "description": "A demo skill for tests"}
        )
        text = generate_skill_md(meta, "Hello.")

        assert text == (
            "---\nname: demo\ndescription: A demo skill for tests\n---\n\nHello.\n"
        )
        assert "null" not in text
        assert "user-invocable" not in text

    def test_mapping_header_order(self) -> None:
        """Mapping headers are written in the fixed field order."""
        text = generate_skill_md(
            {
                "context": "fork",
                "allowed-tools": ["Read", "Grep"],
                "description": "A demo skill for tests",
                "name": "demo",
                "user-invocable": False,
            },
            "Body",
        )
        header = text.split("---\n")[1].splitlines()
        assert header == [
            "name: demo",
            "description: A demo skill for tests",
            "user-invocable: false",
            "allowed-tools: Read, Grep",
            "context: fork",
        ]

    def test_round_trip(self, tmp_path: Path) -> None:
        """Generating from a parsed document preserves every defined field."""
        original = SkillParser(_write_skill(tmp_path / "a", FULL_SKILL)).parse()

        regenerated = generate_skill_md(original.meta, original.content)
        again = SkillParser(_write_skill(tmp_path / "b", regenerated)).parse()

        assert again.meta == original.meta
        assert again.content == original.content
        assert "comments are not preserved" not in regenerated

    def test_round_trip_empty_lists(self, tmp_path: Path) -> None:
        """Explicitly empty lists survive generation."""
        text = (
            "---\nname: demo\ndescription: long enough text\n"
            "keywords: []\nallowed-tools: []\n---\n\nBody."
        )
        first = SkillParser(_write_skill(tmp_path / "a", text)).parse()
        regenerated = generate_skill_md(first.meta, first.content)
        second = SkillParser(_write_skill(tmp_path / "b", regenerated)).parse()

        assert first.meta.keywords == []
        assert first.meta.allowed_tools == []
        assert second.meta == first.meta

    def test_round_trip_keeps_set_defaults(self, tmp_path: Path) -> None:
        """A default value that was given explicitly is written back."""
        text = (
            "---\nname: demo\ndescription: long enough text\n"
            "user-invocable: true\n---\n\nBody."
        )
        skill = SkillParser(_write_skill(tmp_path / "s", text)).parse()
        assert "user-invocable: true" in generate_skill_md(skill.meta, skill.content)


class TestTextHelpers:
    """Tests for in-memory helpers."""

    def test_parse_skill_text(self) -> None:
        """Raw frontmatter is returned unvalidated."""
        data, body = parse_skill_text("---\nname: X\n---\n\n body \n")
        assert data == {"name": "X"}
        assert body == "body"

    def test_validate_skill_text(self) -> None:
        """Valid content yields its header."""
        assert validate_skill_text(VALID_SKILL).name == "code-review"

    def test_validate_no_frontmatter(self) -> None:
        """Content without a header is invalid."""
        with pytest.raises(SkillValidationError):
            validate_skill_text("## Instructions\n\nNo frontmatter here.\n")

"""Skill management module."""

from outclaw.skills.manager import SkillManager
from outclaw.skills.manifest import Manifest, ManifestEntry, ManifestStore, SkillSource
from outclaw.skills.models import CreateSkillOptions, Skill, SkillFrontmatter, SkillInfo
from outclaw.skills.parser import SkillParser, generate_skill_md

__all__ = [
    "CreateSkillOptions",
    "Manifest",
    "ManifestEntry",
    "ManifestStore",
    "Skill",
    "SkillFrontmatter",
    "SkillInfo",
    "SkillManager",
    "SkillParser",
    "SkillSource",
    "generate_skill_md",
]

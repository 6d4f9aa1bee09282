"""Scope and on-disk location resolution.

The global scope lives under an OpenClaw workspace. Its root comes from the
OpenClaw JSON config when one is configured, and falls back to
``~/.openclaw/workspace`` otherwise. The project scope lives under the current
working directory.
"""

import json
import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from outclaw.env import OPENCLAW_CONFIG_PATH, OPENCLAW_STATE_DIR, env_override

logger = logging.getLogger(__name__)

OPENCLAW_CONFIG_FILE = "openclaw.json"
LOCK_FILE = "lock.json"
PROJECT_STATE_DIR = ".outclaw"
SKILLS_DIR = "skills"


class Scope(StrEnum):
    """Which registry an operation targets."""

    GLOBAL = "global"
    PROJECT = "project"


@dataclass(frozen=True)
class ScopePaths:
    """Resolved locations for one scope.

    The skills directory and the lock file are siblings but addressed
    independently.
    """

    scope: Scope
    skills_dir: Path
    lock_file: Path

    def skill_dir(self, name: str) -> Path:
        """Return the directory of a skill."""
        return self.skills_dir / name


def resolve_user_path(value: str) -> Path | None:
    """Expand ``~`` and make a user supplied path absolute."""
    trimmed = value.strip()
    if not trimmed:
        return None
    return Path(trimmed).expanduser().resolve()


def openclaw_config_path() -> Path:
    """Return the OpenClaw config file path, honoring environment overrides."""
    if (override := env_override(OPENCLAW_CONFIG_PATH)) and (
        path := resolve_user_path(override)
    ):
        return path
    if (state_dir := env_override(OPENCLAW_STATE_DIR)) and (
        path := resolve_user_path(state_dir)
    ):
        return path / OPENCLAW_CONFIG_FILE
    return Path.home() / ".openclaw" / OPENCLAW_CONFIG_FILE


def default_workspace() -> Path:
    """Return the fallback workspace root."""
    return Path.home() / ".openclaw" / "workspace"


def _workspace_from_config(config: dict[str, Any]) -> str | None:
    agents = config.get("agents")
    agents = agents if isinstance(agents, dict) else {}

    defaults = agents.get("defaults")
    if isinstance(defaults, dict) and defaults.get("workspace"):
        return defaults["workspace"]

    # legacy single agent layout
    agent = config.get("agent")
    if isinstance(agent, dict) and agent.get("workspace"):
        return agent["workspace"]

    listed = [a for a in agents.get("list") or [] if isinstance(a, dict)]
    default_agent = next((a for a in listed if a.get("default")), None) or next(
        (a for a in listed if a.get("id") == "main"), None
    )
    if default_agent and default_agent.get("workspace"):
        return default_agent["workspace"]
    return None


def read_workspace_root(config_path: Path | None = None) -> Path | None:
    """Read the configured workspace root from the OpenClaw config.

    Args:
        config_path: Config file to read. Defaults to ``openclaw_config_path()``.

    Returns:
        The configured workspace, or None if the file is absent, unreadable,
        or does not name a workspace.
    """
    path = config_path or openclaw_config_path()
    try:
        with path.open(encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError):
        logger.warning("ignoring unreadable openclaw config: %s", path)
        return None

    if not isinstance(config, dict):
        return None

    workspace = _workspace_from_config(config)
    if not isinstance(workspace, str):
        return None
    return resolve_user_path(workspace)


def resolve_scope_paths(
    scope: Scope,
    *,
    workspace: Path | None = None,
    cwd: Path | None = None,
) -> ScopePaths:
    """Resolve the skills directory and lock file for a scope.

    Args:
        scope: Target scope.
        workspace: Workspace root for the global scope. Callers resolve it once
            per invocation with ``read_workspace_root``; None means the default.
        cwd: Base directory for the project scope. Defaults to the current
            working directory.
    """
    if scope == Scope.GLOBAL:
        root = workspace or default_workspace()
        return ScopePaths(scope, root / SKILLS_DIR, root / LOCK_FILE)

    base = cwd or Path.cwd()
    return ScopePaths(scope, base / SKILLS_DIR, base / PROJECT_STATE_DIR / LOCK_FILE)

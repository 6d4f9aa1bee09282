"""Registry credentials stored in the user's config directory."""

import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

from outclaw.env import OUTCLAW_API_BASE, OUTCLAW_API_KEY, OUTCLAW_CONFIG_DIR, env_override

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
DEFAULT_API_BASE = "https://outclaws.ai/api"


class OutclawConfig(BaseModel):
    """Model of config.json."""

    api_key: str | None = None
    agent_id: str | None = None
    agent_name: str | None = None
    verified: bool | None = None
    api_base: str | None = None


def config_file_path(config_dir: Path | None = None) -> Path:
    """Return the config file path."""
    return (config_dir or OUTCLAW_CONFIG_DIR) / CONFIG_FILE


def load_config(config_dir: Path | None = None) -> OutclawConfig:
    """Load the config, returning an empty one if missing or corrupt."""
    path = config_file_path(config_dir)
    if not path.exists():
        return OutclawConfig()

    try:
        with path.open("r", encoding="utf-8") as f:
            return OutclawConfig.model_validate_json(f.read())
    except (OSError, ValidationError):
        logger.warning("ignoring unreadable config: %s", path)
        return OutclawConfig()


def save_config(config: OutclawConfig, config_dir: Path | None = None) -> None:
    """Save the config."""
    path = config_file_path(config_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(config.model_dump_json(exclude_none=True, indent=2))


def clear_config(config_dir: Path | None = None) -> None:
    """Delete the config (logout)."""
    config_file_path(config_dir).unlink(missing_ok=True)


def get_api_key(config_dir: Path | None = None) -> str | None:
    """Return the API key. The environment takes precedence over the file."""
    if key := env_override(OUTCLAW_API_KEY):
        return key
    return load_config(config_dir).api_key


def get_api_base(config_dir: Path | None = None) -> str:
    """Return the API base URL."""
    if base := env_override(OUTCLAW_API_BASE):
        return base
    return load_config(config_dir).api_base or DEFAULT_API_BASE


def is_logged_in(config_dir: Path | None = None) -> bool:
    """Check whether an API key is available."""
    return bool(get_api_key(config_dir))

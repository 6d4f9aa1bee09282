from os import getenv
from pathlib import Path

OPENCLAW_CONFIG_PATH = "OPENCLAW_CONFIG_PATH"
OPENCLAW_STATE_DIR = "OPENCLAW_STATE_DIR"
OUTCLAW_API_BASE = "OUTCLAW_API_BASE"
OUTCLAW_API_KEY = "OUTCLAW_API_KEY"

OUTCLAW_CONFIG_DIR = Path(
    getenv("OUTCLAW_CONFIG_DIR", str(Path.home() / ".config" / "outclaw"))
)


def env_override(name: str) -> str | None:
    """Return the trimmed value of an environment override, or None if unset."""
    value = getenv(name)
    if value is None:
        return None
    return value.strip() or None

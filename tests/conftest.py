from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from outclaw.api_client import ApiClient
from outclaw.paths import Scope, resolve_scope_paths
from outclaw.skills.manager import SkillManager

type Handler = Callable[[httpx.Request], httpx.Response]

API_BASE = "https://registry.test/api"


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep tests away from the real home directory and environment."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in (
        "OPENCLAW_CONFIG_PATH",
        "OPENCLAW_STATE_DIR",
        "OUTCLAW_API_BASE",
        "OUTCLAW_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("outclaw.config.OUTCLAW_CONFIG_DIR", home / ".config" / "outclaw")
    return home


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A scratch project directory."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def skill_manager(project_dir: Path) -> SkillManager:
    """Skill manager for a project scope rooted in a temp directory."""
    return SkillManager(resolve_scope_paths(Scope.PROJECT, cwd=project_dir))


@pytest.fixture
def mock_transport() -> Callable[[Handler], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by ``handler``."""

    def factory(handler: Handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest_asyncio.fixture
async def registry_api() -> AsyncGenerator[Callable[..., ApiClient], None]:
    """Create keyed ApiClients backed by a mock handler."""
    clients: list[httpx.AsyncClient] = []

    def factory(handler: Handler, api_key: str | None = "oc_test") -> ApiClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return ApiClient(API_BASE, api_key, client=client)

    yield factory
    for client in clients:
        await client.aclose()

"""The lock file recording installed skills for one scope."""

import logging
import os
import platform
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import IO, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from outclaw.paths import Scope

logger = logging.getLogger(__name__)

type SourceType = Literal["registry", "github", "git", "local", "url"]


class SkillSource(BaseModel):
    """Where an installed skill came from."""

    type: SourceType
    url: str | None = None
    ref: str | None = None
    id: str | None = None


class ManifestEntry(BaseModel):
    """One installed skill."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    version: str
    installed_at: datetime = Field(alias="installedAt")
    source: SkillSource
    scope: Scope


class Manifest(BaseModel):
    """Model of lock.json."""

    version: Literal[1] = 1
    skills: list[ManifestEntry] = Field(default_factory=list)

    def find(self, name: str) -> ManifestEntry | None:
        """Return the entry for a skill name."""
        return next((s for s in self.skills if s.name == name), None)

    def upsert(self, entry: ManifestEntry) -> None:
        """Replace the entry with the same name in place, or append it."""
        for i, s in enumerate(self.skills):
            if s.name == entry.name:
                self.skills[i] = entry
                return
        self.skills.append(entry)

    def remove(self, name: str) -> None:
        """Drop every entry with the given name."""
        self.skills = [s for s in self.skills if s.name != name]


def _lock(handle: IO[str]) -> None:
    if platform.system() == "Windows":
        import msvcrt

        msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)
    else:
        import fcntl

        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)


def _unlock(handle: IO[str]) -> None:
    if platform.system() == "Windows":
        import msvcrt

        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl

        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


class ManifestStore:
    """Reads and rewrites a lock file.

    Every rewrite is a whole-file read-modify-write. Writers serialize on an
    advisory lock held on a sibling ``.lock`` file, and the new content
    replaces the old file atomically.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of lock.json.
        """
        self._path = path

    @property
    def path(self) -> Path:
        """Return the lock file path."""
        return self._path

    @property
    def _guard_path(self) -> Path:
        return self._path.with_name(self._path.name + ".lock")

    def _load(self) -> Manifest | None:
        """Load the manifest, or None if it is missing or unreadable."""
        try:
            with self._path.open(encoding="utf-8") as f:
                return Manifest.model_validate_json(f.read())
        except FileNotFoundError:
            return None
        except (OSError, ValidationError):
            logger.warning("unreadable manifest, treating as empty: %s", self._path)
            return None

    def read(self) -> Manifest:
        """Return the manifest, or an empty one if missing or unparsable."""
        return self._load() or Manifest()

    def _write(self, manifest: Manifest) -> None:
        tmp = self._path.with_name(f".{self._path.name}.{os.getpid()}.tmp")
        tmp.write_text(
            manifest.model_dump_json(by_alias=True, exclude_none=True, indent=2),
            encoding="utf-8",
        )
        tmp.replace(self._path)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._guard_path.open("a", encoding="utf-8") as handle:
            _lock(handle)
            try:
                yield
            finally:
                _unlock(handle)

    def update(self, mutate: Callable[[Manifest], None]) -> Manifest:
        """Apply ``mutate`` to the current manifest and persist the result."""
        with self._locked():
            manifest = self.read()
            mutate(manifest)
            self._write(manifest)
        return manifest

    def upsert(self, entry: ManifestEntry) -> Manifest:
        """Record an installed skill."""
        return self.update(lambda m: m.upsert(entry))

    def remove(self, name: str) -> None:
        """Forget a skill. Missing or unreadable manifests are left untouched."""
        if not self._path.exists():
            return
        with self._locked():
            manifest = self._load()
            if manifest is None:
                return
            manifest.remove(name)
            self._write(manifest)

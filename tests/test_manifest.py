"""Tests for the lock file store."""

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path

import pytest

from outclaw.paths import Scope
from outclaw.skills.manifest import (
    Manifest,
    ManifestEntry,
    ManifestStore,
    SkillSource,
)


def _entry(name: str, url: str = "https://github.com/acme/widgets") -> ManifestEntry:
    return ManifestEntry(
        name=name,
        version="1.0.0",
        installed_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC),
        source=SkillSource(type="github", url=url, ref="main"),
        scope=Scope.GLOBAL,
    )


@pytest.fixture
def store(tmp_path: Path) -> ManifestStore:
    """A store whose lock file does not exist yet."""
    return ManifestStore(tmp_path / "ws" / "lock.json")


class TestRead:
    """Reading tolerates missing and broken files."""

    def test_missing(self, store: ManifestStore) -> None:
        """A missing file reads as an empty manifest."""
        assert store.read() == Manifest(version=1, skills=[])

    @pytest.mark.parametrize(
        "content",
        ["not json", "[]", '{"version": 2, "skills": []}', '{"skills": [{"name": 1}]}'],
    )
    def test_corrupt(self, store: ManifestStore, content: str) -> None:
        """Unparsable content reads as an empty manifest."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text(content)
        assert store.read().skills == []


class TestWrite:
    """Writing rewrites the whole file."""

    def test_json_shape(self, store: ManifestStore) -> None:
        """The on-disk format uses camelCase timestamps and omits unset fields."""
        store.upsert(_entry("alpha"))

        data = json.loads(store.path.read_text())
        assert data["version"] == 1
        assert data["skills"] == [
            {
                "name": "alpha",
                "version": "1.0.0",
                "installedAt": "2026-01-02T03:04:05Z",
                "source": {
                    "type": "github",
                    "url": "https://github.com/acme/widgets",
                    "ref": "main",
                },
                "scope": "global",
            }
        ]

    def test_upsert_replaces_in_place(self, store: ManifestStore) -> None:
        """Re-recording a name keeps one entry at its original position."""
        store.upsert(_entry("alpha"))
        store.upsert(_entry("beta"))
        store.upsert(_entry("alpha", url="https://github.com/acme/other"))

        skills = store.read().skills
        assert [s.name for s in skills] == ["alpha", "beta"]
        assert skills[0].source.url == "https://github.com/acme/other"

    def test_update_over_corrupt(self, store: ManifestStore) -> None:
        """A corrupt file is replaced by a fresh manifest on update."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{broken")

        store.upsert(_entry("alpha"))

        assert [s.name for s in store.read().skills] == ["alpha"]

    def test_round_trip_from_disk(self, store: ManifestStore) -> None:
        """Entries read back equal to what was written."""
        entry = _entry("alpha")
        store.upsert(entry)
        assert store.read().find("alpha") == entry

    def test_no_temp_files_left(self, store: ManifestStore) -> None:
        """Atomic replace leaves only the lock file and its guard."""
        store.upsert(_entry("alpha"))
        assert sorted(p.name for p in store.path.parent.iterdir()) == [
            "lock.json",
            "lock.json.lock",
        ]

    def test_concurrent_writers(self, store: ManifestStore) -> None:
        """Parallel upserts serialize on the lock; no entry is lost."""

        def write_batch(worker: int) -> None:
            for i in range(20):
                store.upsert(_entry(f"skill-{worker}-{i}"))

        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(write_batch, range(4)))

        names = {s.name for s in store.read().skills}
        assert len(names) == 80
        assert names == {f"skill-{w}-{i}" for w in range(4) for i in range(20)}


class TestRemove:
    """Removing entries."""

    def test_remove(self, store: ManifestStore) -> None:
        """Only the named entry is dropped."""
        store.upsert(_entry("alpha"))
        store.upsert(_entry("beta"))

        store.remove("alpha")

        assert [s.name for s in store.read().skills] == ["beta"]

    def test_remove_missing_file(self, store: ManifestStore) -> None:
        """Removing from a missing manifest does not create it."""
        store.remove("alpha")
        assert not store.path.exists()

    def test_remove_corrupt_file(self, store: ManifestStore) -> None:
        """An unreadable manifest is left as it is."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{broken")

        store.remove("alpha")

        assert store.path.read_text() == "{broken"

    def test_remove_unknown_name(self, store: ManifestStore) -> None:
        """Removing an unknown name keeps the other entries."""
        store.upsert(_entry("alpha"))
        store.remove("nope")
        assert store.read().find("alpha") is not None

"""Classify a user supplied skill specifier into a source.

Accepted forms::

    github:owner/repo[@ref][/path/to/skill]   (``hosted:`` is an alias)
    https://github.com/owner/repo[/tree/<ref>/path/to/skill]
    https://example.com/SKILL.md
    ./local/path, ../local/path, /abs/path
    owner/repo[@ref][/path/to/skill]
    <uuid>                                    registry id
    <name>                                    registry slug or search term

Rules are tried in the order of ``RESOLUTION_RULES``; the first match wins.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import urlparse

HOSTED_PREFIXES = ("github:", "hosted:")
HOSTED_HOST = "github.com"
LOCAL_PREFIXES = ("./", "/", "../")

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class SourceKind(StrEnum):
    """Kinds of skill source."""

    HOSTED = "hosted"
    URL = "url"
    LOCAL = "local"
    REGISTRY = "registry"


@dataclass(frozen=True)
class HostedRef:
    """A skill stored in a hosted git repository.

    ``ref`` stays None when not given; fetchers pick the default branch.
    """

    owner: str
    repo: str
    ref: str | None = None
    subpath: str | None = None
    kind = SourceKind.HOSTED


@dataclass(frozen=True)
class UrlSource:
    """A skill document at an arbitrary URL."""

    url: str
    kind = SourceKind.URL


@dataclass(frozen=True)
class LocalSource:
    """A skill on the local filesystem."""

    path: str
    kind = SourceKind.LOCAL


@dataclass(frozen=True)
class RegistrySource:
    """A registry entry, by id or by slug/search term."""

    id_or_slug: str
    kind = SourceKind.REGISTRY

    @property
    def is_uuid(self) -> bool:
        """Whether the identifier is a registry id rather than a slug."""
        return is_uuid(self.id_or_slug)


type Specifier = HostedRef | UrlSource | LocalSource | RegistrySource


def is_uuid(value: str) -> bool:
    """Check whether a string is shaped like a UUID."""
    return UUID_PATTERN.match(value) is not None


def _split_repo_ref(repo: str) -> tuple[str, str | None]:
    if "@" not in repo:
        return repo, None
    repo, _, ref = repo.partition("@")
    return repo, ref or None


def _hosted_from_parts(parts: list[str]) -> HostedRef:
    """Build a hosted ref from ``owner/repo[@ref]/sub/path`` segments."""
    owner = parts[0] if parts else ""
    repo, ref = _split_repo_ref(parts[1] if len(parts) > 1 else "")
    subpath = "/".join(parts[2:]) or None
    return HostedRef(owner=owner, repo=repo, ref=ref, subpath=subpath)


def _parse_hosted_prefix(raw: str) -> HostedRef:
    _, _, rest = raw.partition(":")
    return _hosted_from_parts(rest.split("/"))


def _parse_hosted_url(raw: str) -> HostedRef:
    url = raw if "://" in raw else f"https://{raw}"
    try:
        path = urlparse(url).path
    except ValueError:
        path = ""
    parts = path.lstrip("/").split("/")

    owner = parts[0]
    repo = parts[1] if len(parts) > 1 else ""
    repo = repo.removesuffix(".git")

    ref = None
    if len(parts) > 3 and parts[2] == "tree" and parts[3]:
        ref = parts[3]

    subpath = "/".join(p for p in parts[4:] if p) or None
    return HostedRef(owner=owner, repo=repo, ref=ref, subpath=subpath)


def _parse_shorthand(raw: str) -> HostedRef:
    return _hosted_from_parts(raw.split("/"))


@dataclass(frozen=True)
class ResolutionRule:
    """One entry of the resolution table."""

    name: str
    matches: Callable[[str], bool]
    build: Callable[[str], Specifier]


RESOLUTION_RULES: list[ResolutionRule] = [
    ResolutionRule(
        "hosted-prefix",
        lambda s: s.startswith(HOSTED_PREFIXES),
        _parse_hosted_prefix,
    ),
    ResolutionRule("hosted-url", lambda s: HOSTED_HOST in s, _parse_hosted_url),
    ResolutionRule(
        "url",
        lambda s: s.startswith(("http://", "https://")),
        lambda s: UrlSource(url=s),
    ),
    ResolutionRule(
        "local",
        lambda s: s.startswith(LOCAL_PREFIXES),
        lambda s: LocalSource(path=s),
    ),
    ResolutionRule("hosted-shorthand", lambda s: "/" in s, _parse_shorthand),
    ResolutionRule("registry-id", is_uuid, lambda s: RegistrySource(id_or_slug=s)),
    ResolutionRule("registry-slug", lambda _: True, lambda s: RegistrySource(id_or_slug=s)),
]


def resolve(raw: str) -> Specifier:
    """Classify a specifier. Never fails; unknown input is a registry slug."""
    for rule in RESOLUTION_RULES:
        if rule.matches(raw):
            return rule.build(raw)
    raise AssertionError("registry-slug rule matches every input")

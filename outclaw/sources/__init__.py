"""Specifier resolution and source fetching."""

from outclaw.sources.fetchers import FetchResult, fetch
from outclaw.sources.specifier import (
    HostedRef,
    LocalSource,
    RegistrySource,
    Specifier,
    UrlSource,
    resolve,
)

__all__ = [
    "FetchResult",
    "HostedRef",
    "LocalSource",
    "RegistrySource",
    "Specifier",
    "UrlSource",
    "fetch",
    "resolve",
]

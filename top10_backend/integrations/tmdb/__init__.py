"""
TMDb integration clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from top10_backend.integrations.tmdb.client import (
        TmdbClientError,
        TmdbSearchClient,
        resolve_api_key,
        search_titles,
    )

__all__ = [
    "TmdbClientError",
    "TmdbSearchClient",
    "resolve_api_key",
    "search_titles",
]


def __getattr__(name: str):
    if name in __all__:
        from top10_backend.integrations.tmdb import client

        return getattr(client, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

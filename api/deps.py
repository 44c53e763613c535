"""
Dependency injection for the scraper service and shared resources.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException

from api.cache import ResponseCache
from top10_backend.ingestion.top10_service import Top10Service
from top10_backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@lru_cache
def get_top10_service() -> Top10Service:
    return Top10Service.from_settings(get_settings())


@lru_cache
def get_response_cache() -> ResponseCache:
    return ResponseCache(ttl_seconds=get_settings().cache_ttl_seconds)


# Type aliases for dependency injection
AppSettings = Annotated[Settings, Depends(get_settings)]
ScraperService = Annotated[Top10Service, Depends(get_top10_service)]
ScrapeCache = Annotated[ResponseCache, Depends(get_response_cache)]


def require_tmdb(service: Top10Service) -> None:
    """
    Reject TMDb lookups up front when no API key is configured.

    Raises:
        HTTPException: 503 when TMDb integration is disabled
    """
    if not service.tmdb_enabled:
        logger.warning("TMDb lookup requested but TMDB_API_KEY is not configured")
        raise HTTPException(status_code=503, detail="TMDb integration is not configured")

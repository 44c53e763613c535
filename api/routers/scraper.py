"""
Top 10 scrape and TMDb lookup endpoints.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from api.cache import TV_SHOWS_CACHE_KEY
from api.deps import AppSettings, ScrapeCache, ScraperService, require_tmdb

router = APIRouter(prefix="/scraper", tags=["scraper"])

MediaTypeParam = Literal["movie", "tv", "multi"]


# --- Pydantic models ---

class RankedItem(BaseModel):
    rank: int
    title: str
    category: str
    poster: str = ""
    country: str
    platform: str
    tmdb_id: int | None = None
    tmdb_title: str | None = None
    tmdb_release_date: str | None = None
    tmdb_media_type: str | None = None
    search_strategy_used: int | None = None


class Top10Response(BaseModel):
    success: bool
    data: list[RankedItem]
    count: int
    scrapedAt: str
    type: str
    countryCode: str
    enrichedWithTMDB: bool
    lowConfidence: bool = False
    cached: bool | None = None
    timestamp: str | None = None
    cacheTimestamp: str | None = None


class TmdbIdResponse(BaseModel):
    title: str
    tmdb_id: int | None


class BatchTmdbIdsRequest(BaseModel):
    titles: list[str] = Field(min_length=1, max_length=50)
    media_type: MediaTypeParam = "multi"
    country: str | None = None


class BatchTmdbIdsResponse(BaseModel):
    results: list[TmdbIdResponse]
    found: int
    total: int


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# --- Endpoints ---

@router.get("/netflix/top10", response_model=Top10Response, response_model_exclude_none=True)
async def get_netflix_top10(
    service: ScraperService,
    enrich: bool = Query(default=True),
    country: str | None = Query(default=None, min_length=2, max_length=2),
) -> dict[str, Any]:
    """Top 10 TV shows and movies."""
    return await service.scrape_top10("both", enrich=enrich, country_code=country)


@router.get("/netflix/tv", response_model=Top10Response, response_model_exclude_none=True)
async def get_netflix_tv_shows(
    service: ScraperService,
    cache: ScrapeCache,
    enrich: bool = Query(default=True),
    country: str | None = Query(default=None, min_length=2, max_length=2),
) -> dict[str, Any]:
    """Top 10 TV shows, served from the response cache when fresh."""
    cache_key = TV_SHOWS_CACHE_KEY
    if country or not enrich:
        cache_key = f"{TV_SHOWS_CACHE_KEY}:{(country or '').upper()}:{int(enrich)}"

    cached = cache.get(cache_key)
    if cached is not None:
        return {**cached, "cached": True, "cacheTimestamp": _timestamp()}

    result = await service.scrape_top10("tv", enrich=enrich, country_code=country)
    cache.set(cache_key, result)
    return {**result, "cached": False, "timestamp": _timestamp()}


@router.get("/netflix/movies", response_model=Top10Response, response_model_exclude_none=True)
async def get_netflix_movies(
    service: ScraperService,
    enrich: bool = Query(default=True),
    country: str | None = Query(default=None, min_length=2, max_length=2),
) -> dict[str, Any]:
    """Top 10 movies."""
    return await service.scrape_top10("movies", enrich=enrich, country_code=country)


@router.get("/tmdb/id", response_model=TmdbIdResponse)
async def get_tmdb_id(
    service: ScraperService,
    title: str = Query(min_length=1),
    media_type: MediaTypeParam = Query(default="multi"),
    country: str | None = Query(default=None, min_length=2, max_length=2),
) -> dict[str, Any]:
    """Resolve one title to a TMDb id (null when nothing matches)."""
    require_tmdb(service)
    tmdb_id = await service.lookup_id(title, media_type, country)
    return {"title": title, "tmdb_id": tmdb_id}


@router.post("/tmdb/ids", response_model=BatchTmdbIdsResponse)
async def batch_tmdb_ids(service: ScraperService, body: BatchTmdbIdsRequest) -> dict[str, Any]:
    """Resolve several titles to TMDb ids, sequentially."""
    require_tmdb(service)
    results = await service.batch_lookup_ids(body.titles, body.media_type, body.country)
    found = sum(1 for row in results if row["tmdb_id"] is not None)
    return {"results": results, "found": found, "total": len(results)}


@router.get("/health")
def scraper_health(settings: AppSettings, cache: ScrapeCache) -> dict[str, Any]:
    """Scraper status including cache state."""
    return {
        "service": "Netflix Scraper API",
        "status": "active",
        "target": settings.target_url,
        "timestamp": _timestamp(),
        "cache": {
            "tvShowsCached": cache.get(TV_SHOWS_CACHE_KEY) is not None,
            "cacheType": "memory",
            "memoryCacheSize": len(cache),
        },
    }


@router.delete("/cache")
def clear_cache(cache: ScrapeCache, key: str | None = Query(default=None)) -> dict[str, Any]:
    """Drop one cache key, or everything when no key is given."""
    cache.clear(key)
    return {
        "message": f"Cache cleared for key: {key}" if key else "All cache cleared",
        "timestamp": _timestamp(),
    }

"""
Smoke tests for the Top 10 Scraper API.

The scraper service runs against a fake page client, so no network access is needed.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from api import deps
from api.cache import ResponseCache
from api.main import app
from top10_backend.ingestion.enrichment import TitleEnricher
from top10_backend.ingestion.title_matcher import TitleMatcher
from top10_backend.ingestion.top10_service import Top10Service
from top10_backend.integrations.flixpatrol.page_client import PageFetchError
from top10_backend.models.top10 import MatchCandidate
from top10_backend.settings import Settings, get_settings

FIXTURE = Path(__file__).resolve().parent / "fixtures" / "flixpatrol" / "top10_well_formed.html"


async def _no_wait(_seconds: float) -> None:
    return None


class _FakePageClient:
    def __init__(self, html: str | None = None, error: Exception | None = None) -> None:
        self.html = html
        self.error = error
        self.fetches = 0

    def fetch_page(self, url: str) -> str:
        self.fetches += 1
        if self.error is not None:
            raise self.error
        return self.html or ""


def _search(query: str, media_type: str, region: str | None = None):
    if query == "Squid Game":
        return [MatchCandidate(external_id=93405, display_title="Squid Game", media_type="tv")]
    return []


def _make_service(page_client: _FakePageClient, search=None) -> Top10Service:
    settings = Settings(target_url="https://example.test/top10/", rate_limit_delay_ms=0)
    matcher = TitleMatcher(search, wait=_no_wait, current_year=2026)
    return Top10Service(settings, page_client=page_client, enricher=TitleEnricher(matcher, wait=_no_wait))


@pytest.fixture
def page_client() -> _FakePageClient:
    return _FakePageClient(FIXTURE.read_text(encoding="utf-8"))


def _client_for(service: Top10Service):
    cache = ResponseCache(ttl_seconds=60)
    app.dependency_overrides[deps.get_top10_service] = lambda: service
    app.dependency_overrides[deps.get_response_cache] = lambda: cache
    app.dependency_overrides[get_settings] = lambda: service.settings
    return TestClient(app)


@pytest.fixture
def client(page_client: _FakePageClient):
    """Test client backed by a scraper service without TMDb."""
    yield _client_for(_make_service(page_client))
    app.dependency_overrides.clear()


@pytest.fixture
def tmdb_client(page_client: _FakePageClient):
    """Test client backed by a scraper service with a fake TMDb search."""
    yield _client_for(_make_service(page_client, _search))
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    def test_root_returns_ok(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "top10-scraper"}

    def test_health_returns_healthy(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_scraper_health_reports_cache_state(self, client: TestClient):
        response = client.get("/api/scraper/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "active"
        assert data["target"] == "https://example.test/top10/"
        assert data["cache"]["tvShowsCached"] is False

        client.get("/api/scraper/netflix/tv")
        assert client.get("/api/scraper/health").json()["cache"]["tvShowsCached"] is True


class TestTop10Endpoints:
    def test_tv_list_is_cached(self, client: TestClient, page_client: _FakePageClient):
        first = client.get("/api/scraper/netflix/tv")
        assert first.status_code == 200
        data = first.json()
        assert data["cached"] is False
        assert data["count"] == 10
        assert data["data"][0]["title"] == "Squid Game"
        assert data["enrichedWithTMDB"] is False

        second = client.get("/api/scraper/netflix/tv")
        assert second.status_code == 200
        assert second.json()["cached"] is True
        assert "cacheTimestamp" in second.json()
        assert page_client.fetches == 1

    def test_clear_cache_forces_a_new_scrape(self, client: TestClient, page_client: _FakePageClient):
        client.get("/api/scraper/netflix/tv")
        response = client.delete("/api/scraper/cache")
        assert response.status_code == 200
        assert response.json()["message"] == "All cache cleared"

        assert client.get("/api/scraper/netflix/tv").json()["cached"] is False
        assert page_client.fetches == 2

    def test_movies_and_combined_lists(self, client: TestClient):
        movies = client.get("/api/scraper/netflix/movies", params={"enrich": "false"}).json()
        assert movies["type"] == "movies"
        assert [row["category"] for row in movies["data"]] == ["Movie"] * 10

        both = client.get("/api/scraper/netflix/top10").json()
        assert both["count"] == 20

    def test_enriched_list_includes_tmdb_fields(self, tmdb_client: TestClient):
        data = tmdb_client.get("/api/scraper/netflix/tv", params={"country": "ph"}).json()
        assert data["enrichedWithTMDB"] is True
        assert data["countryCode"] == "PH"
        first = data["data"][0]
        assert first["tmdb_id"] == 93405
        assert first["search_strategy_used"] == 1
        assert "tmdb_id" not in data["data"][2]

    def test_unreachable_site_maps_to_503(self):
        service = _make_service(_FakePageClient(error=PageFetchError("Failed to fetch page: timeout")))
        try:
            response = _client_for(service).get("/api/scraper/netflix/movies")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 503
        assert response.json()["error"] == "Service Unavailable"

    def test_upstream_http_error_maps_to_502(self):
        error = PageFetchError("Failed to fetch page: HTTP 403.", status_code=403)
        service = _make_service(_FakePageClient(error=error))
        try:
            response = _client_for(service).get("/api/scraper/netflix/movies")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 502


class TestTmdbEndpoints:
    def test_lookup_requires_tmdb_key(self, client: TestClient):
        response = client.get("/api/scraper/tmdb/id", params={"title": "Squid Game"})
        assert response.status_code == 503

    def test_single_lookup(self, tmdb_client: TestClient):
        response = tmdb_client.get("/api/scraper/tmdb/id", params={"title": "Squid Game", "media_type": "tv"})
        assert response.status_code == 200
        assert response.json() == {"title": "Squid Game", "tmdb_id": 93405}

    def test_batch_lookup(self, tmdb_client: TestClient):
        response = tmdb_client.post(
            "/api/scraper/tmdb/ids",
            json={"titles": ["Squid Game", "Nothing Like It"], "media_type": "tv"},
        )
        assert response.status_code == 200
        assert response.json() == {
            "results": [
                {"title": "Squid Game", "tmdb_id": 93405},
                {"title": "Nothing Like It", "tmdb_id": None},
            ],
            "found": 1,
            "total": 2,
        }

    def test_batch_lookup_rejects_empty_titles(self, tmdb_client: TestClient):
        response = tmdb_client.post("/api/scraper/tmdb/ids", json={"titles": []})
        assert response.status_code == 422

"""
Scrape flow: fetch the ranking page, extract each requested section, and
optionally attach TMDb ids.
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup

from top10_backend.ingestion.enrichment import TitleEnricher
from top10_backend.ingestion.title_matcher import ScoringWeights, TitleMatcher
from top10_backend.ingestion.top10_extractor import parse_top10_section, sections_for_type
from top10_backend.integrations.flixpatrol.page_client import HttpTop10PageClient
from top10_backend.integrations.tmdb.client import TmdbSearchClient
from top10_backend.models.top10 import MEDIA_TYPE_MULTI, ExtractionResult, RankedEntry
from top10_backend.settings import Settings

logger = logging.getLogger(__name__)

DEBUG_HTML_CHARS = 5000


def _now_utc_iso(now: datetime | None = None) -> str:
    value = now or datetime.now(timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


def _combine_results(results: Sequence[ExtractionResult]) -> ExtractionResult:
    entries: list[RankedEntry] = []
    stages: list[str] = []
    for result in results:
        entries.extend(result.entries)
        stages.extend(s for s in result.stages_used if s not in stages)
    return ExtractionResult(
        entries=entries,
        stages_used=tuple(stages),
        gap_filled=sum(r.gap_filled for r in results),
        low_confidence=any(r.low_confidence for r in results),
    )


class Top10Service:
    def __init__(
        self,
        settings: Settings,
        *,
        page_client: HttpTop10PageClient | None = None,
        enricher: TitleEnricher | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._page_client = page_client or HttpTop10PageClient(user_agent=settings.user_agent)
        self._enricher = enricher or TitleEnricher(TitleMatcher(None))
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._last_fetch_at: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Top10Service":
        search = TmdbSearchClient(settings.tmdb_api_key) if settings.tmdb_api_key else None
        if search is None:
            logger.warning("TMDB_API_KEY not found in environment variables. TMDb integration will be disabled.")
        matcher = TitleMatcher(search, weights=ScoringWeights(primary_region=settings.default_country_code))
        return cls(settings, enricher=TitleEnricher(matcher))

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def tmdb_enabled(self) -> bool:
        return self._enricher.enabled

    async def fetch_page(self) -> str:
        min_interval = self._settings.rate_limit_delay_ms / 1000
        if self._last_fetch_at is not None and min_interval > 0:
            remaining = min_interval - (time.monotonic() - self._last_fetch_at)
            if remaining > 0:
                logger.info("Rate limiting page fetch for %.2fs", remaining)
                await asyncio.sleep(remaining)
        try:
            return await asyncio.to_thread(self._page_client.fetch_page, self._settings.target_url)
        finally:
            self._last_fetch_at = time.monotonic()

    def parse(self, html: str, list_type: str = "tv") -> ExtractionResult:
        soup = BeautifulSoup(html or "", "html.parser")
        return _combine_results([parse_top10_section(soup, section) for section in sections_for_type(list_type)])

    def _dump_debug_html(self, html: str) -> None:
        logger.warning(
            "No data found. Possible causes: changed HTML structure, JavaScript-rendered content, "
            "or anti-bot protection."
        )
        if not self._settings.debug_html_path:
            return
        path = Path(self._settings.debug_html_path)
        try:
            path.write_text(html[:DEBUG_HTML_CHARS], encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not save sample HTML to %s: %s", path, exc)
            return
        logger.warning("Sample HTML saved to %s", path)

    async def scrape_top10(
        self,
        list_type: str = "tv",
        *,
        enrich: bool = True,
        country_code: str | None = None,
        html: str | None = None,
    ) -> dict[str, Any]:
        sections_for_type(list_type)
        country = (country_code or self._settings.default_country_code).upper()
        logger.info("Starting scrape for %s in region %s", list_type, country)

        if html is None:
            html = await self.fetch_page()
        logger.info("HTML length: %d characters", len(html))

        extraction = self.parse(html, list_type)
        entries = extraction.entries
        if enrich and self.tmdb_enabled and entries:
            summary = await self._enricher.enrich_entries(entries, country)
            entries = summary.entries
            extraction = replace(extraction, entries=entries)

        if not entries:
            self._dump_debug_html(html)
        logger.info("Scraped %d items", len(entries))

        return {
            "success": True,
            "data": [entry.to_dict() for entry in entries],
            "scrapedAt": _now_utc_iso(self._clock()),
            "count": len(entries),
            "type": list_type,
            "countryCode": country,
            "enrichedWithTMDB": bool(enrich and self.tmdb_enabled),
            "lowConfidence": extraction.low_confidence,
        }

    async def lookup_id(
        self,
        title: str,
        media_type: str = MEDIA_TYPE_MULTI,
        country_code: str | None = None,
    ) -> int | None:
        country = (country_code or self._settings.default_country_code).upper()
        return await self._enricher.lookup_id(title, media_type, country)

    async def batch_lookup_ids(
        self,
        titles: Sequence[str],
        media_type: str = MEDIA_TYPE_MULTI,
        country_code: str | None = None,
    ) -> list[dict[str, Any]]:
        country = (country_code or self._settings.default_country_code).upper()
        return await self._enricher.batch_lookup_ids(titles, media_type, country)

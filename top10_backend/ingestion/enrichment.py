from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from top10_backend.ingestion.title_matcher import TitleMatcher, WaitFn
from top10_backend.models.top10 import MEDIA_TYPE_MULTI, EnrichmentSummary, MatchResult, RankedEntry

logger = logging.getLogger(__name__)

ENTRY_DELAY_SECONDS = 0.2
BATCH_DELAY_SECONDS = 0.15


class TitleEnricher:
    """
    Attach TMDb matches to extracted entries, one entry at a time.

    Entries are processed sequentially with a pause between them; an entry
    without a match is kept as-is and never fails the batch.
    """

    def __init__(
        self,
        matcher: TitleMatcher,
        *,
        wait: WaitFn = asyncio.sleep,
        entry_delay_seconds: float = ENTRY_DELAY_SECONDS,
        batch_delay_seconds: float = BATCH_DELAY_SECONDS,
    ) -> None:
        self._matcher = matcher
        self._wait = wait
        self._entry_delay_seconds = entry_delay_seconds
        self._batch_delay_seconds = batch_delay_seconds

    @property
    def enabled(self) -> bool:
        return self._matcher.enabled

    async def _match_entry(self, entry: RankedEntry, region: str | None) -> MatchResult | None:
        match = await self._matcher.match(entry.title, entry.category.media_type, region)
        if match is None:
            logger.info("Retrying with multi search for: %s", entry.title)
            match = await self._matcher.match(entry.title, MEDIA_TYPE_MULTI, region)
        return match

    async def enrich_entries(self, entries: Sequence[RankedEntry], region: str | None) -> EnrichmentSummary:
        if not self.enabled:
            logger.warning("TMDb API key not available, returning items without TMDb data")
            return EnrichmentSummary(entries=list(entries), matched=0, total=len(entries), skipped=True)

        logger.info("Enriching %d items with TMDb ids for region %s", len(entries), region)
        enriched: list[RankedEntry] = []
        for index, entry in enumerate(entries):
            if index:
                await self._wait(self._entry_delay_seconds)
            try:
                match = await self._match_entry(entry, region)
            except Exception as exc:  # noqa: BLE001
                logger.error("TMDb match failed for %r: %s", entry.title, exc)
                match = None
            enriched.append(entry.with_match(match))

        matched = sum(1 for entry in enriched if entry.match is not None)
        logger.info("Found TMDb ids for %d/%d items", matched, len(enriched))
        return EnrichmentSummary(entries=enriched, matched=matched, total=len(enriched))

    async def lookup_id(self, title: str, media_type: str = MEDIA_TYPE_MULTI, region: str | None = None) -> int | None:
        match = await self._matcher.match(title, media_type, region)
        return match.external_id if match is not None else None

    async def batch_lookup_ids(
        self,
        titles: Sequence[str],
        media_type: str = MEDIA_TYPE_MULTI,
        region: str | None = None,
    ) -> list[dict[str, Any]]:
        logger.info("Batch searching TMDb ids for %d titles", len(titles))
        results: list[dict[str, Any]] = []
        for index, title in enumerate(titles):
            if index:
                await self._wait(self._batch_delay_seconds)
            logger.info("[%d/%d] Searching: %s", index + 1, len(titles), title)
            results.append({"title": title, "tmdb_id": await self.lookup_id(title, media_type, region)})

        found = sum(1 for row in results if row["tmdb_id"] is not None)
        logger.info("Found %d/%d TMDb ids", found, len(titles))
        return results

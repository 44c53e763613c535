from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from top10_backend.models.top10 import MEDIA_TYPE_MULTI, MatchCandidate, MatchResult, QueryVariant
from top10_backend.utils.text_similarity import string_similarity

logger = logging.getLogger(__name__)

SearchFn = Callable[[str, str, str | None], Sequence[MatchCandidate]]
WaitFn = Callable[[float], Awaitable[None]]

STRATEGY_DELAY_SECONDS = 0.1

_LEADING_ORDINAL_RE = re.compile(r"^\d+\.\s*")
_PARENTHETICAL_RE = re.compile(r"\(.*?\)")
_BRACKETED_RE = re.compile(r"\[.*?\]")
_SEASON_RE = re.compile(r"(?:season|series)\s+\d+", re.IGNORECASE)
_COUNTRY_WORDS = r"ph|philippines|filipino|pinoy|tagalog|tl"
_COUNTRY_PARENTHETICAL_RE = re.compile(r"\([^)]*?\b(?:ph|philippines|filipino|pinoy)\b[^)]*\)", re.IGNORECASE)
_COUNTRY_TOKEN_RE = re.compile(rf"\b(?:{_COUNTRY_WORDS})\b", re.IGNORECASE)
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_YEAR_RE = re.compile(r"^\s*(\d{4})")


@dataclass(frozen=True)
class ScoringWeights:
    """
    Hand-tuned scoring constants.

    `similar_title` must stay below `contained_title` so a containment match
    always outranks a merely similar title.
    """

    exact_title: float = 100.0
    contained_title: float = 80.0
    similar_title: float = 60.0

    primary_region: str = "PH"
    very_recent_years: int = 2
    very_recent_bonus: float = 30.0
    recent_years: int = 5
    recent_bonus: float = 20.0
    modern_since_year: int = 2010
    modern_bonus: float = 10.0
    established_since_year: int = 2000
    established_bonus: float = 20.0

    origin_country_bonus: float = 25.0
    popularity_factor: float = 0.1
    popularity_cap: float = 10.0
    rating_factor: float = 2.0
    rating_cap: float = 20.0

    stale_before_year: int = 1990
    stale_rating_threshold: float = 7.0
    stale_penalty: float = 20.0
    missing_date_year: int = 1900


DEFAULT_WEIGHTS = ScoringWeights()


def _collapse(value: str) -> str:
    return " ".join(value.split())


def normalize_search_title(title: str) -> str:
    text = _LEADING_ORDINAL_RE.sub("", (title or "").strip())
    text = _PARENTHETICAL_RE.sub(" ", text)
    text = _BRACKETED_RE.sub(" ", text)
    text = _SEASON_RE.sub(" ", text)
    return _collapse(text)


def remove_country_indicators(title: str) -> str:
    text = _COUNTRY_PARENTHETICAL_RE.sub(" ", title or "")
    text = _COUNTRY_TOKEN_RE.sub(" ", text)
    return _collapse(text)


def build_search_strategies(title: str, region: str | None) -> tuple[QueryVariant, ...]:
    normalized = normalize_search_title(title)
    return (
        QueryVariant(query=normalized, region=region or None),
        QueryVariant(query=normalized),
        QueryVariant(query=remove_country_indicators(normalized)),
        QueryVariant(query=" ".join(normalized.split()[:3])),
    )


def clean_for_comparison(value: str) -> str:
    return _PUNCTUATION_RE.sub("", (value or "").lower())


def release_year(value: str | None, *, default: int) -> int:
    if not value:
        return default
    match = _YEAR_RE.match(value)
    if not match:
        return default
    return int(match.group(1))


def score_candidate(
    candidate: MatchCandidate,
    original_title: str,
    region: str | None,
    *,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    current_year: int,
) -> float:
    score = 0.0

    wanted = clean_for_comparison(original_title)
    found = clean_for_comparison(candidate.display_title)
    if found == wanted:
        score += weights.exact_title
    elif wanted in found or found in wanted:
        score += weights.contained_title
    else:
        score += string_similarity(wanted, found) * weights.similar_title

    year = release_year(candidate.release_date, default=weights.missing_date_year)
    if region and region == weights.primary_region:
        if year >= current_year - weights.very_recent_years:
            score += weights.very_recent_bonus
        elif year >= current_year - weights.recent_years:
            score += weights.recent_bonus
        elif year >= weights.modern_since_year:
            score += weights.modern_bonus
    elif weights.established_since_year <= year <= current_year - 1:
        score += weights.established_bonus

    if region and region in candidate.origin_countries:
        score += weights.origin_country_bonus

    score += min(candidate.popularity * weights.popularity_factor, weights.popularity_cap)
    score += min(candidate.vote_average * weights.rating_factor, weights.rating_cap)

    if year < weights.stale_before_year and candidate.vote_average < weights.stale_rating_threshold:
        score -= weights.stale_penalty

    return score


def rank_candidates(
    candidates: Sequence[MatchCandidate],
    original_title: str,
    region: str | None,
    media_type: str = MEDIA_TYPE_MULTI,
    *,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    current_year: int | None = None,
) -> list[tuple[MatchCandidate, float]]:
    """
    Score candidates best-first. Equal scores keep the API's original order.
    """

    if not candidates:
        return []
    year_now = current_year or datetime.now(timezone.utc).year

    pool = list(candidates)
    if media_type != MEDIA_TYPE_MULTI:
        filtered = [c for c in pool if (c.media_type or media_type) == media_type]
        if filtered:
            pool = filtered

    scored = [
        (c, score_candidate(c, original_title, region, weights=weights, current_year=year_now)) for c in pool
    ]
    return sorted(scored, key=lambda item: item[1], reverse=True)


class TitleMatcher:
    """
    Resolve a free-text title to a single TMDb candidate.

    Strategies are tried in order and the first one that returns any results
    wins; a failing search call counts as an empty result.
    """

    def __init__(
        self,
        search: SearchFn | None,
        *,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        wait: WaitFn = asyncio.sleep,
        strategy_delay_seconds: float = STRATEGY_DELAY_SECONDS,
        current_year: int | None = None,
    ) -> None:
        self._search = search
        self._weights = weights
        self._wait = wait
        self._strategy_delay_seconds = strategy_delay_seconds
        self._current_year = current_year

    @property
    def enabled(self) -> bool:
        return self._search is not None

    @staticmethod
    async def _run_search(search: SearchFn, variant: QueryVariant, media_type: str) -> Sequence[MatchCandidate]:
        return await asyncio.to_thread(search, variant.query, media_type, variant.region)

    async def match(
        self,
        title: str,
        media_type: str = MEDIA_TYPE_MULTI,
        region: str | None = None,
    ) -> MatchResult | None:
        search = self._search
        if search is None:
            logger.warning("TMDb search is not configured, skipping match for %r", title)
            return None

        for index, variant in enumerate(build_search_strategies(title, region), start=1):
            if not variant.query:
                continue
            logger.info(
                "Search strategy %d: %r%s",
                index,
                variant.query,
                f" ({variant.region})" if variant.region else "",
            )
            try:
                results = await self._run_search(search, variant, media_type)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Search strategy %d failed for %r: %s", index, title, exc)
                results = []

            if results:
                ranked = rank_candidates(
                    results,
                    title,
                    region,
                    media_type,
                    weights=self._weights,
                    current_year=self._current_year,
                )
                for position, (candidate, score) in enumerate(ranked[:3], start=1):
                    logger.debug(
                        "  %d. %r (%s) score=%.1f", position, candidate.display_title, candidate.release_date, score
                    )
                best, _score = ranked[0]
                logger.info("Found TMDb id %s for %r (%s)", best.external_id, best.display_title, best.release_date)
                return MatchResult(
                    external_id=best.external_id,
                    matched_title=best.display_title,
                    matched_date=best.release_date,
                    matched_media_type=best.media_type or media_type,
                    strategy_index=index,
                )

            await self._wait(self._strategy_delay_seconds)

        logger.info("No TMDb match found for %r", title)
        return None

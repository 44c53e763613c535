from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

DEFAULT_REGION_NAME = "Philippines"
DEFAULT_SOURCE_NAME = "Netflix"

MEDIA_TYPE_MOVIE = "movie"
MEDIA_TYPE_TV = "tv"
MEDIA_TYPE_MULTI = "multi"
MEDIA_TYPES = (MEDIA_TYPE_MOVIE, MEDIA_TYPE_TV, MEDIA_TYPE_MULTI)


class Category(str, Enum):
    MOVIE = "Movie"
    SERIES = "TV Show"

    @property
    def media_type(self) -> str:
        return MEDIA_TYPE_MOVIE if self is Category.MOVIE else MEDIA_TYPE_TV


class Section(str, Enum):
    """
    Top 10 sections of a ranking page, keyed by the label used in its headings
    (e.g. "TOP 10 TV Shows").
    """

    TV_SHOWS = "TV Shows"
    MOVIES = "Movies"

    @property
    def category(self) -> Category:
        return Category.SERIES if self is Section.TV_SHOWS else Category.MOVIE


@dataclass(frozen=True)
class MatchResult:
    external_id: int
    matched_title: str
    matched_date: str | None
    matched_media_type: str
    strategy_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "tmdb_id": self.external_id,
            "tmdb_title": self.matched_title,
            "tmdb_release_date": self.matched_date,
            "tmdb_media_type": self.matched_media_type,
            "search_strategy_used": self.strategy_index,
        }


@dataclass(frozen=True)
class RankedEntry:
    """
    One row of a Top 10 list.

    Entries are immutable; enrichment returns a copy with `match` attached.
    """

    rank: int
    title: str
    category: Category
    poster_url: str = ""
    region: str = DEFAULT_REGION_NAME
    source: str = DEFAULT_SOURCE_NAME
    match: MatchResult | None = None

    def with_match(self, match: MatchResult | None) -> "RankedEntry":
        return replace(self, match=match)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "rank": self.rank,
            "title": self.title,
            "category": self.category.value,
            "poster": self.poster_url,
            "country": self.region,
            "platform": self.source,
        }
        if self.match is not None:
            payload.update(self.match.to_dict())
        return payload


@dataclass(frozen=True)
class MatchCandidate:
    external_id: int
    display_title: str
    release_date: str | None = None
    media_type: str | None = None
    origin_countries: frozenset[str] = field(default_factory=frozenset)
    popularity: float = 0.0
    vote_average: float = 0.0


@dataclass(frozen=True)
class QueryVariant:
    query: str
    region: str | None = None


@dataclass(frozen=True)
class ExtractionResult:
    entries: list[RankedEntry]
    stages_used: tuple[str, ...] = ()
    gap_filled: int = 0
    low_confidence: bool = False


@dataclass(frozen=True)
class EnrichmentSummary:
    entries: list[RankedEntry]
    matched: int
    total: int
    skipped: bool = False

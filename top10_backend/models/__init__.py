"""
Domain models shared across scripts and services.
"""

from top10_backend.models.top10 import (
    Category,
    EnrichmentSummary,
    ExtractionResult,
    MatchCandidate,
    MatchResult,
    QueryVariant,
    RankedEntry,
    Section,
)

__all__ = [
    "Category",
    "EnrichmentSummary",
    "ExtractionResult",
    "MatchCandidate",
    "MatchResult",
    "QueryVariant",
    "RankedEntry",
    "Section",
]

"""
Extraction and enrichment of ranked Top 10 lists.
"""

from top10_backend.ingestion.enrichment import TitleEnricher
from top10_backend.ingestion.title_matcher import ScoringWeights, TitleMatcher
from top10_backend.ingestion.top10_extractor import (
    extract_top10,
    parse_netflix_top10,
    parse_top10_section,
)

__all__ = [
    "ScoringWeights",
    "TitleEnricher",
    "TitleMatcher",
    "extract_top10",
    "parse_netflix_top10",
    "parse_top10_section",
]

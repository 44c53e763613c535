"""
Ranking page (FlixPatrol-style Top 10) clients.
"""

from top10_backend.integrations.flixpatrol.page_client import (
    HttpTop10PageClient,
    PageFetchError,
    fetch_top10_page,
)

__all__ = [
    "HttpTop10PageClient",
    "PageFetchError",
    "fetch_top10_page",
]

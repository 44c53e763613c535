from __future__ import annotations

import logging
import os
import random
import time
from typing import Any, Mapping

import requests

from top10_backend.models.top10 import MEDIA_TYPES, MatchCandidate

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
SEARCH_TIMEOUT_SECONDS = 5.0
SEARCH_MAX_ATTEMPTS = 3

_SEARCH_HEADERS = {
    "accept": "application/json",
    "user-agent": "Mozilla/5.0",
}

logger = logging.getLogger(__name__)


class TmdbClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


def _require_api_key(api_key: str | None) -> str:
    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    if not resolved:
        raise RuntimeError("TMDB_API_KEY is not set.")
    return resolved


def resolve_api_key(api_key: str | None = None) -> str | None:
    """
    Best-effort API key resolution for callers that want to continue when the key is missing.
    """

    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    return resolved or None


def _backoff_delay(attempt: int, retry_after: str | None = None) -> float:
    delay = 1.0 * (2**attempt)
    retry_after = (retry_after or "").strip()
    if retry_after.isdigit():
        delay = max(delay, float(retry_after))
    return delay + random.uniform(0.0, delay * 0.25)


def _is_retryable(status_code: int) -> bool:
    return status_code == 429 or 500 <= status_code < 600


def _get_search_response(
    session: requests.Session,
    url: str,
    params: Mapping[str, Any],
    *,
    timeout_seconds: float = SEARCH_TIMEOUT_SECONDS,
    max_attempts: int = SEARCH_MAX_ATTEMPTS,
) -> requests.Response:
    """
    GET a search endpoint, retrying transport failures, 429 and 5xx.

    Anything else that is not a 200 fails immediately.
    """

    for attempt in range(1, max_attempts + 1):
        final_attempt = attempt == max_attempts
        try:
            resp = session.get(url, params=params, headers=_SEARCH_HEADERS, timeout=timeout_seconds)
        except requests.RequestException as exc:
            if final_attempt:
                raise TmdbClientError(f"TMDb search failed after {attempt} attempt(s): {exc}") from exc
            logger.warning("TMDb search attempt %d failed (%s), retrying", attempt, exc)
            time.sleep(_backoff_delay(attempt - 1))
            continue

        if resp.status_code == 200:
            return resp
        if final_attempt or not _is_retryable(resp.status_code):
            raise TmdbClientError(
                f"TMDb search failed with HTTP {resp.status_code}.",
                status_code=resp.status_code,
                body_snippet=(resp.text or "")[:400],
            )
        logger.warning("TMDb search answered HTTP %d, retrying", resp.status_code)
        time.sleep(_backoff_delay(attempt - 1, resp.headers.get("Retry-After")))

    raise TmdbClientError("TMDb search was not attempted.")


def _search_payload(resp: requests.Response) -> dict[str, Any]:
    try:
        payload = resp.json()
    except ValueError as exc:
        raise TmdbClientError(
            "TMDb search returned non-JSON response.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        ) from exc
    if not isinstance(payload, dict):
        raise TmdbClientError("TMDb search returned unexpected JSON shape (not an object).")
    return payload


def _coerce_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


def parse_search_result(result: Mapping[str, Any], *, media_type: str | None = None) -> MatchCandidate | None:
    """
    Convert one `/search/*` result into a `MatchCandidate`.

    Movies carry `title`/`release_date`, TV results `name`/`first_air_date`.
    People (multi search) and malformed rows return None.
    """

    result_type = result.get("media_type")
    if result_type == "person":
        return None

    tmdb_id = result.get("id")
    if not isinstance(tmdb_id, int) or isinstance(tmdb_id, bool):
        return None

    title = result.get("title") or result.get("name") or ""
    release_date = result.get("release_date") or result.get("first_air_date") or None

    origin = result.get("origin_country")
    origin_countries = frozenset(c for c in origin if isinstance(c, str)) if isinstance(origin, list) else frozenset()

    resolved_type = result_type if isinstance(result_type, str) and result_type else None
    if resolved_type is None and media_type in ("movie", "tv"):
        resolved_type = media_type

    return MatchCandidate(
        external_id=tmdb_id,
        display_title=str(title),
        release_date=release_date if isinstance(release_date, str) else None,
        media_type=resolved_type,
        origin_countries=origin_countries,
        popularity=max(0.0, _coerce_float(result.get("popularity"))),
        vote_average=min(10.0, max(0.0, _coerce_float(result.get("vote_average")))),
    )


def search_titles(
    query: str,
    media_type: str = "multi",
    region: str | None = None,
    *,
    api_key: str | None = None,
    session: requests.Session | None = None,
    language: str = "en-US",
) -> list[MatchCandidate]:
    """
    Run `/search/{movie|tv|multi}` and return candidates in API order.

    An empty list means TMDb had no results for the query.
    """

    if media_type not in MEDIA_TYPES:
        raise ValueError(f"Unsupported TMDb media type: {media_type!r}")

    api_key = _require_api_key(api_key)
    session = session or requests.Session()
    url = f"{TMDB_API_BASE_URL}/search/{media_type}"
    params: dict[str, Any] = {
        "api_key": api_key,
        "query": query,
        "language": language,
        "page": 1,
        "include_adult": "false",
    }
    if region:
        params["region"] = region

    payload = _search_payload(_get_search_response(session, url, params))
    results = payload.get("results")
    if not isinstance(results, list):
        return []

    candidates: list[MatchCandidate] = []
    for result in results:
        if not isinstance(result, Mapping):
            continue
        candidate = parse_search_result(result, media_type=media_type)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


class TmdbSearchClient:
    """
    Callable search collaborator bound to an API key and a shared session.
    """

    def __init__(
        self,
        api_key: str,
        *,
        session: requests.Session | None = None,
        language: str = "en-US",
    ) -> None:
        self._api_key = api_key
        self._session = session or requests.Session()
        self._language = language

    def __call__(self, query: str, media_type: str, region: str | None = None) -> list[MatchCandidate]:
        return search_titles(
            query,
            media_type,
            region,
            api_key=self._api_key,
            session=self._session,
            language=self._language,
        )

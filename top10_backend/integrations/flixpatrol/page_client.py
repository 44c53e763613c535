from __future__ import annotations

import re
from collections.abc import Mapping

import requests

_DEFAULT_HEADERS = {
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "accept-language": "en-US,en;q=0.5",
    "accept-encoding": "gzip, deflate",
    "connection": "keep-alive",
}


class PageFetchError(RuntimeError):
    """
    Raised when the ranking page cannot be fetched.

    `status_code` is None when no HTTP response was received at all.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body_snippet: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


def _parse_charset(content_type: str | None) -> str | None:
    if not content_type:
        return None
    match = re.search(r"charset=([^\s;]+)", content_type, re.IGNORECASE)
    if not match:
        return None
    return match.group(1).strip("\"'")


def _decode_bytes(data: bytes, content_type: str | None) -> str:
    charset = _parse_charset(content_type) or "utf-8"
    try:
        return data.decode(charset)
    except (LookupError, UnicodeDecodeError):
        return data.decode("utf-8", errors="replace")


class HttpTop10PageClient:
    def __init__(
        self,
        *,
        user_agent: str | None = None,
        session: requests.Session | None = None,
        extra_headers: Mapping[str, str] | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._session = session or requests.Session()
        self._headers = {**_DEFAULT_HEADERS, **(extra_headers or {})}
        if user_agent:
            self._headers["user-agent"] = user_agent
        self._timeout_seconds = timeout_seconds

    def fetch_page(self, url: str) -> str:
        url = str(url or "").strip()
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"Invalid page url: {url!r}")

        try:
            resp = self._session.get(url, headers=self._headers, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise PageFetchError(f"Failed to fetch page: {exc}") from exc

        if resp.status_code != 200:
            raise PageFetchError(
                f"Failed to fetch page: HTTP {resp.status_code}.",
                status_code=resp.status_code,
                body_snippet=(resp.text or "")[:200],
            )

        content = getattr(resp, "content", None)
        if isinstance(content, bytes):
            return _decode_bytes(content, resp.headers.get("content-type"))
        return resp.text or ""


def fetch_top10_page(
    url: str,
    *,
    user_agent: str | None = None,
    session: requests.Session | None = None,
    timeout_seconds: float = 10.0,
) -> str:
    client = HttpTop10PageClient(user_agent=user_agent, session=session, timeout_seconds=timeout_seconds)
    return client.fetch_page(url)

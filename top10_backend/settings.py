"""
Runtime configuration resolved from environment variables (and an optional `.env`).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_TARGET_URL = "https://flixpatrol.com/top10/netflix/philippines/"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def load_env(*, override: bool = False) -> Path | None:
    """Load the first `.env` found at the repo root or the working directory."""
    repo_root = Path(__file__).resolve().parents[1]
    for path in (repo_root / ".env", Path.cwd() / ".env"):
        if path.is_file():
            load_dotenv(dotenv_path=path, override=override)
            return path
    return None


def _env_str(name: str, default: str | None = None) -> str | None:
    value = (os.getenv(name) or "").strip()
    return value or default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    target_url: str = DEFAULT_TARGET_URL
    user_agent: str = DEFAULT_USER_AGENT
    rate_limit_delay_ms: int = 1000
    tmdb_api_key: str | None = None
    default_country_code: str = "PH"
    cache_ttl_seconds: int = 3600
    cors_allow_origins: tuple[str, ...] = ()
    app_env: str = "development"
    debug_html_path: str | None = None

    @property
    def is_production(self) -> bool:
        return self.app_env.casefold() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = _env_str("CORS_ALLOW_ORIGINS", "") or ""
        return cls(
            target_url=_env_str("TARGET_URL", DEFAULT_TARGET_URL) or DEFAULT_TARGET_URL,
            user_agent=_env_str("USER_AGENT", DEFAULT_USER_AGENT) or DEFAULT_USER_AGENT,
            rate_limit_delay_ms=_env_int("RATE_LIMIT_DELAY", 1000),
            tmdb_api_key=_env_str("TMDB_API_KEY"),
            default_country_code=(_env_str("DEFAULT_COUNTRY_CODE", "PH") or "PH").upper(),
            cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", 3600),
            cors_allow_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            app_env=_env_str("APP_ENV", "development") or "development",
            debug_html_path=_env_str("DEBUG_HTML_PATH"),
        )


@lru_cache
def get_settings() -> Settings:
    load_env()
    return Settings.from_env()

#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from top10_backend.ingestion.top10_service import Top10Service
from top10_backend.settings import get_settings


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="lookup_tmdb_ids",
        description="Resolve free-text titles to TMDb ids using the fuzzy search cascade.",
    )
    parser.add_argument("--title", action="append", default=[], help="Title to resolve. Repeatable.")
    parser.add_argument("--media-type", choices=("movie", "tv", "multi"), default="multi")
    parser.add_argument("--country", default=None, help="Region code used for TMDb matching (default: PH).")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    titles = [t.strip() for t in args.title if t and t.strip()]
    if not titles:
        print("ERROR: at least one --title is required", file=sys.stderr)
        return 2

    service = Top10Service.from_settings(get_settings())
    if not service.tmdb_enabled:
        print("ERROR: TMDB_API_KEY must be set to resolve TMDb ids.", file=sys.stderr)
        return 2

    rows = asyncio.run(service.batch_lookup_ids(titles, args.media_type, args.country))
    found = 0
    for row in rows:
        if row["tmdb_id"] is None:
            print(f"UNRESOLVED title={row['title']!r}")
            continue
        found += 1
        print(f"RESOLVED title={row['title']!r} -> tmdb_id={row['tmdb_id']}")

    print(f"lookup_tmdb_ids: total={len(rows)} resolved={found} unresolved={len(rows) - found}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

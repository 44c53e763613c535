#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from top10_backend.ingestion.top10_service import Top10Service
from top10_backend.integrations.flixpatrol.page_client import PageFetchError
from top10_backend.settings import get_settings


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="scrape_top10",
        description="Scrape the Netflix Top 10 lists and optionally resolve TMDb ids.",
    )
    parser.add_argument("--type", dest="list_type", choices=("tv", "movies", "both"), default="tv")
    parser.add_argument("--no-enrich", action="store_true", help="Skip TMDb id resolution.")
    parser.add_argument("--country", default=None, help="Region code used for TMDb matching (default: PH).")
    parser.add_argument("--html-file", default=None, help="Parse a saved page instead of fetching TARGET_URL.")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    service = Top10Service.from_settings(get_settings())
    html = Path(args.html_file).read_text(encoding="utf-8") if args.html_file else None

    try:
        payload = asyncio.run(
            service.scrape_top10(
                args.list_type,
                enrich=not args.no_enrich,
                country_code=args.country,
                html=html,
            )
        )
    except PageFetchError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(payload, indent=2, ensure_ascii=False))
    if payload["lowConfidence"]:
        print(f"WARN: low confidence extraction count={payload['count']}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

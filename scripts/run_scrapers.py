"""
Run cost data scrapers from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging

from costwatch.db.session import session_scope
from costwatch.scraping.cancellation import CancelToken
from costwatch.scraping.logging_utils import error_fields
from costwatch.services import build_scraper_service


def main() -> int:
    parser = argparse.ArgumentParser(description="Run cost data scraping ingestion.")
    parser.add_argument(
        "--scraper",
        dest="scrapers",
        action="append",
        default=None,
        help="Scraper name from the sources file. Repeat to run several; default is all.",
    )
    parser.add_argument(
        "--timeout",
        dest="timeout",
        type=float,
        default=None,
        help="Optional overall deadline in seconds.",
    )
    parser.add_argument("--log-level", dest="log_level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(message)s")

    token = CancelToken(timeout_seconds=args.timeout)
    with session_scope() as db:
        service = build_scraper_service(db=db, names=args.scrapers)
        batch = service.run_all_scrapers(cancel_token=token)

    payload = [
        {
            "scraper": result.scraper_name,
            "fetched": result.fetched,
            "valid": result.validation.valid,
            "invalid": result.validation.invalid,
            "low_quality": result.validation.low_quality,
            "validation_skipped": result.validation.skipped,
            "saved": result.saved,
            "save_failures": result.save_failures,
            "duration_seconds": round(result.duration_seconds, 3),
            "status": "success" if result.ok else "error",
            "error": error_fields(result.error) if result.error is not None else None,
        }
        for result in batch.results
    ]
    print(json.dumps(payload, indent=2))
    return 0 if batch.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())

# connects input (url argument) to the service and prints the result as JSON.
# this is the error boundary: fatal errors go to stderr and exit with status 1

from __future__ import annotations
import argparse
import json
import logging
import sys
from typing import List, Optional
from .client import DEFAULT_URL, UserStatsError
from .models import AnalysisResult
from .service import run

logger = logging.getLogger("userstats")


def render(result: AnalysisResult) -> str:
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="userstats",
        description="Fetch NDJSON user records and print per-city and global statistics.",
    )
    p.add_argument(
        "url", nargs="?", default=None,
        help=f"source URL (default: $USERSTATS_URL or {DEFAULT_URL})",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="log progress to stderr")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        output = render(run(args.url))
        print(output)
    except UserStatsError as exc:
        print(exc, file=sys.stderr)
        return 1
    except Exception as exc:
        # nothing is printed to stdout unless the whole pipeline succeeded
        logger.debug("Unhandled error", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())

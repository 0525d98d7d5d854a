"""Command line entrypoint: print extracted tags as JSON."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from .extractor import MAX_FIELD_LENGTH, extract
from .logging_setup import configure_logging
from .scrape import fetch_tags

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metatags-extract",
        description="Extract title, description, Open Graph and Twitter Card tags from HTML.",
    )
    parser.add_argument("sources", nargs="+", help="URL, file path, or - for stdin")
    parser.add_argument(
        "--max-field-length",
        type=int,
        default=None,
        help="byte cap per field (0 disables the cap)",
    )
    parser.add_argument("--compact", action="store_true", help="print one JSON object per line")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level, log_to_file=False)

    if args.max_field_length is None:
        cap = MAX_FIELD_LENGTH
    else:
        cap = args.max_field_length or None
    indent = None if args.compact else 2

    status = 0
    for source in args.sources:
        if source == "-":
            tags = extract(sys.stdin.buffer, max_field_length=cap)
        elif _is_url(source):
            tags = fetch_tags(source, max_field_length=cap)
            if tags is None:
                status = 1
                continue
        else:
            try:
                with open(source, "rb") as handle:
                    tags = extract(handle, max_field_length=cap)
            except OSError as exc:
                logger.error("Cannot read %s: %s", source, exc)
                status = 1
                continue
        if tags.is_empty():
            logger.warning("No metadata found in %s", source)
        print(tags.to_json(indent=indent))
    return status


if __name__ == "__main__":  # pragma: no cover - manual script usage
    sys.exit(main())

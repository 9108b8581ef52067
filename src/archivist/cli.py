"""Command-line entry point for the article archiver."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Sequence

from .core.controller import ArchiveController, RunConfig
from .core.errors import ArchiveError
from .core.logger import initialize_logging
from .core.site import DEFAULT_SITE, SITES

logger = logging.getLogger("archivist.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first in ("-h", "--help"):
        return argv
    return ("crawl", *argv)


def _add_crawl_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-u", "--url", required=True, help="Root URL to start crawling from")
    parser.add_argument("-p", "--path", required=True, help="Directory where articles are archived")
    parser.add_argument("--proxy", default=None, help="Proxy URI used for image downloads")
    parser.add_argument(
        "--site",
        default=DEFAULT_SITE,
        choices=sorted(SITES),
        help="Site layout to use for article ids and extraction",
    )
    parser.add_argument("--concurrency", type=int, default=4, help="Number of pages fetched in parallel")
    parser.add_argument(
        "--crawl-delay",
        type=float,
        default=1.0,
        help="Minimum seconds between page requests to the same host",
    )
    parser.add_argument(
        "--image-delay",
        type=float,
        default=1.0,
        help="Seconds to wait before each image request",
    )
    parser.add_argument("--max-pages", type=int, default=0, help="Stop after this many pages (0 = no limit)")
    parser.add_argument("--max-depth", type=int, default=100, help="Do not follow links deeper than this")
    parser.add_argument("--log-dir", default="logs", help="Directory for log files and error reports")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="archivist",
        description="Crawl a site and archive its articles (text, metadata and images) to disk.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    crawl_parser = subparsers.add_parser("crawl", help="Crawl a site and archive new articles")
    _add_crawl_arguments(crawl_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _run_crawl(args: argparse.Namespace) -> None:
    initialize_logging(args.log_dir, logging.DEBUG if args.verbose else logging.INFO)

    config = RunConfig(
        root_url=args.url,
        output_dir=args.path,
        proxy=args.proxy,
        site=args.site,
        concurrency=args.concurrency,
        crawl_delay=args.crawl_delay,
        image_delay=args.image_delay,
        max_pages=args.max_pages,
        max_depth=args.max_depth,
        log_dir=args.log_dir,
    )
    summary = ArchiveController(config).run()
    if summary.error_report:
        logger.warning(f"Some pages failed, see {summary.error_report}")
    if summary.error_types:
        logger.warning("Page errors by type: " + ", ".join(f"{name}={count}" for name, count in sorted(summary.error_types.items())))
    print(f"Crawling for {summary.root_url} completed, time elapsed: {summary.elapsed}")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        if args.command == "crawl":
            _run_crawl(args)
    except (ArchiveError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

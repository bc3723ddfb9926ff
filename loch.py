#!/usr/bin/env python3
"""loch: link-out check. Finds URLs in files and reports the broken ones."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from rich.markup import escape

from config import Config
from constants import DEFAULT_INPUT, VERSION
from errors import LochError
from report import build_console, print_report, to_csv_bytes
from scanner import check_paths

__all__ = ["split_input", "parse_args", "to_config", "main"]


def split_input(values: Optional[Iterable[str]]) -> List[str]:
    """Split option values on spaces and commas, dropping empty parts."""
    parts: List[str] = []
    for value in values or []:
        parts.extend(p for p in value.replace(",", " ").split(" ") if p)
    return parts


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"'{value}': must be at least 1")
    return number


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="loch",
        description="Link-out check: find URLs in files and report the ones that do not resolve.",
    )
    p.add_argument("input", nargs="*", default=[DEFAULT_INPUT],
                   help="The input files and/or directories to be checked (default: current directory).")
    p.add_argument("-e", "--exclude-paths", nargs="+", action="extend", default=[], metavar="PATHS",
                   help="File or directory paths not to check. Example: --exclude-paths README.md '*.rs'")
    p.add_argument("-E", "--exclude-urls", nargs="+", action="extend", default=[], metavar="URLS",
                   help="URL patterns not to check. The '*' wildcard matches one domain label. "
                        "Example: --exclude-urls sub.example.com '*.org' example.com/page")
    p.add_argument("-L", "--follow", action="store_true", help="Follow symbolic links.")
    p.add_argument("--no-check", action="store_true",
                   help="Disable URL checking. URLs will still be listed with --verbose.")
    p.add_argument("--no-color", action="store_true",
                   help="Disable color output. Equivalent to setting the NO_COLOR environment variable.")
    p.add_argument("--no-http", action="store_true",
                   help="URLs do not need to start with 'http://' or 'https://'. "
                        "This may result in more false positives.")
    p.add_argument("--no-ignore", action="store_true",
                   help="Process hidden files and files listed in .gitignore and .ignore.")
    p.add_argument("-t", "--timeout", type=positive_int, default=None, metavar="SECS",
                   help="Timeout for requests, in seconds. Not set by default.")
    p.add_argument("-j", "--jobs", type=positive_int, default=1, metavar="N",
                   help="Number of URLs checked in parallel (default: 1).")
    p.add_argument("-o", "--output", help="Write every URL and its result to this CSV file.")
    p.add_argument("-v", "--verbose", action="store_true", help="Wordy, prolix, long-winded.")
    p.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return p.parse_args(argv)


def to_config(args: argparse.Namespace) -> Config:
    """Build the run configuration from parsed arguments."""
    return Config(
        exclude_paths=tuple(args.exclude_paths),
        exclude_urls=tuple(split_input(args.exclude_urls)),
        follow=args.follow,
        no_check=args.no_check,
        no_color=args.no_color,
        no_http=args.no_http,
        no_ignore=args.no_ignore,
        verbose=args.verbose,
        timeout=args.timeout,
        workers=args.jobs,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = to_config(args)
        info = check_paths(args.input, config)
    except LochError as exc:
        build_console(args.no_color, stderr=True).print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        return 1

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(to_csv_bytes(info["file_urls"]))
        logging.getLogger(__name__).info("CSV written to %s", output)

    bad_count = print_report(info, config)
    return 1 if bad_count > 0 else 0


if __name__ == "__main__":
    sys.exit(main())

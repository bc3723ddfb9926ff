"""Extraction of URL-shaped substrings from lines of text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Pattern

from constants import EDGE_PUNCTUATION, FORBIDDEN_CHARS

__all__ = ["Strategy", "UrlPatterns", "build_patterns", "get_urls"]


class Strategy(Enum):
    """How URLs are recognised in text."""

    HTTP = "http"        # must start with http: or https:
    NO_HTTP = "no_http"  # any dotted name followed by a path


@dataclass(frozen=True)
class UrlPatterns:
    """
    Compiled regular expressions shared by the extractor and the splitter.

    Built once per process by `build_patterns` and passed explicitly to the
    functions that need them.

    Attributes:
        http: Matches URLs starting with an http(s) scheme
        no_http: Matches scheme-less dotted names with an optional path
        run: Matches a maximal run of characters allowed inside a URL
        split: Splits a URL or pattern into prefix, domain and path regions
    """

    http: Pattern[str]
    no_http: Pattern[str]
    run: Pattern[str]
    split: Pattern[str]


def build_patterns() -> UrlPatterns:
    """Compile the URL regular expressions."""
    valid = r"[^\s" + re.escape(FORBIDDEN_CHARS) + r"]"
    boundary = r"[^\s" + re.escape(FORBIDDEN_CHARS + EDGE_PUNCTUATION) + r"]"

    http = re.compile(r"https?:(?://?)?" + valid + r"*" + boundary)
    # Dots and slashes are valid characters, so "domain labels then path
    # segments" reduces to "at least one inner dot". It is only ever
    # full-matched against a single run, see `_no_http_urls`.
    no_http = re.compile(boundary + valid + r"*\." + valid + r"+" + boundary)
    run = re.compile(valid + r"+")
    split = re.compile(
        r"^(?P<prefix>[A-Za-z][A-Za-z0-9+\-]*:(?!\d+(?:/|$))/{0,2})?"
        r"(?P<domain>[^/]*)"
        r"(?P<path>/.*)?$",
        re.DOTALL,
    )
    return UrlPatterns(http=http, no_http=no_http, run=run, split=split)


def _has_host(url: str) -> bool:
    """Return True if something other than slashes follows the scheme."""
    return bool(url.split(":", 1)[1].strip("/"))


def get_urls(line: str, strategy: Strategy, patterns: UrlPatterns) -> List[str]:
    """
    Find the URLs in a single line of text.

    Matches are non-overlapping and returned left to right. Trailing periods
    and colons are never part of a match.

    Args:
        line: Text to search
        strategy: Strategy.HTTP for scheme-prefixed URLs only, Strategy.NO_HTTP
            to also accept bare domains followed by a path
        patterns: Compiled expressions from `build_patterns`

    Returns:
        The URL substrings, possibly empty
    """
    if strategy is Strategy.HTTP:
        return [m.group() for m in patterns.http.finditer(line) if _has_host(m.group())]

    return _no_http_urls(line, patterns)


def _no_http_urls(line: str, patterns: UrlPatterns) -> List[str]:
    # A scheme-less match starts at the first boundary character of a run of
    # valid characters and, being greedy, ends at the last one. Anything left
    # of the run is edge punctuation, so each run yields at most one URL and
    # the line is scanned in linear time.
    urls = []
    for run in patterns.run.finditer(line):
        candidate = run.group().strip(EDGE_PUNCTUATION)
        # A bare domain without a path is too weak a signal (e.g. file.txt).
        if "/" in candidate and patterns.no_http.fullmatch(candidate):
            urls.append(candidate)
    return urls

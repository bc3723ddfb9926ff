"""Splitting URLs into parts and matching them against exclusion patterns."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from errors import InvalidPatternError
from models import ExclusionPattern, ParsedUrl
from parse import UrlPatterns

__all__ = [
    "split_pattern",
    "compile_exclusions",
    "url_matches_pattern",
    "url_matches_url_pattern",
    "is_url_excluded",
]

WILDCARD_LABEL = "*"


def split_pattern(value: str, patterns: UrlPatterns) -> Optional[ParsedUrl]:
    """
    Split a URL or exclusion pattern into its scheme prefix, domains and path.

    ``http://sub.example.com//page/`` becomes prefix ``http://``, domains
    ``["sub", "example", "com"]`` and path ``["page"]``. Empty domain labels and
    empty path segments are dropped.

    Args:
        value: URL or pattern to split
        patterns: Compiled expressions from `parse.build_patterns`

    Returns:
        The parts, or None if the string has no domain
    """
    match = patterns.split.match(value)
    if match is None:
        return None

    domains = [label for label in match.group("domain").split(".") if label]
    if not domains:
        return None

    path = [segment for segment in (match.group("path") or "").split("/") if segment]
    return {"prefix": match.group("prefix"), "domains": domains, "path": path}


def compile_exclusions(raw_patterns: Iterable[str], patterns: UrlPatterns) -> List[ExclusionPattern]:
    """Validate exclusion patterns, raising InvalidPatternError on the first bad one."""
    exclusions: List[ExclusionPattern] = []
    for raw in raw_patterns:
        parsed = split_pattern(raw, patterns)
        if parsed is None:
            raise InvalidPatternError(raw)
        exclusions.append({
            "raw": raw,
            "prefix": parsed["prefix"],
            "domains": parsed["domains"],
            "path": parsed["path"],
        })
    return exclusions


def _scheme(prefix: str) -> str:
    # "http:", "http:/" and "http://" all name the same scheme.
    return prefix.split(":", 1)[0].lower()


def _schemes_match(url_prefix: Optional[str], pattern_prefix: Optional[str]) -> bool:
    if url_prefix is None or pattern_prefix is None:
        return True
    return _scheme(url_prefix) == _scheme(pattern_prefix)


def _domains_match(url_domains: Sequence[str], pattern_domains: Sequence[str]) -> bool:
    """The pattern's labels must be a suffix of the URL's labels."""
    if len(pattern_domains) > len(url_domains):
        return False
    for url_label, pattern_label in zip(reversed(url_domains), reversed(pattern_domains)):
        if pattern_label == WILDCARD_LABEL:
            continue
        if url_label.lower() != pattern_label.lower():
            return False
    return True


def _paths_match(url_path: Sequence[str], pattern_path: Sequence[str]) -> bool:
    """The pattern's segments must be a prefix of the URL's segments."""
    return list(url_path[:len(pattern_path)]) == list(pattern_path)


def url_matches_pattern(url: str, pattern: ParsedUrl, patterns: UrlPatterns) -> bool:
    """
    Return True if the URL is covered by the exclusion pattern.

    Scheme, domain and path must all match:

    - schemes only conflict when both sides carry one and they differ
    - ``example.com`` covers ``sub.example.com`` but not the other way round
    - ``example.com/page`` covers ``example.com/page/index.html``

    A URL that cannot be split matches nothing.
    """
    parsed = split_pattern(url, patterns)
    if parsed is None:
        return False

    return (
        _schemes_match(parsed["prefix"], pattern["prefix"])
        and _domains_match(parsed["domains"], pattern["domains"])
        and _paths_match(parsed["path"], pattern["path"])
    )


def url_matches_url_pattern(url: str, url_pattern: str, patterns: UrlPatterns) -> bool:
    """Like `url_matches_pattern`, parsing the raw pattern first."""
    pattern = split_pattern(url_pattern, patterns)
    if pattern is None:
        raise InvalidPatternError(url_pattern)
    return url_matches_pattern(url, pattern, patterns)


def is_url_excluded(url: str, exclusions: Iterable[ParsedUrl], patterns: UrlPatterns) -> bool:
    """Return True if the URL matches any of the exclusion patterns."""
    return any(url_matches_pattern(url, pattern, patterns) for pattern in exclusions)

"""Unit tests for URL splitting and exclusion matching."""

from __future__ import annotations

import pytest

from errors import InvalidPatternError
from parse import UrlPatterns, build_patterns
from urls import (
    compile_exclusions,
    is_url_excluded,
    split_pattern,
    url_matches_pattern,
    url_matches_url_pattern,
)


@pytest.fixture(scope="module")
def patterns() -> UrlPatterns:
    return build_patterns()


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("sub.domain.com", {"prefix": None, "domains": ["sub", "domain", "com"], "path": []}),
        ("http://sub.domain.com//", {"prefix": "http://", "domains": ["sub", "domain", "com"], "path": []}),
        ("com/path/to//element.html", {"prefix": None, "domains": ["com"], "path": ["path", "to", "element.html"]}),
        (
            "http://example.com/path/to/element.html",
            {"prefix": "http://", "domains": ["example", "com"], "path": ["path", "to", "element.html"]},
        ),
        ("https:sub.example.com/path/", {"prefix": "https:", "domains": ["sub", "example", "com"], "path": ["path"]}),
        ("http:/Example.COM", {"prefix": "http:/", "domains": ["Example", "COM"], "path": []}),
        ("localhost:8080/admin", {"prefix": None, "domains": ["localhost:8080"], "path": ["admin"]}),
        ("http://test.", {"prefix": "http://", "domains": ["test"], "path": []}),
    ],
)
def test_split_pattern(value: str, expected: dict, patterns: UrlPatterns) -> None:
    """Prefix, domain labels and path segments are separated; empty parts dropped."""
    assert split_pattern(value, patterns) == expected


@pytest.mark.parametrize("value", ["https://", "http:", "", "/path/only", "http:///example", "..."])
def test_split_pattern_without_domain_fails(value: str, patterns: UrlPatterns) -> None:
    """Strings without any domain label cannot be split."""
    assert split_pattern(value, patterns) is None


@pytest.mark.parametrize(
    ("url", "pattern", "expected"),
    [
        ("example.com/", "example.com", True),
        ("sub.example.com", "sub.example.com/", True),
        ("sub.example.com/page/index.html", "sub.example.com/page/index.html", True),
        ("http://sub.example.com/", "sub.example.com", True),
        ("http://sub.example.com", "sub.example.com/", True),
        ("sub.example.com", "https://sub.example.com/", True),
        ("sub.example.com/page/index.html", "http://sub.example.com/page", True),
        ("https://sub.example.com/page/index.html", "http://sub.example.com/page/index.html", False),
        ("https://sub.example.com/page", "https:/sub.example.com", True),
        ("HTTP://sub.example.com", "http://sub.example.com", True),
        ("sub.example.com/page/index.html", "sub.example.com", True),
        ("sub.example.com/page/index.html", "example.com", True),
        ("example.com/page/index.html", "sub.example.com/page", False),
        ("sub.example.com", "sub.example.com/page/index.html", False),
        ("sub.example.com", "example.com", True),
        ("example.com", "sub.example.com", False),
        ("sub.example.com", "example.com/", True),
        ("notexample.com", "example.com", False),
        ("https://Sub.Example.com/Page", "sub.example.com/Page", True),
        ("https://sub.example.com/page", "sub.example.com/Page", False),
        ("https://docs.python.org/3/", "*.org", True),
        ("https://python.org/", "*.org", True),
        ("https://a.b.python.org/", "*.python.org", True),
        ("https://org/", "*.org", False),
        ("https://docs.python.org/3/library", "docs.*.org/3", True),
    ],
)
def test_url_matches_url_pattern(url: str, pattern: str, expected: bool, patterns: UrlPatterns) -> None:
    """Scheme, domain suffix and path prefix must all agree."""
    assert url_matches_url_pattern(url, pattern, patterns) is expected


@pytest.mark.parametrize(
    "value",
    [
        "example.com",
        "http://sub.example.com/page/index.html",
        "https:sub.example.com/path/",
        "www.youtube.com/watch?time_continue=866&v=WGchhsKhG-A",
    ],
)
def test_pattern_matches_itself(value: str, patterns: UrlPatterns) -> None:
    """Any string that parses both as URL and as pattern excludes itself."""
    parsed = split_pattern(value, patterns)
    assert parsed is not None
    assert url_matches_pattern(value, parsed, patterns)


def test_unsplittable_url_matches_nothing(patterns: UrlPatterns) -> None:
    """A URL without a domain is never excluded."""
    pattern = split_pattern("example", patterns)
    assert pattern is not None
    assert url_matches_pattern("http:///example", pattern, patterns) is False


def test_invalid_raw_pattern_raises(patterns: UrlPatterns) -> None:
    """Matching against a pattern without domain is an error, not a mismatch."""
    with pytest.raises(InvalidPatternError) as excinfo:
        url_matches_url_pattern("example.com", "https://", patterns)
    assert excinfo.value.pattern == "https://"
    assert "Invalid URL exclusion pattern: https://" in str(excinfo.value)


def test_compile_exclusions_keeps_raw_form(patterns: UrlPatterns) -> None:
    """Validated patterns carry the user's input for diagnostics."""
    exclusions = compile_exclusions(["http://example.com/a", "*.org"], patterns)

    assert [e["raw"] for e in exclusions] == ["http://example.com/a", "*.org"]
    assert exclusions[0]["prefix"] == "http://"
    assert exclusions[0]["domains"] == ["example", "com"]
    assert exclusions[0]["path"] == ["a"]


def test_compile_exclusions_rejects_first_invalid(patterns: UrlPatterns) -> None:
    """One bad pattern fails the whole configuration."""
    with pytest.raises(InvalidPatternError, match="http:"):
        compile_exclusions(["example.com", "http:", "https://"], patterns)


def test_is_url_excluded_any_pattern(patterns: UrlPatterns) -> None:
    """A URL is excluded as soon as one pattern matches."""
    exclusions = compile_exclusions(["google.com", "http://www.example.co"], patterns)

    assert is_url_excluded("domains.google.com/", exclusions, patterns)
    assert is_url_excluded("http://www.example.co", exclusions, patterns)
    assert not is_url_excluded("https://www.example.co", exclusions, patterns)
    assert not is_url_excluded("testing.test/page", exclusions, patterns)
    assert not is_url_excluded("testing.test/page", [], patterns)

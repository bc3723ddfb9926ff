"""Data structures used across the application."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, TypedDict


class FileUrl(TypedDict):
    """A URL found in a file, together with its check result.

    ``status`` stays ``None`` until the URL went through the checker; it is then
    one of the ``STATUS_*`` values from ``constants``. ``reason`` is only set for
    bad URLs.
    """

    url: str
    file: Path
    line: int
    excluded: bool
    status: Optional[str]
    reason: Optional[str]


class ParsedUrl(TypedDict):
    """A URL or exclusion pattern split into scheme prefix, domains and path."""

    prefix: Optional[str]
    domains: List[str]
    path: List[str]


class ExclusionPattern(ParsedUrl):
    """A validated exclusion pattern, keeping the user's raw input."""

    raw: str


class RunInfo(TypedDict):
    """Everything `check_paths` hands back to its caller."""

    file_urls: List[FileUrl]
    files: Optional[List[Path]]
    num_files: int
    num_urls: int
    num_bad_urls: int


__all__ = ["FileUrl", "ParsedUrl", "ExclusionPattern", "RunInfo"]

"""Shared configuration constants for loch."""

from __future__ import annotations

from typing import Optional, Tuple

VERSION = "0.1.0"
USER_AGENT = f"loch/{VERSION}"

DEFAULT_TIMEOUT: Optional[float] = None
DEFAULT_WORKERS = 1
DEFAULT_INPUT = "."

NO_COLOR_ENV = "NO_COLOR"

# Ignore files honoured while walking directories, in order of precedence.
IGNORE_FILES: Tuple[str, ...] = (".gitignore", ".ignore")

# Characters never part of a URL, besides whitespace.
FORBIDDEN_CHARS = "[](){}|,\"'<>`^"
# Valid characters that may not start or end a URL.
EDGE_PUNCTUATION = ".:"

GOOD_STATUS_RANGE = range(200, 400)

STATUS_GOOD = "good"
STATUS_BAD = "bad"
STATUS_EXCLUDED = "excluded"
STATUS_NOT_CHECKED = "not_checked"

_EXPORTED_NAMES = (
    "VERSION",
    "USER_AGENT",
    "DEFAULT_TIMEOUT",
    "DEFAULT_WORKERS",
    "DEFAULT_INPUT",
    "NO_COLOR_ENV",
    "IGNORE_FILES",
    "FORBIDDEN_CHARS",
    "EDGE_PUNCTUATION",
    "GOOD_STATUS_RANGE",
    "STATUS_GOOD",
    "STATUS_BAD",
    "STATUS_EXCLUDED",
    "STATUS_NOT_CHECKED",
)

__all__ = [name for name in _EXPORTED_NAMES if name in globals()]

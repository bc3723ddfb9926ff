"""Exceptions raised by loch. Anything deriving from LochError aborts a run."""

from __future__ import annotations

__all__ = ["LochError", "ConfigError", "InvalidPatternError", "WalkError"]


class LochError(Exception):
    """Base class for fatal loch errors."""


class ConfigError(LochError):
    """A run option has an invalid value."""


class InvalidPatternError(ConfigError):
    """An URL exclusion pattern without any domain."""

    def __init__(self, pattern: str) -> None:
        super().__init__(f"Invalid URL exclusion pattern: {pattern}")
        self.pattern = pattern


class WalkError(LochError):
    """Traversing the input paths or reading a file failed."""

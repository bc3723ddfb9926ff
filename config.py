"""Run configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from constants import DEFAULT_TIMEOUT, DEFAULT_WORKERS
from errors import ConfigError
from parse import Strategy

__all__ = ["Config"]


@dataclass(frozen=True)
class Config:
    """
    Immutable set of options for one `check_paths` run.

    Attributes:
        exclude_paths: Glob patterns of files and directories not to scan
        exclude_urls: URL exclusion patterns, e.g. ``example.com/page``
        follow: Follow symbolic links
        list_files: Collect every visited file into ``RunInfo["files"]``
        no_check: Extract and list URLs without probing them
        no_color: Disable colored output
        no_http: URLs do not need to start with ``http://`` or ``https://``
        no_ignore: Also scan hidden files and files matched by ignore files
        silent: Do not report individual bad URLs
        verbose: Report every file and URL processed
        timeout: Per-request timeout in seconds (None for no timeout)
        workers: Number of threads probing URLs
    """

    exclude_paths: Tuple[str, ...] = ()
    exclude_urls: Tuple[str, ...] = ()
    follow: bool = False
    list_files: bool = False
    no_check: bool = False
    no_color: bool = False
    no_http: bool = False
    no_ignore: bool = False
    silent: bool = False
    verbose: bool = False
    timeout: Optional[float] = DEFAULT_TIMEOUT
    workers: int = DEFAULT_WORKERS

    def __post_init__(self) -> None:
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout}")
        if self.workers < 1:
            raise ConfigError(f"Worker count must be at least 1, got {self.workers}")
        # Accept lists from callers while keeping the value hashable.
        object.__setattr__(self, "exclude_paths", tuple(self.exclude_paths))
        object.__setattr__(self, "exclude_urls", tuple(self.exclude_urls))

    @property
    def strategy(self) -> Strategy:
        """Extraction strategy implied by ``no_http``."""
        return Strategy.NO_HTTP if self.no_http else Strategy.HTTP

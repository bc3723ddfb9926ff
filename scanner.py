"""Core link-out check: extract URLs from files, probe them, classify results."""

from __future__ import annotations

import logging
import re
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import Config
from constants import (
    DEFAULT_TIMEOUT,
    GOOD_STATUS_RANGE,
    STATUS_BAD,
    STATUS_EXCLUDED,
    STATUS_GOOD,
    STATUS_NOT_CHECKED,
    USER_AGENT,
)
from models import FileUrl, ParsedUrl, RunInfo
from parse import Strategy, UrlPatterns, build_patterns, get_urls
from urls import compile_exclusions, is_url_excluded
from walker import iter_files, read_lines

__all__ = [
    "build_session",
    "probe_url",
    "url_is_bad",
    "ProbeCache",
    "get_file_urls",
    "check_urls",
    "check_paths",
]

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^(https?):/*", flags=re.IGNORECASE)


def build_session() -> requests.Session:
    """Create a `requests.Session` reused for every probe of a run."""
    session = requests.Session()
    # Failed probes are reported, never retried.
    retry = Retry(total=0, raise_on_status=False)
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"User-Agent": USER_AGENT})
    return session


def _request_url(url: str) -> str:
    """Turn a URL as found in text into one `requests` accepts."""
    match = _SCHEME_RE.match(url)
    if match is None:
        return f"http://{url}"
    if url[match.end(1):].startswith("://"):
        return url
    # Abbreviated forms such as "http:example.com" or "http:/example.com".
    return f"{match.group(1).lower()}://{url[match.end():]}"


def probe_url(
    session: requests.Session, url: str, timeout: Optional[float] = DEFAULT_TIMEOUT
) -> Tuple[Optional[int], Optional[str]]:
    """
    Probe a URL and return ``(status_code, None)`` or ``(None, error)``.

    A HEAD request is tried first. Not every server supports HEAD, so any
    response outside 200-399 is confirmed with a GET before being reported.
    """
    request_url = _request_url(url)
    try:
        resp = session.head(request_url, timeout=timeout)
        status = resp.status_code
        resp.close()
        if status in GOOD_STATUS_RANGE:
            return status, None

        resp = session.get(request_url, timeout=timeout, stream=True)
        status = resp.status_code
        resp.close()
        return status, None

    except requests.exceptions.SSLError as exc:
        return None, f"SSL error: {exc}"
    except requests.exceptions.Timeout as exc:
        return None, f"Timeout: {exc}"
    except requests.exceptions.RequestException as exc:
        return None, str(exc)
    except ValueError as exc:
        # Malformed URLs urllib3 rejects before requests can wrap the error.
        return None, f"Invalid URL: {exc}"


def url_is_bad(
    session: requests.Session, url: str, timeout: Optional[float] = DEFAULT_TIMEOUT
) -> Optional[str]:
    """Return a human-readable reason if the URL is bad, None if it is good."""
    status, error = probe_url(session, url, timeout=timeout)
    if error is not None:
        return error
    if status not in GOOD_STATUS_RANGE:
        return f"Response code: {status}"
    return None


class ProbeCache:
    """
    Shares probe results between threads, keyed by URL text.

    The first caller for a URL runs the probe; concurrent callers for the same
    URL wait on its future instead of probing again.
    """

    def __init__(self, probe: Callable[[str], Optional[str]]) -> None:
        self._probe = probe
        self._lock = threading.Lock()
        self._futures: Dict[str, Future] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._futures)

    def get(self, url: str) -> Optional[str]:
        """Return the bad-URL reason for ``url``, probing it at most once."""
        with self._lock:
            future = self._futures.get(url)
            owner = future is None
            if owner:
                future = Future()
                self._futures[url] = future

        if owner:
            try:
                future.set_result(self._probe(url))
            except Exception as exc:
                future.set_exception(exc)
                raise
        return future.result()


class _SessionPool:
    """One session per worker thread, all closed together."""

    def __init__(self, factory: Callable[[], requests.Session]) -> None:
        self._factory = factory
        self._local = threading.local()
        self._lock = threading.Lock()
        self._sessions: List[requests.Session] = []

    def get(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._factory()
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def close(self) -> None:
        with self._lock:
            for session in self._sessions:
                session.close()
            self._sessions.clear()


def get_file_urls(
    path: Path,
    strategy: Strategy,
    patterns: UrlPatterns,
    exclusions: Sequence[ParsedUrl] = (),
) -> List[FileUrl]:
    """Extract the URLs of one file, tagging the excluded ones."""
    try:
        lines = read_lines(path)
    except UnicodeDecodeError:
        logger.warning("%s did not contain valid UTF-8 data. Skipping.", path)
        return []

    file_urls: List[FileUrl] = []
    for line_num, line in enumerate(lines, start=1):
        for url in get_urls(line, strategy, patterns):
            file_urls.append({
                "url": url,
                "file": path,
                "line": line_num,
                "excluded": is_url_excluded(url, exclusions, patterns),
                "status": None,
                "reason": None,
            })
    return file_urls


def _sort_key(file_url: FileUrl) -> Tuple[str, str, int]:
    return file_url["url"], str(file_url["file"]), file_url["line"]


def _file_ref(file_url: FileUrl) -> str:
    return f"[{file_url['file']}:{file_url['line']}]"


def _classify(file_url: FileUrl, reason: Optional[str]) -> None:
    file_url["status"] = STATUS_BAD if reason is not None else STATUS_GOOD
    file_url["reason"] = reason


def _count_unique(file_urls: Sequence[FileUrl]) -> int:
    """
    Count distinct non-excluded URLs in a list sorted by URL.

    This is the number of URLs processed, whether or not they are probed.
    """
    count = 0
    previous: Optional[str] = None
    for file_url in file_urls:
        if file_url["url"] != previous and not file_url["excluded"]:
            count += 1
        previous = file_url["url"]
    return count


def check_urls(
    file_urls: List[FileUrl],
    session: Optional[requests.Session] = None,
    *,
    no_check: bool = False,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    workers: int = 1,
    session_factory: Optional[Callable[[], requests.Session]] = None,
) -> Tuple[int, int]:
    """
    Classify every URL occurrence, probing each distinct URL at most once.

    The list is sorted in place by URL, file and line. Excluded URLs are never
    probed; with ``no_check`` nothing is probed at all. Worker threads are
    only used when no session is given.

    Args:
        file_urls: URLs found in the scanned files
        session: Session to probe with; forces sequential probing (created
            if None)
        no_check: Only classify, never probe
        timeout: Per-request timeout in seconds
        workers: Number of probing threads; 1 probes sequentially
        session_factory: Builds sessions when none is given (default
            `build_session`)

    Returns:
        Tuple of (distinct non-excluded URLs, bad URL occurrences). The first
        count includes URLs left unprobed by ``no_check``.
    """
    session_factory = session_factory or build_session
    file_urls.sort(key=_sort_key)
    num_urls = _count_unique(file_urls)

    if num_urls:
        logger.info("Checking %d unique %s.", num_urls, "URL" if num_urls == 1 else "URLs")

    if workers > 1 and session is not None:
        logger.info("Probing sequentially with the given session (workers=%d ignored).", workers)
    if workers > 1 and not no_check and session is None:
        _check_concurrently(file_urls, timeout, workers, session_factory)
    else:
        _check_sequentially(file_urls, session, no_check, timeout, session_factory)

    num_bad_urls = sum(1 for file_url in file_urls if file_url["status"] == STATUS_BAD)
    return num_urls, num_bad_urls


def _check_sequentially(
    file_urls: List[FileUrl],
    session: Optional[requests.Session],
    no_check: bool,
    timeout: Optional[float],
    session_factory: Callable[[], requests.Session],
) -> None:
    # Sorting made duplicates adjacent: a URL equal to the previous one reuses
    # its result.
    owns_session = session is None and not no_check
    if owns_session:
        session = session_factory()

    try:
        previous: Optional[FileUrl] = None
        for file_url in file_urls:
            if previous is not None and previous["url"] == file_url["url"]:
                logger.debug("Skipping (checked) %s %s", file_url["url"], _file_ref(file_url))
                file_url["status"] = previous["status"]
                file_url["reason"] = previous["reason"]
            elif file_url["excluded"]:
                logger.info("Skipping (excluded) %s %s", file_url["url"], _file_ref(file_url))
                file_url["status"] = STATUS_EXCLUDED
            elif no_check:
                logger.info("Not checking %s %s", file_url["url"], _file_ref(file_url))
                file_url["status"] = STATUS_NOT_CHECKED
            else:
                logger.info("Checking %s %s", file_url["url"], _file_ref(file_url))
                _classify(file_url, url_is_bad(session, file_url["url"], timeout=timeout))
            previous = file_url
    finally:
        if owns_session and session is not None:
            session.close()


def _check_concurrently(
    file_urls: List[FileUrl],
    timeout: Optional[float],
    workers: int,
    session_factory: Callable[[], requests.Session],
) -> None:
    pool = _SessionPool(session_factory)
    cache = ProbeCache(lambda url: url_is_bad(pool.get(), url, timeout=timeout))

    def _check_one(file_url: FileUrl) -> None:
        _classify(file_url, cache.get(file_url["url"]))

    pending = []
    for file_url in file_urls:
        if file_url["excluded"]:
            file_url["status"] = STATUS_EXCLUDED
        else:
            pending.append(file_url)

    try:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="loch-probe") as executor:
            # Consume results so worker exceptions propagate.
            for _ in executor.map(_check_one, pending):
                pass
    finally:
        pool.close()
    logger.info("Probed %d distinct URLs with %d workers", len(cache), workers)


def check_paths(
    input_paths: Iterable[str],
    config: Optional[Config] = None,
    session: Optional[requests.Session] = None,
) -> RunInfo:
    """
    Link-out check every file under the input paths.

    Exclusion patterns are validated before any file is read.

    Args:
        input_paths: Files and/or directories to scan
        config: Run options (defaults if None)
        session: Session to probe with, sequentially (created and closed here
            if None)

    Returns:
        RunInfo with every URL occurrence and the run counters

    Raises:
        InvalidPatternError: If an exclusion pattern has no domain
        WalkError: If the input paths cannot be traversed or read
    """
    config = config or Config()
    input_paths = list(input_paths)
    patterns = build_patterns()
    exclusions = compile_exclusions(config.exclude_urls, patterns)

    logger.info("Input paths: %s", input_paths)
    logger.debug("Parameters: %s", config)

    files: Optional[List[Path]] = [] if config.list_files else None
    file_urls: List[FileUrl] = []
    num_files = 0

    walker = iter_files(
        input_paths,
        exclude_paths=config.exclude_paths,
        follow=config.follow,
        no_ignore=config.no_ignore,
    )
    for path in walker:
        logger.info("Parsing %s", path)
        file_urls.extend(get_file_urls(path, config.strategy, patterns, exclusions))
        if files is not None:
            files.append(path)
        num_files += 1

    num_urls, num_bad_urls = check_urls(
        file_urls,
        session,
        no_check=config.no_check,
        timeout=config.timeout,
        workers=config.workers,
    )

    return {
        "file_urls": file_urls,
        "files": files,
        "num_files": num_files,
        "num_urls": num_urls,
        "num_bad_urls": num_bad_urls,
    }

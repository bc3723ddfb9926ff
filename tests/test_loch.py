"""Tests for the command-line entry point."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, List

import pytest
import requests

import loch


class _DummyResponse:  # pylint: disable=too-few-public-methods
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code

    def close(self) -> None:
        pass


class _DummySession(requests.Session):
    """Answers 404 for URLs containing 'dead', 200 otherwise."""

    def __init__(self) -> None:
        super().__init__()
        self.requested: List[str] = []

    def _answer(self, url: str) -> _DummyResponse:
        self.requested.append(url)
        return _DummyResponse(404 if "dead" in url else 200)

    def head(self, url: str, **kwargs: Any) -> _DummyResponse:  # type: ignore[override]
        return self._answer(url)

    def get(self, url: str, **kwargs: Any) -> _DummyResponse:  # type: ignore[override]
        return self._answer(url)


@pytest.fixture
def dummy_session(monkeypatch: pytest.MonkeyPatch) -> _DummySession:
    session = _DummySession()
    monkeypatch.setattr("scanner.build_session", lambda: session)
    return session


def _write(root: Path, name: str, text: str) -> Path:
    path = root / name
    path.write_text(text, encoding="utf-8")
    return path


def test_split_input_accepts_spaces_and_commas() -> None:
    """Exclusion lists may be given as one comma or space separated value."""
    assert loch.split_input(["a.com,b.com", "c.com  d.com", ","]) == ["a.com", "b.com", "c.com", "d.com"]
    assert loch.split_input(None) == []


def test_parse_args_defaults() -> None:
    """Without arguments the current directory is checked sequentially."""
    args = loch.parse_args([])
    config = loch.to_config(args)

    assert args.input == ["."]
    assert config.workers == 1
    assert config.timeout is None
    assert config.exclude_urls == ()


def test_to_config_maps_flags() -> None:
    """Every command-line flag ends up in the configuration."""
    args = loch.parse_args([
        "docs", "-L", "--no-http", "--no-ignore", "--no-color", "-v",
        "-t", "5", "-j", "3", "-e", "*.lock", "-E", "example.com,*.org",
    ])
    config = loch.to_config(args)

    assert args.input == ["docs"]
    assert config.follow and config.no_http and config.no_ignore and config.no_color and config.verbose
    assert config.timeout == 5
    assert config.workers == 3
    assert config.exclude_paths == ("*.lock",)
    assert config.exclude_urls == ("example.com", "*.org")


def test_rejects_non_positive_timeout(capsys: pytest.CaptureFixture[str]) -> None:
    """argparse refuses a zero timeout."""
    with pytest.raises(SystemExit):
        loch.parse_args(["-t", "0"])
    assert "must be at least 1" in capsys.readouterr().err


def test_main_without_bad_urls(
    tmp_path: Path, dummy_session: _DummySession, capsys: pytest.CaptureFixture[str]
) -> None:
    """A clean run exits with 0."""
    _write(tmp_path, "README.md", "Docs at https://alive.example/docs.\n")

    assert loch.main([str(tmp_path)]) == 0
    assert "no bad URLs found" in capsys.readouterr().out
    assert dummy_session.requested == ["https://alive.example/docs"]


def test_main_reports_bad_urls(
    tmp_path: Path, dummy_session: _DummySession, capsys: pytest.CaptureFixture[str]
) -> None:
    """Bad URLs are listed with their location and the exit code is 1."""
    doc = _write(tmp_path, "doc.md", "ok https://alive.example\nbroken: https://dead.example/page\n")

    assert loch.main([str(tmp_path), "--no-color"]) == 1
    err = capsys.readouterr().err
    assert f"{doc}:2: https://dead.example/page" in err
    assert "(1) bad URLs found!" in err


def test_main_no_check_never_probes(
    tmp_path: Path, dummy_session: _DummySession, capsys: pytest.CaptureFixture[str]
) -> None:
    """--no-check lists nothing as bad and sends no request."""
    _write(tmp_path, "doc.md", "https://dead.example/page\n")

    assert loch.main([str(tmp_path), "--no-check"]) == 0
    assert dummy_session.requested == []


def test_main_excluded_urls(tmp_path: Path, dummy_session: _DummySession) -> None:
    """Excluded URLs are not probed and cannot fail the run."""
    _write(tmp_path, "doc.md", "https://dead.example/page https://alive.example\n")

    assert loch.main([str(tmp_path), "-E", "dead.example"]) == 0
    assert dummy_session.requested == ["https://alive.example"]


def test_main_invalid_pattern(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """A bad exclusion pattern is reported as an error."""
    assert loch.main([str(tmp_path), "-E", "https://"]) == 1
    assert "Error: Invalid URL exclusion pattern: https://" in capsys.readouterr().err


def test_main_missing_input(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """A missing input path is fatal."""
    assert loch.main([str(tmp_path / "nope")]) == 1
    assert "No such file or directory" in capsys.readouterr().err


def test_main_writes_csv(tmp_path: Path, dummy_session: _DummySession) -> None:
    """--output stores every occurrence with its status."""
    docs = tmp_path / "docs"
    docs.mkdir()
    _write(docs, "a.md", "https://dead.example https://alive.example https://dead.example\n")
    output = tmp_path / "out" / "results.csv"

    assert loch.main([str(docs), "-o", str(output)]) == 1

    rows = list(csv.DictReader(output.read_text(encoding="utf-8").splitlines()))
    assert [(r["url"], r["status"]) for r in rows] == [
        ("https://alive.example", "good"),
        ("https://dead.example", "bad"),
        ("https://dead.example", "bad"),
    ]
    assert dummy_session.requested.count("https://dead.example") == 2  # HEAD then GET, once

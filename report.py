"""Terminal and CSV reporting of check results."""

from __future__ import annotations

import csv
import io
from typing import Any, Dict, Iterable, Optional

from rich.console import Console
from rich.markup import escape

from config import Config
from constants import STATUS_BAD, STATUS_EXCLUDED, STATUS_NOT_CHECKED
from models import FileUrl, RunInfo

__all__ = ["build_console", "format_file_ref", "print_report", "to_csv_bytes"]

CSV_FIELDS = ["url", "file", "line", "status", "reason"]


def build_console(no_color: bool = False, stderr: bool = False) -> Console:
    """Create a console; rich also honours the NO_COLOR environment variable."""
    return Console(stderr=stderr, no_color=no_color, highlight=False, emoji=False, soft_wrap=True)


def format_file_ref(file_url: FileUrl) -> str:
    """Render where a URL was found as ``file:line``."""
    return f"{file_url['file']}:{file_url['line']}"


def print_report(
    info: RunInfo,
    config: Optional[Config] = None,
    out: Optional[Console] = None,
    err: Optional[Console] = None,
) -> int:
    """Print bad URLs and the run summary, returning the number of bad URLs."""
    config = config or Config()
    out = out or build_console(config.no_color)
    err = err or build_console(config.no_color, stderr=True)

    bad_count = 0
    for file_url in info["file_urls"]:
        if file_url["status"] != STATUS_BAD:
            continue
        bad_count += 1
        if config.silent:
            continue
        err.print(
            f"[magenta]{escape(format_file_ref(file_url))}:[/magenta] "
            f"[bold red]{escape(file_url['url'])}[/bold red]"
        )
        if config.verbose and file_url["reason"]:
            err.print(f"  {escape(file_url['reason'])}")

    if config.verbose:
        excluded = sum(1 for f in info["file_urls"] if f["status"] == STATUS_EXCLUDED)
        not_checked = sum(1 for f in info["file_urls"] if f["status"] == STATUS_NOT_CHECKED)
        if excluded:
            out.print(f"[yellow]{excluded} excluded URL occurrence(s)[/yellow]")
        if not_checked:
            out.print(f"[yellow]{not_checked} URL occurrence(s) not checked[/yellow]")

    if bad_count > 0:
        err.print(f"[bold red]Link-out check complete: ({bad_count}) bad URLs found![/bold red]")
    else:
        out.print("[bold cyan]Link-out check complete: no bad URLs found![/bold cyan]")

    if config.verbose:
        out.print(f"\n{info['num_files']} files and {info['num_urls']} URLs were processed")

    return bad_count


def to_csv_bytes(rows: Iterable[FileUrl]) -> bytes:
    """Serialize check results into CSV and return the encoded bytes."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_FIELDS)
    writer.writeheader()
    for r in rows:
        row: Dict[str, Any] = {
            "url": r["url"],
            "file": str(r["file"]),
            "line": r["line"],
            "status": r["status"] or "",
            "reason": r["reason"] or "",
        }
        writer.writerow(row)
    return output.getvalue().encode("utf-8")

"""``playlist-archiver doctor`` — environment diagnostics command.

Collects what a run depends on (Python, yt-dlp, ffmpeg/ffprobe) and
renders it as a Rich table.  Purely diagnostic: nothing is installed or
changed.
"""

from __future__ import annotations

import platform
import sys

from rich.table import Table

from playlist_archiver.cli import exit_codes
from playlist_archiver.cli.console import console
from playlist_archiver.infra.ffmpeg_detector import FfmpegStatus, detect_ffmpeg
from playlist_archiver.version import __version__

OK: str = "[green]OK[/green]"
WARN: str = "[yellow]WARN[/yellow]"
FAIL: str = "[red]FAIL[/red]"

Check = tuple[str, str, str]


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _version_check() -> Check:
    return "playlist-archiver", __version__, OK


def _python_version_check() -> Check:
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    return "Python", version, OK if ok else "[red]FAIL (>=3.10 required)[/red]"


def _ytdlp_version_check() -> Check:
    try:
        from yt_dlp.version import __version__ as ydl_ver
    except ImportError:
        return "yt-dlp", "NOT INSTALLED", FAIL
    return "yt-dlp", ydl_ver, OK


def _ffmpeg_check(status: FfmpegStatus) -> Check:
    if status.found:
        return "ffmpeg", status.summary, OK
    return "ffmpeg", status.summary, WARN


def _os_check() -> Check:
    system_raw = platform.system()
    system_display = {"Darwin": "macOS"}.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    return "OS", value, OK


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor() -> int:
    """Run every check and render the summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when no check failed,
        :data:`exit_codes.INPUT_ERROR` otherwise.  A missing ffmpeg is
        only a warning.
    """
    ffmpeg_status = detect_ffmpeg()
    checks = [
        _version_check(),
        _python_version_check(),
        _ytdlp_version_check(),
        _ffmpeg_check(ffmpeg_status),
        _os_check(),
    ]

    table = Table(
        title="playlist-archiver doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=12)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)
    for label, value, status in checks:
        table.add_row(label, value, status)

    console.print()
    console.print(table)
    console.print()

    if ffmpeg_status.install_commands:
        console.print("[yellow]Audio extraction and video merging need ffmpeg.[/yellow]")
        console.print("Install using one of the following commands:\n")
        for cmd in ffmpeg_status.install_commands:
            console.print(f"  [bold]{cmd}[/bold]")
        console.print()

    if any("FAIL" in status for _, _, status in checks):
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.INPUT_ERROR

    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS

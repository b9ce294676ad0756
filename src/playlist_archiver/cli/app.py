"""CLI application entry point and command routing for playlist-archiver.

This module is the **sole process-level error boundary**.  It catches
:class:`~playlist_archiver.exceptions.PlaylistArchiverError`,
``KeyboardInterrupt`` and any unexpected ``Exception``, renders them via
Rich and maps them to exit codes.

Architecture notes
------------------
* No pipeline logic lives here: options become a
  :class:`~playlist_archiver.core.models.RunConfig`, and the work is
  handed to :class:`~playlist_archiver.core.pipeline.PipelineOrchestrator`.
* Precedence of option sources: defaults < config file < flags.
* Item failures never change the exit code; only malformed input does.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from playlist_archiver.cli import exit_codes
from playlist_archiver.cli.console import configure_logging, console
from playlist_archiver.core.models import (
    AUDIO_FORMATS,
    VIDEO_CONTAINERS,
    JobStatus,
    ManifestFormat,
    MediaMode,
    RunConfig,
    RunSummary,
)
from playlist_archiver.exceptions import InvalidConfigError, PlaylistArchiverError
from playlist_archiver.version import __version__

log = logging.getLogger(__name__)

SUPPORTED_BROWSERS: tuple[str, ...] = (
    "brave",
    "chrome",
    "chromium",
    "edge",
    "firefox",
    "opera",
    "safari",
    "vivaldi",
)

_OPTION_KEYS: tuple[str, ...] = (
    "mode",
    "audio_format",
    "audio_quality",
    "video_container",
    "unicode_filenames",
    "force_ipv4",
    "retries",
    "parallel",
    "export",
    "cookies_from_browser",
    "output_root",
)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    * ``playlist-archiver [options] URL [URL ...]`` — archive playlists
    * ``playlist-archiver doctor`` — environment diagnostics
    * ``playlist-archiver --version``

    Option defaults are ``None`` so that values from the config file
    are only overridden by flags actually given.
    """
    parser = argparse.ArgumentParser(
        prog="playlist-archiver",
        description=(
            "Archive whole playlists: export each one to a manifest, download "
            "every item, skip what is already archived, retry failures once."
        ),
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "targets",
        nargs="*",
        metavar="URL",
        help="Playlist URLs to archive, or 'doctor' to run diagnostics.",
    )
    parser.add_argument(
        "-i", "--input-file", metavar="FILE",
        help="Read playlist URLs from FILE, one per line ('#' starts a comment).",
    )
    parser.add_argument(
        "-c", "--config", metavar="FILE",
        help="INI config file (default: per-user config.ini when present).",
    )
    parser.add_argument(
        "-o", "--output-root", metavar="DIR", default=None,
        help="Directory for playlist folders, manifests and archives (default: .).",
    )

    media = parser.add_argument_group("media")
    media.add_argument("--mode", choices=[m.value for m in MediaMode], default=None)
    media.add_argument("--audio-format", choices=AUDIO_FORMATS, default=None)
    media.add_argument(
        "--audio-quality", default=None,
        help="yt-dlp audio quality, 0 (best) to 10, or a bitrate such as 192K.",
    )
    media.add_argument("--video-container", choices=VIDEO_CONTAINERS, default=None)
    media.add_argument(
        "--unicode-filenames", action=argparse.BooleanOptionalAction, default=None,
        help="Keep spaces and Unicode in file names instead of safe ASCII.",
    )

    network = parser.add_argument_group("network")
    network.add_argument(
        "--force-ipv4", action=argparse.BooleanOptionalAction, default=None,
    )
    network.add_argument(
        "--retries", type=int, default=None, metavar="N",
        help="Network retries per item inside yt-dlp (default: 5).",
    )
    network.add_argument(
        "--cookies-from-browser", choices=SUPPORTED_BROWSERS, default=None,
        help="Load cookies from this browser for hidden or age-restricted items.",
    )

    run = parser.add_argument_group("run")
    run.add_argument(
        "--parallel", type=int, default=None, metavar="N",
        help="Playlists processed at once (default: 0 = sequential).",
    )
    run.add_argument(
        "--export", choices=[f.value for f in ManifestFormat], default=None,
        help="Manifest format: one URL per line, or title;url.",
    )
    run.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


# ---------------------------------------------------------------------------
# Option resolution
# ---------------------------------------------------------------------------

def _load_options(args: argparse.Namespace) -> dict[str, Any]:
    """Merge config-file values with the flags given on the command line."""
    from playlist_archiver.infra.config_file import ConfigFileLoader, default_config_path

    options: dict[str, Any] = {}
    if args.config:
        options.update(ConfigFileLoader(Path(args.config).expanduser()).load())
    else:
        default_path = default_config_path()
        if default_path.is_file():
            log.debug("Using config file %s", default_path)
            options.update(ConfigFileLoader(default_path).load())

    for key in _OPTION_KEYS:
        value = getattr(args, key)
        if value is not None:
            options[key] = value
    return options


def _build_config(options: dict[str, Any]) -> RunConfig:
    """Turn merged option values into the run's immutable config.

    Raises
    ------
    InvalidConfigError
        For values outside the accepted choices or ranges.
    """
    try:
        media_mode = MediaMode(str(options.get("mode", MediaMode.AUDIO.value)).lower())
        manifest_format = ManifestFormat(
            str(options.get("export", ManifestFormat.URLS.value)).lower(),
        )
    except ValueError as exc:
        raise InvalidConfigError(str(exc)) from exc

    cookies = options.get("cookies_from_browser")
    cookies = str(cookies).strip().lower() if cookies else None
    if cookies == "none":
        cookies = None
    if cookies is not None and cookies not in SUPPORTED_BROWSERS:
        raise InvalidConfigError(
            f"Unsupported browser for cookies: {cookies!r}",
            hint=f"Choose one of: {', '.join(SUPPORTED_BROWSERS)}",
        )

    return RunConfig(
        media_mode=media_mode,
        audio_format=str(options.get("audio_format", "mp3")).lower(),
        audio_quality=str(options.get("audio_quality", "0")),
        video_container=str(options.get("video_container", "mp4")).lower(),
        restrict_filenames=not options.get("unicode_filenames", False),
        force_ipv4=bool(options.get("force_ipv4", False)),
        retries=int(options.get("retries", 5)),
        manifest_format=manifest_format,
        concurrency=int(options.get("parallel", 0)),
        cookies_from_browser=cookies,
        output_root=Path(str(options.get("output_root", "."))).expanduser(),
    )


def _collect_urls(args: argparse.Namespace) -> list[str]:
    """Playlist URLs from positional arguments and ``--input-file``.

    Raises
    ------
    InvalidConfigError
        If the input file cannot be read or no URL is left.
    """
    from playlist_archiver.core.resolver_service import validate_url

    raw: list[str] = list(args.targets)
    if args.input_file:
        path = Path(args.input_file).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise InvalidConfigError(f"Cannot read input file {path}: {exc}") from exc
        raw.extend(
            line.strip()
            for line in text.splitlines()
            if line.strip() and not line.lstrip().startswith("#")
        )

    urls: list[str] = []
    for candidate in raw:
        if not candidate.strip():
            log.warning("Skipping empty playlist URL.")
            continue
        urls.append(validate_url(candidate))

    if not urls:
        raise InvalidConfigError(
            "No playlist URLs given.",
            hint="Pass at least one playlist URL or use --input-file.",
        )
    return urls


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_run(urls: list[str], config: RunConfig) -> int:
    """Wire providers, services and the orchestrator, then run."""
    from playlist_archiver.cli.progress import RichPipelineProgress
    from playlist_archiver.core.download_service import ItemFetcher
    from playlist_archiver.core.pipeline import PipelineOrchestrator
    from playlist_archiver.core.resolver_service import PlaylistResolver
    from playlist_archiver.exceptions import FfmpegNotFoundError
    from playlist_archiver.infra.artifact_store import FilesystemArtifactStore
    from playlist_archiver.infra.ffmpeg_detector import require_ffmpeg
    from playlist_archiver.infra.ytdlp_download_provider import YtDlpDownloadProvider
    from playlist_archiver.infra.ytdlp_provider import YtDlpPlaylistProvider, import_yt_dlp

    import_yt_dlp()
    try:
        require_ffmpeg()
    except FfmpegNotFoundError as exc:
        log.warning("%s Audio extraction and merging will fail.", exc)

    config.output_root.mkdir(parents=True, exist_ok=True)
    console.print(
        f"\n[bold]Archiving {len(urls)} playlist(s)[/bold] "
        f"({config.media_mode.value}, {config.target_encode}) into {config.output_root}\n"
    )
    with RichPipelineProgress() as progress:
        orchestrator = PipelineOrchestrator(
            config,
            PlaylistResolver(YtDlpPlaylistProvider()),
            ItemFetcher(YtDlpDownloadProvider(), config),
            FilesystemArtifactStore(),
            listener=progress,
        )
        summary = orchestrator.run(urls)

    _print_summary(summary, config)
    return exit_codes.SUCCESS


def _print_summary(summary: RunSummary, config: RunConfig) -> None:
    """Render the per-playlist outcome table and where failures are logged."""
    from rich.table import Table

    table = Table(title="Run summary", header_style="bold cyan", border_style="dim")
    table.add_column("Playlist", style="bold")
    table.add_column("Folder")
    table.add_column("Items", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Archived", justify="right")
    table.add_column("Status", justify="center")
    for job in summary.jobs:
        status = job.status.value
        if job.status is JobStatus.FAILED:
            colour = "red"
        elif job.persistent_failures:
            colour = "yellow"
        else:
            colour = "green"
        table.add_row(
            job.title or job.url,
            f"{job.safe_name}/" if job.safe_name else "-",
            str(len(job.items)),
            str(len(job.persistent_failures)),
            str(job.archived_count),
            f"[{colour}]{status}[/{colour}]",
        )
    console.print()
    console.print(table)

    for job in summary.failed_jobs:
        console.print(f"[red]Aborted:[/red] {job.url} (see the log above)")

    failure_logs = [
        job.paths.retry_log if config.max_attempts > 1 else job.paths.failure_log
        for job in summary.jobs
        if job.persistent_failures and job.paths is not None
    ]
    if failure_logs:
        console.print("[yellow]Some URLs failed. Check these logs:[/yellow]")
        for log_path in failure_logs:
            console.print(f"  {log_path}")
    elif not summary.failed_jobs:
        console.print("[bold green]All downloads completed without persistent failures.[/bold green]")


def _handle_doctor() -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from playlist_archiver.cli.doctor import run_doctor

    return run_doctor()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: Sequence[str] | None = None) -> int:
    """Run the playlist-archiver CLI.

    Parameters
    ----------
    argv:
        Explicit argument list; ``sys.argv[1:]`` when ``None``.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.targets and not args.input_file:
        parser.print_help()
        return exit_codes.SUCCESS

    if len(args.targets) == 1 and args.targets[0].lower() == "doctor" and not args.input_file:
        return _handle_doctor()

    configure_logging(verbose=args.verbose)
    config = _build_config(_load_options(args))
    urls = _collect_urls(args)
    return _handle_run(urls, config)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: run :func:`main` behind the error boundary."""
    try:
        code = main()
        sys.exit(code)
    except PlaylistArchiverError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.INPUT_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)

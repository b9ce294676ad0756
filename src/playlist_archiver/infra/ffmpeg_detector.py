"""Locate the ffmpeg binaries yt-dlp needs for transcoding.

Audio extraction and video merging both shell out to ``ffmpeg`` (and
``ffprobe`` for audio).  Without them every fetch in a run fails, so
the CLI checks up front and warns; ``doctor`` reports the same check.

Detection uses :func:`shutil.which` only.  Nothing here installs
anything or edits PATH.
"""

from __future__ import annotations

import platform
import shutil
from dataclasses import dataclass
from pathlib import Path

from playlist_archiver.exceptions import FfmpegNotFoundError

REQUIRED_BINARIES: tuple[str, ...] = ("ffmpeg", "ffprobe")


@dataclass(frozen=True, slots=True)
class FfmpegStatus:
    """Outcome of probing PATH for the ffmpeg toolchain.

    Attributes
    ----------
    found : bool
        ``True`` when every binary in :data:`REQUIRED_BINARIES` resolved.
    path : Path | None
        Resolved location of ``ffmpeg`` itself.
    missing : tuple[str, ...]
        Names that could not be resolved.
    install_commands : tuple[str, ...]
        Platform install suggestions; empty when nothing is missing.
    """

    found: bool
    path: Path | None
    missing: tuple[str, ...]
    install_commands: tuple[str, ...]

    @property
    def summary(self) -> str:
        if self.found:
            return str(self.path)
        return f"missing: {', '.join(self.missing)}"


def detect_ffmpeg() -> FfmpegStatus:
    """Probe PATH for ``ffmpeg`` and ``ffprobe``; never raises."""
    located: dict[str, Path] = {}
    for name in REQUIRED_BINARIES:
        hit = shutil.which(name)
        if hit is not None:
            located[name] = Path(hit).resolve()

    missing = tuple(name for name in REQUIRED_BINARIES if name not in located)
    return FfmpegStatus(
        found=not missing,
        path=located.get("ffmpeg"),
        missing=missing,
        install_commands=_platform_install_commands() if missing else (),
    )


def require_ffmpeg() -> Path:
    """Return the ffmpeg path or raise :class:`FfmpegNotFoundError`."""
    status = detect_ffmpeg()
    if status.found and status.path is not None:
        return status.path
    hint_lines = ["Install ffmpeg using one of:"]
    hint_lines.extend(f"  {cmd}" for cmd in status.install_commands)
    raise FfmpegNotFoundError(
        f"ffmpeg is not installed or not on PATH ({status.summary}).",
        hint="\n".join(hint_lines),
    )


def _platform_install_commands() -> tuple[str, ...]:
    system = platform.system().lower()
    if system == "windows":
        return ("winget install Gyan.FFmpeg", "choco install ffmpeg")
    if system == "darwin":
        return ("brew install ffmpeg",)
    if system == "linux":
        return (
            "sudo apt install ffmpeg",
            "sudo dnf install ffmpeg",
            "sudo pacman -S ffmpeg",
        )
    return ("Download a build from https://ffmpeg.org/download.html",)

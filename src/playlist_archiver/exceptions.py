"""Custom exception hierarchy for playlist-archiver.

Everything that crosses a layer boundary derives from
:class:`PlaylistArchiverError`.  yt-dlp's own exceptions are caught in
the infrastructure layer and re-raised as one of the types below, so
the pipeline and the CLI only ever see this hierarchy.

Hierarchy
---------
PlaylistArchiverError
├── InvalidURLError
├── InvalidConfigError
├── ResolutionError
├── ManifestError
├── DownloadFailedError
└── EnvironmentError
    └── FfmpegNotFoundError
"""

from __future__ import annotations


class PlaylistArchiverError(Exception):
    """Base exception for all playlist-archiver errors.

    The CLI error boundary renders ``str(exc)`` and, when present,
    :attr:`hint` below it.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Input validation ------------------------------------------------------

class InvalidURLError(PlaylistArchiverError):
    """Raised when a playlist URL fails validation."""


class InvalidConfigError(PlaylistArchiverError):
    """Raised when run options or the config file hold invalid values."""


# --- Resolution / manifest -------------------------------------------------

class ResolutionError(PlaylistArchiverError):
    """Raised by a provider when playlist enumeration fails."""


class ManifestError(PlaylistArchiverError):
    """Raised when a manifest cannot be written or read back."""


# --- Download --------------------------------------------------------------

class DownloadFailedError(PlaylistArchiverError):
    """Raised when fetching a single item fails for any reason."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(PlaylistArchiverError):
    """Raised when a required runtime dependency is not available."""


class FfmpegNotFoundError(EnvironmentError):
    """Raised when ffmpeg cannot be located on the system PATH."""


def append_ytdlp_upgrade_suggestion(hint: str) -> str:
    """Append yt-dlp upgrade guidance to *hint*, at most once."""
    marker = "Also try updating yt-dlp:"
    if marker in hint:
        return hint
    return "\n".join(
        (
            hint,
            marker,
            "    pip install --upgrade yt-dlp",
        )
    )

"""Infrastructure layer — yt-dlp, the filesystem, and the OS.

Every raw third-party exception is caught here and re-raised as a
:class:`~playlist_archiver.exceptions.PlaylistArchiverError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Implements the protocols declared in ``core.protocols``.
"""

from playlist_archiver.infra.artifact_store import FilesystemArtifactStore
from playlist_archiver.infra.config_file import ConfigFileLoader, default_config_path
from playlist_archiver.infra.download_archive import DownloadArchive, archive_key
from playlist_archiver.infra.ffmpeg_detector import FfmpegStatus, detect_ffmpeg, require_ffmpeg
from playlist_archiver.infra.ytdlp_download_provider import YtDlpDownloadProvider
from playlist_archiver.infra.ytdlp_provider import YtDlpPlaylistProvider

__all__: list[str] = [
    "ConfigFileLoader",
    "DownloadArchive",
    "FfmpegStatus",
    "FilesystemArtifactStore",
    "YtDlpDownloadProvider",
    "YtDlpPlaylistProvider",
    "archive_key",
    "default_config_path",
    "detect_ffmpeg",
    "require_ffmpeg",
]

"""Domain models for playlist-archiver.

Value objects are frozen dataclasses.  The one exception is
:class:`PlaylistJob`, which the orchestrator owns and advances through
its states for the lifetime of a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from playlist_archiver.exceptions import InvalidConfigError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class MediaMode(str, Enum):
    """What to keep from each item."""

    AUDIO = "audio"
    VIDEO = "video"


class ManifestFormat(str, Enum):
    """On-disk encoding of a playlist manifest."""

    URLS = "urls"
    """One URL per line."""

    TITLE_URL = "title_url"
    """``title;url`` per line, semicolons in titles replaced by commas."""


class JobStatus(str, Enum):
    """Lifecycle of a :class:`PlaylistJob`."""

    PENDING = "pending"
    RESOLVING = "resolving"
    EXPORTING = "exporting"
    DOWNLOADING = "downloading"
    RETRYING_FAILURES = "retrying_failures"
    DONE = "done"
    FAILED = "failed"


AUDIO_FORMATS: tuple[str, ...] = ("mp3", "m4a", "opus")
VIDEO_CONTAINERS: tuple[str, ...] = ("mp4", "mkv")


# ---------------------------------------------------------------------------
# Run configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class RunConfig:
    """Every choice that shapes a run, fixed before the first job starts."""

    media_mode: MediaMode = MediaMode.AUDIO
    audio_format: str = "mp3"
    audio_quality: str = "0"
    """yt-dlp VBR quality, ``"0"`` (best) to ``"10"``, or a bitrate like ``"192K"``."""

    video_container: str = "mp4"
    restrict_filenames: bool = True
    """ASCII-only, underscore-separated file names when ``True``."""

    force_ipv4: bool = False
    retries: int = 5
    """Network retries yt-dlp performs inside a single fetch."""

    manifest_format: ManifestFormat = ManifestFormat.URLS
    concurrency: int = 0
    """Playlists processed at once; ``0`` means strictly sequential."""

    cookies_from_browser: str | None = None
    output_root: Path = field(default_factory=Path)
    max_attempts: int = 2
    """Fetch attempts per item per run: the main pass plus one retry."""

    def __post_init__(self) -> None:
        if self.audio_format not in AUDIO_FORMATS:
            raise InvalidConfigError(
                f"Unsupported audio format: {self.audio_format!r}",
                hint=f"Choose one of: {', '.join(AUDIO_FORMATS)}",
            )
        if self.video_container not in VIDEO_CONTAINERS:
            raise InvalidConfigError(
                f"Unsupported video container: {self.video_container!r}",
                hint=f"Choose one of: {', '.join(VIDEO_CONTAINERS)}",
            )
        if self.retries < 0:
            raise InvalidConfigError("Retry count must not be negative.")
        if self.concurrency < 0:
            raise InvalidConfigError(
                "Parallel playlist count must not be negative.",
                hint="Use 0 for sequential processing.",
            )
        if self.max_attempts < 1:
            raise InvalidConfigError("At least one fetch attempt is required.")
        if not self.audio_quality.strip():
            raise InvalidConfigError("Audio quality must not be empty.")

    @property
    def target_encode(self) -> str:
        """Audio codec in audio mode, container in video mode."""
        if self.media_mode is MediaMode.AUDIO:
            return self.audio_format
        return self.video_container


# ---------------------------------------------------------------------------
# Playlist contents
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class PlaylistItem:
    """One entry of a resolved playlist."""

    url: str
    """Canonical item URL, unique within its manifest."""

    title: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedPlaylist:
    """Result of resolving a playlist URL."""

    title: str
    items: tuple[PlaylistItem, ...]

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return len(self.items) > 0


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ArtifactPaths:
    """All files belonging to one playlist, named after its safe name."""

    output_dir: Path
    manifest: Path
    archive: Path
    failure_log: Path
    retry_log: Path

    @classmethod
    def for_safe_name(cls, root: Path, safe_name: str) -> ArtifactPaths:
        failure_log = root / f"{safe_name}_failed.log"
        return cls(
            output_dir=root / safe_name,
            manifest=root / f"{safe_name}.txt",
            archive=root / f"{safe_name}.archive",
            failure_log=failure_log,
            retry_log=failure_log.with_name(f"{failure_log.name}.retry.log"),
        )


# ---------------------------------------------------------------------------
# Fetch profile
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FetchOptions:
    """Option profile for fetching one item, derived from :class:`RunConfig`."""

    format_spec: str
    media_mode: MediaMode
    target_encode: str
    audio_quality: str
    archive_path: Path
    output_template: str
    retries: int
    restrict_filenames: bool
    force_ipv4: bool
    cookies_from_browser: str | None
    no_overwrites: bool = True
    continue_partial: bool = True


# ---------------------------------------------------------------------------
# Jobs and run results
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class PlaylistJob:
    """Mutable per-playlist state, owned by the orchestrator."""

    url: str
    title: str = ""
    safe_name: str = ""
    status: JobStatus = JobStatus.PENDING
    paths: ArtifactPaths | None = None
    items: tuple[PlaylistItem, ...] = ()
    failed: tuple[str, ...] = ()
    """URLs that failed the main pass."""

    persistent_failures: tuple[str, ...] = ()
    """URLs still failing after the last pass."""

    archived_count: int = 0

    @property
    def finished(self) -> bool:
        return self.status in (JobStatus.DONE, JobStatus.FAILED)


@dataclass(frozen=True, slots=True)
class PassOutcome:
    """What one pass of :func:`~playlist_archiver.core.retry.run_with_attempts` did."""

    attempt: int
    attempted: tuple[str, ...]
    failed: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Final state of every job in a run, in input order."""

    jobs: tuple[PlaylistJob, ...]

    @property
    def total_items(self) -> int:
        return sum(len(job.items) for job in self.jobs)

    @property
    def failed_jobs(self) -> tuple[PlaylistJob, ...]:
        return tuple(job for job in self.jobs if job.status is JobStatus.FAILED)

    @property
    def persistent_failures(self) -> tuple[str, ...]:
        return tuple(url for job in self.jobs for url in job.persistent_failures)

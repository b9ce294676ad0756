"""Protocols (interfaces) consumed by the core layer.

Core code depends only on these contracts, never on the yt-dlp or
filesystem implementations in ``infra``, so tests can swap in fakes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, Protocol

from playlist_archiver.core.models import (
    FetchOptions,
    ManifestFormat,
    PlaylistItem,
    PlaylistJob,
)


class PlaylistProvider(Protocol):
    """Contract for flat playlist enumeration backends."""

    def fetch_playlist(
        self,
        url: str,
        *,
        playlist_end: int | None = None,
        cookies_from_browser: str | None = None,
    ) -> dict[str, Any]:
        """Return the flat (metadata-only) info dict for the playlist at *url*.

        The dict carries playlist-level fields (``title``, ``id``,
        ``uploader``) and an ``entries`` iterable of per-item dicts with
        at least ``url`` or ``webpage_url``.  With *playlist_end* set,
        enumeration stops after that many entries.

        Raises
        ------
        ResolutionError
            When the backend cannot enumerate the playlist.
        """
        ...  # pragma: no cover


class DownloadProvider(Protocol):
    """Contract for single-item fetch backends."""

    def download(
        self,
        url: str,
        options: FetchOptions,
        *,
        progress_callback: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        """Fetch and transcode *url* according to *options*.

        Items already recorded in ``options.archive_path`` are skipped by
        the backend and count as success.  On success the backend appends
        the item's key to that archive.

        Raises
        ------
        DownloadFailedError
            When the fetch fails for any reason.
        """
        ...  # pragma: no cover


class ArtifactStore(Protocol):
    """Contract for the per-playlist files the orchestrator maintains."""

    def ensure_dir(self, path: Path) -> None: ...  # pragma: no cover

    def write_manifest(
        self, items: Iterable[PlaylistItem], fmt: ManifestFormat, path: Path,
    ) -> None: ...  # pragma: no cover

    def read_manifest(
        self, path: Path, fmt: ManifestFormat,
    ) -> tuple[PlaylistItem, ...]: ...  # pragma: no cover

    def append_line(self, path: Path, line: str) -> None: ...  # pragma: no cover

    def truncate(self, path: Path) -> None: ...  # pragma: no cover

    def remove(self, *paths: Path) -> None: ...  # pragma: no cover

    def count_archive(self, path: Path) -> int: ...  # pragma: no cover


class PipelineListener(Protocol):
    """Observer for pipeline progress.

    Callbacks may arrive from worker threads when playlists run in
    parallel; implementations must be thread-safe.
    """

    def on_status(self, job: PlaylistJob) -> None: ...  # pragma: no cover

    def on_items_resolved(self, job: PlaylistJob, total: int) -> None: ...  # pragma: no cover

    def on_item_finished(
        self, job: PlaylistJob, url: str, *, attempt: int, ok: bool,
    ) -> None: ...  # pragma: no cover

"""Core / service layer — pipeline logic and data transformations.

Rules
-----
* No ``print()`` calls.
* No yt-dlp imports and no direct filesystem access; both sit behind
  the protocols in :mod:`playlist_archiver.core.protocols`.
* No imports from ``cli`` or ``infra``.
"""

from playlist_archiver.core.download_service import ItemFetcher
from playlist_archiver.core.models import (
    ArtifactPaths,
    FetchOptions,
    JobStatus,
    ManifestFormat,
    MediaMode,
    PlaylistItem,
    PlaylistJob,
    ResolvedPlaylist,
    RunConfig,
    RunSummary,
)
from playlist_archiver.core.pipeline import PipelineOrchestrator
from playlist_archiver.core.protocols import (
    ArtifactStore,
    DownloadProvider,
    PipelineListener,
    PlaylistProvider,
)
from playlist_archiver.core.resolver_service import PlaylistResolver

__all__: list[str] = [
    "ArtifactPaths",
    "ArtifactStore",
    "DownloadProvider",
    "FetchOptions",
    "ItemFetcher",
    "JobStatus",
    "ManifestFormat",
    "MediaMode",
    "PipelineListener",
    "PipelineOrchestrator",
    "PlaylistItem",
    "PlaylistJob",
    "PlaylistProvider",
    "PlaylistResolver",
    "ResolvedPlaylist",
    "RunConfig",
    "RunSummary",
]

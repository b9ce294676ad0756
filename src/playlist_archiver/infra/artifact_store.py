"""Filesystem implementation of :class:`~playlist_archiver.core.protocols.ArtifactStore`.

Owns every read and write of the per-playlist files except the download
archive, which yt-dlp appends to itself.  ``OSError`` raised while
handling manifests is re-raised as
:class:`~playlist_archiver.exceptions.ManifestError`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from playlist_archiver.core.manifest import encode_manifest, parse_manifest
from playlist_archiver.core.models import ManifestFormat, PlaylistItem
from playlist_archiver.exceptions import ManifestError
from playlist_archiver.infra.download_archive import DownloadArchive

log = logging.getLogger(__name__)


class FilesystemArtifactStore:
    """Plain UTF-8 text files on the local filesystem."""

    def ensure_dir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------

    def write_manifest(
        self,
        items: Iterable[PlaylistItem],
        fmt: ManifestFormat,
        path: Path,
    ) -> None:
        """Overwrite *path* with *items*; never merges with an old manifest."""
        lines = encode_manifest(items, fmt)
        body = "".join(f"{line}\n" for line in lines)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(body, encoding="utf-8")
        except OSError as exc:
            raise ManifestError(f"Could not write manifest {path}: {exc}") from exc
        log.debug("Wrote %d manifest lines to %s", len(lines), path)

    def read_manifest(
        self,
        path: Path,
        fmt: ManifestFormat,
    ) -> tuple[PlaylistItem, ...]:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ManifestError(f"Could not read manifest {path}: {exc}") from exc
        # Only "\n" ends a manifest line; titles may hold other separators.
        return parse_manifest(text.split("\n"), fmt)

    # ------------------------------------------------------------------
    # Line logs
    # ------------------------------------------------------------------

    def append_line(self, path: Path, line: str) -> None:
        with path.open("a", encoding="utf-8") as fh:
            fh.write(f"{line}\n")

    def truncate(self, path: Path) -> None:
        path.write_text("", encoding="utf-8")

    def remove(self, *paths: Path) -> None:
        for path in paths:
            path.unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Archive
    # ------------------------------------------------------------------

    def count_archive(self, path: Path) -> int:
        return len(DownloadArchive(path))

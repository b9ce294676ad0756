"""Read-only view of a yt-dlp download archive file.

yt-dlp appends one ``"<extractor> <id>"`` line per item it has fetched
(option ``download_archive``) and skips any item already listed.  This
module never writes the file; it only reads it back for accounting.
"""

from __future__ import annotations

from pathlib import Path


def archive_key(extractor: str, video_id: str) -> str:
    """Return the line yt-dlp records for *video_id* (e.g. ``youtube abc123``)."""
    return f"{extractor.lower()} {video_id}"


class DownloadArchive:
    """Keys recorded in the archive at *path*.

    A missing file is an empty archive.  The file is re-read on every
    query, so the view follows appends made while a job runs.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def keys(self) -> list[str]:
        """Recorded keys in file order, blank lines dropped."""
        if not self.exists():
            return []
        text = self.path.read_text(encoding="utf-8", errors="replace")
        return [line.strip() for line in text.splitlines() if line.strip()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.strip() in set(self.keys())

    def __len__(self) -> int:
        return len(set(self.keys()))

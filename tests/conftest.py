"""Shared pytest fixtures for the playlist-archiver test suite.

Guidelines
----------
* No internet access in any test.
* yt-dlp is mocked at the infra boundary; pipeline tests use the fake
  providers below.
* Artifacts go to ``tmp_path`` only.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from playlist_archiver.core.models import FetchOptions
from playlist_archiver.exceptions import DownloadFailedError, ResolutionError
from playlist_archiver.infra.download_archive import DownloadArchive, archive_key

WATCH_URL = "https://www.youtube.com/watch?v="


def video_url(video_id: str) -> str:
    return f"{WATCH_URL}{video_id}"


def playlist_info(
    title: str | None,
    video_ids: list[str],
    *,
    uploader: str | None = "Some Uploader",
    playlist_id: str | None = "PL123",
) -> dict[str, Any]:
    """Flat info dict shaped like yt-dlp's ``extract_flat`` output."""
    return {
        "_type": "playlist",
        "id": playlist_id,
        "title": title,
        "uploader": uploader,
        "entries": [
            {
                "_type": "url",
                "ie_key": "Youtube",
                "id": vid,
                "url": video_url(vid),
                "title": f"Track {vid}",
            }
            for vid in video_ids
        ],
    }


class FakePlaylistProvider:
    """In-memory :class:`PlaylistProvider` keyed by playlist URL."""

    def __init__(
        self,
        playlists: dict[str, dict[str, Any] | Exception],
        *,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.playlists = playlists
        self.delays = dict(delays or {})
        self.calls: list[tuple[str, int | None, str | None]] = []

    def fetch_playlist(
        self,
        url: str,
        *,
        playlist_end: int | None = None,
        cookies_from_browser: str | None = None,
    ) -> dict[str, Any]:
        self.calls.append((url, playlist_end, cookies_from_browser))
        if url in self.delays:
            time.sleep(self.delays[url])
        result = self.playlists.get(url)
        if result is None:
            raise ResolutionError(f"unknown playlist {url}")
        if isinstance(result, Exception):
            raise result
        info = dict(result)
        entries = list(info.get("entries") or [])
        info["entries"] = entries[:playlist_end] if playlist_end else entries
        return info


class FakeDownloadProvider:
    """Archive-aware :class:`DownloadProvider` that never touches the network.

    Behaves like yt-dlp with ``download_archive``: an item whose key is
    already in the archive is skipped without any download work; a
    successful download appends the key.  ``fail_times`` makes a URL
    fail that many times before succeeding.  With a ``gate`` barrier the
    first ``gate.parties`` calls block until they are all in flight.
    """

    def __init__(
        self,
        fail_times: dict[str, int] | None = None,
        *,
        delay: float = 0.0,
        gate: threading.Barrier | None = None,
    ) -> None:
        self.fail_times = dict(fail_times or {})
        self.delay = delay
        self.gate = gate
        self._gated = 0
        self.calls: list[str] = []
        self.downloads: list[str] = []
        self.options: list[FetchOptions] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def download(
        self,
        url: str,
        options: FetchOptions,
        *,
        progress_callback: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        with self._lock:
            self.calls.append(url)
            self.options.append(options)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            gated = self.gate is not None and self._gated < self.gate.parties
            if gated:
                self._gated += 1
        try:
            if gated:
                self.gate.wait(timeout=5)  # type: ignore[union-attr]
            if self.delay:
                time.sleep(self.delay)
            key = archive_key("youtube", url.rsplit("=", 1)[-1])
            if key in DownloadArchive(options.archive_path):
                return
            with self._lock:
                remaining = self.fail_times.get(url, 0)
                if remaining:
                    self.fail_times[url] = remaining - 1
            if remaining:
                raise DownloadFailedError(f"simulated failure for {url}")
            with self._lock:
                self.downloads.append(url)
            with Path(options.archive_path).open("a", encoding="utf-8") as fh:
                fh.write(f"{key}\n")
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture()
def make_playlist_provider() -> Callable[..., FakePlaylistProvider]:
    return FakePlaylistProvider


@pytest.fixture()
def make_download_provider() -> Callable[..., FakeDownloadProvider]:
    return FakeDownloadProvider

"""Core playlist resolver — turns a playlist URL into a title and items.

Depends on a :class:`~playlist_archiver.core.protocols.PlaylistProvider`
injected at construction time, keeping the core free of yt-dlp imports.

Guarantees
----------
* No filesystem access.
* Enumeration failures never raise: they yield an empty item list.
* Only :class:`~playlist_archiver.exceptions.PlaylistArchiverError`
  subclasses escape, and only for malformed input URLs.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from playlist_archiver.core.manifest import dedupe_items
from playlist_archiver.core.models import PlaylistItem, ResolvedPlaylist
from playlist_archiver.core.protocols import PlaylistProvider
from playlist_archiver.exceptions import InvalidURLError, PlaylistArchiverError

log = logging.getLogger(__name__)

NOT_AVAILABLE: str = "NA"
"""Placeholder yt-dlp prints for fields the extractor did not provide."""

FALLBACK_TITLE_PREFIX: str = "playlist_"

YOUTUBE_WATCH_URL: str = "https://www.youtube.com/watch?v="


def validate_url(url: str) -> str:
    """Return *url* stripped, or raise :class:`InvalidURLError`."""
    stripped = url.strip()
    if not stripped:
        raise InvalidURLError("Playlist URL must not be empty.")
    if not stripped.startswith(("http://", "https://")):
        raise InvalidURLError(
            f"Invalid playlist URL: {stripped}",
            hint="URL must start with http:// or https://",
        )
    return stripped


def _field(record: dict[str, Any], *keys: str) -> str:
    """First non-empty, non-placeholder string among *keys* in *record*."""
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text and text != NOT_AVAILABLE:
            return text
    return ""


class PlaylistResolver:
    """Resolve playlists through a :class:`PlaylistProvider`.

    Parameters
    ----------
    provider:
        Any object satisfying the :class:`PlaylistProvider` protocol.
    clock:
        Source of Unix time for synthesized titles.
    """

    def __init__(
        self,
        provider: PlaylistProvider,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._provider: PlaylistProvider = provider
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(
        self,
        url: str,
        *,
        cookies_from_browser: str | None = None,
    ) -> ResolvedPlaylist:
        """Resolve *url* to its display title and de-duplicated items.

        Raises
        ------
        InvalidURLError
            If *url* is empty or not an HTTP(S) URL.
        """
        url = validate_url(url)
        title = self.resolve_title(url, cookies_from_browser=cookies_from_browser)
        items = self.enumerate_items(url, cookies_from_browser=cookies_from_browser)
        return ResolvedPlaylist(title=title, items=items)

    def resolve_title(
        self,
        url: str,
        *,
        cookies_from_browser: str | None = None,
    ) -> str:
        """Playlist title, then ``uploader_id``, then ``playlist_<time>``.

        Only the first entry is enumerated, so this stays cheap on long
        playlists.
        """
        info = self._fetch(url, playlist_end=1, cookies_from_browser=cookies_from_browser)
        if info is not None:
            title = _field(info, "title", "playlist_title")
            if title:
                return title

            parts = [
                _field(info, "uploader", "channel", "uploader_id"),
                _field(info, "id", "playlist_id"),
            ]
            fallback = "_".join(part for part in parts if part)
            if fallback:
                log.debug("No playlist title for %s, using %s", url, fallback)
                return fallback

        synthesized = f"{FALLBACK_TITLE_PREFIX}{int(self._clock())}"
        log.debug("No title metadata for %s, using %s", url, synthesized)
        return synthesized

    def enumerate_items(
        self,
        url: str,
        *,
        cookies_from_browser: str | None = None,
    ) -> tuple[PlaylistItem, ...]:
        """Flat-enumerate *url*; an empty tuple when enumeration fails."""
        info = self._fetch(url, cookies_from_browser=cookies_from_browser)
        if info is None:
            return ()
        entries = info.get("entries")
        if not entries and info.get("_type") != "playlist":
            # A single-video URL resolves to the video itself.
            single = self._entry_url(info)
            if single:
                return (PlaylistItem(url=single, title=_field(info, "title") or None),)
        items = dedupe_items(self._parse_entries(entries))
        if not items:
            log.warning("Playlist %s returned no entries.", url)
        return items

    # ------------------------------------------------------------------
    # Provider delegation (safe boundary)
    # ------------------------------------------------------------------

    def _fetch(
        self,
        url: str,
        *,
        playlist_end: int | None = None,
        cookies_from_browser: str | None = None,
    ) -> dict[str, Any] | None:
        """Call the provider; ``None`` means the enumeration failed."""
        try:
            info = self._provider.fetch_playlist(
                url,
                playlist_end=playlist_end,
                cookies_from_browser=cookies_from_browser,
            )
        except PlaylistArchiverError as exc:
            log.warning("Could not enumerate %s: %s", url, exc)
            return None
        except Exception as exc:  # noqa: BLE001
            log.warning("Unexpected provider error for %s: %s", url, exc)
            return None
        if not info:
            log.warning("Enumeration of %s returned nothing.", url)
            return None
        return info

    # ------------------------------------------------------------------
    # Raw-dict → domain-model parsers (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_entries(raw: object) -> Iterable[PlaylistItem]:
        """Yield items for every entry that carries a usable URL."""
        if raw is None or isinstance(raw, (str, bytes, dict)):
            return
        for entry in raw:  # type: ignore[attr-defined]
            if not isinstance(entry, dict):
                continue
            item_url = PlaylistResolver._entry_url(entry)
            if not item_url:
                continue
            title = _field(entry, "title") or None
            yield PlaylistItem(url=item_url, title=title)

    @staticmethod
    def _entry_url(entry: dict[str, Any]) -> str:
        """Canonical URL of a flat entry, or ``""``."""
        candidate = _field(entry, "webpage_url", "url")
        if not candidate:
            return ""
        if candidate.startswith(("http://", "https://")):
            return candidate
        # Some extractors hand back a bare video id in flat mode.
        if str(entry.get("ie_key") or "").lower() == "youtube":
            return f"{YOUTUBE_WATCH_URL}{candidate}"
        return ""

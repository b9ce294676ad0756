"""yt-dlp backed implementation of :class:`~playlist_archiver.core.protocols.PlaylistProvider`.

Enumerates playlists in flat mode: entry metadata only, no per-item
network probe.  yt-dlp exceptions are caught here and re-raised as
:class:`~playlist_archiver.exceptions.ResolutionError`.
"""

from __future__ import annotations

from typing import Any

from playlist_archiver.exceptions import (
    EnvironmentError,
    ResolutionError,
    append_ytdlp_upgrade_suggestion,
)


def import_yt_dlp() -> Any:
    """Import and return the ``yt_dlp`` module, or raise ``EnvironmentError``."""
    try:
        import yt_dlp
        import yt_dlp.utils
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "yt-dlp is not installed. Install with: pip install yt-dlp",
        ) from exc
    return yt_dlp


class YtDlpPlaylistProvider:
    """Concrete :class:`PlaylistProvider` backed by the yt-dlp Python API.

    Usage::

        provider = YtDlpPlaylistProvider()
        info = provider.fetch_playlist("https://www.youtube.com/playlist?list=...")
    """

    @staticmethod
    def _build_opts(
        *,
        playlist_end: int | None = None,
        cookies_from_browser: str | None = None,
    ) -> dict[str, Any]:
        """Return yt-dlp options for flat, metadata-only enumeration."""
        opts: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "no_color": True,
            "skip_download": True,
            "extract_flat": "in_playlist",
            # Keep going past private/deleted entries.
            "ignoreerrors": True,
        }
        if playlist_end is not None:
            opts["playlistend"] = playlist_end
        if cookies_from_browser:
            opts["cookiesfrombrowser"] = (cookies_from_browser,)
        return opts

    # ------------------------------------------------------------------
    # Protocol method
    # ------------------------------------------------------------------

    def fetch_playlist(
        self,
        url: str,
        *,
        playlist_end: int | None = None,
        cookies_from_browser: str | None = None,
    ) -> dict[str, Any]:
        """Flat-extract *url* without downloading anything.

        The ``entries`` value of the returned dict is materialized into
        a list.

        Raises
        ------
        ResolutionError
            When yt-dlp fails or returns no usable data.
        """
        opts = self._build_opts(
            playlist_end=playlist_end,
            cookies_from_browser=cookies_from_browser,
        )
        yt_dlp = import_yt_dlp()

        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info: Any = ydl.extract_info(url, download=False)
                if isinstance(info, dict):
                    info = dict(info)
                    info["entries"] = list(info.get("entries") or [])
        except yt_dlp.utils.DownloadError as exc:
            raise ResolutionError(
                str(exc),
                hint=append_ytdlp_upgrade_suggestion(
                    "Check that the playlist exists and is not private.",
                ),
            ) from exc
        except Exception as exc:
            raise ResolutionError(f"Unexpected yt-dlp error: {exc}") from exc

        if info is None:
            raise ResolutionError(
                "yt-dlp returned no metadata for the given URL.",
                hint="The URL may not point to a playlist.",
            )
        if not isinstance(info, dict):
            raise ResolutionError("yt-dlp returned an unexpected data structure.")
        return info

"""yt-dlp backed implementation of :class:`~playlist_archiver.core.protocols.DownloadProvider`.

Translates :class:`~playlist_archiver.core.models.FetchOptions` into a
``YoutubeDL`` options dict and runs one item.  yt-dlp itself skips and
records items through the download archive.  Every yt-dlp failure is
re-raised as :class:`~playlist_archiver.exceptions.DownloadFailedError`.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from playlist_archiver.core.models import FetchOptions, MediaMode
from playlist_archiver.exceptions import DownloadFailedError, append_ytdlp_upgrade_suggestion
from playlist_archiver.infra.ytdlp_provider import import_yt_dlp

IPV4_SOURCE_ADDRESS: str = "0.0.0.0"


class YtDlpDownloadProvider:
    """Concrete :class:`DownloadProvider` backed by the yt-dlp Python API."""

    @staticmethod
    def _build_opts(
        options: FetchOptions,
        *,
        progress_callback: Callable[[dict[str, Any]], None] | None = None,
    ) -> dict[str, Any]:
        """Return the ``YoutubeDL`` options for *options*."""
        hooks: list[Callable[[dict[str, Any]], None]] = []
        if progress_callback is not None:
            hooks.append(progress_callback)

        opts: dict[str, Any] = {
            "format": options.format_spec,
            "outtmpl": options.output_template,
            "download_archive": str(options.archive_path),
            "nooverwrites": options.no_overwrites,
            "continuedl": options.continue_partial,
            "retries": options.retries,
            "restrictfilenames": options.restrict_filenames,
            "noplaylist": True,
            "quiet": True,
            "no_warnings": True,
            "no_color": True,
            "progress_hooks": hooks,
        }

        if options.media_mode is MediaMode.AUDIO:
            opts["postprocessors"] = [
                {
                    "key": "FFmpegExtractAudio",
                    "preferredcodec": options.target_encode,
                    "preferredquality": options.audio_quality,
                },
            ]
        else:
            opts["merge_output_format"] = options.target_encode

        if options.force_ipv4:
            opts["source_address"] = IPV4_SOURCE_ADDRESS
        if options.cookies_from_browser:
            opts["cookiesfrombrowser"] = (options.cookies_from_browser,)
        return opts

    # ------------------------------------------------------------------
    # Protocol method
    # ------------------------------------------------------------------

    def download(
        self,
        url: str,
        options: FetchOptions,
        *,
        progress_callback: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        """Fetch *url*.

        Raises
        ------
        DownloadFailedError
            For any yt-dlp error, including a non-zero return code.
        """
        opts = self._build_opts(options, progress_callback=progress_callback)
        yt_dlp = import_yt_dlp()

        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                retcode = ydl.download([url])
        except yt_dlp.utils.DownloadError as exc:
            raise DownloadFailedError(
                str(exc),
                hint=append_ytdlp_upgrade_suggestion(
                    "Check the URL, your network, or browser cookies.",
                ),
            ) from exc
        except Exception as exc:
            raise DownloadFailedError(
                f"Unexpected yt-dlp download error: {exc}",
            ) from exc

        if retcode:
            raise DownloadFailedError(f"yt-dlp exited with status {retcode} for {url}")

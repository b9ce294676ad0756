"""Core item fetcher — downloads one playlist item.

Builds the fixed option profile from the :class:`RunConfig` and hands
it to a :class:`~playlist_archiver.core.protocols.DownloadProvider`.
Why a fetch failed (network, geo-block, age gate, deleted video) is not
interpreted here: every failure is reported the same way, as ``False``.

Guarantees
----------
* No filesystem access, no yt-dlp import.
* :meth:`ItemFetcher.fetch` never raises for a failed item.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from playlist_archiver.core.models import FetchOptions, MediaMode, RunConfig
from playlist_archiver.core.protocols import DownloadProvider
from playlist_archiver.exceptions import PlaylistArchiverError

log = logging.getLogger(__name__)

AUDIO_FORMAT_SPEC: str = "bestaudio/best"
VIDEO_FORMAT_SPEC: str = "bestvideo*+bestaudio/best"
OUTPUT_NAME_TEMPLATE: str = "%(title)s.%(ext)s"


class ItemFetcher:
    """Fetch single items with a config-derived option profile.

    Parameters
    ----------
    provider:
        Any object satisfying the :class:`DownloadProvider` protocol.
    config:
        The run's immutable configuration.
    """

    def __init__(self, provider: DownloadProvider, config: RunConfig) -> None:
        self._provider: DownloadProvider = provider
        self._config: RunConfig = config

    # ------------------------------------------------------------------
    # Option profile (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def build_format_spec(config: RunConfig) -> str:
        """Best audio alone, or best video merged with best audio."""
        if config.media_mode is MediaMode.AUDIO:
            return AUDIO_FORMAT_SPEC
        return VIDEO_FORMAT_SPEC

    @classmethod
    def build_options(
        cls,
        config: RunConfig,
        output_dir: Path,
        archive_path: Path,
    ) -> FetchOptions:
        """Derive the per-item option profile."""
        return FetchOptions(
            format_spec=cls.build_format_spec(config),
            media_mode=config.media_mode,
            target_encode=config.target_encode,
            audio_quality=config.audio_quality,
            archive_path=archive_path,
            output_template=str(output_dir / OUTPUT_NAME_TEMPLATE),
            retries=config.retries,
            restrict_filenames=config.restrict_filenames,
            force_ipv4=config.force_ipv4,
            cookies_from_browser=config.cookies_from_browser,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fetch(
        self,
        url: str,
        output_dir: Path,
        archive_path: Path,
        *,
        progress_callback: Callable[[dict[str, Any]], None] | None = None,
    ) -> bool:
        """Fetch *url* into *output_dir*; ``True`` on success.

        Items already listed in *archive_path* are skipped by the
        provider and count as success.
        """
        options = self.build_options(self._config, output_dir, archive_path)
        try:
            self._provider.download(url, options, progress_callback=progress_callback)
        except PlaylistArchiverError as exc:
            log.warning("Failed: %s (%s)", url, exc)
            return False
        except Exception:  # noqa: BLE001
            log.exception("Unexpected download error for %s", url)
            return False
        return True

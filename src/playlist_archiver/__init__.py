"""playlist-archiver — batch playlist downloader with resumable archives.

Resolves playlists to manifests, fetches every item through the yt-dlp
Python API and keeps per-playlist download archives so reruns only
fetch what is missing.
"""

from playlist_archiver.version import __version__

__all__: list[str] = ["__version__"]

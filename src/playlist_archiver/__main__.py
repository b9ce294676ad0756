"""Allow ``python -m playlist_archiver`` invocation.

Delegates to the same error-boundary entry point as the
``playlist-archiver`` console script.
"""

from __future__ import annotations

from playlist_archiver.cli.app import cli

if __name__ == "__main__":
    cli()

"""Shared utilities — pure helpers usable from every layer.

Rules
-----
* No business logic.
* No I/O.
* Importable by any layer.
"""

from playlist_archiver.utils.naming import fallback_name, safe_name_for, sanitize_name

__all__: list[str] = ["fallback_name", "safe_name_for", "sanitize_name"]

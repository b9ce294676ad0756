"""Manifest line codec.

A manifest is the per-playlist list of resolved items, one per line,
in one of two encodings:

* ``urls`` — the bare item URL.
* ``title_url`` — ``title;url``.  Semicolons inside titles become
  commas and line breaks become spaces, so splitting a line on its
  first ``;`` always yields exactly the two fields.

Pure functions only; reading and writing files is the job of
:mod:`playlist_archiver.infra.artifact_store`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from playlist_archiver.core.models import ManifestFormat, PlaylistItem

FIELD_SEPARATOR: str = ";"

# Everything str.splitlines() treats as a line boundary.
_LINE_BREAKS = re.compile(r"[\r\n\x0b\x0c\x1c\x1d\x1e\x85\u2028\u2029]+")

_URL_SCHEMES: tuple[str, ...] = ("http://", "https://")


def neutralize_title(title: str | None) -> str:
    """Make *title* safe for the ``title;url`` field layout."""
    if not title:
        return ""
    flattened = _LINE_BREAKS.sub(" ", title)
    return flattened.replace(FIELD_SEPARATOR, ",").strip()


def dedupe_items(items: Iterable[PlaylistItem]) -> tuple[PlaylistItem, ...]:
    """Drop repeated URLs, keeping the first occurrence and its order."""
    seen: set[str] = set()
    unique: list[PlaylistItem] = []
    for item in items:
        if item.url in seen:
            continue
        seen.add(item.url)
        unique.append(item)
    return tuple(unique)


def encode_manifest(
    items: Iterable[PlaylistItem],
    fmt: ManifestFormat,
) -> list[str]:
    """Render *items* as manifest lines (without trailing newlines)."""
    if fmt is ManifestFormat.URLS:
        return [item.url for item in items]
    return [
        f"{neutralize_title(item.title)}{FIELD_SEPARATOR}{item.url}"
        for item in items
    ]


def parse_manifest(
    lines: Iterable[str],
    fmt: ManifestFormat,
) -> tuple[PlaylistItem, ...]:
    """Parse manifest *lines* back into items.

    Blank lines and lines without a URL are skipped.  Repeated URLs are
    collapsed so a hand-edited manifest cannot queue an item twice.
    """
    items: list[PlaylistItem] = []
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if fmt is ManifestFormat.URLS:
            items.append(PlaylistItem(url=line))
            continue
        title, sep, url = line.partition(FIELD_SEPARATOR)
        if not sep:
            # A bare URL line is tolerated in title;url manifests.
            if not title.startswith(_URL_SCHEMES):
                continue
            title, url = "", title
        url = url.strip()
        if not url:
            continue
        items.append(PlaylistItem(url=url, title=title.strip() or None))
    return dedupe_items(items)

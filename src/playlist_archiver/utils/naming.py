"""Filesystem-safe names derived from playlist titles.

A safe name is the namespace for every artifact of one playlist job
(folder, manifest, archive, failure logs), so it must be stable for a
given title across runs and contain nothing a shell or filesystem
would trip over.
"""

from __future__ import annotations

import itertools
import re
import threading
import time
from collections.abc import Callable

SEPARATOR: str = "_"
"""The only non-alphanumeric character a safe name may contain."""

DEFAULT_PREFIX: str = "playlist"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

_fallback_counter = itertools.count(1)
_fallback_lock = threading.Lock()


def sanitize_name(title: str) -> str:
    """Map *title* to a lowercase ``[a-z0-9_]`` token.

    Runs of anything else collapse to a single ``_`` and the ends are
    trimmed.  Returns ``""`` when nothing alphanumeric survives; callers
    then use :func:`fallback_name`.  Idempotent.

    >>> sanitize_name("  Lo-Fi Beats: Vol. 2!! ")
    'lo_fi_beats_vol_2'
    """
    lowered = title.lower()
    collapsed = _NON_ALNUM.sub(SEPARATOR, lowered)
    return collapsed.strip(SEPARATOR)


def fallback_name(
    prefix: str = DEFAULT_PREFIX,
    *,
    clock: Callable[[], float] = time.time,
) -> str:
    """Return ``<prefix>_<unix-seconds>_<n>`` for an unusable title.

    ``n`` is a process-wide counter, so two fallbacks generated within
    the same second still differ.
    """
    with _fallback_lock:
        sequence = next(_fallback_counter)
    stem = sanitize_name(prefix) or DEFAULT_PREFIX
    return f"{stem}{SEPARATOR}{int(clock())}{SEPARATOR}{sequence}"


def safe_name_for(
    title: str,
    *,
    prefix: str = DEFAULT_PREFIX,
    clock: Callable[[], float] = time.time,
) -> str:
    """Sanitize *title*, substituting a fallback when the result is empty."""
    return sanitize_name(title) or fallback_name(prefix, clock=clock)

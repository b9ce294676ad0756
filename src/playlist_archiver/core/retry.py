"""Bounded-attempt retry over an ordered batch.

The first pass runs the action on every item; each further pass runs
only on what failed in the pass before it, in the same order.  Passes
stop as soon as nothing is left to retry.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from playlist_archiver.core.models import PassOutcome


def run_with_attempts(
    items: Sequence[str],
    action: Callable[[str, int], bool],
    *,
    attempts: int,
    before_pass: Callable[[int, tuple[str, ...]], None] | None = None,
    on_failure: Callable[[str, int], None] | None = None,
) -> list[PassOutcome]:
    """Run *action* over *items* for up to *attempts* passes.

    Parameters
    ----------
    items:
        Keys to process, in processing order.
    action:
        Called as ``action(item, attempt)``; returns ``True`` on success.
    attempts:
        Maximum number of passes, at least 1.
    before_pass:
        Called with ``(attempt, pending)`` right before a pass starts.
    on_failure:
        Called with ``(item, attempt)`` as soon as an item fails.

    Returns
    -------
    list[PassOutcome]
        One entry per pass that actually ran.  The last entry's
        ``failed`` holds the items that never succeeded.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    outcomes: list[PassOutcome] = []
    pending = tuple(items)
    for attempt in range(1, attempts + 1):
        if not pending:
            break
        if before_pass is not None:
            before_pass(attempt, pending)

        failed: list[str] = []
        for item in pending:
            if action(item, attempt):
                continue
            failed.append(item)
            if on_failure is not None:
                on_failure(item, attempt)

        outcomes.append(
            PassOutcome(attempt=attempt, attempted=pending, failed=tuple(failed)),
        )
        pending = tuple(failed)
    return outcomes

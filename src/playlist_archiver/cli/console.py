"""Shared Rich console and logging setup for the CLI layer.

Log records from every layer go through one :class:`RichHandler` bound
to the same stderr console the progress display and tables use, so
log lines and live progress never tear each other.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER: str = "playlist_archiver"

console = Console(stderr=True)


def configure_logging(*, verbose: bool = False) -> None:
    """Route the package's loggers through Rich.

    INFO by default, DEBUG with *verbose*.  Calling this again replaces
    the handler instead of stacking a second one.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_path=verbose,
        show_level=True,
        markup=False,
        log_time_format="[%X]",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

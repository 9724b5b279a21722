"""Logging setup for the CLI.

Library modules only call ``logging.getLogger(__name__)``; the CLI decides
where records go. Diagnostic traces (credential rounds, fetches, stash/merge
steps) are DEBUG and appear with ``--verbose``.
"""

from __future__ import annotations

import logging

__all__ = ["configure_logging"]


def configure_logging(verbose: bool = False) -> None:
    """Route ``gitup`` loggers to stderr through Rich."""
    from rich.console import Console
    from rich.logging import RichHandler

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger("gitup")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False

"""Logging configuration for n8nctl."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False) -> None:
    """Route ``n8nctl.*`` log records to stderr through Rich.

    Library modules only ever log; this is called once by the CLI.

    Args:
        verbose: If True, show request/retry/fallback debug records with
                 timestamps. Otherwise only warnings and above.
    """
    logger = logging.getLogger("n8nctl")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    if not logger.handlers:
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=verbose,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.propagate = False

"""Log sink configuration shared by the CLI and embedding applications."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "INFO") -> None:
    """Route ``term_narrator`` logs to stderr so they never mix with passthrough output."""
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("term_narrator")
    logger.handlers = [handler]
    logger.setLevel(getattr(logging, level.upper().strip(), logging.INFO))
    logger.propagate = False

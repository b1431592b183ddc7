"""Logging setup for the API.

``setup_logging`` attaches a single console handler to the root logger.
Calling it again (each ``create_app`` call in the test suite does) is a
no-op once a handler is present.
"""
from __future__ import annotations

import logging


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a console handler.

    Parameters
    ----------
    level: str
        Logging level name such as ``"DEBUG"`` or ``"INFO"``. Unknown
        names fall back to ``INFO``.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)

"""Logging setup shared by the CLI, wrapper, entrypoint, and API."""

from __future__ import annotations

import logging
import sys

from prusti_playground.models.enums import LogLevel

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: LogLevel | str | int) -> None:
    """Configure root logging on stderr.

    Accepts a :class:`LogLevel`, a stdlib level name (``"INFO"``), or a
    numeric level.  Unknown names fall back to ``INFO``.
    """
    if isinstance(level, LogLevel):
        numeric = level.to_logging()
    elif isinstance(level, int):
        numeric = level
    else:
        try:
            numeric = LogLevel(level.lower()).to_logging()
        except ValueError:
            numeric = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=numeric, format=LOG_FORMAT, stream=sys.stderr)

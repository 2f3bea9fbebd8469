"""
Logging setup for the udiscan command line.

``UDISCAN_LOGLEVEL`` (e.g. ``WARNING``) overrides the level chosen by the
``--verbose`` flag. HTTP connection chatter from urllib3 is only shown in
verbose mode.

Deutsch:
    Logging-Einrichtung für die Kommandozeile; ``UDISCAN_LOGLEVEL`` hat Vorrang.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
LEVEL_ENV = "UDISCAN_LOGLEVEL"


def resolve_level(verbose: bool = False) -> int:
    default = logging.DEBUG if verbose else logging.INFO
    name = os.getenv(LEVEL_ENV, "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def configure_logging(verbose: bool = False) -> int:
    """
    Configure the root logger once and return the effective level.

    Later calls only adjust the level, so tests and embedding applications
    keep their own handlers.
    """

    level = resolve_level(verbose)
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("urllib3").setLevel(logging.DEBUG if verbose else logging.WARNING)
    return level

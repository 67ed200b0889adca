"""Console logging for the ormrepogen command.

Modules log through ``logging.getLogger(__name__)``; the command attaches
one stderr handler to the package logger so diagnostics read
``ormrepogen: <message>``. ORMREPOGEN_LOG_LEVEL picks the level unless -v
asks for debug output.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping

LOG_LEVEL_ENV = "ORMREPOGEN_LOG_LEVEL"
CONSOLE_FORMAT = "ormrepogen: %(message)s"


def resolve_level(verbose: bool = False, environ: Mapping[str, str] | None = None) -> int:
    """DEBUG for -v, else the named level from the environment, else INFO."""
    if verbose:
        return logging.DEBUG
    if environ is None:
        environ = os.environ
    name = environ.get(LOG_LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(name) if name else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def configure_logging(*, verbose: bool = False) -> logging.Logger:
    package_logger = logging.getLogger(__package__)
    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    # Replaces whatever an earlier main() call installed.
    package_logger.handlers = [console]
    package_logger.setLevel(resolve_level(verbose))
    package_logger.propagate = False
    return package_logger

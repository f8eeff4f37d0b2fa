"""
Logging configuration — set up once by the CLI entrypoint.

Every module does ``logger = logging.getLogger(__name__)`` and so logs
under the ``ownercheck`` logger that this module configures. Nothing
else in the process is touched.

The console level is resolved in precedence order:

    --debug  >  --verbose  >  --quiet  >  OWNERCHECK_LOG_LEVEL  >  WARNING

A log file can be added with OWNERCHECK_LOG_FILE (level from
OWNERCHECK_LOG_FILE_LEVEL, default: same as the console).

Logging is for internals (kubectl invocations, paging, mapper state).
The user-facing progress and summary lines go through
ownercheck.core.services.report.Diagnostics instead.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Mapping

PACKAGE_LOGGER = "ownercheck"

ENV_LOG_LEVEL = "OWNERCHECK_LOG_LEVEL"
ENV_LOG_FILE = "OWNERCHECK_LOG_FILE"
ENV_LOG_FILE_LEVEL = "OWNERCHECK_LOG_FILE_LEVEL"

# Console format per level: terse by default, more context as it gets chattier
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(levelname)s: %(message)s", None),
}

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(threadName)s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    environ = os.environ if environ is None else environ
    return environ.get(ENV_LOG_LEVEL) or "WARNING"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> logging.Logger:
    """Configure the ``ownercheck`` logger. Safe to call more than once.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Level for the log file. Defaults to ``level``.

    Returns:
        The configured package logger.
    """
    console_level = _parse_level(level)

    fmt, datefmt = _console_format(console_level)
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(console)
    logger.propagate = False

    # The logger must let through whatever the chattiest handler wants
    effective = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        effective = min(effective, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        logger.addHandler(fh)

    logger.setLevel(effective)
    logging.raiseExceptions = False
    return logger


def setup_from_environment(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> logging.Logger:
    """setup_logging() driven by CLI flags and OWNERCHECK_LOG_* variables."""
    environ = os.environ if environ is None else environ
    return setup_logging(
        level=resolve_level(debug, verbose, quiet, environ),
        log_file=environ.get(ENV_LOG_FILE) or None,
        log_file_level=environ.get(ENV_LOG_FILE_LEVEL) or None,
    )


def _console_format(level: int) -> tuple[str, str | None]:
    for threshold in (logging.DEBUG, logging.INFO):
        if level <= threshold:
            return _CONSOLE_FORMATS[threshold]
    return _CONSOLE_FORMATS[logging.WARNING]


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.WARNING

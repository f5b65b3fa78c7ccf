"""
Logging configuration — set up once by the CLI entrypoint.

Modules log through ``logging.getLogger(__name__)``. Those records are
diagnostics; the progress lines an operator watches during a run are
printed with click and do not pass through here.

Console level, highest precedence first:

    --debug → DEBUG,  --verbose → INFO,  --quiet → ERROR,
    $GITMETRICS_LOG_LEVEL,  WARNING

A long unattended batch run can also keep a log file: set
$GITMETRICS_LOG_FILE, and optionally $GITMETRICS_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "GITMETRICS_LOG_LEVEL"
ENV_FILE = "GITMETRICS_LOG_FILE"
ENV_FILE_LEVEL = "GITMETRICS_LOG_FILE_LEVEL"

_DETAILED_FMT = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d  %(message)s"


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Console level name for the given CLI flags."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL, "WARNING")


def _console_formatter(level: int) -> logging.Formatter:
    if level <= logging.DEBUG:
        return logging.Formatter(_DETAILED_FMT, datefmt="%H:%M:%S")
    if level <= logging.INFO:
        return logging.Formatter("%(asctime)s [%(name)s] %(message)s", datefmt="%H:%M:%S")
    return logging.Formatter("gitmetrics: %(levelname)s: %(message)s")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers.

    Args:
        level: Console level name.
        log_file: Also log to this file; defaults to $GITMETRICS_LOG_FILE.
        log_file_level: Level for the file; defaults to
            $GITMETRICS_LOG_FILE_LEVEL, then to ``level``.
    """
    console_level = _parse_level(level)
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))
    handlers: list[logging.Handler] = [console]

    log_file = log_file or os.environ.get(ENV_FILE)
    if log_file:
        file_level_name = log_file_level or os.environ.get(ENV_FILE_LEVEL)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(_parse_level(file_level_name) if file_level_name else console_level)
        file_handler.setFormatter(logging.Formatter(_DETAILED_FMT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers[:] = handlers
    # the root must let through whatever the chattiest handler wants
    root.setLevel(min(h.level for h in handlers))
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name to number; unknown or empty names mean WARNING."""
    numeric = logging.getLevelName(level.upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING

"""Central logging configuration for the command-line converter.

Diagnostics go to stderr so that JSON written to stdout stays clean.  An
optional log file records the same messages at DEBUG level:

``JSON_MIDI_LOG_FILE``
    Path of a log file that should receive every diagnostic message.

Handlers installed here are tagged so repeated calls (as happens in tests)
never register duplicates.
"""

from __future__ import annotations

import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import TextIO

_LOG_FILE_ENV = "JSON_MIDI_LOG_FILE"
_HANDLER_TAG = "_json_midi_logging_handler"
_CONFIGURED = False
_STREAM_HANDLER: logging.StreamHandler | None = None
_FILE_HANDLER: logging.FileHandler | None = None
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LogVerbosity(str, Enum):
    """Verbosity levels supported on stderr."""

    DISABLED = "disabled"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    VERBOSE = "verbose"


_VERBOSITY_LEVELS: dict[LogVerbosity, int] = {
    LogVerbosity.DISABLED: logging.CRITICAL + 1,
    LogVerbosity.ERROR: logging.ERROR,
    LogVerbosity.WARNING: logging.WARNING,
    LogVerbosity.INFO: logging.INFO,
    LogVerbosity.VERBOSE: logging.DEBUG,
}

_DEFAULT_VERBOSITY = LogVerbosity.WARNING
_CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


def parse_verbosity(verbosity: LogVerbosity | str) -> LogVerbosity:
    if isinstance(verbosity, LogVerbosity):
        return verbosity
    try:
        return LogVerbosity(str(verbosity).strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unsupported log verbosity: {verbosity}") from exc


def ensure_cli_logging(
    verbosity: LogVerbosity | str = _DEFAULT_VERBOSITY,
    *,
    stream: TextIO | None = None,
) -> Path | None:
    """Configure the root logger for command-line use.

    The first invocation installs a stderr handler at ``verbosity`` and, when
    ``JSON_MIDI_LOG_FILE`` is set, a DEBUG-level file handler.  Later calls only
    adjust the stderr verbosity.

    Returns
    -------
    Path | None
        Location of the log file, or ``None`` when only stderr is used.
    """

    global _CONFIGURED, _STREAM_HANDLER, _FILE_HANDLER

    if _CONFIGURED:
        set_log_verbosity(verbosity)
        return Path(_FILE_HANDLER.baseFilename) if _FILE_HANDLER is not None else None

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)

    stream_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    stream_handler.setFormatter(formatter)
    setattr(stream_handler, _HANDLER_TAG, True)
    root.addHandler(stream_handler)
    _STREAM_HANDLER = stream_handler

    log_path = _resolve_log_path()
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)
        _FILE_HANDLER = file_handler

    _CONFIGURED = True
    set_log_verbosity(verbosity)
    if log_path is not None:
        logging.getLogger(__name__).debug("Writing diagnostics to %s", log_path)
    return log_path


def set_log_verbosity(verbosity: LogVerbosity | str) -> None:
    """Adjust the minimum severity written to stderr."""

    global _CURRENT_VERBOSITY

    verbosity = parse_verbosity(verbosity)
    _CURRENT_VERBOSITY = verbosity
    if _STREAM_HANDLER is not None:
        _STREAM_HANDLER.setLevel(_VERBOSITY_LEVELS[verbosity])


def get_log_verbosity() -> LogVerbosity:
    return _CURRENT_VERBOSITY


def _resolve_log_path() -> Path | None:
    env_file = os.environ.get(_LOG_FILE_ENV)
    if env_file:
        return Path(env_file).expanduser()
    return None


def _reset_for_tests() -> None:
    """Remove handlers installed by :func:`ensure_cli_logging`."""

    global _CONFIGURED, _STREAM_HANDLER, _FILE_HANDLER, _CURRENT_VERBOSITY

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    _CONFIGURED = False
    _STREAM_HANDLER = None
    _FILE_HANDLER = None
    _CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


__all__ = [
    "LogVerbosity",
    "ensure_cli_logging",
    "get_log_verbosity",
    "parse_verbosity",
    "set_log_verbosity",
]

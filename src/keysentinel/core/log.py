# SPDX-License-Identifier: MIT
"""
Logger capability used to report non-fatal conditions.

Config loading, allowlist compilation, the scan engine and the
collaborators take a ``Logger`` argument instead of writing to a global
console, so the same code reports through ``logging`` on the command line
and through workflow commands inside GitHub Actions.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Protocol, TextIO


class Logger(Protocol):
    """Sink for non-fatal conditions."""

    def warn(self, message: str) -> None:
        ...

    def info(self, message: str) -> None:
        ...

    def debug(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...


class StdLogger:
    """Logger backed by the standard ``logging`` module."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("keysentinel")

    def warn(self, message: str) -> None:
        self._logger.warning(message)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def debug(self, message: str) -> None:
        self._logger.debug(message)

    def error(self, message: str) -> None:
        self._logger.error(message)


class ActionsLogger:
    """Logger emitting GitHub Actions workflow commands."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def _write(self, line: str) -> None:
        print(line, file=self._stream or sys.stdout)

    def warn(self, message: str) -> None:
        self._write(f"::warning::{_escape(message)}")

    def info(self, message: str) -> None:
        self._write(message)

    def debug(self, message: str) -> None:
        self._write(f"::debug::{_escape(message)}")

    def error(self, message: str) -> None:
        self._write(f"::error::{_escape(message)}")


def _escape(message: str) -> str:
    # workflow command data escaping
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def get_logger(name: str = "keysentinel") -> StdLogger:
    return StdLogger(logging.getLogger(name))


def configure_logging(verbose: bool = False) -> None:
    """Set up the ``keysentinel`` logger for command line use."""
    logger = logging.getLogger("keysentinel")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[keysentinel] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

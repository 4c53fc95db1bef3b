"""structlog setup for the visualizer API.

Development gets the coloured console renderer; every other environment
emits JSON lines. Setting LOG_FILE mirrors the output into a file.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

import structlog

from tilevision.config import settings


class _MirroredStream:
    """File-like sink that writes to stdout and, when possible, a log file.

    A log file that cannot be opened or written is dropped with a warning on
    stderr; stdout keeps receiving every event.
    """

    def __init__(self, path: str) -> None:
        self._path = path
        self._mirror: IO[str] | None = None
        try:
            self._mirror = open(path, "a")  # noqa: SIM115
        except OSError as exc:
            self._disable(f"cannot open {path!r}: {exc}")

    def _disable(self, reason: str) -> None:
        self._mirror = None
        # structlog is not usable from inside its own sink
        print(f"WARNING: log file disabled ({reason})", file=sys.stderr)

    def write(self, data: str) -> None:
        sys.stdout.write(data)
        if self._mirror is None:
            return
        try:
            self._mirror.write(data)
            self._mirror.flush()
        except (OSError, ValueError) as exc:
            self._disable(f"write to {self._path!r} failed: {exc}")

    def flush(self) -> None:
        sys.stdout.flush()
        if self._mirror is None:
            return
        try:
            self._mirror.flush()
        except (OSError, ValueError) as exc:
            self._disable(f"flush of {self._path!r} failed: {exc}")


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    """Configure structlog from settings. Safe to call more than once."""
    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.environment == "development"
        else structlog.processors.JSONRenderer()
    )

    if settings.log_file:
        # PrintLoggerFactory only needs write() and flush()
        factory = structlog.PrintLoggerFactory(file=_MirroredStream(settings.log_file))  # type: ignore[arg-type]
    else:
        factory = structlog.PrintLoggerFactory()

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.environment != "development":
        # ConsoleRenderer pretty-prints exc_info itself
        processors.append(structlog.processors.format_exc_info)
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level(settings.log_level)),
        context_class=dict,
        logger_factory=factory,
        cache_logger_on_first_use=True,
    )

"""Root logging setup for one sync run.

`configure_logging` is called once from `main`. Routine progress goes to
stdout, retries and failures to stderr, and every line carries the id of
the run that produced it so overlapping cron runs can be separated in the
collected output.
"""

from __future__ import annotations

import contextvars
import logging
import sys
import uuid
from typing import Optional

run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="-")

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s run=%(run_id)s: %(message)s"

# Libraries whose INFO/DEBUG output drowns the retry lines
NOISY_LOGGERS = ("aiohttp", "asyncio")


def level_from_name(level: int | str | None, default: int = logging.INFO) -> int:
    """Numeric level for ``level``; unknown names fall back to ``default``."""
    if level is None:
        return default
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(str(level).strip().upper(), default)


def start_run(run_id: Optional[str] = None) -> str:
    """Tag all following log records of this context with a run id."""
    run_id = run_id or uuid.uuid4().hex[:8]
    run_id_var.set(run_id)
    return run_id


class _RunIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get()
        return True


class _LevelRangeFilter(logging.Filter):
    """Pass records with ``low <= levelno <= high``."""

    def __init__(self, low: int = logging.NOTSET, high: int = logging.CRITICAL):
        super().__init__()
        self.low = low
        self.high = high

    def filter(self, record: logging.LogRecord) -> bool:
        return self.low <= record.levelno <= self.high


def _stream_handler(stream, level_filter: logging.Filter, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(stream=stream)
    handler.addFilter(level_filter)
    handler.addFilter(_RunIdFilter())
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: int | str | None = None,
    fmt: Optional[str] = None,
    quiet_libraries: bool = True,
) -> None:
    """Install the stdout/stderr handler pair on the root logger.

    Calling it again replaces the handlers instead of stacking them.
    """
    numeric_level = level_from_name(level)
    formatter = logging.Formatter(fmt or DEFAULT_FORMAT)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    root.addHandler(_stream_handler(sys.stdout, _LevelRangeFilter(high=logging.INFO), formatter))
    root.addHandler(_stream_handler(sys.stderr, _LevelRangeFilter(low=logging.WARNING), formatter))

    if quiet_libraries:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

"""
events.py - the server's append-only event log.

Every line looks like:
    2025-12-26 14:03:11 | NON-CRITICAL | Client connection closed

Built on a logging.FileHandler, which takes its own lock around each emit,
so concurrent sessions never interleave half-lines. Each record is also
mirrored to the `vssp.events` logger for the console.
"""

import logging
from pathlib import Path
from typing import Union

log = logging.getLogger("vssp.events")

CRITICAL = "CRITICAL"
NON_CRITICAL = "NON-CRITICAL"

LINE_FORMAT = "%(asctime)s | %(severity)s | %(message)s"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"   # local time
FALLBACK_PATH = Path("./server_fallback.log")


class EventLog:
    """One per process; `record()` is safe to call from any task or thread."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Opens right away, so an unwritable path fails here and not mid-session.
        self._handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        self._handler.setFormatter(logging.Formatter(LINE_FORMAT, datefmt=TIME_FORMAT))

    @classmethod
    def open(cls, path: Union[str, Path], fallback: Union[str, Path, None] = FALLBACK_PATH) -> "EventLog":
        """
        Open `path`, or `fallback` if that fails.

        Raises:
            OSError: if neither file can be opened (a setup failure).
        """
        try:
            return cls(path)
        except OSError as exc:
            if fallback is None:
                raise
            log.error("Cannot open log file %s (%s); trying %s", path, exc, fallback)
            return cls(fallback)

    def record(self, message: str, critical: bool = False) -> None:
        """Append one event line."""
        # Written inline on the calling thread, event loop included: a few
        # short lines per session, no queue in between.
        level = logging.CRITICAL if critical else logging.INFO
        rec = logging.LogRecord(log.name, level, __file__, 0, message, None, None)
        rec.severity = CRITICAL if critical else NON_CRITICAL
        self._handler.handle(rec)
        log.log(level, message)

    def close(self) -> None:
        self._handler.close()

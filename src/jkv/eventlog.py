"""Append-only event log shared by every record operation.

Each entry is one line: ``"<message> <unix_ms>\\n"``. The log is written, never
read back by the store; ``tail`` exists for the CLI.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger("jkv.eventlog")


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class LogEntry:
    message: str
    timestamp: int | None        # None when the line has no trailing timestamp


class EventLog:
    """Best-effort appender for ``log.txt``."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def log(self, message: str) -> None:
        """Append ``message`` with a millisecond timestamp.

        Append failures are reported through the ``jkv.eventlog`` logger and
        never reach the caller.
        """
        line = f"{message} {now_ms()}\n".encode(errors="backslashreplace")
        try:
            # One write() on an O_APPEND fd: concurrent entries don't interleave.
            fd = os.open(self.path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
            try:
                os.write(fd, line)
            finally:
                os.close(fd)
        except OSError as exc:
            logger.warning("failed to append to %s: %s", self.path, exc)

    def tail(self, n: int = 20) -> list[LogEntry]:
        """Return the last ``n`` entries (oldest first)."""
        if not self.path.exists():
            return []
        lines = self.path.read_text(errors="replace").splitlines()
        return [parse_line(line) for line in lines[-n:] if line] if n > 0 else []


def parse_line(line: str) -> LogEntry:
    message, sep, stamp = line.rstrip("\n").rpartition(" ")
    if sep and stamp.isdigit():
        return LogEntry(message=message, timestamp=int(stamp))
    return LogEntry(message=line.rstrip("\n"), timestamp=None)

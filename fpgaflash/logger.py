"""Thread-safe in-memory operation log with a bounded history."""

from __future__ import annotations

import sys
import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum

MAX_LOG_ENTRIES = 500


class LogLevel(Enum):
    """Severity or kind of a log message."""

    INFO = "INFO"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    COMMAND = "CMD"
    OUTPUT = "OUTPUT"
    WARNING = "WARN"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class LogEntry:
    """A single message with its monotonic timestamp and level."""

    timestamp: float
    message: str
    level: LogLevel


class Logger:
    """Collects log entries, echoing each one to the console.

    Instances are shared by reference between threads; all access to the
    entry list is guarded by a lock.
    """

    def __init__(self, max_entries: int = MAX_LOG_ENTRIES) -> None:
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()
        self.start_time = time.monotonic()

    def log(self, message: str, level: LogLevel) -> None:
        """Record a message at the given level, dropping the oldest when full."""
        message = str(message)
        stream = sys.stderr if level in (LogLevel.ERROR, LogLevel.WARNING) else sys.stdout
        print(f"[{level}] {message}", file=stream)
        entry = LogEntry(timestamp=time.monotonic(), message=message, level=level)
        with self._lock:
            self._entries.append(entry)

    def info(self, message: str) -> None:
        self.log(message, LogLevel.INFO)

    def success(self, message: str) -> None:
        self.log(message, LogLevel.SUCCESS)

    def warning(self, message: str) -> None:
        self.log(message, LogLevel.WARNING)

    def error(self, message: str) -> None:
        self.log(message, LogLevel.ERROR)

    def command(self, message: str) -> None:
        self.log(message, LogLevel.COMMAND)

    def output(self, message: str) -> None:
        self.log(message, LogLevel.OUTPUT)

    def entries(self) -> list[LogEntry]:
        """Return a snapshot of all current entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()

    def format_timestamp(self, timestamp: float) -> str:
        """Format a timestamp as seconds elapsed since the logger was created."""
        elapsed = max(0.0, timestamp - self.start_time)
        return f"{elapsed:.2f}s"
"""Watches programmer output for suspiciously fast sector writes."""

from __future__ import annotations

import contextlib
import os
import re
import signal
import subprocess
import sys
import threading
from typing import Callable

from .logger import Logger

QUICK_WRITE_THRESHOLD_MS = 10
QUICK_WRITE_MAX_COUNT = 35

_U32_MAX = 2**32 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")


def _is_sector_line(line: str) -> bool:
    return "Info :" in line and "sector" in line and "took" in line


def parse_sector_time(line: str) -> int | None:
    """Return the milliseconds from a line like 'Info : sector 25 took 1 ms'."""
    if not _is_sector_line(line):
        return None
    tokens = line.split("took")[1].split()
    if not tokens or not _UNSIGNED.fullmatch(tokens[0]):
        return None
    value = int(tokens[0])
    return value if value <= _U32_MAX else None


def kill_process(pid: int) -> None:
    """Forcibly terminate a process, ignoring any failure."""
    with contextlib.suppress(OSError, subprocess.SubprocessError):
        if sys.platform == "win32":
            subprocess.run(
                ["taskkill", "/F", "/PID", str(pid)], capture_output=True, check=False
            )
        else:
            os.kill(pid, signal.SIGKILL)


class OperationMonitor:
    """Counts sector writes and kills the programmer on too many quick ones."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._quick_writes = 0
        self._total_sectors = 0
        self._auto_terminate = True
        self._terminated_early = False

    @property
    def quick_writes(self) -> int:
        with self._lock:
            return self._quick_writes

    @property
    def total_sectors(self) -> int:
        with self._lock:
            return self._total_sectors

    def reset_counters(self) -> None:
        with self._lock:
            self._quick_writes = 0
            self._total_sectors = 0
            self._terminated_early = False

    def was_terminated_early(self) -> bool:
        with self._lock:
            return self._terminated_early

    def set_auto_terminate(self, enabled: bool) -> None:
        with self._lock:
            self._auto_terminate = enabled

    def process_line(self, line: str, logger: Logger, child_pid: int | None) -> bool:
        """Inspect one output line; return True if the child process was killed."""
        if not _is_sector_line(line):
            return False
        logger.info(f"Detected sector write line: {line}")

        write_time = parse_sector_time(line)
        if write_time is None:
            return False
        logger.info(f"Sector write time: {write_time}ms")

        with self._lock:
            self._total_sectors += 1
            if write_time <= QUICK_WRITE_THRESHOLD_MS:
                self._quick_writes += 1
            quick, total = self._quick_writes, self._total_sectors
            auto_terminate = self._auto_terminate
        logger.info(f"Quick writes: {quick}, Total sectors: {total}")

        if not (auto_terminate and quick > QUICK_WRITE_MAX_COUNT):
            return False
        logger.warning(
            "Detected too many quick sector writes (likely hardware issue). "
            "Terminating process early."
        )
        if child_pid is None:
            return False

        kill_process(child_pid)
        if sys.platform == "win32":
            logger.warning(f"Terminating process with PID {child_pid}")
        with self._lock:
            self._terminated_early = True
        logger.error("Operation terminated early due to connection issues.")
        return True

    def create_line_monitor(
        self, logger: Logger, child_pid: int | None
    ) -> Callable[[str], None]:
        """Return a per-line callback that kills the given process at most once."""
        pid = child_pid

        def on_line(line: str) -> None:
            nonlocal pid
            if self.process_line(line, logger, pid):
                pid = None

        return on_line
"""Runs the external programmer and tracks how its run finished."""

from __future__ import annotations

import subprocess
import sys
import threading
import time
from pathlib import Path
from typing import IO, Callable, Iterable, Sequence

from .logger import Logger
from .monitor import kill_process
from .options import TEMP_FIRMWARE_FILE, CompletionStatus

CREATE_NO_WINDOW = 0x08000000

LineCallback = Callable[[str], None]


class ProcessLaunchError(RuntimeError):
    """Raised when a command cannot be started."""


def build_command(exe_path: str, args: Iterable[str]) -> list[str]:
    """Return the argument vector for running exe_path with args."""
    return [str(exe_path), *args]


class ProcessExecutor:
    """Starts a command, pumps its output into the log and records the outcome."""

    def __init__(self, logger: Logger, temp_file: str | Path = TEMP_FIRMWARE_FILE) -> None:
        self._logger = logger
        self._temp_file = Path(temp_file)
        self._lock = threading.Lock()
        self._status = CompletionStatus.not_completed()
        self._start_time: float | None = None
        self._duration: float | None = None
        self._waiter: threading.Thread | None = None

    def reset(self) -> None:
        """Mark the next operation as not completed and restart the clock."""
        with self._lock:
            self._status = CompletionStatus.not_completed()
            self._start_time = time.monotonic()
            self._duration = None

    def completion_status(self) -> CompletionStatus:
        with self._lock:
            return self._status

    def set_completion_status(self, status: CompletionStatus) -> None:
        with self._lock:
            self._status = status

    def start_time(self) -> float | None:
        with self._lock:
            return self._start_time

    @property
    def duration(self) -> float | None:
        """Seconds from reset to the end of the last timed command, if known."""
        with self._lock:
            return self._duration

    def execute_command(
        self,
        command: Sequence[str],
        on_line: LineCallback | None = None,
        update_duration: bool = False,
        cleanup_temp_file: bool = False,
    ) -> subprocess.Popen:
        """Start the command and watch it in background threads.

        Raises ProcessLaunchError, after recording the failure, if it cannot start.
        """
        try:
            child = subprocess.Popen(
                list(command),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                creationflags=CREATE_NO_WINDOW if sys.platform == "win32" else 0,
            )
        except OSError as exc:
            message = f"Failed to start process: {exc}"
            self._logger.error(message)
            self.set_completion_status(CompletionStatus.failed(message))
            if cleanup_temp_file:
                self._remove_temp_file()
            raise ProcessLaunchError(message) from exc

        readers = [
            threading.Thread(target=self._pump_stdout, args=(child.stdout, on_line), daemon=True),
            threading.Thread(target=self._pump_stderr, args=(child.stderr,), daemon=True),
        ]
        for reader in readers:
            reader.start()

        waiter = threading.Thread(
            target=self._await_exit,
            args=(child, readers, update_duration, cleanup_temp_file),
            daemon=True,
        )
        self._waiter = waiter
        waiter.start()
        return child

    def wait(self, timeout: float | None = None) -> CompletionStatus:
        """Wait for the last started command to be fully handled."""
        waiter = self._waiter
        if waiter is not None:
            waiter.join(timeout)
        return self.completion_status()

    def terminate_process(self, pid: int) -> None:
        self._logger.warning(f"Forcibly terminating process {pid}")
        kill_process(pid)

    def _pump_stdout(self, stream: IO[str] | None, on_line: LineCallback | None) -> None:
        if stream is None:
            return
        with stream:
            for raw in stream:
                line = raw.rstrip("\r\n")
                self._logger.output(line)
                if on_line is not None:
                    on_line(line)

    def _pump_stderr(self, stream: IO[str] | None) -> None:
        if stream is None:
            return
        with stream:
            for raw in stream:
                self._logger.error(raw.rstrip("\r\n"))

    def _await_exit(
        self,
        child: subprocess.Popen,
        readers: list[threading.Thread],
        update_duration: bool,
        cleanup_temp_file: bool,
    ) -> None:
        try:
            returncode = child.wait()
        except OSError as exc:
            message = f"Failed to wait for process: {exc}"
            self._logger.error(message)
            self.set_completion_status(CompletionStatus.failed(message))
        else:
            for reader in readers:
                reader.join()
            if update_duration:
                start = self.start_time()
                if start is not None:
                    elapsed = time.monotonic() - start
                    with self._lock:
                        self._duration = elapsed
                    self._logger.info(f"Operation took {int(elapsed * 1000)}ms")
            if returncode == 0:
                self._logger.success("Command completed successfully")
                self.set_completion_status(CompletionStatus.completed())
            else:
                message = f"Command failed with exit code: {returncode}"
                self._logger.error(message)
                self.set_completion_status(CompletionStatus.failed(message))

        if cleanup_temp_file:
            self._remove_temp_file()

    def _remove_temp_file(self) -> None:
        try:
            self._temp_file.unlink()
        except OSError as exc:
            self._logger.warning(f"Failed to clean up temporary firmware file: {exc}")
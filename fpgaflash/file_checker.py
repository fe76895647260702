"""Verifies that the programmer's executables, libraries and configs exist."""

from __future__ import annotations

import sys
import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable

SUCCESS_TRANSITION_DELAY = 1
CHECK_DELAY = 0.05

REQUIRED_FILES: tuple[str, ...] = (
    # Executables
    "OpenOCD/openocd-347.exe",
    "OpenOCD/openocd.exe",
    # Libraries
    "OpenOCD/cygwin1.dll",
    "OpenOCD/cygusb-1.0.dll",
    "OpenOCD/libftdi1.dll",
    "OpenOCD/libgcc_s_sjlj-1.dll",
    "OpenOCD/libhidapi-0.dll",
    "OpenOCD/libusb-1.0.dll",
    "OpenOCD/libwinpthread-1.dll",
    # Configuration
    "OpenOCD/libftdi1-config",
    # Bitstreams
    "OpenOCD/bit/bscan_spi_xc7a35t.bit",
    "OpenOCD/bit/bscan_spi_xc7a75t.bit",
    "OpenOCD/bit/bscan_spi_xc7a100t.bit",
    # Flash configuration
    "OpenOCD/flash/xc7a35T.cfg",
    "OpenOCD/flash/xc7a75T.cfg",
    "OpenOCD/flash/xc7a100T.cfg",
    "OpenOCD/flash/xc7a35T_rs232.cfg",
    "OpenOCD/flash/xc7a75T_rs232.cfg",
    # DNA configuration
    "OpenOCD/DNA/init_347.cfg",
    "OpenOCD/DNA/init_232_35t.cfg",
    "OpenOCD/DNA/init_232_75t.cfg",
)


@dataclass(frozen=True)
class FileCheckResult:
    missing_files: tuple[str, ...] = ()

    @property
    def error_count(self) -> int:
        return len(self.missing_files)


class CheckState(Enum):
    NOT_STARTED = "not_started"
    CHECKING = "checking"
    COMPLETE = "complete"
    SUCCESS = "success"
    READY_TO_TRANSITION = "ready_to_transition"


@dataclass(frozen=True)
class CheckStatus:
    """Progress of the file check; extra fields are set for matching states."""

    state: CheckState
    current_file: str | None = None
    result: FileCheckResult | None = None
    success_time: float | None = None


def _executable_path() -> Path | None:
    if sys.argv and sys.argv[0]:
        return Path(sys.argv[0]).resolve()
    return None


def default_base_paths() -> list[Path]:
    """The current directory, followed by the program's own directory."""
    paths = [Path(".")]
    exe = _executable_path()
    if exe is not None:
        paths.append(exe.parent)
    return paths


def file_exists(file_path: str, base_paths: Iterable[Path] | None = None) -> bool:
    """Return True if the file exists under any of the base paths."""
    bases = default_base_paths() if base_paths is None else base_paths
    return any((Path(base) / file_path).exists() for base in bases)


def perform_file_check(
    on_progress: Callable[[str], None] | None = None,
    base_paths: Iterable[Path] | None = None,
    delay: float = CHECK_DELAY,
) -> FileCheckResult:
    """Check every required file, reporting each one before it is checked."""
    bases = default_base_paths() if base_paths is None else list(base_paths)
    missing = []
    for file in REQUIRED_FILES:
        if on_progress is not None:
            on_progress(file)
        if delay > 0:
            time.sleep(delay)
        if not file_exists(file, bases):
            missing.append(file)
    return FileCheckResult(tuple(missing))


def _log_execution_context() -> None:
    try:
        print(f"Working directory: {Path.cwd()}")
    except OSError:
        pass
    exe = _executable_path()
    if exe is not None:
        print(f"Executable path: {exe}")


class FileChecker:
    """Runs the required-file check and exposes its status thread-safely."""

    def __init__(
        self, base_paths: Iterable[Path] | None = None, delay: float = CHECK_DELAY
    ) -> None:
        self._lock = threading.Lock()
        self._status = CheckStatus(CheckState.NOT_STARTED)
        self._base_paths = None if base_paths is None else list(base_paths)
        self._delay = delay

    def status(self) -> CheckStatus:
        with self._lock:
            return self._status

    def set_status(self, status: CheckStatus) -> None:
        with self._lock:
            self._status = status

    def run_check(self) -> FileCheckResult:
        """Perform the check in the calling thread and store the result."""
        _log_execution_context()
        result = perform_file_check(
            on_progress=lambda file: self.set_status(
                CheckStatus(CheckState.CHECKING, current_file=file)
            ),
            base_paths=self._base_paths,
            delay=self._delay,
        )
        self.set_status(CheckStatus(CheckState.COMPLETE, result=result))
        return result

    def start_check(self) -> threading.Thread:
        """Run the check in a background thread and return that thread."""
        thread = threading.Thread(target=self.run_check, daemon=True)
        thread.start()
        return thread
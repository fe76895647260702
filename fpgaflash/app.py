"""Application state machine driving file checks, firmware choice and operations."""

from __future__ import annotations

import sys
import time
from enum import Enum
from pathlib import Path
from typing import Callable

from .file_checker import SUCCESS_TRANSITION_DELAY, CheckState, CheckStatus, FileChecker
from .firmware_discovery import FirmwareManager
from .logger import Logger
from .manager import FlashingManager
from .options import FlashingOption

APP_TITLE = "fpgaflash"

INITIAL_CHECK_DELAY = 0.1
FIRST_FIRMWARE_SCAN_INTERVAL = 0.1
SUBSEQUENT_FIRMWARE_SCAN_INTERVAL = 3.0
FIRMWARE_SCAN_INDICATOR_DURATION = 0.5
DNA_READ_MIN_DISPLAY_SECS = 3

WINDOW_WIDTH = 600.0
WINDOW_HEIGHT_INITIAL = 200.0


class AppState(Enum):
    """The screen the application is currently on."""

    FILE_CHECK = "file_check"
    OPERATION_SELECTION = "operation_selection"
    FIRMWARE_SELECTION = "firmware_selection"
    FLASHING_OPTIONS = "flashing_options"
    FLASHING = "flashing"
    RESULT = "result"


class WindowSizeType(Enum):
    """Window layouts, each with its own height."""

    FILE_CHECK = "file_check"
    MISSING_FILES = "missing_files"
    OPERATION_SELECTION = "operation_selection"
    FILE_SELECTION = "file_selection"
    FLASH_OPTION_SELECTION = "flash_option_selection"
    READ_OPTION_SELECTION = "read_option_selection"
    OPERATION_RESULT = "operation_result"


class OperationType(Enum):
    """Top-level operations offered to the user."""

    FLASH_FIRMWARE = "flash_firmware"
    READ_DNA = "read_dna"


_WINDOW_HEIGHTS = {
    WindowSizeType.FILE_CHECK: 200.0,
    WindowSizeType.MISSING_FILES: 475.0,
    WindowSizeType.OPERATION_SELECTION: 300.0,
    WindowSizeType.FILE_SELECTION: 220.0,
    WindowSizeType.FLASH_OPTION_SELECTION: 580.0,
    WindowSizeType.READ_OPTION_SELECTION: 320.0,
    WindowSizeType.OPERATION_RESULT: 675.0,
}


def window_height(size_type: WindowSizeType) -> float:
    """Return the window height used for a layout."""
    return _WINDOW_HEIGHTS[size_type]


# Lazily imported in results; the enum lives with the result analysis.
from .analysis import ResultAction  # noqa: E402


class FirmwareToolApp:
    """Holds the application state and advances it once per frame via update()."""

    def __init__(
        self,
        *,
        logger: Logger | None = None,
        flashing_manager: FlashingManager | None = None,
        firmware_manager: FirmwareManager | None = None,
        file_checker_factory: Callable[[], FileChecker] = FileChecker,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.logger = logger if logger is not None else Logger()
        self.logger.info(f"{APP_TITLE} Tool started")
        self._clock = clock
        self._file_checker_factory = file_checker_factory
        self.file_checker = file_checker_factory()
        self.firmware_manager = (
            firmware_manager if firmware_manager is not None else FirmwareManager()
        )
        self.flashing_manager = (
            flashing_manager if flashing_manager is not None else FlashingManager(self.logger)
        )
        self.state = AppState.FILE_CHECK
        self.selected_firmware: Path | None = None
        self.selected_option: FlashingOption | None = None
        self.check_started = False
        self._start_time = clock()
        self._last_firmware_scan = clock()
        self.firmware_scanning = False
        self._check_success_display_time: float | None = None
        self._dna_read_start_time: float | None = None

    @property
    def is_scanning(self) -> bool:
        """Whether the firmware list should show the scanning indicator."""
        return self.firmware_scanning or self.firmware_manager.scan_count() <= 1

    def _is_dna_read_operation(self) -> bool:
        return self.selected_option is not None and self.selected_option.is_dna_read()

    def _is_flash_operation(self) -> bool:
        return self.selected_option is not None and self.selected_option.is_flash_operation()

    def window_size_type(self) -> WindowSizeType:
        """The window layout that fits the current state."""
        if self.state is AppState.FILE_CHECK:
            status = self.file_checker.status()
            if (
                status.state is CheckState.COMPLETE
                and status.result is not None
                and status.result.error_count > 0
            ):
                return WindowSizeType.MISSING_FILES
            return WindowSizeType.FILE_CHECK
        if self.state is AppState.OPERATION_SELECTION:
            return WindowSizeType.OPERATION_SELECTION
        if self.state is AppState.FIRMWARE_SELECTION:
            return WindowSizeType.FILE_SELECTION
        if self.state is AppState.FLASHING_OPTIONS:
            if self._is_dna_read_operation():
                return WindowSizeType.READ_OPTION_SELECTION
            return WindowSizeType.FLASH_OPTION_SELECTION
        return WindowSizeType.OPERATION_RESULT

    def update(self) -> AppState:
        """Advance background work and state transitions; return the new state."""
        now = self._clock()
        if not self.check_started and now - self._start_time > INITIAL_CHECK_DELAY:
            self.file_checker.start_check()
            self.check_started = True

        if self.state is AppState.FIRMWARE_SELECTION:
            self._handle_firmware_scanning()

        if self.state is AppState.FLASHING and (
            self.flashing_manager.is_completed() or self._check_dna_read_completion()
        ):
            self.state = AppState.RESULT

        if self.state is AppState.FILE_CHECK:
            self.state = self._handle_file_check_state()
        return self.state

    def _handle_file_check_state(self) -> AppState:
        status = self.file_checker.status()
        now = self._clock()
        if status.state is CheckState.COMPLETE:
            if status.result is not None and status.result.error_count == 0:
                if self._check_success_display_time is None:
                    self.file_checker.set_status(
                        CheckStatus(CheckState.SUCCESS, success_time=now)
                    )
                    self._check_success_display_time = now
            return AppState.FILE_CHECK
        if status.state is CheckState.SUCCESS:
            success_time = status.success_time if status.success_time is not None else now
            if now - success_time > SUCCESS_TRANSITION_DELAY:
                self.file_checker.set_status(CheckStatus(CheckState.READY_TO_TRANSITION))
                self._check_success_display_time = None
                return AppState.OPERATION_SELECTION
            return AppState.FILE_CHECK
        if status.state is CheckState.READY_TO_TRANSITION:
            return AppState.OPERATION_SELECTION
        return AppState.FILE_CHECK

    def _handle_firmware_scanning(self) -> None:
        scan_count = self.firmware_manager.scan_count()
        interval = (
            FIRST_FIRMWARE_SCAN_INTERVAL if scan_count <= 1 else SUBSEQUENT_FIRMWARE_SCAN_INTERVAL
        )
        elapsed = self._clock() - self._last_firmware_scan
        if not self.firmware_scanning and (scan_count == 0 or elapsed >= interval):
            self._scan_firmware()

        if (
            self.firmware_scanning
            and self._clock() - self._last_firmware_scan > FIRMWARE_SCAN_INDICATOR_DURATION
        ):
            self.firmware_scanning = False

    def _scan_firmware(self) -> None:
        self.firmware_manager.scan_firmware_files()
        self._last_firmware_scan = self._clock()
        self.firmware_scanning = True

    def _check_dna_read_completion(self) -> bool:
        if not self._is_dna_read_operation():
            return False
        now = self._clock()
        if self._dna_read_start_time is None:
            self._dna_read_start_time = now
        if (
            now - self._dna_read_start_time >= DNA_READ_MIN_DISPLAY_SECS
            and self.flashing_manager.completion_status().is_finished()
        ):
            self._dna_read_start_time = None
            return True
        return False

    def continue_anyway(self) -> None:
        """Proceed past a file check that reported missing files."""
        status = self.file_checker.status()
        if (
            status.state is CheckState.COMPLETE
            and status.result is not None
            and status.result.error_count > 0
        ):
            self.state = AppState.OPERATION_SELECTION

    def rescan(self) -> None:
        """Discard the previous check so that it runs again."""
        self.check_started = False
        self.file_checker = self._file_checker_factory()

    def choose_operation(self, operation: OperationType) -> None:
        if operation is OperationType.FLASH_FIRMWARE:
            self.state = AppState.FIRMWARE_SELECTION
            self._scan_firmware()
        elif operation is OperationType.READ_DNA:
            self.state = AppState.FLASHING_OPTIONS
            self.selected_option = FlashingOption.DNA_CH347

    def select_firmware(self, path: str | Path | None) -> None:
        self.selected_firmware = None if path is None else Path(path)
        self.state = AppState.FLASHING_OPTIONS

    def choose_option(self, option: FlashingOption) -> None:
        """Select a board option and start the matching operation."""
        self.selected_option = option
        if option.is_dna_read():
            self.state = AppState.FLASHING
            self.flashing_manager.execute_dna_read(option)
        elif self.selected_firmware is not None:
            self.state = AppState.FLASHING
            self.flashing_manager.execute_flash(self.selected_firmware, option)

    def handle_result_action(self, action: ResultAction) -> None:
        """Act on a choice made on the result screen; EXIT raises SystemExit."""
        if action is ResultAction.EXIT:
            sys.exit(0)
        if action is ResultAction.MAIN_MENU:
            self.state = AppState.OPERATION_SELECTION
            self.selected_firmware = None
            self.selected_option = None
        elif action is ResultAction.TRY_AGAIN and self.selected_option is not None:
            option = self.selected_option
            if option.is_dna_read():
                self.state = AppState.FLASHING
                self._dna_read_start_time = None
                self.flashing_manager.execute_dna_read(option)
            elif self.selected_firmware is not None:
                self.state = AppState.FLASHING
                self.flashing_manager.execute_flash(self.selected_firmware, option)

    def should_show_log(self) -> bool:
        return self.state in (AppState.FLASHING, AppState.RESULT)
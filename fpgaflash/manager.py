"""Coordinates flashing and DNA read operations."""

from __future__ import annotations

from pathlib import Path

from .dna import DnaReader
from .firmware import FirmwareFlasher
from .logger import Logger
from .monitor import OperationMonitor
from .options import (
    DNA_OUTPUT_FILE,
    SCRIPT_DIR,
    TEMP_FIRMWARE_FILE,
    CompletionStatus,
    FlashingOption,
)
from .process import ProcessExecutor

TERMINATED_EARLY_MESSAGE = (
    "Operation terminated early due to connection issues "
    "(too many quick sector writes detected)"
)


class FlashingManager:
    """Runs one operation at a time and reports its progress and outcome."""

    def __init__(
        self,
        logger: Logger | None = None,
        *,
        script_dir: str = SCRIPT_DIR,
        temp_file: str | Path = TEMP_FIRMWARE_FILE,
        dna_output_file: str | Path = DNA_OUTPUT_FILE,
    ) -> None:
        self.logger = logger if logger is not None else Logger()
        self._monitor = OperationMonitor()
        self._executor = ProcessExecutor(self.logger, temp_file=temp_file)
        self._dna_reader = DnaReader(
            self.logger, output_file=dna_output_file, script_dir=script_dir
        )
        self._flasher = FirmwareFlasher(self.logger, temp_file=temp_file, script_dir=script_dir)
        self._current_option: FlashingOption | None = None

    def is_completed(self) -> bool:
        return self.completion_status().is_finished()

    def completion_status(self) -> CompletionStatus:
        if self._monitor.was_terminated_early():
            return CompletionStatus.failed(TERMINATED_EARLY_MESSAGE)
        return self._executor.completion_status()

    def execute_flash(self, firmware_path: str | Path, option: FlashingOption) -> None:
        self._initialize_operation(option)
        self._flasher.execute(firmware_path, option, self._monitor, self._executor)

    def execute_dna_read(self, option: FlashingOption) -> None:
        self._initialize_operation(option)
        self._dna_reader.execute(option, self._executor)

    def duration(self) -> float | None:
        """Seconds the last flash took, once it has finished."""
        return self._executor.duration

    def current_option(self) -> FlashingOption | None:
        return self._current_option

    def set_auto_terminate(self, enabled: bool) -> None:
        self._monitor.set_auto_terminate(enabled)

    def output_log(self) -> list[str]:
        return [entry.message for entry in self.logger.entries()]

    def _initialize_operation(self, option: FlashingOption) -> None:
        self._current_option = option
        self._monitor.reset_counters()
        self._executor.reset()
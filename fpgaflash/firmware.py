"""Writes a firmware image to the board through the programmer."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from .logger import Logger
from .monitor import OperationMonitor
from .options import SCRIPT_DIR, TEMP_FIRMWARE_FILE, CompletionStatus, FlashingOption
from .process import ProcessExecutor, ProcessLaunchError, build_command


class FirmwareFlasher:
    """Copies the image to its working location and runs the programmer."""

    def __init__(
        self,
        logger: Logger,
        temp_file: str | Path = TEMP_FIRMWARE_FILE,
        script_dir: str = SCRIPT_DIR,
    ) -> None:
        self._logger = logger
        self._temp_file = Path(temp_file)
        self._script_dir = script_dir

    def execute(
        self,
        firmware_path: str | Path,
        option: FlashingOption,
        monitor: OperationMonitor,
        executor: ProcessExecutor,
    ) -> subprocess.Popen | None:
        """Start flashing; return the running process, or None if it did not start."""
        firmware_path = Path(firmware_path)
        try:
            shutil.copyfile(firmware_path, self._temp_file)
        except OSError as exc:
            message = f"Failed to prepare firmware file: {exc}"
            self._logger.error(message)
            executor.set_completion_status(CompletionStatus.failed(message))
            return None

        self._logger.info(
            f"Starting firmware flash operation with option: {option.display_name()}"
        )
        self._logger.info(f"Firmware file: {firmware_path}")

        cmd, config = option.command_args()
        exe_path = f"{self._script_dir}/{cmd}"
        config_path = f"{self._script_dir}/{config}"
        program = f"program {firmware_path}; exit"
        self._logger.command(f'Executing: {exe_path} -f {config_path} -c "{program}"')

        command = build_command(exe_path, ["-f", config_path, "-c", program])
        on_line = monitor.create_line_monitor(self._logger, None)
        try:
            return executor.execute_command(
                command, on_line, update_duration=True, cleanup_temp_file=True
            )
        except ProcessLaunchError as exc:
            self._logger.error(f"Failed to execute firmware flash: {exc}")
            return None
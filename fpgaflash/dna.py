"""Reads the device DNA through the programmer and parses its output."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Iterable

from .logger import Logger
from .options import DNA_OUTPUT_FILE, SCRIPT_DIR, CompletionStatus, FlashingOption
from .process import ProcessExecutor, ProcessLaunchError, build_command

DNA_READ_WAIT = 0.05


class DnaParseError(ValueError):
    """The programmer output does not hold a readable DNA value."""

    def __init__(self, status_message: str, log_message: str) -> None:
        super().__init__(status_message)
        self.log_message = log_message


def _dna_line(contents: str) -> str | None:
    return next((line for line in contents.splitlines() if "DNA =" in line), None)


def parse_dna_output(contents: str) -> str:
    """Return the hex DNA value, such as '0x1234', from programmer output."""
    line = _dna_line(contents)
    if line is None:
        raise DnaParseError(
            "DNA information not found in output file", "DNA line not found in output file"
        )
    start = line.find("(0x")
    if start < 0:
        raise DnaParseError("DNA hex value not found", "DNA hex value not found in output file")
    end = line.find(")", start)
    if end < 0:
        raise DnaParseError(
            "Failed to parse DNA hex value", "Failed to parse DNA hex value from output file"
        )
    return line[start + 1 : end]


class DnaReader:
    """Runs a DNA read and turns the resulting log file into a status."""

    def __init__(
        self,
        logger: Logger,
        output_file: str | Path = DNA_OUTPUT_FILE,
        script_dir: str = SCRIPT_DIR,
        wait: float = DNA_READ_WAIT,
    ) -> None:
        self._logger = logger
        self._output_file = str(output_file)
        self._script_dir = script_dir
        self._wait = wait

    def execute(
        self, option: FlashingOption, executor: ProcessExecutor
    ) -> threading.Thread | None:
        """Start the read; return the thread that will evaluate its output."""
        if not option.is_dna_read():
            self._logger.error("Invalid option for DNA read operation")
            executor.set_completion_status(CompletionStatus.failed("Invalid option for DNA read"))
            return None

        try:
            Path(self._output_file).unlink()
        except OSError as exc:
            self._logger.info(f"Note: Could not remove previous DNA output file: {exc}")

        cmd, config = option.command_args()
        exe_path = f"{self._script_dir}/{cmd}"
        config_path = f"{self._script_dir}/{config}"
        self._logger.command(f"Executing: {exe_path} -f {config_path}")

        command = build_command(exe_path, ["-f", config_path, "-c", "exit"])
        try:
            executor.execute_command(command)
        except ProcessLaunchError as exc:
            self._logger.error(f"Failed to execute DNA read: {exc}")
            return None

        thread = threading.Thread(target=self._finish, args=(executor,), daemon=True)
        thread.start()
        return thread

    def _finish(self, executor: ProcessExecutor) -> None:
        executor.wait()
        time.sleep(self._wait)
        self.process_dna_output(executor)

    def _default_paths(self) -> list[str]:
        paths = [self._output_file, f"./{self._output_file}"]
        try:
            paths.append(str(Path.cwd() / self._output_file))
        except OSError:
            paths.append(self._output_file)
        return paths

    def process_dna_output(
        self, executor: ProcessExecutor, paths: Iterable[str | Path] | None = None
    ) -> CompletionStatus:
        """Look for the output file, parse the DNA and record the outcome."""
        candidates = [str(p) for p in paths] if paths is not None else self._default_paths()
        self._logger.info("Looking for DNA output file...")

        for path in candidates:
            self._logger.info(f"Trying path: {path}")
            if not Path(path).is_file():
                continue
            self._logger.info(f"Found DNA output file at: {path}")
            status = self._evaluate_file(path)
            executor.set_completion_status(status)
            return status

        try:
            current_dir = str(Path.cwd())
        except OSError:
            current_dir = ""
        message = (
            "DNA output file not found in any expected location. "
            f"Current directory: {current_dir}"
        )
        self._logger.error(message)
        status = CompletionStatus.failed(message)
        executor.set_completion_status(status)
        return status

    def _evaluate_file(self, path: str) -> CompletionStatus:
        try:
            contents = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            message = f"Failed to read DNA output file at {path}: {exc}"
            self._logger.error(message)
            return CompletionStatus.failed(message)

        self._logger.info(f"File contents: {contents}")
        line = _dna_line(contents)
        if line is not None:
            self._logger.info(f"Found DNA line: {line}")
        try:
            dna = parse_dna_output(contents)
        except DnaParseError as exc:
            self._logger.error(exc.log_message)
            return CompletionStatus.failed(str(exc))

        self._logger.success(f"DNA read completed successfully: {dna}")
        return CompletionStatus.completed()
"""Finds firmware images (.bin files) in the usual locations."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable

from .logger import Logger
from .options import TEMP_FIRMWARE_FILE


def _executable_dir() -> Path:
    if sys.argv and sys.argv[0]:
        return Path(sys.argv[0]).resolve().parent
    return Path(".")


def default_search_dirs(exe_dir: Path) -> list[Path]:
    """Directories searched for firmware, in priority order."""
    return [
        Path("."),
        Path(exe_dir),
        Path("resources"),
        Path("bin"),
        Path("firmware"),
        Path("fw"),
    ]


def _bin_files(directory: Path) -> list[Path]:
    try:
        entries = list(Path(directory).iterdir())
    except OSError:
        return []
    return [path for path in entries if path.suffix == ".bin" and path.is_file()]


class FirmwareManager:
    """Keeps the list of discovered firmware files and the current selection."""

    def __init__(
        self,
        logger: Logger | None = None,
        search_dirs: Iterable[Path] | None = None,
        temp_file: str | Path = TEMP_FIRMWARE_FILE,
    ) -> None:
        self._logger = logger if logger is not None else Logger()
        self._search_dirs = None if search_dirs is None else [Path(d) for d in search_dirs]
        self._temp_file = Path(temp_file)
        self._files: list[Path] = []
        self._selected_index: int | None = None
        self._scan_count = 0

    def scan_firmware_files(self) -> None:
        """Rescan the search directories, one file per distinct name."""
        try:
            self._temp_file.unlink()
        except OSError as exc:
            self._logger.info(f"Note: Could not remove previous temp firmware file: {exc}")

        dirs = (
            self._search_dirs
            if self._search_dirs is not None
            else default_search_dirs(_executable_dir())
        )
        found = [path for directory in dirs for path in _bin_files(directory)]
        found.sort(key=lambda path: path.name)

        seen: set[str] = set()
        unique = []
        for path in found:
            if path.name not in seen:
                seen.add(path.name)
                unique.append(path)
        self._files = unique

        self._scan_count += 1
        if len(self._files) == 1:
            self._selected_index = 0

    def firmware_files(self) -> list[Path]:
        return list(self._files)

    def select_firmware(self, index: int) -> Path | None:
        """Select the file at index and return it, or None if out of range."""
        if 0 <= index < len(self._files):
            self._selected_index = index
            return self._files[index]
        return None

    def selected_firmware(self) -> Path | None:
        index = self._selected_index
        if index is None or index >= len(self._files):
            return None
        return self._files[index]

    def scan_count(self) -> int:
        return self._scan_count
"""Text views of the file check, firmware selection and operation log."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from .file_checker import SUCCESS_TRANSITION_DELAY, CheckState, CheckStatus, FileCheckResult
from .logger import Logger, LogLevel

CHECK_HEADING = "System Check"
FIRMWARE_HEADING = "Firmware Files"
LOG_HEADING = "Operation Log"
BULLET = "\u2022"

_GROUPS: tuple[tuple[str, str | None], ...] = (
    ("Executables", ".exe"),
    ("Libraries", ".dll"),
    ("Bitstreams", ".bit"),
    ("Configuration Files", ".cfg"),
    ("Other Files", None),
)

_ANSI_COLORS = {
    "light_gray": "37",
    "green": "32",
    "yellow": "33",
    "red": "31",
    "light_blue": "94",
    "white": "97",
}


def group_missing_files(files: Iterable[str]) -> list[tuple[str, list[str]]]:
    """Group file names by kind, keeping input order and omitting empty groups."""
    groups: dict[str, list[str]] = {title: [] for title, _ in _GROUPS}
    for file in files:
        title = next(
            (t for t, suffix in _GROUPS if suffix is not None and file.endswith(suffix)),
            "Other Files",
        )
        groups[title].append(file)
    return [(title, members) for title, members in groups.items() if members]


def _render_missing(result: FileCheckResult) -> list[str]:
    lines = [f"Missing {result.error_count} required files:", ""]
    for title, members in group_missing_files(result.missing_files):
        lines.append(title)
        lines.extend(f"  {BULLET} {file}" for file in members)
        lines.append("")
    lines.append("WARNING: Continuing without required files may cause errors")
    lines.append("[Exit]  [Rescan Files]  [Continue Anyway]")
    return lines


def render_check_status(status: CheckStatus, app_title: str) -> str:
    """Render the system-check screen for the given check status."""
    lines = [CHECK_HEADING]
    state = status.state
    if state is CheckState.NOT_STARTED:
        lines += [f"Welcome to the {app_title} Tool", "Checking system files..."]
    elif state is CheckState.CHECKING:
        lines += ["Checking required files...", f"Checking: {status.current_file or ''}"]
    elif state is CheckState.SUCCESS:
        lines.append("All required files are present!")
        started = status.success_time if status.success_time is not None else time.monotonic()
        elapsed = int(max(0.0, time.monotonic() - started))
        if elapsed <= SUCCESS_TRANSITION_DELAY:
            remaining = SUCCESS_TRANSITION_DELAY - elapsed
            lines.append(f"Continuing automatically in {remaining}...")
    elif state is CheckState.COMPLETE:
        if status.result is not None and status.result.error_count > 0:
            lines += _render_missing(status.result)
    return "\n".join(lines)


def render_firmware_selection(
    files: Sequence[str | Path],
    selected_index: int | None,
    is_scanning: bool,
    scan_count: int,
) -> str:
    """Render the firmware list, or a status message when there is nothing to list."""
    paths = [Path(f) for f in files]
    if is_scanning and (not paths or scan_count <= 1):
        message = "Scanning for firmware files..."
    elif not paths:
        message = "No firmware files found in current directory"
    else:
        message = None

    if message is not None:
        return "\n".join(
            [
                FIRMWARE_HEADING,
                message,
                "Please place .bin firmware files in the application directory",
                "Auto-scanning every 3 seconds",
            ]
        )

    indicator = "Scanning..." if is_scanning else "Auto-refreshing"
    lines = [f"Select a firmware file: ({indicator})"]
    for number, path in enumerate(paths, start=1):
        marker = ">" if selected_index == number - 1 else " "
        lines.append(f"{marker} {number}. {path.name or 'Unknown'}")
    if selected_index is not None and 0 <= selected_index < len(paths):
        lines.append("[Continue]")
    else:
        lines.append("Select a firmware file to continue")
    return "\n".join(lines)


@dataclass(frozen=True)
class LogStyle:
    """Display colour and weight of a log line."""

    color: str
    bold: bool = False

    def apply(self, text: str) -> str:
        """Wrap text in ANSI escape codes for this style."""
        codes = ([ "1"] if self.bold else []) + [_ANSI_COLORS[self.color]]
        return f"\x1b[{';'.join(codes)}m{text}\x1b[0m"


_LEVEL_STYLES = {
    LogLevel.INFO: LogStyle("light_gray"),
    LogLevel.SUCCESS: LogStyle("green"),
    LogLevel.WARNING: LogStyle("yellow"),
    LogLevel.ERROR: LogStyle("red"),
    LogLevel.COMMAND: LogStyle("light_blue", bold=True),
    LogLevel.OUTPUT: LogStyle("white"),
}


def log_level_style(level: LogLevel) -> LogStyle:
    """Return the display style for a log level."""
    return _LEVEL_STYLES[level]


def render_log(logger: Logger) -> str:
    """Render every log entry with its time relative to the logger's start."""
    lines = [LOG_HEADING]
    lines.extend(
        f"[{logger.format_timestamp(entry.timestamp)}] {entry.message}"
        for entry in logger.entries()
    )
    return "\n".join(lines)
"""Interprets the operation log: progress stage, sector statistics and results."""

from __future__ import annotations

import re
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .logger import LogEntry
from .options import CompletionStatus, FlashingOption, StatusKind

SECTOR_STUCK_THRESHOLD = 1.0
QUICK_SECTOR_TIME_MS = 50

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")

_DNA_SUCCESS_MARKER = "DNA read completed successfully:"
_FLASH_SUCCESS_MARKER = "Firmware flash completed successfully"

_STAGE_MARKERS: tuple[tuple[str, str, bool], ...] = (
    ("Writing the image to the flash memory", "Writing image to flash memory...", True),
    ("Probing the flash memory", "Probing flash memory...", False),
    ("Resetting and halting the FPGA", "Resetting and halting FPGA...", False),
    ("Loading the bitstream", "Loading bitstream...", False),
    ("Initializing the JTAG interface", "Initializing JTAG interface...", False),
)

_DEVICE_TYPES: tuple[tuple[str, str], ...] = (
    ("CH347 - 35T, 75T, 100T DNA Read", "CH347"),
    ("RS232 - 35T", "Artix-7 35T (RS232)"),
    ("RS232 - 75T", "Artix-7 75T (RS232)"),
    ("CH347 - 35T", "Artix-7 35T (CH347)"),
    ("CH347 - 75T", "Artix-7 75T (CH347)"),
    ("CH347 - Stark100T", "Artix-7 100T (CH347)"),
)

_NEXT_STEPS = "\n".join(
    (
        "Next Steps",
        "1. Reboot both computers",
        "2. Follow the next steps in the guide",
        "   - Install firmware driver on host computer",
        "   - Swap cable to DATA port",
        "   - Activate using provided software and activation code",
        "   - DNA locked firmware builds do not require activation",
    )
)

_UNVERIFIED_NOTE = "Note: Unable to verify complete success, but no errors were detected."


class ResultAction(Enum):
    """What the user chose on the result screen."""

    EXIT = "exit"
    MAIN_MENU = "main_menu"
    TRY_AGAIN = "try_again"


def _parse_unsigned(text: str, limit: int) -> int | None:
    if not _UNSIGNED.fullmatch(text):
        return None
    value = int(text)
    return value if value <= limit else None


def extract_sector(message: str) -> int | None:
    """Return the sector number from a line like 'sector 25 took 1 ms'."""
    parts = message.split("sector")
    if len(parts) < 2:
        return None
    return _parse_unsigned(parts[1].split("took")[0].strip(), _U32_MAX)


def extract_sector_time(message: str) -> int | None:
    """Return the write time in ms from a line like 'Info : sector 25 took 1 ms'."""
    if not ("Info :" in message and "sector" in message and "took" in message):
        return None
    tokens = message.split("took")[1].split()
    if not tokens:
        return None
    return _parse_unsigned(tokens[0], _U64_MAX)


def device_type(option: FlashingOption) -> str:
    """Describe the target device of an option."""
    name = option.display_name()
    return next((device for key, device in _DEVICE_TYPES if key in name), "Unknown Device")


def extract_dna(entries: Iterable[LogEntry]) -> str | None:
    """Return the DNA value reported by the first successful read in the log."""
    for entry in entries:
        if _DNA_SUCCESS_MARKER in entry.message:
            return entry.message.split(":")[1].strip()
    return None


@dataclass(frozen=True)
class SectorStats:
    """Counts of sector writes seen in the log."""

    total_sectors: int = 0
    quick_writes: int = 0

    @property
    def has_sectors(self) -> bool:
        return self.total_sectors > 0

    @property
    def has_quick_writes(self) -> bool:
        """More than half of the writes were suspiciously quick."""
        return self.has_sectors and self.quick_writes > self.total_sectors // 2

    @property
    def has_proper_sector_times(self) -> bool:
        """Fewer than half of the writes were quick."""
        return self.has_sectors and self.quick_writes < self.total_sectors // 2


def sector_statistics(entries: Iterable[LogEntry]) -> SectorStats:
    """Count sector writes and those faster than the quick-write limit."""
    times = [t for t in (extract_sector_time(e.message) for e in entries) if t is not None]
    return SectorStats(
        total_sectors=len(times),
        quick_writes=sum(1 for t in times if t < QUICK_SECTOR_TIME_MS),
    )


def format_duration(seconds: int) -> str:
    """Format whole seconds as minutes:seconds."""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


@dataclass(frozen=True)
class ResultReport:
    """What the result screen shows for a finished operation."""

    success: bool
    title: str
    message: str = ""
    known: bool = True
    note: str | None = None
    duration: str | None = None
    value: str | None = None

    def lines(self) -> list[str]:
        """Message lines, trimmed, with blank lines kept as empty strings."""
        return [line.strip() for line in self.message.split("\n")]


def _error(title: str, message: str) -> ResultReport:
    return ResultReport(success=False, title=title, message=message)


def _unknown(title: str) -> ResultReport:
    return ResultReport(
        success=False, title=title, message="Please check the log for details.", known=False
    )


def evaluate_flash_result(
    status: CompletionStatus, entries: Iterable[LogEntry], duration_secs: int
) -> ResultReport:
    """Decide how a flashing run turned out from its status and log."""
    entries = list(entries)
    stats = sector_statistics(entries)
    operation_success = any(_FLASH_SUCCESS_MARKER in e.message for e in entries)
    duration = format_duration(duration_secs) if duration_secs > 1 else None

    if status.kind is StatusKind.FAILED:
        return _error(
            "FLASHING FAILED", f"Failed to flash firmware to the device:\n\n{status.message}"
        )
    if status.kind is StatusKind.NOT_COMPLETED:
        return _unknown("Flash operation status is unknown.")

    if stats.has_quick_writes:
        return _error(
            "FLASHING FAILED - CONNECTION ISSUE",
            "Multiple sector writes completed too quickly (50ms or less): "
            f"{stats.quick_writes} out of {stats.total_sectors} sectors.\n\n"
            "This indicates a hardware connection issue. The device is accessible but "
            "data is not being properly transferred.\n\n"
            "Try:\n"
            "1. Use a different USB port\n"
            "2. Check cable connections\n"
            "3. Ensure the device is powered correctly\n"
            "4. Try a different USB cable",
        )
    if stats.has_proper_sector_times or operation_success:
        return ResultReport(
            success=True, title="FLASHING SUCCESSFUL!", message=_NEXT_STEPS, duration=duration
        )
    if stats.total_sectors == 0:
        return _error(
            "FLASHING RESULT UNKNOWN",
            "Flashing process completed but no sector write information was found in logs.\n\n"
            "If your device is working correctly, this may be fine.\n\n"
            "Otherwise, please verify:\n"
            "1. You selected the correct board type\n"
            "2. The appropriate USB driver is installed\n"
            "3. The USB cable is properly connected",
        )
    return ResultReport(
        success=True,
        title="FLASHING SUCCESSFUL!",
        message=_NEXT_STEPS,
        note=_UNVERIFIED_NOTE,
        duration=duration,
    )


def evaluate_dna_result(status: CompletionStatus, entries: Iterable[LogEntry]) -> ResultReport:
    """Decide how a DNA read turned out from its status and log."""
    if status.kind is StatusKind.FAILED:
        return _error(
            "DNA READ FAILED", f"Failed to read DNA from the device:\n\n{status.message}"
        )
    if status.kind is StatusKind.NOT_COMPLETED:
        return _unknown("DNA read operation status is unknown.")

    dna = extract_dna(entries)
    if dna is None:
        return _error(
            "DNA READ COMPLETED",
            "The operation completed, but the DNA value could not be extracted from the logs.\n"
            "Please check the log output for details.",
        )
    return ResultReport(
        success=True, title="DNA READ SUCCESSFUL!", message="Device DNA", value=dna
    )


class StageTracker:
    """Derives the current progress stage, remembering when each sector first appeared."""

    def __init__(self, stuck_threshold: float = SECTOR_STUCK_THRESHOLD) -> None:
        self._stuck_threshold = stuck_threshold
        self._first_seen: dict[int, float] = {}
        self._lock = threading.Lock()

    def current_stage(
        self, entries: Iterable[LogEntry], now: float | None = None
    ) -> tuple[str, int | None, bool]:
        """Return (stage message, current sector, whether writing) from the newest entries."""
        now = time.monotonic() if now is None else now
        stage = "Starting operation..."
        sector: int | None = None
        is_writing = False
        is_finalizing = False

        for entry in reversed(list(entries)):
            msg = entry.message
            if "sector" in msg and "took" in msg:
                found = extract_sector(msg)
                if found is None:
                    continue
                with self._lock:
                    first_seen = self._first_seen.setdefault(found, now)
                if now - first_seen > self._stuck_threshold:
                    is_finalizing = True
                sector = found
                is_writing = True
                break
            marker = next((m for m in _STAGE_MARKERS if m[0] in msg), None)
            if marker is not None:
                _, stage, is_writing = marker
                break

        if is_writing and sector is not None:
            message = "Testing and verifying..." if is_finalizing else f"Writing sector {sector}..."
        else:
            message = stage
        return message, sector, is_writing
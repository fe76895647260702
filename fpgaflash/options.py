"""Programming options for supported boards and operation completion status."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

TEMP_FIRMWARE_FILE = "FIRMWARE.bin"
DNA_OUTPUT_FILE = "OpenOCD/openocd_output.log"
SCRIPT_DIR = "."

_OPENOCD_CH347 = "OpenOCD/openocd-347.exe"
_OPENOCD_FTDI = "OpenOCD/openocd.exe"


class FlashingOption(Enum):
    """A board/interface combination for flashing or DNA reading."""

    CH347_35T = "ch347_35t"
    CH347_75T = "ch347_75t"
    CH347_100T = "ch347_100t"
    RS232_35T = "rs232_35t"
    RS232_75T = "rs232_75t"
    DNA_CH347 = "dna_ch347"
    DNA_RS232_35T = "dna_rs232_35t"
    DNA_RS232_75T = "dna_rs232_75t"

    def is_dna_read(self) -> bool:
        return self in _DNA_OPTIONS

    def is_flash_operation(self) -> bool:
        return self in _FLASH_OPTIONS

    def command_args(self) -> tuple[str, str]:
        """Return the programmer executable and its configuration file."""
        return _COMMAND_ARGS[self]

    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    def driver_type(self) -> str:
        return "CH347 USB Driver" if self in _CH347_OPTIONS else "FTDI Driver"


_DNA_OPTIONS = frozenset(
    {FlashingOption.DNA_CH347, FlashingOption.DNA_RS232_35T, FlashingOption.DNA_RS232_75T}
)

_FLASH_OPTIONS = frozenset(
    {
        FlashingOption.CH347_35T,
        FlashingOption.CH347_75T,
        FlashingOption.CH347_100T,
        FlashingOption.RS232_35T,
        FlashingOption.RS232_75T,
    }
)

_CH347_OPTIONS = frozenset(
    {
        FlashingOption.CH347_35T,
        FlashingOption.CH347_75T,
        FlashingOption.CH347_100T,
        FlashingOption.DNA_CH347,
    }
)

_COMMAND_ARGS = {
    FlashingOption.CH347_35T: (_OPENOCD_CH347, "OpenOCD/flash/xc7a35T.cfg"),
    FlashingOption.CH347_75T: (_OPENOCD_CH347, "OpenOCD/flash/xc7a75T.cfg"),
    FlashingOption.CH347_100T: (_OPENOCD_CH347, "OpenOCD/flash/xc7a100T.cfg"),
    FlashingOption.RS232_35T: (_OPENOCD_FTDI, "OpenOCD/flash/xc7a35T_rs232.cfg"),
    FlashingOption.RS232_75T: (_OPENOCD_FTDI, "OpenOCD/flash/xc7a75T_rs232.cfg"),
    FlashingOption.DNA_CH347: (_OPENOCD_CH347, "OpenOCD/DNA/init_347.cfg"),
    FlashingOption.DNA_RS232_35T: (_OPENOCD_FTDI, "OpenOCD/DNA/init_232_35t.cfg"),
    FlashingOption.DNA_RS232_75T: (_OPENOCD_FTDI, "OpenOCD/DNA/init_232_75t.cfg"),
}

_DISPLAY_NAMES = {
    FlashingOption.CH347_35T: "CH347 - 35T",
    FlashingOption.CH347_75T: "CH347 - 75T",
    FlashingOption.CH347_100T: "CH347 - Stark100T",
    FlashingOption.RS232_35T: "RS232 - 35T",
    FlashingOption.RS232_75T: "RS232 - 75T",
    FlashingOption.DNA_CH347: "CH347 - 35T, 75T, 100T DNA Read",
    FlashingOption.DNA_RS232_35T: "RS232 - 35T DNA Read",
    FlashingOption.DNA_RS232_75T: "RS232 - 75T DNA Read",
}


class StatusKind(Enum):
    NOT_COMPLETED = "not_completed"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class CompletionStatus:
    """Outcome of a flashing or DNA read operation."""

    kind: StatusKind
    message: str | None = None

    @classmethod
    def not_completed(cls) -> CompletionStatus:
        return cls(StatusKind.NOT_COMPLETED)

    @classmethod
    def completed(cls) -> CompletionStatus:
        return cls(StatusKind.COMPLETED)

    @classmethod
    def failed(cls, message: str) -> CompletionStatus:
        return cls(StatusKind.FAILED, message)

    def is_finished(self) -> bool:
        return self.kind is not StatusKind.NOT_COMPLETED
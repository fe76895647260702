"""Menus for choosing an operation and a board option."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from .app import OperationType
from .options import FlashingOption

OPERATION_TITLE = "Select Operation"
FLASH_OPTIONS_TITLE = "Select Flashing Option"
DNA_OPTIONS_TITLE = "Select DNA Read Option"

CH347_SECTION = "CH347 Options"
RS232_SECTION = "RS232 Options"

FLASH_FIRMWARE_COLOR = (70, 100, 150)
READ_DNA_COLOR = (50, 120, 50)
CH347_COLOR = (50, 70, 90)
RS232_COLOR = (70, 60, 90)


@dataclass(frozen=True)
class MenuEntry:
    """One selectable item: its label, a short description and the chosen value."""

    label: str
    description: str
    value: Any
    section: str | None = None
    color: tuple[int, int, int] | None = None


def operation_menu() -> list[MenuEntry]:
    """The top-level choice between flashing and reading the device DNA."""
    return [
        MenuEntry(
            "Flash Firmware",
            "Upload firmware to your device",
            OperationType.FLASH_FIRMWARE,
            color=FLASH_FIRMWARE_COLOR,
        ),
        MenuEntry(
            "Read Device DNA",
            "Retrieve the unique ID from your device",
            OperationType.READ_DNA,
            color=READ_DNA_COLOR,
        ),
    ]


def flash_option_menu() -> list[MenuEntry]:
    """Board options for flashing, grouped by interface."""
    return [
        MenuEntry(
            "CH347 - 35T",
            "For 35T boards using CH347 interface",
            FlashingOption.CH347_35T,
            CH347_SECTION,
            CH347_COLOR,
        ),
        MenuEntry(
            "CH347 - 75T",
            "For 75T boards using CH347 interface",
            FlashingOption.CH347_75T,
            CH347_SECTION,
            CH347_COLOR,
        ),
        MenuEntry(
            "CH347 - Stark100T",
            "For Stark100T boards using CH347 interface",
            FlashingOption.CH347_100T,
            CH347_SECTION,
            CH347_COLOR,
        ),
        MenuEntry(
            "RS232 - 35T",
            "For 35T boards using RS232 interface",
            FlashingOption.RS232_35T,
            RS232_SECTION,
            RS232_COLOR,
        ),
        MenuEntry(
            "RS232 - 75T",
            "For 75T boards using RS232 interface",
            FlashingOption.RS232_75T,
            RS232_SECTION,
            RS232_COLOR,
        ),
    ]


def dna_option_menu() -> list[MenuEntry]:
    """Board options for reading the device DNA."""
    return [
        MenuEntry(
            "CH347 - DNA Read: 35T, 75T, 100T",
            "Read DNA from 35T, 75T, or 100T using CH347 interface",
            FlashingOption.DNA_CH347,
            color=CH347_COLOR,
        ),
        MenuEntry(
            "RS232 - DNA Read: 35T",
            "Read DNA from 35T boards using RS232 interface",
            FlashingOption.DNA_RS232_35T,
            color=RS232_COLOR,
        ),
        MenuEntry(
            "RS232 - DNA Read: 75T",
            "Read DNA from 75T boards using RS232 interface",
            FlashingOption.DNA_RS232_75T,
            color=RS232_COLOR,
        ),
    ]


def render_menu(title: str, entries: Iterable[MenuEntry]) -> str:
    """Render a numbered menu, with a header wherever a new section starts."""
    lines = [title]
    section: str | None = None
    for number, entry in enumerate(entries, start=1):
        if entry.section is not None and entry.section != section:
            lines += ["", entry.section]
            section = entry.section
        lines.append(f"  {number}. {entry.label}")
        if entry.description:
            lines.append(f"     {entry.description}")
    return "\n".join(lines)


def choose(entries: Sequence[MenuEntry], answer: str) -> Any:
    """Return the value picked by a 1-based number or a label; raise ValueError otherwise."""
    entries = list(entries)
    text = answer.strip()
    if text.isdigit():
        number = int(text)
        if 1 <= number <= len(entries):
            return entries[number - 1].value
    elif text:
        folded = text.casefold()
        for entry in entries:
            if entry.label.casefold() == folded:
                return entry.value
    raise ValueError(f"invalid choice: {answer!r}")
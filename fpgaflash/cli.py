"""Command-line entry point: interactive mode and one-shot commands."""

from __future__ import annotations

import argparse
import sys
import time
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Callable, Sequence, TextIO

from .analysis import ResultAction, ResultReport, evaluate_dna_result, evaluate_flash_result
from .app import APP_TITLE, AppState, FirmwareToolApp
from .file_checker import FileChecker
from .logger import Logger
from .manager import FlashingManager
from .menus import (
    DNA_OPTIONS_TITLE,
    FLASH_OPTIONS_TITLE,
    OPERATION_TITLE,
    MenuEntry,
    choose,
    dna_option_menu,
    flash_option_menu,
    operation_menu,
    render_menu,
)
from .options import SCRIPT_DIR, FlashingOption
from .views import render_check_status, render_firmware_selection

POLL_INTERVAL = 0.05

_FLASH_OPTIONS = [o for o in FlashingOption if o.is_flash_operation()]
_DNA_OPTIONS = [o for o in FlashingOption if o.is_dna_read()]

_CHECK_ACTIONS = [
    MenuEntry("Exit", "", "exit"),
    MenuEntry("Rescan Files", "", "rescan"),
    MenuEntry("Continue Anyway", "", "continue"),
]

_RESULT_ACTIONS = [
    MenuEntry("Exit", "", ResultAction.EXIT),
    MenuEntry("Main Menu", "", ResultAction.MAIN_MENU),
    MenuEntry("Try Again", "", ResultAction.TRY_AGAIN),
]

Reader = Callable[[str], str]


def _version() -> str:
    try:
        return version("fpgaflash")
    except PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser; with no command the tool runs interactively."""
    parser = argparse.ArgumentParser(
        prog=APP_TITLE, description="Flash FPGA firmware and read device DNA."
    )
    parser.add_argument(
        "--version", action="version", version=f"{APP_TITLE} v{_version()}"
    )
    parser.add_argument(
        "--script-dir",
        default=SCRIPT_DIR,
        help="directory holding the OpenOCD folder (default: current directory)",
    )
    parser.add_argument(
        "--dir",
        dest="check_dirs",
        action="append",
        type=Path,
        help="directory to look for required files in (repeatable)",
    )
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("check", help="check that all required files are present")
    commands.add_parser("list", help="list firmware files that can be flashed")

    flash = commands.add_parser("flash", help="flash a firmware image")
    flash.add_argument("firmware", type=Path, help="firmware .bin file")
    flash.add_argument(
        "--option",
        required=True,
        type=FlashingOption,
        choices=_FLASH_OPTIONS,
        metavar="{" + ",".join(o.value for o in _FLASH_OPTIONS) + "}",
        help="board and interface",
    )

    dna = commands.add_parser("dna", help="read the device DNA")
    dna.add_argument(
        "--option",
        type=FlashingOption,
        choices=_DNA_OPTIONS,
        default=FlashingOption.DNA_CH347,
        metavar="{" + ",".join(o.value for o in _DNA_OPTIONS) + "}",
        help="board and interface (default: dna_ch347)",
    )
    return parser


def _format_report(report: ResultReport) -> str:
    lines = [report.title]
    if report.value is not None:
        lines += [report.message, report.value]
    else:
        lines += report.lines()
    if report.note:
        lines.append(report.note)
    if report.duration:
        lines.append(f"Operation took: {report.duration}")
    return "\n".join(lines)


def _report_for(manager: FlashingManager, option: FlashingOption) -> ResultReport:
    entries = manager.logger.entries()
    status = manager.completion_status()
    if option.is_dna_read():
        return evaluate_dna_result(status, entries)
    return evaluate_flash_result(status, entries, int(manager.duration() or 0))


def _wait_for(manager: FlashingManager) -> None:
    while not manager.is_completed():
        time.sleep(POLL_INTERVAL)


def _checker_factory(args: argparse.Namespace) -> Callable[[], FileChecker]:
    dirs = args.check_dirs
    return lambda: FileChecker(base_paths=dirs, delay=0.0)


def _cmd_check(args: argparse.Namespace, out: TextIO) -> int:
    checker = _checker_factory(args)()
    result = checker.run_check()
    print(render_check_status(checker.status(), APP_TITLE), file=out)
    if result.error_count == 0:
        print("All required files are present!", file=out)
        return 0
    return 1


def _cmd_list(out: TextIO) -> int:
    from .firmware_discovery import FirmwareManager

    firmware = FirmwareManager()
    firmware.scan_firmware_files()
    files = list(firmware.firmware_files())
    selected = firmware.selected_firmware()
    index = files.index(selected) if selected in files else None
    print(render_firmware_selection(files, index, False, firmware.scan_count()), file=out)
    return 0 if files else 1


def _cmd_operation(args: argparse.Namespace, out: TextIO) -> int:
    manager = FlashingManager(Logger(), script_dir=args.script_dir)
    option: FlashingOption = args.option
    if args.command == "flash":
        manager.execute_flash(args.firmware, option)
    else:
        manager.execute_dna_read(option)
    _wait_for(manager)
    report = _report_for(manager, option)
    print(_format_report(report), file=out)
    return 0 if report.success else 1


def _ask(prompt: str, entries: Sequence[MenuEntry], read: Reader, out: TextIO):
    while True:
        try:
            return choose(entries, read(prompt))
        except ValueError as exc:
            print(exc, file=out)


def _run_file_check(app: FirmwareToolApp, read: Reader, out: TextIO) -> bool:
    while True:
        app.check_started = True
        result = app.file_checker.run_check()
        print(render_check_status(app.file_checker.status(), APP_TITLE), file=out)
        if result.error_count == 0:
            print("All required files are present!", file=out)
            app.state = AppState.OPERATION_SELECTION
            return True
        choice = _ask("Choose an action: ", _CHECK_ACTIONS, read, out)
        if choice == "exit":
            return False
        if choice == "rescan":
            app.rescan()
            continue
        app.continue_anyway()
        return True


def _pick_firmware(app: FirmwareToolApp, read: Reader, out: TextIO) -> Path | None:
    firmware = app.firmware_manager
    while True:
        files = list(firmware.firmware_files())
        selected = firmware.selected_firmware()
        index = files.index(selected) if selected in files else None
        print(render_firmware_selection(files, index, False, firmware.scan_count()), file=out)
        if not files:
            answer = read("Press Enter to rescan, or q to go back: ").strip().lower()
            if answer == "q":
                return None
            firmware.scan_firmware_files()
            continue
        answer = read("Firmware number (r to rescan, q to go back): ").strip().lower()
        if answer == "q":
            return None
        if answer == "r":
            firmware.scan_firmware_files()
            continue
        if not answer and selected is not None:
            return Path(selected)
        if answer.isdigit():
            path = firmware.select_firmware(int(answer) - 1)
            if path is not None:
                return Path(path)
        print(f"invalid choice: {answer!r}", file=out)


def _await_result(app: FirmwareToolApp) -> None:
    while app.update() is AppState.FLASHING:
        time.sleep(POLL_INTERVAL)


def _interactive(args: argparse.Namespace, read: Reader, out: TextIO) -> int:
    logger = Logger()
    manager = FlashingManager(logger, script_dir=args.script_dir)
    app = FirmwareToolApp(
        logger=logger,
        flashing_manager=manager,
        file_checker_factory=_checker_factory(args),
    )
    if not _run_file_check(app, read, out):
        return 1

    while True:
        print(render_menu(OPERATION_TITLE, operation_menu()), file=out)
        app.choose_operation(_ask("Operation: ", operation_menu(), read, out))
        if app.state is AppState.FIRMWARE_SELECTION:
            path = _pick_firmware(app, read, out)
            if path is None:
                app.state = AppState.OPERATION_SELECTION
                continue
            app.select_firmware(path)

        if app.selected_firmware is not None:
            title, entries = FLASH_OPTIONS_TITLE, flash_option_menu()
        else:
            title, entries = DNA_OPTIONS_TITLE, dna_option_menu()
        print(render_menu(title, entries), file=out)
        app.choose_option(_ask("Option: ", entries, read, out))

        while True:
            _await_result(app)
            option = app.selected_option
            if option is not None:
                print(_format_report(_report_for(manager, option)), file=out)
            action = _ask("Next: ", _RESULT_ACTIONS, read, out)
            if action is ResultAction.EXIT:
                return 0
            app.handle_result_action(action)
            if action is ResultAction.MAIN_MENU:
                break


def main(argv: Sequence[str] | None = None) -> int:
    """Run the tool; return the process exit status."""
    args = build_parser().parse_args(argv)
    out = sys.stdout
    if args.command == "check":
        return _cmd_check(args, out)
    if args.command == "list":
        return _cmd_list(out)
    if args.command in ("flash", "dna"):
        return _cmd_operation(args, out)
    try:
        return _interactive(args, input, out)
    except (EOFError, KeyboardInterrupt):
        print(file=out)
        return 0


if __name__ == "__main__":
    sys.exit(main())
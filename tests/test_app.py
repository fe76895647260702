import time

import pytest

from fpgaflash.analysis import ResultAction
from fpgaflash.app import (
    APP_TITLE,
    AppState,
    FirmwareToolApp,
    OperationType,
    WindowSizeType,
    window_height,
)
from fpgaflash.file_checker import REQUIRED_FILES, CheckState, FileChecker
from fpgaflash.firmware_discovery import FirmwareManager
from fpgaflash.logger import Logger
from fpgaflash.manager import FlashingManager
from fpgaflash.options import FlashingOption, StatusKind


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def make_app(tmp_path, clock):
    logger = Logger()
    check_dir = tmp_path / "check"
    check_dir.mkdir(exist_ok=True)
    fw_dir = tmp_path / "fw"
    fw_dir.mkdir(exist_ok=True)
    manager = FlashingManager(
        logger,
        script_dir=str(tmp_path / "scripts"),
        temp_file=tmp_path / "FIRMWARE.bin",
        dna_output_file=tmp_path / "dna.log",
    )
    firmware = FirmwareManager(
        logger=logger, search_dirs=[fw_dir], temp_file=tmp_path / "FIRMWARE.bin"
    )
    return FirmwareToolApp(
        logger=logger,
        flashing_manager=manager,
        firmware_manager=firmware,
        file_checker_factory=lambda: FileChecker(base_paths=[check_dir], delay=0),
        clock=clock,
    )


def wait_for_check(app, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if app.file_checker.status().state is CheckState.COMPLETE:
            return app.file_checker.status()
        time.sleep(0.01)
    raise AssertionError("file check did not complete")


def test_window_heights_match_layouts():
    assert window_height(WindowSizeType.FILE_CHECK) == 200.0
    assert window_height(WindowSizeType.MISSING_FILES) == 475.0
    assert window_height(WindowSizeType.OPERATION_RESULT) == 675.0
    heights = [window_height(t) for t in WindowSizeType]
    assert len(set(heights)) == len(heights)


def test_starts_in_file_check_and_logs(tmp_path):
    app = make_app(tmp_path, FakeClock())
    assert app.state is AppState.FILE_CHECK
    assert app.logger.entries()[0].message == f"{APP_TITLE} Tool started"
    assert app.should_show_log() is False


def test_check_waits_for_initial_delay(tmp_path):
    clock = FakeClock()
    app = make_app(tmp_path, clock)
    clock.now = 0.05
    app.update()
    assert app.check_started is False
    assert app.file_checker.status().state is CheckState.NOT_STARTED


def test_missing_files_then_continue_anyway(tmp_path):
    clock = FakeClock()
    app = make_app(tmp_path, clock)
    clock.now = 0.2
    app.update()
    assert app.check_started is True
    status = wait_for_check(app)
    assert status.result.error_count == len(REQUIRED_FILES)
    assert app.update() is AppState.FILE_CHECK
    assert app.window_size_type() is WindowSizeType.MISSING_FILES
    app.continue_anyway()
    assert app.state is AppState.OPERATION_SELECTION
    assert app.window_size_type() is WindowSizeType.OPERATION_SELECTION


def test_continue_anyway_ignored_before_check_completes(tmp_path):
    app = make_app(tmp_path, FakeClock())
    app.continue_anyway()
    assert app.state is AppState.FILE_CHECK


def test_all_files_present_transition_after_delay(tmp_path):
    clock = FakeClock()
    app = make_app(tmp_path, clock)
    for name in REQUIRED_FILES:
        path = tmp_path / "check" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x")
    clock.now = 0.2
    app.update()
    wait_for_check(app)
    assert app.update() is AppState.FILE_CHECK
    assert app.file_checker.status().state is CheckState.SUCCESS
    clock.now = 0.5
    assert app.update() is AppState.FILE_CHECK
    clock.now = 1.5
    assert app.update() is AppState.OPERATION_SELECTION
    assert app.file_checker.status().state is CheckState.READY_TO_TRANSITION


def test_rescan_restarts_check(tmp_path):
    clock = FakeClock()
    app = make_app(tmp_path, clock)
    clock.now = 0.2
    app.update()
    wait_for_check(app)
    app.rescan()
    assert app.check_started is False
    assert app.file_checker.status().state is CheckState.NOT_STARTED
    app.update()
    assert app.check_started is True
    assert wait_for_check(app).result.error_count == len(REQUIRED_FILES)


def test_firmware_scanning_schedule(tmp_path):
    clock = FakeClock()
    app = make_app(tmp_path, clock)
    (tmp_path / "fw" / "image.bin").write_bytes(b"\x00")
    app.state = AppState.OPERATION_SELECTION
    app.choose_operation(OperationType.FLASH_FIRMWARE)
    assert app.state is AppState.FIRMWARE_SELECTION
    assert app.window_size_type() is WindowSizeType.FILE_SELECTION
    assert app.firmware_manager.scan_count() == 1
    assert app.firmware_scanning is True
    assert app.firmware_manager.selected_firmware().name == "image.bin"

    app.update()
    assert app.firmware_manager.scan_count() == 1
    clock.now = 0.6
    app.update()
    assert app.firmware_scanning is False
    app.update()
    assert app.firmware_manager.scan_count() == 2
    clock.now = 1.5
    app.update()
    app.update()
    assert app.firmware_manager.scan_count() == 2


def test_select_firmware_moves_to_options(tmp_path):
    app = make_app(tmp_path, FakeClock())
    app.select_firmware(tmp_path / "image.bin")
    assert app.state is AppState.FLASHING_OPTIONS
    assert app.selected_firmware == tmp_path / "image.bin"
    assert app.window_size_type() is WindowSizeType.FLASH_OPTION_SELECTION


def test_flash_option_without_firmware_does_not_start(tmp_path):
    app = make_app(tmp_path, FakeClock())
    app.state = AppState.FLASHING_OPTIONS
    app.choose_option(FlashingOption.CH347_35T)
    assert app.selected_option is FlashingOption.CH347_35T
    assert app.state is AppState.FLASHING_OPTIONS


def test_dna_read_failure_reaches_result(tmp_path):
    app = make_app(tmp_path, FakeClock())
    app.state = AppState.OPERATION_SELECTION
    app.choose_operation(OperationType.READ_DNA)
    assert app.state is AppState.FLASHING_OPTIONS
    assert app.selected_option is FlashingOption.DNA_CH347
    assert app.window_size_type() is WindowSizeType.READ_OPTION_SELECTION
    app.choose_option(FlashingOption.DNA_RS232_35T)
    assert app.state is AppState.FLASHING
    assert app.should_show_log() is True
    assert app.update() is AppState.RESULT
    status = app.flashing_manager.completion_status()
    assert status.kind is StatusKind.FAILED
    assert status.message.startswith("Failed to start process")
    assert app.window_size_type() is WindowSizeType.OPERATION_RESULT


def test_flash_with_missing_image_reaches_result(tmp_path):
    app = make_app(tmp_path, FakeClock())
    app.select_firmware(tmp_path / "missing.bin")
    app.choose_option(FlashingOption.RS232_75T)
    assert app.state is AppState.FLASHING
    assert app.update() is AppState.RESULT
    status = app.flashing_manager.completion_status()
    assert status.message.startswith("Failed to prepare firmware file")


def test_try_again_reruns_operation(tmp_path):
    app = make_app(tmp_path, FakeClock())
    app.choose_option(FlashingOption.DNA_CH347)
    app.update()
    assert app.state is AppState.RESULT
    app.handle_result_action(ResultAction.TRY_AGAIN)
    assert app.state is AppState.FLASHING
    assert app.selected_option is FlashingOption.DNA_CH347
    assert app.flashing_manager.current_option() is FlashingOption.DNA_CH347


def test_main_menu_clears_selection(tmp_path):
    app = make_app(tmp_path, FakeClock())
    app.select_firmware(tmp_path / "missing.bin")
    app.choose_option(FlashingOption.CH347_100T)
    app.update()
    app.handle_result_action(ResultAction.MAIN_MENU)
    assert app.state is AppState.OPERATION_SELECTION
    assert app.selected_firmware is None
    assert app.selected_option is None


def test_exit_raises_system_exit(tmp_path):
    app = make_app(tmp_path, FakeClock())
    with pytest.raises(SystemExit) as info:
        app.handle_result_action(ResultAction.EXIT)
    assert info.value.code == 0
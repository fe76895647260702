import subprocess
import sys
import time

import pytest

from fpgaflash.logger import Logger, LogLevel
from fpgaflash.options import CompletionStatus, StatusKind
from fpgaflash.process import ProcessExecutor, ProcessLaunchError, build_command


def _python(code):
    return build_command(sys.executable, ["-c", code])


@pytest.fixture
def logger():
    return Logger()


def test_build_command_puts_executable_first():
    assert build_command("./tool.exe", ["-f", "cfg", "-c", "exit"]) == [
        "./tool.exe",
        "-f",
        "cfg",
        "-c",
        "exit",
    ]


def test_reset_clears_status_and_starts_clock(logger):
    executor = ProcessExecutor(logger)
    executor.set_completion_status(CompletionStatus.failed("boom"))
    before = time.monotonic()
    executor.reset()
    assert executor.completion_status() == CompletionStatus.not_completed()
    assert before <= executor.start_time() <= time.monotonic()


def test_set_completion_status_round_trip(logger):
    executor = ProcessExecutor(logger)
    executor.set_completion_status(CompletionStatus.completed())
    assert executor.completion_status().kind is StatusKind.COMPLETED


def test_successful_command_reports_lines_and_completes(logger, tmp_path):
    executor = ProcessExecutor(logger, temp_file=tmp_path / "FIRMWARE.bin")
    executor.reset()
    seen = []
    executor.execute_command(_python("print('hello'); print('world')"), on_line=seen.append)
    status = executor.wait(timeout=30)
    assert status == CompletionStatus.completed()
    assert seen == ["hello", "world"]
    outputs = [e.message for e in logger.entries() if e.level is LogLevel.OUTPUT]
    assert outputs == ["hello", "world"]
    assert any(e.message == "Command completed successfully" for e in logger.entries())


def test_failing_command_records_exit_code(logger, tmp_path):
    executor = ProcessExecutor(logger, temp_file=tmp_path / "FIRMWARE.bin")
    executor.reset()
    executor.execute_command(_python("import sys; sys.exit(3)"))
    status = executor.wait(timeout=30)
    assert status.kind is StatusKind.FAILED
    assert status.message == "Command failed with exit code: 3"


def test_stderr_lines_are_logged_as_errors(logger, tmp_path):
    executor = ProcessExecutor(logger, temp_file=tmp_path / "FIRMWARE.bin")
    executor.reset()
    executor.execute_command(_python("import sys; sys.stderr.write('bad thing\\n')"))
    executor.wait(timeout=30)
    errors = [e.message for e in logger.entries() if e.level is LogLevel.ERROR]
    assert "bad thing" in errors


def test_missing_executable_raises_and_records_failure(logger, tmp_path):
    executor = ProcessExecutor(logger, temp_file=tmp_path / "FIRMWARE.bin")
    executor.reset()
    with pytest.raises(ProcessLaunchError):
        executor.execute_command([str(tmp_path / "missing.exe")])
    status = executor.completion_status()
    assert status.kind is StatusKind.FAILED
    assert status.message.startswith("Failed to start process:")


def test_launch_failure_removes_temp_file(logger, tmp_path):
    temp = tmp_path / "FIRMWARE.bin"
    temp.write_bytes(b"\x00\x01")
    executor = ProcessExecutor(logger, temp_file=temp)
    with pytest.raises(ProcessLaunchError):
        executor.execute_command([str(tmp_path / "missing.exe")], cleanup_temp_file=True)
    assert not temp.exists()


def test_timed_run_records_duration_and_cleans_up(logger, tmp_path):
    temp = tmp_path / "FIRMWARE.bin"
    temp.write_bytes(b"data")
    executor = ProcessExecutor(logger, temp_file=temp)
    executor.reset()
    executor.execute_command(_python("pass"), update_duration=True, cleanup_temp_file=True)
    executor.wait(timeout=30)
    assert executor.duration >= 0.0
    assert any(e.message.startswith("Operation took ") for e in logger.entries())
    assert not temp.exists()


def test_terminate_process_kills_child(logger):
    executor = ProcessExecutor(logger)
    child = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
    try:
        executor.terminate_process(child.pid)
        returncode = child.wait(timeout=30)
    finally:
        if child.poll() is None:
            child.kill()
            child.wait()
    assert returncode != 0
    assert logger.entries()[-1].message == f"Forcibly terminating process {child.pid}"
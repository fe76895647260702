import subprocess
import sys

import pytest

from fpgaflash.logger import LogLevel, Logger
from fpgaflash.monitor import (
    QUICK_WRITE_MAX_COUNT,
    QUICK_WRITE_THRESHOLD_MS,
    OperationMonitor,
    parse_sector_time,
)


def _quick_line(sector):
    return f"[ERROR] Info : sector {sector} took 1 ms"


def test_parse_sector_time_from_programmer_line():
    assert parse_sector_time("[ERROR] Info : sector 25 took 1 ms") == 1


@pytest.mark.parametrize(
    "line",
    [
        "sector 25 took 1 ms",
        "Info : sector 25 took",
        "Info : sector 25 took abc ms",
        "Info : sector 25 took -3 ms",
        "Info : flash probed",
    ],
)
def test_parse_sector_time_rejects_other_lines(line):
    assert parse_sector_time(line) is None


def test_threshold_is_inclusive():
    monitor = OperationMonitor()
    logger = Logger()
    monitor.process_line(f"Info : sector 1 took {QUICK_WRITE_THRESHOLD_MS} ms", logger, None)
    monitor.process_line(f"Info : sector 2 took {QUICK_WRITE_THRESHOLD_MS + 1} ms", logger, None)
    assert monitor.quick_writes == 1
    assert monitor.total_sectors == 2


def test_non_sector_lines_are_ignored():
    monitor = OperationMonitor()
    logger = Logger()
    assert monitor.process_line("Info : JTAG tap found", logger, None) is False
    assert monitor.total_sectors == 0
    assert logger.entries() == []


def test_warning_only_after_exceeding_limit_without_pid():
    monitor = OperationMonitor()
    logger = Logger()
    for sector in range(QUICK_WRITE_MAX_COUNT):
        monitor.process_line(_quick_line(sector), logger, None)
    assert not any(e.level is LogLevel.WARNING for e in logger.entries())
    monitor.process_line(_quick_line(QUICK_WRITE_MAX_COUNT), logger, None)
    assert any(e.level is LogLevel.WARNING for e in logger.entries())
    assert monitor.was_terminated_early() is False


def test_auto_terminate_can_be_disabled():
    monitor = OperationMonitor()
    monitor.set_auto_terminate(False)
    logger = Logger()
    for sector in range(QUICK_WRITE_MAX_COUNT + 5):
        monitor.process_line(_quick_line(sector), logger, None)
    assert monitor.quick_writes == QUICK_WRITE_MAX_COUNT + 5
    assert not any(e.level is LogLevel.WARNING for e in logger.entries())


def test_line_monitor_kills_child_process():
    proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
    try:
        monitor = OperationMonitor()
        on_line = monitor.create_line_monitor(Logger(), proc.pid)
        for sector in range(QUICK_WRITE_MAX_COUNT + 2):
            on_line(_quick_line(sector))
        proc.wait(timeout=15)
        assert monitor.was_terminated_early() is True
        assert proc.returncode != 0
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()


def test_reset_counters_clears_state():
    monitor = OperationMonitor()
    logger = Logger()
    monitor.process_line(_quick_line(1), logger, None)
    monitor.reset_counters()
    assert monitor.quick_writes == 0
    assert monitor.total_sectors == 0
    assert monitor.was_terminated_early() is False
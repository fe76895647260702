import pytest

from fpgaflash.cli import build_parser, main
from fpgaflash.file_checker import REQUIRED_FILES
from fpgaflash.options import FlashingOption


def test_parser_flash_converts_option():
    args = build_parser().parse_args(["flash", "fw.bin", "--option", "rs232_75t"])
    assert args.command == "flash"
    assert args.option is FlashingOption.RS232_75T
    assert args.firmware.name == "fw.bin"


def test_parser_rejects_dna_option_for_flash():
    with pytest.raises(SystemExit) as info:
        build_parser().parse_args(["flash", "fw.bin", "--option", "dna_ch347"])
    assert info.value.code == 2


def test_parser_dna_defaults_to_ch347():
    args = build_parser().parse_args(["dna"])
    assert args.option is FlashingOption.DNA_CH347


def test_check_reports_missing_files(tmp_path, capsys):
    assert main(["--dir", str(tmp_path), "check"]) == 1
    out = capsys.readouterr().out
    assert f"Missing {len(REQUIRED_FILES)} required files:" in out
    assert "OpenOCD/openocd.exe" in out


def test_check_succeeds_when_all_files_exist(tmp_path, capsys):
    for name in REQUIRED_FILES:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")
    assert main(["--dir", str(tmp_path), "check"]) == 0
    assert "All required files are present!" in capsys.readouterr().out


def test_flash_missing_firmware_fails(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    code = main(
        ["--script-dir", str(tmp_path), "flash", str(tmp_path / "absent.bin"),
         "--option", "ch347_35t"]
    )
    assert code == 1
    out = capsys.readouterr().out
    assert "FLASHING FAILED" in out
    assert "Failed to prepare firmware file" in out


def test_flash_without_programmer_fails_and_cleans_up(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    firmware = tmp_path / "image.bin"
    firmware.write_bytes(b"\x00\x01")
    code = main(["--script-dir", str(tmp_path), "flash", str(firmware), "--option", "ch347_35t"])
    assert code == 1
    assert "Failed to start process" in capsys.readouterr().out
    assert not (tmp_path / "FIRMWARE.bin").exists()


def test_dna_without_programmer_fails(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main(["--script-dir", str(tmp_path), "dna"]) == 1
    assert "DNA READ FAILED" in capsys.readouterr().out


def _feed(monkeypatch, answers):
    replies = iter(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(replies))


def test_interactive_exit_at_file_check(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _feed(monkeypatch, ["Exit"])
    assert main(["--dir", str(tmp_path)]) == 1
    assert "Continue Anyway" in capsys.readouterr().out


def test_interactive_dna_read_then_exit(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _feed(monkeypatch, ["3", "2", "1", "1"])
    assert main(["--dir", str(tmp_path), "--script-dir", str(tmp_path)]) == 0
    out = capsys.readouterr().out
    assert "Select DNA Read Option" in out
    assert "DNA READ FAILED" in out


def test_interactive_end_of_input_exits_cleanly(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    def no_input(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", no_input)
    assert main(["--dir", str(tmp_path)]) == 0
# fpgaflash

A terminal tool for programming Artix-7 FPGA boards (35T, 75T and Stark100T)
over a CH347 or RS232 interface, and for reading a device's unique DNA value.
The programming itself is done by OpenOCD, which this tool starts and watches.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Preparing the working directory

Run the tool from a directory that holds the OpenOCD bundle:

- `OpenOCD/openocd-347.exe` and `OpenOCD/openocd.exe`
- the runtime libraries that come with them (`OpenOCD/*.dll`, `OpenOCD/libftdi1-config`)
- the bitstreams in `OpenOCD/bit/`
- the flash configurations in `OpenOCD/flash/`
- the DNA configurations in `OpenOCD/DNA/`

Firmware images (`*.bin`) are looked for in the current directory, the
directory of the running program, and the `resources`, `bin`, `firmware` and
`fw` subdirectories. When the same file name turns up more than once, only
one copy is listed.

While flashing, the chosen image is copied to `FIRMWARE.bin` in the current
directory and removed again when OpenOCD exits. A DNA read expects OpenOCD to
write its output to `OpenOCD/openocd_output.log`; any earlier copy of that
file is deleted before the read starts.

## Usage

### Interactive

```
fpgaflash
```

1. **System check.** Every required OpenOCD file is looked for. If any are
   missing they are listed by kind (executables, libraries, bitstreams,
   configuration files, others) and you can exit, rescan or continue anyway.
2. **Operation.** Choose *Flash Firmware* or *Read Device DNA*, by number or
   by name.
3. **Firmware.** For flashing, pick one of the `.bin` files found by number.
   Enter `r` to rescan, `q` to go back. When exactly one file is found it is
   selected already, and pressing Enter takes it.
4. **Option.** Pick the interface and board, for example `CH347 - 35T` or
   `RS232 - DNA Read: 75T`.
5. **Result.** OpenOCD's output is echoed to the console while it runs. At the
   end the tool reports success, failure, a probable connection problem (more
   than half of the sector writes took under 50 ms), or the DNA value that was
   read. You can then try again, go back to the main menu, or exit.

### One-shot commands

```
fpgaflash check
fpgaflash list
fpgaflash flash firmware.bin --option ch347_35t
fpgaflash dna --option dna_rs232_35t
```

- `check` runs the system check; exit status 0 when every file is present.
- `list` shows the firmware files found; exit status 1 when there are none.
- `flash FIRMWARE --option OPTION` flashes an image. Options: `ch347_35t`,
  `ch347_75t`, `ch347_100t`, `rs232_35t`, `rs232_75t`.
- `dna [--option OPTION]` reads the device DNA. Options: `dna_ch347`
  (default), `dna_rs232_35t`, `dna_rs232_75t`.

`flash` and `dna` print the result and exit with status 0 on success.

Global options, given before the command:

- `--script-dir DIR` — directory that holds the `OpenOCD` folder (default: the
  current directory).
- `--dir DIR` — a directory to look for the required files in; may be
  repeated. Without it the current directory and the program's own directory
  are searched.
- `--version` — print the version.

## Library use

The parts can be used from Python:

```python
from fpgaflash.logger import Logger
from fpgaflash.manager import FlashingManager
from fpgaflash.options import FlashingOption

logger = Logger()
manager = FlashingManager(logger)
manager.execute_dna_read(FlashingOption.DNA_CH347)
```

`FlashingManager.completion_status()` returns a `CompletionStatus` whose
`is_finished()` tells whether the run is over; `FlashingManager.output_log()`
returns the messages logged so far. `fpgaflash.analysis` turns a status and
the log entries into a `ResultReport` (`evaluate_flash_result`,
`evaluate_dna_result`), counts sector writes (`sector_statistics`) and derives
the current progress stage from the log (`StageTracker`). `fpgaflash.app`
holds the `FirmwareToolApp` state machine that the interactive mode drives.

## What it does not do

- There is no graphical window; everything runs in the terminal. The window
  layout heights in `fpgaflash.app` (`window_height`) are kept for reference
  only.
- The interactive mode does not show a live progress stage while OpenOCD runs;
  only the console output and the final result are shown.
- Quick sector writes are counted and warned about in the log, but a running
  flash is not stopped early because of them; the connection problem is
  reported in the result instead.
- Firmware files are not rescanned automatically in the terminal; rescanning
  is done on request.
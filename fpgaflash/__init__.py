"""Terminal tool and library for flashing Artix-7 FPGA boards and reading device DNA through OpenOCD."""

__version__ = "0.1.0"
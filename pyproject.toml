[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fpgaflash"
version = "0.1.0"
description = "Flash firmware to Artix-7 FPGA boards and read device DNA through OpenOCD"
requires-python = ">=3.10"
dependencies = []
keywords = ["fpga", "openocd", "firmware", "flashing", "artix-7", "jtag", "dna"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
fpgaflash = "fpgaflash.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["fpgaflash"]

[tool.pytest.ini_options]
addopts = "-ra"

[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tagkit"
version = "0.1.0"
description = "NDEF message encoding and decoding, a MIFARE Classic tag driver, PN532 I2C framing and an HD44780 I2C LCD driver"
requires-python = ">=3.10"
dependencies = []
keywords = ["nfc", "ndef", "pn532", "mifare", "i2c", "lcd", "hd44780"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tagkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

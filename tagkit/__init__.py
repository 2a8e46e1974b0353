"""NDEF messages, a MIFARE Classic driver, PN532 I2C framing and an I2C character LCD driver."""

__version__ = "0.1.0"
"""Host side of the PN532 frame protocol over an I2C bus."""

from __future__ import annotations

import time
from typing import Protocol

PN532_I2C_ADDRESS = 0x48 >> 1

PREAMBLE = 0x00
STARTCODE1 = 0x00
STARTCODE2 = 0xFF
POSTAMBLE = 0x00
HOST_TO_PN532 = 0xD4
PN532_TO_HOST = 0xD5

ACK_FRAME = bytes([0x00, 0x00, 0xFF, 0x00, 0xFF, 0x00])
NACK_FRAME = bytes([0x00, 0x00, 0xFF, 0xFF, 0x00, 0x00])

ACK_WAIT_TIME = 10
"""Milliseconds to wait for the ACK frame after a command."""

I2C_BUFFER_SIZE = 32
"""Largest packet the I2C bus sends in one transmission."""

DEFAULT_TIMEOUT = 1000

_START = bytes([PREAMBLE, STARTCODE1, STARTCODE2])
_POLL_INTERVAL = 0.001


class I2CWire(Protocol):
    """An I2C bus master."""

    def begin(self) -> None: ...

    def write(self, address: int, data: bytes) -> None: ...

    def read(self, address: int, count: int) -> bytes:
        """Request ``count`` bytes; fewer or none may come back."""
        ...


class Pn532Error(Exception):
    """A failed exchange with the PN532."""


class Pn532Timeout(Pn532Error):
    """The PN532 did not become ready in time."""


class InvalidFrame(Pn532Error):
    """A frame was malformed, failed a checksum or could not be sent."""


class InvalidAck(Pn532Error):
    """The PN532 answered a command with something other than an ACK."""


class NoSpace(Pn532Error):
    """The response holds more data than the caller accepts."""


def _checksum(value: int) -> int:
    return (~value + 1) & 0xFF


class PN532I2C:
    """Sends commands to a PN532 and reads its responses over I2C."""

    def __init__(self, wire: I2CWire) -> None:
        self._wire = wire
        self._command = 0

    def begin(self) -> None:
        self._wire.begin()

    def wakeup(self) -> None:
        """Give the PN532 time to get ready."""
        time.sleep(0.5)

    def write_command(self, header: bytes, body: bytes = b"") -> None:
        """Send a command frame and wait for the PN532 to acknowledge it."""
        header = bytes(header)
        body = bytes(body)
        if not header:
            raise ValueError("a command needs at least one header byte")
        self._command = header[0]

        data = header + body
        length = (len(data) + 1) & 0xFF  # TFI + data
        frame = (
            _START
            + bytes([length, _checksum(length), HOST_TO_PN532])
            + data
            + bytes([_checksum(HOST_TO_PN532 + sum(data)), POSTAMBLE])
        )
        if len(frame) > I2C_BUFFER_SIZE:
            raise InvalidFrame(
                f"frame of {len(frame)} bytes exceeds the "
                f"{I2C_BUFFER_SIZE} byte I2C packet"
            )
        self._wire.write(PN532_I2C_ADDRESS, frame)
        self._read_ack()

    def read_response(self, max_length: int, timeout: int = DEFAULT_TIMEOUT) -> bytes:
        """Read the response to the last command; ``timeout`` 0 waits forever."""
        length = self._response_length(timeout)
        frame = self._wait_ready(6 + length + 2, timeout)

        if len(frame) < 5 or frame[:3] != _START:
            raise InvalidFrame("bad frame start")
        length = frame[3]
        if (length + frame[4]) & 0xFF:
            raise InvalidFrame("bad length checksum")
        if length < 2 or len(frame) < 5 + length + 1:
            raise InvalidFrame("truncated frame")

        response_command = (self._command + 1) & 0xFF
        if frame[5] != PN532_TO_HOST or frame[6] != response_command:
            raise InvalidFrame("unexpected frame identifier or command")

        data_length = length - 2
        if data_length > max_length:
            raise NoSpace(f"response holds {data_length} bytes, room for {max_length}")

        data = frame[7:7 + data_length]
        checksum = frame[7 + data_length]
        if (PN532_TO_HOST + response_command + sum(data) + checksum) & 0xFF:
            raise InvalidFrame("bad data checksum")
        return bytes(data)

    def _wait_ready(self, count: int, timeout: int) -> bytes:
        """Poll until the status byte says ready; return the bytes after it."""
        waited = 0
        while True:
            data = self._wire.read(PN532_I2C_ADDRESS, count)
            if data and data[0] & 1:
                return bytes(data[1:])
            time.sleep(_POLL_INTERVAL)
            waited += 1
            if timeout and waited > timeout:
                raise Pn532Timeout("PN532 not ready")

    def _response_length(self, timeout: int) -> int:
        frame = self._wait_ready(6, timeout)
        if len(frame) < 4 or frame[:3] != _START:
            raise InvalidFrame("bad frame start")
        length = frame[3]
        # Ask the PN532 to send the whole response again.
        self._wire.write(PN532_I2C_ADDRESS, NACK_FRAME)
        return length

    def _read_ack(self) -> None:
        try:
            frame = self._wait_ready(len(ACK_FRAME) + 1, ACK_WAIT_TIME)
        except Pn532Timeout:
            raise Pn532Timeout("timed out waiting for ACK") from None
        if frame[:len(ACK_FRAME)] != ACK_FRAME:
            raise InvalidAck("invalid ACK")
"""Reading, writing and formatting NDEF data on Mifare Classic tags."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from tagkit.ndef_message import NdefMessage
from tagkit.nfc_tag import NfcError, NfcTag

_log = logging.getLogger(__name__)

BLOCK_SIZE = 16
SHORT_TLV_SIZE = 2
LONG_TLV_SIZE = 4
NDEF_TLV = 0x03
TLV_TERMINATOR = 0xFE

MIFARE_CLASSIC = "Mifare Classic"
ERROR_TAG_TYPE = "ERROR"

PN532_MIFARE_ISO14443A = 0x00

NDEF_KEY = bytes([0xD3, 0xF7, 0xD3, 0xF7, 0xD3, 0xF7])
DEFAULT_KEY = bytes([0xFF] * 6)

_KEY_A = 0
_KEY_B = 1
_FIRST_DATA_BLOCK = 4
_FORMAT_LAST_BLOCK = 64
_SECTORS_1K = 16

_EMPTY_NDEF_BLOCK = bytes([0x03, 0x03, 0xD0, 0x00, 0x00, 0xFE]) + bytes(10)
_ZERO_BLOCK = bytes(BLOCK_SIZE)
_NDEF_SECTOR_TRAILER = NDEF_KEY + bytes([0x7F, 0x07, 0x88, 0x40]) + DEFAULT_KEY
_BLANK_SECTOR_TRAILER = DEFAULT_KEY + bytes([0xFF, 0x07, 0x80, 0x69]) + DEFAULT_KEY

_SHORT_SECTORS = 32
_BLOCKS_PER_SHORT_SECTOR = 4
_BLOCKS_PER_LONG_SECTOR = 16


class MifareClassicShield(Protocol):
    """The reader operations a Mifare Classic driver needs."""

    def mifareclassic_authenticate_block(
        self, uid: bytes, block_number: int, key_number: int, key_data: bytes
    ) -> bool: ...

    def mifareclassic_read_data_block(self, block_number: int) -> Optional[bytes]: ...

    def mifareclassic_write_data_block(self, block_number: int, data: bytes) -> bool: ...

    def mifareclassic_is_first_block(self, block_number: int) -> bool: ...

    def mifareclassic_is_trailer_block(self, block_number: int) -> bool: ...

    def mifareclassic_format_ndef(self) -> bool: ...

    def read_passive_target_id(self, card_type: int, timeout: int = 0) -> Optional[bytes]: ...


def buffer_size(message_length: int) -> int:
    """Bytes needed for a message with its TLV header and terminator, in whole blocks."""
    header = SHORT_TLV_SIZE if message_length < 0xFF else LONG_TLV_SIZE
    size = message_length + header + 1
    return -(-size // BLOCK_SIZE) * BLOCK_SIZE


def ndef_start_index(data: bytes) -> int:
    """Index of the NDEF TLV in the first block, skipping NULL TLVs."""
    for index, value in enumerate(data[:BLOCK_SIZE]):
        if value == 0x00:
            continue
        if value == NDEF_TLV:
            return index
        raise ValueError(f"unknown TLV 0x{value:X}")
    raise ValueError("no NDEF TLV in the first block")


def decode_tlv(data: bytes) -> tuple[int, int]:
    """Return the message length and the index where the message starts."""
    start = ndef_start_index(data)
    try:
        if data[start + 1] == 0xFF:
            length = (data[start + 2] << 8) | data[start + 3]
            return length, start + LONG_TLV_SIZE
        return data[start + 1], start + SHORT_TLV_SIZE
    except IndexError:
        raise ValueError("NDEF TLV length is cut off") from None


def sector_trailer_block(sector: int) -> int:
    """Block number of the trailer of ``sector`` on a 1K or 4K card."""
    if sector < _SHORT_SECTORS:
        return sector * _BLOCKS_PER_SHORT_SECTOR + _BLOCKS_PER_SHORT_SECTOR - 1
    return (
        _SHORT_SECTORS * _BLOCKS_PER_SHORT_SECTOR
        + (sector - _SHORT_SECTORS) * _BLOCKS_PER_LONG_SECTOR
        + _BLOCKS_PER_LONG_SECTOR
        - 1
    )


class MifareClassic:
    """NDEF driver for Mifare Classic tags."""

    def __init__(self, shield: MifareClassicShield) -> None:
        self._shield = shield

    def _next_block(self, block: int) -> int:
        block += 1
        if self._shield.mifareclassic_is_trailer_block(block):
            block += 1
        return block

    def read(self, uid: bytes) -> NfcTag:
        """Read the NDEF message from the tag with ``uid``."""
        uid = bytes(uid)
        shield = self._shield
        block = _FIRST_DATA_BLOCK

        if not shield.mifareclassic_authenticate_block(uid, block, _KEY_A, NDEF_KEY):
            _log.warning("Tag is not NDEF formatted.")
            return NfcTag(uid, MIFARE_CLASSIC)
        first = shield.mifareclassic_read_data_block(block)
        if first is None:
            _log.warning("Error. Failed read block %d", block)
            return NfcTag(uid, MIFARE_CLASSIC)
        try:
            message_length, start = decode_tlv(bytes(first))
        except ValueError as exc:
            _log.warning("Error. Can't decode message length: %s", exc)
            return NfcTag(uid, ERROR_TAG_TYPE)

        size = buffer_size(message_length)
        buffer = bytearray()
        while len(buffer) < size:
            if shield.mifareclassic_is_first_block(block) and not (
                shield.mifareclassic_authenticate_block(uid, block, _KEY_A, NDEF_KEY)
            ):
                _log.warning("Error. Block Authentication failed for %d", block)
            data = shield.mifareclassic_read_data_block(block)
            if data is None:
                _log.warning("Read failed %d", block)
                data = _ZERO_BLOCK
            buffer += bytes(data[:BLOCK_SIZE]).ljust(BLOCK_SIZE, b"\0")
            block = self._next_block(block)

        message = NdefMessage.decode(bytes(buffer[start:start + message_length]))
        return NfcTag(uid, MIFARE_CLASSIC, message)

    def write(self, message: NdefMessage, uid: bytes) -> None:
        """Write ``message`` in an NDEF TLV, skipping sector trailers."""
        uid = bytes(uid)
        encoded = message.encode()
        length = len(encoded)
        if length > 0xFFFF:
            raise ValueError("NDEF message longer than 65535 bytes")
        if length < 0xFF:
            header = bytes([NDEF_TLV, length])
        else:
            header = bytes([NDEF_TLV, 0xFF]) + length.to_bytes(2, "big")
        buffer = (header + encoded + bytes([TLV_TERMINATOR])).ljust(
            buffer_size(length), b"\0"
        )

        shield = self._shield
        block = _FIRST_DATA_BLOCK
        for offset in range(0, len(buffer), BLOCK_SIZE):
            if shield.mifareclassic_is_first_block(block) and not (
                shield.mifareclassic_authenticate_block(uid, block, _KEY_A, NDEF_KEY)
            ):
                raise NfcError(f"block authentication failed for {block}")
            chunk = buffer[offset:offset + BLOCK_SIZE]
            if not shield.mifareclassic_write_data_block(block, chunk):
                raise NfcError(f"write failed for block {block}")
            block = self._next_block(block)

    def _write_logged(self, block: int, data: bytes) -> None:
        if not self._shield.mifareclassic_write_data_block(block, data):
            _log.warning("Unable to write block %d", block)

    def format_ndef(self, uid: bytes) -> None:
        """Format the card for NDEF and store an empty NDEF record.

        Raises NfcError if block 0 cannot be authenticated, if formatting
        fails, or if any data sector could not be authenticated.
        """
        uid = bytes(uid)
        shield = self._shield
        if not shield.mifareclassic_authenticate_block(uid, 0, _KEY_A, DEFAULT_KEY):
            raise NfcError("unable to authenticate block 0 to enable card formatting")
        if not shield.mifareclassic_format_ndef():
            raise NfcError("unable to format the card for NDEF")

        failed = []
        for block in range(_FIRST_DATA_BLOCK, _FORMAT_LAST_BLOCK, 4):
            if not shield.mifareclassic_authenticate_block(uid, block, _KEY_A, DEFAULT_KEY):
                _log.warning("Unable to authenticate block %d", block)
                failed.append(block)
                shield.read_passive_target_id(PN532_MIFARE_ISO14443A)
                continue
            first = _EMPTY_NDEF_BLOCK if block == _FIRST_DATA_BLOCK else _ZERO_BLOCK
            self._write_logged(block, first)
            self._write_logged(block + 1, _ZERO_BLOCK)
            self._write_logged(block + 2, _ZERO_BLOCK)
            self._write_logged(block + 3, _NDEF_SECTOR_TRAILER)
        if failed:
            raise NfcError(f"unable to authenticate blocks {failed}")

    def format_mifare(self, uid: bytes) -> None:
        """Reset a 1K card: zero the data blocks and restore the default keys."""
        uid = bytes(uid)
        shield = self._shield
        for sector in range(_SECTORS_1K):
            trailer = sector_trailer_block(sector)
            if not shield.mifareclassic_authenticate_block(uid, trailer, _KEY_B, DEFAULT_KEY):
                raise NfcError(f"authentication failed for sector {sector}")
            # Block 0 holds the manufacturer data and is never overwritten.
            first = trailer - 2 if sector == 0 else trailer - 3
            for block in range(first, trailer):
                if not shield.mifareclassic_write_data_block(block, _ZERO_BLOCK):
                    _log.warning("Unable to write to sector %d", sector)
            if not shield.mifareclassic_write_data_block(trailer, _BLANK_SECTOR_TRAILER):
                _log.warning("Unable to write trailer block of sector %d", sector)
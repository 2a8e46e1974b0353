"""A single NDEF record and its wire encoding."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

from tagkit.hexdump import format_hex_char

_SHORT_RECORD_LIMIT = 0xFF

_FLAG_MESSAGE_BEGIN = 0x80
_FLAG_MESSAGE_END = 0x40
_FLAG_SHORT_RECORD = 0x10
_FLAG_ID_LENGTH = 0x08
_TNF_MASK = 0x07


class Tnf(enum.IntEnum):
    """Type Name Format of an NDEF record."""

    EMPTY = 0x00
    WELL_KNOWN = 0x01
    MIME_MEDIA = 0x02
    ABSOLUTE_URI = 0x03
    EXTERNAL_TYPE = 0x04
    UNKNOWN = 0x05
    UNCHANGED = 0x06
    RESERVED = 0x07

    @property
    def label(self) -> str:
        return _TNF_LABELS[self]


_TNF_LABELS = {
    Tnf.EMPTY: "Empty",
    Tnf.WELL_KNOWN: "Well Known",
    Tnf.MIME_MEDIA: "Mime Media",
    Tnf.ABSOLUTE_URI: "Absolute URI",
    Tnf.EXTERNAL_TYPE: "External",
    Tnf.UNKNOWN: "Unknown",
    Tnf.UNCHANGED: "Unchanged",
    Tnf.RESERVED: "Reserved",
}


def _until_nul(data: bytes) -> str:
    return data.split(b"\0", 1)[0].decode("latin-1")


@dataclass
class NdefRecord:
    """An NDEF record: a TNF, a type, a payload and an optional id."""

    tnf: int = Tnf.EMPTY
    type: bytes = b""
    payload: bytes = b""
    id: bytes = b""

    def __post_init__(self) -> None:
        self.type = bytes(self.type)
        self.payload = bytes(self.payload)
        self.id = bytes(self.id)

    def _is_short(self) -> bool:
        return len(self.payload) <= _SHORT_RECORD_LIMIT

    def encoded_size(self) -> int:
        """Size of the encoded record in bytes."""
        size = 2  # header byte and type length
        size += 1 if self._is_short() else 4
        if self.id:
            size += 1
        return size + len(self.type) + len(self.payload) + len(self.id)

    def tnf_byte(self, first_record: bool, last_record: bool) -> int:
        """The header byte: TNF plus MB, ME, SR and IL flags."""
        value = self.tnf & _TNF_MASK
        if first_record:
            value |= _FLAG_MESSAGE_BEGIN
        if last_record:
            value |= _FLAG_MESSAGE_END
        if self._is_short():
            value |= _FLAG_SHORT_RECORD
        if self.id:
            value |= _FLAG_ID_LENGTH
        return value

    def encode(self, first_record: bool, last_record: bool) -> bytes:
        """Encode the record; the id field is written after the payload."""
        if len(self.type) > 0xFF:
            raise ValueError("record type longer than 255 bytes")
        if len(self.id) > 0xFF:
            raise ValueError("record id longer than 255 bytes")
        parts = [bytes([self.tnf_byte(first_record, last_record), len(self.type)])]
        if self._is_short():
            parts.append(bytes([len(self.payload)]))
        else:
            parts.append(struct.pack(">I", len(self.payload)))
        if self.id:
            parts.append(bytes([len(self.id)]))
        parts.extend((self.type, self.payload, self.id))
        return b"".join(parts)

    def type_string(self) -> str:
        """The type as text, cut at the first NUL byte."""
        return _until_nul(self.type)

    def id_string(self) -> str:
        """The id as text, cut at the first NUL byte."""
        return _until_nul(self.id)

    def describe(self) -> str:
        """A human readable multi-line summary of the record."""
        try:
            label = Tnf(self.tnf).label
        except ValueError:
            label = ""
        lines = [
            "  NDEF Record",
            f"    TNF 0x{self.tnf:X} {label}",
            f"    Type Length 0x{len(self.type):X} {len(self.type)}",
            f"    Payload Length 0x{len(self.payload):X} {len(self.payload)}",
        ]
        if self.id:
            lines.append(f"    Id Length 0x{len(self.id):X}")
        lines.append(f"    Type {format_hex_char(self.type)}")
        lines.append(f"    Payload {format_hex_char(self.payload)}")
        if self.id:
            lines.append(f"    Id {format_hex_char(self.id)}")
        lines.append(f"    Record is {self.encoded_size()} bytes")
        return "\n".join(lines)
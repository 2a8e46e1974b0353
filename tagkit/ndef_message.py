"""NDEF messages: ordered collections of up to four records."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable

from tagkit.ndef_record import NdefRecord, Tnf

MAX_NDEF_RECORDS = 4

_RTD_TEXT = b"T"
_RTD_URI = b"U"


class TooManyRecordsError(Exception):
    """Raised when a message would hold more than MAX_NDEF_RECORDS records."""


class _Cursor:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    @property
    def exhausted(self) -> bool:
        return self._pos >= len(self._data)

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise ValueError("truncated NDEF data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


class NdefMessage:
    """An NDEF message holding at most MAX_NDEF_RECORDS records."""

    def __init__(self, records: Iterable[NdefRecord] = ()) -> None:
        self._records: list[NdefRecord] = []
        for record in records:
            self.add_record(record)

    @classmethod
    def decode(cls, data: bytes) -> NdefMessage:
        """Decode records from ``data`` up to the one with the ME flag set."""
        message = cls()
        cursor = _Cursor(bytes(data))
        while not cursor.exhausted:
            header = cursor.byte()
            message_end = bool(header & 0x40)
            short_record = bool(header & 0x10)
            has_id = bool(header & 0x08)

            type_length = cursor.byte()
            if short_record:
                payload_length = cursor.byte()
            else:
                payload_length = int.from_bytes(cursor.take(4), "big")
            id_length = cursor.byte() if has_id else 0

            record_type = cursor.take(type_length)
            record_id = cursor.take(id_length)
            payload = cursor.take(payload_length)

            message.add_record(
                NdefRecord(
                    tnf=header & 0x07,
                    type=record_type,
                    payload=payload,
                    id=record_id,
                )
            )
            if message_end:
                break
        return message

    @property
    def records(self) -> tuple[NdefRecord, ...]:
        return tuple(self._records)

    def encoded_size(self) -> int:
        """Size of the encoded message in bytes."""
        return sum(record.encoded_size() for record in self._records)

    def encode(self) -> bytes:
        """Encode all records, flagging the first and the last."""
        last = len(self._records) - 1
        return b"".join(
            record.encode(position == 0, position == last)
            for position, record in enumerate(self._records)
        )

    def add_record(self, record: NdefRecord) -> None:
        """Append a copy of ``record``."""
        if len(self._records) >= MAX_NDEF_RECORDS:
            raise TooManyRecordsError(
                f"an NDEF message holds at most {MAX_NDEF_RECORDS} records"
            )
        self._records.append(dataclasses.replace(record))

    def add_mime_media_record(self, mime_type: str, payload: str | bytes) -> None:
        self.add_record(
            NdefRecord(
                tnf=Tnf.MIME_MEDIA,
                type=_as_bytes(mime_type),
                payload=_as_bytes(payload),
            )
        )

    def add_text_record(self, text: str, encoding: str = "en") -> None:
        """Add a well-known text record; ``encoding`` is the language code."""
        language = _as_bytes(encoding)
        payload = bytes([len(language)]) + language + _as_bytes(text)
        self.add_record(NdefRecord(tnf=Tnf.WELL_KNOWN, type=_RTD_TEXT, payload=payload))

    def add_uri_record(self, uri: str) -> None:
        """Add a well-known URI record with no prefix abbreviation."""
        payload = b"\x00" + _as_bytes(uri)
        self.add_record(NdefRecord(tnf=Tnf.WELL_KNOWN, type=_RTD_URI, payload=payload))

    def add_empty_record(self) -> None:
        self.add_record(NdefRecord(tnf=Tnf.EMPTY))

    def get_record(self, index: int) -> NdefRecord:
        """Return the record at ``index``; negative indices are not accepted."""
        if not 0 <= index < len(self._records):
            raise IndexError(f"no record at index {index}")
        return self._records[index]

    def __getitem__(self, index: int) -> NdefRecord:
        return self.get_record(index)

    def __len__(self) -> int:
        return len(self._records)

    def describe(self) -> str:
        """A human readable summary of the message and its records."""
        count = len(self._records)
        noun = "record" if count == 1 else "records"
        lines = [f"\nNDEF Message {count} {noun}, {self.encoded_size()} bytes"]
        lines.extend(record.describe() for record in self._records)
        return "\n".join(lines)
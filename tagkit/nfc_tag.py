"""A tag seen by the reader: its UID, its type and an optional NDEF message."""

from __future__ import annotations

from dataclasses import dataclass

from tagkit.ndef_message import NdefMessage

UNKNOWN_TAG_TYPE = "Unknown"


class NfcError(Exception):
    """Raised when a tag operation cannot be completed."""


@dataclass
class NfcTag:
    """A tag's UID, its type name and the NDEF message read from it, if any."""

    uid: bytes = b""
    tag_type: str = UNKNOWN_TAG_TYPE
    ndef_message: NdefMessage | None = None

    def __post_init__(self) -> None:
        self.uid = bytes(self.uid)

    def uid_string(self) -> str:
        """The UID as upper case hex bytes separated by spaces."""
        return " ".join(f"{value:02X}" for value in self.uid)

    def has_ndef_message(self) -> bool:
        return self.ndef_message is not None

    def describe(self) -> str:
        """A human readable summary of the tag and its message."""
        lines = [f"NFC Tag - {self.tag_type}", f"UID {self.uid_string()}"]
        if self.ndef_message is None:
            lines.append("\nNo NDEF Message")
        else:
            lines.append(self.ndef_message.describe())
        return "\n".join(lines)
"""Hex formatting helpers for byte buffers."""

from __future__ import annotations


def format_hex(data: bytes) -> str:
    """Format bytes as space separated ``0xNN`` values."""
    return " ".join(f"0x{value:02X}" for value in data)


def format_hex_char(data: bytes) -> str:
    """Format bytes as hex values followed by a printable rendering.

    Control bytes (0x00-0x1F) are shown as ``.``.
    """
    hex_part = " ".join(f"{value:02X}" for value in data)
    text_part = "".join("." if value <= 0x1F else chr(value) for value in data)
    return f"{hex_part}  {text_part}"


def dump_hex(data: bytes, block_size: int) -> list[str]:
    """Return one :func:`format_hex_char` line per full block of ``data``.

    A trailing partial block is left out.
    """
    if block_size <= 0:
        raise ValueError("block_size must be positive")
    full_length = len(data) // block_size * block_size
    return [
        format_hex_char(data[start:start + block_size])
        for start in range(0, full_length, block_size)
    ]
import pytest

from tagkit.hexdump import dump_hex, format_hex, format_hex_char


def test_format_hex_pads_and_uppercases():
    assert format_hex(bytes([0x0A, 0xFF])) == "0x0A 0xFF"


def test_format_hex_single_byte_has_no_separator():
    assert format_hex(b"\x05") == "0x05"


def test_format_hex_token_per_byte():
    data = bytes(range(0, 256, 17))
    tokens = format_hex(data).split(" ")
    assert len(tokens) == len(data)
    assert all(token.startswith("0x") and len(token) == 4 for token in tokens)
    assert [int(token, 16) for token in tokens] == list(data)


def test_format_hex_char_shows_control_bytes_as_dots():
    assert format_hex_char(b"Hi\x01") == "48 69 01  Hi."


def test_format_hex_char_text_part_matches_input_length():
    data = b"\x00\x1f ABC"
    hex_part, text_part = format_hex_char(data).split("  ")
    assert len(text_part) == len(data)
    assert [int(token, 16) for token in hex_part.split(" ")] == list(data)
    assert text_part.endswith("ABC")


def test_dump_hex_one_line_per_full_block():
    data = bytes(range(32))
    lines = dump_hex(data, 16)
    assert lines == [format_hex_char(data[:16]), format_hex_char(data[16:])]


def test_dump_hex_drops_partial_block():
    assert len(dump_hex(bytes(10), 4)) == 2


@pytest.mark.parametrize("block_size", [0, -1])
def test_dump_hex_rejects_bad_block_size(block_size):
    with pytest.raises(ValueError):
        dump_hex(b"abc", block_size)
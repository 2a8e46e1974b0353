import pytest

from tagkit.mifare_classic import (
    BLOCK_SIZE,
    DEFAULT_KEY,
    MIFARE_CLASSIC,
    NDEF_KEY,
    MifareClassic,
    buffer_size,
    decode_tlv,
    ndef_start_index,
    sector_trailer_block,
)
from tagkit.ndef_message import NdefMessage
from tagkit.ndef_record import Tnf
from tagkit.nfc_tag import NfcError

UID = bytes([0x01, 0x02, 0x03, 0x04])
MANUFACTURER_BLOCK = bytes(range(16))


class FakeShield:
    def __init__(self):
        self.blocks = {n: bytes(16) for n in range(64)}
        self.blocks[0] = MANUFACTURER_BLOCK
        self.accepted_keys = {NDEF_KEY, DEFAULT_KEY}
        self.failing_auth = set()
        self.failing_writes = set()
        self.format_ok = True
        self.writes = []
        self.reselects = 0

    def mifareclassic_authenticate_block(self, uid, block_number, key_number, key_data):
        return block_number not in self.failing_auth and bytes(key_data) in self.accepted_keys

    def mifareclassic_read_data_block(self, block_number):
        return self.blocks.get(block_number)

    def mifareclassic_write_data_block(self, block_number, data):
        if block_number in self.failing_writes:
            return False
        self.writes.append(block_number)
        self.blocks[block_number] = bytes(data)
        return True

    def mifareclassic_is_first_block(self, block_number):
        return block_number % 4 == 0

    def mifareclassic_is_trailer_block(self, block_number):
        return (block_number + 1) % 4 == 0

    def mifareclassic_format_ndef(self):
        return self.format_ok

    def read_passive_target_id(self, card_type, timeout=0):
        self.reselects += 1
        return UID


def text_message(text="hello"):
    message = NdefMessage()
    message.add_text_record(text, "en")
    return message


@pytest.mark.parametrize("length", [0, 1, 12, 13, 14, 100, 254, 255, 256, 1000])
def test_buffer_size_whole_blocks_and_large_enough(length):
    size = buffer_size(length)
    assert size % BLOCK_SIZE == 0
    header = 2 if length < 0xFF else 4
    assert length + header + 1 <= size < length + header + 1 + BLOCK_SIZE


def test_buffer_size_exact_fit():
    assert buffer_size(13) == 16


def test_ndef_start_index_skips_null_tlvs():
    assert ndef_start_index(bytes([0, 0, 3, 5]) + bytes(12)) == 2


def test_ndef_start_index_unknown_tlv():
    with pytest.raises(ValueError):
        ndef_start_index(bytes([0, 0x05]) + bytes(14))


def test_ndef_start_index_missing():
    with pytest.raises(ValueError):
        ndef_start_index(bytes(16))


def test_decode_tlv_short():
    assert decode_tlv(bytes([0x03, 0x10]) + bytes(14)) == (0x10, 2)


def test_decode_tlv_long():
    assert decode_tlv(bytes([0x00, 0x03, 0xFF, 0x01, 0x2C]) + bytes(11)) == (0x012C, 5)


def test_decode_tlv_truncated():
    with pytest.raises(ValueError):
        decode_tlv(bytes([0x03, 0xFF]))


def test_sector_trailer_block_values():
    assert sector_trailer_block(0) == 3
    assert sector_trailer_block(32) == 143
    assert sector_trailer_block(31) + 16 == sector_trailer_block(32)


def test_write_then_read_round_trip():
    shield = FakeShield()
    driver = MifareClassic(shield)
    message = text_message()
    driver.write(message, UID)
    tag = driver.read(UID)
    assert tag.tag_type == MIFARE_CLASSIC
    assert tag.uid == UID
    assert tag.ndef_message.encode() == message.encode()


def test_write_short_tlv_layout():
    shield = FakeShield()
    message = text_message()
    encoded = message.encode()
    MifareClassic(shield).write(message, UID)
    block = shield.blocks[4]
    assert block[:2] == bytes([0x03, len(encoded)])
    assert block[2:2 + len(encoded)] == encoded
    assert block[2 + len(encoded)] == 0xFE


def test_write_long_message_skips_trailers_and_round_trips():
    shield = FakeShield()
    message = NdefMessage()
    message.add_mime_media_record("text/plain", b"x" * 300)
    encoded = message.encode()
    driver = MifareClassic(shield)
    driver.write(message, UID)
    assert shield.blocks[4][:4] == bytes([0x03, 0xFF]) + len(encoded).to_bytes(2, "big")
    assert all((block + 1) % 4 != 0 for block in shield.writes)
    assert shield.blocks[7] == bytes(16)
    assert driver.read(UID).ndef_message.encode() == encoded


def test_write_auth_failure_raises():
    shield = FakeShield()
    shield.failing_auth.add(4)
    with pytest.raises(NfcError):
        MifareClassic(shield).write(text_message(), UID)


def test_write_failure_raises():
    shield = FakeShield()
    shield.failing_writes.add(4)
    with pytest.raises(NfcError):
        MifareClassic(shield).write(text_message(), UID)


def test_read_unformatted_tag():
    shield = FakeShield()
    shield.failing_auth.add(4)
    tag = MifareClassic(shield).read(UID)
    assert tag.tag_type == MIFARE_CLASSIC
    assert tag.has_ndef_message() is False


def test_read_undecodable_tlv():
    shield = FakeShield()
    shield.blocks[4] = bytes([0x05]) + bytes(15)
    tag = MifareClassic(shield).read(UID)
    assert tag.tag_type == "ERROR"
    assert tag.has_ndef_message() is False


def test_format_ndef_writes_empty_record():
    shield = FakeShield()
    driver = MifareClassic(shield)
    driver.format_ndef(UID)
    assert shield.blocks[4] == bytes([0x03, 0x03, 0xD0, 0x00, 0x00, 0xFE]) + bytes(10)
    assert shield.blocks[7] == NDEF_KEY + bytes([0x7F, 0x07, 0x88, 0x40]) + DEFAULT_KEY
    assert shield.blocks[0] == MANUFACTURER_BLOCK
    tag = driver.read(UID)
    assert len(tag.ndef_message) == 1
    assert tag.ndef_message[0].tnf == Tnf.EMPTY


def test_format_ndef_block_zero_auth_failure():
    shield = FakeShield()
    shield.failing_auth.add(0)
    with pytest.raises(NfcError):
        MifareClassic(shield).format_ndef(UID)
    assert shield.writes == []


def test_format_ndef_format_failure():
    shield = FakeShield()
    shield.format_ok = False
    with pytest.raises(NfcError):
        MifareClassic(shield).format_ndef(UID)
    assert shield.writes == []


def test_format_ndef_sector_auth_failure_reselects():
    shield = FakeShield()
    shield.failing_auth.add(8)
    with pytest.raises(NfcError):
        MifareClassic(shield).format_ndef(UID)
    assert shield.reselects == 1
    assert 8 not in shield.writes
    assert 12 in shield.writes


def test_format_mifare_resets_trailers_and_keeps_block_zero():
    shield = FakeShield()
    shield.blocks[4] = b"\xAA" * 16
    MifareClassic(shield).format_mifare(UID)
    blank = DEFAULT_KEY + bytes([0xFF, 0x07, 0x80, 0x69]) + DEFAULT_KEY
    assert shield.blocks[3] == blank
    assert shield.blocks[63] == blank
    assert shield.blocks[4] == bytes(16)
    assert shield.blocks[0] == MANUFACTURER_BLOCK
    assert 0 not in shield.writes


def test_format_mifare_auth_failure_raises():
    shield = FakeShield()
    shield.failing_auth.add(sector_trailer_block(2))
    with pytest.raises(NfcError):
        MifareClassic(shield).format_mifare(UID)
    assert sector_trailer_block(2) not in shield.writes
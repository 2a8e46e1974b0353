# tagkit

Tools for working with NFC tags and small I2C peripherals:

- **NDEF**: build, encode and decode NDEF messages and records
  (`tagkit.ndef_message.NdefMessage`, `tagkit.ndef_record.NdefRecord`,
  `tagkit.ndef_record.Tnf`).
- **Tags**: `tagkit.nfc_tag.NfcTag` holds a tag's UID, its type name and
  the NDEF message read from it, if there is one.
- **MIFARE Classic**: read, write and format NDEF data on MIFARE Classic
  tags (`tagkit.mifare_classic.MifareClassic`).
- **PN532 over I2C**: command framing, ACK checking and response parsing
  (`tagkit.pn532_i2c.PN532I2C`).
- **Character LCD**: drive an HD44780 display behind a PCF8574-style I2C
  backpack (`tagkit.liquid_crystal_i2c.LiquidCrystalI2C`).
- **Hex dumps**: `tagkit.hexdump.format_hex`, `format_hex_char` and
  `dump_hex`.

The hardware-facing classes take the bus or reader object as an argument.
Any object that offers the methods they call will do, so they work with a
real bus or with a test double.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Building an NDEF message

```python
from tagkit.ndef_message import NdefMessage

message = NdefMessage()
message.add_text_record("Hello", "en")
message.add_uri_record("example.com")

data = message.encode()
assert len(data) == message.encoded_size()

decoded = NdefMessage.decode(data)
print(decoded.describe())
print(decoded[0].type_string())   # "T"
```

A message holds at most four records. Adding a fifth raises
`TooManyRecordsError`. `get_record` and indexing raise `IndexError` for an
index out of range; negative indices are not accepted.

## MIFARE Classic tags

`MifareClassic` takes a reader object with these methods:

- `mifareclassic_authenticate_block(uid, block_number, key_number, key_data) -> bool`
- `mifareclassic_read_data_block(block_number) -> bytes | None`
- `mifareclassic_write_data_block(block_number, data) -> bool`
- `mifareclassic_is_first_block(block_number) -> bool`
- `mifareclassic_is_trailer_block(block_number) -> bool`
- `mifareclassic_format_ndef() -> bool`
- `read_passive_target_id(card_type, timeout=0) -> bytes | None`

```python
from tagkit.mifare_classic import MifareClassic
from tagkit.ndef_message import NdefMessage
from tagkit.nfc_tag import NfcError

driver = MifareClassic(reader)
tag = driver.read(uid)
print(tag.uid_string(), tag.tag_type)
if tag.has_ndef_message():
    print(tag.describe())

message = NdefMessage()
message.add_text_record("Hello", "en")
try:
    driver.write(message, uid)
except NfcError as exc:
    print("write failed:", exc)
```

`read` always returns an `NfcTag`. If the tag cannot be authenticated or its
first block cannot be read, the tag carries no message; if the NDEF TLV
cannot be decoded, its type is `"ERROR"`. `write`, `format_ndef` and
`format_mifare` raise `NfcError` when they cannot finish. Blocks that fail to
read or write along the way are reported through the `logging` module.

The module also exposes the helpers `buffer_size`, `ndef_start_index`,
`decode_tlv` and `sector_trailer_block`.

## PN532 over I2C

`PN532I2C` takes a bus object with `begin()`, `write(address, data)` and
`read(address, count)`.

```python
from tagkit.pn532_i2c import PN532I2C, Pn532Error

pn532 = PN532I2C(wire)
pn532.begin()
pn532.wakeup()
try:
    pn532.write_command(bytes([0x02]))          # GetFirmwareVersion
    response = pn532.read_response(32, 1000)
except Pn532Error as exc:
    print("PN532 error:", exc)
```

Failures raise a subclass of `Pn532Error`: `Pn532Timeout`, `InvalidFrame`,
`InvalidAck` or `NoSpace`. A timeout of 0 waits forever.

## Hex dumps

```python
from tagkit.hexdump import format_hex, format_hex_char

format_hex(b"\x01\xab")          # "0x01 0xAB"
format_hex_char(b"Hi\x00")       # "48 69 00  Hi."
```

## LCD

```python
from tagkit.liquid_crystal_i2c import LiquidCrystalI2C

lcd = LiquidCrystalI2C(bus, 0x27, 16, 2)
lcd.init()
lcd.backlight()
lcd.set_cursor(0, 1)
lcd.print("ready")
```

The bus object needs `begin()` and `write(address, data)`.

## What tagkit does not do

- It has no driver for MIFARE Ultralight (NFC Forum Type 2) tags.
- It has no adapter that detects a tag, guesses its type and picks a driver;
  you choose the driver and pass the UID yourself.
- `PN532I2C` only moves command and response frames. It does not build
  PN532 commands such as authentication or block reads, so the reader object
  that `MifareClassic` needs has to be supplied from elsewhere.
- It does not open I2C buses itself; you pass in a bus object.
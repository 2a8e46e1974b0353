"""HD44780 character displays driven through an I2C port expander."""

from __future__ import annotations

import time
from typing import Protocol

# Commands
LCD_CLEARDISPLAY = 0x01
LCD_RETURNHOME = 0x02
LCD_ENTRYMODESET = 0x04
LCD_DISPLAYCONTROL = 0x08
LCD_CURSORSHIFT = 0x10
LCD_FUNCTIONSET = 0x20
LCD_SETCGRAMADDR = 0x40
LCD_SETDDRAMADDR = 0x80

# Entry mode flags
LCD_ENTRYRIGHT = 0x00
LCD_ENTRYLEFT = 0x02
LCD_ENTRYSHIFTINCREMENT = 0x01
LCD_ENTRYSHIFTDECREMENT = 0x00

# Display on/off control flags
LCD_DISPLAYON = 0x04
LCD_DISPLAYOFF = 0x00
LCD_CURSORON = 0x02
LCD_CURSOROFF = 0x00
LCD_BLINKON = 0x01
LCD_BLINKOFF = 0x00

# Display/cursor shift flags
LCD_DISPLAYMOVE = 0x08
LCD_CURSORMOVE = 0x00
LCD_MOVERIGHT = 0x04
LCD_MOVELEFT = 0x00

# Function set flags
LCD_8BITMODE = 0x10
LCD_4BITMODE = 0x00
LCD_2LINE = 0x08
LCD_1LINE = 0x00
LCD_5x10DOTS = 0x04
LCD_5x8DOTS = 0x00

# Backlight flags
LCD_BACKLIGHT = 0x08
LCD_NOBACKLIGHT = 0x00

# Expander pins
EN = 0b00000100
RW = 0b00000010
RS = 0b00000001

ROW_OFFSETS = (0x00, 0x40, 0x14, 0x54)


class I2CBus(Protocol):
    """An I2C bus master that can send bytes to a device."""

    def begin(self) -> None: ...

    def write(self, address: int, data: bytes) -> None: ...


def _delay_us(microseconds: int) -> None:
    time.sleep(microseconds / 1_000_000)


class LiquidCrystalI2C:
    """A character LCD in 4-bit mode behind a PCF8574-style expander."""

    def __init__(self, bus: I2CBus, address: int, cols: int, rows: int) -> None:
        self._bus = bus
        self._address = address
        self._cols = cols
        self._rows = rows
        self._backlight = LCD_NOBACKLIGHT
        self._display_function = LCD_4BITMODE | LCD_1LINE | LCD_5x8DOTS
        self._display_control = LCD_DISPLAYON | LCD_CURSOROFF | LCD_BLINKOFF
        self._display_mode = LCD_ENTRYLEFT | LCD_ENTRYSHIFTDECREMENT
        self._num_lines = rows

    def init(self) -> None:
        """Start the bus and initialise the display with its configured size."""
        self._bus.begin()
        self._display_function = LCD_4BITMODE | LCD_1LINE | LCD_5x8DOTS
        self.begin(self._cols, self._rows)

    def begin(self, cols: int, lines: int, dotsize: int = LCD_5x8DOTS) -> None:
        """Run the HD44780 power-up sequence and set the default modes."""
        if lines > 1:
            self._display_function |= LCD_2LINE
        self._num_lines = lines
        # Some one-line displays offer a 10 pixel high font.
        if dotsize != 0 and lines == 1:
            self._display_function |= LCD_5x10DOTS

        time.sleep(0.05)
        self._expander_write(self._backlight)
        time.sleep(1.0)

        # Three tries to reach 8-bit mode, then switch to 4-bit mode.
        self._write4bits(0x03 << 4)
        _delay_us(4500)
        self._write4bits(0x03 << 4)
        _delay_us(4500)
        self._write4bits(0x03 << 4)
        _delay_us(150)
        self._write4bits(0x02 << 4)

        self.command(LCD_FUNCTIONSET | self._display_function)
        self._display_control = LCD_DISPLAYON | LCD_CURSOROFF | LCD_BLINKOFF
        self.display()
        self.clear()
        self._display_mode = LCD_ENTRYLEFT | LCD_ENTRYSHIFTDECREMENT
        self.command(LCD_ENTRYMODESET | self._display_mode)
        self.home()

    def clear(self) -> None:
        self.command(LCD_CLEARDISPLAY)
        _delay_us(2000)

    def home(self) -> None:
        self.command(LCD_RETURNHOME)
        _delay_us(2000)

    def set_cursor(self, col: int, row: int) -> None:
        """Move the cursor; rows past the line count go to the last line."""
        if row > self._num_lines:
            row = self._num_lines - 1
        if not 0 <= row < len(ROW_OFFSETS):
            raise ValueError(f"row {row} out of range")
        self.command(LCD_SETDDRAMADDR | ((col + ROW_OFFSETS[row]) & 0x7F))

    def _set_control(self, flag: int, on: bool) -> None:
        if on:
            self._display_control |= flag
        else:
            self._display_control &= ~flag
        self.command(LCD_DISPLAYCONTROL | self._display_control)

    def no_display(self) -> None:
        self._set_control(LCD_DISPLAYON, False)

    def display(self) -> None:
        self._set_control(LCD_DISPLAYON, True)

    def no_cursor(self) -> None:
        self._set_control(LCD_CURSORON, False)

    def cursor(self) -> None:
        self._set_control(LCD_CURSORON, True)

    def no_blink(self) -> None:
        self._set_control(LCD_BLINKON, False)

    def blink(self) -> None:
        self._set_control(LCD_BLINKON, True)

    cursor_on = cursor
    cursor_off = no_cursor
    blink_on = blink
    blink_off = no_blink

    def scroll_display_left(self) -> None:
        self.command(LCD_CURSORSHIFT | LCD_DISPLAYMOVE | LCD_MOVELEFT)

    def scroll_display_right(self) -> None:
        self.command(LCD_CURSORSHIFT | LCD_DISPLAYMOVE | LCD_MOVERIGHT)

    def _set_mode(self, flag: int, on: bool) -> None:
        if on:
            self._display_mode |= flag
        else:
            self._display_mode &= ~flag
        self.command(LCD_ENTRYMODESET | self._display_mode)

    def left_to_right(self) -> None:
        self._set_mode(LCD_ENTRYLEFT, True)

    def right_to_left(self) -> None:
        self._set_mode(LCD_ENTRYLEFT, False)

    def autoscroll(self) -> None:
        """Right-justify text from the cursor."""
        self._set_mode(LCD_ENTRYSHIFTINCREMENT, True)

    def no_autoscroll(self) -> None:
        """Left-justify text from the cursor."""
        self._set_mode(LCD_ENTRYSHIFTINCREMENT, False)

    def create_char(self, location: int, charmap: bytes) -> None:
        """Store a custom 5x8 glyph in one of the eight CGRAM slots."""
        charmap = bytes(charmap)
        if len(charmap) < 8:
            raise ValueError("a character map needs 8 rows")
        location &= 0x7
        self.command(LCD_SETCGRAMADDR | (location << 3))
        for row in charmap[:8]:
            self.write(row)

    load_custom_character = create_char

    def no_backlight(self) -> None:
        self._backlight = LCD_NOBACKLIGHT
        self._expander_write(0)

    def backlight(self) -> None:
        self._backlight = LCD_BACKLIGHT
        self._expander_write(0)

    def set_backlight(self, value: int) -> None:
        if value:
            self.backlight()
        else:
            self.no_backlight()

    def command(self, value: int) -> None:
        """Send an instruction byte."""
        self._send(value, 0)

    def write(self, value: int) -> int:
        """Send a data byte; returns the number of bytes written."""
        self._send(value, RS)
        return 1

    def print(self, text: str | bytes) -> int:
        """Write text at the cursor; returns the number of bytes written."""
        data = text.encode("latin-1") if isinstance(text, str) else bytes(text)
        return sum(self.write(value) for value in data)

    printstr = print

    def _send(self, value: int, mode: int) -> None:
        self._write4bits((value & 0xF0) | mode)
        self._write4bits(((value << 4) & 0xF0) | mode)

    def _write4bits(self, value: int) -> None:
        self._expander_write(value)
        self._pulse_enable(value)

    def _expander_write(self, data: int) -> None:
        self._bus.write(self._address, bytes([(data | self._backlight) & 0xFF]))

    def _pulse_enable(self, data: int) -> None:
        self._expander_write(data | EN)
        _delay_us(1)
        self._expander_write(data & ~EN)
        _delay_us(50)
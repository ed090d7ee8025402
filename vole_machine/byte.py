"""
Vole Machine — Byte value type

An 8-bit value whose canonical text form is two uppercase hex digits.
Registers and memory cells hold Bytes; the loader builds them from the
halves of each instruction word.
"""

from __future__ import annotations
from dataclasses import dataclass
import string

from .errors import InvalidEncoding

_HEX_DIGITS = frozenset(string.hexdigits)


def is_hex(text: str) -> bool:
    """True if every character of a non-empty string is a hex digit."""
    return bool(text) and all(ch in _HEX_DIGITS for ch in text)


def hex_digit(ch: str) -> int:
    """Parse a single hex digit (register index, nibble operand)."""
    if len(ch) != 1 or ch not in _HEX_DIGITS:
        raise InvalidEncoding("Invalid hex digit", ch)
    return int(ch, 16)


@dataclass(frozen=True, order=True)
class Byte:
    """Immutable 8-bit value."""
    value: int = 0

    def __post_init__(self):
        if not 0 <= self.value <= 0xFF:
            raise ValueError(f"Byte value out of range: {self.value}")

    @classmethod
    def from_hex(cls, text: str) -> Byte:
        """Parse exactly two hex digits ("00".."FF", either case)."""
        if len(text) != 2 or not is_hex(text):
            raise InvalidEncoding("Invalid hex byte", text)
        return cls(int(text, 16))

    @classmethod
    def from_int(cls, value: int) -> Byte:
        """Truncate any integer to its low 8 bits."""
        return cls(value & 0xFF)

    def to_hex(self) -> str:
        return f"{self.value:02X}"

    @property
    def signed(self) -> int:
        """Two's-complement view (-128..127)."""
        if self.value & 0x80:
            return self.value - 256
        return self.value

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return self.to_hex()


ZERO = Byte(0)

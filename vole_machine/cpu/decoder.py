"""
Vole Machine — Instruction Variants + Word Decoder

Instruction word: four hex characters  O R XY
  O   opcode (matched case-sensitively, uppercase)
  R   register digit
  XY  operand — address, literal byte, register pair or jump target

Opcode table:
  1RXY  LoadFromMemory   R <- [XY]
  2RXY  LoadImmediate    R <- XY
  3RXY  StoreToMemory    [XY] <- R            (XY != 00)
  3R00  StoreAscii       Memory[00] += chr(R)
  40XD  CopyRegister     RD <- RA             (source is always RA)
  5RST  Add              R <- RS + RT         (two's complement)
  6RST  AddFloat         R <- RS + RT         (biased float-8)
  BRNN  JumpIfEqual      if R == R0: pc <- NN (NN is DECIMAL)
  C000  Halt             (any C word; the other three digits are ignored)

Two quirks of the instruction set are kept as-is:
  - opcode 4 only exists with register digit 0, and its source register is
    fixed to RA whatever the word says; the third digit is ignored.
  - the JumpIfEqual target is read as a decimal instruction-slot index,
    while every other operand is hex.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, Union

from ..byte import Byte, hex_digit, is_hex
from ..config import (
    WORD_LENGTH, ACCUMULATOR_ADDRESS, COPY_SOURCE_REGISTER, COMPARE_REGISTER,
)
from ..errors import InvalidEncoding, InvalidInstructionLength, InvalidOpcode


# ──────────────────────────────────────────────
# Instruction variants
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class LoadFromMemory:
    reg: int
    address: int

    def __str__(self) -> str:
        return f"LOAD   R{self.reg:X}, [${self.address:02X}]"


@dataclass(frozen=True)
class LoadImmediate:
    reg: int
    value: Byte

    def __str__(self) -> str:
        return f"LOAD   R{self.reg:X}, #${self.value}"


@dataclass(frozen=True)
class StoreToMemory:
    reg: int
    address: int

    def __str__(self) -> str:
        return f"STORE  R{self.reg:X}, [${self.address:02X}]"


@dataclass(frozen=True)
class StoreAscii:
    """Store to address 00: append the register as a character to cell 0."""
    reg: int

    def __str__(self) -> str:
        return f"PUTC   R{self.reg:X}"


@dataclass(frozen=True)
class CopyRegister:
    dest: int
    source: int = field(default=COPY_SOURCE_REGISTER)

    def __str__(self) -> str:
        return f"MOVE   R{self.source:X} -> R{self.dest:X}"


@dataclass(frozen=True)
class Add:
    dest: int
    src1: int
    src2: int

    def __str__(self) -> str:
        return f"ADDI   R{self.dest:X}, R{self.src1:X}, R{self.src2:X}"


@dataclass(frozen=True)
class AddFloat:
    dest: int
    src1: int
    src2: int

    def __str__(self) -> str:
        return f"ADDF   R{self.dest:X}, R{self.src1:X}, R{self.src2:X}"


@dataclass(frozen=True)
class JumpIfEqual:
    reg: int
    target: int

    def __str__(self) -> str:
        return f"JUMP   R{self.reg:X}==R{COMPARE_REGISTER:X}, {self.target}"


@dataclass(frozen=True)
class Halt:

    def __str__(self) -> str:
        return "HALT"


Instruction = Union[
    LoadFromMemory, LoadImmediate, StoreToMemory, StoreAscii, CopyRegister,
    Add, AddFloat, JumpIfEqual, Halt,
]

INSTRUCTION_TYPES = (
    LoadFromMemory, LoadImmediate, StoreToMemory, StoreAscii, CopyRegister,
    Add, AddFloat, JumpIfEqual, Halt,
)


# ──────────────────────────────────────────────
# Operand field helpers
# ──────────────────────────────────────────────

def _nibble(word: str, pos: int) -> int:
    return hex_digit(word[pos])


def _operand(word: str) -> int:
    return int(word[2:], 16)


def _decimal_target(word: str) -> int:
    text = word[2:]
    if not text.isdigit() or not text.isascii():
        raise InvalidEncoding("Jump target must be a decimal slot index", word)
    return int(text)


# ──────────────────────────────────────────────
# Per-opcode decoders
# ──────────────────────────────────────────────

def _decode_store(word: str) -> Instruction:
    reg, address = _nibble(word, 1), _operand(word)
    if address == ACCUMULATOR_ADDRESS:
        return StoreAscii(reg)
    return StoreToMemory(reg, address)


def _decode_copy(word: str) -> Instruction:
    if word[1] != '0':
        raise InvalidOpcode(word[:2], word)
    return CopyRegister(dest=_nibble(word, 3))


_DECODERS: Dict[str, Callable[[str], Instruction]] = {
    '1': lambda w: LoadFromMemory(_nibble(w, 1), _operand(w)),
    '2': lambda w: LoadImmediate(_nibble(w, 1), Byte.from_hex(w[2:])),
    '3': _decode_store,
    '4': _decode_copy,
    '5': lambda w: Add(_nibble(w, 1), _nibble(w, 2), _nibble(w, 3)),
    '6': lambda w: AddFloat(_nibble(w, 1), _nibble(w, 2), _nibble(w, 3)),
    'B': lambda w: JumpIfEqual(_nibble(w, 1), _decimal_target(w)),
    'C': lambda w: Halt(),
}

OPCODES = tuple(_DECODERS)
_NO_OPERAND = frozenset('C')


def decode_word(word: str) -> Instruction:
    """Decode one 4-character instruction word.

    Raises:
        InvalidInstructionLength: word is not 4 characters
        InvalidOpcode:            unknown opcode, or opcode 4 without register 0
        InvalidEncoding:          a non-hex digit (or non-decimal jump target);
                                  never raised for Halt, whose operand is ignored
    """
    if len(word) != WORD_LENGTH:
        raise InvalidInstructionLength(
            "Invalid instruction length, instructions must be 4 characters long", word)

    decoder = _DECODERS.get(word[0])
    if decoder is None:
        raise InvalidOpcode(word[0], word)

    # Halt has no operand; its trailing digits are not looked at.
    if word[0] in _NO_OPERAND:
        return decoder(word)

    # The word is also stored as two raw bytes, so every digit must be hex.
    if not is_hex(word[1:]):
        raise InvalidEncoding("Invalid hex digits in instruction word", word)

    return decoder(word)

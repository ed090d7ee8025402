"""
Vole Machine — Error Taxonomy

Every recoverable error is a VoleError. The loader and run loop catch them,
record them as diagnostics and carry on with the next token/instruction.
RegisterIndexError is the exception: it marks a programming error and
propagates.
"""

from __future__ import annotations
from typing import Optional


class VoleError(Exception):
    """Base class for all Vole machine errors."""

    def __init__(self, message: str, token: Optional[str] = None):
        self.token = token
        super().__init__(f"{message} ({token!r})" if token is not None else message)


class InvalidEncoding(VoleError):
    """Text is not a valid hex byte / hex digit / decimal jump target."""


class InvalidInstructionLength(VoleError):
    """Instruction word is not exactly four characters."""


class InvalidOpcode(VoleError):
    """Opcode character is not part of the instruction set."""

    def __init__(self, opcode: str, token: Optional[str] = None):
        self.opcode = opcode
        super().__init__(f"Invalid opcode: {opcode}", token)


class OutOfAsciiRange(VoleError):
    """Value stored to the cell-0 accumulator is above 0x7F."""

    def __init__(self, value: int, register: Optional[int] = None):
        self.value = value
        self.register = register
        where = f"R{register:X} " if register is not None else ""
        super().__init__(
            f"Value in {where}${value:02X} is out of ASCII range for Memory[00]")


class RegisterIndexError(VoleError, IndexError):
    """Register index outside 0..15."""

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Register index out of range: {index}")

"""
Vole Machine — General-Purpose Register File

Register model:
  R0..RF  — sixteen 8-bit registers, all $00 at reset
  R0      — implicit comparand for JumpIfEqual (opcode B)
  RA      — fixed source of CopyRegister (opcode 4)

Unlike memory, register indices are checked: an index outside 0..15 is a
decoder bug, not a user-program fault, so it raises instead of clamping.
"""

from typing import List

from ..byte import Byte, ZERO
from ..config import REGISTER_COUNT
from ..errors import RegisterIndexError


class RegisterFile:
    """Sixteen Byte registers, mutable in place."""

    __slots__ = ('_regs',)

    def __init__(self):
        self._regs: List[Byte] = [ZERO] * REGISTER_COUNT

    def _check(self, index: int) -> int:
        if not 0 <= index < REGISTER_COUNT:
            raise RegisterIndexError(index)
        return index

    def load(self, index: int, value: Byte):
        """Store a Byte into register `index`."""
        self._regs[self._check(index)] = value

    def read(self, index: int) -> Byte:
        return self._regs[self._check(index)]

    def values(self) -> List[Byte]:
        """Copy of all sixteen registers, R0 first."""
        return list(self._regs)

    def __len__(self) -> int:
        return REGISTER_COUNT

    def display(self) -> str:
        """One-line register summary for trace/debug output."""
        return ' '.join(f"R{i:X}={b.to_hex()}" for i, b in enumerate(self._regs))

    def reset(self):
        """Reset all registers to $00."""
        self._regs = [ZERO] * REGISTER_COUNT

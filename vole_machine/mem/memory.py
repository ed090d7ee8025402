"""
Vole Machine — 256-byte Memory with the cell-0 ASCII accumulator

Memory map:
  $00        Accumulator cell — holds a raw Byte like any other cell, and
             additionally collects ASCII characters stored by opcode 3 with
             address 00 (append-only text)
  $01–$FF    Plain byte cells, default $00

Addresses do not wrap. Reads outside $00–$FF return $00 and writes there
are dropped, so a stray address in a user program never stops execution.
"""

from dataclasses import dataclass
from typing import List, Union

from ..byte import Byte, ZERO
from ..config import MEMORY_SIZE, ACCUMULATOR_ADDRESS, ASCII_MAX
from ..errors import OutOfAsciiRange


@dataclass
class AsciiAccumulator:
    """Cell 0: a raw byte plus the text appended to it."""
    raw: Byte = ZERO
    text: str = ""

    def read(self) -> Byte:
        """Last appended character if any text was collected, else the raw byte."""
        if self.text:
            return Byte(ord(self.text[-1]))
        return self.raw

    def write(self, value: Byte):
        self.raw = value
        self.text = ""

    def append(self, value: Byte):
        if value.value > ASCII_MAX:
            raise OutOfAsciiRange(value.value)
        self.text += chr(value.value)


Cell = Union[Byte, AsciiAccumulator]


class Memory:
    """Fixed-size byte-addressable memory."""

    def __init__(self):
        self._cells: List[Cell] = [ZERO] * MEMORY_SIZE
        self._cells[ACCUMULATOR_ADDRESS] = AsciiAccumulator()

    @staticmethod
    def in_range(addr: int) -> bool:
        return 0 <= addr < MEMORY_SIZE

    # --- Core read/write ---

    def read(self, addr: int) -> Byte:
        """Read a Byte; $00 for addresses outside the map."""
        if not self.in_range(addr):
            return ZERO
        cell = self._cells[addr]
        if isinstance(cell, AsciiAccumulator):
            return cell.read()
        return cell

    def write(self, addr: int, value: Byte):
        """Write a Byte; silently ignored outside the map."""
        if not self.in_range(addr):
            return
        cell = self._cells[addr]
        if isinstance(cell, AsciiAccumulator):
            cell.write(value)
        else:
            self._cells[addr] = value

    # --- Accumulator ---

    @property
    def accumulator(self) -> AsciiAccumulator:
        return self._cells[ACCUMULATOR_ADDRESS]

    def append_ascii_at_zero(self, value: Byte) -> str:
        """Append `value` as a character to cell 0 and return the new text.

        Raises OutOfAsciiRange (accumulator untouched) for values > $7F.
        """
        self.accumulator.append(value)
        return self.accumulator.text

    def accumulator_text(self) -> str:
        return self.accumulator.text

    # --- Inspection ---

    def dump(self) -> List[Byte]:
        """Byte view of every cell, $00 first."""
        return [self.read(addr) for addr in range(MEMORY_SIZE)]

    def reset(self):
        self._cells = [ZERO] * MEMORY_SIZE
        self._cells[ACCUMULATOR_ADDRESS] = AsciiAccumulator()

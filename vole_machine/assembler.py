"""
Vole Machine — Assembler / Program Loader

Turns a whitespace-separated stream of 4-character instruction words into
an executable program image.

Input:  tokens (from a program file or typed in by hand) + start address
Output: Instructions appended to the machine's program, and each word's
        two bytes written into memory at a running cursor

How loading works:
  For each token:
    1. Length != 4            → InvalidInstructionLength, token skipped
    2. Decode (decoder.py)    → InvalidOpcode / InvalidEncoding, token skipped
    3. Append the Instruction; write word[0:2], word[2:4] at cursor, cursor+1
       (a Halt word's non-hex half is stored as $00)
    4. cursor += 2
    5. Halt word              → stop, remaining tokens are not consumed

  Skipped tokens leave the cursor where it was. Errors are collected in the
  LoadReport rather than raised, so one bad word never aborts a load.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List
import logging

from .byte import Byte, ZERO, is_hex
from .config import WORD_LENGTH, WORD_BYTES
from .cpu.decoder import Halt, Instruction, decode_word
from .errors import VoleError, InvalidInstructionLength
from .mem.memory import Memory

__all__ = ['Assembler', 'LoadReport', 'ProgramEntry', 'tokenize']

log = logging.getLogger(__name__)


def tokenize(text: str) -> List[str]:
    """Split program text into instruction words (any whitespace delimits)."""
    return text.split()


def _word_half(text: str) -> Byte:
    """One byte of a loaded word. Only a Halt word can carry non-hex
    digits here; those halves are stored as $00."""
    return Byte.from_hex(text) if is_hex(text) else ZERO


@dataclass
class ProgramEntry:
    """One successfully loaded word."""
    slot: int            # index in the machine's program
    address: int         # memory address of the word's first byte
    word: str
    instruction: Instruction


@dataclass
class LoadReport:
    """Result of one load() call."""
    start_address: int
    end_address: int = 0
    entries: List[ProgramEntry] = field(default_factory=list)
    diagnostics: List[VoleError] = field(default_factory=list)
    halted: bool = False          # loading stopped at a Halt word
    consumed: int = 0             # tokens read, including skipped ones

    @property
    def loaded(self) -> int:
        return len(self.entries)

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def get_listing(self) -> str:
        """Listing of loaded words: slot, address, word, decoded form."""
        lines = []
        for e in self.entries:
            lines.append(f"{e.slot:3d}  ${e.address:02X}  {e.word}  {e.instruction}")
        for err in self.diagnostics:
            lines.append(f"  !  {err}")
        return '\n'.join(lines)


class Assembler:
    """Loads instruction words into a memory image and program list.

    Usage:
        asm = Assembler(memory, program)
        report = asm.assemble(tokenize("2005 2103 5201 C000"), start_address=0)
    """

    def __init__(self, memory: Memory, program: List[Instruction]):
        self.memory = memory
        self.program = program
        self.cursor: int = 0

    def assemble(self, tokens: Iterable[str], start_address: int) -> LoadReport:
        self.cursor = start_address
        report = LoadReport(start_address=start_address)

        for token in tokens:
            report.consumed += 1
            try:
                entry = self._load_word(token)
            except VoleError as e:
                log.warning("Skipping invalid instruction: %s", e)
                report.diagnostics.append(e)
                continue

            report.entries.append(entry)
            log.debug("Instruction '%s' added at Memory[%02X]", token, entry.address)

            if isinstance(entry.instruction, Halt):
                log.info("HALT instruction found. Stopping program loading at Memory[%02X]",
                         entry.address)
                report.halted = True
                break

        report.end_address = self.cursor
        return report

    def _load_word(self, token: str) -> ProgramEntry:
        if len(token) != WORD_LENGTH:
            raise InvalidInstructionLength(
                "Invalid instruction length, instructions must be 4 characters long", token)

        instruction = decode_word(token)

        entry = ProgramEntry(slot=len(self.program), address=self.cursor,
                             word=token, instruction=instruction)
        self.program.append(instruction)
        self.memory.write(self.cursor, _word_half(token[:2]))
        self.memory.write(self.cursor + 1, _word_half(token[2:]))
        self.cursor += WORD_BYTES
        return entry

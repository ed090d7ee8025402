"""
Vole Machine — an educational 8-bit virtual machine
====================================================
Fetches, decodes and executes the Vole instruction set over sixteen 8-bit
registers and 256 bytes of memory.

Architecture:
    ┌────────────┐    ┌───────────┐    ┌───────────────┐    ┌────────────┐
    │ Words      │───>│ Assembler │───>│ Program +     │───>│ VoleMachine│
    │ "2005 ..." │    │ (loader)  │    │ memory image  │    │ .run()     │
    └────────────┘    └───────────┘    └───────────────┘    └────────────┘

    - byte.py:        Byte value type (two uppercase hex digits)
    - cpu/regs.py:    16-register file, bounds-checked
    - cpu/alu.py:     two's-complement add, biased float-8 codec
    - cpu/decoder.py: nine frozen instruction variants + word decoder
    - mem/memory.py:  256 cells, cell 0 doubles as an ASCII accumulator
    - assembler.py:   word stream -> program + memory bytes
    - emu.py:         execute() dispatch, fetch-execute loop, snapshots
    - display.py:     status dump text
"""

__version__ = "1.0.0"

from .byte import Byte
from .errors import (
    VoleError, InvalidEncoding, InvalidInstructionLength, InvalidOpcode,
    OutOfAsciiRange, RegisterIndexError,
)
from .assembler import Assembler, LoadReport, tokenize
from .emu import (
    VoleMachine, RunReport, MachineSnapshot, MachineState, StopReason,
    ControlEffect, ControlKind, execute,
)

__all__ = [
    'Byte', 'VoleMachine', 'Assembler', 'LoadReport', 'RunReport',
    'MachineSnapshot', 'MachineState', 'StopReason', 'ControlEffect',
    'ControlKind', 'execute', 'tokenize',
    'VoleError', 'InvalidEncoding', 'InvalidInstructionLength',
    'InvalidOpcode', 'OutOfAsciiRange', 'RegisterIndexError',
]

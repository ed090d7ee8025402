"""
Vole Machine — Status Display

Text rendering of a MachineSnapshot for the CLI and the interactive menu:
register list, 16x16 memory grid, the cell-0 "expected value" line and
the program counter.
"""

from typing import List

from .config import ASCII_MAX
from .emu import MachineSnapshot

SPACE_INDICATOR = "<space>"


def format_registers(snap: MachineSnapshot) -> str:
    lines = ["Registers Status:"]
    for i, value in enumerate(snap.registers):
        lines.append(f"Register[{i}] = {value}")
    return '\n'.join(lines)


def format_memory(snap: MachineSnapshot) -> str:
    """16x16 grid, rows labelled by high nibble, columns by low nibble."""
    lines: List[str] = ["Memory Display:"]
    lines.append("      " + ''.join(f" {col:X} " for col in range(16)))
    lines.append("     " + "-" * 48)
    for row in range(16):
        cells = snap.memory[row * 16:(row + 1) * 16]
        lines.append(f"{row:X}  | " + ' '.join(c.to_hex() for c in cells) + ' ')
    return '\n'.join(lines)


def _visible(text: str) -> str:
    return ''.join(ch if 0x20 <= ord(ch) < 0x7F else f"\\x{ord(ch):02X}" for ch in text)


def format_accumulator(snap: MachineSnapshot) -> str:
    """Describe Memory[00] as a character; a space is shown as <space>,
    control characters and DEL as non-printable."""
    value = snap.memory[0].value
    if value == 0 and not snap.accumulator:
        return "Memory[00] is empty or contains default value '00'."
    if value == 0x20:
        text = f"Expected value: {SPACE_INDICATOR}"
    elif 0x20 < value < ASCII_MAX:
        text = f"Expected value: {chr(value)}"
    else:
        text = "Expected value: Non-printable ASCII character."
    if snap.accumulator:
        text += f'  (Memory[00] text = "{_visible(snap.accumulator)}")'
    return text


def format_status(snap: MachineSnapshot) -> str:
    return '\n\n'.join([
        format_registers(snap),
        format_memory(snap),
        format_accumulator(snap) + f"\nProgram Counter = {snap.program_counter}",
    ])

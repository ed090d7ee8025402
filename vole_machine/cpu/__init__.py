from .regs import RegisterFile
from .decoder import decode_word, Instruction, INSTRUCTION_TYPES

__all__ = ['RegisterFile', 'decode_word', 'Instruction', 'INSTRUCTION_TYPES']

"""
Vole Machine — Machine Constants

Fixed geometry and conventions of the Vole instruction set. Runtime
options (start address, step limit, logging) are CLI flags, see volekit.py.
"""

# =============================================================================
#  GEOMETRY
# =============================================================================
REGISTER_COUNT = 16       # R0..RF
MEMORY_SIZE = 256         # byte cells $00..$FF
WORD_LENGTH = 4           # hex characters per instruction word
WORD_BYTES = 2            # memory cells per instruction word

# =============================================================================
#  CONVENTIONS
# =============================================================================
ACCUMULATOR_ADDRESS = 0x00    # cell 0 collects ASCII output (opcode 3, addr 00)
ASCII_MAX = 0x7F              # highest value accepted by the accumulator
COMPARE_REGISTER = 0          # JumpIfEqual compares against R0
COPY_SOURCE_REGISTER = 10     # opcode 4 always copies from RA
HALT_SENTINEL = -1            # program counter value after Halt

# Biased float-8: S EEE MMMM
FLOAT_BIAS = 4
FLOAT_EXP_MAX = 7
FLOAT_MANTISSA_MAX = 0xF

# Default load address when none is given
DEFAULT_START_ADDRESS = 0x00

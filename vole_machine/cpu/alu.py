"""
Vole Machine — ALU: two's-complement add and the biased float-8 codec

Float-8 layout (one Byte):
  bit 7     S  sign
  bits 6-4  E  exponent field, bias 4
  bits 3-0  M  mantissa, implicit leading 1

  value = (-1)^S * (1 + M/16) * 2^(E - 4)

There is no zero or subnormal encoding: $00 decodes to +0.0625. Encoding
saturates: an exponent above the field range gives E=7, M=F; one below
gives E=0, M=0. Only the 256 representable values round-trip exactly.
"""

import math

from ..byte import Byte
from ..config import FLOAT_BIAS, FLOAT_EXP_MAX, FLOAT_MANTISSA_MAX


def add8(a: Byte, b: Byte) -> Byte:
    """Signed 8-bit add, result truncated to 8 bits (no overflow fault).

    $7F + $01 = $80, $FF + $01 = $00.
    """
    return Byte.from_int(a.signed + b.signed)


# ══════════════════════════════════════════════
# Float-8 codec
# ══════════════════════════════════════════════

def float8_fields(b: Byte) -> tuple:
    """Split a Byte into (sign, exponent_field, mantissa)."""
    v = b.value
    return ((v >> 7) & 0x1, (v >> 4) & 0x7, v & 0xF)


def decode_float8(b: Byte) -> float:
    sign, exp_field, mantissa = float8_fields(b)
    magnitude = (1 + mantissa / 16.0) * 2.0 ** (exp_field - FLOAT_BIAS)
    return -magnitude if sign else magnitude


def encode_float8(x: float) -> Byte:
    """Encode a real value, truncating the mantissa and saturating the exponent."""
    sign = 1 if x < 0 else 0
    x = abs(x)
    exp_field = 0
    mantissa = 0

    if x != 0:
        exponent = math.floor(math.log2(x))
        mantissa = int((x / 2.0 ** exponent) * 16) & 0xF
        exp_field = exponent + FLOAT_BIAS
        if exp_field > FLOAT_EXP_MAX:
            exp_field = FLOAT_EXP_MAX
            mantissa = FLOAT_MANTISSA_MAX
        elif exp_field < 0:
            exp_field = 0
            mantissa = 0

    return Byte((sign << 7) | ((exp_field & 0x7) << 4) | (mantissa & 0xF))


def add_float8(a: Byte, b: Byte) -> Byte:
    """Float-8 add: decode both, add as reals, re-encode."""
    return encode_float8(decode_float8(a) + decode_float8(b))

"""
Assembly Interpreter — 32-bit ALU Operations

All inputs are Python ints holding signed 32-bit values (or anything
that truncates to one). All outputs are normalized back to signed 32-bit.

Carry-using operations return (result, carry):
  adc32: C = unsigned overflow out of bit 31 on either addition step
  sbc32: C = 1 when NO borrow occurred on either subtraction step
         (ARM convention: carry means "no borrow")

Shift amounts are truncated to the low 5 bits, matching native 32-bit
wrapping shift/rotate semantics: negative amounts are reinterpreted as
unsigned first, so `LSL #-1` shifts by 31 and `ROR #32` is identity.
"""

from .config import WORD_BITS, WORD_MASK, SIGN_BIT

SHIFT_MASK = WORD_BITS - 1


def to_signed32(value: int) -> int:
    """Truncate to 32 bits and reinterpret as two's complement."""
    value &= WORD_MASK
    return value - (1 << WORD_BITS) if value & SIGN_BIT else value


def to_unsigned32(value: int) -> int:
    return value & WORD_MASK


# ══════════════════════════════════════════════
# Plain arithmetic, no flags
# ══════════════════════════════════════════════

def add32(a: int, b: int) -> int:
    return to_signed32(a + b)


def sub32(a: int, b: int) -> int:
    return to_signed32(a - b)


def mul32(a: int, b: int) -> int:
    return to_signed32(a * b)


# ══════════════════════════════════════════════
# Carry arithmetic: return (result, carry)
# ══════════════════════════════════════════════

def adc32(a: int, b: int, carry: int) -> tuple:
    """Unsigned add with carry in.

    Two steps, a+b then +carry; C is set if either step carries out.
    """
    partial = to_unsigned32(a) + to_unsigned32(b)
    carry_out = partial > WORD_MASK
    result = (partial & WORD_MASK) + (carry & 1)
    carry_out = carry_out or result > WORD_MASK
    return (to_signed32(result), int(carry_out))


def sbc32(a: int, b: int, carry: int) -> tuple:
    """Unsigned subtract with borrow: a - b - (1 - C).

    C out is 1 only if neither step borrowed.
    """
    partial = to_unsigned32(a) - to_unsigned32(b)
    borrow = partial < 0
    result = (partial & WORD_MASK) - (1 - (carry & 1))
    borrow = borrow or result < 0
    return (to_signed32(result), int(not borrow))


# ══════════════════════════════════════════════
# Bitwise
# ══════════════════════════════════════════════

def and32(a: int, b: int) -> int:
    return to_signed32(a & b)


def orr32(a: int, b: int) -> int:
    return to_signed32(a | b)


def eor32(a: int, b: int) -> int:
    return to_signed32(a ^ b)


def bic32(a: int, b: int) -> int:
    """Bit clear: a AND NOT b."""
    return to_signed32(a & ~b)


# ══════════════════════════════════════════════
# Shifts and rotates
# ══════════════════════════════════════════════

def lsl32(a: int, amount: int) -> int:
    return to_signed32(to_unsigned32(a) << (amount & SHIFT_MASK))


def lsr32(a: int, amount: int) -> int:
    """Logical shift right: vacated high bits are 0."""
    return to_signed32(to_unsigned32(a) >> (amount & SHIFT_MASK))


def asr32(a: int, amount: int) -> int:
    """Arithmetic shift right: sign bit is replicated."""
    return to_signed32(a) >> (amount & SHIFT_MASK)


def ror32(a: int, amount: int) -> int:
    amount &= SHIFT_MASK
    value = to_unsigned32(a)
    return to_signed32((value >> amount) | (value << (WORD_BITS - amount)))


def rrx32(a: int) -> int:
    """Unsigned shift right by one. The carry flag is NOT rotated in."""
    return to_signed32(to_unsigned32(a) >> 1)

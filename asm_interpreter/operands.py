"""
Assembly Interpreter — Operand Resolver

Operand forms:
  REG   r0..r15 (prefix case-insensitive)         e.g. r3, R15
  IMM   #decimal | #0xHEX                          e.g. #-12, #0xFF
  VALUE IMM or REG (REG resolves to its current value at execute time)
  ADDR  load/store address, one of:
          [Rx]           register indirect          address = Rx
          [Rx, #off]     register + offset          address = Rx ± |off|, floored at 0
          #addr          absolute                   must be >= 0
          name           label                      must be defined

Hex literals are parsed as unsigned 32-bit and reinterpreted as signed,
so #0xFFFFFFFF is -1. Decimal literals must fit in signed 32-bit.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Union
import re

from . import config
from .alu import to_signed32
from .errors import BoundsError, OperandError
from .state import LabelTable

__all__ = [
    'Reg', 'Imm', 'Value', 'RegisterIndirect', 'Absolute', 'LabelRef', 'Address',
    'parse_register', 'parse_immediate', 'parse_literal', 'parse_value',
    'parse_address', 'effective_address',
]

_REGISTER_RE = re.compile(rf"^{config.REGISTER_PREFIX}([0-9]+)$", re.IGNORECASE)
_DECIMAL_RE = re.compile(r"^[+-]?[0-9]+$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")
_INDIRECT_RE = re.compile(r"^\[\s*([^,\]\s]+)\s*(?:,\s*([^\]]*?)\s*)?\]$")

# Longest significant decimal digit run that can still fit a 32-bit word.
_MAX_DECIMAL_DIGITS = len(str(config.WORD_MASK))


def _fits_digits(digits: str) -> bool:
    """False for digit strings too long to name any 32-bit value."""
    return len(digits.lstrip("0")) <= _MAX_DECIMAL_DIGITS


# ──────────────────────────────────────────────
# Typed operands
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Reg:
    """Register operand. `name` keeps the spelling used in the source."""
    index: int
    name: str


@dataclass(frozen=True)
class Imm:
    value: int


Value = Union[Reg, Imm]


@dataclass(frozen=True)
class RegisterIndirect:
    base: Reg
    offset: int = 0


@dataclass(frozen=True)
class Absolute:
    address: int


@dataclass(frozen=True)
class LabelRef:
    name: str
    address: int


Address = Union[RegisterIndirect, Absolute, LabelRef]


# ──────────────────────────────────────────────
# Parsers
# ──────────────────────────────────────────────

def parse_register(text: str, num_registers: int = config.NUM_REGISTERS) -> Reg:
    """Parse `rN` with N in [0, num_registers)."""
    m = _REGISTER_RE.match(text.strip())
    if m and _fits_digits(m.group(1)):
        index = int(m.group(1))
        if index < num_registers:
            return Reg(index, text.strip())
    raise OperandError(
        f"Invalid register name '{text}'. Use r0 through r{num_registers - 1}.")


def parse_literal(text: str) -> int:
    """Parse the literal part of an immediate (no leading '#')."""
    text = text.strip()
    if text[:len(config.HEX_PREFIX)].lower() == config.HEX_PREFIX:
        digits = text[len(config.HEX_PREFIX):]
        if not _HEX_RE.match(digits):
            raise OperandError(f"Invalid hex literal '{text}'")
        value = int(digits, 16)
        if value > config.WORD_MASK:
            raise OperandError(f"Hex literal '{text}' does not fit in {config.WORD_BITS} bits")
        return to_signed32(value)

    if not _DECIMAL_RE.match(text):
        raise OperandError(f"Invalid immediate literal '{text}'")
    if not _fits_digits(text.lstrip("+-")):
        raise OperandError(f"Immediate '{text}' out of {config.WORD_BITS}-bit signed range")
    value = int(text)
    if not config.INT_MIN <= value <= config.INT_MAX:
        raise OperandError(f"Immediate '{text}' out of {config.WORD_BITS}-bit signed range")
    return value


def parse_immediate(text: str) -> int:
    """Parse `#literal`; the immediate marker is required."""
    text = text.strip()
    if not text.startswith(config.IMMEDIATE_MARKER):
        raise OperandError(
            f"Expected an immediate prefixed with '{config.IMMEDIATE_MARKER}', got '{text}'")
    return parse_literal(text[len(config.IMMEDIATE_MARKER):])


def parse_value(text: str, num_registers: int = config.NUM_REGISTERS) -> Value:
    """Immediate if '#'-prefixed, otherwise a register."""
    text = text.strip()
    if text.startswith(config.IMMEDIATE_MARKER):
        return Imm(parse_immediate(text))
    return parse_register(text, num_registers)


def parse_address(text: str, labels: LabelTable,
                  num_registers: int = config.NUM_REGISTERS) -> Address:
    """Parse one of the four load/store address forms.

    Label references are resolved here, against the table as it stands
    when the line is decoded.
    """
    text = text.strip()
    if not text:
        raise OperandError("Missing address operand")

    if text.startswith('['):
        m = _INDIRECT_RE.match(text)
        if not m:
            raise OperandError(f"Malformed address operand '{text}'")
        try:
            base = parse_register(m.group(1), num_registers)
        except OperandError:
            raise OperandError(
                f"Malformed address operand '{text}': base must be a register") from None
        offset_text = m.group(2)
        if offset_text is None:
            return RegisterIndirect(base)
        if not offset_text.startswith(config.IMMEDIATE_MARKER):
            raise OperandError(
                f"Malformed address operand '{text}': offset must be an immediate "
                f"(e.g. [{base.name}, #4])")
        return RegisterIndirect(base, parse_immediate(offset_text))

    if text.startswith(config.IMMEDIATE_MARKER):
        address = parse_immediate(text)
        if address < 0:
            raise OperandError(f"Negative address '{text}'")
        return Absolute(address)

    if any(ch.isspace() for ch in text) or any(ch in text for ch in '[],'):
        raise OperandError(f"Malformed address operand '{text}'")
    return LabelRef(text, labels.lookup(text))


def effective_address(operand: Address, regs: Sequence[int]) -> int:
    """Compute the word index an address operand refers to right now.

    Register-based addresses use the register's current value. A negative
    base is out of bounds; a negative offset subtracts its magnitude and
    stops at 0 rather than wrapping. Upper bound checks are left to Memory.
    """
    if isinstance(operand, RegisterIndirect):
        base = regs[operand.base.index]
        if base < 0:
            raise BoundsError(
                f"Memory address {base} out of bounds (from register {operand.base.name})")
        if operand.offset >= 0:
            return base + operand.offset
        return max(0, base + operand.offset)
    if isinstance(operand, (Absolute, LabelRef)):
        return operand.address
    raise TypeError(f"Not an address operand: {operand!r}")


def describe(operand: Optional[object]) -> str:
    """Render a typed operand back to source-like text (trace output)."""
    if isinstance(operand, Reg):
        return operand.name
    if isinstance(operand, Imm):
        return f"#{operand.value}"
    if isinstance(operand, RegisterIndirect):
        if operand.offset:
            return f"[{operand.base.name}, #{operand.offset}]"
        return f"[{operand.base.name}]"
    if isinstance(operand, Absolute):
        return f"#{operand.address}"
    if isinstance(operand, LabelRef):
        return operand.name
    return repr(operand)

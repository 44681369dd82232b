"""
Assembly Interpreter — Opcode Table + Decode Stage

Decoding turns instruction text into one typed Instruction whose operands
are already parsed. Nothing in this module touches machine state except
reading the label table, so a line that fails to decode changes nothing.

Operand kinds:
  REG    register                 r0..r15
  VALUE  register or immediate    r2, #5, #0x10
  ADDR   load/store address       [r0], [r0, #4], #20, label

Every operand except the last must be followed by a comma. Bracketed
address operands are one token even when they contain a comma.

Opcode table:
  MOV   REG, VALUE                      dest = value
  ADD   REG, REG, VALUE                 dest = lhs + value
  SUB   REG, REG, VALUE                 dest = lhs - value
  ADC   REG, REG, VALUE                 dest = lhs + value + C     (sets C)
  SBC   REG, REG, VALUE                 dest = lhs - value - !C    (sets C)
  LSL   REG, REG, VALUE                 logical shift left
  LSR   REG, REG, VALUE                 logical shift right
  ASR   REG, REG, VALUE                 arithmetic shift right
  ROR   REG, REG, VALUE                 rotate right
  RRX   REG, REG                        unsigned shift right by one
  MUL   REG, REG, VALUE
  AND   REG, REG, VALUE
  ORR   REG, REG, VALUE
  EOR   REG, REG, VALUE
  BIC   REG, REG, VALUE                 lhs AND NOT value
  LDR   REG, ADDR                       dest = MEM[addr]
  STR   REG, ADDR                       MEM[addr] = src
  PRINT REG                             emit "rN = value"
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type
import logging

from . import config
from .errors import InstructionSyntaxError, UnknownInstructionError
from .operands import Address, Reg, Value, parse_address, parse_register, parse_value
from .state import LabelTable

log = logging.getLogger(__name__)

__all__ = [
    'Instruction', 'Mov', 'ThreeOperand', 'Add', 'Sub', 'Adc', 'Sbc',
    'Lsl', 'Lsr', 'Asr', 'Ror', 'Rrx', 'Mul', 'And', 'Orr', 'Eor', 'Bic',
    'Ldr', 'Str', 'Print', 'OPCODES', 'decode', 'split_operands',
]


# ──────────────────────────────────────────────
# Operand kinds
# ──────────────────────────────────────────────

REG = 'REG'
VALUE = 'VALUE'
ADDR = 'ADDR'


# ──────────────────────────────────────────────
# Instruction variants
# ──────────────────────────────────────────────

class Instruction:
    """Base for every decoded instruction."""
    mnemonic = ''


@dataclass(frozen=True)
class Mov(Instruction):
    dest: Reg
    src: Value
    mnemonic = 'MOV'


@dataclass(frozen=True)
class ThreeOperand(Instruction):
    """dest = lhs <op> rhs"""
    dest: Reg
    lhs: Reg
    rhs: Value


class Add(ThreeOperand):
    mnemonic = 'ADD'


class Sub(ThreeOperand):
    mnemonic = 'SUB'


class Adc(ThreeOperand):
    mnemonic = 'ADC'


class Sbc(ThreeOperand):
    mnemonic = 'SBC'


class Lsl(ThreeOperand):
    mnemonic = 'LSL'


class Lsr(ThreeOperand):
    mnemonic = 'LSR'


class Asr(ThreeOperand):
    mnemonic = 'ASR'


class Ror(ThreeOperand):
    mnemonic = 'ROR'


class Mul(ThreeOperand):
    mnemonic = 'MUL'


class And(ThreeOperand):
    mnemonic = 'AND'


class Orr(ThreeOperand):
    mnemonic = 'ORR'


class Eor(ThreeOperand):
    mnemonic = 'EOR'


class Bic(ThreeOperand):
    mnemonic = 'BIC'


@dataclass(frozen=True)
class Rrx(Instruction):
    dest: Reg
    src: Reg
    mnemonic = 'RRX'


@dataclass(frozen=True)
class Ldr(Instruction):
    dest: Reg
    address: Address
    mnemonic = 'LDR'


@dataclass(frozen=True)
class Str(Instruction):
    src: Reg
    address: Address
    mnemonic = 'STR'


@dataclass(frozen=True)
class Print(Instruction):
    reg: Reg
    mnemonic = 'PRINT'


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# Format: { 'MNEMONIC': (variant, operand_kinds, usage) }

OPCODES: Dict[str, Tuple[Type[Instruction], Tuple[str, ...], str]] = {}


def _op(variant: Type[Instruction], kinds: Tuple[str, ...], usage: str):
    """Register an opcode entry."""
    OPCODES[variant.mnemonic] = (variant, kinds, f"{variant.mnemonic} {usage}")


def _op3(variant: Type[ThreeOperand], last: str = '<operand>'):
    _op(variant, (REG, REG, VALUE), f"<dest_register>, <reg_operand>, {last}")


_op(Mov, (REG, VALUE), "<register>, <value>")

# ── Arithmetic ──
_op3(Add)
_op3(Sub)
_op3(Adc)
_op3(Sbc)
_op3(Mul)

# ── Shifts / rotates ──
_op3(Lsl, '<shift_amount>')
_op3(Lsr, '<shift_amount>')
_op3(Asr, '<shift_amount>')
_op3(Ror, '<rotate_amount>')
_op(Rrx, (REG, REG), "<dest_register>, <source_register>")

# ── Bitwise ──
_op3(And)
_op3(Orr)
_op3(Eor)
_op3(Bic)

# ── Memory ──
_op(Ldr, (REG, ADDR), "<dest_register>, <address>")
_op(Str, (REG, ADDR), "<source_register>, <address>")

# ── Output ──
_op(Print, (REG,), "<register>")


# ──────────────────────────────────────────────
# Tokenizer
# ──────────────────────────────────────────────

def split_operands(text: str) -> List[Tuple[str, bool]]:
    """Split operand text into (token, followed_by_comma) pairs.

    Tokens end at whitespace or a comma; `[...]` is kept whole. An
    unterminated bracket runs to end of line and is left for the address
    parser to reject.
    """
    tokens: List[Tuple[str, bool]] = []
    i, n = 0, len(text)
    while i < n:
        if text[i].isspace():
            i += 1
            continue
        start = i
        if text[i] == '[':
            close = text.find(']', i)
            i = n if close < 0 else close + 1
        else:
            while i < n and not text[i].isspace() and text[i] != config.OPERAND_SEPARATOR:
                i += 1
        token = text[start:i]
        while i < n and text[i].isspace():
            i += 1
        has_comma = i < n and text[i] == config.OPERAND_SEPARATOR
        if has_comma:
            i += 1
        if token:
            tokens.append((token, has_comma))
        elif has_comma:
            # stray separator with no operand before it
            tokens.append(('', True))
    return tokens


# ──────────────────────────────────────────────
# Decode
# ──────────────────────────────────────────────

def decode(text: str, labels: LabelTable,
           num_registers: int = config.NUM_REGISTERS) -> Instruction:
    """Decode one instruction line (comment and label already removed)."""
    parts = text.strip().split(None, 1)
    if not parts:
        raise InstructionSyntaxError("Empty instruction")
    keyword = parts[0]
    mnemonic = keyword.upper()

    entry = OPCODES.get(mnemonic)
    if entry is None:
        raise UnknownInstructionError(keyword)
    variant, kinds, usage = entry

    tokens = split_operands(parts[1] if len(parts) > 1 else "")
    if len(tokens) != len(kinds):
        raise InstructionSyntaxError(f"Usage: {usage}")

    for i, (token, has_comma) in enumerate(tokens):
        last = i == len(tokens) - 1
        if not token:
            raise InstructionSyntaxError(
                f"Syntax error: Empty operand in {mnemonic}. Usage: {usage}")
        if not last and not has_comma:
            raise InstructionSyntaxError(
                f"Syntax error: Missing comma after '{token}' in {mnemonic}. Usage: {usage}")
        if last and has_comma:
            raise InstructionSyntaxError(
                f"Syntax error: Unexpected comma after '{token}' in {mnemonic}. Usage: {usage}")

    operands = []
    for (token, _), kind in zip(tokens, kinds):
        if kind == REG:
            operands.append(parse_register(token, num_registers))
        elif kind == VALUE:
            operands.append(parse_value(token, num_registers))
        else:
            operands.append(parse_address(token, labels, num_registers))

    instr = variant(*operands)
    log.debug("decoded %r", instr)
    return instr


def usage_for(mnemonic: str) -> Optional[str]:
    """Usage string for a mnemonic, or None if it is not an opcode."""
    entry = OPCODES.get(mnemonic.upper())
    return entry[2] if entry else None

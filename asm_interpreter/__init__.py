"""
Assembly Interpreter
====================
A line-oriented interpreter for a small ARM-flavoured instruction set:
16 signed 32-bit registers, 1024 words of memory, one carry flag, and
labels that name memory words.

Architecture:
    ┌──────────┐    ┌────────────┐    ┌──────────┐    ┌───────────┐
    │  Source  │───>│ Normalizer │───>│ Decoder  │───>│  Execute  │───> PRINT output
    │  lines   │    │ (labels)   │    │ (typed   │    │ (handlers │
    └──────────┘    └────────────┘    │  instr)  │    │  + ALU)   │
                                      └──────────┘    └───────────┘
                                           │               │
                                           └──> MachineState <──┘

    - normalizer.py:  comment/blank/EXIT detection, label definitions
    - operands.py:    registers, immediates, the four address forms
    - decoder.py:     opcode table → typed Instruction variants
    - alu.py:         32-bit wraparound, shifts, rotates, carry arithmetic
    - interpreter.py: handlers, run loop, reporting policy
    - state.py:       registers, memory, carry flag, label table

Example:
    >>> from asm_interpreter import run, Policy
    >>> result = run(["MOV r1, #5", "MOV r2, #10", "ADD r3, r1, r2", "PRINT r3"])
    r3 = 15
"""

__version__ = "0.4.0"

from .errors import (
    InterpreterError, InstructionSyntaxError, OperandError, BoundsError,
    SemanticError, DuplicateLabelError, UnknownInstructionError,
)
from .state import MachineState, Memory, LabelTable
from .decoder import OPCODES, decode
from .normalizer import LineKind, normalize_line
from .interpreter import Interpreter, Policy, Outcome, RunResult, run, run_file

__all__ = [
    'InterpreterError', 'InstructionSyntaxError', 'OperandError', 'BoundsError',
    'SemanticError', 'DuplicateLabelError', 'UnknownInstructionError',
    'MachineState', 'Memory', 'LabelTable', 'OPCODES', 'decode',
    'LineKind', 'normalize_line',
    'Interpreter', 'Policy', 'Outcome', 'RunResult', 'run', 'run_file',
]

"""
Assembly Interpreter — Execute Stage + Run Loop

This is the top-level class that ties together:
  - Machine state (state.py)
  - Line normalizer (normalizer.py)
  - Decoder (decoder.py)
  - ALU operations (alu.py)

Execution model, one source line at a time:
  1. Normalize: strip comment, detect blank / EXIT / label definition
  2. Decode: opcode keyword + operands → typed Instruction
  3. Execute: handler for the Instruction's type mutates MachineState
  4. Repeat until EXIT or end of input

Reporting policy decides what an error does to the run:
  INTERACTIVE  message goes to the output sink, loop continues
  BATCH        run ends; outcome UNKNOWN_INSTRUCTION or FATAL

Outcomes:
  HALTED               EXIT seen or input exhausted
  UNKNOWN_INSTRUCTION  batch run hit an opcode not in the table
  FATAL                batch run hit any other error
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional, Union
import logging

from . import alu
from .decoder import (
    Instruction, Mov, ThreeOperand, Add, Sub, Adc, Sbc, Lsl, Lsr, Asr, Ror,
    Rrx, Mul, And, Orr, Eor, Bic, Ldr, Str, Print, decode,
)
from .errors import InterpreterError, UnknownInstructionError
from .normalizer import LineKind, normalize_line
from .operands import Imm, Value, describe, effective_address
from .state import MachineState

log = logging.getLogger(__name__)

OutputFn = Callable[[str], None]


class Policy(Enum):
    INTERACTIVE = 'interactive'
    BATCH = 'batch'


class Outcome(Enum):
    HALTED = 'HALTED'
    UNKNOWN_INSTRUCTION = 'UNKNOWN_INSTRUCTION'
    FATAL = 'FATAL'


@dataclass
class RunResult:
    """How a run ended. `source` is the text of the line that aborted a batch run."""
    outcome: Outcome
    detail: Optional[str] = None
    lines_read: int = 0
    source: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.HALTED


class Interpreter:
    """Line-at-a-time interpreter over one MachineState.

    Usage:
        lines = []
        interp = Interpreter(output=lines.append)
        result = interp.run(["MOV r1, #5", "PRINT r1"], Policy.BATCH)
        assert lines == ["r1 = 5"] and result.ok
    """

    # Plain two-input ALU ops: variant → fn(lhs, rhs) -> result
    ALU_OPS = {
        Add: alu.add32,
        Sub: alu.sub32,
        Mul: alu.mul32,
        And: alu.and32,
        Orr: alu.orr32,
        Eor: alu.eor32,
        Bic: alu.bic32,
        Lsl: alu.lsl32,
        Lsr: alu.lsr32,
        Asr: alu.asr32,
        Ror: alu.ror32,
    }

    # Carry ops: variant → fn(lhs, rhs, carry) -> (result, carry)
    CARRY_OPS = {
        Adc: alu.adc32,
        Sbc: alu.sbc32,
    }

    def __init__(self, state: Optional[MachineState] = None,
                 output: OutputFn = print, trace: bool = False):
        self.state = state if state is not None else MachineState()
        self.output = output
        self.trace = trace
        self.lines_read = 0
        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self, line: str) -> LineKind:
        """Normalize, decode and execute one raw source line.

        Raises InterpreterError on failure; the state is left as it was
        before the line, including any label the line tried to define.
        """
        normalized = normalize_line(line, self.state)
        if normalized.kind is not LineKind.INSTRUCTION:
            return normalized.kind

        try:
            instr = decode(normalized.text, self.state.labels, self.state.num_registers)
            self.execute(instr)
        except InterpreterError:
            if normalized.label is not None:
                self.state.labels.discard(normalized.label)
            raise
        return normalized.kind

    def execute(self, instr: Instruction):
        """Dispatch a decoded instruction to its handler."""
        handler = self._dispatch.get(type(instr))
        if handler is None:
            raise NotImplementedError(f"No handler for {type(instr).__name__}")
        handler(instr)
        if self.trace:
            log.debug("%-5s %-24s %s", instr.mnemonic, _operands_text(instr),
                      self.state.display())

    def run(self, line_source: Iterable[str],
            policy: Policy = Policy.BATCH) -> RunResult:
        """Run until EXIT, end of input, or (batch only) the first error."""
        for line in line_source:
            self.lines_read += 1
            try:
                kind = self.step(line)
            except InterpreterError as e:
                e.at_line(self.lines_read, line.rstrip('\r\n'))
                if policy is Policy.BATCH:
                    return self._abort(e)
                log.info("line %d rejected: %s", self.lines_read, e.message)
                self.output(e.message)
                continue
            if kind is LineKind.HALT:
                log.info("EXIT at line %d", self.lines_read)
                return RunResult(Outcome.HALTED, lines_read=self.lines_read)

        log.info("end of input after %d lines", self.lines_read)
        return RunResult(Outcome.HALTED, lines_read=self.lines_read)

    def _abort(self, error: InterpreterError) -> RunResult:
        if isinstance(error, UnknownInstructionError):
            outcome = Outcome.UNKNOWN_INSTRUCTION
        else:
            outcome = Outcome.FATAL
        log.info("aborting run: %s", error)
        return RunResult(outcome, detail=str(error), lines_read=self.lines_read,
                         source=error.line_text)

    # ══════════════════════════════════════════════
    # Operand access
    # ══════════════════════════════════════════════

    def _value(self, operand: Value) -> int:
        if isinstance(operand, Imm):
            return operand.value
        return self.state.regs[operand.index]

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> dict:
        """Build variant type → handler dispatch table."""
        table = {
            Mov: self._op_mov,
            Rrx: self._op_rrx,
            Ldr: self._op_ldr,
            Str: self._op_str,
            Print: self._op_print,
        }
        for variant in self.ALU_OPS:
            table[variant] = self._op_alu
        for variant in self.CARRY_OPS:
            table[variant] = self._op_carry
        return table

    def _op_mov(self, instr: Mov):
        self.state.set_reg(instr.dest.index, self._value(instr.src))

    def _op_alu(self, instr: ThreeOperand):
        fn = self.ALU_OPS[type(instr)]
        lhs = self.state.regs[instr.lhs.index]
        self.state.set_reg(instr.dest.index, fn(lhs, self._value(instr.rhs)))

    def _op_carry(self, instr: ThreeOperand):
        fn = self.CARRY_OPS[type(instr)]
        lhs = self.state.regs[instr.lhs.index]
        result, carry = fn(lhs, self._value(instr.rhs), self.state.carry)
        self.state.set_reg(instr.dest.index, result)
        self.state.set_carry(carry)

    def _op_rrx(self, instr: Rrx):
        self.state.set_reg(instr.dest.index, alu.rrx32(self.state.regs[instr.src.index]))

    def _op_ldr(self, instr: Ldr):
        addr = effective_address(instr.address, self.state.regs)
        self.state.set_reg(instr.dest.index, self.state.mem.read(addr))

    def _op_str(self, instr: Str):
        addr = effective_address(instr.address, self.state.regs)
        self.state.mem.write(addr, self.state.regs[instr.src.index])

    def _op_print(self, instr: Print):
        self.output(f"{instr.reg.name} = {self.state.regs[instr.reg.index]}")


def _operands_text(instr: Instruction) -> str:
    fields = getattr(instr, '__dataclass_fields__', {})
    return ", ".join(describe(getattr(instr, name)) for name in fields)


# ══════════════════════════════════════════════
# Entry points
# ══════════════════════════════════════════════

def run(line_source: Iterable[str], policy: Policy = Policy.BATCH,
        output: OutputFn = print, trace: bool = False) -> RunResult:
    """Run a line source on a fresh machine."""
    return Interpreter(output=output, trace=trace).run(line_source, policy)


def run_file(path: Union[str, Path], output: OutputFn = print,
             trace: bool = False) -> RunResult:
    """Run a source file under batch policy."""
    path = Path(path)
    log.info("running %s", path)
    with path.open('r', encoding='utf-8') as f:
        return run(f, Policy.BATCH, output=output, trace=trace)

"""
Assembly Interpreter — Machine State (register file, memory, carry, labels)

Machine model:
  r0..r15    16 general-purpose registers, signed 32-bit
  MEM        1024 signed 32-bit words, word-addressed [0, 1024)
  C          carry flag (0/1). Written and read only by ADC/SBC.
  LABELS     name → address. Addresses are handed out sequentially from 0,
             one memory word per label, in definition order.

A MachineState is created once per run and owned by that run's
Interpreter; nothing here is module-global.
"""

import logging
from typing import Dict, List

from . import config
from .alu import to_signed32
from .errors import BoundsError, DuplicateLabelError, OperandError

log = logging.getLogger(__name__)


class Memory:
    """Flat word-addressable memory with bounds checking.

    Every stored value is normalized to signed 32-bit. Out-of-range
    accesses raise BoundsError before anything is read or written.
    """

    def __init__(self, size: int = config.MEMORY_WORDS):
        self.size = size
        self._mem: List[int] = [0] * size

    def check(self, addr: int) -> int:
        """Validate an address, returning it unchanged."""
        if not 0 <= addr < self.size:
            raise BoundsError(
                f"Memory address {addr} out of bounds (valid range 0-{self.size - 1})")
        return addr

    def read(self, addr: int) -> int:
        return self._mem[self.check(addr)]

    def write(self, addr: int, value: int):
        self._mem[self.check(addr)] = to_signed32(value)

    def clear(self):
        self._mem = [0] * self.size


class LabelTable:
    """Label name → memory address, assigned sequentially from 0.

    Names are case-sensitive. Redefinition is rejected. The table is full
    once the next address would fall outside memory.
    """

    def __init__(self, capacity: int = config.MEMORY_WORDS):
        self.capacity = capacity
        self.next_address = 0
        self._labels: Dict[str, int] = {}

    def define(self, name: str) -> int:
        """Register a new label at the next free address and return it."""
        if name in self._labels:
            raise DuplicateLabelError(
                f"Label '{name}' already defined at address {self._labels[name]}")
        if self.next_address >= self.capacity:
            raise BoundsError(
                f"Label table full: cannot define '{name}' beyond address {self.capacity - 1}")
        addr = self.next_address
        self._labels[name] = addr
        self.next_address += 1
        log.info("label %s -> %d", name, addr)
        return addr

    def discard(self, name: str):
        """Roll back the most recent definition of `name`.

        Only the newest label can be rolled back; the next-address counter
        returns to that label's slot.
        """
        addr = self._labels.get(name)
        if addr is None or addr != self.next_address - 1:
            raise ValueError(f"'{name}' is not the most recently defined label")
        del self._labels[name]
        self.next_address = addr
        log.debug("label %s rolled back", name)

    def lookup(self, name: str) -> int:
        try:
            return self._labels[name]
        except KeyError:
            raise OperandError(f"Undefined label '{name}'") from None

    def clear(self):
        self._labels.clear()
        self.next_address = 0

    def __contains__(self, name: str) -> bool:
        return name in self._labels

    def __len__(self) -> int:
        return len(self._labels)


class MachineState:
    """Complete state of one interpreter session."""

    __slots__ = ('regs', 'mem', 'carry', 'labels')

    def __init__(self, num_registers: int = config.NUM_REGISTERS,
                 memory_words: int = config.MEMORY_WORDS):
        self.regs: List[int] = [0] * num_registers
        self.mem = Memory(memory_words)
        self.carry: int = 0
        self.labels = LabelTable(capacity=memory_words)

    @property
    def num_registers(self) -> int:
        return len(self.regs)

    def set_reg(self, index: int, value: int):
        """Write a register, wrapping to signed 32-bit."""
        self.regs[index] = to_signed32(value)

    def set_carry(self, flag):
        self.carry = 1 if flag else 0

    def display(self) -> str:
        """One-line summary: non-zero registers, carry, label count."""
        regs = " ".join(f"r{i}={v}" for i, v in enumerate(self.regs) if v)
        return f"[{regs or 'all zero'}] C={self.carry} labels={len(self.labels)}"

    def reset(self):
        """Return to power-on state: zeroed registers and memory, no labels."""
        self.regs = [0] * len(self.regs)
        self.mem.clear()
        self.carry = 0
        self.labels.clear()

"""
Assembly Interpreter — Line Normalizer

Turns one raw source line into one of:
  SKIP         blank or comment-only line, or a bare label definition
  HALT         the line is exactly EXIT (any case)
  INSTRUCTION  text left over for the decoder

Label handling happens here because it mutates the label table:

    loop:                   define `loop`, nothing else on the line
    count: #10              define `count`, store 10 at its address
    top: MOV r0, #1         define `top`, then decode "MOV r0, #1"

A label with malformed inline data is rolled back before the error is
raised. A label followed by an instruction is reported in
NormalizedLine.label so the caller can roll it back if the instruction
fails.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from . import config
from .errors import InterpreterError
from .operands import parse_literal
from .state import MachineState

log = logging.getLogger(__name__)


class LineKind(Enum):
    SKIP = 'SKIP'
    HALT = 'HALT'
    INSTRUCTION = 'INSTRUCTION'


@dataclass
class NormalizedLine:
    """Result of normalizing one source line."""
    kind: LineKind
    text: str = ""
    label: Optional[str] = None


def strip_comment(line: str) -> str:
    """Trim, drop everything from the first comment marker, trim again."""
    text = line.strip()
    pos = text.find(config.COMMENT_MARKER)
    if pos >= 0:
        text = text[:pos]
    return text.rstrip()


def split_label(text: str) -> tuple:
    """Split `name: rest` into (name, rest).

    Returns (None, text) when there is no label: no delimiter, or the text
    left of the delimiter is empty or contains whitespace (i.e. it already
    holds instruction text).
    """
    pos = text.find(config.LABEL_DELIMITER)
    if pos < 0:
        return (None, text)
    candidate = text[:pos].strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        return (None, text)
    return (candidate, text[pos + 1:].strip())


def normalize_line(line: str, state: MachineState) -> NormalizedLine:
    """Classify a raw line, registering any label definition it carries."""
    text = strip_comment(line)
    if not text:
        return NormalizedLine(LineKind.SKIP)

    if text.upper() == config.HALT_TOKEN:
        return NormalizedLine(LineKind.HALT)

    label, rest = split_label(text)
    if label is None:
        return NormalizedLine(LineKind.INSTRUCTION, text)

    addr = state.labels.define(label)

    if rest.startswith(config.IMMEDIATE_MARKER):
        try:
            value = parse_literal(rest[len(config.IMMEDIATE_MARKER):])
        except InterpreterError as e:
            state.labels.discard(label)
            e.message = f"Invalid data for label '{label}': {e.message}"
            e.args = (e.message,)
            raise
        state.mem.write(addr, value)
        log.debug("label %s data %d stored at %d", label, value, addr)
        return NormalizedLine(LineKind.SKIP, label=label)

    if not rest:
        return NormalizedLine(LineKind.SKIP, label=label)
    return NormalizedLine(LineKind.INSTRUCTION, rest, label=label)

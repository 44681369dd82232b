"""
Assembly Interpreter — Error Taxonomy

Every failure is detected while a single line is normalized, decoded or
executed. The engine only raises; the run loop decides (per reporting
policy) whether an error is reported and skipped or ends the run.

    InterpreterError
     ├── InstructionSyntaxError   wrong operand count, missing separator
     ├── OperandError             bad register / literal / address form, undefined label
     ├── BoundsError              memory address or label table capacity exceeded
     └── SemanticError
          ├── DuplicateLabelError
          └── UnknownInstructionError
"""

from typing import Optional

__all__ = [
    'InterpreterError', 'InstructionSyntaxError', 'OperandError',
    'BoundsError', 'SemanticError', 'DuplicateLabelError',
    'UnknownInstructionError',
]


class InterpreterError(Exception):
    """Base class for every error raised while processing a source line."""

    def __init__(self, message: str, line_num: int = 0, line_text: Optional[str] = None):
        self.message = message
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)

    def at_line(self, line_num: int, line_text: Optional[str] = None) -> 'InterpreterError':
        """Attach source position (used by the run loop before reporting)."""
        self.line_num = line_num
        self.line_text = line_text
        self.args = (f"Line {line_num}: {self.message}",)
        return self


class InstructionSyntaxError(InterpreterError):
    pass


class OperandError(InterpreterError):
    pass


class BoundsError(InterpreterError):
    pass


class SemanticError(InterpreterError):
    pass


class DuplicateLabelError(SemanticError):
    pass


class UnknownInstructionError(SemanticError):
    """Opcode keyword not in the instruction table. Always fatal in batch runs."""

    def __init__(self, mnemonic: str):
        self.mnemonic = mnemonic
        super().__init__(f"Unknown instruction: {mnemonic}")

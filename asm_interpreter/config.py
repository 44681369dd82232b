"""
Assembly Interpreter — Machine Geometry + Lexical Configuration
===============================================================

Fixed sizes of the virtual machine and the tokens the line grammar is
built from. Everything here is a plain constant; the front end never
rewrites them at runtime.

Line grammar (case-insensitive opcode keyword):
    line     := label? instr? comment?
    label    := IDENT ':' ( '#' INTLIT )?
    instr    := OPCODE operand (',' operand)*
    operand  := REGISTER | '#' INTLIT | '[' REGISTER (',' '#' INTLIT)? ']' | IDENT
    REGISTER := [rR][0-15]
    INTLIT   := ['-']? (DIGIT+ | '0x' HEXDIGIT+)
"""

# =============================================================================
#  MACHINE GEOMETRY
# =============================================================================
NUM_REGISTERS = 16        # r0..r15
MEMORY_WORDS = 1024       # word-addressed, [0, 1024)
WORD_BITS = 32            # every register and memory cell is a signed i32

WORD_MASK = (1 << WORD_BITS) - 1      # 0xFFFFFFFF
SIGN_BIT = 1 << (WORD_BITS - 1)       # 0x80000000
INT_MIN = -SIGN_BIT
INT_MAX = SIGN_BIT - 1


# =============================================================================
#  LEXICAL TOKENS
# =============================================================================
COMMENT_MARKER = "//"
HALT_TOKEN = "EXIT"
IMMEDIATE_MARKER = "#"
HEX_PREFIX = "0x"         # matched case-insensitively
LABEL_DELIMITER = ":"
REGISTER_PREFIX = "r"     # matched case-insensitively
OPERAND_SEPARATOR = ","


# =============================================================================
#  FRONT END
# =============================================================================
PROMPT = "> "
BANNER = "Welcome to the Assembly Interpreter."

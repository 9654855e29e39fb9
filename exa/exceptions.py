"""
Custom exception types for the expression analyzer.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):

    # --- Input Errors ---
    EMPTY_INPUT = "Input string is required"

    # --- Lexical Errors ---
    INVALID_CHARACTER = "Invalid character: '{char}' at position {position}"

    # --- Syntax Errors ---
    EXPECTED_RPAREN = "Expected ')' but found {found}"
    EXPECTED_OPERAND = "Expected identifier or '(' but found {found}"
    UNEXPECTED_TOKEN = "Unexpected token: {found}"

    # Raised instead of letting a pathological input exhaust the interpreter stack.
    NESTING_TOO_DEEP = "Expression is nested too deeply (maximum depth is {max_depth})"

    # --- Internal Errors ---
    # Never carries exception details, the result must not leak internals.
    INTERNAL = "An unexpected internal error occurred."


class AnalysisError(Exception):
    def __init__(self, code: ErrorCode, position: Optional[int] = None, **kwargs):
        self.code = code
        self.position = position
        self.details = kwargs

        # The template (e.g. "Invalid character: '{char}' ...") is populated
        # with the extra data it needs from kwargs.
        self.message = code.value.format(position=position, **kwargs)

        super().__init__(self.message)


class LexicalError(AnalysisError):
    """Raised by the lexer on the first character that starts no token."""

    def __init__(self, char: str, position: int):
        self.char = char
        super().__init__(ErrorCode.INVALID_CHARACTER, position=position, char=char)


class InternalAnalyzerError(Exception):
    def __init__(self, message: str):
        super().__init__(message)

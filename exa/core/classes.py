"""
Defines the formal data structures (contracts) shared by the analysis stages:
tokens produced by the lexer, the derivation tree produced by the parser,
symbol table records and the final analysis result.

Every model serializes to the wire format with camelCase keys
(e.g. `first_occurrence` -> `firstOccurrence`).
"""

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# --- Core Data Structures ---


class TokenKind(str, Enum):
    """The closed set of token kinds. Values equal names so the wire carries the names verbatim."""

    NUMBER = "NUMBER"
    IDENTIFIER = "IDENTIFIER"
    PLUS = "PLUS"
    MINUS = "MINUS"
    MULTIPLY = "MULTIPLY"
    DIVIDE = "DIVIDE"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    EOF = "EOF"


# Tokens that the F -> id production accepts.
OPERAND_KINDS = frozenset({TokenKind.NUMBER, TokenKind.IDENTIFIER})


class ErrorType(str, Enum):
    INPUT_ERROR = "INPUT_ERROR"
    LEXICAL_ERROR = "LEXICAL_ERROR"
    SYNTAX_ERROR = "SYNTAX_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class WireModel(BaseModel):
    """A base class for everything that crosses the analyzer boundary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Token(WireModel):
    model_config = ConfigDict(frozen=True)

    type: TokenKind
    value: Optional[str] = None
    position: int

    @property
    def is_eof(self) -> bool:
        return self.type is TokenKind.EOF


class ParseTreeNode(WireModel):
    """
    A node of the derivation tree. Non-terminals (E, E', T, T', F) carry the
    children of the production they realize; terminals and epsilon nodes are leaves.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    value: Optional[str] = None
    children: List["ParseTreeNode"] = Field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def leaves(self) -> Iterator["ParseTreeNode"]:
        """Yields the leaves left to right."""
        stack = [self]
        while stack:
            node = stack.pop()
            if node.is_leaf:
                yield node
            else:
                stack.extend(reversed(node.children))


class SymbolEntry(WireModel):
    token: str
    type: TokenKind
    first_occurrence: int
    occurrences: List[int] = Field(default_factory=list)


class Statistics(WireModel):
    total_tokens: int
    tokens_by_type: Dict[str, int] = Field(default_factory=dict)


class Diagnostic(WireModel):
    model_config = ConfigDict(frozen=True)

    message: str
    # None only for the internal fallback, where no token could be blamed.
    position: Optional[int] = None
    token: Optional[str] = None


class ParseResult(WireModel):
    success: bool
    parse_tree: Optional[ParseTreeNode] = None
    errors: List[Diagnostic] = Field(default_factory=list)


# --- Top-level Structure ---


class AnalysisResult(WireModel):
    """The pipeline's single output, tagged by `success` and `error_type`."""

    success: bool
    error_type: Optional[ErrorType] = None
    message: str
    tokens: List[Token] = Field(default_factory=list)
    symbol_table: List[SymbolEntry] = Field(default_factory=list)
    statistics: Optional[Statistics] = None
    errors: Optional[List[Diagnostic]] = None
    parse_tree: Optional[ParseTreeNode] = None

    def to_wire(self) -> Dict[str, Any]:
        # `statistics` only exists on success and `errors` only on syntax failures.
        absent = {name for name in ("statistics", "errors") if getattr(self, name) is None}
        return self.model_dump(mode="json", by_alias=True, exclude=absent)

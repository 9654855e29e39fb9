import functools
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional, Sequence

from ..config import EPSILON_LABEL, ID_LABEL, MAX_PARSE_DEPTH, TOKEN_FRIENDLY_NAMES
from ..core.classes import OPERAND_KINDS, Diagnostic, ParseResult, ParseTreeNode, Token, TokenKind
from ..exceptions import ErrorCode, InternalAnalyzerError

ADDITIVE_OPERATORS = frozenset({TokenKind.PLUS, TokenKind.MINUS})
MULTIPLICATIVE_OPERATORS = frozenset({TokenKind.MULTIPLY, TokenKind.DIVIDE})


@dataclass(frozen=True)
class Derivation:
    """
    The outcome of one non-terminal procedure: either the subtree it derived
    or the diagnostic that stopped it. Callers return a failed derivation
    unchanged, which unwinds the whole descent without raising.
    """

    node: Optional[ParseTreeNode] = None
    diagnostic: Optional[Diagnostic] = None

    @property
    def failed(self) -> bool:
        return self.diagnostic is not None


@dataclass
class ParserState:
    """Cursor, recursion depth and diagnostics of a single `parse` call."""

    tokens: Sequence[Token]
    max_depth: int
    cursor: int = 0
    depth: int = 0
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def current(self) -> Token:
        return self.tokens[self.cursor]

    def advance(self):
        # The cursor never moves past EOF.
        if self.cursor < len(self.tokens) - 1:
            self.cursor += 1

    def fail(self, code: ErrorCode, **kwargs) -> Derivation:
        """Records a diagnostic blaming the current token and returns it as a failed derivation."""
        token = self.current
        diagnostic = Diagnostic(message=code.value.format(found=_describe(token), **kwargs), position=token.position, token=token.value)
        self.diagnostics.append(diagnostic)
        return Derivation(diagnostic=diagnostic)


def _describe(token: Token) -> str:
    if token.is_eof:
        return TOKEN_FRIENDLY_NAMES[TokenKind.EOF.value]
    return f"'{token.value}'"


def _terminal(token: Token, label: Optional[str] = None) -> ParseTreeNode:
    return ParseTreeNode(label=label or token.type.value, value=token.value)


def _nonterminal(procedure: Callable) -> Callable:
    """Bounds the number of non-terminal procedures active at once."""

    @functools.wraps(procedure)
    def wrapper(self, state: ParserState) -> Derivation:
        if state.depth >= state.max_depth:
            return state.fail(ErrorCode.NESTING_TOO_DEEP, max_depth=state.max_depth)
        state.depth += 1
        try:
            return procedure(self, state)
        finally:
            state.depth -= 1

    return wrapper


class Parser:
    """
    Recursive-descent parser for the left-recursion-free expression grammar:

        E  -> T E'
        E' -> (+|-) T E' | ε
        T  -> F T'
        T' -> (*|/) F T' | ε
        F  -> ( E ) | id

    One method per non-terminal; each returns a `Derivation`. A single token
    of lookahead decides every production, there is no backtracking.
    """

    def __init__(self, tokens: Sequence[Token], max_depth: int = MAX_PARSE_DEPTH):
        if not tokens or not tokens[-1].is_eof:
            raise InternalAnalyzerError("The token sequence handed to the parser must end with an EOF token.")
        self.tokens = tokens
        self.max_depth = max_depth

    def parse(self) -> ParseResult:
        state = ParserState(tokens=self.tokens, max_depth=self.max_depth)

        try:
            derivation = self._parse_e(state)
            # A complete E is only accepted if it spans the whole input.
            if not derivation.failed and not state.current.is_eof:
                derivation = state.fail(ErrorCode.UNEXPECTED_TOKEN)
        except RecursionError as e:
            return ParseResult(success=False, errors=state.diagnostics or [Diagnostic(message=str(e))])

        if derivation.failed:
            return ParseResult(success=False, errors=list(state.diagnostics))
        return ParseResult(success=True, parse_tree=derivation.node)

    # --- Non-terminal procedures ---

    @_nonterminal
    def _parse_e(self, state: ParserState) -> Derivation:
        return self._parse_sequence(state, "E", self._parse_t, self._parse_e_prime)

    @_nonterminal
    def _parse_e_prime(self, state: ParserState) -> Derivation:
        return self._parse_tail(state, "E'", ADDITIVE_OPERATORS, self._parse_t, self._parse_e_prime)

    @_nonterminal
    def _parse_t(self, state: ParserState) -> Derivation:
        return self._parse_sequence(state, "T", self._parse_f, self._parse_t_prime)

    @_nonterminal
    def _parse_t_prime(self, state: ParserState) -> Derivation:
        return self._parse_tail(state, "T'", MULTIPLICATIVE_OPERATORS, self._parse_f, self._parse_t_prime)

    @_nonterminal
    def _parse_f(self, state: ParserState) -> Derivation:
        token = state.current

        if token.type is TokenKind.LPAREN:
            state.advance()
            inner = self._parse_e(state)
            if inner.failed:
                return inner

            closing = state.current
            if closing.type is not TokenKind.RPAREN:
                return state.fail(ErrorCode.EXPECTED_RPAREN)
            state.advance()
            return Derivation(node=ParseTreeNode(label="F", children=[_terminal(token), inner.node, _terminal(closing)]))

        if token.type in OPERAND_KINDS:
            state.advance()
            return Derivation(node=ParseTreeNode(label="F", children=[_terminal(token, ID_LABEL)]))

        return state.fail(ErrorCode.EXPECTED_OPERAND)

    # --- Production helpers ---

    def _parse_sequence(self, state: ParserState, label: str, *procedures: Callable) -> Derivation:
        """Derives `label -> procedures...` unconditionally (E -> T E', T -> F T')."""
        children = []
        for procedure in procedures:
            step = procedure(state)
            if step.failed:
                return step
            children.append(step.node)
        return Derivation(node=ParseTreeNode(label=label, children=children))

    def _parse_tail(self, state: ParserState, label: str, operators: FrozenSet[TokenKind], operand: Callable, tail: Callable) -> Derivation:
        """Derives `label -> op operand tail` when the lookahead is one of `operators`, else `label -> ε`."""
        token = state.current
        if token.type not in operators:
            return Derivation(node=ParseTreeNode(label=label, children=[ParseTreeNode(label=EPSILON_LABEL)]))

        state.advance()
        children = [_terminal(token)]
        for procedure in (operand, tail):
            step = procedure(state)
            if step.failed:
                return step
            children.append(step.node)
        return Derivation(node=ParseTreeNode(label=label, children=children))


def parse(tokens: Sequence[Token], max_depth: int = MAX_PARSE_DEPTH) -> ParseResult:
    """High-level entry point for the parsing stage."""
    return Parser(tokens, max_depth=max_depth).parse()

from importlib.resources import files as pkg_files
from typing import List

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from ..core.classes import Token, TokenKind
from ..exceptions import LexicalError

# The path is relative to the 'exa.lexer' subpackage.
expression_grammar = (pkg_files("exa.lexer") / "expression_tokens.lark").read_text(encoding="utf-8")

# Only the lexer half of this object is ever used. Each `lex` call runs on its
# own lexer state, so sharing the compiled terminals between calls is safe.
LARK_LEXER = Lark(expression_grammar, start="start", parser="lalr", lexer="basic")


def tokenize(source: str) -> List[Token]:
    """
    Scans the source left to right and returns the token sequence,
    always terminated by a single EOF token positioned at len(source).

    Whitespace is skipped. Any character that starts no token aborts the
    scan with a LexicalError; no partial token list is ever returned.
    """
    tokens: List[Token] = []

    try:
        for lark_token in LARK_LEXER.lex(source):
            tokens.append(Token(type=TokenKind(lark_token.type), value=lark_token.value, position=lark_token.start_pos))
    except UnexpectedCharacters as e:
        raise LexicalError(char=source[e.pos_in_stream], position=e.pos_in_stream) from e

    tokens.append(Token(type=TokenKind.EOF, value=None, position=len(source)))
    return tokens

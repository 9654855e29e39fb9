import pytest

from exa.lexer.lexer import tokenize
from exa.parser.parser import parse


@pytest.fixture
def parse_source():
    """Tokenizes and parses a source string in one go."""

    def _parse(source: str, **kwargs):
        return parse(tokenize(source), **kwargs)

    return _parse

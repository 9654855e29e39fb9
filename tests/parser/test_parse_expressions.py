import pytest

from exa.core.classes import Diagnostic, Token, TokenKind
from exa.exceptions import InternalAnalyzerError
from exa.lexer.lexer import tokenize
from exa.parser.parser import Parser, parse
from tree_helpers import (
    SYNTAX_ERROR_EXPRESSIONS,
    VALID_EXPRESSIONS,
    assert_trees_equal,
    get_epsilon,
    get_expression,
    get_factor,
    get_node,
    get_term,
    get_terminal,
    leaf_values,
)

# This file tests the recursive descent parser on token streams produced by the lexer.
# 1) happy path: exact derivation trees -> "dt" -> pytest id
# 2) sad path: first diagnostic message and location -> "se"
# 3) depth guard and internal fallback


# Arity of every production the grammar can realize.
ALLOWED_ARITIES = {"E": {2}, "E'": {1, 3}, "T": {2}, "T'": {1, 3}, "F": {1, 3}}


def _walk(node):
    yield node
    for child in node.children:
        yield from _walk(child)


def test_single_operand(parse_source):
    result = parse_source("a")

    assert result.success
    assert result.errors == []
    assert_trees_equal(result.parse_tree, get_expression(get_term(get_factor("a"))))


def test_precedence_of_multiplication_over_addition(parse_source):
    result = parse_source("3+4*5")

    expected = get_expression(
        get_term(get_factor("3")),
        get_node(
            "E'",
            get_terminal("PLUS", "+"),
            get_term(
                get_factor("4"),
                get_node("T'", get_terminal("MULTIPLY", "*"), get_factor("5"), get_node("T'", get_epsilon())),
            ),
            get_node("E'", get_epsilon()),
        ),
    )
    assert result.success
    assert_trees_equal(result.parse_tree, expected)
    assert [c.label for c in result.parse_tree.children] == ["T", "E'"]
    assert leaf_values(result.parse_tree) == ["3", "+", "4", "*", "5"]


def test_parenthesised_sub_expression(parse_source):
    result = parse_source("(a+b)*c")

    inner = get_expression(
        get_term(get_factor("a")),
        get_node("E'", get_terminal("PLUS", "+"), get_term(get_factor("b")), get_node("E'", get_epsilon())),
    )
    expected = get_expression(
        get_term(
            get_node("F", get_terminal("LPAREN", "("), inner, get_terminal("RPAREN", ")")),
            get_node("T'", get_terminal("MULTIPLY", "*"), get_factor("c"), get_node("T'", get_epsilon())),
        )
    )
    assert result.success
    assert_trees_equal(result.parse_tree, expected)


def test_subtraction_and_division_are_derived(parse_source):
    result = parse_source("7-9/3")

    expected = get_expression(
        get_term(get_factor("7")),
        get_node(
            "E'",
            get_terminal("MINUS", "-"),
            get_term(get_factor("9"), get_node("T'", get_terminal("DIVIDE", "/"), get_factor("3"), get_node("T'", get_epsilon()))),
            get_node("E'", get_epsilon()),
        ),
    )
    assert result.success
    assert_trees_equal(result.parse_tree, expected)


def test_operator_chain_nests_to_the_right(parse_source):
    tree = parse_source("x+y+z").parse_tree

    first_tail = tree.children[1]
    second_tail = first_tail.children[2]
    assert [c.label for c in first_tail.children] == ["PLUS", "T", "E'"]
    assert [c.label for c in second_tail.children] == ["PLUS", "T", "E'"]
    assert second_tail.children[2].children[0].label == "ε"


@pytest.mark.parametrize("source", [pytest.param(s, id=f"dt_{s}") for s in VALID_EXPRESSIONS])
def test_valid_expressions_yield_their_characters_as_leaves(parse_source, source):
    result = parse_source(source)

    assert result.success, result.errors
    assert leaf_values(result.parse_tree) == list(source)


@pytest.mark.parametrize("source", [pytest.param(s, id=f"dt_{s}") for s in VALID_EXPRESSIONS])
def test_every_node_realizes_a_production(parse_source, source):
    for node in _walk(parse_source(source).parse_tree):
        if node.label in ALLOWED_ARITIES:
            assert len(node.children) in ALLOWED_ARITIES[node.label], node.label
        else:
            assert node.is_leaf
        if node.label == "ε":
            assert node.value is None


def test_whitespace_does_not_change_the_tree(parse_source):
    assert parse_source(" ( a + b ) * c ").parse_tree == parse_source("(a+b)*c").parse_tree


@pytest.mark.parametrize(
    "source, message, position, token",
    [
        pytest.param("3+", "Expected identifier or '(' but found the end of input", 2, None, id="se_dangling_operator"),
        pytest.param("*5", "Expected identifier or '(' but found '*'", 0, "*", id="se_leading_operator"),
        pytest.param("3+/4", "Expected identifier or '(' but found '/'", 2, "/", id="se_two_operators"),
        pytest.param("a++b", "Expected identifier or '(' but found '+'", 2, "+", id="se_double_plus"),
        pytest.param("(a-b", "Expected ')' but found the end of input", 4, None, id="se_unclosed_paren"),
        pytest.param("(a b)", "Expected ')' but found 'b'", 3, "b", id="se_missing_operator_in_parens"),
        pytest.param("()", "Expected identifier or '(' but found ')'", 1, ")", id="se_empty_parens"),
        pytest.param("12", "Unexpected token: '2'", 1, "2", id="se_two_digits"),
        pytest.param("a)", "Unexpected token: ')'", 1, ")", id="se_unopened_paren"),
        pytest.param("(a)(b)", "Unexpected token: '('", 3, "(", id="se_juxtaposed_groups"),
    ],
)
def test_first_syntax_error_is_reported(parse_source, source, message, position, token):
    result = parse_source(source)

    assert not result.success
    assert result.parse_tree is None
    assert result.errors == [Diagnostic(message=message, position=position, token=token)]


@pytest.mark.parametrize("source", [pytest.param(s, id=f"se_{s}") for s in SYNTAX_ERROR_EXPRESSIONS])
def test_only_one_diagnostic_is_ever_produced(parse_source, source):
    result = parse_source(source)
    assert not result.success
    assert len(result.errors) == 1


def test_nesting_beyond_the_limit_is_a_diagnostic(parse_source):
    result = parse_source("((((1))))", max_depth=5)

    assert not result.success
    assert result.errors == [Diagnostic(message="Expression is nested too deeply (maximum depth is 5)", position=1, token="(")]


def test_pathological_nesting_does_not_crash(parse_source):
    source = "(" * 500 + "1" + ")" * 500
    result = parse_source(source)

    assert not result.success
    assert result.errors[0].message.startswith("Expression is nested too deeply")


def test_long_operator_chain_within_the_limit(parse_source):
    source = "+".join(["1"] * 150)
    result = parse_source(source)

    assert result.success
    assert len(leaf_values(result.parse_tree)) == len(source)


def test_recursion_error_surfaces_as_single_fallback(monkeypatch):
    def _explode(self, state):
        raise RecursionError("maximum recursion depth exceeded")

    monkeypatch.setattr(Parser, "_parse_e", _explode)
    result = parse([Token(type=TokenKind.NUMBER, value="1", position=0), Token(type=TokenKind.EOF, position=1)])

    assert not result.success
    assert result.errors == [Diagnostic(message="maximum recursion depth exceeded")]


@pytest.mark.parametrize(
    "tokens",
    [
        pytest.param([], id="empty"),
        pytest.param([Token(type=TokenKind.NUMBER, value="1", position=0)], id="missing_eof"),
    ],
)
def test_token_stream_without_eof_is_rejected(tokens):
    with pytest.raises(InternalAnalyzerError):
        Parser(tokens)


def test_parser_instances_can_be_reused():
    parser = Parser(tokenize("a*(b+c)"))
    assert parser.parse() == parser.parse()

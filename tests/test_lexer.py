"""Lexer tests: chunk classification and positions."""

import pytest

from sycalc import Lexer, Position, Token, TokenType, lex


def test_symbols():
    tokens = lex("^ + - * / % ( )")
    assert [t.type for t in tokens] == [
        TokenType.POW, TokenType.PLUS, TokenType.MINUS, TokenType.MUL,
        TokenType.DIV, TokenType.MOD, TokenType.LPAREN, TokenType.RPAREN,
    ]


def test_numbers_and_operators():
    assert lex("1 + 2") == [
        Token(TokenType.NUMBER, 1),
        Token(TokenType.PLUS, "+"),
        Token(TokenType.NUMBER, 2),
    ]


@pytest.mark.parametrize("chunk, value", [
    ("0", 0),
    ("42", 42),
    ("-5", -5),
    ("+7", 7),
    ("2147483647", 2147483647),
    ("-2147483648", -2147483648),
])
def test_signed_integers(chunk, value):
    assert lex(chunk) == [Token(TokenType.NUMBER, value)]


@pytest.mark.parametrize("chunk", ["@", "1.5", "abc", "2147483648", "-2147483649", "--1", "1+", "１"])
def test_lexical_errors_are_tokens(chunk):
    """Unrecognised chunks never raise, they become ERROR tokens."""
    assert lex(chunk) == [Token(TokenType.ERROR, chunk)]


def test_number_type_names_are_not_symbols():
    assert lex("NUMBER ERROR") == [
        Token(TokenType.ERROR, "NUMBER"),
        Token(TokenType.ERROR, "ERROR"),
    ]


def test_positions():
    tokens = Lexer("12 + ( 3 )").lex()
    assert [t.position for t in tokens] == [
        Position(1, 0), Position(1, 3), Position(1, 5), Position(1, 7), Position(1, 9),
    ]


def test_repeated_spaces_are_dropped():
    tokens = lex("1  2")
    assert tokens == [Token(TokenType.NUMBER, 1), Token(TokenType.NUMBER, 2)]
    assert tokens[1].position == Position(1, 3)


def test_empty_line():
    assert lex("") == []


def test_token_identity_is_structural():
    a = Token(TokenType.PLUS, "+", Position(1, 0))
    b = Token(TokenType.PLUS, "+", Position(1, 8))
    assert a == b
    assert len({a, b}) == 1
    assert a != Token(TokenType.MINUS, "-")
    assert a != "+"


def test_token_str():
    assert str(Token(TokenType.NUMBER, 3, Position(1, 4))) == "Token(NUMBER, 3, pos=1:4)"


def test_number_keeps_source_text():
    token = lex("007")[0]
    assert token.value == 7
    assert token.text == "007"

import pytest
from hypothesis import given
from hypothesis import strategies as st

from rstn.rstn_errors import LexerError
from rstn.rstn_lexer import CharacterStream, Lexer, Number, Token, tokenize


def types_of(source: str) -> list[str]:
    return [tok.type for tok in Lexer(CharacterStream(source))]


def test_keywords() -> None:
    code = "fn if else for in loop let const return true false int float string bool"
    assert types_of(code) == [
        "FN",
        "IF",
        "ELSE",
        "FOR",
        "IN",
        "LOOP",
        "LET",
        "CONST",
        "RETURN",
        "TRUE",
        "FALSE",
        "TYPE_INT",
        "TYPE_FLOAT",
        "TYPE_STRING",
        "TYPE_BOOL",
    ]


def test_punctuation() -> None:
    assert types_of("( ) { } [ ] , ; : .") == [
        "LPAREN",
        "RPAREN",
        "LBRACE",
        "RBRACE",
        "LBRACK",
        "RBRACK",
        "COMMA",
        "SEMICOLON",
        "COLON",
        "DOT",
    ]


def test_multi_char_operators_longest_match() -> None:
    assert types_of("a**b&&c||d==e!=f<=g>=h") == [
        "IDENT",
        "POW",
        "IDENT",
        "AND",
        "IDENT",
        "OR",
        "IDENT",
        "EQ",
        "IDENT",
        "NE",
        "IDENT",
        "LE",
        "IDENT",
        "GE",
        "IDENT",
    ]
    assert types_of("-> .. ..= < > ! =") == [
        "ARROW",
        "RANGE",
        "RANGE_INCL",
        "LT",
        "GT",
        "NOT",
        "ASSIGN",
    ]


def test_single_char_arithmetic() -> None:
    assert types_of("a + b * c / d % e") == [
        "IDENT",
        "PLUS",
        "IDENT",
        "MULT",
        "IDENT",
        "DIV",
        "IDENT",
        "MOD",
        "IDENT",
    ]


def test_declaration_with_inclusive_range() -> None:
    assert types_of("let x = 1..=5;") == [
        "LET",
        "IDENT",
        "ASSIGN",
        "NUMBER",
        "RANGE_INCL",
        "NUMBER",
        "SEMICOLON",
    ]


def test_range_is_not_a_decimal_point() -> None:
    tokens = tokenize("1..5")
    assert [(t.type, t.value) for t in tokens] == [
        ("NUMBER", "1"),
        ("RANGE", ".."),
        ("NUMBER", "5"),
        ("EOF", "EOF"),
    ]


def test_float_token() -> None:
    tok = Lexer(CharacterStream("123.456")).next_token()
    assert tok.type == "FLOAT"
    assert tok.value == "123.456"


@pytest.mark.parametrize("text", ["1e3", "2.5E-3", "7e+2"])  # type: ignore[misc]
def test_exponent_makes_float(text: str) -> None:
    tok = Lexer(CharacterStream(text)).next_token()
    assert tok.type == "FLOAT"
    assert tok.value == text


def test_number_followed_by_member_access() -> None:
    assert types_of("1.foo") == ["NUMBER", "DOT", "IDENT"]


def test_tuple_positions_after_dot_are_integers() -> None:
    tokens = tokenize("t.0.1")
    assert [(t.type, t.value) for t in tokens[:-1]] == [
        ("IDENT", "t"),
        ("DOT", "."),
        ("NUMBER", "0"),
        ("DOT", "."),
        ("NUMBER", "1"),
    ]


def test_negative_literal_folded_without_operand() -> None:
    tokens = tokenize("let y = -1;")
    assert (tokens[3].type, tokens[3].value) == ("NUMBER", "-1")


def test_minus_after_operand_is_subtraction() -> None:
    tokens = tokenize("x-1")
    assert [(t.type, t.value) for t in tokens[:-1]] == [
        ("IDENT", "x"),
        ("SUB", "-"),
        ("NUMBER", "1"),
    ]
    assert types_of("(a)-2") == ["LPAREN", "IDENT", "RPAREN", "SUB", "NUMBER"]


def test_string_token_is_verbatim() -> None:
    tok = Lexer(CharacterStream('"hello // world"')).next_token()
    assert tok.type == "STRING"
    assert tok.value == "hello // world"


def test_unterminated_string_raises() -> None:
    with pytest.raises(LexerError, match="Unterminated string") as e:
        tokenize('let s = "abc')
    assert (e.value.line, e.value.col) == (1, 9)


def test_unterminated_block_comment_raises() -> None:
    with pytest.raises(LexerError, match="Unterminated block comment"):
        tokenize("x /* never closed")


def test_unexpected_character_raises_syntax_error() -> None:
    with pytest.raises(SyntaxError, match="Unexpected character '@'"):
        tokenize("let x = @;")


def test_integer_out_of_range_raises() -> None:
    with pytest.raises(LexerError, match="out of range"):
        tokenize("2147483648")
    assert tokenize("-2147483648")[0].value == "-2147483648"


def test_invalid_number_recovers_with_zero() -> None:
    lexer = Lexer(CharacterStream("let a = 12abc;"))
    tokens = list(lexer)
    assert [(t.type, t.value) for t in tokens] == [
        ("LET", "let"),
        ("IDENT", "a"),
        ("ASSIGN", "="),
        ("NUMBER", "0"),
        ("SEMICOLON", ";"),
    ]
    assert len(lexer.diagnostics) == 1
    diagnostic = lexer.diagnostics[0]
    assert diagnostic.phase == "lexical"
    assert (diagnostic.line, diagnostic.col) == (1, 9)


def test_recovered_number_reported_once_across_peek() -> None:
    lexer = Lexer(CharacterStream("9z"))
    lexer.peek_token()
    lexer.next_token()
    assert len(lexer.diagnostics) == 1


def test_skip_whitespace_and_comments() -> None:
    code = "  // line comment\n/* block\ncomment */ x"
    tokens = tokenize(code)
    assert tokens[0] == Token("IDENT", "x", 3, 12)


def test_line_and_column_tracking() -> None:
    tokens = tokenize("x = 1;\ny = 2;")
    assert (tokens[4].line, tokens[4].col) == (2, 1)
    assert (tokens[6].line, tokens[6].col) == (2, 5)


def test_tokenize_ends_with_eof_and_iteration_stops_before() -> None:
    assert tokenize("")[-1].type == "EOF"
    assert list(Lexer(CharacterStream(""))) == []


def test_peek_does_not_consume() -> None:
    lexer = Lexer(CharacterStream("let x"))
    first = lexer.peek_token()
    assert lexer.peek_token() is first
    assert lexer.next_token() is first
    assert lexer.next_token().type == "IDENT"


def test_save_and_restore_position() -> None:
    lexer = Lexer(CharacterStream("a = b - 1;"))
    lexer.next_token()
    mark = lexer.save_position()
    seen = [lexer.next_token() for _ in range(4)]
    lexer.restore_position(mark)
    assert [lexer.next_token() for _ in range(4)] == seen
    # `-` after an identifier stays a separate operator on the replay too
    assert [t.type for t in seen] == ["ASSIGN", "IDENT", "SUB", "NUMBER"]


def test_current_position() -> None:
    lexer = Lexer(CharacterStream("ab\ncd"))
    lexer.next_token()
    lexer.next_token()
    assert lexer.current_position() == (2, 3)


def test_token_equality_includes_position() -> None:
    assert Token("IDENT", "x", 1, 1) == Token("IDENT", "x", 1, 1)
    assert Token("IDENT", "x", 1, 1) != Token("IDENT", "x", 1, 2)
    assert len({Token("IDENT", "x", 1, 1), Token("IDENT", "x", 1, 1)}) == 1
    assert repr(Token("NUMBER", "3")) == "Token(NUMBER, 3)"


def test_number_order_puts_integers_before_floats() -> None:
    numbers = [Number(2.5), Number(3), Number(-1.0), Number(1)]
    assert sorted(numbers) == [Number(1), Number(3), Number(-1.0), Number(2.5)]
    assert Number(100) < Number(0.5)
    assert Number(1) != Number(1.0)


def test_number_from_token() -> None:
    assert Number.from_token(Token("NUMBER", "-4")) == Number(-4)
    assert Number.from_token(Token("FLOAT", "1e3")).is_float
    with pytest.raises(ValueError):
        Number.from_token(Token("IDENT", "x"))
    with pytest.raises(TypeError):
        Number(True)
    assert repr(Number(2)) == "Integer(2)"
    assert repr(Number(2.5)) == "Float(2.5)"


@given(st.text(max_size=60))  # type: ignore[misc]
def test_lexer_only_fails_with_syntax_error(source: str) -> None:
    try:
        tokens = tokenize(source)
    except SyntaxError:
        return
    assert tokens[-1].type == "EOF"


@given(
    st.text(
        alphabet="abcxyz0123456789 .,;:+-*/%=!<>&|()[]{}\"\n_eE",
        max_size=60,
    )
)  # type: ignore[misc]
def test_peek_then_next_returns_same_token(source: str) -> None:
    lexer = Lexer(CharacterStream(source))
    try:
        while True:
            peeked = lexer.peek_token()
            taken = lexer.next_token()
            assert peeked == taken
            if taken.type == "EOF":
                break
    except SyntaxError:
        pass

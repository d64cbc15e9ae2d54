"""
Lexical analyzer for the RSTN language.

This module converts raw source text into a lazy, restartable stream of tokens:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: A single token with type tag, lexeme, and source location.
    Number: An integer or float literal value with a total order (integers first).
    Lexer: Pull-based tokenizer with one-token lookahead and position save/restore.

Features:
    - Skips whitespace, line comments (`//`) and block comments (`/* ... */`)
    - Longest-match recognition of operators (`..=` before `..` before `.`)
    - Integers, floats with an optional exponent, and verbatim double-quoted strings
    - Folds a leading `-` into a numeric literal when no operand precedes it
    - Recovers from malformed numbers (`12abc`) by emitting integer zero

Raises:
    LexerError: On unterminated strings or block comments, unrecognized characters,
        and integer literals outside the signed 32-bit range.

Example:
    >>> lexer = Lexer(CharacterStream("let x = 1..=5;"))
    >>> [tok.type for tok in lexer]
    ['LET', 'IDENT', 'ASSIGN', 'NUMBER', 'RANGE_INCL', 'NUMBER', 'SEMICOLON']
"""

import functools
import logging
from collections.abc import Iterator
from typing import Any

from rstn.rstn_constants import (
    INT32_MAX,
    INT32_MIN,
    KEYWORDS,
    MAX_SYMBOL_LENGTH,
    OPERAND_END_TOKENS,
    SYMBOLS,
    token_hashmap,
)
from rstn.rstn_errors import Diagnostic, LexerError

logger = logging.getLogger(__name__)

# (offset, line, column, previous token tag)
LexerMark = tuple[int, int, int, str | None]


def _is_digit(ch: str) -> bool:
    return len(ch) == 1 and "0" <= ch <= "9"


def _is_ident_char(ch: str) -> bool:
    return ch != "" and (ch.isalnum() or ch == "_")


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Raises:
            Exception: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise Exception(
                f"CharacterStreamError: Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character at `offset` without advancing, or "" when out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def current(self) -> str | None:
        return self.source[self.position] if self.position < len(self.source) else None

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token in the RSTN language.

    Attributes:
        type (str): The canonical token tag (e.g. 'IDENT', 'NUMBER', 'RANGE_INCL', 'EOF').
        value (str): The lexeme. String tokens hold the text between the quotes.
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
    """

    def __init__(self, type_: str, value: str, line: int = 0, col: int = 0):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


@functools.total_ordering
class Number:
    """A numeric literal: a 32-bit signed integer or a float.

    Numbers are ordered with every integer before every float, then by value, so
    diagnostics that sort literals are deterministic.
    """

    def __init__(self, value: int | float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Number expects int or float, got {type(value).__name__}")
        self.value = value

    @classmethod
    def from_token(cls, tok: Token) -> "Number":
        if tok.type == "FLOAT":
            return cls(float(tok.value))
        if tok.type == "NUMBER":
            return cls(int(tok.value))
        raise ValueError(f"Token {tok} is not a numeric literal")

    @property
    def is_float(self) -> bool:
        return isinstance(self.value, float)

    def _key(self) -> tuple[bool, int | float]:
        return (self.is_float, self.value)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        kind = "Float" if self.is_float else "Integer"
        return f"{kind}({self.value})"

    def __str__(self) -> str:
        return str(self.value)


class Lexer:
    """Lexical analyzer for the RSTN language.

    The Lexer pulls characters from a CharacterStream on demand. The parser drives
    it through `next_token()` and `peek_token()` and backtracks with
    `save_position()` / `restore_position()`.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        prev_type (str | None): Tag of the last token produced; decides whether a
            `-` starts a negative literal.
        diagnostics (list[Diagnostic]): Recovered, non-fatal problems.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream
        self.prev_type: str | None = None
        self.diagnostics: list[Diagnostic] = []
        self._recovered: set[tuple[int, int]] = set()
        self._lookahead: tuple[LexerMark, Token, LexerMark] | None = None

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next_token()
            if tok.type == "EOF":
                return
            yield tok

    def peek(self) -> str:
        return self.stream.peek()

    def advance(self) -> str:
        return self.stream.next()

    def save_position(self) -> LexerMark:
        """Returns a mark that `restore_position` can rewind to."""
        return (
            self.stream.position,
            self.stream.line,
            self.stream.column,
            self.prev_type,
        )

    def restore_position(self, mark: LexerMark) -> None:
        (
            self.stream.position,
            self.stream.line,
            self.stream.column,
            self.prev_type,
        ) = mark

    def current_position(self) -> tuple[int, int]:
        """Returns the (line, column) the lexer has reached."""
        return self.stream.line, self.stream.column

    def skip_whitespace(self) -> None:
        """Skips whitespace, line comments and block comments."""
        while not self.stream.end_of_file():
            ch = self.peek()
            if ch in " \t\r\n":
                self.advance()
            elif ch == "/" and self.stream.peek(1) == "/":
                self.skip_comment()
            elif ch == "/" and self.stream.peek(1) == "*":
                self.skip_block_comment()
            else:
                break

    def skip_comment(self) -> None:
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def skip_block_comment(self) -> None:
        line, col = self.stream.line, self.stream.column
        self.advance()
        self.advance()
        while not self.stream.end_of_file():
            if self.peek() == "*" and self.stream.peek(1) == "/":
                self.advance()
                self.advance()
                return
            self.advance()
        raise LexerError("Unterminated block comment", line, col)

    def match_operator(self) -> Token | None:
        """Attempts to match the longest operator or punctuation at the current position."""
        line, col = self.stream.line, self.stream.column
        max_token = None
        match_len = 0
        candidate = ""

        for i in range(MAX_SYMBOL_LENGTH):
            ch = self.stream.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in SYMBOLS:
                max_token = candidate
                match_len = i + 1

        if max_token:
            for _ in range(match_len):
                self.advance()
            return Token(token_hashmap[max_token], max_token, line, col)

        return None

    def next_token(self) -> Token:
        """Consumes and returns the next Token.

        Raises:
            LexerError: If a malformed token is encountered.
        """
        if self._lookahead is not None:
            start, tok, end = self._lookahead
            self._lookahead = None
            if start == self.save_position():
                self.restore_position(end)
                return tok

        tok = self._scan()
        self.prev_type = tok.type
        return tok

    def peek_token(self) -> Token:
        """Returns the next Token without consuming it."""
        start = self.save_position()
        if self._lookahead is not None and self._lookahead[0] == start:
            return self._lookahead[1]
        tok = self.next_token()
        end = self.save_position()
        self.restore_position(start)
        self._lookahead = (start, tok, end)
        return tok

    def _scan(self) -> Token:
        self.skip_whitespace()

        line, col = self.stream.line, self.stream.column
        if self.stream.end_of_file():
            return Token("EOF", "EOF", line, col)

        ch = self.peek()

        # 1. Identifier or keyword
        if ch.isalpha() or ch == "_":
            ident = ""
            while _is_ident_char(self.peek()):
                ident += self.advance()
            return Token(KEYWORDS.get(ident, "IDENT"), ident, line, col)

        # 2. Number, including a folded negative sign
        if _is_digit(ch) or (
            ch == "-"
            and _is_digit(self.stream.peek(1))
            and self.prev_type not in OPERAND_END_TOKENS
        ):
            return self.scan_number(line, col)

        # 3. String
        if ch == '"':
            return self.scan_string(line, col)

        # 4. Operator or punctuation
        token = self.match_operator()
        if token:
            return token

        raise LexerError(f"Unexpected character {ch!r}", line, col)

    def _scan_digits(self) -> str:
        digits = ""
        while _is_digit(self.peek()):
            digits += self.advance()
        return digits

    def _starts_fraction(self) -> bool:
        # `1..5` is a range and `1.foo` is member access, neither is a decimal point
        nxt = self.stream.peek(1)
        return nxt != "." and not (nxt.isalpha() or nxt == "_")

    def _starts_exponent(self) -> bool:
        nxt = self.stream.peek(1)
        if _is_digit(nxt):
            return True
        return nxt in ("+", "-") and _is_digit(self.stream.peek(2))

    def scan_number(self, line: int, col: int) -> Token:
        """Scans an integer or float literal starting at the current position."""
        text = ""
        if self.peek() == "-":
            text += self.advance()
        text += self._scan_digits()

        is_float = False
        # After `.` only tuple positions are valid: `t.0.1` is two accesses
        if self.prev_type != "DOT":
            if self.peek() == "." and self._starts_fraction():
                is_float = True
                text += self.advance()
                text += self._scan_digits()
            if self.peek() in ("e", "E") and self._starts_exponent():
                is_float = True
                text += self.advance()
                if self.peek() in ("+", "-"):
                    text += self.advance()
                text += self._scan_digits()

        if _is_ident_char(self.peek()):
            while _is_ident_char(self.peek()):
                text += self.advance()
            self._recover_number(text, line, col)
            return Token("NUMBER", "0", line, col)

        if is_float:
            return Token("FLOAT", text, line, col)

        if not INT32_MIN <= int(text) <= INT32_MAX:
            raise LexerError(f"Integer literal {text} out of range", line, col)
        return Token("NUMBER", text, line, col)

    def _recover_number(self, text: str, line: int, col: int) -> None:
        # Backtracking rescans the same characters; report each literal once
        if (line, col) in self._recovered:
            return
        self._recovered.add((line, col))
        message = f"Invalid number literal {text!r}, replaced by 0"
        self.diagnostics.append(Diagnostic("lexical", message, line, col))
        logger.warning("%s at line %d, col %d", message, line, col)

    def scan_string(self, line: int, col: int) -> Token:
        """Scans a double-quoted string verbatim up to the closing quote."""
        self.advance()
        val = ""
        while not self.stream.end_of_file():
            if self.peek() == '"':
                self.advance()
                return Token("STRING", val, line, col)
            val += self.advance()
        raise LexerError("Unterminated string", line, col)


def tokenize(source: str) -> list[Token]:
    """Lexes `source` completely, returning every token including the final EOF."""
    lexer = Lexer(CharacterStream(source))
    tokens = []
    while True:
        tok = lexer.next_token()
        tokens.append(tok)
        if tok.type == "EOF":
            break
    return tokens


__all__ = ["CharacterStream", "Lexer", "LexerMark", "Number", "Token", "tokenize"]

"""
Error and diagnostic types for the RSTN front end.

Classes:
    RstnSyntaxError: Base for fatal, position-tagged front end errors.
    LexerError: Raised by the lexer for unterminated strings or comments,
        unrecognized characters and out-of-range integer literals.
    ParseError: Raised by the parser on any structural violation.
    Diagnostic: A recorded, non-fatal problem (semantic errors and recovered
        lexical problems).

Lexer and parser errors subclass the builtin `SyntaxError`, so callers that only
care about "the source is malformed" can catch that.
"""

from typing import Any


class RstnSyntaxError(SyntaxError):
    """A fatal front end error carrying its source position.

    Attributes:
        message (str): The bare message without position.
        line (int): 1-based line number.
        col (int): 1-based column number.
    """

    def __init__(self, message: str, line: int = 0, col: int = 0):
        super().__init__(f"{message} at line {line}, col {col}")
        self.message = message
        self.line = line
        self.col = col

    def __str__(self) -> str:
        return f"{self.message} at line {self.line}, col {self.col}"


class LexerError(RstnSyntaxError):
    """Raised when the source cannot be split into tokens."""


class ParseError(RstnSyntaxError):
    """Raised when the token stream does not match the grammar."""


class Diagnostic:
    """A non-fatal problem found while lexing or checking.

    Attributes:
        phase (str): "lexical" or "semantic".
        message (str): Human readable description.
        line (int): 1-based line number (0 when unknown).
        col (int): 1-based column number (0 when unknown).
        evidence (list[str]): Supporting detail such as the offending construct
            and the collected type list.
    """

    def __init__(
        self,
        phase: str,
        message: str,
        line: int = 0,
        col: int = 0,
        evidence: list[str] | None = None,
    ):
        self.phase = phase
        self.message = message
        self.line = line
        self.col = col
        self.evidence = evidence or []

    def __repr__(self) -> str:
        return f"Diagnostic({self.phase}, {self.message!r}, {self.line}:{self.col})"

    def __str__(self) -> str:
        label = "Type Error" if self.phase == "semantic" else "Warning"
        text = f"{label} [line {self.line}, col {self.col}]: {self.message}"
        if self.evidence:
            text += "\n" + "\n".join(f"    {e}" for e in self.evidence)
        return text

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Diagnostic)
            and self.phase == other.phase
            and self.message == other.message
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.phase, self.message, self.line, self.col))

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "message": self.message,
            "line": self.line,
            "col": self.col,
            "evidence": list(self.evidence),
        }


__all__ = ["Diagnostic", "LexerError", "ParseError", "RstnSyntaxError"]

"""
One-call front end: source text in, typed program out.

`compile_source` runs the Lexer, Parser and SemanticChecker in sequence and returns
the program, the populated symbol table and a structured check result. Lexical
and syntax errors are fatal and propagate as `LexerError` / `ParseError`; semantic
problems come back as diagnostics.

Example:
    >>> result = compile_source("let x = 1 + 2.5;")
    >>> bool(result.check)
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

from rstn.rstn_ast import Statement
from rstn.rstn_checker import SemanticChecker
from rstn.rstn_errors import Diagnostic
from rstn.rstn_lexer import CharacterStream, Lexer
from rstn.rstn_parser import Parser
from rstn.rstn_table import SymbolTable


@dataclass
class CheckResult:
    """Verdict of the semantic pass.

    `diagnostics` also carries any recovered lexical problems, which do not make
    the check fail.
    """

    ok: bool
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.ok

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.phase == "semantic"]


class CompileResult(NamedTuple):
    program: list[Statement]
    table: SymbolTable
    check: CheckResult


def compile_source(source: str, collect_all: bool = False) -> CompileResult:
    """Lexes, parses and type checks `source`.

    Raises:
        LexerError: On a fatal lexical error.
        ParseError: On a syntax error.
    """
    lexer = Lexer(CharacterStream(source))
    parser = Parser(lexer)
    program = parser.parse()
    checker = SemanticChecker(program, parser.table, collect_all=collect_all)
    ok = checker.check()
    diagnostics = list(lexer.diagnostics) + checker.diagnostics
    return CompileResult(program, parser.table, CheckResult(ok, diagnostics))


# Qualified use only; star imports must not shadow the builtin
compile = compile_source

__all__ = ["CheckResult", "CompileResult", "compile_source"]

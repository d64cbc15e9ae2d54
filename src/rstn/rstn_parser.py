"""
RSTN Language Parser

Parses RSTN source tokens into an abstract syntax tree and, in the same pass,
populates a scope-structured symbol table.

The parser pulls tokens from a `Lexer` on demand. Lookahead uses `peek_token()`,
and the few genuinely ambiguous spots backtrack through the lexer's
`save_position()` / `restore_position()` marks.

Supported Constructs
--------------------
- Declarations: `let x;`, `let x: int = 1;`, `const N: int = 3;`
- Assignments: `x = e;`, `a[0] = e;`, `t.1 = e;`
- Control flow: `if (c) {...} else if (d) {...} else {...}`, `loop {...}`,
  `for (i in 0..10) {...}`
- Functions: `fn f(a: int, b: [int; 3]) -> bool {...}`, `return e;`
- Expressions, lowest precedence first:
    * `||`
    * `&&`
    * `< > <= >= == !=`
    * `+ -`
    * `* / %`
    * `**`
    * unary `-` and `!` (right-associative)
    * primary: literals, ranges, calls, access chains, arrays, tuples, groups

Binary levels are left-associative.

Scopes
------
Every `if`/`else` block, `loop`, `for` and `fn` body mints a fresh scope id from a
counter owned by the parser, creates the scope (its parent is the enclosing active
scope), parses the block inside it and pops it again. A plain `else` reuses the id
of its `if`. Function symbols go into the enclosing scope before the body is
parsed, so direct recursion resolves.

Raises
------
ParseError
    On the first structural violation. There is no error recovery.
LexerError
    Propagated unchanged from the lexer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from rstn.rstn_ast import (
    Array,
    Assignment,
    Binary,
    Declaration,
    Expression,
    ExpressionStatement,
    FnCall,
    FnDeclaration,
    For,
    Identifier,
    If,
    Index,
    Literal,
    Loop,
    Member,
    Range,
    Return,
    Statement,
    Tuple,
    TupleIndex,
    Unary,
)
from rstn.rstn_constants import (
    ADDITIVE_OPS,
    COMPARISON_OPS,
    EXPONENT_OPS,
    LOGICAL_AND_OPS,
    LOGICAL_OR_OPS,
    MULTIPLICATIVE_OPS,
    UNARY_OPS,
)
from rstn.rstn_errors import ParseError
from rstn.rstn_lexer import CharacterStream, Lexer, Number, Token
from rstn.rstn_table import Symbol, SymbolTable
from rstn.rstn_types import ArrayType, DataType, NamedType, TupleType, TYPE_KEYWORDS

logger = logging.getLogger(__name__)

ASSIGNABLE = (Identifier, Index, Member, TupleIndex)


def _describe(tok: Token) -> str:
    return "end of input" if tok.type == "EOF" else repr(tok.value)


class Parser:
    """
    RSTN Parser Class

    Attributes
    ----------
    lexer : Lexer
        The token source. Owned by the parser for its lifetime.
    table : SymbolTable
        Filled while parsing; outlives the parser.
    program : list[Statement]
        The result of the last `parse()` call.
    current_scope_id : int
        The last scope id handed out. Scope 0 is the global scope.
    """

    def __init__(self, lexer: Lexer, table: SymbolTable | None = None) -> None:
        self.lexer = lexer
        self.table = table if table is not None else SymbolTable()
        self.program: list[Statement] = []
        self.current_scope_id = 0

    @classmethod
    def from_source(cls, source: str) -> Parser:
        return cls(Lexer(CharacterStream(source)))

    # Token helpers

    def peek(self) -> Token:
        return self.lexer.peek_token()

    def advance(self) -> Token:
        return self.lexer.next_token()

    def check(self, *types: str) -> bool:
        return self.peek().type in types

    def match(self, *types: str) -> Token | None:
        """Consumes and returns the next token if its type is one of `types`."""
        if self.check(*types):
            return self.advance()
        return None

    def expect(self, type_: str, what: str) -> Token:
        """Consumes a token of type `type_` or raises ParseError naming `what`."""
        tok = self.advance()
        if tok.type != type_:
            raise ParseError(f"Expected {what} but found {_describe(tok)}", tok.line, tok.col)
        return tok

    def generate_scope_id(self) -> int:
        self.current_scope_id += 1
        return self.current_scope_id

    def open_scope(self) -> int:
        scope_id = self.generate_scope_id()
        self.table.create_scope(scope_id)
        self.table.enter_scope(scope_id)
        return scope_id

    # Statements

    def parse(self) -> list[Statement]:
        """Parse a full RSTN program and return its top-level statements."""
        program: list[Statement] = []
        while not self.check("EOF"):
            program.append(self.parse_statement())
        self.program = program
        return program

    def parse_statement(self) -> Statement:
        tok = self.peek()
        if tok.type in ("LET", "CONST"):
            return self.parse_declaration()
        if tok.type == "IF":
            return self.parse_if()
        if tok.type == "LOOP":
            return self.parse_loop()
        if tok.type == "FOR":
            return self.parse_for()
        if tok.type == "FN":
            return self.parse_function()
        if tok.type == "RETURN":
            return self.parse_return()
        if tok.type == "IDENT":
            mark = self.lexer.save_position()
            self.advance()
            following = self.peek()
            self.lexer.restore_position(mark)
            if following.type == "ASSIGN":
                return self.parse_assignment()
            if following.type in ("DOT", "LBRACK"):
                logger.debug(
                    "access chain at line %d, col %d: assignment or expression",
                    tok.line,
                    tok.col,
                )
                return self.parse_access_statement()
        return self.parse_expression_statement()

    def parse_expression_statement(self) -> Statement:
        tok = self.peek()
        expr = self.parse_expression()
        self.expect("SEMICOLON", "';'")
        return ExpressionStatement(expr, line=tok.line, col=tok.col)

    def parse_assignment(self) -> Statement:
        """Parse `id = expr;`."""
        name_tok = self.expect("IDENT", "an identifier")
        self.expect("ASSIGN", "'='")
        value = self.parse_expression()
        self.expect("SEMICOLON", "';'")
        target = Identifier(name_tok.value, line=name_tok.line, col=name_tok.col)
        return Assignment(target, value, line=name_tok.line, col=name_tok.col)

    def parse_access_statement(self) -> Statement:
        """Parse `a.b[0] = expr;` or the expression statement `a.b[0];`."""
        tok = self.peek()
        expr = self.parse_expression()
        eq_tok = self.match("ASSIGN")
        if eq_tok is None:
            self.expect("SEMICOLON", "';'")
            return ExpressionStatement(expr, line=tok.line, col=tok.col)
        if not isinstance(expr, ASSIGNABLE):
            raise ParseError("Invalid assignment target", eq_tok.line, eq_tok.col)
        value = self.parse_expression()
        self.expect("SEMICOLON", "';'")
        return Assignment(expr, value, line=tok.line, col=tok.col)

    def parse_declaration(self) -> Statement:
        """Parse `let name [: type] [= expr];` or `const name: type = expr;`."""
        kw = self.advance()
        is_const = kw.type == "CONST"
        name_tok = self.advance()
        if name_tok.type != "IDENT":
            raise ParseError(
                f"Expected an identifier after '{kw.value}' but found {_describe(name_tok)}",
                name_tok.line,
                name_tok.col,
            )

        annotation = None
        if self.match("COLON"):
            annotation = self.parse_unit_type()

        init = None
        if self.match("ASSIGN"):
            init = self.parse_expression()

        if is_const and (annotation is None or init is None):
            raise ParseError(
                "Const declarations must include both a type annotation and an initial value",
                kw.line,
                kw.col,
            )

        self.expect("SEMICOLON", "';'")
        self.table.insert(
            Symbol.variable(
                name_tok.value, name_tok.line, data_type=annotation, constant=is_const
            )
        )
        return Declaration(
            name_tok.value, init, annotation, is_const, line=kw.line, col=kw.col
        )

    def parse_unit_type(self) -> DataType:
        """Parse a type: `int`, `float`, `string`, `bool`, `[T; N]`, `(T1, T2, ...)` or a name."""
        tok = self.advance()
        if tok.type in TYPE_KEYWORDS:
            return TYPE_KEYWORDS[tok.type]
        if tok.type == "IDENT":
            return NamedType(tok.value)
        if tok.type == "LBRACK":
            element = self.parse_unit_type()
            self.expect("SEMICOLON", "';' in array type")
            size_tok = self.expect("NUMBER", "an array length")
            size = int(size_tok.value)
            if size < 0:
                raise ParseError("Array length must not be negative", size_tok.line, size_tok.col)
            self.expect("RBRACK", "']'")
            return ArrayType(element, size)
        if tok.type == "LPAREN":
            elements: list[DataType] = []
            while not self.check("RPAREN"):
                elements.append(self.parse_unit_type())
                if not self.match("COMMA"):
                    break
            self.expect("RPAREN", "')'")
            return TupleType(tuple(elements))
        raise ParseError(f"Expected a data type but found {_describe(tok)}", tok.line, tok.col)

    def parse_function(self) -> Statement:
        """Parse `fn name(p: T, ...) -> R { body }`."""
        fn_tok = self.advance()
        name_tok = self.expect("IDENT", "a function name")
        self.expect("LPAREN", "'('")

        param_names: list[str] = []
        param_types: list[DataType] = []
        if not self.match("RPAREN"):
            while True:
                param_tok = self.expect("IDENT", "a parameter name")
                self.expect("COLON", "':' after parameter name")
                param_names.append(param_tok.value)
                param_types.append(self.parse_unit_type())
                if self.match("RPAREN"):
                    break
                sep = self.advance()
                if sep.type != "COMMA":
                    raise ParseError(
                        f"Expected ',' or ')' but found {_describe(sep)}", sep.line, sep.col
                    )

        arrow = self.advance()
        if arrow.type != "ARROW":
            raise ParseError("Expected '-> type'", arrow.line, arrow.col)
        return_type = self.parse_unit_type()

        self.table.insert(
            Symbol.function(
                name_tok.value,
                name_tok.line,
                return_type=return_type,
                param_names=param_names,
                param_types=param_types,
            )
        )

        scope_id = self.open_scope()
        try:
            body = self.parse_block()
        finally:
            self.table.exit_scope()
        return FnDeclaration(
            name_tok.value, param_names, body, scope_id, line=fn_tok.line, col=fn_tok.col
        )

    def parse_if(self) -> Statement:
        """Parse an `if` with optional `else if` / `else` arms."""
        if_tok = self.advance()
        self.expect("LPAREN", "'(' after 'if'")
        condition = self.parse_expression()
        self.expect("RPAREN", "')'")

        scope_id = self.open_scope()
        try:
            then_body = self.parse_block()
        finally:
            self.table.exit_scope()

        else_body: Statement | None = None
        else_tok = self.match("ELSE")
        if else_tok is not None:
            if self.check("IF"):
                else_body = self.parse_if()
            else:
                # A plain else shares the if's scope id
                self.table.enter_scope(scope_id)
                try:
                    block = self.parse_block()
                finally:
                    self.table.exit_scope()
                else_body = If(
                    Literal(True, line=else_tok.line, col=else_tok.col),
                    block,
                    None,
                    scope_id,
                    line=else_tok.line,
                    col=else_tok.col,
                )

        return If(
            condition, then_body, else_body, scope_id, line=if_tok.line, col=if_tok.col
        )

    def parse_loop(self) -> Statement:
        loop_tok = self.advance()
        scope_id = self.open_scope()
        try:
            body = self.parse_block()
        finally:
            self.table.exit_scope()
        return Loop(body, scope_id, line=loop_tok.line, col=loop_tok.col)

    def parse_for(self) -> Statement:
        """Parse `for (var in iterable) { body }`."""
        for_tok = self.advance()
        self.expect("LPAREN", "'(' after 'for'")
        var_tok = self.expect("IDENT", "a loop variable")
        self.expect("IN", "'in'")
        iterable = self.parse_expression()
        self.expect("RPAREN", "')'")

        scope_id = self.open_scope()
        try:
            self.table.insert(Symbol.variable(var_tok.value, var_tok.line, assigned=True))
            body = self.parse_block()
        finally:
            self.table.exit_scope()
        return For(
            var_tok.value, iterable, body, scope_id, line=for_tok.line, col=for_tok.col
        )

    def parse_return(self) -> Statement:
        ret_tok = self.advance()
        value = None
        if not self.check("SEMICOLON"):
            value = self.parse_expression()
        self.expect("SEMICOLON", "';'")
        return Return(value, line=ret_tok.line, col=ret_tok.col)

    def parse_block(self) -> list[Statement]:
        """Parse a `{}`-enclosed block of statements."""
        self.expect("LBRACE", "'{'")
        body: list[Statement] = []
        while not self.check("RBRACE", "EOF"):
            body.append(self.parse_statement())
        self.expect("RBRACE", "'}'")
        return body

    # Expressions

    def parse_expression(self) -> Expression:
        return self.parse_logical_or()

    def _parse_binary_level(
        self, ops: set[str], operand: Callable[[], Expression]
    ) -> Expression:
        left = operand()
        while self.check(*ops):
            op_tok = self.advance()
            right = operand()
            left = Binary(left, op_tok.value, right, line=op_tok.line, col=op_tok.col)
        return left

    def parse_logical_or(self) -> Expression:
        return self._parse_binary_level(LOGICAL_OR_OPS, self.parse_logical_and)

    def parse_logical_and(self) -> Expression:
        return self._parse_binary_level(LOGICAL_AND_OPS, self.parse_comparison)

    def parse_comparison(self) -> Expression:
        return self._parse_binary_level(COMPARISON_OPS, self.parse_additive)

    def parse_additive(self) -> Expression:
        return self._parse_binary_level(ADDITIVE_OPS, self.parse_multiplicative)

    def parse_multiplicative(self) -> Expression:
        return self._parse_binary_level(MULTIPLICATIVE_OPS, self.parse_exponent)

    def parse_exponent(self) -> Expression:
        return self._parse_binary_level(EXPONENT_OPS, self.parse_unary)

    def parse_unary(self) -> Expression:
        if self.check(*UNARY_OPS):
            op_tok = self.advance()
            operand = self.parse_unary()
            return Unary(op_tok.value, operand, line=op_tok.line, col=op_tok.col)
        return self.parse_primary()

    def parse_primary(self) -> Expression:
        tok = self.advance()
        pos = {"line": tok.line, "col": tok.col}

        if tok.type in ("NUMBER", "FLOAT"):
            literal = Literal(Number.from_token(tok), **pos)
            range_tok = self.match("RANGE", "RANGE_INCL")
            if range_tok is not None:
                end = self.parse_expression()
                return Range(literal, end, range_tok.type == "RANGE_INCL", **pos)
            return literal
        if tok.type == "STRING":
            return Literal(tok.value, **pos)
        if tok.type in ("TRUE", "FALSE"):
            return Literal(tok.type == "TRUE", **pos)

        if tok.type == "IDENT":
            if self.check("LPAREN"):
                return self.parse_call(tok)
            return self.parse_access_chain(Identifier(tok.value, **pos))

        if tok.type == "LBRACK":
            elements = self.parse_sequence("RBRACK", "']'")
            return Array(elements, **pos)

        if tok.type == "LPAREN":
            if self.match("RPAREN"):
                return Tuple([], **pos)
            if self.has_top_level_comma():
                logger.debug("parenthesized tuple at line %d, col %d", tok.line, tok.col)
                return Tuple(self.parse_sequence("RPAREN", "')'"), **pos)
            inner = self.parse_expression()
            self.expect("RPAREN", "')'")
            return inner

        raise ParseError(
            f"Expected an expression but found {_describe(tok)}", tok.line, tok.col
        )

    def parse_call(self, name_tok: Token) -> Expression:
        self.expect("LPAREN", "'('")
        args = self.parse_sequence("RPAREN", "')'")
        return FnCall(name_tok.value, args, line=name_tok.line, col=name_tok.col)

    def parse_sequence(self, closer: str, closer_text: str) -> list[Expression]:
        """Parse comma-separated expressions up to and including `closer`.

        A trailing comma is allowed, so `(x,)` is a one-element tuple.
        """
        items: list[Expression] = []
        while not self.check(closer):
            items.append(self.parse_expression())
            if self.match("COMMA"):
                continue
            if not self.check(closer):
                tok = self.peek()
                raise ParseError(
                    f"Expected ',' or {closer_text} but found {_describe(tok)}",
                    tok.line,
                    tok.col,
                )
        self.expect(closer, closer_text)
        return items

    def parse_access_chain(self, expr: Expression) -> Expression:
        """Parse any `.field`, `.N` and `[expr]` suffixes, left to right."""
        while True:
            if self.match("LBRACK"):
                index = self.parse_expression()
                self.expect("RBRACK", "']'")
                expr = Index(expr, index, line=expr.line, col=expr.col)
            elif self.match("DOT"):
                tok = self.advance()
                if tok.type == "IDENT":
                    expr = Member(expr, tok.value, line=expr.line, col=expr.col)
                elif tok.type == "NUMBER":
                    position = int(tok.value)
                    if position < 0:
                        raise ParseError(
                            "Tuple index must be a non-negative integer", tok.line, tok.col
                        )
                    expr = TupleIndex(expr, position, line=expr.line, col=expr.col)
                else:
                    raise ParseError(
                        f"Expected a field name or tuple index but found {_describe(tok)}",
                        tok.line,
                        tok.col,
                    )
            else:
                return expr

    def has_top_level_comma(self) -> bool:
        """Scans, without consuming, to the `)` matching an already consumed `(`.

        Returns True if a comma appears at nesting depth zero on the way.
        """
        mark = self.lexer.save_position()
        depth = 0
        found = False
        try:
            while True:
                tok = self.lexer.next_token()
                if tok.type == "EOF":
                    break
                if tok.type in ("LPAREN", "LBRACK", "LBRACE"):
                    depth += 1
                elif tok.type in ("RPAREN", "RBRACK", "RBRACE"):
                    if depth == 0:
                        break
                    depth -= 1
                elif tok.type == "COMMA" and depth == 0:
                    found = True
                    break
        finally:
            self.lexer.restore_position(mark)
        return found


def parse(source: str) -> tuple[list[Statement], SymbolTable]:
    """Parses `source`, returning the program and its populated symbol table."""
    parser = Parser.from_source(source)
    program = parser.parse()
    return program, parser.table


__all__ = ["Parser", "parse"]

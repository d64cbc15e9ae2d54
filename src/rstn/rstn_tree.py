"""
Human-readable views of the front end's products.

Functions:
    display_tree(program): Box-drawing dump of a parsed program.
    format_expression(expr): An expression rendered back to source form.
    format_symbols(table): Fixed-width table of every symbol in every scope.
    format_tokens(tokens): Fixed-width token listing grouped by tag.

Example:
    >>> print(display_tree(program))
    Program
    └── Declaration: x
        └── Binary: +
            ├── Literal: 1
            └── Literal: 2.5
"""

from __future__ import annotations

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
    Node,
    Range,
    Return,
    Statement,
    Tuple,
    TupleIndex,
    Unary,
    is_else_block,
)
from rstn.rstn_lexer import Number, Token
from rstn.rstn_table import SymbolTable

_BINARY_PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "<": 3,
    ">": 3,
    "<=": 3,
    ">=": 3,
    "==": 3,
    "!=": 3,
    "+": 4,
    "-": 4,
    "*": 5,
    "/": 5,
    "%": 5,
    "**": 6,
}


class _Branch:
    """A labelled group of child nodes, such as the body of an `if`."""

    def __init__(self, label: str, children: list) -> None:
        self.label = label
        self.children = children


def _literal_text(value: Number | str | bool) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Number):
        return str(value)
    return f'"{value}"'


def _describe(item: Node | _Branch) -> tuple[str, list]:
    if isinstance(item, _Branch):
        return item.label, item.children

    if isinstance(item, Literal):
        return f"Literal: {_literal_text(item.value)}", []
    if isinstance(item, Identifier):
        return f"Identifier: {item.name}", []
    if isinstance(item, Binary):
        return f"Binary: {item.op}", [item.left, item.right]
    if isinstance(item, Unary):
        return f"Unary: {item.op}", [item.operand]
    if isinstance(item, FnCall):
        return f"Function Call: {item.name}", list(item.args)
    if isinstance(item, Tuple):
        return "Tuple", list(item.elements)
    if isinstance(item, Array):
        return "Array", list(item.elements)
    if isinstance(item, Index):
        return "Index", [item.base, item.index]
    if isinstance(item, Member):
        return f"Member Access: {item.field}", [item.base]
    if isinstance(item, TupleIndex):
        return f"Tuple Index: {item.position}", [item.base]
    if isinstance(item, Range):
        return ("Range (inclusive)" if item.inclusive else "Range"), [item.start, item.end]

    if isinstance(item, ExpressionStatement):
        return "Expression Statement", [item.expr]
    if isinstance(item, Declaration):
        label = f"Declaration: {'const ' if item.is_const else ''}{item.name}"
        if item.type_annotation is not None:
            label += f": {item.type_annotation}"
        return label, [item.init] if item.init is not None else []
    if isinstance(item, Assignment):
        return "Assignment", [item.target, item.value]
    if isinstance(item, If):
        if is_else_block(item):
            return f"Else [scope {item.scope_id}]", list(item.then_body)
        children: list = [item.condition, _Branch("Body", list(item.then_body))]
        if item.else_body is not None:
            children.append(item.else_body)
        return f"If [scope {item.scope_id}]", children
    if isinstance(item, Loop):
        return f"Loop [scope {item.scope_id}]", list(item.body)
    if isinstance(item, For):
        return (
            f"For: {item.var} [scope {item.scope_id}]",
            [item.iterable, _Branch("Body", list(item.body))],
        )
    if isinstance(item, FnDeclaration):
        params = ", ".join(item.params)
        return f"Function Declaration: {item.name}({params}) [scope {item.scope_id}]", list(
            item.body
        )
    if isinstance(item, Return):
        return "Return", [item.value] if item.value is not None else []

    raise TypeError(f"Cannot display {type(item).__name__}")


def _render(item: Node | _Branch, prefix: str, is_last: bool, lines: list[str]) -> None:
    label, children = _describe(item)
    connector = "└── " if is_last else "├── "
    lines.append(prefix + connector + label)
    child_prefix = prefix + ("    " if is_last else "│   ")
    for i, child in enumerate(children):
        _render(child, child_prefix, i == len(children) - 1, lines)


def display_tree(program: list[Statement]) -> str:
    """Renders `program` as a box-drawing tree rooted at `Program`."""
    lines = ["Program"]
    for i, stmt in enumerate(program):
        _render(stmt, "", i == len(program) - 1, lines)
    return "\n".join(lines)


def format_expression(expr: Expression) -> str:
    """Renders `expr` in source form, adding parentheses only where precedence needs them."""
    if isinstance(expr, Literal):
        return _literal_text(expr.value)
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, Binary):
        prec = _BINARY_PRECEDENCE.get(expr.op, 0)
        left = format_expression(expr.left)
        right = format_expression(expr.right)
        if _needs_parens(expr.left, prec, right_side=False):
            left = f"({left})"
        if _needs_parens(expr.right, prec, right_side=True):
            right = f"({right})"
        return f"{left} {expr.op} {right}"
    if isinstance(expr, Unary):
        operand = format_expression(expr.operand)
        if isinstance(expr.operand, (Binary, Range)):
            operand = f"({operand})"
        return f"{expr.op}{operand}"
    if isinstance(expr, FnCall):
        return f"{expr.name}({', '.join(format_expression(a) for a in expr.args)})"
    if isinstance(expr, Tuple):
        if len(expr.elements) == 1:
            return f"({format_expression(expr.elements[0])},)"
        return f"({', '.join(format_expression(e) for e in expr.elements)})"
    if isinstance(expr, Array):
        return f"[{', '.join(format_expression(e) for e in expr.elements)}]"
    if isinstance(expr, Index):
        return f"{format_expression(expr.base)}[{format_expression(expr.index)}]"
    if isinstance(expr, Member):
        return f"{format_expression(expr.base)}.{expr.field}"
    if isinstance(expr, TupleIndex):
        return f"{format_expression(expr.base)}.{expr.position}"
    if isinstance(expr, Range):
        op = "..=" if expr.inclusive else ".."
        return f"{format_expression(expr.start)}{op}{format_expression(expr.end)}"
    raise TypeError(f"Cannot format {type(expr).__name__}")


def _needs_parens(child: Expression, parent_prec: int, right_side: bool) -> bool:
    if isinstance(child, Range):
        return True
    if not isinstance(child, Binary):
        return False
    child_prec = _BINARY_PRECEDENCE.get(child.op, 0)
    # Binary levels are left-associative
    return child_prec < parent_prec or (right_side and child_prec == parent_prec)


def format_symbols(table: SymbolTable) -> str:
    """Renders every symbol of every scope, in scope-id order."""
    rows = [
        f"{'Name':<20} | {'Scope':<6} | {'Use':<12} | Kind",
        "-" * 62,
    ]
    for symbol in table.get_all_symbols():
        rows.append(
            f"{symbol.lexeme:<20} | {symbol.scope_id:<6} | "
            f"{symbol.use_kind.value:<12} | {symbol.kind}"
        )
    return "\n".join(rows)


def format_tokens(tokens: list[Token]) -> str:
    """Renders `tokens` as a table sorted by tag, then by position."""
    rows = [f"{'Token':<12} | {'Lexeme':<20} | Position", "-" * 50]
    ordered = sorted(
        (tok for tok in tokens if tok.type != "EOF"),
        key=lambda tok: (tok.type, tok.line, tok.col),
    )
    for tok in ordered:
        rows.append(f"{tok.type:<12} | {tok.value:<20} | {tok.line}:{tok.col}")
    return "\n".join(rows)


__all__ = ["display_tree", "format_expression", "format_symbols", "format_tokens"]

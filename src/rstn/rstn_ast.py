"""
Defines the abstract syntax tree (AST) for the RSTN programming language.

The node set is closed: every expression and statement form is its own class with
a `kind` tag. Backends dispatch on `kind` (`emit_<kind>`), so adding a node class
without a matching emitter method fails loudly instead of being skipped.

Expressions:
    Literal, Identifier, Binary, FnCall, Tuple, Array, Index, Member, TupleIndex,
    Unary, Range

Statements:
    ExpressionStatement, Declaration, Assignment, If, Loop, For, FnDeclaration, Return

Every scope-introducing statement (If, Loop, For, FnDeclaration) carries the
`scope_id` minted by the parser for its block, which correlates the statement
with its symbol table scope.

Each node also records `line`/`col` for diagnostics. Positions are excluded from
equality so tests can compare trees built by hand with parsed ones.

Example:
    Binary(Literal(Number(1)), "+", Identifier("x"))
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar

from rstn.rstn_lexer import Number
from rstn.rstn_types import DataType


@dataclass
class Node:
    """Base for all AST nodes."""

    kind: ClassVar[str] = "node"

    line: int = field(default=0, compare=False, kw_only=True)
    col: int = field(default=0, compare=False, kw_only=True)

    def to_dict(self) -> dict[str, Any]:
        """Converts the node and all descendants into plain dictionaries."""
        out: dict[str, Any] = {"kind": self.kind}
        for f in fields(self):
            out[f.name] = _to_plain(getattr(self, f.name))
        return out


def _to_plain(value: Any) -> Any:
    if isinstance(value, Node):
        return value.to_dict()
    if isinstance(value, list):
        return [_to_plain(v) for v in value]
    if isinstance(value, Number):
        return value.value
    if isinstance(value, DataType):
        return str(value)
    return value


@dataclass
class Expression(Node):
    pass


@dataclass
class Statement(Node):
    pass


# Expressions


@dataclass
class Literal(Expression):
    """A numeric, string or boolean literal."""

    kind: ClassVar[str] = "literal"
    value: Number | str | bool


@dataclass
class Identifier(Expression):
    kind: ClassVar[str] = "identifier"
    name: str


@dataclass
class Binary(Expression):
    """`left op right`; `op` is the operator lexeme (`+`, `&&`, `<=`, ...)."""

    kind: ClassVar[str] = "binary"
    left: Expression
    op: str
    right: Expression


@dataclass
class FnCall(Expression):
    kind: ClassVar[str] = "fn_call"
    name: str
    args: list[Expression] = field(default_factory=list)


@dataclass
class Tuple(Expression):
    kind: ClassVar[str] = "tuple"
    elements: list[Expression] = field(default_factory=list)


@dataclass
class Array(Expression):
    kind: ClassVar[str] = "array"
    elements: list[Expression] = field(default_factory=list)


@dataclass
class Index(Expression):
    """`base[index]`."""

    kind: ClassVar[str] = "index"
    base: Expression
    index: Expression


@dataclass
class Member(Expression):
    """`base.field`."""

    kind: ClassVar[str] = "member"
    base: Expression
    field: str


@dataclass
class TupleIndex(Expression):
    """`base.N` with a literal position."""

    kind: ClassVar[str] = "tuple_index"
    base: Expression
    position: int


@dataclass
class Unary(Expression):
    """`-operand` or `!operand`."""

    kind: ClassVar[str] = "unary"
    op: str
    operand: Expression


@dataclass
class Range(Expression):
    """`start..end` or `start..=end` when `inclusive`."""

    kind: ClassVar[str] = "range"
    start: Expression
    end: Expression
    inclusive: bool = False


# Statements


@dataclass
class ExpressionStatement(Statement):
    kind: ClassVar[str] = "expression_statement"
    expr: Expression


@dataclass
class Declaration(Statement):
    """`let name [: type] [= init];` or `const name: type = init;`."""

    kind: ClassVar[str] = "declaration"
    name: str
    init: Expression | None = None
    type_annotation: DataType | None = None
    is_const: bool = False


@dataclass
class Assignment(Statement):
    """`target = value;` where target is an identifier or an access chain."""

    kind: ClassVar[str] = "assignment"
    target: Expression
    value: Expression


@dataclass
class If(Statement):
    """`if (condition) { then_body } [else ...]`.

    A plain `else { ... }` is stored as `If(Literal(True), body, None, scope_id)`
    sharing the scope id of the `if` it belongs to; `else if` nests the next If.
    """

    kind: ClassVar[str] = "if"
    condition: Expression
    then_body: list[Statement]
    else_body: Statement | None
    scope_id: int


@dataclass
class Loop(Statement):
    kind: ClassVar[str] = "loop"
    body: list[Statement]
    scope_id: int


@dataclass
class For(Statement):
    """`for (var in iterable) { body }`."""

    kind: ClassVar[str] = "for"
    var: str
    iterable: Expression
    body: list[Statement]
    scope_id: int


@dataclass
class FnDeclaration(Statement):
    """`fn name(params) -> type { body }`. Parameter types live in the symbol table."""

    kind: ClassVar[str] = "fn_declaration"
    name: str
    params: list[str]
    body: list[Statement]
    scope_id: int


@dataclass
class Return(Statement):
    kind: ClassVar[str] = "return"
    value: Expression | None = None


def is_else_block(stmt: Statement | None) -> bool:
    """True for the synthetic `If(true, ...)` a plain `else` block is stored as."""
    return (
        isinstance(stmt, If)
        and stmt.else_body is None
        and isinstance(stmt.condition, Literal)
        and stmt.condition.value is True
    )


__all__ = [
    "Array",
    "Assignment",
    "Binary",
    "Declaration",
    "Expression",
    "ExpressionStatement",
    "FnCall",
    "FnDeclaration",
    "For",
    "Identifier",
    "If",
    "Index",
    "Literal",
    "Loop",
    "Member",
    "Node",
    "Range",
    "Return",
    "Statement",
    "Tuple",
    "TupleIndex",
    "Unary",
    "is_else_block",
]

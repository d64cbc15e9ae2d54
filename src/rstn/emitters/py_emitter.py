"""
Translates RSTN AST nodes into executable Python code.

This module defines the `PythonEmitter` class, the Python backend used by the
`Transpiler`. It walks a type-checked program and accumulates Python source lines.

Supported Features:
    - Expressions: literals, arithmetic, boolean and comparison operators, calls,
      arrays (lists), tuples, indexing, member access, tuple indexing, ranges
    - Statements: `let`/`const` declarations, assignments, expression statements,
      `return`
    - Control flow: `if` / `else if` / `else` (as `if` / `elif` / `else`),
      `loop` (as `while True:`), `for ... in` over ranges and arrays
    - Functions: `def` with parameter and return annotations when a symbol table
      is supplied

Behavior:
    - Emits structured Python code with four-space indentation.
    - Empty bodies become `pass`.
    - Maintains a code buffer (`lines`) which can be retrieved using `get_output()`.

Raises:
    - `NotImplementedError`: If an AST kind has no corresponding emitter.
"""

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
    is_else_block,
)
from rstn.rstn_lexer import Number
from rstn.rstn_table import FunctionKind, Symbol, SymbolTable
from rstn.rstn_types import ArrayType, DataType, NamedType, PrimitiveType, TupleType

PY_OPERATORS = {"&&": "and", "||": "or", "!": "not "}

PY_TYPE_NAMES = {
    "Integer": "int",
    "Float": "float",
    "String": "str",
    "Boolean": "bool",
    "Void": "None",
    "Undefined": "None",
}


def python_type(data_type: DataType) -> str:
    """Spells an RSTN type as a Python annotation, e.g. `[int; 3]` -> `list[int]`."""
    if isinstance(data_type, PrimitiveType):
        return PY_TYPE_NAMES.get(data_type.name, data_type.name)
    if isinstance(data_type, ArrayType):
        return f"list[{python_type(data_type.element)}]"
    if isinstance(data_type, TupleType):
        if not data_type.elements:
            return "tuple[()]"
        return f"tuple[{', '.join(python_type(t) for t in data_type.elements)}]"
    if isinstance(data_type, NamedType):
        return data_type.name
    raise TypeError(f"Unknown data type: {data_type!r}")


class PythonEmitter:
    """Emits Python code from RSTN AST nodes.

    Attributes:
        lines (list[str]): Accumulated lines of emitted Python code.
        indent (int): Current indentation level for emitted code blocks.
        table (SymbolTable | None): Source of function signatures for annotations.

    Methods:
        get_output(): Returns the full emitted Python code as a string.
        emit_expr(node): Emits a Python expression from an AST node.
        _visit(node): Dispatches a statement to the appropriate emit_* method.
    """

    def __init__(self, table: SymbolTable | None = None) -> None:
        self.lines: list[str] = []
        self.indent = 0
        self.table = table

    def indent_str(self) -> str:
        return "    " * self.indent

    def get_output(self) -> str:
        """Returns the full emitted Python code as a single string."""
        return "\n".join(self.lines)

    def _line(self, text: str) -> None:
        self.lines.append(f"{self.indent_str()}{text}")

    def _block(self, body: list[Statement]) -> None:
        self.indent += 1
        if not body:
            self._line("pass")
        for stmt in body:
            self._visit(stmt)
        self.indent -= 1

    # Expressions

    def emit_expr_literal(self, node: Literal) -> str:
        value = node.value
        if isinstance(value, bool):
            return "True" if value else "False"
        if isinstance(value, Number):
            return str(value.value)
        return repr(value)

    def emit_expr_identifier(self, node: Identifier) -> str:
        return node.name

    def emit_expr_binary(self, node: Binary) -> str:
        left = self.emit_expr(node.left)
        right = self.emit_expr(node.right)
        op = PY_OPERATORS.get(node.op, node.op)
        return f"({left} {op} {right})"

    def emit_expr_unary(self, node: Unary) -> str:
        operand = self.emit_expr(node.operand)
        return f"({PY_OPERATORS.get(node.op, node.op)}{operand})"

    def emit_expr_fn_call(self, node: FnCall) -> str:
        args = ", ".join(self.emit_expr(a) for a in node.args)
        return f"{node.name}({args})"

    def emit_expr_tuple(self, node: Tuple) -> str:
        elements = [self.emit_expr(e) for e in node.elements]
        if len(elements) == 1:
            return f"({elements[0]},)"
        return f"({', '.join(elements)})"

    def emit_expr_array(self, node: Array) -> str:
        return f"[{', '.join(self.emit_expr(e) for e in node.elements)}]"

    def emit_expr_index(self, node: Index) -> str:
        return f"{self.emit_expr(node.base)}[{self.emit_expr(node.index)}]"

    def emit_expr_member(self, node: Member) -> str:
        return f"{self.emit_expr(node.base)}.{node.field}"

    def emit_expr_tuple_index(self, node: TupleIndex) -> str:
        return f"{self.emit_expr(node.base)}[{node.position}]"

    def emit_expr_range(self, node: Range) -> str:
        start = self.emit_expr(node.start)
        end = self.emit_expr(node.end)
        if node.inclusive:
            return f"range({start}, {end} + 1)"
        return f"range({start}, {end})"

    def emit_expr(self, node: Expression) -> str:
        """
        Dispatches expression emission based on node kind.

        Raises
        ------
        NotImplementedError
            If no emitter exists for the node kind.
        """
        method = getattr(self, f"emit_expr_{node.kind}", None)
        if not callable(method):
            raise NotImplementedError(f"No expression emitter for kind '{node.kind}'")
        return str(method(node))

    # Statements

    def emit_expression_statement(self, node: ExpressionStatement) -> None:
        self._line(self.emit_expr(node.expr))

    def emit_declaration(self, node: Declaration) -> None:
        """Emits `let`/`const` as a plain assignment; no initializer binds `None`."""
        value = self.emit_expr(node.init) if node.init is not None else "None"
        self._line(f"{node.name} = {value}")

    def emit_assignment(self, node: Assignment) -> None:
        self._line(f"{self.emit_expr(node.target)} = {self.emit_expr(node.value)}")

    def emit_return(self, node: Return) -> None:
        if node.value is not None:
            self._line(f"return {self.emit_expr(node.value)}")
        else:
            self._line("return")

    def emit_if(self, node: If, keyword: str = "if") -> None:
        """
        Emits an `if` statement. An `else if` chain continues as `elif` and the
        synthetic `If(true, ...)` holding a plain `else` becomes `else:`.
        """
        self._line(f"{keyword} {self.emit_expr(node.condition)}:")
        self._block(node.then_body)

        tail = node.else_body
        if tail is None:
            return
        if is_else_block(tail):
            assert isinstance(tail, If)  # for mypy
            self._line("else:")
            self._block(tail.then_body)
        elif isinstance(tail, If):
            self.emit_if(tail, keyword="elif")
        else:
            self._line("else:")
            self._block([tail])

    def emit_loop(self, node: Loop) -> None:
        self._line("while True:")
        self._block(node.body)

    def emit_for(self, node: For) -> None:
        self._line(f"for {node.var} in {self.emit_expr(node.iterable)}:")
        self._block(node.body)

    def _function_symbol(self, node: FnDeclaration) -> Symbol | None:
        # the symbol lives in the scope enclosing the body
        if self.table is None or node.scope_id not in self.table.scopes:
            return None
        parent = self.table.scope(node.scope_id).parent
        if parent is None:
            return None
        symbol = self.table.scope(parent).symbols.get(node.name)
        if symbol is None or not isinstance(symbol.kind, FunctionKind):
            return None
        return symbol

    def emit_fn_declaration(self, node: FnDeclaration) -> None:
        """Emits a `def`, annotated from the symbol table when one is available."""
        params = list(node.params)
        returns = ""
        symbol = self._function_symbol(node)
        if symbol is not None:
            assert isinstance(symbol.kind, FunctionKind)  # for mypy
            kind = symbol.kind
            params = [
                f"{name}: {python_type(data_type)}"
                for name, data_type in zip(kind.param_names, kind.param_types)
            ]
            if kind.return_type is not None:
                returns = f" -> {python_type(kind.return_type)}"
        self._line(f"def {node.name}({', '.join(params)}){returns}:")
        self._block(node.body)

    def _visit(self, node: Statement) -> None:
        """
        Dispatches a statement node to its emit method.

        Raises
        ------
        NotImplementedError
            If no emitter is defined for the node kind.
        """
        meth = getattr(self, f"emit_{node.kind}", None)
        if not meth:
            raise NotImplementedError(f"PythonEmitter: no emitter for {node.kind}")
        meth(node)

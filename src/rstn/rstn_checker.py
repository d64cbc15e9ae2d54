"""
Semantic analysis and type checking for RSTN programs.

The checker walks a parsed program together with the symbol table the parser
filled. It never changes the AST. Its only writes to the table are back-filling
the inferred type of an unannotated variable and flipping `assigned` flags.

Types are inferred bottom-up by *collection*. `collect_types(expr, collection)`
appends the inferred type(s) of `expr` to a list, and `check_collection(list)`
unifies it: every entry must equal the first and the first must not be `Void`.
A statement is well typed when its collection unifies. For example,
`let x: int = 1 + 2.5;` collects `[int, float]`, which does not unify.

Scopes are walked structurally. The checker enters each statement's scope id
while it checks the body, so names resolve through lexical `lookup()` exactly as
they did while parsing. Function parameters are not table entries. They are
resolved against the enclosing function being checked: a name declared in the
function body shadows a parameter, and a parameter shadows anything declared
outside the function.

By default checking stops at the first statement that fails. With
`collect_all=True` the checker keeps going and reports every problem it finds.
"""

from __future__ import annotations

import logging

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
)
from rstn.rstn_constants import (
    ARITHMETIC_OPERATORS,
    COMPARISON_OPERATORS,
    LOGICAL_OPERATORS,
)
from rstn.rstn_errors import Diagnostic
from rstn.rstn_lexer import Number
from rstn.rstn_table import FunctionKind, Symbol, SymbolTable, VariableKind
from rstn.rstn_tree import format_expression
from rstn.rstn_types import (
    BOOLEAN,
    FLOAT,
    INTEGER,
    STRING,
    UNDEFINED,
    VOID,
    ArrayType,
    DataType,
    TupleType,
    is_numeric,
    type_list,
)

logger = logging.getLogger(__name__)


class SemanticChecker:
    """Type checks a program against its symbol table.

    Attributes:
        program (list[Statement]): The parsed program.
        table (SymbolTable): The table the parser filled.
        collect_all (bool): Keep checking after the first failing statement.
        diagnostics (list[Diagnostic]): Problems found by the last `check()`.
    """

    def __init__(
        self, program: list[Statement], table: SymbolTable, collect_all: bool = False
    ) -> None:
        self.program = program
        self.table = table
        self.collect_all = collect_all
        self.diagnostics: list[Diagnostic] = []
        # (function symbol, body scope id), innermost last
        self._functions: list[tuple[Symbol, int]] = []

    # Reporting

    def error(self, message: str, node: Node, evidence: list[str] | None = None) -> None:
        diagnostic = Diagnostic("semantic", message, node.line, node.col, evidence)
        self.diagnostics.append(diagnostic)
        logger.error("%s at line %d, col %d", message, node.line, node.col)

    def mismatch(
        self, message: str, node: Node, construct: str, types: list[DataType], before: int
    ) -> None:
        """Reports a statement-level mismatch unless a nested check already explained it."""
        if len(self.diagnostics) == before:
            self.error(message, node, [construct, type_list(types)])

    # Driver

    def check(self) -> bool:
        """Returns True iff every statement of the program type checks."""
        self.diagnostics = []
        self._functions = []
        ok = self.check_body(self.program)
        if ok:
            logger.info("Type checking passed")
        return ok

    def check_body(self, body: list[Statement]) -> bool:
        ok = True
        for stmt in body:
            if not self.check_statement(stmt):
                ok = False
                if not self.collect_all:
                    break
        return ok

    def check_statement(self, stmt: Statement) -> bool:
        before = len(self.diagnostics)
        method = getattr(self, f"check_{stmt.kind}", None)
        if method is None:
            raise NotImplementedError(f"No type rule for statement kind '{stmt.kind}'")
        ok = method(stmt)
        return ok and len(self.diagnostics) == before

    def _check_scoped_body(self, scope_id: int, body: list[Statement]) -> bool:
        self.table.enter_scope(scope_id)
        try:
            return self.check_body(body)
        finally:
            self.table.exit_scope()

    # Statements

    def check_expression_statement(self, stmt: ExpressionStatement) -> bool:
        before = len(self.diagnostics)
        types = self.collect_types(stmt.expr)
        if not self.check_collection(types):
            self.mismatch(
                "Mismatching types in expression statement",
                stmt,
                format_expression(stmt.expr),
                types,
                before,
            )
            return False
        return True

    def check_declaration(self, stmt: Declaration) -> bool:
        if stmt.init is None:
            self.table.update_var_type(stmt.name, stmt.type_annotation)
            self.table.update_var_assigned(stmt.name, False)
            return True

        before = len(self.diagnostics)
        types: list[DataType] = []
        if stmt.type_annotation is not None:
            types.append(stmt.type_annotation)
        types = self.collect_types(stmt.init, types)
        if not self.check_collection(types):
            keyword = "const" if stmt.is_const else "let"
            self.mismatch(
                "Mismatching types in declaration",
                stmt,
                f"{keyword} {stmt.name} = {format_expression(stmt.init)}",
                types,
                before,
            )
            return False

        if stmt.type_annotation is not None:
            inferred: DataType | None = stmt.type_annotation
        elif len(types) == 1:
            inferred = types[0]
        else:
            inferred = None
        self.table.update_var_type(stmt.name, inferred)
        self.table.update_var_assigned(stmt.name)
        return True

    def check_assignment(self, stmt: Assignment) -> bool:
        before = len(self.diagnostics)
        target = stmt.target
        construct = f"{format_expression(target)} = {format_expression(stmt.value)}"
        types: list[DataType] = []
        backfill: str | None = None
        is_param = False

        if isinstance(target, Identifier):
            name = target.name
            param_type = self.collect_param_type(name)
            if param_type != UNDEFINED:
                types.append(param_type)
                is_param = True
            else:
                symbol = self.table.lookup(name)
                if symbol is None:
                    self.error(f"Identifier '{name}' not found", target)
                    return False
                if isinstance(symbol.kind, FunctionKind):
                    self.error(f"Can't assign value to function '{name}'", target)
                    return False
                if symbol.kind.constant:
                    self.error(f"Can't assign value to constant '{name}'", target)
                    return False
                if symbol.kind.declared_type is None:
                    backfill = name
                else:
                    types.append(symbol.kind.declared_type)
        else:
            target_type = self._single_type(target)
            if target_type == VOID:
                return False
            types.append(target_type)

        types = self.collect_types(stmt.value, types)
        if not self.check_collection(types):
            self.mismatch("Mismatching types in assignment", stmt, construct, types, before)
            return False

        if backfill is not None:
            if len(types) == 1:
                self.table.update_var_type(backfill, types[0])
            self.table.update_var_assigned(backfill)
        elif isinstance(target, Identifier) and not is_param:
            # parameters are always bound
            self.table.update_var_assigned(target.name)
        return True

    def check_return(self, stmt: Return) -> bool:
        function = self._functions[-1][0] if self._functions else None
        return_type = None
        if function is not None:
            assert isinstance(function.kind, FunctionKind)  # for mypy
            return_type = function.kind.return_type

        if stmt.value is None:
            if return_type is not None:
                self.error(
                    f"Function '{function.lexeme}' must return a value of type {return_type}",
                    stmt,
                )
                return False
            return True

        before = len(self.diagnostics)
        types: list[DataType] = [return_type] if return_type is not None else []
        types = self.collect_types(stmt.value, types)
        if not self.check_collection(types):
            self.mismatch(
                "Mismatching types in return",
                stmt,
                f"return {format_expression(stmt.value)}",
                types,
                before,
            )
            return False
        return True

    def check_if(self, stmt: If) -> bool:
        ok = True
        condition_type = self._single_type(stmt.condition)
        if condition_type != BOOLEAN:
            if condition_type != VOID:
                self.error(
                    "Condition must result in a boolean",
                    stmt.condition,
                    [format_expression(stmt.condition), type_list([condition_type])],
                )
            ok = False
            if not self.collect_all:
                return False

        if not self._check_scoped_body(stmt.scope_id, stmt.then_body):
            ok = False
            if not self.collect_all:
                return False

        if stmt.else_body is not None and not self.check_statement(stmt.else_body):
            ok = False
        return ok

    def check_loop(self, stmt: Loop) -> bool:
        return self._check_scoped_body(stmt.scope_id, stmt.body)

    def check_for(self, stmt: For) -> bool:
        ok = True
        before = len(self.diagnostics)
        types = self.collect_types(stmt.iterable)
        if isinstance(stmt.iterable, Range):
            valid = self.check_collection(types) and all(t == INTEGER for t in types)
        else:
            iterable_type = types[0] if self.check_collection(types) else VOID
            valid = isinstance(iterable_type, ArrayType) and iterable_type.element == INTEGER
        if not valid:
            self.mismatch(
                "Invalid range, use only integers",
                stmt.iterable,
                format_expression(stmt.iterable),
                types,
                before,
            )
            ok = False
            if not self.collect_all:
                return False

        self.table.enter_scope(stmt.scope_id)
        try:
            self.table.update_var_type(stmt.var, INTEGER)
            self.table.update_var_assigned(stmt.var)
            if not self.check_body(stmt.body):
                ok = False
        finally:
            self.table.exit_scope()
        return ok

    def check_fn_declaration(self, stmt: FnDeclaration) -> bool:
        symbol = self.table.lookup(stmt.name)
        if symbol is None or not isinstance(symbol.kind, FunctionKind):
            self.error(f"Function '{stmt.name}' not found", stmt)
            return False
        self._functions.append((symbol, stmt.scope_id))
        try:
            return self._check_scoped_body(stmt.scope_id, stmt.body)
        finally:
            self._functions.pop()

    # Expressions

    def check_collection(self, types: list[DataType]) -> bool:
        """True when every type equals the first and the first is not Void.

        An empty collection passes.
        """
        if not types:
            return True
        first = types[0]
        if any(t != first for t in types[1:]):
            return False
        return first != VOID

    def _single_type(self, expr: Expression) -> DataType:
        types = self.collect_types(expr)
        if types and self.check_collection(types):
            return types[0]
        return VOID

    def collect_types(
        self, expr: Expression, collection: list[DataType] | None = None
    ) -> list[DataType]:
        """Appends the inferred type(s) of `expr` to `collection` and returns it."""
        if collection is None:
            collection = []
        method = getattr(self, f"collect_{expr.kind}", None)
        if method is None:
            raise NotImplementedError(f"No type rule for expression kind '{expr.kind}'")
        method(expr, collection)
        return collection

    def collect_literal(self, expr: Literal, collection: list[DataType]) -> None:
        value = expr.value
        if isinstance(value, Number):
            collection.append(FLOAT if value.is_float else INTEGER)
        elif isinstance(value, bool):
            collection.append(BOOLEAN)
        else:
            collection.append(STRING)

    def collect_identifier(self, expr: Identifier, collection: list[DataType]) -> None:
        name = expr.name
        param_type = self.collect_param_type(name)
        if param_type != UNDEFINED:
            collection.append(param_type)
            return

        symbol = self.table.lookup(name)
        if symbol is None:
            self.error(f"Identifier '{name}' not found", expr)
            collection.append(VOID)
        elif isinstance(symbol.kind, FunctionKind):
            self.error(f"Function '{name}' used as a value", expr)
            collection.append(VOID)
        elif not self.check_assigned(name):
            self.error(f"Identifier '{name}' has no value assigned", expr)
            collection.append(VOID)
        elif symbol.kind.declared_type is None:
            self.error(f"Type of identifier '{name}' is unknown", expr)
            collection.append(VOID)
        else:
            collection.append(symbol.kind.declared_type)

    def collect_id_type(self, name: str) -> DataType:
        """The type a name denotes: a variable's type (Void if unknown), a
        function's return type, or Undefined when nothing is visible."""
        symbol = self.table.lookup(name)
        if symbol is None:
            return UNDEFINED
        if isinstance(symbol.kind, FunctionKind):
            return symbol.kind.return_type or UNDEFINED
        return symbol.kind.declared_type or VOID

    def collect_param_type(self, name: str) -> DataType:
        """The type of parameter `name` of an enclosing function, or Undefined."""
        symbol = self.table.lookup(name)
        for function, body_scope in reversed(self._functions):
            if symbol is not None and self.table.is_nested(symbol.scope_id, body_scope):
                return UNDEFINED
            assert isinstance(function.kind, FunctionKind)  # for mypy
            param_type = function.kind.param_type(name)
            if param_type is not None:
                return param_type
        return UNDEFINED

    def check_assigned(self, name: str) -> bool:
        """Whether the visible variable `name` has been given a value."""
        symbol = self.table.lookup(name)
        if symbol is None or not isinstance(symbol.kind, VariableKind):
            return False
        return symbol.kind.assigned

    def collect_binary(self, expr: Binary, collection: list[DataType]) -> None:
        left = self._single_type(expr.left)
        right = self._single_type(expr.right)
        if left == VOID or right == VOID:
            collection.append(VOID)
            return

        operands = [left, right]
        if expr.op in ARITHMETIC_OPERATORS:
            if is_numeric(left) and is_numeric(right):
                collection.append(FLOAT if FLOAT in operands else INTEGER)
                return
            message = f"Non-numeric types in arithmetic operation '{expr.op}'"
        elif expr.op in LOGICAL_OPERATORS:
            if left == BOOLEAN and right == BOOLEAN:
                collection.append(BOOLEAN)
                return
            message = f"Non-boolean types in boolean operation '{expr.op}'"
        elif expr.op in COMPARISON_OPERATORS:
            if is_numeric(left) and left == right:
                collection.append(BOOLEAN)
                return
            message = f"Invalid operand types in comparison '{expr.op}'"
        else:
            message = f"Unknown binary operator '{expr.op}'"

        self.error(message, expr, [format_expression(expr), type_list(operands)])
        collection.append(VOID)

    def collect_unary(self, expr: Unary, collection: list[DataType]) -> None:
        operand = self._single_type(expr.operand)
        if operand == VOID:
            collection.append(VOID)
        elif expr.op == "-" and is_numeric(operand):
            collection.append(operand)
        elif expr.op == "!" and operand == BOOLEAN:
            collection.append(BOOLEAN)
        else:
            self.error(
                f"Invalid operand type {operand} for unary '{expr.op}'",
                expr,
                [format_expression(expr)],
            )
            collection.append(VOID)

    def collect_array(self, expr: Array, collection: list[DataType]) -> None:
        if not expr.elements:
            self.error("Cannot infer the element type of an empty array", expr)
            collection.append(VOID)
            return
        element_types = []
        for element in expr.elements:
            element_type = self._single_type(element)
            if element_type == VOID:
                collection.append(VOID)
                return
            element_types.append(element_type)
        if not self.check_collection(element_types):
            self.error(
                "Mismatching types in array",
                expr,
                [format_expression(expr), type_list(element_types)],
            )
            collection.append(VOID)
            return
        collection.append(ArrayType(element_types[0], len(expr.elements)))

    def collect_tuple(self, expr: Tuple, collection: list[DataType]) -> None:
        element_types = []
        for element in expr.elements:
            element_type = self._single_type(element)
            if element_type == VOID:
                collection.append(VOID)
                return
            element_types.append(element_type)
        collection.append(TupleType(tuple(element_types)))

    def collect_range(self, expr: Range, collection: list[DataType]) -> None:
        bounds = [self._single_type(expr.start), self._single_type(expr.end)]
        if VOID in bounds:
            collection.append(VOID)
            return
        if any(bound != INTEGER for bound in bounds):
            self.error(
                "Non-integer type in range",
                expr,
                [format_expression(expr), type_list(bounds)],
            )
            collection.append(VOID)
            return
        # One entry per bound
        collection.extend(bounds)

    def collect_index(self, expr: Index, collection: list[DataType]) -> None:
        index_types = self.collect_types(expr.index)
        if index_types != [INTEGER]:
            if VOID not in index_types:
                self.error(
                    "Non-integer type in array index",
                    expr.index,
                    [format_expression(expr), type_list(index_types)],
                )
            collection.append(VOID)
            return

        base_type = self._single_type(expr.base)
        if base_type == VOID:
            collection.append(VOID)
            return
        if not isinstance(base_type, ArrayType):
            self.error(
                f"'{format_expression(expr.base)}' is not an array",
                expr,
                [type_list([base_type])],
            )
            collection.append(VOID)
            return

        index = expr.index
        if isinstance(index, Literal) and isinstance(index.value, Number):
            position = index.value.value
            if not 0 <= position < base_type.size:
                self.error(
                    f"Index {position} out of bounds for array of length {base_type.size}",
                    expr,
                    [format_expression(expr)],
                )
                collection.append(VOID)
                return
        collection.append(base_type.element)

    def collect_tuple_index(self, expr: TupleIndex, collection: list[DataType]) -> None:
        base_type = self._single_type(expr.base)
        if base_type == VOID:
            collection.append(VOID)
            return
        if not isinstance(base_type, TupleType):
            self.error(
                f"'{format_expression(expr.base)}' is not a tuple",
                expr,
                [type_list([base_type])],
            )
            collection.append(VOID)
            return
        if expr.position >= len(base_type.elements):
            self.error(
                f"Tuple index {expr.position} out of range for {base_type}",
                expr,
                [format_expression(expr)],
            )
            collection.append(VOID)
            return
        collection.append(base_type.elements[expr.position])

    def collect_member(self, expr: Member, collection: list[DataType]) -> None:
        base_type = self._single_type(expr.base)
        if base_type != VOID:
            self.error(
                f"Type {base_type} has no field '{expr.field}'",
                expr,
                [format_expression(expr)],
            )
        collection.append(VOID)

    def collect_fn_call(self, expr: FnCall, collection: list[DataType]) -> None:
        symbol = self.table.lookup(expr.name)
        if symbol is None or not isinstance(symbol.kind, FunctionKind):
            self.error(f"Function '{expr.name}' not found", expr)
            collection.append(VOID)
            return

        arg_types = []
        for arg in expr.args:
            arg_type = self._single_type(arg)
            if arg_type == VOID:
                collection.append(VOID)
                return
            arg_types.append(arg_type)

        params = symbol.kind.param_types
        if len(params) != len(arg_types):
            self.error(
                f"Function '{expr.name}' expects {len(params)} arguments but got {len(arg_types)}",
                expr,
                [format_expression(expr)],
            )
            collection.append(VOID)
            return
        for i, (param_type, arg_type) in enumerate(zip(params, arg_types)):
            if param_type != arg_type:
                self.error(
                    f"Mismatching argument {i} in call to '{expr.name}': "
                    f"expected {param_type}, found {arg_type}",
                    expr,
                    [format_expression(expr), type_list(arg_types)],
                )
                collection.append(VOID)
                return
        collection.append(symbol.kind.return_type or VOID)


def check_program(
    program: list[Statement], table: SymbolTable, collect_all: bool = False
) -> tuple[bool, list[Diagnostic]]:
    """Type checks `program`, returning the verdict and the diagnostics."""
    checker = SemanticChecker(program, table, collect_all=collect_all)
    ok = checker.check()
    return ok, checker.diagnostics


__all__ = ["SemanticChecker", "check_program"]

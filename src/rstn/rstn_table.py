"""
Scope-structured symbol table for the RSTN front end.

Scopes are records keyed by an integer scope id. Each scope keeps its parent's id,
so the whole scope tree survives after parsing. A separate stack of active scope
ids (innermost last) drives lexical lookup while the parser, and later the
checker, walk the program.

Classes:
    UseKind: Whether an entry records a declaration or a reference.
    VariableKind / FunctionKind: Per-kind symbol payloads.
    Symbol: One named entry.
    Scope: One block's name -> Symbol map.
    SymbolTable: The scope arena plus the active-scope stack.

Lookups:
    lookup(name)       lexical: active scopes, innermost to outermost
    read_symbol(name)  table-wide: first match in scope-id order
    get_all_symbols()  table-wide: every entry of every scope

The table-wide scans ignore which scopes are active; two unrelated scopes that
declare the same name resolve to whichever scope was created first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from rstn.rstn_types import DataType

logger = logging.getLogger(__name__)


class UseKind(Enum):
    DECLARATION = "Declaration"
    REFERENCE = "Reference"


@dataclass
class VariableKind:
    declared_type: DataType | None = None
    assigned: bool = False
    constant: bool = False

    def __str__(self) -> str:
        data_type = self.declared_type if self.declared_type is not None else "?"
        label = "Constant" if self.constant else "Variable"
        return f"{label}({data_type}{', assigned' if self.assigned else ''})"


@dataclass
class FunctionKind:
    return_type: DataType | None = None
    param_names: list[str] = field(default_factory=list)
    param_types: list[DataType] = field(default_factory=list)

    def param_type(self, name: str) -> DataType | None:
        for param, data_type in zip(self.param_names, self.param_types):
            if param == name:
                return data_type
        return None

    def __str__(self) -> str:
        params = ", ".join(
            f"{n}: {t}" for n, t in zip(self.param_names, self.param_types)
        )
        return f"Function(({params}) -> {self.return_type})"


@dataclass
class Symbol:
    """A named entry: lexeme, first-occurrence line, declaring scope, use and kind."""

    lexeme: str
    line: int
    scope_id: int
    use_kind: UseKind
    kind: VariableKind | FunctionKind

    @classmethod
    def variable(
        cls,
        lexeme: str,
        line: int,
        scope_id: int = 0,
        use_kind: UseKind = UseKind.DECLARATION,
        data_type: DataType | None = None,
        assigned: bool = False,
        constant: bool = False,
    ) -> Symbol:
        return cls(
            lexeme, line, scope_id, use_kind, VariableKind(data_type, assigned, constant)
        )

    @classmethod
    def function(
        cls,
        lexeme: str,
        line: int,
        scope_id: int = 0,
        use_kind: UseKind = UseKind.DECLARATION,
        return_type: DataType | None = None,
        param_names: list[str] | None = None,
        param_types: list[DataType] | None = None,
    ) -> Symbol:
        return cls(
            lexeme,
            line,
            scope_id,
            use_kind,
            FunctionKind(return_type, list(param_names or []), list(param_types or [])),
        )

    @property
    def is_variable(self) -> bool:
        return isinstance(self.kind, VariableKind)

    @property
    def is_function(self) -> bool:
        return isinstance(self.kind, FunctionKind)


@dataclass
class Scope:
    id: int
    parent: int | None
    symbols: dict[str, Symbol] = field(default_factory=dict)


class SymbolTable:
    """A stack of named scopes holding declared variables and functions.

    Scope 0 is the global scope. It is created with the table and is never
    popped from the active stack.

    Attributes:
        scopes (dict[int, Scope]): Every scope ever created, keyed by id.
        active (list[int]): Ids of the currently active scopes, innermost last.
    """

    GLOBAL_SCOPE = 0

    def __init__(self) -> None:
        self.scopes: dict[int, Scope] = {
            self.GLOBAL_SCOPE: Scope(self.GLOBAL_SCOPE, None)
        }
        self.active: list[int] = [self.GLOBAL_SCOPE]

    @property
    def current_scope(self) -> int:
        return self.active[-1]

    def scope(self, scope_id: int) -> Scope:
        return self.scopes[scope_id]

    def create_scope(self, scope_id: int) -> None:
        """Creates an empty scope whose parent is the innermost active scope."""
        if scope_id in self.scopes:
            return
        self.scopes[scope_id] = Scope(scope_id, self.current_scope)
        logger.debug("created scope %d (parent %d)", scope_id, self.current_scope)

    def enter_scope(self, scope_id: int) -> None:
        """Pushes an existing scope; unknown ids are ignored."""
        if scope_id not in self.scopes:
            logger.debug("enter_scope(%d) ignored: no such scope", scope_id)
            return
        self.active.append(scope_id)

    def exit_scope(self) -> None:
        if len(self.active) > 1:
            self.active.pop()

    def insert(self, symbol: Symbol) -> None:
        """Writes `symbol` into the innermost active scope, replacing any same-named entry."""
        symbol.scope_id = self.current_scope
        self.scopes[self.current_scope].symbols[symbol.lexeme] = symbol

    def lookup(self, name: str) -> Symbol | None:
        """Lexical lookup through the active scopes, innermost first."""
        for scope_id in reversed(self.active):
            symbol = self.scopes[scope_id].symbols.get(name)
            if symbol is not None:
                return symbol
        return None

    def read_symbol(self, name: str) -> Symbol | None:
        """Table-wide lookup regardless of which scopes are active."""
        for scope in self.scopes.values():
            symbol = scope.symbols.get(name)
            if symbol is not None:
                return symbol
        return None

    def get_all_symbols(self) -> list[Symbol]:
        return [s for scope in self.scopes.values() for s in scope.symbols.values()]

    def find_function(self, name: str) -> Symbol | None:
        """The first function called `name`, table-wide."""
        for symbol in self.get_all_symbols():
            if symbol.lexeme == name and isinstance(symbol.kind, FunctionKind):
                return symbol
        return None

    def get_params(self, name: str) -> list[DataType] | None:
        """Parameter types of the first function called `name`, table-wide."""
        symbol = self.find_function(name)
        if symbol is None:
            return None
        assert isinstance(symbol.kind, FunctionKind)  # for mypy
        return list(symbol.kind.param_types)

    def is_nested(self, inner: int, outer: int) -> bool:
        """True when scope `inner` is `outer` or one of its descendants."""
        current: int | None = inner
        while current is not None:
            if current == outer:
                return True
            current = self.scopes[current].parent if current in self.scopes else None
        return False

    def _find_variable(self, name: str) -> Symbol | None:
        symbol = self.lookup(name)
        if symbol is not None and symbol.is_variable:
            return symbol
        return None

    def update_var_type(self, name: str, data_type: DataType | None) -> bool:
        """Records the type of the visible variable `name`. False if there is none."""
        symbol = self._find_variable(name)
        if symbol is None:
            return False
        assert isinstance(symbol.kind, VariableKind)  # for mypy
        symbol.kind.declared_type = data_type
        return True

    def update_var_assigned(self, name: str, assigned: bool = True) -> bool:
        """Flips the assigned flag of the visible variable `name`. False if there is none."""
        symbol = self._find_variable(name)
        if symbol is None:
            return False
        assert isinstance(symbol.kind, VariableKind)  # for mypy
        symbol.kind.assigned = assigned
        return True


__all__ = [
    "FunctionKind",
    "Scope",
    "Symbol",
    "SymbolTable",
    "UseKind",
    "VariableKind",
]

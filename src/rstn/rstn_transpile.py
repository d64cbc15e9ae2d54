"""
Provides the `Transpiler` class and emitter interface for converting RSTN ASTs into code.

Classes and Features:
    - Emitter (Protocol): Interface for all backend emitters. Requires `__init__` and `get_output`.
    - Transpiler: Uses the emitter registered for the selected target ("py" or "python")
      and dispatches each top-level statement to the emitter's `emit_<kind>` method.

Example:
    >>> transpiler = Transpiler("py", table)
    >>> output_code = transpiler.transpile(program)

Raises:
    ValueError: If the target language is not supported.
    TypeError: If the program contains something other than statements.
    NotImplementedError: If the emitter lacks an `emit_*` method for a node kind.
"""

from typing import Protocol

from rstn.emitters.py_emitter import PythonEmitter
from rstn.rstn_ast import Statement
from rstn.rstn_table import SymbolTable


class Emitter(Protocol):  # pragma: no cover
    """Protocol for all RSTN language emitters.

    Methods:
        __init__(table): Initializes the emitter, optionally with the program's symbol table.
        get_output(): Returns the complete emitted code as a string.
    """

    def __init__(self, table: SymbolTable | None = None) -> None: ...  # pragma: no cover

    def get_output(self) -> str: ...  # pragma: no cover


EmitterType = type[Emitter]
"""Alias for a concrete Emitter class type."""


class Transpiler:
    """Dispatches RSTN statements to the emitter for the chosen target.

    Attributes:
        emitter (Emitter): The selected emitter instance for the output target.
    """

    def __init__(self, target: str, table: SymbolTable | None = None) -> None:
        """
        Args:
            target: The desired output language ("py" or "python", any case).
            table: Symbol table of the program, used for function annotations.

        Raises:
            ValueError: If the target language is not supported.
        """
        emitters: dict[str, EmitterType] = {
            "py": PythonEmitter,
            "python": PythonEmitter,
        }
        target = target.lower()
        if target not in emitters:
            raise ValueError(f"Unknown transpilation target: {target!r}")
        self.emitter: Emitter = emitters[target](table)

    def transpile(self, program: list[Statement]) -> str:
        """Transpiles a program into source code for the selected target.

        Raises:
            TypeError: If any element of the program is not a Statement.
        """
        if not all(isinstance(stmt, Statement) for stmt in program):
            raise TypeError("All items in the program must be Statement instances.")
        for stmt in program:
            self._visit(stmt)
        return self.emitter.get_output()

    def _visit(self, node: Statement) -> None:
        """Invokes the emitter's `emit_<kind>` method for a statement.

        Raises:
            NotImplementedError: If the emitter does not support the node kind.
        """
        method_name = f"emit_{node.kind}"
        if hasattr(self.emitter, method_name):
            getattr(self.emitter, method_name)(node)
        else:
            raise NotImplementedError(
                f"No emitter method for node kind '{node.kind}' "
                f"(line {node.line}, col {node.col})"
            )


def transpile(program: list[Statement], table: SymbolTable | None = None, target: str = "py") -> str:
    return Transpiler(target, table).transpile(program)


__all__ = ["Emitter", "Transpiler", "transpile"]

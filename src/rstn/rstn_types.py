"""Static types of the RSTN language."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DataType:
    """Base for all types. Instances are immutable and compare structurally."""


@dataclass(frozen=True)
class PrimitiveType(DataType):
    """Integer, Float, String, Boolean and the Void/Undefined sentinels."""

    name: str

    def __str__(self) -> str:
        return _PRIMITIVE_SPELLING.get(self.name, self.name)


@dataclass(frozen=True)
class ArrayType(DataType):
    """[T; N]: fixed length array of a single element type."""

    element: DataType
    size: int

    def __str__(self) -> str:
        return f"[{self.element}; {self.size}]"


@dataclass(frozen=True)
class TupleType(DataType):
    """(T1, T2, ...): positional, heterogeneous."""

    elements: tuple[DataType, ...]

    def __str__(self) -> str:
        if len(self.elements) == 1:
            return f"({self.elements[0]},)"
        return "(" + ", ".join(str(e) for e in self.elements) + ")"


@dataclass(frozen=True)
class NamedType(DataType):
    """A user type referenced by name."""

    name: str

    def __str__(self) -> str:
        return self.name


_PRIMITIVE_SPELLING = {
    "Integer": "int",
    "Float": "float",
    "String": "string",
    "Boolean": "bool",
}

INTEGER = PrimitiveType("Integer")
FLOAT = PrimitiveType("Float")
STRING = PrimitiveType("String")
BOOLEAN = PrimitiveType("Boolean")
# No coherent type: the error sentinel
VOID = PrimitiveType("Void")
# Identifier not found
UNDEFINED = PrimitiveType("Undefined")

TYPE_KEYWORDS: dict[str, DataType] = {
    "TYPE_INT": INTEGER,
    "TYPE_FLOAT": FLOAT,
    "TYPE_STRING": STRING,
    "TYPE_BOOL": BOOLEAN,
}


def is_numeric(t: DataType | None) -> bool:
    return t == INTEGER or t == FLOAT


def type_list(types: list[DataType]) -> str:
    """Renders a collected type list for diagnostics, e.g. `[int, bool]`."""
    return "[" + ", ".join(str(t) for t in types) + "]"


__all__ = [
    "ArrayType",
    "BOOLEAN",
    "DataType",
    "FLOAT",
    "INTEGER",
    "NamedType",
    "PrimitiveType",
    "STRING",
    "TYPE_KEYWORDS",
    "TupleType",
    "UNDEFINED",
    "VOID",
    "is_numeric",
    "type_list",
]

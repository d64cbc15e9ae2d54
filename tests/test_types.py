import pytest

from rstn.rstn_types import (
    BOOLEAN,
    FLOAT,
    INTEGER,
    STRING,
    TYPE_KEYWORDS,
    UNDEFINED,
    VOID,
    ArrayType,
    NamedType,
    TupleType,
    is_numeric,
    type_list,
)


@pytest.mark.parametrize(
    "data_type,text",
    [
        (INTEGER, "int"),
        (FLOAT, "float"),
        (STRING, "string"),
        (BOOLEAN, "bool"),
        (VOID, "Void"),
        (UNDEFINED, "Undefined"),
        (ArrayType(INTEGER, 3), "[int; 3]"),
        (ArrayType(ArrayType(BOOLEAN, 2), 4), "[[bool; 2]; 4]"),
        (TupleType((INTEGER, BOOLEAN)), "(int, bool)"),
        (TupleType((STRING,)), "(string,)"),
        (TupleType(()), "()"),
        (NamedType("Point"), "Point"),
    ],
)  # type: ignore[misc]
def test_type_spelling(data_type: object, text: str) -> None:
    assert str(data_type) == text


def test_structural_equality() -> None:
    assert ArrayType(INTEGER, 3) == ArrayType(INTEGER, 3)
    assert ArrayType(INTEGER, 3) != ArrayType(INTEGER, 4)
    assert ArrayType(INTEGER, 3) != ArrayType(FLOAT, 3)
    assert TupleType((INTEGER,)) != TupleType((INTEGER, INTEGER))
    assert len({INTEGER, ArrayType(INTEGER, 1), ArrayType(INTEGER, 1)}) == 2


def test_is_numeric() -> None:
    assert is_numeric(INTEGER)
    assert is_numeric(FLOAT)
    assert not is_numeric(BOOLEAN)
    assert not is_numeric(ArrayType(INTEGER, 1))
    assert not is_numeric(None)


def test_type_keywords_and_type_list() -> None:
    assert TYPE_KEYWORDS["TYPE_STRING"] == STRING
    assert type_list([INTEGER, ArrayType(FLOAT, 2)]) == "[int, [float; 2]]"
    assert type_list([]) == "[]"

# tests/test_py_emitter.py

from typing import Any

import pytest

from rstn.emitters.py_emitter import PythonEmitter, python_type
from rstn.rstn_ast import (
    Binary,
    Declaration,
    FnDeclaration,
    Identifier,
    Literal,
    Return,
    Tuple,
    TupleIndex,
    Unary,
)
from rstn.rstn_compile import compile_source
from rstn.rstn_lexer import Number
from rstn.rstn_parser import parse
from rstn.rstn_types import (
    BOOLEAN,
    FLOAT,
    INTEGER,
    STRING,
    ArrayType,
    DataType,
    NamedType,
    TupleType,
)


def emit(source: str, with_table: bool = True) -> str:
    program, table = parse(source)
    emitter = PythonEmitter(table if with_table else None)
    for stmt in program:
        emitter._visit(stmt)
    return emitter.get_output()


def test_emit_identifier() -> None:
    emitter = PythonEmitter()
    assert emitter.emit_expr(Identifier("x")) == "x"


@pytest.mark.parametrize(
    "value,expected",
    [
        (Number(42), "42"),
        (Number(2.5), "2.5"),
        ("hi", "'hi'"),
        (True, "True"),
        (False, "False"),
    ],
)  # type: ignore[misc]
def test_emit_literal(value: Any, expected: str) -> None:
    assert PythonEmitter().emit_expr(Literal(value)) == expected


def test_emit_expr_binary() -> None:
    node = Binary(Literal(Number(1)), "+", Literal(Number(2)))
    assert PythonEmitter().emit_expr(node) == "(1 + 2)"


def test_emit_expr_logical_operators() -> None:
    emitter = PythonEmitter()
    assert emitter.emit_expr(Binary(Identifier("a"), "&&", Identifier("b"))) == "(a and b)"
    assert emitter.emit_expr(Binary(Identifier("a"), "||", Identifier("b"))) == "(a or b)"
    assert emitter.emit_expr(Unary("!", Identifier("flag"))) == "(not flag)"
    assert emitter.emit_expr(Unary("-", Identifier("x"))) == "(-x)"


def test_emit_collections_and_access() -> None:
    emitter = PythonEmitter()
    assert emitter.emit_expr(Tuple([Literal(Number(1))])) == "(1,)"
    assert emitter.emit_expr(Tuple([])) == "()"
    assert emitter.emit_expr(TupleIndex(Identifier("t"), 1)) == "t[1]"
    assert emit("a[0] = [1, 2];\np.x;") == "a[0] = [1, 2]\np.x"


def test_emit_declarations() -> None:
    assert emit("let x = 1 + 2.5;") == "x = (1 + 2.5)"
    assert emit("let y;") == "y = None"
    assert emit("const N: int = 3;") == "N = 3"


def test_emit_function_with_annotations() -> None:
    source = "fn add(a: int, b: [float; 2]) -> (int, bool) { return (a, true); }"
    assert emit(source) == (
        "def add(a: int, b: list[float]) -> tuple[int, bool]:\n"
        "    return (a, True)"
    )


def test_emit_function_without_table() -> None:
    source = "fn add(a: int, b: int) -> int { return a + b; }"
    assert emit(source, with_table=False) == "def add(a, b):\n    return (a + b)"


def test_emit_if_elif_else() -> None:
    source = "if (a) { x = 1; } else if (b) { x = 2; } else { x = 3; }"
    assert emit(source) == "\n".join(
        [
            "if a:",
            "    x = 1",
            "elif b:",
            "    x = 2",
            "else:",
            "    x = 3",
        ]
    )


def test_emit_loops() -> None:
    assert emit("for (i in 0..=3) { }") == "for i in range(0, 3 + 1):\n    pass"
    assert emit("for (i in 0..n) { f(i); }") == "for i in range(0, n):\n    f(i)"
    assert emit("loop { return; }") == "while True:\n    return"


def test_emit_nested_blocks_indent() -> None:
    source = "fn f() -> int { loop { if (true) { return 1; } } }"
    assert emit(source) == "\n".join(
        [
            "def f() -> int:",
            "    while True:",
            "        if True:",
            "            return 1",
        ]
    )


def test_emitted_program_runs() -> None:
    source = """
    fn fact(n: int) -> int {
        if (n <= 1) { return 1; }
        return n * fact(n - 1);
    }
    let r = fact(5);
    let total = 0;
    for (i in 1..=4) { total = total + i; }
    let pair = (r, total > 5);
    let second = pair.1;
    """
    result = compile_source(source)
    assert result.check
    emitter = PythonEmitter(result.table)
    for stmt in result.program:
        emitter._visit(stmt)
    namespace: dict[str, Any] = {}
    exec(emitter.get_output(), namespace)  # nosec B102
    assert namespace["r"] == 120
    assert namespace["total"] == 10
    assert namespace["second"] is True


def test_functions_sharing_a_name_keep_their_own_signatures() -> None:
    source = """
    fn outer1() -> int { fn g(p: int) -> int { return p; } return g(1); }
    fn outer2() -> bool { fn g(q: bool) -> bool { return q; } return g(true); }
    let a = outer1();
    let b = outer2();
    """
    result = compile_source(source)
    assert result.check
    emitter = PythonEmitter(result.table)
    for stmt in result.program:
        emitter._visit(stmt)
    output = emitter.get_output()
    assert "    def g(p: int) -> int:\n        return p" in output
    assert "    def g(q: bool) -> bool:\n        return q" in output
    namespace: dict[str, Any] = {}
    exec(output, namespace)  # nosec B102
    assert namespace["a"] == 1
    assert namespace["b"] is True


def test_emit_declaration_node_directly() -> None:
    emitter = PythonEmitter()
    emitter.emit_declaration(Declaration("z", Literal("s")))
    emitter.emit_fn_declaration(FnDeclaration("g", [], [Return()], 1))
    assert emitter.get_output() == "z = 's'\ndef g():\n    return"


@pytest.mark.parametrize(
    "data_type,expected",
    [
        (INTEGER, "int"),
        (FLOAT, "float"),
        (STRING, "str"),
        (BOOLEAN, "bool"),
        (ArrayType(INTEGER, 3), "list[int]"),
        (TupleType((INTEGER, STRING)), "tuple[int, str]"),
        (TupleType(()), "tuple[()]"),
        (NamedType("Point"), "Point"),
    ],
)  # type: ignore[misc]
def test_python_type(data_type: DataType, expected: str) -> None:
    assert python_type(data_type) == expected


def test_python_type_rejects_unknown() -> None:
    with pytest.raises(TypeError):
        python_type(DataType())


def test_unknown_kinds_raise() -> None:
    weird = type("Weird", (), {"kind": "weird"})()
    emitter = PythonEmitter()
    with pytest.raises(NotImplementedError, match="No expression emitter for kind 'weird'"):
        emitter.emit_expr(weird)
    with pytest.raises(NotImplementedError, match="PythonEmitter: no emitter for weird"):
        emitter._visit(weird)

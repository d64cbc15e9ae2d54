import pytest

from rstn.rstn_ast import Binary, FnCall, Identifier, Literal, Range, Tuple, Unary
from rstn.rstn_compile import compile_source
from rstn.rstn_lexer import Number, tokenize
from rstn.rstn_parser import parse
from rstn.rstn_tree import display_tree, format_expression, format_symbols, format_tokens


def tree_of(source: str) -> str:
    program, _ = parse(source)
    return display_tree(program)


def test_declaration_tree() -> None:
    assert tree_of("let x = 1 + 2.5;") == "\n".join(
        [
            "Program",
            "└── Declaration: x",
            "    └── Binary: +",
            "        ├── Literal: 1",
            "        └── Literal: 2.5",
        ]
    )


def test_sibling_statements_and_labels() -> None:
    assert tree_of('const N: int = 3;\nlet s: string;\n"hi";') == "\n".join(
        [
            "Program",
            "├── Declaration: const N: int",
            "│   └── Literal: 3",
            "├── Declaration: s: string",
            "└── Expression Statement",
            '    └── Literal: "hi"',
        ]
    )


def test_if_else_tree() -> None:
    assert tree_of("if (a) { x = 1; } else { x = 2; }") == "\n".join(
        [
            "Program",
            "└── If [scope 1]",
            "    ├── Identifier: a",
            "    ├── Body",
            "    │   └── Assignment",
            "    │       ├── Identifier: x",
            "    │       └── Literal: 1",
            "    └── Else [scope 1]",
            "        └── Assignment",
            "            ├── Identifier: x",
            "            └── Literal: 2",
        ]
    )


def test_function_and_for_tree() -> None:
    source = "fn f(a: int) -> int { return a; }\nfor (i in 0..=3) { }"
    assert tree_of(source) == "\n".join(
        [
            "Program",
            "├── Function Declaration: f(a) [scope 1]",
            "│   └── Return",
            "│       └── Identifier: a",
            "└── For: i [scope 2]",
            "    ├── Range (inclusive)",
            "    │   ├── Literal: 0",
            "    │   └── Literal: 3",
            "    └── Body",
        ]
    )


def test_access_and_collection_labels() -> None:
    tree = tree_of("let v = (t.0, p.x, a[1], f(true), [2], -y);\nloop { }")
    for label in [
        "Tuple",
        "Tuple Index: 0",
        "Member Access: x",
        "Index",
        "Function Call: f",
        "Literal: true",
        "Array",
        "Unary: -",
        "Loop [scope 1]",
    ]:
        assert label in tree


def test_empty_program() -> None:
    assert display_tree([]) == "Program"


@pytest.mark.parametrize(
    "source,expected",
    [
        ("(a + b) * c", "(a + b) * c"),
        ("a - (b - c)", "a - (b - c)"),
        ("a - b - c", "a - b - c"),
        ("a || b && c", "a || b && c"),
        ("(a || b) && c", "(a || b) && c"),
        ("-(a + b)", "-(a + b)"),
        ("!done", "!done"),
        ("(1,)", "(1,)"),
        ("()", "()"),
        ('"hi"', '"hi"'),
        ("0..=n", "0..=n"),
        ("f(1, x)", "f(1, x)"),
        ("t.0.1", "t.0.1"),
        ("m[i][j].k", "m[i][j].k"),
        ("[1.5, 2.0]", "[1.5, 2.0]"),
    ],
)  # type: ignore[misc]
def test_format_expression(source: str, expected: str) -> None:
    (stmt,) = parse(f"let v = {source};")[0]
    assert format_expression(stmt.init) == expected


def test_format_expression_parenthesizes_ranges() -> None:
    expr = Binary(Range(Literal(Number(0)), Literal(Number(2))), "+", Literal(Number(1)))
    assert format_expression(expr) == "(0..2) + 1"
    assert format_expression(Unary("-", Range(Identifier("a"), Identifier("b")))) == "-(a..b)"
    assert format_expression(FnCall("g", [Tuple([])])) == "g(())"


def test_format_symbols() -> None:
    result = compile_source("let x = 1 + 2.5;\nfn f(a: int) -> bool { return a > 1; }")
    text = format_symbols(result.table)
    lines = text.splitlines()
    assert lines[0] == f"{'Name':<20} | {'Scope':<6} | {'Use':<12} | Kind"
    assert f"{'x':<20} | {0:<6} | {'Declaration':<12} | Variable(float, assigned)" in lines
    assert (
        f"{'f':<20} | {0:<6} | {'Declaration':<12} | Function((a: int) -> bool)" in lines
    )


def test_format_tokens_sorted_by_tag_then_position() -> None:
    text = format_tokens(tokenize("let x = 1;\nlet y = 2;"))
    rows = text.splitlines()[2:]
    assert [row.split("|")[0].strip() for row in rows] == [
        "ASSIGN",
        "ASSIGN",
        "IDENT",
        "IDENT",
        "LET",
        "LET",
        "NUMBER",
        "NUMBER",
        "SEMICOLON",
        "SEMICOLON",
    ]
    assert rows[0] == f"{'ASSIGN':<12} | {'=':<20} | 1:7"
    assert rows[1].endswith("2:7")
    assert "EOF" not in text

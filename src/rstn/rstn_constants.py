"""
Token tables shared by the RSTN lexer and parser.

Exports:
    token_hashmap: Maps every fixed lexeme (keywords, type names, punctuation and
        operators) to its canonical token tag.
    KEYWORDS: The subset of `token_hashmap` made of reserved words.
    OPERAND_END_TOKENS: Tags after which a `-` is a binary operator rather than
        the sign of a numeric literal.
    Operator groups used by the parser's precedence levels.
"""

KEYWORDS: dict[str, str] = {
    "fn": "FN",
    "if": "IF",
    "else": "ELSE",
    "for": "FOR",
    "in": "IN",
    "loop": "LOOP",
    "let": "LET",
    "const": "CONST",
    "return": "RETURN",
    "true": "TRUE",
    "false": "FALSE",
    "int": "TYPE_INT",
    "float": "TYPE_FLOAT",
    "string": "TYPE_STRING",
    "bool": "TYPE_BOOL",
}

SYMBOLS: dict[str, str] = {
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACK",
    "]": "RBRACK",
    ",": "COMMA",
    ";": "SEMICOLON",
    ":": "COLON",
    ".": "DOT",
    "+": "PLUS",
    "-": "SUB",
    "*": "MULT",
    "/": "DIV",
    "%": "MOD",
    "**": "POW",
    "!": "NOT",
    "&&": "AND",
    "||": "OR",
    "==": "EQ",
    "!=": "NE",
    "<": "LT",
    "<=": "LE",
    ">": "GT",
    ">=": "GE",
    "=": "ASSIGN",
    "->": "ARROW",
    "..": "RANGE",
    "..=": "RANGE_INCL",
}

token_hashmap: dict[str, str] = {**KEYWORDS, **SYMBOLS}

# Longest fixed lexeme; bounds the operator lookahead.
MAX_SYMBOL_LENGTH = max(len(k) for k in SYMBOLS)

LITERAL_TOKENS = {"NUMBER", "FLOAT", "STRING", "TRUE", "FALSE"}

OPERAND_END_TOKENS = LITERAL_TOKENS | {"IDENT", "RPAREN", "RBRACK"}

TYPE_TOKENS = {"TYPE_INT", "TYPE_FLOAT", "TYPE_STRING", "TYPE_BOOL"}

# Binary operator groups, lowest precedence first.
LOGICAL_OR_OPS = {"OR"}
LOGICAL_AND_OPS = {"AND"}
COMPARISON_OPS = {"LT", "GT", "LE", "GE", "EQ", "NE"}
ADDITIVE_OPS = {"PLUS", "SUB"}
MULTIPLICATIVE_OPS = {"MULT", "DIV", "MOD"}
EXPONENT_OPS = {"POW"}
UNARY_OPS = {"SUB", "NOT"}

# Operator lexemes as stored in Binary/Unary nodes.
ARITHMETIC_OPERATORS = {"+", "-", "*", "/", "%", "**"}
LOGICAL_OPERATORS = {"&&", "||"}
COMPARISON_OPERATORS = {"<", ">", "<=", ">=", "==", "!="}

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

__all__ = [
    "ADDITIVE_OPS",
    "ARITHMETIC_OPERATORS",
    "COMPARISON_OPERATORS",
    "COMPARISON_OPS",
    "EXPONENT_OPS",
    "INT32_MAX",
    "INT32_MIN",
    "KEYWORDS",
    "LITERAL_TOKENS",
    "LOGICAL_AND_OPS",
    "LOGICAL_OPERATORS",
    "LOGICAL_OR_OPS",
    "MAX_SYMBOL_LENGTH",
    "MULTIPLICATIVE_OPS",
    "OPERAND_END_TOKENS",
    "SYMBOLS",
    "TYPE_TOKENS",
    "UNARY_OPS",
    "token_hashmap",
]

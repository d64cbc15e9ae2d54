"""
RSTN CLI Entrypoint.

This module provides the command-line interface for the RSTN front end.

Features:
    - Read source from `.rstn` files or inline strings.
    - Show the token table, the syntax tree with its symbol table, or the
      semantic check result.
    - Compile, type check and transpile to Python.
    - Output to console or file, and optionally execute the generated Python.

Example usage:
    rstn hello.rstn
    rstn hello.rstn --tokens
    rstn hello.rstn --tree
    rstn hello.rstn --check --collect-all
    rstn -s "let x = 1 + 2.5;" -e
    rstn myfile.rstn -o myfile.py -v

Functions:
    run_rstn(source, ...) -> int:
        Executes the selected pipeline and returns the process exit status.

    main() -> None:
        Parses CLI arguments, configures logging and invokes `run_rstn`.
"""

import argparse
import io
import logging
import sys

from rstn.rstn_compile import compile_source
from rstn.rstn_lexer import CharacterStream, Lexer, tokenize
from rstn.rstn_parser import Parser
from rstn.rstn_transpile import Transpiler
from rstn.rstn_tree import display_tree, format_symbols, format_tokens

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def run_rstn(
    source: str,
    is_string: bool = False,
    out: str | None = None,
    execute: bool = False,
    pretty: bool = False,
    tokens: bool = False,
    tree: bool = False,
    check: bool = False,
    collect_all: bool = False,
) -> int:
    """
    Run the RSTN toolchain on a file or a source string.

    Args:
        source (str): The RSTN source code or path to a `.rstn` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        out (str | None): Optional path to write the generated Python to.
        execute (bool): If True, executes the generated Python code.
        pretty (bool): If True, prints formatted banners around the output.
        tokens (bool): Only print the token table.
        tree (bool): Only parse, then print the syntax tree and the symbol table.
        check (bool): Only type check, then print the symbol table.
        collect_all (bool): Report every semantic error instead of the first.

    Returns:
        int: 0 on success, 1 when the source has lexical, syntax or type errors.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.rstn'.
    """
    if not is_string and not source.endswith(".rstn"):
        raise ValueError("Only .rstn files are supported.")
    if not is_string:
        with open(source, encoding="utf-8") as f:
            source = f.read()

    try:
        if tokens:
            print(format_tokens(tokenize(source)))
            return 0

        if tree:
            parser = Parser(Lexer(CharacterStream(source)))
            program = parser.parse()
            print(display_tree(program))
            print()
            print(format_symbols(parser.table))
            return 0

        result = compile_source(source, collect_all=collect_all)
    except SyntaxError as e:
        print(f"Syntax Error: {e}", file=sys.stderr)
        return 1

    for diagnostic in result.check.diagnostics:
        print(diagnostic, file=sys.stderr)

    if check:
        if result.check:
            print("Success: Type checking passed")
        print(format_symbols(result.table))
        return 0 if result.check else 1

    if not result.check:
        return 1

    code = Transpiler("py", result.table).transpile(result.program)

    if pretty:
        banner = "=" * 20
        print(f"{banner}\nTranspiled Python\n{banner}\n{code}\n{banner}\n")
    elif not out:
        print(code)

    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(code)
        logger.info("wrote %s", out)
        if pretty:
            print(f"(wrote to {out})")

    if execute:
        buf = io.StringIO()
        old_stdout = sys.stdout
        try:
            sys.stdout = buf
            exec(code, {"__name__": "__rstn__"})  # nosec B102
        finally:
            sys.stdout = old_stdout
        if pretty:
            print("<<< OUTPUT >>>")
        print(buf.getvalue().rstrip())
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rstn", description="Compile and type check RSTN programs."
    )
    parser.add_argument("source", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--tokens", action="store_true", help="Print the token table")
    mode.add_argument(
        "--tree", action="store_true", help="Print the syntax tree and symbol table"
    )
    mode.add_argument(
        "--check", action="store_true", help="Type check and print the symbol table"
    )
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "-e",
        "--exec",
        dest="execute",
        action="store_true",
        help="Exec transpiled Python code",
    )
    parser.add_argument(
        "-p", "--pretty", action="store_true", help="Show code/output with banners"
    )
    parser.add_argument(
        "--collect-all",
        action="store_true",
        help="Report every type error instead of stopping at the first",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        type=str.upper,
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Shorthand for --log-level DEBUG"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the RSTN CLI.

    Exits with status 1 when the source is rejected.
    """
    args = build_arg_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose else getattr(logging, args.log_level)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        status = run_rstn(
            source=args.source,
            is_string=args.string,
            out=args.out,
            execute=args.execute,
            pretty=args.pretty,
            tokens=args.tokens,
            tree=args.tree,
            check=args.check,
            collect_all=args.collect_all,
        )
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        status = 1
    if status:
        sys.exit(status)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()

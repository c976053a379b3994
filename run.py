"""
FoxLang File Runner
===================
Execute FoxLang source files from the command line.

Usage:
    python run.py                          # run the built-in sample
    python run.py examples/saludar.prg
    python run.py examples/closures.prg --ast
    python run.py script.prg -D name=Felipe -D count=3 -v
"""
import argparse
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from foxlang.environment import Environment
from foxlang.errors import FoxError
from foxlang.interpreter import DEFAULT_MAX_CALL_DEPTH, Interpreter
from foxlang.parser import DEFAULT_MAX_DEPTH, Parser
from foxlang.lexer import Lexer
from foxlang.printer import format_source
from foxlang.values import format_value


SAMPLE_SOURCE = """
FUNCTION SALUDAR()
    LPARAMETERS tcNombre, tcProfesion
    RETURN 'Hola ' + tcNombre + '!, Felicidades por ser un gran ' + tcProfesion
ENDFUNC
SALUDAR('FELIPE', 'ALBAÑIL')
"""

DEFAULT_GLOBALS = {
    "version": "1.0",
    "author": "Irwin Rodríguez <rodriguez.irwin@gmail.com>",
}


def parse_binding(text: str) -> tuple[str, object]:
    """Parse a -D name=value option. Integers become Integer values."""
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Expected name=value, got {text!r}")
    try:
        return name, int(value)
    except ValueError:
        return name, value


def create_global_environment(extra: dict | None = None) -> Environment:
    """Build the root scope seeded with the host-provided bindings."""
    bindings = dict(DEFAULT_GLOBALS)
    bindings.update(extra or {})
    return Environment(bindings)


def run_source(source: str, env: Environment | None = None, show_ast: bool = False,
               max_depth: int = DEFAULT_MAX_DEPTH,
               max_call_depth: int = DEFAULT_MAX_CALL_DEPTH) -> int:
    """
    Parse and evaluate FoxLang source, printing the result.

    Returns:
        0 on success, 1 on error
    """
    env = env if env is not None else create_global_environment()
    try:
        ast = Parser(Lexer(source), max_depth=max_depth).parse()

        if show_ast:
            print(format_source(ast), end="")

        interp = Interpreter(env, max_call_depth=max_call_depth)
        result = interp.evaluate(ast)
        print(format_value(result))
        return 0

    except FoxError as e:
        print(f"⚠ {e.kind}: {e}")
        return 1


def run_file(filepath: str, **options) -> int:
    """Execute a FoxLang source file."""
    if not os.path.exists(filepath):
        print(f"Error: File not found: {filepath}")
        return 1

    with open(filepath, "r", encoding="utf-8") as f:
        source = f.read()

    return run_source(source, **options)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run a FoxLang script (the built-in sample when no file is given).",
    )
    parser.add_argument("file", nargs="?", help="FoxLang source file (.prg)")
    parser.add_argument("--ast", action="store_true",
                        help="print the parsed program before running it")
    parser.add_argument("-D", "--define", action="append", type=parse_binding,
                        default=[], metavar="NAME=VALUE",
                        help="add a global binding (repeatable)")
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH,
                        help="maximum nesting depth accepted by the parser")
    parser.add_argument("--max-call-depth", type=int, default=DEFAULT_MAX_CALL_DEPTH,
                        help="maximum function call depth")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log interpreter activity to stderr")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    options = {
        "env": create_global_environment(dict(args.define)),
        "show_ast": args.ast,
        "max_depth": args.max_depth,
        "max_call_depth": args.max_call_depth,
    }
    if args.file:
        return run_file(args.file, **options)
    return run_source(SAMPLE_SOURCE, **options)


if __name__ == "__main__":
    sys.exit(main())

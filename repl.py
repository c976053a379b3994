"""
FoxLang REPL
============
Interactive Read-Eval-Print Loop for FoxLang.
Bindings and functions persist between inputs.
"""
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from foxlang.errors import FoxError
from foxlang.interpreter import Interpreter
from foxlang.parser import parse
from foxlang.values import format_value
from run import create_global_environment


BANNER = r"""
  FoxLang REPL
  Type 'help' for a language reference, 'exit' or Ctrl+C to quit.
  End a line with ';;' to keep typing a multi-line block.
"""

HELP_TEXT = """
  LOCAL a AS NUMBER, b = 'x'      declare in the current scope
  PUBLIC g = 1                    declare in the global scope
  IF a > 1 THEN ... ELSE ... ENDIF
  FUNCTION add(x, y) ... ENDFUNC  or  FUNCTION add / LPARAMETERS x, y
  RETURN expr
  .T.  .F.  .NULL.  AND  OR  !

Commands: help, env, clear, exit
"""


def read_source(first_line: str) -> str:
    """Collect continuation lines while the input ends with ';;'."""
    lines = [first_line]
    while lines[-1].rstrip().endswith(";;"):
        lines[-1] = lines[-1].rstrip()[:-2]
        lines.append(input("  ...  "))
    return "\n".join(lines)


def run_repl():
    """Run the interactive FoxLang REPL."""
    print(BANNER)

    env = create_global_environment()
    interp = Interpreter(env)

    while True:
        try:
            line = input("  fox> ")
        except (EOFError, KeyboardInterrupt):
            print("\n  Goodbye.")
            break

        line = line.strip()
        if not line:
            continue

        command = line.lower()
        if command in ("exit", "quit"):
            print("  Goodbye.")
            break

        if command == "help":
            print(HELP_TEXT)
            continue

        if command == "env":
            for name in sorted(env.names()):
                print(f"    {name} = {format_value(env.lookup(name))}")
            continue

        if command == "clear":
            env = create_global_environment()
            interp = Interpreter(env)
            print("  State cleared.")
            continue

        try:
            source = read_source(line)
            result = interp.evaluate(parse(source))
            if result is not None:
                print(f"  => {format_value(result)}")
        except (EOFError, KeyboardInterrupt):
            print()
        except FoxError as e:
            print(f"  ⚠ {e.kind}: {e}")


if __name__ == "__main__":
    run_repl()

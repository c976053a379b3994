"""
FoxLang Errors
==============
Every failure raised by the lexer, parser and interpreter derives from
FoxError, so a host can report any of them with a single except clause.

    FoxError
    ├── FoxSyntaxError        (also a builtin SyntaxError)
    │   └── LexicalError
    └── FoxRuntimeError
        ├── UndefinedVariable
        ├── TypeMismatch
        ├── NotCallable
        ├── ArityMismatch
        ├── DivisionByZero
        ├── UnsupportedNode
        └── ResourceExhausted
"""


class FoxError(Exception):
    """Base class for all FoxLang errors."""

    kind = "Error"


class FoxSyntaxError(FoxError, SyntaxError):
    """The token stream does not match the grammar."""

    kind = "Syntax Error"


class LexicalError(FoxSyntaxError):
    """No tokenizer rule matches the remaining input."""

    kind = "Lexical Error"


class FoxRuntimeError(FoxError):
    """Runtime error during FoxLang evaluation."""

    kind = "Runtime Error"


class UndefinedVariable(FoxRuntimeError):
    kind = "Undefined Variable"

    def __init__(self, name: str):
        super().__init__(f"Variable '{name}' is not defined.")
        self.name = name


class TypeMismatch(FoxRuntimeError):
    kind = "Type Mismatch"


class NotCallable(FoxRuntimeError):
    kind = "Not Callable"


class ArityMismatch(FoxRuntimeError):
    kind = "Arity Mismatch"


class DivisionByZero(FoxRuntimeError):
    kind = "Division By Zero"


class UnsupportedNode(FoxRuntimeError):
    """A parsed construct that has no evaluation semantics yet."""

    kind = "Unsupported"


class ResourceExhausted(FoxRuntimeError):
    """Recursion went deeper than the configured guard allows."""

    kind = "Resource Exhausted"

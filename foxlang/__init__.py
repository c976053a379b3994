"""
FoxLang: a small FoxPro-flavoured scripting language.
Lexer, recursive-descent parser and tree-walking interpreter.
"""
import logging

from .errors import (
    FoxError, FoxSyntaxError, LexicalError, FoxRuntimeError,
    UndefinedVariable, TypeMismatch, NotCallable, ArityMismatch,
    DivisionByZero, UnsupportedNode, ResourceExhausted,
)
from .lexer import Lexer, Token, TokenType
from .parser import Parser, ASTNode, ProgramNode, parse
from .environment import Environment
from .values import Closure, format_value, type_name
from .interpreter import Interpreter, Completion, evaluate, run
from .printer import format_source

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "FoxError", "FoxSyntaxError", "LexicalError", "FoxRuntimeError",
    "UndefinedVariable", "TypeMismatch", "NotCallable", "ArityMismatch",
    "DivisionByZero", "UnsupportedNode", "ResourceExhausted",
    "Lexer", "Token", "TokenType",
    "Parser", "ASTNode", "ProgramNode", "parse",
    "Environment",
    "Closure", "format_value", "type_name",
    "Interpreter", "Completion", "evaluate", "run",
    "format_source",
]

"""
FoxLang Runtime Values
======================
Runtime values map onto Python values:

    Null    → None
    Boolean → bool
    Integer → int
    String  → str
    Closure → Closure (below)

bool is a subclass of int in Python, so Boolean must always be tested
before Integer.
"""
from dataclasses import dataclass
from typing import Any

from .environment import Environment
from .parser import FunctionStatementNode


@dataclass(frozen=True, eq=False)
class Closure:
    """A function value: its declaration plus the scope it was declared in."""
    function: FunctionStatementNode
    env: Environment

    @property
    def name(self) -> str:
        return self.function.name.name

    @property
    def params(self) -> list[str]:
        return [p.name.lower() for p in self.function.params]

    def __repr__(self) -> str:
        return f"Closure({self.name}({', '.join(self.params)}))"


def type_name(value: Any) -> str:
    """The FoxLang type name of a runtime value."""
    if value is None:
        return "Null"
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, int):
        return "Integer"
    if isinstance(value, str):
        return "String"
    if isinstance(value, Closure):
        return "Closure"
    return type(value).__name__


def is_truthy(value: Any) -> bool:
    """Null and .F. are falsy; everything else, 0 and "" included, is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def string_hash(text: str) -> int:
    """Deterministic signed 32-bit hash over UTF-16 code units (s[0]*31^(n-1) + ...).

    String ordering operators compare these codes instead of the text, so
    "ab" < "b" is false even though "ab" sorts first lexicographically.
    """
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (31 * h + unit) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def format_value(value: Any) -> str:
    """Format a value for display."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return ".T." if value else ".F."
    if isinstance(value, Closure):
        return f"<function {value.name}>"
    return str(value)

"""
FoxLang Environment
===================
A chain of scopes used for lexical name resolution.

Every scope holds its own bindings and an optional parent. Closures keep a
reference to the scope they were defined in, so a parent may be shared by
several children and lives as long as any of them.

Identifiers are case-insensitive: every operation lowercases the name
before it touches the bindings table.
"""
from typing import Any, Iterator

from .errors import UndefinedVariable


class Environment:
    """
    One scope in the environment chain.

    Usage:
        root = Environment({"version": "1.0"})
        child = Environment(parent=root)
        child.lookup("VERSION")   # → "1.0"
    """

    def __init__(self, bindings: dict[str, Any] | None = None,
                 parent: "Environment | None" = None):
        self.bindings: dict[str, Any] = {}
        self.parent = parent
        for name, value in (bindings or {}).items():
            self.define(name, value)

    def define(self, name: str, value: Any) -> Any:
        """Create or overwrite a binding in this scope only."""
        self.bindings[name.lower()] = value
        return value

    def lookup(self, name: str) -> Any:
        """Return the value bound to name in the nearest enclosing scope."""
        key = name.lower()
        env = self.resolve(key)
        if env is None:
            raise UndefinedVariable(key)
        return env.bindings[key]

    def assign(self, name: str, value: Any) -> Any:
        """Update the owning scope's binding, or define it here if none owns it."""
        key = name.lower()
        env = self.resolve(key)
        if env is None:
            return self.define(key, value)
        env.bindings[key] = value
        return value

    def resolve(self, name: str) -> "Environment | None":
        """Return the scope that binds name, or None."""
        key = name.lower()
        env: Environment | None = self
        while env is not None:
            if key in env.bindings:
                return env
            env = env.parent
        return None

    def child(self) -> "Environment":
        """Create an empty scope whose parent is this one."""
        return Environment(parent=self)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def root(self) -> "Environment":
        env = self
        while env.parent is not None:
            env = env.parent
        return env

    def names(self) -> Iterator[str]:
        """Names bound directly in this scope."""
        return iter(self.bindings)

    def __contains__(self, name: str) -> bool:
        return self.resolve(name) is not None

    def __repr__(self) -> str:
        depth = 0
        env = self.parent
        while env is not None:
            depth += 1
            env = env.parent
        return f"Environment({sorted(self.bindings)}, depth={depth})"

"""
FoxLang Interpreter
===================
Tree-walking interpreter that evaluates the AST produced by the Parser.

Expressions evaluate to plain runtime values. Statements produce a
Completion: either a normal result or a RETURN in progress. Blocks stop at
the first returning completion and hand it upward unchanged; a function call
is the only place that turns a returning completion back into a value, so a
RETURN never escapes the function it was executed in.

Scoping is lexical: a closure's body runs in a fresh child of the scope the
FUNCTION statement was executed in, never in the caller's scope.
"""
import logging
import operator
from dataclasses import dataclass
from typing import Any, Callable

from .environment import Environment
from .errors import (
    ArityMismatch, DivisionByZero, FoxRuntimeError, NotCallable,
    ResourceExhausted, TypeMismatch, UnsupportedNode,
)
from .parser import (
    ASTNode, ProgramNode, BlockStatementNode, ExpressionStatementNode,
    VariableStatementNode, VariableDeclarationNode, ReturnStatementNode,
    IfStatementNode, FunctionStatementNode, IdentifierNode,
    NumericLiteralNode, StringLiteralNode, BooleanLiteralNode, NullLiteralNode,
    UnaryExpressionNode, BinaryExpressionNode, LogicalExpressionNode,
    AssignmentExpressionNode, CallExpressionNode, MemberExpressionNode,
    parse,
)
from .values import Closure, is_truthy, string_hash, type_name

logger = logging.getLogger(__name__)

DEFAULT_MAX_CALL_DEPTH = 100

# Longest string a repeat may build
MAX_STRING_LENGTH = 10_000_000

# Default values for `LOCAL x AS <type>` without an initializer
TYPE_DEFAULTS: dict[str, Any] = {
    "string": "",
    "number": 0,
    "boolean": False,
}

COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class Completion:
    """Outcome of executing a statement."""
    value: Any = None
    returning: bool = False


def _truncating_divide(left: int, right: int) -> int:
    if right == 0:
        raise DivisionByZero("Division by zero.")
    quotient = abs(left) // abs(right)
    return quotient if (left >= 0) == (right >= 0) else -quotient


def _repeat(text: str, count: int) -> str:
    if count < 0:
        raise TypeMismatch(f"String repeat count must not be negative, got: {count}")
    if count > MAX_STRING_LENGTH or len(text) * count > MAX_STRING_LENGTH:
        raise ResourceExhausted(
            f"String repeat would exceed {MAX_STRING_LENGTH} characters"
        )
    return text * count


INTEGER_ARITHMETIC: dict[str, Callable[[int, int], int]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": _truncating_divide,
}


class Interpreter:
    """
    Tree-walking interpreter for FoxLang programs.

    Usage:
        interp = Interpreter()
        result = interp.evaluate(parse(source), Environment({"version": "1.0"}))

    PUBLIC declarations always land in the root of the environment chain
    they are executed in, so the root passed to evaluate() is the global
    scope for that session.
    """

    def __init__(self, globals_env: Environment | None = None,
                 max_call_depth: int = DEFAULT_MAX_CALL_DEPTH):
        self.globals = globals_env if globals_env is not None else Environment()
        self.max_call_depth = max_call_depth
        self.call_depth = 0

    def evaluate(self, node: ASTNode, env: Environment | None = None) -> Any:
        """Evaluate a program (or any single node) and return its value."""
        if env is None:
            env = self.globals
        try:
            if hasattr(self, f"_exec_{node.node_type.lower()}"):
                return self.execute(node, env).value
            return self.eval(node, env)
        except RecursionError:
            raise ResourceExhausted(
                "Maximum recursion depth exceeded while evaluating"
            ) from None

    def execute(self, node: ASTNode, env: Environment) -> Completion:
        """Execute a statement node."""
        executor = getattr(self, f"_exec_{node.node_type.lower()}", None)
        if executor is None:
            raise UnsupportedNode(f"Unknown statement type: {node.node_type}")
        return executor(node, env)

    def eval(self, node: ASTNode, env: Environment) -> Any:
        """Evaluate an expression node to a runtime value."""
        evaluator = getattr(self, f"_eval_{node.node_type.lower()}", None)
        if evaluator is None:
            raise UnsupportedNode(
                f"{node.node_type} has no evaluation semantics (L{node.line}:{node.col})"
            )
        return evaluator(node, env)

    # ─────────────────────────────────────────────────────────
    #  Program & Statements
    # ─────────────────────────────────────────────────────────

    def _execute_statements(self, statements, env: Environment) -> Completion:
        completion = Completion()
        for stmt in statements:
            completion = self.execute(stmt, env)
            if completion.returning:
                return completion
        return completion

    def _exec_program(self, node: ProgramNode, env: Environment) -> Completion:
        return self._execute_statements(node.statements, env)

    def _exec_blockstatement(self, node: BlockStatementNode, env: Environment) -> Completion:
        return self._execute_statements(node.statements, env)

    def _exec_expressionstatement(self, node: ExpressionStatementNode,
                                  env: Environment) -> Completion:
        return Completion(self.eval(node.expression, env))

    def _exec_returnstatement(self, node: ReturnStatementNode, env: Environment) -> Completion:
        value = None
        if node.argument is not None:
            value = self.eval(node.argument, env)
        return Completion(value, returning=True)

    def _exec_ifstatement(self, node: IfStatementNode, env: Environment) -> Completion:
        if is_truthy(self.eval(node.test, env)):
            return self.execute(node.consequent, env)
        if node.alternate is not None:
            return self.execute(node.alternate, env)
        return Completion()

    def _exec_functionstatement(self, node: FunctionStatementNode,
                                env: Environment) -> Completion:
        env.define(node.name.name, Closure(node, env))
        return Completion()

    def _exec_variablestatement(self, node: VariableStatementNode,
                                env: Environment) -> Completion:
        target = env.root() if node.scope == "public" else env
        for declaration in node.declarations:
            value = self._declaration_value(declaration, target, env)
            target.define(declaration.name.name, value)
        return Completion()

    def _declaration_value(self, node: VariableDeclarationNode,
                           target: Environment, env: Environment) -> Any:
        """Initial value of one declaration.

        The initializer is evaluated in the target scope first; if that
        fails it is evaluated once more in the declaring scope.
        """
        if node.initializer is not None:
            if target is env:
                return self.eval(node.initializer, env)
            try:
                return self.eval(node.initializer, target)
            except ResourceExhausted:
                raise
            except FoxRuntimeError as exc:
                logger.debug(
                    "Initializer of '%s' failed in the global scope (%s); "
                    "retrying in the local scope", node.name.name, exc,
                )
                return self.eval(node.initializer, env)

        if node.type_name is not None:
            return TYPE_DEFAULTS.get(node.type_name.name.lower())
        return None

    # ─────────────────────────────────────────────────────────
    #  Literals & Identifiers
    # ─────────────────────────────────────────────────────────

    def _eval_numericliteral(self, node: NumericLiteralNode, env: Environment) -> int:
        return node.value

    def _eval_stringliteral(self, node: StringLiteralNode, env: Environment) -> str:
        return node.value

    def _eval_booleanliteral(self, node: BooleanLiteralNode, env: Environment) -> bool:
        return node.value

    def _eval_nullliteral(self, node: NullLiteralNode, env: Environment) -> None:
        return None

    def _eval_identifier(self, node: IdentifierNode, env: Environment) -> Any:
        return env.lookup(node.name)

    # ─────────────────────────────────────────────────────────
    #  Operators
    # ─────────────────────────────────────────────────────────

    def _eval_unaryexpression(self, node: UnaryExpressionNode, env: Environment) -> Any:
        value = self.eval(node.argument, env)
        op = node.operator
        if op in ("+", "-"):
            if isinstance(value, int) and not isinstance(value, bool):
                return -value if op == "-" else value
        elif op == "!":
            if isinstance(value, bool):
                return not value
        raise TypeMismatch(
            f"Operand must be a number for the '{op}' operator, got: {type_name(value)}"
        )

    def _eval_logicalexpression(self, node: LogicalExpressionNode, env: Environment) -> Any:
        left = self.eval(node.left, env)
        if not isinstance(left, bool):
            raise TypeMismatch(
                f"Operand must be a boolean for the '{node.operator}' operator, "
                f"got: {type_name(left)}"
            )
        if node.operator == "or" and left:
            return left
        if node.operator == "and" and not left:
            return left
        return self.eval(node.right, env)

    def _eval_binaryexpression(self, node: BinaryExpressionNode, env: Environment) -> Any:
        left = self.eval(node.left, env)
        right = self.eval(node.right, env)
        return self.apply_binary(node.operator, left, right)

    def apply_binary(self, op: str, left: Any, right: Any) -> Any:
        """Apply a binary operator according to the runtime types of both operands."""
        left_type, right_type = type_name(left), type_name(right)

        match (left_type, right_type):
            case ("Integer", "Integer"):
                if op in INTEGER_ARITHMETIC:
                    return INTEGER_ARITHMETIC[op](left, right)
                if op in COMPARISONS:
                    return COMPARISONS[op](left, right)
            case ("Boolean", "Boolean"):
                a, b = int(left), int(right)
                if op == "*":
                    return a * b == 1
                if op in COMPARISONS:
                    return COMPARISONS[op](a, b)
            case ("String", "String"):
                if op in ("+", "-"):
                    return left + right
                if op in ("==", "!="):
                    return COMPARISONS[op](left, right)
                if op in COMPARISONS:
                    # Ordered by hash code, not lexicographically
                    return COMPARISONS[op](string_hash(left), string_hash(right))
            case ("String", "Integer"):
                if op == "*":
                    return _repeat(left, right)

        raise TypeMismatch(
            f"Invalid operands for the '{op}' operator: {left_type}, {right_type}."
        )

    def _eval_assignmentexpression(self, node: AssignmentExpressionNode,
                                   env: Environment) -> Any:
        if not isinstance(node.target, IdentifierNode):
            raise UnsupportedNode(
                f"Assignment to {node.target.node_type} is not supported "
                f"(L{node.line}:{node.col})"
            )
        value = self.eval(node.value, env)
        if node.operator != "=":
            # Compound assignment: x += y is x = x + y
            value = self.apply_binary(node.operator[0], env.lookup(node.target.name), value)
        return env.assign(node.target.name, value)

    # ─────────────────────────────────────────────────────────
    #  Calls
    # ─────────────────────────────────────────────────────────

    def _eval_callexpression(self, node: CallExpressionNode, env: Environment) -> Any:
        callee = self.eval(node.callee, env)
        if not isinstance(callee, Closure):
            target = node.callee.name if isinstance(node.callee, IdentifierNode) else node.callee.node_type
            raise NotCallable(
                f"'{target}' is not a function ({type_name(callee)}) at L{node.line}:{node.col}"
            )
        arguments = [self.eval(arg, env) for arg in node.arguments]
        return self.call(callee, arguments)

    def call(self, closure: Closure, arguments: list[Any]) -> Any:
        """Invoke a closure with already-evaluated arguments."""
        params = closure.params
        if len(arguments) != len(params):
            raise ArityMismatch(
                f"Function '{closure.name}' expects {len(params)} argument(s), "
                f"got {len(arguments)}."
            )
        if self.call_depth >= self.max_call_depth:
            raise ResourceExhausted(
                f"Maximum call depth exceeded ({self.max_call_depth}) "
                f"calling '{closure.name}'"
            )

        call_env = closure.env.child()
        for name, value in zip(params, arguments):
            call_env.define(name, value)

        self.call_depth += 1
        logger.debug("call %s depth=%d", closure.name, self.call_depth)
        try:
            completion = self.execute(closure.function.body, call_env)
        finally:
            self.call_depth -= 1
        # The RETURN unwind ends here
        return completion.value

    # ─────────────────────────────────────────────────────────
    #  Parsed-only constructs
    # ─────────────────────────────────────────────────────────

    def _eval_memberexpression(self, node: MemberExpressionNode, env: Environment) -> Any:
        raise UnsupportedNode(
            f"Member access is not supported (L{node.line}:{node.col})"
        )


def evaluate(program: ASTNode, env: Environment | None = None,
             max_call_depth: int = DEFAULT_MAX_CALL_DEPTH) -> Any:
    """Evaluate a parsed program against env (a fresh root scope if omitted)."""
    return Interpreter(max_call_depth=max_call_depth).evaluate(program, env)


def run(source: str, env: Environment | None = None) -> Any:
    """Parse and evaluate FoxLang source."""
    return evaluate(parse(source), env)

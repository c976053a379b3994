"""
FoxLang Interpreter Tests
=========================
Evaluation semantics: operators, scoping, closures, RETURN unwinding and
the recursion guards.

Usage:
    python -m unittest tests.test_interpreter -v
"""
import sys
import os
import unittest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from foxlang import evaluate, run
from foxlang.environment import Environment
from foxlang.errors import (
    ArityMismatch, DivisionByZero, FoxRuntimeError, NotCallable,
    ResourceExhausted, TypeMismatch, UndefinedVariable, UnsupportedNode,
)
from foxlang.interpreter import Interpreter
from foxlang.parser import parse
from foxlang.values import Closure, format_value, string_hash, type_name


def _run(source: str, env: Environment | None = None, **options):
    if env is None:
        env = Environment()
    return Interpreter(env, **options).evaluate(parse(source))


# ─────────────────────────────────────────────
#  Literals & Arithmetic
# ─────────────────────────────────────────────

class TestArithmetic(unittest.TestCase):
    """Integer arithmetic and unary operators."""

    def test_literals(self):
        self.assertEqual(_run("42"), 42)
        self.assertEqual(_run("'text'"), "text")
        self.assertIs(_run(".T."), True)
        self.assertIs(_run("false"), False)
        self.assertIsNone(_run(".NULL."))

    def test_precedence(self):
        self.assertEqual(_run("1 + 2 * 3"), 7)
        self.assertEqual(_run("(1 + 2) * 3"), 9)
        self.assertEqual(_run("10 - 4 - 3"), 3)

    def test_division_truncates_toward_zero(self):
        self.assertEqual(_run("7 / 2"), 3)
        self.assertEqual(_run("-7 / 2"), -3)
        self.assertEqual(_run("7 / -2"), -3)
        self.assertEqual(_run("-7 / -2"), 3)

    def test_division_by_zero(self):
        with self.assertRaises(DivisionByZero):
            _run("1 / 0")

    def test_integers_are_unbounded(self):
        self.assertEqual(_run("99999 * 99999 * 99999"), 999970000299999)

    def test_unary(self):
        self.assertEqual(_run("-5"), -5)
        self.assertEqual(_run("--5"), 5)
        self.assertEqual(_run("+5"), 5)
        self.assertIs(_run("!.F."), True)

    def test_unary_type_errors(self):
        for source in ("-.T.", "-'a'", "!1", "!.NULL."):
            with self.subTest(source=source):
                with self.assertRaises(TypeMismatch):
                    _run(source)

    def test_integer_comparisons(self):
        self.assertIs(_run("1 < 2"), True)
        self.assertIs(_run("2 <= 1"), False)
        self.assertIs(_run("3 == 3"), True)
        self.assertIs(_run("3 != 3"), False)


# ─────────────────────────────────────────────
#  Booleans & Logical Operators
# ─────────────────────────────────────────────

class TestLogic(unittest.TestCase):
    """Short-circuit logic and Boolean operators."""

    def test_short_circuit_skips_right_operand(self):
        self.assertIs(_run(".F. AND undefined_name"), False)
        self.assertIs(_run(".T. OR undefined_name"), True)

    def test_right_operand_returned_as_is(self):
        self.assertEqual(_run(".T. AND 5"), 5)
        self.assertEqual(_run(".F. .OR. 'x'"), "x")

    def test_left_operand_must_be_boolean(self):
        with self.assertRaises(TypeMismatch):
            _run("1 AND .T.")
        with self.assertRaises(TypeMismatch):
            _run(".NULL. OR .T.")

    def test_boolean_multiplication_is_and(self):
        self.assertIs(_run(".T. * .T."), True)
        self.assertIs(_run(".T. * .F."), False)

    def test_boolean_comparisons(self):
        self.assertIs(_run(".T. > .F."), True)
        self.assertIs(_run(".T. == .T."), True)

    def test_boolean_addition_rejected(self):
        with self.assertRaises(TypeMismatch):
            _run(".T. + .T.")


# ─────────────────────────────────────────────
#  Strings
# ─────────────────────────────────────────────

class TestStrings(unittest.TestCase):
    """String operators."""

    def test_plus_and_minus_concatenate(self):
        self.assertEqual(_run("'ab' + 'cd'"), "abcd")
        self.assertEqual(_run("'x' - 'y'"), "xy")

    def test_repeat(self):
        self.assertEqual(_run("'ab' * 3"), "ababab")
        self.assertEqual(_run("'ab' * 0"), "")
        self.assertEqual(_run("LOCAL s = 'ab'\ns *= 2\ns"), "abab")

    def test_repeat_rejects_negative_count(self):
        for source in ("'ab' * -1", "'ab' * -2", "'' * -5"):
            with self.subTest(source=source):
                with self.assertRaises(TypeMismatch):
                    _run(source)

    def test_repeat_length_is_bounded(self):
        for source in ("'a' * 99999999999999999999", "'abc' * 5000000",
                       "'' * 99999999999999999999"):
            with self.subTest(source=source):
                with self.assertRaises(ResourceExhausted):
                    _run(source)

    def test_repeat_needs_string_on_left(self):
        with self.assertRaises(TypeMismatch):
            _run("3 * 'ab'")

    def test_equality_compares_content(self):
        self.assertIs(_run("'a' == 'a'"), True)
        self.assertIs(_run("'a' != 'b'"), True)
        self.assertIs(_run("'a' == 'A'"), False)

    def test_ordering_uses_hash_code(self):
        # hash('ab') == 3105, hash('b') == 98
        self.assertIs(_run("'ab' < 'b'"), False)
        self.assertIs(_run("'ab' > 'b'"), True)
        self.assertIs(_run("'b' <= 'ab'"), True)

    def test_string_hash(self):
        self.assertEqual(string_hash(""), 0)
        self.assertEqual(string_hash("ab"), 3105)
        self.assertEqual(string_hash("hello"), 99162322)
        # Wraps to a signed 32-bit value
        self.assertEqual(string_hash("hello world"), 1794106052)
        self.assertEqual(string_hash("polygenelubricants"), -2147483648)

    def test_mixed_types_rejected(self):
        for source in ("1 + 'a'", "'a' + 1", ".NULL. == .NULL.", "1 == .T.", "'a' / 'b'"):
            with self.subTest(source=source):
                with self.assertRaises(TypeMismatch) as ctx:
                    _run(source)
                self.assertIn("Invalid operands", str(ctx.exception))


# ─────────────────────────────────────────────
#  Variables & Scoping
# ─────────────────────────────────────────────

class TestVariables(unittest.TestCase):
    """LOCAL, PUBLIC and assignment."""

    def test_type_defaults(self):
        env = Environment()
        _run("LOCAL a AS STRING, b AS Number, c AS BOOLEAN, d AS DATE, e", env)
        self.assertEqual(env.lookup("a"), "")
        self.assertEqual(env.lookup("b"), 0)
        self.assertIs(env.lookup("c"), False)
        self.assertIsNone(env.lookup("d"))
        self.assertIsNone(env.lookup("e"))

    def test_declaration_has_no_value(self):
        self.assertIsNone(_run("LOCAL a = 1"))
        self.assertIsNone(_run("FUNCTION f()\nENDFUNC"))

    def test_identifiers_are_case_insensitive(self):
        self.assertEqual(_run("LOCAL Total = 3\ntotal + TOTAL"), 6)

    def test_undefined_variable(self):
        with self.assertRaises(UndefinedVariable) as ctx:
            _run("missing + 1")
        self.assertEqual(str(ctx.exception), "Variable 'missing' is not defined.")

    def test_assignment_value(self):
        self.assertEqual(_run("a = b = 3"), 3)

    def test_compound_assignment(self):
        self.assertEqual(_run("LOCAL a = 10\na += 5\na -= 3\na *= 2\na /= 4\na"), 6)
        self.assertEqual(_run("LOCAL s = 'ab'\ns *= 2\ns"), "abab")

    def test_compound_assignment_needs_binding(self):
        with self.assertRaises(UndefinedVariable):
            _run("zz += 1")

    def test_assignment_updates_owner(self):
        source = """
LOCAL c = 1
FUNCTION bump()
    c = c + 1
ENDFUNC
bump()
bump()
c
"""
        self.assertEqual(_run(source), 3)

    def test_assignment_without_owner_stays_local(self):
        source = """
FUNCTION f()
    q = 3
    RETURN q
ENDFUNC
f()
q
"""
        with self.assertRaises(UndefinedVariable):
            _run(source)

    def test_public_is_visible_globally(self):
        self.assertEqual(_run("FUNCTION f()\nPUBLIC g = 5\nENDFUNC\nf()\ng"), 5)

    def test_public_is_mutable_globally(self):
        self.assertEqual(_run("FUNCTION f()\nPUBLIC x = 5\nENDFUNC\nf()\nx = x + 1\nx"), 6)

    def test_local_is_not_visible_outside(self):
        with self.assertRaises(UndefinedVariable):
            _run("FUNCTION f()\nLOCAL h = 5\nENDFUNC\nf()\nh")

    def test_public_initializer_falls_back_to_local_scope(self):
        source = """
FUNCTION f(x)
    PUBLIC g = x * 2
    RETURN g
ENDFUNC
f(4)
"""
        with self.assertLogs("foxlang.interpreter", level="DEBUG") as logs:
            self.assertEqual(_run(source), 8)
        self.assertTrue(any("retrying" in line for line in logs.output))

    def test_public_initializer_prefers_global_scope(self):
        source = """
LOCAL w = 1
FUNCTION f()
    LOCAL w = 2
    PUBLIC v = w
    RETURN v
ENDFUNC
f()
"""
        self.assertEqual(_run(source), 1)

    def test_public_initializer_error_after_retry(self):
        with self.assertRaises(UndefinedVariable):
            _run("FUNCTION f()\nPUBLIC g = nowhere\nENDFUNC\nf()")

    def test_host_bindings(self):
        env = Environment({"version": "1.0"})
        self.assertEqual(_run("VERSION", env), "1.0")


# ─────────────────────────────────────────────
#  Control Flow
# ─────────────────────────────────────────────

class TestControlFlow(unittest.TestCase):
    """IF truthiness and RETURN unwinding."""

    def test_if_truthiness(self):
        self.assertEqual(_run("IF 0 THEN\n'yes'\nELSE\n'no'\nENDIF"), "yes")
        self.assertEqual(_run("IF '' THEN\n'yes'\nELSE\n'no'\nENDIF"), "yes")
        self.assertEqual(_run("IF .NULL. THEN\n'yes'\nELSE\n'no'\nENDIF"), "no")
        self.assertEqual(_run("IF .F. THEN\n'yes'\nELSE\n'no'\nENDIF"), "no")

    def test_if_without_branch_taken(self):
        self.assertIsNone(_run("IF .F. THEN\n1\nENDIF"))

    def test_top_level_return_ends_program(self):
        self.assertEqual(_run("1\nRETURN 2\n3"), 2)

    def test_bare_return(self):
        self.assertIsNone(_run("FUNCTION f()\nRETURN\n99\nENDFUNC\nf()"))

    def test_return_stays_inside_its_function(self):
        source = """
FUNCTION g()
    RETURN 1
ENDFUNC
FUNCTION f()
    g()
    RETURN 2
ENDFUNC
f()
"""
        self.assertEqual(_run(source), 2)

    def test_return_value_used_by_caller(self):
        source = ("FUNCTION f(); RETURN 1; ENDFUNC "
                  "FUNCTION g(); LOCAL r = f(); RETURN r + 1; ENDFUNC g()")
        self.assertEqual(_run(source), 2)

    def test_single_line_if(self):
        self.assertEqual(_run("IF .F. THEN; RETURN 1; ELSE; RETURN 2; ENDIF"), 2)
        self.assertEqual(_run("IF 0 THEN; RETURN 1; ENDIF"), 1)

    def test_return_from_nested_if(self):
        source = """
FUNCTION sign(n)
    IF n < 0 THEN
        RETURN -1
    ENDIF
    RETURN 1
ENDFUNC
sign(-5) + sign(5) * 10
"""
        self.assertEqual(_run(source), 9)

    def test_empty_program(self):
        self.assertIsNone(_run(""))


# ─────────────────────────────────────────────
#  Functions & Closures
# ─────────────────────────────────────────────

class TestFunctions(unittest.TestCase):
    """Calls, lexical scoping and closures."""

    def test_implicit_value(self):
        self.assertEqual(_run("FUNCTION f(x)\nx * 2\nENDFUNC\nf(21)"), 42)

    def test_empty_body(self):
        self.assertIsNone(_run("FUNCTION f()\nENDFUNC\nf()"))

    def test_lparameters(self):
        self.assertEqual(_run("FUNCTION f\nLPARAMETERS a, b\nRETURN a - b\nENDFUNC\nf(5, 3)"), 2)

    def test_function_names_are_case_insensitive(self):
        self.assertEqual(_run("FUNCTION Foo()\nRETURN 1\nENDFUNC\nFOO()"), 1)

    def test_function_value(self):
        value = _run("FUNCTION twice(x)\nRETURN x * 2\nENDFUNC\ntwice")
        self.assertIsInstance(value, Closure)
        self.assertEqual(value.params, ["x"])
        self.assertEqual(type_name(value), "Closure")
        self.assertEqual(format_value(value), "<function twice>")

    def test_recursion(self):
        source = """
FUNCTION fib(n)
    IF n < 2 THEN
        RETURN n
    ENDIF
    RETURN fib(n - 1) + fib(n - 2)
ENDFUNC
fib(15)
"""
        self.assertEqual(_run(source), 610)

    def test_scoping_is_lexical(self):
        source = """
LOCAL x = 'global'
FUNCTION show()
    RETURN x
ENDFUNC
FUNCTION caller()
    LOCAL x = 'local'
    RETURN show()
ENDFUNC
caller()
"""
        self.assertEqual(_run(source), "global")

    def test_closure_captures_scope(self):
        source = """
FUNCTION outer()
    LOCAL secret = 42
    FUNCTION inner()
        RETURN secret
    ENDFUNC
    RETURN inner
ENDFUNC
LOCAL fn = outer()
fn()
"""
        self.assertEqual(_run(source), 42)

    def test_curried_call(self):
        source = """
FUNCTION adder(a)
    FUNCTION add(b)
        RETURN a + b
    ENDFUNC
    RETURN add
ENDFUNC
adder(2)(3)
"""
        self.assertEqual(_run(source), 5)

    def test_arguments_evaluated_in_caller_scope(self):
        source = """
FUNCTION id(v)
    RETURN v
ENDFUNC
LOCAL v = 7
id(v + 1)
"""
        self.assertEqual(_run(source), 8)

    def test_arity_mismatch(self):
        with self.assertRaises(ArityMismatch) as ctx:
            _run("FUNCTION f(a)\nRETURN a\nENDFUNC\nf(1, 2)")
        self.assertIn("expects 1 argument(s), got 2", str(ctx.exception))

    def test_not_callable(self):
        with self.assertRaises(NotCallable) as ctx:
            _run("LOCAL x = 1\nx()")
        self.assertIn("'x' is not a function", str(ctx.exception))

    def test_undefined_function(self):
        with self.assertRaises(UndefinedVariable):
            _run("nope()")


# ─────────────────────────────────────────────
#  Guards & Unsupported Constructs
# ─────────────────────────────────────────────

class TestGuards(unittest.TestCase):
    """Resource limits and constructs with no evaluation semantics."""

    COUNTDOWN = """
FUNCTION down(n)
    IF n == 0 THEN
        RETURN 0
    ENDIF
    RETURN down(n - 1)
ENDFUNC
"""

    def test_unbounded_recursion_is_reported(self):
        interp = Interpreter(Environment())
        with self.assertRaises(ResourceExhausted):
            interp.evaluate(parse("FUNCTION f()\nRETURN f()\nENDFUNC\nf()"))
        self.assertEqual(interp.call_depth, 0)

    def test_max_call_depth(self):
        self.assertEqual(_run(self.COUNTDOWN + "down(4)", max_call_depth=5), 0)
        with self.assertRaises(ResourceExhausted) as ctx:
            _run(self.COUNTDOWN + "down(10)", max_call_depth=5)
        self.assertIn("Maximum call depth exceeded (5)", str(ctx.exception))

    def test_resource_exhausted_is_runtime_error(self):
        self.assertTrue(issubclass(ResourceExhausted, FoxRuntimeError))

    def test_unsupported_constructs(self):
        for source in ("THIS", "a.b", "a[1]", "CREATEOBJECT Foo()", "DODEFAULT()", "a.b = 1"):
            with self.subTest(source=source):
                with self.assertRaises(UnsupportedNode):
                    _run(source)

    def test_error_after_partial_execution_keeps_bindings(self):
        env = Environment()
        with self.assertRaises(UndefinedVariable):
            _run("LOCAL a = 1\nb", env)
        self.assertEqual(env.lookup("a"), 1)


# ─────────────────────────────────────────────
#  Entry Points
# ─────────────────────────────────────────────

class TestEntryPoints(unittest.TestCase):
    """Module helpers and AST reuse."""

    def test_run(self):
        self.assertEqual(run("1 + 2"), 3)

    def test_evaluate_with_environment(self):
        self.assertEqual(evaluate(parse("x * 2"), Environment({"X": 9})), 18)

    def test_same_ast_evaluates_repeatedly(self):
        ast = parse("LOCAL n = 0\nn += 1\nn")
        self.assertEqual(evaluate(ast, Environment()), 1)
        self.assertEqual(evaluate(ast, Environment()), 1)

    def test_shared_environment_persists(self):
        env = Environment()
        interp = Interpreter(env)
        interp.evaluate(parse("FUNCTION inc(v)\nRETURN v + 1\nENDFUNC"))
        self.assertEqual(interp.evaluate(parse("inc(41)")), 42)

    def test_evaluate_single_expression_node(self):
        expr = parse("2 * 21").statements[0].expression
        self.assertEqual(Interpreter().evaluate(expr), 42)

    def test_apply_binary(self):
        self.assertEqual(Interpreter().apply_binary("+", 1, 2), 3)
        with self.assertRaises(TypeMismatch):
            Interpreter().apply_binary("+", True, 1)


if __name__ == "__main__":
    unittest.main(verbosity=2)

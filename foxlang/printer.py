"""
FoxLang Source Printer
======================
Renders an AST back into FoxLang source text.

Output is canonical rather than faithful: keywords are upper case, one
statement per line, block bodies indented, and every binary or logical
expression is fully parenthesised so re-parsing gives the same tree shape.
"""
from .parser import ASTNode

INDENT = "    "


def format_source(node: ASTNode) -> str:
    """Format a program, statement or expression as FoxLang source."""
    if node.node_type in _STATEMENT_FORMATTERS:
        return "\n".join(_format_statement(node, 0)) + "\n"
    return _format_expression(node, top=True)


# ─────────────────────────────────────────────────────────────
#  Statements
# ─────────────────────────────────────────────────────────────

def _format_statement(node: ASTNode, level: int) -> list[str]:
    return _STATEMENT_FORMATTERS[node.node_type](node, level)


def _format_block(statements, level: int) -> list[str]:
    lines = []
    for stmt in statements:
        lines.extend(_format_statement(stmt, level))
    return lines


def _format_program(node, level: int) -> list[str]:
    return _format_block(node.statements, level)


def _format_block_statement(node, level: int) -> list[str]:
    return _format_block(node.statements, level)


def _format_expression_statement(node, level: int) -> list[str]:
    return [INDENT * level + _format_expression(node.expression, top=True)]


def _format_variable_statement(node, level: int) -> list[str]:
    parts = []
    for decl in node.declarations:
        text = decl.name.name
        if decl.type_name is not None:
            text += f" AS {decl.type_name.name}"
        if decl.initializer is not None:
            text += f" = {_format_expression(decl.initializer, top=True)}"
        parts.append(text)
    return [f"{INDENT * level}{node.scope.upper()} {', '.join(parts)}"]


def _format_return_statement(node, level: int) -> list[str]:
    if node.argument is None:
        return [INDENT * level + "RETURN"]
    return [f"{INDENT * level}RETURN {_format_expression(node.argument, top=True)}"]


def _format_if_statement(node, level: int) -> list[str]:
    pad = INDENT * level
    lines = [f"{pad}IF {_format_expression(node.test, top=True)} THEN"]
    lines.extend(_format_block(node.consequent.statements, level + 1))
    if node.alternate is not None:
        lines.append(f"{pad}ELSE")
        lines.extend(_format_block(node.alternate.statements, level + 1))
    lines.append(f"{pad}ENDIF")
    return lines


def _format_function_statement(node, level: int) -> list[str]:
    pad = INDENT * level
    params = ", ".join(p.name for p in node.params)
    lines = [f"{pad}FUNCTION {node.name.name}({params})"]
    lines.extend(_format_block(node.body.statements, level + 1))
    lines.append(f"{pad}ENDFUNC")
    return lines


_STATEMENT_FORMATTERS = {
    "Program": _format_program,
    "BlockStatement": _format_block_statement,
    "ExpressionStatement": _format_expression_statement,
    "VariableStatement": _format_variable_statement,
    "ReturnStatement": _format_return_statement,
    "IfStatement": _format_if_statement,
    "FunctionStatement": _format_function_statement,
}


# ─────────────────────────────────────────────────────────────
#  Expressions
# ─────────────────────────────────────────────────────────────

def _format_string(value: str) -> str:
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    raise ValueError(f"String cannot be quoted in FoxLang: {value!r}")


def _format_operand(node: ASTNode) -> str:
    # A unary callee or member object needs parens to keep its binding
    if node.node_type == "UnaryExpression":
        return f"({_format_expression(node)})"
    return _format_expression(node)


def _format_arguments(arguments) -> str:
    return ", ".join(_format_expression(arg, top=True) for arg in arguments)


def _format_expression(node: ASTNode, top: bool = False) -> str:
    match node.node_type:
        case "Identifier":
            return node.name
        case "NumericLiteral":
            return str(node.value)
        case "StringLiteral":
            return _format_string(node.value)
        case "BooleanLiteral":
            return ".T." if node.value else ".F."
        case "NullLiteral":
            return ".NULL."
        case "UnaryExpression":
            return f"{node.operator}{_format_expression(node.argument)}"
        case "BinaryExpression":
            return f"({_format_expression(node.left)} {node.operator} {_format_expression(node.right)})"
        case "LogicalExpression":
            return (f"({_format_expression(node.left)} {node.operator.upper()} "
                    f"{_format_expression(node.right)})")
        case "AssignmentExpression":
            text = (f"{_format_expression(node.target)} {node.operator} "
                    f"{_format_expression(node.value, top=True)}")
            return text if top else f"({text})"
        case "CallExpression":
            return f"{_format_operand(node.callee)}({_format_arguments(node.arguments)})"
        case "MemberExpression":
            if node.computed:
                return f"{_format_operand(node.object)}[{_format_expression(node.property, top=True)}]"
            return f"{_format_operand(node.object)}.{node.property.name}"
        case "CreateObjectExpression":
            return f"CREATEOBJECT {_format_expression(node.class_ref)}({_format_arguments(node.arguments)})"
        case "ThisExpression":
            return "THIS"
        case "DoDefaultExpression":
            return "DODEFAULT"
    raise ValueError(f"Cannot format node type: {node.node_type}")

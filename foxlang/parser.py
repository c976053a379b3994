"""
FoxLang Parser
==============
Recursive-descent parser that builds an Abstract Syntax Tree (AST)
from the token stream produced by the Lexer.

The parser pulls tokens from the lexer on demand and keeps exactly one
token of lookahead. Expressions are parsed by precedence climbing, one
method per precedence level, lowest first:

    Assignment → LogicalOr → LogicalAnd → Equality → Relational
      → Term → Factor → Unary → Call → Member → Primary

Supports:
  - LOCAL / PUBLIC declarations with optional AS type and initializer
  - IF [(]cond[)] [THEN] ... [ELSE ...] ENDIF
  - FUNCTION name[(params)] [LPARAMETERS params] ... ENDFUNC
  - RETURN [expr]
  - Assignment (=, +=, -=, *=, /=), chained calls, member access
  - CREATEOBJECT, THIS and DODEFAULT (parsed only)
"""
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, ClassVar, Iterator

from .errors import FoxSyntaxError, ResourceExhausted
from .lexer import Lexer, Token, TokenType


DEFAULT_MAX_DEPTH = 48


# ─────────────────────────────────────────────────────────────
#  AST Node Types
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ASTNode:
    """Base class for all AST nodes."""
    node_type: ClassVar[str] = "Node"
    line: int = 0
    col: int = 0


@dataclass(frozen=True)
class ProgramNode(ASTNode):
    """Root node containing all top-level statements."""
    node_type: ClassVar[str] = "Program"
    statements: tuple[ASTNode, ...] = ()


@dataclass(frozen=True)
class BlockStatementNode(ASTNode):
    """A sequence of statements: a function body or an IF branch."""
    node_type: ClassVar[str] = "BlockStatement"
    statements: tuple[ASTNode, ...] = ()


@dataclass(frozen=True)
class ExpressionStatementNode(ASTNode):
    node_type: ClassVar[str] = "ExpressionStatement"
    expression: ASTNode | None = None


@dataclass(frozen=True)
class IdentifierNode(ASTNode):
    """A reference to a named binding. Names keep their source casing."""
    node_type: ClassVar[str] = "Identifier"
    name: str = ""


@dataclass(frozen=True)
class VariableDeclarationNode(ASTNode):
    """One entry of a LOCAL/PUBLIC list: name [AS type] [= initializer]."""
    node_type: ClassVar[str] = "VariableDeclaration"
    name: IdentifierNode | None = None
    type_name: IdentifierNode | None = None
    initializer: ASTNode | None = None


@dataclass(frozen=True)
class VariableStatementNode(ASTNode):
    """LOCAL or PUBLIC followed by one or more declarations."""
    node_type: ClassVar[str] = "VariableStatement"
    scope: str = "local"  # "local" | "public"
    declarations: tuple[VariableDeclarationNode, ...] = ()


@dataclass(frozen=True)
class ReturnStatementNode(ASTNode):
    node_type: ClassVar[str] = "ReturnStatement"
    argument: ASTNode | None = None


@dataclass(frozen=True)
class IfStatementNode(ASTNode):
    node_type: ClassVar[str] = "IfStatement"
    test: ASTNode | None = None
    consequent: BlockStatementNode | None = None
    alternate: BlockStatementNode | None = None


@dataclass(frozen=True)
class FunctionStatementNode(ASTNode):
    node_type: ClassVar[str] = "FunctionStatement"
    name: IdentifierNode | None = None
    params: tuple[IdentifierNode, ...] = ()
    body: BlockStatementNode | None = None


@dataclass(frozen=True)
class NumericLiteralNode(ASTNode):
    node_type: ClassVar[str] = "NumericLiteral"
    value: int = 0


@dataclass(frozen=True)
class StringLiteralNode(ASTNode):
    node_type: ClassVar[str] = "StringLiteral"
    value: str = ""


@dataclass(frozen=True)
class BooleanLiteralNode(ASTNode):
    node_type: ClassVar[str] = "BooleanLiteral"
    value: bool = False


@dataclass(frozen=True)
class NullLiteralNode(ASTNode):
    node_type: ClassVar[str] = "NullLiteral"
    value: Any = None


@dataclass(frozen=True)
class UnaryExpressionNode(ASTNode):
    node_type: ClassVar[str] = "UnaryExpression"
    operator: str = ""
    argument: ASTNode | None = None


@dataclass(frozen=True)
class BinaryExpressionNode(ASTNode):
    node_type: ClassVar[str] = "BinaryExpression"
    operator: str = ""
    left: ASTNode | None = None
    right: ASTNode | None = None


@dataclass(frozen=True)
class LogicalExpressionNode(ASTNode):
    """Short-circuit 'and' / 'or'. The operator is always lower case."""
    node_type: ClassVar[str] = "LogicalExpression"
    operator: str = ""
    left: ASTNode | None = None
    right: ASTNode | None = None


@dataclass(frozen=True)
class AssignmentExpressionNode(ASTNode):
    node_type: ClassVar[str] = "AssignmentExpression"
    operator: str = "="
    target: ASTNode | None = None
    value: ASTNode | None = None


@dataclass(frozen=True)
class CallExpressionNode(ASTNode):
    node_type: ClassVar[str] = "CallExpression"
    callee: ASTNode | None = None
    arguments: tuple[ASTNode, ...] = ()


@dataclass(frozen=True)
class MemberExpressionNode(ASTNode):
    """obj.prop (computed=False) or obj[expr] (computed=True)."""
    node_type: ClassVar[str] = "MemberExpression"
    object: ASTNode | None = None
    property: ASTNode | None = None
    computed: bool = False


@dataclass(frozen=True)
class CreateObjectExpressionNode(ASTNode):
    node_type: ClassVar[str] = "CreateObjectExpression"
    class_ref: ASTNode | None = None
    arguments: tuple[ASTNode, ...] = ()


@dataclass(frozen=True)
class ThisExpressionNode(ASTNode):
    node_type: ClassVar[str] = "ThisExpression"


@dataclass(frozen=True)
class DoDefaultExpressionNode(ASTNode):
    node_type: ClassVar[str] = "DoDefaultExpression"


# ─────────────────────────────────────────────────────────────
#  Parser
# ─────────────────────────────────────────────────────────────

LITERAL_TOKENS = (
    TokenType.NUMBER, TokenType.STRING,
    TokenType.TRUE, TokenType.FALSE, TokenType.NULL,
)

ASSIGNMENT_TOKENS = (TokenType.SIMPLE_ASSIGN, TokenType.COMPLEX_ASSIGN)


class Parser:
    """
    Recursive-descent parser for FoxLang source.

    Usage:
        parser = Parser(Lexer(source))
        ast = parser.parse()

    The first syntax error aborts the parse with a FoxSyntaxError.
    Nesting deeper than max_depth raises ResourceExhausted.
    """

    def __init__(self, lexer: Lexer | str, max_depth: int = DEFAULT_MAX_DEPTH):
        if isinstance(lexer, str):
            lexer = Lexer(lexer)
        self.lexer = lexer
        self.max_depth = max_depth
        self._depth = 0
        self.lookahead: Token = lexer.next_token()

    def _eat(self, token_type: TokenType) -> Token:
        """Consume the lookahead if it has the expected type, else raise."""
        token = self.lookahead
        if token.type == TokenType.EOF and token_type != TokenType.EOF:
            raise FoxSyntaxError(
                f"Unexpected end of input, expected: {token_type.name}"
            )
        if token.type != token_type:
            raise FoxSyntaxError(
                f"Unexpected token: {token.value!r} ({token.type.name}), "
                f"expected: {token_type.name} at L{token.line}:{token.col}"
            )
        self.lookahead = self.lexer.next_token()
        return token

    def _check(self, *token_types: TokenType) -> bool:
        return self.lookahead.type in token_types

    def _skip_optional(self, token_type: TokenType):
        if self.lookahead.type == token_type:
            self._eat(token_type)

    @contextmanager
    def _nested(self) -> Iterator[None]:
        """Bound the recursion depth of nested statements and expressions."""
        if self._depth >= self.max_depth:
            token = self.lookahead
            raise ResourceExhausted(
                f"Source nested too deeply (max depth: {self.max_depth}) "
                f"at L{token.line}:{token.col}"
            )
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    # ─────────────────────────────────────────────────────────
    #  Top-Level Parsing
    # ─────────────────────────────────────────────────────────

    def parse(self) -> ProgramNode:
        """Parse the token stream into a ProgramNode."""
        try:
            statements = self._parse_statement_list(TokenType.EOF)
        except RecursionError:
            raise ResourceExhausted("Source nested too deeply to parse") from None
        return ProgramNode(statements=statements, line=1, col=1)

    def _parse_statement_list(self, *stop: TokenType) -> tuple[ASTNode, ...]:
        """Parse statements until one of the stop tokens is the lookahead."""
        statements = []
        while not self._check(*stop):
            if self._check(TokenType.EOF):
                # Stop tokens did not include EOF: the block is unterminated
                self._eat(stop[0])
            statements.append(self._parse_statement())
        return tuple(statements)

    def _parse_statement(self) -> ASTNode:
        token = self.lookahead
        with self._nested():
            match token.type:
                case TokenType.LOCAL | TokenType.PUBLIC:
                    return self._parse_variable_statement()
                case TokenType.RETURN:
                    return self._parse_return_statement()
                case TokenType.IF:
                    return self._parse_if_statement()
                case TokenType.FUNCTION:
                    return self._parse_function_statement()
                case _:
                    return self._parse_expression_statement()

    # ─────────────────────────────────────────────────────────
    #  Statements
    # ─────────────────────────────────────────────────────────

    def _parse_variable_statement(self) -> VariableStatementNode:
        """LOCAL a AS STRING = "x", b = 1, c"""
        keyword = self._eat(self.lookahead.type)
        declarations = [self._parse_variable_declaration()]
        while self._check(TokenType.COMMA):
            self._eat(TokenType.COMMA)
            declarations.append(self._parse_variable_declaration())
        self._eat(TokenType.SEMICOLON)
        return VariableStatementNode(
            scope=keyword.type.name.lower(),
            declarations=tuple(declarations),
            line=keyword.line, col=keyword.col,
        )

    def _parse_variable_declaration(self) -> VariableDeclarationNode:
        name = self._parse_identifier()
        type_name = None
        initializer = None
        if self._check(TokenType.AS):
            self._eat(TokenType.AS)
            type_name = self._parse_identifier()
        if self._check(TokenType.SIMPLE_ASSIGN):
            self._eat(TokenType.SIMPLE_ASSIGN)
            initializer = self._parse_assignment()
        return VariableDeclarationNode(
            name=name, type_name=type_name, initializer=initializer,
            line=name.line, col=name.col,
        )

    def _parse_return_statement(self) -> ReturnStatementNode:
        token = self._eat(TokenType.RETURN)
        argument = None
        if not self._check(TokenType.SEMICOLON):
            argument = self._parse_assignment()
        self._eat(TokenType.SEMICOLON)
        return ReturnStatementNode(argument=argument, line=token.line, col=token.col)

    def _parse_if_statement(self) -> IfStatementNode:
        """IF [(] cond [)] [THEN] ; stmts [ELSE ; stmts] ENDIF [;]"""
        token = self._eat(TokenType.IF)
        self._skip_optional(TokenType.LPAREN)
        test = self._parse_assignment()
        self._skip_optional(TokenType.RPAREN)
        self._skip_optional(TokenType.THEN)
        self._eat(TokenType.SEMICOLON)

        consequent = self._parse_block(TokenType.ENDIF, TokenType.ELSE)

        alternate = None
        if self._check(TokenType.ELSE):
            self._eat(TokenType.ELSE)
            self._eat(TokenType.SEMICOLON)
            alternate = self._parse_block(TokenType.ENDIF)

        self._eat(TokenType.ENDIF)
        self._skip_optional(TokenType.SEMICOLON)
        return IfStatementNode(
            test=test, consequent=consequent, alternate=alternate,
            line=token.line, col=token.col,
        )

    def _parse_function_statement(self) -> FunctionStatementNode:
        """FUNCTION name [( params )] ; [LPARAMETERS params ;] stmts ENDFUNC [;]"""
        token = self._eat(TokenType.FUNCTION)
        name = self._parse_identifier()

        params: list[IdentifierNode] = []
        if self._check(TokenType.LPAREN):
            self._eat(TokenType.LPAREN)
            if not self._check(TokenType.RPAREN):
                params = self._parse_parameter_list()
            self._eat(TokenType.RPAREN)
        self._eat(TokenType.SEMICOLON)

        if self._check(TokenType.LPARAMETERS):
            lparameters = self.lookahead
            if params:
                raise FoxSyntaxError(
                    f"Function '{name.name}' parameters declared twice "
                    f"at L{lparameters.line}:{lparameters.col}"
                )
            self._eat(TokenType.LPARAMETERS)
            params = self._parse_parameter_list()
            self._eat(TokenType.SEMICOLON)

        body = self._parse_block(TokenType.ENDFUNC)
        self._eat(TokenType.ENDFUNC)
        self._skip_optional(TokenType.SEMICOLON)
        return FunctionStatementNode(
            name=name, params=tuple(params), body=body,
            line=token.line, col=token.col,
        )

    def _parse_parameter_list(self) -> list[IdentifierNode]:
        params = [self._parse_identifier()]
        while self._check(TokenType.COMMA):
            self._eat(TokenType.COMMA)
            params.append(self._parse_identifier())
        return params

    def _parse_block(self, *stop: TokenType) -> BlockStatementNode:
        token = self.lookahead
        statements = self._parse_statement_list(*stop)
        return BlockStatementNode(statements=statements, line=token.line, col=token.col)

    def _parse_expression_statement(self) -> ExpressionStatementNode:
        token = self.lookahead
        expression = self._parse_assignment()
        self._eat(TokenType.SEMICOLON)
        return ExpressionStatementNode(
            expression=expression, line=token.line, col=token.col,
        )

    # ─────────────────────────────────────────────────────────
    #  Expressions
    # ─────────────────────────────────────────────────────────

    def _parse_assignment(self) -> ASTNode:
        """Assignment ::= LogicalOr (AssignOp Assignment)?  (right-assoc)"""
        with self._nested():
            left = self._parse_logical_or()
            if not self._check(*ASSIGNMENT_TOKENS):
                return left
            operator = self._eat(self.lookahead.type)
            if not isinstance(left, (IdentifierNode, MemberExpressionNode)):
                raise FoxSyntaxError(
                    f"Invalid left-hand side in assignment expression "
                    f"at L{operator.line}:{operator.col}"
                )
            value = self._parse_assignment()
            return AssignmentExpressionNode(
                operator=operator.value, target=left, value=value,
                line=left.line, col=left.col,
            )

    def _parse_logical_or(self) -> ASTNode:
        left = self._parse_logical_and()
        while self._check(TokenType.LOGICAL_OR):
            self._eat(TokenType.LOGICAL_OR)
            right = self._parse_logical_and()
            left = LogicalExpressionNode(
                operator="or", left=left, right=right, line=left.line, col=left.col,
            )
        return left

    def _parse_logical_and(self) -> ASTNode:
        left = self._parse_equality()
        while self._check(TokenType.LOGICAL_AND):
            self._eat(TokenType.LOGICAL_AND)
            right = self._parse_equality()
            left = LogicalExpressionNode(
                operator="and", left=left, right=right, line=left.line, col=left.col,
            )
        return left

    def _parse_binary_level(self, token_type: TokenType, operand) -> ASTNode:
        """One left-associative precedence level of binary operators."""
        left = operand()
        while self._check(token_type):
            operator = self._eat(token_type).value
            right = operand()
            left = BinaryExpressionNode(
                operator=operator, left=left, right=right, line=left.line, col=left.col,
            )
        return left

    def _parse_equality(self) -> ASTNode:
        return self._parse_binary_level(TokenType.EQUALITY_OPERATOR, self._parse_relational)

    def _parse_relational(self) -> ASTNode:
        return self._parse_binary_level(TokenType.RELATIONAL_OPERATOR, self._parse_term)

    def _parse_term(self) -> ASTNode:
        return self._parse_binary_level(TokenType.TERM_OPERATOR, self._parse_factor)

    def _parse_factor(self) -> ASTNode:
        return self._parse_binary_level(TokenType.FACTOR_OPERATOR, self._parse_unary)

    def _parse_unary(self) -> ASTNode:
        """Unary ::= ('+'|'-'|'!') Unary | Call"""
        if self._check(TokenType.TERM_OPERATOR, TokenType.LOGICAL_NOT):
            token = self._eat(self.lookahead.type)
            with self._nested():
                argument = self._parse_unary()
            return UnaryExpressionNode(
                operator=token.value, argument=argument, line=token.line, col=token.col,
            )
        return self._parse_call()

    def _parse_call(self) -> ASTNode:
        """Call ::= Member ('(' Args ')')*"""
        callee = self._parse_member()
        while self._check(TokenType.LPAREN):
            callee = CallExpressionNode(
                callee=callee, arguments=self._parse_arguments(),
                line=callee.line, col=callee.col,
            )
        return callee

    def _parse_member(self) -> ASTNode:
        """Member ::= Primary (('.' Identifier) | ('[' Assignment ']'))*"""
        obj = self._parse_primary()
        while self._check(TokenType.DOT, TokenType.LBRACKET):
            if self._check(TokenType.DOT):
                self._eat(TokenType.DOT)
                prop = self._parse_identifier()
                obj = MemberExpressionNode(
                    object=obj, property=prop, computed=False,
                    line=obj.line, col=obj.col,
                )
            else:
                self._eat(TokenType.LBRACKET)
                prop = self._parse_assignment()
                self._eat(TokenType.RBRACKET)
                obj = MemberExpressionNode(
                    object=obj, property=prop, computed=True,
                    line=obj.line, col=obj.col,
                )
        return obj

    def _parse_arguments(self) -> tuple[ASTNode, ...]:
        """Args ::= '(' (Assignment (',' Assignment)*)? ')'"""
        self._eat(TokenType.LPAREN)
        arguments = []
        if not self._check(TokenType.RPAREN):
            arguments.append(self._parse_assignment())
            while self._check(TokenType.COMMA):
                self._eat(TokenType.COMMA)
                arguments.append(self._parse_assignment())
        self._eat(TokenType.RPAREN)
        return tuple(arguments)

    def _parse_primary(self) -> ASTNode:
        token = self.lookahead

        if token.type in LITERAL_TOKENS:
            return self._parse_literal()

        match token.type:
            case TokenType.IDENTIFIER:
                return self._parse_identifier()
            case TokenType.LPAREN:
                self._eat(TokenType.LPAREN)
                inner = self._parse_assignment()
                self._eat(TokenType.RPAREN)
                return inner
            case TokenType.THIS:
                self._eat(TokenType.THIS)
                return ThisExpressionNode(line=token.line, col=token.col)
            case TokenType.CREATEOBJECT:
                self._eat(TokenType.CREATEOBJECT)
                class_ref = self._parse_member()
                arguments = self._parse_arguments()
                return CreateObjectExpressionNode(
                    class_ref=class_ref, arguments=arguments,
                    line=token.line, col=token.col,
                )
            case TokenType.DODEFAULT:
                self._eat(TokenType.DODEFAULT)
                return DoDefaultExpressionNode(line=token.line, col=token.col)
            case TokenType.EOF:
                raise FoxSyntaxError("Unexpected end of input, expected: expression")

        raise FoxSyntaxError(
            f"Unexpected primary expression: {token.value!r} ({token.type.name}) "
            f"at L{token.line}:{token.col}"
        )

    def _parse_literal(self) -> ASTNode:
        token = self._eat(self.lookahead.type)
        match token.type:
            case TokenType.NUMBER:
                return NumericLiteralNode(value=int(token.value), line=token.line, col=token.col)
            case TokenType.STRING:
                # Strip the surrounding quote characters
                return StringLiteralNode(value=token.value[1:-1], line=token.line, col=token.col)
            case TokenType.TRUE:
                return BooleanLiteralNode(value=True, line=token.line, col=token.col)
            case TokenType.FALSE:
                return BooleanLiteralNode(value=False, line=token.line, col=token.col)
        return NullLiteralNode(line=token.line, col=token.col)

    def _parse_identifier(self) -> IdentifierNode:
        token = self._eat(TokenType.IDENTIFIER)
        return IdentifierNode(name=token.value, line=token.line, col=token.col)


def parse(source: str, max_depth: int = DEFAULT_MAX_DEPTH) -> ProgramNode:
    """Tokenize and parse FoxLang source into a ProgramNode."""
    return Parser(Lexer(source), max_depth=max_depth).parse()

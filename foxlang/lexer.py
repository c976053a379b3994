"""
FoxLang Lexer
=============
Tokenizes FoxLang source code into a lazy stream of typed tokens.

Tokens are recognised by an ordered table of regular expressions, matched
case-insensitively at the cursor. The first rule that matches wins, so
keywords sit above the generic identifier rule and two-character operators
above their one-character prefixes.

Newlines and ';' are statement terminators. A run of them collapses into a
single SEMICOLON token, and no terminator is emitted before the first real
token of the source.
"""
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from .errors import LexicalError


class TokenType(Enum):
    """All token types in the FoxLang language."""
    # Punctuation
    LPAREN      = auto()   # (
    RPAREN      = auto()   # )
    LBRACKET    = auto()   # [
    RBRACKET    = auto()   # ]
    COMMA       = auto()   # ,
    DOT         = auto()   # .
    SEMICOLON   = auto()   # ; or newline(s)

    # Keywords
    AS          = auto()
    LOCAL       = auto()
    PUBLIC      = auto()
    IF          = auto()
    THEN        = auto()
    ELSE        = auto()
    ENDIF       = auto()
    TRUE        = auto()   # .T. / true
    FALSE       = auto()   # .F. / false
    NULL        = auto()   # .NULL. / null
    RETURN      = auto()
    DODEFAULT   = auto()
    THIS        = auto()
    CREATEOBJECT = auto()
    FUNCTION    = auto()
    LPARAMETERS = auto()
    ENDFUNC     = auto()

    # Reserved: no grammar yet
    WHILE       = auto()
    ENDWHILE    = auto()
    REPEAT      = auto()
    UNTIL       = auto()
    CLASS       = auto()
    ENDCLASS    = auto()
    FOR         = auto()
    TO          = auto()
    STEP        = auto()
    ENDFOR      = auto()

    # Literals
    NUMBER      = auto()   # 42
    STRING      = auto()   # "..." or '...'
    IDENTIFIER  = auto()

    # Operators
    SIMPLE_ASSIGN       = auto()   # =
    COMPLEX_ASSIGN      = auto()   # += -= *= /=
    RELATIONAL_OPERATOR = auto()   # < > <= >=
    EQUALITY_OPERATOR   = auto()   # == !=
    TERM_OPERATOR       = auto()   # + -
    FACTOR_OPERATOR     = auto()   # * /
    LOGICAL_OR          = auto()   # or .or.
    LOGICAL_AND         = auto()   # and .and.
    LOGICAL_NOT         = auto()   # !

    # Special
    EOF         = auto()


@dataclass
class Token:
    """A single token from the FoxLang source."""
    type: TokenType
    value: str
    line: int = 0
    col: int = 0

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.col})"


# Sentinel for rules whose match is skipped (whitespace, comments)
IGNORE = None

# Ordered rule table. Order encodes precedence.
TOKEN_RULES: list[tuple[str, TokenType | None]] = [
    # Whitespace
    (r"[ \t\r\f]+", IGNORE),

    # Statement terminators
    (r"\n+", TokenType.SEMICOLON),
    (r";", TokenType.SEMICOLON),

    # Comments
    (r"//[^\n]*", IGNORE),
    (r"/\*[\s\S]*?\*/", IGNORE),

    # Relational and equality operators
    (r"[<>]=?", TokenType.RELATIONAL_OPERATOR),
    (r"[=!]=", TokenType.EQUALITY_OPERATOR),

    # Logical operators
    (r"\.and\.|and\b", TokenType.LOGICAL_AND),
    (r"\.or\.|or\b", TokenType.LOGICAL_OR),
    (r"!", TokenType.LOGICAL_NOT),

    # Keywords
    (r"as\b", TokenType.AS),
    (r"local\b", TokenType.LOCAL),
    (r"public\b", TokenType.PUBLIC),
    (r"if\b", TokenType.IF),
    (r"then\b", TokenType.THEN),
    (r"else\b", TokenType.ELSE),
    (r"endif\b", TokenType.ENDIF),
    (r"\.t\.|true\b", TokenType.TRUE),
    (r"\.f\.|false\b", TokenType.FALSE),
    (r"\.null\.|null\b", TokenType.NULL),
    (r"return\b", TokenType.RETURN),
    (r"while\b", TokenType.WHILE),
    (r"endwhile\b", TokenType.ENDWHILE),
    (r"repeat\b", TokenType.REPEAT),
    (r"until\b", TokenType.UNTIL),
    (r"class\b", TokenType.CLASS),
    (r"endclass\b", TokenType.ENDCLASS),
    (r"this\b", TokenType.THIS),
    (r"createobject\b", TokenType.CREATEOBJECT),
    (r"for\b", TokenType.FOR),
    (r"to\b", TokenType.TO),
    (r"step\b", TokenType.STEP),
    (r"endfor\b", TokenType.ENDFOR),
    (r"dodefault\b", TokenType.DODEFAULT),
    (r"function\b", TokenType.FUNCTION),
    (r"lparameters\b", TokenType.LPARAMETERS),
    (r"endfunc\b", TokenType.ENDFUNC),

    # Assignment: =, +=, -=, *=, /=
    (r"=", TokenType.SIMPLE_ASSIGN),
    (r"[+\-*/]=", TokenType.COMPLEX_ASSIGN),

    # Arithmetic
    (r"[+\-]", TokenType.TERM_OPERATOR),
    (r"[*/]", TokenType.FACTOR_OPERATOR),

    # Literals
    (r"\d+", TokenType.NUMBER),
    (r'"[^"]*"', TokenType.STRING),
    (r"'[^']*'", TokenType.STRING),

    # Identifier
    (r"\w+", TokenType.IDENTIFIER),

    # Delimiters
    (r"\(", TokenType.LPAREN),
    (r"\)", TokenType.RPAREN),
    (r"\[", TokenType.LBRACKET),
    (r"\]", TokenType.RBRACKET),
    (r"\.", TokenType.DOT),
    (r",", TokenType.COMMA),
]

_COMPILED_RULES = [
    (re.compile(pattern, re.IGNORECASE), token_type)
    for pattern, token_type in TOKEN_RULES
]


class Lexer:
    """
    Tokenizes FoxLang source code on demand.

    Usage:
        lexer = Lexer(source_code)
        token = lexer.next_token()      # one at a time (parser)
        tokens = lexer.tokenize()       # everything up to EOF
    """

    def __init__(self, source: str):
        if not source.endswith("\n"):
            source += "\n"
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1
        self._emitted = 0
        self._last_type: TokenType | None = None

    def _advance(self, text: str):
        """Move the cursor past the matched text, tracking line and column."""
        self.pos += len(text)
        newlines = text.count("\n")
        if newlines:
            self.line += newlines
            self.col = len(text) - text.rfind("\n")
        else:
            self.col += len(text)

    def next_token(self) -> Token:
        """Return the next token, skipping ignored input and extra terminators."""
        while self.pos < len(self.source):
            line, col = self.line, self.col
            for pattern, token_type in _COMPILED_RULES:
                match = pattern.match(self.source, self.pos)
                if match is None or not match.group(0):
                    continue
                text = match.group(0)
                self._advance(text)
                break
            else:
                remaining = self.source[self.pos:].split("\n", 1)[0]
                raise LexicalError(
                    f"Unexpected token: {remaining!r} at L{line}:{col}"
                )

            if token_type is IGNORE:
                continue

            if token_type == TokenType.SEMICOLON:
                # Coalesce: never first, never twice in a row
                if self._emitted == 0 or self._last_type == TokenType.SEMICOLON:
                    continue
                text = ";" if text == ";" else "\\n"

            self._last_type = token_type
            self._emitted += 1
            return Token(token_type, text, line, col)

        return Token(TokenType.EOF, "", self.line, self.col)

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source into a list of tokens ending with EOF."""
        tokens = list(self._iter_tokens())
        tokens.append(Token(TokenType.EOF, "", self.line, self.col))
        return tokens

    def _iter_tokens(self) -> Iterator[Token]:
        """Generate tokens one at a time, stopping before EOF."""
        while True:
            token = self.next_token()
            if token.type == TokenType.EOF:
                return
            yield token

    def __iter__(self) -> Iterator[Token]:
        return self._iter_tokens()

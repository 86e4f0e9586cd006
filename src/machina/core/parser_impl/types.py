"""
Type and expression parsing for the machina DSL.

Types are Python type expressions (``int``, ``list[str]``, ``dict[str, int] | None``,
``Literal["a", "b"]``). Expressions (fallback values, parameter defaults) are
captured verbatim from the source as balanced token runs and validated with
Python's own parser.
"""

import ast
from typing import TYPE_CHECKING, Any

from ..lexer import TokenType
from .base import KEYWORD_AS_IDENTIFIER_TYPES, describe_token

_OPENERS = (TokenType.LPAREN, TokenType.LBRACKET, TokenType.LBRACE)
_CLOSERS = (TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE)

# Deepest subscript nesting accepted in a type, e.g. ``list[list[int]]`` is 2
MAX_TYPE_DEPTH = 64


class TypeParserMixin:
    """
    Mixin for parsing type annotations and embedded expressions.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    if TYPE_CHECKING:
        advance: Any
        current_token: Any
        error: Any
        expect: Any
        expect_name: Any
        match: Any
        peek_token: Any
        source_between: Any

    def parse_type(self, depth: int = 0) -> str:
        """
        Parse a type expression.

        Grammar:
            Type = Atom ( "|" Atom )*
            Atom = DottedName [ "[" TypeArgs "]" ] | "[" TypeArgs "]"
                 | STRING | ["-"] NUMBER | "..."

        Args:
            depth: Subscript nesting of this type within the enclosing one

        Returns:
            Normalized type source text

        Raises:
            ParseError: On a malformed type, or nesting deeper than MAX_TYPE_DEPTH
        """
        parts = [self._parse_type_atom(depth)]
        while self.match(TokenType.PIPE):
            self.advance()
            parts.append(self._parse_type_atom(depth))
        return " | ".join(parts)

    def _parse_type_atom(self, depth: int) -> str:
        token = self.current_token()

        if token.type in (TokenType.STRING, TokenType.NUMBER):
            self.advance()
            return token.value

        if token.type == TokenType.OPERATOR and token.value == "-":
            if self.peek_token().type == TokenType.NUMBER:
                self.advance()
                return "-" + self.advance().value

        # Ellipsis lexes as three dots
        if (
            token.type == TokenType.DOT
            and self.peek_token(1).type == TokenType.DOT
            and self.peek_token(2).type == TokenType.DOT
        ):
            self.advance()
            self.advance()
            self.advance()
            return "..."

        if token.type == TokenType.LBRACKET:
            return f"[{self._parse_type_args(depth + 1)}]"

        if token.type == TokenType.IDENTIFIER or token.type in KEYWORD_AS_IDENTIFIER_TYPES:
            parts = [self.advance().value]
            while self.match(TokenType.DOT):
                self.advance()
                parts.append(self.expect_name("name after '.'").value)
            name = ".".join(parts)
            if self.match(TokenType.LBRACKET):
                return f"{name}[{self._parse_type_args(depth + 1)}]"
            return name

        raise self.error(f"Expected type, got {describe_token(token)}")

    def _parse_type_args(self, depth: int) -> str:
        """Parse ``[ Type (, Type)* ]``; an empty list is allowed (``Callable[[], T]``)."""
        if depth > MAX_TYPE_DEPTH:
            raise self.error(f"Type nested deeper than {MAX_TYPE_DEPTH} levels")
        self.expect(TokenType.LBRACKET)
        args: list[str] = []
        while not self.match(TokenType.RBRACKET):
            args.append(self.parse_type(depth))
            if not self.match(TokenType.COMMA):
                break
            self.advance()
        self.expect(TokenType.RBRACKET)
        return ", ".join(args)

    def parse_expression(self, *terminators: TokenType) -> str:
        """
        Capture a Python expression up to a terminator at bracket depth zero.

        Args:
            terminators: Token types that end the expression when not nested

        Returns:
            The expression exactly as written in the source

        Raises:
            ParseError: If the expression is empty, unterminated, or not valid Python
        """
        first = self.current_token()
        last = None
        depth = 0
        # `lambda` parameter lists still open at depth zero; their commas do not
        # end the expression
        open_lambdas = 0

        while True:
            token = self.current_token()
            if token.type == TokenType.EOF:
                raise self.error("Unexpected end of input in expression", token)
            if depth == 0:
                if token.type == TokenType.IDENTIFIER and token.value == "lambda":
                    open_lambdas += 1
                elif token.type == TokenType.COLON and open_lambdas:
                    open_lambdas -= 1
                elif token.type in terminators and not (
                    open_lambdas and token.type == TokenType.COMMA
                ):
                    break
            if token.type in _OPENERS:
                depth += 1
            elif token.type in _CLOSERS:
                if depth == 0:
                    break
                depth -= 1
            last = self.advance()

        if last is None:
            raise self.error("Expected expression", first)

        source = self.source_between(first, last)
        try:
            ast.parse(source, mode="eval")
        except (SyntaxError, RecursionError):
            raise self.error(f"Invalid Python expression: {source}", first) from None
        return source

    def parse_paren_expression(self) -> str:
        """Parse ``( Expr )`` and return the inner expression text."""
        self.expect(TokenType.LPAREN)
        expr = self.parse_expression(TokenType.RPAREN)
        self.expect(TokenType.RPAREN)
        return expr

"""
Base parser class for the machina DSL.

Provides common token manipulation and utility methods used by all parser mixins.

The token list is never modified; the only parser state is an integer
position. Speculative alternatives run on a ``fork()`` of the parser and are
``commit()``-ed only when they succeed, so a failed branch leaves no trace.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Self, TypeVar

from ..errors import ParseError, extract_snippet, make_parse_error
from ..lexer import DEFAULT_SOURCE, Token, TokenType

T = TypeVar("T")

# Keywords that may still be used as names (fields, parameters, states)
KEYWORD_AS_IDENTIFIER_TYPES = (
    TokenType.GET,
    TokenType.SET,
    TokenType.DEFAULT,
)

_TOKEN_DESCRIPTIONS = {
    TokenType.IDENTIFIER: "identifier",
    TokenType.STRING: "string",
    TokenType.NUMBER: "number",
    TokenType.OPERATOR: "operator",
    TokenType.EOF: "end of input",
}


def describe(token_type: TokenType) -> str:
    """Human readable name of a token type for error messages."""
    if token_type in _TOKEN_DESCRIPTIONS:
        return _TOKEN_DESCRIPTIONS[token_type]
    return f"'{token_type.value}'"


def describe_token(token: Token) -> str:
    if token.type in (TokenType.IDENTIFIER, TokenType.NUMBER, TokenType.STRING, TokenType.OPERATOR):
        return f"{describe(token.type)} {token.value!r}"
    return describe(token.type)


class BaseParser:
    """
    Base parser class with token manipulation utilities.

    This class provides the foundation for recursive descent parsing,
    including token navigation, matching, and error generation.
    """

    def __init__(
        self,
        tokens: list[Token],
        file: Path = DEFAULT_SOURCE,
        text: str = "",
        pos: int = 0,
    ):
        """
        Initialize parser.

        Args:
            tokens: List of tokens from lexer
            file: Source file path (for error reporting)
            text: Source text the tokens came from
            pos: Starting token index
        """
        self.tokens = tokens
        self.file = file
        self.text = text
        self.pos = pos

    def current_token(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[self.pos]

    def peek_token(self, offset: int = 1) -> Token:
        """Peek ahead at token."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[pos]

    def advance(self) -> Token:
        """Consume and return current token."""
        token = self.current_token()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def error(self, message: str, token: Token | None = None) -> ParseError:
        """Build a ParseError located at ``token`` (default: current token)."""
        token = token or self.current_token()
        snippet = extract_snippet(self.text, token.line) if self.text else None
        return make_parse_error(message, self.file, token.line, token.column, snippet)

    def expect(self, token_type: TokenType) -> Token:
        """
        Expect a specific token type and consume it.

        Raises:
            ParseError: If token doesn't match
        """
        token = self.current_token()
        if token.type != token_type:
            raise self.error(f"Expected {describe(token_type)}, got {describe_token(token)}")
        return self.advance()

    def expect_name(self, what: str = "identifier") -> Token:
        """
        Expect an identifier, accepting soft keywords (``get``, ``set``,
        ``default``) as plain names.
        """
        token = self.current_token()
        if token.type == TokenType.IDENTIFIER or token.type in KEYWORD_AS_IDENTIFIER_TYPES:
            return self.advance()
        raise self.error(f"Expected {what}, got {describe_token(token)}")

    def match(self, *token_types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        return self.current_token().type in token_types

    def fork(self) -> Self:
        """Return an independent parser positioned at the current token."""
        return type(self)(self.tokens, self.file, self.text, self.pos)

    def commit(self, branch: BaseParser) -> None:
        """Adopt the position reached by a successful speculative branch."""
        self.pos = branch.pos

    def source_between(self, first: Token, last: Token) -> str:
        """Original source text spanning ``first`` through ``last``."""
        return self.text[first.start : last.end]

    def parse_entry_list(self, parse_entry: Callable[[], T], what: str) -> list[T]:
        """
        Parse ``[ Entry (, Entry)* [,] ]``.

        Args:
            parse_entry: Callable parsing one entry at the current position
            what: Entry description for error messages

        Returns:
            Parsed entries in order
        """
        self.expect(TokenType.LBRACKET)
        if self.match(TokenType.RBRACKET):
            raise self.error(f"Expected at least one {what}")

        entries = [parse_entry()]
        while self.match(TokenType.COMMA):
            self.advance()
            if self.match(TokenType.RBRACKET):
                break
            entries.append(parse_entry())

        if not self.match(TokenType.RBRACKET):
            token = self.current_token()
            raise self.error(f"Expected ',' or ']' after {what}, got {describe_token(token)}")
        self.advance()
        return entries

    def expect_end(self) -> None:
        """Require that all input has been consumed."""
        token = self.current_token()
        if token.type != TokenType.EOF:
            raise self.error(f"Unexpected {describe_token(token)} after end of block")

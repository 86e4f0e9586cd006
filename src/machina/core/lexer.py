"""
Lexer/Tokenizer for the machina DSL.

Converts raw DSL text into a stream of tokens with source location tracking.
Whitespace and newlines are insignificant; ``#`` starts a comment that runs
to the end of the line. Every token remembers its character offsets so that
embedded Python expressions (fallback values, parameter defaults) can be
recovered verbatim from the source text.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import make_parse_error

DEFAULT_SOURCE = Path("<dsl>")


class TokenType(Enum):
    """Token types in the machina DSL."""

    # Literals
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    NUMBER = "NUMBER"

    # Keywords
    DEF = "def"
    ASYNC = "async"
    GET = "get"
    SET = "set"
    DEFAULT = "default"

    # Brackets
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"

    # Punctuation
    COMMA = ","
    COLON = ":"
    DOT = "."
    EQUALS = "="
    FAT_ARROW = "=>"
    ARROW = "->"
    STAR = "*"
    DOUBLE_STAR = "**"
    SLASH = "/"
    PIPE = "|"

    # Any other operator character sequence (only meaningful inside
    # embedded expressions)
    OPERATOR = "OPERATOR"

    # Special
    EOF = "EOF"


KEYWORDS = {
    "def",
    "async",
    "get",
    "set",
    "default",
}

# Single-character punctuation with a dedicated token type
SIMPLE_PUNCTUATION = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    ".": TokenType.DOT,
    "|": TokenType.PIPE,
}

# Characters that only ever appear as (part of) expression operators
OPERATOR_CHARS = set("+-<>!%&^@~=*/")


@dataclass(frozen=True)
class Token:
    """A single token with source location."""

    type: TokenType
    value: str
    line: int
    column: int
    start: int = 0
    end: int = 0

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class Lexer:
    """
    Tokenizer for machina DSL.

    Tracks line and column for error reporting.
    """

    def __init__(self, text: str, file: Path = DEFAULT_SOURCE):
        """
        Initialize lexer.

        Args:
            text: Source text to tokenize
            file: Source file path (for error reporting)
        """
        self.text = text
        self.file = file
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

    def current_char(self) -> str | None:
        """Get current character without advancing."""
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def peek_char(self, offset: int = 1) -> str | None:
        """Peek ahead at character."""
        pos = self.pos + offset
        if pos >= len(self.text):
            return None
        return self.text[pos]

    def advance(self) -> None:
        """Move to next character."""
        if self.pos < len(self.text):
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def skip_whitespace(self) -> None:
        """Skip whitespace, newlines included."""
        while self.current_char() in (" ", "\t", "\r", "\n"):
            self.advance()

    def skip_comment(self) -> None:
        """Skip comment until end of line."""
        while self.current_char() not in ("\n", None):
            self.advance()

    def read_string(self) -> str:
        """
        Read a quoted string literal.

        Returns the literal exactly as written, quotes included, so it can be
        re-emitted into generated Python source.
        """
        quote = self.current_char()
        start_line = self.line
        start_col = self.column
        start = self.pos
        self.advance()

        while True:
            ch = self.current_char()
            if ch is None or ch == "\n":
                raise make_parse_error(
                    "Unterminated string literal",
                    self.file,
                    start_line,
                    start_col,
                )
            if ch == "\\":
                self.advance()
                self.advance()
                continue
            self.advance()
            if ch == quote:
                break

        return self.text[start : self.pos]

    def read_number(self) -> str:
        """Read a numeric literal (int, float, exponent, underscores)."""
        start = self.pos
        while (ch := self.current_char()) is not None and (ch.isdigit() or ch == "_"):
            self.advance()

        next_ch = self.peek_char()
        if self.current_char() == "." and next_ch is not None and next_ch.isdigit():
            self.advance()
            while (ch := self.current_char()) is not None and (ch.isdigit() or ch == "_"):
                self.advance()

        if self.current_char() in ("e", "E"):
            sign_or_digit = self.peek_char()
            if sign_or_digit is not None and (sign_or_digit.isdigit() or sign_or_digit in "+-"):
                self.advance()
                if self.current_char() in ("+", "-"):
                    self.advance()
                while (ch := self.current_char()) is not None and ch.isdigit():
                    self.advance()

        if self.current_char() in ("j", "J"):
            self.advance()

        return self.text[start : self.pos]

    def read_identifier(self) -> str:
        """Read identifier or keyword."""
        start = self.pos
        while (ch := self.current_char()) is not None and (ch.isalnum() or ch == "_"):
            self.advance()
        return self.text[start : self.pos]

    def _emit(self, token_type: TokenType, value: str, line: int, col: int, start: int) -> None:
        self.tokens.append(Token(token_type, value, line, col, start, self.pos))

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source text.

        Returns:
            List of tokens terminated by EOF

        Raises:
            ParseError: If an unexpected character is encountered
        """
        while True:
            self.skip_whitespace()

            ch = self.current_char()
            if ch is None:
                break

            token_line = self.line
            token_col = self.column
            start = self.pos

            # Comments
            if ch == "#":
                self.skip_comment()
                continue

            # Strings
            elif ch in ('"', "'"):
                value = self.read_string()
                self._emit(TokenType.STRING, value, token_line, token_col, start)

            # Numbers
            elif ch.isdigit():
                value = self.read_number()
                self._emit(TokenType.NUMBER, value, token_line, token_col, start)

            # Identifiers and keywords
            elif ch.isalpha() or ch == "_":
                value = self.read_identifier()
                if value in KEYWORDS:
                    token_type = TokenType(value)
                else:
                    token_type = TokenType.IDENTIFIER
                self._emit(token_type, value, token_line, token_col, start)

            elif ch == "=" and self.peek_char() == ">":
                self.advance()
                self.advance()
                self._emit(TokenType.FAT_ARROW, "=>", token_line, token_col, start)

            elif ch == "-" and self.peek_char() == ">":
                self.advance()
                self.advance()
                self._emit(TokenType.ARROW, "->", token_line, token_col, start)

            elif ch == "*" and self.peek_char() == "*":
                self.advance()
                self.advance()
                self._emit(TokenType.DOUBLE_STAR, "**", token_line, token_col, start)

            elif ch == "*":
                self.advance()
                self._emit(TokenType.STAR, "*", token_line, token_col, start)

            elif ch == "/":
                self.advance()
                self._emit(TokenType.SLASH, "/", token_line, token_col, start)

            elif ch == "=" and self.peek_char() != "=":
                self.advance()
                self._emit(TokenType.EQUALS, "=", token_line, token_col, start)

            elif ch in SIMPLE_PUNCTUATION:
                self.advance()
                self._emit(SIMPLE_PUNCTUATION[ch], ch, token_line, token_col, start)

            elif ch in OPERATOR_CHARS:
                # Greedily group operator characters (==, <=, !=, <<, ...)
                while self.current_char() in OPERATOR_CHARS and not (
                    self.current_char() == "=" and self.peek_char() == ">"
                ):
                    self.advance()
                value = self.text[start : self.pos]
                self._emit(TokenType.OPERATOR, value, token_line, token_col, start)

            else:
                raise make_parse_error(
                    f"Unexpected character: {ch!r}",
                    self.file,
                    token_line,
                    token_col,
                )

        self.tokens.append(
            Token(TokenType.EOF, "", self.line, self.column, self.pos, self.pos)
        )

        return self.tokens


def tokenize(text: str, file: Path = DEFAULT_SOURCE) -> list[Token]:
    """
    Convenience function to tokenize DSL text.

    Args:
        text: Source text
        file: Source file path

    Returns:
        List of tokens
    """
    lexer = Lexer(text, file)
    return lexer.tokenize()

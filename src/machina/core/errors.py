"""
Error types for machina DSL parsing, generation, and artifact output.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .compiler import GeneratedArtifacts


class MachinaError(Exception):
    """Base exception for all machina errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ParseError(MachinaError):
    """
    Raised when DSL syntax cannot be parsed.

    Examples:
    - Unexpected tokens
    - Unbalanced brackets
    - A method entry that is neither a signature nor `get`/`set` shorthand
    """

    pass


class SemanticError(MachinaError):
    """
    Raised when a block parses but describes an invalid combination.

    Examples:
    - Duplicate (state, message) edge
    - `default` fallback on a setter
    - Required method without a receiver
    """

    pass


class ArtifactIOError(MachinaError):
    """
    Raised when generated output could not be persisted.

    Generation succeeded, so the generated artifacts are kept on the
    exception for callers that need to recover them.
    """

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        artifacts: GeneratedArtifacts | None = None,
    ):
        self.path = path
        self.artifacts = artifacts
        super().__init__(message)


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        file: Path to the source file where error occurred
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional code snippet showing the error location
        block: Optional block description (e.g. "transitions Traffic")
    """

    file: Path
    line: int
    column: int
    snippet: str | None = None
    block: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "traffic.machine:10:5 in transitions Traffic"
        """
        location = f"{self.file}:{self.line}:{self.column}"
        if self.block:
            location += f" in {self.block}"

        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        """Format code snippet with line numbers and error marker."""
        if not self.snippet:
            return ""

        lines = self.snippet.split("\n")
        formatted = []

        # Snippet starts up to 2 lines before the error line
        start_line = max(1, self.line - 2)

        for i, line in enumerate(lines):
            line_num = start_line + i
            prefix = f"{line_num:4d} | "
            formatted.append(prefix + line)

            if line_num == self.line:
                marker_pos = len(prefix) + self.column - 1
                formatted.append(" " * marker_pos + "^^^")

        return "\n".join(formatted)


def extract_snippet(text: str, line: int, context: int = 2) -> str:
    """Return the lines around ``line`` (1-indexed) for error display."""
    lines = text.split("\n")
    start = max(0, line - 1 - context)
    end = min(len(lines), line + context)
    return "\n".join(lines[start:end])


def make_parse_error(
    message: str,
    file: Path,
    line: int,
    column: int,
    snippet: str | None = None,
) -> ParseError:
    """
    Helper to create a ParseError with context.

    Args:
        message: Error description
        file: Source file path
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional code snippet

    Returns:
        ParseError with context attached
    """
    context = ErrorContext(file=file, line=line, column=column, snippet=snippet)
    return ParseError(message, context)


def make_semantic_error(
    message: str,
    file: Path | None = None,
    line: int | None = None,
    column: int | None = None,
    block: str | None = None,
) -> SemanticError:
    """
    Helper to create a SemanticError with optional context.

    Args:
        message: Error description
        file: Optional source file path
        line: Optional line number
        column: Optional column number
        block: Optional block description

    Returns:
        SemanticError with context if location provided
    """
    if file and line and column:
        context = ErrorContext(file=file, line=line, column=column, block=block)
        return SemanticError(message, context)
    if block:
        return SemanticError(f"{block}: {message}")
    return SemanticError(message)

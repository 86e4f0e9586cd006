"""
machina DSL Parser Package.

The parser is built from mixins, one per construct, on top of BaseParser.

The main exports are:
- Parser: The complete parser class
- parse_block: Parse the body of one block of a given kind
- parse_machine / parse_methods / parse_transitions: Kind-specific shortcuts
- parse_blocks: Parse a ``.machine`` file holding several invocations

Usage:
    from machina.core.parser_impl import parse_transitions

    spec = parse_transitions("Traffic, [(Green, Advance) => Orange]")

Parsing is a pure function of its input: no global state is read or
written, and parsing the same text twice yields equal IR.
"""

import logging
from pathlib import Path

from .. import ir
from ..lexer import DEFAULT_SOURCE, TokenType, tokenize
from .base import BaseParser, describe_token
from .machine import MachineParserMixin
from .methods import MethodsParserMixin
from .transitions import TransitionsParserMixin
from .types import TypeParserMixin

logger = logging.getLogger(__name__)


class Parser(
    BaseParser,
    TypeParserMixin,
    MachineParserMixin,
    MethodsParserMixin,
    TransitionsParserMixin,
):
    """
    Complete machina DSL Parser.

    - TypeParserMixin: Python type annotations and embedded expressions
    - MachineParserMixin: ``machine`` scaffolding blocks
    - MethodsParserMixin: ``methods`` blocks (signatures, get/set shorthand)
    - TransitionsParserMixin: ``transitions`` blocks
    """

    def parse_block_body(self, kind: ir.BlockKind) -> ir.Block:
        """Parse the body of a block of the given kind."""
        if kind == ir.BlockKind.MACHINE:
            return self.parse_machine_block()
        if kind == ir.BlockKind.METHODS:
            return self.parse_methods_block()
        return self.parse_transitions_block()

    def parse_invocations(self) -> list[ir.Block]:
        """
        Parse ``( Kind ( Body ) )*`` until end of input.

        Returns:
            Blocks in source order
        """
        blocks: list[ir.Block] = []

        while not self.match(TokenType.EOF):
            token = self.expect(TokenType.IDENTIFIER)
            try:
                kind = ir.BlockKind(token.value)
            except ValueError:
                expected = ", ".join(f"`{k.value}`" for k in ir.BlockKind)
                raise self.error(
                    f"Expected block kind ({expected}), got {describe_token(token)}", token
                ) from None

            self.expect(TokenType.LPAREN)
            blocks.append(self.parse_block_body(kind))
            self.expect(TokenType.RPAREN)

        return blocks


def _parser_for(text: str, file: Path) -> Parser:
    return Parser(tokenize(text, file), file, text)


def parse_block(kind: ir.BlockKind | str, text: str, file: Path = DEFAULT_SOURCE) -> ir.Block:
    """
    Parse the body of a single block, e.g. ``Traffic, [ ... ]``.

    Args:
        kind: Block kind
        text: Block body text
        file: Source path for error reporting

    Returns:
        Parsed block IR

    Raises:
        ParseError: On any syntax error
    """
    kind = ir.BlockKind(kind)
    parser = _parser_for(text, file)
    block = parser.parse_block_body(kind)
    parser.expect_end()
    logger.debug("parsed %s block: %r", kind.value, block)
    return block


def parse_machine(text: str, file: Path = DEFAULT_SOURCE) -> ir.MachineSpec:
    """Parse a ``machine`` block body."""
    block = parse_block(ir.BlockKind.MACHINE, text, file)
    assert isinstance(block, ir.MachineSpec)
    return block


def parse_methods(text: str, file: Path = DEFAULT_SOURCE) -> ir.MethodsSpec:
    """Parse a ``methods`` block body."""
    block = parse_block(ir.BlockKind.METHODS, text, file)
    assert isinstance(block, ir.MethodsSpec)
    return block


def parse_transitions(text: str, file: Path = DEFAULT_SOURCE) -> ir.TransitionsSpec:
    """Parse a ``transitions`` block body."""
    block = parse_block(ir.BlockKind.TRANSITIONS, text, file)
    assert isinstance(block, ir.TransitionsSpec)
    return block


def parse_blocks(text: str, file: Path = DEFAULT_SOURCE) -> list[ir.Block]:
    """
    Parse a ``.machine`` source file holding any number of invocations.

    Args:
        text: File contents
        file: Source path for error reporting

    Returns:
        Blocks in source order
    """
    blocks = _parser_for(text, file).parse_invocations()
    logger.debug("parsed %d block(s) from %s", len(blocks), file)
    return blocks


__all__ = [
    "Parser",
    "parse_block",
    "parse_blocks",
    "parse_machine",
    "parse_methods",
    "parse_transitions",
]

"""
Transitions block parsing for the machina DSL.

DSL Syntax:
    transitions(Traffic, [
        (Green, Advance) => Orange,
        (Green, PassCar) => [Green, Orange],
    ])
"""

from typing import TYPE_CHECKING, Any

from .. import ir
from ..lexer import TokenType


class TransitionsParserMixin:
    """
    Mixin for parsing ``transitions`` blocks.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    if TYPE_CHECKING:
        advance: Any
        current_token: Any
        error: Any
        expect: Any
        match: Any
        parse_entry_list: Any

    def parse_transitions_block(self) -> ir.TransitionsSpec:
        """
        Parse ``Machine, [ Edge (, Edge)* ]``.

        Returns:
            TransitionsSpec with edges in declaration order
        """
        machine_name = self.expect(TokenType.IDENTIFIER).value
        self.expect(TokenType.COMMA)
        edges = self.parse_entry_list(self.parse_edge, "transition")
        return ir.TransitionsSpec(machine_name=machine_name, edges=edges)

    def parse_edge(self) -> ir.EdgeSpec:
        """Parse ``( State , Message ) => Target``."""
        start = self.expect(TokenType.LPAREN)
        state = self.expect(TokenType.IDENTIFIER).value
        self.expect(TokenType.COMMA)
        message = self.expect(TokenType.IDENTIFIER).value
        self.expect(TokenType.RPAREN)
        self.expect(TokenType.FAT_ARROW)
        targets = self.parse_targets()

        return ir.EdgeSpec(
            state=state,
            message=message,
            targets=targets,
            line=start.line,
            column=start.column,
        )

    def parse_targets(self) -> list[str]:
        """Parse a single target state or a bracketed, non-empty target list."""
        if not self.match(TokenType.LBRACKET):
            return [self.expect(TokenType.IDENTIFIER).value]

        self.advance()
        if self.match(TokenType.RBRACKET):
            raise self.error("Expected at least one target state")

        targets = [self.expect(TokenType.IDENTIFIER).value]
        while self.match(TokenType.COMMA):
            self.advance()
            if self.match(TokenType.RBRACKET):
                break
            targets.append(self.expect(TokenType.IDENTIFIER).value)
        self.expect(TokenType.RBRACKET)
        return targets

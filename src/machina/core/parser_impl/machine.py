"""
Machine scaffolding block parsing for the machina DSL.

DSL Syntax:
    machine(Traffic, [
        Green { count: int },
        Orange,
        Red,
    ])
"""

from typing import TYPE_CHECKING, Any

from .. import ir
from ..lexer import TokenType


class MachineParserMixin:
    """
    Mixin for parsing ``machine`` blocks.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    if TYPE_CHECKING:
        advance: Any
        expect: Any
        expect_name: Any
        match: Any
        parse_entry_list: Any
        parse_type: Any

    def parse_machine_block(self) -> ir.MachineSpec:
        """
        Parse ``Machine, [ State (, State)* ]``.
        """
        name = self.expect(TokenType.IDENTIFIER).value
        self.expect(TokenType.COMMA)
        states = self.parse_entry_list(self.parse_state_decl, "state")
        return ir.MachineSpec(name=name, states=states)

    def parse_state_decl(self) -> ir.StateSpec:
        """Parse ``State [ { field: Type (, field: Type)* } ]``."""
        name = self.expect(TokenType.IDENTIFIER).value
        fields: list[ir.FieldSpec] = []

        if self.match(TokenType.LBRACE):
            self.advance()
            while not self.match(TokenType.RBRACE):
                field_name = self.expect_name("field name").value
                self.expect(TokenType.COLON)
                fields.append(ir.FieldSpec(name=field_name, type=self.parse_type()))
                if not self.match(TokenType.COMMA):
                    break
                self.advance()
            self.expect(TokenType.RBRACE)

        return ir.StateSpec(name=name, fields=fields)

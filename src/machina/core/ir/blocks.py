"""
Block-level IR types.

A block is one ``machine``, ``methods`` or ``transitions`` invocation.
"""

from __future__ import annotations

from enum import StrEnum

from .machine import MachineSpec
from .methods import MethodsSpec
from .transitions import TransitionsSpec

Block = MachineSpec | MethodsSpec | TransitionsSpec


class BlockKind(StrEnum):
    """The three DSL block forms."""

    MACHINE = "machine"
    METHODS = "methods"
    TRANSITIONS = "transitions"

    @classmethod
    def of(cls, block: Block) -> BlockKind:
        """Return the kind of a parsed block."""
        if isinstance(block, MachineSpec):
            return cls.MACHINE
        if isinstance(block, MethodsSpec):
            return cls.METHODS
        return cls.TRANSITIONS


def machine_name_of(block: Block) -> str:
    """Name of the machine a block belongs to."""
    if isinstance(block, MachineSpec):
        return block.name
    return block.machine_name

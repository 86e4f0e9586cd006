"""
Transition types for machina IR.

Example DSL:
    transitions(Traffic, [
        (Green, Advance) => Orange,
        (Orange, Advance) => Red,
        (Red, Advance) => Green,
        (Green, PassCar) => [Green, Orange],
    ])
"""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class EdgeTriple(NamedTuple):
    """One expanded (source, target, message) edge, as drawn in the graph."""

    source: str
    target: str
    message: str


class EdgeSpec(BaseModel):
    """
    A declared transition rule.

    Attributes:
        state: Source state
        message: Message type that triggers the transition
        targets: Possible destination states, in declaration order.
            One target means the transition is generated inline; several
            mean the state's handler builds the resulting machine itself.
        line: Source line of the declaration (0 when unknown)
        column: Source column of the declaration (0 when unknown)
    """

    state: str
    message: str
    targets: list[str] = Field(min_length=1)
    line: int = Field(default=0, repr=False)
    column: int = Field(default=0, repr=False)

    model_config = ConfigDict(frozen=True)

    @property
    def is_multi(self) -> bool:
        """Check if the handler decides between several destinations."""
        return len(self.targets) > 1

    @property
    def target(self) -> str:
        """The single destination of a deterministic edge."""
        return self.targets[0]


class TransitionsSpec(BaseModel):
    """
    Transitions block for one machine.

    Attributes:
        machine_name: Name of the machine the dispatch methods attach to
        edges: Edges in declaration order
    """

    machine_name: str
    edges: list[EdgeSpec] = Field(min_length=1)

    model_config = ConfigDict(frozen=True)

    def messages(self) -> list[str]:
        """Messages in order of first declaration."""
        seen: dict[str, None] = {}
        for edge in self.edges:
            seen.setdefault(edge.message, None)
        return list(seen)

    def edges_for(self, message: str) -> list[EdgeSpec]:
        """Edges triggered by ``message``, in declaration order."""
        return [e for e in self.edges if e.message == message]

    def edge_triples(self) -> list[EdgeTriple]:
        """Every edge expanded to one triple per target, in declaration order."""
        return [
            EdgeTriple(edge.state, target, edge.message)
            for edge in self.edges
            for target in edge.targets
        ]

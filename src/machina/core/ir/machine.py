"""
Machine scaffolding types for machina IR.

Example DSL:
    machine(Traffic, [
        Green { count: int },
        Orange,
        Red,
    ])
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Name of the implicit sink variant every machine carries
ERROR_STATE = "Error"


class FieldSpec(BaseModel):
    """A payload field of a state: ``name: type``."""

    name: str
    type: str

    model_config = ConfigDict(frozen=True)


class StateSpec(BaseModel):
    """A state declaration with its payload fields (possibly none)."""

    name: str
    fields: list[FieldSpec] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def has_payload(self) -> bool:
        return len(self.fields) > 0


class MachineSpec(BaseModel):
    """
    Scaffolding block: the tagged union and its payload types.

    Attributes:
        name: Name of the machine (the union class)
        states: Declared states, in declaration order
    """

    name: str
    states: list[StateSpec] = Field(min_length=1)

    model_config = ConfigDict(frozen=True)

    @property
    def state_names(self) -> list[str]:
        return [s.name for s in self.states]

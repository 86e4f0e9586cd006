"""
machina Intermediate Representation (IR) types.

This package contains all IR type definitions for the machina DSL.
Types are organized into logical submodules and re-exported here.
"""

from .blocks import (
    Block,
    BlockKind,
    machine_name_of,
)
from .machine import (
    ERROR_STATE,
    FieldSpec,
    MachineSpec,
    StateSpec,
)
from .methods import (
    DefaultKind,
    DefaultPolicy,
    GetterSpec,
    MethodKind,
    MethodSpec,
    MethodsSpec,
    ParamKind,
    ParamSpec,
    RequiredFnSpec,
    SetterSpec,
    SignatureSpec,
)
from .transitions import (
    EdgeSpec,
    EdgeTriple,
    TransitionsSpec,
)

__all__ = [
    "Block",
    "BlockKind",
    "ERROR_STATE",
    "machine_name_of",
    # Machine scaffolding
    "FieldSpec",
    "MachineSpec",
    "StateSpec",
    # Methods
    "DefaultKind",
    "DefaultPolicy",
    "GetterSpec",
    "MethodKind",
    "MethodSpec",
    "MethodsSpec",
    "ParamKind",
    "ParamSpec",
    "RequiredFnSpec",
    "SetterSpec",
    "SignatureSpec",
    # Transitions
    "EdgeSpec",
    "EdgeTriple",
    "TransitionsSpec",
]

"""
Code generators for machina blocks.

Each generator is a pure function of one parsed block: it validates the
block, then returns module source text. Generators never look at other
blocks, so a methods block can be generated before or without its machine.
"""

from .dot import export_dot
from .machine import MachineGenerator
from .methods import MethodsGenerator
from .naming import artifact_stem, handler_name, snake_case
from .transitions import TransitionsGenerator

__all__ = [
    "MachineGenerator",
    "MethodsGenerator",
    "TransitionsGenerator",
    "artifact_stem",
    "export_dot",
    "handler_name",
    "snake_case",
]

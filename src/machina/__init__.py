"""
machina - state machines from a small declarative DSL.

Describe the states of a machine, the transitions between them and the
methods each state exposes; machina generates the Python dispatch code
and a Graphviz graph of the transitions.

    from machina import compile_block

    generated = compile_block("transitions", "Traffic, [(Green, Advance) => Orange]")
    print(generated.source)
"""

from __future__ import annotations

# Re-export commonly used types for convenience
from ._version import __version__
from .core import ir
from .core.compiler import (
    GeneratedArtifacts,
    compile_block,
    compile_source,
    emit_all,
    emit_artifacts,
    expand,
)
from .core.errors import ArtifactIOError, MachinaError, ParseError, SemanticError
from .runtime import Error, Machine, MachineConsumedError, impl
from .sink import ArtifactSink, FileSink, MemorySink, WriteMode

__all__ = [
    "__version__",
    "ir",
    # Compiler
    "GeneratedArtifacts",
    "compile_block",
    "compile_source",
    "emit_all",
    "emit_artifacts",
    "expand",
    # Errors
    "MachinaError",
    "ParseError",
    "SemanticError",
    "ArtifactIOError",
    # Runtime
    "Error",
    "Machine",
    "MachineConsumedError",
    "impl",
    # Sinks
    "ArtifactSink",
    "FileSink",
    "MemorySink",
    "WriteMode",
]

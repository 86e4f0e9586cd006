"""
Compiler driver: parse, generate, emit.

Every block is compiled on its own:

    text --parse--> IR --codegen--> GeneratedArtifacts --sink--> files

Parsing and generation finish before anything is written, so a block with
a syntax or semantic error leaves the output directory untouched.

Output layout for machine ``M`` under ``destination``:

- ``<snake(M)>.py``: the machine block truncates it, methods and
  transitions blocks append to it
- ``<snake(M)>.dot``: written by the machine's single transitions block
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from ..codegen import (
    MachineGenerator,
    MethodsGenerator,
    TransitionsGenerator,
    artifact_stem,
    export_dot,
    handler_name,
    snake_case,
)
from ..sink import ArtifactSink, FileSink, WriteMode
from . import ir
from .errors import ArtifactIOError, make_semantic_error
from .lexer import DEFAULT_SOURCE
from .parser_impl import parse_block, parse_blocks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artifact:
    """One file to hand to a sink, relative to the destination directory."""

    name: str
    text: str
    mode: WriteMode


@dataclass(frozen=True)
class GeneratedArtifacts:
    """
    Everything generated from one block.

    Attributes:
        kind: Kind of the source block
        machine_name: Machine the block belongs to
        source: Generated Python source
        graph: Graphviz text (transitions blocks only)
        fresh: Truncate the source file even for a methods or transitions block
        attributes: ``(class, name)`` pairs the generated code attaches with
            ``impl`` or defines on the machine class
    """

    kind: ir.BlockKind
    machine_name: str
    source: str
    graph: str | None = None
    fresh: bool = False
    attributes: frozenset[tuple[str, str]] = frozenset()

    @property
    def stem(self) -> str:
        return artifact_stem(self.machine_name)

    @property
    def source_mode(self) -> WriteMode:
        if self.fresh or self.kind == ir.BlockKind.MACHINE:
            return WriteMode.TRUNCATE
        return WriteMode.APPEND

    def artifacts(self, graph: bool = True) -> list[Artifact]:
        """Files this block produces, source first."""
        result = [Artifact(f"{self.stem}.py", self.source, self.source_mode)]
        if graph and self.graph is not None:
            result.append(Artifact(f"{self.stem}.dot", self.graph, WriteMode.TRUNCATE))
        return result


def attached_names(block: ir.Block) -> frozenset[tuple[str, str]]:
    """Class attributes the generated code for ``block`` defines, as ``(class, name)``."""
    machine = ir.machine_name_of(block)

    if isinstance(block, ir.MachineSpec):
        names = {(machine, "variants")}
        names.update((machine, snake_case(state)) for state in block.state_names)
        return frozenset(names)

    if isinstance(block, ir.TransitionsSpec):
        names = {(machine, "handle")}
        names.update((machine, handler_name(message)) for message in block.messages())
        return frozenset(names)

    names = set()
    for method in block.methods:
        names.add((machine, method.wrapper_name))
        kind = method.method
        if isinstance(kind, ir.GetterSpec):
            names.update((state, f"get_{kind.field}") for state in method.states)
        elif isinstance(kind, ir.SetterSpec):
            names.update((state, f"set_{kind.field}") for state in method.states)
    return frozenset(names)


def check_build(generated: list[GeneratedArtifacts]) -> None:
    """
    Check that the blocks of a build can live in the same modules.

    Raises:
        SemanticError: If a machine has more than one transitions block, or
            two blocks attach the same attribute to one class
    """
    transitions: set[str] = set()
    owners: dict[tuple[str, str, str], GeneratedArtifacts] = {}

    for item in generated:
        block = f"{item.kind.value} {item.machine_name}"
        if item.kind == ir.BlockKind.TRANSITIONS:
            if item.stem in transitions:
                raise make_semantic_error(
                    "Machine already has a transitions block; "
                    "declare all of its edges in one block",
                    block=block,
                )
            transitions.add(item.stem)

        for owner, name in sorted(item.attributes):
            key = (item.stem, owner, name)
            first = owners.get(key)
            if first is not None:
                raise make_semantic_error(
                    f"{owner}.{name} is already defined by "
                    f"{first.kind.value} {first.machine_name}",
                    block=block,
                )
            owners.setdefault(key, item)


def generate(block: ir.Block, file: Path | None = None) -> GeneratedArtifacts:
    """
    Run the code generator matching a parsed block.

    Raises:
        SemanticError: If the block describes an invalid machine
    """
    kind = ir.BlockKind.of(block)
    graph = None

    if isinstance(block, ir.MachineSpec):
        source = MachineGenerator(file).generate(block)
    elif isinstance(block, ir.MethodsSpec):
        source = MethodsGenerator(file).generate(block)
    else:
        source = TransitionsGenerator(file).generate(block)
        graph = export_dot(block)
        logger.debug("generated graph for %s:\n%s", block.machine_name, graph)

    return GeneratedArtifacts(
        kind=kind,
        machine_name=ir.machine_name_of(block),
        source=source,
        graph=graph,
        attributes=attached_names(block),
    )


def compile_block(
    kind: ir.BlockKind | str, text: str, file: Path = DEFAULT_SOURCE
) -> GeneratedArtifacts:
    """
    Compile the body of one block.

    Args:
        kind: ``machine``, ``methods`` or ``transitions``
        text: Block body, e.g. ``Traffic, [(Green, Advance) => Orange]``
        file: Source path for error reporting

    Raises:
        ParseError: On a syntax error
        SemanticError: On an invalid combination
    """
    return generate(parse_block(kind, text, file), file)


def compile_source(text: str, file: Path = DEFAULT_SOURCE) -> list[GeneratedArtifacts]:
    """
    Compile a ``.machine`` file holding any number of blocks.

    Machine blocks come first in the result so that their truncating write
    does not discard methods or transitions appended before them. Other
    blocks keep their declaration order.

    Raises:
        ParseError: On a syntax error
        SemanticError: On an invalid block, or blocks that conflict (see
            ``check_build``)
    """
    blocks = parse_blocks(text, file)
    ordered = sorted(blocks, key=lambda b: ir.BlockKind.of(b) != ir.BlockKind.MACHINE)
    generated = [generate(block, file) for block in ordered]
    check_build(generated)
    return generated


def emit_artifacts(
    generated: GeneratedArtifacts,
    destination: Path,
    sink: ArtifactSink | None = None,
    graph: bool = True,
) -> list[Path]:
    """
    Hand the artifacts of one block to a sink.

    Args:
        generated: Output of compile_block or compile_source
        destination: Output directory
        sink: Artifact sink (defaults to FileSink)
        graph: Whether to write the ``.dot`` file

    Returns:
        Paths written, in write order

    Raises:
        ArtifactIOError: If the sink fails; carries the path and artifacts
    """
    sink = sink or FileSink()
    written: list[Path] = []

    for artifact in generated.artifacts(graph=graph):
        path = destination / artifact.name
        try:
            sink.write(path, artifact.text.encode("utf-8"), artifact.mode)
        except OSError as e:
            raise ArtifactIOError(
                f"Failed to write {path}: {e}", path=path, artifacts=generated
            ) from e
        written.append(path)

    return written


def emit_all(
    generated: list[GeneratedArtifacts],
    destination: Path,
    sink: ArtifactSink | None = None,
    graph: bool = True,
) -> list[Path]:
    """
    Emit the output of a whole build, replacing earlier output.

    Machine blocks are emitted first, and the first write to each source
    file truncates it, so running the same build twice gives the same files
    even for machines whose scaffolding is written by hand.

    Returns:
        Distinct paths written, in first-write order

    Raises:
        SemanticError: If blocks from different files conflict; nothing is
            written in that case
        ArtifactIOError: If the sink fails
    """
    check_build(generated)
    sink = sink or FileSink()
    ordered = sorted(generated, key=lambda g: g.kind != ir.BlockKind.MACHINE)
    started: set[str] = set()
    written: dict[Path, None] = {}

    for item in ordered:
        if item.stem not in started and item.source_mode == WriteMode.APPEND:
            item = replace(item, fresh=True)
        started.add(item.stem)
        for path in emit_artifacts(item, destination, sink, graph):
            written.setdefault(path, None)

    logger.info("emitted %d block(s) to %s", len(ordered), destination)
    return list(written)


def expand(
    kind: ir.BlockKind | str, text: str, namespace: dict[str, Any]
) -> GeneratedArtifacts:
    """
    Compile a block and execute the generated source in ``namespace``.

    This is the in-process counterpart of writing a module: the way
    ``dataclasses`` builds methods, the generated text is compiled and run
    against the caller's globals, so the machine, its states and message
    classes are looked up there.

    Usage:
        expand("machine", "Traffic, [Green { count: int }, Orange, Red]", globals())
    """
    generated = compile_block(kind, text)
    filename = f"<machina {generated.kind.value} {generated.machine_name}>"
    exec(compile(generated.source, filename, "exec"), namespace)
    return generated

"""
CLI commands for compiling ``.machine`` files.

Commands:
- build: Compile and write ``<machine>.py`` / ``<machine>.dot`` files
- check: Parse and validate without writing anything
- graph: Print the Graphviz graph of a file's transitions
- show: Print the generated Python source of a file
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from machina.core.compiler import GeneratedArtifacts, compile_source, emit_all
from machina.core.errors import MachinaError, ParseError
from machina.core.logging import setup_logging
from machina.core.manifest import MANIFEST_NAME, ProjectManifest
from machina.sink import FileSink

from .utils import load_project, read_source, resolve_sources

console = Console()

DEFAULT_OUTPUT_DIR = Path("generated")


def _apply_project_logging(ctx: typer.Context, project: ProjectManifest | None) -> None:
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    if project is not None and not verbose:
        try:
            setup_logging(project.logging.level, use_color=project.logging.color)
        except ValueError as e:
            typer.echo(f"Error: {e} in {project.project_root / MANIFEST_NAME}", err=True)
            raise typer.Exit(code=1) from e


def _compile_files(sources: list[Path]) -> list[GeneratedArtifacts]:
    generated: list[GeneratedArtifacts] = []
    for path in sources:
        generated.extend(compile_source(read_source(path), path))
    return generated


def _compile_one(file: Path, machine: str | None) -> list[GeneratedArtifacts]:
    if not file.is_file():
        typer.echo(f"Error: file not found: {file}", err=True)
        raise typer.Exit(code=1)

    try:
        generated = compile_source(read_source(file), file)
    except ParseError as e:
        typer.echo(f"Parse error: {e}", err=True)
        raise typer.Exit(code=1)
    except MachinaError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if machine is not None:
        generated = [g for g in generated if g.machine_name == machine]
    return generated


def build_command(
    ctx: typer.Context,
    files: list[Path] | None = typer.Argument(
        None, help=".machine files to compile (default: sources from machina.toml)"
    ),
    output_dir: Path | None = typer.Option(
        None, "--out", "-o", help="Output directory (default: build.output_dir or ./generated)"
    ),
    manifest: Path | None = typer.Option(None, "--manifest", "-m", help="Path to machina.toml"),
    graph: bool | None = typer.Option(
        None, "--graph/--no-graph", help="Write <machine>.dot files (default: build.graph)"
    ),
) -> None:
    """
    Compile .machine files into Python modules and Graphviz graphs.

    Nothing is written unless every file parses and validates.
    """
    project = load_project(manifest)
    _apply_project_logging(ctx, project)
    sources = resolve_sources(files, project)

    destination = output_dir or (project.output_dir if project else DEFAULT_OUTPUT_DIR)
    write_graph = graph if graph is not None else (project.build.graph if project else True)

    try:
        generated = _compile_files(sources)
        written = emit_all(generated, destination, FileSink(), graph=write_graph)
    except ParseError as e:
        typer.echo(f"Parse error: {e}", err=True)
        raise typer.Exit(code=1)
    except MachinaError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    table = Table(title="Generated machines")
    table.add_column("Machine")
    table.add_column("Blocks")
    table.add_column("Files", style="dim")

    machines: dict[str, list[GeneratedArtifacts]] = {}
    for item in generated:
        machines.setdefault(item.machine_name, []).append(item)
    for name, items in machines.items():
        stem = items[0].stem
        files_written = [p.name for p in written if p.stem == stem]
        table.add_row(
            name,
            ", ".join(item.kind.value for item in items),
            ", ".join(files_written),
        )

    console.print(table)
    typer.echo(f"Wrote {len(written)} file(s) to {destination}")


def check_command(
    ctx: typer.Context,
    files: list[Path] | None = typer.Argument(
        None, help=".machine files to check (default: sources from machina.toml)"
    ),
    manifest: Path | None = typer.Option(None, "--manifest", "-m", help="Path to machina.toml"),
) -> None:
    """
    Parse and validate .machine files without writing output.
    """
    project = load_project(manifest)
    _apply_project_logging(ctx, project)
    sources = resolve_sources(files, project)

    failed = False
    for path in sources:
        try:
            generated = compile_source(read_source(path), path)
        except ParseError as e:
            typer.echo(f"Parse error: {e}", err=True)
            failed = True
            continue
        except MachinaError as e:
            typer.echo(f"Error: {e}", err=True)
            failed = True
            continue

        blocks = ", ".join(f"{g.kind.value} {g.machine_name}" for g in generated)
        typer.echo(f"OK {path}: {blocks or 'no blocks'}")

    if failed:
        raise typer.Exit(code=1)


def graph_command(
    file: Path = typer.Argument(..., help=".machine file"),
    machine: str | None = typer.Option(None, "--machine", help="Only this machine"),
) -> None:
    """
    Print the Graphviz graph of every transitions block in a file.

    Pipe into dot: machina graph traffic.machine | dot -Tpng > traffic.png
    """
    graphs = [g.graph for g in _compile_one(file, machine) if g.graph is not None]
    if not graphs:
        typer.echo(f"Error: no transitions block in {file}", err=True)
        raise typer.Exit(code=1)

    for text in graphs:
        typer.echo(text, nl=False)


def show_command(
    file: Path = typer.Argument(..., help=".machine file"),
    machine: str | None = typer.Option(None, "--machine", help="Only this machine"),
) -> None:
    """
    Print the Python source generated from a file, in write order.
    """
    generated = _compile_one(file, machine)
    if not generated:
        typer.echo(f"Error: nothing to generate in {file}", err=True)
        raise typer.Exit(code=1)

    typer.echo("\n\n".join(g.source.rstrip("\n") for g in generated))

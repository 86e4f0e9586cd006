"""
machina CLI Utilities.

Shared utility functions used across CLI modules.
"""

from __future__ import annotations

import platform
import tomllib
from pathlib import Path

import typer

from machina._version import get_version
from machina.core.manifest import ProjectManifest, find_manifest, load_manifest


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"machina {get_version()}")
        typer.echo(f"Python {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


def load_project(manifest: Path | None) -> ProjectManifest | None:
    """
    Load an explicit manifest, or the nearest machina.toml above the CWD.

    Raises:
        typer.Exit: If an explicit manifest does not exist, or the manifest is not valid TOML
    """
    if manifest is not None:
        if not manifest.is_file():
            typer.echo(f"Error: manifest not found: {manifest}", err=True)
            raise typer.Exit(code=1)
        path = manifest.resolve()
    else:
        path = find_manifest(Path.cwd())
        if path is None:
            return None

    try:
        return load_manifest(path)
    except tomllib.TOMLDecodeError as e:
        typer.echo(f"Error: invalid manifest {path}: {e}", err=True)
        raise typer.Exit(code=1) from e


def resolve_sources(files: list[Path] | None, project: ProjectManifest | None) -> list[Path]:
    """
    Pick the ``.machine`` files a command works on.

    Explicit files win over the manifest's ``sources`` globs.

    Raises:
        typer.Exit: If there is nothing to compile
    """
    if files:
        missing = [f for f in files if not f.is_file()]
        if missing:
            typer.echo(f"Error: file not found: {missing[0]}", err=True)
            raise typer.Exit(code=1)
        return list(files)

    if project is not None:
        sources = project.source_files()
        if sources:
            return sources

    typer.echo("Error: no .machine files given and none found via machina.toml", err=True)
    raise typer.Exit(code=1)


def read_source(path: Path) -> str:
    """Read a DSL file, exiting with an error message if it can't be read."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        typer.echo(f"Error: cannot read {path}: {e}", err=True)
        raise typer.Exit(code=1) from e

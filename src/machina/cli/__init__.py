"""
machina CLI Package.

- build.py: build, check, graph and show commands
- utils.py: Shared utilities (version, manifest and source lookup)
"""

from __future__ import annotations

import logging

import typer

from machina._version import __version__
from machina.core.logging import setup_logging

from .build import build_command, check_command, graph_command, show_command
from .utils import version_callback

app = typer.Typer(
    help="""machina: state machines from a declarative DSL

Commands:
  • build: compile .machine files to <machine>.py and <machine>.dot
  • check: parse and validate without writing
  • graph / show: print generated Graphviz or Python to stdout
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Log parse and codegen steps"),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
) -> None:
    """machina CLI main callback for global options."""
    ctx.obj = {"verbose": verbose}
    setup_logging(logging.DEBUG if verbose else logging.WARNING)


app.command(name="build")(build_command)
app.command(name="check")(check_command)
app.command(name="graph")(graph_command)
app.command(name="show")(show_command)


def main() -> None:
    app()


__all__ = [
    "__version__",
    "app",
    "main",
]

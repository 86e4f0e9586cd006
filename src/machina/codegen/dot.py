"""Graphviz DOT export for transitions blocks."""

from __future__ import annotations

from ..core.ir import TransitionsSpec


def export_dot(spec: TransitionsSpec) -> str:
    """
    Export a TransitionsSpec as a Graphviz DOT string.

    One edge line per (source, target, message) triple, in declaration
    order; a multi-target edge contributes one line per target.
    """
    lines = [f"digraph {spec.machine_name} {{"]

    for t in spec.edge_triples():
        lines.append(f'{t.source} -> {t.target} [ label = "{_escape(t.message)}" ];')

    lines.append("}")
    return "\n".join(lines) + "\n"


def _escape(text: str) -> str:
    """Escape a string for a DOT quoted label."""
    return text.replace('"', '\\"').replace("\n", "\\n")

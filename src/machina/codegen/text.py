"""
Text helpers for generated source.
"""

HEADER_WIDTH = 79


def block_header(kind: str, name: str) -> str:
    """
    Marker line opening one generated block.

    Blocks for one machine are appended to the same module, so each carries
    its own header and imports.
    """
    text = f"# === GENERATED BY MACHINA: {kind} {name} "
    return text + "=" * max(3, HEADER_WIDTH - len(text))


def indent(lines: list[str], level: int = 1) -> list[str]:
    """Indent non-empty lines by ``level`` * 4 spaces."""
    pad = "    " * level
    return [pad + line if line else line for line in lines]

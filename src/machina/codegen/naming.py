"""
Naming helpers shared by the code generators.
"""

from __future__ import annotations

import keyword
import re
from pathlib import Path

from ..core.errors import make_semantic_error

# Boundary before an uppercase letter that follows a lowercase letter or digit
# (PassCar -> Pass_Car), and inside an acronym run before its last capital
# when a lowercase letter follows (HTTPRequest -> HTTP_Request).
_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_UNDERSCORES = re.compile(r"_{2,}")

# typing special forms that cannot be called to build a value
_NO_DEFAULT_TYPES = frozenset(
    {"Any", "Callable", "Literal", "LiteralString", "Never", "NoReturn", "None", "Union"}
)


def snake_case(name: str) -> str:
    """
    Convert a CamelCase identifier to snake_case.

    Examples:
        PassCar -> pass_car
        HTTPRequest -> http_request
        Advance -> advance
    """
    if not name:
        return name
    leading = len(name) - len(name.lstrip("_"))
    body = _WORD_BOUNDARY.sub("_", name[leading:]).lower()
    return "_" * leading + _UNDERSCORES.sub("_", body)


def pascal_case(name: str) -> str:
    """Convert a snake_case identifier to PascalCase (can_pass -> CanPass)."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def handler_name(message: str) -> str:
    """Name of the dispatch method for a message type."""
    return f"on_{snake_case(message)}"


def artifact_stem(machine_name: str) -> str:
    """File stem of every artifact generated for a machine."""
    return snake_case(machine_name)


def quote(annotation: str) -> str:
    """Render a type as a string annotation."""
    if '"' not in annotation:
        return f'"{annotation}"'
    return repr(annotation)


def union_members(type_text: str) -> list[str]:
    """Split a type on top-level ``|`` (brackets are respected)."""
    members: list[str] = []
    depth = 0
    current: list[str] = []
    for char in type_text:
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        if char == "|" and depth == 0:
            members.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    members.append("".join(current).strip())
    return members


def is_optional(type_text: str) -> bool:
    """Check if ``None`` is a valid value of the type."""
    members = union_members(type_text)
    if "None" in members:
        return True
    return any(m.startswith(("Optional[", "typing.Optional[")) for m in members)


def has_type_default(type_text: str) -> bool:
    """
    Check if calling the type with no arguments builds a value of it.

    Examples:
        list[str] -> True
        Literal["r", "w"] -> False
        typing.Any -> False
        "Forward" -> False
    """
    head = type_text.split("[", 1)[0].strip()
    if not head or not all(part.isidentifier() for part in head.split(".")):
        return False
    return head.rsplit(".", 1)[-1] not in _NO_DEFAULT_TYPES


def check_identifier(
    name: str,
    what: str,
    block: str,
    file: Path | None = None,
    line: int | None = None,
) -> None:
    """
    Reject names that cannot be used as Python identifiers.

    Raises:
        SemanticError: For keywords such as ``class`` and for non-identifiers
    """
    if not name.isidentifier() or keyword.iskeyword(name):
        raise make_semantic_error(
            f"{what} {name!r} is not a valid Python identifier",
            file=file,
            line=line,
            column=1,
            block=block,
        )


def check_not_reserved(
    name: str,
    what: str,
    reserved: frozenset[str],
    block: str,
    file: Path | None = None,
    line: int | None = None,
) -> None:
    """Reject generated names that would shadow runtime attributes."""
    if name in reserved or name.startswith("_"):
        raise make_semantic_error(
            f"{what} {name!r} clashes with a reserved machine attribute",
            file=file,
            line=line,
            column=1,
            block=block,
        )


__all__ = [
    "artifact_stem",
    "check_identifier",
    "check_not_reserved",
    "handler_name",
    "has_type_default",
    "is_optional",
    "pascal_case",
    "quote",
    "snake_case",
    "union_members",
]

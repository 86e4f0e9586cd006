"""
Machine scaffolding generator.

Turns a MachineSpec into the tagged union a machine is made of: one
dataclass per state and a Machine subclass holding exactly one of them.

    machine(Traffic, [Green { count: int }, Orange, Red])

generates

    @dataclass
    class Green:
        count: "int"

    class Traffic(Machine):
        variants = (Green, Orange, Red)

        @classmethod
        def green(cls, count: "int") -> "Traffic":
            return cls(Green(count))
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.errors import make_semantic_error
from ..core.ir import ERROR_STATE, MachineSpec, StateSpec
from ..runtime import RESERVED_NAMES
from .naming import check_identifier, check_not_reserved, quote, snake_case
from .text import block_header

logger = logging.getLogger(__name__)


class MachineGenerator:
    """Generate the payload dataclasses and machine class for a MachineSpec."""

    def __init__(self, file: Path | None = None):
        self.file = file

    def generate(self, spec: MachineSpec) -> str:
        """
        Generate the scaffolding module text.

        Raises:
            SemanticError: On duplicate or reserved names
        """
        self._validate(spec)
        parts = [
            self._generate_imports(spec),
            *(self._generate_state(state) for state in spec.states),
            self._generate_machine(spec),
        ]
        source = "\n\n\n".join(parts) + "\n"
        logger.debug("generated machine %s:\n%s", spec.name, source)
        return source

    def _validate(self, spec: MachineSpec) -> None:
        block = f"machine {spec.name}"
        check_identifier(spec.name, "Machine name", block, self.file)

        seen_states: set[str] = set()
        seen_constructors: dict[str, str] = {}
        for state in spec.states:
            check_identifier(state.name, "State", block, self.file)
            if state.name == ERROR_STATE:
                raise make_semantic_error(
                    f"State {ERROR_STATE!r} is reserved for the error state", block=block
                )
            if state.name in seen_states:
                raise make_semantic_error(f"State {state.name!r} declared twice", block=block)
            seen_states.add(state.name)

            constructor = snake_case(state.name)
            check_not_reserved(constructor, "Constructor", RESERVED_NAMES, block, self.file)
            if constructor in seen_constructors:
                raise make_semantic_error(
                    f"States {seen_constructors[constructor]!r} and {state.name!r} "
                    f"both map to constructor {constructor!r}",
                    block=block,
                )
            seen_constructors[constructor] = state.name

            seen_fields: set[str] = set()
            for field in state.fields:
                check_identifier(field.name, "Field", block, self.file)
                if field.name in seen_fields:
                    raise make_semantic_error(
                        f"Field {field.name!r} declared twice on {state.name}", block=block
                    )
                seen_fields.add(field.name)

    def _generate_imports(self, spec: MachineSpec) -> str:
        lines = [
            block_header("machine", spec.name),
            "from dataclasses import dataclass",
            "",
            "from machina.runtime import Machine",
        ]
        return "\n".join(lines)

    def _generate_state(self, state: StateSpec) -> str:
        lines = ["@dataclass", f"class {state.name}:"]
        if not state.has_payload:
            lines.append("    pass")
        for field in state.fields:
            lines.append(f"    {field.name}: {quote(field.type)}")
        return "\n".join(lines)

    def _generate_machine(self, spec: MachineSpec) -> str:
        variants = ", ".join(spec.state_names)
        if len(spec.states) == 1:
            variants += ","

        lines = [
            f"class {spec.name}(Machine):",
            f'    """State machine over {", ".join(spec.state_names)} and Error."""',
            "",
            f"    variants = ({variants})",
        ]

        for state in spec.states:
            params = "".join(f", {f.name}: {quote(f.type)}" for f in state.fields)
            args = ", ".join(f.name for f in state.fields)
            lines.extend(
                [
                    "",
                    "    @classmethod",
                    f"    def {snake_case(state.name)}(cls{params}) -> {quote(spec.name)}:",
                    f"        return cls({state.name}({args}))",
                ]
            )

        return "\n".join(lines)

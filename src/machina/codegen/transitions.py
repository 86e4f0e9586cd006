"""
Transition dispatch generator.

For every message type a transitions block mentions, generates one
``on_<message>`` method on the machine. The method consumes the machine,
asks the current state's handler for the next payload and returns the new
machine:

    transitions(Traffic, [
        (Green, Advance) => Orange,
        (Green, PassCar) => [Green, Orange],
    ])

generates

    @impl(Traffic)
    class _TrafficTransitions:
        def on_advance(self, message: "Advance") -> "Traffic":
            state = self._take()
            match state:
                case Error():
                    return Traffic.error()
                case Green():
                    return Traffic.wrap(Orange, state.on_advance(message))
                case _:
                    return Traffic.error()

Single-target edges are wrapped by the generated code; for multi-target
edges the state's handler builds the resulting machine itself.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.errors import SemanticError, make_semantic_error
from ..core.ir import ERROR_STATE, EdgeSpec, TransitionsSpec
from .naming import check_identifier, handler_name, quote
from .text import block_header, indent

logger = logging.getLogger(__name__)


class TransitionsGenerator:
    """Generate per-message dispatch methods for a TransitionsSpec."""

    def __init__(self, file: Path | None = None):
        self.file = file

    def generate(self, spec: TransitionsSpec) -> str:
        """
        Generate the dispatch block text.

        Raises:
            SemanticError: On duplicate (state, message) pairs, an ``Error``
                source state or a repeated target within one edge
        """
        self._validate(spec)
        parts = [
            self._generate_imports(spec),
            self._generate_messages(spec),
            *(self._generate_handler_protocol(spec, edge) for edge in spec.edges),
            self._generate_dispatch(spec),
        ]
        source = "\n\n\n".join(parts) + "\n"
        logger.debug("generated transitions for %s:\n%s", spec.machine_name, source)
        return source

    def _error(self, message: str, spec: TransitionsSpec, edge: EdgeSpec) -> SemanticError:
        return make_semantic_error(
            message,
            file=self.file,
            line=edge.line,
            column=edge.column,
            block=f"transitions {spec.machine_name}",
        )

    def _validate(self, spec: TransitionsSpec) -> None:
        block = f"transitions {spec.machine_name}"
        check_identifier(spec.machine_name, "Machine name", block, self.file)

        first_seen: dict[tuple[str, str], EdgeSpec] = {}
        handlers: dict[str, str] = {}
        protocols: dict[str, EdgeSpec] = {}

        for edge in spec.edges:
            for name, what in [(edge.state, "State"), (edge.message, "Message")]:
                check_identifier(name, what, block, self.file, edge.line)
            for target in edge.targets:
                check_identifier(target, "Target state", block, self.file, edge.line)

            if edge.state == ERROR_STATE:
                raise self._error(
                    f"{ERROR_STATE!r} cannot be the source of a transition", spec, edge
                )

            key = (edge.state, edge.message)
            if key in first_seen:
                where = f" (first declared on line {first_seen[key].line})" if edge.line else ""
                raise self._error(
                    f"Duplicate transition for ({edge.state}, {edge.message}){where}",
                    spec,
                    edge,
                )
            first_seen[key] = edge

            if len(set(edge.targets)) != len(edge.targets):
                raise self._error(
                    f"Transition ({edge.state}, {edge.message}) lists a target twice", spec, edge
                )

            handler = handler_name(edge.message)
            other = handlers.setdefault(handler, edge.message)
            if other != edge.message:
                raise self._error(
                    f"Messages {other!r} and {edge.message!r} both map to {handler}()",
                    spec,
                    edge,
                )

            protocol = self._protocol_name(edge)
            clash = protocols.setdefault(protocol, edge)
            if clash is not edge:
                raise self._error(
                    f"Transitions ({clash.state}, {clash.message}) and "
                    f"({edge.state}, {edge.message}) both map to {protocol}",
                    spec,
                    edge,
                )

    def _generate_imports(self, spec: TransitionsSpec) -> str:
        lines = [
            block_header("transitions", spec.machine_name),
            "from typing import Protocol, runtime_checkable",
            "",
            "from machina.runtime import Error, impl",
        ]
        return "\n".join(lines)

    def _generate_messages(self, spec: TransitionsSpec) -> str:
        names = ", ".join(f'"{m}"' for m in spec.messages())
        if len(spec.messages()) == 1:
            names += ","
        return f"{spec.machine_name}Messages = ({names})"

    @staticmethod
    def _protocol_name(edge: EdgeSpec) -> str:
        return f"{edge.state}{edge.message}Handler"

    def _generate_handler_protocol(self, spec: TransitionsSpec, edge: EdgeSpec) -> str:
        result = spec.machine_name if edge.is_multi else edge.target
        lines = [
            "@runtime_checkable",
            f"class {self._protocol_name(edge)}(Protocol):",
            f"    def {handler_name(edge.message)}(self, message: {quote(edge.message)})"
            f" -> {quote(result)}: ...",
        ]
        return "\n".join(lines)

    def _generate_dispatch(self, spec: TransitionsSpec) -> str:
        machine = spec.machine_name
        lines = [f"@impl({machine})", f"class _{machine}Transitions:"]

        for message in spec.messages():
            lines.extend(indent(self._generate_message_method(spec, message)))
            lines.append("")
        lines.extend(indent(self._generate_handle(spec)))

        return "\n".join(lines)

    def _generate_message_method(self, spec: TransitionsSpec, message: str) -> list[str]:
        machine = spec.machine_name
        handler = handler_name(message)
        lines = [
            f"def {handler}(self, message: {quote(message)}) -> {quote(machine)}:",
            "    state = self._take()",
            "    match state:",
            f"        case {ERROR_STATE}():",
            f"            return {machine}.error()",
        ]

        for edge in spec.edges_for(message):
            lines.append(f"        case {edge.state}():")
            if edge.is_multi:
                lines.append(f"            return state.{handler}(message)")
            else:
                lines.append(
                    f"            return {machine}.wrap({edge.target}, state.{handler}(message))"
                )

        lines.extend(
            [
                "        case _:",
                f"            return {machine}.error()",
            ]
        )
        return lines

    def _generate_handle(self, spec: TransitionsSpec) -> list[str]:
        machine = spec.machine_name
        lines = [
            f"def handle(self, message: object) -> {quote(machine)}:",
            "    match type(message).__name__:",
        ]
        for message in spec.messages():
            lines.extend(
                [
                    f'        case "{message}":',
                    f"            return self.{handler_name(message)}(message)",
                ]
            )
        lines.extend(
            [
                "        case _:",
                "            self._take()",
                f"            return {machine}.error()",
            ]
        )
        return lines

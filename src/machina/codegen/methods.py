"""
Method projection generator.

A methods block declares methods that only some states have, and projects
them onto the machine as a single wrapper that dispatches on the current
state:

    methods(Traffic, [
        Green => get count: int,
        Green => set count: int,
        [Orange, Red] => default(0) def wait_time(self) -> int,
    ])

- ``get``/``set`` shorthand generates the accessor on each listed state
  (``get_count``/``set_count``) plus a wrapper on the machine (``count``/
  ``set_count``).
- A ``def`` signature generates no per-state code: every listed state must
  implement it. A runtime-checkable Protocol documents the contract.
- States outside the list fall through to the fallback: ``None`` by default,
  the type's default value with ``default``, or an expression with
  ``default(expr)``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.errors import SemanticError, make_semantic_error
from ..core.ir import (
    ERROR_STATE,
    DefaultKind,
    GetterSpec,
    MethodSpec,
    MethodsSpec,
    ParamKind,
    ParamSpec,
    RequiredFnSpec,
    SetterSpec,
    SignatureSpec,
)
from ..runtime import RESERVED_NAMES
from .naming import (
    check_identifier,
    check_not_reserved,
    has_type_default,
    is_optional,
    pascal_case,
    quote,
    union_members,
)
from .text import block_header, indent

logger = logging.getLogger(__name__)


def render_params(params: list[ParamSpec]) -> str:
    """Render a parameter list with string annotations."""
    parts: list[str] = []
    star_written = False

    for index, param in enumerate(params):
        previous = params[index - 1] if index else None
        if (
            previous is not None
            and previous.kind == ParamKind.POSITIONAL_ONLY
            and param.kind != ParamKind.POSITIONAL_ONLY
        ):
            parts.append("/")
        if param.kind == ParamKind.VAR_POSITIONAL:
            star_written = True
        elif param.kind == ParamKind.KEYWORD_ONLY and not star_written:
            parts.append("*")
            star_written = True
        parts.append(_render_param(param))

    if params and params[-1].kind == ParamKind.POSITIONAL_ONLY:
        parts.append("/")
    return ", ".join(parts)


def _render_param(param: ParamSpec) -> str:
    prefix = ""
    if param.kind == ParamKind.VAR_POSITIONAL:
        prefix = "*"
    elif param.kind == ParamKind.VAR_KEYWORD:
        prefix = "**"

    text = f"{prefix}{param.name}"
    if param.annotation is not None:
        text += f": {quote(param.annotation)}"
        if param.default is not None:
            text += f" = {param.default}"
    elif param.default is not None:
        text += f"={param.default}"
    return text


class MethodsGenerator:
    """Generate per-state accessors and machine wrappers for a MethodsSpec."""

    def __init__(self, file: Path | None = None):
        self.file = file

    def generate(self, spec: MethodsSpec) -> str:
        """
        Generate the methods block text.

        Raises:
            SemanticError: On conflicting declarations (see ``_validate``)
        """
        self._validate(spec)

        parts = [self._generate_imports(spec)]
        parts.extend(self._generate_accessors(spec))
        parts.extend(
            self._generate_protocol(spec, m)
            for m in spec.methods
            if isinstance(m.method, RequiredFnSpec)
        )
        parts.append(self._generate_wrappers(spec))

        source = "\n\n\n".join(parts) + "\n"
        logger.debug("generated methods for %s:\n%s", spec.machine_name, source)
        return source

    # =========================================================================
    # Validation
    # =========================================================================

    def _error(self, message: str, spec: MethodsSpec, method: MethodSpec) -> SemanticError:
        return make_semantic_error(
            message,
            file=self.file,
            line=method.line,
            column=1,
            block=f"methods {spec.machine_name}",
        )

    def _validate(self, spec: MethodsSpec) -> None:
        """
        Check the block for conflicts that would produce broken code.

        Rejected:
        - a state listed twice in one entry, or the reserved ``Error`` state
        - two entries generating the same wrapper or capability Protocol
        - ``default`` on a setter, or on a function returning nothing
        - a function without a receiver parameter
        - two entries generating the same method on one state
        """
        block = f"methods {spec.machine_name}"
        check_identifier(spec.machine_name, "Machine name", block, self.file)

        wrappers: dict[str, MethodSpec] = {}
        protocols: dict[str, MethodSpec] = {}
        per_state: dict[str, set[str]] = {}

        for method in spec.methods:
            self._validate_method(spec, method)

            name = method.wrapper_name
            check_not_reserved(name, "Method", RESERVED_NAMES, block, self.file, method.line)
            if name in wrappers:
                raise self._error(
                    f"Method {name!r} already declared on line {wrappers[name].line}",
                    spec,
                    method,
                )
            wrappers[name] = method

            if isinstance(method.method, RequiredFnSpec):
                protocol = self._protocol_name(spec, method.method)
                clash = protocols.setdefault(protocol, method)
                if clash is not method:
                    raise self._error(
                        f"Methods {clash.wrapper_name!r} and {name!r} both map to {protocol}",
                        spec,
                        method,
                    )

            state_method = self._state_method_name(method)
            for state in method.states:
                names = per_state.setdefault(state, set())
                if state_method in names:
                    raise self._error(
                        f"{state} gets {state_method}() from two declarations", spec, method
                    )
                names.add(state_method)

    def _validate_method(self, spec: MethodsSpec, method: MethodSpec) -> None:
        block = f"methods {spec.machine_name}"

        seen: set[str] = set()
        for state in method.states:
            check_identifier(state, "State", block, self.file, method.line)
            if state == ERROR_STATE:
                raise self._error(
                    f"{ERROR_STATE!r} state cannot carry projected methods", spec, method
                )
            if state in seen:
                raise self._error(f"State {state!r} listed twice", spec, method)
            seen.add(state)

        kind = method.method
        if isinstance(kind, (GetterSpec, SetterSpec)):
            check_identifier(kind.field, "Field", block, self.file, method.line)
            if isinstance(kind, SetterSpec) and method.default.is_default:
                raise self._error(
                    f"`default` is not allowed on setter for {kind.field!r}", spec, method
                )
            return_type = kind.type
        else:
            signature = kind.signature
            check_identifier(signature.name, "Method", block, self.file, method.line)
            for param in signature.params:
                check_identifier(param.name, "Parameter", block, self.file, method.line)
            if signature.receiver is None:
                raise self._error(
                    f"{signature.name}() needs a receiver parameter such as `self`", spec, method
                )
            if method.default.is_default and signature.returns_nothing:
                raise self._error(
                    f"`default` on {signature.name}() requires a return type other than None",
                    spec,
                    method,
                )
            if signature.return_type is None:
                return
            return_type = signature.return_type

        if method.default.kind == DefaultKind.TYPE_DEFAULT and not is_optional(return_type):
            if len(union_members(return_type)) > 1:
                raise self._error(
                    f"Union type {return_type!r} has no default value; use default(expr)",
                    spec,
                    method,
                )
            if not has_type_default(return_type):
                raise self._error(
                    f"Type {return_type!r} has no default value; use default(expr)",
                    spec,
                    method,
                )

    @staticmethod
    def _state_method_name(method: MethodSpec) -> str:
        kind = method.method
        if isinstance(kind, GetterSpec):
            return f"get_{kind.field}"
        if isinstance(kind, SetterSpec):
            return f"set_{kind.field}"
        return kind.signature.name

    # =========================================================================
    # Generation
    # =========================================================================

    def _generate_imports(self, spec: MethodsSpec) -> str:
        lines = [block_header("methods", spec.machine_name)]
        if any(isinstance(m.method, RequiredFnSpec) for m in spec.methods):
            lines.extend(["from typing import Protocol, runtime_checkable", ""])
        lines.append("from machina.runtime import impl")
        return "\n".join(lines)

    def _generate_accessors(self, spec: MethodsSpec) -> list[str]:
        """One ``@impl(State)`` class per state with get/set accessors."""
        accessors: dict[str, list[str]] = {}

        for method in spec.methods:
            kind = method.method
            if isinstance(kind, RequiredFnSpec):
                continue
            for state in method.states:
                body = accessors.setdefault(state, [])
                if body:
                    body.append("")
                body.extend(self._generate_accessor(kind))

        return [
            "\n".join([f"@impl({state})", f"class _{state}Accessors:", *indent(body)])
            for state, body in accessors.items()
        ]

    def _generate_accessor(self, kind: GetterSpec | SetterSpec) -> list[str]:
        annotation = quote(kind.type)
        if isinstance(kind, GetterSpec):
            return [
                f"def get_{kind.field}(self) -> {annotation}:",
                f"    return self.{kind.field}",
            ]
        return [
            f"def set_{kind.field}(self, value: {annotation}) -> {annotation}:",
            f"    self.{kind.field} = value",
            f"    return self.{kind.field}",
        ]

    @staticmethod
    def _protocol_name(spec: MethodsSpec, method: RequiredFnSpec) -> str:
        return f"{spec.machine_name}{pascal_case(method.signature.name)}Capable"

    def _generate_protocol(self, spec: MethodsSpec, method: MethodSpec) -> str:
        assert isinstance(method.method, RequiredFnSpec)
        signature = method.method.signature
        lines = [
            "@runtime_checkable",
            f"class {self._protocol_name(spec, method.method)}(Protocol):",
            f"    {self._def_line(signature, signature.return_type)} ...",
        ]
        return "\n".join(lines)

    def _generate_wrappers(self, spec: MethodsSpec) -> str:
        lines = [f"@impl({spec.machine_name})", f"class _{spec.machine_name}Methods:"]
        for index, method in enumerate(spec.methods):
            if index:
                lines.append("")
            lines.extend(indent(self._generate_wrapper(method)))
        return "\n".join(lines)

    def _generate_wrapper(self, method: MethodSpec) -> list[str]:
        kind = method.method
        state_method = self._state_method_name(method)

        if isinstance(kind, GetterSpec):
            signature = SignatureSpec(
                name=kind.field, params=[ParamSpec(name="self")], return_type=kind.type
            )
        elif isinstance(kind, SetterSpec):
            signature = SignatureSpec(
                name=f"set_{kind.field}",
                params=[ParamSpec(name="self"), ParamSpec(name="value", annotation=kind.type)],
                return_type=kind.type,
            )
        else:
            signature = kind.signature

        receiver = signature.receiver
        assert receiver is not None
        args = ", ".join(p.forward() for p in signature.forwarded_params)
        call = f"{receiver.name}.state.{state_method}({args})"
        if signature.is_async:
            call = f"await {call}"

        lines = [
            self._def_line(signature, self._wrapper_return_type(method, signature)),
            f"    match {receiver.name}.state:",
        ]
        for state in method.states:
            lines.extend([f"        case {state}():", f"            return {call}"])
        lines.extend(["        case _:", f"            return {self._fallback(method, signature)}"])
        return lines

    def _def_line(self, signature: SignatureSpec, return_type: str | None) -> str:
        prefix = "async def" if signature.is_async else "def"
        text = f"{prefix} {signature.name}({render_params(signature.params)})"
        if return_type is not None:
            text += f" -> {quote(return_type)}"
        return text + ":"

    @staticmethod
    def _wrapper_return_type(method: MethodSpec, signature: SignatureSpec) -> str | None:
        return_type = signature.return_type
        if return_type is None or method.default.is_default:
            return return_type
        if is_optional(return_type):
            return return_type
        return f"{return_type} | None"

    @staticmethod
    def _fallback(method: MethodSpec, signature: SignatureSpec) -> str:
        policy = method.default
        if policy.kind == DefaultKind.LITERAL:
            assert policy.expr is not None
            return policy.expr
        if policy.kind == DefaultKind.TYPE_DEFAULT:
            return_type = signature.return_type
            assert return_type is not None
            if is_optional(return_type):
                return "None"
            return f"{return_type}()"
        return "None"

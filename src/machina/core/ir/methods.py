"""
Method projection types for machina IR.

Example DSL:
    methods(Traffic, [
        Green => get count: int,
        Green => set count: int,
        [Green, Orange, Red] => def can_pass(self) -> bool,
        [Orange, Red] => default(0) def wait_time(self, factor: int = 1) -> int,
    ])
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class ParamKind(StrEnum):
    """Python parameter kinds, mirroring ``inspect.Parameter`` kinds."""

    POSITIONAL_ONLY = "positional_only"
    POSITIONAL_OR_KEYWORD = "positional_or_keyword"
    VAR_POSITIONAL = "var_positional"
    KEYWORD_ONLY = "keyword_only"
    VAR_KEYWORD = "var_keyword"


class ParamSpec(BaseModel):
    """
    A single parameter of a required method signature.

    Attributes:
        name: Parameter name
        kind: Parameter kind
        annotation: Type annotation source text, if any
        default: Default value source text, if any
    """

    name: str
    kind: ParamKind = ParamKind.POSITIONAL_OR_KEYWORD
    annotation: str | None = None
    default: str | None = None

    model_config = ConfigDict(frozen=True)

    def forward(self) -> str:
        """Render the parameter as an argument passing it through unchanged."""
        if self.kind == ParamKind.VAR_POSITIONAL:
            return f"*{self.name}"
        if self.kind == ParamKind.VAR_KEYWORD:
            return f"**{self.name}"
        if self.kind == ParamKind.KEYWORD_ONLY:
            return f"{self.name}={self.name}"
        return self.name


class SignatureSpec(BaseModel):
    """
    A full function signature: ``[async] def name(params) [-> Type]``.

    The first parameter is the receiver; it is never forwarded.
    """

    name: str
    params: list[ParamSpec] = Field(default_factory=list)
    return_type: str | None = None
    is_async: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def receiver(self) -> ParamSpec | None:
        if not self.params:
            return None
        first = self.params[0]
        if first.kind in (ParamKind.VAR_POSITIONAL, ParamKind.VAR_KEYWORD, ParamKind.KEYWORD_ONLY):
            return None
        return first

    @property
    def forwarded_params(self) -> list[ParamSpec]:
        """Value parameters, receiver excluded."""
        if self.receiver is None:
            return list(self.params)
        return list(self.params[1:])

    @property
    def returns_nothing(self) -> bool:
        return self.return_type is None or self.return_type == "None"


class GetterSpec(BaseModel):
    """``get field: Type`` shorthand."""

    kind: Literal["get"] = "get"
    field: str
    type: str

    model_config = ConfigDict(frozen=True)


class SetterSpec(BaseModel):
    """``set field: Type`` shorthand."""

    kind: Literal["set"] = "set"
    field: str
    type: str

    model_config = ConfigDict(frozen=True)


class RequiredFnSpec(BaseModel):
    """A method every listed state must implement itself."""

    kind: Literal["fn"] = "fn"
    signature: SignatureSpec

    model_config = ConfigDict(frozen=True)


MethodKind = Annotated[
    GetterSpec | SetterSpec | RequiredFnSpec,
    Field(discriminator="kind"),
]


class DefaultKind(StrEnum):
    """What a wrapper returns for states outside the method's state set."""

    NONE = "none"  # Optional result, None when absent
    TYPE_DEFAULT = "type_default"  # The return type's canonical default
    LITERAL = "literal"  # A user supplied expression


class DefaultPolicy(BaseModel):
    """Fallback policy of a method spec."""

    kind: DefaultKind = DefaultKind.NONE
    expr: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_default(self) -> bool:
        """Check if the wrapper returns a concrete value instead of an Optional."""
        return self.kind != DefaultKind.NONE


class MethodSpec(BaseModel):
    """
    One projected method.

    Attributes:
        states: States that take part, in declaration order
        method: Getter, setter or required function
        default: Fallback policy for every other state
        line: Source line of the declaration (0 when unknown)
    """

    states: list[str] = Field(min_length=1)
    method: MethodKind
    default: DefaultPolicy = Field(default_factory=DefaultPolicy)
    line: int = Field(default=0, repr=False)

    model_config = ConfigDict(frozen=True)

    @property
    def wrapper_name(self) -> str:
        """Name of the dispatch method generated on the machine."""
        method = self.method
        if isinstance(method, GetterSpec):
            return method.field
        if isinstance(method, SetterSpec):
            return f"set_{method.field}"
        return method.signature.name


class MethodsSpec(BaseModel):
    """
    Methods block for one machine.

    Attributes:
        machine_name: Name of the machine the wrappers attach to
        methods: Method specs in declaration order
    """

    machine_name: str
    methods: list[MethodSpec] = Field(min_length=1)

    model_config = ConfigDict(frozen=True)

    def states(self) -> list[str]:
        """States mentioned by any method, in order of first mention."""
        seen: dict[str, None] = {}
        for method in self.methods:
            for state in method.states:
                seen.setdefault(state, None)
        return list(seen)

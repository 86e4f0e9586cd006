"""
Runtime support for generated machines.

Generated modules import from here and nothing else:

    from machina.runtime import Error, Machine, impl

A machine is a thin wrapper around exactly one state payload. Transition
methods consume the machine they are called on and return a new one, so a
machine that has been stepped cannot be stepped again.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar, TypeVar

T = TypeVar("T", bound=type)
M = TypeVar("M", bound="Machine")

# Attribute names owned by the Machine base class. Generated constructors
# and wrappers must not shadow them.
RESERVED_NAMES = frozenset({"state", "error", "wrap", "is_error", "variants", "handle"})


@dataclass(frozen=True)
class Error:
    """Payload of the error state. Every machine has it, and it carries nothing."""


class MachineConsumedError(RuntimeError):
    """Raised when a machine is used after a transition consumed it."""


class _Consumed:
    def __repr__(self) -> str:
        return "<consumed>"


_CONSUMED = _Consumed()


class Machine:
    """
    Base class of every generated machine.

    Attributes:
        variants: Payload classes of the declared states (Error excluded)
    """

    variants: ClassVar[tuple[type, ...]] = ()

    def __init__(self, state: Any):
        self._state = state

    @property
    def state(self) -> Any:
        """The current state payload."""
        if self._state is _CONSUMED:
            raise MachineConsumedError(
                f"{type(self).__name__} was consumed by a transition; use the returned machine"
            )
        return self._state

    @property
    def is_error(self) -> bool:
        return isinstance(self.state, Error)

    @classmethod
    def error(cls: type[M]) -> M:
        """Build a machine in the error state."""
        return cls(Error())

    @classmethod
    def wrap(cls: type[M], variant: type, payload: Any) -> M:
        """
        Build a machine from the payload a state handler returned.

        Raises:
            TypeError: If ``payload`` is not an instance of ``variant``
        """
        if not isinstance(payload, variant):
            raise TypeError(
                f"{cls.__name__}: expected {variant.__name__} from handler, "
                f"got {type(payload).__name__}"
            )
        return cls(payload)

    def _take(self) -> Any:
        """Move the state out of this machine, leaving it consumed."""
        state = self.state
        self._state = _CONSUMED
        return state

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        assert isinstance(other, Machine)
        return bool(self._state == other._state)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._state!r})"


def impl(target: T) -> Callable[[type], T]:
    """
    Class decorator attaching the body of the decorated class to ``target``.

    Usage:
        @impl(Traffic)
        class _TrafficTransitions:
            def on_advance(self, message): ...

    Raises:
        TypeError: If ``target`` already defines one of the attributes
    """

    def attach(block: type) -> T:
        for name, value in vars(block).items():
            if name.startswith("__") and name.endswith("__"):
                continue
            if name in vars(target):
                raise TypeError(f"{target.__name__} already defines {name!r}")
            setattr(target, name, value)
        return target

    return attach

"""Shared pytest fixtures for machina tests."""

from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace

import pytest

from machina import expand, impl

MACHINE_BODY = """
Traffic, [
    Green { count: int },
    Orange,
    Red,
]
"""

TRANSITIONS_BODY = """
Traffic, [
    (Green, Advance) => Orange,
    (Orange, Advance) => Red,
    (Red, Advance) => Green,
    (Green, PassCar) => [Green, Orange],
]
"""

METHODS_BODY = """
Traffic, [
    Green => get count: int,
    Green => set count: int,
    [Green, Orange, Red] => def working(self) -> bool,
    Orange, Red => default(0) def wait_time(self, factor: int = 1) -> int,
]
"""

TRAFFIC_SOURCE = f"""
# Traffic light with a car counter
machine({MACHINE_BODY})

transitions({TRANSITIONS_BODY})

methods({METHODS_BODY})
"""


@dataclass
class Advance:
    pass


@dataclass
class PassCar:
    count: int


@pytest.fixture
def traffic_source() -> str:
    """Return the traffic light DSL: machine, transitions and methods blocks."""
    return TRAFFIC_SOURCE


@pytest.fixture
def traffic_file(tmp_path: Path) -> Path:
    """Write the traffic light DSL to a temporary .machine file."""
    path = tmp_path / "traffic.machine"
    path.write_text(TRAFFIC_SOURCE, encoding="utf-8")
    return path


@pytest.fixture
def traffic() -> SimpleNamespace:
    """
    Build the traffic light machine in a fresh namespace.

    Generated code is executed with ``expand``; the state handlers are
    written by hand the way a user of the generated module would.
    """
    namespace: dict = {}
    expand("machine", MACHINE_BODY, namespace)
    Traffic = namespace["Traffic"]
    Green, Orange, Red = namespace["Green"], namespace["Orange"], namespace["Red"]

    @impl(Green)
    class _GreenHandlers:
        def on_advance(self, message):
            return Orange()

        def on_pass_car(self, message):
            count = self.count + message.count
            if count >= 10:
                return Traffic.orange()
            return Traffic.green(count)

        def working(self):
            return True

    @impl(Orange)
    class _OrangeHandlers:
        def on_advance(self, message):
            return Red()

        def working(self):
            return False

        def wait_time(self, factor=1):
            return 5 * factor

    @impl(Red)
    class _RedHandlers:
        def on_advance(self, message):
            return Green(0)

        def working(self):
            return False

        def wait_time(self, factor=1):
            return 30 * factor

    expand("transitions", TRANSITIONS_BODY, namespace)
    expand("methods", METHODS_BODY, namespace)

    return SimpleNamespace(Advance=Advance, PassCar=PassCar, **namespace)

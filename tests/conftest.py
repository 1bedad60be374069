"""Pytest configuration for the Dyson local integration tests."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import pytest

root_path = Path(__file__).resolve().parent.parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))

from custom_components.dyson_local.state.model import DeviceState  # noqa: E402

# Full state of a purifier exposing the fpwr/auto power style.
PURIFIER_SNAPSHOT: dict[str, Any] = {
    "fpwr": "ON",
    "fnst": "FAN",
    "auto": "OFF",
    "fnsp": "0005",
    "oson": "OFF",
    "osal": "0135",
    "osau": "0225",
    "ancp": "0090",
    "rhtm": "ON",
    "nmod": "OFF",
    "fdir": "ON",
    "ercd": "NONE",
    "wacd": "NONE",
    "cflr": "0080",
    "hflr": "0090",
}

# Older fan that carries power in fmod and reports filter hours.
LEGACY_SNAPSHOT: dict[str, Any] = {
    "fmod": "FAN",
    "fnst": "FAN",
    "fnsp": "0003",
    "oson": "ON",
    "rhtm": "OFF",
    "nmod": "OFF",
    "ffoc": "ON",
    "filf": "2150",
    "tilt": "OK",
}


def pytest_configure(config: pytest.Config) -> None:
    """Register markers used throughout the test suite."""

    config.addinivalue_line(
        "markers", "asyncio: mark coroutine tests to execute via asyncio loop"
    )


def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute coroutine tests within a dedicated event loop."""

    test_function = pyfuncitem.obj
    if not asyncio.iscoroutinefunction(test_function):
        return None

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        funcargs = pyfuncitem.funcargs
        testargs = {
            arg: funcargs[arg] for arg in pyfuncitem._fixtureinfo.argnames
        }
        loop.run_until_complete(test_function(**testargs))
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return True


class FakeMQTT:
    """Record publications and subscriptions made through the MQTT helper."""

    def __init__(self) -> None:
        """Initialise empty publish and subscribe logs."""

        self.published: list[tuple[str, str, int]] = []
        self.subscriptions: dict[str, Any] = {}
        self.unsubscribed: list[str] = []

    async def async_publish(self, topic: str, payload: str, qos: int = 0) -> None:
        """Capture an outbound message."""

        self.published.append((topic, payload, qos))

    async def async_subscribe(self, topic: str, callback: Any, qos: int = 0) -> Any:
        """Store ``callback`` and return an unsubscribe function."""

        self.subscriptions[topic] = callback

        def _unsubscribe() -> None:
            self.subscriptions.pop(topic, None)
            self.unsubscribed.append(topic)

        return _unsubscribe

    def deliver(self, topic: str, payload: Any) -> None:
        """Push ``payload`` to the subscriber of ``topic``."""

        self.subscriptions[topic](topic, payload)


class FakeMonotonic:
    """Deterministic monotonic clock for refresh throttling."""

    def __init__(self, value: float = 0.0) -> None:
        """Initialise the fake clock with ``value`` seconds."""

        self.value = value

    def __call__(self) -> float:
        """Return the current monotonic reading."""

        return self.value


@pytest.fixture
def fake_mqtt() -> FakeMQTT:
    """Return a recording MQTT helper."""

    return FakeMQTT()


@pytest.fixture
def fake_clock() -> FakeMonotonic:
    """Return a controllable monotonic clock."""

    return FakeMonotonic(100.0)


@pytest.fixture
def purifier_snapshot() -> dict[str, Any]:
    """Return a copy of the purifier snapshot."""

    return dict(PURIFIER_SNAPSHOT)


@pytest.fixture
def legacy_snapshot() -> dict[str, Any]:
    """Return a copy of the legacy fan snapshot."""

    return dict(LEGACY_SNAPSHOT)


@pytest.fixture
def fresh_state() -> DeviceState:
    """Return an empty device state."""

    return DeviceState()

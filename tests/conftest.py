"""Shared fixtures for hlksw16 tests."""

import asyncio

import pytest

from hlksw16.config import ConnectionConfig
from hlksw16.transport.mock import MockTransport


def build_inbound(op: int, payload: bytes, trailer: bytes = b"\x0c\xdd") -> bytes:
    """Build a 20-byte inbound frame: marker, op, 16 payload bytes, 2 trailing bytes."""
    assert len(payload) == 16
    return bytes([0xCC, op]) + payload + trailer


@pytest.fixture
def status_frame():
    """Factory for status frames from a list of 16 on/off values."""

    def _build(states):
        return build_inbound(0x0C, bytes(0x01 if on else 0x00 for on in states))

    return _build


@pytest.fixture
def keepalive_frame():
    """A forward-order keepalive: 23-10-19 12:30:45, weekday 6."""
    return build_inbound(0x1F, bytes([0x17, 0x0A, 0x13, 0x0C, 0x1E, 0x2D, 0x06]) + bytes(9))


@pytest.fixture
def fast_config():
    """Configuration with timings short enough for tests."""
    return ConnectionConfig(
        initial_delay=0.01,
        max_delay=0.05,
        poll_interval=0.05,
        idle_check_interval=0.05,
        probe_timeout=0.5,
    )


@pytest.fixture
def slow_config():
    """Configuration whose timers never fire during a test."""
    return ConnectionConfig(
        initial_delay=0.01,
        max_delay=0.05,
        poll_interval=60.0,
        idle_check_interval=60.0,
    )


@pytest.fixture
def inbound_frame():
    """Factory for arbitrary inbound frames."""
    return build_inbound


@pytest.fixture
def eventually():
    """Wait until a condition holds, polling the event loop."""

    async def _wait(predicate, timeout=1.0, interval=0.005):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("Condition not met within %.1fs" % timeout)
            await asyncio.sleep(interval)

    return _wait


@pytest.fixture
def mock_factory():
    """Transport factory building one MockTransport per controller."""

    def _factory(host, port, config):
        return MockTransport(f"mock://{host}:{port}")

    return _factory

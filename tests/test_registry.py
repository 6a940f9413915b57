"""Tests for ConnectionRegistry."""

import asyncio

import pytest

from hlksw16.connection import ConnectionState
from hlksw16.registry import ConnectionRegistry
from hlksw16.transport.mock import MockTransport


class TestConnectionRegistry:
    """Tests for ConnectionRegistry."""

    @pytest.fixture
    def registry(self, slow_config, mock_factory):
        """Create a registry that builds mock transports."""
        return ConnectionRegistry(config=slow_config, transport_factory=mock_factory)

    def test_empty(self, registry):
        assert len(registry) == 0
        assert registry.get("master") is None
        assert "master" not in registry

    @pytest.mark.asyncio
    async def test_same_id_shares_manager(self, registry):
        """Test one manager serves every lookup of the same controller."""
        try:
            first = registry.get_or_create("master", "10.0.0.2", 8080)
            second = registry.get_or_create("master", "10.0.0.2", 8080)

            assert first is second
            assert len(registry) == 1
            assert registry.get("master") is first
        finally:
            await registry.shutdown_all()

    @pytest.mark.asyncio
    async def test_different_ids_get_different_managers(self, registry):
        try:
            first = registry.get_or_create("one", "10.0.0.2", 8080)
            second = registry.get_or_create("two", "10.0.0.2", 8080)

            assert first is not second
            assert first.transport is not second.transport
            assert sorted(registry) == ["one", "two"]
        finally:
            await registry.shutdown_all()

    @pytest.mark.asyncio
    async def test_manager_configuration(self, registry, slow_config):
        try:
            manager = registry.get_or_create("master", "10.0.0.2", 8080)

            assert manager.instance_id == "master"
            assert (manager.host, manager.port) == ("10.0.0.2", 8080)
            assert manager.config is slow_config
            assert isinstance(manager.transport, MockTransport)
        finally:
            await registry.shutdown_all()

    @pytest.mark.asyncio
    async def test_new_manager_after_shutdown(self, registry):
        """Test a shut down manager is replaced on the next lookup."""
        first = registry.get_or_create("master", "10.0.0.2", 8080)
        await first.shutdown()
        assert "master" not in registry

        second = registry.get_or_create("master", "10.0.0.2", 8080)
        try:
            assert second is not first
            assert second.state != ConnectionState.SHUTDOWN
        finally:
            await registry.shutdown_all()

    def test_failed_start_leaves_no_entry(self, registry):
        """Test a lookup that cannot start its manager is not remembered."""
        with pytest.raises(RuntimeError):
            registry.get_or_create("master", "10.0.0.2", 8080)

        assert "master" not in registry
        assert len(registry) == 0

        async def run():
            manager = registry.get_or_create("master", "10.0.0.2", 8080)
            try:
                await asyncio.wait_for(manager.connect(), timeout=1.0)
                assert manager.connected
            finally:
                await registry.shutdown_all()

        asyncio.run(run())

    @pytest.mark.asyncio
    async def test_remove_only_matching_manager(self, registry):
        """Test a stale manager cannot remove its replacement."""
        first = registry.get_or_create("master", "10.0.0.2", 8080)
        await first.shutdown()
        second = registry.get_or_create("master", "10.0.0.2", 8080)
        try:
            assert registry.remove("master", first) is False
            assert registry.get("master") is second
            assert registry.remove("master") is True
            assert registry.remove("master") is False
        finally:
            await second.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_all(self, registry):
        managers = [registry.get_or_create(name, "10.0.0.2", 8080) for name in ("a", "b", "c")]

        await registry.shutdown_all()

        assert len(registry) == 0
        assert all(manager.state == ConnectionState.SHUTDOWN for manager in managers)

"""Tests for RelayChannel."""

import pytest

from hlksw16.channel import RelayChannel
from hlksw16.pairing import list_devices
from hlksw16.protocol.codec import encode_command
from hlksw16.registry import ConnectionRegistry


class TestRelayChannel:
    """Tests for RelayChannel bound to a mock controller."""

    @pytest.fixture
    def registry(self, slow_config, mock_factory):
        return ConnectionRegistry(config=slow_config, transport_factory=mock_factory)

    @pytest.fixture
    def devices(self):
        return list_devices("10.0.0.2", 8080)

    @pytest.mark.asyncio
    async def test_follows_status_changes(self, registry, devices, status_frame, eventually):
        """Test on_change fires only when the reported state changes."""
        changes = []
        channel = RelayChannel(registry, devices[3], on_change=changes.append)
        manager = channel.attach()
        try:
            await manager.connect()
            transport = manager.transport

            on = [index == 3 for index in range(16)]
            transport.feed(status_frame(on))
            transport.feed(status_frame(on))
            transport.feed(status_frame([False] * 16))
            await eventually(lambda: len(changes) == 2)

            assert changes == [True, False]
            assert channel.is_on is False
        finally:
            await registry.shutdown_all()

    @pytest.mark.asyncio
    async def test_availability(self, registry, devices, eventually):
        availability = []
        channel = RelayChannel(registry, devices[0], on_availability=availability.append)
        manager = channel.attach()
        try:
            assert channel.available is False
            await manager.connect()
            assert channel.available is True

            manager.transport.feed_eof()
            await eventually(lambda: availability.count(True) == 2)
            assert availability == [True, False, True]
        finally:
            await registry.shutdown_all()

    @pytest.mark.asyncio
    async def test_set_state(self, registry, devices):
        channel = RelayChannel(registry, devices[7])
        manager = channel.attach()
        try:
            await manager.connect()

            assert await channel.set_state(True) is True
            manager.transport.assert_written(encode_command(7, True))
            assert await channel.set_state(False) is True
            manager.transport.assert_written(encode_command(7, False))
        finally:
            await registry.shutdown_all()

    @pytest.mark.asyncio
    async def test_set_state_when_detached(self, registry, devices):
        channel = RelayChannel(registry, devices[7])
        assert await channel.set_state(True) is False

    @pytest.mark.asyncio
    async def test_channels_share_connection(self, registry, devices):
        """Test all channels of one controller use one manager."""
        channels = [RelayChannel(registry, device) for device in devices]
        try:
            managers = {id(channel.attach()) for channel in channels}

            assert len(managers) == 1
            assert len(registry) == 1
            assert registry.get(devices[0].master_device).subscriber_count() == 16 * 3
        finally:
            await registry.shutdown_all()

    @pytest.mark.asyncio
    async def test_attach_twice(self, registry, devices):
        channel = RelayChannel(registry, devices[1])
        try:
            assert channel.attach() is channel.attach()
            assert channel.manager.subscriber_count() == 3
        finally:
            await registry.shutdown_all()

    @pytest.mark.asyncio
    async def test_detach_releases_subscriptions(self, registry, devices):
        channel = RelayChannel(registry, devices[1])
        manager = channel.attach()
        try:
            channel.detach()

            assert manager.subscriber_count() == 0
            assert not channel.attached
            assert channel.available is False
        finally:
            await registry.shutdown_all()

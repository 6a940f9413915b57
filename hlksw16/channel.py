"""
Per-channel consumer of a shared controller connection.

A RelayChannel is what a host platform wraps as one on/off device. It finds
(or creates) the shared ConnectionManager through the registry, listens to
its own channel and to the connection lifecycle, and forwards on/off
requests. Detaching drops every subscription, which lets the manager's idle
check close the socket once the last channel of a controller is gone.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from hlksw16.connection import ConnectionManager
from hlksw16.events import TOPIC_CONNECTED, TOPIC_DISCONNECTED, Subscription, channel_topic
from hlksw16.pairing import ChannelDevice
from hlksw16.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class RelayChannel:
    """
    One relay channel bound to a shared connection.

    Attributes:
        device: Descriptor of this channel.
        is_on: Last state reported by the controller, None until the first
            status frame.
        available: Whether the shared connection is currently up.

    Example:
        >>> channel = RelayChannel(registry, devices[3], on_change=print)
        >>> channel.attach()
        >>> await channel.set_state(True)
        True
        >>> channel.detach()
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        device: ChannelDevice,
        on_change: Callable[[bool], None] | None = None,
        on_availability: Callable[[bool], None] | None = None,
    ) -> None:
        self._registry = registry
        self.device = device
        self._on_change = on_change
        self._on_availability = on_availability
        self._manager: ConnectionManager | None = None
        self._subscriptions: list[Subscription] = []
        self.is_on: bool | None = None
        self.available = False

    @property
    def manager(self) -> ConnectionManager | None:
        """The shared connection, while attached."""
        return self._manager

    @property
    def attached(self) -> bool:
        return self._manager is not None

    def attach(self) -> ConnectionManager:
        """
        Bind to the shared connection of this channel's controller.

        Must be called from a running event loop. Attaching twice is a no-op.

        Returns:
            The shared manager.
        """
        if self._manager is not None:
            return self._manager

        manager = self._registry.get_or_create(
            self.device.master_device, self.device.ip, self.device.port
        )
        self._manager = manager
        self._subscriptions = [
            manager.subscribe(channel_topic(self.device.channel), self._status_update),
            manager.subscribe(TOPIC_CONNECTED, self._connected),
            manager.subscribe(TOPIC_DISCONNECTED, self._disconnected),
        ]
        self._set_available(manager.connected)
        logger.debug("%s attached to %s", self.device.name, self.device.master_device)
        return manager

    def detach(self) -> None:
        """Drop all subscriptions on the shared connection."""
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        self._manager = None
        self._set_available(False)
        logger.debug("%s detached", self.device.name)

    async def set_state(self, on: bool) -> bool:
        """
        Request a new relay state.

        The reported state (``is_on``) only changes when the controller
        confirms it in a later status frame.

        Returns:
            True if the command was sent.
        """
        if self._manager is None:
            return False
        if on:
            return await self._manager.turn_on(self.device.channel)
        return await self._manager.turn_off(self.device.channel)

    def _status_update(self, on: bool) -> None:
        if self.is_on == on:
            return
        self.is_on = on
        logger.debug("%s is now %s", self.device.name, "on" if on else "off")
        if self._on_change is not None:
            self._on_change(on)

    def _connected(self) -> None:
        self._set_available(True)

    def _disconnected(self) -> None:
        self._set_available(False)

    def _set_available(self, available: bool) -> None:
        if self.available == available:
            return
        self.available = available
        if self._on_availability is not None:
            self._on_availability(available)

    def __repr__(self) -> str:
        return f"RelayChannel({self.device.name!r}, channel={self.device.channel}, is_on={self.is_on})"

"""
Registry of shared controller connections.

The registry maps an instance identifier (one per physical controller) to
the single ConnectionManager serving it. It is an ordinary object owned by
the application, so tests can use a fresh one each time.

Entries are removed by the managers themselves when their idle check finds
no subscribers left; a later lookup for the same identifier builds a new
manager.

Example:
    >>> registry = ConnectionRegistry()
    >>> first = registry.get_or_create("master-uuid", "192.168.1.50", 8080)
    >>> second = registry.get_or_create("master-uuid", "192.168.1.50", 8080)
    >>> first is second
    True
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator

from hlksw16.config import DEFAULT_CONFIG, ConnectionConfig
from hlksw16.connection import (
    ConnectionManager,
    ConnectionState,
    TransportFactory,
    default_transport_factory,
)

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Instance identifier -> ConnectionManager table.

    Attributes:
        config: Configuration handed to every manager built here.
    """

    def __init__(
        self,
        config: ConnectionConfig | None = None,
        transport_factory: TransportFactory | None = None,
    ) -> None:
        """
        Initialize an empty registry.

        Args:
            config: Configuration for managers created by this registry.
            transport_factory: Builds the transport for a (host, port, config);
                defaults to TCP.
        """
        self.config = config or DEFAULT_CONFIG
        self._transport_factory = transport_factory or default_transport_factory
        self._connections: dict[str, ConnectionManager] = {}

    def get_or_create(self, instance_id: str, host: str, port: int) -> ConnectionManager:
        """
        Return the manager for an instance, creating and starting it if needed.

        Must be called from a running event loop.

        Args:
            instance_id: Identifier shared by all channels of one controller.
            host: Controller IP address.
            port: Controller TCP port.

        Returns:
            The shared manager.
        """
        manager = self._connections.get(instance_id)
        if manager is not None and manager.state != ConnectionState.SHUTDOWN:
            return manager

        logger.info("Creating connection %s for %s:%s", instance_id, host, port)
        manager = ConnectionManager(
            host,
            port,
            instance_id,
            config=self.config,
            transport=self._transport_factory(host, port, self.config),
            registry=self,
        )
        manager.start()
        self._connections[instance_id] = manager
        return manager

    def get(self, instance_id: str) -> ConnectionManager | None:
        """Return the manager for an instance, or None."""
        return self._connections.get(instance_id)

    def remove(self, instance_id: str, manager: ConnectionManager | None = None) -> bool:
        """
        Drop an entry.

        Called by a manager on shutdown. When ``manager`` is given, the entry
        is only dropped if it still refers to that manager.

        Returns:
            True if an entry was removed.
        """
        current = self._connections.get(instance_id)
        if current is None or (manager is not None and current is not manager):
            return False

        del self._connections[instance_id]
        logger.debug("Removed connection %s", instance_id)
        return True

    async def shutdown_all(self) -> None:
        """Shut down every registered manager."""
        managers = list(self._connections.values())
        await asyncio.gather(*(manager.shutdown() for manager in managers))
        self._connections.clear()

    def __contains__(self, instance_id: object) -> bool:
        return instance_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._connections))

    def __repr__(self) -> str:
        return f"ConnectionRegistry(connections={len(self._connections)})"

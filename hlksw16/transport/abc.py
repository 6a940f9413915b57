"""
Abstract transport interface for HLK-SW16 communication.

This module defines the abstract base class for all transport implementations.
Transports handle the low-level byte stream to one controller.

The transport layer is responsible for:
- Opening/closing the physical connection
- Reading and writing raw bytes
- Timeout handling

Implementations:
- AsyncTcpTransport: asyncio TCP socket
- MockTransport: in-memory transport for tests
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType


class AbstractTransport(ABC):
    """
    Abstract base class for HLK-SW16 transports.

    A transport can be opened again after it has been closed; the connection
    manager reuses one transport across reconnects, but never has it open
    twice at the same time.

    Transports support async context manager protocol for safe resource
    management:

        async with AsyncTcpTransport("192.168.1.50", 8080) as transport:
            await transport.write(frame)
            chunk = await transport.read()

    Attributes:
        is_open: Whether the transport connection is currently open.
        address: Identifier for the transport (e.g., "192.168.1.50:8080").
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the transport connection is currently open.

        Returns:
            True if connected and ready for I/O, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def address(self) -> str:
        """
        Get the transport identifier.

        Returns:
            Address string (e.g., "192.168.1.50:8080").
        """
        ...

    @abstractmethod
    async def open(self) -> None:
        """
        Open the transport connection.

        Raises:
            TransportError: If the connection cannot be established.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Close the transport connection.

        Releases the connection and any associated resources.
        Safe to call multiple times (idempotent).
        """
        ...

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write one complete frame to the transport.

        Args:
            data: Bytes to send.

        Raises:
            TransportError: If the transport is not open or write fails.
        """
        ...

    @abstractmethod
    async def read(self, timeout: float | None = None) -> bytes:
        """
        Read the next chunk of data as delivered by the network.

        No framing is applied: the chunk is whatever arrived, up to the
        transport's read size.

        Args:
            timeout: Read timeout in seconds. None waits indefinitely.

        Returns:
            The received bytes, or ``b""`` when the peer closed the connection.

        Raises:
            TimeoutError: If timeout expires before any data arrives.
            TransportError: If the transport is not open or read fails.
        """
        ...

    async def __aenter__(self) -> AbstractTransport:
        """Async context manager entry - opens the transport."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes the transport."""
        await self.close()

"""
Async TCP transport using asyncio streams.

The HLK-SW16 exposes its relay protocol on a plain TCP serial server. There
is no handshake: once the socket is open the controller starts sending
keepalive frames and accepts command frames.

Example:
    >>> transport = AsyncTcpTransport("192.168.1.50", 8080)
    >>> async with transport:
    ...     await transport.write(encode_poll())
    ...     chunk = await transport.read(timeout=5.0)
"""

from __future__ import annotations

import asyncio
import logging

from hlksw16.exceptions import TimeoutError, TransportError
from hlksw16.protocol.constants import ProtocolConstants
from hlksw16.transport.abc import AbstractTransport

logger = logging.getLogger(__name__)


class AsyncTcpTransport(AbstractTransport):
    """
    Async TCP transport.

    Attributes:
        host: Controller IP address or host name.
        port: Controller TCP port.
        is_open: Whether the socket is currently open.

    Example:
        >>> transport = AsyncTcpTransport("192.168.1.50", 8080)
        >>> await transport.open()
        >>> try:
        ...     await transport.write(frame)
        ...     chunk = await transport.read()
        ... finally:
        ...     await transport.close()
    """

    def __init__(
        self,
        host: str,
        port: int,
        read_size: int = ProtocolConstants.DEFAULT_READ_SIZE,
        connect_timeout: float | None = None,
    ) -> None:
        """
        Initialize the TCP transport.

        Args:
            host: Controller IP address or host name.
            port: Controller TCP port.
            read_size: Maximum bytes returned by one read().
            connect_timeout: Timeout for establishing the socket, None for
                the operating system default.
        """
        self._host = host
        self._port = port
        self._read_size = read_size
        self._connect_timeout = connect_timeout
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def is_open(self) -> bool:
        """Check if the socket is currently open."""
        return (
            self._writer is not None
            and not self._writer.is_closing()
            and self._reader is not None
        )

    @property
    def address(self) -> str:
        """Get the controller address as host:port."""
        return f"{self._host}:{self._port}"

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def connect_timeout(self) -> float | None:
        return self._connect_timeout

    async def open(self) -> None:
        """
        Open the TCP connection.

        Raises:
            TransportError: If the connection cannot be established.
        """
        if self.is_open:
            return

        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=self._connect_timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Timed out connecting to {self.address} after {self._connect_timeout}s"
            ) from e
        except OSError as e:
            raise TransportError(f"Failed to connect to {self.address}: {e}") from e

        logger.debug("Socket open to %s", self.address)

    async def close(self) -> None:
        """
        Close the TCP connection.

        Safely closes the connection and releases resources. Safe to call
        multiple times.
        """
        writer = self._writer
        self._reader = None
        self._writer = None

        if writer is not None:
            try:
                writer.close()
                await writer.wait_closed()
            except OSError as e:
                logger.debug("Error while closing socket to %s: %s", self.address, e)

    async def write(self, data: bytes) -> None:
        """
        Write data to the socket and wait for it to drain.

        Args:
            data: Bytes to transmit.

        Raises:
            TransportError: If the socket is not open or write fails.
        """
        if not self.is_open:
            raise TransportError(f"Socket to {self.address} is not open")

        try:
            self._writer.write(data)
            await self._writer.drain()
        except OSError as e:
            raise TransportError(f"Write to {self.address} failed: {e}") from e

    async def read(self, timeout: float | None = None) -> bytes:
        """
        Read the next chunk from the socket.

        Args:
            timeout: Read timeout in seconds. None waits indefinitely.

        Returns:
            Received bytes, or ``b""`` at end of stream.

        Raises:
            TimeoutError: If timeout expires before data arrives.
            TransportError: If the socket is not open or read fails.
        """
        if not self.is_open:
            raise TransportError(f"Socket to {self.address} is not open")

        try:
            return await asyncio.wait_for(
                self._reader.read(self._read_size),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(
                f"Timeout waiting for data from {self.address}",
                timeout_seconds=timeout,
            ) from None
        except OSError as e:
            raise TransportError(f"Read from {self.address} failed: {e}") from e

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"AsyncTcpTransport({self._host!r}, {self._port}, {status})"

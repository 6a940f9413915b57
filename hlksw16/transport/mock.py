"""
Mock transport for testing.

This module provides an in-memory transport that lets the connection manager
be exercised without a controller. Inbound chunks are queued with feed(),
the peer closing the socket is simulated with feed_eof(), and failed connect
attempts with fail_next_opens(). Everything written is recorded.

Example:
    >>> from hlksw16.transport import MockTransport
    >>> mock = MockTransport()
    >>> mock.feed(status_frame)
    >>> manager = ConnectionManager("10.0.0.2", 8080, "master", transport=mock)
    >>> await manager.connect()
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable

from hlksw16.exceptions import TimeoutError, TransportError
from hlksw16.transport.abc import AbstractTransport


class MockTransport(AbstractTransport):
    """
    Mock transport for testing without hardware.

    Attributes:
        written_data: List of all bytes written to the transport.
        open_count: Number of successful open() calls.
        open_attempts: Number of open() calls, failed or not.

    Example:
        >>> mock = MockTransport()
        >>> mock.feed(b"\\xcc\\x0c...")
        >>>
        >>> async with mock:
        ...     await mock.write(b"test")
        ...     chunk = await mock.read()
        ...     assert mock.written_data == [b"test"]
    """

    def __init__(self, address: str = "mock://test") -> None:
        """
        Initialize the mock transport.

        Args:
            address: Identifier for the mock transport.
        """
        self._address = address
        self._is_open = False
        self._queue: asyncio.Queue[bytes | None] | None = None
        self._pending: deque[bytes] = deque()
        self._written_data: list[bytes] = []
        self._open_failures = 0
        self._response_callback: Callable[[bytes], bytes | None] | None = None
        self.open_count = 0
        self.open_attempts = 0

    @property
    def is_open(self) -> bool:
        """Check if the mock transport is open."""
        return self._is_open

    @property
    def address(self) -> str:
        """Get the mock address."""
        return self._address

    @property
    def written_data(self) -> list[bytes]:
        """Get all data written to the transport."""
        return self._written_data.copy()

    @property
    def last_written(self) -> bytes | None:
        """Get the most recently written data."""
        return self._written_data[-1] if self._written_data else None

    def feed(self, data: bytes) -> None:
        """
        Queue an inbound chunk.

        Chunks fed while the transport is closed are delivered after the
        next successful open().

        Args:
            data: Bytes returned by one read().
        """
        if self._is_open and self._queue is not None:
            self._queue.put_nowait(bytes(data))
        else:
            self._pending.append(bytes(data))

    def feed_eof(self) -> None:
        """Simulate the peer closing the connection."""
        if self._is_open and self._queue is not None:
            self._queue.put_nowait(b"")

    def fail_next_opens(self, count: int = 1) -> None:
        """
        Make the next ``count`` open() calls raise TransportError.

        Args:
            count: Number of failing attempts.
        """
        self._open_failures = count

    def set_response_callback(
        self,
        callback: Callable[[bytes], bytes | None] | None,
    ) -> None:
        """
        Set a callback for dynamic responses.

        The callback receives written data and returns an inbound chunk to
        queue, or None for no response.

        Args:
            callback: Response generator function, or None to clear.
        """
        self._response_callback = callback

    async def open(self) -> None:
        """
        Open the mock transport.

        Raises:
            TransportError: If a failure was scheduled with fail_next_opens().
        """
        self.open_attempts += 1
        if self._open_failures > 0:
            self._open_failures -= 1
            raise TransportError(f"Connection to {self._address} refused")

        if self._is_open:
            return

        self._queue = asyncio.Queue()
        while self._pending:
            self._queue.put_nowait(self._pending.popleft())
        self._is_open = True
        self.open_count += 1

    async def close(self) -> None:
        """Close the mock transport, waking any pending read."""
        if not self._is_open:
            return
        self._is_open = False
        if self._queue is not None:
            self._queue.put_nowait(None)

    async def write(self, data: bytes) -> None:
        """
        Record written data.

        Args:
            data: Bytes to "transmit".

        Raises:
            TransportError: If transport is not open.
        """
        if not self._is_open:
            raise TransportError("Mock transport not open")

        self._written_data.append(bytes(data))

        if self._response_callback is not None:
            response = self._response_callback(bytes(data))
            if response is not None:
                self.feed(response)

    async def read(self, timeout: float | None = None) -> bytes:
        """
        Return the next queued chunk.

        Args:
            timeout: Read timeout in seconds. None waits indefinitely.

        Returns:
            The chunk, or ``b""`` after feed_eof() or close().

        Raises:
            TimeoutError: If no chunk arrives in time.
            TransportError: If transport is not open.
        """
        if not self._is_open or self._queue is None:
            raise TransportError("Mock transport not open")

        try:
            chunk = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            raise TimeoutError("No mock data available", timeout_seconds=timeout) from None

        return b"" if chunk is None else chunk

    def clear(self) -> None:
        """Clear recorded writes and queued chunks."""
        self._written_data.clear()
        self._pending.clear()

    def assert_written(self, expected: bytes, index: int = -1) -> None:
        """
        Assert that specific data was written.

        Args:
            expected: Expected bytes.
            index: Index in written_data list (-1 for last).

        Raises:
            AssertionError: If data doesn't match.
        """
        if not self._written_data:
            raise AssertionError("No data written to mock transport")

        actual = self._written_data[index]
        if actual != expected:
            raise AssertionError(f"Written data mismatch: expected {expected!r}, got {actual!r}")

    def assert_write_count(self, expected: int) -> None:
        """
        Assert number of write operations.

        Args:
            expected: Expected number of writes.

        Raises:
            AssertionError: If count doesn't match.
        """
        actual = len(self._written_data)
        if actual != expected:
            raise AssertionError(f"Write count mismatch: expected {expected}, got {actual}")

    def __repr__(self) -> str:
        status = "open" if self._is_open else "closed"
        return f"MockTransport({self._address!r}, {status})"

"""
Transport layer for HLK-SW16 communication.

This package provides transport implementations for talking to a relay
controller.

Available transports:
- AsyncTcpTransport: asyncio TCP socket
- MockTransport: Mock transport for testing without hardware

Example:
    >>> from hlksw16.transport import AsyncTcpTransport
    >>> async with AsyncTcpTransport("192.168.1.50", 8080) as transport:
    ...     await transport.write(frame_data)
    ...     chunk = await transport.read()

Testing Example:
    >>> from hlksw16.transport import MockTransport
    >>> mock = MockTransport()
    >>> mock.feed(status_frame)
"""

from hlksw16.transport.abc import AbstractTransport
from hlksw16.transport.mock import MockTransport
from hlksw16.transport.tcp_async import AsyncTcpTransport

__all__ = [
    "AbstractTransport",
    "AsyncTcpTransport",
    "MockTransport",
]

"""
hlksw16 - Python library for sharing one connection to an HLK-SW16 relay controller.

The HLK-SW16 is a 16-channel relay board controlled over a raw TCP socket
with fixed 20-byte frames. This library keeps one connection per controller
alive across network failures and fans status updates out to one consumer
per channel.

Example:
    >>> from hlksw16 import ConnectionRegistry
    >>>
    >>> async def main():
    ...     registry = ConnectionRegistry()
    ...     manager = registry.get_or_create("master-uuid", "192.168.1.50", 8080)
    ...     manager.subscribe("channel-0", lambda on: print("relay 1", on))
    ...     await manager.connect()
    ...     await manager.turn_on(0)
"""

from hlksw16.channel import RelayChannel
from hlksw16.config import ConnectionConfig
from hlksw16.connection import ConnectionManager, ConnectionState
from hlksw16.events import ChannelEventBus, Subscription, channel_topic
from hlksw16.exceptions import (
    ConnectionError,
    FrameError,
    PairingError,
    ProtocolError,
    SW16Error,
    TimeoutError,
    TransportError,
)
from hlksw16.models.messages import (
    ChannelState,
    KeepaliveMessage,
    MessageType,
    StatusMessage,
    UnknownMessage,
)
from hlksw16.pairing import ChannelDevice, check_connection, list_devices, pair
from hlksw16.registry import ConnectionRegistry
from hlksw16.transport import AbstractTransport, AsyncTcpTransport

__version__ = "0.1.0"
__all__ = [
    # Connection
    "ConnectionManager",
    "ConnectionState",
    "ConnectionRegistry",
    "ConnectionConfig",
    "RelayChannel",
    # Events
    "ChannelEventBus",
    "Subscription",
    "channel_topic",
    # Models
    "ChannelState",
    "MessageType",
    "KeepaliveMessage",
    "StatusMessage",
    "UnknownMessage",
    # Pairing
    "ChannelDevice",
    "check_connection",
    "list_devices",
    "pair",
    # Exceptions
    "SW16Error",
    "ProtocolError",
    "FrameError",
    "TimeoutError",
    "ConnectionError",
    "TransportError",
    "PairingError",
    # Transport
    "AbstractTransport",
    "AsyncTcpTransport",
    # Version
    "__version__",
]

"""
Data models for the HLK-SW16 protocol.

This module contains Pydantic models representing decoded frames:

- MessageType classification
- ChannelState value object
- KeepaliveMessage, StatusMessage and UnknownMessage records
"""

from hlksw16.models.messages import (
    ChannelState,
    KeepaliveMessage,
    Message,
    MessageType,
    StatusMessage,
    UnknownMessage,
)

__all__ = [
    # Value Objects
    "ChannelState",
    # Enums
    "MessageType",
    # Records
    "Message",
    "KeepaliveMessage",
    "StatusMessage",
    "UnknownMessage",
]

"""
Pydantic models for decoded HLK-SW16 frames.

A decoded frame only lives for one decode/dispatch cycle; nothing here is
persisted or cached by the connection layer.

Design principles:
- All models are frozen (immutable)
- The raw frame is kept in hex form alongside the decoded fields
- Channel state is indexed 0-15, matching the status cell order on the wire
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from hlksw16.protocol.constants import ProtocolConstants


class MessageType(str, Enum):
    """Classification of an inbound frame by its operation byte."""

    KEEPALIVE = "keepalive"
    STATUS = "status"
    UNKNOWN = "unknown"


class ChannelState(BaseModel):
    """
    On/off state of all 16 relay channels.

    Example:
        >>> state = ChannelState(states=(True,) + (False,) * 15)
        >>> state[0]
        True
        >>> state.active_channels
        [0]
    """

    model_config = ConfigDict(frozen=True)

    states: tuple[bool, ...] = Field(
        min_length=ProtocolConstants.CHANNEL_COUNT,
        max_length=ProtocolConstants.CHANNEL_COUNT,
        description="State per channel, index = channel number",
    )

    def __getitem__(self, channel: int) -> bool:
        return self.states[channel]

    def __iter__(self) -> Iterator[bool]:  # type: ignore[override]
        return iter(self.states)

    def __len__(self) -> int:
        return len(self.states)

    def items(self) -> Iterator[tuple[int, bool]]:
        """Iterate over (channel, state) pairs in ascending channel order."""
        return enumerate(self.states)

    @property
    def active_channels(self) -> list[int]:
        """Channels that are currently on."""
        return [channel for channel, on in enumerate(self.states) if on]

    def __repr__(self) -> str:
        bits = "".join("1" if on else "0" for on in self.states)
        return f"ChannelState({bits})"


class Message(BaseModel):
    """
    Common fields of every decoded inbound frame.

    Attributes:
        type: Frame classification.
        op: Operation byte (byte 1 of the frame).
        payload: Bytes 2..17 of the frame, verbatim.
        raw_hex: The complete frame as a lowercase hex string.
    """

    model_config = ConfigDict(frozen=True)

    type: MessageType
    op: int = Field(ge=0, le=0xFF)
    payload: bytes
    raw_hex: str


class KeepaliveMessage(Message):
    """
    Periodic clock broadcast from the controller.

    Two firmware revisions exist: op 0x1F sends the fields in forward order,
    op 0x0E in reverse order. Both decode to the same model. The values are
    the raw byte values as sent by the controller (year is two-digit).
    """

    type: Literal[MessageType.KEEPALIVE] = MessageType.KEEPALIVE
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    week: int

    @property
    def clock(self) -> str:
        """Controller clock formatted as ``YY-MM-DD HH:MM:SS``."""
        return (
            f"{self.year:02d}-{self.month:02d}-{self.day:02d} "
            f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
        )


class StatusMessage(Message):
    """Relay status table for all channels."""

    type: Literal[MessageType.STATUS] = MessageType.STATUS
    channels: ChannelState


class UnknownMessage(Message):
    """A well-formed frame with an operation byte this library does not interpret."""

    type: Literal[MessageType.UNKNOWN] = MessageType.UNKNOWN

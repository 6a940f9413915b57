"""
HLK-SW16 protocol constants.

Every frame on the wire is exactly 20 bytes. Frames sent by the controller
start with 0xCC; frames sent to the controller start with 0xAA and end with
0xBB. Byte 1 is the operation code.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final


class OpCode(IntEnum):
    """
    Operation codes found in byte 1 of a frame.

    Inbound and outbound codes share the same byte position but never
    overlap in meaning.
    """

    # ===== Inbound (controller -> host) =====

    KEEPALIVE = 0x1F
    """Clock broadcast, fields in forward order."""

    KEEPALIVE_REVERSED = 0x0E
    """Clock broadcast from later firmware, fields in reverse order."""

    STATUS = 0x0C
    """Relay status table, one cell per channel."""

    # ===== Outbound (host -> controller) =====

    POLL = 0x1E
    """Request a status frame."""

    SWITCH = 0x0F
    """Switch a single channel on or off."""


class ProtocolConstants:
    """Protocol-wide constants and default timings."""

    FRAME_LENGTH: Final[int] = 20
    """Length of every frame in bytes."""

    FRAME_HEX_LENGTH: Final[int] = FRAME_LENGTH * 2
    """Length of every frame as a hex string."""

    INBOUND_MARKER: Final[int] = 0xCC
    """First byte of controller frames."""

    OUTBOUND_MARKER: Final[int] = 0xAA
    """First byte of host frames."""

    TERMINATOR: Final[int] = 0xBB
    """Last byte of host frames."""

    FILLER: Final[int] = 0x01
    """Padding byte used in host frames."""

    STATE_ON: Final[int] = 0x01
    """Command state byte and status cell value for an energised relay."""

    STATE_OFF: Final[int] = 0x02
    """Command state byte for a released relay."""

    CHANNEL_COUNT: Final[int] = 16
    """Number of relay channels on one controller."""

    PAYLOAD_START: Final[int] = 2
    """Offset of the first payload byte."""

    PAYLOAD_END: Final[int] = 18
    """Offset one past the last payload byte (16 payload bytes)."""

    # ===== Default timings (seconds) =====

    DEFAULT_INITIAL_DELAY: Final[float] = 1.0
    """First reconnect delay."""

    DEFAULT_MAX_DELAY: Final[float] = 30.0
    """Upper bound of the reconnect delay."""

    DEFAULT_POLL_INTERVAL: Final[float] = 5.0
    """Interval between status polls."""

    DEFAULT_IDLE_CHECK_INTERVAL: Final[float] = 5.0
    """Interval between subscriber-count checks."""

    DEFAULT_PROBE_TIMEOUT: Final[float] = 5.0
    """Timeout of the pairing reachability probe."""

    DEFAULT_CONNECT_TIMEOUT: Final[float] = 5.0
    """Timeout of one socket connect attempt."""

    DEFAULT_READ_SIZE: Final[int] = 1024
    """Maximum bytes taken from the socket per read."""


KEEPALIVE_CODES: Final[frozenset[int]] = frozenset({
    OpCode.KEEPALIVE,
    OpCode.KEEPALIVE_REVERSED,
})
"""Byte-1 values that identify a keepalive frame."""

STATUS_CODES: Final[frozenset[int]] = frozenset({
    OpCode.STATUS,
})
"""Byte-1 values that identify a status frame."""

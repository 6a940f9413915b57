"""
HLK-SW16 frame encoding and decoding.

Frame layouts (20 bytes each, shown as byte offsets):

1. **Inbound frames** (controller -> host)
   - Format: [0xCC][OP][PAYLOAD x16][2 trailing bytes]
   - OP 0x1F: keepalive, clock fields forward in bytes 2-8
   - OP 0x0E: keepalive, clock fields reversed in bytes 2-8
   - OP 0x0C: status, one cell per channel in bytes 2-17 (0x01 = on)
   - any other OP: unknown, payload kept verbatim

2. **Poll frame** (host -> controller)
   - Format: [0xAA][0x1E][0x01 x17][0xBB]

3. **Switch frame** (host -> controller)
   - Format: [0xAA][0x0F][CHANNEL][0x01 on | 0x02 off][0x01 x15][0xBB]

Wire Format Notes:
- There is no length prefix or delimiter; every socket read is expected to
  carry exactly one frame. Reads of any other size are discarded, never
  buffered or reassembled.
- Decoding works on the lowercase hex form of the frame, which is also the
  form used in log output.
- The codec holds no state and may be called from any task.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Final

from hlksw16.models.messages import (
    ChannelState,
    KeepaliveMessage,
    Message,
    MessageType,
    StatusMessage,
    UnknownMessage,
)
from hlksw16.protocol.constants import (
    KEEPALIVE_CODES,
    STATUS_CODES,
    OpCode,
    ProtocolConstants,
)
from hlksw16.protocol.encoding import bytes_to_hex, decode_byte, is_hex

_INBOUND_PREFIX: Final[str] = f"{ProtocolConstants.INBOUND_MARKER:02x}"

# Byte offsets of (year, month, day, hour, minute, second, week) per keepalive op
_KEEPALIVE_LAYOUTS: Final[dict[int, tuple[int, ...]]] = {
    OpCode.KEEPALIVE: (2, 3, 4, 5, 6, 7, 8),
    OpCode.KEEPALIVE_REVERSED: (8, 6, 5, 4, 3, 2, 7),
}

_CLOCK_FIELDS: Final[tuple[str, ...]] = (
    "year", "month", "day", "hour", "minute", "second", "week",
)


class DecodeResult(Enum):
    """
    Result codes for frame decoding operations.

    Anything other than SUCCESS means the frame is dropped.
    """

    SUCCESS = auto()
    """Frame was decoded."""

    INVALID_TYPE = auto()
    """Input is not a bytes-like object."""

    INVALID_LENGTH = auto()
    """Input is not exactly one frame long."""

    INVALID_MARKER = auto()
    """Input does not start with the inbound marker byte."""


@dataclass(frozen=True)
class DecodeError:
    """
    Details about a decoding failure.

    Provides diagnostic information when a frame is dropped.
    """

    result: DecodeResult
    message: str
    raw_hex: str = ""


def validate(raw_hex: str) -> bool:
    """
    Check that a hex string looks like one inbound frame.

    Args:
        raw_hex: Frame in hex form.

    Returns:
        True if the string is 40 hex characters starting with ``cc``.
    """
    return (
        len(raw_hex) == ProtocolConstants.FRAME_HEX_LENGTH
        and raw_hex[:2].lower() == _INBOUND_PREFIX
        and is_hex(raw_hex)
    )


def classify(op: int) -> MessageType:
    """
    Classify an operation byte.

    Args:
        op: Byte 1 of an inbound frame (0-255).

    Returns:
        KEEPALIVE for 0x1F and 0x0E, STATUS for 0x0C, UNKNOWN otherwise.
    """
    if op in KEEPALIVE_CODES:
        return MessageType.KEEPALIVE
    if op in STATUS_CODES:
        return MessageType.STATUS
    return MessageType.UNKNOWN


class FrameDecoder:
    """
    Inbound frame decoder.

    The decoder is stateless and can be shared by every connection.

    Example:
        >>> decoder = FrameDecoder()
        >>> result, message = decoder.parse(frame_bytes)
        >>> if result == DecodeResult.SUCCESS:
        ...     print(message.type)
    """

    def parse(self, data: object) -> tuple[DecodeResult, Message | DecodeError]:
        """
        Decode one inbound frame.

        Args:
            data: Bytes received from the socket.

        Returns:
            Tuple of (result, message_or_error):
            - On success: (SUCCESS, Message)
            - On failure: (error_code, DecodeError)
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            return DecodeResult.INVALID_TYPE, DecodeError(
                result=DecodeResult.INVALID_TYPE,
                message=f"Expected bytes, got {type(data).__name__}",
            )

        raw_hex = bytes_to_hex(data)

        if len(raw_hex) != ProtocolConstants.FRAME_HEX_LENGTH:
            return DecodeResult.INVALID_LENGTH, DecodeError(
                result=DecodeResult.INVALID_LENGTH,
                message=f"Expected {ProtocolConstants.FRAME_LENGTH} bytes, got {len(raw_hex) // 2}",
                raw_hex=raw_hex,
            )

        if not validate(raw_hex):
            return DecodeResult.INVALID_MARKER, DecodeError(
                result=DecodeResult.INVALID_MARKER,
                message=f"Expected marker 0x{ProtocolConstants.INBOUND_MARKER:02X}",
                raw_hex=raw_hex,
            )

        return DecodeResult.SUCCESS, self._decode_hex(raw_hex)

    def _decode_hex(self, raw_hex: str) -> Message:
        """Decode a validated frame."""
        op = decode_byte(raw_hex, 1)
        payload = bytes.fromhex(
            raw_hex[ProtocolConstants.PAYLOAD_START * 2:ProtocolConstants.PAYLOAD_END * 2]
        )
        message_type = classify(op)

        if message_type is MessageType.KEEPALIVE:
            offsets = _KEEPALIVE_LAYOUTS[op]
            fields = {
                name: decode_byte(raw_hex, offset)
                for name, offset in zip(_CLOCK_FIELDS, offsets)
            }
            return KeepaliveMessage(op=op, payload=payload, raw_hex=raw_hex, **fields)

        if message_type is MessageType.STATUS:
            states = tuple(cell == ProtocolConstants.STATE_ON for cell in payload)
            return StatusMessage(
                op=op,
                payload=payload,
                raw_hex=raw_hex,
                channels=ChannelState(states=states),
            )

        return UnknownMessage(op=op, payload=payload, raw_hex=raw_hex)


# Module-level convenience instance
DEFAULT_FRAME_DECODER: FrameDecoder = FrameDecoder()
"""Default FrameDecoder instance for convenience."""


def decode(data: object) -> Message | None:
    """
    Decode one inbound frame, returning None for anything malformed.

    Malformed input is expected noise on this link and never raises.

    Args:
        data: Bytes received from the socket.

    Returns:
        The decoded message, or None if the frame was rejected.
    """
    result, message = DEFAULT_FRAME_DECODER.parse(data)
    if result != DecodeResult.SUCCESS:
        return None
    return message


def _build_frame(op: int, body: bytes) -> bytes:
    """
    Build a complete outbound frame.

    Frame format: MARKER + op + body + filler + TERMINATOR, padded to
    FRAME_LENGTH bytes.
    """
    filler_count = ProtocolConstants.FRAME_LENGTH - 3 - len(body)
    return (
        bytes([ProtocolConstants.OUTBOUND_MARKER, op])
        + body
        + bytes([ProtocolConstants.FILLER]) * filler_count
        + bytes([ProtocolConstants.TERMINATOR])
    )


def encode_poll() -> bytes:
    """
    Build the status request frame.

    Returns:
        ``aa1e`` followed by 17 filler bytes and ``bb``.
    """
    return _build_frame(OpCode.POLL, b"")


def encode_command(channel: int, on: bool) -> bytes:
    """
    Build a switch frame for one channel.

    Args:
        channel: Channel index (0-15).
        on: True to switch on, False to switch off.

    Returns:
        20-byte switch frame.

    Raises:
        ValueError: If channel is not an integer in range 0-15.

    Example:
        >>> bytes_to_hex(encode_command(3, True))
        'aa0f0301010101010101010101010101010101bb'
    """
    if isinstance(channel, bool) or not isinstance(channel, int):
        raise ValueError(f"Channel must be an integer, got {channel!r}")
    if not 0 <= channel < ProtocolConstants.CHANNEL_COUNT:
        raise ValueError(
            f"Channel must be 0-{ProtocolConstants.CHANNEL_COUNT - 1}, got {channel}"
        )

    state = ProtocolConstants.STATE_ON if on else ProtocolConstants.STATE_OFF
    return _build_frame(OpCode.SWITCH, bytes([channel & 0x0F, state]))

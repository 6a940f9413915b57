"""
Protocol layer for HLK-SW16 communication.

This module contains the low-level protocol handling:
- Operation codes and protocol constants
- Hex encoding/decoding utilities
- Frame decoding and command encoding
"""

from hlksw16.protocol.codec import (
    DEFAULT_FRAME_DECODER,
    DecodeError,
    DecodeResult,
    FrameDecoder,
    classify,
    decode,
    encode_command,
    encode_poll,
    validate,
)
from hlksw16.protocol.constants import KEEPALIVE_CODES, STATUS_CODES, OpCode, ProtocolConstants
from hlksw16.protocol.encoding import bytes_to_hex, decode_byte, hex_to_bytes

__all__ = [
    # Constants
    "OpCode",
    "ProtocolConstants",
    "KEEPALIVE_CODES",
    "STATUS_CODES",
    # Encoding
    "bytes_to_hex",
    "hex_to_bytes",
    "decode_byte",
    # Codec
    "FrameDecoder",
    "DecodeResult",
    "DecodeError",
    "DEFAULT_FRAME_DECODER",
    "classify",
    "decode",
    "validate",
    "encode_poll",
    "encode_command",
]

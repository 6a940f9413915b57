"""
Hex encoding and decoding utilities.

Frames are logged and parsed in their lowercase hexadecimal form, two
characters per byte. For example the poll frame is written as
``aa1e0101...01bb``.
"""

from __future__ import annotations

from typing import Final

from hlksw16.exceptions import FrameError

_HEX_DIGITS: Final[frozenset[str]] = frozenset("0123456789abcdefABCDEF")


def bytes_to_hex(data: bytes | bytearray | memoryview) -> str:
    """
    Convert bytes to a lowercase hex string.

    Args:
        data: Binary data to encode.

    Returns:
        Lowercase hexadecimal string.

    Example:
        >>> bytes_to_hex(b'\\xcc\\x0c')
        'cc0c'
    """
    return bytes(data).hex()


def hex_to_bytes(hex_string: str | bytes) -> bytes:
    """
    Convert a hex string to bytes.

    Args:
        hex_string: Hexadecimal string (must be even length).

    Returns:
        Decoded bytes.

    Raises:
        FrameError: If string is not valid hex or has odd length.

    Example:
        >>> hex_to_bytes("cc0c")
        b'\\xcc\\x0c'
    """
    if isinstance(hex_string, bytes):
        hex_string = hex_string.decode("ascii")

    try:
        return bytes.fromhex(hex_string)
    except ValueError as e:
        raise FrameError(f"Invalid hex data: {e}", raw_hex=hex_string) from e


def decode_byte(raw_hex: str, index: int) -> int:
    """
    Decode the byte at ``index`` of a hex string.

    Args:
        raw_hex: Hex string holding a whole frame.
        index: Byte index (not character index).

    Returns:
        Byte value (0-255).

    Raises:
        FrameError: If the two characters at that position are not hex.

    Example:
        >>> decode_byte("cc0c01", 2)
        1
    """
    chars = raw_hex[index * 2:index * 2 + 2]
    if len(chars) != 2 or not set(chars) <= _HEX_DIGITS:
        raise FrameError(f"No hex byte at index {index}: {chars!r}", raw_hex=raw_hex)
    return int(chars, 16)


def is_hex(raw_hex: str) -> bool:
    """Check that a string holds only hex digits."""
    return set(raw_hex) <= _HEX_DIGITS

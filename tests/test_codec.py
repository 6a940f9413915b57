"""Tests for frame encoding and decoding."""

import pytest

from hlksw16.models.messages import KeepaliveMessage, MessageType, StatusMessage, UnknownMessage
from hlksw16.protocol.codec import (
    DEFAULT_FRAME_DECODER,
    DecodeResult,
    FrameDecoder,
    classify,
    decode,
    encode_command,
    encode_poll,
    validate,
)
from hlksw16.protocol.encoding import bytes_to_hex, decode_byte, hex_to_bytes, is_hex


class TestValidate:
    """Tests for the hex-level frame check."""

    def test_valid_frame(self, status_frame):
        """Test a well-formed inbound frame passes."""
        assert validate(bytes_to_hex(status_frame([False] * 16)))

    def test_uppercase_accepted(self, status_frame):
        """Test the marker check ignores case."""
        assert validate(bytes_to_hex(status_frame([False] * 16)).upper())

    def test_wrong_marker(self):
        """Test an outbound frame is not a valid inbound frame."""
        assert not validate(bytes_to_hex(encode_poll()))

    def test_wrong_length(self):
        """Test strings that are not 40 characters are rejected."""
        assert not validate("")
        assert not validate("cc" * 19)
        assert not validate("cc" * 21)

    def test_non_hex(self):
        """Test non-hex characters are rejected."""
        assert not validate("cc" + "zz" * 19)


class TestClassify:
    """Tests for operation byte classification."""

    def test_keepalive_codes(self):
        assert classify(0x1F) == MessageType.KEEPALIVE
        assert classify(0x0E) == MessageType.KEEPALIVE

    def test_status_code(self):
        assert classify(0x0C) == MessageType.STATUS

    def test_every_other_code_is_unknown(self):
        """Test all remaining byte values classify as unknown."""
        for op in range(256):
            if op in (0x1F, 0x0E, 0x0C):
                continue
            assert classify(op) == MessageType.UNKNOWN, hex(op)


class TestFrameDecoder:
    """Tests for FrameDecoder.parse()."""

    @pytest.fixture
    def decoder(self):
        return FrameDecoder()

    def test_rejects_non_bytes(self, decoder):
        """Test non-bytes input is reported as INVALID_TYPE."""
        result, error = decoder.parse("cc0c")
        assert result == DecodeResult.INVALID_TYPE
        assert "str" in error.message

    def test_rejects_short_chunk(self, decoder):
        """Test a partial frame is dropped."""
        result, error = decoder.parse(b"\xcc\x0c\x01")
        assert result == DecodeResult.INVALID_LENGTH
        assert error.raw_hex == "cc0c01"

    def test_rejects_two_frames_in_one_chunk(self, decoder, status_frame):
        """Test concatenated frames are not split."""
        frame = status_frame([True] * 16)
        result, _ = decoder.parse(frame + frame)
        assert result == DecodeResult.INVALID_LENGTH

    def test_rejects_empty_chunk(self, decoder):
        result, _ = decoder.parse(b"")
        assert result == DecodeResult.INVALID_LENGTH

    def test_rejects_wrong_marker(self, decoder):
        """Test a 20-byte chunk without the 0xCC marker is dropped."""
        result, error = decoder.parse(b"\xdd" + bytes(19))
        assert result == DecodeResult.INVALID_MARKER
        assert error.raw_hex.startswith("dd")

    def test_accepts_bytearray(self, decoder, status_frame):
        result, message = decoder.parse(bytearray(status_frame([False] * 16)))
        assert result == DecodeResult.SUCCESS
        assert isinstance(message, StatusMessage)

    def test_default_instance(self):
        assert isinstance(DEFAULT_FRAME_DECODER, FrameDecoder)


class TestDecodeStatus:
    """Tests for status frame decoding."""

    def test_all_on(self, status_frame):
        message = decode(status_frame([True] * 16))
        assert isinstance(message, StatusMessage)
        assert list(message.channels) == [True] * 16

    def test_all_off(self, status_frame):
        message = decode(status_frame([False] * 16))
        assert list(message.channels) == [False] * 16

    def test_alternating(self, status_frame):
        """Test cells map to channels in order."""
        states = [channel % 2 == 0 for channel in range(16)]
        message = decode(status_frame(states))
        assert list(message.channels) == states
        assert message.channels.active_channels == [0, 2, 4, 6, 8, 10, 12, 14]

    def test_only_01_counts_as_on(self, inbound_frame):
        """Test any cell value other than 0x01 is off."""
        payload = bytes([0x01, 0x02, 0xFF, 0x11] + [0x00] * 12)
        message = decode(inbound_frame(0x0C, payload))
        assert message.channels[0] is True
        assert message.channels.active_channels == [0]

    def test_trailing_bytes_ignored(self, inbound_frame):
        """Test the two bytes after the payload do not affect channel state."""
        payload = bytes([0x01] * 16)
        first = decode(inbound_frame(0x0C, payload, trailer=b"\x00\x00"))
        second = decode(inbound_frame(0x0C, payload, trailer=b"\x01\x01"))
        assert first.channels == second.channels

    def test_common_fields(self, status_frame):
        frame = status_frame([True] + [False] * 15)
        message = decode(frame)
        assert message.type == MessageType.STATUS
        assert message.op == 0x0C
        assert message.payload == frame[2:18]
        assert message.raw_hex == frame.hex()


class TestDecodeKeepalive:
    """Tests for keepalive decoding in both byte orders."""

    def test_forward_order(self, keepalive_frame):
        message = decode(keepalive_frame)
        assert isinstance(message, KeepaliveMessage)
        assert (message.year, message.month, message.day) == (0x17, 10, 19)
        assert (message.hour, message.minute, message.second) == (12, 30, 45)
        assert message.week == 6
        assert message.clock == "23-10-19 12:30:45"

    def test_reversed_order(self, inbound_frame, keepalive_frame):
        """Test op 0x0E yields the same clock from reversed fields."""
        payload = bytes([0x2D, 0x1E, 0x0C, 0x13, 0x0A, 0x06, 0x17]) + bytes(9)
        message = decode(inbound_frame(0x0E, payload))
        forward = decode(keepalive_frame)

        assert message.op == 0x0E
        for field in ("year", "month", "day", "hour", "minute", "second", "week"):
            assert getattr(message, field) == getattr(forward, field), field


class TestDecodeUnknown:
    """Tests for frames with unrecognized operation bytes."""

    def test_unknown_op_kept(self, inbound_frame):
        payload = bytes(range(16))
        message = decode(inbound_frame(0x42, payload))
        assert isinstance(message, UnknownMessage)
        assert message.op == 0x42
        assert message.payload == payload

    def test_decode_returns_none_for_garbage(self):
        assert decode(b"garbage") is None
        assert decode(None) is None


class TestEncode:
    """Tests for outbound frames."""

    def test_poll_frame(self):
        frame = encode_poll()
        assert len(frame) == 20
        assert frame == bytes([0xAA, 0x1E]) + bytes([0x01]) * 17 + bytes([0xBB])

    def test_command_on(self):
        assert bytes_to_hex(encode_command(3, True)) == "aa0f0301" + "01" * 15 + "bb"

    def test_command_off(self):
        frame = encode_command(15, False)
        assert frame[:4] == bytes([0xAA, 0x0F, 0x0F, 0x02])
        assert frame[-1] == 0xBB
        assert len(frame) == 20

    def test_on_and_off_differ_only_in_state_byte(self):
        """Test the state byte is the only difference between on and off."""
        for channel in range(16):
            on = encode_command(channel, True)
            off = encode_command(channel, False)
            differing = [i for i in range(20) if on[i] != off[i]]
            assert differing == [3]
            assert on[2] == channel

    @pytest.mark.parametrize("channel", [-1, 16, 255])
    def test_out_of_range_channel(self, channel):
        with pytest.raises(ValueError):
            encode_command(channel, True)

    @pytest.mark.parametrize("channel", ["3", 3.0, None, True])
    def test_non_integer_channel(self, channel):
        with pytest.raises(ValueError):
            encode_command(channel, True)


class TestEncoding:
    """Tests for hex helpers."""

    def test_bytes_to_hex_lowercase(self):
        assert bytes_to_hex(b"\xcc\x0c\xab") == "cc0cab"

    def test_hex_to_bytes(self):
        assert hex_to_bytes("cc0c") == b"\xcc\x0c"

    def test_decode_byte(self):
        assert decode_byte("cc0c17", 2) == 0x17

    def test_decode_byte_out_of_range(self):
        with pytest.raises(ValueError):
            decode_byte("cc0c", 5)

    def test_is_hex(self):
        assert is_hex("cc0c")
        assert not is_hex("cg")

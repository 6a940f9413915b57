"""Tests for the exception hierarchy."""

import pytest

from hlksw16.exceptions import (
    ConnectionError,
    FrameError,
    PairingError,
    ProtocolError,
    SW16Error,
    TimeoutError,
    TransportError,
)
from hlksw16.protocol.encoding import decode_byte, hex_to_bytes


class TestHierarchy:
    """Tests for exception inheritance."""

    @pytest.mark.parametrize(
        "exc_type",
        [ProtocolError, FrameError, TimeoutError, ConnectionError, TransportError, PairingError],
    )
    def test_all_derive_from_base(self, exc_type):
        assert issubclass(exc_type, SW16Error)

    def test_frame_error_is_value_error(self):
        assert issubclass(FrameError, ProtocolError)
        assert issubclass(FrameError, ValueError)


class TestFrameError:
    """Tests for FrameError."""

    def test_str_includes_data(self):
        error = FrameError("Bad frame", raw_hex="cc0c")
        assert str(error) == "Bad frame data=cc0c"

    def test_long_data_truncated(self):
        error = FrameError("Bad frame", raw_hex="ab" * 30)
        assert str(error).endswith("...")

    def test_raised_by_hex_helpers(self):
        with pytest.raises(FrameError) as exc_info:
            hex_to_bytes("cc0")
        assert exc_info.value.raw_hex == "cc0"

        with pytest.raises(FrameError):
            decode_byte("cczz", 1)


class TestTimeoutError:
    def test_str_with_duration(self):
        assert str(TimeoutError("No data", timeout_seconds=2.5)) == "No data (after 2.5s)"

    def test_str_without_duration(self):
        assert str(TimeoutError()) == "Communication timeout"


class TestPairingError:
    """Tests for PairingError."""

    def test_known_reason(self):
        error = PairingError("check_ip")
        assert error.reason == "check_ip"
        assert "IPv4" in error.message
        assert "(check_ip)" in str(error)

    def test_custom_message(self):
        error = PairingError("unable_to_connect", "Controller did not answer")
        assert error.message == "Controller did not answer"

    def test_unknown_reason(self):
        assert PairingError("other").message == "Pairing failed"

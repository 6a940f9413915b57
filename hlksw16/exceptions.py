"""
Exception hierarchy for hlksw16.

All exceptions inherit from SW16Error. Most failures in this library never
reach a caller as an exception: malformed frames are dropped, transport
failures are retried, and invalid command arguments come back as a ``False``
result. The classes below cover the remaining boundaries:

1. Transports raise TransportError for socket-level failures
2. Hex helpers raise FrameError for malformed hex; the codec raises
   ValueError for commands it cannot build
3. ConnectionError signals misuse of a connection past shutdown
4. PairingError carries a machine-readable reason for the pairing flow
"""

from __future__ import annotations

from typing import Final


class SW16Error(Exception):
    """
    Base exception for all hlksw16 errors.

    All library-specific exceptions inherit from this class, allowing
    callers to catch all hlksw16 errors with a single except clause.
    """

    pass


class ProtocolError(SW16Error):
    """
    Protocol-level error.

    Raised when the wire protocol is violated in a way that cannot be
    silently ignored.
    """

    pass


class FrameError(ProtocolError, ValueError):
    """
    Frame construction or validation error.

    Carries the offending frame in hex form when one is available. Also a
    ValueError, so hex helpers keep the usual contract for bad input.
    """

    def __init__(self, message: str, *, raw_hex: str | None = None) -> None:
        super().__init__(message)
        self.raw_hex = raw_hex

    def __str__(self) -> str:
        base = super().__str__()
        if self.raw_hex:
            display = self.raw_hex[:40] + "..." if len(self.raw_hex) > 40 else self.raw_hex
            return f"{base} data={display}"
        return base


class TimeoutError(SW16Error):  # noqa: A001 - intentionally shadows builtin
    """
    Communication timeout.

    Raised by transports when a read does not complete in time.
    """

    def __init__(
        self,
        message: str = "Communication timeout",
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds

    def __str__(self) -> str:
        base = super().__str__()
        if self.timeout_seconds is not None:
            return f"{base} (after {self.timeout_seconds:.1f}s)"
        return base


class ConnectionError(SW16Error):  # noqa: A001 - intentionally shadows builtin
    """
    Controller connection error.

    Raised when:
    - A connection is used after it has been shut down
    - A pending connect() is abandoned because of shutdown
    """

    pass


class TransportError(SW16Error):
    """
    Transport-level error.

    Raised for low-level transport issues:
    - Connection refused or reset
    - Socket I/O errors
    - Writes on a closed transport
    """

    pass


PAIRING_MESSAGES: Final[dict[str, str]] = {
    "check_input": "Both an IP address and a port are required",
    "check_ip": "The IP address is not a valid IPv4 address",
    "check_port": "The port must be between 0 and 65535",
    "unable_to_connect": "Unable to connect to the relay controller",
}


class PairingError(SW16Error):
    """
    Pairing validation failure.

    The ``reason`` attribute is one of the keys of PAIRING_MESSAGES so that a
    user interface can map it onto its own translated text.
    """

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        self.message = message or PAIRING_MESSAGES.get(reason, "Pairing failed")
        super().__init__(f"{self.message} ({reason})")

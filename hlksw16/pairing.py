"""
Pairing helpers for adding a controller.

Pairing is a one-shot request/response exchange, separate from the shared
connection: validate the address the user typed, check that something
speaking the HLK-SW16 protocol answers there, then describe one device per
relay channel. All 16 descriptors share a ``master_device`` identifier,
which later becomes the ConnectionRegistry key.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from hlksw16.config import DEFAULT_CONFIG, ConnectionConfig
from hlksw16.exceptions import PairingError, TimeoutError, TransportError
from hlksw16.protocol.codec import validate
from hlksw16.protocol.constants import ProtocolConstants
from hlksw16.protocol.encoding import bytes_to_hex
from hlksw16.transport.abc import AbstractTransport
from hlksw16.transport.tcp_async import AsyncTcpTransport

logger = logging.getLogger(__name__)


class ChannelDevice(BaseModel):
    """
    Description of one relay channel as a standalone device.

    Example:
        >>> devices = list_devices("192.168.1.50", 8080)
        >>> devices[0].name
        'HLK-SW16 Relay 1'
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique identifier of this channel device")
    name: str
    ip: str
    port: int = Field(ge=0, le=65535)
    channel: int = Field(ge=0, lt=ProtocolConstants.CHANNEL_COUNT)
    master_device: str = Field(description="Identifier shared by all channels of the controller")


def check_ip(ip: Any) -> bool:
    """Check that ``ip`` is a dotted IPv4 address."""
    if not isinstance(ip, str):
        return False
    try:
        ipaddress.IPv4Address(ip)
    except ValueError:
        return False
    return True


def check_port(port: Any) -> bool:
    """Check that ``port`` is an integer TCP port (0-65535)."""
    if isinstance(port, bool) or not isinstance(port, int):
        return False
    return 0 <= port <= 65535


async def _read_first_chunk(transport: AbstractTransport) -> bytes:
    await transport.open()
    return await transport.read()


async def check_connection(
    host: str,
    port: int,
    timeout: float | None = None,
    transport: AbstractTransport | None = None,
    config: ConnectionConfig | None = None,
) -> bool:
    """
    Probe a controller once.

    Opens a socket, waits for the first chunk (the controller sends keepalives
    unprompted), checks that it is one inbound frame and closes again.

    Args:
        host: Controller IP address.
        port: Controller TCP port.
        timeout: Overall time allowed for connecting and receiving;
            ``config.probe_timeout`` if omitted.
        transport: Transport to probe with; TCP if omitted.
        config: Configuration supplying the probe timeout and read size.

    Returns:
        True if a well-formed frame was received in time.
    """
    config = config or DEFAULT_CONFIG
    if timeout is None:
        timeout = config.probe_timeout
    transport = transport or AsyncTcpTransport(host, port, read_size=config.read_size)
    try:
        chunk = await asyncio.wait_for(_read_first_chunk(transport), timeout=timeout)
    except (TransportError, TimeoutError, asyncio.TimeoutError) as e:
        logger.debug("Probe of %s failed: %s", transport.address, str(e) or "timeout")
        return False
    finally:
        await transport.close()

    raw_hex = bytes_to_hex(chunk)
    if not validate(raw_hex):
        logger.debug("Probe of %s got an unexpected reply: %s", transport.address, raw_hex)
        return False

    logger.debug("Probe of %s succeeded", transport.address)
    return True


async def pair(
    ip: Any,
    port: Any,
    timeout: float | None = None,
    transport: AbstractTransport | None = None,
    config: ConnectionConfig | None = None,
) -> None:
    """
    Validate a pairing request.

    Checks run in order: both values present, IPv4 address, port range,
    then a reachability probe bounded by ``timeout`` (or
    ``config.probe_timeout``).

    Raises:
        PairingError: With reason ``check_input``, ``check_ip``,
            ``check_port`` or ``unable_to_connect``.
    """
    if not ip or not port:
        raise PairingError("check_input")
    if not check_ip(ip):
        raise PairingError("check_ip")
    if not check_port(port):
        raise PairingError("check_port")

    if not await check_connection(
        ip, port, timeout=timeout, transport=transport, config=config
    ):
        raise PairingError("unable_to_connect")


def list_devices(ip: str, port: int) -> list[ChannelDevice]:
    """
    Describe the 16 channels of a controller as devices.

    Every call generates a new ``master_device`` identifier, so pairing the
    same controller twice yields an independent connection.

    Returns:
        One ChannelDevice per channel, ordered by channel.
    """
    master_device = str(uuid.uuid4())
    return [
        ChannelDevice(
            id=str(uuid.uuid4()),
            name=f"HLK-SW16 Relay {channel + 1}",
            ip=ip,
            port=port,
            channel=channel,
            master_device=master_device,
        )
        for channel in range(ProtocolConstants.CHANNEL_COUNT)
    ]

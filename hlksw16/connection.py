"""
Shared connection to one HLK-SW16 relay controller.

One ConnectionManager owns the socket to a physical controller and serves
every channel consumer of that controller. It implements a state machine:

    DISCONNECTED -> start() -> CONNECTING -> CONNECTED
    CONNECTED -> socket error / EOF -> CONNECTING (after a backoff delay)
    any state -> shutdown() -> SHUTDOWN (terminal)

Three tasks run per manager while it is alive:
- the connection task: connects, reads frames, reconnects forever
- the poll task: requests a status frame every poll_interval
- the idle task: shuts the manager down once nobody is subscribed

Example:
    >>> registry = ConnectionRegistry()
    >>> manager = registry.get_or_create("master-uuid", "192.168.1.50", 8080)
    >>> subscription = manager.subscribe("channel-3", on_state)
    >>> await manager.connect()
    >>> await manager.turn_on(3)
    True
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from hlksw16.backoff import create_backoff
from hlksw16.config import DEFAULT_CONFIG, ConnectionConfig
from hlksw16.events import (
    CHANNEL_TOPICS,
    TOPIC_CONNECTED,
    TOPIC_DISCONNECTED,
    ChannelEventBus,
    Handler,
    Subscription,
)
from hlksw16.exceptions import ConnectionError, TransportError
from hlksw16.models.messages import KeepaliveMessage, Message, StatusMessage
from hlksw16.protocol.codec import (
    DEFAULT_FRAME_DECODER,
    DecodeResult,
    encode_command,
    encode_poll,
)
from hlksw16.protocol.constants import ProtocolConstants
from hlksw16.protocol.encoding import bytes_to_hex
from hlksw16.transport.abc import AbstractTransport
from hlksw16.transport.tcp_async import AsyncTcpTransport

if TYPE_CHECKING:
    from hlksw16.registry import ConnectionRegistry

# Module logger
logger = logging.getLogger(__name__)

TransportFactory = Callable[[str, int, ConnectionConfig], AbstractTransport]


def default_transport_factory(host: str, port: int, config: ConnectionConfig) -> AbstractTransport:
    """Build a TCP transport for a controller address."""
    return AsyncTcpTransport(
        host, port, read_size=config.read_size, connect_timeout=config.connect_timeout
    )


class ConnectionState(Enum):
    """Shared connection states."""

    DISCONNECTED = auto()
    """Not started yet."""

    CONNECTING = auto()
    """Opening the socket, or waiting out the backoff delay after a failure or drop."""

    CONNECTED = auto()
    """Socket open; commands are accepted."""

    SHUTDOWN = auto()
    """Stopped for good. A new manager must be created to reconnect."""


def coerce_channel(channel: Any) -> int | None:
    """
    Turn a channel argument into a channel index.

    Integers and digit strings are accepted; booleans, floats and anything
    else are not.

    Returns:
        The channel index (0-15), or None if the argument is not valid.
    """
    if isinstance(channel, bool):
        return None
    if isinstance(channel, int):
        value = channel
    elif isinstance(channel, str) and channel.strip().isdigit():
        value = int(channel.strip())
    else:
        return None

    if not 0 <= value < ProtocolConstants.CHANNEL_COUNT:
        return None
    return value


class ConnectionManager:
    """
    Owner of the single shared socket to a relay controller.

    Network failures are never fatal: the manager retries forever with a
    bounded backoff until it is shut down. Callers see transport problems
    only as ``False`` results from commands and as ``disconnected`` events.

    Attributes:
        state: Current connection state.
        connected: Whether commands can be sent right now.
        instance_id: Registry key of this controller.
        last_keepalive: Most recent keepalive frame, if any.
    """

    def __init__(
        self,
        host: str,
        port: int,
        instance_id: str,
        *,
        config: ConnectionConfig | None = None,
        transport: AbstractTransport | None = None,
        registry: ConnectionRegistry | None = None,
    ) -> None:
        """
        Initialize the connection manager.

        Nothing is opened until start() or connect() is called.

        Args:
            host: Controller IP address.
            port: Controller TCP port.
            instance_id: Identifier shared by all channels of this controller.
            config: Timings and reconnect policy.
            transport: Transport to use; a TCP transport is built if omitted.
            registry: Registry to leave on shutdown.
        """
        self._host = host
        self._port = port
        self._instance_id = instance_id
        self._config = config or DEFAULT_CONFIG
        self._transport = transport or default_transport_factory(host, port, self._config)
        self._registry = registry

        self._bus = ChannelEventBus()
        self._backoff = create_backoff(self._config)
        self._decoder = DEFAULT_FRAME_DECODER
        self._state = ConnectionState.DISCONNECTED
        self._stopping = asyncio.Event()
        self._write_lock = asyncio.Lock()

        self._connection_task: asyncio.Task[None] | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._idle_task: asyncio.Task[None] | None = None
        self._first_connect: asyncio.Future[None] | None = None

        # Keepalives are recorded for observability only; no liveness timeout
        # is derived from them yet.
        self.last_keepalive: KeepaliveMessage | None = None
        self.last_keepalive_at: float | None = None

    @property
    def state(self) -> ConnectionState:
        """Get the current connection state."""
        return self._state

    @property
    def connected(self) -> bool:
        """Check if the socket to the controller is up."""
        return self._state == ConnectionState.CONNECTED

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def transport(self) -> AbstractTransport:
        """Get the underlying transport."""
        return self._transport

    @property
    def bus(self) -> ChannelEventBus:
        """Get the event bus consumers subscribe on."""
        return self._bus

    def subscribe(self, topic: str, handler: Handler) -> Subscription:
        """
        Subscribe to a channel or lifecycle topic.

        Args:
            topic: ``channel-0`` .. ``channel-15``, ``connected`` or ``disconnected``.
            handler: Called with the channel state (bool) for channel topics,
                and with no arguments for lifecycle topics.

        Returns:
            Subscription handle; call unsubscribe() when the consumer goes away.

        Raises:
            ValueError: If the topic is unknown.
        """
        return self._bus.subscribe(topic, handler)

    def subscriber_count(self) -> int:
        """Count live subscriptions across all topics."""
        return self._bus.subscriber_count()

    def start(self) -> None:
        """
        Start connecting and schedule the poll and idle timers.

        Must be called from a running event loop. Calling it again is a no-op.

        Raises:
            ConnectionError: If the manager has been shut down.
        """
        if self._state == ConnectionState.SHUTDOWN:
            raise ConnectionError(f"Connection {self._instance_id} has been shut down")

        if self._connection_task is not None:
            return

        loop = asyncio.get_running_loop()
        self._first_connect = loop.create_future()

        logger.info(
            "[%s] Starting connection %s", self._transport.address, self._instance_id
        )
        self._connection_task = loop.create_task(
            self._run(), name=f"hlksw16-connection-{self._instance_id}"
        )
        self._poll_task = loop.create_task(
            self._every(self._config.poll_interval, self.poll_status),
            name=f"hlksw16-poll-{self._instance_id}",
        )
        self._idle_task = loop.create_task(
            self._every(self._config.idle_check_interval, self._check_idle),
            name=f"hlksw16-idle-{self._instance_id}",
        )

    async def connect(self) -> None:
        """
        Start the manager and wait for the first successful connection.

        Reconnects after the first one are not awaited here; they are
        reported through the ``connected``/``disconnected`` topics.

        Raises:
            ConnectionError: If the manager is shut down before it connects.
        """
        self.start()
        await asyncio.shield(self._first_connect)

    async def poll_status(self) -> bool:
        """
        Ask the controller for a status frame.

        Returns:
            True if the poll frame was written, False if not connected.
        """
        if not self.connected:
            return False
        return await self._send(encode_poll())

    async def turn_on(self, channel: Any) -> bool:
        """
        Switch a channel on.

        No acknowledgement exists; the new state arrives later in a status
        frame.

        Args:
            channel: Channel index 0-15 (int or digit string).

        Returns:
            True if the command was written, False if not connected or the
            channel is invalid.
        """
        return await self._switch(channel, True)

    async def turn_off(self, channel: Any) -> bool:
        """
        Switch a channel off.

        Args:
            channel: Channel index 0-15 (int or digit string).

        Returns:
            True if the command was written, False if not connected or the
            channel is invalid.
        """
        return await self._switch(channel, False)

    def handle_data(self, chunk: bytes) -> Message | None:
        """
        Decode one inbound chunk and publish status changes.

        Each chunk must hold exactly one frame; anything else is dropped.

        Args:
            chunk: Bytes as received from the transport.

        Returns:
            The decoded message, or None if the chunk was dropped.
        """
        result, message = self._decoder.parse(chunk)
        if result != DecodeResult.SUCCESS:
            logger.debug(
                "[%s] Dropped frame (%s): %s",
                self._transport.address,
                result.name,
                message.raw_hex or message.message,
            )
            return None

        if isinstance(message, StatusMessage):
            logger.debug("[%s] Status %r", self._transport.address, message.channels)
            for channel, on in message.channels.items():
                self._bus.publish(CHANNEL_TOPICS[channel], on)
        elif isinstance(message, KeepaliveMessage):
            self.last_keepalive = message
            self.last_keepalive_at = time.monotonic()
            logger.debug("[%s] Keepalive, controller clock %s", self._transport.address, message.clock)
        else:
            logger.debug(
                "[%s] Ignoring frame with op 0x%02X: %s",
                self._transport.address,
                message.op,
                message.raw_hex,
            )

        return message

    async def shutdown(self) -> None:
        """
        Stop the manager for good.

        Cancels the poll and idle timers, stops reconnecting, closes the
        socket and leaves the registry. Safe to call more than once.
        """
        if self._state == ConnectionState.SHUTDOWN:
            return

        was_connected = self._state == ConnectionState.CONNECTED
        self._state = ConnectionState.SHUTDOWN
        self._stopping.set()
        logger.info("[%s] Shutting down connection %s", self._transport.address, self._instance_id)

        current = asyncio.current_task()
        tasks = [
            task
            for task in (self._connection_task, self._poll_task, self._idle_task)
            if task is not None and task is not current
        ]
        self._connection_task = self._poll_task = self._idle_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        await self._transport.close()

        if self._first_connect is not None and not self._first_connect.done():
            self._first_connect.set_exception(
                ConnectionError(f"Connection {self._instance_id} shut down before connecting")
            )
            # Marks the exception as retrieved when nobody is awaiting connect()
            self._first_connect.exception()

        if was_connected:
            self._bus.publish(TOPIC_DISCONNECTED)

        if self._registry is not None:
            self._registry.remove(self._instance_id, self)

    async def _run(self) -> None:
        """Connect, read until the socket drops, back off, repeat."""
        while not self._stopping.is_set():
            self._state = ConnectionState.CONNECTING
            try:
                await self._transport.open()
            except TransportError as e:
                level = logging.WARNING if self._backoff.attempts == 0 else logging.DEBUG
                logger.log(level, "[%s] Unable to connect: %s", self._transport.address, e)
            except Exception:
                logger.exception("[%s] Unexpected error while connecting", self._transport.address)
            else:
                self._backoff.reset()
                await self._on_connected()
                await self._receive()
                await self._transport.close()
                self._on_disconnected()

            if self._stopping.is_set():
                break

            delay = self._backoff.next_delay()
            logger.debug(
                "[%s] Reconnecting in %.1fs (attempt %d)",
                self._transport.address,
                delay,
                self._backoff.attempts,
            )
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=delay)
            except asyncio.TimeoutError:
                continue

    async def _receive(self) -> None:
        """Read chunks until the socket closes or fails."""
        while not self._stopping.is_set():
            try:
                chunk = await self._transport.read()
            except TransportError as e:
                logger.warning("[%s] Connection lost: %s", self._transport.address, e)
                return

            if not chunk:
                logger.info("[%s] Connection closed by controller", self._transport.address)
                return

            self.handle_data(chunk)

    async def _on_connected(self) -> None:
        self._state = ConnectionState.CONNECTED
        if self._first_connect is not None and not self._first_connect.done():
            self._first_connect.set_result(None)
        logger.info("[%s] Connected", self._transport.address)

        # Relays may have changed while we were away (e.g. a power cycle)
        await self.poll_status()
        self._bus.publish(TOPIC_CONNECTED)

    def _on_disconnected(self) -> None:
        if self._state == ConnectionState.SHUTDOWN:
            return
        was_connected = self._state == ConnectionState.CONNECTED
        self._state = ConnectionState.CONNECTING
        if was_connected:
            logger.info("[%s] Disconnected", self._transport.address)
            self._bus.publish(TOPIC_DISCONNECTED)

    async def _switch(self, channel: Any, on: bool) -> bool:
        if not self.connected:
            return False

        index = coerce_channel(channel)
        if index is None:
            logger.debug("[%s] Rejected invalid channel %r", self._transport.address, channel)
            return False

        return await self._send(encode_command(index, on))

    async def _send(self, frame: bytes) -> bool:
        """Write one frame; frames from concurrent callers never interleave."""
        async with self._write_lock:
            if not self._transport.is_open:
                return False
            try:
                await self._transport.write(frame)
            except TransportError as e:
                logger.warning("[%s] Write failed: %s", self._transport.address, e)
                return False

        logger.debug("[%s] Sent %s", self._transport.address, bytes_to_hex(frame))
        return True

    async def _check_idle(self) -> None:
        if self.subscriber_count() == 0:
            logger.info(
                "[%s] No subscribers left on %s", self._transport.address, self._instance_id
            )
            await self.shutdown()

    async def _every(self, interval: float, callback: Callable[[], Awaitable[Any]]) -> None:
        """Run a callback every interval seconds until shutdown."""
        while not self._stopping.is_set():
            await asyncio.sleep(interval)
            if self._stopping.is_set():
                break
            await callback()

    async def __aenter__(self) -> ConnectionManager:
        """Async context manager entry - waits for the first connection."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - shuts the manager down."""
        await self.shutdown()

    def __repr__(self) -> str:
        return (
            f"ConnectionManager({self._instance_id!r}, {self._host}:{self._port}, "
            f"state={self._state.name}, subscribers={self.subscriber_count()})"
        )

"""
Connection configuration.

All timings are in seconds. Defaults match the controller's expected
behaviour; tests inject much shorter intervals.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hlksw16.protocol.constants import ProtocolConstants


class ConnectionConfig(BaseModel):
    """
    Timings and reconnect policy for a shared controller connection.

    Example:
        >>> config = ConnectionConfig(poll_interval=1.0)
        >>> config.backoff_strategy
        'fibonacci'
    """

    model_config = ConfigDict(frozen=True)

    initial_delay: float = Field(
        default=ProtocolConstants.DEFAULT_INITIAL_DELAY,
        gt=0,
        description="First reconnect delay",
    )
    max_delay: float = Field(
        default=ProtocolConstants.DEFAULT_MAX_DELAY,
        gt=0,
        description="Upper bound of the reconnect delay",
    )
    backoff_strategy: Literal["fibonacci", "exponential"] = "fibonacci"
    poll_interval: float = Field(
        default=ProtocolConstants.DEFAULT_POLL_INTERVAL,
        gt=0,
        description="Interval between status polls",
    )
    idle_check_interval: float = Field(
        default=ProtocolConstants.DEFAULT_IDLE_CHECK_INTERVAL,
        gt=0,
        description="Interval between subscriber-count checks",
    )
    probe_timeout: float = Field(
        default=ProtocolConstants.DEFAULT_PROBE_TIMEOUT,
        gt=0,
        description="Timeout of the pairing reachability probe",
    )
    connect_timeout: float = Field(
        default=ProtocolConstants.DEFAULT_CONNECT_TIMEOUT,
        gt=0,
        description="Timeout of one socket connect attempt",
    )
    read_size: int = Field(
        default=ProtocolConstants.DEFAULT_READ_SIZE,
        ge=ProtocolConstants.FRAME_LENGTH,
        description="Maximum bytes taken from the socket per read",
    )

    @model_validator(mode="after")
    def check_delays(self) -> ConnectionConfig:
        """Ensure the delay bounds are ordered."""
        if self.max_delay < self.initial_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}) must not be below initial_delay ({self.initial_delay})"
            )
        return self


DEFAULT_CONFIG: ConnectionConfig = ConnectionConfig()
"""Configuration used when none is supplied."""

"""
Reconnect delay strategies.

A strategy hands out the delay before each reconnect attempt and is reset
after every successful connection. Attempts are never capped; only the delay
is bounded.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from hlksw16.config import ConnectionConfig


class BackoffStrategy(ABC):
    """
    Base class for reconnect delay strategies.

    Attributes:
        initial_delay: First delay in seconds.
        max_delay: Upper bound of any delay in seconds.
        attempts: Delays handed out since the last reset.
    """

    def __init__(self, initial_delay: float, max_delay: float) -> None:
        if initial_delay <= 0:
            raise ValueError(f"initial_delay must be positive, got {initial_delay}")
        if max_delay < initial_delay:
            raise ValueError(
                f"max_delay ({max_delay}) must not be below initial_delay ({initial_delay})"
            )
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.attempts = 0

    def next_delay(self) -> float:
        """Return the delay before the next attempt and advance the strategy."""
        delay = min(self._advance(), self.max_delay)
        self.attempts += 1
        return delay

    def reset(self) -> None:
        """Start over from the initial delay."""
        self.attempts = 0
        self._reset()

    @abstractmethod
    def _advance(self) -> float:
        """Produce the next unbounded delay."""
        ...

    @abstractmethod
    def _reset(self) -> None:
        ...

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(initial_delay={self.initial_delay}, "
            f"max_delay={self.max_delay}, attempts={self.attempts})"
        )


class FibonacciBackoff(BackoffStrategy):
    """
    Fibonacci delays: d, d, 2d, 3d, 5d, 8d, ... capped at max_delay.

    Example:
        >>> backoff = FibonacciBackoff(1.0, 10.0)
        >>> [backoff.next_delay() for _ in range(7)]
        [1.0, 1.0, 2.0, 3.0, 5.0, 8.0, 10.0]
    """

    def __init__(self, initial_delay: float, max_delay: float) -> None:
        super().__init__(initial_delay, max_delay)
        self._reset()

    def _advance(self) -> float:
        delay = self._next
        self._next, self._previous = self._next + self._previous, delay
        return delay

    def _reset(self) -> None:
        self._previous = 0.0
        self._next = self.initial_delay


class ExponentialBackoff(BackoffStrategy):
    """
    Doubling delays: d, 2d, 4d, 8d, ... capped at max_delay.

    Example:
        >>> backoff = ExponentialBackoff(1.0, 5.0)
        >>> [backoff.next_delay() for _ in range(5)]
        [1.0, 2.0, 4.0, 5.0, 5.0]
    """

    def __init__(self, initial_delay: float, max_delay: float) -> None:
        super().__init__(initial_delay, max_delay)
        self._reset()

    def _advance(self) -> float:
        delay = self._next
        self._next = min(self._next * 2, self.max_delay)
        return delay

    def _reset(self) -> None:
        self._next = self.initial_delay


def create_backoff(config: ConnectionConfig) -> BackoffStrategy:
    """
    Build the strategy named by a configuration.

    Args:
        config: Connection configuration.

    Returns:
        A fresh strategy instance.
    """
    if config.backoff_strategy == "exponential":
        return ExponentialBackoff(config.initial_delay, config.max_delay)
    return FibonacciBackoff(config.initial_delay, config.max_delay)

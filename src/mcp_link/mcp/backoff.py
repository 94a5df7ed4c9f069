"""Reconnect backoff as plain values.

``BackoffPolicy`` maps an attempt number to a delay; ``RetryState`` is the
counter/delay pair a connection carries between transport failures. Both are
immutable so the reconnect math can be tested without a network or a clock.
"""

from dataclasses import dataclass

from mcp_link.config.models import ReconnectConfig


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff with a retry budget."""

    max_attempts: int = 5
    initial_delay: float = 1.0
    max_delay: float = 30.0
    multiplier: float = 2.0

    @classmethod
    def from_config(cls, config: ReconnectConfig) -> "BackoffPolicy":
        return cls(
            max_attempts=config.max_attempts,
            initial_delay=config.initial_delay,
            max_delay=config.max_delay,
            multiplier=config.multiplier,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay before the given reconnect attempt (1-indexed).

        Args:
            attempt: Reconnect attempt number

        Returns:
            Delay in seconds, capped at max_delay
        """
        if attempt <= 1:
            return min(self.initial_delay, self.max_delay)
        delay = self.initial_delay * (self.multiplier ** (attempt - 1))
        return min(delay, self.max_delay)

    def should_retry(self, attempts: int) -> bool:
        """Whether another reconnect is allowed after ``attempts`` reconnects."""
        return attempts < self.max_attempts


@dataclass(frozen=True)
class RetryState:
    """Reconnect counter and the delay the next reconnect will wait."""

    attempts: int = 0
    delay: float = 1.0

    @classmethod
    def initial(cls, policy: BackoffPolicy) -> "RetryState":
        return cls(attempts=0, delay=policy.initial_delay)

    def advance(self, policy: BackoffPolicy) -> "RetryState":
        """Count one more reconnect and double the delay for the next one."""
        return RetryState(
            attempts=self.attempts + 1,
            delay=min(self.delay * policy.multiplier, policy.max_delay),
        )

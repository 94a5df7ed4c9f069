"""Lifecycle state machine for a push-stream MCP connection.

``transition`` is a pure function from (state, event, retry state) to the
next state, the effects the connection must perform, and the next retry
state. The connection object only executes effects; every decision about
retrying, resolving or tearing down is made here.
"""

from dataclasses import dataclass
from enum import Enum

from mcp_link.types import ConnectionStatus

from .backoff import BackoffPolicy, RetryState


class LifecycleEvent(str, Enum):
    """Inputs to the lifecycle state machine."""

    CONNECT = "connect"  # establishment requested (fresh, retry or transparent)
    ENDPOINT_RECEIVED = "endpoint_received"
    HANDSHAKE_SUCCEEDED = "handshake_succeeded"
    HANDSHAKE_FAILED = "handshake_failed"
    TRANSPORT_ERROR = "transport_error"
    TIMEOUT = "timeout"
    DISCONNECT = "disconnect"


class Effect(str, Enum):
    """Side effects requested by a transition, executed in order."""

    CLOSE_TRANSPORT = "close_transport"
    OPEN_TRANSPORT = "open_transport"
    START_HANDSHAKE = "start_handshake"
    RESOLVE_PENDING = "resolve_pending"
    REJECT_PENDING = "reject_pending"
    SCHEDULE_RETRY = "schedule_retry"
    TEARDOWN = "teardown"


@dataclass(frozen=True)
class Transition:
    """Result of applying one event."""

    state: ConnectionStatus
    effects: tuple[Effect, ...] = ()
    retry: RetryState = RetryState()
    retry_delay: float | None = None  # set when SCHEDULE_RETRY is requested

    @property
    def changed(self) -> bool:
        return bool(self.effects)


def _reconnect(retry: RetryState, policy: BackoffPolicy, reject: bool) -> Transition:
    pending = (Effect.REJECT_PENDING,) if reject else ()
    if policy.should_retry(retry.attempts):
        return Transition(
            state=ConnectionStatus.CONNECTING,
            effects=(Effect.CLOSE_TRANSPORT, *pending, Effect.SCHEDULE_RETRY),
            retry=retry.advance(policy),
            retry_delay=retry.delay,
        )
    return Transition(
        state=ConnectionStatus.DISCONNECTED,
        effects=(Effect.TEARDOWN, *pending),
        retry=retry,
    )


def transition(
    state: ConnectionStatus,
    event: LifecycleEvent,
    retry: RetryState,
    policy: BackoffPolicy,
    reconnecting: bool = False,
) -> Transition:
    """Apply one lifecycle event.

    Args:
        state: Current lifecycle state
        event: Event to apply
        retry: Current reconnect counter and delay
        policy: Backoff policy and retry budget
        reconnecting: True while the current attempt was started by a
            scheduled retry rather than an explicit connect

    Returns:
        Transition with the next state, effects and retry state. Events that
        do not apply to the current state yield the same state and no effects.
    """
    unchanged = Transition(state=state, retry=retry)

    if event == LifecycleEvent.DISCONNECT:
        return Transition(
            state=ConnectionStatus.DISCONNECTED,
            effects=(Effect.TEARDOWN, Effect.REJECT_PENDING),
            retry=retry,
        )

    if event == LifecycleEvent.CONNECT:
        return Transition(
            state=ConnectionStatus.CONNECTING,
            effects=(Effect.CLOSE_TRANSPORT, Effect.OPEN_TRANSPORT),
            retry=retry,
        )

    if state == ConnectionStatus.DISCONNECTED:
        return unchanged

    if event == LifecycleEvent.ENDPOINT_RECEIVED:
        if state != ConnectionStatus.CONNECTING:
            return unchanged
        return Transition(
            state=ConnectionStatus.HANDSHAKING,
            effects=(Effect.START_HANDSHAKE,),
            retry=retry,
        )

    if event == LifecycleEvent.HANDSHAKE_SUCCEEDED:
        if state != ConnectionStatus.HANDSHAKING:
            return unchanged
        return Transition(
            state=ConnectionStatus.READY,
            effects=(Effect.RESOLVE_PENDING,),
            retry=RetryState.initial(policy),
        )

    if event == LifecycleEvent.HANDSHAKE_FAILED:
        if state not in (ConnectionStatus.CONNECTING, ConnectionStatus.HANDSHAKING):
            return unchanged
        return Transition(
            state=ConnectionStatus.DISCONNECTED,
            effects=(Effect.TEARDOWN, Effect.REJECT_PENDING),
            retry=retry,
        )

    if event == LifecycleEvent.TIMEOUT:
        if state == ConnectionStatus.READY:
            return unchanged
        return Transition(
            state=ConnectionStatus.DISCONNECTED,
            effects=(Effect.TEARDOWN, Effect.REJECT_PENDING),
            retry=retry,
        )

    if event == LifecycleEvent.TRANSPORT_ERROR:
        if state == ConnectionStatus.READY:
            return _reconnect(retry, policy, reject=False)
        if reconnecting:
            # A scheduled reconnect attempt failed before becoming ready
            return _reconnect(retry, policy, reject=True)
        return Transition(
            state=ConnectionStatus.DISCONNECTED,
            effects=(Effect.TEARDOWN, Effect.REJECT_PENDING),
            retry=retry,
        )

    return unchanged

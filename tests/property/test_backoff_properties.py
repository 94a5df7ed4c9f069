"""Property-based tests for reconnect backoff and the lifecycle state machine."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mcp_link.mcp.backoff import BackoffPolicy, RetryState
from mcp_link.mcp.state import Effect, LifecycleEvent, transition
from mcp_link.types import ConnectionStatus

policies = st.builds(
    BackoffPolicy,
    max_attempts=st.integers(min_value=0, max_value=10),
    initial_delay=st.floats(min_value=0.001, max_value=5.0),
    max_delay=st.floats(min_value=5.0, max_value=60.0),
    multiplier=st.floats(min_value=1.0, max_value=4.0),
)

events = st.sampled_from(list(LifecycleEvent))

@pytest.mark.property
class TestBackoffProperties:
    @given(policies, st.integers(min_value=1, max_value=50))
    @settings(max_examples=100)
    def test_delays_non_decreasing_and_capped(self, policy, steps):
        state = RetryState.initial(policy)
        previous = 0.0
        for _ in range(steps):
            assert previous <= state.delay <= policy.max_delay
            previous = state.delay
            state = state.advance(policy)

    @given(st.integers(min_value=1, max_value=40))
    def test_default_policy_doubles_from_one(self, attempt):
        policy = BackoffPolicy()

        assert policy.delay_for(attempt) == min(2.0 ** (attempt - 1), 30.0)


@pytest.mark.property
class TestLifecycleProperties:
    @given(policies, st.lists(events, max_size=60))
    @settings(max_examples=200)
    def test_retries_never_exceed_budget(self, policy, sequence):
        state = ConnectionStatus.DISCONNECTED
        retry = RetryState.initial(policy)
        for event in sequence:
            result = transition(state, event, retry, policy)
            if Effect.SCHEDULE_RETRY in result.effects:
                assert result.retry.attempts <= policy.max_attempts
            state, retry = result.state, result.retry
            assert retry.attempts <= policy.max_attempts

    @given(policies, st.lists(events, max_size=60))
    @settings(max_examples=200)
    def test_ready_always_has_fresh_retry_state(self, policy, sequence):
        state = ConnectionStatus.DISCONNECTED
        retry = RetryState.initial(policy)
        for event in sequence:
            result = transition(state, event, retry, policy)
            if result.state == ConnectionStatus.READY and state != ConnectionStatus.READY:
                assert result.retry == RetryState.initial(policy)
            state, retry = result.state, result.retry

    @given(events, policies)
    def test_disconnected_ignores_all_but_connect_and_disconnect(self, event, policy):
        result = transition(
            ConnectionStatus.DISCONNECTED, event, RetryState.initial(policy), policy
        )

        if event in (LifecycleEvent.CONNECT, LifecycleEvent.DISCONNECT):
            assert result.changed
        else:
            assert not result.changed
            assert result.state == ConnectionStatus.DISCONNECTED

"""
Reconnect backoff unit tests
"""

import pytest

from eventwire.reconnect import ReconnectPolicy, compute_delay, should_attempt
from eventwire.types import ClientConfig


# ============================================================================
# compute_delay
# ============================================================================


class TestComputeDelay:
    def test_first_attempt_is_base(self):
        assert compute_delay(1, 5.0) == 5.0

    def test_doubles(self):
        assert [compute_delay(n, 1.0) for n in range(1, 5)] == [1.0, 2.0, 4.0, 8.0]

    def test_multiplier_capped_at_64(self):
        assert compute_delay(7, 1.0, max_delay=1000.0) == 64.0
        assert compute_delay(8, 1.0, max_delay=1000.0) == 64.0
        assert compute_delay(100, 1.0, max_delay=1000.0) == 64.0

    def test_absolute_ceiling(self):
        assert compute_delay(7, 5.0, max_delay=300.0) == 300.0
        assert compute_delay(100, 5.0) == 300.0

    def test_attempt_below_one_treated_as_first(self):
        assert compute_delay(0, 2.0) == 2.0


# ============================================================================
# should_attempt
# ============================================================================


class TestShouldAttempt:
    @pytest.mark.parametrize("max_attempts", [0, -1])
    def test_unbounded(self, max_attempts):
        assert all(should_attempt(count, max_attempts) for count in (0, 1, 10, 10_000))

    def test_bounded(self):
        assert should_attempt(0, 2) is True
        assert should_attempt(1, 2) is True
        assert should_attempt(2, 2) is False
        assert should_attempt(3, 2) is False


# ============================================================================
# ReconnectPolicy
# ============================================================================


class TestReconnectPolicy:
    def test_from_config(self):
        policy = ReconnectPolicy(ClientConfig(auto_reconnect=True, reconnect_base_delay=2.0,
                                              max_reconnect_attempts=3))
        assert policy.auto_reconnect is True
        assert policy.base_delay == 2.0
        assert policy.max_attempts == 3
        assert policy.attempt_count == 0

    def test_next_attempt_increments(self):
        policy = ReconnectPolicy(ClientConfig(reconnect_base_delay=1.0))
        assert policy.next_attempt() == (1, 1.0)
        assert policy.next_attempt() == (2, 2.0)
        assert policy.attempt_count == 2

    def test_reset(self):
        policy = ReconnectPolicy(ClientConfig())
        policy.next_attempt()
        policy.reset()
        assert policy.attempt_count == 0

    def test_limit(self):
        policy = ReconnectPolicy(ClientConfig(max_reconnect_attempts=1))
        assert policy.should_reconnect
        policy.next_attempt()
        assert not policy.should_reconnect

    def test_enable_and_disable(self):
        policy = ReconnectPolicy(ClientConfig())
        policy.enable(0.5, 4)
        assert (policy.auto_reconnect, policy.base_delay, policy.max_attempts) == (True, 0.5, 4)
        policy.disable()
        assert policy.auto_reconnect is False

    def test_enable_rejects_non_positive_delay(self):
        with pytest.raises(ValueError):
            ReconnectPolicy(ClientConfig()).enable(0, 1)

    def test_apply_retry_converts_milliseconds(self):
        policy = ReconnectPolicy(ClientConfig())
        policy.apply_retry(1500)
        assert policy.base_delay == 1.5

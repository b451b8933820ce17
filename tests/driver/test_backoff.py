"""Tests for exponential backoff used by the block driver."""

from __future__ import annotations

import random

import pytest

from poolbot.driver import BackoffConfig, BackoffState, compute_backoff_delay


class TestBackoffConfig:
    def test_default_values(self) -> None:
        config = BackoffConfig()
        assert config.base_delay_ms == 500
        assert config.max_delay_ms == 30000
        assert config.multiplier == 2.0
        assert config.jitter_factor == 0.5
        assert config.max_retries == 10

    def test_rejects_negative_base(self) -> None:
        with pytest.raises(ValueError, match="base_delay_ms"):
            BackoffConfig(base_delay_ms=-1)

    def test_rejects_max_below_base(self) -> None:
        with pytest.raises(ValueError, match="max_delay_ms"):
            BackoffConfig(base_delay_ms=1000, max_delay_ms=10)

    def test_rejects_bad_jitter(self) -> None:
        with pytest.raises(ValueError, match="jitter_factor"):
            BackoffConfig(jitter_factor=1.0)

    def test_rejects_negative_retries(self) -> None:
        with pytest.raises(ValueError, match="max_retries"):
            BackoffConfig(max_retries=-1)


class TestBackoffState:
    def test_record_and_reset(self) -> None:
        state = BackoffState()
        state.record_error()
        state.record_error()
        assert state.attempt == 2
        assert state.last_error_time_ms > 0
        state.reset()
        assert state.attempt == 0

    def test_exhausted_after_max_retries(self) -> None:
        config = BackoffConfig(max_retries=2)
        state = BackoffState()
        for _ in range(2):
            state.record_error()
            assert not state.exhausted(config)
        state.record_error()
        assert state.exhausted(config)


class TestComputeBackoffDelay:
    def test_zero_without_errors(self) -> None:
        assert compute_backoff_delay(BackoffConfig(), BackoffState()) == 0

    def test_exponential_without_jitter(self) -> None:
        config = BackoffConfig(base_delay_ms=100, max_delay_ms=10_000, jitter_factor=0.0)
        state = BackoffState()
        delays = []
        for _ in range(5):
            state.record_error()
            delays.append(compute_backoff_delay(config, state))
        assert delays == [100, 200, 400, 800, 1600]

    def test_capped_at_max(self) -> None:
        config = BackoffConfig(base_delay_ms=100, max_delay_ms=500, jitter_factor=0.0)
        state = BackoffState(attempt=20)
        assert compute_backoff_delay(config, state) == 500

    def test_jitter_bounds(self) -> None:
        config = BackoffConfig(base_delay_ms=1000, max_delay_ms=60_000, jitter_factor=0.5)
        state = BackoffState(attempt=1)
        rng = random.Random(7)
        for _ in range(100):
            delay = compute_backoff_delay(config, state, rng=rng)
            assert 500 <= delay <= 1500

    def test_seeded_rng_is_deterministic(self) -> None:
        config = BackoffConfig()
        state = BackoffState(attempt=3)
        first = [compute_backoff_delay(config, state, rng=random.Random(42)) for _ in range(3)]
        second = [compute_backoff_delay(config, state, rng=random.Random(42)) for _ in range(3)]
        assert first == second

"""Unit tests for the fixed-window rate limiter."""

import pytest

from fpl_wrapped.services.rate_limiter import RateLimiter
from tests.conftest import FakeTimer


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def limiter(timer: FakeTimer) -> RateLimiter:
    return RateLimiter(max_requests=3, window=60, timer=timer)


class TestRateLimiter:
    """Tests for is_allowed and retry_after."""

    def test_allows_up_to_limit(self, limiter: RateLimiter):
        assert [limiter.is_allowed("1.2.3.4") for _ in range(4)] == [True, True, True, False]

    def test_clients_are_independent(self, limiter: RateLimiter):
        for _ in range(3):
            limiter.is_allowed("1.2.3.4")

        assert limiter.is_allowed("1.2.3.4") is False
        assert limiter.is_allowed("5.6.7.8") is True

    def test_window_resets(self, limiter: RateLimiter, timer: FakeTimer):
        for _ in range(4):
            limiter.is_allowed("1.2.3.4")

        timer.now += 61

        assert limiter.is_allowed("1.2.3.4") is True

    def test_requests_do_not_extend_window(self, limiter: RateLimiter, timer: FakeTimer):
        """The window starts at the first request, later requests keep its deadline."""
        limiter.is_allowed("1.2.3.4")
        timer.now += 50
        limiter.is_allowed("1.2.3.4")
        limiter.is_allowed("1.2.3.4")
        assert limiter.is_allowed("1.2.3.4") is False

        timer.now += 11

        assert limiter.is_allowed("1.2.3.4") is True

    def test_retry_after_counts_down(self, limiter: RateLimiter, timer: FakeTimer):
        for _ in range(4):
            limiter.is_allowed("1.2.3.4")

        assert limiter.retry_after("1.2.3.4") == 60

        timer.now += 45.5

        assert limiter.retry_after("1.2.3.4") == 15

    def test_retry_after_unknown_client(self, limiter: RateLimiter):
        assert limiter.retry_after("9.9.9.9") == 0

    def test_stats(self, limiter: RateLimiter):
        for _ in range(4):
            limiter.is_allowed("1.2.3.4")
        limiter.is_allowed("5.6.7.8")

        stats = limiter.stats()

        assert stats["tracked_clients"] == 2
        assert stats["rejected"] == 1
        assert stats["max_requests"] == 3
        assert stats["window_seconds"] == 60

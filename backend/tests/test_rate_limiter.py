"""
Topapi Backend: Rate Limiter Tests
====================================

A fake clock drives the fixed window so no test sleeps.
"""

from topapi.services.rate_limiter import FixedWindowRateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestFixedWindowRateLimiter:
    def setup_method(self):
        self.clock = FakeClock()
        self.limiter = FixedWindowRateLimiter(limit=3, window=900, clock=self.clock)

    def test_allows_up_to_limit(self):
        decisions = [self.limiter.hit("10.0.0.1") for _ in range(3)]
        assert all(d.allowed for d in decisions)
        assert [d.remaining for d in decisions] == [2, 1, 0]

    def test_rejects_over_limit(self):
        for _ in range(3):
            self.limiter.hit("10.0.0.1")
        decision = self.limiter.hit("10.0.0.1")
        assert not decision.allowed
        assert decision.remaining == 0
        assert decision.reset_after == 900

    def test_keys_are_independent(self):
        for _ in range(3):
            self.limiter.hit("10.0.0.1")
        assert self.limiter.hit("10.0.0.2").allowed

    def test_reset_after_counts_down(self):
        self.limiter.hit("10.0.0.1")
        self.clock.now += 300
        assert self.limiter.hit("10.0.0.1").reset_after == 600

    def test_window_expiry_restores_budget(self):
        for _ in range(4):
            self.limiter.hit("10.0.0.1")
        self.clock.now += 900
        decision = self.limiter.hit("10.0.0.1")
        assert decision.allowed
        assert decision.remaining == 2

    def test_prunes_expired_windows(self):
        limiter = FixedWindowRateLimiter(limit=3, window=10, clock=self.clock, cleanup_interval=2)
        limiter.hit("a")
        self.clock.now += 20
        limiter.hit("b")
        assert len(limiter) == 1

    def test_reset(self):
        self.limiter.hit("10.0.0.1")
        self.limiter.reset()
        assert len(self.limiter) == 0

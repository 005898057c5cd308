from security import RateLimiter


def test_rate_limiter_refuses_after_limit():
    limiter = RateLimiter()

    assert not limiter.is_rate_limited('1.2.3.4', limit=2, period_seconds=60)
    assert not limiter.is_rate_limited('1.2.3.4', limit=2, period_seconds=60)
    assert limiter.is_rate_limited('1.2.3.4', limit=2, period_seconds=60)
    assert not limiter.is_rate_limited('5.6.7.8', limit=2, period_seconds=60)


def test_rate_limiter_window_expires():
    limiter = RateLimiter()

    assert not limiter.is_rate_limited('key', limit=1, period_seconds=0)
    assert not limiter.is_rate_limited('key', limit=1, period_seconds=0)

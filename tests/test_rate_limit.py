from rate_limit import FixedWindowRateLimiter


def test_allows_up_to_limit_within_window():
    limiter = FixedWindowRateLimiter(max_requests=10, window_seconds=60)
    allowed = [limiter.allow("user-1", now=100.0 + i) for i in range(11)]
    assert allowed == [True] * 10 + [False]


def test_window_resets_after_expiry():
    limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=60)
    assert limiter.allow("user-1", now=0.0)
    assert limiter.allow("user-1", now=1.0)
    assert not limiter.allow("user-1", now=30.0)
    assert limiter.allow("user-1", now=61.0)


def test_keys_are_limited_independently():
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60)
    assert limiter.allow("user-1", now=0.0)
    assert not limiter.allow("user-1", now=1.0)
    assert limiter.allow("user-2", now=1.0)


def test_reset_clears_windows():
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60)
    limiter.allow("user-1", now=0.0)
    limiter.reset()
    assert limiter.allow("user-1", now=1.0)

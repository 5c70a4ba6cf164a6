"""Tests for the sliding-window rate limiter."""

import pytest

from chesser_guesser.services.rate_limiter import RateLimiter, RateLimitResult


class FakeClock:
    """Manually advanced clock in seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(redis_client, clock, settings_factory) -> RateLimiter:
    settings = settings_factory(
        rate_limit_submission_cooldown_seconds=2,
        rate_limit_submissions_per_day=4,
        rate_limit_leaderboard_per_minute=30,
        rate_limit_puzzles_per_minute=20,
    )
    return RateLimiter(redis_client, settings, clock=clock)


def test_key_namespace():
    assert RateLimiter.key("leaderboard", "1.2.3.4") == "ratelimit:leaderboard:1.2.3.4"


def test_result_headers():
    denied = RateLimitResult(allowed=False, remaining=0, reset_at=5_000, retry_after=3)
    assert denied.headers() == {
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": "5",
        "Retry-After": "3",
    }

    allowed = RateLimitResult(allowed=True, remaining=7, reset_at=60_000)
    assert "Retry-After" not in allowed.headers()


@pytest.mark.asyncio
async def test_cooldown_allows_one_in_burst(limiter):
    """Five rapid submissions: only the first gets through."""
    results = [await limiter.check_submission_cooldown("alice") for _ in range(5)]

    assert [r.allowed for r in results] == [True, False, False, False, False]
    for denied in results[1:]:
        assert denied.remaining == 0
        assert denied.retry_after == 2


@pytest.mark.asyncio
async def test_cooldown_expires(limiter, clock):
    assert (await limiter.check_submission_cooldown("alice")).allowed

    clock.advance(1)
    assert not (await limiter.check_submission_cooldown("alice")).allowed

    clock.advance(1.001)
    assert (await limiter.check_submission_cooldown("alice")).allowed


@pytest.mark.asyncio
async def test_identities_are_independent(limiter):
    assert (await limiter.check_submission_cooldown("alice")).allowed
    assert (await limiter.check_submission_cooldown("bob")).allowed
    assert not (await limiter.check_submission_cooldown("alice")).allowed


@pytest.mark.asyncio
async def test_leaderboard_window(limiter, clock):
    first = await limiter.check_leaderboard("10.0.0.1")
    assert first.allowed
    assert first.remaining == 29

    for _ in range(29):
        clock.advance(0.5)
        assert (await limiter.check_leaderboard("10.0.0.1")).allowed

    denied = await limiter.check_leaderboard("10.0.0.1")
    assert not denied.allowed
    # Oldest entry was recorded 14.5s ago in a 60s window
    assert denied.retry_after == 46

    clock.advance(46)
    assert (await limiter.check_leaderboard("10.0.0.1")).allowed


@pytest.mark.asyncio
async def test_denied_requests_are_not_recorded(limiter, clock):
    for _ in range(20):
        await limiter.check_puzzles("10.0.0.2")
    for _ in range(10):
        assert not (await limiter.check_puzzles("10.0.0.2")).allowed

    clock.advance(60.001)
    result = await limiter.check_puzzles("10.0.0.2")
    assert result.allowed
    assert result.remaining == 19


@pytest.mark.asyncio
async def test_peek_does_not_record(limiter):
    for _ in range(3):
        result = await limiter.peek_daily_submissions("alice", "2024-01-15")
        assert result.allowed
        assert result.remaining == 4


@pytest.mark.asyncio
async def test_daily_cap(limiter, clock):
    for _ in range(2):
        await limiter.record_daily_submission("alice", "2024-01-15")
        clock.advance(3)

    peeked = await limiter.peek_daily_submissions("alice", "2024-01-15")
    assert peeked.allowed
    assert peeked.remaining == 2

    for _ in range(2):
        await limiter.record_daily_submission("alice", "2024-01-15")

    capped = await limiter.peek_daily_submissions("alice", "2024-01-15")
    assert not capped.allowed
    assert capped.retry_after > 0

    # Another date has its own allowance
    assert (await limiter.peek_daily_submissions("alice", "2024-01-16")).allowed


@pytest.mark.asyncio
async def test_reset(limiter):
    await limiter.check_submission_cooldown("alice")
    await limiter.reset(RateLimiter.key("cooldown", "alice"))

    assert (await limiter.check_submission_cooldown("alice")).allowed


@pytest.mark.asyncio
async def test_fails_open_when_redis_is_down(failing_redis, clock, settings_factory):
    limiter = RateLimiter(failing_redis, settings_factory(), clock=clock)

    result = await limiter.check_leaderboard("10.0.0.1")
    assert result.allowed
    assert result.remaining == 30

    peeked = await limiter.peek_daily_submissions("alice", "2024-01-15")
    assert peeked.allowed

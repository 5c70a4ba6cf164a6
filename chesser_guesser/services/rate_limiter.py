"""Sliding-window rate limiting on Redis sorted sets."""

import logging
import math
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from chesser_guesser.config import DAY_SECONDS, Settings
from chesser_guesser.db.redis import RATE_LIMIT_KEY

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    """Outcome of a rate limit check."""

    allowed: bool
    remaining: int
    reset_at: int  # Unix timestamp in milliseconds
    retry_after: Optional[int] = None  # Seconds, only set when denied

    def headers(self) -> dict[str, str]:
        """Standard rate limit response headers."""
        headers = {
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at // 1000),
        }
        if not self.allowed and self.retry_after:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimitExceededError(Exception):
    """Raised when a request falls outside its rate limit window."""

    def __init__(self, result: RateLimitResult):
        self.result = result
        super().__init__(f"Rate limit exceeded, retry after {result.retry_after}s")


class RateLimiter:
    """Per-identity request windows kept as sorted sets of timestamps.

    Each check prunes entries older than the window, counts the survivors and
    either denies the request or records it. Any Redis failure lets the
    request through.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ):
        self._redis = redis_client
        self.settings = settings
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    @staticmethod
    def key(endpoint_class: str, identity: str) -> str:
        return RATE_LIMIT_KEY.format(endpoint_class=endpoint_class, identity=identity)

    async def _reset_at(self, key: str, now: int, window_ms: int) -> int:
        oldest = await self._redis.zrange(key, 0, 0, withscores=True)
        if oldest:
            return int(oldest[0][1]) + window_ms
        return now + window_ms

    async def check(self, key: str, max_requests: int, window_seconds: int) -> RateLimitResult:
        """Check a window and record this request if it is allowed."""
        now = self._now_ms()
        window_ms = window_seconds * 1000

        try:
            await self._redis.zremrangebyscore(key, 0, now - window_ms)
            current_count = await self._redis.zcard(key)
            reset_at = await self._reset_at(key, now, window_ms)

            if current_count >= max_requests:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_at=reset_at,
                    retry_after=max(1, math.ceil((reset_at - now) / 1000)),
                )

            await self._redis.zadd(key, {f"{now}-{uuid.uuid4().hex[:8]}": now})
            await self._redis.expire(key, window_seconds * 2)

            return RateLimitResult(
                allowed=True,
                remaining=max_requests - current_count - 1,
                reset_at=reset_at,
            )

        except RedisError as e:
            logger.error(f"Rate limit check failed for {key}, allowing request: {e}")
            return RateLimitResult(
                allowed=True,
                remaining=max_requests,
                reset_at=now + window_ms,
            )

    async def peek(self, key: str, max_requests: int, window_seconds: int) -> RateLimitResult:
        """Inspect a window without recording a request."""
        now = self._now_ms()
        window_ms = window_seconds * 1000

        try:
            current_count = await self._redis.zcount(key, now - window_ms + 1, now)
            reset_at = await self._reset_at(key, now, window_ms)
        except RedisError as e:
            logger.error(f"Rate limit lookup failed for {key}: {e}")
            return RateLimitResult(
                allowed=True,
                remaining=max_requests,
                reset_at=now + window_ms,
            )

        allowed = current_count < max_requests
        return RateLimitResult(
            allowed=allowed,
            remaining=max(0, max_requests - current_count),
            reset_at=reset_at,
            retry_after=None if allowed else max(1, math.ceil((reset_at - now) / 1000)),
        )

    async def reset(self, key: str) -> None:
        """Forget every request recorded in a window."""
        await self._redis.delete(key)

    # Policies

    async def check_submission_cooldown(self, username: str) -> RateLimitResult:
        """At most one submission per cooldown period for a user."""
        return await self.check(
            self.key("cooldown", username),
            1,
            self.settings.rate_limit_submission_cooldown_seconds,
        )

    def _daily_submission_key(self, username: str, date: str) -> str:
        return self.key("submission", f"{date}:{username}")

    async def peek_daily_submissions(self, username: str, date: str) -> RateLimitResult:
        """Whether a user still has submissions left for a date."""
        return await self.peek(
            self._daily_submission_key(username, date),
            self.settings.rate_limit_submissions_per_day,
            DAY_SECONDS,
        )

    async def record_daily_submission(self, username: str, date: str) -> RateLimitResult:
        """Count an accepted submission against the user's daily cap."""
        return await self.check(
            self._daily_submission_key(username, date),
            self.settings.rate_limit_submissions_per_day,
            DAY_SECONDS,
        )

    async def check_leaderboard(self, client_ip: str) -> RateLimitResult:
        return await self.check(
            self.key("leaderboard", client_ip),
            self.settings.rate_limit_leaderboard_per_minute,
            60,
        )

    async def check_puzzles(self, client_ip: str) -> RateLimitResult:
        return await self.check(
            self.key("puzzles", client_ip),
            self.settings.rate_limit_puzzles_per_minute,
            60,
        )

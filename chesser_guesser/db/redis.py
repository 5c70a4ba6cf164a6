"""Redis connection and key namespace."""

import redis.asyncio as redis

from chesser_guesser.config import Settings

# Redis key patterns
DAILY_PUZZLES_KEY = "dailyPuzzles:{date}"
SUBMISSION_KEY = "submission:{date}:{username}:{puzzle_index}"
USER_SCORE_KEY = "userScore:{date}:{username}"
COMPLETED_KEY = "completed:{date}:{username}"
SUMMARY_KEY = "summary:{date}:{username}"
LEADERBOARD_KEY = "leaderboard:{date}"
RATE_LIMIT_KEY = "ratelimit:{endpoint_class}:{identity}"


def resolve_redis_url(redis_url: str) -> str:
    """Normalize the configured Redis URL."""
    # Railway's public Redis URL requires SSL/TLS
    # The TCP proxy returns HTTP 400 if SSL is not used
    if ("rlwy.net" in redis_url or "railway" in redis_url) and redis_url.startswith("redis://"):
        redis_url = redis_url.replace("redis://", "rediss://", 1)
    return redis_url


def create_redis(settings: Settings) -> redis.Redis:
    """Build a Redis client backed by its own connection pool."""
    pool = redis.ConnectionPool.from_url(
        resolve_redis_url(settings.redis_url),
        decode_responses=True,
    )
    return redis.Redis(connection_pool=pool)


async def close_redis(client: redis.Redis) -> None:
    """Close a Redis client and disconnect its pool."""
    await client.aclose()
    await client.connection_pool.disconnect()

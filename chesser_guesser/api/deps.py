"""API dependencies for dependency injection."""

from typing import Annotated

import httpx
import redis.asyncio as redis
from fastapi import Depends, Request, Response
from slowapi.util import get_remote_address

from chesser_guesser.config import Settings, get_settings
from chesser_guesser.services.leaderboard_service import LeaderboardService
from chesser_guesser.services.puzzle_service import DailyPuzzleService
from chesser_guesser.services.puzzle_source import PuzzleSource
from chesser_guesser.services.rate_limiter import (
    RateLimiter,
    RateLimitExceededError,
    RateLimitResult,
)
from chesser_guesser.services.submission_service import SubmissionService


def get_redis(request: Request) -> redis.Redis:
    """Get the Redis client created at startup."""
    return request.app.state.redis


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Get the shared outbound HTTP client created at startup."""
    return request.app.state.http_client


RedisClient = Annotated[redis.Redis, Depends(get_redis)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def get_puzzle_source(
    settings: AppSettings,
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> PuzzleSource:
    return PuzzleSource(http_client, settings)


def get_rate_limiter(redis_client: RedisClient, settings: AppSettings) -> RateLimiter:
    return RateLimiter(redis_client, settings)


def get_leaderboard_service(redis_client: RedisClient, settings: AppSettings) -> LeaderboardService:
    return LeaderboardService(redis_client, settings)


def get_submission_service(
    redis_client: RedisClient,
    settings: AppSettings,
    leaderboard: LeaderboardService = Depends(get_leaderboard_service),
) -> SubmissionService:
    return SubmissionService(redis_client, leaderboard, settings)


def get_puzzle_service(
    redis_client: RedisClient,
    settings: AppSettings,
    source: PuzzleSource = Depends(get_puzzle_source),
) -> DailyPuzzleService:
    return DailyPuzzleService(redis_client, source, settings)


def get_client_ip(request: Request) -> str:
    """Get the client IP, honouring common proxy headers."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip") or request.headers.get("cf-connecting-ip")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def apply_rate_limit(response: Response, result: RateLimitResult) -> None:
    """Attach rate limit headers, raising when the request is denied."""
    if not result.allowed:
        raise RateLimitExceededError(result)
    response.headers.update(result.headers())


# Type aliases for cleaner route signatures
Limiter = Annotated[RateLimiter, Depends(get_rate_limiter)]
PuzzleServiceDep = Annotated[DailyPuzzleService, Depends(get_puzzle_service)]
LeaderboardServiceDep = Annotated[LeaderboardService, Depends(get_leaderboard_service)]
SubmissionServiceDep = Annotated[SubmissionService, Depends(get_submission_service)]

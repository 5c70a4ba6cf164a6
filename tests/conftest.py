"""Pytest configuration and fixtures."""

from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from chesser_guesser.api.deps import get_puzzle_source, get_redis
from chesser_guesser.config import Settings, get_settings
from chesser_guesser.main import app
from chesser_guesser.schemas.puzzle import ChessPuzzle

REDIS_COMMANDS = (
    "get",
    "set",
    "mget",
    "exists",
    "delete",
    "expire",
    "ping",
    "zadd",
    "zcard",
    "zcount",
    "zrange",
    "zrank",
    "zrevrank",
    "zscore",
    "zremrangebyscore",
)


class StubPuzzleSource:
    """Puzzle source returning a predictable puzzle per pool index."""

    def __init__(self):
        self.requested: list[int] = []

    async def fetch_puzzle(self, index: int) -> ChessPuzzle:
        self.requested.append(index)
        return ChessPuzzle(fen=f"8/8/8/8/8/8/8/K6k w - - 0 {index + 1}", evaluation=index * 10)


def make_settings(**overrides) -> Settings:
    """Settings for tests: no upstream retry delay and no submission cooldown."""
    values = {
        "puzzle_fetch_retry_delay_seconds": 0,
        "rate_limit_submission_cooldown_seconds": 0,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest_asyncio.fixture(scope="function")
async def redis_client() -> AsyncGenerator[FakeAsyncRedis, None]:
    """Create an empty in-memory Redis."""
    client = FakeAsyncRedis(decode_responses=True)
    await client.flushall()

    yield client

    await client.flushall()
    await client.aclose()


@pytest.fixture
def failing_redis() -> AsyncMock:
    """Redis client whose every command fails to connect."""
    mock_redis = AsyncMock()
    for command in REDIS_COMMANDS:
        getattr(mock_redis, command).side_effect = RedisConnectionError("Connection refused")
    return mock_redis


@pytest.fixture
def puzzle_source() -> StubPuzzleSource:
    return StubPuzzleSource()


@pytest_asyncio.fixture(scope="function")
async def client(
    redis_client, puzzle_source, test_settings
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client backed by the fake Redis."""
    app.dependency_overrides[get_redis] = lambda: redis_client
    app.dependency_overrides[get_puzzle_source] = lambda: puzzle_source
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def submission_data() -> dict:
    """Sample submission payload."""
    return {
        "username": "alice",
        "date": "2024-01-15",
        "puzzleIndex": 0,
        "guess": 100,
        "actualEval": 100,
    }


@pytest.fixture
def settings_factory():
    """Build test settings with per-test overrides."""
    return make_settings

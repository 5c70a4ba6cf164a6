"""Daily leaderboard service using Redis sorted sets."""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import redis.asyncio as redis
from redis.asyncio.client import Pipeline

from chesser_guesser.config import Settings
from chesser_guesser.db.redis import COMPLETED_KEY, LEADERBOARD_KEY, SUMMARY_KEY

logger = logging.getLogger(__name__)

# Sorted-set scores pack the total above a millisecond timestamp so that equal
# totals rank by who reached them first.
SCORE_SCALE = 10**13


def encode_rank_score(total_score: int, reached_at_ms: int) -> int:
    return total_score * SCORE_SCALE - reached_at_ms


def decode_rank_score(value: float) -> int:
    # Ceiling division undoes the timestamp offset
    return -(-int(value) // SCORE_SCALE)


@dataclass
class LeaderboardEntry:
    """A single leaderboard entry."""

    rank: int
    username: str
    score: int  # Higher is better
    completed_puzzles: int
    timestamp: int  # Unix ms of the last accepted submission


@dataclass
class LeaderboardPage:
    """Top of a day's leaderboard plus the requesting player's entry."""

    date: str
    entries: list[LeaderboardEntry] = field(default_factory=list)
    user_entry: Optional[LeaderboardEntry] = None
    total_players: int = 0


class LeaderboardService:
    """Service for per-day leaderboards ranked by cumulative score.

    Rank 1 is the highest total; ties go to whoever reached the total first.
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

    def queue_score(self, pipe: Pipeline, date: str, username: str, total_score: int) -> None:
        """Add a player's score write to a pipeline.

        Only a higher total replaces the stored member (ZADD GT). An unchanged
        total keeps the time it was first reached.
        """
        key = LEADERBOARD_KEY.format(date=date)
        now_ms = int(self._clock() * 1000)

        pipe.zadd(key, {username: encode_rank_score(total_score, now_ms)}, gt=True)
        pipe.expire(key, self.settings.daily_record_ttl_seconds)

    async def update_score(self, date: str, username: str, total_score: int) -> int:
        """
        Set a player's cumulative score for a date.

        Args:
            date: Date in YYYY-MM-DD format
            username: Player name
            total_score: Sum of the player's puzzle scores for the date

        Returns:
            The player's new rank (1-based)
        """
        async with self._redis.pipeline(transaction=True) as pipe:
            self.queue_score(pipe, date, username, total_score)
            await pipe.execute()

        rank = await self.get_user_rank(date, username)
        return rank or 1

    async def _build_entry(self, date: str, username: str, value: float, rank: int) -> LeaderboardEntry:
        completed, summary = await self._redis.mget(
            COMPLETED_KEY.format(date=date, username=username),
            SUMMARY_KEY.format(date=date, username=username),
        )
        timestamp = json.loads(summary).get("lastUpdated", 0) if summary else 0

        return LeaderboardEntry(
            rank=rank,
            username=username,
            score=decode_rank_score(value),
            completed_puzzles=int(completed or 0),
            timestamp=timestamp,
        )

    async def get_leaderboard(
        self,
        date: str,
        limit: int = 50,
        username: Optional[str] = None,
    ) -> LeaderboardPage:
        """
        Get the top of a day's leaderboard.

        Args:
            date: Date in YYYY-MM-DD format
            limit: Maximum entries to return
            username: Player whose entry should be returned even when it falls
                outside the top ``limit``

        Returns:
            Leaderboard page; ``user_entry`` is only set for a ranked player
            who is not already among ``entries``
        """
        key = LEADERBOARD_KEY.format(date=date)

        top = await self._redis.zrange(key, 0, limit - 1, desc=True, withscores=True)

        entries = []
        for i, (member, value) in enumerate(top):
            entries.append(await self._build_entry(date, member, value, i + 1))

        user_entry = None
        if username:
            rank = await self._redis.zrevrank(key, username)
            if rank is not None and rank >= limit:
                value = await self._redis.zscore(key, username)
                user_entry = await self._build_entry(date, username, value, rank + 1)

        total_players = await self._redis.zcard(key)

        return LeaderboardPage(
            date=date,
            entries=entries,
            user_entry=user_entry,
            total_players=total_players,
        )

    async def get_user_rank(self, date: str, username: str) -> Optional[int]:
        """Get a player's rank for a date, or None if they have no score."""
        rank = await self._redis.zrevrank(LEADERBOARD_KEY.format(date=date), username)
        return rank + 1 if rank is not None else None


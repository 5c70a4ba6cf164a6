"""Daily puzzle set materialization and caching."""

import logging
from typing import Optional

import redis.asyncio as redis
from pydantic import ValidationError

from chesser_guesser.config import Settings
from chesser_guesser.core.puzzle_selection import select_daily_puzzle_indices
from chesser_guesser.core.seeded_random import date_seed
from chesser_guesser.db.redis import DAILY_PUZZLES_KEY
from chesser_guesser.schemas.puzzle import DailyPuzzleSet
from chesser_guesser.services.puzzle_source import PuzzleSource

logger = logging.getLogger(__name__)


class DailyPuzzleService:
    """Builds each date's puzzle set once and serves it from Redis after that.

    Two simultaneous first requests for a new date may both fetch from the
    upstream; both write a complete set for the date and the last write wins.
    """

    def __init__(self, redis_client: redis.Redis, source: PuzzleSource, settings: Settings):
        self._redis = redis_client
        self.source = source
        self.settings = settings

    async def get_cached(self, date: str) -> Optional[DailyPuzzleSet]:
        """Get the cached set for a date, if any."""
        cached = await self._redis.get(DAILY_PUZZLES_KEY.format(date=date))
        if not cached:
            return None
        try:
            return DailyPuzzleSet.model_validate_json(cached)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable puzzle cache for {date}: {e}")
            return None

    async def build(self, date: str) -> DailyPuzzleSet:
        """Select and fetch the puzzles for a date without touching the cache."""
        indices = select_daily_puzzle_indices(date, self.settings.puzzle_pool_size)
        puzzles = [await self.source.fetch_puzzle(index) for index in indices]
        return DailyPuzzleSet(date=date, puzzles=puzzles, seed=date_seed(date))

    async def get_daily_puzzles(self, date: str) -> DailyPuzzleSet:
        """Get or generate the daily puzzle set for a date."""
        cached = await self.get_cached(date)
        if cached is not None:
            logger.info(f"Using cached puzzles for {date}")
            return cached

        logger.info(f"Generating new puzzles for {date}")
        puzzle_set = await self.build(date)

        await self._redis.set(
            DAILY_PUZZLES_KEY.format(date=date),
            puzzle_set.model_dump_json(by_alias=True),
            ex=self.settings.puzzle_cache_ttl_seconds,
        )
        logger.info(f"Cached new puzzles for {date}")

        return puzzle_set

"""Submission ledger for daily puzzle attempts."""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from chesser_guesser.config import Settings
from chesser_guesser.core.puzzle_selection import PUZZLES_PER_DAY, calculate_puzzle_score
from chesser_guesser.db.redis import COMPLETED_KEY, SUBMISSION_KEY, SUMMARY_KEY, USER_SCORE_KEY
from chesser_guesser.services.leaderboard_service import LeaderboardService

logger = logging.getLogger(__name__)


class DuplicateSubmissionError(Exception):
    """Raised when a player has already answered this puzzle for the date."""

    def __init__(self, username: str, date: str, puzzle_index: int):
        self.username = username
        self.date = date
        self.puzzle_index = puzzle_index
        super().__init__(
            f"{username} already submitted puzzle {puzzle_index} for {date}"
        )


@dataclass
class PuzzleAttempt:
    """One accepted guess, stored as the submission record."""

    puzzle_index: int
    guess: float
    actual_eval: float
    score: int
    timestamp: int  # Unix ms

    def to_json(self, username: str, date: str) -> str:
        return json.dumps(
            {
                "username": username,
                "date": date,
                "puzzleIndex": self.puzzle_index,
                "guess": self.guess,
                "actualEval": self.actual_eval,
                "score": self.score,
                "timestamp": self.timestamp,
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "PuzzleAttempt":
        data = json.loads(raw)
        return cls(
            puzzle_index=int(data["puzzleIndex"]),
            guess=data["guess"],
            actual_eval=data["actualEval"],
            score=int(data["score"]),
            timestamp=int(data.get("timestamp", 0)),
        )


@dataclass
class SubmissionResult:
    """Outcome of an accepted submission."""

    score: int
    total_score: int
    puzzles_completed: int


@dataclass
class DailyProgress:
    """A player's recorded attempts for one date."""

    username: str
    date: str
    attempts: list[PuzzleAttempt] = field(default_factory=list)

    @property
    def total_score(self) -> int:
        return sum(a.score for a in self.attempts)

    @property
    def completed(self) -> bool:
        return len(self.attempts) == PUZZLES_PER_DAY

    @property
    def best_puzzle_score(self) -> Optional[int]:
        return max((a.score for a in self.attempts), default=None)

    @property
    def average_accuracy(self) -> Optional[float]:
        """Mean absolute centipawn miss across attempts."""
        if not self.attempts:
            return None
        misses = [abs(a.actual_eval - a.guess) for a in self.attempts]
        return round(sum(misses) / len(misses), 2)


class SubmissionService:
    """Records at most one attempt per (date, username, puzzle index).

    The submission key is written with SET NX, so the first writer wins and
    every later attempt for the same triple is rejected without side effects.
    Totals are recomputed from the stored attempts rather than incremented.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        leaderboard: LeaderboardService,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ):
        self._redis = redis_client
        self.leaderboard = leaderboard
        self.settings = settings
        self._clock = clock

    async def get_progress(self, username: str, date: str) -> DailyProgress:
        """Load every recorded attempt of a player for a date."""
        raw_attempts = await self._redis.mget(
            [
                SUBMISSION_KEY.format(date=date, username=username, puzzle_index=i)
                for i in range(PUZZLES_PER_DAY)
            ]
        )
        attempts = [PuzzleAttempt.from_json(raw) for raw in raw_attempts if raw]
        return DailyProgress(username=username, date=date, attempts=attempts)

    async def has_submitted(self, username: str, date: str, puzzle_index: int) -> bool:
        """Whether an attempt is already recorded for this puzzle."""
        key = SUBMISSION_KEY.format(date=date, username=username, puzzle_index=puzzle_index)
        return bool(await self._redis.exists(key))

    async def submit(
        self,
        username: str,
        date: str,
        puzzle_index: int,
        guess: float,
        actual_eval: float,
    ) -> SubmissionResult:
        """
        Record a guess and update the player's daily totals and leaderboard.

        Args:
            username: Validated player name
            date: Validated YYYY-MM-DD date
            puzzle_index: Puzzle position in the daily set (0-3)
            guess: Player's evaluation in centipawns
            actual_eval: True evaluation in centipawns

        Returns:
            Score for this puzzle plus the player's updated totals

        Raises:
            DuplicateSubmissionError: If this puzzle was already submitted
        """
        now_ms = int(self._clock() * 1000)
        attempt = PuzzleAttempt(
            puzzle_index=puzzle_index,
            guess=guess,
            actual_eval=actual_eval,
            score=calculate_puzzle_score(guess, actual_eval),
            timestamp=now_ms,
        )

        submission_key = SUBMISSION_KEY.format(date=date, username=username, puzzle_index=puzzle_index)
        was_set = await self._redis.set(
            submission_key,
            attempt.to_json(username, date),
            ex=self.settings.submission_ttl_seconds,
            nx=True,
        )
        if not was_set:
            logger.info(f"Duplicate submission: {username} puzzle {puzzle_index} on {date}")
            raise DuplicateSubmissionError(username, date, puzzle_index)

        try:
            progress = await self.get_progress(username, date)
            total_score = progress.total_score
            completed = len(progress.attempts)
            ttl = self.settings.daily_record_ttl_seconds
            summary = {
                "username": username,
                "date": date,
                "totalScore": total_score,
                "puzzlesCompleted": completed,
                "lastUpdated": now_ms,
            }

            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(USER_SCORE_KEY.format(date=date, username=username), total_score, ex=ttl)
                pipe.set(COMPLETED_KEY.format(date=date, username=username), completed, ex=ttl)
                pipe.set(
                    SUMMARY_KEY.format(date=date, username=username), json.dumps(summary), ex=ttl
                )
                self.leaderboard.queue_score(pipe, date, username, total_score)
                await pipe.execute()
        except RedisError as e:
            # Release the attempt so the player can submit it again
            logger.error(
                f"Failed to update totals for {username} on {date}, "
                f"releasing puzzle {puzzle_index}: {e}"
            )
            await self._redis.delete(submission_key)
            raise

        rank = await self.leaderboard.get_user_rank(date, username)

        logger.info(
            f"Accepted submission: {username} puzzle {puzzle_index} on {date} "
            f"scored {attempt.score} (total {total_score}, rank {rank})"
        )

        return SubmissionResult(
            score=attempt.score,
            total_score=total_score,
            puzzles_completed=completed,
        )

    async def get_total_score(self, username: str, date: str) -> int:
        """Read the stored daily total for a player."""
        value = await self._redis.get(USER_SCORE_KEY.format(date=date, username=username))
        return int(value or 0)

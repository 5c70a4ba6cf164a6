"""Submission schemas for request/response validation."""

from typing import Annotated, Optional

from pydantic import Field

from chesser_guesser.core.dates import DATE_REGEX
from chesser_guesser.schemas.base import CamelModel

USERNAME_REGEX = r"^[A-Za-z0-9_]{3,20}$"

Centipawns = Annotated[float, Field(strict=True, allow_inf_nan=False)]


class SubmissionCreateRequest(CamelModel):
    """Schema for submitting a guess on one of the day's puzzles."""

    username: str = Field(..., pattern=USERNAME_REGEX)
    date: Optional[str] = Field(None, pattern=DATE_REGEX)
    puzzle_index: int = Field(..., strict=True, ge=0, le=3)
    guess: Centipawns
    actual_eval: Centipawns


class SubmissionResponse(CamelModel):
    """Schema for an accepted submission."""

    success: bool = True
    score: int
    total_score: int
    puzzles_completed: int


class PuzzleAttemptResponse(CamelModel):
    """Schema for one recorded attempt."""

    puzzle_index: int
    guess: float
    actual_eval: float
    score: int
    timestamp: int


class DailyProgressResponse(CamelModel):
    """Schema for a player's progress through a day's puzzles."""

    username: str
    date: str
    attempts: list[PuzzleAttemptResponse]
    total_score: int
    completed: bool
    best_puzzle_score: Optional[int] = None
    average_accuracy: Optional[float] = None
    rank: Optional[int] = None

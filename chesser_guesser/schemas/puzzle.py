"""Puzzle schemas for daily puzzle sets."""

from typing import Literal, Optional

from pydantic import Field

from chesser_guesser.schemas.base import CamelModel


class ChessPuzzle(CamelModel):
    """A position and its engine evaluation in centipawns."""

    fen: str
    evaluation: int = Field(..., alias="eval")
    difficulty: Optional[Literal["easy", "medium", "hard", "expert"]] = None


class DailyPuzzleSet(CamelModel):
    """The four puzzles everyone plays on a given date."""

    date: str
    puzzles: list[ChessPuzzle] = Field(..., min_length=4, max_length=4)
    seed: int


class ResetCountdownResponse(CamelModel):
    """Schema for the daily reset countdown."""

    timezone: str
    date: str
    hours: int
    minutes: int
    seconds: int
    total_ms: int

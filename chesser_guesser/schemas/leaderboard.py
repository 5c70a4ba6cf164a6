"""Leaderboard schemas for request/response validation."""

from typing import Optional

from chesser_guesser.schemas.base import CamelModel


class LeaderboardEntryResponse(CamelModel):
    """Schema for a leaderboard entry."""

    rank: int
    username: str
    score: int
    completed_puzzles: int
    timestamp: int


class LeaderboardResponse(CamelModel):
    """Schema for leaderboard response."""

    leaderboard: list[LeaderboardEntryResponse]
    user_rank: Optional[LeaderboardEntryResponse] = None
    total_players: int
    date: str

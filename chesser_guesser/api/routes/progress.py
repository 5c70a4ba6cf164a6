"""Progress routes for a player's daily attempts."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Path, Query, Request, Response, status
from redis.exceptions import RedisError

from chesser_guesser.api.deps import (
    AppSettings,
    LeaderboardServiceDep,
    Limiter,
    SubmissionServiceDep,
    apply_rate_limit,
    get_client_ip,
)
from chesser_guesser.core.dates import DATE_REGEX, today_date_string
from chesser_guesser.schemas.submission import (
    USERNAME_REGEX,
    DailyProgressResponse,
    PuzzleAttemptResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/progress", tags=["Progress"])


@router.get(
    "/{username}",
    response_model=DailyProgressResponse,
)
async def get_progress(
    request: Request,
    response: Response,
    service: SubmissionServiceDep,
    limiter: Limiter,
    leaderboard: LeaderboardServiceDep,
    settings: AppSettings,
    username: str = Path(..., pattern=USERNAME_REGEX),
    date: Optional[str] = Query(None, pattern=DATE_REGEX, description="Date (YYYY-MM-DD), defaults to today"),
) -> DailyProgressResponse:
    """Get a player's recorded attempts and totals for a date."""
    apply_rate_limit(response, await limiter.check_leaderboard(get_client_ip(request)))

    date = date or today_date_string(settings.timezone)

    try:
        progress = await service.get_progress(username, date)
        rank = await leaderboard.get_user_rank(date, username)
    except RedisError as e:
        logger.error(f"Failed to read progress for {username} on {date}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch progress",
        )

    return DailyProgressResponse(
        username=username,
        date=date,
        attempts=[
            PuzzleAttemptResponse(
                puzzle_index=a.puzzle_index,
                guess=a.guess,
                actual_eval=a.actual_eval,
                score=a.score,
                timestamp=a.timestamp,
            )
            for a in sorted(progress.attempts, key=lambda a: a.puzzle_index)
        ],
        total_score=progress.total_score,
        completed=progress.completed,
        best_puzzle_score=progress.best_puzzle_score,
        average_accuracy=progress.average_accuracy,
        rank=rank,
    )

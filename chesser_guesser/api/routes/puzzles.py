"""Puzzle routes for the daily puzzle set."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response, status
from redis.exceptions import RedisError

from chesser_guesser.api.deps import (
    AppSettings,
    Limiter,
    PuzzleServiceDep,
    apply_rate_limit,
    get_client_ip,
)
from chesser_guesser.core.dates import DATE_REGEX, today_date_string
from chesser_guesser.schemas.puzzle import DailyPuzzleSet

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/puzzles", tags=["Puzzles"])


@router.get(
    "",
    response_model=DailyPuzzleSet,
    response_model_exclude_none=True,
)
async def get_daily_puzzles(
    request: Request,
    response: Response,
    service: PuzzleServiceDep,
    limiter: Limiter,
    settings: AppSettings,
    date: Optional[str] = Query(None, pattern=DATE_REGEX, description="Date (YYYY-MM-DD), defaults to today"),
) -> DailyPuzzleSet:
    """Get the four puzzles for a date.

    Every caller receives the same set for the same date. Upstream outages are
    absorbed with fallback puzzles, so this only fails when Redis does.
    """
    apply_rate_limit(response, await limiter.check_puzzles(get_client_ip(request)))

    today = today_date_string(settings.timezone)
    date = date or today

    try:
        puzzle_set = await service.get_daily_puzzles(date)
    except RedisError as e:
        logger.error(f"Failed to load daily puzzles for {date}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch daily puzzles",
        )

    response.headers["Cache-Control"] = "public, max-age=3600"
    response.headers["X-ChesserGuesser-Timezone"] = settings.timezone
    response.headers["X-ChesserGuesser-Date"] = today

    return puzzle_set

"""Leaderboard routes for daily standings."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response, status
from redis.exceptions import RedisError

from chesser_guesser.api.deps import (
    AppSettings,
    LeaderboardServiceDep,
    Limiter,
    apply_rate_limit,
    get_client_ip,
)
from chesser_guesser.core.dates import DATE_REGEX, today_date_string
from chesser_guesser.schemas.leaderboard import LeaderboardEntryResponse, LeaderboardResponse
from chesser_guesser.services.leaderboard_service import LeaderboardEntry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


def _entry_response(entry: LeaderboardEntry) -> LeaderboardEntryResponse:
    return LeaderboardEntryResponse(
        rank=entry.rank,
        username=entry.username,
        score=entry.score,
        completed_puzzles=entry.completed_puzzles,
        timestamp=entry.timestamp,
    )


@router.get(
    "",
    response_model=LeaderboardResponse,
)
async def get_leaderboard(
    request: Request,
    response: Response,
    service: LeaderboardServiceDep,
    limiter: Limiter,
    settings: AppSettings,
    date: Optional[str] = Query(None, pattern=DATE_REGEX, description="Date (YYYY-MM-DD), defaults to today"),
    limit: int = Query(50, ge=1, le=100, description="Maximum entries to return"),
    username: Optional[str] = Query(None, max_length=20, description="Also return this player's rank"),
) -> LeaderboardResponse:
    """Get a day's leaderboard.

    Returns players sorted by total score (higher is better). When
    ``username`` is ranked below the returned page, their entry is included
    separately as ``userRank``.
    """
    apply_rate_limit(response, await limiter.check_leaderboard(get_client_ip(request)))

    date = date or today_date_string(settings.timezone)

    try:
        page = await service.get_leaderboard(date=date, limit=limit, username=username)
    except RedisError as e:
        logger.error(f"Failed to read leaderboard for {date}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch leaderboard",
        )

    response.headers["Cache-Control"] = "public, max-age=60"

    return LeaderboardResponse(
        leaderboard=[_entry_response(e) for e in page.entries],
        user_rank=_entry_response(page.user_entry) if page.user_entry else None,
        total_players=page.total_players,
        date=date,
    )

"""Submit routes for daily puzzle guesses."""

import logging

from fastapi import APIRouter, HTTPException, Response, status
from redis.exceptions import RedisError

from chesser_guesser.api.deps import AppSettings, Limiter, SubmissionServiceDep, apply_rate_limit
from chesser_guesser.core.dates import today_date_string
from chesser_guesser.schemas.submission import SubmissionCreateRequest, SubmissionResponse
from chesser_guesser.services.submission_service import DuplicateSubmissionError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Submissions"])

DUPLICATE_DETAIL = "You already submitted this puzzle"


@router.post(
    "/submit",
    response_model=SubmissionResponse,
)
async def submit_puzzle(
    submission_data: SubmissionCreateRequest,
    response: Response,
    service: SubmissionServiceDep,
    limiter: Limiter,
    settings: AppSettings,
) -> SubmissionResponse:
    """Submit a guess for one of the day's puzzles.

    Each puzzle can be answered once per player per day; a repeat is a 409.
    The player's total and the day's leaderboard are updated on acceptance.
    """
    username = submission_data.username
    date = submission_data.date or today_date_string(settings.timezone)

    try:
        # Early answer for replays; the write below is what enforces it
        if await service.has_submitted(username, date, submission_data.puzzle_index):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_DETAIL)

        apply_rate_limit(response, await limiter.check_submission_cooldown(username))
        apply_rate_limit(response, await limiter.peek_daily_submissions(username, date))

        result = await service.submit(
            username=username,
            date=date,
            puzzle_index=submission_data.puzzle_index,
            guess=submission_data.guess,
            actual_eval=submission_data.actual_eval,
        )
    except DuplicateSubmissionError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_DETAIL)
    except RedisError as e:
        logger.error(f"Failed to record submission for {username} on {date}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit puzzle score",
        )

    await limiter.record_daily_submission(username, date)

    return SubmissionResponse(
        score=result.score,
        total_score=result.total_score,
        puzzles_completed=result.puzzles_completed,
    )

"""Client for the upstream puzzle source."""

import json
import logging
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from chesser_guesser.config import Settings
from chesser_guesser.schemas.puzzle import ChessPuzzle

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard", "expert")

FALLBACK_PUZZLE = ChessPuzzle(
    fen="rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
    evaluation=0,
)


class PuzzleSourceError(Exception):
    """Raised when the upstream returns something that is not a puzzle."""


def parse_puzzle_payload(data: Any) -> ChessPuzzle:
    """Extract a puzzle from an upstream response body.

    The upstream is a Lambda behind API Gateway, so the puzzle usually arrives
    as a JSON string under ``body``. A bare ``{"fen", "eval"}`` object is
    accepted too.
    """
    if isinstance(data, dict) and "body" in data:
        body = data["body"]
        if isinstance(body, str):
            try:
                body = json.loads(body)
            except json.JSONDecodeError as e:
                raise PuzzleSourceError(f"Malformed puzzle body: {e}") from e
        data = body

    if not isinstance(data, dict) or "fen" not in data or "eval" not in data:
        raise PuzzleSourceError("Puzzle payload is missing fen or eval")

    try:
        evaluation = int(data["eval"])
    except (TypeError, ValueError) as e:
        raise PuzzleSourceError(f"Invalid evaluation: {data['eval']!r}") from e

    difficulty = data.get("difficulty")
    return ChessPuzzle(
        fen=str(data["fen"]),
        evaluation=evaluation,
        difficulty=difficulty if difficulty in DIFFICULTIES else None,
    )


class PuzzleSource:
    """Fetches puzzles by pool index, with retries and a fallback puzzle."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self._http = http_client
        self.settings = settings

    async def _fetch_once(self, index: int) -> ChessPuzzle:
        response = await self._http.get(
            self.settings.puzzle_source_url,
            params={"index": index},
            timeout=self.settings.puzzle_source_timeout_seconds,
        )
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as e:
            raise PuzzleSourceError(f"Puzzle response is not JSON: {e}") from e
        return parse_puzzle_payload(payload)

    async def fetch_puzzle(self, index: int) -> ChessPuzzle:
        """Fetch one puzzle, falling back to the starting position.

        Never raises for upstream failures: after the last attempt the
        fallback puzzle is returned so a daily set always has 4 entries.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type((httpx.HTTPError, PuzzleSourceError)),
            stop=stop_after_attempt(self.settings.puzzle_fetch_attempts),
            wait=wait_fixed(self.settings.puzzle_fetch_retry_delay_seconds),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._fetch_once(index)
        except RetryError as e:
            logger.error(
                f"Failed to fetch puzzle {index} after "
                f"{self.settings.puzzle_fetch_attempts} attempts, using fallback: "
                f"{e.last_attempt.exception()}"
            )

        return FALLBACK_PUZZLE.model_copy()

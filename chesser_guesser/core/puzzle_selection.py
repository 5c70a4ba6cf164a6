"""Daily puzzle selection and scoring."""

import math

from .seeded_random import create_seeded_random, date_seed

PUZZLES_PER_DAY = 4
DEFAULT_POOL_SIZE = 400

# Evaluations within +/- this many centipawns count as an equal position.
EQUAL_THRESHOLD = 20
# Miss size (centipawns) at which the accuracy bonus reaches zero.
MAX_SCORED_DIFF = 400
PARTICIPATION_POINTS = 50
ACCURACY_POINTS = 50
MAX_PUZZLE_SCORE = PARTICIPATION_POINTS + ACCURACY_POINTS


class InvalidPoolSizeError(ValueError):
    """Raised when a puzzle pool is too small to split into quarters."""


def select_daily_puzzle_indices(
    date_string: str,
    total_puzzles: int = DEFAULT_POOL_SIZE,
) -> list[int]:
    """Select 4 puzzle indices deterministically based on date.

    The pool is split into 4 contiguous quarters (the last one absorbs any
    remainder) and one index is drawn from each, so a pool sorted by
    difficulty always yields one puzzle per difficulty band.

    Args:
        date_string: Date in YYYY-MM-DD format
        total_puzzles: Number of puzzles in the pool

    Returns:
        List of 4 indices in [0, total_puzzles)
    """
    if total_puzzles < PUZZLES_PER_DAY:
        raise InvalidPoolSizeError(
            f"Pool must hold at least {PUZZLES_PER_DAY} puzzles, got {total_puzzles}"
        )

    rng = create_seeded_random(date_seed(date_string))
    quarter_size = total_puzzles // PUZZLES_PER_DAY

    indices = []
    for quarter in range(PUZZLES_PER_DAY):
        start = quarter * quarter_size
        end = total_puzzles if quarter == PUZZLES_PER_DAY - 1 else start + quarter_size
        indices.append(start + math.floor(rng() * (end - start)))

    return indices


def evaluation_side(centipawns: float) -> str:
    """Classify an evaluation as 'white', 'black' or 'equal'."""
    if centipawns > EQUAL_THRESHOLD:
        return "white"
    if centipawns < -EQUAL_THRESHOLD:
        return "black"
    return "equal"


def calculate_puzzle_score(guess: float, actual: float) -> int:
    """Score a guess against the true evaluation, from 0 to 100.

    A guess on the wrong side scores nothing. A guess on the correct side
    earns 50 points plus up to 50 more, shrinking linearly to nothing at a
    400 centipawn miss.
    """
    if evaluation_side(guess) != evaluation_side(actual):
        return 0

    miss = min(abs(actual - guess) / MAX_SCORED_DIFF, 1)
    raw = PARTICIPATION_POINTS + ACCURACY_POINTS * (1 - miss)
    # Round half up
    return int(math.floor(raw + 0.5))


def validate_determinism(total_puzzles: int = DEFAULT_POOL_SIZE) -> bool:
    """Check that daily selection is deterministic for a fixed date."""
    date = "2024-01-15"
    return select_daily_puzzle_indices(date, total_puzzles) == select_daily_puzzle_indices(
        date, total_puzzles
    )

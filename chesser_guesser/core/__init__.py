# Core module
from .seeded_random import create_seeded_random, date_seed, to_int32, DATE_PATTERN
from .puzzle_selection import (
    InvalidPoolSizeError,
    PUZZLES_PER_DAY,
    calculate_puzzle_score,
    evaluation_side,
    select_daily_puzzle_indices,
    validate_determinism,
)
from .dates import (
    DATE_REGEX,
    TimeUntilReset,
    is_calendar_date,
    is_valid_date_string,
    time_until_reset,
    today_date_string,
)

__all__ = [
    "create_seeded_random",
    "date_seed",
    "to_int32",
    "DATE_PATTERN",
    "DATE_REGEX",
    "InvalidPoolSizeError",
    "PUZZLES_PER_DAY",
    "calculate_puzzle_score",
    "evaluation_side",
    "select_daily_puzzle_indices",
    "validate_determinism",
    "TimeUntilReset",
    "is_calendar_date",
    "is_valid_date_string",
    "time_until_reset",
    "today_date_string",
]

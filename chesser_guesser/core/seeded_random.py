"""Seeded pseudo-random number generation for deterministic daily puzzles.

The generator is Mulberry32: a 32-bit state advanced by a fixed odd
increment and scrambled with two xorshift/multiply rounds. All arithmetic is
done on unsigned 32-bit values, so two generators built from the same seed
produce bit-identical sequences on every machine.
"""

import re
from typing import Callable

MASK_32 = 0xFFFFFFFF
TWO_POW_32 = 4294967296

MULBERRY_INCREMENT = 0x6D2B79F5

# Multiplier applied to the packed YYYYMMDD value of a date.
DATE_SEED_MULTIPLIER = 2654435761

DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def to_int32(value: int) -> int:
    """Wrap an arbitrary integer into the signed 32-bit range."""
    value &= MASK_32
    return value - TWO_POW_32 if value >= 2**31 else value


def create_seeded_random(seed: int) -> Callable[[], float]:
    """Create a generator returning floats in [0, 1) from an integer seed.

    Any integer is accepted, including 0 and negatives; only its low 32 bits
    are significant.
    """
    state = seed & MASK_32

    def next_random() -> float:
        nonlocal state
        state = (state + MULBERRY_INCREMENT) & MASK_32
        t = ((state ^ (state >> 15)) * (1 | state)) & MASK_32
        t = ((t + (((t ^ (t >> 7)) * (61 | t)) & MASK_32)) & MASK_32) ^ t
        return ((t ^ (t >> 14)) & MASK_32) / TWO_POW_32

    return next_random


def date_seed(date_string: str) -> int:
    """Generate a deterministic seed from a YYYY-MM-DD date string.

    Only the shape of the string is checked. Out-of-range months or days are
    combined arithmetically like any other value.

    Raises:
        ValueError: If the string does not look like YYYY-MM-DD.
    """
    match = DATE_PATTERN.match(date_string)
    if match is None:
        raise ValueError(f"Invalid date format: {date_string!r}")

    year, month, day = (int(part) for part in match.groups())
    return to_int32((year * 10000 + month * 100 + day) * DATE_SEED_MULTIPLIER)


"""Tracking Code Candidates — pure generation of short, human-copyable order codes.

Invariants:
    - generate_candidate is PURE: the seed fully determines the code
    - Codes are digits only and never longer than MAX_CODE_LENGTH (10)
    - Attempt 0 is DDMMSS + 2 random digits; later attempts drop the seconds
      and widen the random part (DDMM + 4, then DDMM + 6 digits)
    - candidate_seeds yields at most max_attempts seeds (the retry bound)

Design Decisions:
    - Randomness and clock are inputs, not ambient: the shell passes a
      random.Random and a datetime, tests pass fixed ones
    - Uniqueness is NOT decided here; services/tracking_codes.py checks each
      candidate against the store
"""

import random
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime


MAX_CODE_LENGTH: int = 10
BASE_RANDOM_DIGITS: int = 2
MAX_RANDOM_DIGITS: int = 6


@dataclass(frozen=True)
class CodeSeed:
    """Everything a candidate depends on."""
    moment: datetime
    entropy: int
    attempt: int


def random_digits(attempt: int) -> int:
    """Width of the random component for the given attempt (0-based)."""
    if attempt <= 0:
        return BASE_RANDOM_DIGITS
    return min(BASE_RANDOM_DIGITS + 2 * attempt, MAX_RANDOM_DIGITS)


def generate_candidate(seed: CodeSeed) -> str:
    """Build one candidate code from date/time components and entropy."""
    digits = random_digits(seed.attempt)
    prefix = f"{seed.moment.day:02d}{seed.moment.month:02d}"
    if seed.attempt <= 0:
        prefix += f"{seed.moment.second:02d}"
    suffix = f"{seed.entropy % (10 ** digits):0{digits}d}"
    return prefix + suffix


def candidate_seeds(
    moment: datetime, rng: random.Random, max_attempts: int,
) -> Iterator[CodeSeed]:
    """Yield up to max_attempts seeds with progressively wider entropy."""
    for attempt in range(max_attempts):
        yield CodeSeed(
            moment=moment,
            entropy=rng.randrange(10 ** random_digits(attempt)),
            attempt=attempt,
        )

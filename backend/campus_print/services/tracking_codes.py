"""Tracking Code Issuance — bounded retry over pure candidates, checked against the store.

Invariants:
    - At most max_attempts candidates are checked (bound lives in candidate_seeds)
    - A code is returned only if the store reported it unused
    - Exhaustion raises CodeGenerationExhaustedError, never a possibly-duplicate code

Design Decisions:
    - first_accepted is generic: it knows nothing about codes, so the bound and
      the acceptance test are tested separately from candidate generation
    - The pre-check can race with a concurrent creation; the store's unique
      constraint is the final arbiter (handled in services/order_service.py)
"""

import logging
import random
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime
from typing import TypeVar

from campus_print.core.errors import CodeGenerationExhaustedError
from campus_print.core.repository_protocols import OrderStore
from campus_print.core.tracking_code import candidate_seeds, generate_candidate

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def first_accepted(
    candidates: Iterable[T], accept: Callable[[T], Awaitable[bool]],
) -> T | None:
    """Return the first candidate `accept` approves, or None when they run out."""
    for attempt, candidate in enumerate(candidates, start=1):
        if await accept(candidate):
            return candidate
        logger.debug("Candidate rejected", extra={"attempt": attempt})
    return None


async def issue_tracking_code(
    store: OrderStore,
    *,
    max_attempts: int,
    moment: datetime,
    rng: random.Random,
) -> str:
    """Issue a tracking code not currently present in the store."""
    codes = (
        generate_candidate(seed)
        for seed in candidate_seeds(moment, rng, max_attempts)
    )

    async def unused(code: str) -> bool:
        return not await store.tracking_code_exists(code)

    code = await first_accepted(codes, unused)
    if code is None:
        logger.error(
            "Tracking code space exhausted", extra={"attempt": max_attempts},
        )
        raise CodeGenerationExhaustedError(max_attempts)
    return code

"""Tracking Code Issuance — verifies the retry combinator and store pre-check."""

import random
from datetime import datetime, timezone

import pytest

from campus_print.core.errors import CodeGenerationExhaustedError
from campus_print.services.tracking_codes import first_accepted, issue_tracking_code
from tests.fakes import InMemoryOrderStore


MOMENT = datetime(2026, 3, 7, 14, 5, 9, tzinfo=timezone.utc)


async def test_first_accepted_returns_first_match():
    async def is_even(n):
        return n % 2 == 0

    assert await first_accepted([1, 3, 4, 6], is_even) == 4


async def test_first_accepted_stops_at_match():
    seen = []

    async def record(n):
        seen.append(n)
        return n == 2

    await first_accepted(iter([1, 2, 3]), record)
    assert seen == [1, 2]


async def test_first_accepted_none_when_exhausted():
    async def never(_):
        return False

    assert await first_accepted(range(5), never) is None


async def test_issues_unused_code(memory_store):
    code = await issue_tracking_code(
        memory_store, max_attempts=10, moment=MOMENT, rng=random.Random(1),
    )
    assert code.startswith("070309")
    assert len(code) == 8
    assert memory_store.codes_checked == [code]


async def test_taken_code_widens_next_candidate():
    store = InMemoryOrderStore()
    first = await issue_tracking_code(
        store, max_attempts=10, moment=MOMENT, rng=random.Random(3),
    )
    store.reserved_codes.add(first)
    store.codes_checked.clear()

    second = await issue_tracking_code(
        store, max_attempts=10, moment=MOMENT, rng=random.Random(3),
    )
    assert second != first
    assert store.codes_checked[0] == first
    assert store.codes_checked[-1] == second
    assert second.startswith("0703") and len(second) >= 8


async def test_exhaustion_raises(monkeypatch):
    store = InMemoryOrderStore()

    async def always_taken(code):
        store.codes_checked.append(code)
        return True

    monkeypatch.setattr(store, "tracking_code_exists", always_taken)
    with pytest.raises(CodeGenerationExhaustedError) as exc_info:
        await issue_tracking_code(
            store, max_attempts=4, moment=MOMENT, rng=random.Random(0),
        )
    assert exc_info.value.attempts == 4
    assert exc_info.value.http_status == 503
    assert len(store.codes_checked) == 4

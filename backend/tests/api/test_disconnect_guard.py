"""Disconnect Guard — verifies cancellation of request work when the client leaves.

Invariants:
    - Work that finishes first returns its result (or raises its own error)
    - A disconnect cancels the work, waits for its cleanup, then raises
      ClientDisconnectedError (499)
    - An upload cancelled this way leaves no blob behind
"""

import asyncio

import pytest

from campus_print.api.routes.disconnect_guard import run_unless_disconnected
from campus_print.core.errors import ClientDisconnectedError, ValidationError
from campus_print.services.page_counter import PageCounter
from campus_print.services.upload_intake import UploadIntake
from tests.fakes import FakeUpload, InMemoryBlobStore, make_pdf


class _Request:
    """Reports a disconnect from the n-th poll on (never if n is None)."""

    def __init__(self, disconnect_on_poll: int | None = None):
        self.polls = 0
        self._disconnect_on = disconnect_on_poll

    async def is_disconnected(self) -> bool:
        self.polls += 1
        return self._disconnect_on is not None and self.polls >= self._disconnect_on


async def test_result_returned_when_work_finishes():
    async def work():
        await asyncio.sleep(0.02)
        return 42

    assert await run_unless_disconnected(_Request(), work(), poll_interval=0.01) == 42


async def test_work_errors_propagate():
    async def work():
        raise ValidationError("bad", "file")

    with pytest.raises(ValidationError):
        await run_unless_disconnected(_Request(), work(), poll_interval=0.01)


async def test_disconnect_cancels_work_and_waits_for_cleanup():
    cleaned = []

    async def work():
        try:
            await asyncio.sleep(10)
        finally:
            await asyncio.sleep(0)
            cleaned.append(True)

    request = _Request(disconnect_on_poll=2)
    with pytest.raises(ClientDisconnectedError) as exc_info:
        await run_unless_disconnected(request, work(), poll_interval=0.01)
    assert cleaned == [True]
    assert exc_info.value.http_status == 499


async def test_disconnected_upload_leaves_no_blob():
    blobs = InMemoryBlobStore(get_delay=5.0)
    counter = PageCounter(blobs, timeout_seconds=10.0)
    intake = UploadIntake(blobs, counter, "campus_print", 1024 * 1024)
    try:
        with pytest.raises(ClientDisconnectedError):
            await run_unless_disconnected(
                _Request(disconnect_on_poll=3),
                intake.ingest(FakeUpload(make_pdf(2))),
                poll_interval=0.02,
            )
        assert blobs.blobs == {}
        assert len(blobs.deleted) == 1
    finally:
        counter.close()

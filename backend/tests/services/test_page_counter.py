"""Page Counter — verifies counting real PDFs and the failure taxonomy.

Invariants:
    - Bytes are re-fetched from the blob store by reference
    - Non-PDF input → InvalidDocumentError; damaged PDF → ParseError
    - Slow storage → StorageError; oversized documents → ValidationError
    - A hung or cancelled parse is killed and the pool keeps serving
"""

import asyncio

import pytest

from campus_print.core.errors import (
    InvalidDocumentError, ParseError, StorageError, ValidationError,
)
from campus_print.services.page_counter import PageCounter, count_pdf_pages
from tests.fakes import (
    CRASH_PDF, SLOW_PDF, InMemoryBlobStore, make_pdf, worker_page_count,
)


def test_count_pdf_pages_directly():
    assert count_pdf_pages(make_pdf(7)) == 7


def test_truncated_pdf_is_a_parse_error():
    data = make_pdf(3)
    with pytest.raises(ParseError):
        count_pdf_pages(data[:40])


async def test_counts_pages_of_stored_blob(page_counter, memory_blobs):
    ref = await memory_blobs.put(make_pdf(3), "application/pdf", "campus_print")
    assert await page_counter.count(ref) == 3


async def test_single_page(page_counter, memory_blobs):
    ref = await memory_blobs.put(make_pdf(1), "application/pdf", "campus_print")
    assert await page_counter.count(ref) == 1


async def test_non_pdf_rejected_before_parsing(page_counter, memory_blobs):
    ref = await memory_blobs.put(b"PK\x03\x04 zip data", "application/pdf", "ns")
    with pytest.raises(InvalidDocumentError) as exc_info:
        await page_counter.count(ref)
    assert exc_info.value.context.blob_ref == ref


async def test_empty_blob_rejected(page_counter, memory_blobs):
    ref = await memory_blobs.put(b"", "application/pdf", "ns")
    with pytest.raises(InvalidDocumentError):
        await page_counter.count(ref)


async def test_garbage_after_header_is_parse_error(page_counter, memory_blobs):
    ref = await memory_blobs.put(b"%PDF-1.4\n" + b"\x00" * 64, "application/pdf", "ns")
    with pytest.raises(ParseError) as exc_info:
        await page_counter.count(ref)
    assert exc_info.value.message.count("could not be parsed") == 1
    assert exc_info.value.context.blob_ref == ref


async def test_missing_blob_is_storage_error(page_counter):
    with pytest.raises(StorageError):
        await page_counter.count("mem://campus_print/404")


async def test_too_many_pages_rejected(memory_blobs):
    counter = PageCounter(memory_blobs, max_pages=5)
    try:
        ref = await memory_blobs.put(make_pdf(6), "application/pdf", "ns")
        with pytest.raises(ValidationError) as exc_info:
            await counter.count(ref)
        assert exc_info.value.field == "file"
    finally:
        counter.close()


async def test_slow_fetch_times_out():
    blobs = InMemoryBlobStore()
    ref = await blobs.put(make_pdf(1), "application/pdf", "ns")
    blobs.get_delay = 1.0
    counter = PageCounter(blobs, timeout_seconds=0.05)
    try:
        with pytest.raises(StorageError, match="timed out"):
            await counter.count(ref)
    finally:
        counter.close()


async def test_concurrent_counts(page_counter, memory_blobs):
    refs = [
        await memory_blobs.put(make_pdf(n), "application/pdf", "ns")
        for n in (1, 2, 3, 4, 5)
    ]
    counts = await asyncio.gather(*(page_counter.count(r) for r in refs))
    assert counts == [1, 2, 3, 4, 5]


@pytest.fixture
async def single_worker(memory_blobs):
    counter = PageCounter(
        memory_blobs, timeout_seconds=4.0, workers=1, parse=worker_page_count,
    )
    warm = await memory_blobs.put(make_pdf(1), "application/pdf", "ns")
    assert await counter.count(warm) == 1
    yield counter
    counter.close()


async def test_hung_parse_is_stopped_and_pool_keeps_serving(single_worker, memory_blobs):
    slow = await memory_blobs.put(SLOW_PDF, "application/pdf", "ns")
    with pytest.raises(ParseError, match="exceeded"):
        await single_worker.count(slow)
    ref = await memory_blobs.put(make_pdf(3), "application/pdf", "ns")
    assert await single_worker.count(ref) == 3


async def test_cancelled_parse_is_stopped(single_worker, memory_blobs):
    slow = await memory_blobs.put(SLOW_PDF, "application/pdf", "ns")
    task = asyncio.create_task(single_worker.count(slow))
    await asyncio.sleep(0.5)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    ref = await memory_blobs.put(make_pdf(2), "application/pdf", "ns")
    assert await single_worker.count(ref) == 2


async def test_crashing_worker_is_a_parse_error(single_worker, memory_blobs):
    crash = await memory_blobs.put(CRASH_PDF, "application/pdf", "ns")
    with pytest.raises(ParseError, match="crashed"):
        await single_worker.count(crash)
    ref = await memory_blobs.put(make_pdf(3), "application/pdf", "ns")
    assert await single_worker.count(ref) == 3

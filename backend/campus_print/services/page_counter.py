"""Page Counter — re-fetches an uploaded blob and counts its PDF pages.

Invariants:
    - Bytes always come from the blob store, never from the upload step
    - Empty or non-PDF bytes raise InvalidDocumentError before any parsing
    - Structural parse failures raise ParseError; the caller never sees pypdf exceptions
    - Parsing runs in a bounded pool of worker processes, never on the event loop
    - Fetch and parse are each bounded by timeout_seconds (StorageError / ParseError)
    - A parse that times out or is cancelled is stopped: the pool is replaced
      and its worker processes are terminated
    - Documents above max_pages raise ValidationError

Design Decisions:
    - pypdf walks the page tree (len(reader.pages)); strict=False tolerates the
      minor xref damage common in scanner output
    - Encrypted documents are tried with the empty user password only
    - Processes, not threads: a running thread cannot be interrupted, so a
      hostile document would hold its worker until pypdf gave up
    - Workers use the spawn start method (safe alongside the event loop and
      the database driver threads)
    - Counts that shared a terminated pool see BrokenProcessPool and are
      retried once on the fresh pool
"""

import asyncio
import io
import logging
import multiprocessing
from collections.abc import Callable
from concurrent.futures import ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from campus_print.core.document_sniff import check_pdf_signature
from campus_print.core.errors import (
    ErrorContext, ParseError, StorageError, ValidationError,
)
from campus_print.core.repository_protocols import BlobStore

logger = logging.getLogger(__name__)

# pypdf surfaces some structural damage as plain Python errors
_PARSE_FAILURES = (
    PyPdfError, ValueError, KeyError, TypeError, AttributeError,
    IndexError, RecursionError, OSError, AssertionError,
)

_SPAWN = multiprocessing.get_context("spawn")


def count_pdf_pages(data: bytes) -> int:
    """Count pages of an in-memory PDF. Blocking; run off the event loop."""
    try:
        reader = PdfReader(io.BytesIO(data), strict=False)
        if reader.is_encrypted:
            reader.decrypt("")
        return len(reader.pages)
    except _PARSE_FAILURES as e:
        raise ParseError(str(e) or type(e).__name__) from e


def _count_in_worker(parse: Callable[[bytes], int], data: bytes) -> tuple[int | None, str | None]:
    # Runs in the worker process; a ParseError goes back as its detail text.
    try:
        return parse(data), None
    except ParseError as e:
        return None, e.detail


def _terminate(executor: ProcessPoolExecutor) -> None:
    processes = list((executor._processes or {}).values())
    executor.shutdown(wait=False)
    for process in processes:
        if process.is_alive():
            process.terminate()


class PageCounter:
    """Fetches blobs and counts pages on a bounded pool of worker processes."""

    def __init__(
        self,
        blob_store: BlobStore,
        timeout_seconds: float = 30.0,
        max_pages: int = 2000,
        workers: int = 4,
        parse: Callable[[bytes], int] = count_pdf_pages,
    ):
        self._blob_store = blob_store
        self._timeout = timeout_seconds
        self._max_pages = max_pages
        self._workers = workers
        self._parse = parse
        self._executor = self._new_executor()

    async def count(self, ref: str) -> int:
        ctx = ErrorContext(blob_ref=ref)
        try:
            data = await asyncio.wait_for(
                self._blob_store.get(ref), self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise StorageError("fetch timed out", "get", ctx) from e

        check_pdf_signature(data, ctx)

        pages = await self._parse_with_retry(data, ctx)
        if pages > self._max_pages:
            raise ValidationError(
                f"Document has {pages} pages; the limit is {self._max_pages}",
                "file",
                ctx,
            )
        logger.info(
            "Pages counted", extra={"blob_ref": ref, "page_count": pages},
        )
        return pages

    async def _parse_with_retry(self, data: bytes, ctx: ErrorContext) -> int:
        try:
            return await self._parse_once(data, ctx)
        except BrokenProcessPool:
            logger.warning("Page counter pool broke; retrying", extra={"blob_ref": ctx.blob_ref})
        try:
            return await self._parse_once(data, ctx)
        except BrokenProcessPool as e:
            raise ParseError("page counter worker crashed", ctx) from e

    async def _parse_once(self, data: bytes, ctx: ErrorContext) -> int:
        loop = asyncio.get_running_loop()
        executor = self._executor
        try:
            pages, detail = await asyncio.wait_for(
                loop.run_in_executor(executor, _count_in_worker, self._parse, data),
                self._timeout,
            )
        except asyncio.TimeoutError as e:
            self._recycle(executor)
            raise ParseError(
                f"page counting exceeded {self._timeout:g}s", ctx,
            ) from e
        except asyncio.CancelledError:
            self._recycle(executor)
            raise
        except BrokenProcessPool:
            self._recycle(executor)
            raise
        if detail is not None:
            raise ParseError(detail, ctx)
        return pages

    def _recycle(self, executor: ProcessPoolExecutor) -> None:
        # Another count may already have replaced this pool.
        if executor is not self._executor:
            return
        logger.warning("Terminating page counter workers")
        self._executor = self._new_executor()
        _terminate(executor)

    def _new_executor(self) -> ProcessPoolExecutor:
        return ProcessPoolExecutor(max_workers=self._workers, mp_context=_SPAWN)

    def close(self) -> None:
        _terminate(self._executor)

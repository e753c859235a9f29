"""Upload Intake — validates a raw upload, stores it, and counts its pages.

Invariants:
    - Content type and size are checked before any blob store write
    - At most max_file_size_bytes + 1 bytes are ever read from the stream
    - Only the blob reference is retained; bytes are dropped after the write
    - If anything fails after the write (counting, timeout, cancellation) the
      blob is deleted again, so a failed upload leaves no orphaned reference
    - Blob writes are bounded by timeout_seconds (StorageError on expiry)
    - A write abandoned by timeout or cancellation keeps running in the
      background; its blob is deleted as soon as the store returns the ref

Design Decisions:
    - The put runs as its own task behind asyncio.shield, since neither a
      to_thread write nor a Cloudinary upload stops when its awaiter is cancelled
    - aclose() waits for pending clean-ups so shutdown leaves no stray blobs
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from campus_print.core.domain_types import PDF_MEDIA_TYPE
from campus_print.core.errors import (
    InvalidDocumentError, StorageError, ValidationError,
)
from campus_print.core.repository_protocols import BlobStore
from campus_print.services.page_counter import PageCounter

logger = logging.getLogger(__name__)


class UploadSource(Protocol):
    """What intake needs from an upload (FastAPI's UploadFile satisfies it)."""
    filename: str | None
    content_type: str | None
    size: int | None

    async def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class UploadedFile:
    file_url: str
    file_name: str
    page_count: int


def _format_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):g} MiB"
    return f"{num_bytes} byte"


def _media_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


class UploadIntake:
    """Validate → store → count, with cleanup on failure."""

    def __init__(
        self,
        blob_store: BlobStore,
        page_counter: PageCounter,
        namespace: str,
        max_file_size_bytes: int,
        timeout_seconds: float = 30.0,
    ):
        self._blob_store = blob_store
        self._page_counter = page_counter
        self._namespace = namespace
        self._max_bytes = max_file_size_bytes
        self._timeout = timeout_seconds
        self._cleanups: set[asyncio.Task] = set()

    async def ingest(self, upload: UploadSource) -> UploadedFile:
        file_name = (upload.filename or "").strip() or "document.pdf"
        data = await self._read_validated(upload)

        put = asyncio.ensure_future(
            self._blob_store.put(data, PDF_MEDIA_TYPE, self._namespace),
        )
        del data
        try:
            ref = await asyncio.wait_for(asyncio.shield(put), self._timeout)
        except asyncio.TimeoutError as e:
            self._discard_when_stored(put)
            raise StorageError("upload timed out", "put") from e
        except asyncio.CancelledError:
            self._discard_when_stored(put)
            raise

        try:
            pages = await self._page_counter.count(ref)
        except BaseException:
            await self._discard(ref)
            raise
        logger.info(
            f"Upload accepted: {file_name}",
            extra={"blob_ref": ref, "page_count": pages},
        )
        return UploadedFile(file_url=ref, file_name=file_name, page_count=pages)

    async def _read_validated(self, upload: UploadSource) -> bytes:
        media_type = _media_type(upload.content_type)
        if media_type != PDF_MEDIA_TYPE:
            raise ValidationError(
                f"Only PDF files are allowed (got '{media_type or 'unknown'}')",
                "file",
            )
        too_large = ValidationError(
            f"File exceeds the {_format_size(self._max_bytes)} limit",
            "file",
        )
        if upload.size is not None and upload.size > self._max_bytes:
            raise too_large
        data = await upload.read(self._max_bytes + 1)
        if len(data) > self._max_bytes:
            raise too_large
        if not data:
            raise InvalidDocumentError("Uploaded file is empty")
        return data

    async def aclose(self) -> None:
        """Wait for clean-up of abandoned blob writes (called on shutdown)."""
        while self._cleanups:
            await asyncio.gather(*self._cleanups, return_exceptions=True)

    def _discard_when_stored(self, put: asyncio.Future) -> None:
        cleanup = asyncio.ensure_future(self._finish_and_discard(put))
        self._cleanups.add(cleanup)
        cleanup.add_done_callback(self._cleanups.discard)

    async def _finish_and_discard(self, put: asyncio.Future) -> None:
        # The store cannot be interrupted mid-write; let it land, then remove it.
        try:
            ref = await put
        except Exception as e:
            logger.info(f"Abandoned blob write did not complete: {e!r}")
            return
        logger.warning(
            "Discarding blob from an abandoned upload", extra={"blob_ref": ref},
        )
        await self._discard(ref)

    async def _discard(self, ref: str) -> None:
        """Best-effort removal of a blob whose upload failed."""
        try:
            await asyncio.shield(self._blob_store.delete(ref))
        except (StorageError, asyncio.CancelledError) as e:
            logger.warning(
                f"Failed to discard blob after failed upload: {e!r}",
                extra={"blob_ref": ref},
            )

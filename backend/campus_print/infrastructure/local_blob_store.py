"""Local Blob Store — filesystem-backed BlobStore for single-host deployments and tests.

Invariants:
    - Blobs live under <root>/<namespace>/<32-hex>.pdf; names are generated, never user-supplied
    - References are public URLs <public_base_url>/files/<namespace>/<name>, served by
      the StaticFiles mount in main.py
    - get/delete only accept references this store issued (no path traversal)
    - All filesystem IO runs in a worker thread (asyncio.to_thread)
    - OSError is mapped to StorageError
"""

import asyncio
import logging
import re
import uuid
from pathlib import Path

from campus_print.core.domain_types import PDF_MEDIA_TYPE
from campus_print.core.errors import ErrorContext, StorageError

logger = logging.getLogger(__name__)

FILES_MOUNT_PATH = "/files"

_BLOB_NAME = re.compile(r"^[0-9a-f]{32}\.(pdf|bin)$")
_NAMESPACE = re.compile(r"^[A-Za-z0-9_-]+$")


class LocalBlobStore:
    """Stores blobs as files below a root directory."""

    def __init__(self, root: str | Path, public_base_url: str):
        self.root = Path(root).resolve()
        self._url_prefix = public_base_url.rstrip("/") + FILES_MOUNT_PATH + "/"

    async def put(self, data: bytes, content_type: str, namespace: str) -> str:
        if not _NAMESPACE.match(namespace):
            raise StorageError(f"invalid namespace '{namespace}'", "put")
        suffix = "pdf" if content_type == PDF_MEDIA_TYPE else "bin"
        name = f"{uuid.uuid4().hex}.{suffix}"
        path = self.root / namespace / name
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            raise StorageError(str(e), "put") from e
        ref = f"{self._url_prefix}{namespace}/{name}"
        logger.info("Blob stored", extra={"blob_ref": ref})
        return ref

    async def get(self, ref: str) -> bytes:
        path = self._path_for(ref, "get")
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as e:
            raise StorageError(
                "blob not found", "get", ErrorContext(blob_ref=ref),
            ) from e
        except OSError as e:
            raise StorageError(str(e), "get", ErrorContext(blob_ref=ref)) from e

    async def delete(self, ref: str) -> None:
        path = self._path_for(ref, "delete")
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(str(e), "delete", ErrorContext(blob_ref=ref)) from e
        logger.info("Blob deleted", extra={"blob_ref": ref})

    def owns(self, ref: str) -> bool:
        return self._relative_parts(ref) is not None

    def _relative_parts(self, ref: str) -> tuple[str, str] | None:
        if not ref.startswith(self._url_prefix):
            return None
        parts = ref[len(self._url_prefix):].split("/")
        if len(parts) != 2:
            return None
        namespace, name = parts
        if not _NAMESPACE.match(namespace) or not _BLOB_NAME.match(name):
            return None
        return namespace, name

    def _path_for(self, ref: str, operation: str) -> Path:
        parts = self._relative_parts(ref)
        if parts is None:
            raise StorageError(
                "reference was not issued by this store", operation,
                ErrorContext(blob_ref=ref),
            )
        return self.root.joinpath(*parts)

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".part")
        tmp.write_bytes(data)
        tmp.replace(path)

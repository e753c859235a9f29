"""Cloudinary Blob Store — BlobStore backed by Cloudinary raw uploads.

Invariants:
    - PDFs are uploaded as resource_type="raw" into the namespace folder
    - References are the secure delivery URLs Cloudinary returns
    - Bytes are fetched back over HTTPS with httpx (never cached locally)
    - SDK and HTTP failures are mapped to StorageError

Design Decisions:
    - The Cloudinary SDK is synchronous: upload/destroy run in asyncio.to_thread
    - Credentials are passed per call instead of via cloudinary.config(), so the
      store holds its own configuration and no module-level state is mutated
"""

import asyncio
import io
import logging
import re

import cloudinary.exceptions
import cloudinary.uploader
import httpx

from campus_print.core.errors import ErrorContext, StorageError

logger = logging.getLogger(__name__)

_VERSION_SEGMENT = re.compile(r"^v\d+$")


class CloudinaryBlobStore:
    """Stores blobs in a Cloudinary account."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._options = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
            "secure": True,
            "timeout": timeout_seconds,
        }
        self._url_prefix = f"https://res.cloudinary.com/{cloud_name}/raw/upload/"
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def put(self, data: bytes, content_type: str, namespace: str) -> str:
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                resource_type="raw",
                folder=namespace,
                use_filename=False,
                unique_filename=True,
                **self._options,
            )
        except cloudinary.exceptions.Error as e:
            raise StorageError(str(e), "put") from e
        ref = result.get("secure_url")
        if not ref:
            raise StorageError("upload response carried no URL", "put")
        logger.info("Blob stored", extra={"blob_ref": ref})
        return ref

    async def get(self, ref: str) -> bytes:
        ctx = ErrorContext(blob_ref=ref)
        if not self.owns(ref):
            raise StorageError("reference was not issued by this store", "get", ctx)
        try:
            response = await self._http.get(ref)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(str(e), "get", ctx) from e
        return response.content

    async def delete(self, ref: str) -> None:
        ctx = ErrorContext(blob_ref=ref)
        public_id = self.public_id(ref)
        if public_id is None:
            raise StorageError("reference was not issued by this store", "delete", ctx)
        try:
            await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                resource_type="raw",
                **self._options,
            )
        except cloudinary.exceptions.Error as e:
            raise StorageError(str(e), "delete", ctx) from e
        logger.info("Blob deleted", extra={"blob_ref": ref})

    def owns(self, ref: str) -> bool:
        return self.public_id(ref) is not None

    def public_id(self, ref: str) -> str | None:
        """Raw resources keep their extension in the public id; the version segment is dropped."""
        if not ref.startswith(self._url_prefix):
            return None
        segments = [s for s in ref[len(self._url_prefix):].split("/") if s]
        if segments and _VERSION_SEGMENT.match(segments[0]):
            segments = segments[1:]
        return "/".join(segments) or None

    async def aclose(self) -> None:
        await self._http.aclose()

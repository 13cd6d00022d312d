"""Filesystem & object storage helpers.

A blob store persists uploaded audio and hands back a *locator*: an
absolute filesystem path for the local backend, a public URL for Supabase
Storage.  Stores do not validate anything; size and extension checks happen
in the upload route before :meth:`store` is called.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path, PurePath

from fastapi import UploadFile

from scribe.config import Settings
from scribe.errors import PayloadTooLargeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192

AUDIO_CONTENT_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/x-m4a",
    ".ogg": "audio/ogg",
    ".webm": "audio/webm",
    ".flac": "audio/flac",
    ".aac": "audio/aac",
}
ALLOWED_EXTENSIONS = frozenset(AUDIO_CONTENT_TYPES)


def ensure_dir_exists(path: Path) -> Path:
    """Ensure that the given directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def audio_content_type(name: str) -> str:
    return AUDIO_CONTENT_TYPES.get(PurePath(name).suffix.lower(), "audio/wav")


def stored_name(original_name: str) -> str:
    """Timestamp-prefixed basename, so repeated uploads never collide."""
    base = PurePath(original_name.replace("\\", "/")).name or "upload"
    return f"{int(time.time() * 1000)}-{base}"


async def read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """Read an upload in chunks, giving up as soon as ``max_bytes`` is exceeded."""
    chunks = []
    received = 0
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break
        received += len(chunk)
        if max_bytes and received > max_bytes:
            logger.warning("Upload '%s' exceeded max size of %d bytes", file.filename, max_bytes)
            raise PayloadTooLargeError(
                f"File '{file.filename}' exceeds the maximum allowed size of {max_bytes // (1024 * 1024)} MB."
            )
        chunks.append(chunk)
    return b"".join(chunks)


class BlobStore(ABC):
    @abstractmethod
    def store(self, data: bytes, original_name: str) -> str:
        """Persist ``data`` and return its locator."""
        ...


class LocalBlobStore(BlobStore):
    """Writes uploads under a local directory."""

    def __init__(self, upload_dir: Path) -> None:
        self.upload_dir = Path(upload_dir).resolve()

    def store(self, data: bytes, original_name: str) -> str:
        ensure_dir_exists(self.upload_dir)
        path = self.upload_dir / stored_name(original_name)
        path.write_bytes(data)
        logger.info("Stored %d bytes at %s", len(data), path)
        return str(path)


class SupabaseBlobStore(BlobStore):
    """Pushes uploads to a Supabase Storage bucket and returns the public URL."""

    def __init__(self, client, bucket: str) -> None:
        self._client = client
        self.bucket = bucket

    def store(self, data: bytes, original_name: str) -> str:
        name = stored_name(original_name)
        bucket = self._client.storage.from_(self.bucket)
        bucket.upload(name, data, {"content-type": audio_content_type(name)})
        url = bucket.get_public_url(name)
        logger.info("Uploaded %d bytes to bucket '%s' as %s", len(data), self.bucket, name)
        return url


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.BLOB_BACKEND == "supabase":
        from supabase import create_client

        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        return SupabaseBlobStore(client, settings.SUPABASE_BUCKET)
    return LocalBlobStore(settings.UPLOAD_DIR)

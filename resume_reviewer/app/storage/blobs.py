import asyncio
import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from resume_reviewer.app.pipeline.errors import UploadFailed

log = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredBlob:
    """Reference to an uploaded blob."""

    path: str


class BlobStorage(Protocol):
    """The blob storage collaborator."""

    def upload(
        self,
        data: bytes,
        filename: str,
        content_type: str,
    ) -> StoredBlob | None: ...

    def read(self, path: str) -> bytes | None: ...


def _safe_filename(filename: str) -> str:
    name = Path(filename or "").name
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")
    return name or "upload"


class LocalBlobStorage:
    """Blob storage on the local filesystem.

    Each upload lands in its own randomly named directory under `root`, so two
    uploads with the same filename never collide. Paths handed out are
    relative to `root`.
    """

    def __init__(self, root: str | Path):
        self._root = Path(root).resolve()

    def upload(self, data: bytes, filename: str, content_type: str) -> StoredBlob:
        """Write `data` to a new blob.

        Args:
            data (bytes): The blob content.
            filename (str): Original filename; sanitized before use.
            content_type (str): MIME type of the content.

        Returns:
            StoredBlob: Reference to the written blob.

        Notes:
            1. Builds the relative path `<random hex>/<sanitized filename>`.
            2. Creates the directory and writes the bytes.
            3. This function performs disk access.

        """
        relative = Path(uuid.uuid4().hex) / _safe_filename(filename)
        target = self._root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        _msg = f"Stored blob {relative.as_posix()} ({len(data)} bytes, {content_type})"
        log.debug(_msg)
        return StoredBlob(path=relative.as_posix())

    def read(self, path: str) -> bytes | None:
        """Return the blob content, or None if it does not exist or escapes the root."""
        target = (self._root / path).resolve()
        if not target.is_relative_to(self._root) or not target.is_file():
            return None
        return target.read_bytes()


class BlobAdapter:
    """Async wrapper over the blob storage collaborator used by the pipeline."""

    def __init__(self, storage: BlobStorage):
        self._storage = storage

    async def upload(self, data: bytes, filename: str, content_type: str) -> str:
        """Upload a file and return its stored path.

        Args:
            data (bytes): The file content.
            filename (str): The original filename.
            content_type (str): MIME type of the content.

        Returns:
            str: The path of the stored blob.

        Raises:
            UploadFailed: If the collaborator raises, returns nothing, or returns an empty path.

        """
        try:
            stored = await asyncio.to_thread(
                self._storage.upload, data, filename, content_type
            )
        except Exception as e:
            _msg = f"Upload of {filename} failed: {e!s}"
            log.exception(_msg)
            raise UploadFailed() from e

        if stored is None or not stored.path:
            _msg = f"Blob storage returned no path for {filename}"
            log.error(_msg)
            raise UploadFailed()
        return stored.path

    async def read(self, path: str) -> bytes | None:
        """Resolve a stored path to its bytes.

        Args:
            path (str): A path returned by `upload`; the empty string means "no blob".

        Returns:
            bytes | None: The content, or None when the path is empty, missing, or unreadable.

        """
        if not path:
            return None
        try:
            return await asyncio.to_thread(self._storage.read, path)
        except OSError as e:
            _msg = f"Reading blob {path} failed: {e!s}"
            log.warning(_msg)
            return None

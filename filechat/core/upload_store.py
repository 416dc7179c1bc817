"""
In-memory holder for the most recently uploaded file. One slot per app; each
upload replaces the reference, a restart clears it.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedFileReference:
    """Snapshot of one stored upload. Queries hold on to the snapshot they started with."""

    path: str
    filename: str
    size_bytes: int
    version: int
    uploaded_at: datetime


class UploadSlot:
    """
    Single slot for the current UploadedFileReference.

    `writer` serializes ingestion (write file, then set) so versions follow
    the order in which files land on disk. Reads never wait on `writer`.
    """

    def __init__(self) -> None:
        self._current: UploadedFileReference | None = None
        self._version = 0
        self._lock = threading.Lock()
        self.writer = asyncio.Lock()

    def set(self, path: str, filename: str, size_bytes: int) -> UploadedFileReference:
        """Replace the current reference and return the new snapshot."""
        with self._lock:
            self._version += 1
            ref = UploadedFileReference(
                path=path,
                filename=filename,
                size_bytes=size_bytes,
                version=self._version,
                uploaded_at=datetime.now(timezone.utc),
            )
            previous = self._current
            self._current = ref
        logger.info(
            "[upload_store:set] path=%s version=%d replaced=%s",
            path,
            ref.version,
            previous.path if previous else None,
        )
        return ref

    def get(self) -> UploadedFileReference | None:
        """Return the current reference, or None if nothing was uploaded."""
        with self._lock:
            return self._current

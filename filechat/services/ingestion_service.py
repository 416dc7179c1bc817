"""
File ingestion: sanitize, persist, and record the uploaded file.

Responsibility: Write the upload to UPLOAD_DIR and point the upload slot at it.
Called by the API layer; no HTTP or FastAPI here.
"""

import asyncio
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path

from filechat.core.config import UPLOAD_DIR
from filechat.core.errors import InvalidRequestError, StorageError
from filechat.core.upload_store import UploadedFileReference, UploadSlot

logger = logging.getLogger(__name__)

# Most filesystems cap a name at 255 bytes; leave room below that.
MAX_FILENAME_BYTES = 200


@dataclass
class SaveUploadResult:
    """Result of saving one uploaded file to disk."""

    path: str
    filename: str
    size_bytes: int


def _upload_root() -> Path:
    return Path(UPLOAD_DIR)


def _truncate_name(name: str, max_bytes: int = MAX_FILENAME_BYTES) -> str:
    """Shorten the stem so the UTF-8 name fits in max_bytes; a short suffix is kept."""
    if len(name.encode("utf-8")) <= max_bytes:
        return name
    stem, dot, ext = name.rpartition(".")
    suffix = f".{ext}" if dot and stem and len(ext) <= 16 else ""
    if not suffix:
        stem = name
    budget = max_bytes - len(suffix.encode("utf-8"))
    return stem.encode("utf-8")[:budget].decode("utf-8", errors="ignore") + suffix


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent path traversal (../, ..\\) and names the
    filesystem rejects as too long. Returns safe basename.
    """
    if not filename or not filename.strip():
        return "unnamed"
    base = re.split(r"[\\/]", filename.strip())[-1]
    safe = base.replace("..", "")
    safe = re.sub(r"[^\w.\-]", "_", safe)
    safe = safe.strip().lstrip(".")
    return _truncate_name(safe) if safe else "unnamed"


def save_uploaded_file(filename: str, content: bytes) -> SaveUploadResult:
    """
    Persist one uploaded file under UPLOAD_DIR, keeping its (sanitized) name.

    The bytes go to a temp file in the same directory and are renamed into
    place, so readers see either the previous file or the complete new one.
    An existing file with the same name is replaced.

    Args:
        filename: Name as submitted by the client.
        content: Raw file bytes; any type and size is accepted.

    Returns:
        SaveUploadResult with the storage path (UPLOAD_DIR/<name>), stored name, and size.

    Raises:
        InvalidRequestError: If the destination would fall outside UPLOAD_DIR.
        StorageError: If creating the directory or writing the file fails.
    """
    root = _upload_root()
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("[ingestion:save] cannot create upload dir %s: %s", root, e)
        raise StorageError("Failed to prepare upload storage.") from e

    safe_name = sanitize_filename(filename)
    dest = root / safe_name
    if dest.resolve().parent != root.resolve():
        logger.warning("[ingestion:save] rejected filename=%r (resolves outside %s)", filename, root)
        raise InvalidRequestError("Invalid file name.")

    tmp_path: str | None = None
    try:
        fd, tmp_path = tempfile.mkstemp(dir=root, prefix=".upload-", suffix=".part")
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        os.replace(tmp_path, dest)
        tmp_path = None
    except OSError as e:
        logger.error("[ingestion:save] write failed for %s: %s", dest, e)
        raise StorageError("Failed to save the uploaded file.") from e
    finally:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                logger.warning("[ingestion:save] could not remove temp file %s", tmp_path)

    logger.info("[ingestion:save] OUT path=%s size=%d", dest, len(content))
    return SaveUploadResult(path=str(dest), filename=safe_name, size_bytes=len(content))


async def ingest_file(slot: UploadSlot, filename: str | None, content: bytes) -> UploadedFileReference:
    """
    Store the upload and make it the current reference.

    Holding slot.writer across write and set keeps ingestion single-writer:
    the reference only changes after its file is fully on disk.
    """
    if not filename or not filename.strip():
        raise InvalidRequestError("A file is required (multipart field 'file').")
    logger.info("[ingestion:ingest_file] IN  filename=%r size=%d", filename, len(content))
    async with slot.writer:
        result = await asyncio.to_thread(save_uploaded_file, filename, content)
        return slot.set(result.path, result.filename, result.size_bytes)

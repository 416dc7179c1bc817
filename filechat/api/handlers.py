"""
API handlers: read request data (e.g. UploadFile), call services, map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Marshalling and exception-to-HTTP mapping.
Lives in the API layer so services stay free of FastAPI/HTTP types.
"""

import logging

from fastapi import HTTPException, Request, UploadFile
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from filechat.core.errors import FileChatError
from filechat.core.upload_store import UploadedFileReference, UploadSlot
from filechat.schemas.upload import CurrentUploadResponse, UploadResponse
from filechat.services.answer_service import AnswerService, answer_question
from filechat.services.ingestion_service import ingest_file

logger = logging.getLogger(__name__)


def get_upload_slot(request: Request) -> UploadSlot:
    return request.app.state.upload_slot


def get_answer_service(request: Request) -> AnswerService:
    return request.app.state.answer_service


MISSING_FILE_DETAIL = "A file is required (multipart field 'file')."


def _to_http(e: FileChatError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


async def handle_upload(file: UploadFile | None, slot: UploadSlot) -> UploadResponse:
    """
    Read the uploaded file, store it via the ingestion service, map errors to HTTP 400/500.
    """
    if file is None:
        raise HTTPException(status_code=400, detail=MISSING_FILE_DETAIL)

    content = await file.read()
    try:
        ref = await ingest_file(slot, file.filename, content)
    except FileChatError as e:
        logger.warning("[api:upload] rejected filename=%r: %s", file.filename, e.message)
        raise _to_http(e) from e

    return UploadResponse(path=ref.path, filename=ref.filename, size_bytes=ref.size_bytes, version=ref.version)


def handle_current_upload(slot: UploadSlot) -> CurrentUploadResponse:
    ref = slot.get()
    if ref is None:
        raise HTTPException(status_code=404, detail="No file has been uploaded yet.")
    return CurrentUploadResponse(
        path=ref.path,
        filename=ref.filename,
        size_bytes=ref.size_bytes,
        version=ref.version,
        uploaded_at=ref.uploaded_at,
    )


async def handle_question(
    question: str | None, slot: UploadSlot, service: AnswerService
) -> tuple[str, UploadedFileReference]:
    """Answer against the current upload; 400 (bad input / no file), 502 (upstream), 504 (timeout)."""
    try:
        return await answer_question(slot, service, question)
    except FileChatError as e:
        raise _to_http(e) from e


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """A malformed /upload form (e.g. 'file' sent as plain text) is a 400 with a short message."""
    if request.url.path == "/upload":
        logger.warning("[api:upload] malformed upload form: %d validation errors", len(exc.errors()))
        return JSONResponse(status_code=400, content={"detail": MISSING_FILE_DETAIL})
    return await request_validation_exception_handler(request, exc)

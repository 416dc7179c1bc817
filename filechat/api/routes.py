"""
API routes: register endpoints; no logic, only delegate to handlers.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import PlainTextResponse

from filechat.api.handlers import (
    get_answer_service,
    get_upload_slot,
    handle_current_upload,
    handle_question,
    handle_upload,
)
from filechat.core.upload_store import UploadSlot
from filechat.schemas.query import QueryRequest, QueryResponse
from filechat.schemas.upload import CurrentUploadResponse, UploadResponse
from filechat.services.answer_service import AnswerService

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "FileChat backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Ingestion ---

@router.post(
    "/upload",
    response_model=UploadResponse,
    tags=["ingestion"],
    summary="Upload a file to ask questions about",
    description="Accept one file of any type in multipart field 'file'; save it under the upload dir and make it the current file. 400 if no file, 500 if saving fails.",
)
async def upload_file(
    file: UploadFile | None = File(None, description="The file to store. Replaces the previous upload."),
    slot: UploadSlot = Depends(get_upload_slot),
) -> UploadResponse:
    logger.info("[api:upload] IN  filename=%r", file.filename if file else None)
    return await handle_upload(file, slot)


@router.get(
    "/upload",
    response_model=CurrentUploadResponse,
    tags=["ingestion"],
    summary="Show the current file",
    description="Return the reference questions are answered against. 404 before the first upload.",
)
def get_current_upload(slot: UploadSlot = Depends(get_upload_slot)) -> CurrentUploadResponse:
    return handle_current_upload(slot)


# --- Query ---

@router.get(
    "/chat",
    response_class=PlainTextResponse,
    tags=["query"],
    summary="Ask a question about the current file (plain text answer)",
    description="Answer text is returned verbatim. 400 if the question is empty or nothing was uploaded, 502 if answering fails, 504 on timeout.",
)
async def chat(
    question: str = "",
    slot: UploadSlot = Depends(get_upload_slot),
    service: AnswerService = Depends(get_answer_service),
) -> PlainTextResponse:
    logger.info("[api:chat] IN  question=%r", question)
    answer, ref = await handle_question(question, slot, service)
    logger.info("[api:chat] OUT version=%d answer_len=%d", ref.version, len(answer))
    return PlainTextResponse(answer)


@router.post(
    "/query",
    response_model=QueryResponse,
    tags=["query"],
    summary="Ask a question about the current file (JSON)",
    description="Same as GET /chat, with a JSON body and a JSON answer that names the file used.",
)
async def post_query(
    body: QueryRequest,
    slot: UploadSlot = Depends(get_upload_slot),
    service: AnswerService = Depends(get_answer_service),
) -> QueryResponse:
    logger.info("[api:post_query] IN  question=%r", body.question)
    answer, ref = await handle_question(body.question, slot, service)
    logger.info("[api:post_query] OUT version=%d answer_len=%d", ref.version, len(answer))
    return QueryResponse(answer=answer, path=ref.path, version=ref.version)

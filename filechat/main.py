# Run from project root: uvicorn filechat.main:app --reload  (or: python -m filechat.main)

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from filechat.agent.llm import answer_from_file
from filechat.api.handlers import handle_validation_error
from filechat.api.routes import router
from filechat.core.config import CORS_ALLOW_ORIGINS, HOST, LOG_LEVEL, PORT
from filechat.core.upload_store import UploadSlot
from filechat.services.answer_service import AnswerFunction, AnswerService

logging.basicConfig(level=LOG_LEVEL)


def create_app(answer_fn: AnswerFunction | None = None, **answer_options) -> FastAPI:
    """
    Build the app with its own upload slot and answer service.

    answer_fn defaults to the LLM-backed answerer; answer_options go to
    AnswerService (timeout, max_in_flight).
    """
    application = FastAPI(title="FileChat Backend")

    application.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.upload_slot = UploadSlot()
    application.state.answer_service = AnswerService(answer_fn or answer_from_file, **answer_options)
    application.add_exception_handler(RequestValidationError, handle_validation_error)
    application.include_router(router)

    @application.on_event("shutdown")
    async def shutdown_event():
        application.state.answer_service.close()

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("filechat.main:app", host=HOST, port=PORT)

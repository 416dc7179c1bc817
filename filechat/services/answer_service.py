"""
Query dispatch: hand the current upload and a question to the answering function.

Responsibility: Snapshot the upload slot, bound the answering call (timeout,
max in-flight), and turn its failures into UpstreamAnswerError. No HTTP here.
"""

import asyncio
import inspect
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Awaitable, Callable, Union

from filechat.core.config import ANSWER_TIMEOUT, MAX_CONCURRENT_ANSWERS
from filechat.core.errors import (
    InvalidRequestError,
    NoFileUploadedError,
    UpstreamAnswerError,
    UpstreamTimeoutError,
)
from filechat.core.upload_store import UploadedFileReference, UploadSlot

logger = logging.getLogger(__name__)

# (file_path, question) -> answer text. Coroutine functions run as tasks,
# plain callables run on the service's own worker threads.
AnswerFunction = Callable[[str, str], Union[str, Awaitable[str]]]


class AnswerService:
    """
    Wraps an answering function with a timeout and a cap on concurrent calls.

    A call keeps its slot until the answering function has actually returned,
    not until the request stops waiting. A blocking function that outlives the
    timeout still counts against max_in_flight, and runs on a dedicated pool
    of max_in_flight threads so it cannot starve the default executor.
    """

    def __init__(
        self,
        answer_fn: AnswerFunction,
        timeout: float = ANSWER_TIMEOUT,
        max_in_flight: int = MAX_CONCURRENT_ANSWERS,
    ) -> None:
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self.answer_fn = answer_fn
        self.timeout = timeout
        self._slots = asyncio.Semaphore(max_in_flight)
        self._executor = ThreadPoolExecutor(max_workers=max_in_flight, thread_name_prefix="answer")

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _start(self, file_path: str, question: str) -> asyncio.Future:
        if inspect.iscoroutinefunction(self.answer_fn):
            return asyncio.ensure_future(self.answer_fn(file_path, question))
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(self._executor, self.answer_fn, file_path, question)

    def _finish(self, work: asyncio.Future) -> None:
        self._slots.release()
        if not work.cancelled():
            # Mark the outcome retrieved; the request may have stopped waiting.
            work.exception()

    async def ask(self, reference: UploadedFileReference, question: str) -> str:
        """
        Ask the answering function about `reference` and return its text verbatim.

        self.timeout covers both waiting for a free slot and the call itself.

        Raises:
            UpstreamTimeoutError: No answer within self.timeout seconds.
            UpstreamAnswerError: The function raised or returned a non-string.
        """
        logger.info(
            "[answer:ask] IN  path=%s version=%d question=%r",
            reference.path,
            reference.version,
            question,
        )
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning("[answer:ask] no free answer slot within %.1fs", self.timeout)
            raise UpstreamTimeoutError("The answering service timed out.") from e

        try:
            work = self._start(reference.path, question)
        except BaseException:
            self._slots.release()
            raise
        work.add_done_callback(self._finish)

        try:
            answer = await asyncio.wait_for(asyncio.shield(work), timeout=max(0.0, deadline - loop.time()))
        except asyncio.TimeoutError as e:
            if isinstance(work, asyncio.Task):
                work.cancel()
            logger.warning("[answer:ask] timed out after %.1fs path=%s", self.timeout, reference.path)
            raise UpstreamTimeoutError("The answering service timed out.") from e
        except asyncio.CancelledError:
            if isinstance(work, asyncio.Task):
                work.cancel()
            raise
        except Exception as e:
            logger.exception("[answer:ask] answering function failed path=%s", reference.path)
            raise UpstreamAnswerError("The answering service failed to produce an answer.") from e
        if not isinstance(answer, str):
            logger.error("[answer:ask] answering function returned %s, expected str", type(answer).__name__)
            raise UpstreamAnswerError("The answering service returned an invalid answer.")
        logger.info("[answer:ask] OUT answer_len=%d", len(answer))
        return answer


async def answer_question(
    slot: UploadSlot, service: AnswerService, question: str | None
) -> tuple[str, UploadedFileReference]:
    """
    Answer `question` against whichever upload is current when the call starts.

    Returns (answer, reference used).

    Raises:
        InvalidRequestError: Empty question.
        NoFileUploadedError: Nothing has been uploaded yet.
        UpstreamAnswerError / UpstreamTimeoutError: From AnswerService.ask.
    """
    if not question or not question.strip():
        raise InvalidRequestError("Query parameter 'question' is required.")
    reference = slot.get()
    if reference is None:
        logger.info("[answer:answer_question] no file uploaded; rejecting question=%r", question)
        raise NoFileUploadedError()
    answer = await service.ask(reference, question)
    return answer, reference

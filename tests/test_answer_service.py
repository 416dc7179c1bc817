"""
Unit tests for query dispatch: AnswerService and answer_question().
"""

import asyncio
import threading
import time

import pytest

from filechat.core.errors import (
    InvalidRequestError,
    NoFileUploadedError,
    UpstreamAnswerError,
    UpstreamTimeoutError,
)
from filechat.core.upload_store import UploadSlot
from filechat.services.answer_service import AnswerService, answer_question


def _slot_with(path: str = "uploads/a.txt") -> UploadSlot:
    slot = UploadSlot()
    slot.set(path, path.rsplit("/", 1)[-1], 1)
    return slot


class TestAnswerService:
    """Tests for AnswerService.ask()."""

    def test_returns_answer_verbatim(self) -> None:
        async def answer(file_path: str, question: str) -> str:
            return f"  {file_path} | {question}\n"

        async def run():
            service = AnswerService(answer)
            return await service.ask(_slot_with().get(), "Why?")

        assert asyncio.run(run()) == "  uploads/a.txt | Why?\n"

    def test_sync_function_runs_in_thread(self) -> None:
        def answer(file_path: str, question: str) -> str:
            return "sync"

        async def run():
            return await AnswerService(answer).ask(_slot_with().get(), "q")

        assert asyncio.run(run()) == "sync"

    def test_exception_becomes_upstream_error(self) -> None:
        async def answer(file_path: str, question: str) -> str:
            raise ConnectionError("llm down")

        async def run():
            return await AnswerService(answer).ask(_slot_with().get(), "q")

        with pytest.raises(UpstreamAnswerError) as exc_info:
            asyncio.run(run())
        assert not isinstance(exc_info.value, UpstreamTimeoutError)
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert exc_info.value.status_code == 502
        assert "llm down" not in exc_info.value.message

    def test_timeout_becomes_upstream_timeout(self) -> None:
        async def answer(file_path: str, question: str) -> str:
            await asyncio.sleep(5)
            return "late"

        async def run():
            return await AnswerService(answer, timeout=0.05).ask(_slot_with().get(), "q")

        with pytest.raises(UpstreamTimeoutError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.status_code == 504

    def test_non_string_answer_is_rejected(self) -> None:
        async def answer(file_path: str, question: str):
            return {"text": "not a string"}

        async def run():
            return await AnswerService(answer).ask(_slot_with().get(), "q")

        with pytest.raises(UpstreamAnswerError):
            asyncio.run(run())

    def test_caps_in_flight_calls(self) -> None:
        """No more than max_in_flight calls run at once; the rest wait."""
        state = {"active": 0, "peak": 0}

        async def answer(file_path: str, question: str) -> str:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.01)
            state["active"] -= 1
            return question

        async def run():
            service = AnswerService(answer, max_in_flight=2)
            ref = _slot_with().get()
            return await asyncio.gather(*(service.ask(ref, str(i)) for i in range(6)))

        assert asyncio.run(run()) == [str(i) for i in range(6)]
        assert state["peak"] == 2

    def test_timed_out_sync_calls_keep_their_slot(self) -> None:
        """A sync answerer that outlives its timeout still counts against max_in_flight."""
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}
        idle = threading.Event()

        def answer(file_path: str, question: str) -> str:
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
                idle.clear()
            if question == "slow":
                time.sleep(0.3)
            with lock:
                state["active"] -= 1
                if not state["active"]:
                    idle.set()
            return question

        async def run():
            service = AnswerService(answer, timeout=0.05, max_in_flight=1)
            ref = _slot_with().get()
            timeouts = 0
            for _ in range(5):
                try:
                    await service.ask(ref, "slow")
                except UpstreamTimeoutError:
                    timeouts += 1
            await asyncio.to_thread(idle.wait, 2)
            await asyncio.sleep(0.05)
            answer_text = await service.ask(ref, "fast")
            service.close()
            return timeouts, answer_text

        timeouts, answer_text = asyncio.run(run())
        assert timeouts == 5
        assert answer_text == "fast"
        assert state["peak"] == 1

    def test_max_in_flight_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            AnswerService(lambda p, q: "x", max_in_flight=0)


class TestAnswerQuestion:
    """Tests for answer_question()."""

    def test_no_upload_raises_no_file_uploaded(self) -> None:
        called = []

        async def answer(file_path: str, question: str) -> str:
            called.append(file_path)
            return "x"

        async def run():
            return await answer_question(UploadSlot(), AnswerService(answer), "q")

        with pytest.raises(NoFileUploadedError):
            asyncio.run(run())
        assert called == []

    @pytest.mark.parametrize("question", [None, "", "   "])
    def test_empty_question_is_invalid(self, question) -> None:
        async def run():
            return await answer_question(_slot_with(), AnswerService(lambda p, q: "x"), question)

        with pytest.raises(InvalidRequestError):
            asyncio.run(run())

    def test_returns_answer_and_reference_used(self) -> None:
        async def answer(file_path: str, question: str) -> str:
            return "Paris"

        async def run():
            slot = _slot_with("uploads/geo.txt")
            return await answer_question(slot, AnswerService(answer), "What is the capital of France?")

        answer_text, ref = asyncio.run(run())
        assert answer_text == "Paris"
        assert ref.path == "uploads/geo.txt"
        assert ref.version == 1

    def test_query_keeps_snapshot_when_upload_lands_mid_call(self) -> None:
        """A new upload during a running query does not change the file that query uses."""

        async def run():
            slot = _slot_with("uploads/old.txt")
            started = asyncio.Event()
            release = asyncio.Event()

            async def answer(file_path: str, question: str) -> str:
                started.set()
                await release.wait()
                return file_path

            task = asyncio.create_task(answer_question(slot, AnswerService(answer), "q"))
            await started.wait()
            slot.set("uploads/new.txt", "new.txt", 1)
            release.set()
            answer_text, ref = await task
            return answer_text, ref, slot.get()

        answer_text, ref, current = asyncio.run(run())
        assert answer_text == "uploads/old.txt"
        assert ref.version == 1
        assert current.path == "uploads/new.txt"
        assert current.version == 2

"""
Default answering function: read the uploaded file and ask an LLM about it.

LLM: OpenAI (primary) or Hugging Face router (fallback).
When OPENAI_API_KEY is set, uses OpenAI chat completions; otherwise uses HF.
Failures raise LLMError; AnswerService turns them into upstream errors.
"""

import logging
from pathlib import Path

import httpx
from openai import OpenAI, OpenAIError

from filechat.core.config import (
    CHUNK_OVERLAP,
    CHUNK_SIZE,
    CONTEXT_TOP_K,
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    LLM_MAX_TOKENS,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
)
from filechat.ingest.loader import read_file_text
from filechat.services.text_processing import chunk_text, clean_text, select_chunks

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT_ANSWER = "The uploaded file has no readable text to answer from."

PROMPT_TEMPLATE = """Answer the question using only the document excerpts below.
If the excerpts do not contain the answer, say that you don't know.

Document: {filename}

Excerpts:
{context}

Question: {question}
Answer:"""


class LLMError(Exception):
    """Raised when no LLM is configured or the LLM call fails."""


def _call_openai(prompt: str, max_new_tokens: int) -> str:
    """Call OpenAI chat completions. Returns generated text."""
    client = OpenAI(api_key=OPENAI_API_KEY, timeout=LLM_API_TIMEOUT, max_retries=0)
    try:
        response = client.chat.completions.create(
            model=OPENAI_LLM_MODEL,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_new_tokens,
        )
    except OpenAIError as e:
        raise LLMError(f"OpenAI request failed: {e}") from e
    msg = response.choices[0].message if response.choices else None
    out = (getattr(msg, "content", None) or "").strip()
    logger.info("[llm:openai] OUT response_len=%d", len(out))
    return out


def _call_hf(prompt: str, max_new_tokens: int) -> str:
    """Call Hugging Face router chat completions. Returns generated text."""
    headers = {"Authorization": f"Bearer {HF_API_KEY}", "Content-Type": "application/json"}
    payload = {
        "model": HF_LLM_MODEL,
        "messages": [{"role": "user", "content": prompt}],
        "max_tokens": max_new_tokens,
    }
    try:
        with httpx.Client(timeout=LLM_API_TIMEOUT) as client:
            response = client.post(HF_CHAT_URL, json=payload, headers=headers)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        logger.warning("[llm:hf] HF LLM error %s: %s", e.response.status_code, e.response.text[:200])
        raise LLMError(f"HF LLM returned {e.response.status_code}") from e
    except (httpx.HTTPError, ValueError) as e:
        raise LLMError(f"HF LLM request failed: {e}") from e
    choices = data.get("choices") or []
    if choices and isinstance(choices[0], dict):
        msg = choices[0].get("message") or {}
        out = (msg.get("content") or "").strip()
        logger.info("[llm:hf] OUT response_len=%d", len(out))
        return out
    return ""


def generate(prompt: str, max_new_tokens: int = LLM_MAX_TOKENS) -> str:
    """
    Call the configured LLM. Uses OpenAI when OPENAI_API_KEY is set, else Hugging Face.

    Raises:
        LLMError: No API key configured, request failed, or empty completion.
    """
    logger.info("[llm] IN  prompt_len=%d max_new_tokens=%d", len(prompt), max_new_tokens)
    if OPENAI_API_KEY:
        out = _call_openai(prompt, max_new_tokens)
    elif HF_API_KEY:
        out = _call_hf(prompt, max_new_tokens)
    else:
        raise LLMError("No LLM configured: set OPENAI_API_KEY or HF_API_KEY")
    if not out:
        raise LLMError("LLM returned an empty completion")
    return out


def build_prompt(filename: str, question: str, context_chunks: list[str]) -> str:
    context = "\n\n---\n\n".join(context_chunks)
    return PROMPT_TEMPLATE.format(filename=filename, context=context, question=question.strip())


def answer_from_file(file_path: str, question: str) -> str:
    """
    Answer `question` from the file at `file_path`: read -> clean -> chunk -> select -> prompt LLM.

    Blocking; AnswerService runs it on its own worker threads.
    """
    text = clean_text(read_file_text(file_path))
    chunks = chunk_text(text, chunk_size=CHUNK_SIZE, overlap=CHUNK_OVERLAP)
    if not chunks:
        logger.info("[llm:answer] no text extracted from %s", file_path)
        return EMPTY_DOCUMENT_ANSWER
    context = select_chunks(chunks, question, top_k=CONTEXT_TOP_K)
    logger.info("[llm:answer] path=%s chunks=%d selected=%d", file_path, len(chunks), len(context))
    prompt = build_prompt(Path(file_path).name, question, context)
    return generate(prompt)

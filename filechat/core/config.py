"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Server
HOST: str = os.getenv("HOST", "0.0.0.0").strip() or "0.0.0.0"
PORT: int = int(os.getenv("PORT", "5001"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

# CORS is permissive by default; comma-separated list to restrict.
CORS_ALLOW_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
] or ["*"]

# Upload storage (relative to the working directory unless absolute)
UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads").strip() or "uploads"

# Answering function: upper bound per call and max in-flight calls
ANSWER_TIMEOUT: float = float(os.getenv("ANSWER_TIMEOUT", "60"))
MAX_CONCURRENT_ANSWERS: int = int(os.getenv("MAX_CONCURRENT_ANSWERS", "4"))

# Context shaping for the default answerer
CHUNK_SIZE: int = int(os.getenv("CHUNK_SIZE", "500"))
CHUNK_OVERLAP: int = int(os.getenv("CHUNK_OVERLAP", "50"))
CONTEXT_TOP_K: int = int(os.getenv("CONTEXT_TOP_K", "6"))

# OpenAI (primary LLM when the key is set)
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)

# Hugging Face router chat (fallback when OPENAI_API_KEY is not set)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()
HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)

# LLM call limits. The HTTP timeout stays below ANSWER_TIMEOUT so the
# LLM request fails before the answer call is abandoned.
LLM_API_TIMEOUT: float = min(
    float(os.getenv("LLM_API_TIMEOUT", str(ANSWER_TIMEOUT * 0.9))),
    ANSWER_TIMEOUT * 0.9,
)
LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "512"))

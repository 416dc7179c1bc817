"""
Text processing for answering: cleaning, chunking, and picking context.

An uploaded file can be far larger than one prompt. Cleaning removes noise,
chunking keeps sentences intact, and select_chunks keeps the chunks that
share the most words with the question.
"""

import re
import unicodedata

_WORD_RE = re.compile(r"\w+")

# Too common to say anything about relevance.
_STOPWORDS = frozenset(
    "a an and are as at be by can do does for from how i in is it me of on or "
    "the this to was were what when where which who why with you".split()
)


def clean_text(text: str) -> str:
    """
    Normalize and clean raw document text.

    NFKC-normalizes, strips each line, drops consecutive duplicate lines and
    keeps at most one blank line between paragraphs.
    """
    if not text or not text.strip():
        return ""
    kept: list[str] = []
    for line in unicodedata.normalize("NFKC", text).splitlines():
        line = line.strip()
        previous = kept[-1] if kept else None
        # Repeated lines (blank runs included) and leading blanks add nothing.
        if line == previous or (not line and previous is None):
            continue
        kept.append(line)
    return "\n".join(kept).strip()


def _joined_len(parts: list[str]) -> int:
    return sum(len(p) for p in parts) + max(0, len(parts) - 1)


def _overlap_tail(parts: list[str], overlap: int) -> list[str]:
    """Trailing parts whose joined length fits in `overlap`."""
    tail: list[str] = []
    size = 0
    for part in reversed(parts):
        if size + len(part) + 1 > overlap:
            break
        tail.append(part)
        size += len(part) + 1
    tail.reverse()
    return tail


def chunk_text(text: str, chunk_size: int = 500, overlap: int = 50) -> list[str]:
    """
    Split text into overlapping chunks on sentence boundaries.

    Sentences longer than chunk_size are split on whitespace instead. Each new
    chunk starts with the tail of the previous one, up to `overlap` characters.
    """
    if not text or not text.strip():
        return []
    text = text.strip()
    if len(text) <= chunk_size:
        return [text]

    sentences = [s.strip() for s in re.split(r"(?<=[.!?])\s+", text) if s.strip()]
    units: list[str] = []
    for sent in sentences:
        units.extend(sent.split() if len(sent) > chunk_size else [sent])

    chunks: list[str] = []
    current: list[str] = []
    for unit in units:
        if current and _joined_len(current) + 1 + len(unit) > chunk_size:
            chunks.append(" ".join(current))
            current = _overlap_tail(current, overlap)
            if current and _joined_len(current) + 1 + len(unit) > chunk_size:
                current = []
        current.append(unit)

    if current:
        chunks.append(" ".join(current))
    return chunks


def _terms(text: str) -> set[str]:
    return {w for w in _WORD_RE.findall(text.lower()) if w not in _STOPWORDS}


def select_chunks(chunks: list[str], question: str, top_k: int = 6) -> list[str]:
    """
    Pick up to top_k chunks sharing the most words with the question.

    Selected chunks come back in document order. When no chunk shares a word
    with the question, the first top_k chunks are returned.
    """
    if top_k <= 0 or not chunks:
        return []
    query_terms = _terms(question)
    scored = [(len(query_terms & _terms(c)), i) for i, c in enumerate(chunks)]
    hits = [(score, i) for score, i in scored if score > 0]
    if not hits:
        return chunks[:top_k]
    best = sorted(hits, key=lambda x: (-x[0], x[1]))[:top_k]
    return [chunks[i] for _, i in sorted(best, key=lambda x: x[1])]

# File bytes -> text for the default answerer. One reader per binary format;
# everything else is treated as UTF-8 text.

import io
from pathlib import Path
from typing import Callable

import pandas as pd
from pypdf import PdfReader


def _pdf_text(raw: bytes) -> str:
    pages = PdfReader(io.BytesIO(raw)).pages
    return "\n".join(filter(None, (page.extract_text() for page in pages)))


def _spreadsheet_text(raw: bytes) -> str:
    sheets = pd.read_excel(io.BytesIO(raw), sheet_name=None, header=None)
    return "\n\n".join(
        frame.fillna("").astype(str).to_csv(sep=" ", index=False, header=False)
        for frame in sheets.values()
    )


def _plain_text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


_READERS: dict[str, Callable[[bytes], str]] = {
    ".pdf": _pdf_text,
    ".xlsx": _spreadsheet_text,
    ".xls": _spreadsheet_text,
}


def bytes_to_text(raw: bytes, filename: str) -> str:
    """Convert raw file bytes to text, picking the reader by file extension."""
    ext = Path(filename or "").suffix.lower()
    return _READERS.get(ext, _plain_text)(raw)


def read_file_text(path: str) -> str:
    """Read a stored upload from disk and return its text."""
    p = Path(path)
    return bytes_to_text(p.read_bytes(), p.name)

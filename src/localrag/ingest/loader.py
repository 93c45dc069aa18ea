"""Document loader: file discovery, stat and text extraction.

Supported formats:
  .txt                → read as UTF-8 (undecodable bytes replaced)
  .md / .markdown     → read as UTF-8 (undecodable bytes replaced)
  .pdf                → page-by-page extraction via pypdf
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import pypdf
from pypdf.errors import PyPdfError

_PDF_EXTS = {".pdf"}
_MD_EXTS = {".md", ".markdown"}
_TEXT_EXTS = {".txt"}
_ALL_FILE_EXTS = _PDF_EXTS | _MD_EXTS | _TEXT_EXTS

DEFAULT_MAX_FILES = 2000


class ExtractionError(Exception):
    """Raised when a file's text cannot be read or extracted."""


@dataclass(frozen=True)
class FileStat:
    mtime: float
    size: int
    is_file: bool


def is_supported_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in _ALL_FILE_EXTS


def detect_kind(path: str | Path) -> str:
    """Return ``pdf``, ``md`` or ``txt`` from the file extension."""
    ext = Path(path).suffix.lower()
    if ext in _PDF_EXTS:
        return "pdf"
    if ext in _MD_EXTS:
        return "md"
    return "txt"


def list_files(folder: str | Path, max_files: int = DEFAULT_MAX_FILES) -> list[str]:
    """Return supported files under *folder*, recursively, in sorted order.

    Dot-prefixed files and directories are skipped, symlinks are not
    followed, unreadable directories are ignored, and the walk stops once
    *max_files* paths are collected.
    """
    out: list[str] = []

    def walk(directory: Path) -> None:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError:
            return
        for entry in entries:
            if len(out) >= max_files:
                return
            if entry.name.startswith(".") or entry.is_symlink():
                continue
            if entry.is_dir():
                walk(entry)
            elif entry.is_file() and is_supported_file(entry):
                out.append(str(entry))

    if max_files > 0:
        walk(Path(folder))
    return out


def stat_or_none(path: str | Path) -> FileStat | None:
    """Return mtime/size/is_file for *path*, or None when stat fails."""
    try:
        st = os.stat(path)
    except OSError:
        return None
    return FileStat(mtime=st.st_mtime, size=st.st_size, is_file=Path(path).is_file())


def build_doc_id(source_id: str, path: str | Path) -> str:
    """Stable document id: source id + resolved absolute path."""
    return f"{source_id}::{Path(path).resolve()}"


def extract_text(path: str | Path) -> str:
    """Return the raw text of *path* according to its format.

    Raises:
        ExtractionError: The file cannot be read or parsed.
    """
    try:
        if detect_kind(path) == "pdf":
            return _extract_pdf_text(path)
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except (OSError, PyPdfError, ValueError) as exc:
        raise ExtractionError(f"Could not read '{path}': {exc}") from exc


def _extract_pdf_text(path: str | Path) -> str:
    """Extract all page text from the PDF at *path*.

    Pages that yield no text (scanned images, etc.) are skipped.
    """
    reader = pypdf.PdfReader(str(path))
    parts: list[str] = []
    for page in reader.pages:
        page_text = page.extract_text() or ""
        stripped = page_text.strip()
        if stripped:
            parts.append(stripped)
    return "\n\n".join(parts)

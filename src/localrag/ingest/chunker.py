"""Paragraph chunker: greedy paragraph packing with tail overlap."""

from __future__ import annotations

import re

from localrag.config import RagConfig
from localrag.text import normalize_whitespace

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_SEPARATOR = "\n\n"


class ParagraphChunker:
    """Split text into overlapping chunks along paragraph boundaries.

    Strategy:
    - Normalise the text and split it on blank lines.
    - Pack paragraphs into a buffer while the joined length stays within
      ``max_chars``.
    - A buffer shorter than ``min_chars`` absorbs the next paragraph even if
      that overflows ``max_chars`` (provided the paragraph alone is shorter
      than ``max_chars``), then flushes.
    - A paragraph is never split; one longer than ``max_chars`` stays whole.
    - With ``overlap_chars > 0``, each chunk after the first is prefixed with
      the last ``overlap_chars`` characters of the previously emitted chunk.

    Default: 1400 / 250 / 250 characters.
    """

    def __init__(
        self,
        max_chars: int = 1400,
        min_chars: int = 250,
        overlap_chars: int = 250,
    ) -> None:
        if max_chars < 1:
            raise ValueError("max_chars must be >= 1")
        if min_chars < 0:
            raise ValueError("min_chars must be >= 0")
        if overlap_chars < 0:
            raise ValueError("overlap_chars must be >= 0")
        self.max_chars = max_chars
        self.min_chars = min_chars
        self.overlap_chars = overlap_chars

    @classmethod
    def from_config(cls, config: RagConfig) -> ParagraphChunker:
        return cls(
            max_chars=config.chunk_max_chars,
            min_chars=config.chunk_min_chars,
            overlap_chars=config.chunk_overlap_chars,
        )

    def chunk(self, text: str | None) -> list[str]:
        """Return the ordered chunk strings for *text* (empty for blank input)."""
        clean = normalize_whitespace(text)
        if not clean:
            return []

        chunks = self._pack(self._paragraphs(clean))
        if self.overlap_chars > 0 and len(chunks) > 1:
            return self._apply_overlap(chunks)
        return chunks

    @staticmethod
    def _paragraphs(clean: str) -> list[str]:
        return [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(clean) if p.strip()]

    def _pack(self, paragraphs: list[str]) -> list[str]:
        chunks: list[str] = []
        buf = ""

        def flush() -> None:
            nonlocal buf
            stripped = buf.strip()
            if stripped:
                chunks.append(stripped)
            buf = ""

        for para in paragraphs:
            if not buf:
                buf = para
                continue

            if len(buf) + len(_SEPARATOR) + len(para) <= self.max_chars:
                buf += _SEPARATOR + para
            elif len(buf) < self.min_chars and len(para) < self.max_chars:
                buf += _SEPARATOR + para
                flush()
            else:
                flush()
                buf = para

        flush()
        return chunks

    def _apply_overlap(self, chunks: list[str]) -> list[str]:
        out = [chunks[0]]
        for cur in chunks[1:]:
            prev = out[-1]
            tail = prev[max(len(prev) - self.overlap_chars, 0):]
            out.append((tail + _SEPARATOR + cur).strip())
        return out


def chunk_text(
    text: str | None,
    max_chars: int = 1400,
    min_chars: int = 250,
    overlap_chars: int = 250,
) -> list[str]:
    """Functional shortcut for ``ParagraphChunker(...).chunk(text)``."""
    return ParagraphChunker(max_chars, min_chars, overlap_chars).chunk(text)

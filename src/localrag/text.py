"""Whitespace normalisation shared by the chunker, the indexer and queries."""

from __future__ import annotations

import re

_CRLF_RE = re.compile(r"\r\n")
_TRAILING_WS_RE = re.compile(r"[ \t\r]+\n")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_INLINE_WS_RE = re.compile(r"[ \t]{2,}")


def normalize_whitespace(text: str | None) -> str:
    """Return *text* in canonical form.

    CRLF becomes LF, trailing blanks (stray CRs included) before a newline
    are dropped, three or more newlines collapse to a single blank line, runs
    of spaces/tabs become one space, and the result is stripped. ``None`` is
    treated as ``""``. The function is idempotent.
    """
    s = str(text or "")
    s = _CRLF_RE.sub("\n", s)
    s = _TRAILING_WS_RE.sub("\n", s)
    s = _BLANK_RUN_RE.sub("\n\n", s)
    s = _INLINE_WS_RE.sub(" ", s)
    return s.strip()

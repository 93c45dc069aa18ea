"""Context assembler: citation-numbered blocks under a character budget.

Each kept chunk becomes::

    [#<n>] <title> (<path>)
    <snippet>

Blocks are added best-first while ``len(block) + 2`` still fits in
``max_context_chars``. The first block that does not fit ends assembly;
later (possibly shorter) blocks are not tried.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from localrag.ingest.embedder import EmbedFn
from localrag.rag.retriever import ScoredChunk, retrieve
from localrag.store.models import Store
from localrag.text import normalize_whitespace

SNIPPET_MAX_CHARS = 900
_SEPARATOR = "\n\n"


@dataclass
class Citation:
    """One numbered source entry included in the context."""

    n: int
    score: float
    title: str
    path: str
    kind: str
    snippet: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "n": self.n,
            "score": self.score,
            "title": self.title,
            "path": self.path,
            "kind": self.kind,
            "snippet": self.snippet,
        }


@dataclass
class QueryResult:
    context: str = ""
    sources: list[Citation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"context": self.context, "sources": [c.to_dict() for c in self.sources]}


def format_block(citation: Citation) -> str:
    header = f"[#{citation.n}] {citation.title}"
    if citation.path:
        header += f" ({citation.path})"
    return f"{header}\n{citation.snippet}"


def build_context(scored: Iterable[ScoredChunk], max_chars: int) -> QueryResult:
    """Pack *scored* (best first) into a context of at most *max_chars* characters.

    Chunks whose text is blank are skipped without consuming a citation number.
    """
    blocks: list[str] = []
    sources: list[Citation] = []
    used = 0
    n = 0

    for item in scored:
        text = item.chunk.text.strip()
        if not text:
            continue

        meta = item.chunk.meta
        n += 1
        citation = Citation(
            n=n,
            score=item.score,
            title=meta.title or "Source",
            path=meta.path or "",
            kind=meta.kind or "file",
            snippet=text[:SNIPPET_MAX_CHARS],
        )
        block = format_block(citation)
        add_len = len(block) + len(_SEPARATOR)
        if used + add_len > max_chars:
            break

        used += add_len
        blocks.append(block)
        sources.append(citation)

    return QueryResult(context=_SEPARATOR.join(blocks), sources=sources)


def query(
    store: Store,
    corpus_ids: Iterable[str],
    query_text: str | None,
    embed: EmbedFn | None = None,
) -> QueryResult:
    """Retrieve and assemble context for *query_text* over *corpus_ids*.

    Blank queries and empty candidate pools give an empty result without
    calling the embedding service.

    Raises:
        EmbeddingError: The query could not be embedded.
    """
    q = normalize_whitespace(query_text)
    if not q:
        return QueryResult()

    scored = retrieve(store, corpus_ids, q, embed=embed)
    if not scored:
        return QueryResult()
    return build_context(scored, store.config.max_context_chars)

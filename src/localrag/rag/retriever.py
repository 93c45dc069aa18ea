"""Dense retriever over the in-store index.

  1. Resolve corpus ids → enabled source ids → their indexed chunks.
  2. Embed the query once with the store's embedding model.
  3. Score every candidate by cosine similarity (brute force).
  4. Keep the top ``top_k`` by score, then drop those under ``min_score``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger

from localrag.config import RagConfig
from localrag.ingest.embedder import EmbedFn, EmbeddingError, embed_texts
from localrag.rag.similarity import cosine_similarity, top_k
from localrag.store.models import Chunk, Store


@dataclass
class ScoredChunk:
    """A candidate chunk with its cosine similarity to the query."""

    chunk: Chunk
    score: float


# ------------------------------------------------------------------
# Corpus resolution
# ------------------------------------------------------------------


def enabled_source_ids_for_corpus(store: Store, corpus_id: str) -> list[str]:
    """Source ids of *corpus_id* that are currently enabled, in corpus order."""
    corpus = store.get_corpus(corpus_id)
    if corpus is None:
        return []
    enabled = store.enabled_source_ids()
    return [sid for sid in corpus.source_ids if sid in enabled]


def resolve_source_ids(store: Store, corpus_ids: Iterable[str]) -> list[str]:
    """Union of enabled source ids across *corpus_ids*, first occurrence wins."""
    resolved: dict[str, None] = {}
    for cid in corpus_ids:
        for sid in enabled_source_ids_for_corpus(store, str(cid)):
            resolved.setdefault(sid, None)
    return list(resolved)


def chunks_for_corpora(store: Store, corpus_ids: Iterable[str]) -> list[Chunk]:
    """Candidate pool: every indexed chunk of every resolved source.

    Sources that have never been indexed contribute nothing.
    """
    chunks: list[Chunk] = []
    for sid in resolve_source_ids(store, corpus_ids):
        idx = store.index.get(sid)
        if idx is None:
            continue
        chunks.extend(idx.chunks)
    return chunks


# ------------------------------------------------------------------
# Scoring
# ------------------------------------------------------------------


def score_chunks(query_embedding: list[float], chunks: Iterable[Chunk]) -> list[ScoredChunk]:
    return [
        ScoredChunk(chunk=chunk, score=cosine_similarity(query_embedding, chunk.embedding))
        for chunk in chunks
    ]


def select(scored: list[ScoredChunk], config: RagConfig) -> list[ScoredChunk]:
    """Top ``config.top_k`` by score, then those at or above ``config.min_score``."""
    return [sc for sc in top_k(scored, config.top_k) if sc.score >= config.min_score]


def retrieve(
    store: Store,
    corpus_ids: Iterable[str],
    query_text: str,
    embed: EmbedFn | None = None,
) -> list[ScoredChunk]:
    """Return the chunks of *corpus_ids* most similar to *query_text*, best first.

    *query_text* must already be normalised and non-empty. No embedding call
    is made when the candidate pool is empty.

    Raises:
        EmbeddingError: The query could not be embedded.
    """
    config = store.config
    candidates = chunks_for_corpora(store, corpus_ids)
    if not candidates:
        logger.debug("No candidate chunks for the selected corpora")
        return []

    embed_fn = embed or embed_texts
    vectors = embed_fn(config.embedding_base_url, config.embedding_model, [query_text])
    if len(vectors) != 1:
        raise EmbeddingError(f"Expected 1 query embedding, got {len(vectors)}.")

    selected = select(score_chunks(vectors[0], candidates), config)
    logger.debug(
        f"Scored {len(candidates)} candidates; {len(selected)} kept "
        f"(top_k={config.top_k}, min_score={config.min_score})"
    )
    return selected

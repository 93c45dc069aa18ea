"""localrag retrieval: similarity scoring, corpus resolution, context assembly."""

from localrag.rag.assembler import Citation, QueryResult, build_context, query
from localrag.rag.retriever import ScoredChunk, chunks_for_corpora, retrieve
from localrag.rag.similarity import cosine_similarity, top_k

__all__ = [
    "Citation",
    "QueryResult",
    "ScoredChunk",
    "build_context",
    "chunks_for_corpora",
    "cosine_similarity",
    "query",
    "retrieve",
    "top_k",
]

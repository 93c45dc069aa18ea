"""localrag ingest pipeline: chunker, document loader, embedder, indexer."""

from localrag.ingest.chunker import ParagraphChunker, chunk_text
from localrag.ingest.embedder import EmbeddingError, embed_texts
from localrag.ingest.indexer import IndexFailure, Indexer, IndexResult, index_sources
from localrag.ingest.loader import ExtractionError

__all__ = [
    "EmbeddingError",
    "ExtractionError",
    "IndexFailure",
    "IndexResult",
    "Indexer",
    "ParagraphChunker",
    "chunk_text",
    "embed_texts",
    "index_sources",
]

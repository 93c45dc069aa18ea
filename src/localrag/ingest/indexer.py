"""Index maintainer: incremental (re)embedding of sources into the store.

Per requested source id (unknown or disabled ids are ignored):

  note          → always re-chunked and re-embedded as one synthetic document
  file / folder → resolved to files; a file is re-embedded only when its
                  mtime or size differs from the stored DocumentRecord

Failures are collected, never raised: an unreadable file or a failed
embedding call costs that file only, and a source that fails as a whole
costs that source only. Everything runs sequentially, one embedding
request at a time.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from localrag.config import RagConfig
from localrag.ingest.chunker import ParagraphChunker
from localrag.ingest.embedder import EmbedFn, EmbeddingError, embed_texts
from localrag.ingest.loader import (
    DEFAULT_MAX_FILES,
    ExtractionError,
    FileStat,
    build_doc_id,
    extract_text,
    is_supported_file,
    list_files,
    stat_or_none,
)
from localrag.store.models import Chunk, ChunkMeta, DocumentRecord, Source, SourceIndex, Store
from localrag.store.repository import now_ms
from localrag.text import normalize_whitespace


@dataclass
class IndexFailure:
    """One recorded failure: a file that could not be indexed, or a whole source."""

    error: str
    file_path: str | None = None
    source_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"error": self.error}
        if self.file_path is not None:
            data["file_path"] = self.file_path
        if self.source_id is not None:
            data["source_id"] = self.source_id
        return data


@dataclass
class IndexResult:
    """Summary of an indexing run.

    Attributes:
        indexed: Number of chunks embedded and written.
        skipped: Number of files left alone because they were unchanged.
        errors: Per-file / per-source failures, in processing order.
    """

    indexed: int = 0
    skipped: int = 0
    errors: list[IndexFailure] = field(default_factory=list)

    def add(self, other: IndexResult) -> None:
        self.indexed += other.indexed
        self.skipped += other.skipped
        self.errors.extend(other.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "indexed": self.indexed,
            "skipped": self.skipped,
            "errors": [e.to_dict() for e in self.errors],
        }


def source_title(source: Source | None, file_path: str = "") -> str:
    """Human-readable title for chunks of *source* (and *file_path*)."""
    if source is None:
        return Path(file_path).name if file_path else "Source"
    if source.kind == "note":
        return source.label or "Note"
    if file_path:
        label = source.label or Path(source.path or file_path).name
        return f"{label} / {Path(file_path).name}"
    return source.label or Path(source.path).name or "Source"


def needs_reindex(previous: DocumentRecord | None, stat: FileStat | None) -> bool:
    """True when there is no usable record or the file's mtime/size changed."""
    if previous is None or stat is None:
        return True
    return previous.mtime != stat.mtime or previous.size != stat.size


def ensure_source_index(store: Store, source_id: str) -> SourceIndex:
    idx = store.index.get(source_id)
    if idx is None:
        idx = SourceIndex()
        store.index[source_id] = idx
    return idx


def _make_chunks(
    source_id: str,
    doc_id: str,
    title: str,
    path: str,
    kind: str,
    texts: list[str],
    embeddings: list[list[float]],
) -> list[Chunk]:
    return [
        Chunk(
            chunk_id=f"{doc_id}::{i}",
            text=text,
            embedding=embeddings[i],
            meta=ChunkMeta(
                source_id=source_id,
                doc_id=doc_id,
                title=title,
                path=path,
                kind=kind,
                index=i,
            ),
        )
        for i, text in enumerate(texts)
    ]


class Indexer:
    """Maintain per-source indexes inside a :class:`Store`.

    Args:
        store: Store whose ``index`` entries are updated in place. Sources,
            corpora and config are only read.
        config: Chunking and embedding configuration.
        embed: Embedding function; defaults to :func:`embed_texts`.
        max_files: Upper bound on files collected from one folder source.
    """

    def __init__(
        self,
        store: Store,
        config: RagConfig,
        embed: EmbedFn | None = None,
        max_files: int = DEFAULT_MAX_FILES,
    ) -> None:
        self._store = store
        self._config = config
        self._embed = embed or embed_texts
        self._chunker = ParagraphChunker.from_config(config)
        self._max_files = max_files

    def index_sources(self, source_ids: Iterable[str]) -> IndexResult:
        """Index every enabled source in *source_ids*, in order."""
        result = IndexResult()
        enabled = self._store.enabled_source_ids()

        for sid in (str(s) for s in source_ids):
            if sid not in enabled:
                continue
            source = self._store.get_source(sid)
            if source is None:
                continue

            try:
                if source.kind == "note":
                    result.add(self._index_note(source))
                else:
                    result.add(self._index_files(source))
            except Exception as exc:
                # One failing source never aborts the run.
                logger.opt(exception=exc).warning(f"Indexing source {sid} failed: {exc}")
                result.errors.append(IndexFailure(error=str(exc), source_id=sid))

        logger.info(
            f"Index run: {result.indexed} chunks indexed, {result.skipped} files skipped, "
            f"{len(result.errors)} errors"
        )
        return result

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def _index_note(self, source: Source) -> IndexResult:
        """Rebuild the single note document. Notes carry no stat, so always re-embedded."""
        text = normalize_whitespace(source.note or "")
        doc_id = f"{source.id}::note"
        title = source_title(source)

        texts = self._chunker.chunk(text)
        embeddings = self._embed_batch(texts)

        idx = ensure_source_index(self._store, source.id)
        ts = now_ms()
        idx.docs[doc_id] = DocumentRecord(
            doc_id=doc_id,
            kind="note",
            title=title,
            path="",
            mtime=ts / 1000,
            size=len(text),
            chunks=_make_chunks(source.id, doc_id, title, "", "note", texts, embeddings),
            updated_at=ts,
        )
        idx.rebuild_chunks()
        idx.updated_at = ts

        logger.debug(f"Note {source.id}: {len(texts)} chunks")
        return IndexResult(indexed=len(texts))

    # ------------------------------------------------------------------
    # Files and folders
    # ------------------------------------------------------------------

    def _resolve_files(self, source: Source) -> list[str]:
        if not source.path:
            return []
        if source.kind == "file":
            return [source.path] if is_supported_file(source.path) else []
        return list_files(source.path, max_files=self._max_files)

    def _index_files(self, source: Source) -> IndexResult:
        result = IndexResult()
        idx = ensure_source_index(self._store, source.id)

        for file_path in self._resolve_files(source):
            stat = stat_or_none(file_path)
            if stat is None or not stat.is_file:
                continue

            doc_id = build_doc_id(source.id, file_path)
            previous = idx.docs.get(doc_id)
            if not needs_reindex(previous, stat):
                logger.debug(f"Unchanged, skipping: {file_path}")
                result.skipped += 1
                continue

            try:
                raw = extract_text(file_path)
            except ExtractionError as exc:
                logger.warning(f"Extraction failed for {file_path}: {exc}")
                result.errors.append(IndexFailure(error=str(exc), file_path=file_path))
                continue

            title = source_title(source, file_path)
            clean = normalize_whitespace(raw)
            if not clean:
                # Keep the fresh stat so an empty file is not reprocessed.
                idx.docs[doc_id] = self._record(doc_id, title, file_path, stat, [])
                continue

            texts = self._chunker.chunk(clean)
            try:
                embeddings = self._embed_batch(texts)
            except EmbeddingError as exc:
                logger.warning(f"Embedding failed for {file_path}: {exc}")
                result.errors.append(IndexFailure(error=str(exc), file_path=file_path))
                continue

            chunks = _make_chunks(source.id, doc_id, title, file_path, "file", texts, embeddings)
            idx.docs[doc_id] = self._record(doc_id, title, file_path, stat, chunks)
            result.indexed += len(chunks)
            logger.debug(f"Indexed {file_path}: {len(chunks)} chunks")

        idx.rebuild_chunks()
        idx.updated_at = now_ms()
        return result

    @staticmethod
    def _record(
        doc_id: str, title: str, path: str, stat: FileStat, chunks: list[Chunk]
    ) -> DocumentRecord:
        return DocumentRecord(
            doc_id=doc_id,
            kind="file",
            title=title,
            path=path,
            mtime=stat.mtime,
            size=stat.size,
            chunks=chunks,
            updated_at=now_ms(),
        )

    # ------------------------------------------------------------------
    # Embedding
    # ------------------------------------------------------------------

    def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed all chunk texts of one document in a single request."""
        if not texts:
            return []
        vectors = self._embed(self._config.embedding_base_url, self._config.embedding_model, texts)
        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Embedding service returned {len(vectors)} vectors for {len(texts)} chunks."
            )
        return vectors


def index_sources(
    store: Store,
    source_ids: Iterable[str],
    config: RagConfig | None = None,
    embed: EmbedFn | None = None,
) -> IndexResult:
    """Index *source_ids* into *store* using *config* (the store's by default)."""
    return Indexer(store, config or store.config, embed=embed).index_sources(source_ids)

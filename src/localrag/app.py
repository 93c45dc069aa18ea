"""Application context: every exposed operation as load → mutate → save.

``RagApp`` is the boundary the surrounding application (CLI, desktop shell)
talks to. Each call loads a fresh snapshot from the encrypted store file,
works on it in memory, and persists it when the call changed anything.
Read-only calls never write.

Callers must serialise mutating calls against the same store file; there
is no locking here. Concurrent read-only queries are safe.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from localrag.config import RagConfig, Settings
from localrag.ingest.embedder import EmbedFn
from localrag.ingest.indexer import IndexResult, index_sources
from localrag.rag.assembler import QueryResult
from localrag.rag.assembler import query as run_query
from localrag.store.models import Corpus, Selection, Source, Store
from localrag.store.persistence import StoreFile
from localrag.store.repository import Repository
from localrag.store.secure_storage import KeyringFernetStorage, SecureStorage


@dataclass
class IndexStatus:
    """Aggregate view of the index.

    Attributes:
        sources_indexed: Sources whose index holds at least one chunk.
        chunks: Total chunks across all indexes.
        updated_at: Latest index update (epoch ms), 0 when nothing was indexed.
    """

    sources_indexed: int = 0
    chunks: int = 0
    updated_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "sources_indexed": self.sources_indexed,
            "chunks": self.chunks,
            "updated_at": self.updated_at,
        }


@dataclass
class IndexRun:
    result: IndexResult
    status: IndexStatus


@dataclass
class QueryRun:
    corpus_ids: list[str] = field(default_factory=list)
    result: QueryResult = field(default_factory=QueryResult)


def index_status(store: Store) -> IndexStatus:
    status = IndexStatus()
    for idx in store.index.values():
        if idx.chunks:
            status.sources_indexed += 1
        status.chunks += len(idx.chunks)
        status.updated_at = max(status.updated_at, idx.updated_at)
    return status


class RagApp:
    """Explicitly passed application context for all RAG operations.

    Args:
        store_file: Encrypted store location.
        embed: Embedding function override (defaults to the Ollama client).
    """

    def __init__(self, store_file: StoreFile, embed: EmbedFn | None = None) -> None:
        self._file = store_file
        self._embed = embed

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        storage: SecureStorage | None = None,
        embed: EmbedFn | None = None,
    ) -> RagApp:
        store_file = StoreFile(
            settings.store_path,
            storage or KeyringFernetStorage(),
            default_config=settings.default_rag_config(),
        )
        return cls(store_file, embed=embed)

    @property
    def store_path(self) -> str:
        return str(self._file.path)

    def _load(self) -> tuple[Store, Repository]:
        store = self._file.load()
        return store, Repository(store)

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def list_sources(self) -> list[Source]:
        _, repo = self._load()
        return repo.list_sources()

    def add_source(
        self,
        kind: str,
        label: str = "",
        path: str = "",
        note: str = "",
        enabled: bool = True,
    ) -> Source:
        store, repo = self._load()
        source = repo.add_source(kind, label=label, path=path, note=note, enabled=enabled)
        self._file.save(store)
        logger.info(f"Added {source.kind} source {source.id} ({source.label})")
        return source

    def update_source(
        self,
        source_id: str,
        label: str | None = None,
        enabled: bool | None = None,
        note: str | None = None,
    ) -> Source:
        store, repo = self._load()
        source = repo.update_source(source_id, label=label, enabled=enabled, note=note)
        self._file.save(store)
        return source

    def delete_source(self, source_id: str) -> bool:
        store, repo = self._load()
        removed = repo.delete_source(source_id)
        self._file.save(store)
        return removed

    # ------------------------------------------------------------------
    # Corpora
    # ------------------------------------------------------------------

    def list_corpora(self) -> list[Corpus]:
        _, repo = self._load()
        return repo.list_corpora()

    def upsert_corpus(
        self,
        name: str,
        source_ids: Iterable[str] | None = None,
        corpus_id: str | None = None,
    ) -> Corpus:
        store, repo = self._load()
        corpus = repo.upsert_corpus(name, source_ids=source_ids, corpus_id=corpus_id)
        self._file.save(store)
        return corpus

    def delete_corpus(self, corpus_id: str) -> bool:
        store, repo = self._load()
        removed = repo.delete_corpus(corpus_id)
        self._file.save(store)
        return removed

    # ------------------------------------------------------------------
    # Conversation selection
    # ------------------------------------------------------------------

    def get_selection(self, thread_id: str) -> list[str]:
        _, repo = self._load()
        return repo.get_selection(thread_id)

    def set_selection(self, thread_id: str, corpus_ids: Iterable[str] | None) -> Selection:
        store, repo = self._load()
        selection = repo.set_selection(thread_id, corpus_ids)
        self._file.save(store)
        return selection

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def get_config(self) -> RagConfig:
        _, repo = self._load()
        return repo.get_config()

    def set_config(self, partial: dict[str, Any]) -> RagConfig:
        store, repo = self._load()
        cfg = repo.set_config(partial)
        self._file.save(store)
        return cfg

    # ------------------------------------------------------------------
    # Indexing, retrieval, status
    # ------------------------------------------------------------------

    def index_sources(self, source_ids: Iterable[str]) -> IndexRun:
        """Index *source_ids* and persist the updated index."""
        store, _ = self._load()
        result = index_sources(store, source_ids, store.config, embed=self._embed)
        self._file.save(store)
        return IndexRun(result=result, status=index_status(store))

    def index_all(self) -> IndexRun:
        """Index every enabled source."""
        store, _ = self._load()
        ids = [s.id for s in store.sources if s.enabled]
        result = index_sources(store, ids, store.config, embed=self._embed)
        self._file.save(store)
        return IndexRun(result=result, status=index_status(store))

    def query(
        self,
        query_text: str,
        corpus_ids: Iterable[str] | None = None,
        thread_id: str | None = None,
    ) -> QueryRun:
        """Build context for *query_text*.

        Explicit *corpus_ids* win; otherwise the selection of *thread_id* is
        used; with neither, the result is empty.
        """
        store, repo = self._load()
        if corpus_ids is not None:
            selection = [str(c) for c in corpus_ids]
        elif thread_id:
            selection = repo.get_selection(thread_id)
        else:
            selection = []

        result = run_query(store, selection, query_text, embed=self._embed)
        return QueryRun(corpus_ids=selection, result=result)

    def status(self) -> IndexStatus:
        store, _ = self._load()
        return index_status(store)

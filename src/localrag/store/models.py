"""Domain models for the localrag store.

Every entity is a plain dataclass with ``to_dict()`` / ``from_dict()``.
``from_dict()`` is the single place where a loaded JSON document is shaped:
missing or malformed fields fall back to their defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from localrag.config import RagConfig

STORE_VERSION = 1

SOURCE_KINDS: tuple[str, ...] = ("file", "folder", "note")


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass
class Source:
    id: str
    kind: str
    label: str
    path: str = ""
    enabled: bool = True
    created_at: int = 0
    updated_at: int = 0
    note: str | None = None  # notes only

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind,
            "label": self.label,
            "path": self.path,
            "enabled": self.enabled,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self.kind == "note":
            data["note"] = self.note or ""
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Source:
        kind = str(data.get("kind", "file"))
        return cls(
            id=str(data.get("id", "")),
            kind=kind,
            label=str(data.get("label", "")),
            path=str(data.get("path") or ""),
            enabled=bool(data.get("enabled", True)),
            created_at=_int(data.get("created_at")),
            updated_at=_int(data.get("updated_at")),
            note=str(data.get("note") or "") if kind == "note" else None,
        )


@dataclass
class Corpus:
    id: str
    name: str
    source_ids: list[str] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "source_ids": list(self.source_ids),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Corpus:
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            source_ids=list(dict.fromkeys(_str_list(data.get("source_ids")))),
            created_at=_int(data.get("created_at")),
            updated_at=_int(data.get("updated_at")),
        )


@dataclass
class Selection:
    """Corpus ids chosen for one conversation thread."""

    corpus_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"corpus_ids": list(self.corpus_ids)}

    @classmethod
    def from_dict(cls, data: Any) -> Selection:
        if not isinstance(data, dict):
            return cls()
        return cls(corpus_ids=_str_list(data.get("corpus_ids")))


@dataclass
class ChunkMeta:
    source_id: str
    doc_id: str
    title: str
    path: str = ""
    kind: str = "file"
    index: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "doc_id": self.doc_id,
            "title": self.title,
            "path": self.path,
            "kind": self.kind,
            "index": self.index,
        }

    @classmethod
    def from_dict(cls, data: Any) -> ChunkMeta:
        if not isinstance(data, dict):
            data = {}
        return cls(
            source_id=str(data.get("source_id", "")),
            doc_id=str(data.get("doc_id", "")),
            title=str(data.get("title") or "Source"),
            path=str(data.get("path") or ""),
            kind=str(data.get("kind") or "file"),
            index=_int(data.get("index")),
        )


@dataclass
class Chunk:
    """A span of normalised text and its embedding.

    ``embedding`` is ``None`` when a stored vector was missing or malformed;
    such chunks score 0 against every query.
    """

    chunk_id: str
    text: str
    embedding: list[float] | None
    meta: ChunkMeta

    def to_dict(self) -> dict[str, Any]:
        return {
            "chunk_id": self.chunk_id,
            "text": self.text,
            "embedding": self.embedding,
            "meta": self.meta.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Chunk:
        embedding = data.get("embedding")
        if isinstance(embedding, list) and embedding:
            try:
                embedding = [float(v) for v in embedding]
            except (TypeError, ValueError):
                embedding = None
        else:
            embedding = None
        return cls(
            chunk_id=str(data.get("chunk_id", "")),
            text=str(data.get("text") or ""),
            embedding=embedding,
            meta=ChunkMeta.from_dict(data.get("meta")),
        )


@dataclass
class DocumentRecord:
    """One file (or the synthetic note document) and its chunks.

    ``mtime`` and ``size`` are the stat values the chunks were computed from;
    a file is re-embedded only when either differs on disk.
    """

    doc_id: str
    kind: str
    title: str
    path: str = ""
    mtime: float = 0.0
    size: int = 0
    chunks: list[Chunk] = field(default_factory=list)
    updated_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "doc_id": self.doc_id,
            "kind": self.kind,
            "title": self.title,
            "path": self.path,
            "mtime": self.mtime,
            "size": self.size,
            "chunks": [c.to_dict() for c in self.chunks],
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DocumentRecord:
        raw_chunks = data.get("chunks")
        return cls(
            doc_id=str(data.get("doc_id", "")),
            kind=str(data.get("kind") or "file"),
            title=str(data.get("title") or ""),
            path=str(data.get("path") or ""),
            mtime=_float(data.get("mtime")),
            size=_int(data.get("size")),
            chunks=[
                Chunk.from_dict(c) for c in raw_chunks if isinstance(c, dict)
            ] if isinstance(raw_chunks, list) else [],
            updated_at=_int(data.get("updated_at")),
        )


@dataclass
class SourceIndex:
    """Per-source index: document records plus their flattened chunks.

    ``chunks`` is always the concatenation of each document's chunks in
    ``docs`` insertion order; call ``rebuild_chunks()`` after touching ``docs``.
    """

    docs: dict[str, DocumentRecord] = field(default_factory=dict)
    chunks: list[Chunk] = field(default_factory=list)
    updated_at: int = 0

    def rebuild_chunks(self) -> None:
        self.chunks = [c for doc in self.docs.values() for c in doc.chunks]

    def to_dict(self) -> dict[str, Any]:
        # The flat list is derived; only documents are persisted.
        return {
            "docs": {doc_id: doc.to_dict() for doc_id, doc in self.docs.items()},
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> SourceIndex:
        if not isinstance(data, dict):
            return cls()
        raw_docs = data.get("docs")
        docs: dict[str, DocumentRecord] = {}
        if isinstance(raw_docs, dict):
            for doc_id, raw in raw_docs.items():
                if isinstance(raw, dict):
                    doc = DocumentRecord.from_dict(raw)
                    doc.doc_id = doc.doc_id or str(doc_id)
                    docs[str(doc_id)] = doc
        idx = cls(docs=docs, updated_at=_int(data.get("updated_at")))
        idx.rebuild_chunks()
        return idx


@dataclass
class Store:
    """Root object holding every persisted entity.

    Attributes:
        sources: Registered sources.
        corpora: Named groups of source ids.
        selections: Thread id → selected corpora.
        index: Source id → SourceIndex.
        config: Retrieval configuration.
    """

    sources: list[Source] = field(default_factory=list)
    corpora: list[Corpus] = field(default_factory=list)
    selections: dict[str, Selection] = field(default_factory=dict)
    index: dict[str, SourceIndex] = field(default_factory=dict)
    config: RagConfig = field(default_factory=RagConfig)
    version: int = STORE_VERSION

    def get_source(self, source_id: str) -> Source | None:
        return next((s for s in self.sources if s.id == source_id), None)

    def get_corpus(self, corpus_id: str) -> Corpus | None:
        return next((c for c in self.corpora if c.id == corpus_id), None)

    def enabled_source_ids(self) -> set[str]:
        return {s.id for s in self.sources if s.enabled}

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "sources": [s.to_dict() for s in self.sources],
            "corpora": [c.to_dict() for c in self.corpora],
            "selections": {tid: sel.to_dict() for tid, sel in self.selections.items()},
            "index": {sid: idx.to_dict() for sid, idx in self.index.items()},
            "config": self.config.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_config: RagConfig | None = None) -> Store:
        """Shape a decoded store document, defaulting whatever is missing."""
        raw_sources = data.get("sources")
        raw_corpora = data.get("corpora")
        raw_selections = data.get("selections")
        raw_index = data.get("index")
        raw_config = data.get("config")

        if isinstance(raw_config, dict):
            config = RagConfig.from_dict(raw_config)
        else:
            config = default_config or RagConfig()

        return cls(
            sources=[
                Source.from_dict(s) for s in raw_sources if isinstance(s, dict)
            ] if isinstance(raw_sources, list) else [],
            corpora=[
                Corpus.from_dict(c) for c in raw_corpora if isinstance(c, dict)
            ] if isinstance(raw_corpora, list) else [],
            selections={
                str(tid): Selection.from_dict(sel) for tid, sel in raw_selections.items()
            } if isinstance(raw_selections, dict) else {},
            index={
                str(sid): SourceIndex.from_dict(idx) for sid, idx in raw_index.items()
            } if isinstance(raw_index, dict) else {},
            config=config,
            version=_int(data.get("version"), STORE_VERSION),
        )

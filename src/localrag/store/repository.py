"""Repository pattern for all localrag store mutations.

Single interface for: sources, corpora, conversation selections, config.
The Store is owned by the caller; the repository mutates it in place and
never persists anything. Validation happens before any mutation, so a
rejected request leaves the store unchanged.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from localrag.config import RagConfig
from localrag.store.models import SOURCE_KINDS, Corpus, Selection, Source, Store

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ValidationError(ValueError):
    """Raised when a request is malformed (bad kind, missing field...)."""


class NotFoundError(LookupError):
    """Raised when an update targets an id that is not in the store."""

    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} not found: '{item_id}'.")
        self.kind = kind
        self.item_id = item_id


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


def _dedupe(values: Iterable[Any] | None) -> list[str]:
    """Stringify and deduplicate *values*, keeping first occurrences."""
    return list(dict.fromkeys(str(v) for v in (values or [])))


class Repository:
    """Data access layer over an in-memory :class:`Store`.

    Args:
        store: The store to read and mutate. Persisting it is the caller's job.
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def list_sources(self) -> list[Source]:
        """Return all sources, most recently updated first."""
        return sorted(self._store.sources, key=lambda s: s.updated_at, reverse=True)

    def add_source(
        self,
        kind: str,
        label: str = "",
        path: str = "",
        note: str = "",
        enabled: bool = True,
    ) -> Source:
        """Register a new source.

        Args:
            kind: ``file``, ``folder`` or ``note``.
            label: Display label; required for notes, defaults to the path basename.
            path: Filesystem path; required for files and folders.
            note: Inline text (notes only).
            enabled: Whether the source takes part in indexing and retrieval.

        Raises:
            ValidationError: Unknown kind, missing path, or a note without label.
        """
        kind = str(kind or "file")
        label = str(label or "").strip()
        path = str(path or "")
        if kind not in SOURCE_KINDS:
            raise ValidationError(
                f"Invalid source kind '{kind}'. Use one of: {', '.join(SOURCE_KINDS)}."
            )
        if kind != "note" and not path:
            raise ValidationError(f"Missing path for {kind} source.")
        if kind == "note" and not label:
            raise ValidationError("Missing label for note.")

        ts = now_ms()
        source = Source(
            id=new_id("src"),
            kind=kind,
            label=label or Path(path).name,
            path=path,
            enabled=bool(enabled),
            created_at=ts,
            updated_at=ts,
            note=str(note or "") if kind == "note" else None,
        )
        self._store.sources.append(source)
        return source

    def update_source(
        self,
        source_id: str,
        label: str | None = None,
        enabled: bool | None = None,
        note: str | None = None,
    ) -> Source:
        """Update label, enabled flag and (for notes) text of a source.

        A blank label keeps the current one. ``None`` leaves a field as is.

        Raises:
            NotFoundError: No source with *source_id*.
        """
        source = self._store.get_source(str(source_id or ""))
        if source is None:
            raise NotFoundError("Source", str(source_id))

        if label is not None:
            source.label = str(label).strip() or source.label
        if enabled is not None:
            source.enabled = bool(enabled)
        if source.kind == "note" and note is not None:
            source.note = str(note)

        source.updated_at = now_ms()
        return source

    def delete_source(self, source_id: str) -> bool:
        """Delete a source, strip it from every corpus and drop its index.

        Returns:
            True if a source was removed.
        """
        sid = str(source_id or "")
        before = len(self._store.sources)
        self._store.sources = [s for s in self._store.sources if s.id != sid]

        for corpus in self._store.corpora:
            corpus.source_ids = [x for x in corpus.source_ids if x != sid]

        self._store.index.pop(sid, None)
        return len(self._store.sources) != before

    # ------------------------------------------------------------------
    # Corpora
    # ------------------------------------------------------------------

    def list_corpora(self) -> list[Corpus]:
        """Return all corpora sorted by name."""
        return sorted(self._store.corpora, key=lambda c: c.name.casefold())

    def upsert_corpus(
        self,
        name: str,
        source_ids: Iterable[str] | None = None,
        corpus_id: str | None = None,
    ) -> Corpus:
        """Create a corpus, or replace name and sources of an existing one.

        An unknown *corpus_id* creates a new corpus with a fresh id.

        Raises:
            ValidationError: Blank name.
        """
        name = str(name or "").strip()
        if not name:
            raise ValidationError("Corpus name is required.")
        unique = _dedupe(source_ids)

        corpus = self._store.get_corpus(str(corpus_id)) if corpus_id else None
        ts = now_ms()

        if corpus is None:
            corpus = Corpus(
                id=new_id("corpus"),
                name=name,
                source_ids=unique,
                created_at=ts,
                updated_at=ts,
            )
            self._store.corpora.append(corpus)
        else:
            corpus.name = name
            corpus.source_ids = unique
            corpus.updated_at = ts

        return corpus

    def delete_corpus(self, corpus_id: str) -> bool:
        """Delete a corpus and strip it from every conversation selection.

        Returns:
            True if a corpus was removed.
        """
        cid = str(corpus_id or "")
        before = len(self._store.corpora)
        self._store.corpora = [c for c in self._store.corpora if c.id != cid]

        for selection in self._store.selections.values():
            selection.corpus_ids = [x for x in selection.corpus_ids if x != cid]

        return len(self._store.corpora) != before

    # ------------------------------------------------------------------
    # Conversation selection
    # ------------------------------------------------------------------

    def get_selection(self, thread_id: str) -> list[str]:
        """Return a copy of the corpus ids selected for *thread_id*."""
        selection = self._store.selections.get(str(thread_id or ""))
        return list(selection.corpus_ids) if selection else []

    def set_selection(self, thread_id: str, corpus_ids: Iterable[str] | None) -> Selection:
        """Overwrite the corpus selection of *thread_id*.

        Raises:
            ValidationError: Blank thread id.
        """
        tid = str(thread_id or "")
        if not tid:
            raise ValidationError("threadId is required.")
        selection = Selection(corpus_ids=_dedupe(corpus_ids))
        self._store.selections[tid] = selection
        return selection

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def get_config(self) -> RagConfig:
        """Return a copy of the store config."""
        return RagConfig(**self._store.config.to_dict())

    def set_config(self, partial: dict[str, Any]) -> RagConfig:
        """Merge *partial* into the store config and return a copy.

        Raises:
            ConfigError: Unknown key or invalid value (nothing is applied).
        """
        self._store.config = self._store.config.merged(partial or {})
        return self.get_config()

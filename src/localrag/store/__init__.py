"""localrag store layer."""

from localrag.store.models import (
    Chunk,
    ChunkMeta,
    Corpus,
    DocumentRecord,
    Selection,
    Source,
    SourceIndex,
    Store,
)
from localrag.store.persistence import EncryptionUnavailableError, StoreFile, default_store
from localrag.store.repository import NotFoundError, Repository, ValidationError

__all__ = [
    "Chunk",
    "ChunkMeta",
    "Corpus",
    "DocumentRecord",
    "EncryptionUnavailableError",
    "NotFoundError",
    "Repository",
    "Selection",
    "Source",
    "SourceIndex",
    "Store",
    "StoreFile",
    "ValidationError",
    "default_store",
]

"""Fixtures for CLI tests: isolated settings, fake keyring, fake embeddings."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from localrag.app import RagApp
from localrag.store.persistence import StoreFile


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "rag-store.enc"


@pytest.fixture(autouse=True)
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, storage, store_path: Path):
    """Point the CLI at a temp store and an in-memory secure storage."""
    monkeypatch.setattr("localrag.config._GLOBAL_CONFIG_PATH", tmp_path / "config.yaml")
    monkeypatch.setattr("localrag.cli.context.default_secure_storage", lambda: storage)
    monkeypatch.setenv("LOCALRAG_STORE_PATH", str(store_path))
    for name in (
        "LOCALRAG_EMBEDDING_BASE_URL",
        "LOCALRAG_EMBEDDING_MODEL",
        "LOCALRAG_LOG_LEVEL",
        "LOCALRAG_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def seeded(store_path: Path, storage) -> RagApp:
    """A RagApp on the CLI's store file, for arranging state directly."""
    return RagApp(StoreFile(store_path, storage))


@pytest.fixture
def mock_litellm(fake_embed):
    """Patch litellm.embedding with the deterministic keyword embedder."""

    def _embedding(model, input, api_base):
        return SimpleNamespace(data=[{"embedding": fake_embed.vector(t)} for t in input])

    with patch("localrag.ingest.embedder.litellm.embedding", side_effect=_embedding) as m:
        yield m

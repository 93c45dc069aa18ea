"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from localrag.store.models import Store
from localrag.store.persistence import StoreFile
from localrag.store.secure_storage import DecryptionError

_PREFIX = b"enc:"


class FakeSecureStorage:
    """Reversible stand-in for the OS keyring: prefixes and reverses the text."""

    def __init__(self, available: bool = True) -> None:
        self.available = available

    def is_encryption_available(self) -> bool:
        return self.available

    def encrypt_string(self, plaintext: str) -> bytes:
        return _PREFIX + plaintext[::-1].encode("utf-8")

    def decrypt_string(self, ciphertext: bytes) -> str:
        if not ciphertext.startswith(_PREFIX):
            raise DecryptionError("bad ciphertext")
        return ciphertext[len(_PREFIX):].decode("utf-8")[::-1]


class FakeEmbedder:
    """Deterministic embedding: one axis per keyword, plus a constant axis.

    Texts mentioning "alpha" point along axis 0, "beta" along axis 1;
    anything else only has the small constant component.
    """

    KEYWORDS = ("alpha", "beta", "gamma")

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def __call__(self, base_url: str, model: str, texts: Sequence[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vector(t) for t in texts]

    @classmethod
    def vector(cls, text: str) -> list[float]:
        low = text.lower()
        return [float(low.count(k)) for k in cls.KEYWORDS] + [0.01]


@pytest.fixture
def storage() -> FakeSecureStorage:
    return FakeSecureStorage()


@pytest.fixture
def fake_embed() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def store_file(tmp_path, storage) -> StoreFile:
    return StoreFile(tmp_path / "rag-store.enc", storage)


@pytest.fixture
def store() -> Store:
    return Store()

"""Tests for the keyring-backed Fernet storage."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from cryptography.fernet import Fernet
from keyring.errors import NoKeyringError

from localrag.store.secure_storage import DecryptionError, KeyringFernetStorage


class _MemoryKeyring:
    def __init__(self) -> None:
        self.data: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, name: str) -> str | None:
        return self.data.get((service, name))

    def set_password(self, service: str, name: str, value: str) -> None:
        self.data[(service, name)] = value


@pytest.fixture
def memory_keyring():
    ring = _MemoryKeyring()
    with (
        patch("localrag.store.secure_storage.keyring.get_password", side_effect=ring.get_password),
        patch("localrag.store.secure_storage.keyring.set_password", side_effect=ring.set_password),
    ):
        yield ring


def test_generates_key_once_and_round_trips(memory_keyring) -> None:
    storage = KeyringFernetStorage(service="test-svc")
    assert storage.is_encryption_available() is True
    assert list(memory_keyring.data) == [("test-svc", "store-key")]

    token = storage.encrypt_string("secret text")
    assert b"secret" not in token
    assert storage.decrypt_string(token) == "secret text"

    # A second instance reads the same key.
    assert KeyringFernetStorage(service="test-svc").decrypt_string(token) == "secret text"


def test_wrong_key_raises_decryption_error(memory_keyring) -> None:
    other = Fernet(Fernet.generate_key()).encrypt(b"x")
    with pytest.raises(DecryptionError):
        KeyringFernetStorage().decrypt_string(other)


def test_no_keyring_backend_means_unavailable() -> None:
    with patch(
        "localrag.store.secure_storage.keyring.get_password",
        side_effect=NoKeyringError("no backend"),
    ):
        assert KeyringFernetStorage().is_encryption_available() is False


def test_corrupt_key_means_unavailable() -> None:
    with patch("localrag.store.secure_storage.keyring.get_password", return_value="not-a-key"):
        assert KeyringFernetStorage().is_encryption_available() is False

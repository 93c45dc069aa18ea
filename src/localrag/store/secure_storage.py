"""Platform secure-storage facility used to encrypt the store at rest.

The default implementation keeps a Fernet key in the OS keyring (macOS
Keychain, Windows Credential Locker, Secret Service on Linux). When no
usable keyring backend exists, encryption is reported as unavailable and
the store refuses to write.
"""

from __future__ import annotations

from typing import Protocol

import keyring
from cryptography.fernet import Fernet, InvalidToken
from keyring.errors import KeyringError
from loguru import logger

_SERVICE_NAME = "localrag"
_KEY_NAME = "store-key"


class DecryptionError(Exception):
    """Raised when ciphertext cannot be decrypted with the current key."""


class SecureStorage(Protocol):
    """Encrypts and decrypts strings with a platform-held secret."""

    def is_encryption_available(self) -> bool: ...

    def encrypt_string(self, plaintext: str) -> bytes: ...

    def decrypt_string(self, ciphertext: bytes) -> str: ...


class KeyringFernetStorage:
    """Fernet encryption with the key held in the OS keyring.

    The key is generated on first use and cached for the lifetime of the
    instance.

    Args:
        service: Keyring service name.
        key_name: Keyring entry holding the base64 Fernet key.
    """

    def __init__(self, service: str = _SERVICE_NAME, key_name: str = _KEY_NAME) -> None:
        self._service = service
        self._key_name = key_name
        self._fernet: Fernet | None = None

    def is_encryption_available(self) -> bool:
        try:
            self._get_fernet()
        except (KeyringError, ValueError) as exc:
            logger.warning(f"Secure storage unavailable: {exc}")
            return False
        return True

    def encrypt_string(self, plaintext: str) -> bytes:
        return self._get_fernet().encrypt(plaintext.encode("utf-8"))

    def decrypt_string(self, ciphertext: bytes) -> str:
        try:
            return self._get_fernet().decrypt(ciphertext).decode("utf-8")
        except InvalidToken as exc:
            raise DecryptionError("Store could not be decrypted with the keyring key.") from exc

    def _get_fernet(self) -> Fernet:
        if self._fernet is None:
            key = keyring.get_password(self._service, self._key_name)
            if not key:
                key = Fernet.generate_key().decode("ascii")
                keyring.set_password(self._service, self._key_name, key)
                logger.info(f"Generated a new store key in keyring service '{self._service}'")
            self._fernet = Fernet(key.encode("ascii"))
        return self._fernet

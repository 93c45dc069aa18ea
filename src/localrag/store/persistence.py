"""Encrypted store file: load snapshot → mutate in memory → atomic save.

The store is a single versioned JSON document, encrypted through a
:class:`SecureStorage`. Plaintext never touches the disk:

* load: encryption unavailable → a default store (no plaintext fallback)
* save: encryption unavailable → EncryptionUnavailableError
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from loguru import logger

from localrag.config import RagConfig
from localrag.store.models import STORE_VERSION, Store
from localrag.store.secure_storage import DecryptionError, SecureStorage


class EncryptionUnavailableError(RuntimeError):
    """Raised when the store would have to be written without encryption."""


def default_store(config: RagConfig | None = None) -> Store:
    """Return an empty store with *config* (or built-in defaults)."""
    return Store(config=config or RagConfig())


class StoreFile:
    """Encrypted on-disk location of one :class:`Store`.

    Args:
        path: Path of the encrypted store file.
        storage: Secure-storage facility doing the encryption.
        default_config: Config given to a freshly created store.
    """

    def __init__(
        self,
        path: Path | str,
        storage: SecureStorage,
        default_config: RagConfig | None = None,
    ) -> None:
        self.path = Path(path)
        self._storage = storage
        self._default_config = default_config or RagConfig()

    def _default(self) -> Store:
        return default_store(RagConfig(**self._default_config.to_dict()))

    def load(self) -> Store:
        """Read and decrypt the store, or return a default one.

        Never raises for a missing, unreadable or foreign file; those cases
        yield a default store and a log line.
        """
        if not self.path.exists():
            return self._default()

        if not self._storage.is_encryption_available():
            logger.warning("Encryption unavailable; refusing to load the store from disk")
            return self._default()

        try:
            raw = self.path.read_bytes()
            data = json.loads(self._storage.decrypt_string(raw))
        except (OSError, DecryptionError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning(f"Could not read store '{self.path}': {exc}")
            return self._default()

        if not isinstance(data, dict) or data.get("version") != STORE_VERSION:
            logger.warning(f"Store '{self.path}' has an unsupported version; starting fresh")
            return self._default()

        return Store.from_dict(data, default_config=self._default_config)

    def save(self, store: Store) -> None:
        """Encrypt *store* and atomically replace the file on disk.

        Raises:
            EncryptionUnavailableError: No secure-storage facility is usable.
        """
        if not self._storage.is_encryption_available():
            raise EncryptionUnavailableError(
                "Encryption is not available on this system; the store cannot be saved safely."
            )

        payload = self._storage.encrypt_string(json.dumps(store.to_dict()))

        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".store-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved store to {self.path} ({len(payload)} bytes)")

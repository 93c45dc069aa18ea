"""Shared plumbing for CLI commands: app construction and error mapping."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from localrag.app import RagApp
from localrag.cli.errors import (
    err_corpus_not_found,
    err_encryption_unavailable,
    err_invalid_config,
    err_invalid_request,
    err_source_not_found,
)
from localrag.config import ConfigError, load_settings
from localrag.store.persistence import EncryptionUnavailableError
from localrag.store.repository import NotFoundError, ValidationError
from localrag.store.secure_storage import KeyringFernetStorage, SecureStorage

console = Console()

StoreOption = Annotated[
    Path | None,
    typer.Option("--store", help="Path to the encrypted store (default from settings)."),
]


def default_secure_storage() -> SecureStorage:
    return KeyringFernetStorage()


def build_app(store: Path | None = None) -> RagApp:
    """Build a RagApp from settings, honouring a ``--store`` override."""
    try:
        settings = load_settings()
    except ConfigError as exc:
        console.print(err_invalid_config(str(exc)))
        raise typer.Exit(1) from exc
    if store is not None:
        settings.store_path = store
    return RagApp.from_settings(settings, storage=default_secure_storage())


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn whole-operation failures into actionable messages and exit 1."""
    try:
        yield
    except EncryptionUnavailableError:
        console.print(err_encryption_unavailable())
        raise typer.Exit(1) from None
    except NotFoundError as exc:
        if exc.kind == "Corpus":
            console.print(err_corpus_not_found(exc.item_id))
        else:
            console.print(err_source_not_found(exc.item_id))
        raise typer.Exit(1) from None
    except ConfigError as exc:
        console.print(err_invalid_config(str(exc)))
        raise typer.Exit(1) from None
    except ValidationError as exc:
        console.print(err_invalid_request(str(exc)))
        raise typer.Exit(1) from None

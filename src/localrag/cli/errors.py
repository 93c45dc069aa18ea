"""localrag rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from localrag.cli.errors import err_encryption_unavailable
    console.print(err_encryption_unavailable())
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_encryption_unavailable() -> str:
    """No usable keyring backend, so the store cannot be written encrypted."""
    return (
        "[red]Error:[/] Encryption is not available on this system.\n"
        "  The RAG store is only ever written encrypted; nothing was saved.\n"
        "  Install or unlock a keyring backend (Keychain, Credential Locker,\n"
        "  Secret Service) and retry.  Check with:  keyring --list-backends"
    )


def err_source_not_found(source_id: str) -> str:
    return (
        f"[yellow]Source not found:[/] '{source_id}' is not registered.\n"
        "  Run:  localrag source list  to see all sources."
    )


def err_corpus_not_found(corpus_id: str) -> str:
    return (
        f"[yellow]Corpus not found:[/] '{corpus_id}' does not exist.\n"
        "  Run:  localrag corpus list  to see all corpora."
    )


def err_invalid_request(message: str) -> str:
    """A request failed validation before anything was changed."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Nothing was changed. Run the command with --help for usage."
    )


def err_invalid_config(message: str) -> str:
    return (
        f"[red]Error:[/] Invalid configuration: {message}\n"
        "  Run:  localrag config show  to see current values."
    )


def err_embedding_failed(base_url: str, model: str, message: str) -> str:
    """The embedding service could not embed the query."""
    return (
        f"[red]Error:[/] Embedding failed: {message}\n"
        f"  Is the embedding service running at {base_url}?\n"
        f"  Start it and pull the model:  ollama serve && ollama pull {model}"
    )


def err_no_sources_to_index() -> str:
    return (
        "[red]Error:[/] No source ids given.\n"
        "  Pass one or more SOURCE_ID arguments, or use --all."
    )


def warn_no_corpora_selected() -> str:
    """Query without corpora: explicit ids or a thread selection are needed."""
    return (
        "[yellow]No corpora selected.[/] The context is empty.\n"
        "  Pass --corpus ID, or select corpora for a thread:\n"
        "    localrag select set <thread-id> --corpus <corpus-id>"
    )


def warn_reindex_needed() -> str:
    """Shown after a note is edited: its chunks are stale until re-indexed."""
    return (
        "[yellow]⚠[/] Indexed chunks may be out of date.\n"
        "  Run:  localrag index <source-id>"
    )

"""localrag config commands: show and partially update the store config."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.table import Table

from localrag.cli.context import StoreOption, build_app, cli_errors, console

config_app = typer.Typer(
    name="config",
    help="Show or change retrieval settings stored with the index.",
    add_completion=False,
)


@config_app.command("show")
def config_show_cmd(store: StoreOption = None) -> None:
    """Show the current retrieval configuration."""
    app = build_app(store)
    cfg = app.get_config()

    table = Table(title="Configuration", show_header=True, header_style="bold")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in cfg.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@config_app.command("set")
def config_set_cmd(
    base_url: Annotated[
        str | None, typer.Option("--base-url", help="Embedding service base URL.")
    ] = None,
    model: Annotated[str | None, typer.Option("--model", help="Embedding model name.")] = None,
    top_k: Annotated[int | None, typer.Option("--top-k", help="Chunks kept after scoring.")] = None,
    min_score: Annotated[
        float | None, typer.Option("--min-score", help="Minimum cosine similarity.")
    ] = None,
    chunk_max: Annotated[
        int | None, typer.Option("--chunk-max-chars", help="Chunk size upper bound.")
    ] = None,
    chunk_min: Annotated[
        int | None, typer.Option("--chunk-min-chars", help="Chunk size lower bound.")
    ] = None,
    chunk_overlap: Annotated[
        int | None, typer.Option("--chunk-overlap-chars", help="Overlap between chunks.")
    ] = None,
    max_context: Annotated[
        int | None, typer.Option("--max-context-chars", help="Context character budget.")
    ] = None,
    store: StoreOption = None,
) -> None:
    """Merge the given values into the stored configuration."""
    partial = {
        "embedding_base_url": base_url,
        "embedding_model": model,
        "top_k": top_k,
        "min_score": min_score,
        "chunk_max_chars": chunk_max,
        "chunk_min_chars": chunk_min,
        "chunk_overlap_chars": chunk_overlap,
        "max_context_chars": max_context,
    }
    partial = {k: v for k, v in partial.items() if v is not None}
    if not partial:
        console.print("[yellow]Nothing to change.[/] Pass at least one option (see --help).")
        raise typer.Exit(0)

    app = build_app(store)
    with cli_errors():
        cfg = app.set_config(partial)

    for key in partial:
        console.print(f"[green]✓[/] {key} = {getattr(cfg, key)}")
    if {"embedding_model", "chunk_max_chars", "chunk_min_chars", "chunk_overlap_chars"} & set(
        partial
    ):
        console.print(
            "[yellow]⚠[/] Existing chunks keep the old settings.\n"
            "  Unchanged files are skipped on re-index; notes pick them up on the next run."
        )

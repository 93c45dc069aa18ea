"""localrag query: retrieve a citation-annotated context for a question."""

from __future__ import annotations

import json
from typing import Annotated

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from localrag.cli.context import StoreOption, build_app, cli_errors, console
from localrag.cli.errors import err_embedding_failed, warn_no_corpora_selected
from localrag.ingest.embedder import EmbeddingError


def query_cmd(
    text: Annotated[str, typer.Argument(help="Question to retrieve context for.")],
    corpus: Annotated[
        list[str] | None,
        typer.Option("--corpus", "-c", help="Corpus id (repeatable). Overrides --thread."),
    ] = None,
    thread: Annotated[
        str | None,
        typer.Option("--thread", "-t", help="Use the corpora selected for this thread."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON."),
    ] = False,
    store: StoreOption = None,
) -> None:
    """Build the context a language model would receive for TEXT."""
    app = build_app(store)
    with cli_errors():
        try:
            run = app.query(text, corpus_ids=corpus or None, thread_id=thread)
        except EmbeddingError as exc:
            cfg = app.get_config()
            console.print(err_embedding_failed(cfg.embedding_base_url, cfg.embedding_model, str(exc)))
            raise typer.Exit(1) from None

    result = run.result
    if as_json:
        payload = {"corpus_ids": run.corpus_ids, **result.to_dict()}
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    if not run.corpus_ids:
        console.print(warn_no_corpora_selected())
        return

    if not result.sources:
        console.print("[yellow]No relevant chunks found.[/]")
        return

    console.print(Panel(Text(result.context), title="[bold]Context[/]", expand=False))

    table = Table(title="Sources", show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Path")
    for c in result.sources:
        table.add_row(str(c.n), f"{c.score:.3f}", escape(c.title), escape(c.path))
    console.print(table)

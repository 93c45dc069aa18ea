"""localrag CLI entry point."""

from __future__ import annotations

import importlib.metadata
from pathlib import Path
from typing import Annotated

import typer

from localrag.cli.config_cmd import config_app
from localrag.cli.corpora import corpus_app, select_app
from localrag.cli.index import index_cmd
from localrag.cli.query import query_cmd
from localrag.cli.sources import source_app
from localrag.cli.status import status_cmd
from localrag.config import ConfigError, Settings, load_settings
from localrag.utils.logger import setup_logger


def _version() -> str:
    try:
        return importlib.metadata.version("localrag")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"localrag {_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="localrag",
    help=(
        "localrag: local-only retrieval for a desktop assistant.\n\n"
        "  localrag index   Embed registered sources into the encrypted store.\n"
        "  localrag query   Build a citation-annotated context for a question."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Log level (default from settings: WARNING)."),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write logs to this file (rotated)."),
    ] = None,
) -> None:
    """localrag: local-only retrieval for a desktop assistant."""
    try:
        settings = load_settings()
    except ConfigError:
        # Reported by the command itself; log with defaults meanwhile.
        settings = Settings()
    level = (log_level or settings.log_level).upper()
    setup_logger(level, log_file=log_file or settings.log_file)


app.add_typer(source_app, name="source")
app.add_typer(corpus_app, name="corpus")
app.add_typer(select_app, name="select")
app.add_typer(config_app, name="config")
app.command("index")(index_cmd)
app.command("query")(query_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed localrag version."""
    typer.echo(f"localrag {_version()}")


if __name__ == "__main__":
    app()

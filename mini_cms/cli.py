"""
Command-line interface for Mini CMS.

Uses Typer to provide commands for serving the site and inspecting the
article store. Supports loading .env files for the admin password.
"""

from __future__ import annotations

from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .config import AppConfig, load_config
from .repository import Repository
from .storage.index import ArticleIndex
from .storage.record_store import RecordStore
from .utils.logging import setup_logging

app = typer.Typer(add_completion=False)
console = Console()


def _load(config: Path | None, articles_dir: Path | None) -> AppConfig:
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    if articles_dir is not None:
        cfg.store.articles_dir = str(articles_dir)
    return cfg


def _open_repository(cfg: AppConfig) -> Repository:
    store = RecordStore(Path(cfg.store.articles_dir))
    return Repository(store, ArticleIndex(store))


@app.command()
def serve(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    host: str | None = typer.Option(None, "--host", help="Interface to bind."),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to listen on."),
    articles_dir: Path | None = typer.Option(
        None, "--articles-dir", "-a", help="Directory holding article records."
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    debug: bool | None = typer.Option(None, "--debug/--no-debug", help="Run Flask in debug mode."),
):
    """Serve the site and admin editor over HTTP.

    Args:
        config: Optional path to YAML config file
        host: Override bind interface
        port: Override listen port
        articles_dir: Override the articles directory
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        debug: Enable/disable Flask debug mode
    """
    from .web import create_app

    cfg = _load(config, articles_dir)
    if host:
        cfg.server.host = host
    if port is not None:
        cfg.server.port = port
    if log_level:
        cfg.logging.level = log_level
    if debug is not None:
        cfg.server.debug = debug

    logger = setup_logging(cfg.logging)
    flask_app = create_app(cfg)
    logger.info(
        "Serving %s on %s:%s",
        cfg.store.articles_dir,
        cfg.server.host,
        cfg.server.port,
        extra={"event": "server_started"},
    )
    flask_app.run(host=cfg.server.host, port=cfg.server.port, debug=cfg.server.debug)


@app.command("list")
def list_articles(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    articles_dir: Path | None = typer.Option(None, "--articles-dir", "-a"),
):
    """Print the article index, oldest first."""
    cfg = _load(config, articles_dir)
    repository = _open_repository(cfg)
    repository.load()

    table = Table(title=f"Articles in {cfg.store.articles_dir}")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Created")
    table.add_column("Updated")
    for article in repository.articles():
        table.add_row(
            article.title,
            article.author,
            article.created.strftime("%Y-%m-%d %H:%M"),
            article.updated.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def check(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    articles_dir: Path | None = typer.Option(None, "--articles-dir", "-a"),
):
    """Read every record and report the ones that cannot be loaded."""
    cfg = _load(config, articles_dir)
    repository = _open_repository(cfg)
    issues = repository.load()

    if not issues:
        console.print(f"All {len(repository.articles())} records OK")
        return
    for issue in issues:
        console.print(f"[red]{issue.key}[/red]: {issue.error}")
    console.print(f"{len(issues)} unreadable record(s)")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()

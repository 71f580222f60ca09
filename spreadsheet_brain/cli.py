import logging

import typer
import uvicorn

from .api import create_app
from .brain import SpreadsheetBrain
from .config import Settings
from .errors import SnapshotFetchError
from .llm import CommandTranslator
from .query_engine import ask as ask_question
from .shell import CommandShell
from .sources import XlsxSnapshotSource
from .sync_watch import LiveSync, watch as watch_main

cli = typer.Typer(help="🧠 Spreadsheet-Brain CLI")

_settings = Settings()


@cli.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging.")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else _settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _brain(xlsx: str) -> SpreadsheetBrain:
    brain = SpreadsheetBrain(XlsxSnapshotSource(), xlsx)
    try:
        brain.reload()
    except SnapshotFetchError as e:
        typer.echo(f"❌  {e}", err=True)
        raise typer.Exit(1)
    return brain


def _print_cells(title: str, cells: set[str], empty: str):
    if not cells:
        typer.echo(empty)
        return
    typer.echo(title)
    for c in sorted(cells):
        typer.echo(f"  {c}")


@cli.command()
def load(xlsx: str = typer.Argument(_settings.SPREADSHEET_PATH)):
    """One-shot: parse spreadsheet & print the graph summary."""
    brain = _brain(xlsx)
    typer.echo("✅  Graph loaded")
    typer.echo(str(brain.summary()))


@cli.command()
def impact(xlsx: str, cell: str):
    """Print all dependents of CELL."""
    brain = _brain(xlsx)
    _print_cells(f"Cells affected by {cell}:", brain.dependents_of(cell),
                 f"No cells are affected by changes to {cell}")


@cli.command()
def deps(xlsx: str, cell: str):
    """Print everything CELL depends on."""
    brain = _brain(xlsx)
    _print_cells(f"Dependencies of {cell}:", brain.dependencies_of(cell),
                 f"No dependencies found for {cell}")


@cli.command()
def formulas(xlsx: str):
    """List all formula cells."""
    brain = _brain(xlsx)
    for c in brain.formula_cells():
        typer.echo(f"{c.id}: {c.formula}")


@cli.command()
def ask(xlsx: str, question: str):
    """Ask a natural-language question about XLSX."""
    brain = _brain(xlsx)
    result = ask_question(question, brain, CommandTranslator(_settings))
    typer.echo(result.message)
    if not result.success:
        raise typer.Exit(1)


@cli.command()
def shell(
    xlsx: str = typer.Argument(_settings.SPREADSHEET_PATH),
    live_sync: bool = typer.Option(False, help="Reload in the background when the file changes."),
    interval: float = typer.Option(_settings.REFRESH_INTERVAL, help="Live-sync poll interval (seconds)."),
):
    """Interactive command loop."""
    brain = _brain(xlsx)
    typer.echo(str(brain.summary()))
    sync = None
    if live_sync:
        sync = LiveSync(brain, interval)
        sync.start()
    try:
        CommandShell(brain, CommandTranslator(_settings)).run(write=typer.echo)
    finally:
        if sync is not None:
            sync.stop()


@cli.command()
def watch(
    xlsx: str = typer.Argument(_settings.SPREADSHEET_PATH),
    notify_url: str = typer.Option(_settings.NOTIFY_URL),
):
    """Watch XLSX and reload on every save."""
    brain = _brain(xlsx)
    watch_main(brain, xlsx, notify_url or None)


@cli.command()
def api(
    xlsx: str = typer.Argument(_settings.SPREADSHEET_PATH),
    host: str = "0.0.0.0",
    port: int = 8000,
    live_sync: bool = typer.Option(True, help="Poll the file and push reload events."),
    interval: float = typer.Option(_settings.REFRESH_INTERVAL),
):
    """Launch REST API."""
    brain = _brain(xlsx)
    app = create_app(brain, CommandTranslator(_settings))
    if live_sync:
        LiveSync(brain, interval, on_reload=app.state.update_listeners.broadcast).start()
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()

"""Entrypoint for the command line interface."""

import asyncio
import logging
from typing import Iterable, Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table
from rich.text import Text

from linkaudit.analysis import create_client
from linkaudit.config import settings
from linkaudit.config_logging import configure_logging
from linkaudit.entries.models import URLEntry, URLStatus
from linkaudit.entries.storage import create_storage
from linkaudit.entries.storage.none import NoStorage
from linkaudit.entries.store import EntryStore
from linkaudit.exceptions import StorageError
from linkaudit.metrics import configure_metrics, shutdown_metrics
from linkaudit.processing.service import QueueService

logger = logging.getLogger(__name__)

console = Console()

cli = typer.Typer(no_args_is_help=True, add_completion=False)

backend_option = typer.Option(
    None,
    "--backend",
    help="Analysis backend to use: `http` or `fake`. Defaults to the configured one.",
)

delay_option = typer.Option(
    None,
    "--delay",
    min=0.0,
    help="Seconds to wait between two analyses. Defaults to the configured delay.",
)


@cli.callback()
def setup():
    """CLI Entrypoint"""
    configure_logging()


@cli.command()
def analyze(
    urls: list[str] = typer.Argument(..., help="URLs to analyze"),
    backend: Optional[str] = backend_option,
    delay: Optional[float] = delay_option,
):
    """Analyze URLs in process and print the results.

    Exits with 1 if any analysis failed and with 2 if any URL is invalid.
    """
    try:
        results = asyncio.run(_analyze(urls, backend, delay))
    except ValueError as exc:
        # Invalid URLs or an unknown backend.
        console.print(str(exc), style="red", markup=False)
        raise typer.Exit(code=2)

    console.print(_entries_table(results, title="Analysis results"))
    if any(entry.status == URLStatus.ERROR for entry in results):
        raise typer.Exit(code=1)


async def _analyze(
    urls: list[str], backend: str | None, delay: float | None
) -> list[URLEntry]:
    client = create_client(backend)
    await configure_metrics()
    store = EntryStore(NoStorage())
    service = QueueService(store=store, client=client, inter_job_delay=delay)
    try:
        submitted = service.submit(urls)
        await service.wait_idle()
    finally:
        await client.close()
        await shutdown_metrics()

    return [entry for submission in submitted if (entry := store.get(submission.id))]


@cli.command()
def entries(
    status: Optional[URLStatus] = typer.Option(None, "--status", help="Only list this status"),
):
    """List the persisted entries of the configured storage."""
    try:
        stored = asyncio.run(_load_entries())
    except StorageError as exc:
        console.print(f"Failed to load entries: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)

    if status is not None:
        stored = [entry for entry in stored if entry.status == status]
    console.print(_entries_table(stored, title=f"Entries ({settings.entries.storage})"))


async def _load_entries() -> list[URLEntry]:
    storage = create_storage()
    try:
        return await storage.load()
    finally:
        await storage.close()


@cli.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", help="Port to bind"),
):
    """Run the API server."""
    uvicorn.run("linkaudit.main:app", host=host, port=port, proxy_headers=True)


def _entries_table(entries: Iterable[URLEntry], title: str) -> Table:
    table = Table(title=title)
    table.add_column("URL", overflow="fold")
    table.add_column("Status")
    table.add_column("Title", overflow="fold")
    table.add_column("HTML")
    table.add_column("Internal", justify="right")
    table.add_column("External", justify="right")
    table.add_column("Broken", justify="right")
    table.add_column("Login form")
    table.add_column("Error", overflow="fold")
    for entry in entries:
        table.add_row(
            Text(entry.url),
            entry.status.value,
            Text(entry.title),
            entry.html_version,
            str(entry.internal_links),
            str(entry.external_links),
            str(entry.broken_links),
            "yes" if entry.has_login_form else "no",
            Text(entry.error_message or ""),
        )
    return table


if __name__ == "__main__":
    cli()

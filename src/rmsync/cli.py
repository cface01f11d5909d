"""Command-line interface for rmsync."""

import sys
import click
from pathlib import Path
from loguru import logger
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.progress import Progress, SpinnerColumn, TextColumn

from rmsync.config import Config, DeviceSettings
from rmsync.document import SyncRequest
from rmsync.errors import RmSyncError
from rmsync.platforms.xochitl import MetadataStore
from rmsync.platforms.web import ContentFetcher
from rmsync.platforms.tablet import TabletClient
from rmsync.sync_engine import SyncEngine

console = Console()

LOG_DIR = Path.home() / ".rmsync" / "logs"

LEVEL_STYLES = {
    "DEBUG": "dim",
    "INFO": "blue",
    "SUCCESS": "green",
    "WARNING": "yellow",
    "ERROR": "red bold",
}


def rich_sink(message):
    """Print a loguru record on the shared console, styled by level."""
    record = message.record
    level = record["level"].name
    style = LEVEL_STYLES.get(level, "white")
    line = Text.assemble(
        (record["time"].strftime("%H:%M:%S"), "green"),
        " | ",
        (f"{level: <8}", style),
        " | ",
        record["message"],
    )
    console.print(line, highlight=False)


def setup_logging(verbose: bool = False):
    """Route loguru to the console and a rotating daily log file."""
    logger.remove()  # Remove default handler

    if verbose:
        logger.add(
            sys.stderr,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
            level="DEBUG"
        )
    else:
        logger.add(rich_sink, level="INFO")

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.add(
        LOG_DIR / "rmsync_{time:YYYY-MM-DD}.log",
        rotation="1 day",
        retention="7 days",
        level="DEBUG"
    )
    logger.debug("Verbose logging enabled" if verbose else "Logging configured")


def parse_pair(pair: str) -> SyncRequest:
    """Turn a NAME=URL argument into a SyncRequest."""
    name, sep, url = pair.partition('=')
    if not sep or not name or not url:
        raise click.BadParameter(f"Expected NAME=URL, got: {pair}")
    return SyncRequest(name=name, source_url=url)


def make_store(device: DeviceSettings) -> MetadataStore:
    return MetadataStore(device.base_path, device.metadata_extension, device.content_extension)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def cli(verbose):
    """rmsync - Push missing documents onto a reMarkable tablet"""
    setup_logging(verbose)


@cli.command()
def init():
    """Configure tablet storage location and upload endpoint"""
    console.print("[bold cyan]rmsync Setup[/bold cyan]\n")

    config = Config()
    current = config.get_device()

    base_dir = click.prompt("Tablet document directory", default=current.base_dir)
    upload_url = click.prompt("Tablet upload URL", default=current.upload_url)
    timeout = click.prompt("Network timeout (seconds)", default=current.timeout, type=float)

    config.save_device(DeviceSettings(
        base_dir=base_dir,
        upload_url=upload_url,
        timeout=timeout,
        metadata_extension=current.metadata_extension,
        content_extension=current.content_extension,
    ))

    console.print(f"\n[green]✓ Configuration saved to {config.config_file}[/green]")


@cli.command()
def config_show():
    """Show current configuration"""
    config = Config()

    if not config.exists():
        console.print("[yellow]No configuration found, using defaults. Run 'rmsync init' to change them.[/yellow]\n")

    device = config.get_device()
    console.print("[bold]Device:[/bold]")
    console.print(f"  Document directory: {device.base_dir}")
    console.print(f"  Upload URL: {device.upload_url}")
    console.print(f"  Timeout: {device.timeout:g}s")

    console.print("\n[bold]Documents:[/bold]")
    documents = config.list_documents()
    if documents:
        for doc in documents:
            console.print(f"  • {doc.name}: {doc.source_url}")
    else:
        console.print("  No documents configured")


@cli.command()
@click.argument('name')
@click.argument('url')
def doc_add(name, url):
    """Add a document to the desired list"""
    config = Config()
    existing = config.get_document(name)
    config.add_document(SyncRequest(name=name, source_url=url))

    if existing:
        console.print(f"[green]✓ Document '{name}' updated[/green] [dim](was {existing.source_url})[/dim]")
    else:
        console.print(f"[green]✓ Document '{name}' added[/green]")


@cli.command()
@click.argument('name')
def doc_remove(name):
    """Remove a document from the desired list"""
    config = Config()
    if config.remove_document(name):
        console.print(f"[green]✓ Document '{name}' removed[/green]")
    else:
        console.print(f"[yellow]Document not found: {name}[/yellow]")


@cli.command()
def doc_list():
    """List documents in the desired list"""
    config = Config()
    documents = config.list_documents()

    if not documents:
        console.print("[yellow]No documents configured. Use 'doc-add' to add one.[/yellow]")
        return

    table = Table(title="Desired Documents")
    table.add_column("Name", style="cyan")
    table.add_column("Source URL", style="blue")

    for doc in documents:
        table.add_row(doc.name, doc.source_url)

    console.print(table)


@cli.command()
def collections():
    """List collections (folders) on the tablet"""
    store = make_store(Config().get_device())

    try:
        found = store.list_collections()
    except RmSyncError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise click.Abort()

    table = Table(title=f"Collections ({len(found)})")
    table.add_column("Name", style="cyan")
    table.add_column("Metadata file", style="dim")

    for item in found:
        table.add_row(item.display_name, str(item.path))

    console.print(table)


@cli.command()
def documents():
    """List documents present on the tablet"""
    store = make_store(Config().get_device())

    try:
        found = store.list_documents()
    except RmSyncError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise click.Abort()

    table = Table(title=f"Documents ({len(found)})")
    table.add_column("Name", style="cyan")
    table.add_column("Content file", style="dim")

    for item in found:
        table.add_row(item.display_name, str(item.path))

    console.print(table)


@cli.command()
@click.argument('filepath', type=click.Path(exists=True, dir_okay=False))
@click.option('--name', '-n', help='Filename to upload as (defaults to the file name)')
def upload(filepath, name):
    """
    Upload a local file to the tablet

    Examples:
        rmsync upload paper.pdf
        rmsync upload ./downloads/x1.pdf --name "Reading List"
    """
    device = Config().get_device()
    filepath = Path(filepath)
    filename = name or filepath.name

    try:
        with TabletClient(device.upload_url, timeout=device.timeout) as client, Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task(f"Uploading {filename}...", total=None)
            client.upload(filepath.read_bytes(), filename)
            progress.update(task, completed=True)
    except RmSyncError as e:
        console.print(f"[red]✗ Upload failed: {e}[/red]")
        raise click.Abort()

    console.print(f"[green]✓ Uploaded {filename}[/green]")


@cli.command()
@click.argument('pairs', nargs=-1)
def sync(pairs):
    """
    Upload every document the tablet does not have yet

    Takes NAME=URL pairs, or the configured document list when none are given.

    Examples:
        rmsync sync                                   # Uses configured documents
        rmsync sync "Paper=https://example.com/p.pdf"
    """
    config = Config()
    requests = [parse_pair(pair) for pair in pairs] if pairs else config.list_documents()

    if not requests:
        console.print("[yellow]Nothing to sync. Pass NAME=URL pairs or use 'doc-add'.[/yellow]")
        return

    device = config.get_device()

    try:
        with TabletClient(device.upload_url, timeout=device.timeout) as uploader, Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True  # Progress disappears when done, logs remain
        ) as progress:
            engine = SyncEngine(make_store(device), ContentFetcher(timeout=device.timeout), uploader)
            task = progress.add_task(f"Syncing {len(requests)} documents...", total=None)
            report = engine.sync(requests)
            progress.update(task, completed=True)
    except RmSyncError as e:
        logger.debug("Sync aborted: {}", e)
        console.print(f"\n[red]✗ Sync failed: {e}[/red]")
        raise click.Abort()

    for name in report.uploaded:
        console.print(f"  [green]↑ {name}[/green]")
    console.print(f"[green]✓ {report.upload_count} uploaded[/green], "
                  f"[dim]{len(report.skipped)} already on tablet[/dim]")


def main():
    cli()


if __name__ == '__main__':
    main()

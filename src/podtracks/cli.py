"""CLI entry point for Podtracks."""

import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from podtracks.catalog.dedup import DeduplicationEngine
from podtracks.catalog.store import CatalogStore
from podtracks.config.logging import set_level, setup_logging
from podtracks.config.manager import ConfigManager
from podtracks.config.schema import GlobalConfig
from podtracks.directory.client import DirectoryClient
from podtracks.directory.resolver import DirectoryResolver
from podtracks.feeds.extractor import RemoteItemExtractor
from podtracks.feeds.fetcher import FeedFetcher, load_source
from podtracks.feeds.origin import OriginFeedResolver
from podtracks.pipeline.models import RunSummary
from podtracks.pipeline.resolver import ReferenceResolver
from podtracks.pipeline.scheduler import BatchScheduler
from podtracks.utils.api_keys import APIKeyError, mask_secret
from podtracks.utils.duration import format_duration
from podtracks.utils.errors import ConfigError, PodtracksError

EXIT_ERROR = 1
EXIT_ABORTED = 2

app = typer.Typer(
    name="podtracks",
    help="Resolve Podcasting 2.0 remote items into a deduplicated music catalog",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"
    ),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file"
    ),
    config_dir: Path | None = typer.Option(
        None, "--config-dir", help="Use this directory instead of the default config dir"
    ),
) -> None:
    """Podtracks - Podcasting 2.0 playlist resolution."""
    # Initialize logging before any command runs
    setup_logging(verbose=verbose, log_file=log_file)
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir
    ctx.obj["verbose"] = verbose


def _manager(ctx: typer.Context) -> ConfigManager:
    return ConfigManager((ctx.obj or {}).get("config_dir"))


def _load_config(ctx: typer.Context, manager: ConfigManager) -> GlobalConfig:
    """Load config and apply its log level unless --verbose was given."""
    config = manager.load_config()
    set_level(config.log_level, verbose=(ctx.obj or {}).get("verbose", False))
    return config


def _catalog_store(manager: ConfigManager, config: GlobalConfig, catalog: Path | None) -> CatalogStore:
    path = catalog.expanduser() if catalog is not None else manager.catalog_path(config)
    return CatalogStore(
        path,
        backup_dir=manager.backup_dir(config, path),
        max_backups=config.catalog.max_backups,
    )


def _fail(message: str, code: int = EXIT_ERROR) -> None:
    console.print(f"[red]✗[/red] {message}")
    sys.exit(code)


def _print_summary(summary: RunSummary) -> None:
    table = Table(title="[bold]Resolution Summary[/bold]", show_header=False, box=None, padding=(0, 2))
    table.add_column("Outcome", style="bold")
    table.add_column("Count", style="white", justify="right")

    table.add_row("References", str(summary.total))
    table.add_row("[green]Resolved[/green]", str(summary.resolved))
    table.add_row("[cyan]Upgraded[/cyan]", str(summary.upgraded))
    table.add_row("[magenta]Duplicate[/magenta]", str(summary.duplicate))
    table.add_row("[yellow]Still unresolved[/yellow]", str(summary.unresolved))
    table.add_row("[dim]Skipped (already done)[/dim]", str(summary.skipped))
    if summary.rate_limit_pauses:
        table.add_row("Rate-limit pauses", str(summary.rate_limit_pauses))

    console.print()
    console.print(table)

    if summary.aborted:
        console.print(f"\n[red]✗[/red] Run stopped early: {summary.abort_reason}")
        console.print("[dim]  Progress was saved; run the same command again to resume.[/dim]")
    else:
        console.print("\n[green]✓[/green] Run complete")


@app.command("version")
def show_version() -> None:
    """Show version information."""
    from podtracks import __version__

    console.print(f"[bold cyan]Podtracks[/bold cyan] v{__version__}")


@app.command("resolve")
def resolve_command(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Playlist feed URL or local file"),
    catalog: Path | None = typer.Option(None, "--catalog", "-c", help="Catalog file"),
    playlist: str | None = typer.Option(
        None, "--playlist", "-p", help="Label stored on new tracks (default: playlist title)"
    ),
    batch_size: int | None = typer.Option(
        None, "--batch-size", min=1, max=50, help="References per batch"
    ),
    force: bool = typer.Option(False, "--force", help="Re-resolve already resolved tracks"),
) -> None:
    """Resolve a playlist's remote items into the catalog.

    Progress is saved after every batch. If the run stops early (rate
    limits, bad credentials) it can simply be run again.

    Examples:
        podtracks resolve https://example.com/playlist.xml

        podtracks resolve ./playlist.xml --catalog ./music-tracks.json --force
    """
    try:
        manager = _manager(ctx)
        config = _load_config(ctx, manager)
        if batch_size is not None:
            config.batch.batch_size = batch_size

        fetcher = FeedFetcher(config.fetch, config.retry)
        fetched = load_source(source, fetcher)
        if not fetched.ok:
            _fail(f"Could not fetch {source}: {fetched.error}")

        extraction = RemoteItemExtractor().extract(fetched.body)
        for diagnostic in extraction.diagnostics:
            console.print(f"[yellow]![/yellow] {diagnostic}")
        if not extraction.references:
            console.print("[yellow]No remote items found.[/yellow]")
            return

        console.print(
            f"Found [bold]{len(extraction.references)}[/bold] remote item(s)"
            + (f" in [cyan]{extraction.title}[/cyan]" if extraction.title else "")
        )

        client = DirectoryClient(config.directory, config.retry)
        resolver = ReferenceResolver(
            DirectoryResolver(client, config.directory.episode_scan_limit),
            OriginFeedResolver(fetcher),
        )
        store = _catalog_store(manager, config, catalog)
        scheduler = BatchScheduler(config.batch, config.rate_limit_backoff, resolver, store)

        summary = scheduler.run(
            extraction.references,
            playlist=playlist or extraction.title,
            force=force,
        )
        _print_summary(summary)
        console.print(f"[dim]  Catalog: {store.path}[/dim]")
        if summary.aborted:
            sys.exit(EXIT_ABORTED)

    except (ConfigError, APIKeyError) as e:
        _fail(str(e))
    except PodtracksError as e:
        _fail(f"Error: {e}")


@app.command("extract")
def extract_command(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Playlist feed URL or local file"),
) -> None:
    """List the remote items a playlist declares, without resolving them."""
    try:
        config = _load_config(ctx, _manager(ctx))
        fetched = load_source(source, FeedFetcher(config.fetch, config.retry))
        if not fetched.ok:
            _fail(f"Could not fetch {source}: {fetched.error}")

        extraction = RemoteItemExtractor().extract(fetched.body)

        table = Table(title=f"[bold]{extraction.title or 'Remote Items'}[/bold]")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Feed GUID", style="cyan")
        table.add_column("Item GUID", style="blue")
        table.add_column("Medium", style="green")
        table.add_column("Split", style="yellow")

        for reference in extraction.references:
            split = reference.time_split
            table.add_row(
                str(reference.declared_order + 1),
                reference.feed_guid,
                reference.item_guid,
                reference.medium or "",
                f"{format_duration(int(split.start_seconds))} +{format_duration(int(split.duration_seconds))}"
                if split
                else "",
            )

        console.print(table)
        for diagnostic in extraction.diagnostics:
            console.print(f"[yellow]![/yellow] {diagnostic}")
        console.print(f"\n[bold]Total:[/bold] {len(extraction.references)} remote item(s)")

    except PodtracksError as e:
        _fail(f"Error: {e}")


@app.command("status")
def status_command(
    ctx: typer.Context,
    catalog: Path | None = typer.Option(None, "--catalog", "-c", help="Catalog file"),
) -> None:
    """Show catalog counts."""
    try:
        manager = _manager(ctx)
        config = _load_config(ctx, manager)
        store = _catalog_store(manager, config, catalog)
        snapshot = store.load()
        metadata = snapshot.refresh_metadata()

        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="white")

        table.add_row("Catalog", str(store.path))
        table.add_row("Tracks", str(metadata.total_tracks))
        table.add_row("Resolved", str(metadata.resolved_count))
        table.add_row("Pending", str(metadata.pending_count))
        table.add_row("Superseded", str(metadata.superseded_count))
        table.add_row("Backups", str(len(store.backups())))
        last_run = metadata.last_run or {}
        if last_run:
            state = "aborted" if last_run.get("aborted") else "completed"
            table.add_row(
                "Last run",
                f"{state}: {last_run.get('resolved', 0)} resolved, "
                f"{last_run.get('unresolved', 0)} unresolved",
            )

        console.print("\n[bold]Catalog Status[/bold]\n")
        console.print(table)

    except PodtracksError as e:
        _fail(f"Error: {e}")


@app.command("dedupe")
def dedupe_command(
    ctx: typer.Context,
    catalog: Path | None = typer.Option(None, "--catalog", "-c", help="Catalog file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be folded"),
) -> None:
    """Fold duplicate tracks already in the catalog.

    Retired tracks are kept with a ``supersededBy`` pointer to the keeper.
    """
    try:
        manager = _manager(ctx)
        config = _load_config(ctx, manager)
        store = _catalog_store(manager, config, catalog)
        snapshot = store.load()

        decisions = DeduplicationEngine().consolidate(snapshot)
        if not decisions:
            console.print("[green]✓[/green] No duplicates found")
            return

        table = Table(title="[bold]Duplicates[/bold]")
        table.add_column("Keeper", style="cyan")
        table.add_column("Title", style="white")
        table.add_column("Retired", style="yellow")
        table.add_column("Filled", style="green")
        for decision in decisions:
            table.add_row(
                decision.track.id,
                decision.track.title,
                ", ".join(track.id for track in decision.retired),
                ", ".join(decision.changed_fields),
            )
        console.print(table)

        retired = sum(len(decision.retired) for decision in decisions)
        if dry_run:
            console.print(f"\n[dim]Dry run: {retired} track(s) would be retired[/dim]")
            return

        store.save(snapshot)
        console.print(f"\n[green]✓[/green] Retired {retired} duplicate track(s)")

    except PodtracksError as e:
        _fail(f"Error: {e}")


@app.command("search")
def search_command(
    ctx: typer.Context,
    term: str = typer.Argument(..., help="Search term"),
    max_results: int = typer.Option(10, "--max", "-n", min=1, max=100, help="Maximum results"),
) -> None:
    """Search the podcast directory by free text (discovery aid)."""
    try:
        config = _load_config(ctx, _manager(ctx))
        client = DirectoryClient(config.directory, config.retry)
        feeds = client.search_by_term(term, max_results)

        if not feeds:
            console.print(f"[yellow]No feeds found for '{term}'[/yellow]")
            return

        table = Table(title=f"[bold]Directory results for '{term}'[/bold]")
        table.add_column("Title", style="cyan")
        table.add_column("Author", style="green")
        table.add_column("Feed GUID", style="blue")
        table.add_column("Medium", style="magenta")
        table.add_column("URL", style="dim")
        for feed in feeds:
            table.add_row(
                feed.title or "",
                feed.author or "",
                feed.feed_guid,
                feed.medium or "",
                feed.origin_url or "",
            )
        console.print(table)

    except (ConfigError, APIKeyError) as e:
        _fail(str(e))
    except PodtracksError as e:
        _fail(f"Error: {e}")


@app.command("config")
def config_command(
    ctx: typer.Context,
    action: str = typer.Argument(..., help="Action: show, or set <key> <value>"),
    key: str | None = typer.Argument(None, help="Config key (for 'set' action)"),
    value: str | None = typer.Argument(None, help="Config value (for 'set' action)"),
) -> None:
    """Manage Podtracks configuration.

    Actions:
        show: Display current configuration
        set:  Set a configuration value (dotted key)

    Examples:
        podtracks config show

        podtracks config set batch.batch_size 10

        podtracks config set directory.api_secret <secret>
    """
    try:
        manager = _manager(ctx)

        if action == "show":
            config = manager.load_config()

            console.print("\n[bold]Podtracks Configuration[/bold]\n")

            table = Table(show_header=False, box=None)
            table.add_column("Key", style="cyan")
            table.add_column("Value", style="white")

            table.add_row("Config file", str(manager.config_file))
            table.add_row("Catalog", str(manager.catalog_path(config)))
            table.add_row("Backups", str(manager.backup_dir(config)))
            table.add_row("", "")
            table.add_row("Directory URL", config.directory.base_url)
            table.add_row("API key", mask_secret(config.directory.api_key))
            table.add_row("API secret", mask_secret(config.directory.api_secret))
            table.add_row("Batch size", str(config.batch.batch_size))
            table.add_row("Request delay", f"{config.batch.request_delay_seconds}s")
            table.add_row("Batch delay", f"{config.batch.batch_delay_seconds}s")
            table.add_row("Max rate-limit pauses", str(config.batch.max_consecutive_rate_limits))
            table.add_row("Log level", config.log_level)

            console.print(table)

        elif action == "set":
            if not key or value is None:
                _fail("Usage: podtracks config set <key> <value>")

            manager.set_value(key, value)
            shown = mask_secret(value) if key.endswith(("api_secret", "api_key")) else value
            console.print(f"[green]✓[/green] Set [cyan]{key}[/cyan] = [yellow]{shown}[/yellow]")

        else:
            console.print(f"[red]✗[/red] Unknown action: {action}")
            console.print("Valid actions: show, set")
            sys.exit(EXIT_ERROR)

    except PodtracksError as e:
        _fail(f"Error: {e}")


if __name__ == "__main__":
    app()

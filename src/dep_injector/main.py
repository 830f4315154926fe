from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .cache_store import CacheStore
from .config import create_sample_config, get_config
from .dependency import Dependency
from .exceptions import DependencyInjectorError
from .repository import resolve_repository
from .structured_logging import configure_logging

console = Console()


def parse_notation(
    notation: str, repository: Optional[str], extension: Optional[str]
) -> Dependency:
    """Parse CLI arguments into a Dependency."""
    try:
        repo = resolve_repository(repository) if repository else resolve_repository("central")
        return Dependency.parse(notation, repo, extension)
    except DependencyInjectorError as e:
        raise click.ClickException(str(e))


repository_option = click.option(
    "--repository",
    "-r",
    help="Repository name (central, snapshots, or configured) or base URL",
)
extension_option = click.option(
    "--extension", "-e", help="Artifact packaging extension (default from config)"
)
cache_root_option = click.option(
    "--cache-root",
    type=click.Path(file_okay=False),
    help="Cache root directory (default from config)",
)


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Structured log level",
)
@click.pass_context
def cli(ctx, version, log_level):
    """
    📦 Dep-Injector: resolve artifacts into a local cache.

    Downloads group:artifact:version artifacts from Maven-layout
    repositories on first use and reuses the cached file afterwards.
    """
    if version:
        console.print(f"Dep-Injector version {__version__}", style="bold blue")
        ctx.exit()

    configure_logging(log_level or get_config().logging.log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@cli.command()
@click.argument("notation")
@repository_option
@extension_option
@cache_root_option
def resolve(notation: str, repository: Optional[str], extension: Optional[str], cache_root: Optional[str]):
    """Download NOTATION into the cache (if missing) and print its path."""
    dependency = parse_notation(notation, repository, extension)

    try:
        with CacheStore() as store:
            cached = store.is_cached(dependency, cache_root)
            path = store.ensure_local(dependency, cache_root)
    except DependencyInjectorError as e:
        raise click.ClickException(str(e))

    status = "cached" if cached else "downloaded"
    console.print(f"✅ {dependency.name} {status}", style="green")
    click.echo(str(path))


@cli.command()
@click.argument("notation")
@repository_option
@extension_option
def url(notation: str, repository: Optional[str], extension: Optional[str]):
    """Print the download URL of NOTATION."""
    dependency = parse_notation(notation, repository, extension)
    try:
        click.echo(dependency.download_url())
    except DependencyInjectorError as e:
        raise click.ClickException(str(e))


@cli.command()
def info():
    """Show cache layout, repositories and usage examples."""
    current_config = get_config()
    repositories = "\n".join(
        f"• [green]{name}[/green] - {base_url}"
        for name, base_url in current_config.network.repositories.items()
    )
    info_text = f"""
[bold blue]📁 Cache Layout:[/bold blue]

  {current_config.cache.cache_root}/<group as dirs>/<artifact>/<version>/<artifact>-<version>.<ext>

[bold blue]🌐 Repositories:[/bold blue]

{repositories}

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]DEP_INJECTOR_CACHE_ROOT[/cyan] - Cache root directory
• [cyan]DEP_INJECTOR_DEFAULT_EXTENSION[/cyan] - Default artifact extension
• [cyan]DEP_INJECTOR_ATOMIC_WRITES[/cyan] - Download to a temp file, then rename
• [cyan]DEP_INJECTOR_CONNECT_TIMEOUT[/cyan] / [cyan]DEP_INJECTOR_READ_TIMEOUT[/cyan] - Network timeouts
• [cyan]DEP_INJECTOR_LOG_LEVEL[/cyan] - Structured log level

[bold blue]💡 Usage Examples:[/bold blue]

  # Resolve into the cache
  dep-injector resolve com.google.code.gson:gson:2.10.1

  # Use the snapshot repository
  dep-injector resolve org.example:lib:1.0-SNAPSHOT -r snapshots

  # Show the URL without downloading
  dep-injector url org.example:lib:1.0.0 -e zip
"""
    console.print(
        Panel(info_text, title="[bold]Dep-Injector Information[/bold]", border_style="blue")
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(),
    default=".dep-injector.json",
    help="Path where to create the config file",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Create a sample configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        console.print(f"⚠️  Config file already exists at {config_path}", style="yellow")
        console.print("Use --force to overwrite", style="dim")
        return

    try:
        config_path.write_text(create_sample_config(), encoding="utf-8")
    except OSError as e:
        raise click.ClickException(f"Failed to create config file: {e}")

    console.print(f"✅ Created configuration file at {config_path}", style="green")


@config.command("show")
def config_show():
    """Show the effective configuration."""
    current_config = get_config()

    console.print(Panel("[bold blue]🔧 Configuration[/bold blue]", border_style="blue"))

    console.print("\n[bold cyan]📁 Cache Settings:[/bold cyan]")
    console.print(f"  Cache Root: {current_config.cache.cache_root}")
    console.print(f"  Default Extension: {current_config.cache.default_extension}")
    console.print(f"  Atomic Writes: {current_config.cache.atomic_writes}")

    console.print("\n[bold cyan]🌐 Network Settings:[/bold cyan]")
    for name, base_url in current_config.network.repositories.items():
        console.print(f"  {name}: {base_url}")
    console.print(f"  Connect Timeout: {current_config.network.connect_timeout}s")
    console.print(f"  Read Timeout: {current_config.network.read_timeout}s")
    console.print(f"  Follow Redirects: {current_config.network.follow_redirects}")
    console.print(f"  User Agent: {current_config.network.user_agent}")

    console.print("\n[bold cyan]📝 Logging Settings:[/bold cyan]")
    console.print(f"  Log Level: {current_config.logging.log_level}")


@cli.group()
def cache():
    """Cache management commands."""
    pass


@cache.command("list")
@cache_root_option
def cache_list(cache_root: Optional[str]):
    """List cached artifacts."""
    store = CacheStore()
    entries = store.entries(cache_root)

    if not entries:
        console.print("📭 Cache is empty", style="yellow")
        return

    table = Table(title=f"📦 Cached Artifacts ({store.resolve_root(cache_root)})")
    table.add_column("Group", style="cyan")
    table.add_column("Artifact", style="green")
    table.add_column("Version")
    table.add_column("Size", justify="right")
    for entry in entries:
        table.add_row(entry.group, entry.artifact, entry.version, f"{entry.size_bytes:,} B")
    console.print(table)


@cache.command("remove")
@click.argument("notation")
@extension_option
@cache_root_option
def cache_remove(notation: str, extension: Optional[str], cache_root: Optional[str]):
    """Remove one artifact from the cache."""
    dependency = parse_notation(notation, None, extension)

    if CacheStore().remove(dependency, cache_root):
        console.print(f"✅ Removed {dependency.name} from cache", style="green")
    else:
        console.print(f"❌ {dependency.name} not found in cache", style="yellow")


@cache.command("clear")
@click.option("--confirm", is_flag=True, help="Skip confirmation prompt")
@cache_root_option
def cache_clear(confirm: bool, cache_root: Optional[str]):
    """Delete every cached artifact."""
    store = CacheStore()
    current_size = len(store.entries(cache_root))

    if current_size == 0:
        console.print("📭 Cache is already empty", style="yellow")
        return

    if not confirm:
        if not click.confirm(f"Are you sure you want to delete {current_size} cached artifacts?"):
            console.print("❌ Cache clear cancelled")
            return

    cleared_count = store.clear(cache_root)
    console.print(f"✅ Cleared {cleared_count} cached artifacts", style="green")


@cache.command("stats")
@cache_root_option
def cache_stats(cache_root: Optional[str]):
    """Show cache size on disk."""
    store = CacheStore()
    entries = store.entries(cache_root)
    total_bytes = sum(entry.size_bytes for entry in entries)

    console.print(Panel("[bold blue]📊 Cache Statistics[/bold blue]", border_style="blue"))
    console.print(f"  Cache Root: {store.resolve_root(cache_root)}")
    console.print(f"  Artifacts: {len(entries)}")
    console.print(f"  Total Size: {total_bytes:,} bytes")
    console.print(f"  Groups: {len({entry.group for entry in entries})}")


if __name__ == "__main__":
    cli()

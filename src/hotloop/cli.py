"""hotloop CLI entry point."""

import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from hotloop.config import ConfigError, WatchConfig, load_config

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def _load_config(config_path: str | None, entry_path: Path) -> WatchConfig:
    try:
        return load_config(Path(config_path) if config_path else None, start=entry_path)
    except ConfigError as e:
        raise click.UsageError(str(e)) from e


def _resolve_entry(entry: str, config_path: str | None) -> tuple[Path, WatchConfig]:
    """Resolve the ENTRY argument or exit with status 1."""
    from hotloop.graph.resolver import PathResolver, ResolutionError

    cwd = Path.cwd()
    try:
        entry_path = PathResolver([cwd]).resolve_entry(entry, cwd)
    except ResolutionError:
        err_console.print(f"[red]Was not able to resolve {entry}[/red]", soft_wrap=True)
        raise SystemExit(1) from None

    return entry_path, _load_config(config_path, entry_path)


def _short(path: Path | None, root: Path) -> str:
    if path is None:
        return "-"
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """hotloop - reload changed Python modules without restarting."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@cli.command()
@click.argument("entry")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="Config file")
@click.option("--once", is_flag=True, help="Run a single pass and exit")
def watch(entry: str, config_path: str | None, once: bool) -> None:
    """Watch ENTRY and everything it imports, reloading on change."""
    from hotloop.graph.resolver import import_root
    from hotloop.reload.engine import HotReloadEngine

    entry_path, config = _resolve_entry(entry, config_path)
    engine = HotReloadEngine.create(entry_path, config)

    console.print(f"[bold green]Watching: {entry}[/bold green]", soft_wrap=True)

    if once:
        report = asyncio.run(engine.process_module_updates())
        root = import_root(entry_path)
        table = Table(title=f"Cycle {report.cycle}")
        table.add_column("Module", style="cyan")
        table.add_column("Status", style="green")
        for path in report.active:
            table.add_row(_short(path, root), "reloaded" if path in report.reloaded else "unchanged")
        for path in report.pruned:
            table.add_row(_short(path, root), "pruned")
        console.print(table)
        return

    try:
        asyncio.run(engine.watch_loop())
    except KeyboardInterrupt:
        console.print("\n[yellow]Watch stopped[/yellow]")


@cli.command()
@click.argument("entry")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="Config file")
def graph(entry: str, config_path: str | None) -> None:
    """Show the modules ENTRY depends on and who imports them."""
    from hotloop.filesystem import LocalFileSystem
    from hotloop.graph.builder import DependencyGraphBuilder
    from hotloop.graph.resolver import PathResolver, import_root

    entry_path, config = _resolve_entry(entry, config_path)
    resolver = PathResolver([import_root(entry_path), *config.search_paths], config.exclude_patterns)
    builder = DependencyGraphBuilder(LocalFileSystem(), resolver)

    edges = asyncio.run(builder.build(entry_path))

    root = import_root(entry_path)
    table = Table(title=f"Dependencies of {entry}")
    table.add_column("Module", style="cyan")
    table.add_column("Imported by", style="green")
    for edge in edges:
        table.add_row(_short(edge.module, root), _short(edge.importer, root))
    console.print(table)
    console.print(f"[dim]{len(edges)} modules[/dim]")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()

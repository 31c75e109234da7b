"""Main CLI entry point for shardcache.

Provides command-line access to a sharded cache directory: inspecting paths
and entries, reading and writing entries, and fixing permissions.
"""

import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from shardcache.config import CacheConfig, parse_mode
from shardcache.store import CacheStore

# Global console for Rich output
console = Console()


def build_store(
    cache_dir: Optional[str],
    actual_dir: Optional[str],
    depth: Optional[int],
    dir_mode: Optional[str],
    file_mode: Optional[str],
) -> CacheStore:
    """Build a store from CLI options, falling back to SHARDCACHE_* variables.

    Raises:
        click.ClickException: If an option value is invalid
    """
    try:
        config = CacheConfig.from_env()
        changes = {}
        if cache_dir:
            changes["cache_dir"] = cache_dir
        if actual_dir:
            changes["actual_cache_dir"] = actual_dir
        if depth is not None:
            changes["shard_depth"] = depth
        if dir_mode:
            changes["dir_mode"] = parse_mode(dir_mode)
        if file_mode:
            changes["file_mode"] = parse_mode(file_mode)
        return CacheStore(config.replace(**changes))
    except (TypeError, ValueError) as e:
        raise click.ClickException(f"Invalid cache configuration: {e}") from e


def collect_conditions(max_age, min_size, younger_than) -> dict:
    """Turn condition options into a condition mapping."""
    conditions = {}
    if max_age is not None:
        conditions["max-age"] = max_age
    if min_size is not None:
        conditions["min-size"] = min_size
    if younger_than:
        conditions["younger-than"] = list(younger_than)
    return conditions


def condition_options(func):
    """Attach the --max-age, --min-size and --younger-than options."""
    func = click.option(
        "--younger-than",
        multiple=True,
        help="Entry must be newer than this file (can be used multiple times)",
    )(func)
    func = click.option(
        "--min-size", type=int, help="Minimum entry size in bytes"
    )(func)
    func = click.option(
        "--max-age", type=int, help="Maximum entry age in seconds"
    )(func)
    return func


@click.group()
@click.option(
    "--dir",
    "-d",
    "cache_dir",
    help="Cache directory (default: SHARDCACHE_DIR env var or ./cache)",
)
@click.option(
    "--actual-dir",
    help="Physical cache directory, if different from --dir",
)
@click.option("--depth", type=int, help="Number of shard directories (default: 5)")
@click.option("--dir-mode", help="Octal mode for created directories, e.g. 755")
@click.option("--file-mode", help="Octal mode for written files, e.g. 644")
@click.pass_context
def cli(ctx, cache_dir, actual_dir, depth, dir_mode, file_mode):
    """shardcache CLI - Inspect and manage a sharded file cache.

    Options fall back to SHARDCACHE_DIR, SHARDCACHE_ACTUAL_DIR,
    SHARDCACHE_SHARD_DEPTH, SHARDCACHE_DIR_MODE and SHARDCACHE_FILE_MODE.
    """
    ctx.ensure_object(dict)
    ctx.obj["options"] = (cache_dir, actual_dir, depth, dir_mode, file_mode)


def get_store(ctx) -> CacheStore:
    return build_store(*ctx.obj["options"])


@cli.command("path")
@click.argument("key")
@click.option("--actual", is_flag=True, help="Print the physical path")
@click.pass_context
def path_command(ctx, key, actual):
    """Print the cache file path of KEY.

    Example:
        shardcache --dir /var/cache/img path helloworld.png
    """
    store = get_store(ctx)
    try:
        click.echo(store.get_cache_file(key, actual=actual))
    except ValueError as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("exists")
@click.argument("key")
@condition_options
@click.pass_context
def exists_command(ctx, key, max_age, min_size, younger_than):
    """Check that KEY is cached and valid. Exits 1 if not.

    Example:
        shardcache exists thumb.png --max-age 3600 --younger-than src.png
    """
    store = get_store(ctx)
    try:
        valid = store.exists(key, collect_conditions(max_age, min_size, younger_than))
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)

    if valid:
        console.print(f"[green]✓[/green] '{key}' is cached and valid")
    else:
        console.print(f"[yellow]'{key}' is missing or stale[/yellow]")
        sys.exit(1)


@cli.command("get")
@click.argument("key")
@condition_options
@click.pass_context
def get_command(ctx, key, max_age, min_size, younger_than):
    """Write the content of KEY to stdout. Exits 1 on a miss.

    Example:
        shardcache get report.pdf --max-age 86400 > report.pdf
    """
    store = get_store(ctx)
    try:
        data = store.get(key, collect_conditions(max_age, min_size, younger_than))
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)

    if data is None:
        click.echo(f"'{key}' is missing or stale", err=True)
        sys.exit(1)

    stdout = click.get_binary_stream("stdout")
    stdout.write(data)
    stdout.flush()


@cli.command("set")
@click.argument("key")
@click.argument("source", type=click.File("rb"), default="-")
@click.pass_context
def set_command(ctx, key, source):
    """Store the content of SOURCE (default: stdin) under KEY.

    Example:
        shardcache set helloworld.txt ./hello.txt
        echo hi | shardcache set greeting.txt
    """
    store = get_store(ctx)
    try:
        cache_file = store.set(key, source.read())
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)

    console.print(f"[green]✓[/green] Stored '{key}'")
    console.print(f"  Path: {cache_file}")


@cli.command("info")
@click.argument("key")
@click.pass_context
def info_command(ctx, key):
    """Show cache status of KEY.

    Example:
        shardcache info helloworld.txt
    """
    store = get_store(ctx)
    try:
        status = store.status(key)
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)

    if status is None:
        console.print(f"[yellow]'{key}' is not cached[/yellow]")
        console.print(f"  Path: {store.get_cache_file(key, actual=True)}")
        sys.exit(1)

    table = Table(title=f"Cache entry '{key}'")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("Path", status["cache_path"])
    table.add_row("Public path", status["public_path"])
    table.add_row("Size", f"{status['size_bytes']} bytes")
    table.add_row("Modified", status["modified_at"][:19].replace("T", " "))
    table.add_row("Age", f"{status['age_seconds']:.0f}s")

    console.print(table)


@cli.command("chmod")
@click.option("--dir-mode", "new_dir_mode", help="Octal mode for directories")
@click.option("--file-mode", "new_file_mode", help="Octal mode for files")
@click.pass_context
def chmod_command(ctx, new_dir_mode, new_file_mode):
    """Change permissions of every directory and file in the cache.

    Example:
        shardcache --dir /var/cache/img chmod --dir-mode 755 --file-mode 644
    """
    store = get_store(ctx)
    try:
        failures = store.chmod(parse_mode(new_dir_mode), parse_mode(new_file_mode))
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)

    if failures:
        console.print(f"[red]✗[/red] Could not change {failures} permissions")
        sys.exit(1)

    console.print(
        f"[green]✓[/green] Updated permissions in {store.actual_cache_dir}"
    )


if __name__ == "__main__":
    cli()

"""CLI entry point for tsprobe."""

import json
import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from tsprobe.core.exceptions import TsprobeError
from tsprobe.core.introspector import Introspector
from tsprobe.core.log import configure_logging
from tsprobe.core.models import (
    DEFAULT_CACHE_DIR,
    ExportRecord,
    IntrospectionOptions,
    ProjectOptions,
)
from tsprobe.core.storage import ResultCache

app = typer.Typer(
    name="tsprobe",
    help="List the public API of TypeScript packages from their declaration files.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

_MAX_DESCRIPTION_DISPLAY = 60

SearchTermOption = Annotated[
    str | None,
    typer.Option("--search-term", "-s", help="Filter exports by regex (case-insensitive)"),
]
LimitOption = Annotated[
    int | None, typer.Option("--limit", "-n", help="Maximum number of exports to return")
]
CacheOption = Annotated[
    bool, typer.Option("--cache/--no-cache", help="Read and write the result cache")
]
CacheDirOption = Annotated[
    str,
    typer.Option("--cache-dir", envvar="TSPROBE_CACHE_DIR", help="Cache directory"),
]
JsonOption = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", envvar="TSPROBE_VERBOSE", help="Log resolution steps"),
    ] = False,
) -> None:
    """Configure logging for all commands."""
    configure_logging(verbose)


def print_records(records: list[ExportRecord], output_json: bool) -> None:
    """Print records as JSON or as a table."""
    if output_json:
        print(json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        console.print("[dim]No exports found[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("Signature", overflow="fold")
    table.add_column("Description", style="dim")
    for record in records:
        description = record.description.splitlines()[0] if record.description else ""
        if len(description) > _MAX_DESCRIPTION_DISPLAY:
            description = description[: _MAX_DESCRIPTION_DISPLAY - 3] + "..."
        table.add_row(record.name, record.kind.value, record.type_signature, description)
    console.print(table)
    console.print(f"[dim]{len(records)} exports[/]")


@app.command()
def package(
    name: Annotated[str, typer.Argument(help="Package to introspect, e.g. zod")],
    search_path: Annotated[
        list[Path] | None,
        typer.Option("--search-path", "-p", help="Extra directory to search (repeatable)"),
    ] = None,
    search_term: SearchTermOption = None,
    limit: LimitOption = None,
    cache: CacheOption = False,
    cache_dir: CacheDirOption = DEFAULT_CACHE_DIR,
    output_json: JsonOption = False,
) -> None:
    """List the exports of an installed package."""
    options = IntrospectionOptions(
        search_paths=search_path or [],
        search_term=search_term,
        cache=cache,
        cache_dir=cache_dir,
        limit=limit,
    )
    try:
        records = Introspector().introspect_package(name, options)
    except TsprobeError as e:
        err_console.print(f"[red]Failed to introspect package:[/red] {e}")
        raise typer.Exit(1) from e
    print_records(records, output_json)


@app.command()
def source(
    file: Annotated[
        str, typer.Argument(help="TypeScript file to read, or '-' for stdin")
    ] = "-",
    output_json: JsonOption = False,
) -> None:
    """List the exports of a TypeScript snippet."""
    try:
        text = sys.stdin.read() if file == "-" else Path(file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        err_console.print(f"[red]Cannot read {file}:[/red] {e}")
        raise typer.Exit(1) from e
    print_records(Introspector().introspect_source(text), output_json)


@app.command()
def project(
    project_path: Annotated[
        Path | None, typer.Option("--project", "-P", help="Project root directory")
    ] = None,
    tsconfig: Annotated[
        Path | None, typer.Option("--tsconfig", "-c", help="Path to tsconfig.json")
    ] = None,
    search_term: SearchTermOption = None,
    limit: LimitOption = None,
    cache: CacheOption = False,
    cache_dir: CacheDirOption = DEFAULT_CACHE_DIR,
    output_json: JsonOption = False,
) -> None:
    """List the exports of every source file in a TypeScript project."""
    options = ProjectOptions(
        project_path=project_path,
        config_path=tsconfig,
        search_term=search_term,
        cache=cache,
        cache_dir=cache_dir,
        limit=limit,
    )
    try:
        records = Introspector().introspect_project(options)
    except TsprobeError as e:
        err_console.print(f"[red]Failed to introspect project:[/red] {e}")
        raise typer.Exit(1) from e
    print_records(records, output_json)


@app.command("clear-cache")
def clear_cache(
    key: Annotated[
        str | None, typer.Argument(help="Package name to drop (default: everything)")
    ] = None,
    cache_dir: CacheDirOption = DEFAULT_CACHE_DIR,
) -> None:
    """Delete cached results."""
    cache = ResultCache(cache_dir)
    if key is not None:
        if cache.invalidate(key):
            console.print(f"Removed cache entry for [cyan]{key}[/cyan]")
        else:
            console.print(f"No cache entry for [cyan]{key}[/cyan]")
        return

    removed = cache.clear()
    console.print(f"Removed {removed} cache entries from [cyan]{cache.root}[/cyan]")


if __name__ == "__main__":
    app()

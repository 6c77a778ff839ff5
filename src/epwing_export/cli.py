"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from epwing_export.core.exporter import BookExporter
from epwing_export.core.gaiji import GaijiResolver, load_table_file
from epwing_export.core.serializer import BookSerializer
from epwing_export.eb.binding import EBLibrary
from epwing_export.models.settings import PAGE_SIZE, ExportSettings

app = typer.Typer(
    name="epwing-export",
    help="Export an EB/EPWING dictionary to JSON.",
    add_completion=False,
)

# Diagnostics go to stderr; stdout carries only the JSON document.
console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def build_resolver(table_files: list[Path]) -> GaijiResolver:
    """Built-in gaiji tables extended by the given table files."""
    resolver = GaijiResolver()
    for path in table_files:
        title, table = load_table_file(path)
        resolver.register(title, table)
    return resolver


@app.command()
def export(
    dictionary_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the dictionary (directory holding CATALOG or CATALOGS)",
        ),
    ],
    pretty: Annotated[
        bool,
        typer.Option(
            "--pretty",
            "-p",
            help="Pretty-print the JSON output",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug diagnostics on stderr",
        ),
    ] = False,
    library: Annotated[
        Optional[str],
        typer.Option(
            "--library",
            envvar="EPWING_EXPORT_LIBEB",
            help="libeb shared object to load (default: search the system)",
        ),
    ] = None,
    page_size: Annotated[
        int,
        typer.Option(
            "--page-size",
            help="Search hits requested per page",
            min=1,
        ),
    ] = PAGE_SIZE,
    gaiji_tables: Annotated[
        Optional[list[Path]],
        typer.Option(
            "--gaiji-table",
            help="Extra gaiji table file (JSON); can be used multiple times",
            exists=True,
            file_okay=True,
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Export every subbook of a dictionary as one JSON document on stdout."""
    setup_logging(verbose)

    settings = ExportSettings(
        page_size=page_size,
        library_path=library,
        pretty=pretty,
        gaiji_tables=gaiji_tables or [],
    )

    try:
        resolver = build_resolver(settings.gaiji_tables)
    except (OSError, ValueError) as e:
        console.print(f"[red]Invalid gaiji table: {e}[/]")
        raise typer.Exit(1)

    exporter = BookExporter(
        EBLibrary(settings.library_path),
        settings=settings,
        resolver=resolver,
    )
    book = exporter.export(str(dictionary_path))

    typer.echo(BookSerializer.dump(book, pretty=settings.pretty))

    if not exporter.bound:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()

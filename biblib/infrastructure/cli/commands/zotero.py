"""Import Zotero items as literature notes."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from biblib.application.ports.zotero_items import ZoteroItemSourcePort
from biblib.application.use_cases.import_zotero_items import import_zotero_items
from biblib.domain.errors import VaultPathError, ZoteroAPIError
from biblib.infrastructure.adapters.zotero_items import JsonFileItemSource, PyzoteroItemSource
from biblib.infrastructure.cli.context import (
    CONFIG_OPTION,
    VAULT_OPTION,
    build_citation_service,
    build_frontmatter_builder,
    console,
    load_settings,
    open_vault,
    start_command,
)
from biblib.infrastructure.config.settings import Settings

app = typer.Typer(help="Import from Zotero")


def _item_source(settings: Settings, export_file: Path | None) -> ZoteroItemSourcePort:
    if export_file is not None:
        return JsonFileItemSource(export_file)
    return PyzoteroItemSource(settings.zotero.model_dump())


@app.command("import")
def import_items(
    export_file: Path | None = typer.Option(None, "--file", help="Zotero JSON export instead of the Zotero API"),
    collection: str | None = typer.Option(None, "--collection", help="Zotero collection key"),
    limit: int | None = typer.Option(None, "--limit", help="Maximum number of items"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace existing notes"),
    config_path: str = CONFIG_OPTION,
    vault_root: str | None = VAULT_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug and HTTP logs"),
) -> None:
    """
    Write a literature note for every top-level Zotero item.

    Failing items are reported and skipped; the exit code is 1 when any item failed.

    Examples:
        biblib zotero import --collection ABCD1234 --limit 20
        biblib zotero import --file "My Library.json"
    """
    correlation_id = start_command(verbose)
    settings = load_settings(config_path, vault_root)

    try:
        source = _item_source(settings, export_file)
        result = import_zotero_items(
            source,
            build_citation_service(settings),
            open_vault(settings),
            build_frontmatter_builder(settings),
            settings.notes,
            collection=collection,
            limit=limit,
            overwrite=overwrite,
            correlation_id=correlation_id,
        )
    except (ZoteroAPIError, VaultPathError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Zotero import", show_header=True, header_style="bold magenta")
    table.add_column("Processed", justify="right")
    table.add_column("Created", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Errors", justify="right", style="red")
    table.add_row(
        str(result.items_processed),
        str(result.notes_created),
        str(result.notes_skipped),
        str(len(result.errors)),
    )
    console.print(table)

    for warning in result.warnings:
        console.print(f"[yellow]{warning}[/yellow]")
    for error in result.errors:
        console.print(f"[red]✗ {error}[/red]")
    if result.errors:
        raise typer.Exit(1)

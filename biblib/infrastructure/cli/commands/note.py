"""Create and bulk-import literature notes from citation records."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from rich.table import Table

from biblib.application.dto.notes import NoteRequest
from biblib.application.dto.records import CslRecord, FormDraft, ZoteroItem, contributors_from_record, validate_record
from biblib.application.services.citation_service import CitationService
from biblib.application.use_cases.create_literature_note import create_literature_note
from biblib.application.use_cases.import_csl_records import CITEKEY_PREFERENCES, import_csl_records
from biblib.domain.errors import InvalidCitationRecord, InvalidZoteroItem, VaultPathError, ZoteroMappingError
from biblib.infrastructure.cli.context import (
    CONFIG_OPTION,
    VAULT_OPTION,
    build_citation_service,
    build_frontmatter_builder,
    console,
    load_json,
    load_settings,
    open_vault,
    start_command,
)

app = typer.Typer(help="Create literature notes")

RECORD_FORMATS = ("csl", "zotero", "form")


@app.command()
def create(
    record_path: Path = typer.Argument(..., help="JSON file with the record"),
    record_format: str = typer.Option("csl", "--format", "-f", help="Input format: csl, zotero or form"),
    attachments: list[str] = typer.Option([], "--attachment", "-a", help="Vault path of an attachment (repeatable)"),
    related: list[str] = typer.Option([], "--related", "-r", help="Vault path of a related note (repeatable)"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing note"),
    config_path: str = CONFIG_OPTION,
    vault_root: str | None = VAULT_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """
    Write a literature note for one record.

    Examples:
        biblib note create paper.json --attachment biblib/smith2023.pdf
        biblib note create item.json --format zotero --overwrite
    """
    correlation_id = start_command(verbose)
    if record_format not in RECORD_FORMATS:
        console.print(f"[red]Unknown format '{record_format}', expected one of: {', '.join(RECORD_FORMATS)}[/red]")
        raise typer.Exit(1)

    settings = load_settings(config_path, vault_root)
    service = build_citation_service(settings)
    data = load_json(record_path)

    try:
        request = _note_request(service, data, record_format)
    except (InvalidCitationRecord, InvalidZoteroItem, ZoteroMappingError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    request.attachment_paths = attachments
    request.related_note_paths = related
    request.overwrite = overwrite

    try:
        result = create_literature_note(
            request,
            open_vault(settings),
            service,
            build_frontmatter_builder(settings),
            settings.notes,
            correlation_id=correlation_id,
        )
    except (OSError, VaultPathError) as e:
        console.print(f"[red]Failed to write literature note: {e}[/red]")
        raise typer.Exit(1)

    for warning in result.warnings:
        console.print(f"[yellow]{warning}[/yellow]")
    if result.created:
        console.print(f"[green]✓ Created {result.path}[/green] (citekey: {result.citekey})")


@app.command("import")
def import_records(
    records_path: Path = typer.Argument(..., help="CSL-JSON file with a list of records"),
    citekey_preference: str = typer.Option(
        "imported", "--citekey-preference", help="imported: keep each record's id; generate: always build from the template"
    ),
    overwrite: bool = typer.Option(False, "--overwrite/--skip", help="Replace or skip notes that already exist"),
    config_path: str = CONFIG_OPTION,
    vault_root: str | None = VAULT_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """
    Write a literature note for every record of a CSL-JSON file.

    Failing records are reported and skipped; the exit code is 1 when any record failed.

    Examples:
        biblib note import library.json
        biblib note import library.json --citekey-preference generate --overwrite
    """
    correlation_id = start_command(verbose)
    if citekey_preference not in CITEKEY_PREFERENCES:
        console.print(
            f"[red]Unknown citekey preference '{citekey_preference}', expected one of: {', '.join(CITEKEY_PREFERENCES)}[/red]"
        )
        raise typer.Exit(1)

    settings = load_settings(config_path, vault_root)
    data = load_json(records_path)
    records = data if isinstance(data, list) else [data]

    try:
        result = import_csl_records(
            records,
            build_citation_service(settings),
            open_vault(settings),
            build_frontmatter_builder(settings),
            settings.notes,
            citekey_preference=citekey_preference,
            overwrite=overwrite,
            correlation_id=correlation_id,
        )
    except VaultPathError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title="CSL-JSON import", show_header=True, header_style="bold magenta")
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

def _note_request(service: CitationService, data: Any, record_format: str) -> NoteRequest:
    if record_format == "zotero":
        if not isinstance(data, dict):
            raise InvalidZoteroItem(f"expected an object, got {type(data).__name__}")
        record = service.parse_zotero_item(ZoteroItem.from_api(data).to_record())
        return NoteRequest(record=record, contributors=contributors_from_record(record))
    if record_format == "form":
        draft = validate_record(FormDraft, data, "form")
        return NoteRequest(
            record=draft.to_record(),
            contributors=draft.contributors,
            additional_fields=draft.additional_fields,
        )
    record = service.normalize_csl(data)
    return NoteRequest(record=record, contributors=contributors_from_record(record))

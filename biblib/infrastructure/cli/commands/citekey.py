"""Citekey generation for CSL-JSON records and Zotero items."""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any

import typer

from biblib.application.dto.records import CslRecord, ZoteroItem, validate_record
from biblib.application.services.citation_service import CitationService
from biblib.domain.errors import InvalidCitationRecord, InvalidZoteroItem, ZoteroMappingError
from biblib.infrastructure.cli.context import (
    CONFIG_OPTION,
    build_citation_service,
    console,
    load_json,
    load_settings,
    start_command,
)

app = typer.Typer(help="Generate citekeys")

RECORD_FORMATS = ("csl", "zotero")


@app.command()
def generate(
    record_path: Path = typer.Argument(..., help="JSON file with a record or a list of records"),
    template: str | None = typer.Option(None, "--template", "-t", help="Citekey template (overrides config)"),
    zotero_keys: bool | None = typer.Option(
        None, "--zotero-keys/--no-zotero-keys", help="Use Zotero item keys as citekeys"
    ),
    min_length: int | None = typer.Option(None, "--min-length", help="Minimum citekey length"),
    record_format: str = typer.Option("csl", "--format", "-f", help="Input format: csl or zotero"),
    config_path: str = CONFIG_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """
    Print one citekey per record.

    Examples:
        biblib citekey generate paper.json
        biblib citekey generate export.json --format zotero --no-zotero-keys
        biblib citekey generate paper.json --template "{{author|lowercase}}_{{year}}"
    """
    start_command(verbose)
    if record_format not in RECORD_FORMATS:
        console.print(f"[red]Unknown format '{record_format}', expected one of: {', '.join(RECORD_FORMATS)}[/red]")
        raise typer.Exit(1)

    settings = load_settings(config_path)
    service = build_citation_service(settings)
    overrides: dict[str, Any] = {}
    if template is not None:
        overrides["citekey_template"] = template
    if zotero_keys is not None:
        overrides["use_zotero_keys"] = zotero_keys
    if min_length is not None:
        overrides["min_citekey_length"] = min_length
    try:
        service.citekey_options = dataclasses.replace(service.citekey_options, **overrides)
    except ValueError as e:
        console.print(f"[red]Invalid citekey option: {e}[/red]")
        raise typer.Exit(1)

    data = load_json(record_path)
    records = data if isinstance(data, list) else [data]
    for record in records:
        try:
            typer.echo(_citekey(service, record, record_format))
        except (InvalidCitationRecord, InvalidZoteroItem, ZoteroMappingError) as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)


def _citekey(service: CitationService, record: Any, record_format: str) -> str:
    if record_format == "zotero":
        if not isinstance(record, dict):
            raise InvalidZoteroItem(f"expected an object, got {type(record).__name__}")
        return service.parse_zotero_item(ZoteroItem.from_api(record).to_record())["id"]
    return service.generate_citekey(validate_record(CslRecord, record, "csl").to_record())

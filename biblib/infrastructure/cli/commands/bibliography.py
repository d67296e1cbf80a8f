"""Export citekey lists and bibliography JSON from the vault."""

from __future__ import annotations

import typer

from biblib.application.use_cases.build_bibliography import build_bibliography
from biblib.domain.errors import VaultPathError
from biblib.infrastructure.cli.context import (
    CONFIG_OPTION,
    VAULT_OPTION,
    console,
    load_settings,
    open_vault,
    start_command,
)

app = typer.Typer(help="Build bibliography files")


@app.command()
def build(
    config_path: str = CONFIG_OPTION,
    vault_root: str | None = VAULT_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """
    Collect literature notes and write the citekey lists and bibliography JSON.

    Examples:
        biblib bibliography build --vault ~/Notes
    """
    correlation_id = start_command(verbose)
    settings = load_settings(config_path, vault_root)
    try:
        result = build_bibliography(open_vault(settings), settings.notes, correlation_id=correlation_id)
    except (OSError, VaultPathError) as e:
        console.print(f"[red]Failed to build bibliography: {e}[/red]")
        raise typer.Exit(1)

    if result.entries == 0:
        console.print("[yellow]No literature notes found in the vault.[/yellow]")
        return
    console.print(f"[green]✓ Bibliography built with {result.entries} entries[/green]")
    console.print(f"  Citekeys: {result.citekey_list_path}, {result.raw_citekey_list_path}")
    console.print(f"  JSON: {result.bibliography_json_path}")

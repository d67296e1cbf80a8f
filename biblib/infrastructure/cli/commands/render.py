"""Render a template against a JSON variable file."""

from __future__ import annotations

from pathlib import Path

import typer

from biblib.domain.services.template_engine import TemplateEngine
from biblib.infrastructure.cli.context import console, load_json, start_command


def render(
    template: str = typer.Argument(..., help="Template text, e.g. '{{title|lowercase}}'"),
    vars_path: Path | None = typer.Option(None, "--vars", help="JSON file with template variables"),
    citekey: bool = typer.Option(False, "--citekey", help="Sanitize the output as a citekey"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """
    Render a template and print the result.

    Examples:
        biblib render "{{#authors}}{{.}}{{^@last}}, {{/@last}}{{/authors}}" --vars vars.json
        biblib render "{{author|lowercase}}{{year}}" --vars vars.json --citekey
    """
    start_command(verbose)
    variables = load_json(vars_path) if vars_path else {}
    if not isinstance(variables, dict):
        console.print("[red]Template variables must be a JSON object[/red]")
        raise typer.Exit(1)
    typer.echo(TemplateEngine.render(template, variables, sanitize_for_citekey=citekey))

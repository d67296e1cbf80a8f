"""Shared wiring for CLI commands: settings, services and JSON input."""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from biblib.application.services.citation_service import CitationService
from biblib.application.services.frontmatter_builder import FrontmatterBuilder
from biblib.domain.clock import SystemClock
from biblib.domain.services.template_variables import TemplateVariableBuilder
from biblib.infrastructure.adapters.lenient_csl_parser import LenientCslParser
from biblib.infrastructure.adapters.markdown_vault import MarkdownVault
from biblib.infrastructure.config.settings import DEFAULT_CONFIG_PATH, Settings
from biblib.infrastructure.logging import configure_logging, new_correlation_id

console = Console()
logger = logging.getLogger(__name__)

CONFIG_OPTION = typer.Option(
    DEFAULT_CONFIG_PATH, "--config", "-c", envvar="BIBLIB_CONFIG", help="Path to biblib.toml configuration file"
)
VAULT_OPTION = typer.Option(None, "--vault", help="Vault root directory (overrides [vault] root)")


def start_command(verbose: bool = False) -> str:
    """Configure logging for one CLI invocation and return its correlation ID."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING, verbose=verbose)
    return new_correlation_id()


def load_settings(config_path: str, vault: str | None = None) -> Settings:
    """Load settings or exit with code 1."""
    try:
        settings = Settings.from_toml(config_path)
    except Exception as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        raise typer.Exit(1)
    if vault:
        settings.vault.root = vault
    return settings


def build_citation_service(settings: Settings) -> CitationService:
    try:
        options = settings.citekey.to_options()
    except ValueError as e:
        console.print(f"[red]Invalid [citekey] settings: {e}[/red]")
        raise typer.Exit(1)
    return CitationService(
        citekey_options=options,
        fallback_parser=LenientCslParser(),
        clock=SystemClock(),
        rng=random.Random(),
    )


def build_frontmatter_builder(settings: Settings) -> FrontmatterBuilder:
    return FrontmatterBuilder(
        TemplateVariableBuilder(clock=SystemClock()),
        settings.notes.literature_note_tags,
        settings.frontmatter.fields,
    )


def open_vault(settings: Settings) -> MarkdownVault:
    return MarkdownVault(Path(settings.vault.root))


def load_json(path: Path) -> Any:
    """Read a JSON file or exit with code 1."""
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        console.print(f"[red]{path} is not valid JSON: {e}[/red]")
        raise typer.Exit(1)

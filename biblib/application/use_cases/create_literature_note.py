"""Use case for writing a single literature note into the vault."""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from typing import Any, Mapping

from ...domain.errors import LiteratureNoteExists
from ...domain.services.date_parser import DateParser
from ...domain.services.template_engine import TemplateEngine
from ...infrastructure.logging import get_correlation_id
from ..dto.notes import NoteRequest, NoteResult, NoteSettings
from ..dto.records import contributors_from_record
from ..ports.vault import VaultPort
from ..services.citation_service import CitationService
from ..services.frontmatter_builder import FrontmatterBuilder

logger = logging.getLogger(__name__)

_ILLEGAL_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')


def create_literature_note(
    request: NoteRequest,
    vault: VaultPort,
    citation_service: CitationService,
    frontmatter_builder: FrontmatterBuilder,
    note_settings: NoteSettings,
    correlation_id: str | None = None,
) -> NoteResult:
    """
    Build and write a literature note: citekey → frontmatter → header → file.

    Args:
        request: Record, contributors, additional fields and links of the note
        vault: Vault the note is written to
        citation_service: Assigns a citekey when the record has no ``id``
        frontmatter_builder: Builds the YAML frontmatter mapping
        note_settings: Note folder, filename and header templates
        correlation_id: Optional correlation ID (generated if not provided)

    Returns:
        NoteResult with the citekey and vault path. ``created`` is False when
        a note already existed and ``overwrite`` was not requested.
    """
    correlation_id = correlation_id or get_correlation_id()
    record = dict(request.record)
    citekey = record.get("id")
    if not isinstance(citekey, str) or not citekey.strip():
        record["id"] = citation_service.generate_citekey(record)
    citekey = record["id"]
    # Templates such as {{year}} read the scalar field
    year = DateParser.extract_fields(record)["year"]
    if year and not record.get("year"):
        record["year"] = year

    contributors = request.contributors or contributors_from_record(record)
    frontmatter = frontmatter_builder.build(
        record,
        contributors,
        request.additional_fields,
        request.attachment_paths,
        request.related_note_paths,
    )
    variables = frontmatter_builder.variable_builder.build(
        record, contributors, request.attachment_paths, request.related_note_paths
    )
    header = TemplateEngine.render(note_settings.header_template, variables)
    path = note_path(note_settings, variables)

    if vault.exists(path) and not request.overwrite:
        warning = str(LiteratureNoteExists(citekey, path))
        logger.warning(
            "Literature note already exists, skipping",
            extra={"correlation_id": correlation_id, "citekey": citekey, "path": path},
        )
        return NoteResult(citekey=citekey, path=path, created=False, warnings=[warning])

    content = f"---\n{vault.dump_frontmatter(frontmatter)}---\n\n{header}\n\n"
    vault.write(path, content)
    logger.info(
        "Literature note written",
        extra={"correlation_id": correlation_id, "citekey": citekey, "path": path},
    )
    return NoteResult(citekey=citekey, path=path, created=True)


def note_path(note_settings: NoteSettings, variables: Mapping[str, Any]) -> str:
    """Vault-relative path of a note from the folder setting and the rendered filename template."""
    filename = note_filename(note_settings.filename_template, variables)
    folder = note_settings.literature_note_path.strip().strip("/")
    return str(PurePosixPath(folder) / f"{filename}.md") if folder else f"{filename}.md"


def note_filename(template: str, variables: Mapping[str, Any]) -> str:
    rendered = TemplateEngine.render(template, variables).strip()
    filename = _ILLEGAL_FILENAME_CHARS.sub("_", rendered)
    return filename or str(variables.get("citekey") or "untitled")

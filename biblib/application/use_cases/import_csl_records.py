"""Use case for importing a file of CSL-JSON records as literature notes."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Iterable

from ...domain.errors import InvalidCitationRecord, VaultPathError
from ...infrastructure.logging import get_correlation_id
from ..dto.notes import ImportResult, NoteRequest, NoteSettings
from ..dto.records import contributors_from_record
from ..ports.vault import VaultPort
from ..services.citation_service import CitationService
from ..services.frontmatter_builder import FrontmatterBuilder
from .create_literature_note import create_literature_note

logger = logging.getLogger(__name__)

CITEKEY_PREFERENCES = ("imported", "generate")


def import_csl_records(
    records: Iterable[Any],
    citation_service: CitationService,
    vault: VaultPort,
    frontmatter_builder: FrontmatterBuilder,
    note_settings: NoteSettings,
    citekey_preference: str = "imported",
    overwrite: bool = False,
    correlation_id: str | None = None,
) -> ImportResult:
    """
    Write one literature note per CSL-JSON record.

    Records are processed independently: an invalid record or a failed
    write is recorded in ``errors`` and the batch continues.

    Args:
        records: CSL-JSON entries, e.g. a bibliography exported from Zotero or Pandoc
        citation_service: Validates records and generates citekeys
        vault: Vault the notes are written to
        frontmatter_builder: Builds the YAML frontmatter mapping
        note_settings: Note folder, filename and header templates
        citekey_preference: ``imported`` keeps each record's ``id`` when it
            has one; ``generate`` always builds a citekey from the template
        overwrite: Replace existing notes instead of skipping them
        correlation_id: Optional correlation ID (generated if not provided)

    Returns:
        ImportResult with per-record counts, citekeys, errors and warnings

    Raises:
        ValueError: If ``citekey_preference`` is not a known preference
    """
    if citekey_preference not in CITEKEY_PREFERENCES:
        raise ValueError(
            f"citekey_preference must be one of {', '.join(CITEKEY_PREFERENCES)}, got '{citekey_preference}'"
        )
    correlation_id = correlation_id or get_correlation_id()

    result = ImportResult()
    for entry in records:
        result.items_processed += 1
        label = _record_label(entry, result.items_processed)
        if citekey_preference == "generate" and isinstance(entry, Mapping):
            entry = {key: value for key, value in entry.items() if key != "id"}
        try:
            record = citation_service.normalize_csl(entry)
            note = create_literature_note(
                NoteRequest(record=record, contributors=contributors_from_record(record), overwrite=overwrite),
                vault,
                citation_service,
                frontmatter_builder,
                note_settings,
                correlation_id=correlation_id,
            )
        except InvalidCitationRecord as e:
            logger.error(
                "Invalid CSL record",
                extra={"correlation_id": correlation_id, "record": label, "error": str(e)},
            )
            result.errors.append(f"{label}: {e}")
            continue
        except (OSError, VaultPathError) as e:
            logger.error(
                "Failed to write literature note",
                extra={"correlation_id": correlation_id, "record": label, "error": str(e)},
            )
            result.errors.append(f"{label}: {e}")
            continue

        result.citekeys.append(note.citekey)
        result.warnings.extend(note.warnings)
        if note.created:
            result.notes_created += 1
        else:
            result.notes_skipped += 1

    logger.info(
        "CSL import complete",
        extra={
            "correlation_id": correlation_id,
            "processed": result.items_processed,
            "created": result.notes_created,
            "skipped": result.notes_skipped,
            "errors": len(result.errors),
        },
    )
    return result


def _record_label(entry: Any, position: int) -> str:
    citekey = entry.get("id") if isinstance(entry, Mapping) else None
    if isinstance(citekey, str) and citekey.strip():
        return citekey.strip()
    return f"record {position}"

"""Use case for importing Zotero items as literature notes."""

from __future__ import annotations

import logging

from ...domain.errors import InvalidCitationRecord, InvalidZoteroItem, VaultPathError, ZoteroMappingError
from ...infrastructure.logging import get_correlation_id
from ..dto.notes import ImportResult, NoteRequest, NoteSettings
from ..dto.records import ZoteroItem, contributors_from_record
from ..ports.vault import VaultPort
from ..ports.zotero_items import ZoteroItemSourcePort
from ..services.citation_service import CitationService
from ..services.frontmatter_builder import FrontmatterBuilder
from .create_literature_note import create_literature_note

logger = logging.getLogger(__name__)


def import_zotero_items(
    source: ZoteroItemSourcePort,
    citation_service: CitationService,
    vault: VaultPort,
    frontmatter_builder: FrontmatterBuilder,
    note_settings: NoteSettings,
    collection: str | None = None,
    limit: int | None = None,
    overwrite: bool = False,
    correlation_id: str | None = None,
) -> ImportResult:
    """
    Fetch Zotero items and write one literature note per item.

    Items are processed independently: a failing item is recorded in
    ``errors`` and the batch continues.

    Args:
        source: Zotero item source (API or JSON export)
        citation_service: Maps Zotero items to citekeyed CSL records
        vault: Vault the notes are written to
        frontmatter_builder: Builds the YAML frontmatter mapping
        note_settings: Note folder, filename and header templates
        collection: Optional Zotero collection key
        limit: Optional maximum number of items
        overwrite: Replace existing notes
        correlation_id: Optional correlation ID (generated if not provided)

    Returns:
        ImportResult with per-item counts, citekeys, errors and warnings

    Raises:
        ZoteroAPIError: If the item source cannot be read at all
    """
    correlation_id = correlation_id or get_correlation_id()
    items = source.fetch_items(collection=collection, limit=limit)
    logger.info(
        "Importing Zotero items",
        extra={"correlation_id": correlation_id, "items": len(items), "collection": collection},
    )

    result = ImportResult()
    for raw_item in items:
        result.items_processed += 1
        item_label = raw_item.get("key") if isinstance(raw_item, dict) else None
        try:
            item = ZoteroItem.from_api(raw_item)
            item_label = item.key or item_label
            record = citation_service.parse_zotero_item(item.to_record())
            note = create_literature_note(
                NoteRequest(record=record, contributors=contributors_from_record(record), overwrite=overwrite),
                vault,
                citation_service,
                frontmatter_builder,
                note_settings,
                correlation_id=correlation_id,
            )
        except (InvalidCitationRecord, InvalidZoteroItem, ZoteroMappingError) as e:
            logger.error(
                "Failed to import Zotero item",
                extra={"correlation_id": correlation_id, "item_key": item_label, "error": str(e)},
            )
            result.errors.append(f"{item_label or 'item ' + str(result.items_processed)}: {e}")
            continue
        except (OSError, VaultPathError) as e:
            logger.error(
                "Failed to write literature note",
                extra={"correlation_id": correlation_id, "item_key": item_label, "error": str(e)},
            )
            result.errors.append(f"{item_label or 'item ' + str(result.items_processed)}: {e}")
            continue

        result.citekeys.append(note.citekey)
        result.warnings.extend(note.warnings)
        if note.created:
            result.notes_created += 1
        else:
            result.notes_skipped += 1

    logger.info(
        "Zotero import complete",
        extra={
            "correlation_id": correlation_id,
            "created": result.notes_created,
            "skipped": result.notes_skipped,
            "errors": len(result.errors),
        },
    )
    return result

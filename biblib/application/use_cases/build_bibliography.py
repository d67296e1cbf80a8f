"""Use case for exporting citekey lists and a bibliography JSON from literature notes."""

from __future__ import annotations

import json
import logging
from pathlib import PurePosixPath
from typing import Any

from ...infrastructure.logging import get_correlation_id
from ..dto.notes import BibliographyResult, NoteSettings
from ..ports.vault import VaultPort

logger = logging.getLogger(__name__)


def build_bibliography(
    vault: VaultPort,
    note_settings: NoteSettings,
    correlation_id: str | None = None,
) -> BibliographyResult:
    """
    Collect literature notes and write the bibliography files.

    Literature notes are Markdown files whose frontmatter ``tags`` list
    contains a literature note tag. Three files are written:
        - ``<attachment_folder>/citekeylist``: sorted citekeys, one per line
        - ``citekey_list_path``: the same keys as ``@citekey`` lines
        - ``bibliography_json_path``: frontmatter of every note with its
          ``filename`` and ``path``

    Args:
        vault: Vault to scan and write to
        note_settings: Literature note tag and output paths
        correlation_id: Optional correlation ID (generated if not provided)

    Returns:
        BibliographyResult with the entry count and written paths
    """
    correlation_id = correlation_id or get_correlation_id()
    notes = find_literature_notes(vault, note_settings.literature_note_tags)

    citekeys = sorted(str(frontmatter["id"]) for _, frontmatter in notes if frontmatter.get("id"))
    folder = note_settings.attachment_folder.strip().strip("/")
    raw_path = f"{folder}/citekeylist" if folder else "citekeylist"
    vault.write(raw_path, "\n".join(citekeys))
    vault.write(note_settings.citekey_list_path, "\n".join(f"@{key}" for key in citekeys))

    entries = [bibliography_entry(path, frontmatter) for path, frontmatter in notes]
    vault.write(note_settings.bibliography_json_path, json.dumps(entries, indent=2, ensure_ascii=False, default=str))

    logger.info(
        "Bibliography built",
        extra={"correlation_id": correlation_id, "entries": len(entries), "citekeys": len(citekeys)},
    )
    return BibliographyResult(
        entries=len(entries),
        citekey_list_path=note_settings.citekey_list_path,
        raw_citekey_list_path=raw_path,
        bibliography_json_path=note_settings.bibliography_json_path,
    )


def find_literature_notes(vault: VaultPort, tags: list[str]) -> list[tuple[str, dict[str, Any]]]:
    notes = []
    for path in vault.list_markdown():
        try:
            frontmatter = vault.read_frontmatter(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read note", extra={"path": path, "error": str(e)})
            continue
        if not frontmatter:
            continue
        note_tags = frontmatter.get("tags")
        if isinstance(note_tags, list) and any(tag in note_tags for tag in tags):
            notes.append((path, frontmatter))
    return notes


def bibliography_entry(path: str, frontmatter: dict[str, Any]) -> dict[str, Any]:
    """Frontmatter with the note's ``filename`` (basename) and ``path`` after ``id``."""
    return {
        "id": frontmatter.get("id"),
        "filename": PurePosixPath(path).stem,
        "path": path,
        **{key: value for key, value in frontmatter.items() if key != "id"},
    }

import re
from typing import Any

from pydantic import BaseModel, Field

from ...domain.models.contributor import Contributor
from .records import AdditionalField


class FrontmatterField(BaseModel):
    """Template-driven custom frontmatter field."""

    name: str
    template: str
    enabled: bool = True


class NoteSettings(BaseModel):
    """Where and how literature notes are written."""

    literature_note_path: str = "/"
    filename_template: str = "@{{citekey}}"
    header_template: str = "# {{#pdflink}}[[{{.}}|{{title}}]]{{/pdflink}}{{^pdflink}}{{title}}{{/pdflink}}"
    literature_note_tag: str = "literature_note"
    attachment_folder: str = "biblib"
    citekey_list_path: str = "citekeylist.md"
    bibliography_json_path: str = "biblib/bibliography.json"

    @property
    def literature_note_tags(self) -> list[str]:
        return parse_literature_note_tags(self.literature_note_tag)


class NoteRequest(BaseModel):
    """Request DTO for literature note creation use case."""

    record: dict[str, Any]
    contributors: list[Contributor] = Field(default_factory=list)
    additional_fields: list[AdditionalField] = Field(default_factory=list)
    attachment_paths: list[str] = Field(default_factory=list)
    related_note_paths: list[str] = Field(default_factory=list)
    overwrite: bool = False


class NoteResult(BaseModel):
    """Result DTO for literature note creation use case."""

    citekey: str
    path: str
    created: bool
    warnings: list[str] = []


class ImportResult(BaseModel):
    """Result DTO for the Zotero and CSL-JSON batch import use cases."""

    items_processed: int = 0
    notes_created: int = 0
    notes_skipped: int = 0
    citekeys: list[str] = []
    errors: list[str] = []
    warnings: list[str] = []


class BibliographyResult(BaseModel):
    """Result DTO for bibliography build use case."""

    entries: int
    citekey_list_path: str
    raw_citekey_list_path: str
    bibliography_json_path: str


def parse_literature_note_tags(text: str | None) -> list[str]:
    """Split a tag setting on commas and whitespace, dropping empties."""
    if not text:
        return []
    return [tag for tag in re.split(r"[,\s]+", text) if tag]

"""Unit tests for the literature note, Zotero import and bibliography use cases."""

from __future__ import annotations

import json
from typing import Any

import pytest
import yaml

from biblib.application.dto.notes import FrontmatterField, NoteRequest, NoteSettings
from biblib.application.services.citation_service import CitationService
from biblib.application.services.frontmatter_builder import FrontmatterBuilder
from biblib.application.use_cases.build_bibliography import build_bibliography, find_literature_notes
from biblib.application.use_cases.create_literature_note import (
    create_literature_note,
    note_filename,
    note_path,
)
from biblib.application.use_cases.import_csl_records import import_csl_records
from biblib.application.use_cases.import_zotero_items import import_zotero_items
from biblib.domain.errors import VaultPathError
from biblib.domain.models.contributor import Contributor
from biblib.domain.policy.citekey_policy import CitekeyOptions
from biblib.domain.services.template_variables import TemplateVariableBuilder


class InMemoryVault:
    """Vault keeping notes in a dict."""

    def __init__(self, files: dict[str, str] | None = None):
        self.files = dict(files or {})

    def exists(self, path: str) -> bool:
        return path in self.files

    def read(self, path: str) -> str:
        return self.files[path]

    def write(self, path: str, content: str) -> None:
        self.files[path] = content

    def list_markdown(self) -> list[str]:
        return sorted(path for path in self.files if path.endswith(".md"))

    def dump_frontmatter(self, frontmatter: dict[str, Any]) -> str:
        return yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)

    def read_frontmatter(self, path: str) -> dict[str, Any] | None:
        content = self.files[path]
        if not content.startswith("---\n"):
            return None
        block = content[4:].split("\n---", 1)[0]
        try:
            data = yaml.safe_load(block)
        except yaml.YAMLError:
            return None
        return data if isinstance(data, dict) else None


class StaticItemSource:
    """Zotero item source returning a fixed list."""

    def __init__(self, items):
        self.items = items
        self.calls = []

    def fetch_items(self, collection=None, limit=None):
        self.calls.append((collection, limit))
        return self.items


def note(frontmatter: dict[str, Any]) -> str:
    return f"---\n{yaml.safe_dump(frontmatter, sort_keys=False)}---\n\n# Note\n"


@pytest.fixture
def citation_service(clock, rng):
    options = CitekeyOptions(citekey_template="{{author|lowercase}}{{year}}", use_zotero_keys=False)
    return CitationService(options, None, clock, rng)


@pytest.fixture
def frontmatter_builder(clock):
    fields = [
        FrontmatterField(name="year", template="{{year}}"),
        FrontmatterField(name="attachment", template="{{attachment}}"),
    ]
    return FrontmatterBuilder(TemplateVariableBuilder(clock), ["literature_note"], fields)


@pytest.fixture
def note_settings():
    return NoteSettings(literature_note_path="Literature/")


SMITH_RECORD = {
    "type": "article-journal",
    "title": "Testing Notes",
    "author": [{"family": "Smith", "given": "John"}],
    "issued": {"date-parts": [[2020, 5]]},
}


class TestCreateLiteratureNote:
    """Tests for create_literature_note."""

    def test_writes_note_with_generated_citekey(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault()
        result = create_literature_note(
            NoteRequest(record=SMITH_RECORD), vault, citation_service, frontmatter_builder, note_settings
        )

        assert result.created is True
        assert result.citekey == "smith2020"
        assert result.path == "Literature/@smith2020.md"

        content = vault.files["Literature/@smith2020.md"]
        assert content.startswith("---\nid: smith2020\n")
        assert content.endswith("---\n\n# Testing Notes\n\n")

        frontmatter = vault.read_frontmatter(result.path)
        assert frontmatter["year"] == "2020"
        assert frontmatter["author"] == [{"family": "Smith", "given": "John"}]
        assert frontmatter["tags"] == ["literature_note"]

    def test_header_links_first_attachment(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault()
        request = NoteRequest(record={**SMITH_RECORD, "id": "smith2020"}, attachment_paths=["files/paper.pdf"])
        result = create_literature_note(request, vault, citation_service, frontmatter_builder, note_settings)

        content = vault.files[result.path]
        assert "# [[files/paper.pdf|Testing Notes]]" in content
        assert vault.read_frontmatter(result.path)["attachment"] == ["[[files/paper.pdf|PDF]]"]

    def test_existing_note_is_kept(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault({"Literature/@smith2020.md": "original"})
        request = NoteRequest(record={**SMITH_RECORD, "id": "smith2020"})
        result = create_literature_note(request, vault, citation_service, frontmatter_builder, note_settings)

        assert result.created is False
        assert "already exists" in result.warnings[0]
        assert vault.files["Literature/@smith2020.md"] == "original"

    def test_overwrite_replaces_note(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault({"Literature/@smith2020.md": "original"})
        request = NoteRequest(record={**SMITH_RECORD, "id": "smith2020"}, overwrite=True)
        result = create_literature_note(request, vault, citation_service, frontmatter_builder, note_settings)

        assert result.created is True
        assert vault.files[result.path].startswith("---\n")

    def test_explicit_contributors_win(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault()
        request = NoteRequest(
            record={"id": "k", "title": "T"},
            contributors=[Contributor(role="editor", family="Ed")],
        )
        result = create_literature_note(request, vault, citation_service, frontmatter_builder, note_settings)
        assert vault.read_frontmatter(result.path)["editor"] == [{"family": "Ed"}]


class TestNotePaths:
    """Tests for note path and filename rendering."""

    def test_root_folder(self):
        assert note_path(NoteSettings(literature_note_path="/"), {"citekey": "k"}) == "@k.md"

    def test_nested_folder(self):
        settings = NoteSettings(literature_note_path="/Refs/Papers/", filename_template="{{citekey}}")
        assert note_path(settings, {"citekey": "k"}) == "Refs/Papers/k.md"

    def test_illegal_characters_replaced(self):
        assert note_filename("{{title}}", {"title": 'A: B? "C"'}) == "A_ B_ _C_"

    def test_empty_filename_falls_back(self):
        assert note_filename("{{missing}}", {"citekey": "k"}) == "k"
        assert note_filename("{{missing}}", {}) == "untitled"


class TestImportZoteroItems:
    """Tests for import_zotero_items."""

    ITEMS = [
        {
            "key": "AAAA1111",
            "data": {
                "itemType": "journalArticle",
                "title": "First",
                "creators": [{"creatorType": "author", "lastName": "Smith", "firstName": "John"}],
                "date": "2020",
            },
        },
        {"key": "BAD00001", "data": {"title": "Missing type"}},
        {
            "itemType": "book",
            "key": "BBBB2222",
            "title": "Second",
            "creators": [{"creatorType": "author", "lastName": "Jones"}],
            "date": "2019",
        },
    ]

    def test_imports_items_and_collects_errors(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault()
        source = StaticItemSource(self.ITEMS)
        result = import_zotero_items(
            source, citation_service, vault, frontmatter_builder, note_settings, collection="COLL1", limit=10
        )

        assert source.calls == [("COLL1", 10)]
        assert result.items_processed == 3
        assert result.notes_created == 2
        assert result.citekeys == ["smith2020", "jones2019"]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("BAD00001: ")
        assert set(vault.files) == {"Literature/@smith2020.md", "Literature/@jones2019.md"}

    def test_second_run_skips_existing_notes(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault()
        source = StaticItemSource(self.ITEMS)
        import_zotero_items(source, citation_service, vault, frontmatter_builder, note_settings)
        result = import_zotero_items(source, citation_service, vault, frontmatter_builder, note_settings)

        assert result.notes_created == 0
        assert result.notes_skipped == 2
        assert len(result.warnings) == 2

    def test_overwrite(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault()
        source = StaticItemSource(self.ITEMS[:1])
        import_zotero_items(source, citation_service, vault, frontmatter_builder, note_settings)
        result = import_zotero_items(source, citation_service, vault, frontmatter_builder, note_settings, overwrite=True)
        assert result.notes_created == 1

    def test_rejected_vault_path_is_an_item_error(self, citation_service, frontmatter_builder, note_settings):
        class GuardedVault(InMemoryVault):
            def exists(self, path):
                if "jones" in path:
                    raise VaultPathError(path, "/vault")
                return super().exists(path)

        vault = GuardedVault()
        result = import_zotero_items(StaticItemSource(self.ITEMS), citation_service, vault, frontmatter_builder, note_settings)

        assert result.notes_created == 1
        assert len(result.errors) == 2
        assert result.errors[1].startswith("BBBB2222: Path 'Literature/@jones2019.md' escapes the vault root")
        assert set(vault.files) == {"Literature/@smith2020.md"}


class TestImportCslRecords:
    """Tests for import_csl_records."""

    RECORDS = [
        {
            "id": "vaswani-attention",
            "type": "article-journal",
            "title": "Attention Is All You Need",
            "author": [{"family": "Vaswani", "given": "Ashish"}],
            "issued": {"date-parts": [[2017]]},
        },
        SMITH_RECORD,
        "not a record",
    ]

    def test_keeps_imported_citekeys(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault()
        result = import_csl_records(self.RECORDS, citation_service, vault, frontmatter_builder, note_settings)

        assert result.items_processed == 3
        assert result.notes_created == 2
        assert result.citekeys == ["vaswani-attention", "smith2020"]
        assert set(vault.files) == {"Literature/@vaswani-attention.md", "Literature/@smith2020.md"}

    def test_generates_citekeys(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault()
        result = import_csl_records(
            self.RECORDS, citation_service, vault, frontmatter_builder, note_settings, citekey_preference="generate"
        )

        assert result.citekeys == ["vaswani2017", "smith2020"]
        assert vault.read_frontmatter("Literature/@vaswani2017.md")["id"] == "vaswani2017"

    def test_invalid_record_does_not_abort_batch(self, citation_service, frontmatter_builder, note_settings):
        records = ["not a record", *self.RECORDS[:2]]
        result = import_csl_records(records, citation_service, InMemoryVault(), frontmatter_builder, note_settings)

        assert result.notes_created == 2
        assert result.errors == ["record 1: Invalid csl record: expected an object, got str"]

    def test_skips_existing_notes(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault({"Literature/@smith2020.md": "original"})
        result = import_csl_records([SMITH_RECORD], citation_service, vault, frontmatter_builder, note_settings)

        assert result.notes_created == 0
        assert result.notes_skipped == 1
        assert "already exists" in result.warnings[0]
        assert vault.files["Literature/@smith2020.md"] == "original"

    def test_overwrites_existing_notes(self, citation_service, frontmatter_builder, note_settings):
        vault = InMemoryVault({"Literature/@smith2020.md": "original"})
        result = import_csl_records(
            [SMITH_RECORD], citation_service, vault, frontmatter_builder, note_settings, overwrite=True
        )

        assert result.notes_created == 1
        assert vault.files["Literature/@smith2020.md"].startswith("---\nid: smith2020\n")

    def test_unknown_citekey_preference(self, citation_service, frontmatter_builder, note_settings):
        with pytest.raises(ValueError, match="citekey_preference"):
            import_csl_records([], citation_service, InMemoryVault(), frontmatter_builder, note_settings, citekey_preference="zotero")


class TestBuildBibliography:
    """Tests for build_bibliography."""

    def make_vault(self):
        return InMemoryVault(
            {
                "Literature/@b2020.md": note({"id": "b2020", "title": "B", "tags": ["literature_note"]}),
                "Literature/@a2019.md": note({"id": "a2019", "title": "A", "tags": ["ml", "literature_note"]}),
                "Papers/c.md": note({"id": "c2018", "tags": ["paper"]}),
                "Journal.md": note({"title": "Diary", "tags": ["daily"]}),
                "Plain.md": "# No frontmatter\n",
                "Broken.md": "---\nid: [unclosed\n---\n",
            }
        )

    def test_writes_citekey_lists_and_json(self):
        vault = self.make_vault()
        result = build_bibliography(vault, NoteSettings())

        assert result.entries == 2
        assert vault.files["biblib/citekeylist"] == "a2019\nb2020"
        assert vault.files["citekeylist.md"] == "@a2019\n@b2020"

        entries = json.loads(vault.files["biblib/bibliography.json"])
        assert [entry["id"] for entry in entries] == ["a2019", "b2020"]
        assert entries[0]["filename"] == "@a2019"
        assert entries[0]["path"] == "Literature/@a2019.md"
        assert list(entries[0])[:3] == ["id", "filename", "path"]
        assert entries[0]["tags"] == ["ml", "literature_note"]

    def test_multiple_literature_note_tags(self):
        vault = self.make_vault()
        result = build_bibliography(vault, NoteSettings(literature_note_tag="literature_note, paper"))
        assert result.entries == 3
        assert vault.files["citekeylist.md"] == "@a2019\n@b2020\n@c2018"

    def test_custom_output_paths(self):
        vault = self.make_vault()
        settings = NoteSettings(attachment_folder="", citekey_list_path="out/keys.md", bibliography_json_path="out/bib.json")
        result = build_bibliography(vault, settings)

        assert result.raw_citekey_list_path == "citekeylist"
        assert "citekeylist" in vault.files
        assert "out/keys.md" in vault.files
        assert "out/bib.json" in vault.files

    def test_empty_vault(self):
        vault = InMemoryVault()
        result = build_bibliography(vault, NoteSettings())
        assert result.entries == 0
        assert json.loads(vault.files["biblib/bibliography.json"]) == []

    def test_find_literature_notes_ignores_other_notes(self):
        notes = find_literature_notes(self.make_vault(), ["literature_note"])
        assert [path for path, _ in notes] == ["Literature/@a2019.md", "Literature/@b2020.md"]

"""Unit tests for biblib.toml settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from biblib.infrastructure.config.settings import (
    DEFAULT_FRONTMATTER_FIELDS,
    CitekeySettings,
    Settings,
    ZoteroSettings,
    parse_literature_note_tags,
)

FULL_CONFIG = """
[vault]
root = "/data/Notes"

[notes]
literature_note_path = "Literature"
literature_note_tag = "literature_note, paper"
filename_template = "{{citekey}}"

[citekey]
citekey_template = "{{author}}{{year}}"
min_citekey_length = 8
use_zotero_keys = true

[[frontmatter.fields]]
name = "status"
template = "reading"

[[frontmatter.fields]]
name = "keyword"
template = "[]"
enabled = false

[zotero]
library_id = "999"
library_type = "group"
local = true
"""


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "biblib.toml"
    path.write_text(text)
    return path


def test_missing_file_gives_defaults(clean_env, tmp_path):
    settings = Settings.from_toml(tmp_path / "missing.toml")

    assert settings.vault.root == "."
    assert settings.notes.literature_note_path == "/"
    assert settings.notes.literature_note_tags == ["literature_note"]
    assert settings.citekey.citekey_template == "{{author|lowercase}}{{title|titleword}}{{year}}"
    assert settings.citekey.use_zotero_keys is False
    assert [field.name for field in settings.frontmatter.fields] == [field.name for field in DEFAULT_FRONTMATTER_FIELDS]
    assert settings.zotero.library_type == "user"
    assert settings.zotero.local is False


def test_full_config(clean_env, tmp_path):
    settings = Settings.from_toml(write_config(tmp_path, FULL_CONFIG))

    assert settings.vault.root == "/data/Notes"
    assert settings.notes.literature_note_path == "Literature"
    assert settings.notes.literature_note_tags == ["literature_note", "paper"]
    assert settings.notes.header_template.startswith("# ")

    options = settings.citekey.to_options()
    assert options.citekey_template == "{{author}}{{year}}"
    assert options.min_citekey_length == 8
    assert options.use_zotero_keys is True

    assert [(f.name, f.enabled) for f in settings.frontmatter.fields] == [("status", True), ("keyword", False)]
    assert settings.zotero.library_id == "999"
    assert settings.zotero.library_type == "group"
    assert settings.zotero.local is True


def test_frontmatter_section_without_fields_keeps_defaults(clean_env, tmp_path):
    settings = Settings.from_toml(write_config(tmp_path, "[frontmatter]\n"))
    assert len(settings.frontmatter.fields) == len(DEFAULT_FRONTMATTER_FIELDS)


def test_environment_overrides(clean_env, tmp_path):
    clean_env.setenv("BIBLIB_VAULT", "/env/vault")
    clean_env.setenv("ZOTERO_LIBRARY_ID", "env-id")
    clean_env.setenv("ZOTERO_API_KEY", "env-key")

    settings = Settings.from_toml(write_config(tmp_path, FULL_CONFIG))

    assert settings.vault.root == "/env/vault"
    assert settings.zotero.library_id == "env-id"
    assert settings.zotero.api_key == "env-key"
    # Unset ZOTERO_LOCAL / ZOTERO_LIBRARY_TYPE leave the TOML values alone
    assert settings.zotero.local is True
    assert settings.zotero.library_type == "group"


def test_environment_library_type(clean_env):
    clean_env.setenv("ZOTERO_LIBRARY_TYPE", "group")
    assert ZoteroSettings().library_type == "group"


def test_invalid_library_type(clean_env):
    with pytest.raises(ValidationError, match="library_type"):
        ZoteroSettings(library_type="organisation")


def test_invalid_citekey_option():
    with pytest.raises(ValueError, match="author_abbreviation_style"):
        CitekeySettings(author_abbreviation_style="initials").to_options()


@pytest.mark.parametrize(
    "text, tags",
    [
        ("literature_note", ["literature_note"]),
        ("a, b  c,,", ["a", "b", "c"]),
        ("", []),
        (None, []),
    ],
)
def test_parse_literature_note_tags(text, tags):
    assert parse_literature_note_tags(text) == tags

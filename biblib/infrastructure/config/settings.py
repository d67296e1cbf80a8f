"""Pydantic settings for biblib.toml configuration."""

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ...application.dto.notes import FrontmatterField, NoteSettings, parse_literature_note_tags
from ...domain.policy.citekey_policy import CitekeyOptions
from .environment import get_env, get_zotero_config, load_environment_variables

__all__ = ["Settings", "parse_literature_note_tags"]

DEFAULT_CONFIG_PATH = "biblib.toml"

DEFAULT_FRONTMATTER_FIELDS = (
    FrontmatterField(name="year", template="{{year}}"),
    FrontmatterField(name="dateCreated", template="{{currentDate}}"),
    FrontmatterField(name="status", template="to-read"),
    FrontmatterField(name="aliases", template='["{{title|sentence}}"]'),
    FrontmatterField(name="author-links", template='[{{#authors}}"[[Author/{{.}}]]",{{/authors}}]'),
    FrontmatterField(name="attachment", template='[{{#pdflink}}"[[{{.}}]]",{{/pdflink}}]'),
    FrontmatterField(name="keyword", template="[]"),
    FrontmatterField(name="related", template="[{{links_string}}]"),
)


class VaultSettings(BaseModel):
    """Vault location."""

    root: str = "."

    def __init__(self, **data: Any) -> None:
        env_root = get_env("BIBLIB_VAULT")
        if env_root:
            data["root"] = env_root
        super().__init__(**data)


class CitekeySettings(BaseModel):
    """Citekey generation settings (snake_case keys of ``CitekeyOptions``)."""

    citekey_template: str = "{{author|lowercase}}{{title|titleword}}{{year}}"
    use_zotero_keys: bool = False
    min_citekey_length: int = 6
    author_abbreviation_style: str = "full"
    include_multiple_authors: bool = False
    max_authors: int = 3
    use_two_author_style: str = "and"
    use_et_al: bool = True
    author_year_delimiter: str = ""
    short_citekey_delimiter: str = ""

    def to_options(self) -> CitekeyOptions:
        """
        Raises:
            ValueError: If an option is out of range (see ``CitekeyOptions``)
        """
        return CitekeyOptions.from_mapping(self.model_dump())


class FrontmatterSettings(BaseModel):
    """Custom frontmatter fields rendered into every literature note."""

    fields: list[FrontmatterField] = Field(default_factory=lambda: list(DEFAULT_FRONTMATTER_FIELDS))


class ZoteroSettings(BaseModel):
    """Zotero connection settings; environment variables win over TOML."""

    library_id: str = ""
    library_type: str = "user"
    api_key: str = ""
    local: bool = False

    def __init__(self, **data: Any) -> None:
        load_environment_variables()
        env_config = get_zotero_config()
        for key, variable in (("library_type", "ZOTERO_LIBRARY_TYPE"), ("local", "ZOTERO_LOCAL")):
            if get_env(variable) is None:
                env_config.pop(key)
        data.update(env_config)
        super().__init__(**data)

    @field_validator("library_type")
    @classmethod
    def validate_library_type(cls, v: str) -> str:
        if v not in ("user", "group"):
            raise ValueError(f"library_type must be 'user' or 'group', got {v!r}")
        return v


class Settings(BaseModel):
    """Main settings loaded from biblib.toml."""

    vault: VaultSettings = Field(default_factory=VaultSettings)
    notes: NoteSettings = Field(default_factory=NoteSettings)
    citekey: CitekeySettings = Field(default_factory=CitekeySettings)
    frontmatter: FrontmatterSettings = Field(default_factory=FrontmatterSettings)
    zotero: ZoteroSettings = Field(default_factory=ZoteroSettings)

    @classmethod
    def from_toml(cls, toml_path: Path | str = DEFAULT_CONFIG_PATH) -> "Settings":
        """
        Load settings from a TOML file; a missing file gives the defaults.

        Environment variables (system env > .env file) override the vault
        root and the Zotero section.

        Args:
            toml_path: Path to biblib.toml

        Returns:
            Settings instance
        """
        load_environment_variables()

        toml_path = Path(toml_path)
        if not toml_path.exists():
            return cls()

        with toml_path.open("rb") as f:
            data = tomllib.load(f)

        frontmatter_data = data.get("frontmatter", {})
        return cls(
            vault=VaultSettings(**data.get("vault", {})),
            notes=NoteSettings(**data.get("notes", {})),
            citekey=CitekeySettings(**data.get("citekey", {})),
            frontmatter=FrontmatterSettings(**frontmatter_data) if "fields" in frontmatter_data else FrontmatterSettings(),
            zotero=ZoteroSettings(**data.get("zotero", {})),
        )

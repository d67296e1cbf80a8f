"""Input record shapes validated at the application boundary."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ...domain.errors import InvalidCitationRecord
from ...domain.models.contributor import Contributor
from ...domain.services.date_parser import DateParser
from ...domain.types import BibliographicRecord
from ...domain.zotero_mappings import DEFAULT_CSL_TYPE

# CSL name variables recognised when collecting contributors from a record
CSL_NAME_FIELDS = (
    "author",
    "editor",
    "translator",
    "contributor",
    "container-author",
    "collection-editor",
    "reviewed-author",
    "director",
    "composer",
    "performer",
    "producer",
    "script-writer",
    "guest",
    "interviewer",
    "recipient",
)

ModelT = TypeVar("ModelT", bound=BaseModel)


class AdditionalField(BaseModel):
    """User-defined frontmatter field entered alongside a record."""

    name: str
    value: Any = None
    type: str = "text"  # text | number | date


class CslRecord(BaseModel):
    """CSL-JSON entry from a paste, a lookup service or a file."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str = DEFAULT_CSL_TYPE
    title: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, value: Any) -> Any:
        return value or DEFAULT_CSL_TYPE

    def to_record(self) -> BibliographicRecord:
        """Canonical record: array-valued ISBN/ISSN collapse, keyword lists join."""
        record = self.model_dump(exclude_none=True)
        for key in ("ISBN", "ISSN"):
            value = record.get(key)
            if isinstance(value, list):
                if value:
                    record[key] = value[0]
                else:
                    del record[key]
        keyword = record.get("keyword")
        if isinstance(keyword, list):
            record["keyword"] = ", ".join(str(k) for k in keyword)
        return record


class ZoteroCreator(BaseModel):
    """Zotero creator entry (person or single-field name)."""

    model_config = ConfigDict(extra="allow")

    creatorType: str | None = None
    firstName: str | None = None
    lastName: str | None = None
    name: str | None = None


class ZoteroTag(BaseModel):
    model_config = ConfigDict(extra="allow")

    tag: str
    type: int | None = None


class ZoteroItem(BaseModel):
    """
    Zotero JSON item.

    Only the shape is validated; every Zotero field is kept so the mapper
    sees the item as exported.
    """

    model_config = ConfigDict(extra="allow")

    itemType: str
    key: str | None = None
    creators: list[ZoteroCreator] = Field(default_factory=list)
    tags: list[ZoteroTag] = Field(default_factory=list)

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> ZoteroItem:
        """
        Unwrap an item returned by the Zotero Web or local API.

        API items arrive as ``{"key": ..., "data": {...}}``; plain export
        items are accepted as-is.
        """
        data = payload.get("data")
        if isinstance(data, Mapping):
            item = dict(data)
            item.setdefault("key", payload.get("key"))
        else:
            item = dict(payload)
        return validate_record(cls, item, "zotero")

    def to_record(self) -> BibliographicRecord:
        return self.model_dump(exclude_none=True)


class FormDraft(BaseModel):
    """Record assembled from form-style input (scalar fields, date parts, contributors)."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str = DEFAULT_CSL_TYPE
    title: str = ""
    year: str | None = None
    month: str | None = None
    day: str | None = None
    contributors: list[Contributor] = Field(default_factory=list)
    additional_fields: list[AdditionalField] = Field(default_factory=list)

    @field_validator("year", "month", "day", mode="before")
    @classmethod
    def coerce_date_part(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def to_record(self) -> BibliographicRecord:
        """
        Canonical record.

        Date parts become ``issued`` (month and day only when valid) and
        contributors are grouped into CSL name lists by role. Additional
        fields stay on the draft; they are frontmatter, not CSL data.
        """
        record = self.model_dump(
            exclude={"contributors", "additional_fields", "month", "day"},
            exclude_none=True,
        )
        issued = DateParser.from_fields(self.year, self.month, self.day)
        if issued is not None:
            record["issued"] = issued
        for contributor in self.contributors:
            if contributor.has_name:
                record.setdefault(contributor.role, []).append(contributor.to_dict(include_role=False))
        return record


def validate_record(model: type[ModelT], data: Any, shape: str) -> ModelT:
    """Validate ``data`` against ``model``, raising ``InvalidCitationRecord`` on failure."""
    if not isinstance(data, Mapping):
        raise InvalidCitationRecord(shape, f"expected an object, got {type(data).__name__}")
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise InvalidCitationRecord(shape, str(e)) from e


def contributors_from_record(record: Mapping[str, Any]) -> list[Contributor]:
    """Collect contributors from the CSL name lists of a record."""
    contributors: list[Contributor] = []
    for role in CSL_NAME_FIELDS:
        names = record.get(role)
        if not isinstance(names, list):
            continue
        for name in names:
            if isinstance(name, Mapping):
                contributor = Contributor.from_dict(dict(name), role=role)
            elif isinstance(name, str) and name.strip():
                contributor = Contributor(role=role, literal=name)
            else:
                continue
            if contributor.has_name:
                contributors.append(contributor)
    return contributors

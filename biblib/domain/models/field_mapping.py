"""Declarative Zotero-to-CSL field mapping rules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Converter(str, Enum):
    """Typed conversions applied to a Zotero value before assignment."""

    TYPE = "TYPE"
    DATE = "DATE"
    CREATORS = "CREATORS"
    TAGS = "TAGS"


@dataclass(frozen=True)
class FieldMapping:
    """
    Projection of one Zotero source field onto one CSL target field.

    Attributes:
        source: Zotero field name (creator roles appear as field names too)
        target: CSL field name
        converter: Optional typed converter
        when_item_type: Restricts the rule to these Zotero item types
        zotero_only: Value is kept internally as the Zotero key, not as a CSL field
        extra_field: Value is kept internally as the Extra field for later parsing
    """

    source: str
    target: str
    converter: Converter | None = None
    when_item_type: frozenset[str] | None = None
    zotero_only: bool = False
    extra_field: bool = False

    def __post_init__(self) -> None:
        """Validate field mapping."""
        if not self.source or not self.target:
            raise ValueError("source and target must be non-empty")
        if self.zotero_only and self.extra_field:
            raise ValueError(f"rule '{self.source}' cannot be both zotero_only and extra_field")

    def applies_to(self, item_type: str | None) -> bool:
        return self.when_item_type is None or item_type in self.when_item_type

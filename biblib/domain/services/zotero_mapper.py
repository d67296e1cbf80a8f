"""Rule-driven mapping of Zotero JSON items onto CSL-JSON records."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from biblib.domain.clock import Clock
from biblib.domain.models.field_mapping import Converter, FieldMapping
from biblib.domain.services.date_parser import DateParser
from biblib.domain.types import BibliographicRecord, CslDate
from biblib.domain.zotero_mappings import (
    EXTRA_FIELDS_CSL_MAP,
    FIELD_MAPPINGS,
    PRESERVE_CASE_FIELDS,
    csl_type_for,
    preserved_case,
)

logger = logging.getLogger(__name__)

# Internal keys stashed on the mapped record and removed by the citation service
ZOTERO_KEY_FIELD = "_zoteroKey"
EXTRA_CONTENT_FIELD = "_extraFieldContent"

BYLINE_ITEM_TYPES = ("webpage", "newspaperArticle")
_LITERAL_NAME_FIELDS = ("fullName", "displayName", "text", "author", "byline")
_WHITESPACE = re.compile(r"\s+")


class ZoteroCslMapper:
    """
    Domain service converting Zotero items to CSL-JSON.

    Mapping is driven by ``FIELD_MAPPINGS``: each rule copies one Zotero
    field (creator roles included, after grouping) onto one CSL field,
    optionally through a typed converter. The service is pure apart from
    CURRENT date markers, which read the injected clock.
    """

    @staticmethod
    def map_item(
        item: Mapping[str, Any],
        clock: Clock | None = None,
        rules: tuple[FieldMapping, ...] = FIELD_MAPPINGS,
    ) -> BibliographicRecord:
        """
        Map a Zotero item to a CSL record.

        Args:
            item: Zotero JSON item (``itemType``, ``creators``, type-specific fields)
            clock: Clock used for CURRENT date markers
            rules: Mapping table (defaults to the built-in table)

        Returns:
            CSL record. The Zotero key and the Extra field are kept under the
            internal ``_zoteroKey`` / ``_extraFieldContent`` keys.
        """
        item_type = item.get("itemType")
        csl: BibliographicRecord = {"type": csl_type_for(item_type)}

        access_date = item.get("accessDate")
        if _is_current_marker(access_date):
            csl["accessed"] = DateParser.to_csl_date(DateParser.current_date(clock))

        source = {key: value for key, value in item.items() if key != "creators"}
        source.update(ZoteroCslMapper.group_creators(item))

        for rule in rules:
            if not rule.applies_to(item_type):
                continue
            value = source.get(rule.source)
            if value is None or value == "":
                continue

            if rule.converter is not None:
                try:
                    value = ZoteroCslMapper.convert(rule.converter, value, clock)
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    logger.warning(
                        "Converter failed, skipping field",
                        extra={"source": rule.source, "target": rule.target, "error": str(e)},
                    )
                    continue
            if value is None:
                continue

            if rule.zotero_only:
                csl[ZOTERO_KEY_FIELD] = value
            elif rule.extra_field:
                csl[EXTRA_CONTENT_FIELD] = value
            else:
                csl[preserved_case(rule.target)] = value

        return _post_process(csl, item, clock)

    @staticmethod
    def group_creators(item: Mapping[str, Any]) -> dict[str, list[Any]]:
        """
        Group ``item["creators"]`` by ``creatorType``.

        Creators without a type count as authors. Web pages and newspaper
        articles without any author fall back to their ``byline`` field.
        """
        groups: dict[str, list[Any]] = {}
        creators = item.get("creators")
        if isinstance(creators, list):
            for creator in creators:
                creator_type = creator.get("creatorType") if isinstance(creator, Mapping) else None
                if not isinstance(creator_type, str) or not creator_type:
                    logger.debug("Zotero creator without creatorType, treating as author")
                    creator_type = "author"
                groups.setdefault(creator_type, []).append(creator)

        byline = item.get("byline")
        if (
            item.get("itemType") in BYLINE_ITEM_TYPES
            and not groups.get("author")
            and not groups.get("reporter")
            and isinstance(byline, str)
            and byline.strip()
        ):
            groups["author"] = [{"creatorType": "author", "name": byline}]
        return groups

    @staticmethod
    def convert(converter: Converter, value: Any, clock: Clock | None = None) -> Any:
        """Apply a typed converter to a Zotero value."""
        if converter is Converter.TYPE:
            return csl_type_for(value)
        if converter is Converter.DATE:
            return DateParser.to_csl_date(DateParser.parse(value, clock))
        if converter is Converter.CREATORS:
            if not isinstance(value, list):
                return None
            names = (ZoteroCslMapper.map_creator(creator) for creator in value)
            return [name for name in names if name is not None]
        if converter is Converter.TAGS:
            if not isinstance(value, list) or not value:
                return None
            return ", ".join(tag if isinstance(tag, str) else str(tag["tag"]) for tag in value)
        raise ValueError(f"Unknown converter: {converter}")

    @staticmethod
    def map_creator(creator: Any) -> dict[str, str] | None:
        """
        Map one Zotero creator to a CSL name.

        Single-field and byline-style creators become ``{"literal": ...}``,
        people become ``{"family": ..., "given": ...}``. Returns None for
        entries with no usable name.
        """
        if not creator:
            return None
        if isinstance(creator, str):
            return {"literal": creator}
        if not isinstance(creator, Mapping):
            return None

        if creator.get("name"):
            return {"literal": str(creator["name"])}
        if creator.get("lastName") or creator.get("firstName"):
            name = {"family": str(creator.get("lastName") or "")}
            if creator.get("firstName"):
                name["given"] = str(creator["firstName"])
            return name
        for field in _LITERAL_NAME_FIELDS:
            if creator.get(field):
                return {"literal": str(creator[field])}
        return None

    @staticmethod
    def parse_extra_field(extra: str | None, clock: Clock | None = None) -> dict[str, Any]:
        """
        Parse Zotero's Extra field into CSL fields.

        Each ``Key: Value`` line maps its key through ``EXTRA_FIELDS_CSL_MAP``,
        then the case-preserved field list, and otherwise to
        ``lowercase-with-hyphens``. Quoted values are unquoted with escaped
        newlines restored; keys mentioning "date" are parsed as CSL dates.
        Lines without ``": "`` are ignored.
        """
        if not extra:
            return {}
        fields: dict[str, Any] = {}
        for line in extra.strip().split("\n"):
            parts = line.split(": ")
            if len(parts) < 2:
                continue
            key = parts[0].strip()
            value = ": ".join(parts[1:]).strip()
            if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
                value = value[1:-1].replace("\\n", "\n")

            csl_key = _extra_key_to_csl(key)
            if "date" in csl_key.lower() or "date" in key.lower():
                fields[csl_key] = _parse_extra_date(value, clock)
            else:
                fields[csl_key] = value
        return fields


def _extra_key_to_csl(key: str) -> str:
    if key in EXTRA_FIELDS_CSL_MAP:
        return EXTRA_FIELDS_CSL_MAP[key]
    canonical = preserved_case(key)
    if canonical in PRESERVE_CASE_FIELDS:
        return canonical
    return _WHITESPACE.sub("-", key.lower())


def _parse_extra_date(value: str, clock: Clock | None) -> CslDate | str:
    csl_date = DateParser.to_csl_date(DateParser.parse(value, clock))
    return csl_date if csl_date is not None else value


def _is_current_marker(value: Any) -> bool:
    if isinstance(value, str):
        return DateParser.is_current_marker(value)
    if isinstance(value, Mapping):
        raw = value.get("raw")
        if isinstance(raw, str):
            return DateParser.is_current_marker(raw)
        return "CURRENT_DATE" in value
    return False


def _post_process(csl: BibliographicRecord, item: Mapping[str, Any], clock: Clock | None) -> BibliographicRecord:
    if not csl.get("issued") and item.get("year"):
        year = DateParser.from_fields(item["year"])
        if year is not None:
            csl["issued"] = year

    if csl.get("type") == "song" and not csl.get("author") and csl.get("performer"):
        csl["author"] = csl["performer"]

    for field_name in PRESERVE_CASE_FIELDS:
        lowered = field_name.lower()
        if lowered in csl and field_name not in csl:
            csl[field_name] = csl.pop(lowered)

    if _is_current_marker(csl.get("accessed")):
        csl["accessed"] = DateParser.to_csl_date(DateParser.current_date(clock))
    return csl

"""Generic normaliser for loosely structured citation data (Zotero, Citoid, CSL)."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any

from ...domain.services.date_parser import DateParser
from ...domain.zotero_mappings import ZOTERO_TYPES_TO_CSL

logger = logging.getLogger(__name__)

FALLBACK_CSL_TYPE = "article"

# Non-CSL field names and their CSL equivalents; existing CSL fields win
FIELD_ALIASES = {
    "journalAbbreviation": "container-title-short",
    "shortTitle": "title-short",
    "publicationTitle": "container-title",
    "bookTitle": "container-title",
    "conferenceName": "event",
    "proceedingsTitle": "container-title",
    "encyclopediaTitle": "container-title",
    "dictionaryTitle": "container-title",
    "websiteTitle": "container-title",
    "reportNumber": "number",
    "billNumber": "number",
    "seriesNumber": "number",
    "patentNumber": "number",
    "numPages": "number-of-pages",
    "numberOfVolumes": "number-of-volumes",
    "isbn": "ISBN",
    "issn": "ISSN",
    "pages": "page",
    "firstPage": "page-first",
    "place": "publisher-place",
    "archive_location": "archive-location",
    "event_place": "event-place",
    "publisher_place": "publisher-place",
    "abstractNote": "abstract",
    "url": "URL",
}

DATE_ALIASES = {
    "date": "issued",
    "accessDate": "accessed",
    "dateDecided": "issued",
    "dateEnacted": "issued",
}

CREATOR_ROLES = {
    "bookAuthor": "container-author",
    "reviewedAuthor": "reviewed-author",
    "seriesEditor": "collection-editor",
}


class LenientCslParser:
    """
    Best-effort CSL normaliser used when rule-based Zotero mapping fails.

    Unlike the Zotero mapper it makes no assumptions about the input shape:
    aliases are copied only when the CSL field is absent, MediaWiki-style
    author arrays (``[["Given", "Family"], ...]``) are converted, and
    unknown item types fall back to ``article``.
    """

    def parse(self, data: dict[str, Any], type_hint: str | None = None) -> dict[str, Any]:
        """
        Normalise citation data to CSL-JSON.

        Args:
            data: Raw citation data (not modified)
            type_hint: Input format hint, only used for logging

        Returns:
            CSL-JSON record

        Raises:
            ValueError: If ``data`` is not a non-empty object with a title or type
        """
        if not isinstance(data, Mapping) or not data:
            raise ValueError("citation data must be a non-empty object")
        if not any(data.get(key) for key in ("title", "itemType", "type")):
            raise ValueError("citation data has neither a title nor a type")

        logger.debug("Parsing citation data leniently", extra={"type_hint": type_hint})
        record: dict[str, Any] = copy.deepcopy(dict(data))

        for source, target in FIELD_ALIASES.items():
            if source in record and target not in record:
                record[target] = record[source]

        item_type = record.pop("itemType", None)
        if not record.get("type"):
            record["type"] = _csl_type(item_type)

        if _is_mediawiki_names(record.get("author")):
            record["author"] = _convert_mediawiki_names(record["author"])

        creators = record.pop("creators", None)
        if isinstance(creators, list):
            for role, names in _group_creators(creators).items():
                record[role] = names

        for source, target in DATE_ALIASES.items():
            value = record.get(source)
            if isinstance(value, str) and value:
                csl_date = DateParser.to_csl_date(DateParser.parse(value))
                if csl_date is not None:
                    record[target] = csl_date
                if source != target:
                    record.pop(source, None)

        tags = _tag_names(record.get("tags"))
        if tags:
            record.setdefault("keyword", ", ".join(tags))
            record["tags"] = tags

        for key in ("ISBN", "ISSN"):
            value = record.get(key)
            if isinstance(value, list) and value:
                record[key] = value[0]

        num_pages = record.pop("numPages", None)
        if num_pages and isinstance(num_pages, str) and num_pages.isdigit():
            record["number-of-pages"] = int(num_pages)

        return record


def _csl_type(item_type: Any) -> str:
    if not isinstance(item_type, str) or item_type == "document":
        return FALLBACK_CSL_TYPE
    return ZOTERO_TYPES_TO_CSL.get(item_type, FALLBACK_CSL_TYPE)


def _is_mediawiki_names(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and isinstance(value[0], list)


def _convert_mediawiki_names(names: list[Any]) -> list[dict[str, str]]:
    converted = []
    for name in names:
        if not isinstance(name, list) or not name:
            continue
        if len(name) >= 2:
            converted.append({"given": name[0], "family": name[1]})
        else:
            converted.append({"family": name[0]})
    return converted


def _group_creators(creators: list[Any]) -> dict[str, list[dict[str, Any]]]:
    grouped: dict[str, list[dict[str, Any]]] = {}
    for creator in creators:
        if not isinstance(creator, Mapping):
            continue
        role = creator.get("creatorType") or "author"
        role = CREATOR_ROLES.get(role, role)
        if creator.get("firstName") and creator.get("lastName"):
            name = {"given": creator["firstName"], "family": creator["lastName"]}
        elif creator.get("given") and creator.get("family"):
            name = {"given": creator["given"], "family": creator["family"]}
        elif creator.get("lastName"):
            name = {"family": creator["lastName"]}
        elif creator.get("name"):
            name = {"literal": creator["name"]}
        else:
            continue
        grouped.setdefault(role, []).append(name)
    return grouped


def _tag_names(tags: Any) -> list[str]:
    if not isinstance(tags, list):
        return []
    names = []
    for tag in tags:
        if isinstance(tag, str) and tag:
            names.append(tag)
        elif isinstance(tag, Mapping) and tag.get("tag"):
            names.append(str(tag["tag"]))
    return names

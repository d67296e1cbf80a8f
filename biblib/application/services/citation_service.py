"""Application service turning raw citation inputs into citekeyed CSL records."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from ...domain.clock import Clock, RandomSource
from ...domain.errors import InvalidZoteroItem, ZoteroMappingError
from ...domain.policy.citekey_policy import CitekeyOptions
from ...domain.services.citekey_generator import CitekeyGenerator
from ...domain.services.zotero_mapper import EXTRA_CONTENT_FIELD, ZOTERO_KEY_FIELD, ZoteroCslMapper
from ...domain.types import BibliographicRecord
from ...domain.zotero_mappings import DEFAULT_CSL_TYPE
from ..dto.records import CslRecord, validate_record
from ..ports.citation_parser import FallbackCitationParserPort

logger = logging.getLogger(__name__)

_PROTECTED_FIELDS = ("id", "type")
_EXTRA_AUTHOR = re.compile(r"Author:\s*([^\n]+)", re.IGNORECASE)


class CitationService:
    """
    Normalizes CSL-JSON entries and Zotero items into records with an ``id``.

    Args:
        citekey_options: Citekey generation policy
        fallback_parser: Generic parser tried when Zotero mapping fails
        clock: Clock for CURRENT date markers
        rng: Random source for citekey suffixes
    """

    def __init__(
        self,
        citekey_options: CitekeyOptions | None = None,
        fallback_parser: FallbackCitationParserPort | None = None,
        clock: Clock | None = None,
        rng: RandomSource | None = None,
    ):
        self.citekey_options = citekey_options or CitekeyOptions()
        self.fallback_parser = fallback_parser
        self.clock = clock
        self.rng = rng

    def generate_citekey(self, record: BibliographicRecord | None) -> str:
        return CitekeyGenerator.generate(record, self.citekey_options, rng=self.rng, clock=self.clock)

    def normalize_csl(self, entry: Mapping[str, Any]) -> BibliographicRecord:
        """
        Validate a CSL-JSON entry and make sure it has a ``type`` and an ``id``.

        Raises:
            InvalidCitationRecord: If the entry is not a CSL-JSON object
        """
        record = validate_record(CslRecord, entry, "csl").to_record()
        record["type"] = record.get("type") or DEFAULT_CSL_TYPE
        citekey = record.get("id")
        if not isinstance(citekey, str) or not citekey.strip():
            record["id"] = self.generate_citekey(record)
        return record

    def parse_zotero_item(self, item: Any) -> BibliographicRecord:
        """
        Map a Zotero JSON item to a citekeyed CSL record.

        Steps: byline fallback for web and news items without creators,
        rule-based mapping, Extra field merge (``id`` and ``type`` protected),
        citekey assignment and final cleanup of internal keys.

        Args:
            item: Zotero JSON item

        Returns:
            CSL record with ``id`` and ``type``

        Raises:
            InvalidZoteroItem: If ``item`` is not a Zotero item
            ZoteroMappingError: If mapping and the fallback parser both fail
                (chained from the mapping error)
        """
        if not isinstance(item, Mapping):
            logger.error("Invalid Zotero item provided", extra={"item_type": type(item).__name__})
            raise InvalidZoteroItem(f"expected an object, got {type(item).__name__}")
        if not item.get("itemType"):
            raise InvalidZoteroItem("missing 'itemType'")

        item = _with_inferred_creators(item)

        try:
            return self._map_zotero_item(item)
        except Exception as mapping_error:
            logger.error(
                "Error mapping Zotero item to CSL",
                extra={"item_key": item.get("key"), "item_type": item.get("itemType"), "error": str(mapping_error)},
                exc_info=True,
            )
            try:
                return self._parse_with_fallback(item)
            except Exception as fallback_error:
                logger.error(
                    "Fallback parser also failed",
                    extra={"item_key": item.get("key"), "error": str(fallback_error)},
                )
                raise ZoteroMappingError(item.get("key"), item.get("itemType"), mapping_error) from mapping_error

    def _map_zotero_item(self, item: Mapping[str, Any]) -> BibliographicRecord:
        csl = ZoteroCslMapper.map_item(item, clock=self.clock)

        extra_content = csl.pop(EXTRA_CONTENT_FIELD, None)
        if isinstance(extra_content, str):
            self._merge_extra_fields(csl, ZoteroCslMapper.parse_extra_field(extra_content, clock=self.clock))

        zotero_key = csl.pop(ZOTERO_KEY_FIELD, None)
        generated = False
        if zotero_key and self.citekey_options.use_zotero_keys:
            csl["id"] = zotero_key
        else:
            csl["id"] = self.generate_citekey(csl)
            generated = True

        if generated and csl["id"] in (csl.get("DOI"), csl.get("URL")):
            logger.warning(
                "Generated citekey equals the DOI/URL, consider refining the citekey template",
                extra={"citekey": csl["id"]},
            )
        csl["type"] = csl.get("type") or DEFAULT_CSL_TYPE
        return csl

    def _merge_extra_fields(self, csl: BibliographicRecord, extra_fields: dict[str, Any]) -> None:
        for key, value in extra_fields.items():
            if isinstance(csl.get(key), list):
                # Name lists (e.g. an ``Author:`` line already used for creators) are not flattened
                logger.debug("Extra field would replace a name list, ignoring", extra={"field": key})
                continue
            if key not in _PROTECTED_FIELDS:
                csl[key] = value
            elif key == "type" and value:
                logger.warning("Type override attempted via Extra field, ignoring", extra={"extra_type": value})

    def _parse_with_fallback(self, item: Mapping[str, Any]) -> BibliographicRecord:
        if self.fallback_parser is None:
            raise RuntimeError("no fallback citation parser configured")
        logger.warning("Falling back to generic citation parsing for Zotero item", extra={"item_key": item.get("key")})

        entry = self.fallback_parser.parse(dict(item), type_hint="zotero")
        if not entry:
            raise ValueError("fallback parser returned empty data")
        entry["type"] = entry.get("type") or DEFAULT_CSL_TYPE

        citekey = entry.get("id")
        if not isinstance(citekey, str) or not citekey.strip():
            entry["id"] = self.generate_citekey(entry)
        elif citekey == item.get("key") and not self.citekey_options.use_zotero_keys:
            entry["id"] = self.generate_citekey(entry)
        return entry


def _with_inferred_creators(item: Mapping[str, Any]) -> Mapping[str, Any]:
    """Add an author from ``byline`` or an ``Author:`` Extra line to web/news items without creators."""
    creators = item.get("creators")
    if isinstance(creators, list) and creators:
        return item
    if item.get("itemType") not in ("webpage", "newspaperArticle"):
        return item

    byline = item.get("byline")
    extra = item.get("extra")
    name: str | None = None
    if isinstance(byline, str) and byline.strip():
        name = byline
    elif isinstance(extra, str) and "Author:" in extra:
        match = _EXTRA_AUTHOR.search(extra)
        if match:
            name = match.group(1).strip()
    if not name:
        return item
    return {**item, "creators": [{"creatorType": "author", "name": name}]}

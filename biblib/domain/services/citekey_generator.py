"""Domain service producing Pandoc-compatible citation keys."""

from __future__ import annotations

import logging
import random
import re
from collections.abc import Mapping
from typing import Any

from biblib.domain.clock import Clock, RandomSource, SystemClock
from biblib.domain.policy.citekey_policy import CitekeyOptions
from biblib.domain.services.template_engine import TITLE_STOP_WORDS, TemplateEngine, extract_title_words
from biblib.domain.services.text_values import leading_int
from biblib.domain.types import BibliographicRecord, TemplateVariables

logger = logging.getLogger(__name__)

NO_DATA_CITEKEY = "error_no_data"
EMPTY_CITEKEY = "error_generating_citekey"
UNKNOWN_AUTHOR = "unknown"

SHORT_TITLE_STOP_WORDS = TITLE_STOP_WORDS | frozenset(
    {
        "about", "above", "across", "after", "against", "along", "among", "around",
        "before", "behind", "below", "beneath", "beside", "between", "beyond",
        "concerning", "considering", "despite", "down", "during", "except",
        "following", "inside", "minus", "onto", "opposite", "out", "outside", "per",
        "plus", "regarding", "round", "save", "through", "toward", "towards", "under",
        "underneath", "unlike", "until", "up", "versus", "via", "within", "without",
    }
)

_LEGACY_FIELD = re.compile(r"\[([a-zA-Z0-9_]+)((?::[a-zA-Z0-9(),]+)*)\]")
_LEGACY_ABBR = re.compile(r"^abbr\((\d+)\)$")
_LEGACY_WORDS = re.compile(r"^words\((\d+)\)$")
_LITERAL_SEPARATORS = re.compile(r"[\s,\-.:;()&/]+")
_AUTHOR_ILLEGAL = re.compile(r"[^a-z0-9_-]")
_YEAR = re.compile(r"\b(\d{4})\b")
_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")


class CitekeyGenerator:
    """
    Domain service generating citekeys from bibliographic records.

    Priority order:
        1. Zotero key pass-through (``use_zotero_keys`` and a ``key``/``id``)
        2. ``citekey_template`` rendered with the TemplateEngine
        3. Legacy author/year generator driven by the remaining options

    ``generate`` never raises: failures degrade to a sentinel or to an
    alphanumeric author+year fallback.
    """

    @staticmethod
    def generate(
        record: BibliographicRecord | None,
        options: CitekeyOptions | None = None,
        rng: RandomSource | None = None,
        clock: Clock | None = None,
    ) -> str:
        """
        Generate a citekey.

        Args:
            record: CSL-JSON record or raw Zotero item
            options: Generation policy (defaults to ``CitekeyOptions()``)
            rng: Random source for length-padding suffixes
            clock: Clock for the fallback year

        Returns:
            Citekey, ``error_no_data`` for a missing record or
            ``error_generating_citekey`` when the template renders empty

        Example:
            >>> CitekeyGenerator.generate(
            ...     {"author": [{"family": "Smith"}], "issued": {"date-parts": [[2023]]}},
            ...     CitekeyOptions(citekey_template="{{author|lowercase}}{{year}}"),
            ... )
            'smith2023'
        """
        if record is None:
            logger.warning("Cannot generate citekey: record is missing")
            return NO_DATA_CITEKEY

        options = options or CitekeyOptions()
        rng = rng or random

        try:
            if options.use_zotero_keys:
                zotero_key = record.get("key") or record.get("id")
                if isinstance(zotero_key, str) and zotero_key.strip():
                    return zotero_key.strip()

            if options.citekey_template and options.citekey_template.strip():
                template = CitekeyGenerator.convert_legacy_template(options.citekey_template)
                variables = CitekeyGenerator.build_variables(record)
                citekey = TemplateEngine.render(template, variables, sanitize_for_citekey=True, rng=rng)
                if not citekey:
                    logger.warning("Citekey template rendered empty", extra={"template": options.citekey_template})
                    return EMPTY_CITEKEY
                if len(citekey) < options.min_citekey_length:
                    citekey += _random_suffix(rng)
                return citekey

            logger.debug("No citekey template configured, using legacy generator")
            return CitekeyGenerator._generate_legacy(record, options, rng)

        except Exception as e:
            logger.warning(
                "Citekey generation failed, using fallback key",
                extra={"error": str(e)},
                exc_info=True,
            )
            return CitekeyGenerator._fallback_citekey(record, clock or SystemClock())

    @staticmethod
    def convert_legacy_template(template: str) -> str:
        """
        Convert bracket templates to mustache syntax.

        ``[auth:lower][year]`` becomes ``{{author|lower}}{{year}}``,
        ``[auth:abbr(3)]`` becomes ``{{author|abbr3}}`` and
        ``[title:words(1)]`` becomes ``{{title|titleword}}``.
        """

        def replace(match: re.Match[str]) -> str:
            field = match.group(1).lower()
            name = "author" if field == "auth" else field
            modifiers = [_convert_modifier(field, mod) for mod in match.group(2)[1:].split(":") if mod]
            pipes = "".join(f"|{mod}" for mod in modifiers)
            return "{{" + name + pipes + "}}"

        return _LEGACY_FIELD.sub(replace, template)

    @staticmethod
    def build_variables(record: BibliographicRecord) -> TemplateVariables:
        """Variables available to citekey templates: the record plus author/year/title helpers."""
        title = record.get("title") or record.get("Title")
        return {
            **record,
            "author": CitekeyGenerator.extract_author_part(record),
            "year": CitekeyGenerator.extract_year(record),
            "title": record.get("title") or "",
            "shorttitle": extract_title_words(title, 3, SHORT_TITLE_STOP_WORDS) if isinstance(title, str) else "",
            "authors": _author_entries(record) or [],
        }

    @staticmethod
    def extract_author_part(record: BibliographicRecord) -> str:
        """
        Lowercased last name of the first author.

        Looks at ``author`` first, then Zotero ``creators`` of type author,
        then the first creator of any type. Returns ``unknown`` when no name
        resolves; title text is never substituted.
        """
        authors = _author_entries(record)
        creators = record.get("creators")
        name = ""
        if authors:
            name = CitekeyGenerator.extract_last_name(authors[0])
        elif isinstance(creators, list) and creators:
            name = CitekeyGenerator.extract_last_name(creators[0])
        return name or UNKNOWN_AUTHOR

    @staticmethod
    def extract_last_name(author: Any) -> str:
        """
        Cleaned, lowercased last name of a single author entry.

        Handles ``{family}``, Zotero ``{lastName}``, institutional
        ``{literal}`` (first token) and plain ``"Last, First"`` or
        ``"First Last"`` strings. Returns ``''`` when nothing usable is found.
        """
        last_name = ""
        if isinstance(author, Mapping):
            last_name = author.get("family") or author.get("lastName") or ""
            literal = author.get("literal")
            if not last_name and isinstance(literal, str):
                tokens = [token for token in _LITERAL_SEPARATORS.split(literal) if token]
                last_name = tokens[0] if tokens else ""
        elif isinstance(author, str):
            if "," in author:
                last_name = author.split(",", 1)[0].strip()
            else:
                last_name = author.split(" ")[0].strip()
        if not isinstance(last_name, str):
            last_name = str(last_name)
        return _AUTHOR_ILLEGAL.sub("", last_name.lower())

    @staticmethod
    def extract_year(record: BibliographicRecord) -> str:
        """
        Four-digit publication year, or ``''``.

        Tries ``issued["date-parts"][0][0]`` (kept only between 1000 and
        3000), then ``year``, ``issued.literal``, ``date`` and finally
        ``issued`` as a plain string.
        """
        issued = record.get("issued")
        if isinstance(issued, Mapping):
            date_parts = issued.get("date-parts")
            if isinstance(date_parts, list) and date_parts and isinstance(date_parts[0], list) and date_parts[0]:
                year = leading_int(date_parts[0][0])
                if year is not None and 1000 < year < 3000:
                    return str(year)

        candidates = [record.get("year")]
        if isinstance(issued, Mapping) and isinstance(issued.get("literal"), str):
            candidates.append(issued["literal"])
        if isinstance(record.get("date"), str):
            candidates.append(record["date"])
        if isinstance(issued, str):
            candidates.append(issued)

        for candidate in candidates:
            if candidate in (None, ""):
                continue
            match = _YEAR.search(str(candidate))
            if match:
                return match.group(1)
        return ""

    # --- Legacy generator ---

    @staticmethod
    def _generate_legacy(record: BibliographicRecord, options: CitekeyOptions, rng: RandomSource) -> str:
        author_part = _capitalize(CitekeyGenerator.extract_author_part(record))
        if options.author_abbreviation_style == "firstThree":
            author_part = author_part[:3]
        elif options.author_abbreviation_style == "firstFour":
            author_part = author_part[:4]

        if options.include_multiple_authors:
            author_part += _additional_authors_marker(record, options)

        citekey = author_part + options.author_year_delimiter + CitekeyGenerator.extract_year(record)
        if len(citekey) < options.min_citekey_length:
            citekey += options.short_citekey_delimiter + _random_suffix(rng)
        return _NON_ALPHANUMERIC.sub("", citekey)

    @staticmethod
    def _fallback_citekey(record: Any, clock: Clock) -> str:
        author = UNKNOWN_AUTHOR
        year = ""
        if isinstance(record, Mapping):
            try:
                author = CitekeyGenerator.extract_author_part(record)
                year = CitekeyGenerator.extract_year(record)
            except (AttributeError, TypeError, ValueError):
                logger.debug("Fallback citekey could not read record fields", exc_info=True)
        citekey = _NON_ALPHANUMERIC.sub("", author + (year or str(clock.now().year)))
        return citekey or UNKNOWN_AUTHOR


def _convert_modifier(field: str, modifier: str) -> str:
    abbr = _LEGACY_ABBR.match(modifier)
    if abbr:
        return f"abbr{abbr.group(1)}"
    if _LEGACY_WORDS.match(modifier):
        if field == "title":
            return "titleword"
        if field == "shorttitle":
            return "shorttitle"
    return modifier


def _author_entries(record: BibliographicRecord) -> list[Any]:
    authors = record.get("author")
    if isinstance(authors, list) and authors:
        return authors
    creators = record.get("creators")
    if isinstance(creators, list):
        return [c for c in creators if isinstance(c, Mapping) and c.get("creatorType") == "author"]
    return []


def _additional_authors_marker(record: BibliographicRecord, options: CitekeyOptions) -> str:
    names = [name for name in (CitekeyGenerator.extract_last_name(a) for a in _author_entries(record)) if name]
    if len(names) == 2:
        if options.use_two_author_style == "and":
            return "And" + _capitalize(names[1])
        return names[1][:1].upper()
    if len(names) > 2:
        if options.use_et_al:
            return "EtAl"
        return "".join(name[:1].upper() for name in names[1 : options.max_authors])
    return ""


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def _random_suffix(rng: RandomSource) -> str:
    return f"{rng.randint(0, 999):03d}"

"""Static Zotero-to-CSL mapping tables."""

from __future__ import annotations

from types import MappingProxyType

from .models.field_mapping import Converter, FieldMapping

DEFAULT_CSL_TYPE = "document"

ZOTERO_TYPES_TO_CSL = MappingProxyType({
    "artwork": "graphic",
    "audioRecording": "song",
    "bill": "bill",
    "blogPost": "post-weblog",
    "book": "book",
    "bookSection": "chapter",
    "case": "legal_case",
    "computerProgram": "software",
    "conferencePaper": "paper-conference",
    "dataset": "dataset",
    "dictionaryEntry": "entry-dictionary",
    "document": "document",
    "email": "personal_communication",
    "encyclopediaArticle": "entry-encyclopedia",
    "film": "motion_picture",
    "forumPost": "post",
    "hearing": "hearing",
    "instantMessage": "personal_communication",
    "interview": "interview",
    "journalArticle": "article-journal",
    "letter": "personal_communication",
    "magazineArticle": "article-magazine",
    "manuscript": "manuscript",
    "map": "map",
    "newspaperArticle": "article-newspaper",
    "patent": "patent",
    "podcast": "song",
    "preprint": "article",
    "presentation": "speech",
    "radioBroadcast": "broadcast",
    "report": "report",
    "standard": "standard",
    "statute": "legislation",
    "thesis": "thesis",
    "tvBroadcast": "broadcast",
    "videoRecording": "motion_picture",
    "webpage": "webpage",
})

# "Key: Value" lines found in Zotero's Extra field
EXTRA_FIELDS_CSL_MAP = MappingProxyType({
    "Citation Key": "citation-key",
    "Original Date": "original-date",
    "Original Title": "original-title",
    "Original Publisher": "original-publisher",
    "Original Publisher Place": "original-publisher-place",
    "Event Date": "event-date",
    "Event Place": "event-place",
    "Submitted": "submitted",
    "Status": "status",
    "Medium": "medium",
    "Genre": "genre",
    "Chapter Number": "chapter-number",
    "Collection Number": "collection-number",
    "Reviewed Title": "reviewed-title",
    "Dimensions": "dimensions",
    "Scale": "scale",
    "PMID": "PMID",
    "PMCID": "PMCID",
})

PRESERVE_CASE_FIELDS: tuple[str, ...] = ("DOI", "ISBN", "ISSN", "URL", "PMID", "PMCID")


def _rule(
    source: str,
    target: str,
    converter: Converter | None = None,
    types: tuple[str, ...] | None = None,
    zotero_only: bool = False,
    extra_field: bool = False,
) -> FieldMapping:
    return FieldMapping(
        source=source,
        target=target,
        converter=converter,
        when_item_type=frozenset(types) if types else None,
        zotero_only=zotero_only,
        extra_field=extra_field,
    )


_BROADCASTS = ("tvBroadcast", "radioBroadcast")

# Rules are applied in order; a later rule wins when two rules share a target.
FIELD_MAPPINGS: tuple[FieldMapping, ...] = (
    _rule("itemType", "type", Converter.TYPE),
    _rule("key", "id", zotero_only=True),
    _rule("extra", "note", extra_field=True),
    # Core descriptive fields
    _rule("title", "title"),
    _rule("shortTitle", "title-short"),
    _rule("abstractNote", "abstract"),
    _rule("date", "issued", Converter.DATE),
    _rule("accessDate", "accessed", Converter.DATE),
    _rule("url", "URL"),
    _rule("DOI", "DOI"),
    _rule("ISBN", "ISBN"),
    _rule("ISSN", "ISSN"),
    _rule("language", "language"),
    _rule("volume", "volume"),
    _rule("issue", "issue"),
    _rule("pages", "page"),
    _rule("numPages", "number-of-pages"),
    _rule("numberOfVolumes", "number-of-volumes"),
    _rule("edition", "edition"),
    _rule("publisher", "publisher"),
    _rule("place", "publisher-place"),
    _rule("series", "collection-title"),
    _rule("seriesNumber", "collection-number"),
    _rule("archive", "archive"),
    _rule("archiveLocation", "archive_location"),
    _rule("callNumber", "call-number"),
    _rule("rights", "license"),
    _rule("libraryCatalog", "source"),
    _rule("genre", "genre"),
    _rule("runningTime", "dimensions"),
    _rule("tags", "keyword", Converter.TAGS),
    # Containers
    _rule("publicationTitle", "container-title"),
    _rule("bookTitle", "container-title", types=("bookSection",)),
    _rule("proceedingsTitle", "container-title", types=("conferencePaper",)),
    _rule("websiteTitle", "container-title", types=("webpage",)),
    _rule("blogTitle", "container-title", types=("blogPost",)),
    _rule("forumTitle", "container-title", types=("forumPost",)),
    _rule("encyclopediaTitle", "container-title", types=("encyclopediaArticle",)),
    _rule("dictionaryTitle", "container-title", types=("dictionaryEntry",)),
    _rule("programTitle", "container-title", types=_BROADCASTS),
    _rule("section", "section", types=("newspaperArticle",)),
    # Events
    _rule("conferenceName", "event-title"),
    _rule("meetingName", "event-title", types=("presentation",)),
    # Type-specific publishers, numbers and genres
    _rule("university", "publisher", types=("thesis",)),
    _rule("thesisType", "genre", types=("thesis",)),
    _rule("institution", "publisher", types=("report",)),
    _rule("reportType", "genre", types=("report",)),
    _rule("reportNumber", "number", types=("report",)),
    _rule("websiteType", "genre", types=("webpage",)),
    _rule("patentNumber", "number", types=("patent",)),
    _rule("issuingAuthority", "authority", types=("patent",)),
    _rule("issueDate", "issued", Converter.DATE, types=("patent",)),
    _rule("filingDate", "submitted", Converter.DATE, types=("patent",)),
    _rule("caseName", "title", types=("case",)),
    _rule("court", "authority", types=("case",)),
    _rule("dateDecided", "issued", Converter.DATE, types=("case",)),
    _rule("docketNumber", "number", types=("case",)),
    _rule("nameOfAct", "title", types=("statute",)),
    _rule("publicLawNumber", "number", types=("statute",)),
    _rule("dateEnacted", "issued", Converter.DATE, types=("statute",)),
    _rule("billNumber", "number", types=("bill",)),
    _rule("studio", "publisher", types=("film",)),
    _rule("distributor", "publisher", types=("film",)),
    _rule("label", "publisher", types=("audioRecording",)),
    _rule("network", "publisher", types=_BROADCASTS),
    _rule("episodeNumber", "number", types=(*_BROADCASTS, "podcast")),
    _rule("company", "publisher", types=("computerProgram",)),
    _rule("versionNumber", "version", types=("computerProgram",)),
    _rule("artworkMedium", "medium", types=("artwork",)),
    _rule("artworkSize", "dimensions", types=("artwork",)),
    _rule("audioRecordingFormat", "medium", types=("audioRecording",)),
    _rule("videoRecordingFormat", "medium", types=("videoRecording",)),
    _rule("interviewMedium", "medium", types=("interview",)),
    _rule("letterType", "genre", types=("letter",)),
    _rule("manuscriptType", "genre", types=("manuscript",)),
    _rule("mapType", "genre", types=("map",)),
    _rule("scale", "scale", types=("map",)),
    _rule("presentationType", "genre", types=("presentation",)),
    _rule("postType", "genre", types=("forumPost",)),
    # Creators, grouped by creatorType before the rules run
    _rule("author", "author", Converter.CREATORS),
    _rule("editor", "editor", Converter.CREATORS),
    _rule("translator", "translator", Converter.CREATORS),
    _rule("contributor", "contributor", Converter.CREATORS),
    _rule("bookAuthor", "container-author", Converter.CREATORS),
    _rule("seriesEditor", "collection-editor", Converter.CREATORS),
    _rule("reviewedAuthor", "reviewed-author", Converter.CREATORS),
    _rule("director", "director", Converter.CREATORS),
    _rule("composer", "composer", Converter.CREATORS),
    _rule("performer", "performer", Converter.CREATORS),
    _rule("producer", "producer", Converter.CREATORS),
    _rule("scriptwriter", "script-writer", Converter.CREATORS),
    _rule("guest", "guest", Converter.CREATORS),
    _rule("interviewer", "interviewer", Converter.CREATORS),
    _rule("recipient", "recipient", Converter.CREATORS),
    _rule("inventor", "author", Converter.CREATORS, types=("patent",)),
    _rule("podcaster", "author", Converter.CREATORS, types=("podcast",)),
    _rule("interviewee", "author", Converter.CREATORS, types=("interview",)),
    _rule("cartographer", "author", Converter.CREATORS, types=("map",)),
    _rule("programmer", "author", Converter.CREATORS, types=("computerProgram",)),
    _rule("artist", "author", Converter.CREATORS, types=("artwork",)),
    _rule("sponsor", "author", Converter.CREATORS, types=("bill",)),
    _rule("presenter", "author", Converter.CREATORS, types=("presentation",)),
)


def csl_type_for(item_type: object) -> str:
    """Look up the CSL type of a Zotero item type, defaulting to ``document``."""
    if isinstance(item_type, str):
        return ZOTERO_TYPES_TO_CSL.get(item_type, DEFAULT_CSL_TYPE)
    return DEFAULT_CSL_TYPE


def preserved_case(field_name: str) -> str:
    """Return the canonical casing of ``field_name`` if it is case-preserved."""
    lowered = field_name.lower()
    for candidate in PRESERVE_CASE_FIELDS:
        if candidate.lower() == lowered:
            return candidate
    return field_name

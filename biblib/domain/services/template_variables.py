"""Flat variable scope consumed by note and frontmatter templates."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import PurePosixPath
from typing import Any

from biblib.domain.clock import Clock, SystemClock
from biblib.domain.models.contributor import Contributor
from biblib.domain.types import BibliographicRecord, TemplateVariables

_ATTACHMENT_LABELS = {".pdf": "PDF", ".epub": "EPUB"}


class TemplateVariableBuilder:
    """
    Builds template variables from a record, its contributors, attachments
    and related notes.

    Every record field is available unqualified (``{{DOI}}``), alongside:
        - ``citekey``, ``currentDate``, ``currentTime``, ``authorsDisplay``
        - per role: ``{role}s``, ``{role}s_raw``, ``{role}s_family``, ``{role}s_given``
        - ``pdflink``, ``attachments``, ``attachment``, ``raw_pdflink``,
          ``quoted_attachment``, ``quoted_attachments``
        - ``links``, ``linkPaths``, ``links_string``

    Attachment and link variables are always present, empty when unused.
    """

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or SystemClock()

    def build(
        self,
        record: BibliographicRecord,
        contributors: Sequence[Contributor],
        attachment_paths: Iterable[str] | None = None,
        related_note_paths: Iterable[str] | None = None,
    ) -> TemplateVariables:
        now = self.clock.now()
        variables: TemplateVariables = {
            "currentDate": now.strftime("%Y-%m-%d"),
            "currentTime": now.strftime("%H:%M:%S"),
            "authorsDisplay": format_authors_display(contributors),
            **record,
            **build_contributor_lists(contributors),
            "citekey": record.get("id") or "",
        }
        variables.update(build_attachment_variables(attachment_paths))
        variables.update(build_link_variables(related_note_paths))
        return variables


def format_authors_display(contributors: Sequence[Contributor]) -> str:
    """
    Short author credit: ``J. Smith``, ``J. Smith and J. Jones`` or ``J. Smith et al.``.

    Names are trimmed; institutions keep their literal name.
    """
    names = [
        name for name in (format_contributor_name(c) for c in contributors if (c.role or "author") == "author") if name
    ]
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return f"{names[0]} et al."


def format_contributor_name(contributor: Contributor) -> str:
    family = (contributor.family or "").strip()
    given = (contributor.given or "").strip()
    literal = (contributor.literal or "").strip()
    if literal:
        return literal
    if family and given:
        return f"{given[0].upper()}. {family}"
    return family or given


def build_contributor_lists(contributors: Sequence[Contributor]) -> dict[str, Any]:
    """
    Per-role name lists.

    ``{role}s`` holds ``"Given Family"`` strings (or the literal name) with
    the original whitespace kept; roles without contributors are absent.
    """
    by_role: dict[str, list[Contributor]] = {}
    for contributor in contributors:
        by_role.setdefault(contributor.role or "author", []).append(contributor)

    result: dict[str, Any] = {}
    for role, members in by_role.items():
        result[f"{role}s_raw"] = [member.to_dict() for member in members]
        result[f"{role}s"] = [name for name in (_full_name(member) for member in members) if name]
        result[f"{role}s_family"] = [m.family or m.literal for m in members if m.family or m.literal]
        result[f"{role}s_given"] = [m.given for m in members if m.given]
    return result


def build_attachment_variables(paths: Iterable[str] | None) -> dict[str, Any]:
    """Attachment link variables; single-value slots use the first attachment."""
    raw_paths = [path for path in (paths or []) if path and path.strip()]
    links = [f"[[{path}|{attachment_label(path)}]]" for path in raw_paths]
    first_link = links[0] if links else ""
    return {
        "pdflink": raw_paths,
        "attachments": links,
        "attachment": first_link,
        "raw_pdflink": raw_paths[0] if raw_paths else "",
        "quoted_attachment": f'"{first_link}"' if first_link else "",
        "quoted_attachments": [f'"{link}"' for link in links],
    }


def build_link_variables(paths: Iterable[str] | None) -> dict[str, Any]:
    link_paths = [path for path in (paths or []) if path]
    links = [f"[[{path}]]" for path in link_paths]
    return {
        "links": links,
        "linkPaths": link_paths,
        "links_string": ", ".join(links),
    }


def attachment_label(path: str) -> str:
    """Wikilink label for an attachment: ``PDF``, ``EPUB`` or the uppercased extension."""
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in _ATTACHMENT_LABELS:
        return _ATTACHMENT_LABELS[suffix]
    return suffix[1:].upper() or "attachment"


def _full_name(contributor: Contributor) -> str:
    if contributor.literal:
        return contributor.literal
    family = contributor.family or ""
    given = contributor.given or ""
    if family and given:
        return f"{given} {family}"
    return family or given

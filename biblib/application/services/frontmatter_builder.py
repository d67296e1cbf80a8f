"""Application service assembling literature note frontmatter."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from ...domain.models.contributor import Contributor
from ...domain.services.date_parser import DateParser
from ...domain.services.template_engine import TemplateEngine
from ...domain.services.template_variables import TemplateVariableBuilder
from ...domain.services.text_values import leading_float
from ...domain.services.yaml_array import process_yaml_array
from ...domain.types import BibliographicRecord
from ..dto.notes import FrontmatterField
from ..dto.records import AdditionalField

logger = logging.getLogger(__name__)

OPTIONAL_FIELDS = (
    "title-short",
    "page",
    "URL",
    "DOI",
    "container-title",
    "publisher",
    "publisher-place",
    "edition",
    "volume",
    "number",
    "language",
    "abstract",
)
NUMERIC_FIELDS = ("edition", "volume", "number")

# Custom fields whose plain template passes the attachment list through unchanged
_PASSTHROUGH_TEMPLATES = {
    "pdflink": ("{{pdflink}}", "pdflink"),
    "attachment": ("{{attachment}}", "attachments"),
}


class FrontmatterBuilder:
    """
    Builds the frontmatter mapping of a literature note.

    Args:
        variable_builder: Builds the template variables for custom fields
        literature_note_tags: Tags every literature note carries
        custom_fields: Template-driven frontmatter fields
    """

    def __init__(
        self,
        variable_builder: TemplateVariableBuilder,
        literature_note_tags: Sequence[str],
        custom_fields: Sequence[FrontmatterField] = (),
    ):
        self.variable_builder = variable_builder
        self.literature_note_tags = list(literature_note_tags)
        self.custom_fields = list(custom_fields)

    def build(
        self,
        record: BibliographicRecord,
        contributors: Sequence[Contributor],
        additional_fields: Sequence[AdditionalField] = (),
        attachment_paths: Sequence[str] = (),
        related_note_paths: Sequence[str] = (),
    ) -> dict[str, Any]:
        """
        Build frontmatter in a stable key order.

        Order: base fields, optional CSL fields, tags, contributors by role,
        additional fields, then enabled custom fields (which never replace
        a field already present).
        """
        frontmatter: dict[str, Any] = {
            "id": record.get("id"),
            "type": record.get("type"),
            "title": record.get("title"),
        }
        issued = _issued_date(record)
        if issued is not None:
            frontmatter["issued"] = issued

        for field_name in OPTIONAL_FIELDS:
            value = record.get(field_name)
            if value in (None, "", []):
                continue
            frontmatter[field_name] = _numeric_or_text(value) if field_name in NUMERIC_FIELDS else value

        frontmatter["tags"] = self._tags(record.get("tags"))

        for contributor in contributors:
            if contributor.has_name:
                frontmatter.setdefault(contributor.role, []).append(contributor.to_dict(include_role=False))

        for field in additional_fields:
            if field.name and field.value not in (None, ""):
                frontmatter[field.name] = _additional_value(field)

        enabled = [field for field in self.custom_fields if field.enabled]
        if enabled:
            variables = self.variable_builder.build(record, contributors, attachment_paths, related_note_paths)
            for field in enabled:
                self._apply_custom_field(frontmatter, field, variables)
        return frontmatter

    def _tags(self, record_tags: Any) -> list[Any]:
        tags = list(record_tags) if isinstance(record_tags, list) else []
        tags.extend(self.literature_note_tags)
        return list(dict.fromkeys(tags))

    def _apply_custom_field(self, frontmatter: dict[str, Any], field: FrontmatterField, variables: Mapping[str, Any]) -> None:
        passthrough = _PASSTHROUGH_TEMPLATES.get(field.name)
        if passthrough and field.template == passthrough[0]:
            values = variables.get(passthrough[1])
            if values:
                frontmatter[field.name] = values
            return

        if field.name in frontmatter:
            return

        is_list_template = _is_bracketed(field.template.strip())
        rendered = TemplateEngine.render(field.template, variables, yaml_array=is_list_template)
        if is_list_template:
            rendered = process_yaml_array(rendered)

        stripped = rendered.strip()
        if _is_bracketed(stripped) or (stripped.startswith("{") and stripped.endswith("}")):
            try:
                frontmatter[field.name] = json.loads(stripped)
            except ValueError:
                logger.debug("Custom field is not valid JSON, keeping text", extra={"field": field.name})
                frontmatter[field.name] = rendered
        elif not stripped:
            if is_list_template:
                frontmatter[field.name] = []
        else:
            frontmatter[field.name] = rendered


def _is_bracketed(text: str) -> bool:
    return len(text) >= 2 and text.startswith("[") and text.endswith("]")


def _issued_date(record: BibliographicRecord) -> Any:
    issued = record.get("issued")
    if isinstance(issued, Mapping) and (issued.get("date-parts") or issued.get("raw") or issued.get("literal")):
        return dict(issued)
    return DateParser.from_fields(record.get("year"), record.get("month"), record.get("day"))


def _numeric_or_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return value
    return number if math.isfinite(number) else value


def _additional_value(field: AdditionalField) -> Any:
    value = field.value
    if field.type == "date":
        if isinstance(value, Mapping) and value.get("date-parts"):
            return dict(value)
        if isinstance(value, str):
            parsed = DateParser.parse(value)
            if parsed is not None and parsed.is_structured:
                return DateParser.to_csl_date(parsed)
        return value
    if field.type == "number":
        number = leading_float(value)
        if number is None:
            return value
        return int(number) if number.is_integer() else number
    return value

"""Domain service normalizing heterogeneous date inputs."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date
from typing import Any

from biblib.domain.clock import Clock, SystemClock
from biblib.domain.models.parsed_date import ParsedDate
from biblib.domain.services.text_values import leading_int
from biblib.domain.types import BibliographicRecord, CslDate

CURRENT_MARKERS = frozenset({"CURRENT", "CURREN", "CURRENT_DATE"})

_DATE_PATTERN = re.compile(r"^(\d{4})(?:[-/](\d{1,2}))?(?:[-/](\d{1,2}))?$")


class DateParser:
    """
    Domain service turning strings, CSL date objects and CURRENT markers
    into ``ParsedDate`` values.

    This service is pure (no I/O). The only non-determinism is the CURRENT
    marker, which reads the injected ``Clock``.
    """

    @staticmethod
    def parse(value: Any, clock: Clock | None = None) -> ParsedDate | None:
        """
        Parse any date-shaped value.

        Args:
            value: String (``2024``, ``2024-03``, ``2024/3/15``, ``2024-03-15T10:30:00``,
                ``CURRENT``), CSL date object (``{"date-parts": [[2024, 3]]}``),
                object with a ``raw`` string, ``date``/``datetime``, or anything
                else (stringified)
            clock: Clock used for CURRENT markers (defaults to system time)

        Returns:
            ParsedDate, or None for None/empty input

        Note:
            Never raises. Unrecognised strings come back as ``ParsedDate(raw=...)``.
        """
        if value is None or value == "":
            return None
        if isinstance(value, ParsedDate):
            return value
        if isinstance(value, str):
            if DateParser.is_current_marker(value):
                return DateParser.current_date(clock)
            return DateParser._parse_string(value)
        if isinstance(value, date):
            return ParsedDate.from_parts([value.year, value.month, value.day])
        if isinstance(value, Mapping):
            if DateParser._is_csl_date(value):
                return DateParser._parse_csl_date(value)
            raw = value.get("raw")
            if isinstance(raw, str):
                return DateParser.parse(raw, clock)
            if "CURRENT_DATE" in value:
                return DateParser.current_date(clock)
        return DateParser.parse(str(value), clock)

    @staticmethod
    def is_current_marker(value: str) -> bool:
        return value.upper() in CURRENT_MARKERS

    @staticmethod
    def current_date(clock: Clock | None = None) -> ParsedDate:
        """Today's date flagged as resolved from a CURRENT marker."""
        today = (clock or SystemClock()).now()
        return ParsedDate.from_parts([today.year, today.month, today.day], is_current=True)

    @staticmethod
    def to_csl_date(parsed: ParsedDate | None) -> CslDate | None:
        """Convert to ``{"date-parts": [[...]]}`` or ``{"raw": ...}``."""
        if parsed is None:
            return None
        if parsed.date_parts:
            return {"date-parts": [list(parsed.date_parts)]}
        if parsed.raw:
            return {"raw": parsed.raw}
        return None

    @staticmethod
    def extract_fields(record: BibliographicRecord) -> dict[str, str]:
        """
        Project a record's date onto ``year``/``month``/``day`` strings.

        Prefers ``issued["date-parts"][0]`` and falls back to scalar
        ``year``/``month``/``day`` fields. Missing parts are ``''``.
        """
        issued = record.get("issued")
        if isinstance(issued, Mapping):
            date_parts = issued.get("date-parts")
            if isinstance(date_parts, list) and date_parts and isinstance(date_parts[0], list) and date_parts[0]:
                parts = date_parts[0]
                return {
                    "year": _part_text(parts, 0),
                    "month": _part_text(parts, 1),
                    "day": _part_text(parts, 2),
                }
        return {
            "year": _scalar_text(record.get("year")),
            "month": _scalar_text(record.get("month")),
            "day": _scalar_text(record.get("day")),
        }

    @staticmethod
    def to_form_string(parsed: ParsedDate | None) -> str:
        """Render as ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD``; raw dates verbatim."""
        if parsed is None:
            return ""
        if parsed.year:
            parts = [parsed.year, parsed.month, parsed.day]
        elif parsed.date_parts:
            parts = list(parsed.date_parts) + [None] * (3 - len(parsed.date_parts))
        else:
            return parsed.raw or ""

        text = str(parts[0])
        if parts[1]:
            text += f"-{parts[1]:02d}"
            if parts[2]:
                text += f"-{parts[2]:02d}"
        return text

    @staticmethod
    def from_fields(year: Any, month: Any = None, day: Any = None) -> CslDate | None:
        """
        Build a CSL date from form fields.

        Returns None when ``year`` is not an integer. Month is kept only when
        it is within 1-12, day only when month was kept and it is within 1-31.
        """
        year_num = leading_int(year)
        if year_num is None:
            return None
        return {"date-parts": [_accepted_parts(year_num, month, day)]}

    # --- Private helpers ---

    @staticmethod
    def _is_csl_date(value: Mapping[str, Any]) -> bool:
        date_parts = value.get("date-parts")
        return isinstance(date_parts, list) and len(date_parts) > 0

    @staticmethod
    def _parse_csl_date(value: Mapping[str, Any]) -> ParsedDate | None:
        parts = value["date-parts"][0]
        year = leading_int(parts[0]) if isinstance(parts, list) and parts else None
        if year is None:
            raw = value.get("raw") or value.get("literal")
            return ParsedDate(raw=str(raw)) if raw else None

        month = parts[1] if len(parts) > 1 else None
        day = parts[2] if len(parts) > 2 else None
        return ParsedDate.from_parts(_accepted_parts(year, month, day))

    @staticmethod
    def _parse_string(text: str) -> ParsedDate:
        date_part = text.split("T")[0].strip()
        match = _DATE_PATTERN.match(date_part)
        if not match:
            return ParsedDate(raw=text)
        return ParsedDate.from_parts(_accepted_parts(int(match.group(1)), match.group(2), match.group(3)))


def _accepted_parts(year: int, month: Any, day: Any) -> list[int]:
    parts = [year]
    month_num = leading_int(month) if month not in (None, "") else None
    if month_num is not None and 1 <= month_num <= 12:
        parts.append(month_num)
        day_num = leading_int(day) if day not in (None, "") else None
        if day_num is not None and 1 <= day_num <= 31:
            parts.append(day_num)
    return parts


def _part_text(parts: list[Any], index: int) -> str:
    return _scalar_text(parts[index]) if len(parts) > index else ""


def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

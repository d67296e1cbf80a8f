"""Normalized date shape shared by every date-bearing field."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParsedDate:
    """
    A date normalized from a string, a CSL date object or a "current date" marker.

    Exactly one of two shapes is populated:
        - structured: ``date_parts`` is ``(year[, month[, day]])`` with the
          ``year``/``month``/``day`` attributes mirroring the accepted parts
        - raw: ``raw`` holds an unparseable input verbatim

    ``is_current`` marks dates resolved from a CURRENT sentinel.
    """

    date_parts: tuple[int, ...] = ()
    year: int | None = None
    month: int | None = None
    day: int | None = None
    raw: str | None = None
    is_current: bool = False

    def __post_init__(self) -> None:
        """Validate date parts ordering and ranges."""
        if len(self.date_parts) > 3:
            raise ValueError(f"date_parts holds at most 3 parts, got {len(self.date_parts)}")
        if len(self.date_parts) >= 2 and not 1 <= self.date_parts[1] <= 12:
            raise ValueError(f"month must be between 1 and 12, got {self.date_parts[1]}")
        if len(self.date_parts) == 3 and not 1 <= self.date_parts[2] <= 31:
            raise ValueError(f"day must be between 1 and 31, got {self.date_parts[2]}")
        if self.is_current and not self.date_parts:
            raise ValueError("current dates must carry date_parts")

    @property
    def is_structured(self) -> bool:
        return bool(self.date_parts)

    @classmethod
    def from_parts(cls, parts: list[int], is_current: bool = False) -> ParsedDate:
        """Build a structured date from already validated parts."""
        return cls(
            date_parts=tuple(parts),
            year=parts[0],
            month=parts[1] if len(parts) > 1 else None,
            day=parts[2] if len(parts) > 2 else None,
            is_current=is_current,
        )

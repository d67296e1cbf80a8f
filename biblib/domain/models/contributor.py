"""Contributor entries collected from forms and Zotero creators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Contributor:
    """
    A person or institution credited on a work.

    Either ``family``/``given`` (a person) or ``literal`` (an institution) is
    expected to be set. ``role`` is a free-form CSL role such as ``author``,
    ``editor`` or ``translator``.
    """

    role: str = "author"
    family: str | None = None
    given: str | None = None
    literal: str | None = None

    @property
    def has_name(self) -> bool:
        return bool(self.family or self.given or self.literal)

    def to_dict(self, include_role: bool = True) -> dict[str, Any]:
        """Serialize to a CSL name dict, omitting unset parts."""
        result: dict[str, Any] = {}
        if include_role:
            result["role"] = self.role
        if self.family is not None:
            result["family"] = self.family
        if self.given is not None:
            result["given"] = self.given
        if self.literal is not None:
            result["literal"] = self.literal
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any], role: str | None = None) -> Contributor:
        """Deserialize from a CSL name dict; ``role`` overrides any stored role."""
        return cls(
            role=role or data.get("role") or "author",
            family=data.get("family"),
            given=data.get("given"),
            literal=data.get("literal"),
        )

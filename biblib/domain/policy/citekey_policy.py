from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

AUTHOR_ABBREVIATION_STYLES = ("full", "firstThree", "firstFour")
TWO_AUTHOR_STYLES = ("and", "initial")


@dataclass(frozen=True)
class CitekeyOptions:
    """
    Policy for citekey generation.

    ``citekey_template`` drives generation when non-empty; the remaining
    author/year options only apply to the legacy generator used when the
    template is blank.
    """

    citekey_template: str = "{{author|lowercase}}{{year}}"
    use_zotero_keys: bool = True
    min_citekey_length: int = 6
    author_abbreviation_style: str = "full"
    include_multiple_authors: bool = False
    max_authors: int = 3
    use_two_author_style: str = "and"
    use_et_al: bool = True
    author_year_delimiter: str = ""
    short_citekey_delimiter: str = ""

    def __post_init__(self) -> None:
        """Validate citekey policy."""
        if self.min_citekey_length < 0:
            raise ValueError(f"min_citekey_length must be >= 0, got {self.min_citekey_length}")
        if self.max_authors < 1:
            raise ValueError(f"max_authors must be >= 1, got {self.max_authors}")
        if self.author_abbreviation_style not in AUTHOR_ABBREVIATION_STYLES:
            raise ValueError(
                f"author_abbreviation_style must be one of {AUTHOR_ABBREVIATION_STYLES}, "
                f"got {self.author_abbreviation_style!r}"
            )
        if self.use_two_author_style not in TWO_AUTHOR_STYLES:
            raise ValueError(
                f"use_two_author_style must be one of {TWO_AUTHOR_STYLES}, got {self.use_two_author_style!r}"
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "CitekeyOptions":
        """
        Build options from settings data.

        Accepts snake_case (``min_citekey_length``) and camelCase
        (``minCitekeyLength``) keys. Unknown keys are ignored and missing
        keys keep their defaults.
        """
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _snake_case(key)
            if name in known:
                values[name] = value
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _snake_case(key: str) -> str:
    return "".join(f"_{char.lower()}" if char.isupper() else char for char in key)

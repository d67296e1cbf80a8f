"""Domain models for bibliographic records."""

from .contributor import Contributor
from .field_mapping import Converter, FieldMapping
from .parsed_date import ParsedDate

__all__ = [
    "Contributor",
    "Converter",
    "FieldMapping",
    "ParsedDate",
]

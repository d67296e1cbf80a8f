"""Application services for orchestrating domain logic."""

from .citation_service import CitationService
from .frontmatter_builder import FrontmatterBuilder

__all__ = ["CitationService", "FrontmatterBuilder"]

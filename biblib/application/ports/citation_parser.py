from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class FallbackCitationParserPort(Protocol):
    """Protocol for a generic citation parser used when rule-based Zotero mapping fails."""

    def parse(self, data: dict[str, Any], type_hint: str | None = None) -> dict[str, Any]:
        """
        Parse loosely structured citation data into a CSL-JSON record.

        Args:
            data: Raw item (Zotero JSON, Citoid-style JSON or CSL-JSON)
            type_hint: Input format hint (e.g. ``"zotero"``)

        Returns:
            CSL-JSON record with at least ``type`` set

        Raises:
            ValueError: If the data cannot be interpreted as a citation
        """
        ...

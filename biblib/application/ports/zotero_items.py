from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ZoteroItemSourcePort(Protocol):
    """Protocol for fetching Zotero items (Web API, local API or JSON export)."""

    def fetch_items(self, collection: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        """
        Fetch top-level Zotero items.

        Args:
            collection: Collection key to restrict to (None for the whole library)
            limit: Maximum number of items (None for all)

        Returns:
            Zotero JSON items (``itemType``, ``creators``, ...). Attachments
            and notes are excluded.

        Raises:
            ZoteroAPIError: If the Zotero API cannot be reached
        """
        ...

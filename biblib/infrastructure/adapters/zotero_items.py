"""Zotero item sources: pyzotero Web/local API and JSON export files."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pyzotero import zotero

from ...application.ports.zotero_items import ZoteroItemSourcePort
from ...domain.errors import ZoteroAPIError
from ..config.environment import get_env, get_env_bool, load_environment_variables

logger = logging.getLogger(__name__)

# Child items are not bibliographic records
SKIPPED_ITEM_TYPES = frozenset({"attachment", "note", "annotation"})


def _item_type(item: dict[str, Any]) -> str | None:
    data = item.get("data")
    if isinstance(data, dict):
        return data.get("itemType")
    return item.get("itemType")


class PyzoteroItemSource(ZoteroItemSourcePort):
    """
    Fetches top-level items through pyzotero.

    Web API requests are spaced by ``MIN_REQUEST_INTERVAL`` and retried with
    exponential backoff; the local API (Zotero desktop running) is not
    rate limited.
    """

    MIN_REQUEST_INTERVAL = 0.5  # seconds
    MAX_RETRIES = 3

    def __init__(
        self,
        zotero_config: dict[str, Any] | None = None,
        client: Any | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            zotero_config: ``library_id``, ``library_type``, ``api_key``, ``local``;
                missing values come from ZOTERO_* environment variables
            client: Preconfigured ``zotero.Zotero`` instance
            sleep: Sleep function used between requests and retries

        Raises:
            ZoteroAPIError: If the library ID or (for the Web API) the API key is missing
        """
        load_environment_variables()
        config = zotero_config or {}
        self.local = bool(config.get("local")) or get_env_bool("ZOTERO_LOCAL", False)
        self._sleep = sleep
        self._last_request_time = 0.0

        if client is not None:
            self.zot = client
            return

        library_id = config.get("library_id") or get_env("ZOTERO_LIBRARY_ID")
        library_type = config.get("library_type") or get_env("ZOTERO_LIBRARY_TYPE") or "user"
        if not library_id:
            raise ZoteroAPIError(
                "connect",
                hint="Set ZOTERO_LIBRARY_ID (use 1 for the local API user library) or [zotero] library_id.",
            )

        if self.local:
            self.zot = zotero.Zotero(library_id, library_type, api_key=None, local=True)
            logger.info("Zotero client initialized for local access", extra={"library_id": library_id})
            return

        api_key = config.get("api_key") or get_env("ZOTERO_API_KEY")
        if not api_key:
            raise ZoteroAPIError(
                "connect",
                hint="Set ZOTERO_API_KEY for the Web API, or ZOTERO_LOCAL=true with Zotero desktop running.",
            )
        self.zot = zotero.Zotero(library_id, library_type, api_key)
        logger.info(
            "Zotero client initialized for remote access",
            extra={"library_id": library_id, "library_type": library_type},
        )

    def fetch_items(self, collection: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        def _fetch() -> list[dict[str, Any]]:
            self._rate_limit()
            if collection:
                if limit:
                    return self.zot.collection_items_top(collection, limit=limit)
                return self.zot.everything(self.zot.collection_items_top(collection))
            if limit:
                return self.zot.top(limit=limit)
            return self.zot.everything(self.zot.top())

        items = self._retry_with_backoff(_fetch, operation="fetch_items")
        items = [item for item in items if _item_type(item) not in SKIPPED_ITEM_TYPES]
        logger.info("Fetched Zotero items", extra={"collection": collection, "count": len(items)})
        return items[:limit] if limit else items

    def _rate_limit(self) -> None:
        if self.local:
            return
        elapsed = time.monotonic() - self._last_request_time
        if elapsed < self.MIN_REQUEST_INTERVAL:
            self._sleep(self.MIN_REQUEST_INTERVAL - elapsed)
        self._last_request_time = time.monotonic()

    def _retry_with_backoff(self, func: Callable[[], Any], operation: str, base_delay: float = 1.0) -> Any:
        last_error: Exception | None = None
        for attempt in range(self.MAX_RETRIES):
            try:
                return func()
            except Exception as e:
                last_error = e
                if attempt < self.MAX_RETRIES - 1:
                    delay = base_delay * (2**attempt)
                    logger.warning(
                        f"Attempt {attempt + 1}/{self.MAX_RETRIES} failed, retrying in {delay:.1f}s: {e}",
                        extra={"operation": operation, "attempt": attempt + 1},
                    )
                    self._sleep(delay)

        hint = "Check the API key and library ID, or that Zotero desktop is running for local access."
        if last_error is not None and ("429" in str(last_error) or "rate" in str(last_error).lower()):
            hint = "Zotero API rate limit exceeded, retry in a minute."
        raise ZoteroAPIError(operation, hint=f"{hint} Last error: {last_error}") from last_error


class JsonFileItemSource(ZoteroItemSourcePort):
    """
    Reads items from a Zotero JSON export.

    The file holds either a list of items or ``{"items": [...]}``.
    Collections are matched against each item's ``collections`` keys.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def fetch_items(self, collection: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ZoteroAPIError("read_export", hint=f"Cannot read {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ZoteroAPIError("read_export", hint=f"{self.path} is not valid JSON: {e}") from e

        items = data.get("items") if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise ZoteroAPIError("read_export", hint=f"{self.path} must contain a list of items or {{\"items\": [...]}}")

        items = [item for item in items if isinstance(item, dict) and _item_type(item) not in SKIPPED_ITEM_TYPES]
        if collection:
            items = [item for item in items if collection in _collections(item)]
        return items[:limit] if limit else items


def _collections(item: dict[str, Any]) -> list[str]:
    data = item.get("data") if isinstance(item.get("data"), dict) else item
    collections = data.get("collections")
    return collections if isinstance(collections, list) else []

"""Domain errors for citation parsing and literature note operations."""


class InvalidZoteroItem(Exception):
    """
    Raised when data handed to the Zotero mapper is not a Zotero item.

    Attributes:
        reason: What is wrong with the item
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Cannot process invalid Zotero item: {reason}. "
            f"Export items as Zotero JSON (each item needs an 'itemType')."
        )


class ZoteroMappingError(Exception):
    """
    Raised when a Zotero item could not be mapped and the fallback parser failed too.

    The original mapping error is chained as ``__cause__``.

    Attributes:
        item_key: Zotero key of the item (if known)
        item_type: Zotero item type (if known)
        original_error: The mapping error, kept because it is more diagnostic
            than the fallback's
    """

    def __init__(self, item_key: str | None, item_type: str | None, original_error: Exception) -> None:
        self.item_key = item_key
        self.item_type = item_type
        self.original_error = original_error
        item_label = f"'{item_key}'" if item_key else "without key"
        super().__init__(
            f"Error processing Zotero item {item_label} (type: {item_type or 'unknown'}): "
            f"{original_error}. Mapping failed and the fallback parser failed as well."
        )


class LiteratureNoteExists(Exception):
    """
    Raised when a literature note would overwrite an existing file.

    Attributes:
        citekey: Citekey of the note
        path: Vault-relative path of the existing note
    """

    def __init__(self, citekey: str, path: str) -> None:
        self.citekey = citekey
        self.path = path
        super().__init__(
            f"Literature note for '{citekey}' already exists at '{path}'. "
            f"Use `--overwrite` to replace it."
        )


class InvalidCitationRecord(Exception):
    """
    Raised when input data fails validation at the record boundary.

    Attributes:
        shape: Expected record shape (``csl``, ``zotero``, ``form``)
        details: Validation error details
    """

    def __init__(self, shape: str, details: str) -> None:
        self.shape = shape
        self.details = details
        super().__init__(f"Invalid {shape} record: {details}")


class ZoteroAPIError(Exception):
    """
    Raised when items cannot be fetched from the Zotero Web or local API.

    Attributes:
        operation: What was being attempted (e.g. ``fetch_items``)
        hint: Actionable hint for resolution
    """

    def __init__(self, operation: str, hint: str | None = None) -> None:
        self.operation = operation
        self.hint = hint
        msg = f"Zotero API request failed during {operation}"
        if hint:
            msg += f". {hint}"
        super().__init__(msg)


class VaultPathError(ValueError):
    """
    Raised when a note path resolves outside the vault root.

    Attributes:
        path: Vault-relative path as configured or rendered
        root: Vault root directory
    """

    def __init__(self, path: str, root: str) -> None:
        self.path = path
        self.root = root
        super().__init__(
            f"Path '{path}' escapes the vault root {root}. "
            f"Check [notes] literature_note_path and the other configured paths."
        )

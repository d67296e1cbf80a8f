"""Environment variable loading from .env files (system environment wins)."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Variables biblib reads, with what they are for
KNOWN_VARIABLES = {
    "BIBLIB_CONFIG": "Configuration file path (defaults to biblib.toml)",
    "BIBLIB_VAULT": "Vault root directory (overrides [vault] root)",
    "ZOTERO_LIBRARY_ID": "Zotero library ID (required for Zotero import)",
    "ZOTERO_LIBRARY_TYPE": "Zotero library type, 'user' or 'group'",
    "ZOTERO_API_KEY": "Zotero API key (required for the Web API when ZOTERO_LOCAL is false)",
    "ZOTERO_LOCAL": "Use the Zotero desktop local API instead of the Web API",
}

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def load_environment_variables(dotenv_path: Path | str | None = None) -> None:
    """
    Load a .env file without overriding variables already set.

    Args:
        dotenv_path: Explicit .env file. If None, the current directory and
            its parent are searched, then python-dotenv's own lookup is used.
    """
    if dotenv_path is None:
        cwd = Path.cwd()
        for candidate in (cwd / ".env", cwd.parent / ".env"):
            if candidate.exists():
                dotenv_path = candidate
                break
        else:
            load_dotenv(override=False)
            return

    dotenv_path = Path(dotenv_path)
    if dotenv_path.exists():
        load_dotenv(dotenv_path, override=False)
        logger.debug("Loaded .env file", extra={"path": str(dotenv_path)})
    else:
        logger.debug(".env file not found", extra={"path": str(dotenv_path)})


def get_env(key: str, default: str | None = None) -> str | None:
    return os.getenv(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """
    Read a boolean variable.

    ``true/1/yes/on`` are True and ``false/0/no/off`` are False (case-insensitive);
    unset, empty or unrecognised values give ``default``.
    """
    value = os.getenv(key, "").strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


def require_api_key(key: str, context: str | None = None) -> str:
    """
    Return a required variable or fail with instructions.

    Raises:
        ValueError: If the variable is unset or empty
    """
    value = get_env(key)
    if value:
        return value

    context_msg = f" ({context})" if context else ""
    description = KNOWN_VARIABLES.get(key, "required setting")
    error_msg = (
        f"Required variable '{key}' is missing{context_msg}.\n"
        f"  Description: {description}\n"
        f"  How to fix: export {key}=... or add it to a .env file next to biblib.toml."
    )
    logger.error(error_msg)
    raise ValueError(error_msg)


def get_zotero_config() -> dict[str, str | bool]:
    """
    Zotero connection values present in the environment.

    Returns:
        Dict with ``library_type`` (default ``user``) and ``local`` always set,
        ``library_id`` and ``api_key`` only when present
    """
    config: dict[str, str | bool] = {
        "library_type": get_env("ZOTERO_LIBRARY_TYPE") or "user",
        "local": get_env_bool("ZOTERO_LOCAL", False),
    }
    library_id = get_env("ZOTERO_LIBRARY_ID")
    if library_id:
        config["library_id"] = library_id
    api_key = get_env("ZOTERO_API_KEY")
    if api_key:
        config["api_key"] = api_key
    return config

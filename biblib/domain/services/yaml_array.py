"""Normalisation of rendered list templates before they are parsed as YAML/JSON arrays."""

from __future__ import annotations

import json


def process_yaml_array(text: str) -> str:
    """
    Tidy a rendered ``[...]`` list so it parses as an array.

    Empty lists (``[]``, ``[ ]``, whitespace-padded) become ``[]``; valid
    JSON arrays are returned unchanged. Otherwise the items are split at
    top-level commas, trimmed, empty items dropped and Obsidian
    ``[[links]]`` double-quoted. Text that is not a complete bracketed list
    is returned unchanged.

    Example:
        >>> process_yaml_array("[[[Note1]],[[Note2]]]")
        '["[[Note1]]","[[Note2]]"]'
    """
    stripped = text.strip()
    bracketed = len(stripped) >= 2 and stripped.startswith("[") and stripped.endswith("]")
    if bracketed and not stripped[1:-1].strip():
        return "[]"

    try:
        if isinstance(json.loads(stripped), list):
            return text
    except ValueError:
        pass

    if not bracketed:
        return text

    items = [item.strip() for item in split_top_level(stripped[1:-1])]
    return "[" + ",".join(_quote_link(item) for item in items if item) + "]"


def split_top_level(text: str) -> list[str]:
    """Split on commas outside brackets and double-quoted strings."""
    items: list[str] = []
    current: list[str] = []
    depth = 0
    in_quotes = False
    escaped = False

    for char in text:
        if in_quotes:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_quotes = False
            continue

        if char == '"' and depth == 0:
            in_quotes = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth = max(depth - 1, 0)
        elif char == "," and depth == 0:
            items.append("".join(current))
            current = []
            continue
        current.append(char)

    items.append("".join(current))
    return items


def _quote_link(item: str) -> str:
    if item.startswith("[[") and item.endswith("]]"):
        return '"' + item.replace('"', '\\"') + '"'
    return item

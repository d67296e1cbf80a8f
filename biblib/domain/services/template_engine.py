"""
Mustache-style template rendering for notes, frontmatter fields and citekeys.

Supported constructs:
    - ``{{path}}`` with dot notation (``author.0.family``)
    - ``{{path|formatter}}`` / ``{{path|formatter:arg[:arg]}}`` (one formatter)
    - ``{{#key}}...{{/key}}`` iterates lists or renders once for truthy values
    - ``{{^key}}...{{/key}}`` renders when the value is missing or empty
    - ``{{rand}}``, ``{{rand|N}}``, ``{{randN}}`` random alphanumeric tokens

Inside list iteration the scope gains ``.``, ``@index``, ``@number``,
``@length``, ``@first``, ``@last``, ``@odd`` and ``@even``; mapping items
are additionally spread into the scope.
"""

from __future__ import annotations

import math
import random
import re
from collections.abc import Mapping
from datetime import date
from typing import Any
from urllib.parse import quote, unquote

from biblib.domain.clock import RandomSource
from biblib.domain.services.date_parser import DateParser
from biblib.domain.services.text_values import format_number, leading_float, leading_int, stringify, to_json
from biblib.domain.types import TemplateVariables

_POSITIVE_BLOCK = re.compile(r"\{\{#([^}]+)\}\}(.*?)\{\{/\1\}\}", re.DOTALL)
_NEGATIVE_BLOCK = re.compile(r"\{\{\^([^}]+)\}\}(.*?)\{\{/\1\}\}", re.DOTALL)
_VARIABLE = re.compile(r"\{\{([^#^}|]+)(?:\|([^}]+))?\}\}")
_RAND_TOKEN = re.compile(r"\{\{rand(?:\|(\d+)|(\d+))?\}\}")

_CITEKEY_ILLEGAL = re.compile(r"[^a-zA-Z0-9_:.#$%&\-+?<>~/]")
_CITEKEY_VALID_START = re.compile(r"^[a-zA-Z0-9_]")
_CITEKEY_TRAILING_PUNCTUATION = re.compile(r"[:.#$%&\-+?<>~/]+$")

_WORD_START = re.compile(r"(?:^|\s)\S")
_HTML_TAG = re.compile(r"<[^>]+>")
_EDGE_PUNCTUATION = re.compile(r"^[^a-zA-Z0-9]+|[^a-zA-Z0-9]+$")
_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")

RAND_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
DEFAULT_RAND_LENGTH = 5
MAX_RAND_LENGTH = 32
DEFAULT_TRUNCATE_LENGTH = 30

TITLE_STOP_WORDS = frozenset(
    {
        "a", "an", "the", "and", "or", "but", "on", "in", "at", "to", "for", "with",
        "of", "from", "by", "as", "into", "like", "near", "over", "past", "since", "upon",
    }
)


class TemplateEngine:
    """
    Stateless template renderer.

    Rendering never raises for malformed references: unknown variables and
    bad formatter arguments degrade to empty strings or the unformatted
    value. Unmatched block tags are left in place.
    """

    @staticmethod
    def render(
        template: str,
        variables: TemplateVariables,
        sanitize_for_citekey: bool = False,
        yaml_array: bool = False,
        rng: RandomSource | None = None,
    ) -> str:
        """
        Render a template against a variable scope.

        Args:
            template: Template text
            variables: Variable scope (nested mappings and lists allowed)
            sanitize_for_citekey: Restrict the output to Pandoc citekey characters
            yaml_array: Marks a bracketed-list template. The output is not
                altered; callers use the flag to substitute ``[]`` for empty
                results.
            rng: Random source for ``rand`` tokens (defaults to ``random``)

        Returns:
            Rendered text
        """
        if not template:
            return ""
        rng = rng or random
        result = _render_scope(template, variables or {}, rng)
        if sanitize_for_citekey:
            result = TemplateEngine.sanitize_citekey(result)
        return result

    @staticmethod
    def sanitize_citekey(text: str) -> str:
        """
        Apply Pandoc citekey rules.

        Illegal characters are dropped, a leading ``_`` is added when the key
        would not start with a letter, digit or underscore, and trailing
        punctuation is removed.
        """
        text = _CITEKEY_ILLEGAL.sub("", text)
        if text and not _CITEKEY_VALID_START.match(text):
            text = "_" + text
        return _CITEKEY_TRAILING_PUNCTUATION.sub("", text)

    @staticmethod
    def lookup(variables: Mapping[str, Any], path: str) -> Any:
        """
        Resolve a variable path.

        A key present verbatim wins (so ``@index`` and dotted keys work);
        otherwise the path is split on ``.`` and walked through mappings,
        list and string indexes (``title.0`` is the first character) and
        ``length`` of lists and strings. Any failed segment resolves to None.
        """
        if path in variables:
            return variables[path]

        current: Any = variables
        for part in path.split("."):
            if isinstance(current, Mapping):
                current = current.get(part)
            elif isinstance(current, (list, tuple, str)) and part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            elif isinstance(current, (list, tuple, str)) and part == "length":
                current = len(current)
            else:
                return None
            if current is None:
                return None
        return current

    @staticmethod
    def is_empty(value: Any) -> bool:
        """Whether a value counts as false for block constructs."""
        return value is None or value is False or value == "" or (isinstance(value, (list, tuple)) and not value)

    @staticmethod
    def format_value(value: Any, spec: str, rng: RandomSource | None = None) -> str:
        """
        Apply a single formatter to a resolved value.

        Args:
            value: Resolved variable (lists are kept for ``join``/``count``/``json``)
            spec: Formatter name with optional ``:``-separated arguments
            rng: Random source for ``rand`` formatters

        Returns:
            Formatted text. Unknown formatters return the value as text.
        """
        parts = spec.split(":")
        name, args = parts[0], parts[1:]
        text = stringify(value)

        rand_match = re.match(r"^rand(\d*)$", name)
        if rand_match:
            length = leading_int(rand_match.group(1) or (args[0] if args else None))
            return random_token(DEFAULT_RAND_LENGTH if length is None else length, rng)

        if name in ("upper", "uppercase"):
            return text.upper()
        if name in ("lower", "lowercase"):
            return text.lower()
        if name in ("capitalize", "title"):
            return _WORD_START.sub(lambda match: match.group(0).upper(), text)
        if name == "sentence":
            return text[:1].upper() + text[1:]
        if name == "truncate":
            return _truncate(text, args[0] if args else DEFAULT_TRUNCATE_LENGTH)
        if name == "ellipsis":
            limit = leading_int(args[0]) if args else DEFAULT_TRUNCATE_LENGTH
            if limit is None or len(text) <= limit:
                return text
            return text[: max(limit, 0)] + "..."
        if name == "replace":
            return text.replace(args[0], args[1]) if len(args) >= 2 and args[0] else text
        if name == "trim":
            return text.strip()
        if name == "prefix":
            return ":".join(args) + text
        if name == "suffix":
            return text + ":".join(args)
        if name == "pad":
            if len(args) < 2:
                return text
            width = leading_int(args[0])
            return _pad_start(text, width, args[1] or " ") if width is not None else text
        if name == "slice":
            if not args:
                return text
            start = leading_int(args[0]) or 0
            end = leading_int(args[1]) if len(args) > 1 else None
            return text[start:end]
        if name == "number":
            number = leading_float(text)
            if number is None:
                return text
            if args and math.isfinite(number):
                precision = min(max(leading_int(args[0]) or 0, 0), 100)
                return f"{number:.{precision}f}"
            return format_number(number)
        if name == "json":
            return to_json(value)
        if name == "count":
            return str(len(value)) if isinstance(value, (list, tuple)) else "0"
        if name == "date":
            return _format_date(value, args[0] if args else None, text)
        if name in ("abbr", "abbr1"):
            return text[:1]
        if name == "titleword":
            return extract_title_words(text, 1)
        if name == "shorttitle":
            return extract_title_words(text, 3)
        if name == "split":
            if not args:
                return text
            return ",".join(text.split(args[0] or ","))
        if name == "join":
            if isinstance(value, (list, tuple)):
                delimiter = (args[0] or ",") if args else ","
                return delimiter.join(stringify(item) for item in value)
            return text
        if name == "urlencode":
            return quote(text, safe="-_.!~*'()")
        if name == "urldecode":
            return unquote(text)

        if args:
            return text
        sized = re.match(r"^(truncate|abbr)(\d+)$", name)
        if sized:
            return _truncate(text, sized.group(2))
        return text


def extract_title_words(title: str, count: int, stop_words: frozenset[str] = TITLE_STOP_WORDS) -> str:
    """
    First ``count`` significant words of a title, concatenated and lowercased.

    HTML tags are removed, each word loses leading and trailing punctuation and
    stop words are skipped. When every word is a stop word the first ``count``
    words are used instead. The result is restricted to ``[a-z0-9]``.
    """
    if not title:
        return ""
    words = _HTML_TAG.sub("", title).split()
    cleaned = [_EDGE_PUNCTUATION.sub("", word) for word in words]
    significant = [word for word in cleaned if word and word.lower() not in stop_words]
    chosen = significant[:count] if significant else [word for word in cleaned[:count] if word]
    return _NON_ALPHANUMERIC.sub("", "".join(chosen).lower())


def random_token(length: int = DEFAULT_RAND_LENGTH, rng: RandomSource | None = None) -> str:
    """Random alphanumeric string, length clamped to 1-32."""
    rng = rng or random
    length = max(1, min(MAX_RAND_LENGTH, length))
    return "".join(rng.choice(RAND_ALPHABET) for _ in range(length))


def _render_scope(template: str, variables: Mapping[str, Any], rng: RandomSource) -> str:
    result = _render_positive_blocks(template, variables, rng)
    result = _render_negative_blocks(result, variables)
    return _render_variables(result, variables, rng)


def _render_positive_blocks(template: str, variables: Mapping[str, Any], rng: RandomSource) -> str:
    def replace(match: re.Match[str]) -> str:
        content = match.group(2)
        value = TemplateEngine.lookup(variables, match.group(1).strip())
        if isinstance(value, (list, tuple)):
            return "".join(
                _render_scope(content, _iteration_scope(variables, value, index), rng) for index in range(len(value))
            )
        return "" if TemplateEngine.is_empty(value) else content

    return _POSITIVE_BLOCK.sub(replace, template)


def _render_negative_blocks(template: str, variables: Mapping[str, Any]) -> str:
    def replace(match: re.Match[str]) -> str:
        value = TemplateEngine.lookup(variables, match.group(1).strip())
        return match.group(2) if TemplateEngine.is_empty(value) else ""

    return _NEGATIVE_BLOCK.sub(replace, template)


def _render_variables(template: str, variables: Mapping[str, Any], rng: RandomSource) -> str:
    def replace_rand(match: re.Match[str]) -> str:
        length = match.group(1) or match.group(2)
        return random_token(int(length) if length else DEFAULT_RAND_LENGTH, rng)

    def replace(match: re.Match[str]) -> str:
        value = TemplateEngine.lookup(variables, match.group(1).strip())
        if value is None:
            return ""
        spec = match.group(2)
        if spec:
            return TemplateEngine.format_value(value, spec.lstrip(), rng)
        if isinstance(value, (Mapping, list, tuple)):
            return to_json(value)
        return stringify(value)

    template = _RAND_TOKEN.sub(replace_rand, template)
    return _VARIABLE.sub(replace, template)


def _iteration_scope(variables: Mapping[str, Any], items: list[Any] | tuple[Any, ...], index: int) -> dict[str, Any]:
    item = items[index]
    scope = dict(variables)
    if isinstance(item, Mapping):
        scope.update({key: val for key, val in item.items() if isinstance(key, str)})
    scope.update(
        {
            ".": item,
            "@index": index,
            "@number": index + 1,
            "@first": index == 0,
            "@last": index == len(items) - 1,
            "@odd": index % 2 == 1,
            "@even": index % 2 == 0,
            "@length": len(items),
        }
    )
    return scope


def _truncate(text: str, length: Any) -> str:
    limit = leading_int(length)
    if limit is None:
        return text
    return text[: max(limit, 0)]


def _pad_start(text: str, width: int, fill: str) -> str:
    missing = width - len(text)
    if missing <= 0:
        return text
    return (fill * (missing // len(fill) + 1))[:missing] + text


def _format_date(value: Any, style: str | None, text: str) -> str:
    parsed = DateParser.parse(value)
    if parsed is None or not parsed.year:
        return text
    if style == "year":
        return str(parsed.year)
    if style == "month":
        return str(parsed.month or "")
    if style == "day":
        return str(parsed.day or "")
    if style == "iso":
        try:
            return date(parsed.year, parsed.month or 1, parsed.day or 1).isoformat()
        except ValueError:
            return DateParser.to_form_string(parsed)
    return DateParser.to_form_string(parsed)

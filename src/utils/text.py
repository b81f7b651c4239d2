# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Text helpers for slugs and identifier encodings."""

import re
import unicodedata

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_SLUG_SEPARATORS = re.compile(r"[\s_-]+")

_SEARCH_STRIPPED = re.compile(r"[;\"'`\\<>\x00-\x1f\x7f]|--")

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def slugify(value: str) -> str:
    """Convert a title into a URL slug.

    Accents are folded to ASCII, everything is lower-cased, and runs of
    whitespace, underscores or hyphens collapse into a single hyphen.

    Example:
        >>> slugify("  Intro to Python: Part 1 ")
        'intro-to-python-part-1'
    """
    normalized = unicodedata.normalize("NFKD", value)
    ascii_value = normalized.encode("ascii", "ignore").decode("ascii").lower()
    cleaned = _NON_SLUG_CHARS.sub("", ascii_value)
    return _SLUG_SEPARATORS.sub("-", cleaned).strip("-")


def to_base36(number: int) -> str:
    """Encode a non-negative integer in lower-case base 36."""
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"

    digits: list[str] = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def clean_search_text(value: str | None) -> str | None:
    """Strip quotes and statement separators from search text and collapse whitespace.

    Returns:
        The trimmed text, or None when nothing searchable is left.

    Example:
        >>> clean_search_text(" python'; --drop ")
        'python drop'
    """
    if value is None:
        return None
    cleaned = " ".join(_SEARCH_STRIPPED.sub("", value).split())
    return cleaned or None

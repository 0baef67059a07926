"""
Text normalization for name matching (SSOT).

Event titles and client names go through the same normalization before any
comparison, and the confirmation ledger keys its records by normalize(title),
so trivially different renderings of one recurring title resolve to one record.

Examples:
    "ΒΑΣΙΛΙΚΗ ΣΤΑΙΚΟΥΡΑ"          -> "βασιλικη σταικουρα"
    "  Μαρία   Παπαδοπούλου Online" -> "μαρια παπαδοπουλου online"
    "María"                       -> "maria"
"""

from __future__ import annotations

import re
import unicodedata
from functools import lru_cache

_WHITESPACE_RE = re.compile(r"\s+")
_TOKEN_RE = re.compile(r"\w+")

# Spaced dash separating alternative spellings: "John - Γιάννης"
ALIAS_SEPARATOR_RE = re.compile(r"\s+[-\u2010-\u2015]\s+")


@lru_cache(maxsize=4096)
def normalize(text: str) -> str:
    """Lowercase, strip diacritics, and collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE_RE.sub(" ", stripped.casefold()).strip()


@lru_cache(maxsize=4096)
def tokenize(text: str) -> tuple[str, ...]:
    """Split normalized text into word tokens.

    Hyphens, dashes and punctuation all separate tokens, so "Surname-Name"
    and "Surname Name" tokenize identically.
    """
    return tuple(_TOKEN_RE.findall(normalize(text)))


def leading_words(text: str, max_words: int = 2) -> list[str]:
    """First max_words whitespace-separated words of the normalized text.

    Trailing annotations on client names ("Μετρητά", "Online") are dropped.
    """
    return normalize(text).split(" ")[:max_words] if text.strip() else []


def contains_sequence(haystack: tuple[str, ...], needle: tuple[str, ...]) -> bool:
    """True if needle occurs as a contiguous run of tokens in haystack."""
    if not needle or len(needle) > len(haystack):
        return False
    width = len(needle)
    return any(haystack[i : i + width] == needle for i in range(len(haystack) - width + 1))

"""
Term normalization — turns raw recognizer strings into clean candidate terms.

All functions here are pure. normalize_terms() is idempotent: feeding its
output back in returns the same list.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Iterable

MIN_TERM_LENGTH = 3     # terms of length <= 2 are dropped

_WORD_START = re.compile(r"(^|[\s\-])(\w)")


def fold(term: str) -> str:
    """Case-folded matching key."""
    return term.casefold()


def _is_punctuation(ch: str) -> bool:
    return unicodedata.category(ch).startswith("P")


def strip_punctuation(token: str) -> str:
    """Remove punctuation from both ends of a token (inner characters untouched)."""
    start, end = 0, len(token)
    while start < end and _is_punctuation(token[start]):
        start += 1
    while end > start and _is_punctuation(token[end - 1]):
        end -= 1
    return token[start:end]


def is_plain_token(token: str) -> bool:
    """True when the token contains only letters, digits and whitespace."""
    return all(ch.isalpha() or ch.isdigit() or ch.isspace() for ch in token)


def split_text(text: str) -> list[str]:
    """Split recognized text into words usable as search terms."""
    words = []
    for raw in text.split():
        token = strip_punctuation(raw)
        if len(token) >= MIN_TERM_LENGTH and is_plain_token(token):
            words.append(token)
    return words


def title_case(term: str) -> str:
    """
    Capitalise the first letter of every word and lower the rest.
    Hyphenated parts count as words ("t-shirt" → "T-Shirt"); apostrophes don't.
    """
    return _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), term.lower())


def clean_label(label: str) -> str:
    """'running shoe, sneaker' → 'Running Shoe' (everything after the first comma is dropped)."""
    head = label.split(",", 1)[0].strip()
    return title_case(head)


def normalize_terms(raw: Iterable[str]) -> list[str]:
    """Trim each entry and drop empties and entries of length <= 2, keeping order."""
    terms = []
    for entry in raw:
        term = entry.strip()
        if len(term) >= MIN_TERM_LENGTH:
            terms.append(term)
    return terms

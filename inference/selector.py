"""
Term selector — reduces the matched term set to the final search phrase.

Policy: sort case-insensitively, keep the first k, title-case, join with
spaces. This is plain alphabetical order, not a confidence ranking: a term
that sorts late never makes the phrase even when every signal agreed on it.
Kept deliberately simple; the match basis only breaks ties.
"""
from __future__ import annotations

from typing import Iterable, Union

from inference.matcher import MatchedTerm, basis_rank
from inference.normalizer import fold, title_case

DEFAULT_CUTOFF = 3


def _sort_key(term: MatchedTerm) -> tuple:
    return (fold(term.text), basis_rank(term.basis), term.text)


def select_terms(matched: Iterable[Union[MatchedTerm, str]], k: int = DEFAULT_CUTOFF) -> list[str]:
    """First k terms in case-insensitive alphabetical order, title-cased, no duplicates."""
    if k < 1:
        raise ValueError(f"cutoff must be >= 1, got {k}")

    terms = [m if isinstance(m, MatchedTerm) else MatchedTerm(m) for m in matched]
    terms = [t for t in terms if t.text.strip()]

    selected: list[str] = []
    seen: set[str] = set()
    for term in sorted(terms, key=_sort_key):
        word = title_case(term.text.strip())
        key = fold(word)
        if key in seen:
            continue
        seen.add(key)
        selected.append(word)
        if len(selected) == k:
            break
    return selected


def select_search_term(matched: Iterable[Union[MatchedTerm, str]], k: int = DEFAULT_CUTOFF) -> str:
    """The search phrase; empty string when there is nothing to select."""
    return " ".join(select_terms(matched, k))

"""
Candidate terms and the per-invocation Candidate Set.

The set is keyed by case-folded text: the first-seen spelling is kept for
display and later duplicates are collapsed into it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from inference.normalizer import fold
from recognizers.base import SourceKind


@dataclass(frozen=True)
class CandidateTerm:
    text: str
    source_kind: SourceKind


class CandidateSet:
    """Insertion-ordered, case-fold-deduplicated collection of CandidateTerm."""

    def __init__(self, terms: Iterable[CandidateTerm] = ()):
        self._terms: dict[str, CandidateTerm] = {}
        self.extend(terms)

    def add(self, term: CandidateTerm) -> bool:
        """Add a term; returns False when an equal (case-insensitive) term is already present."""
        text = term.text.strip()
        if not text:
            return False
        key = fold(text)
        if key in self._terms:
            return False
        self._terms[key] = term if text == term.text else CandidateTerm(text, term.source_kind)
        return True

    def extend(self, terms: Iterable[CandidateTerm]) -> None:
        for term in terms:
            self.add(term)

    def texts(self) -> list[str]:
        return [t.text for t in self._terms.values()]

    def keys(self) -> list[str]:
        return list(self._terms)

    def __contains__(self, text: object) -> bool:
        return isinstance(text, str) and fold(text.strip()) in self._terms

    def __iter__(self) -> Iterator[CandidateTerm]:
        return iter(self._terms.values())

    def __len__(self) -> int:
        return len(self._terms)

    def __bool__(self) -> bool:
        return bool(self._terms)

    def __repr__(self) -> str:
        return f"CandidateSet({self.texts()!r})"


def merge(per_source: Iterable[tuple[SourceKind, list[str]]]) -> CandidateSet:
    """Union per-source term lists in the given source order."""
    merged = CandidateSet()
    for kind, terms in per_source:
        merged.extend(CandidateTerm(text, kind) for text in terms)
    return merged

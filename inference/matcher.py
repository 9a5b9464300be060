"""
Taxonomy matcher — expands candidate terms with taxonomy keywords and guesses
a product category.

Matching is a case-insensitive, bidirectional substring test: a keyword matches
a candidate when either one contains the other. Both directions are checked
independently, so a short candidate like "Coat" pulls in "Coat" and a long one
like "Leather Bomber Jacket" pulls in "Jacket", "leather" and "bomber". This is
permissive on purpose; short terms can match inside unrelated keywords.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional

from inference.candidates import CandidateTerm
from inference.normalizer import MIN_TERM_LENGTH, fold
from inference.taxonomy import Category, Taxonomy
from recognizers.base import SourceKind

logger = logging.getLogger(__name__)


class MatchBasis(str, Enum):
    EXACT                          = "exact"
    SUBSTRING_OF_CANDIDATE         = "substring-of-candidate"          # keyword ⊂ candidate
    CANDIDATE_SUBSTRING_OF_KEYWORD = "candidate-substring-of-keyword"  # candidate ⊂ keyword


# lower = stronger; raw candidates without a taxonomy match rank last
_STRENGTH = {
    MatchBasis.EXACT: 0,
    MatchBasis.SUBSTRING_OF_CANDIDATE: 1,
    MatchBasis.CANDIDATE_SUBSTRING_OF_KEYWORD: 2,
    None: 3,
}


def basis_rank(basis: Optional[MatchBasis]) -> int:
    return _STRENGTH[basis]


@dataclass(frozen=True)
class MatchedTerm:
    text: str
    basis: Optional[MatchBasis] = None        # None = raw candidate, no taxonomy match
    source_kind: Optional[SourceKind] = None  # None = came from the taxonomy


def cross_match(candidate: str, keyword: str) -> Optional[MatchBasis]:
    c, k = fold(candidate.strip()), fold(keyword.strip())
    if not c or not k:
        return None
    if c == k:
        return MatchBasis.EXACT
    if k in c:
        return MatchBasis.SUBSTRING_OF_CANDIDATE
    if c in k:
        return MatchBasis.CANDIDATE_SUBSTRING_OF_KEYWORD
    return None


class _MatchedSet:
    """Case-fold keyed; first-seen text wins, the strongest basis is kept."""

    def __init__(self) -> None:
        self._terms: dict[str, MatchedTerm] = {}

    def put(self, term: MatchedTerm) -> None:
        key = fold(term.text)
        existing = self._terms.get(key)
        if existing is None:
            self._terms[key] = term
        elif basis_rank(term.basis) < basis_rank(existing.basis):
            self._terms[key] = replace(existing, basis=term.basis)

    def terms(self) -> list[MatchedTerm]:
        return list(self._terms.values())


def expand(candidates: Iterable[CandidateTerm], taxonomy: Taxonomy) -> list[MatchedTerm]:
    """
    Union of the raw candidate terms and every taxonomy name/keyword that
    cross-matches any of them. An empty taxonomy returns the candidates as-is.
    """
    candidates = list(candidates)
    matched = _MatchedSet()
    keywords = [kw for entry in taxonomy.entries for kw in entry.all_keywords]

    for cand in candidates:
        text = cand.text.strip()
        if not text:
            continue
        if len(text) >= MIN_TERM_LENGTH:
            matched.put(MatchedTerm(text, None, cand.source_kind))
        for kw in keywords:
            basis = cross_match(text, kw)
            if basis is not None:
                matched.put(MatchedTerm(kw, basis))

    result = matched.terms()
    logger.debug("Taxonomy expansion: %d candidates → %d matched terms",
                 len(candidates), len(result))
    return result


def infer_category(terms: Iterable[str], taxonomy: Taxonomy) -> Category:
    """
    Score each category by the number of its entries whose name or keywords
    cross-match any input term. Highest score wins; ties go to the category
    declared first; no match at all → the taxonomy's default category.
    """
    terms = [t for t in terms if t.strip()]
    scores: dict[Category, int] = {cat: 0 for cat in taxonomy.categories}

    for entry in taxonomy.entries:
        if any(cross_match(t, kw) for t in terms for kw in entry.all_keywords):
            scores[entry.category] += 1

    best, best_score = taxonomy.default_category, 0
    for category, score in scores.items():      # declaration order
        if score > best_score:
            best, best_score = category, score
    return best

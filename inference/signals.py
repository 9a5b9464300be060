"""
Per-signal selection policy — which recognizer outputs become candidate terms.

Thresholds are strict (confidence must exceed them):

  text    rank-0 reading of each text region, confidence > 0.6, split into words
  object  top 3 labels, confidence > 0.3, cut at first comma, title-cased
  scene   top 2 labels, confidence > 0.5, cut at first comma, title-cased
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from inference.normalizer import clean_label, normalize_terms, split_text
from recognizers.base import RecognitionCandidate, SourceKind


@dataclass(frozen=True)
class SelectionPolicy:
    kind: SourceKind
    min_confidence: float
    max_labels: Optional[int] = None   # None = every region (text signal)


TEXT_POLICY   = SelectionPolicy(SourceKind.TEXT,   min_confidence=0.6)
OBJECT_POLICY = SelectionPolicy(SourceKind.OBJECT, min_confidence=0.3, max_labels=3)
SCENE_POLICY  = SelectionPolicy(SourceKind.SCENE,  min_confidence=0.5, max_labels=2)

POLICIES: dict[SourceKind, SelectionPolicy] = {
    SourceKind.TEXT:   TEXT_POLICY,
    SourceKind.OBJECT: OBJECT_POLICY,
    SourceKind.SCENE:  SCENE_POLICY,
}


def _text_terms(candidates: list[RecognitionCandidate], policy: SelectionPolicy) -> list[str]:
    words: list[str] = []
    for cand in candidates:
        if cand.rank != 0 or cand.confidence <= policy.min_confidence:
            continue
        words.extend(split_text(cand.label))
    return words


def _label_terms(candidates: list[RecognitionCandidate], policy: SelectionPolicy) -> list[str]:
    ranked = sorted(candidates, key=lambda c: c.rank)
    if policy.max_labels is not None:
        ranked = ranked[:policy.max_labels]
    return [
        clean_label(c.label)
        for c in ranked
        if c.confidence > policy.min_confidence
    ]


def apply_policy(candidates: Iterable[RecognitionCandidate], policy: SelectionPolicy) -> list[str]:
    """Filter one signal's raw output into normalized terms (discovery order kept)."""
    candidates = list(candidates)
    if policy.kind is SourceKind.TEXT:
        raw = _text_terms(candidates, policy)
    else:
        raw = _label_terms(candidates, policy)
    return normalize_terms(raw)

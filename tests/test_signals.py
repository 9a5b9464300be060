"""
Tests for inference/signals.py — per-signal selection policy.

Covers:
  - text: strict 0.6 threshold, rank-0 only, split into words
  - object: top 3 by rank, strict 0.3 threshold, comma truncation
  - scene: top 2 by rank, strict 0.5 threshold
  - results are normalized (short terms dropped)
"""
from __future__ import annotations

from inference.signals import (
    OBJECT_POLICY,
    POLICIES,
    SCENE_POLICY,
    TEXT_POLICY,
    apply_policy,
)
from recognizers.base import RecognitionCandidate, SourceKind

T, O, S = SourceKind.TEXT, SourceKind.OBJECT, SourceKind.SCENE


def text_region(region: int, *readings: tuple[str, float]) -> list[RecognitionCandidate]:
    return [
        RecognitionCandidate(label, conf, T, region=region, rank=rank)
        for rank, (label, conf) in enumerate(readings)
    ]


def labels(kind: SourceKind, *pairs: tuple[str, float]) -> list[RecognitionCandidate]:
    return [
        RecognitionCandidate(label, conf, kind, rank=rank)
        for rank, (label, conf) in enumerate(pairs)
    ]


class TestPolicyTable:
    def test_one_policy_per_kind(self):
        assert set(POLICIES) == set(SourceKind)

    def test_thresholds(self):
        assert TEXT_POLICY.min_confidence == 0.6
        assert OBJECT_POLICY.min_confidence == 0.3 and OBJECT_POLICY.max_labels == 3
        assert SCENE_POLICY.min_confidence == 0.5 and SCENE_POLICY.max_labels == 2


# ── Text ──────────────────────────────────────────────────────────────────────

class TestTextPolicy:
    def test_threshold_is_strict(self):
        cands = text_region(0, ("EXACTLY", 0.6)) + text_region(1, ("ABOVE", 0.61))
        assert apply_policy(cands, TEXT_POLICY) == ["ABOVE"]

    def test_only_rank_zero_reading_used(self):
        cands = text_region(0, ("Levis", 0.9), ("Lewis", 0.95))
        assert apply_policy(cands, TEXT_POLICY) == ["Levis"]

    def test_low_rank_zero_not_replaced_by_runner_up(self):
        cands = text_region(0, ("Blurry", 0.4), ("Clear", 0.9))
        assert apply_policy(cands, TEXT_POLICY) == []

    def test_region_text_split_into_words(self):
        cands = text_region(0, ("Organic Cotton, 100% Tee", 0.8))
        assert apply_policy(cands, TEXT_POLICY) == ["Organic", "Cotton", "100", "Tee"]

    def test_regions_in_order(self):
        cands = text_region(0, ("Acme", 0.9)) + text_region(1, ("Denim", 0.7))
        assert apply_policy(cands, TEXT_POLICY) == ["Acme", "Denim"]

    def test_short_words_dropped(self):
        cands = text_region(0, ("XL by NY", 0.9))
        assert apply_policy(cands, TEXT_POLICY) == []

    def test_no_regions(self):
        assert apply_policy([], TEXT_POLICY) == []


# ── Object ────────────────────────────────────────────────────────────────────

class TestObjectPolicy:
    def test_threshold_is_strict(self):
        cands = labels(O, ("jacket", 0.3), ("coat", 0.31))
        assert apply_policy(cands, OBJECT_POLICY) == ["Coat"]

    def test_top_three_only(self):
        cands = labels(O, ("jacket", 0.9), ("coat", 0.8), ("parka", 0.7), ("anorak", 0.6))
        assert apply_policy(cands, OBJECT_POLICY) == ["Jacket", "Coat", "Parka"]

    def test_low_top_label_does_not_pull_in_fourth(self):
        cands = labels(O, ("jacket", 0.9), ("blob", 0.1), ("coat", 0.8), ("parka", 0.7))
        assert apply_policy(cands, OBJECT_POLICY) == ["Jacket", "Coat"]

    def test_ranked_by_rank_not_input_order(self):
        cands = list(reversed(labels(O, ("jacket", 0.9), ("coat", 0.8), ("parka", 0.7), ("hat", 0.6))))
        assert apply_policy(cands, OBJECT_POLICY) == ["Jacket", "Coat", "Parka"]

    def test_comma_truncation_and_title_case(self):
        cands = labels(O, ("running shoe, sneaker", 0.9))
        assert apply_policy(cands, OBJECT_POLICY) == ["Running Shoe"]

    def test_short_label_dropped(self):
        cands = labels(O, ("tv, television", 0.9))
        assert apply_policy(cands, OBJECT_POLICY) == []


# ── Scene ─────────────────────────────────────────────────────────────────────

class TestScenePolicy:
    def test_threshold_is_strict(self):
        cands = labels(S, ("studio", 0.5), ("outdoor", 0.51))
        assert apply_policy(cands, SCENE_POLICY) == ["Outdoor"]

    def test_top_two_only(self):
        cands = labels(S, ("clothing store", 0.9), ("shop", 0.8), ("mall", 0.7))
        assert apply_policy(cands, SCENE_POLICY) == ["Clothing Store", "Shop"]

    def test_comma_truncation(self):
        cands = labels(S, ("boutique, clothing store", 0.7))
        assert apply_policy(cands, SCENE_POLICY) == ["Boutique"]

"""
Tests for inference/normalizer.py.

Covers:
  - normalize_terms(): trims, drops short entries, keeps order, idempotent
  - split_text(): punctuation stripping, non-plain tokens dropped
  - title_case() / clean_label(): hyphens, apostrophes, comma truncation
"""
from __future__ import annotations

import pytest

from inference.normalizer import (
    clean_label,
    fold,
    is_plain_token,
    normalize_terms,
    split_text,
    strip_punctuation,
    title_case,
)


# ── normalize_terms ───────────────────────────────────────────────────────────

class TestNormalizeTerms:
    def test_trims_whitespace(self):
        assert normalize_terms(["  Jacket  ", "\tcoat\n"]) == ["Jacket", "coat"]

    def test_drops_empty_and_short_entries(self):
        assert normalize_terms(["", "  ", "ab", "XL", "abc"]) == ["abc"]

    def test_length_three_is_kept(self):
        assert normalize_terms(["Tee"]) == ["Tee"]

    def test_short_after_trim_is_dropped(self):
        assert normalize_terms(["  ab  "]) == []

    def test_order_preserved(self):
        raw = ["zebra", "apple", "mango"]
        assert normalize_terms(raw) == raw

    def test_duplicates_are_not_removed_here(self):
        assert normalize_terms(["Shoe", "shoe"]) == ["Shoe", "shoe"]

    @pytest.mark.parametrize("raw", [
        ["  Denim ", "ab", "", "Leather Jacket", " x "],
        ["Book", "  Novel", "It"],
        [],
    ])
    def test_idempotent(self, raw):
        once = normalize_terms(raw)
        assert normalize_terms(once) == once

    def test_accepts_generator(self):
        assert normalize_terms(t for t in ["abc", "de"]) == ["abc"]


# ── Tokens ────────────────────────────────────────────────────────────────────

class TestStripPunctuation:
    def test_strips_both_ends(self):
        assert strip_punctuation('"Levi\'s!"') == "Levi's"

    def test_inner_characters_untouched(self):
        assert strip_punctuation("t-shirt") == "t-shirt"

    def test_all_punctuation_gives_empty(self):
        assert strip_punctuation("!!!") == ""


class TestIsPlainToken:
    def test_letters_and_digits(self):
        assert is_plain_token("Air90") is True

    def test_apostrophe_is_not_plain(self):
        assert is_plain_token("Levi's") is False

    def test_unicode_letters_are_plain(self):
        assert is_plain_token("Café") is True


class TestSplitText:
    def test_splits_on_whitespace(self):
        assert split_text("ORGANIC COTTON TEE") == ["ORGANIC", "COTTON", "TEE"]

    def test_drops_short_words(self):
        assert split_text("a NY fit cap") == ["fit", "cap"]

    def test_strips_surrounding_punctuation(self):
        assert split_text("(Denim), Jeans.") == ["Denim", "Jeans"]

    def test_drops_tokens_with_inner_symbols(self):
        assert split_text("100% wool-blend $49.99 Sweater") == ["100", "Sweater"]

    def test_empty_text(self):
        assert split_text("   ") == []


# ── Casing ────────────────────────────────────────────────────────────────────

class TestTitleCase:
    def test_basic(self):
        assert title_case("leather JACKET") == "Leather Jacket"

    def test_hyphen_starts_a_word(self):
        assert title_case("t-shirt") == "T-Shirt"

    def test_apostrophe_does_not_start_a_word(self):
        assert title_case("levi's") == "Levi's"

    def test_empty(self):
        assert title_case("") == ""


class TestCleanLabel:
    def test_truncates_at_first_comma(self):
        assert clean_label("running shoe, sneaker, trainer") == "Running Shoe"

    def test_trims_after_truncation(self):
        assert clean_label("  jersey , T-shirt") == "Jersey"

    def test_no_comma(self):
        assert clean_label("clothing store") == "Clothing Store"


class TestFold:
    def test_case_insensitive_key(self):
        assert fold("SHOE") == fold("shoe") == fold("Shoe")

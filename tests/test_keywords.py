"""
Tests for keywords.py — free text → one searchable keyword.

Covers:
  - vocabulary match returns the first word of the canonical phrase
  - scan order is the vocabulary's declared order, not text order
  - first meaningful word fallback (length, stoplist, non-letters)
  - "product" when nothing qualifies
"""
from __future__ import annotations

import pytest

from keywords import (
    CATEGORY_VOCABULARY,
    FALLBACK_KEYWORD,
    STOPWORDS,
    extract_keywords,
    first_meaningful_word,
    match_category,
)


# ── vocabulary tier ───────────────────────────────────────────────────────────

class TestVocabularyMatch:
    def test_laptop_bag_resolves_to_laptop(self):
        assert extract_keywords("I see a black leather laptop bag with zipper") == "laptop"

    def test_declared_order_beats_text_order(self):
        # "bag" appears first in the text but "laptop" is declared first
        assert extract_keywords("A canvas bag designed for a 15 inch laptop") == "laptop"

    def test_case_insensitive(self):
        assert extract_keywords("Bluetooth SPEAKER, black") == "speaker"

    def test_substring_match(self):
        # "watch" occurs inside "smartwatch"
        assert extract_keywords("A rose gold smartwatch") == "watch"

    def test_returns_first_word_of_phrase(self):
        assert extract_keywords("USB charger with braided cable") == "charger"

    def test_smartphone_before_case(self):
        assert extract_keywords("Clear case for a smartphone") == "smartphone"

    def test_match_category_none_without_hit(self):
        assert match_category("vintage ceramic vase") is None

    def test_vocabulary_is_immutable(self):
        with pytest.raises(TypeError):
            CATEGORY_VOCABULARY["lamp"] = "lamp light"

    def test_declared_order(self):
        keys = list(CATEGORY_VOCABULARY)
        assert keys[0] == "smartphone"
        assert keys.index("laptop") < keys.index("bag")
        assert keys[-1] == "book"


# ── meaningful word tier ──────────────────────────────────────────────────────

class TestMeaningfulWord:
    def test_first_long_word(self):
        assert extract_keywords("a red ceramic vase") == "ceramic"

    def test_stopwords_skipped(self):
        assert extract_keywords("this that with from have been will teapot") == "teapot"

    def test_non_letters_stripped_and_lowercased(self):
        assert extract_keywords("A Vintage-2020 vase") == "vintage"

    def test_exactly_four_letters_qualifies(self):
        assert first_meaningful_word("a big vase") == "vase"

    def test_three_letters_do_not_qualify(self):
        assert first_meaningful_word("a big red mug") is None

    def test_split_on_any_whitespace(self):
        assert first_meaningful_word("xx\nwidget") == "widget"
        assert first_meaningful_word("a\tred\t\tvase") == "vase"

    def test_qwerty_is_meaningful(self):
        assert extract_keywords("xyz qwerty") == "qwerty"

    def test_stoplist_contents(self):
        assert STOPWORDS == {"this", "that", "with", "from", "have", "been", "will"}


# ── final fallback ────────────────────────────────────────────────────────────

class TestFallbackKeyword:
    def test_nothing_qualifies(self):
        assert extract_keywords("a big red one") == FALLBACK_KEYWORD == "product"

    def test_empty_text(self):
        assert extract_keywords("") == "product"

    def test_only_stopwords(self):
        assert extract_keywords("this that with") == "product"

    def test_digits_only(self):
        assert extract_keywords("12345 678910") == "product"

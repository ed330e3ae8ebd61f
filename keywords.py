"""
keywords.py — maps free-form image analysis text to one searchable keyword.

Two tiers, most precise first:
  1. controlled vocabulary — first CATEGORY_VOCABULARY key found as a
     substring of the lowercased text, scanned in declared key order
     (not in the order words appear in the text)
  2. first "meaningful" word — letters only, longer than 3 chars, not a stopword;
     words are split on any whitespace run, so "xx\\nwidget" yields "widget"
     rather than gluing the lines together
  3. "product"
"""
from __future__ import annotations

import re
from types import MappingProxyType

FALLBACK_KEYWORD = "product"

# Declared order is the scan order: earlier keys win when several occur.
CATEGORY_VOCABULARY = MappingProxyType({
    "smartphone": "smartphone mobile phone",
    "laptop":     "laptop computer notebook",
    "headphones": "headphones earphones audio",
    "watch":      "watch smartwatch timepiece",
    "shoes":      "shoes footwear sneakers",
    "bag":        "bag backpack handbag",
    "camera":     "camera photography",
    "tablet":     "tablet ipad",
    "speaker":    "speaker bluetooth audio",
    "mouse":      "mouse wireless computer",
    "keyboard":   "keyboard computer gaming",
    "charger":    "charger cable power adapter",
    "case":       "case cover protection",
    "bottle":     "bottle water flask",
    "book":       "book novel textbook",
})

STOPWORDS = frozenset({"this", "that", "with", "from", "have", "been", "will"})

_NON_LETTERS_RE = re.compile(r"[^a-zA-Z]")


def match_category(text: str) -> str | None:
    """Return the first vocabulary key occurring in `text`, or None."""
    lowered = text.lower()
    for key in CATEGORY_VOCABULARY:
        if key in lowered:
            return key
    return None


def first_meaningful_word(text: str) -> str | None:
    for word in text.split():
        clean = _NON_LETTERS_RE.sub("", word).lower()
        if len(clean) > 3 and clean not in STOPWORDS:
            return clean
    return None


def extract_keywords(text: str) -> str:
    """
    Reduce an analysis like "I see a black leather laptop bag" to "laptop".
    Always returns a non-empty keyword.
    """
    key = match_category(text)
    if key is not None:
        return CATEGORY_VOCABULARY[key].split(" ")[0]
    return first_meaningful_word(text) or FALLBACK_KEYWORD

"""Text helpers for locating words and punctuation in the source text."""

from __future__ import annotations

import re
from typing import AbstractSet, Iterator, Optional

# First punctuation mark after optional whitespace.
_PUNCT_AFTER_RE = re.compile(r"^\s*([^\w\s])")

# Trailing sentence / clause punctuation attached to a token.
TRAILING_PUNCT_RE = re.compile(r"[.,!?;:，。！？；：]+$")


def _word_matches(text: str, word: str) -> Iterator["re.Match[str]"]:
    if not word:
        return iter(())
    pattern = re.compile(r"\b{}\b".format(re.escape(word)), re.IGNORECASE)
    return pattern.finditer(text)


def _nth_match(text: str, word: str, occurrence: int) -> Optional["re.Match[str]"]:
    for i, match in enumerate(_word_matches(text, word)):
        if i == occurrence:
            return match
    return None


def word_position_in_text(text: str, word: str, occurrence: int) -> Optional[int]:
    """Return the start index of the Nth (0-based) whole-word match of word.

    Matching is case-insensitive. Returns None when the word does not occur
    that many times or is empty.
    """
    match = _nth_match(text, word, occurrence)
    return match.start() if match else None


def punctuation_after_word(text: str, word: str, occurrence: int) -> Optional[str]:
    """Return the punctuation mark immediately following the Nth match of word.

    Whitespace between the word and the mark is skipped; only the first
    mark is returned ("!!!" yields "!").
    """
    match = _nth_match(text, word, occurrence)
    if match is None:
        return None
    after = _PUNCT_AFTER_RE.match(text[match.end():])
    return after.group(1) if after else None


def is_abbreviation_word(
    word: str,
    punctuation_after: Optional[str],
    abbreviations: AbstractSet[str],
) -> bool:
    """True if word (followed by or ending in a period) is a known abbreviation.

    Handles both "Mr." and "Mr" followed by a separate ".".
    """
    if not (word.endswith(".") or punctuation_after == "."):
        return False
    return word.rstrip(".").lower() in abbreviations

"""Break detection: where the initial segmenter may end a segment.

WHY: A good follow-along line ends where a reader would naturally pause:
at punctuation, at a breathing gap, or before a new clause. Breaking after
"the" or "of", or leaving a one-word tail, makes lines hard to read.

HOW: should_break_at_position() combines hard rules (end of input,
one-word sentences) with a numeric break score built from punctuation
weight, sentence ends, pauses, meaning-group edges and the running word
count. Separate helpers handle clause starters and commas.
find_best_break_point_in_segment() picks a split point when a run has grown
past max_words_per_segment.

RULES:
- The last word of the input always breaks
- Inside a meaning group no break happens unless the sentence ends there;
  the edge of a group always breaks
- Abbreviation periods never contribute to the score
- A pause after a NO_BREAK_WORDS word counts only if it is a long pause
- find_best_break_point_in_segment never returns the last index
"""

from __future__ import annotations

from typing import Sequence

from transcript_segmentation.models import WordToken
from transcript_segmentation.presets import (
    COMMA_PUNCTUATION,
    MAIN_CLAUSE_STARTERS,
    NO_BREAK_WORDS,
    QUESTION_WORDS,
    RELATIVE_PRONOUNS,
    SEMICOLON_PUNCTUATION,
    SegmentationConfig,
)

# How far back find_best_break_point_in_segment scans.
BREAK_LOOKBACK_WORDS = 12


def _normalized(word: WordToken) -> str:
    return word.text.lower().strip()


def _has_comma(word: WordToken) -> bool:
    return word.punctuation_after in COMMA_PUNCTUATION or word.text.endswith((",", "，"))


def _has_semicolon(word: WordToken) -> bool:
    return word.punctuation_after in SEMICOLON_PUNCTUATION or word.text.endswith((";", "；"))


def calculate_break_score(
    word: WordToken,
    current_word_count: int,
    config: SegmentationConfig,
) -> int:
    """Score how strongly the position after word invites a break."""
    score = 0

    if word.punctuation_weight > 0 and not word.is_abbreviation:
        score += word.punctuation_weight

    if word.is_sentence_end:
        score += 12

    if word.gap_after >= config.pause_threshold:
        is_long = word.gap_after >= config.long_pause_threshold
        if _normalized(word) in NO_BREAK_WORDS:
            # Short pauses after function words are hesitation
            if is_long:
                score += 8
        else:
            score += 8 if is_long else 4

    if current_word_count >= config.preferred_words_per_segment:
        has_any_signal = (
            word.punctuation_weight > 0
            or word.gap_after >= config.pause_threshold
            or word.is_at_meaning_group_boundary
            or word.is_sentence_end
        )
        if has_any_signal:
            score += 3
        if current_word_count >= config.max_words_per_segment - 2:
            score += 2

    if word.is_at_meaning_group_boundary:
        score += 5
    elif word.is_in_meaning_group:
        score -= 3

    return score


def should_break_before_clause_start(
    words: Sequence[WordToken],
    index: int,
    current_word_count: int,
    config: SegmentationConfig,
) -> bool:
    """True if the next word opens a new clause (relative pronoun, question word,
    or a main-clause subject after a comma)."""
    if index >= len(words) - 1 or current_word_count < config.min_words_per_segment:
        return False

    next_text = words[index + 1].text.lower()

    if next_text in RELATIVE_PRONOUNS:
        return True

    if next_text in QUESTION_WORDS and current_word_count >= config.min_words_per_segment + 1:
        return True

    if next_text in MAIN_CLAUSE_STARTERS and _has_comma(words[index]):
        return True

    return False


def should_break_at_comma(
    words: Sequence[WordToken],
    index: int,
    current_word_count: int,
    config: SegmentationConfig,
) -> bool:
    """True if a comma or semicolon after words[index] should end the segment."""
    word = words[index]
    if not _has_comma(word) and not _has_semicolon(word):
        return False

    if current_word_count < config.min_words_per_segment:
        return False

    if word.gap_after >= config.pause_threshold:
        return True

    if index < len(words) - 1 and words[index + 1].text.lower() in MAIN_CLAUSE_STARTERS:
        return True

    return current_word_count >= config.min_words_per_segment + 2


def should_break_at_position(
    words: Sequence[WordToken],
    index: int,
    current_word_count: int,
    config: SegmentationConfig,
) -> bool:
    """Decide whether the current segment should end after words[index].

    Args:
        words: All words of the transcript.
        index: Index of the candidate last word.
        current_word_count: Words in the segment so far, including words[index].
        config: Segmentation config.
    """
    if index == len(words) - 1:
        return True

    word = words[index]

    # Wait for the edge of a meaning group unless the sentence ends here
    if (word.is_in_meaning_group and not word.is_sentence_end
            and not word.is_at_meaning_group_boundary):
        return False

    # One-word sentences: "Why?", "Yes!"
    if current_word_count == 1 and word.is_sentence_end:
        return True

    if (current_word_count <= 2 and word.is_sentence_end
            and word.gap_after >= config.pause_threshold):
        return True

    score = calculate_break_score(word, current_word_count, config)

    if current_word_count < config.min_words_per_segment and score < 10:
        return False

    if word.is_at_meaning_group_boundary:
        return True

    if should_break_before_clause_start(words, index, current_word_count, config):
        return True

    if current_word_count >= config.preferred_words_per_segment:
        is_pause = word.gap_after >= config.pause_threshold
        is_bad_break_word = _normalized(word) in NO_BREAK_WORDS
        valid_pause = is_pause and (
            not is_bad_break_word or word.gap_after >= config.long_pause_threshold
        )

        remaining = len(words) - index - 1
        if remaining < 2 and current_word_count < config.max_words_per_segment - 1:
            # Avoid leaving a stub; only a strong signal breaks here
            return word.is_sentence_end or (
                word.punctuation_weight >= 6 and not word.is_abbreviation
            )

        if word.punctuation_weight > 0 or valid_pause or score >= 5:
            return True

        if (current_word_count >= config.max_words_per_segment - 3
                and (word.punctuation_weight > 0 or score >= 3)):
            return True

    if current_word_count < config.preferred_words_per_segment:
        has_weak_signal = (
            word.punctuation_weight > 0 or word.gap_after >= config.pause_threshold
        )
        if not has_weak_signal and score < 8:
            return False

    if score >= 8:
        return True

    return should_break_at_comma(words, index, current_word_count, config)


def find_best_break_point_in_segment(
    segment: Sequence[WordToken],
    config: SegmentationConfig,
) -> int:
    """Find the best index to split an over-long segment after.

    Scans up to BREAK_LOOKBACK_WORDS candidates ending at the second-to-last
    word. Returns -1 when no candidate scores above zero.
    """
    if len(segment) < 2:
        return -1

    last_candidate = len(segment) - 2
    lookback = min(BREAK_LOOKBACK_WORDS, last_candidate + 1)
    start = max(0, last_candidate - lookback + 1)

    best_index = -1
    best_score = 0

    for i in range(start, last_candidate + 1):
        word = segment[i]

        if word.is_abbreviation:
            continue
        if _normalized(word) in NO_BREAK_WORDS and not word.punctuation_weight:
            continue
        if word.is_in_meaning_group and not word.is_at_meaning_group_boundary:
            continue
        # Keep multi-word names ("Jane Smith") together
        if word.is_in_entity and segment[i + 1].is_in_entity:
            continue

        score = 0
        if word.is_sentence_end:
            score += 15
        elif word.punctuation_weight > 0:
            score += word.punctuation_weight * 2

        if word.is_at_meaning_group_boundary:
            score += 8

        if word.gap_after >= config.pause_threshold:
            score += 3

        words_before = i + 1
        if (config.min_words_per_segment <= words_before
                <= config.preferred_words_per_segment):
            score += 2

        # One-word tail in the remainder
        if len(segment) - words_before == 1:
            score -= 6

        if score > best_score:
            best_score = score
            best_index = i

    return best_index

"""Initial segmentation: annotated words to candidate segments.

WHY: Learners shadow a transcript one line at a time, so lines must be
short, but never cut through a sentence end or a tight phrase. This stage
produces candidate segments; the merger later fuses the ones that came out
too short.

HOW: Words are first grouped into sentences on is_sentence_end. Each
sentence is segmented independently:
  - Very long sentences (> 2 x max_words_per_segment) are cut into evenly
    sized pieces, each cut placed at the best nearby break point.
  - Other sentences are scanned word by word using should_break_at_position().
    When a run reaches max_words_per_segment without a break, the run is
    split at the best break point in it, at a fallback point, or outright.
    If a sentence end or meaning-group edge is within a few words the split
    is postponed so fixed phrases ("wasn't bad enough.") stay together.

RULES:
- Output segments partition the input words exactly, in order
- No segment is empty
- A run may overflow max_words_per_segment by at most OVERFLOW_LOOKAHEAD
  words while waiting for a sentence end
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from transcript_segmentation.break_detection import (
    find_best_break_point_in_segment,
    should_break_at_position,
)
from transcript_segmentation.models import WordSegment, WordToken
from transcript_segmentation.presets import SegmentationConfig

logger = logging.getLogger(__name__)

OVERFLOW_LOOKAHEAD = 4
EVEN_SPLIT_SEARCH_WINDOW = 4

# Words that make poor line endings in an even split.
_BAD_EVEN_SPLIT_WORDS = frozenset({"of", "the", "a", "an"})


def _has_break_signal(word: WordToken, config: SegmentationConfig) -> bool:
    return (
        word.punctuation_weight > 0
        or word.is_at_meaning_group_boundary
        or word.gap_after >= config.pause_threshold
    )


def group_words_into_sentences(words: Sequence[WordToken]) -> List[List[WordToken]]:
    """Split words into sentences, ending each at an is_sentence_end word."""
    sentences: List[List[WordToken]] = []
    current: List[WordToken] = []
    for word in words:
        current.append(word)
        if word.is_sentence_end:
            sentences.append(current)
            current = []
    if current:
        sentences.append(current)
    return sentences


def find_best_break_near_target(
    sentence: Sequence[WordToken],
    target_index: int,
    config: SegmentationConfig,
    search_window: int = 3,
) -> int:
    """Find the best break point within search_window words of target_index.

    Returns -1 if no position scores above zero.
    """
    start = max(0, target_index - search_window)
    end = min(len(sentence) - 1, target_index + search_window)

    best_index = -1
    best_score = 0

    for i in range(start, end + 1):
        word = sentence[i]
        score = 0

        if word.punctuation_weight > 0 and not word.is_abbreviation:
            score += word.punctuation_weight * 3
        if word.is_at_meaning_group_boundary:
            score += 5
        if word.gap_after >= config.pause_threshold:
            score += 3

        # Closer to target is better
        score += max(0, search_window - abs(i - target_index))

        if (word.text.lower().strip() in _BAD_EVEN_SPLIT_WORDS
                and not word.punctuation_weight
                and word.gap_after < config.pause_threshold):
            score -= 5

        if word.is_in_meaning_group and not word.is_at_meaning_group_boundary:
            score -= 3

        if score > best_score:
            best_score = score
            best_index = i

    return best_index


def segment_long_sentence_evenly(
    sentence: Sequence[WordToken],
    config: SegmentationConfig,
) -> List[WordSegment]:
    """Cut a very long sentence into pieces of roughly equal length."""
    total = len(sentence)
    segment_count = math.ceil(total / config.preferred_words_per_segment)
    words_per_segment = math.ceil(total / segment_count)

    segments: List[WordSegment] = []
    current = 0

    for segment_num in range(segment_count):
        if segment_num == segment_count - 1:
            if current < total:
                segments.append(WordSegment(sentence[current:]))
            break

        target = current + words_per_segment - 1
        best = find_best_break_near_target(
            sentence, target, config, EVEN_SPLIT_SEARCH_WINDOW
        )

        if best >= current:
            cut = best
        else:
            cut = min(target, total - 1)
            for i in range(max(current + 1, cut - 2), min(cut + 2, total - 1) + 1):
                if _has_break_signal(sentence[i], config):
                    cut = i
                    break

        if cut - current + 1 < 2:
            min_length = min(3, words_per_segment - 1)
            cut = min(current + min_length, total - 1)

        segments.append(WordSegment(sentence[current:cut + 1]))
        current = cut + 1
        if current >= total:
            break

    return segments


def should_delay_force_break(
    words: Sequence[WordToken],
    index: int,
    current_word_count: int,
    config: SegmentationConfig,
) -> bool:
    """True if a sentence end lies close enough ahead to postpone a force break."""
    if current_word_count >= config.max_words_per_segment + OVERFLOW_LOOKAHEAD:
        return False

    for offset in range(1, OVERFLOW_LOOKAHEAD + 1):
        idx = index + offset
        if idx >= len(words):
            break
        if words[idx].is_sentence_end or words[idx].is_at_meaning_group_boundary:
            return True

    return False


def find_fallback_break_point(
    segment: Sequence[WordToken],
    current_word_count: int,
    config: SegmentationConfig,
) -> Optional[Tuple[List[WordToken], List[WordToken]]]:
    """Split an over-long run at any break signal at or past the preferred length.

    Returns (first_part, second_part), or None if the run should be kept.
    """
    for j in range(len(segment) - 1, config.preferred_words_per_segment - 1, -1):
        if _has_break_signal(segment[j], config):
            return list(segment[:j + 1]), list(segment[j + 1:])

    if current_word_count >= config.preferred_words_per_segment + 3:
        at = config.preferred_words_per_segment
        return list(segment[:at]), list(segment[at:])

    return None


def _segment_sentence(
    sentence: Sequence[WordToken],
    all_words: Sequence[WordToken],
    sentence_start: int,
    config: SegmentationConfig,
) -> List[WordSegment]:
    if len(sentence) > config.max_words_per_segment * 2:
        return segment_long_sentence_evenly(sentence, config)

    segments: List[WordSegment] = []
    current: List[WordToken] = []

    for i, word in enumerate(sentence):
        global_index = sentence_start + i
        current.append(word)

        if should_break_at_position(all_words, global_index, len(current), config):
            segments.append(WordSegment(current))
            current = []
            continue

        if len(current) < config.max_words_per_segment or i == len(sentence) - 1:
            continue

        if should_delay_force_break(all_words, global_index, len(current), config):
            continue

        break_index = find_best_break_point_in_segment(current, config)
        if 0 <= break_index < len(current) - 1:
            segments.append(WordSegment(current[:break_index + 1]))
            current = current[break_index + 1:]
            continue

        fallback = find_fallback_break_point(current, len(current), config)
        if fallback is not None:
            first, second = fallback
            segments.append(WordSegment(first))
            current = second
        else:
            segments.append(WordSegment(current))
            current = []

    if current:
        segments.append(WordSegment(current))

    return segments


def segment_words(words: Sequence[WordToken], config: SegmentationConfig) -> List[WordSegment]:
    """Group annotated words into candidate segments.

    Args:
        words: Annotated words in time order.
        config: Segmentation config.

    Returns:
        Candidate segments partitioning words, in order.
    """
    if not words:
        return []

    segments: List[WordSegment] = []
    offset = 0
    for sentence in group_words_into_sentences(words):
        segments.extend(_segment_sentence(sentence, words, offset, config))
        offset += len(sentence)

    logger.debug("Segmented %d words into %d candidate segments", len(words), len(segments))
    return segments

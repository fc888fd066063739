"""Segment merging: fuse adjacent short segments into readable lines.

WHY: The initial segmenter errs on the side of breaking, which leaves
one- and two-word fragments ("Well," / "Hello") and splits abbreviations
from their period ("Dr" "." / "Smith arrived"). Fragments are tiring to
read; merging them back must not erase a real pause or clause boundary.

HOW: A single left-to-right pass with a cursor. For each segment and its
successor, rules are checked in fixed order and the first that applies
decides:
  1. last segment       → keep
  2. abbreviation split → fuse
  3. pause after it     → keep, unless one word with a near-zero real gap
  4. strong punctuation → keep, unless one word with a near-zero real gap
  5. one word, near-zero real gap → fuse if combined <= max_words_per_segment
  6. combined <= preferred_words_per_segment → fuse
  7. otherwise          → keep

RULES:
- Pure: input list and segments are never mutated; output is a new list
- At most one fusion per step; fused segments are not re-examined, so a
  chain of short segments merges pairwise
- Word order and word count are preserved exactly; len(output) <= len(input)
- The "real gap" is next.start - current.end; the pause check uses the
  recorded gap_after, which may disagree when timing data is noisy
- A NaN gap_after never counts as a pause (NaN comparisons are False)
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from transcript_segmentation.models import WordSegment
from transcript_segmentation.presets import (
    STRONG_PUNCTUATION,
    VERY_FAST_GAP_MS,
    SegmentationConfig,
)

logger = logging.getLogger(__name__)


def should_merge_abbreviation(current: WordSegment, config: SegmentationConfig) -> bool:
    """True if current ends in a standalone "." that belongs to an abbreviation.

    RULES:
    - current needs at least two words
    - last word text is exactly "."
    - second-to-last word, lowercased, is in config.abbreviations
    """
    if len(current) < 2:
        return False
    last = current.words[-1]
    before = current.words[-2]
    return last.text == "." and before.text.lower() in config.abbreviations


def segment_gap(current: WordSegment, next_segment: WordSegment) -> int:
    """Milliseconds between the end of current and the start of next_segment."""
    return next_segment.start - current.end


def has_strong_punctuation(segment: WordSegment) -> bool:
    last = segment.last_word
    return last.is_sentence_end or last.punctuation_after in STRONG_PUNCTUATION


def merge_short_segments(
    segments: Sequence[WordSegment],
    config: SegmentationConfig,
) -> List[WordSegment]:
    """Merge short adjacent segments without crossing pauses or clause ends.

    Args:
        segments: Candidate segments in order.
        config: Segmentation config (pause threshold, word limits, abbreviations).

    Returns:
        A new list of segments with the same words in the same order.
    """
    if len(segments) <= 1:
        return list(segments)

    merged: List[WordSegment] = []
    i = 0
    count = len(segments)

    while i < count:
        current = segments[i]

        if i == count - 1:
            merged.append(current)
            break

        nxt = segments[i + 1]

        if should_merge_abbreviation(current, config):
            merged.append(current.merged_with(nxt))
            i += 2
            continue

        is_very_short = len(current) <= 1
        is_very_fast_gap = segment_gap(current, nxt) < VERY_FAST_GAP_MS
        fast_single_word = is_very_short and is_very_fast_gap

        has_pause = current.last_word.gap_after >= config.pause_threshold
        if has_pause and not fast_single_word:
            merged.append(current)
            i += 1
            continue

        if has_strong_punctuation(current) and not fast_single_word:
            merged.append(current)
            i += 1
            continue

        combined = len(current) + len(nxt)

        if fast_single_word and combined <= config.max_words_per_segment:
            merged.append(current.merged_with(nxt))
            i += 2
            continue

        if combined <= config.preferred_words_per_segment:
            merged.append(current.merged_with(nxt))
            i += 2
            continue

        merged.append(current)
        i += 1

    logger.debug("Merged %d segments into %d", count, len(merged))
    return merged

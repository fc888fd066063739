"""Transcript segmentation for follow-along reading.

WHY: Speech engines return word-level timings, but a language learner
reads and shadows a transcript one line at a time. This package turns
timed words into short, readable lines that respect sentence ends,
breathing pauses and abbreviations.

HOW: The public entry point is convert_to_transcript(text, raw_timings).
It resolves the config, analyzes English text for meaning groups and
named entities (language.analyze_text), then runs the pipeline:
  enrich_word_metadata() -> segment_words() -> merge_short_segments()
and converts each final segment into a TimelineItem.

RULES:
- convert_to_transcript() and segment_tokens() are the public API
- Every stage receives the config explicitly; there is no global state,
  so concurrent calls with different configs are safe
- Words are never created, dropped, reordered or rewritten
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .language import analyze_text
from .merge import merge_short_segments, should_merge_abbreviation
from .metadata import enrich_word_metadata
from .models import (
    RawWordTiming,
    TimelineItem,
    TimelineWord,
    Transcript,
    WordSegment,
    WordToken,
)
from .presets import (
    COMMON_ABBREVIATIONS,
    PRESETS,
    SegmentationConfig,
    get_preset,
)
from .segmentation import segment_words

__version__ = "0.1.0"

__all__ = [
    "convert_to_transcript",
    "segment_tokens",
    "merge_short_segments",
    "should_merge_abbreviation",
    "RawWordTiming",
    "WordToken",
    "WordSegment",
    "TimelineItem",
    "TimelineWord",
    "Transcript",
    "SegmentationConfig",
    "PRESETS",
    "COMMON_ABBREVIATIONS",
]

logger = logging.getLogger(__name__)


def segment_tokens(
    tokens: Sequence[WordToken],
    config: SegmentationConfig,
) -> List[WordSegment]:
    """Segment already-annotated tokens and merge short segments.

    Args:
        tokens: Annotated words in time order.
        config: Segmentation config.

    Returns:
        Final segments partitioning tokens, in order.
    """
    return merge_short_segments(segment_words(tokens, config), config)


def convert_to_transcript(
    text: str,
    raw_timings: Sequence[RawWordTiming],
    preset: str = "follow-along",
    config: Optional[SegmentationConfig] = None,
    language: Optional[str] = None,
) -> Transcript:
    """Segment timed words into a follow-along transcript timeline.

    Args:
        text: The full text that was spoken (used for punctuation lookup).
        raw_timings: Word timings in seconds from the speech engine.
        preset: Preset name; ignored when config is given.
        config: Explicit config overriding the preset.
        language: Language code of text ("en", "en-US", ...). English text is
            analyzed so lines do not break inside meaning groups or names.

    Returns:
        Transcript with one TimelineItem per final segment.

    Raises:
        ValueError: If the preset name is not recognized and no config is given.
    """
    cfg = config if config is not None else get_preset(preset)

    if not raw_timings:
        return Transcript(timeline=[])

    analysis = analyze_text(text, language)
    tokens = enrich_word_metadata(text, raw_timings, cfg, analysis)
    segments = segment_tokens(tokens, cfg)
    logger.debug("Built transcript: %d words, %d lines", len(tokens), len(segments))

    return Transcript(timeline=[TimelineItem.from_segment(s) for s in segments])

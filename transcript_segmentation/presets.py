"""Segmentation presets and linguistic constants.

WHY: Segment length bounds, pause thresholds and abbreviation lists are
tuning knobs, not logic. Keeping them as importable constants lets callers
pick a preset by name, and passing a SegmentationConfig explicitly to every
stage keeps concurrent calls with different settings independent.

HOW: SegmentationConfig is a frozen dataclass validated on construction.
PRESETS maps names to ready-made configs. The word sets and punctuation
weights are module-level frozensets / dicts shared by all stages.

RULES:
- Presets are frozen; use SegmentationConfig.replace() to derive variants.
- VERY_FAST_GAP_MS is a fixed literal, not a config field. Gaps below it
  between two segments count as no real gap.
- Abbreviations are stored lowercase without the trailing period.
- The "default" key is an alias for "follow-along".
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Dict, FrozenSet

# Known abbreviations whose trailing period is not a sentence boundary.
COMMON_ABBREVIATIONS: FrozenSet[str] = frozenset({
    # Titles and honorifics
    "mr", "mrs", "ms", "dr", "prof", "sr", "jr", "esq",
    # Time and dates
    "am", "pm", "a.m", "p.m", "bc", "ad", "bce", "ce",
    # Locations
    "us", "usa", "uk", "u.s", "u.s.a",
    # Common abbreviations
    "etc", "vs", "v", "e.g", "i.e", "ex", "inc", "ltd", "corp", "co",
    "st", "ave", "blvd", "rd", "ct", "ln", "pl", "pkwy",
    # Academic
    "ph.d", "m.d", "b.a", "m.a", "b.s", "m.s",
    # Measurements
    "ft", "in", "lb", "oz", "kg", "g", "mg", "ml", "l",
    # Technical
    "ca", "approx", "max", "min",
})

# Function words that attach to what follows; a pause after them is usually
# hesitation rather than a boundary.
NO_BREAK_WORDS: FrozenSet[str] = frozenset({
    "a", "an", "the",
    "of", "to", "in", "on", "at", "for", "by", "with", "from", "about",
    "my", "your", "his", "her", "its", "our", "their",
    "and", "or", "nor",
})

# Break strength per punctuation mark (higher = stronger break point).
PUNCTUATION_WEIGHTS: Dict[str, int] = {
    ".": 10, "!": 10, "?": 10,
    "。": 10, "！": 10, "？": 10, "…": 10,
    ",": 5, "，": 5,
    ";": 6, "；": 6,
    ":": 4, "：": 4,
    "-": 2, "—": 3,
}

# Punctuation that ends a sentence (ASCII and full-width).
SENTENCE_END_PUNCTUATION: FrozenSet[str] = frozenset({
    ".", "!", "?", "。", "！", "？",
})

# Clause punctuation that blocks merging at a segment boundary.
STRONG_PUNCTUATION: FrozenSet[str] = frozenset({
    ",", "，", ";", "；", ":", "：",
})

COMMA_PUNCTUATION: FrozenSet[str] = frozenset({",", "，"})
SEMICOLON_PUNCTUATION: FrozenSet[str] = frozenset({";", "；"})

# Words that typically open a main clause after a comma.
MAIN_CLAUSE_STARTERS: FrozenSet[str] = frozenset({
    "i", "you", "he", "she", "it", "we", "they",
    "this", "that", "these", "those",
})

RELATIVE_PRONOUNS: FrozenSet[str] = frozenset({"who", "which", "that", "whom", "whose"})
QUESTION_WORDS: FrozenSet[str] = frozenset({"what", "how", "why", "when", "where"})

# Gaps below this (ms) between two segments count as "no real gap".
VERY_FAST_GAP_MS = 100


@dataclass(frozen=True)
class SegmentationConfig:
    """Tuning parameters shared by every segmentation stage.

    Attributes:
        min_words_per_segment: Fewest words a segment normally has.
        max_words_per_segment: Hard ceiling; also bounds the short-segment
            fast-merge path of the merger.
        preferred_words_per_segment: Soft ceiling for general merging.
        pause_threshold: Minimum gap (ms) that counts as a pause.
        long_pause_threshold: Gap (ms) that counts as a strong pause.
        abbreviations: Lowercase abbreviations without trailing period.
    """

    min_words_per_segment: int = 1
    max_words_per_segment: int = 12
    preferred_words_per_segment: int = 6
    pause_threshold: int = 250
    long_pause_threshold: int = 500
    abbreviations: FrozenSet[str] = field(default=COMMON_ABBREVIATIONS)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "abbreviations", frozenset(a.lower() for a in self.abbreviations)
        )
        if self.min_words_per_segment < 1:
            raise ValueError("min_words_per_segment must be at least 1")
        if self.preferred_words_per_segment < self.min_words_per_segment:
            raise ValueError(
                "preferred_words_per_segment ({}) must be >= min_words_per_segment ({})".format(
                    self.preferred_words_per_segment, self.min_words_per_segment
                )
            )
        if self.max_words_per_segment < self.preferred_words_per_segment:
            raise ValueError(
                "max_words_per_segment ({}) must be >= preferred_words_per_segment ({})".format(
                    self.max_words_per_segment, self.preferred_words_per_segment
                )
            )
        if self.pause_threshold < 0:
            raise ValueError("pause_threshold must be non-negative")
        if self.long_pause_threshold < self.pause_threshold:
            raise ValueError(
                "long_pause_threshold ({}) must be >= pause_threshold ({})".format(
                    self.long_pause_threshold, self.pause_threshold
                )
            )

    def replace(self, **overrides) -> "SegmentationConfig":
        """Return a validated copy with the given fields replaced."""
        return dataclasses.replace(self, **overrides)


# Follow-along reading: short lines a learner can shadow in one breath.
PRESET_FOLLOW_ALONG = SegmentationConfig()

PRESETS: Dict[str, SegmentationConfig] = {
    "follow-along": PRESET_FOLLOW_ALONG,
    "default": PRESET_FOLLOW_ALONG,  # Alias
}

DEFAULT_PRESET = "follow-along"


def get_preset(name: str) -> SegmentationConfig:
    """Look up a preset by name.

    Raises:
        ValueError: If the preset name is not recognized.
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(
            "Unknown preset '{}'. Available: {}".format(name, ", ".join(PRESETS.keys()))
        ) from None

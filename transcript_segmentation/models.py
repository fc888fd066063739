"""Data models for transcript segmentation.

WHY: The segmentation pipeline reasons about timed words, groups of words,
and the rendered timeline a reader follows along with. Each stage consumes
and produces these types, so they are the stable contract between stages.

HOW: Frozen dataclasses validated in __post_init__:
  RawWordTiming: one word as reported by the speech engine (seconds)
  WordToken: one word with millisecond timing and punctuation metadata
  WordSegment: a non-empty, ordered run of WordTokens (one "sentence")
  TimelineWord / TimelineItem / Transcript: the rendered output

RULES:
- WordToken and WordSegment are immutable; merging builds new segments.
- A WordSegment with zero words, or with words out of start-time order,
  is a precondition violation (ValueError).
- All WordToken / timeline times are integer milliseconds.
- WordToken.text is never modified by the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class RawWordTiming:
    """A single word as reported by the upstream speech engine.

    Attributes:
        text: The word text, possibly with trailing punctuation attached.
        start_time: Start time in seconds.
        end_time: End time in seconds.
    """

    text: str
    start_time: float
    end_time: float

    def __post_init__(self) -> None:
        if self.end_time < self.start_time:
            raise ValueError(
                "Word '{}' ends before it starts ({} < {})".format(
                    self.text, self.end_time, self.start_time
                )
            )


@dataclass(frozen=True)
class WordToken:
    """A recognized word with timing and punctuation metadata.

    Attributes:
        text: The literal token (word or standalone punctuation mark).
        start: Start time in milliseconds.
        end: End time in milliseconds (>= start).
        gap_after: Silence in milliseconds before the next token (0 if last).
        punctuation_after: Punctuation immediately following the word, if any.
        is_sentence_end: True if this token ends a full sentence.
        punctuation_weight: Break strength of punctuation_after (0 if none).
        is_abbreviation: True if the word is a known abbreviation ("Mr").
        is_number: True if the word is primarily numeric ("3.14").
        is_in_entity: True if the word is part of a named entity (English only).
        is_in_meaning_group: True if the word starts strictly inside a
            meaning group such as "to figure out" (English only).
        is_at_meaning_group_boundary: True if a meaning group starts or ends
            right after this word (English only).
    """

    text: str
    start: int
    end: int
    gap_after: int = 0
    punctuation_after: Optional[str] = None
    is_sentence_end: bool = False
    punctuation_weight: int = 0
    is_abbreviation: bool = False
    is_number: bool = False
    is_in_entity: bool = False
    is_in_meaning_group: bool = False
    is_at_meaning_group_boundary: bool = False

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(
                "Token '{}' ends before it starts ({} < {})".format(
                    self.text, self.end, self.start
                )
            )

    @property
    def duration(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class WordSegment:
    """A contiguous, non-empty run of word tokens rendered as one line.

    WHY: The initial segmenter and the merger both operate on whole
    segments; the "end punctuation state" of a segment is the state of its
    last word.

    RULES:
    - words is stored as a tuple so a segment can never be mutated
    - an empty segment raises ValueError at construction time
    - word start times must be non-decreasing; merged_with() inherits
      the check, so fusing a later segment in front of an earlier one fails
    """

    words: Tuple[WordToken, ...]

    def __post_init__(self) -> None:
        # Accept any sequence but store a tuple
        object.__setattr__(self, "words", tuple(self.words))
        if not self.words:
            raise ValueError("WordSegment requires at least one word")
        for prev, word in zip(self.words, self.words[1:]):
            if word.start < prev.start:
                raise ValueError(
                    "Words out of time order: '{}' ({}) follows '{}' ({})".format(
                        word.text, word.start, prev.text, prev.start
                    )
                )

    def __len__(self) -> int:
        return len(self.words)

    @property
    def first_word(self) -> WordToken:
        return self.words[0]

    @property
    def last_word(self) -> WordToken:
        return self.words[-1]

    @property
    def start(self) -> int:
        return self.words[0].start

    @property
    def end(self) -> int:
        return self.words[-1].end

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self.words)

    def merged_with(self, other: "WordSegment") -> "WordSegment":
        """Return a new segment holding this segment's words followed by other's."""
        return WordSegment(self.words + other.words)


@dataclass(frozen=True)
class TimelineWord:
    """Word-level timing inside a timeline item (milliseconds)."""

    text: str
    start: int
    duration: int

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "start": self.start, "duration": self.duration}


@dataclass(frozen=True)
class TimelineItem:
    """One rendered transcript line with nested word timings.

    Attributes:
        text: Segment words joined with single spaces.
        start: Start of the first word (ms).
        duration: End of the last word minus start (ms).
        timeline: Per-word timings for highlighting.
    """

    text: str
    start: int
    duration: int
    timeline: List[TimelineWord] = field(default_factory=list)

    @classmethod
    def from_segment(cls, segment: WordSegment) -> "TimelineItem":
        return cls(
            text=segment.text,
            start=segment.start,
            duration=segment.end - segment.start,
            timeline=[
                TimelineWord(text=w.text, start=w.start, duration=w.duration)
                for w in segment.words
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "start": self.start,
            "duration": self.duration,
            "timeline": [w.to_dict() for w in self.timeline],
        }


@dataclass(frozen=True)
class Transcript:
    """The complete segmented transcript handed to renderers and storage."""

    timeline: List[TimelineItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"timeline": [item.to_dict() for item in self.timeline]}

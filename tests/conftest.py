"""Shared test fixtures for the transcript_segmentation test suite.

WHY: Most test modules need the same config and the same small sample
utterance. Centralizing them keeps expectations consistent across modules.

HOW: Pytest fixtures provide the default config, the sample text with its
raw timings, an isolated environment without SEGMENTATION_* overrides,
and a factory for hand-parsed spaCy docs (no trained model needed).

RULES:
- Sample timings are in seconds, as a speech engine reports them.
- The environment is scrubbed for every test so a developer's .env
  cannot change expected results.
"""

from typing import List, Optional, Sequence

import pytest
import spacy
from spacy.tokens import Doc

from transcript_segmentation.config import ENV_OVERRIDES
from transcript_segmentation.models import RawWordTiming
from transcript_segmentation.presets import PRESET_FOLLOW_ALONG, SegmentationConfig


SAMPLE_TEXT = "Hello world. How are you?"

SAMPLE_TIMINGS: List[RawWordTiming] = [
    RawWordTiming("Hello", 0.0, 0.5),
    RawWordTiming("world", 0.6, 1.0),
    RawWordTiming("How", 1.2, 1.4),
    RawWordTiming("are", 1.5, 1.7),
    RawWordTiming("you", 1.8, 2.0),
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove SEGMENTATION_* variables for the duration of each test."""
    extra = ["SEGMENTATION_PRESET", "SEGMENTATION_LOG_LEVEL", "SEGMENTATION_SPACY_MODEL"]
    for name in list(ENV_OVERRIDES) + extra:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config() -> SegmentationConfig:
    return PRESET_FOLLOW_ALONG


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_TEXT


@pytest.fixture
def sample_timings() -> List[RawWordTiming]:
    return list(SAMPLE_TIMINGS)


def _spaces(text: str, words: Sequence[str]) -> List[bool]:
    spaces = []
    offset = 0
    for word in words:
        offset = text.index(word, offset) + len(word)
        spaces.append(text[offset:offset + 1] == " ")
    return spaces


@pytest.fixture
def make_doc():
    """Build a spaCy Doc over text from explicit tokens and annotations.

    heads are absolute token indices; ents are IOB strings ("B-PERSON", "O").
    """
    vocab = spacy.blank("en").vocab

    def _make(
        text: str,
        words: Sequence[str],
        pos: Optional[Sequence[str]] = None,
        deps: Optional[Sequence[str]] = None,
        heads: Optional[Sequence[int]] = None,
        ents: Optional[Sequence[str]] = None,
    ) -> Doc:
        doc = Doc(
            vocab, words=list(words), spaces=_spaces(text, words),
            pos=pos, deps=deps, heads=heads, ents=ents,
        )
        assert doc.text == text
        return doc

    return _make

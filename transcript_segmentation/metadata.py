"""Word metadata enrichment: raw timings to annotated WordTokens.

WHY: Speech engines report words with start/end seconds and little else.
The segmenter needs to know, per word, how long the silence after it is,
which punctuation follows it in the source text, and whether that
punctuation really ends a sentence ("Dr." and "3.5" do not).

HOW: One pass over the raw timings. Times are rounded to milliseconds and
gap_after is the distance to the next word's start. Punctuation is looked
up in the original text at the word's occurrence, falling back to
punctuation attached to the token itself. Abbreviation and number checks
then decide is_sentence_end and the punctuation weight. When a TextAnalysis
is given (English text), the word's character position in the text is
checked against its entities and meaning groups.

RULES:
- Output has exactly one WordToken per raw timing, in order
- gap_after of the last token is 0
- Sentence-ending punctuation: . ! ? 。 ！ ？ (not after abbreviations/numbers)
- Abbreviations get punctuation_weight 0
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import List, Optional, Sequence

from transcript_segmentation.language import (
    TextAnalysis,
    is_meaning_group_boundary,
    is_position_in_entity,
    is_position_in_meaning_group,
)
from transcript_segmentation.models import RawWordTiming, WordToken
from transcript_segmentation.presets import (
    PUNCTUATION_WEIGHTS,
    SENTENCE_END_PUNCTUATION,
    SegmentationConfig,
)
from transcript_segmentation.text_utils import (
    TRAILING_PUNCT_RE,
    is_abbreviation_word,
    punctuation_after_word,
    word_position_in_text,
)

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"^\d+([.,]\d+)*$")
_NON_NUMERIC_RE = re.compile(r"[^\d.,]")


def to_ms(seconds: float) -> int:
    return int(round(seconds * 1000))


def is_number_word(word: str) -> bool:
    """True if word is primarily numeric ("42", "3.14", "1,000")."""
    digits = _NON_NUMERIC_RE.sub("", word)
    return (
        bool(digits)
        and bool(_NUMBER_RE.match(digits))
        and len(digits) >= len(word) * 0.5
    )


def enrich_word_metadata(
    text: str,
    raw_timings: Sequence[RawWordTiming],
    config: SegmentationConfig,
    analysis: Optional[TextAnalysis] = None,
) -> List[WordToken]:
    """Convert raw word timings into WordTokens with segmentation metadata.

    Args:
        text: The full text that was spoken.
        raw_timings: Word timings from the speech engine (seconds).
        config: Segmentation config (supplies the abbreviation set).
        analysis: Entities and meaning groups of text, if any.

    Returns:
        One WordToken per raw timing, in the same order.
    """
    tokens: List[WordToken] = []
    # Occurrences seen so far per lowercased word, for duplicate words
    seen = Counter()  # type: Counter

    for index, raw in enumerate(raw_timings):
        start = to_ms(raw.start_time)
        end = to_ms(raw.end_time)
        if index < len(raw_timings) - 1:
            gap_after = to_ms(raw_timings[index + 1].start_time) - end
        else:
            gap_after = 0

        word_text = raw.text.strip()
        clean_word = TRAILING_PUNCT_RE.sub("", word_text)

        occurrence = seen[clean_word.lower()]
        seen[clean_word.lower()] += 1

        punctuation = punctuation_after_word(text, clean_word, occurrence)
        if punctuation is None:
            attached = TRAILING_PUNCT_RE.search(word_text)
            if attached:
                punctuation = attached.group(0)[0]

        is_abbreviation = is_abbreviation_word(clean_word, punctuation, config.abbreviations)
        is_number = is_number_word(clean_word)

        in_entity = in_group = at_group_boundary = False
        if analysis is not None and not analysis.is_empty:
            position = word_position_in_text(text, clean_word, occurrence)
            if position is not None:
                groups = analysis.meaning_groups
                in_entity = is_position_in_entity(position, analysis.entities)
                in_group = is_position_in_meaning_group(position, groups)
                at_group_boundary = is_meaning_group_boundary(position + len(clean_word), groups)

        is_sentence_end = (
            punctuation in SENTENCE_END_PUNCTUATION
            and not is_abbreviation
            and not is_number
        )

        weight = 0
        if punctuation and not is_abbreviation:
            weight = PUNCTUATION_WEIGHTS.get(punctuation, 0)

        tokens.append(WordToken(
            text=word_text,
            start=start,
            end=end,
            gap_after=gap_after,
            punctuation_after=punctuation,
            is_sentence_end=is_sentence_end,
            punctuation_weight=weight,
            is_abbreviation=is_abbreviation,
            is_number=is_number,
            is_in_entity=in_entity,
            is_in_meaning_group=in_group,
            is_at_meaning_group_boundary=at_group_boundary,
        ))

    logger.debug(
        "Enriched %d words (%d sentence ends)",
        len(tokens), sum(1 for t in tokens if t.is_sentence_end),
    )
    return tokens

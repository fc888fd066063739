"""English meaning groups (意群) and named entities, detected with spaCy.

WHY: Readers parse English in meaning groups: "as a social psychologist",
"who has been trying", "to figure out". A line break inside such a group
forces the learner to hold half a phrase in mind, while a break at its edge
reads naturally. Names ("Jane Smith") should not be split either.

HOW: analyze_text() runs a spaCy pipeline (SEGMENTATION_SPACY_MODEL,
default en_core_web_sm) over the full text and reads the dependency parse:
  prepositional   - a "prep" token with its object ("in the old house")
  relative-clause - a "relcl" subtree ("who has been trying")
  object-clause   - a "ccomp" subtree opened by a wh-word or "that"
  infinitive      - "to" + verb + particles ("to figure out")
  noun-phrase     - noun chunks of 3+ words
  verb-phrase     - auxiliary chains of 3+ words ("has been trying")
Groups are sorted and overlapping groups collapse to the longest one.
Entities come from doc.ents. All positions are character offsets into the
analyzed text, so metadata.enrich_word_metadata() can map words onto them.

RULES:
- Only English (language code starting with "en") is analyzed; any other
  language, or no language, gets an empty TextAnalysis
- A missing spaCy model is logged as a warning and segmentation continues
  without meaning groups
- Pipelines are loaded once per model name and cached
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import spacy
from spacy.language import Language
from spacy.tokens import Doc, Span

from transcript_segmentation.config import default_spacy_model
from transcript_segmentation.presets import QUESTION_WORDS

logger = logging.getLogger(__name__)

MIN_PHRASE_WORDS = 3
MAX_RELATIVE_CLAUSE_WORDS = 15

# spaCy entity label → entity type
ENTITY_TYPES = {
    "PERSON": "person",
    "GPE": "place",
    "LOC": "place",
    "FAC": "place",
    "ORG": "organization",
}

_OBJECT_CLAUSE_OPENERS = QUESTION_WORDS | {"that"}
_AUX_DEPS = frozenset({"aux", "auxpass", "neg"})


@dataclass(frozen=True)
class EntitySpan:
    """A named entity at [start, end) in the analyzed text."""

    text: str
    start: int
    end: int
    type: str


@dataclass(frozen=True)
class MeaningGroup:
    """A phrase at [start, end) in the analyzed text that should stay on one line."""

    text: str
    start: int
    end: int
    type: str


@dataclass(frozen=True)
class TextAnalysis:
    entities: Tuple[EntitySpan, ...] = ()
    meaning_groups: Tuple[MeaningGroup, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.entities and not self.meaning_groups


EMPTY_ANALYSIS = TextAnalysis()


def is_english(language: Optional[str]) -> bool:
    return bool(language) and language.lower().startswith("en")


@functools.lru_cache(maxsize=4)
def load_pipeline(model_name: str) -> Language:
    """Load (once) the spaCy pipeline called model_name.

    Raises:
        OSError: If the model package is not installed.
    """
    logger.info("Loading spaCy pipeline '%s'", model_name)
    return spacy.load(model_name)


def _trimmed(span: Span) -> Optional[Span]:
    doc = span.doc
    start, end = span.start, span.end
    while start < end and doc[start].is_punct:
        start += 1
    while end > start and doc[end - 1].is_punct:
        end -= 1
    if start >= end:
        return None
    return doc[start:end]


def _subtree(doc: Doc, token) -> Span:
    return doc[token.left_edge.i:token.right_edge.i + 1]


def _prepositional_phrases(doc: Doc) -> Iterator[Span]:
    for token in doc:
        if token.dep_ == "prep" and any(c.dep_ == "pobj" for c in token.children):
            yield doc[token.i:token.right_edge.i + 1]


def _relative_clauses(doc: Doc) -> Iterator[Span]:
    for token in doc:
        if token.dep_ == "relcl":
            span = _subtree(doc, token)
            if len(span) <= MAX_RELATIVE_CLAUSE_WORDS:
                yield span


def _object_clauses(doc: Doc) -> Iterator[Span]:
    for token in doc:
        if token.dep_ == "ccomp" and token.left_edge.lower_ in _OBJECT_CLAUSE_OPENERS:
            yield _subtree(doc, token)


def _infinitives(doc: Doc) -> Iterator[Span]:
    for token in doc:
        head = token.head
        if (token.lower_ == "to" and token.dep_ == "aux"
                and head.pos_ in ("VERB", "AUX") and token.i < head.i):
            end = max([head.i] + [c.i for c in head.children if c.dep_ == "prt"])
            yield doc[token.i:end + 1]


def _noun_phrases(doc: Doc) -> Iterator[Span]:
    for chunk in doc.noun_chunks:
        if len(chunk) >= MIN_PHRASE_WORDS:
            yield chunk


def _verb_phrases(doc: Doc) -> Iterator[Span]:
    for token in doc:
        if token.pos_ not in ("VERB", "AUX"):
            continue
        auxiliaries = [c.i for c in token.children if c.dep_ in _AUX_DEPS and c.i < token.i]
        if auxiliaries:
            span = doc[min(auxiliaries):token.i + 1]
            if len(span) >= MIN_PHRASE_WORDS:
                yield span


_DETECTORS = (
    ("prepositional", _prepositional_phrases),
    ("relative-clause", _relative_clauses),
    ("object-clause", _object_clauses),
    ("infinitive", _infinitives),
    ("noun-phrase", _noun_phrases),
    ("verb-phrase", _verb_phrases),
)


def merge_overlapping_groups(groups: Sequence[MeaningGroup]) -> List[MeaningGroup]:
    """Sort groups by start and collapse each overlapping run to its longest group."""
    ordered = sorted(groups, key=lambda g: g.start)
    if len(ordered) <= 1:
        return ordered

    merged: List[MeaningGroup] = []
    current = ordered[0]
    for group in ordered[1:]:
        if group.start < current.end:
            if group.end - group.start > current.end - current.start:
                current = group
        else:
            merged.append(current)
            current = group
    merged.append(current)
    return merged


def detect_meaning_groups(doc: Doc) -> List[MeaningGroup]:
    """Find meaning groups in a parsed doc.

    Returns an empty list when the doc carries no dependency parse.
    """
    if not doc.has_annotation("DEP"):
        logger.debug("No dependency parse; skipping meaning group detection")
        return []

    groups = []
    for group_type, detector in _DETECTORS:
        for span in detector(doc):
            span = _trimmed(span)
            if span is not None:
                groups.append(MeaningGroup(
                    text=span.text, start=span.start_char, end=span.end_char, type=group_type,
                ))
    return merge_overlapping_groups(groups)


def detect_entities(doc: Doc) -> List[EntitySpan]:
    """People, places and organizations from the doc's named entities."""
    return [
        EntitySpan(
            text=ent.text, start=ent.start_char, end=ent.end_char,
            type=ENTITY_TYPES[ent.label_],
        )
        for ent in doc.ents
        if ent.label_ in ENTITY_TYPES
    ]


def analyze_text(
    text: str,
    language: Optional[str],
    model_name: Optional[str] = None,
) -> TextAnalysis:
    """Detect entities and meaning groups in English text.

    Args:
        text: The full text that was spoken.
        language: Language code ("en", "en-US", "zh", ...) or None.
        model_name: spaCy pipeline; defaults to SEGMENTATION_SPACY_MODEL.

    Returns:
        The analysis, or EMPTY_ANALYSIS for non-English text or when the
        spaCy model is not installed.
    """
    if not is_english(language) or not text.strip():
        return EMPTY_ANALYSIS

    name = model_name or default_spacy_model()
    try:
        nlp = load_pipeline(name)
    except OSError as e:
        logger.warning(
            "spaCy model '%s' is not available, segmenting without meaning groups: %s",
            name, e,
        )
        return EMPTY_ANALYSIS

    doc = nlp(text)
    analysis = TextAnalysis(
        entities=tuple(detect_entities(doc)),
        meaning_groups=tuple(detect_meaning_groups(doc)),
    )
    logger.debug(
        "Detected %d entities and %d meaning groups",
        len(analysis.entities), len(analysis.meaning_groups),
    )
    return analysis


def is_position_in_entity(position: int, entities: Sequence[EntitySpan]) -> bool:
    return any(e.start <= position < e.end for e in entities)


def is_meaning_group_boundary(position: int, groups: Sequence[MeaningGroup]) -> bool:
    """True if position is exactly the start or end of a group."""
    return any(position == g.start or position == g.end for g in groups)


def is_position_in_meaning_group(position: int, groups: Sequence[MeaningGroup]) -> bool:
    """True if position lies strictly inside a group (boundaries excluded)."""
    return any(g.start < position < g.end for g in groups)

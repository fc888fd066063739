"""Unit tests for the segment merger.

WHY: The merger decides which adjacent segments become one transcript
line. A wrong decision either glues two sentences across a pause or
leaves unreadable one-word fragments, and rule order matters on the
boundary cases.

HOW: Segments are built with explicit start times so the recorded
gap_after and the real gap between segments can be set independently.
Tests cover each rule in evaluation order, the documented boundary
cases, and the structural invariants over seeded random input.

RULES:
- Times are integer milliseconds.
- Every word in a built segment lasts 100ms with 10ms between words.
"""

import math
import random
from typing import List, Optional

import pytest

from transcript_segmentation.merge import (
    merge_short_segments,
    segment_gap,
    should_merge_abbreviation,
)
from transcript_segmentation.models import WordSegment, WordToken
from transcript_segmentation.presets import SegmentationConfig


def _segment(
    texts: List[str],
    start: int = 0,
    gap_after: int = 0,
    punct: Optional[str] = None,
    eos: bool = False,
) -> WordSegment:
    """Build a segment; gap_after, punct and eos apply to the last word."""
    words = []
    t = start
    for i, text in enumerate(texts):
        last = i == len(texts) - 1
        words.append(WordToken(
            text=text,
            start=t,
            end=t + 100,
            gap_after=gap_after if last else 10,
            punctuation_after=punct if last else None,
            is_sentence_end=eos if last else False,
        ))
        t += 110
    return WordSegment(words)


def _after(segment: WordSegment, gap: int) -> int:
    """Start time for a segment beginning gap ms after segment ends."""
    return segment.end + gap


def _texts(segments):
    return [[w.text for w in s.words] for s in segments]


def _flatten(segments):
    return [w for s in segments for w in s.words]


class TestPassthrough:
    """Empty and single-segment input is returned unchanged."""

    def test_empty(self, config):
        assert merge_short_segments([], config) == []

    def test_single_segment(self, config):
        only = _segment(["Just", "one", "line"], eos=True)
        assert merge_short_segments([only], config) == [only]

    def test_returns_new_list(self, config):
        segments = [_segment(["Alone"])]
        result = merge_short_segments(segments, config)
        assert result == segments
        assert result is not segments

    def test_input_not_mutated(self, config):
        first = _segment(["Hello"], gap_after=20)
        second = _segment(["world"], start=_after(first, 20))
        segments = [first, second]
        merge_short_segments(segments, config)
        assert segments == [first, second]
        assert _texts(segments) == [["Hello"], ["world"]]


class TestAbbreviationRepair:
    """A segment ending in an abbreviation's period is fused with the next."""

    def test_merges_despite_pause_and_sentence_end(self, config):
        dr = _segment(["Dr", "."], gap_after=800, punct=None, eos=True)
        rest = _segment(["Smith", "arrived"], start=_after(dr, 800), eos=True)
        result = merge_short_segments([dr, rest], config)
        assert _texts(result) == [["Dr", ".", "Smith", "arrived"]]

    def test_case_insensitive(self, config):
        mr = _segment(["MR", "."], gap_after=600, eos=True)
        rest = _segment(["Jones"], start=_after(mr, 600))
        result = merge_short_segments([mr, rest], config)
        assert len(result) == 1

    def test_split_period_is_fused_first_then_repaired_on_next_pass(self, config):
        dr = _segment(["Dr"])
        period = _segment(["."], start=_after(dr, 0), gap_after=50, eos=True)
        rest = _segment(["Smith", "arrived"], start=_after(period, 50))

        first_pass = merge_short_segments([dr, period, rest], config)
        assert _texts(first_pass) == [["Dr", "."], ["Smith", "arrived"]]

        second_pass = merge_short_segments(first_pass, config)
        assert _texts(second_pass) == [["Dr", ".", "Smith", "arrived"]]

    def test_unknown_word_before_period_is_not_repaired(self, config):
        seg = _segment(["Smith", "."], gap_after=600, eos=True)
        rest = _segment(["Then"], start=_after(seg, 600))
        result = merge_short_segments([seg, rest], config)
        assert len(result) == 2


class TestPauseRejection:
    """A recorded pause blocks merging unless one word has a near-zero real gap."""

    def test_multi_word_sentence_end_with_pause_never_merges(self):
        cfg = SegmentationConfig(pause_threshold=500)
        current = _segment(["It", "was", "late"], gap_after=600, eos=True)
        nxt = _segment(["We", "left"], start=_after(current, 600))
        result = merge_short_segments([current, nxt], cfg)
        assert _texts(result) == [["It", "was", "late"], ["We", "left"]]

    def test_pause_blocks_plain_segments(self, config):
        current = _segment(["one", "two"], gap_after=300)
        nxt = _segment(["three"], start=_after(current, 300))
        assert len(merge_short_segments([current, nxt], config)) == 2

    def test_single_word_with_noisy_gap_after_still_merges(self, config):
        current = _segment(["So"], gap_after=400)
        nxt = _segment(["we", "went"], start=_after(current, 30))
        result = merge_short_segments([current, nxt], config)
        assert _texts(result) == [["So", "we", "went"]]

    def test_single_word_with_real_pause_does_not_merge(self, config):
        current = _segment(["So"], gap_after=400)
        nxt = _segment(["we", "went"], start=_after(current, 400))
        assert len(merge_short_segments([current, nxt], config)) == 2


class TestPunctuationRejection:
    """Strong punctuation blocks merging unless one word has a near-zero real gap."""

    def test_one_word_comma_fast_gap_merges(self, config):
        well = _segment(["Well"], gap_after=50, punct=",")
        rest = _segment(["I", "think", "so"], start=_after(well, 50))
        result = merge_short_segments([well, rest], config)
        assert _texts(result) == [["Well", "I", "think", "so"]]

    def test_one_word_comma_slow_gap_does_not_merge(self, config):
        well = _segment(["Well"], gap_after=150, punct=",")
        rest = _segment(["I", "think", "so"], start=_after(well, 150))
        result = merge_short_segments([well, rest], config)
        assert _texts(result) == [["Well"], ["I", "think", "so"]]

    def test_gap_of_exactly_100ms_is_not_fast(self, config):
        well = _segment(["Well"], gap_after=100, punct=",")
        rest = _segment(["yes"], start=_after(well, 100))
        assert len(merge_short_segments([well, rest], config)) == 2

    def test_one_word_semicolon_fast_gap_merges(self, config):
        current = _segment(["Right"], gap_after=40, punct=";")
        nxt = _segment(["go", "on"], start=_after(current, 40))
        assert len(merge_short_segments([current, nxt], config)) == 1

    @pytest.mark.parametrize("mark", [",", "，", ";", "；", ":", "："])
    def test_multi_word_strong_punctuation_blocks(self, config, mark):
        current = _segment(["After", "that"], gap_after=20, punct=mark)
        nxt = _segment(["nothing"], start=_after(current, 20))
        assert len(merge_short_segments([current, nxt], config)) == 2

    def test_sentence_end_blocks_multi_word(self, config):
        current = _segment(["Thank", "you"], gap_after=20, eos=True)
        nxt = _segment(["Bye"], start=_after(current, 20))
        assert len(merge_short_segments([current, nxt], config)) == 2

    def test_other_punctuation_does_not_block(self, config):
        current = _segment(["well", "then"], gap_after=20, punct="-")
        nxt = _segment(["okay"], start=_after(current, 20))
        assert len(merge_short_segments([current, nxt], config)) == 1


class TestShortFastMerge:
    """A lone word with a near-zero gap merges up to max_words_per_segment."""

    def test_merges_beyond_preferred_length(self, config):
        hello = _segment(["Hello"], gap_after=20)
        rest = _segment(["w{}".format(i) for i in range(9)], start=_after(hello, 20))
        result = merge_short_segments([hello, rest], config)
        assert len(result) == 1
        assert len(result[0]) == 10

    def test_combined_above_max_is_kept(self, config):
        hello = _segment(["Hello"], gap_after=20)
        rest = _segment(["w{}".format(i) for i in range(12)], start=_after(hello, 20))
        result = merge_short_segments([hello, rest], config)
        assert len(result) == 2

    def test_hello_world_example(self):
        cfg = SegmentationConfig(preferred_words_per_segment=8)
        hello = WordSegment([WordToken("Hello", 0, 100, gap_after=20)])
        world = WordSegment([WordToken("world", 120, 400, gap_after=300, is_sentence_end=True)])
        result = merge_short_segments([hello, world], cfg)
        assert _texts(result) == [["Hello", "world"]]


class TestLengthAdmission:
    """Plain adjacent segments merge while the result fits preferred length."""

    def test_four_plus_three_fits_preferred_eight(self):
        cfg = SegmentationConfig(preferred_words_per_segment=8)
        a = _segment(["a", "b", "c", "d"], gap_after=50)
        b = _segment(["e", "f", "g"], start=_after(a, 50))
        result = merge_short_segments([a, b], cfg)
        assert len(result) == 1
        assert len(result[0]) == 7

    def test_four_plus_three_exceeds_preferred_six(self):
        cfg = SegmentationConfig(preferred_words_per_segment=6)
        a = _segment(["a", "b", "c", "d"], gap_after=50)
        b = _segment(["e", "f", "g"], start=_after(a, 50))
        assert len(merge_short_segments([a, b], cfg)) == 2

    def test_chain_merges_pairwise_per_pass(self, config):
        a = _segment(["a"], gap_after=200)
        b = _segment(["b"], start=_after(a, 200), gap_after=200)
        c = _segment(["c"], start=_after(b, 200))

        first = merge_short_segments([a, b, c], config)
        assert _texts(first) == [["a", "b"], ["c"]]

        second = merge_short_segments(first, config)
        assert _texts(second) == [["a", "b", "c"]]

    def test_nan_gap_is_not_a_pause(self, config):
        current = _segment(["one", "two"], gap_after=math.nan)
        nxt = _segment(["three"], start=_after(current, 150))
        assert len(merge_short_segments([current, nxt], config)) == 1


class TestShouldMergeAbbreviation:
    """Abbreviation detector contract."""

    def test_title_with_standalone_period(self, config):
        assert should_merge_abbreviation(_segment(["Mr", "."]), config)

    def test_longer_segment(self, config):
        assert should_merge_abbreviation(_segment(["Ask", "Prof", "."]), config)

    def test_single_word_is_false(self, config):
        assert not should_merge_abbreviation(_segment(["."]), config)

    def test_attached_period_is_false(self, config):
        assert not should_merge_abbreviation(_segment(["Mr."]), config)

    def test_non_period_is_false(self, config):
        assert not should_merge_abbreviation(_segment(["Mr", ","]), config)

    def test_unknown_word_is_false(self, config):
        assert not should_merge_abbreviation(_segment(["dog", "."]), config)

    def test_custom_abbreviation_set(self):
        cfg = SegmentationConfig(abbreviations=frozenset({"Capt"}))
        assert should_merge_abbreviation(_segment(["capt", "."]), cfg)
        assert not should_merge_abbreviation(_segment(["Mr", "."]), cfg)


class TestSegmentGap:

    def test_gap_between_segments(self):
        a = _segment(["a", "b"])  # ends at 210
        b = _segment(["c"], start=260)
        assert segment_gap(a, b) == 50


def _random_segments(rng: random.Random, count: int) -> List[WordSegment]:
    segments = []
    t = 0
    for n in range(count):
        size = rng.randint(1, 7)
        gap = rng.choice([0, 30, 90, 120, 260, 700])
        punct = rng.choice([None, None, ",", ";", "-", "："])
        seg = _segment(
            ["s{}w{}".format(n, i) for i in range(size)],
            start=t,
            gap_after=gap,
            punct=punct,
            eos=rng.random() < 0.25,
        )
        segments.append(seg)
        t = seg.end + rng.choice([gap, 40, 500])
    return segments


class TestInvariants:
    """Structural guarantees that hold for any well-formed input."""

    @pytest.mark.parametrize("seed", range(25))
    def test_word_conservation_and_non_expansion(self, config, seed):
        rng = random.Random(seed)
        segments = _random_segments(rng, rng.randint(0, 15))
        result = merge_short_segments(segments, config)
        assert _flatten(result) == _flatten(segments)
        assert len(result) <= len(segments)
        assert all(len(s) > 0 for s in result)

    @pytest.mark.parametrize("seed", range(10))
    def test_idempotent_on_unmergeable_input(self, config, seed):
        rng = random.Random(seed)
        segments = []
        t = 0
        for n in range(rng.randint(2, 8)):
            seg = _segment(
                ["s{}w{}".format(n, i) for i in range(rng.randint(2, 6))],
                start=t,
                gap_after=800,
                eos=True,
            )
            segments.append(seg)
            t = seg.end + 800
        once = merge_short_segments(segments, config)
        assert once == segments
        assert merge_short_segments(once, config) == once

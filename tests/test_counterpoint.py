"""Tests for the two-voice counterpoint engines.

Tests cover:
- Simultaneity detection and voice-swap symmetry
- Parallel fifths and octaves (with oblique and contrary non-violations)
- Motion classification and asynchronous-oblique reassessment
- Dissonance species classification
"""

from fractions import Fraction

import pytest
from pathlib import Path
import sys

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fugue_analyzer.core import AnalysisConfig, Meter, NoteEvent, InvalidMeter
from fugue_analyzer.counterpoint import (
    DissonanceReport,
    DissonanceType,
    MotionClassifier,
    MotionType,
    Simultaneity,
    analyze_dissonances,
    check_parallel_perfects,
    classify_dissonance,
    classify_motion,
    find_simultaneities,
    leap_type,
)


# ============================================================================
# Helpers
# ============================================================================

def line(pitches, duration=1.0, start=0.0):
    """Consecutive notes of equal length."""
    return [NoteEvent(p, start + i * duration, duration) for i, p in enumerate(pitches)]


def sim(onset, pitch_a, pitch_b, index_a, index_b, weight=1.0):
    """Simultaneity built by hand."""
    return Simultaneity(
        onset=onset,
        note_a=NoteEvent(pitch_a, onset, 1.0),
        note_b=NoteEvent(pitch_b, onset, 1.0),
        index_a=index_a,
        index_b=index_b,
        metric_weight=weight,
    )


COMMON = Meter(4, 4)


# ============================================================================
# Simultaneities
# ============================================================================

class TestSimultaneities:
    """Tests for find_simultaneities()."""

    def test_overlaps_are_paired(self):
        a = [NoteEvent(60, 0, 2)]
        b = line([48, 50])
        sims = find_simultaneities(a, b, COMMON)
        assert [(s.onset, s.index_a, s.index_b) for s in sims] == [(0, 0, 0), (1, 0, 1)]
        assert sims[1].metric_weight == 0.5
        assert sims[1].interval.name == "m7"

    def test_touching_notes_do_not_overlap(self):
        a = [NoteEvent(60, 0, 1)]
        b = [NoteEvent(48, 1, 1)]
        assert find_simultaneities(a, b, COMMON) == []

    def test_meter_validated(self):
        with pytest.raises(InvalidMeter):
            find_simultaneities(line([60]), line([48]), [4])

    def test_swap_symmetry(self):
        a = line([60, 62, 64, 65])
        b = [NoteEvent(48, 0, 1.5), NoteEvent(55, 1.5, 1.5), NoteEvent(53, 3, 1)]
        forward = find_simultaneities(a, b, COMMON)
        backward = find_simultaneities(b, a, COMMON)
        assert len(forward) == len(backward)
        assert sorted(s.onset for s in forward) == sorted(s.onset for s in backward)
        assert sorted(s.interval.name for s in forward) == sorted(s.interval.name for s in backward)

        def key(s):
            return (s.onset, s.index_a, s.index_b, s.note_a.pitch, s.note_b.pitch, s.metric_weight)

        assert sorted(key(s.swapped()) for s in forward) == sorted(key(s) for s in backward)

    def test_swapped(self):
        original = sim(1.0, 64, 48, 2, 0, weight=0.5)
        mirror = original.swapped()
        assert (mirror.note_a.pitch, mirror.note_b.pitch) == (48, 64)
        assert (mirror.index_a, mirror.index_b) == (0, 2)
        assert mirror.interval == original.interval
        assert mirror.lower_voice == 1
        assert mirror.swapped() == original

    def test_lower_voice(self):
        assert sim(0, 60, 48, 0, 0).lower_voice == 2
        assert sim(0, 48, 60, 0, 0).lower_voice == 1
        assert sim(0, 60, 60, 0, 0).lower_voice == 0


# ============================================================================
# Parallel perfects
# ============================================================================

class TestParallelPerfects:
    """Tests for check_parallel_perfects()."""

    def test_parallel_fifths(self):
        a = line([60, 62, 64])
        b = line([53, 55, 57])
        violations = check_parallel_perfects(find_simultaneities(a, b, COMMON), COMMON)
        assert len(violations) == 2
        assert all(v.kind == 5 and v.name == "fifths" for v in violations)
        assert violations[0].pitches == (60, 53, 62, 55)
        assert violations[0].description == "Parallel fifths: C4/F3 to D4/G3 at beat 2"

    def test_parallel_octaves(self):
        violations = check_parallel_perfects(find_simultaneities(line([72, 74]), line([60, 62]), COMMON))
        assert len(violations) == 1
        assert violations[0].name == "octaves"

    def test_unison_to_octave(self):
        violations = check_parallel_perfects(find_simultaneities(line([60, 74]), line([60, 62]), COMMON))
        assert len(violations) == 1
        assert violations[0].kind == 8

    def test_oblique_motion_not_flagged(self):
        a = [NoteEvent(60, 0, 3)]
        b = line([53, 55, 53])
        assert check_parallel_perfects(find_simultaneities(a, b, COMMON)) == []

    def test_contrary_motion_not_flagged(self):
        # P5 to compound P5 in contrary motion
        a = line([67, 74])
        b = line([60, 55])
        assert check_parallel_perfects(find_simultaneities(a, b, COMMON)) == []

    def test_swap_symmetry(self):
        a = line([60, 62, 64, 67])
        b = line([53, 55, 57, 60])
        forward = check_parallel_perfects(find_simultaneities(a, b, COMMON))
        backward = check_parallel_perfects(find_simultaneities(b, a, COMMON))
        assert len(forward) == len(backward) == 3


# ============================================================================
# Motion
# ============================================================================

class TestClassifyMotion:
    """Tests for classify_motion()."""

    def test_categories(self):
        prev = sim(0, 60, 48, 0, 0)
        cases = [
            (sim(1, 62, 50, 1, 1), MotionType.PARALLEL),
            (sim(1, 62, 47, 1, 1), MotionType.CONTRARY),
            (sim(1, 62, 48, 1, 0), MotionType.OBLIQUE),
            (sim(1, 60, 48, 0, 0), MotionType.STATIC),
            (sim(1, 62, 52, 1, 1), MotionType.SIMILAR_STEP),
            (sim(1, 63, 52, 1, 1), MotionType.SIMILAR_SAME_TYPE),
            (sim(1, 63, 55, 1, 1), MotionType.SIMILAR),
        ]
        for curr, expected in cases:
            assert classify_motion(prev, curr).type is expected, expected

    def test_repeated_pitch_is_not_movement(self):
        prev = sim(0, 60, 48, 0, 0)
        curr = sim(1, 60, 48, 1, 1)
        transition = classify_motion(prev, curr)
        assert transition.type is MotionType.STATIC
        assert not transition.a_moved

    def test_families(self):
        assert MotionType.SIMILAR_STEP.family == "similar"
        assert MotionType.CONTRARY.family == "contrary"

    def test_leap_type(self):
        assert leap_type(-2) == "step"
        assert leap_type(4) == "skip"
        assert leap_type(7) == "perfect_leap"
        assert leap_type(12) == "octave"
        assert leap_type(9) == "large_leap"


class TestMotionClassifier:
    """Tests for MotionClassifier."""

    def _staggered(self, second_b):
        a = line([60, 62])
        b = [NoteEvent(48, 0, 1.25), NoteEvent(second_b, 1.25, 0.75)]
        return a, b

    def test_staggered_moves_are_reassessed(self):
        a, b = self._staggered(50)
        sims = find_simultaneities(a, b, COMMON)
        summary = MotionClassifier().analyze(sims, a, b)

        assert summary.window == 0.5
        assert summary.raw_counts == {"oblique": 2}
        assert summary.counts["parallel"] == Fraction(1)
        assert summary.counts["oblique"] == Fraction(1)
        assert len(summary.reassessments) == 2
        assert summary.reassessments[0].fraction == Fraction(1, 2)

    def test_staggered_contrary(self):
        a, b = self._staggered(46)
        sims = find_simultaneities(a, b, COMMON)
        summary = MotionClassifier().analyze(sims, a, b)
        assert summary.counts["contrary"] == Fraction(1)
        assert summary.contrary_ratio == 0.5

    def test_narrow_window_keeps_oblique(self):
        a, b = self._staggered(50)
        sims = find_simultaneities(a, b, COMMON)
        summary = MotionClassifier(window=0.25, short_window=0.25).analyze(sims, a, b)
        assert summary.counts["oblique"] == 2
        assert summary.reassessments == []

    def test_counts_are_conserved(self):
        a = [NoteEvent(60, 0, 1), NoteEvent(62, 1, 0.5), NoteEvent(64, 1.5, 0.5), NoteEvent(65, 2, 2)]
        b = [NoteEvent(48, 0, 1.25), NoteEvent(47, 1.25, 1), NoteEvent(45, 2.25, 0.75), NoteEvent(41, 3, 1)]
        sims = find_simultaneities(a, b, COMMON)
        summary = MotionClassifier().analyze(sims, a, b)
        assert sum(summary.counts.values()) == summary.total
        assert summary.total > 0

    def test_swap_invariance(self):
        a = [NoteEvent(60, 0, 1), NoteEvent(62, 1, 0.5), NoteEvent(64, 1.5, 0.5), NoteEvent(65, 2, 2)]
        b = [NoteEvent(48, 0, 1.25), NoteEvent(47, 1.25, 1), NoteEvent(45, 2.25, 0.75), NoteEvent(41, 3, 1)]
        forward = MotionClassifier().analyze(find_simultaneities(a, b, COMMON), a, b)
        backward = MotionClassifier().analyze(find_simultaneities(b, a, COMMON), b, a)
        assert forward.counts == backward.counts

    def test_window_for_long_voices(self):
        classifier = MotionClassifier()
        short = line(range(60, 68))
        long = line(range(60, 69))
        assert classifier.window_for(short, long) == 0.5
        assert classifier.window_for(long, long) == 0.25

    def test_window_follows_beat(self):
        short = line(range(60, 68))
        long = line(range(60, 69))
        compound = MotionClassifier(AnalysisConfig.create(meter=[6, 8]))
        cut_time = MotionClassifier(AnalysisConfig.create(meter=[2, 2]))
        assert compound.window_for(short, long) == 0.75
        assert compound.window_for(long, long) == 0.375
        assert cut_time.window_for(long, long) == 0.5

    def test_compound_meter_reassessment(self):
        a = [NoteEvent(60, 0, 1.5), NoteEvent(62, 1.5, 1.5)]
        b = [NoteEvent(48, 0, 1.875), NoteEvent(50, 1.875, 1.125)]
        config = AnalysisConfig.create(meter=[6, 8])
        summary = MotionClassifier(config).analyze(find_simultaneities(a, b, config.meter), a, b)

        assert summary.window == 0.75
        assert summary.counts["parallel"] == Fraction(1)
        assert summary.reassessments[0].fraction == Fraction(1, 2)

    def test_degenerate_input(self):
        classifier = MotionClassifier()
        assert classifier.analyze([], [], []).error == "Empty"
        only = [sim(0, 60, 48, 0, 0)]
        summary = classifier.analyze(only, line([60]), line([48]))
        assert summary.error == "Too short"
        assert summary.total == 0


# ============================================================================
# Dissonance
# ============================================================================

def classify_at(a, b, onset, config=None):
    config = config or AnalysisConfig()
    sims = find_simultaneities(a, b, config.meter)
    target = next(s for s in sims if abs(s.onset - onset) < 0.01)
    return classify_dissonance(target, sims, a, b, config)


class TestDissonance:
    """Tests for classify_dissonance()."""

    def test_consonance(self):
        result = classify_at(line([64]), line([60]), 0)
        assert result.type is DissonanceType.CONSONANT
        assert not result.is_prepared

    def test_suspension(self):
        upper = [NoteEvent(65, 0, 3), NoteEvent(64, 3, 1)]
        lower = [NoteEvent(62, 0, 2), NoteEvent(60, 2, 2)]
        result = classify_at(upper, lower, 2)
        assert result.type is DissonanceType.SUSPENSION
        assert result.label == "4-3 sus"
        assert result.voice == 1
        assert result.is_prepared

    def test_passing_tone(self):
        result = classify_at(line([60, 62, 64]), [NoteEvent(48, 0, 3)], 1)
        assert result.type is DissonanceType.PASSING
        assert result.label == "PT"
        assert result.voice == 1

    def test_neighbor_tone(self):
        result = classify_at(line([60, 62, 60]), [NoteEvent(48, 0, 3)], 1)
        assert result.type is DissonanceType.NEIGHBOR
        assert result.label == "N"

    def test_anticipation(self):
        upper = [NoteEvent(64, 0, 1.5), NoteEvent(62, 1.5, 0.5), NoteEvent(62, 2, 1)]
        lower = [NoteEvent(48, 0, 2), NoteEvent(43, 2, 1)]
        result = classify_at(upper, lower, 1.5)
        assert result.type is DissonanceType.ANTICIPATION
        assert result.voice == 1

    def test_appoggiatura(self):
        result = classify_at(line([60, 65, 64]), [NoteEvent(48, 0, 3)], 1)
        assert result.type is DissonanceType.APPOGGIATURA
        assert result.label == "App"

    def test_fourth_consonant_when_configured(self):
        config = AnalysisConfig(p4_dissonant=False)
        result = classify_at(line([60, 65, 64]), [NoteEvent(48, 0, 3)], 1, config)
        assert result.type is DissonanceType.CONSONANT

    def test_unprepared(self):
        result = classify_at(line([60, 71]), [NoteEvent(48, 0, 2)], 1)
        assert result.type is DissonanceType.UNPREPARED
        assert result.label == "!"
        assert result.description == "Unprepared dissonance: M7 at beat 2"

    def test_swap_symmetry(self):
        upper = [NoteEvent(65, 0, 3), NoteEvent(64, 3, 1)]
        lower = [NoteEvent(62, 0, 2), NoteEvent(60, 2, 2)]
        forward = classify_at(upper, lower, 2)
        backward = classify_at(lower, upper, 2)
        assert forward.type is backward.type
        assert forward.voice == 1 and backward.voice == 2


class TestDissonanceReport:
    """Tests for analyze_dissonances() and DissonanceReport."""

    def test_report_buckets(self):
        a = line([60, 62, 64, 71])
        b = [NoteEvent(48, 0, 4)]
        report = analyze_dissonances(find_simultaneities(a, b, COMMON), a, b)
        assert len(report.passing_tones) == 1
        assert len(report.unprepared) == 1
        assert report.total == 2
        assert report.prepared_ratio == 0.5
        assert report.summary["unprepared_count"] == 1
        assert [d.onset for d in report.all] == [1, 3]

    def test_empty_report(self):
        report = DissonanceReport()
        assert report.total == 0
        assert report.prepared_ratio == 1.0

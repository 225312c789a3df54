"""Tests for harmony inference and key detection.

Tests cover:
- Beat segmentation and salience
- Chord candidate scoring
- Non-greedy sequence search with chain tracking
- Temporal window versus a context-free baseline
- Key detection and roman numerals
"""

import pytest
from pathlib import Path
import sys

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fugue_analyzer.core import AnalysisConfig, NoteEvent
from fugue_analyzer.inference import (
    ChordCandidate,
    ChordKey,
    ChordQuality,
    ChordScorer,
    ChordSequenceInference,
    ChordSequenceSearch,
    KeyDetector,
    SalientNote,
    roman_numeral,
)


# ============================================================================
# Helpers
# ============================================================================

def line(pitches, duration=1.0):
    return [NoteEvent(p, i * duration, duration) for i, p in enumerate(pitches)]


def candidate(root, quality, score, complexity=1):
    return ChordCandidate(root=root, quality=quality, score=score, complexity=complexity)


C_ARPEGGIO = line([60, 64, 67, 72])


# ============================================================================
# Segmentation and salience
# ============================================================================

class TestSegmentation:
    """Tests for ChordSequenceInference.segment()."""

    def test_sustained_note_spans_beats(self):
        inference = ChordSequenceInference()
        segments = inference.segment([NoteEvent(60, 0, 2)])
        assert [(s.beat, s.duration) for s in segments] == [(0, 1.0), (1, 1.0)]
        assert all(s.note_index == 0 for s in segments)

    def test_repeated_attacks_merge(self):
        inference = ChordSequenceInference()
        segments = inference.segment([NoteEvent(60, 0, 0.5), NoteEvent(60, 0.5, 0.5)])
        assert len(segments) == 1
        assert segments[0].duration == 1.0

    def test_approach_recorded(self):
        segments = ChordSequenceInference().segment(C_ARPEGGIO)
        assert [s.approach for s in segments] == [0, 4, 3, 5]
        assert segments[0].first_note

    def test_salience_weights(self):
        inference = ChordSequenceInference()
        first, second, _, last = inference.segment(C_ARPEGGIO)
        assert inference.salience(first) == pytest.approx(0.875 * 1.2)
        assert inference.salience(second) == pytest.approx(0.875 * 0.75)
        # Perfect-fourth approach is emphasised
        assert inference.salience(last) == pytest.approx(0.875 * 0.75 * 1.2)
        assert inference.salience(first, distance=2) == pytest.approx(0.875 * 1.2 * 0.36)

    def test_short_notes_keep_minimum_salience(self):
        inference = ChordSequenceInference()
        segments = inference.segment([NoteEvent(60, 0, 0.125), NoteEvent(62, 0.125, 0.875)])
        assert inference.salience(segments[0]) == pytest.approx(0.025)


# ============================================================================
# Candidate scoring
# ============================================================================

class TestChordScorer:
    """Tests for ChordScorer."""

    def test_required_members(self):
        scorer = ChordScorer()
        notes = [SalientNote(60, 1.0, 0), SalientNote(67, 1.0, 1)]
        # No third: neither major nor minor qualifies
        assert scorer.score(0, ChordQuality.MAJOR, notes) is None
        assert scorer.score(0, ChordQuality.MINOR, notes) is None

    def test_single_pitch_rejected(self):
        scorer = ChordScorer()
        assert scorer.candidates([SalientNote(60, 1.0, 0)]) == []

    def test_root_position_scores_higher(self):
        scorer = ChordScorer()
        root_position = [SalientNote(60, 1.0, 0), SalientNote(64, 1.0, 1)]
        first_inversion = [SalientNote(64, 1.0, 0), SalientNote(72, 1.0, 1)]
        a = scorer.score(0, ChordQuality.MAJOR, root_position)
        b = scorer.score(0, ChordQuality.MAJOR, first_inversion)
        assert a.score == pytest.approx((1.1 + 1.0) * 1.1)
        assert b.score == pytest.approx(1.1 + 1.0)
        assert a.score > b.score

    def test_non_chord_tone_penalty(self):
        scorer = ChordScorer()
        notes = [SalientNote(60, 1.0, 0), SalientNote(64, 1.0, 1), SalientNote(62, 0.5, 2)]
        result = scorer.score(0, ChordQuality.MAJOR, notes)
        assert len(result.non_chord_tones) == 1
        assert result.score == pytest.approx((1.1 + 1.0 - 0.45) * 1.1)

    def test_candidates_sorted(self):
        notes = [SalientNote(60, 1.0, 0), SalientNote(64, 1.0, 1), SalientNote(67, 0.5, 2)]
        found = ChordScorer().candidates(notes)
        assert found[0].key == ChordKey(0, ChordQuality.MAJOR)
        assert [c.score for c in found] == sorted((c.score for c in found), reverse=True)


# ============================================================================
# Sequence search
# ============================================================================

class TestChordSequenceSearch:
    """Tests for the dynamic program."""

    def test_total_adds_gain_to_best_predecessor(self):
        beats = [
            [candidate(0, ChordQuality.MAJOR, 1.0), candidate(9, ChordQuality.MINOR, 0.95)],
            [candidate(9, ChordQuality.MINOR, 1.0), candidate(0, ChordQuality.MAJOR, 0.8)],
        ]
        path, total = ChordSequenceSearch(complexity_penalty=0.05).search(beats)

        # Changing harmony costs nothing beyond the complexity penalty
        assert [c.key for c in path] == [ChordKey(0, ChordQuality.MAJOR), ChordKey(9, ChordQuality.MINOR)]
        assert total == pytest.approx(0.95 + 0.95)

    def test_complexity_penalty(self):
        beats = [[candidate(7, ChordQuality.DOMINANT_7, 1.0, complexity=2)]]
        path, total = ChordSequenceSearch(complexity_penalty=0.1).search(beats)
        assert path[0].root == 7
        assert total == pytest.approx(0.8)

    def test_unassigned_beat_inherits(self):
        only = candidate(7, ChordQuality.MAJOR, 1.0)
        path, total = ChordSequenceSearch().search([[], [only]])
        assert path == [None, only]
        assert total == pytest.approx(0.95)

    def test_weak_candidate_left_unassigned(self):
        first = candidate(0, ChordQuality.MAJOR, 1.0)
        weak = candidate(2, ChordQuality.MINOR, 0.03)
        path, total = ChordSequenceSearch().search([[first], [weak]])

        # A negative gain loses to "no chord", which keeps the total
        assert path == [first, None]
        assert total == pytest.approx(0.95)

    def test_equal_totals_extend_chain(self):
        beats = [
            [candidate(0, ChordQuality.MAJOR, 1.0)],
            [candidate(7, ChordQuality.MAJOR, 1.0), candidate(0, ChordQuality.MAJOR, 1.0)],
        ]
        path, total = ChordSequenceSearch().search(beats)
        assert [c.root for c in path] == [0, 0]
        assert total == pytest.approx(1.9)

    def test_empty(self):
        assert ChordSequenceSearch().search([]) == ([], 0.0)


# ============================================================================
# End-to-end inference
# ============================================================================

class TestChordSequenceInference:
    """Tests for ChordSequenceInference.analyze()."""

    def test_arpeggio_is_one_chord(self):
        result = ChordSequenceInference().analyze(C_ARPEGGIO)

        assert result.error is None
        assert result.names == ["C major"] * 4
        assert [b.chain_length for b in result.beats] == [4] * 4
        assert [b.chain_position for b in result.beats] == [1, 2, 3, 4]
        assert len(result.chains) == 1
        assert result.assigned_ratio == 1.0

    def test_arpeggio_scores(self):
        result = ChordSequenceInference().analyze(C_ARPEGGIO)
        assert [round(b.score, 2) for b in result.beats] == [1.70, 1.95, 2.23, 1.95]
        assert result.total_score == pytest.approx(sum(b.score for b in result.beats) - 4 * 0.05)

    def test_window_beats_context_free_baseline(self):
        windowed = ChordSequenceInference().analyze(C_ARPEGGIO)
        baseline = ChordSequenceInference(lookback=0, lookahead=0).analyze(C_ARPEGGIO)

        assert baseline.total_score == 0.0
        assert baseline.names == ["-"] * 4
        assert windowed.total_score > baseline.total_score

    def test_empty_voice(self):
        result = ChordSequenceInference().analyze([])
        assert result.error == "Empty"
        assert result.beats == []

    def test_beats_cover_voice(self):
        result = ChordSequenceInference().analyze([NoteEvent(60, 0, 2.5)])
        assert len(result.beats) == 3

    def test_compound_meter_beats(self):
        config = AnalysisConfig.create(meter=[6, 8])
        result = ChordSequenceInference(config).analyze(line([60, 64, 67], duration=1.5))
        assert [b.onset for b in result.beats] == [0.0, 1.5, 3.0]

    def test_roman_numerals(self):
        result = ChordSequenceInference().analyze(C_ARPEGGIO)
        assert result.beats[0].roman_numeral(0, "major") == "I"
        assert result.beats[0].roman_numeral(7, "major") == "IV"


# ============================================================================
# Roman numerals
# ============================================================================

class TestRomanNumeral:
    """Tests for roman_numeral()."""

    def test_major_key(self):
        assert roman_numeral(ChordKey(7, ChordQuality.DOMINANT_7), 0) == "V7"
        assert roman_numeral(ChordKey(2, ChordQuality.MINOR), 0) == "ii"
        assert roman_numeral(ChordKey(11, ChordQuality.DIMINISHED), 0) == "vii°"

    def test_minor_key(self):
        assert roman_numeral(ChordKey(9, ChordQuality.MINOR), 9, "minor") == "i"

    def test_non_diatonic_root(self):
        assert roman_numeral(ChordKey(1, ChordQuality.MAJOR), 0) == "(C#)"


# ============================================================================
# Key detection
# ============================================================================

class TestKeyDetector:
    """Tests for KeyDetector."""

    def test_c_major_scale(self):
        info = KeyDetector().analyze(line([60, 62, 64, 65, 67, 69, 71, 72]))
        assert info.tonic == 0
        assert info.mode == "major"
        assert info.name == "C major"
        assert 0.5 < info.confidence <= 1.0
        assert info.distribution.sum() == pytest.approx(1.0)

    def test_a_minor_line(self):
        info = KeyDetector().analyze(line([69, 71, 72, 74, 76, 72, 71, 69], duration=1.0))
        assert info.tonic == 9
        assert info.mode == "natural_minor"
        assert info.relative == "C major"

    def test_too_few_notes(self):
        info = KeyDetector().analyze(line([60, 62]))
        assert info.confidence == 0.0

    def test_alternatives(self):
        info = KeyDetector(detect_modes=True).analyze(line([60, 62, 64, 65, 67]))
        assert len(info.alternatives) == 3

"""Harmony inference - implied chord per beat of a single voice.

Implements chord-sequence inference with:
- Beat segmentation that keeps each fragment's source note
- Salience from duration, metric position and approach interval
- A temporal window so arpeggiated chords register as one harmony
- A forward dynamic program over per-beat candidates with chain tracking
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Sequence

from ..core import (
    AnalysisConfig,
    DEFAULT_CONFIG,
    NoteEvent,
    PITCH_NAMES,
    TIME_TOLERANCE,
    voice_length,
)
from .chords import ChordCandidate, ChordKey, ChordQuality, ChordScorer, SalientNote, roman_numeral

logger = logging.getLogger(__name__)


class BeatSegment(NamedTuple):
    """The part of a note that falls inside one beat."""
    pitch: int
    onset: float
    duration: float
    beat: int
    note_index: int  # Index of the source note in the voice
    approach: int  # Semitones from the previous note (0 for the first note)
    first_note: bool


@dataclass
class BeatHarmony:
    """Implied harmony at one beat."""

    beat: int
    onset: float
    root: Optional[int] = None  # Pitch class, None for an unassigned beat
    quality: Optional[ChordQuality] = None
    score: float = 0.0
    chain_length: int = 0  # Length of the run of beats sharing this harmony
    chain_position: int = 0  # 1-based position within that run

    @property
    def key(self) -> Optional[ChordKey]:
        if self.root is None:
            return None
        return ChordKey(self.root, self.quality)

    @property
    def name(self) -> str:
        """Chord name such as 'C major', or '-' when no chord is assigned."""
        if self.root is None:
            return "-"
        return f"{PITCH_NAMES[self.root]} {self.quality.value}"

    def roman_numeral(self, tonic: int, mode: str = "major") -> str:
        if self.root is None:
            return "-"
        return roman_numeral(self.key, tonic, mode)


@dataclass
class HarmonySequence:
    """Container for chord-sequence inference results."""

    beats: List[BeatHarmony] = field(default_factory=list)
    total_score: float = 0.0
    error: Optional[str] = None

    @property
    def names(self) -> List[str]:
        return [b.name for b in self.beats]

    @property
    def chains(self) -> List[BeatHarmony]:
        """First beat of every run of an assigned harmony."""
        return [b for b in self.beats if b.root is not None and b.chain_position == 1]

    @property
    def assigned_ratio(self) -> float:
        if not self.beats:
            return 0.0
        return sum(1 for b in self.beats if b.root is not None) / len(self.beats)


class _State(NamedTuple):
    total: float
    prev: Optional[ChordKey]
    candidate: Optional[ChordCandidate]
    chain: int


class ChordSequenceSearch:
    """Forward dynamic program over per-beat chord candidates.

    At every beat the state is either "no chord" or a ChordKey. A chord
    state extends the best predecessor by its score minus a complexity
    penalty. Repeating the predecessor's chord only lengthens the chain;
    it earns nothing extra.
    "No chord" inherits the best predecessor unchanged, so an ambiguous
    beat can stay unassigned.
    """

    def __init__(self, complexity_penalty: float = 0.05):
        """
        Initialize ChordSequenceSearch.

        Args:
            complexity_penalty: Score deducted per complexity level
        """
        self.complexity_penalty = complexity_penalty

    def gain(self, candidate: ChordCandidate) -> float:
        """Score a candidate adds to its predecessor's total."""
        return candidate.score - candidate.complexity * self.complexity_penalty

    def search(self, beat_candidates: Sequence[Sequence[ChordCandidate]]):
        """
        Find the best-scoring assignment.

        Args:
            beat_candidates: Candidates for each beat

        Returns:
            (path, total) where path holds a ChordCandidate or None per beat
        """
        if not beat_candidates:
            return [], 0.0

        table: List[Dict[Optional[ChordKey], _State]] = []

        for b, candidates in enumerate(beat_candidates):
            states: Dict[Optional[ChordKey], _State] = {}

            if b == 0:
                states[None] = _State(0.0, None, None, 0)
                for c in candidates:
                    self._offer(states, c.key, _State(self.gain(c), None, c, 1))
                table.append(states)
                continue

            previous = table[-1]
            best_prev = self._best(previous)
            states[None] = _State(previous[best_prev].total, best_prev, None, 0)

            for c in candidates:
                key = c.key
                for prev_key, prev_state in previous.items():
                    total = prev_state.total + self.gain(c)
                    chain = prev_state.chain + 1 if prev_key == key else 1
                    self._offer(states, key, _State(total, prev_key, c, chain))

            table.append(states)

        # Backtrack from the best final state
        key = self._best(table[-1])
        total = table[-1][key].total
        path = []
        for states in reversed(table):
            state = states[key]
            path.append(state.candidate)
            key = state.prev
        path.reverse()
        return path, total

    @staticmethod
    def _offer(states, key, state: _State) -> None:
        """Keep the better of two states for the same key; ties go to the longer chain."""
        existing = states.get(key)
        if existing is None or state.total > existing.total + 1e-12:
            states[key] = state
        elif abs(state.total - existing.total) <= 1e-12 and state.chain > existing.chain:
            states[key] = state

    @staticmethod
    def _best(states) -> Optional[ChordKey]:
        best_key = None
        best = None
        for key, state in states.items():
            if best is None or (state.total, state.chain) > (best.total, best.chain):
                best_key, best = key, state
        return best_key


class ChordSequenceInference:
    """Infer the implied harmony at every beat of a single voice.

    Features:
    - Beat segmentation following the meter's main beat
    - Salience weighting by duration, metric position and approach
    - Geometric decay over a short lookback and lookahead window
    - Non-greedy dynamic programming over all candidates
    """

    PASSING_NOTE_THRESHOLD = 0.125
    MIN_SALIENCE = 0.025

    def __init__(
        self,
        config: AnalysisConfig = DEFAULT_CONFIG,
        lookback: int = 3,
        lookahead: int = 1,
        decay: float = 0.6,
        complexity_penalty: float = 0.05,
        scorer: Optional[ChordScorer] = None,
    ):
        """
        Initialize ChordSequenceInference.

        Args:
            config: Analysis settings (meter)
            lookback: Earlier beats whose notes still count at a beat
            lookahead: Later beats whose notes count at a beat
            decay: Salience multiplier per beat of distance
            complexity_penalty: Score deducted per complexity level
            scorer: Candidate scorer (default vocabulary if omitted)
        """
        self.config = config
        self.meter = config.meter
        self.lookback = lookback
        self.lookahead = lookahead
        self.decay = decay
        self.scorer = scorer or ChordScorer()
        self.sequence_search = ChordSequenceSearch(complexity_penalty)

    def analyze(self, notes: Sequence[NoteEvent]) -> HarmonySequence:
        """
        Infer one harmony (or none) per beat.

        Args:
            notes: Notes of a single voice, in order

        Returns:
            HarmonySequence covering the whole voice
        """
        if not notes:
            return HarmonySequence(error="Empty")

        beat_candidates = self.beat_candidates(notes)
        path, total = self.sequence_search.search(beat_candidates)

        beats = []
        for b, candidate in enumerate(path):
            onset = b * self.meter.beat_length
            if candidate is None:
                beats.append(BeatHarmony(beat=b, onset=onset))
            else:
                beats.append(BeatHarmony(
                    beat=b,
                    onset=onset,
                    root=candidate.root,
                    quality=candidate.quality,
                    score=candidate.score,
                ))
        self._mark_chains(beats)

        logger.debug("Harmony over %d beats (total %.3f): %s", len(beats), total, ", ".join(b.name for b in beats))
        return HarmonySequence(beats=beats, total_score=total)

    def beat_count(self, notes: Sequence[NoteEvent]) -> int:
        length = voice_length(notes)
        return max(1, int(math.ceil(length / self.meter.beat_length - TIME_TOLERANCE)))

    def segment(self, notes: Sequence[NoteEvent]) -> List[BeatSegment]:
        """
        Split notes at beat boundaries.

        A sustained note contributes a fragment to every beat it spans.
        Repeated attacks of one pitch with no gap inside a beat are merged
        back into a single segment.
        """
        beat_len = self.meter.beat_length
        segments: List[BeatSegment] = []

        for i, note in enumerate(notes):
            approach = note.pitch - notes[i - 1].pitch if i > 0 else 0
            start_beat = int(math.floor(note.onset / beat_len + TIME_TOLERANCE))
            b = start_beat
            while b * beat_len < note.offset - TIME_TOLERANCE:
                start = max(note.onset, b * beat_len)
                end = min(note.offset, (b + 1) * beat_len)
                if end - start > TIME_TOLERANCE:
                    seg = BeatSegment(note.pitch, start, end - start, b, i, approach, i == 0)
                    last = segments[-1] if segments else None
                    if (last is not None and last.beat == b and last.pitch == seg.pitch
                            and last.note_index != i
                            and abs(last.onset + last.duration - seg.onset) < TIME_TOLERANCE):
                        segments[-1] = last._replace(duration=last.duration + seg.duration)
                    else:
                        segments.append(seg)
                b += 1

        return segments

    def metric_multiplier(self, onset: float) -> float:
        weight = self.meter.metric_weight(onset)
        if weight >= 0.9:
            return 1.2  # Downbeat
        if weight >= 0.7:
            return 1.0  # Secondary accent
        if weight >= 0.45:
            return 0.75  # Other main beat
        return 0.5  # Subdivision

    @staticmethod
    def approach_multiplier(segment: BeatSegment) -> float:
        if segment.first_note:
            return 1.0
        size = abs(segment.approach)
        if size == 0:
            return 1.0
        if size <= 2:
            return 0.8
        if size <= 4:
            return 1.0
        if size in (5, 7, 12):
            return 1.2
        return 1.0

    def salience(self, segment: BeatSegment, distance: int = 0) -> float:
        """Weight of a segment as evidence for the harmony at a beat distance away."""
        raw = (
            (segment.duration - self.PASSING_NOTE_THRESHOLD)
            * self.metric_multiplier(segment.onset)
            * self.approach_multiplier(segment)
        )
        return max(raw, self.MIN_SALIENCE) * self.decay ** abs(distance)

    def beat_notes(self, segments: Sequence[BeatSegment], beat: int) -> List[SalientNote]:
        """Salience-weighted notes heard at a beat."""
        heard = []
        for seg in segments:
            distance = beat - seg.beat
            if -self.lookahead <= distance <= self.lookback:
                heard.append(SalientNote(seg.pitch, self.salience(seg, distance), seg.onset))
        return heard

    def beat_candidates(self, notes: Sequence[NoteEvent]) -> List[List[ChordCandidate]]:
        """Every valid chord candidate at every beat."""
        segments = self.segment(notes)
        return [
            self.scorer.candidates(self.beat_notes(segments, b))
            for b in range(self.beat_count(notes))
        ]

    @staticmethod
    def _mark_chains(beats: List[BeatHarmony]) -> None:
        i = 0
        while i < len(beats):
            key = beats[i].key
            j = i
            while j + 1 < len(beats) and key is not None and beats[j + 1].key == key:
                j += 1
            if key is not None:
                run = j - i + 1
                for pos, b in enumerate(beats[i:j + 1], start=1):
                    b.chain_length = run
                    b.chain_position = pos
            i = j + 1

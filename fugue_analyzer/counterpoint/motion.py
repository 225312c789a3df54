"""Motion classification between two voices.

Classifies every transition between adjacent simultaneities as static,
oblique, contrary, parallel or one of the similar-motion variants, then
reassesses oblique transitions that are really two moves a hair apart in
time (the voices do not have to change pitch at exactly the same instant).

Counts are kept as exact fractions so that the reassessment never changes
the total number of transitions.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Dict, List, Optional, Sequence

from ..core import AnalysisConfig, DEFAULT_CONFIG, NoteEvent
from .simultaneity import Simultaneity

logger = logging.getLogger(__name__)


class MotionType(Enum):
    """Transition categories, in classification order."""
    STATIC = "static"
    OBLIQUE = "oblique"
    CONTRARY = "contrary"
    PARALLEL = "parallel"
    SIMILAR_STEP = "similar_step"
    SIMILAR_SAME_TYPE = "similar_same_type"
    SIMILAR = "similar"

    @property
    def family(self) -> str:
        """Aggregate bucket: contrary, oblique, similar, parallel or static."""
        if self in (MotionType.SIMILAR_STEP, MotionType.SIMILAR_SAME_TYPE, MotionType.SIMILAR):
            return "similar"
        return self.value


def leap_type(semitones: int) -> str:
    """Bucket a melodic interval by size."""
    size = abs(semitones)
    if size <= 2:
        return "step"
    if size <= 4:
        return "skip"
    if size <= 7:
        return "perfect_leap"
    if size == 12:
        return "octave"
    return "large_leap"


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


@dataclass(frozen=True)
class MotionTransition:
    """Melodic relationship between two adjacent simultaneities."""

    onset: float  # Onset of the later simultaneity
    prev_onset: float
    type: MotionType
    delta_a: int  # Pitch change in voice 1 (0 if it did not move)
    delta_b: int

    @property
    def a_moved(self) -> bool:
        return self.delta_a != 0

    @property
    def b_moved(self) -> bool:
        return self.delta_b != 0

    def delta(self, voice: int) -> int:
        return self.delta_a if voice == 1 else self.delta_b


def _moved(prev_index: int, curr_index: int, prev_note: NoteEvent, curr_note: NoteEvent) -> int:
    """Pitch change of a voice, 0 when the same note (or a repeated pitch) sounds."""
    if prev_index == curr_index:
        return 0
    return curr_note.pitch - prev_note.pitch


def classify_motion(prev: Simultaneity, curr: Simultaneity) -> MotionTransition:
    """
    Classify the motion from one simultaneity to the next.

    Args:
        prev: Earlier simultaneity
        curr: Later simultaneity of the same two voices

    Returns:
        MotionTransition with the category and both pitch deltas
    """
    delta_a = _moved(prev.index_a, curr.index_a, prev.note_a, curr.note_a)
    delta_b = _moved(prev.index_b, curr.index_b, prev.note_b, curr.note_b)

    if delta_a == 0 and delta_b == 0:
        motion = MotionType.STATIC
    elif delta_a == 0 or delta_b == 0:
        motion = MotionType.OBLIQUE
    elif _sign(delta_a) != _sign(delta_b):
        motion = MotionType.CONTRARY
    elif abs(delta_a) == abs(delta_b):
        motion = MotionType.PARALLEL
    elif abs(delta_a) <= 2 or abs(delta_b) <= 2:
        motion = MotionType.SIMILAR_STEP
    elif leap_type(delta_a) == leap_type(delta_b):
        motion = MotionType.SIMILAR_SAME_TYPE
    else:
        motion = MotionType.SIMILAR

    return MotionTransition(
        onset=curr.onset,
        prev_onset=prev.onset,
        type=motion,
        delta_a=delta_a,
        delta_b=delta_b,
    )


def _combined_family(delta_moving: int, delta_other: int) -> str:
    """Family of two separately timed moves taken together."""
    if _sign(delta_moving) != _sign(delta_other):
        return "contrary"
    if abs(delta_moving) == abs(delta_other):
        return "parallel"
    return "similar"


@dataclass(frozen=True)
class ObliqueReassessment:
    """Part of an oblique transition reassigned to a cross-voice family."""

    onset: float
    partner_onset: float
    family: str
    fraction: Fraction

    @property
    def offset(self) -> float:
        return abs(self.partner_onset - self.onset)


FAMILIES = ("contrary", "oblique", "similar", "parallel")


@dataclass
class MotionSummary:
    """Aggregated motion between two voices."""

    counts: Dict[str, Fraction] = field(default_factory=lambda: {f: Fraction(0) for f in FAMILIES})
    raw_counts: Dict[str, int] = field(default_factory=dict)  # Per MotionType before reassessment
    static_count: int = 0
    transitions: List[MotionTransition] = field(default_factory=list)
    reassessments: List[ObliqueReassessment] = field(default_factory=list)
    window: float = 0.25  # Quarter notes
    assessment: str = ""
    error: Optional[str] = None

    @property
    def total(self) -> int:
        """Number of non-static transitions."""
        return len(self.transitions) - self.static_count

    def ratio(self, family: str) -> float:
        if self.total == 0:
            return 0.0
        return float(self.counts[family] / self.total)

    @property
    def contrary_ratio(self) -> float:
        return self.ratio("contrary")

    @property
    def oblique_ratio(self) -> float:
        return self.ratio("oblique")

    @property
    def similar_ratio(self) -> float:
        return self.ratio("similar")

    @property
    def parallel_ratio(self) -> float:
        return self.ratio("parallel")

    @property
    def ratios(self) -> Dict[str, float]:
        return {family: self.ratio(family) for family in FAMILIES}


class MotionClassifier:
    """
    Motion statistics between two voices with asynchronous-oblique reassessment.

    An oblique transition is paired with the nearest transition in which the
    other voice moved. If the two moves lie less than a window apart, the
    share 1 - offset / window of that oblique unit is counted as contrary,
    parallel or similar instead. Windows are given in beats of the
    configured meter.
    """

    def __init__(
        self,
        config: AnalysisConfig = DEFAULT_CONFIG,
        window: float = 0.25,
        short_window: float = 0.5,
        short_voice_notes: int = 8,
    ):
        """
        Initialize MotionClassifier.

        Args:
            config: Analysis settings (meter)
            window: Reassessment window in beats
            short_window: Window in beats when the shorter voice is short
            short_voice_notes: Note count at or below which a voice is short
        """
        self.meter = config.meter
        self.window = window
        self.short_window = short_window
        self.short_voice_notes = short_voice_notes

    def window_for(self, voice_a: Sequence[NoteEvent], voice_b: Sequence[NoteEvent]) -> float:
        """Window in quarter notes; short subjects have sparser motion samples and get a wider one."""
        beats = self.window
        if min(len(voice_a), len(voice_b)) <= self.short_voice_notes:
            beats = self.short_window
        return beats * self.meter.beat_length

    def analyze(
        self,
        sims: Sequence[Simultaneity],
        voice_a: Sequence[NoteEvent],
        voice_b: Sequence[NoteEvent],
    ) -> MotionSummary:
        """
        Classify and count the motion between two voices.

        Args:
            sims: Simultaneities of the two voices, sorted by onset
            voice_a: Notes of voice 1
            voice_b: Notes of voice 2

        Returns:
            MotionSummary with exact fractional counts
        """
        window = self.window_for(voice_a, voice_b)
        summary = MotionSummary(window=window)

        if len(sims) < 2:
            summary.error = "Empty" if not sims else "Too short"
            summary.assessment = "Not enough simultaneities"
            return summary

        ordered = sorted(sims, key=lambda s: (s.onset, s.index_a, s.index_b))
        transitions = [classify_motion(p, c) for p, c in zip(ordered, ordered[1:])]
        summary.transitions = transitions

        for t in transitions:
            summary.raw_counts[t.type.value] = summary.raw_counts.get(t.type.value, 0) + 1
            if t.type is MotionType.STATIC:
                summary.static_count += 1
            elif t.type is not MotionType.OBLIQUE:
                summary.counts[t.type.family] += 1

        window_q = Fraction(window)
        for t in transitions:
            if t.type is not MotionType.OBLIQUE:
                continue

            moving = 1 if t.a_moved else 2
            other = 2 if moving == 1 else 1
            partner = self._nearest_partner(t, transitions, other, window)

            if partner is None:
                summary.counts["oblique"] += 1
                continue

            offset = abs(Fraction(partner.onset) - Fraction(t.onset))
            share = 1 - offset / window_q
            family = _combined_family(t.delta(moving), partner.delta(other))

            summary.counts[family] += share
            summary.counts["oblique"] += 1 - share
            summary.reassessments.append(ObliqueReassessment(
                onset=t.onset,
                partner_onset=partner.onset,
                family=family,
                fraction=share,
            ))
            logger.debug(
                "Oblique at %.3f paired with move at %.3f: %s share %s",
                t.onset, partner.onset, family, share,
            )

        summary.assessment = self._assess(summary)
        logger.debug(
            "Motion: %d transitions, %d static, counts %s",
            len(transitions), summary.static_count,
            {k: float(v) for k, v in summary.counts.items()},
        )
        return summary

    def _nearest_partner(
        self,
        transition: MotionTransition,
        transitions: List[MotionTransition],
        other: int,
        window: float,
    ) -> Optional[MotionTransition]:
        """Closest transition where the other voice moved, earliest onset on ties."""
        best = None
        best_offset = None
        for candidate in transitions:
            if candidate is transition or candidate.delta(other) == 0:
                continue
            offset = abs(candidate.onset - transition.onset)
            if offset >= window:
                continue
            if best is None or offset < best_offset - 1e-9:
                best, best_offset = candidate, offset
        return best

    @staticmethod
    def _assess(summary: MotionSummary) -> str:
        if summary.total == 0:
            return "No melodic motion between the voices"
        together = summary.similar_ratio + summary.parallel_ratio
        if together > 0.6:
            return "Voices move together frequently - consider more contrary motion"
        if summary.contrary_ratio > 0.35:
            return "Good balance of motion types"
        return "Independent contours"

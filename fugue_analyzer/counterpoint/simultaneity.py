"""Simultaneity engine - pair up overlapping notes of two voices."""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from ..core import NoteEvent, Interval, Meter, interval_between, TIME_TOLERANCE
from ..core.constants import STRONG_BEAT_WEIGHT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Simultaneity:
    """Two notes from different voices sounding together."""

    onset: float  # max of the two note onsets
    note_a: NoteEvent
    note_b: NoteEvent
    index_a: int  # Position of note_a in voice A
    index_b: int  # Position of note_b in voice B
    metric_weight: float
    interval: Interval = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "interval", interval_between(self.note_a.pitch, self.note_b.pitch))

    @property
    def is_strong(self) -> bool:
        return self.metric_weight >= STRONG_BEAT_WEIGHT

    @property
    def lower_voice(self) -> int:
        """1 or 2 for the voice with the lower pitch, 0 for a unison."""
        if self.note_a.pitch == self.note_b.pitch:
            return 0
        return 1 if self.note_a.pitch < self.note_b.pitch else 2

    def note(self, voice: int) -> NoteEvent:
        return self.note_a if voice == 1 else self.note_b

    def index(self, voice: int) -> int:
        return self.index_a if voice == 1 else self.index_b

    def swapped(self) -> "Simultaneity":
        """The same overlap with the voice roles exchanged."""
        return Simultaneity(
            onset=self.onset,
            note_a=self.note_b,
            note_b=self.note_a,
            index_a=self.index_b,
            index_b=self.index_a,
            metric_weight=self.metric_weight,
        )


def find_simultaneities(
    voice_a: Sequence[NoteEvent],
    voice_b: Sequence[NoteEvent],
    meter,
) -> List[Simultaneity]:
    """
    Find every pair of temporally overlapping notes between two voices.

    Args:
        voice_a: Notes of the first voice, in order
        voice_b: Notes of the second voice, in order
        meter: Meter or [numerator, denominator] pair

    Returns:
        Simultaneities sorted by onset

    Raises:
        InvalidMeter: If meter is not a pair of positive integers
    """
    meter = Meter.coerce(meter)

    sims = []
    for i, note_a in enumerate(voice_a):
        for j, note_b in enumerate(voice_b):
            # Half-open ranges; touching notes do not overlap
            if (note_a.onset < note_b.offset - TIME_TOLERANCE
                    and note_b.onset < note_a.offset - TIME_TOLERANCE):
                start = max(note_a.onset, note_b.onset)
                sims.append(Simultaneity(
                    onset=start,
                    note_a=note_a,
                    note_b=note_b,
                    index_a=i,
                    index_b=j,
                    metric_weight=meter.metric_weight(start),
                ))

    sims.sort(key=lambda s: (s.onset, s.index_a, s.index_b))
    logger.debug("Found %d simultaneities between %d and %d notes", len(sims), len(voice_a), len(voice_b))
    return sims


def previous_simultaneity(sim: Simultaneity, all_sims: Sequence[Simultaneity]):
    """Latest simultaneity starting strictly before sim, or None."""
    earlier = [s for s in all_sims if s.onset < sim.onset - TIME_TOLERANCE]
    return earlier[-1] if earlier else None


def next_simultaneity(sim: Simultaneity, all_sims: Sequence[Simultaneity]):
    """Earliest simultaneity starting strictly after sim, or None."""
    for s in all_sims:
        if s.onset > sim.onset + TIME_TOLERANCE:
            return s
    return None

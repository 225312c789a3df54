"""Parallel-perfect detection - fifths and octaves by similar motion."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..core import Meter, BeatFormatter, pitch_name, COMMON_TIME
from .simultaneity import Simultaneity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParallelViolation:
    """Two perfect intervals of the same kind in direct succession."""

    onset: float
    next_onset: float
    kind: int  # 5 or 8 (unison and octave share a kind)
    pitches: Tuple[int, int, int, int]  # (a1, b1, a2, b2)
    description: str
    voices: Tuple[int, int] = (1, 2)

    @property
    def name(self) -> str:
        return "fifths" if self.kind == 5 else "octaves"


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _dedupe(sims: Sequence[Simultaneity]) -> List[Simultaneity]:
    """One record per underlying note pair, earliest onset kept."""
    seen = set()
    unique = []
    for sim in sorted(sims, key=lambda s: s.onset):
        key = (sim.index_a, sim.index_b)
        if key in seen:
            continue
        seen.add(key)
        unique.append(sim)
    return unique


def _next_both_moved(sims: List[Simultaneity], start: int) -> Optional[Simultaneity]:
    """First simultaneity after start in which both voices changed note."""
    origin = sims[start]
    for sim in sims[start + 1:]:
        # Oblique steps are skipped, they neither break nor trigger the check
        if sim.index_a != origin.index_a and sim.index_b != origin.index_b:
            return sim
    return None


def check_parallel_perfects(
    sims: Sequence[Simultaneity],
    meter: Optional[Meter] = None,
) -> List[ParallelViolation]:
    """
    Find parallel fifths, octaves and unisons.

    Oblique motion into or out of a perfect interval is allowed; only two
    perfect intervals of the same kind reached by motion in the same
    direction are reported.

    Args:
        sims: Simultaneities of two voices
        meter: Meter used to describe positions

    Returns:
        Violations, one per distinct four-pitch motion
    """
    formatter = BeatFormatter(meter if meter is not None else COMMON_TIME)
    unique = _dedupe(sims)

    violations = []
    reported = set()

    for i, sim in enumerate(unique):
        kind = sim.interval.perfect_kind
        if kind is None:
            continue

        nxt = _next_both_moved(unique, i)
        if nxt is None or nxt.interval.perfect_kind != kind:
            continue

        dir_a = _sign(nxt.note_a.pitch - sim.note_a.pitch)
        dir_b = _sign(nxt.note_b.pitch - sim.note_b.pitch)
        if dir_a == 0 or dir_a != dir_b:
            continue

        pitches = (sim.note_a.pitch, sim.note_b.pitch, nxt.note_a.pitch, nxt.note_b.pitch)
        if pitches in reported:
            continue
        reported.add(pitches)

        label = "fifths" if kind == 5 else "octaves"
        description = (
            f"Parallel {label}: {pitch_name(pitches[0])}/{pitch_name(pitches[1])} to "
            f"{pitch_name(pitches[2])}/{pitch_name(pitches[3])} at "
            f"{formatter.format_beat(nxt.onset)}"
        )
        violation = ParallelViolation(
            onset=sim.onset,
            next_onset=nxt.onset,
            kind=kind,
            pitches=pitches,
            description=description,
        )
        logger.debug(violation.description)
        violations.append(violation)

    return violations

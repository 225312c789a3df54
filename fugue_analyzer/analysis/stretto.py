"""Stretto viability - the subject against a delayed copy of itself."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..core import AnalysisConfig, BeatFormatter, DEFAULT_CONFIG, NoteEvent, TIME_TOLERANCE, pitch_name, voice_length
from ..counterpoint import (
    DissonanceType,
    Simultaneity,
    check_parallel_perfects,
    classify_dissonance,
    find_simultaneities,
)
from .observations import degenerate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrettoFinding:
    onset: float
    type: str  # parallel, dissonance, appoggiatura or direct
    description: str


@dataclass(frozen=True)
class IntervalPoint:
    """Interval between dux and comes at one half-beat snapshot."""
    onset: float
    beat: float  # Onset snapped to the nearest half beat
    interval: str
    dux_pitch: int
    comes_pitch: int
    is_consonant: bool
    is_strong: bool
    dissonance_label: Optional[str] = None
    dissonance_type: Optional[str] = None


@dataclass
class StrettoResult:
    """Outcome of one entry distance."""
    distance: float
    distance_label: str
    overlap_percent: int
    issues: List[StrettoFinding] = field(default_factory=list)
    warnings: List[StrettoFinding] = field(default_factory=list)
    interval_points: List[IntervalPoint] = field(default_factory=list)

    @property
    def viable(self) -> bool:
        return not self.issues

    @property
    def clean(self) -> bool:
        return not self.issues and not self.warnings


@dataclass
class StrettoReport:
    subject_length: float = 0.0
    results: List[StrettoResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def viable(self) -> List[StrettoResult]:
        return [r for r in self.results if r.viable]

    @property
    def clean(self) -> List[StrettoResult]:
        return [r for r in self.results if r.clean]

    @property
    def problematic(self) -> List[StrettoResult]:
        return [r for r in self.results if not r.viable]


def _direct_perfects(sims: Sequence[Simultaneity], formatter: BeatFormatter) -> List[StrettoFinding]:
    """Similar motion into a fifth or octave with a leap in the upper voice."""
    seen = set()
    unique = []
    for sim in sims:
        if (sim.index_a, sim.index_b) not in seen:
            seen.add((sim.index_a, sim.index_b))
            unique.append(sim)

    findings = []
    for curr, nxt in zip(unique, unique[1:]):
        kind = nxt.interval.perfect_kind
        if kind is None:
            continue
        move_a = nxt.note_a.pitch - curr.note_a.pitch
        move_b = nxt.note_b.pitch - curr.note_b.pitch
        if move_a == 0 or move_b == 0 or (move_a > 0) != (move_b > 0):
            continue
        upper_move = move_a if nxt.note_a.pitch >= nxt.note_b.pitch else move_b
        if abs(upper_move) > 2:
            label = "5th" if kind == 5 else "8ve"
            findings.append(StrettoFinding(
                nxt.onset, "direct", f"Direct {label} by similar motion at {formatter.format_beat(nxt.onset)}"
            ))
    return findings


def evaluate_distance(
    subject: Sequence[NoteEvent],
    distance: float,
    config: AnalysisConfig = DEFAULT_CONFIG,
    octave_displacement: int = 12,
) -> StrettoResult:
    """
    Test one stretto: the comes enters distance quarter notes after the dux,
    transposed by octave_displacement semitones.
    """
    formatter = BeatFormatter(config.meter)
    length = voice_length(subject)
    comes = [n.shifted(distance).transposed(octave_displacement) for n in subject]
    sims = find_simultaneities(subject, comes, config.meter)

    result = StrettoResult(
        distance=distance,
        distance_label=formatter.format_distance(distance),
        overlap_percent=round((length - distance) / length * 100),
    )

    for v in check_parallel_perfects(sims, config.meter):
        result.issues.append(StrettoFinding(v.onset, "parallel", v.description))

    classified = {}
    for sim in sims:
        if not config.is_consonant(sim.interval):
            classified[(sim.index_a, sim.index_b)] = classify_dissonance(sim, sims, subject, comes, config)

    for sim in sims:
        item = classified.get((sim.index_a, sim.index_b))
        if item is None or not sim.is_strong:
            continue
        where = formatter.format_beat(sim.onset)
        if item.type is DissonanceType.UNPREPARED:
            result.issues.append(StrettoFinding(
                sim.onset,
                "dissonance",
                f"Unprepared {sim.interval} ({pitch_name(sim.note_a.pitch)}-{pitch_name(sim.note_b.pitch)}) "
                f"on strong beat at {where}",
            ))
        elif item.type is DissonanceType.APPOGGIATURA:
            result.warnings.append(StrettoFinding(
                sim.onset, "appoggiatura", f"{item.label}: {sim.interval} at {where} (resolves by step)"
            ))

    result.warnings.extend(_direct_perfects(sims, formatter))

    snapshots = {}
    for sim in sims:
        beat = round(sim.onset * 2) / 2
        if beat in snapshots:
            continue
        item = classified.get((sim.index_a, sim.index_b))
        snapshots[beat] = IntervalPoint(
            onset=sim.onset,
            beat=beat,
            interval=sim.interval.name,
            dux_pitch=sim.note_a.pitch,
            comes_pitch=sim.note_b.pitch,
            is_consonant=item is None,
            is_strong=sim.is_strong,
            dissonance_label=item.label if item else None,
            dissonance_type=item.type.value if item else None,
        )
    result.interval_points = [snapshots[b] for b in sorted(snapshots)]

    logger.debug(
        "Stretto at %s: %d issues, %d warnings", result.distance_label, len(result.issues), len(result.warnings)
    )
    return result


def test_stretto_viability(
    subject: Sequence[NoteEvent],
    config: AnalysisConfig = DEFAULT_CONFIG,
    min_overlap: float = 0.5,
    increment: float = 1,
    octave_displacement: int = 12,
) -> StrettoReport:
    """
    Try every entry distance from increment up to the point where the
    voices still overlap by min_overlap of the subject length.

    Args:
        subject: Subject notes
        config: Analysis settings
        min_overlap: Minimum shared fraction of the subject (0-1)
        increment: Step between tested distances in quarter notes
        octave_displacement: Transposition of the comes in semitones

    Returns:
        StrettoReport with one StrettoResult per distance

    Raises:
        ValueError: If increment is not positive
    """
    if increment <= 0:
        raise ValueError(f"Stretto increment must be positive, got {increment}")

    error = degenerate(subject, minimum=2)
    if error:
        return StrettoReport(error=error)

    length = voice_length(subject)
    max_distance = length * (1 - min_overlap)
    report = StrettoReport(subject_length=length)

    step = 1
    while step * increment <= max_distance + TIME_TOLERANCE:
        report.results.append(evaluate_distance(subject, step * increment, config, octave_displacement))
        step += 1

    return report

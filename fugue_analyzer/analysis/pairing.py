"""Subject / countersubject combination tests."""

import logging
from dataclasses import dataclass, field
from statistics import mean
from typing import List, Optional, Sequence

from ..core import AnalysisConfig, BeatFormatter, DEFAULT_CONFIG, NoteEvent, pitch_name
from ..core.constants import STRONG_BEAT_WEIGHT, MAIN_BEAT_WEIGHT
from ..counterpoint import (
    DissonanceReport,
    MotionClassifier,
    MotionSummary,
    MotionType,
    ParallelViolation,
    analyze_dissonances,
    check_parallel_perfects,
    find_simultaneities,
)
from .observations import Observation, STRENGTH, CONSIDERATION, INFO, scale_degrees, degenerate

logger = logging.getLogger(__name__)


@dataclass
class RhythmicComplementarity:
    overlap_ratio: float = 0.0  # Share of attacks that coincide
    strong_beat_collisions: int = 0
    observations: List[Observation] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class ContourIndependence:
    motion: Optional[MotionSummary] = None
    observations: List[Observation] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class IntervalProfile:
    """Strong-beat interval counts between two voices."""
    thirds: int = 0
    sixths: int = 0
    perfects: int = 0
    dissonant: int = 0
    total: int = 0

    @property
    def consonant(self) -> int:
        return self.total - self.dissonant

    @property
    def imperfect_ratio(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.thirds + self.sixths) / self.total

    @property
    def consonant_ratio(self) -> float:
        if self.total == 0:
            return 0.0
        return self.consonant / self.total


@dataclass
class CounterpointPosition:
    """One vertical arrangement of subject and countersubject."""
    name: str
    profile: IntervalProfile
    violations: List[ParallelViolation] = field(default_factory=list)
    dissonances: Optional[DissonanceReport] = None
    issues: List[str] = field(default_factory=list)


@dataclass
class DoubleCounterpoint:
    original: Optional[CounterpointPosition] = None
    inverted: Optional[CounterpointPosition] = None
    observations: List[Observation] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class ModulatoryRobustness:
    profile: Optional[IntervalProfile] = None
    violations: List[ParallelViolation] = field(default_factory=list)
    observations: List[Observation] = field(default_factory=list)
    error: Optional[str] = None


def _interval_profile(sims, config: AnalysisConfig) -> IntervalProfile:
    profile = IntervalProfile()
    for sim in sims:
        if sim.metric_weight < MAIN_BEAT_WEIGHT:
            continue
        profile.total += 1
        interval = sim.interval
        if not config.is_consonant(interval):
            profile.dissonant += 1
        elif interval.number == 3:
            profile.thirds += 1
        elif interval.number == 6:
            profile.sixths += 1
        elif interval.perfect_kind is not None:
            profile.perfects += 1
    return profile


def _dissonance_parts(report: DissonanceReport) -> List[str]:
    parts = []
    for count, label in (
        (len(report.suspensions), "sus"),
        (len(report.passing_tones), "PT"),
        (len(report.neighbor_tones), "N"),
        (len(report.anticipations), "ant"),
        (len(report.appoggiaturas), "app"),
        (len(report.unprepared), "unprepared"),
    ):
        if count:
            parts.append(f"{count} {label}")
    return parts


def test_rhythmic_complementarity(
    subject: Sequence[NoteEvent],
    cs: Sequence[NoteEvent],
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> RhythmicComplementarity:
    """Measure how often the two voices attack together."""
    error = degenerate(subject, cs)
    if error:
        return RhythmicComplementarity(error=error)

    s_onsets = {round(n.onset, 2) for n in subject}
    c_onsets = {round(n.onset, 2) for n in cs}
    shared = s_onsets & c_onsets
    ratio = len(shared) / max(len(s_onsets), len(c_onsets))
    percent = round(ratio * 100)

    observations = []
    if ratio > 0.8:
        observations.append(Observation(CONSIDERATION, f"{percent}% attacks coincide - homorhythmic"))
    elif ratio < 0.3:
        observations.append(Observation(STRENGTH, f"{percent}% overlap - good complementarity"))
    else:
        observations.append(Observation(INFO, f"{percent}% attacks coincide"))

    strong = sum(1 for onset in shared if config.meter.metric_weight(onset) >= STRONG_BEAT_WEIGHT)
    return RhythmicComplementarity(overlap_ratio=ratio, strong_beat_collisions=strong, observations=observations)


def test_contour_independence(
    subject: Sequence[NoteEvent],
    cs: Sequence[NoteEvent],
    config: AnalysisConfig = DEFAULT_CONFIG,
    classifier: Optional[MotionClassifier] = None,
) -> ContourIndependence:
    """Motion profile between subject and countersubject."""
    error = degenerate(subject, cs)
    if error:
        return ContourIndependence(error=error)

    formatter = BeatFormatter(config.meter)
    classifier = classifier or MotionClassifier(config)
    sims = find_simultaneities(subject, cs, config.meter)
    motion = classifier.analyze(sims, subject, cs)
    if motion.error:
        return ContourIndependence(motion=motion, error=motion.error)

    observations = [Observation(
        CONSIDERATION if motion.similar_ratio + motion.parallel_ratio > 0.6 else INFO,
        motion.assessment,
    )]
    ratios = ", ".join(f"{round(r * 100)}% {family}" for family, r in motion.ratios.items())
    observations.append(Observation(INFO, f"Motion: {ratios}"))

    for t in motion.transitions:
        if t.type is MotionType.PARALLEL and abs(t.delta_a) >= 5:
            observations.append(Observation(CONSIDERATION, f"Parallel leaps at {formatter.format_beat(t.onset)}"))

    return ContourIndependence(motion=motion, observations=observations)


def _position(name: str, upper, lower, config: AnalysisConfig, formatter: BeatFormatter) -> CounterpointPosition:
    sims = find_simultaneities(upper, lower, config.meter)
    position = CounterpointPosition(
        name=name,
        profile=_interval_profile(sims, config),
        violations=check_parallel_perfects(sims, config.meter),
        dissonances=analyze_dissonances(sims, upper, lower, config),
    )

    position.issues.extend(v.description for v in position.violations)

    if config.p4_dissonant:
        for sim in sims:
            if sim.metric_weight >= MAIN_BEAT_WEIGHT and sim.interval.is_perfect_fourth:
                position.issues.append(
                    f"4th against bass ({pitch_name(sim.note_a.pitch)}-{pitch_name(sim.note_b.pitch)}) "
                    f"at {formatter.format_beat(sim.onset)}"
                )

    for d in position.dissonances.unprepared:
        if d.metric_weight >= STRONG_BEAT_WEIGHT:
            position.issues.append(f"Unprepared {d.interval} on strong beat at {formatter.format_beat(d.onset)}")

    return position


def test_double_counterpoint(
    subject: Sequence[NoteEvent],
    cs: Sequence[NoteEvent],
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> DoubleCounterpoint:
    """
    Check invertibility at the octave.

    The countersubject is tested in its written position and moved an
    octave past the subject (down if it sits above, up if it sits below).
    """
    error = degenerate(subject, cs)
    if error:
        return DoubleCounterpoint(error=error)

    formatter = BeatFormatter(config.meter)
    cs_above = mean(n.pitch for n in cs) >= mean(n.pitch for n in subject)
    shift = -12 if cs_above else 12
    inverted_cs = [n.transposed(shift) for n in cs]

    original = _position("CS above" if cs_above else "CS below", subject, cs, config, formatter)
    inverted = _position("CS below" if cs_above else "CS above", subject, inverted_cs, config, formatter)

    observations = []
    for label, pos in (("Original", original), ("Inverted", inverted)):
        p = pos.profile
        observations.append(Observation(
            INFO, f"{label} ({pos.name}): {p.thirds} 3rds, {p.sixths} 6ths, {p.perfects} perfect consonances"
        ))
    for label, pos in (("Original", original), ("Inverted", inverted)):
        if pos.dissonances.total:
            kind = STRENGTH if not pos.dissonances.unprepared else INFO
            observations.append(Observation(
                kind, f"{label} dissonances: {', '.join(_dissonance_parts(pos.dissonances))}"
            ))
    for label, pos in (("Original", original), ("Inverted", inverted)):
        for issue in pos.issues:
            observations.append(Observation(CONSIDERATION, f"{label}: {issue}"))

    if not original.issues and not inverted.issues:
        observations.append(Observation(
            STRENGTH, "Clean invertibility - no parallel perfects or problematic dissonances in either position"
        ))

    logger.debug("Double counterpoint: %d / %d issues", len(original.issues), len(inverted.issues))
    return DoubleCounterpoint(original=original, inverted=inverted, observations=observations)


def test_modulatory_robustness(
    subject: Sequence[NoteEvent],
    cs: Sequence[NoteEvent],
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> ModulatoryRobustness:
    """Countersubject against the answer (subject a fifth higher)."""
    error = degenerate(subject, cs)
    if error:
        return ModulatoryRobustness(error=error)

    formatter = BeatFormatter(config.meter)
    degrees = scale_degrees(subject, config)
    answer = [n.transposed(7, d.transposed_up_fifth()) for n, d in zip(subject, degrees)]

    sims = find_simultaneities(answer, cs, config.meter)
    violations = check_parallel_perfects(sims, config.meter)
    profile = _interval_profile(sims, config)

    observations = []
    if profile.total:
        percent = round(profile.consonant_ratio * 100)
        kind = STRENGTH if percent >= 80 else INFO if percent >= 60 else CONSIDERATION
        observations.append(Observation(
            kind,
            f"Against answer: {percent}% consonant on strong beats "
            f"({profile.thirds} 3rds, {profile.sixths} 6ths, {profile.perfects} perfect)",
        ))

    if violations:
        observations.extend(Observation(CONSIDERATION, v.description) for v in violations)
    else:
        observations.append(Observation(STRENGTH, "No parallel 5ths or 8ves against answer"))

    strong_dissonances = [
        s for s in sims
        if s.metric_weight >= MAIN_BEAT_WEIGHT and not config.is_consonant(s.interval)
    ]
    for sim in strong_dissonances[:3]:
        observations.append(Observation(
            CONSIDERATION, f"Dissonance on strong beat: {sim.interval} at {formatter.format_beat(sim.onset)}"
        ))
    if len(strong_dissonances) > 3:
        observations.append(Observation(
            CONSIDERATION, f"...and {len(strong_dissonances) - 3} more strong-beat dissonances"
        ))

    return ModulatoryRobustness(profile=profile, violations=violations, observations=observations)

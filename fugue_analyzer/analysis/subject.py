"""Single-line tests of a fugue subject.

Covers harmonic implication, rhythmic variety and the tonal answer a
subject calls for.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..core import AnalysisConfig, BeatFormatter, DEFAULT_CONFIG, NoteEvent, voice_length
from ..core.constants import MAIN_BEAT_WEIGHT
from ..inference import ChordSequenceInference, HarmonySequence
from .observations import Observation, STRENGTH, CONSIDERATION, INFO, scale_degrees, degenerate

logger = logging.getLogger(__name__)


# Terminal degree -> (quality, description)
TERMINAL_QUALITIES = {
    1: ("strong", "Ends on ^1 - clean I to V"),
    2: ("good", "Ends on ^2 - pre-dominant"),
    5: ("ambiguous", "Ends on ^5 - V to V stasis"),
    7: ("strong", "Ends on ^7 - dominant pull"),
    4: ("workable", "Ends on ^4"),
    3: ("workable", "Ends on ^3"),
}

# Terminal degree -> (progression into the answer, quality)
JUNCTIONS = {
    1: ("I-V", "strong"),
    2: ("ii-V", "good"),
    5: ("V-V", "static"),
    7: ("vii°-V", "strong"),
    4: ("IV-V", "strong"),
    3: ("I-V", "good"),
}


@dataclass
class DominantArrival:
    onset: float
    location: str
    ratio: float  # Position as a fraction of the subject length
    degree: str

    @property
    def timing(self) -> str:
        if self.ratio < 0.3:
            return "Early"
        if self.ratio > 0.6:
            return "Late"
        return "Mid-subject"


@dataclass
class HarmonicImplication:
    """Container for harmonic implication results."""

    opening: str = ""
    opening_is_tonic_chord_tone: bool = False
    terminal: str = ""
    terminal_quality: str = ""
    dominant_arrival: Optional[DominantArrival] = None
    harmony: Optional[HarmonySequence] = None
    observations: List[Observation] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class RhythmicVariety:
    unique_durations: int = 0
    duration_names: List[str] = field(default_factory=list)
    observations: List[Observation] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class TonalMotion:
    type: str  # "1-5", "5-1" or "initial-5"
    description: str


@dataclass
class TonalAnswer:
    """What kind of answer the subject calls for."""

    answer_type: str = "real"
    tonal_motions: List[TonalMotion] = field(default_factory=list)
    mutation_point: Optional[int] = None  # Index where real transposition resumes
    junction: str = ""
    junction_quality: str = ""
    observations: List[Observation] = field(default_factory=list)
    error: Optional[str] = None


def test_harmonic_implication(
    subject: Sequence[NoteEvent],
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> HarmonicImplication:
    """
    Analyze the harmonic implications of a subject.

    Looks at the opening degree, the terminal degree, the first arrival on
    the dominant and the implied harmony per beat.
    """
    error = degenerate(subject)
    if error:
        return HarmonicImplication(error=error)

    formatter = BeatFormatter(config.meter)
    degrees = scale_degrees(subject, config)
    result = HarmonicImplication()

    opening = degrees[0]
    result.opening = str(opening)
    result.opening_is_tonic_chord_tone = opening.degree in (1, 3, 5) and opening.is_diatonic
    if result.opening_is_tonic_chord_tone:
        result.observations.append(Observation(STRENGTH, f"Opens on {opening}, a tonic chord tone"))
    else:
        result.observations.append(Observation(CONSIDERATION, f"Opens on {opening}, not a tonic chord tone"))

    terminal = degrees[-1]
    result.terminal = str(terminal)
    quality, description = TERMINAL_QUALITIES.get(terminal.degree, ("unusual", f"Ends on {terminal}"))
    result.terminal_quality = quality
    kind = {"strong": STRENGTH, "ambiguous": CONSIDERATION}.get(quality, INFO)
    result.observations.append(Observation(kind, description))

    length = voice_length(subject)
    for note, degree in zip(subject, degrees):
        on_dominant = degree.degree == 5 and degree.is_diatonic \
            and config.meter.metric_weight(note.onset) >= MAIN_BEAT_WEIGHT
        on_leading_tone = degree.degree == 7 and degree.is_diatonic
        if on_dominant or on_leading_tone:
            result.dominant_arrival = DominantArrival(
                onset=note.onset,
                location=formatter.format_beat(note.onset),
                ratio=note.onset / length,
                degree=str(degree),
            )
            break

    arrival = result.dominant_arrival
    if arrival is not None:
        result.observations.append(Observation(
            INFO, f"{arrival.timing} dominant arrival on {arrival.degree} at {arrival.location}"
        ))

    result.harmony = ChordSequenceInference(config).analyze(subject)
    chains = result.harmony.chains
    if chains:
        progression = ", ".join(
            f"{b.roman_numeral(config.tonic, config.mode)} ({b.name}, {b.chain_length} beat"
            f"{'s' if b.chain_length != 1 else ''})"
            for b in chains
        )
        result.observations.append(Observation(INFO, f"Implied harmony: {progression}"))

    return result


def test_rhythmic_variety(
    subject: Sequence[NoteEvent],
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> RhythmicVariety:
    """Count distinct note values and look for long-short contrast."""
    error = degenerate(subject, minimum=2)
    if error:
        return RhythmicVariety(error=error)

    formatter = BeatFormatter(config.meter)
    durations = [n.duration for n in subject]
    unique = []
    for d in durations:
        rounded = round(d, 3)
        if rounded not in unique:
            unique.append(rounded)
    names = [formatter.format_duration(d) for d in unique]

    observations = []
    if len(unique) == 1:
        observations.append(Observation(CONSIDERATION, f"Uniform rhythm (all {names[0]}s)"))
    else:
        observations.append(Observation(INFO, f"{len(unique)} note values: {', '.join(names)}"))

    pairs = list(zip(durations, durations[1:]))
    long_short = any(prev >= curr * 2 for prev, curr in pairs)
    short_long = any(prev <= curr / 2 for prev, curr in pairs)
    if long_short and short_long:
        observations.append(Observation(STRENGTH, "Good rhythmic contrast"))

    return RhythmicVariety(unique_durations=len(unique), duration_names=names, observations=observations)


def test_tonal_answer(
    subject: Sequence[NoteEvent],
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> TonalAnswer:
    """
    Decide between a real and a tonal answer.

    A ^1-^5 or ^5-^1 leap, or an opening on ^5, must be mutated in the
    answer; real transposition up a fifth resumes after the mutation.
    """
    error = degenerate(subject)
    if error:
        return TonalAnswer(error=error)

    formatter = BeatFormatter(config.meter)
    degrees = scale_degrees(subject, config)
    result = TonalAnswer()

    for i, (curr, nxt) in enumerate(zip(degrees, degrees[1:])):
        if not (curr.is_diatonic and nxt.is_diatonic):
            continue

        if (curr.degree, nxt.degree) in ((1, 5), (5, 1)):
            kind = f"{curr.degree}-{nxt.degree}"
            result.tonal_motions.append(TonalMotion(
                kind,
                f"^{curr.degree} to ^{nxt.degree} at {formatter.format_beat(subject[i].onset)} "
                f"triggers tonal mutation",
            ))
            result.mutation_point = i + 1
            break

        if i == 0 and curr.degree == 5:
            result.tonal_motions.append(TonalMotion("initial-5", "Begins on ^5; answer begins on ^1"))
            for j in range(1, len(degrees)):
                if degrees[j].degree == 1 and degrees[j].is_diatonic \
                        and config.meter.metric_weight(subject[j].onset) >= MAIN_BEAT_WEIGHT:
                    result.mutation_point = j
                    break
            break

    if result.tonal_motions:
        result.answer_type = "tonal"
        for motion in result.tonal_motions:
            result.observations.append(Observation(INFO, motion.description))
        if result.mutation_point is not None:
            result.observations.append(Observation(
                INFO, f"Real transposition resumes at note {result.mutation_point + 1}"
            ))
    else:
        result.observations.append(Observation(INFO, "No ^1-^5 motion - real transposition (up a 5th)"))

    terminal = degrees[-1]
    if terminal.is_diatonic and terminal.degree in JUNCTIONS:
        result.junction, result.junction_quality = JUNCTIONS[terminal.degree]
    else:
        result.junction, result.junction_quality = "?-V", "unusual"
    kind = CONSIDERATION if result.junction_quality == "static" else INFO
    result.observations.append(Observation(kind, f"Junction: {result.junction} ({result.junction_quality})"))

    logger.debug("Answer type %s, mutation at %s", result.answer_type, result.mutation_point)
    return result

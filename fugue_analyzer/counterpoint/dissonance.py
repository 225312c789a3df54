"""Dissonance species classification.

Each dissonant simultaneity is matched against an ordered table of
species-counterpoint rules. Every rule is tried for voice 1 and then for
voice 2 before the next rule is considered; the first match wins.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Sequence

from ..core import (
    AnalysisConfig,
    BeatFormatter,
    DEFAULT_CONFIG,
    Interval,
    NoteEvent,
    pitch_name,
)
from ..core.constants import STRONG_BEAT_WEIGHT, MAIN_BEAT_WEIGHT, STEP_SEMITONES
from .simultaneity import Simultaneity, previous_simultaneity, next_simultaneity

logger = logging.getLogger(__name__)


class DissonanceType(Enum):
    """Species roles of a simultaneity."""
    CONSONANT = "consonant"
    SUSPENSION = "suspension"
    PASSING = "passing"
    NEIGHBOR = "neighbor"
    ANTICIPATION = "anticipation"
    APPOGGIATURA = "appoggiatura"
    UNPREPARED = "unprepared"


@dataclass(frozen=True)
class DissonanceClassification:
    """Species role of one simultaneity."""

    onset: float
    type: DissonanceType
    interval: Interval
    metric_weight: float
    label: Optional[str] = None
    voice: Optional[int] = None  # Voice whose melody explains the dissonance
    description: str = ""
    pitches: str = ""

    @property
    def is_prepared(self) -> bool:
        return self.type not in (DissonanceType.CONSONANT, DissonanceType.UNPREPARED)


class VoiceContext(NamedTuple):
    """Melodic and harmonic surroundings of one voice at a dissonance."""

    sim: Simultaneity
    voice: int
    note: NoteEvent
    prev: Optional[NoteEvent]  # Previous note in the same voice
    next: Optional[NoteEvent]
    prev_sim: Optional[Simultaneity]
    next_sim: Optional[Simultaneity]
    config: AnalysisConfig

    def consonant(self, sim: Optional[Simultaneity]) -> bool:
        return sim is not None and self.config.is_consonant(sim.interval)


def _is_step(a: int, b: int) -> bool:
    return 0 < abs(a - b) <= STEP_SEMITONES


def _suspension(ctx: VoiceContext) -> Optional[str]:
    if ctx.next is None or not ctx.consonant(ctx.prev_sim):
        return None
    held = ctx.prev_sim.index(ctx.voice) == ctx.sim.index(ctx.voice)
    repeated = ctx.prev is not None and ctx.prev.pitch == ctx.note.pitch
    if not (held or repeated):
        return None
    if ctx.next.pitch < ctx.note.pitch and _is_step(ctx.note.pitch, ctx.next.pitch):
        return f"Suspension: {pitch_name(ctx.note.pitch)} prepared, resolves to {pitch_name(ctx.next.pitch)}"
    return None


def _passing(ctx: VoiceContext) -> Optional[str]:
    if ctx.prev is None or ctx.next is None or ctx.sim.metric_weight >= STRONG_BEAT_WEIGHT:
        return None
    into = ctx.note.pitch - ctx.prev.pitch
    out = ctx.next.pitch - ctx.note.pitch
    if into != 0 and (into > 0) == (out > 0) and _is_step(ctx.prev.pitch, ctx.note.pitch) \
            and _is_step(ctx.note.pitch, ctx.next.pitch):
        return (
            f"Passing tone: {pitch_name(ctx.note.pitch)} connects "
            f"{pitch_name(ctx.prev.pitch)} to {pitch_name(ctx.next.pitch)}"
        )
    return None


def _neighbor(ctx: VoiceContext) -> Optional[str]:
    if ctx.prev is None or ctx.next is None or ctx.sim.metric_weight >= STRONG_BEAT_WEIGHT:
        return None
    if ctx.prev.pitch == ctx.next.pitch and _is_step(ctx.prev.pitch, ctx.note.pitch):
        return f"Neighbor tone: {pitch_name(ctx.note.pitch)} decorates {pitch_name(ctx.prev.pitch)}"
    return None


def _anticipation(ctx: VoiceContext) -> Optional[str]:
    if ctx.next is None or not ctx.consonant(ctx.next_sim):
        return None
    if ctx.note.pitch == ctx.next.pitch and ctx.sim.metric_weight < MAIN_BEAT_WEIGHT:
        return f"Anticipation: {pitch_name(ctx.note.pitch)} arrives early"
    return None


def _appoggiatura(ctx: VoiceContext) -> Optional[str]:
    if ctx.prev is None or ctx.next is None or ctx.sim.metric_weight < MAIN_BEAT_WEIGHT:
        return None
    if abs(ctx.note.pitch - ctx.prev.pitch) > STEP_SEMITONES and _is_step(ctx.note.pitch, ctx.next.pitch):
        return (
            f"Appoggiatura: leap to {pitch_name(ctx.note.pitch)}, "
            f"resolves to {pitch_name(ctx.next.pitch)}"
        )
    return None


class DissonanceRule(NamedTuple):
    type: DissonanceType
    label: Callable[[Simultaneity], str]
    match: Callable[[VoiceContext], Optional[str]]


# Precedence is the order of this table
DISSONANCE_RULES = [
    DissonanceRule(
        DissonanceType.SUSPENSION,
        lambda sim: f"{sim.interval.number}-{sim.interval.number - 1} sus",
        _suspension,
    ),
    DissonanceRule(DissonanceType.PASSING, lambda sim: "PT", _passing),
    DissonanceRule(DissonanceType.NEIGHBOR, lambda sim: "N", _neighbor),
    DissonanceRule(DissonanceType.ANTICIPATION, lambda sim: "Ant", _anticipation),
    DissonanceRule(DissonanceType.APPOGGIATURA, lambda sim: "App", _appoggiatura),
]


def _neighbours(notes: Sequence[NoteEvent], index: int):
    prev = notes[index - 1] if index > 0 else None
    nxt = notes[index + 1] if index < len(notes) - 1 else None
    return prev, nxt


def classify_dissonance(
    sim: Simultaneity,
    all_sims: Sequence[Simultaneity],
    voice_a: Sequence[NoteEvent],
    voice_b: Sequence[NoteEvent],
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> DissonanceClassification:
    """
    Classify one simultaneity by its species role.

    Args:
        sim: Simultaneity to classify
        all_sims: Every simultaneity of the two voices, sorted by onset
        voice_a: Notes of voice 1 (sim.index_a indexes into it)
        voice_b: Notes of voice 2
        config: Analysis settings (meter, fourth treatment)

    Returns:
        DissonanceClassification; type CONSONANT for consonances
    """
    pitches = f"{pitch_name(sim.note_a.pitch)}-{pitch_name(sim.note_b.pitch)}"
    if config.is_consonant(sim.interval):
        return DissonanceClassification(
            onset=sim.onset,
            type=DissonanceType.CONSONANT,
            interval=sim.interval,
            metric_weight=sim.metric_weight,
            pitches=pitches,
        )

    prev_sim = previous_simultaneity(sim, all_sims)
    next_sim = next_simultaneity(sim, all_sims)

    contexts = []
    for voice, notes in ((1, voice_a), (2, voice_b)):
        prev, nxt = _neighbours(notes, sim.index(voice))
        contexts.append(VoiceContext(
            sim=sim,
            voice=voice,
            note=sim.note(voice),
            prev=prev,
            next=nxt,
            prev_sim=prev_sim,
            next_sim=next_sim,
            config=config,
        ))

    for rule in DISSONANCE_RULES:
        for ctx in contexts:
            description = rule.match(ctx)
            if description is not None:
                return DissonanceClassification(
                    onset=sim.onset,
                    type=rule.type,
                    interval=sim.interval,
                    metric_weight=sim.metric_weight,
                    label=rule.label(sim),
                    voice=ctx.voice,
                    description=description,
                    pitches=pitches,
                )

    formatter = BeatFormatter(config.meter)
    return DissonanceClassification(
        onset=sim.onset,
        type=DissonanceType.UNPREPARED,
        interval=sim.interval,
        metric_weight=sim.metric_weight,
        label="!",
        description=f"Unprepared dissonance: {sim.interval} at {formatter.format_beat(sim.onset)}",
        pitches=pitches,
    )


@dataclass
class DissonanceReport:
    """All dissonances between two voices, grouped by species."""

    suspensions: List[DissonanceClassification] = field(default_factory=list)
    passing_tones: List[DissonanceClassification] = field(default_factory=list)
    neighbor_tones: List[DissonanceClassification] = field(default_factory=list)
    anticipations: List[DissonanceClassification] = field(default_factory=list)
    appoggiaturas: List[DissonanceClassification] = field(default_factory=list)
    unprepared: List[DissonanceClassification] = field(default_factory=list)

    _BUCKETS = {
        DissonanceType.SUSPENSION: "suspensions",
        DissonanceType.PASSING: "passing_tones",
        DissonanceType.NEIGHBOR: "neighbor_tones",
        DissonanceType.ANTICIPATION: "anticipations",
        DissonanceType.APPOGGIATURA: "appoggiaturas",
        DissonanceType.UNPREPARED: "unprepared",
    }

    def add(self, item: DissonanceClassification) -> None:
        getattr(self, self._BUCKETS[item.type]).append(item)

    @property
    def all(self) -> List[DissonanceClassification]:
        items = []
        for name in self._BUCKETS.values():
            items.extend(getattr(self, name))
        return sorted(items, key=lambda d: d.onset)

    @property
    def total(self) -> int:
        return sum(len(getattr(self, name)) for name in self._BUCKETS.values())

    @property
    def prepared(self) -> int:
        return self.total - len(self.unprepared)

    @property
    def unprepared_count(self) -> int:
        return len(self.unprepared)

    @property
    def prepared_ratio(self) -> float:
        """Share of dissonances with a species explanation (1.0 when there are none)."""
        if self.total == 0:
            return 1.0
        return self.prepared / self.total

    @property
    def summary(self) -> dict:
        return {
            "total": self.total,
            "prepared": self.prepared,
            "unprepared_count": self.unprepared_count,
            "prepared_ratio": self.prepared_ratio,
        }


def analyze_dissonances(
    sims: Sequence[Simultaneity],
    voice_a: Sequence[NoteEvent],
    voice_b: Sequence[NoteEvent],
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> DissonanceReport:
    """Classify every dissonant simultaneity of two voices."""
    report = DissonanceReport()
    for sim in sims:
        if config.is_consonant(sim.interval):
            continue
        item = classify_dissonance(sim, sims, voice_a, voice_b, config)
        logger.debug("%s at %.3f: %s", item.pitches, item.onset, item.type.value)
        report.add(item)
    return report

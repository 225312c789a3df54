"""Chord vocabulary and candidate scoring.

Implements the per-beat half of harmony inference:
- Template vocabulary of triads, sixths and sevenths
- Candidate generation from salience-weighted notes
- Role-weighted scoring with non-chord-tone penalty
- Bass-position factor
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Tuple

from ..core import PITCH_NAMES, MODE_INTERVALS, normalize_mode


class ChordQuality(Enum):
    """Chord qualities known to the inference engine."""
    MAJOR = "major"
    MINOR = "minor"
    DIMINISHED = "diminished"
    AUGMENTED = "augmented"
    DOMINANT_7 = "dominant_7"
    MAJOR_7 = "major_7"
    MINOR_7 = "minor_7"
    HALF_DIMINISHED_7 = "half_diminished_7"
    DIMINISHED_7 = "diminished_7"
    MINOR_MAJOR_7 = "minor_major_7"
    MAJOR_6 = "major_6"
    MINOR_6 = "minor_6"

    @property
    def template(self) -> "ChordTemplate":
        return CHORD_TEMPLATES[self]

    @property
    def symbol(self) -> str:
        """Suffix used in chord symbols (e.g. 'm7')."""
        return {
            "major": "",
            "minor": "m",
            "diminished": "dim",
            "augmented": "aug",
            "dominant_7": "7",
            "major_7": "maj7",
            "minor_7": "m7",
            "half_diminished_7": "m7b5",
            "diminished_7": "dim7",
            "minor_major_7": "m(maj7)",
            "major_6": "6",
            "minor_6": "m6",
        }[self.value]

    @property
    def is_minor_like(self) -> bool:
        return 3 in self.template.intervals


class ChordTemplate(NamedTuple):
    intervals: Tuple[int, ...]  # Chord members above the root
    required: Tuple[int, ...]  # Members that must be present
    complexity: int


CHORD_TEMPLATES = {
    ChordQuality.MAJOR: ChordTemplate((0, 4, 7), (0, 4), 1),
    ChordQuality.MINOR: ChordTemplate((0, 3, 7), (0, 3), 1),
    ChordQuality.DIMINISHED: ChordTemplate((0, 3, 6), (0, 3, 6), 2),
    ChordQuality.AUGMENTED: ChordTemplate((0, 4, 8), (0, 4, 8), 2),
    ChordQuality.DOMINANT_7: ChordTemplate((0, 4, 7, 10), (0, 4, 10), 3),
    ChordQuality.MAJOR_7: ChordTemplate((0, 4, 7, 11), (0, 4, 11), 3),
    ChordQuality.MINOR_7: ChordTemplate((0, 3, 7, 10), (0, 3, 10), 3),
    ChordQuality.HALF_DIMINISHED_7: ChordTemplate((0, 3, 6, 10), (0, 3, 6, 10), 4),
    ChordQuality.DIMINISHED_7: ChordTemplate((0, 3, 6, 9), (0, 3, 6, 9), 4),
    ChordQuality.MINOR_MAJOR_7: ChordTemplate((0, 3, 7, 11), (0, 3, 11), 4),
    ChordQuality.MAJOR_6: ChordTemplate((0, 4, 7, 9), (0, 4, 9), 3),
    ChordQuality.MINOR_6: ChordTemplate((0, 3, 7, 9), (0, 3, 9), 3),
}


class ChordKey(NamedTuple):
    """Composite (root, quality) key identifying a harmony."""
    root: int  # Pitch class 0-11
    quality: ChordQuality

    @property
    def name(self) -> str:
        return f"{PITCH_NAMES[self.root]} {self.quality.value}"

    @property
    def symbol(self) -> str:
        return f"{PITCH_NAMES[self.root]}{self.quality.symbol}"


class SalientNote(NamedTuple):
    """A note heard at a beat, with its weight as harmonic evidence."""
    pitch: int
    salience: float
    onset: float

    @property
    def pitch_class(self) -> int:
        return self.pitch % 12


@dataclass
class ChordCandidate:
    """A candidate chord with its score at one beat."""
    root: int
    quality: ChordQuality
    score: float
    complexity: int
    matched: List[SalientNote] = field(default_factory=list)
    non_chord_tones: List[SalientNote] = field(default_factory=list)
    bass_factor: float = 1.0

    @property
    def key(self) -> ChordKey:
        return ChordKey(self.root, self.quality)

    @property
    def name(self) -> str:
        return self.key.name


class ChordScorer:
    """Score chord hypotheses against salience-weighted notes.

    Matched notes add salience times a role weight; notes outside the chord
    subtract whatever salience they carry above a small floor. The total is
    scaled by the chord member found in the bass.
    """

    NON_CHORD_TONE_FLOOR = 0.05

    # Interval above the root -> weight as chord evidence
    ROLE_WEIGHTS = {
        0: 1.1,   # Root
        3: 1.0,   # Minor third
        4: 1.0,   # Major third
        7: 0.8,   # Fifth
        10: 0.8,  # Minor seventh
        11: 0.8,  # Major seventh
    }
    OTHER_ROLE_WEIGHT = 0.6

    # Interval of the lowest note above the root -> multiplier
    BASS_FACTORS = {
        0: 1.1,   # Root position
        7: 0.9,   # Fifth in the bass
        10: 0.8,  # Seventh in the bass
        11: 0.8,
    }

    def __init__(self, vocabulary: Optional[Sequence[ChordQuality]] = None):
        """
        Initialize ChordScorer.

        Args:
            vocabulary: Qualities to consider (defaults to all)
        """
        self.vocabulary = list(vocabulary) if vocabulary is not None else list(ChordQuality)

    def score(self, root: int, quality: ChordQuality, notes: Sequence[SalientNote]) -> Optional[ChordCandidate]:
        """
        Score one (root, quality) hypothesis.

        Returns:
            ChordCandidate, or None if a required member is missing or
            fewer than two distinct pitches sound
        """
        template = quality.template
        pitch_classes = {n.pitch_class for n in notes}
        if any((root + r) % 12 not in pitch_classes for r in template.required):
            return None
        if len({n.pitch for n in notes}) < 2:
            return None

        matched_salience = 0.0
        penalty = 0.0
        matched = []
        non_chord_tones = []
        for note in notes:
            interval = (note.pitch_class - root) % 12
            if interval in template.intervals:
                matched_salience += note.salience * self.ROLE_WEIGHTS.get(interval, self.OTHER_ROLE_WEIGHT)
                matched.append(note)
            else:
                penalty += max(note.salience - self.NON_CHORD_TONE_FLOOR, 0.0)
                non_chord_tones.append(note)

        bass = min(notes, key=lambda n: n.pitch)
        bass_factor = self.BASS_FACTORS.get((bass.pitch_class - root) % 12, 1.0)

        return ChordCandidate(
            root=root,
            quality=quality,
            score=(matched_salience - penalty) * bass_factor,
            complexity=template.complexity,
            matched=matched,
            non_chord_tones=non_chord_tones,
            bass_factor=bass_factor,
        )

    def candidates(self, notes: Sequence[SalientNote]) -> List[ChordCandidate]:
        """Every valid candidate for a set of notes, best first."""
        roots = sorted({n.pitch_class for n in notes})
        found = []
        for root in roots:
            for quality in self.vocabulary:
                candidate = self.score(root, quality, notes)
                if candidate is not None:
                    found.append(candidate)
        found.sort(key=lambda c: c.score, reverse=True)
        return found


def roman_numeral(key: ChordKey, tonic: int, mode: str = "major") -> str:
    """
    Roman numeral of a chord in a key.

    Args:
        key: Chord root and quality
        tonic: Tonic pitch class
        mode: Mode name

    Returns:
        Roman numeral (e.g. "IV", "ii", "V7"); non-diatonic roots are
        returned as a parenthesised chord symbol
    """
    degrees = MODE_INTERVALS[normalize_mode(mode)]
    degree = degrees.get((key.root - tonic) % 12)
    if degree is None:
        return f"({key.symbol})"

    numeral = ["I", "II", "III", "IV", "V", "VI", "VII"][degree - 1]
    if key.quality.is_minor_like:
        numeral = numeral.lower()

    if key.quality in (ChordQuality.DIMINISHED, ChordQuality.DIMINISHED_7):
        numeral += "°"
    elif key.quality is ChordQuality.HALF_DIMINISHED_7:
        numeral += "ø"
    elif key.quality is ChordQuality.AUGMENTED:
        numeral += "+"

    if key.quality.value.endswith("_7"):
        numeral += "7"
    elif key.quality.value.endswith("_6"):
        numeral += "6"
    return numeral

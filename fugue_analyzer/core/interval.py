"""Interval model - classify a semitone distance."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Quality(Enum):
    """Interval qualities."""
    PERFECT = "perfect"
    MAJOR = "major"
    MINOR = "minor"
    AUGMENTED = "augmented"
    DIMINISHED = "diminished"

    @property
    def abbreviation(self) -> str:
        return {
            "perfect": "P",
            "major": "M",
            "minor": "m",
            "augmented": "A",
            "diminished": "d",
        }[self.value]


# Residue mod 12 -> (interval number, quality)
INTERVAL_TABLE = {
    0: (1, Quality.PERFECT),
    1: (2, Quality.MINOR),
    2: (2, Quality.MAJOR),
    3: (3, Quality.MINOR),
    4: (3, Quality.MAJOR),
    5: (4, Quality.PERFECT),
    6: (4, Quality.AUGMENTED),
    7: (5, Quality.PERFECT),
    8: (6, Quality.MINOR),
    9: (6, Quality.MAJOR),
    10: (7, Quality.MINOR),
    11: (7, Quality.MAJOR),
}

CONSONANT_NUMBERS = frozenset({1, 3, 5, 6, 8})


@dataclass(frozen=True)
class Interval:
    """A harmonic interval reduced to within the octave."""

    semitones: int  # Residue 0-11
    number: int  # 1-8; 8 only for a compound unison (octave)
    quality: Quality

    @property
    def is_consonant(self) -> bool:
        return (
            self.number in CONSONANT_NUMBERS
            and self.quality not in (Quality.AUGMENTED, Quality.DIMINISHED)
        )

    @property
    def is_perfect(self) -> bool:
        return self.quality is Quality.PERFECT

    @property
    def is_perfect_fourth(self) -> bool:
        return self.number == 4 and self.quality is Quality.PERFECT

    @property
    def perfect_kind(self) -> Optional[int]:
        """5 for a perfect fifth, 8 for unison or octave, None otherwise."""
        if not self.is_consonant or not self.is_perfect:
            return None
        return 5 if self.number == 5 else 8

    @property
    def name(self) -> str:
        return f"{self.quality.abbreviation}{self.number}"

    def __str__(self) -> str:
        return self.name


def classify(semitones: int) -> Interval:
    """
    Classify a semitone distance.

    The distance is reduced modulo 12. A non-zero multiple of 12 is an
    octave (number 8), zero is a unison (number 1).
    """
    residue = semitones % 12
    number, quality = INTERVAL_TABLE[residue]
    if residue == 0 and semitones != 0:
        number = 8
    return Interval(semitones=residue, number=number, quality=quality)


def interval_between(pitch_a: int, pitch_b: int) -> Interval:
    """Classify the harmonic interval between two pitches."""
    return classify(abs(pitch_a - pitch_b))

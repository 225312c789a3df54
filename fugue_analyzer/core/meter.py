"""Meter handling - validation, beat grid and metric weight.

All positions are in quarter-note units. A meter is validated once, when it
is coerced, so every downstream computation can rely on a positive integer
pair.
"""

import math
import numbers
from dataclasses import dataclass
from typing import Tuple

from .constants import TIME_TOLERANCE


class InvalidMeter(ValueError):
    """Meter is not a two-element sequence of positive integers."""


def _near(a: float, b: float, tolerance: float = TIME_TOLERANCE) -> bool:
    return abs(a - b) < tolerance


@dataclass(frozen=True)
class Meter:
    """A time signature, e.g. Meter(6, 8)."""

    numerator: int
    denominator: int

    def __post_init__(self):
        for value in (self.numerator, self.denominator):
            if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value <= 0:
                raise InvalidMeter(
                    f"Meter must be a pair of positive integers, got "
                    f"({self.numerator!r}, {self.denominator!r})"
                )

    @classmethod
    def coerce(cls, value) -> "Meter":
        """
        Build a Meter from a Meter or a [numerator, denominator] pair.

        Raises:
            InvalidMeter: For strings, wrong lengths or non-positive values
        """
        if isinstance(value, Meter):
            return value
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
            raise InvalidMeter(f"Meter must be a [numerator, denominator] pair, got {value!r}")
        if len(value) != 2:
            raise InvalidMeter(f"Meter must have exactly two elements, got {value!r}")
        return cls(value[0], value[1])

    @property
    def is_compound(self) -> bool:
        """6/8, 9/8, 12/8 - beats grouped in three eighth notes."""
        return self.numerator % 3 == 0 and self.denominator == 8 and self.numerator >= 6

    @property
    def subdivision_length(self) -> float:
        """Length of the notated unit (denominator) in quarter notes."""
        return 4.0 / self.denominator

    @property
    def beat_length(self) -> float:
        """Length of one main beat in quarter notes."""
        if self.is_compound:
            return 3 * self.subdivision_length
        return self.subdivision_length

    @property
    def beats_per_measure(self) -> int:
        if self.is_compound:
            return self.numerator // 3
        return self.numerator

    @property
    def measure_length(self) -> float:
        """Length of a measure in quarter notes."""
        return self.numerator * self.subdivision_length

    def as_tuple(self) -> Tuple[int, int]:
        return (self.numerator, self.denominator)

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"

    def position_in_measure(self, onset: float) -> float:
        """Offset of a position from the start of its measure."""
        pos = onset % self.measure_length
        if self.measure_length - pos < TIME_TOLERANCE:
            pos = 0.0
        return pos

    def metric_weight(self, onset: float) -> float:
        """
        Get metric weight for a position (downbeat = 1.0).

        Args:
            onset: Position in quarter notes

        Returns:
            Weight between 0.2 and 1.0
        """
        pos = self.position_in_measure(onset)
        if _near(pos, 0.0):
            return 1.0

        if self.is_compound:
            return self._compound_weight(pos)
        return self._simple_weight(pos)

    def _compound_weight(self, pos: float) -> float:
        main_beats = self.numerator // 3
        main_index = math.floor(pos / self.beat_length + TIME_TOLERANCE)
        sub_pos = (pos - main_index * self.beat_length) / self.subdivision_length

        if _near(sub_pos, 0.0):
            if main_beats == 2:
                return 0.75
            if main_beats == 4:
                # 12/8: the third main beat carries the secondary accent
                return 0.75 if main_index == 2 else 0.6
            if main_beats == 3:
                return 0.65
            return 0.6

        if _near(sub_pos, 1.0) or _near(sub_pos, 2.0):
            return 0.3
        return 0.2

    def _simple_weight(self, pos: float) -> float:
        pos_beats = pos / self.beat_length
        beat = round(pos_beats)

        if not _near(pos_beats, beat):
            fraction = pos_beats - math.floor(pos_beats)
            if _near(fraction, 0.5, 0.05):
                return 0.35
            return 0.25

        if self.numerator == 4:
            return 0.75 if beat == 2 else 0.5
        if self.numerator == 5:
            if beat == 3:
                return 0.7
            if beat == 2:
                return 0.6
            return 0.5
        if self.numerator == 6:
            return 0.75 if beat == 3 else 0.5
        return 0.5

    def metric_position(self, onset: float) -> str:
        """Describe the metric position of an onset."""
        weight = self.metric_weight(onset)
        if weight >= 0.9:
            return "downbeat"
        if weight >= 0.7:
            return "secondary accent"
        if weight >= 0.45:
            return "weak beat"
        if weight >= 0.3:
            return "subdivision"
        return "off-beat"


COMMON_TIME = Meter(4, 4)

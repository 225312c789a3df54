"""Human-readable beat positions, durations and distances."""

import math

from .constants import TIME_TOLERANCE
from .meter import Meter, COMMON_TIME

# (fraction, glyph) pairs recognised within a beat
_FRACTION_GLYPHS = [
    (0.5, "½"),
    (0.25, "¼"),
    (0.75, "¾"),
    (1 / 3, "⅓"),
    (2 / 3, "⅔"),
]

_DURATION_NAMES = [
    (4.0, "whole"),
    (3.0, "dotted half"),
    (2.0, "half"),
    (1.5, "dotted quarter"),
    (1.0, "quarter"),
    (0.75, "dotted eighth"),
    (0.5, "eighth"),
    (0.25, "sixteenth"),
    (2 / 3, "triplet quarter"),
    (1 / 3, "triplet eighth"),
]


def _fraction_glyph(fraction: float) -> str:
    for value, glyph in _FRACTION_GLYPHS:
        if abs(fraction - value) < 0.05:
            return glyph
    return ""


class BeatFormatter:
    """Format positions in quarter notes as measure/beat labels."""

    def __init__(self, meter: Meter = COMMON_TIME):
        self.meter = Meter.coerce(meter)

    def format_beat(self, position: float) -> str:
        """Format a position as 'beat 2½' or 'm.3 beat 1'."""
        measure = int(math.floor((position + TIME_TOLERANCE) / self.meter.measure_length)) + 1
        pos_in_measure = self.meter.position_in_measure(position)

        beats = pos_in_measure / self.meter.beat_length
        whole = int(math.floor(beats + 1e-6))
        fraction = beats - whole

        label = str(whole + 1)
        if fraction > 0.01:
            glyph = _fraction_glyph(fraction)
            label += glyph if glyph else f"+{fraction:.2f}"

        if measure == 1:
            return f"beat {label}"
        return f"m.{measure} beat {label}"

    def format_duration(self, duration: float) -> str:
        """Format a duration as a note value name."""
        for value, name in _DURATION_NAMES:
            if abs(duration - value) < 0.01:
                return name
        if duration >= 1:
            return f"{duration:.2f} beats"
        return f"{duration * 100:.0f}% beat"

    def format_distance(self, distance: float) -> str:
        """Format a distance in quarter notes as a count of the meter's beats."""
        distance = distance / self.meter.beat_length
        if abs(distance - round(distance)) < 0.01:
            beats = int(round(distance))
            return "1 beat" if beats == 1 else f"{beats} beats"

        whole = int(math.floor(distance))
        glyph = _fraction_glyph(distance - whole)
        if not glyph:
            return f"{distance:.2f} beats"
        if whole == 0:
            return f"{glyph} beat"
        return f"{whole}{glyph} beats"

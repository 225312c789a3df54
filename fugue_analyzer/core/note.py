"""NoteEvent data class - the fundamental unit of contrapuntal analysis."""

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from .constants import PITCH_NAMES, MODE_INTERVALS, MODE_ALIASES, TIME_TOLERANCE


class OverlappingNotes(ValueError):
    """Two notes of the same voice sound at the same time."""


def normalize_mode(mode: str) -> str:
    """Resolve a mode name or alias to a key of MODE_INTERVALS."""
    name = MODE_ALIASES.get(mode.lower(), mode.lower())
    if name not in MODE_INTERVALS:
        raise ValueError(f"Unknown mode: {mode!r}")
    return name


@dataclass(frozen=True)
class ScaleDegree:
    """A scale degree (1-7) with an optional chromatic alteration."""

    degree: int
    alteration: int = 0  # -1 flat, 0 natural, +1 sharp

    def __str__(self) -> str:
        prefix = {-1: "♭", 1: "♯"}.get(self.alteration, "")
        return f"^{prefix}{self.degree}"

    @property
    def is_diatonic(self) -> bool:
        return self.alteration == 0

    @classmethod
    def from_pitch(cls, pitch: int, tonic: int, mode: str = "major") -> "ScaleDegree":
        """
        Compute the scale degree of a pitch relative to a tonic and mode.

        Non-native pitches take the degree of the neighbouring native member:
        a raised version of the member below, otherwise a lowered version of
        the member above.
        """
        table = MODE_INTERVALS[normalize_mode(mode)]
        interval = (pitch - tonic) % 12

        if interval in table:
            return cls(table[interval], 0)

        raised = (interval - 1) % 12
        if raised in table:
            return cls(table[raised], 1)

        lowered = (interval + 1) % 12
        if lowered in table:
            return cls(table[lowered], -1)

        return cls(1, 0)

    def transposed_up_fifth(self) -> "ScaleDegree":
        """Degree reached by a diatonic fifth, as in a real answer."""
        return ScaleDegree((self.degree + 4 - 1) % 7 + 1, self.alteration)


@dataclass(frozen=True)
class NoteEvent:
    """Represents one sounding pitch in a voice."""

    pitch: int  # Absolute semitone number (MIDI)
    onset: float  # Start time in quarter notes
    duration: float  # Length in quarter notes
    scale_degree: Optional[ScaleDegree] = None
    source: str = ""  # Free annotation, e.g. the notation token

    def __post_init__(self):
        if self.duration <= 0:
            raise ValueError(f"Note duration must be positive, got {self.duration}")
        if self.onset < 0:
            raise ValueError(f"Note onset must be non-negative, got {self.onset}")

    @property
    def offset(self) -> float:
        """End time in quarter notes."""
        return self.onset + self.duration

    @property
    def pitch_class(self) -> int:
        """Get pitch class (0-11, where 0=C)."""
        return self.pitch % 12

    @property
    def pitch_name(self) -> str:
        """Get note name (e.g., 'C4', 'A#3')."""
        return pitch_name(self.pitch)

    def transposed(self, semitones: int, scale_degree: Optional[ScaleDegree] = None) -> "NoteEvent":
        """Copy of this note moved by a number of semitones."""
        return replace(
            self,
            pitch=self.pitch + semitones,
            scale_degree=scale_degree if scale_degree is not None else self.scale_degree,
        )

    def shifted(self, delta: float) -> "NoteEvent":
        """Copy of this note moved in time."""
        return replace(self, onset=self.onset + delta)


def pitch_name(midi: int) -> str:
    """Get note name with octave for a MIDI number (60 -> 'C4')."""
    return f"{PITCH_NAMES[midi % 12]}{midi // 12 - 1}"


def validate_voice(notes: Sequence[NoteEvent]) -> None:
    """
    Check that no two notes of a voice overlap in time.

    Raises:
        OverlappingNotes: If a note starts before the previous one ends
    """
    ordered = sorted(notes, key=lambda n: n.onset)
    for prev, curr in zip(ordered, ordered[1:]):
        if curr.onset < prev.offset - TIME_TOLERANCE:
            raise OverlappingNotes(
                f"{curr.pitch_name} at {curr.onset} starts before "
                f"{prev.pitch_name} ends at {prev.offset}"
            )


def voice_length(notes: Sequence[NoteEvent]) -> float:
    """Total length of a voice in quarter notes (end of its last note)."""
    if not notes:
        return 0.0
    return max(n.offset for n in notes)


def assign_scale_degrees(notes: Sequence[NoteEvent], tonic: int, mode: str = "major") -> List[NoteEvent]:
    """Return copies of the notes with scale degrees computed for a key."""
    return [
        replace(n, scale_degree=ScaleDegree.from_pitch(n.pitch, tonic, mode))
        for n in notes
    ]

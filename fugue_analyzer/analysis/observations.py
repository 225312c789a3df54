"""Observation records shared by the subject, pairing and stretto tests."""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..core import AnalysisConfig, NoteEvent, ScaleDegree

STRENGTH = "strength"
CONSIDERATION = "consideration"
INFO = "info"


@dataclass(frozen=True)
class Observation:
    """A single remark about a line or a combination of lines."""
    type: str  # strength, consideration or info
    description: str


def scale_degrees(notes: Sequence[NoteEvent], config: AnalysisConfig) -> List[ScaleDegree]:
    """Scale degree of every note, computing missing ones from the configured key."""
    return [
        n.scale_degree if n.scale_degree is not None
        else ScaleDegree.from_pitch(n.pitch, config.tonic, config.mode)
        for n in notes
    ]


def degenerate(*voices: Sequence[NoteEvent], minimum: int = 1) -> Optional[str]:
    """'Empty' or 'Too short' when a voice cannot be analyzed, else None."""
    if any(len(v) == 0 for v in voices):
        return "Empty"
    if any(len(v) < minimum for v in voices):
        return "Too short"
    return None

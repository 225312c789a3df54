"""Tonal inference: implied harmony and key detection."""

from .chords import (
    ChordQuality,
    ChordTemplate,
    CHORD_TEMPLATES,
    ChordKey,
    ChordCandidate,
    ChordScorer,
    SalientNote,
    roman_numeral,
)
from .harmony import (
    BeatSegment,
    BeatHarmony,
    HarmonySequence,
    ChordSequenceSearch,
    ChordSequenceInference,
)
from .key import KeyDetector, KeyInfo, KeyCandidate

__all__ = [
    "ChordQuality",
    "ChordTemplate",
    "CHORD_TEMPLATES",
    "ChordKey",
    "ChordCandidate",
    "ChordScorer",
    "SalientNote",
    "roman_numeral",
    "BeatSegment",
    "BeatHarmony",
    "HarmonySequence",
    "ChordSequenceSearch",
    "ChordSequenceInference",
    "KeyDetector",
    "KeyInfo",
    "KeyCandidate",
]

"""Core types and constants for Fugue Analyzer."""

from .note import (
    NoteEvent,
    ScaleDegree,
    OverlappingNotes,
    pitch_name,
    validate_voice,
    voice_length,
    assign_scale_degrees,
    normalize_mode,
)
from .interval import Interval, Quality, classify, interval_between
from .meter import Meter, InvalidMeter, COMMON_TIME
from .config import AnalysisConfig, DEFAULT_CONFIG
from .formatting import BeatFormatter
from .constants import (
    PITCH_NAMES,
    FLAT_PITCH_NAMES,
    MODE_INTERVALS,
    TIME_TOLERANCE,
    DEFAULT_TIME_SIGNATURE,
)

__all__ = [
    "NoteEvent",
    "ScaleDegree",
    "OverlappingNotes",
    "pitch_name",
    "validate_voice",
    "voice_length",
    "assign_scale_degrees",
    "normalize_mode",
    "Interval",
    "Quality",
    "classify",
    "interval_between",
    "Meter",
    "InvalidMeter",
    "COMMON_TIME",
    "AnalysisConfig",
    "DEFAULT_CONFIG",
    "BeatFormatter",
    "PITCH_NAMES",
    "FLAT_PITCH_NAMES",
    "MODE_INTERVALS",
    "TIME_TOLERANCE",
    "DEFAULT_TIME_SIGNATURE",
]

"""Fugue Analyzer - Contrapuntal viability of fugue subjects.

Architecture Layers:
    1. core/         - Notes, intervals, meter, configuration, formatting
    2. counterpoint/ - Two-voice engines (simultaneities, parallels, motion, dissonance)
    3. inference/    - Tonal understanding (implied harmony, key)
    4. analysis/     - Fugue tests (subject, pairing, stretto)
    5. input/        - Note loading (JSON, MIDI)
    6. output/       - JSON-ready reports
"""

__version__ = "0.1.0"

# Core types
from .core import (
    NoteEvent,
    ScaleDegree,
    Interval,
    Meter,
    InvalidMeter,
    OverlappingNotes,
    AnalysisConfig,
    BeatFormatter,
    classify,
)

# Counterpoint layer
from .counterpoint import (
    Simultaneity,
    find_simultaneities,
    check_parallel_perfects,
    MotionClassifier,
    classify_motion,
    classify_dissonance,
    analyze_dissonances,
)

# Inference layer
from .inference import ChordSequenceInference, HarmonySequence, KeyDetector

# Input layer
from .input import NoteLoader, Score

# Output layer
from .output import to_dict

__all__ = [
    # Core
    "NoteEvent",
    "ScaleDegree",
    "Interval",
    "Meter",
    "InvalidMeter",
    "OverlappingNotes",
    "AnalysisConfig",
    "BeatFormatter",
    "classify",
    # Counterpoint
    "Simultaneity",
    "find_simultaneities",
    "check_parallel_perfects",
    "MotionClassifier",
    "classify_motion",
    "classify_dissonance",
    "analyze_dissonances",
    # Inference
    "ChordSequenceInference",
    "HarmonySequence",
    "KeyDetector",
    # Input
    "NoteLoader",
    "Score",
    # Output
    "to_dict",
]

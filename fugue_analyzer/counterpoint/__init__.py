"""Two-voice counterpoint engines: simultaneities, parallels, motion, dissonance."""

from .simultaneity import (
    Simultaneity,
    find_simultaneities,
    previous_simultaneity,
    next_simultaneity,
)
from .parallels import ParallelViolation, check_parallel_perfects
from .motion import (
    MotionType,
    MotionTransition,
    MotionSummary,
    MotionClassifier,
    ObliqueReassessment,
    classify_motion,
    leap_type,
)
from .dissonance import (
    DissonanceType,
    DissonanceClassification,
    DissonanceReport,
    DissonanceRule,
    DISSONANCE_RULES,
    classify_dissonance,
    analyze_dissonances,
)

__all__ = [
    "Simultaneity",
    "find_simultaneities",
    "previous_simultaneity",
    "next_simultaneity",
    "ParallelViolation",
    "check_parallel_perfects",
    "MotionType",
    "MotionTransition",
    "MotionSummary",
    "MotionClassifier",
    "ObliqueReassessment",
    "classify_motion",
    "leap_type",
    "DissonanceType",
    "DissonanceClassification",
    "DissonanceReport",
    "DissonanceRule",
    "DISSONANCE_RULES",
    "classify_dissonance",
    "analyze_dissonances",
]

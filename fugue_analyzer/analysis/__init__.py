"""Higher-level fugue tests built on the counterpoint and inference engines."""

from .observations import Observation, STRENGTH, CONSIDERATION, INFO
from .subject import (
    HarmonicImplication,
    RhythmicVariety,
    TonalAnswer,
    test_harmonic_implication,
    test_rhythmic_variety,
    test_tonal_answer,
)
from .pairing import (
    RhythmicComplementarity,
    ContourIndependence,
    DoubleCounterpoint,
    ModulatoryRobustness,
    test_rhythmic_complementarity,
    test_contour_independence,
    test_double_counterpoint,
    test_modulatory_robustness,
)
from .stretto import StrettoReport, StrettoResult, evaluate_distance, test_stretto_viability

__all__ = [
    "Observation",
    "STRENGTH",
    "CONSIDERATION",
    "INFO",
    "HarmonicImplication",
    "RhythmicVariety",
    "TonalAnswer",
    "test_harmonic_implication",
    "test_rhythmic_variety",
    "test_tonal_answer",
    "RhythmicComplementarity",
    "ContourIndependence",
    "DoubleCounterpoint",
    "ModulatoryRobustness",
    "test_rhythmic_complementarity",
    "test_contour_independence",
    "test_double_counterpoint",
    "test_modulatory_robustness",
    "StrettoReport",
    "StrettoResult",
    "evaluate_distance",
    "test_stretto_viability",
]

"""Key detection - estimate the tonic and mode of a melodic line.

Correlates a duration-weighted pitch-class distribution against
Krumhansl-Schmuckler (or Temperley) key profiles. Used when the caller
does not state the key of a subject.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from ..core import NoteEvent, PITCH_NAMES

logger = logging.getLogger(__name__)


@dataclass
class KeyCandidate:
    """A candidate key with its correlation."""
    tonic: int
    mode: str
    correlation: float

    @property
    def name(self) -> str:
        return f"{PITCH_NAMES[self.tonic]} {_MODE_LABELS.get(self.mode, self.mode)}"


_MODE_LABELS = {"natural_minor": "minor"}


@dataclass
class KeyInfo:
    """Container for key detection results."""

    tonic: int  # Pitch class 0-11
    mode: str  # Mode name as used by AnalysisConfig
    confidence: float  # 0.0 - 1.0
    distribution: Optional[np.ndarray] = None  # 12-element pitch-class weights
    alternatives: List[KeyCandidate] = field(default_factory=list)
    ambiguity: float = 0.0  # 0 = clear, 1 = very ambiguous

    @property
    def name(self) -> str:
        return f"{PITCH_NAMES[self.tonic]} {_MODE_LABELS.get(self.mode, self.mode)}"

    @property
    def relative(self) -> Optional[str]:
        """Relative major/minor key name."""
        if self.mode == "major":
            return f"{PITCH_NAMES[(self.tonic - 3) % 12]} minor"
        if self.mode in ("natural_minor", "harmonic_minor"):
            return f"{PITCH_NAMES[(self.tonic + 3) % 12]} major"
        return None


class KeyDetector:
    """Detect the key of a melodic line from its notes.

    Features:
    - Krumhansl-Schmuckler or Temperley profiles
    - Optional modal profiles
    - Ambiguity flag for closely scoring keys
    """

    # Krumhansl-Schmuckler key profiles (probe-tone ratings)
    KRUMHANSL_MAJOR = np.array(
        [6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88]
    )
    KRUMHANSL_MINOR = np.array(
        [6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17]
    )

    # Temperley key profiles (corpus-based)
    TEMPERLEY_MAJOR = np.array(
        [5.0, 2.0, 3.5, 2.0, 4.5, 4.0, 2.0, 4.5, 2.0, 3.5, 1.5, 4.0]
    )
    TEMPERLEY_MINOR = np.array(
        [5.0, 2.0, 3.5, 4.5, 2.0, 4.0, 2.0, 4.5, 3.5, 2.0, 1.5, 4.0]
    )

    MODE_PROFILES = {
        "dorian": np.array([5.0, 2.0, 3.5, 4.5, 2.0, 4.0, 2.0, 4.5, 2.0, 3.5, 4.0, 2.0]),
        "phrygian": np.array([5.0, 4.0, 2.0, 3.5, 2.0, 4.0, 2.0, 4.5, 3.5, 2.0, 4.0, 2.0]),
        "lydian": np.array([5.0, 2.0, 3.5, 2.0, 4.5, 2.0, 4.0, 4.5, 2.0, 3.5, 2.0, 4.0]),
        "mixolydian": np.array([5.0, 2.0, 3.5, 2.0, 4.5, 4.0, 2.0, 4.5, 2.0, 3.5, 4.0, 2.0]),
    }

    def __init__(
        self,
        profile_type: str = "krumhansl",
        detect_modes: bool = False,
        ambiguity_threshold: float = 0.05,
        min_notes: int = 3,
        boundary_weight: float = 1.5,
    ):
        """
        Initialize KeyDetector.

        Args:
            profile_type: Key profile algorithm ("krumhansl" or "temperley")
            detect_modes: Whether to test church modes beyond major/minor
            ambiguity_threshold: Correlation difference to flag ambiguity
            min_notes: Minimum notes required for a detection
            boundary_weight: Extra weight on the first and last notes
        """
        self.profile_type = profile_type
        self.detect_modes = detect_modes
        self.ambiguity_threshold = ambiguity_threshold
        self.min_notes = min_notes
        self.boundary_weight = boundary_weight

        if profile_type == "temperley":
            self.major_profile = self.TEMPERLEY_MAJOR
            self.minor_profile = self.TEMPERLEY_MINOR
        else:
            self.major_profile = self.KRUMHANSL_MAJOR
            self.minor_profile = self.KRUMHANSL_MINOR

    def pitch_class_distribution(self, notes: Sequence[NoteEvent]) -> np.ndarray:
        """
        Build a normalized, duration-weighted pitch-class distribution.

        Subjects usually begin and end on tonic-chord members, so the first
        and last notes are weighted up by boundary_weight.
        """
        distribution = np.zeros(12)
        for i, note in enumerate(notes):
            weight = note.duration
            if i == 0 or i == len(notes) - 1:
                weight *= self.boundary_weight
            distribution[note.pitch_class] += weight

        if distribution.sum() > 0:
            distribution /= distribution.sum()
        return distribution

    def analyze(self, notes: Sequence[NoteEvent]) -> KeyInfo:
        """
        Estimate the key of a line.

        Args:
            notes: Notes of one or more voices

        Returns:
            KeyInfo; confidence 0 when there are fewer than min_notes notes
        """
        if len(notes) < self.min_notes:
            return KeyInfo(tonic=0, mode="major", confidence=0.0, distribution=np.zeros(12), ambiguity=1.0)

        distribution = self.pitch_class_distribution(notes)
        candidates = self._candidates(distribution)
        candidates.sort(key=lambda c: c.correlation, reverse=True)
        best = candidates[0]

        # Correlation lies in [-1, 1]
        confidence = max(0.0, min(1.0, (best.correlation + 1) / 2))
        close = [
            c for c in candidates[1:]
            if best.correlation - c.correlation < self.ambiguity_threshold
        ]
        ambiguity = min(1.0, len(close) / 3.0)

        logger.debug("Key %s (r=%.3f, %d close rivals)", best.name, best.correlation, len(close))
        return KeyInfo(
            tonic=best.tonic,
            mode=best.mode,
            confidence=confidence,
            distribution=distribution,
            alternatives=candidates[1:4],
            ambiguity=ambiguity,
        )

    def _candidates(self, distribution: np.ndarray) -> List[KeyCandidate]:
        candidates = []
        for tonic in range(12):
            rotated = np.roll(distribution, -tonic)
            candidates.append(KeyCandidate(tonic, "major", self._correlate(rotated, self.major_profile)))
            candidates.append(KeyCandidate(tonic, "natural_minor", self._correlate(rotated, self.minor_profile)))
            if self.detect_modes:
                for mode, profile in self.MODE_PROFILES.items():
                    candidates.append(KeyCandidate(tonic, mode, self._correlate(rotated, profile)))
        return candidates

    @staticmethod
    def _correlate(distribution: np.ndarray, profile: np.ndarray) -> float:
        """Pearson correlation, 0 for degenerate input."""
        if distribution.std() == 0 or profile.std() == 0:
            return 0.0
        corr = np.corrcoef(distribution, profile)[0, 1]
        if np.isnan(corr):
            return 0.0
        return float(corr)

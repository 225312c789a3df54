"""Analysis configuration passed explicitly into every entry point."""

from dataclasses import dataclass, field

from .interval import Interval
from .meter import Meter, COMMON_TIME
from .note import normalize_mode


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Immutable settings shared by a batch of related analyses.

    Attributes:
        meter: Time signature used for metric weights and beat grids
        p4_dissonant: Treat a perfect fourth against the bass as a dissonance
        tonic: Tonic pitch class (0-11) for scale degrees
        mode: Mode name (see MODE_INTERVALS)
    """

    meter: Meter = field(default=COMMON_TIME)
    p4_dissonant: bool = True
    tonic: int = 0
    mode: str = "major"

    def __post_init__(self):
        if not isinstance(self.meter, Meter):
            object.__setattr__(self, "meter", Meter.coerce(self.meter))
        object.__setattr__(self, "mode", normalize_mode(self.mode))
        object.__setattr__(self, "tonic", self.tonic % 12)

    @classmethod
    def create(cls, meter=(4, 4), p4_dissonant: bool = True, tonic: int = 0, mode: str = "major") -> "AnalysisConfig":
        """Build a config from raw values, validating the meter."""
        return cls(meter=Meter.coerce(meter), p4_dissonant=p4_dissonant, tonic=tonic, mode=mode)

    def is_consonant(self, interval: Interval) -> bool:
        """Consonance test honouring the fourth-against-bass setting."""
        if interval.is_perfect_fourth and not self.p4_dissonant:
            return True
        return interval.is_consonant


DEFAULT_CONFIG = AnalysisConfig()

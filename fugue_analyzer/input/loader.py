"""Note loading - read already-parsed voices from JSON or MIDI files."""

import json
import logging
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import pretty_midi

from ..core import (
    AnalysisConfig,
    Meter,
    NoteEvent,
    PITCH_NAMES,
    FLAT_PITCH_NAMES,
    DEFAULT_TIME_SIGNATURE,
    normalize_mode,
    validate_voice,
)

logger = logging.getLogger(__name__)


def parse_tonic(value) -> int:
    """Pitch class from an int or a name such as 'C', 'F#' or 'Bb'."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value % 12
    if isinstance(value, str):
        name = value.strip()
        name = name[:1].upper() + name[1:]
        if name in PITCH_NAMES:
            return PITCH_NAMES.index(name)
        if name in FLAT_PITCH_NAMES:
            return FLAT_PITCH_NAMES.index(name)
    raise ValueError(f"Invalid tonic: {value!r}")


@dataclass
class Score:
    """Voices and key information read from one file."""

    voices: Dict[str, List[NoteEvent]] = field(default_factory=dict)
    meter: Meter = field(default_factory=lambda: Meter(*DEFAULT_TIME_SIGNATURE))
    tonic: Optional[int] = None  # None when the file does not state a key
    mode: str = "major"
    source: str = ""

    @property
    def voice_names(self) -> List[str]:
        return list(self.voices)

    def voice(self, name: Optional[str] = None, position: int = 0) -> List[NoteEvent]:
        """
        Get a voice by name, or by position when no name is given.

        Raises:
            KeyError: If the voice does not exist
        """
        if name is not None:
            if name not in self.voices:
                raise KeyError(f"No voice named {name!r}; available: {', '.join(self.voices)}")
            return self.voices[name]
        names = self.voice_names
        if position >= len(names):
            raise KeyError(f"File has {len(names)} voice(s), voice {position + 1} requested")
        return self.voices[names[position]]

    def config(self, p4_dissonant: bool = True, tonic: Optional[int] = None, mode: Optional[str] = None) -> AnalysisConfig:
        """Analysis settings for this score."""
        return AnalysisConfig(
            meter=self.meter,
            p4_dissonant=p4_dissonant,
            tonic=tonic if tonic is not None else (self.tonic or 0),
            mode=mode or self.mode,
        )


class NoteLoader:
    """Loads note data from files."""

    SUPPORTED_FORMATS = {".json", ".mid", ".midi"}

    def __init__(self, grid: int = 48):
        """
        Initialize NoteLoader.

        Args:
            grid: Subdivisions of a quarter note that MIDI times snap to
        """
        self.grid = grid

    def load(self, path) -> Score:
        """
        Load a score.

        Args:
            path: Path to a .json or .mid file

        Returns:
            Score with one entry per voice

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format not supported or content is invalid
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Note file not found: {path}")

        suffix = path.suffix.lower()
        if suffix not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        if suffix == ".json":
            score = self.load_json(path)
        else:
            score = self.load_midi(path)

        for name, notes in score.voices.items():
            validate_voice(notes)
            logger.debug("Voice %s: %d notes", name, len(notes))
        return score

    def load_json(self, path: Path) -> Score:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return self.from_dict(data, source=str(path))

    def from_dict(self, data: dict, source: str = "") -> Score:
        """Build a Score from the JSON structure."""
        if not isinstance(data, dict) or "voices" not in data:
            raise ValueError("Note data must be an object with a 'voices' entry")

        voices_data = data["voices"]
        if isinstance(voices_data, list):
            voices_data = {f"voice{i + 1}": v for i, v in enumerate(voices_data)}

        voices = {}
        for name, notes in voices_data.items():
            voices[name] = [self._json_note(n, name, i) for i, n in enumerate(notes)]

        tonic = data.get("tonic")
        return Score(
            voices=voices,
            meter=Meter.coerce(data.get("meter", list(DEFAULT_TIME_SIGNATURE))),
            tonic=parse_tonic(tonic) if tonic is not None else None,
            mode=normalize_mode(data.get("mode", "major")),
            source=source,
        )

    @staticmethod
    def _json_note(n, voice: str, index: int) -> NoteEvent:
        try:
            return NoteEvent(
                pitch=int(n["pitch"]),
                onset=float(n["onset"]),
                duration=float(n["duration"]),
                source=str(n.get("source", "")),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Note {index} of voice '{voice}' needs pitch, onset and duration: {n!r}") from e

    def load_midi(self, path: Path) -> Score:
        """One voice per non-drum instrument track, times in quarter notes."""
        midi = pretty_midi.PrettyMIDI(str(path))

        meter = Meter(*DEFAULT_TIME_SIGNATURE)
        if midi.time_signature_changes:
            ts = midi.time_signature_changes[0]
            meter = Meter(ts.numerator, ts.denominator)

        tonic = None
        mode = "major"
        if midi.key_signature_changes:
            key_number = midi.key_signature_changes[0].key_number
            tonic = key_number % 12
            mode = "major" if key_number < 12 else "natural_minor"

        voices = {}
        for i, instrument in enumerate(midi.instruments):
            if instrument.is_drum:
                continue
            name = instrument.name.strip() or f"voice{i + 1}"
            if name in voices:
                name = f"{name}{i + 1}"
            voices[name] = self._midi_voice(midi, instrument, name)

        return Score(voices=voices, meter=meter, tonic=tonic, mode=mode, source=str(path))

    def _snap(self, quarters: float) -> float:
        """Snap a time to the nearest grid position."""
        return round(quarters * self.grid) / self.grid

    def _midi_voice(self, midi: pretty_midi.PrettyMIDI, instrument: pretty_midi.Instrument, name: str) -> List[NoteEvent]:
        notes = []
        for midi_note in sorted(instrument.notes, key=lambda n: (n.start, n.pitch)):
            onset = self._snap(midi.time_to_tick(midi_note.start) / midi.resolution)
            offset = self._snap(midi.time_to_tick(midi_note.end) / midi.resolution)
            # Ensure minimum duration
            if offset <= onset:
                offset = onset + 1.0 / self.grid

            if notes and notes[-1].offset > onset:
                prev = notes[-1]
                if prev.onset >= onset:
                    warnings.warn(f"{name}: dropping chord tone {prev.pitch_name} at {onset}")
                    notes.pop()
                else:
                    warnings.warn(f"{name}: truncating {prev.pitch_name} at {onset} to keep the voice monophonic")
                    notes[-1] = NoteEvent(prev.pitch, prev.onset, onset - prev.onset, source=prev.source)

            notes.append(NoteEvent(midi_note.pitch, onset, offset - onset, source=pretty_midi.note_number_to_name(midi_note.pitch)))
        return notes

"""Global constants for Fugue Analyzer."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
FLAT_PITCH_NAMES = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

# Time handling (quarter-note units)
TIME_TOLERANCE = 0.01
DEFAULT_TIME_SIGNATURE = (4, 4)
STRONG_BEAT_WEIGHT = 0.75
MAIN_BEAT_WEIGHT = 0.5

# Semitone distance for a melodic step
STEP_SEMITONES = 2

# Mode tables: semitones above the tonic -> scale degree
MODE_INTERVALS = {
    "major": {0: 1, 2: 2, 4: 3, 5: 4, 7: 5, 9: 6, 11: 7},
    "natural_minor": {0: 1, 2: 2, 3: 3, 5: 4, 7: 5, 8: 6, 10: 7},
    "harmonic_minor": {0: 1, 2: 2, 3: 3, 5: 4, 7: 5, 8: 6, 11: 7},
    "dorian": {0: 1, 2: 2, 3: 3, 5: 4, 7: 5, 9: 6, 10: 7},
    "phrygian": {0: 1, 1: 2, 3: 3, 5: 4, 7: 5, 8: 6, 10: 7},
    "lydian": {0: 1, 2: 2, 4: 3, 6: 4, 7: 5, 9: 6, 11: 7},
    "mixolydian": {0: 1, 2: 2, 4: 3, 5: 4, 7: 5, 9: 6, 10: 7},
    "locrian": {0: 1, 1: 2, 3: 3, 5: 4, 6: 5, 8: 6, 10: 7},
}

# Aliases accepted wherever a mode name is given
MODE_ALIASES = {
    "minor": "natural_minor",
    "aeolian": "natural_minor",
    "ionian": "major",
}

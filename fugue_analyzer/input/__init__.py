"""Input loading for Fugue Analyzer."""

from .loader import NoteLoader, Score, parse_tonic

__all__ = ["NoteLoader", "Score", "parse_tonic"]

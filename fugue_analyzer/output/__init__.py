"""Output formatting for Fugue Analyzer."""

from .report import to_dict, to_json

__all__ = ["to_dict", "to_json"]

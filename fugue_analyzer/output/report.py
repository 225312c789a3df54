"""Convert analysis records to JSON-ready structures."""

import dataclasses
import json
from enum import Enum
from fractions import Fraction

import numpy as np

# Read-only properties worth including next to the dataclass fields
_DERIVED = {
    "MotionSummary": ("total", "ratios"),
    "DissonanceReport": ("summary",),
    "StrettoResult": ("viable", "clean"),
    "HarmonySequence": ("names",),
    "BeatHarmony": ("name",),
    "KeyInfo": ("name",),
    "ParallelViolation": ("name",),
}


def to_dict(record):
    """
    Recursively convert dataclasses, enums, fractions and numpy values.

    Args:
        record: Any analysis result

    Returns:
        Structure of dicts, lists, strings and numbers
    """
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        out = {f.name: to_dict(getattr(record, f.name)) for f in dataclasses.fields(record)}
        for name in _DERIVED.get(type(record).__name__, ()):
            out[name] = to_dict(getattr(record, name))
        return out
    if isinstance(record, Enum):
        return record.value
    if isinstance(record, Fraction):
        return float(record)
    if isinstance(record, np.ndarray):
        return record.tolist()
    if isinstance(record, np.generic):
        return record.item()
    if isinstance(record, tuple) and hasattr(record, "_asdict"):
        return {k: to_dict(v) for k, v in record._asdict().items()}
    if isinstance(record, dict):
        return {str(to_dict(k)) if not isinstance(k, str) else k: to_dict(v) for k, v in record.items()}
    if isinstance(record, (list, tuple)):
        return [to_dict(v) for v in record]
    return record


def to_json(record, indent: int = 2) -> str:
    return json.dumps(to_dict(record), indent=indent, ensure_ascii=False)

"""Tests for note loading, report serialization and the CLI.

Tests cover:
- JSON loading (named and positional voices, key and meter)
- Error handling for missing files, bad formats and invalid content
- JSON-ready conversion of analysis results
- CLI commands via typer's test runner
"""

import json

import pytest
from pathlib import Path
import sys

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from typer.testing import CliRunner

from fugue_analyzer.cli import app
from fugue_analyzer.core import InvalidMeter, Meter, OverlappingNotes
from fugue_analyzer.counterpoint import MotionClassifier, find_simultaneities
from fugue_analyzer.inference import ChordSequenceInference
from fugue_analyzer.input import NoteLoader, parse_tonic
from fugue_analyzer.output import to_dict, to_json


# ============================================================================
# Fixtures
# ============================================================================

def notes_json(pitches, start=0.0, duration=1.0):
    return [
        {"pitch": p, "onset": start + i * duration, "duration": duration}
        for i, p in enumerate(pitches)
    ]


@pytest.fixture
def score_file(tmp_path):
    """Subject and countersubject in C major."""
    path = tmp_path / "invention.json"
    path.write_text(json.dumps({
        "meter": [4, 4],
        "tonic": "C",
        "mode": "major",
        "voices": {
            "subject": notes_json([60, 64, 67, 72]),
            "countersubject": notes_json([55, 53, 52, 50], start=0.5),
        },
    }))
    return path


@pytest.fixture
def runner():
    return CliRunner()


# ============================================================================
# Loading
# ============================================================================

class TestNoteLoader:
    """Tests for NoteLoader."""

    def test_load_json(self, score_file):
        score = NoteLoader().load(score_file)

        assert score.voice_names == ["subject", "countersubject"]
        assert score.meter == Meter(4, 4)
        assert score.tonic == 0
        assert score.voice("subject")[2].pitch == 67
        assert score.voice(position=1)[0].onset == 0.5

    def test_positional_voices(self):
        score = NoteLoader().from_dict({"voices": [notes_json([60]), notes_json([48])]})
        assert score.voice_names == ["voice1", "voice2"]
        assert score.tonic is None
        assert score.meter == Meter(4, 4)

    def test_config_from_score(self, score_file):
        config = NoteLoader().load(score_file).config(p4_dissonant=False)
        assert config.meter == Meter(4, 4)
        assert config.tonic == 0
        assert not config.p4_dissonant

    def test_minor_alias(self):
        score = NoteLoader().from_dict({"voices": [notes_json([57])], "tonic": "A", "mode": "minor"})
        assert score.mode == "natural_minor"
        assert score.tonic == 9

    def test_missing_voice(self, score_file):
        score = NoteLoader().load(score_file)
        with pytest.raises(KeyError):
            score.voice("tenor")
        with pytest.raises(KeyError):
            score.voice(position=2)

    def test_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            NoteLoader().load(tmp_path / "missing.json")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "subject.txt"
        path.write_text("C4 D4 E4")
        with pytest.raises(ValueError, match="Unsupported format"):
            NoteLoader().load(path)

    def test_invalid_meter(self):
        with pytest.raises(InvalidMeter):
            NoteLoader().from_dict({"voices": [notes_json([60])], "meter": "3/4"})

    def test_missing_voices_entry(self):
        with pytest.raises(ValueError):
            NoteLoader().from_dict({"notes": []})

    def test_note_missing_field(self):
        data = {"voices": {"subject": [{"pitch": 60, "onset": 0}]}}
        with pytest.raises(ValueError, match="Note 0 of voice 'subject'"):
            NoteLoader().from_dict(data)

    def test_overlapping_notes_rejected(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"voices": [[
            {"pitch": 60, "onset": 0, "duration": 2},
            {"pitch": 62, "onset": 1, "duration": 1},
        ]]}))
        with pytest.raises(OverlappingNotes):
            NoteLoader().load(path)

    def test_parse_tonic(self):
        assert parse_tonic("F#") == 6
        assert parse_tonic("bb") == 10
        assert parse_tonic(14) == 2
        with pytest.raises(ValueError):
            parse_tonic("H")


# ============================================================================
# Serialization
# ============================================================================

class TestReport:
    """Tests for to_dict() and to_json()."""

    def test_harmony_sequence(self):
        notes = NoteLoader().from_dict({"voices": [notes_json([60, 64, 67, 72])]}).voice()
        data = to_dict(ChordSequenceInference().analyze(notes))

        assert data["names"] == ["C major"] * 4
        assert data["beats"][0]["quality"] == "major"
        assert data["error"] is None

    def test_fractions_become_floats(self):
        a = [{"pitch": 60, "onset": 0, "duration": 1}, {"pitch": 62, "onset": 1, "duration": 1}]
        b = [{"pitch": 48, "onset": 0, "duration": 1.25}, {"pitch": 50, "onset": 1.25, "duration": 0.75}]
        score = NoteLoader().from_dict({"voices": [a, b]})
        voice_a, voice_b = score.voice(position=0), score.voice(position=1)
        summary = MotionClassifier().analyze(find_simultaneities(voice_a, voice_b, score.meter), voice_a, voice_b)

        data = to_dict(summary)
        assert data["counts"]["parallel"] == 1.0
        assert data["reassessments"][0]["fraction"] == 0.5
        assert data["total"] == 2
        json.loads(to_json(summary))


# ============================================================================
# CLI
# ============================================================================

class TestCLI:
    """Tests for the command-line interface."""

    def test_harmony_json(self, runner, score_file):
        result = runner.invoke(app, ["harmony", str(score_file), "--voice", "subject", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["names"] == ["C major"] * 4

    def test_analyze_json(self, runner, score_file):
        result = runner.invoke(app, ["analyze", str(score_file), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["tonal_answer"]["answer_type"] == "tonal"
        assert "double_counterpoint" in data

    def test_stretto_json(self, runner, score_file):
        result = runner.invoke(app, ["stretto", str(score_file), "-s", "subject", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [r["distance"] for r in data["results"]] == [1.0, 2.0]

    def test_stretto_table(self, runner, score_file):
        result = runner.invoke(app, ["stretto", str(score_file), "-s", "subject"])
        assert result.exit_code == 0
        assert "viable" in result.stdout

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(app, ["harmony", str(tmp_path / "missing.json")])
        assert result.exit_code == 1

    def test_malformed_note(self, runner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"voices": [[{"pitch": 60, "duration": 1}]]}))
        result = runner.invoke(app, ["harmony", str(path)])
        assert result.exit_code == 1
        assert "Note 0" in result.stdout

    def test_unknown_voice(self, runner, score_file):
        result = runner.invoke(app, ["harmony", str(score_file), "--voice", "tenor"])
        assert result.exit_code == 1

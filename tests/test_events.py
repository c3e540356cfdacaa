"""Tests for note and rest events and their serialisation."""

import importlib
import json
import sys
from fractions import Fraction
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

events = importlib.import_module("scale_soloist.events")
scales = importlib.import_module("scale_soloist.scales")

Duration = events.Duration
C4 = scales.ScaleDegree("C", 4)


def test_duration_beats():
    assert Duration.QUARTER.beats == 1
    assert Duration.DOTTED_EIGHTH.beats == Fraction(3, 4)
    assert Duration.HALF_REST.beats == 2
    # Three triplet eighths fill exactly one beat.
    assert Duration.EIGHTH_TRIPLET.beats * 3 == 1


def test_note_and_rest_duration_sets():
    assert len(events.NOTE_DURATIONS) == 6
    assert len(events.REST_DURATIONS) == 4
    assert all(d.is_rest for d in events.REST_DURATIONS)
    assert not any(d.is_rest for d in events.NOTE_DURATIONS)


def test_from_token():
    assert Duration.from_token("8n.") is Duration.DOTTED_EIGHTH
    with pytest.raises(ValueError):
        Duration.from_token("32n")


def test_events_reject_mismatched_durations():
    """A note cannot carry a rest value and a rest cannot carry a note value."""

    with pytest.raises(ValueError):
        events.NoteEvent(C4, Duration.EIGHTH_REST)
    with pytest.raises(ValueError):
        events.RestEvent(Duration.EIGHTH)


def test_note_property_and_total_beats():
    note = events.NoteEvent(C4, Duration.EIGHTH)
    rest = events.RestEvent(Duration.QUARTER_REST)
    assert note.note == C4
    assert rest.note is None
    assert events.is_rest(rest) and not events.is_rest(note)
    assert events.total_beats([note, rest, note]) == 2
    assert events.total_beats([]) == 0


def test_event_dict_format():
    note = events.NoteEvent(scales.ScaleDegree("F#", 3), Duration.SIXTEENTH)
    assert events.event_to_dict(note) == {
        "note": {"note": "F#", "octave": 3},
        "duration": "16n",
    }
    assert events.event_to_dict(events.RestEvent(Duration.HALF_REST)) == {
        "note": None,
        "duration": "2r",
    }


def test_event_from_dict_normalises_spelling():
    event = events.event_from_dict({"note": {"note": "Gb", "octave": 5}, "duration": "4n"})
    assert event == events.NoteEvent(scales.ScaleDegree("F#", 5), Duration.QUARTER)
    assert events.event_from_dict({"note": None, "duration": "8r"}) == events.RestEvent(
        Duration.EIGHTH_REST
    )


def test_solo_to_json_produces_array():
    solo = [events.NoteEvent(C4, Duration.QUARTER), events.RestEvent(Duration.EIGHTH_REST)]
    data = json.loads(events.solo_to_json(solo))
    assert [item["duration"] for item in data] == ["4n", "8r"]
    assert data[1]["note"] is None

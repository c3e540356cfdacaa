"""Unit tests for the rhythm generation engine."""

import importlib
import random
import sys
from dataclasses import replace
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from test_randomness import ScriptedSource  # noqa: E402

rhythm = importlib.import_module("scale_soloist.rhythm_engine")
events = importlib.import_module("scale_soloist.events")
scales = importlib.import_module("scale_soloist.scales")
config = importlib.import_module("scale_soloist.config")

Duration = events.Duration
C4 = scales.ScaleDegree("C", 4)


def note(duration):
    return events.NoteEvent(C4, duration)


def test_downbeat_opening_prefers_quarter():
    gen = rhythm.RhythmGenerator(rng=ScriptedSource([0.1, 0.9]))
    assert gen.duration_for(0, 3, is_downbeat=True, previous=[]) is Duration.QUARTER
    assert gen.duration_for(0, 3, is_downbeat=True, previous=[]) is Duration.EIGHTH


def test_other_openings_and_closings_choose_eighth_or_sixteenth():
    gen = rhythm.RhythmGenerator(rng=ScriptedSource([0.5, 0.8, 0.69, 0.7]))
    assert gen.duration_for(0, 3, is_downbeat=False, previous=[]) is Duration.EIGHTH
    assert gen.duration_for(0, 3, is_downbeat=False, previous=[]) is Duration.SIXTEENTH
    prev = [note(Duration.EIGHTH)] * 2
    assert gen.duration_for(2, 3, is_downbeat=False, previous=prev) is Duration.EIGHTH
    assert gen.duration_for(2, 3, is_downbeat=False, previous=prev) is Duration.SIXTEENTH


def test_middle_slot_draws_from_weighted_table():
    """Draw values walk the table cumulatively: 8n, 16n, 8t, 8n.."""

    prev = [note(Duration.EIGHTH)]
    draws = [0.0, 0.55, 0.85, 0.95]
    gen = rhythm.RhythmGenerator(rng=ScriptedSource(draws))
    picked = [gen.duration_for(1, 6, is_downbeat=False, previous=prev) for _ in draws]
    assert picked == [
        Duration.EIGHTH,
        Duration.SIXTEENTH,
        Duration.EIGHTH_TRIPLET,
        Duration.DOTTED_EIGHTH,
    ]


def test_triplet_needs_room_for_a_full_group():
    """A triplet drawn too close to the end becomes a plain eighth."""

    cfg = replace(config.DEFAULT_CONFIG, middle_durations=((Duration.EIGHTH_TRIPLET, 1.0),))
    gen = rhythm.RhythmGenerator(cfg, ScriptedSource([0.5, 0.5]))
    prev = [note(Duration.EIGHTH)]
    assert gen.duration_for(1, 4, is_downbeat=False, previous=prev) is Duration.EIGHTH_TRIPLET
    assert gen.duration_for(2, 4, is_downbeat=False, previous=prev * 2) is Duration.EIGHTH


def test_open_group_forces_triplet_without_drawing():
    """An unfinished group is completed even on the closing slot."""

    gen = rhythm.RhythmGenerator(rng=ScriptedSource([]))
    prev = [note(Duration.EIGHTH), note(Duration.EIGHTH_TRIPLET)]
    assert gen.duration_for(2, 4, is_downbeat=False, previous=prev) is Duration.EIGHTH_TRIPLET
    prev.append(note(Duration.EIGHTH_TRIPLET))
    assert gen.duration_for(3, 4, is_downbeat=False, previous=prev) is Duration.EIGHTH_TRIPLET


def test_trailing_triplets_skip_rests():
    rest = events.RestEvent(Duration.EIGHTH_REST)
    prev = [note(Duration.EIGHTH), note(Duration.EIGHTH_TRIPLET), rest, note(Duration.EIGHTH_TRIPLET)]
    assert rhythm.trailing_triplets(prev) == 2
    assert rhythm.in_triplet_group(prev)
    prev.append(note(Duration.EIGHTH_TRIPLET))
    assert not rhythm.in_triplet_group(prev)


@pytest.mark.parametrize(
    "draw, expected",
    [
        (0.0, Duration.EIGHTH_REST),
        (0.55, Duration.SIXTEENTH_REST),
        (0.7, Duration.QUARTER_REST),
        (0.95, Duration.HALF_REST),
    ],
)
def test_rest_distribution(draw, expected):
    rest = rhythm.create_rest(ScriptedSource([draw]))
    assert rest == events.RestEvent(expected)


def test_triplet_groups_always_complete():
    """Across many random phrases triplets only ever come in threes."""

    cfg = replace(
        config.DEFAULT_CONFIG,
        middle_durations=((Duration.EIGHTH, 0.5), (Duration.EIGHTH_TRIPLET, 0.5)),
    )
    rng = random.Random(11)
    for length in range(1, 9):
        for _ in range(200):
            gen = rhythm.RhythmGenerator(cfg, rng)
            emitted = []
            for position in range(length):
                emitted.append(
                    note(gen.duration_for(position, length, is_downbeat=False, previous=emitted))
                )
            assert not rhythm.in_triplet_group(emitted)

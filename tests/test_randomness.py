"""Tests for the injectable random source helpers.

``ScriptedSource`` defined here replays a fixed list of draws and is reused
by the rhythm and phrase tests to steer individual decisions.
"""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

randomness = importlib.import_module("scale_soloist.randomness")


class ScriptedSource:
    """Random source returning predetermined values in order."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        if not self.values:
            raise AssertionError("scripted random source exhausted")
        self.calls += 1
        return self.values.pop(0)


def test_chance_compares_against_probability():
    """``chance`` succeeds only when the draw is below the probability."""
    assert randomness.chance(ScriptedSource([0.49]), 0.5)
    assert not randomness.chance(ScriptedSource([0.5]), 0.5)
    assert not randomness.chance(ScriptedSource([0.0]), 0.0)


def test_choice_maps_draw_to_index():
    items = ["a", "b", "c"]
    assert randomness.choice(ScriptedSource([0.0]), items) == "a"
    assert randomness.choice(ScriptedSource([0.5]), items) == "b"
    assert randomness.choice(ScriptedSource([0.99]), items) == "c"
    # A misbehaving source returning 1.0 must not index past the end.
    assert randomness.choice(ScriptedSource([1.0]), items) == "c"


def test_choice_rejects_empty_sequence():
    with pytest.raises(ValueError):
        randomness.choice(ScriptedSource([0.3]), [])


def test_weighted_choice_follows_table_order():
    """Draws are scaled by the total weight and walked cumulatively."""

    table = [("a", 1.0), ("b", 3.0)]
    assert randomness.weighted_choice(ScriptedSource([0.2]), table) == "a"
    assert randomness.weighted_choice(ScriptedSource([0.3]), table) == "b"
    assert randomness.weighted_choice(ScriptedSource([1.0]), table) == "b"


def test_weighted_choice_skips_zero_weights():
    table = [("a", 0.0), ("b", 1.0), ("c", 0.0)]
    assert randomness.weighted_choice(ScriptedSource([0.0]), table) == "b"
    assert randomness.weighted_choice(ScriptedSource([1.0]), table) == "b"


def test_weighted_choice_requires_positive_total():
    with pytest.raises(ValueError):
        randomness.weighted_choice(ScriptedSource([0.1]), [("a", 0.0)])


def test_make_rng_is_reproducible():
    """Two generators created with the same seed yield the same draws."""

    first = randomness.make_rng(7)
    second = randomness.make_rng(7)
    assert [first.random() for _ in range(5)] == [second.random() for _ in range(5)]


def test_resolve_rng_defaults_to_random_module():
    import random

    assert randomness.resolve_rng(None) is random
    source = ScriptedSource([])
    assert randomness.resolve_rng(source) is source

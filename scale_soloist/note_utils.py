"""Interval arithmetic and scale-space navigation helpers.

These functions work on :class:`~scale_soloist.scales.ScaleDegree` values and
the ascending scale spaces built by
:func:`~scale_soloist.scales.build_scale_space`.  The phrase generator leans
on them for every pitch decision, while the MIDI writer and the outer
interfaces use the conversion helpers at the bottom of the module.

Example
-------
>>> from scale_soloist.note_utils import parse_degree, semitone_interval
>>> semitone_interval(parse_degree("C4"), parse_degree("G4"))
7
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from .scales import (
    NOTES,
    EmptyScaleSpaceError,
    ScaleDegree,
    canonical_pitch_class,
)

__all__ = [
    "semitone_interval",
    "position_in_scale",
    "nearest_in_scale",
    "step_in_scale",
    "transpose",
    "parse_degree",
    "degree_to_midi",
    "midi_to_degree",
]


logger = logging.getLogger(__name__)


def semitone_interval(a: ScaleDegree, b: ScaleDegree) -> int:
    """Return the signed distance from ``a`` to ``b`` in semitones.

    Positive values mean ``b`` sounds higher than ``a``.
    """

    return (b.octave - a.octave) * 12 + (b.chromatic_index - a.chromatic_index)


def position_in_scale(note: ScaleDegree, space: Sequence[ScaleDegree]) -> int:
    """Return the index of ``note`` within ``space``.

    When ``note`` is not an entry of ``space`` the index of the closest entry
    (smallest absolute semitone distance) is returned instead. Ties go to the
    entry that appears first.

    Raises
    ------
    EmptyScaleSpaceError
        If ``space`` has no entries.
    """

    if not space:
        raise EmptyScaleSpaceError("scale space must contain at least one note")

    closest_index = 0
    smallest = None
    for index, entry in enumerate(space):
        if entry == note:
            return index
        distance = abs(semitone_interval(note, entry))
        if smallest is None or distance < smallest:
            smallest = distance
            closest_index = index
    return closest_index


def nearest_in_scale(note: ScaleDegree, space: Sequence[ScaleDegree]) -> ScaleDegree:
    """Return the entry of ``space`` located by :func:`position_in_scale`."""
    return space[position_in_scale(note, space)]


def step_in_scale(
    base: ScaleDegree, steps: int, space: Sequence[ScaleDegree]
) -> ScaleDegree:
    """Move ``steps`` scale positions away from ``base``.

    The target index wraps around ``space`` using floor division so negative
    indices wrap as well. Every complete wrap shifts the octave of the
    returned degree by one in the direction of travel, which keeps pitch
    continuity when the walk leaves either end of the space.

    Parameters
    ----------
    base:
        Starting pitch. Need not be an entry of ``space``; the nearest entry
        is used as the starting position.
    steps:
        Signed number of scale positions to move.
    space:
        Ascending scale space to navigate.

    Returns
    -------
    ScaleDegree
        The degree reached after stepping.
    """

    start = position_in_scale(base, space)
    wraps, index = divmod(start + steps, len(space))
    target = space[index]
    return ScaleDegree(target.pitch_class, target.octave + wraps)


def transpose(degree: ScaleDegree, semitones: int) -> ScaleDegree:
    """Return ``degree`` shifted by ``semitones`` (no scale snapping)."""

    octave_shift, index = divmod(degree.chromatic_index + semitones, 12)
    return ScaleDegree(NOTES[index], degree.octave + octave_shift)


def parse_degree(text: str) -> ScaleDegree:
    """Parse strings such as ``"C#4"``, ``"db3"`` or ``"A-1"``.

    Raises
    ------
    ValueError
        If ``text`` is not a pitch class followed by a signed integer octave.
    """

    # A letter A-G, an optional accidental and a signed integer octave.
    match = re.fullmatch(r"\s*([A-Ga-g][#b]?)(-?\d+)\s*", text)
    if not match:
        logger.error("Invalid note format: %s", text)
        raise ValueError(f"Invalid note format: {text}")
    name, octave = match.groups()
    return ScaleDegree(canonical_pitch_class(name), int(octave))


def degree_to_midi(degree: ScaleDegree) -> int:
    """Convert ``degree`` to a MIDI note number (``C4`` is 60).

    Raises
    ------
    ValueError
        If the resulting number falls outside ``0-127``. Scale spaces may
        legitimately hold octaves the MIDI range cannot express, so callers
        rendering audio are expected to handle this.
    """

    midi_val = (degree.octave + 1) * 12 + degree.chromatic_index
    if not 0 <= midi_val <= 127:
        raise ValueError(
            f"Computed MIDI value {midi_val} out of range 0-127 for note {degree}"
        )
    return midi_val


def midi_to_degree(midi_note: int) -> ScaleDegree:
    """Convert a MIDI note number into a :class:`ScaleDegree` using sharps.

    >>> str(midi_to_degree(61))
    'C#4'
    """

    if not 0 <= midi_note <= 127:
        raise ValueError(f"MIDI note {midi_note} out of range 0-127")
    return ScaleDegree(NOTES[midi_note % 12], midi_note // 12 - 1)

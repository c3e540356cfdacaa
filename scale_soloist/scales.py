"""Scale tables and the scale-space provider.

A *scale space* is the ordered run of absolute pitches the solo generator is
allowed to use.  It is built from a root pitch class, a mode (``major`` or
``minor``) and a category (``diatonic``, ``pentatonic`` or ``blues``) by
walking the category's interval pattern for as many notes as the caller asks
for.  The octave counter is bumped every time the pattern wraps past ``B`` so
the result always ascends even though the underlying pattern repeats.

Example
-------
>>> from scale_soloist.scales import build_scale_space
>>> [str(d) for d in build_scale_space("C", "major", "pentatonic", 4, 6)]
['C4', 'D4', 'E4', 'G4', 'A4', 'C5']
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Tuple

__all__ = [
    "NOTES",
    "NOTE_TO_SEMITONE",
    "MODES",
    "CATEGORIES",
    "SCALE_PATTERNS",
    "ScaleDegree",
    "ScaleSpace",
    "EmptyScaleSpaceError",
    "canonical_pitch_class",
    "canonical_mode",
    "canonical_category",
    "get_scale",
    "scale_note_count",
    "scale_name",
    "build_scale_space",
    "note_frequency",
]


# NOTE_TO_SEMITONE maps both sharp and flat spellings to the correct
# semitone offset within an octave so user input such as ``Db`` resolves to
# the same pitch class as ``C#``.
NOTE_TO_SEMITONE: Dict[str, int] = {
    "C": 0,
    "B#": 0,
    "C#": 1,
    "Db": 1,
    "D": 2,
    "D#": 3,
    "Eb": 3,
    "E": 4,
    "Fb": 4,
    "E#": 5,
    "F": 5,
    "F#": 6,
    "Gb": 6,
    "G": 7,
    "G#": 8,
    "Ab": 8,
    "A": 9,
    "A#": 10,
    "Bb": 10,
    "B": 11,
    "Cb": 11,
}

# Canonical pitch class names.  Sharps only; every other spelling is
# normalised to one of these by :func:`canonical_pitch_class`.
NOTES: List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

MODES: Tuple[str, ...] = ("major", "minor")
CATEGORIES: Tuple[str, ...] = ("diatonic", "pentatonic", "blues")

# Semitone offsets from the root for every supported mode/category pair.
# Diatonic scales have seven degrees, blues six and pentatonic five.
SCALE_PATTERNS: Dict[Tuple[str, str], List[int]] = {
    ("major", "diatonic"): [0, 2, 4, 5, 7, 9, 11],
    ("minor", "diatonic"): [0, 2, 3, 5, 7, 8, 10],
    ("major", "pentatonic"): [0, 2, 4, 7, 9],
    ("minor", "pentatonic"): [0, 3, 5, 7, 10],
    ("major", "blues"): [0, 2, 3, 4, 7, 9],
    ("minor", "blues"): [0, 3, 5, 6, 7, 10],
}

# Lowercase lookup so ``db``, ``DB`` and ``Db`` are all accepted.
_CANONICAL_PITCH_CLASSES = {
    name.lower(): NOTES[idx] for name, idx in NOTE_TO_SEMITONE.items()
}

# Reference pitch used by :func:`note_frequency`.
A4_FREQUENCY = 440.0


class EmptyScaleSpaceError(ValueError):
    """Raised when generation is requested over a scale space with no notes."""


@dataclass(frozen=True)
class ScaleDegree:
    """One absolute pitch: a pitch class and an (unbounded) octave number."""

    pitch_class: str
    octave: int

    def __post_init__(self) -> None:
        if self.pitch_class not in NOTES:
            raise ValueError(f"Unknown pitch class: {self.pitch_class}")

    @property
    def chromatic_index(self) -> int:
        """Position of the pitch class within the octave (``C`` = 0)."""
        return NOTES.index(self.pitch_class)

    def __str__(self) -> str:
        return f"{self.pitch_class}{self.octave}"


# A scale space is simply an ascending tuple of degrees.  Tuples keep it
# immutable for the duration of a generation call.
ScaleSpace = Tuple[ScaleDegree, ...]


@lru_cache(maxsize=None)
def canonical_pitch_class(name: str) -> str:
    """Return the sharp spelling of ``name``.

    Parameters
    ----------
    name:
        Pitch class such as ``"c#"``, ``"Db"`` or ``"E"``. Case-insensitive.

    Raises
    ------
    ValueError
        If ``name`` does not denote one of the twelve pitch classes.
    """

    pitch = _CANONICAL_PITCH_CLASSES.get(name.strip().lower())
    if pitch is None:
        raise ValueError(f"Unknown pitch class: {name}")
    return pitch


def canonical_mode(name: str) -> str:
    """Return ``name`` lowercased after checking it is a supported mode."""
    mode = name.strip().lower()
    if mode not in MODES:
        raise ValueError(f"Unknown mode: {name}")
    return mode


def canonical_category(name: str) -> str:
    """Return ``name`` lowercased after checking it is a supported category."""
    category = name.strip().lower()
    if category not in CATEGORIES:
        raise ValueError(f"Unknown scale category: {name}")
    return category


@lru_cache(maxsize=None)
def get_scale(root: str, mode: str, category: str) -> Tuple[str, ...]:
    """Return the pitch classes of the requested scale starting at ``root``.

    @param root (str): Root pitch class, any spelling.
    @param mode (str): ``"major"`` or ``"minor"``.
    @param category (str): ``"diatonic"``, ``"pentatonic"`` or ``"blues"``.
    @returns Tuple[str, ...]: Pitch classes in scale order.
    """

    root_idx = NOTE_TO_SEMITONE[canonical_pitch_class(root)]
    pattern = SCALE_PATTERNS[(canonical_mode(mode), canonical_category(category))]
    return tuple(NOTES[(root_idx + interval) % 12] for interval in pattern)


def scale_note_count(mode: str, category: str) -> int:
    """Return the number of degrees in one octave of the given scale type."""
    return len(SCALE_PATTERNS[(canonical_mode(mode), canonical_category(category))])


def scale_name(root: str, mode: str, category: str) -> str:
    """Return a human readable name such as ``"C Major Diatonic"``."""
    return (
        f"{canonical_pitch_class(root)} "
        f"{canonical_mode(mode).capitalize()} "
        f"{canonical_category(category).capitalize()}"
    )


def build_scale_space(
    root: str,
    mode: str,
    category: str,
    start_octave: int,
    count: int,
) -> ScaleSpace:
    """Return ``count`` ascending scale degrees beginning at ``start_octave``.

    The pattern for ``(mode, category)`` is rotated to ``root`` and walked
    cyclically. Whenever the chromatic index of the next pitch class is less
    than or equal to the previous one (and it is not the first note) the
    running octave is incremented, which keeps the sequence ascending across
    the ``B`` to ``C`` boundary.

    @param root (str): Root pitch class.
    @param mode (str): Scale mode.
    @param category (str): Scale category.
    @param start_octave (int): Octave of the first degree. Any integer.
    @param count (int): Number of degrees. ``0`` yields an empty space;
        negative values raise ``ValueError``.
    @returns ScaleSpace: Tuple of :class:`ScaleDegree`.
    """

    if count < 0:
        raise ValueError("count must be non-negative")

    pitch_classes = get_scale(root, mode, category)
    degrees: List[ScaleDegree] = []
    octave = start_octave
    last_index = -1
    for i in range(count):
        pitch = pitch_classes[i % len(pitch_classes)]
        index = NOTE_TO_SEMITONE[pitch]
        if i > 0 and index <= last_index:
            octave += 1
        last_index = index
        degrees.append(ScaleDegree(pitch, octave))
    return tuple(degrees)


def note_frequency(degree: ScaleDegree) -> float:
    """Return the equal-tempered frequency of ``degree`` in Hz (A4 = 440)."""

    half_steps = (degree.octave - 4) * 12 + (degree.chromatic_index - NOTES.index("A"))
    return A4_FREQUENCY * 2 ** (half_steps / 12)

"""Solo event types and the symbolic duration vocabulary.

A solo is a flat list of events.  Each event is either a :class:`NoteEvent`
(a pitch with a sounding duration) or a :class:`RestEvent` (silence with a
rest duration).  Keeping the two variants separate means a rest can never
carry a pitch and a note can never carry a rest value.

Durations are symbolic.  Their beat values assume a quarter note is one
beat and are stored as :class:`fractions.Fraction` so triplets add up
exactly.  Turning beats into seconds is left to whatever plays the solo.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Iterable, List, Optional, Union

from .scales import ScaleDegree, canonical_pitch_class

__all__ = [
    "Duration",
    "NOTE_DURATIONS",
    "REST_DURATIONS",
    "NoteEvent",
    "RestEvent",
    "SoloEvent",
    "is_rest",
    "total_beats",
    "event_to_dict",
    "event_from_dict",
    "solo_to_json",
]


class Duration(Enum):
    """Symbolic note values.

    The enum value is the short token used by web audio schedulers
    (``"8n"`` for an eighth note, ``"8r"`` for an eighth rest and so on).
    """

    QUARTER = "4n"
    EIGHTH = "8n"
    SIXTEENTH = "16n"
    EIGHTH_TRIPLET = "8t"
    DOTTED_QUARTER = "4n."
    DOTTED_EIGHTH = "8n."
    QUARTER_REST = "4r"
    EIGHTH_REST = "8r"
    SIXTEENTH_REST = "16r"
    HALF_REST = "2r"

    @property
    def beats(self) -> Fraction:
        """Length of this value in quarter-note beats."""
        return _BEATS[self]

    @property
    def is_rest(self) -> bool:
        return self.value.endswith("r")

    @classmethod
    def from_token(cls, token: str) -> "Duration":
        """Return the duration for ``token`` (e.g. ``"8n."``)."""
        try:
            return cls(token.strip())
        except ValueError:
            raise ValueError(f"Unknown duration: {token}") from None


_BEATS = {
    Duration.QUARTER: Fraction(1),
    Duration.EIGHTH: Fraction(1, 2),
    Duration.SIXTEENTH: Fraction(1, 4),
    Duration.EIGHTH_TRIPLET: Fraction(1, 3),
    Duration.DOTTED_QUARTER: Fraction(3, 2),
    Duration.DOTTED_EIGHTH: Fraction(3, 4),
    Duration.QUARTER_REST: Fraction(1),
    Duration.EIGHTH_REST: Fraction(1, 2),
    Duration.SIXTEENTH_REST: Fraction(1, 4),
    Duration.HALF_REST: Fraction(2),
}

NOTE_DURATIONS = tuple(d for d in Duration if not d.is_rest)
REST_DURATIONS = tuple(d for d in Duration if d.is_rest)


@dataclass(frozen=True)
class NoteEvent:
    """A sounding pitch held for ``duration``."""

    degree: ScaleDegree
    duration: Duration

    def __post_init__(self) -> None:
        if self.duration.is_rest:
            raise ValueError(f"Note events need a note duration, got {self.duration.value}")

    @property
    def note(self) -> Optional[ScaleDegree]:
        return self.degree

    @property
    def beats(self) -> Fraction:
        return self.duration.beats


@dataclass(frozen=True)
class RestEvent:
    """Silence lasting ``duration``."""

    duration: Duration

    def __post_init__(self) -> None:
        if not self.duration.is_rest:
            raise ValueError(f"Rest events need a rest duration, got {self.duration.value}")

    @property
    def note(self) -> Optional[ScaleDegree]:
        return None

    @property
    def beats(self) -> Fraction:
        return self.duration.beats


SoloEvent = Union[NoteEvent, RestEvent]


def is_rest(event: SoloEvent) -> bool:
    return isinstance(event, RestEvent)


def total_beats(events: Iterable[SoloEvent]) -> Fraction:
    """Return the summed beat value of ``events``."""
    return sum((event.beats for event in events), Fraction(0))


def event_to_dict(event: SoloEvent) -> dict:
    """Return a JSON friendly mapping for ``event``.

    Notes serialise as ``{"note": {"note": "C", "octave": 4}, "duration":
    "8n"}`` and rests carry ``"note": None``.
    """

    note = event.note
    return {
        "note": None if note is None else {"note": note.pitch_class, "octave": note.octave},
        "duration": event.duration.value,
    }


def event_from_dict(data: dict) -> SoloEvent:
    """Inverse of :func:`event_to_dict`."""

    duration = Duration.from_token(str(data["duration"]))
    note = data.get("note")
    if note is None:
        return RestEvent(duration)
    degree = ScaleDegree(canonical_pitch_class(note["note"]), int(note["octave"]))
    return NoteEvent(degree, duration)


def solo_to_json(events: Iterable[SoloEvent], *, indent: Optional[int] = None) -> str:
    """Serialise ``events`` as a JSON array."""

    payload: List[dict] = [event_to_dict(event) for event in events]
    return json.dumps(payload, indent=indent)

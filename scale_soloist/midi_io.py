"""Write generated solos to standard MIDI files.

Modification summary
--------------------
* ``create_midi_file`` works on solo events rather than bare note names, so
  rests advance time instead of being dropped.
* Notes starting on the first beat of a measure receive a small velocity
  accent to give the line a pulse.
* Imports from ``mido`` are deferred inside ``create_midi_file`` so the
  module can load even when the optional dependency is missing.

This is the only part of the package that knows about tempo.  Beat values
are converted to ticks at ``TICKS_PER_BEAT`` (480 divides evenly by both 3
and 4, so triplets and sixteenths land on exact ticks) and the tempo is
stored as a ``set_tempo`` meta message.
"""

from __future__ import annotations

import logging
from fractions import Fraction
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    # ``MidiFile`` is only needed for type checking to avoid requiring the
    # optional dependency at import time.
    from mido import MidiFile

from .events import SoloEvent, is_rest
from .note_utils import degree_to_midi
from .solo import BEATS_PER_MEASURE

__all__ = ["TICKS_PER_BEAT", "beats_to_ticks", "create_midi_file"]


logger = logging.getLogger(__name__)

TICKS_PER_BEAT = 480

# Velocity for ordinary notes and the extra push given to notes that start
# a measure.
BASE_VELOCITY = 80
DOWNBEAT_ACCENT = 16


def beats_to_ticks(beats: Fraction) -> int:
    """Convert a beat count to MIDI ticks at :data:`TICKS_PER_BEAT`."""

    ticks = Fraction(beats) * TICKS_PER_BEAT
    if ticks.denominator != 1:
        raise ValueError(f"{beats} beats do not fall on a whole tick")
    return int(ticks)


def create_midi_file(
    events: Iterable[SoloEvent],
    bpm: int,
    output_file: str,
    *,
    program: int = 0,
    velocity: int = BASE_VELOCITY,
) -> "MidiFile":
    """Write ``events`` to ``output_file`` as a single-track 4/4 MIDI file.

    The parent directory of ``output_file`` is created automatically.

    Parameters
    ----------
    events:
        Solo events in playback order. Rests only advance time.
    bpm:
        Tempo in quarter-note beats per minute. Must be positive.
    output_file:
        Destination path.
    program:
        General MIDI program number (``0-127``) for the track.
    velocity:
        Base note velocity (``1-127``).

    Returns
    -------
    MidiFile
        In-memory representation of the written file.

    Raises
    ------
    ValueError
        For invalid ``bpm``, ``program`` or ``velocity`` values, or a note
        outside the MIDI range.
    ImportError
        If ``mido`` is not installed.
    """
    try:
        import mido
        from mido import Message, MetaMessage, MidiFile, MidiTrack
    except ModuleNotFoundError as exc:
        raise ImportError(
            "mido is required to create MIDI files; install it with 'pip install mido'"
        ) from exc

    if bpm <= 0:
        raise ValueError("bpm must be a positive integer")
    if not 0 <= program <= 127:
        raise ValueError("program must be between 0 and 127")
    if not 1 <= velocity <= 127:
        raise ValueError("velocity must be between 1 and 127")

    mid = MidiFile(ticks_per_beat=TICKS_PER_BEAT)
    track = MidiTrack()
    mid.tracks.append(track)
    track.append(MetaMessage("set_tempo", tempo=mido.bpm2tempo(bpm), time=0))
    track.append(
        MetaMessage("time_signature", numerator=BEATS_PER_MEASURE, denominator=4, time=0)
    )
    track.append(Message("program_change", program=program, time=0))

    position = Fraction(0)
    # Ticks of silence waiting to be attached to the next message.
    pending = 0
    for event in events:
        length = beats_to_ticks(event.beats)
        if is_rest(event):
            pending += length
        else:
            note = degree_to_midi(event.degree)
            vel = velocity
            if position % BEATS_PER_MEASURE == 0:
                vel = min(127, velocity + DOWNBEAT_ACCENT)
            track.append(Message("note_on", note=note, velocity=vel, time=pending))
            track.append(Message("note_off", note=note, velocity=0, time=length))
            pending = 0
        position += event.beats
    if pending:
        # Keep trailing rests so the file length matches the solo length.
        track.append(MetaMessage("end_of_track", time=pending))

    Path(output_file).expanduser().parent.mkdir(parents=True, exist_ok=True)
    mid.save(output_file)
    logger.info("MIDI file saved to %s", output_file)
    return mid

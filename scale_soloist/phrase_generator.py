"""Melodic phrase generation.

A phrase is a short run of notes (two or three in a typical solo) that moves
mostly by step, occasionally skips a third or fourth and now and then jumps
to any nearby scale tone.  The phrase picks up where the previous one left
off: the starting pitch is the last note found in the rolling history.

Algorithm Pseudocode
--------------------
::

    last_note = newest note in history or random scale tone
    direction = 0
    while notes emitted < length:
        candidate = stepwise / skip / free choice from last_note
        if candidate repeats one of the two previous events:
            maybe swap it for a close tone of a different pitch class
        duration = rhythm for this slot
        if candidate repeated the previous event and the rest roll hits:
            emit a rest (the slot is not used up)
        else:
            emit the note, last_note = candidate

All notes returned are entries of the supplied scale space.  A step that
would run off either end of the space is taken in the opposite direction
instead.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, GeneratorConfig
from .events import NoteEvent, SoloEvent, is_rest
from .note_utils import (
    nearest_in_scale,
    position_in_scale,
    semitone_interval,
    step_in_scale,
    transpose,
)
from .randomness import RandomSource, chance, choice, resolve_rng
from .rhythm_engine import RhythmGenerator
from .scales import EmptyScaleSpaceError, ScaleDegree

__all__ = ["generate_phrase", "last_sounded_note"]


logger = logging.getLogger(__name__)


def last_sounded_note(history: Iterable[SoloEvent]) -> Optional[ScaleDegree]:
    """Return the pitch of the newest note event in ``history``, if any."""

    for event in reversed(list(history)):
        if not is_rest(event):
            return event.degree
    return None


def _repeats(event: Optional[SoloEvent], candidate: ScaleDegree) -> bool:
    return event is not None and not is_rest(event) and event.degree == candidate


def _step(
    last_note: ScaleDegree,
    steps: int,
    space: Sequence[ScaleDegree],
) -> Tuple[ScaleDegree, int]:
    """Step by ``steps`` positions, bouncing off the ends of ``space``.

    Returns the new pitch and the direction actually travelled.
    """

    start = position_in_scale(last_note, space)
    if 0 <= start + steps < len(space):
        return step_in_scale(last_note, steps, space), 1 if steps > 0 else -1
    if 0 <= start - steps < len(space):
        return step_in_scale(last_note, -steps, space), -1 if steps > 0 else 1
    # The space is too small to move either way.
    return nearest_in_scale(last_note, space), 1 if steps > 0 else -1


def _select_pitch(
    last_note: ScaleDegree,
    direction: int,
    space: Sequence[ScaleDegree],
    cfg: GeneratorConfig,
    rng: RandomSource,
) -> Tuple[ScaleDegree, int]:
    """Return the next candidate pitch and the updated melodic direction."""

    if chance(rng, cfg.melodic_move_chance):
        if chance(rng, cfg.stepwise_chance):
            step = 1 if chance(rng, cfg.single_step_chance) else 2
            go_up = chance(rng, 0.5)
            # Prefer to keep moving the same way for smoother lines.
            if direction != 0 and chance(rng, cfg.keep_direction_chance):
                go_up = direction > 0
            return _step(last_note, step if go_up else -step, space)

        offset = choice(rng, cfg.skip_intervals)
        target = nearest_in_scale(transpose(last_note, offset), space)
        return target, 1 if offset > 0 else -1

    nearby = [
        entry
        for entry in space
        if abs(semitone_interval(last_note, entry)) <= cfg.free_choice_range
    ]
    if not nearby:
        # Only possible when the history note lies far outside the space.
        nearby = [nearest_in_scale(last_note, space)]
    target = choice(rng, nearby)
    interval = semitone_interval(last_note, target)
    if interval:
        direction = 1 if interval > 0 else -1
    return target, direction


def generate_phrase(
    space: Sequence[ScaleDegree],
    history: Iterable[SoloEvent],
    length: int,
    is_downbeat: bool = False,
    *,
    rng: Optional[RandomSource] = None,
    config: Optional[GeneratorConfig] = None,
) -> List[SoloEvent]:
    """Return a melodic phrase of ``length`` notes drawn from ``space``.

    Rests inserted in place of a repeated pitch do not use up a slot, so the
    result always holds exactly ``length`` :class:`NoteEvent` objects and may
    hold extra :class:`~scale_soloist.events.RestEvent` objects.

    @param space (Sequence[ScaleDegree]): Ascending scale space. Must not be
        empty; :class:`EmptyScaleSpaceError` is raised otherwise.
    @param history (Iterable[SoloEvent]): Recently emitted events, oldest
        first. Only read, never modified.
    @param length (int): Number of notes to emit. Must be at least ``1``.
    @param is_downbeat (bool): Whether the phrase opens a measure, which
        favours a quarter note on the first slot.
    @param rng (RandomSource|None): Random source; the :mod:`random` module
        when ``None``.
    @param config (GeneratorConfig|None): Probability constants.
    @returns List[SoloEvent]: Generated events in order.
    """

    space = tuple(space)
    if not space:
        raise EmptyScaleSpaceError("scale space must contain at least one note")
    if length < 1:
        raise ValueError("length must be at least 1")

    cfg = config or DEFAULT_CONFIG
    rng = resolve_rng(rng)
    rhythm = RhythmGenerator(cfg, rng)

    history = list(history)
    last_note = last_sounded_note(history)
    if last_note is None:
        last_note = choice(rng, space)
    direction = 0

    # The two events before the phrase take part in repetition checks so a
    # phrase does not simply restate the note the previous one ended on.
    context: List[SoloEvent] = history[-2:]
    events: List[SoloEvent] = []
    position = 0
    while position < length:
        candidate, direction = _select_pitch(last_note, direction, space, cfg, rng)

        recent = (context + events)[-2:]
        previous = recent[-1] if recent else None
        before_previous = recent[-2] if len(recent) == 2 else None
        repeats_previous = _repeats(previous, candidate)
        repeats_pattern = _repeats(before_previous, candidate)

        if (repeats_previous or repeats_pattern) and chance(rng, cfg.avoid_repetition_chance):
            alternatives = [
                entry
                for entry in space
                if entry.pitch_class != candidate.pitch_class
                and abs(semitone_interval(last_note, entry)) <= cfg.alternative_range
            ]
            if alternatives:
                candidate = choice(rng, alternatives)

        duration = rhythm.duration_for(
            position, length, is_downbeat=is_downbeat, previous=events
        )

        if repeats_previous and chance(rng, cfg.repetition_rest_chance):
            events.append(rhythm.rest())
            continue

        events.append(NoteEvent(candidate, duration))
        last_note = candidate
        position += 1

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Generated phrase: %s",
            " ".join(f"{e.note or 'rest'}/{e.duration.value}" for e in events),
        )
    return events

"""Duration selection for solo phrases.

Rhythm is decided separately from pitch.  :class:`RhythmGenerator` picks a
symbolic duration for each slot of a phrase based on where the slot sits:

* the opening slot of a downbeat phrase usually gets a quarter note,
* other opening slots and the closing slot prefer eighths over sixteenths,
* middle slots draw from a weighted table that can start a triplet group.

A triplet group always holds exactly three triplet eighths.  A group is only
started when two more slots follow, and while a group is open the next slot
is forced to a triplet eighth, even the closing slot of the phrase.

Rests come from their own weighted table via :meth:`RhythmGenerator.rest`.
"""

from __future__ import annotations

from typing import Optional, Sequence

from .config import DEFAULT_CONFIG, GeneratorConfig
from .events import Duration, RestEvent, SoloEvent, is_rest
from .randomness import RandomSource, chance, resolve_rng, weighted_choice

__all__ = ["RhythmGenerator", "trailing_triplets", "in_triplet_group", "create_rest"]


def trailing_triplets(previous: Sequence[SoloEvent]) -> int:
    """Count the triplet eighths at the end of ``previous``.

    Rests inserted in the middle of a group are skipped over so they do not
    cut the group short.
    """

    count = 0
    for event in reversed(previous):
        if is_rest(event):
            continue
        if event.duration is not Duration.EIGHTH_TRIPLET:
            break
        count += 1
    return count


def in_triplet_group(previous: Sequence[SoloEvent]) -> bool:
    """Return ``True`` when a triplet group has been started but not finished."""
    return trailing_triplets(previous) % 3 != 0


class RhythmGenerator:
    """Choose note and rest durations according to a :class:`GeneratorConfig`."""

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.rng = resolve_rng(rng)

    def duration_for(
        self,
        position: int,
        length: int,
        *,
        is_downbeat: bool,
        previous: Sequence[SoloEvent],
    ) -> Duration:
        """Return the duration for slot ``position`` of a ``length`` slot phrase.

        Parameters
        ----------
        position:
            Zero-based slot index.
        length:
            Total number of note slots in the phrase.
        is_downbeat:
            Whether the phrase opens a measure.
        previous:
            Events already emitted in this phrase, oldest first.
        """

        cfg = self.config
        if position == 0:
            if is_downbeat:
                return (
                    Duration.QUARTER
                    if chance(self.rng, cfg.downbeat_quarter_chance)
                    else Duration.EIGHTH
                )
            return (
                Duration.EIGHTH
                if chance(self.rng, cfg.phrase_start_eighth_chance)
                else Duration.SIXTEENTH
            )

        if in_triplet_group(previous):
            return Duration.EIGHTH_TRIPLET

        if position == length - 1:
            return (
                Duration.EIGHTH
                if chance(self.rng, cfg.phrase_end_eighth_chance)
                else Duration.SIXTEENTH
            )

        duration = weighted_choice(self.rng, cfg.middle_durations)
        # A new group needs two more slots after this one.
        if duration is Duration.EIGHTH_TRIPLET and position >= length - 2:
            return Duration.EIGHTH
        return duration

    def rest(self) -> RestEvent:
        """Return a rest drawn from the configured rest distribution."""
        return RestEvent(weighted_choice(self.rng, self.config.rest_durations))


def create_rest(
    rng: Optional[RandomSource] = None, config: Optional[GeneratorConfig] = None
) -> RestEvent:
    """Return a single rest using a throwaway :class:`RhythmGenerator`."""

    return RhythmGenerator(config, rng).rest()

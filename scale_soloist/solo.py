"""Assemble phrases into measures and complete solos.

The assembler strings short phrases together until each 4/4 measure is
full.  A rolling history of the last few events is threaded from phrase to
phrase so every phrase continues from the note the previous one ended on.

Measure boundaries are soft: the assembler stops adding phrases to measure
``i`` as soon as the running beat total reaches ``4 * (i + 1)``, and the
last phrase is allowed to run past that point.  The overshoot is not
trimmed, so later measures simply start a little late.

Example
-------
>>> import random
>>> from scale_soloist import build_scale_space, generate_solo
>>> space = build_scale_space("A", "minor", "pentatonic", 3, 10)
>>> events = generate_solo(space, 2, rng=random.Random(7))
>>> sum(e.beats for e in events) >= 8
True
"""

from __future__ import annotations

import logging
from collections import deque
from fractions import Fraction
from typing import Deque, Iterator, List, Optional, Sequence

from .config import DEFAULT_CONFIG, GeneratorConfig
from .events import SoloEvent, total_beats
from .phrase_generator import generate_phrase
from .randomness import RandomSource, chance, choice, make_rng, resolve_rng
from .rhythm_engine import RhythmGenerator
from .scales import EmptyScaleSpaceError, ScaleDegree, ScaleSpace, build_scale_space

__all__ = [
    "BEATS_PER_MEASURE",
    "generate_measures",
    "generate_solo",
    "iter_solo",
    "SoloGenerator",
]


logger = logging.getLogger(__name__)

# Solos are written in 4/4 with the quarter note as the beat.
BEATS_PER_MEASURE = 4


def generate_measures(
    space: Sequence[ScaleDegree],
    measure_count: int,
    *,
    rng: Optional[RandomSource] = None,
    config: Optional[GeneratorConfig] = None,
) -> List[List[SoloEvent]]:
    """Return ``measure_count`` measures of events, one list per measure.

    Each list holds the events generated while filling that measure. The
    running beat total after measure ``i`` is always at least
    ``BEATS_PER_MEASURE * (i + 1)``.

    @param space (Sequence[ScaleDegree]): Ascending, non-empty scale space.
    @param measure_count (int): Number of measures. Must be positive.
    @param rng (RandomSource|None): Random source shared by every phrase.
    @param config (GeneratorConfig|None): Probability constants.
    @returns List[List[SoloEvent]]: Events grouped by measure.
    """

    space = tuple(space)
    if not space:
        raise EmptyScaleSpaceError("scale space must contain at least one note")
    if measure_count < 1:
        raise ValueError("measure_count must be positive")

    cfg = config or DEFAULT_CONFIG
    rng = resolve_rng(rng)
    rhythm = RhythmGenerator(cfg, rng)
    lengths = range(cfg.min_phrase_length, cfg.max_phrase_length + 1)

    # The history only exists for this call; nothing carries over between
    # solos.
    history: Deque[SoloEvent] = deque(maxlen=cfg.history_size)
    measures: List[List[SoloEvent]] = []
    beats = Fraction(0)

    for index in range(measure_count):
        measure: List[SoloEvent] = []

        def emit(new: List[SoloEvent]) -> None:
            nonlocal beats
            measure.extend(new)
            history.extend(new)
            beats += total_beats(new)

        def phrase(is_downbeat: bool) -> List[SoloEvent]:
            return generate_phrase(
                space, history, choice(rng, lengths), is_downbeat, rng=rng, config=cfg
            )

        if index == 0:
            emit(phrase(True))
        else:
            if chance(rng, cfg.leading_rest_chance):
                emit([rhythm.rest()])
            emit(phrase(False))

        if chance(rng, cfg.between_phrase_rest_chance):
            emit([rhythm.rest()])

        boundary = BEATS_PER_MEASURE * (index + 1)
        while beats < boundary:
            if chance(rng, cfg.leading_rest_chance):
                emit([rhythm.rest()])
            emit(phrase(False))

        logger.debug(
            "Measure %d: %d events, running total %s beats", index, len(measure), beats
        )
        measures.append(measure)
    return measures


def generate_solo(
    space: Sequence[ScaleDegree],
    measure_count: int,
    *,
    rng: Optional[RandomSource] = None,
    config: Optional[GeneratorConfig] = None,
) -> List[SoloEvent]:
    """Return a solo of ``measure_count`` 4/4 measures as a flat event list.

    See :func:`generate_measures` for the assembly rules. Passing a seeded
    :class:`random.Random` makes the result reproducible.
    """

    measures = generate_measures(space, measure_count, rng=rng, config=config)
    return [event for measure in measures for event in measure]


def iter_solo(
    space: Sequence[ScaleDegree],
    measures_per_chunk: int = 2,
    *,
    rng: Optional[RandomSource] = None,
    config: Optional[GeneratorConfig] = None,
) -> Iterator[List[SoloEvent]]:
    """Yield an endless series of solo chunks for continuous playback.

    Each chunk is an independent :func:`generate_solo` call of
    ``measures_per_chunk`` measures, so a player can ask for the next chunk
    when it nears the end of the current one. Arguments are validated before
    the iterator is returned.
    """

    space = tuple(space)
    if not space:
        raise EmptyScaleSpaceError("scale space must contain at least one note")
    if measures_per_chunk < 1:
        raise ValueError("measures_per_chunk must be positive")

    def chunks() -> Iterator[List[SoloEvent]]:
        while True:
            yield generate_solo(space, measures_per_chunk, rng=rng, config=config)

    return chunks()


class SoloGenerator:
    """Bundle a scale space, a random source and a config.

    Handy for callers that generate repeatedly from the same settings, such
    as the web interface.
    """

    def __init__(
        self,
        space: Sequence[ScaleDegree],
        *,
        config: Optional[GeneratorConfig] = None,
        rng: Optional[RandomSource] = None,
        seed: Optional[int] = None,
    ) -> None:
        space = tuple(space)
        if not space:
            raise EmptyScaleSpaceError("scale space must contain at least one note")
        self.space: ScaleSpace = space
        self.config = (config or DEFAULT_CONFIG).validate()
        self.rng = rng if rng is not None else make_rng(seed)

    @classmethod
    def from_scale(
        cls,
        root: str,
        mode: str,
        category: str,
        start_octave: int,
        count: int,
        **kwargs,
    ) -> "SoloGenerator":
        """Build the scale space and wrap it in a generator."""
        return cls(build_scale_space(root, mode, category, start_octave, count), **kwargs)

    def phrase(
        self,
        length: int,
        history: Sequence[SoloEvent] = (),
        is_downbeat: bool = False,
    ) -> List[SoloEvent]:
        return generate_phrase(
            self.space, history, length, is_downbeat, rng=self.rng, config=self.config
        )

    def measures(self, measure_count: int) -> List[List[SoloEvent]]:
        return generate_measures(
            self.space, measure_count, rng=self.rng, config=self.config
        )

    def solo(self, measure_count: int) -> List[SoloEvent]:
        return generate_solo(self.space, measure_count, rng=self.rng, config=self.config)

    def stream(self, measures_per_chunk: int = 2) -> Iterator[List[SoloEvent]]:
        return iter_solo(
            self.space, measures_per_chunk, rng=self.rng, config=self.config
        )

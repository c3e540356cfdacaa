"""Injectable randomness for the solo generator.

Every probabilistic decision in the generator goes through the helpers in
this module and they only ever call ``random()`` on the source they are
handed.  Anything exposing that single method works: the :mod:`random`
module itself (the default), a seeded :class:`random.Random` for
reproducible output, or a scripted stub in tests.
"""

from __future__ import annotations

import logging
import random
from typing import Optional, Protocol, Sequence, Tuple, TypeVar

__all__ = ["RandomSource", "resolve_rng", "make_rng", "chance", "choice", "weighted_choice"]

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Anything providing a uniform draw in ``[0, 1)``."""

    def random(self) -> float:
        ...


def resolve_rng(rng: Optional[RandomSource]) -> RandomSource:
    """Return ``rng`` or the module-level :mod:`random` generator."""
    return random if rng is None else rng


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Return a dedicated :class:`random.Random`, seeded when ``seed`` is set."""

    if seed is not None:
        logger.debug("Seeding random source with %d", seed)
    return random.Random(seed)


def chance(rng: RandomSource, probability: float) -> bool:
    """Return ``True`` with the given ``probability``."""
    return rng.random() < probability


def choice(rng: RandomSource, items: Sequence[T]) -> T:
    """Return a uniformly chosen element of ``items``."""

    if not items:
        raise ValueError("cannot choose from an empty sequence")
    # ``min`` guards against sources that return exactly 1.0.
    return items[min(int(rng.random() * len(items)), len(items) - 1)]


def weighted_choice(rng: RandomSource, table: Sequence[Tuple[T, float]]) -> T:
    """Return an item from ``(item, weight)`` pairs in proportion to weight.

    Weights need not sum to one. The cumulative walk follows table order so
    a scripted source produces predictable picks.
    """

    total = sum(weight for _, weight in table)
    if total <= 0:
        raise ValueError("weights must sum to a positive value")
    threshold = rng.random() * total
    cumulative = 0.0
    for item, weight in table:
        cumulative += weight
        if threshold < cumulative:
            return item
    # Floating point rounding can leave ``threshold`` fractionally above the
    # last cumulative value; fall back to the last weighted entry.
    return next(item for item, weight in reversed(table) if weight > 0)

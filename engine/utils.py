"""Funkcje pomocnicze dla silnika meczowego."""
from __future__ import annotations

import math
import random
from typing import Iterable, Optional, Protocol, Sequence, Tuple, TypeVar

T = TypeVar('T')
Point = Tuple[float, float]


class RandomSource(Protocol):
    """Minimalny kontrakt generatora: ``random()`` w przedziale [0, 1).

    ``random.Random`` spełnia go wprost; w testach wystarczy obiekt
    z jedną metodą (np. zawsze zwracający 0.0).
    """

    def random(self) -> float: ...


def make_rng(seed: Optional[int] = None) -> random.Random:
    """
    Tworzy niezależny generator liczb losowych.

    Args:
        seed: Seed dla reproducibility (None = losowy)
    """
    return random.Random(seed)


def roll(rng: RandomSource, low: float, high: float) -> float:
    """Losowanie jednostajne U(low, high)."""
    return low + (high - low) * rng.random()


def chance(rng: RandomSource, p: float) -> bool:
    return rng.random() < p


def pick(rng: RandomSource, options: Sequence[T]) -> Optional[T]:
    """Losowy element sekwencji; None dla pustej."""
    if not options:
        return None
    idx = int(rng.random() * len(options))
    return options[min(idx, len(options) - 1)]


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def move_towards(current: Point, target: Point, max_step: float) -> Point:
    """
    Przesuwa punkt w stronę celu o co najwyżej ``max_step``.

    Jeśli cel jest w zasięgu kroku – ląduje dokładnie na nim (bez przestrzelenia).
    """
    dist = distance(current, target)
    if dist <= max_step or dist == 0.0:
        return target
    ratio = max_step / dist
    return (
        current[0] + (target[0] - current[0]) * ratio,
        current[1] + (target[1] - current[1]) * ratio,
    )


def nearest(point: Point, candidates: Iterable[T], key=lambda c: (c.x, c.y)) -> Optional[T]:
    """Najbliższy kandydat względem punktu (stabilnie przy remisach)."""
    best = None
    best_dist = math.inf
    for c in candidates:
        d = distance(point, key(c))
        if d < best_dist:
            best, best_dist = c, d
    return best

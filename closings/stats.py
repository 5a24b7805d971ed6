"""
Descriptive statistics of a single ticket.

Everything here is a pure function of its arguments; the frame/center split
depends only on the game layout and is memoized per :class:`GameDomain`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Dict, FrozenSet, Optional, Sequence

import numpy as np

from .games import GameDomain


def _prime_sieve(n: int) -> np.ndarray:
    is_p = np.ones(n + 1, dtype=bool)
    is_p[:2] = False
    for p in range(2, int(n**0.5) + 1):
        if is_p[p]:
            is_p[p * p : n + 1 : p] = False
    return is_p


PRIMES: FrozenSet[int] = frozenset(int(p) for p in np.flatnonzero(_prime_sieve(100)))
FIBONACCI: FrozenSet[int] = frozenset({0, 1, 2, 3, 5, 8, 13, 21, 34, 55, 89})
TRIANGULAR: FrozenSet[int] = frozenset(n * (n + 1) // 2 for n in range(14))


@dataclass(frozen=True)
class DetailedStats:
    evens: int
    odds: int
    total: int
    mean: float
    std_dev: float
    primes: int
    fibonacci: int
    triangular: int
    multiples_of_3: int
    frame: int
    center: int
    repeats: Optional[int]  # None when no previous draw was supplied

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class BasicStats:
    evens: int
    odds: int
    total: int


def basic_stats(ticket: Sequence[int]) -> BasicStats:
    evens = sum(1 for n in ticket if n % 2 == 0)
    return BasicStats(evens=evens, odds=len(ticket) - evens, total=int(sum(ticket)))


@lru_cache(maxsize=None)
def frame_numbers(game: GameDomain) -> FrozenSet[int]:
    """Numbers lying on the first/last row or column of the game's grid."""

    frame = set()
    last_row = game.rows - 1
    for n in game.numbers():
        offset = n if game.zero_based else n - 1
        row, col = divmod(offset, game.cols)
        if row in (0, last_row) or col in (0, game.cols - 1):
            frame.add(n)
    return frozenset(frame)


def has_long_sequence(ticket: Sequence[int], max_run: int = 2) -> bool:
    """True when ``ticket`` holds more than ``max_run`` consecutive numbers."""

    ordered = sorted(ticket)
    run = 1
    for prev, cur in zip(ordered, ordered[1:]):
        if cur == prev + 1:
            run += 1
            if run > max_run:
                return True
        else:
            run = 1
    return False


def balance_status(value: float, lo: float, hi: float) -> str:
    """Classify ``value`` against an ideal ``[lo, hi]`` band: ideal, warn (off by one) or bad."""

    if lo <= value <= hi:
        return "ideal"
    if lo - 1 <= value <= hi + 1:
        return "warn"
    return "bad"


def compute_stats(
    ticket: Sequence[int], game: GameDomain, previous_draw: Optional[Sequence[int]] = None
) -> DetailedStats:
    numbers = [int(n) for n in ticket]
    if not numbers:
        raise ValueError("Cannot compute statistics of an empty ticket")
    # Column-encoded games keep the digit in the units place.
    values = np.array([n % 10 for n in numbers] if game.column_encoded else numbers, dtype=float)

    evens = int(np.count_nonzero(values % 2 == 0))
    repeats: Optional[int] = None
    if previous_draw:
        previous = {int(n) for n in previous_draw}
        repeats = sum(1 for n in numbers if n in previous)

    frame = frame_numbers(game)
    frame_count = sum(1 for n in numbers if n in frame)
    ints = values.astype(int).tolist()

    return DetailedStats(
        evens=evens,
        odds=len(ints) - evens,
        total=int(values.sum()),
        mean=round(float(values.mean()), 2),
        std_dev=round(float(values.std()), 2),
        primes=sum(1 for v in ints if v in PRIMES),
        fibonacci=sum(1 for v in ints if v in FIBONACCI),
        triangular=sum(1 for v in ints if v in TRIANGULAR),
        multiples_of_3=sum(1 for v in ints if v % 3 == 0),
        frame=frame_count,
        center=len(numbers) - frame_count,
        repeats=repeats,
    )


__all__ = [
    "DetailedStats",
    "BasicStats",
    "PRIMES",
    "FIBONACCI",
    "TRIANGULAR",
    "basic_stats",
    "frame_numbers",
    "has_long_sequence",
    "balance_status",
    "compute_stats",
]

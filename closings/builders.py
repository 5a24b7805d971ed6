"""
Ticket builders: one class per generation strategy, one shared call shape.

Every builder exposes ``build(pool, size, count, exclusions=(), on_progress=None)``
and returns distinct ascending tickets drawn from ``pool`` whose signatures are
not in ``exclusions``. Randomness comes from the injected numpy ``Generator`` so
callers (and tests) control reproducibility with a seed.
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import AbstractSet, Callable, Iterable, List, Optional, Sequence, Set

import numpy as np

from .combinations import combinations_count, enumerate_combinations
from .config import DEFAULT_CONFIG, GenerationConfig
from .games import GameDomain
from .stats import basic_stats, compute_stats, has_long_sequence
from .ticket import Ticket, signature

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

_TICKET_ATTEMPTS_FACTOR = 50
# Candidates are scored by enumerating their own guarantee-size subsets.
_MAX_SUBSETS_PER_TICKET = 10_000


class Strategy(str, Enum):
    EXHAUSTIVE = "exhaustive"
    BALANCED = "balanced"
    REDUCED = "reduced"
    GUARANTEED = "guaranteed"
    SMART_PATTERN = "smart_pattern"
    RANDOM = "random"


def _source(pool: Iterable[int]) -> np.ndarray:
    return np.array(sorted({int(v) for v in pool}), dtype=int)


def _report(on_progress: Optional[ProgressCallback], done: int, total: int) -> None:
    if on_progress is not None and total > 0:
        on_progress(min(99, done * 100 // total))


@dataclass
class _Builder:
    rng: np.random.Generator = field(default_factory=np.random.default_rng)
    config: GenerationConfig = DEFAULT_CONFIG

    def _random_ticket(self, source: np.ndarray, size: int) -> Ticket:
        return tuple(sorted(int(v) for v in self.rng.choice(source, size=size, replace=False)))


@dataclass
class ExhaustiveBuilder(_Builder):
    """Every combination of the pool, lexicographic, capped at ``config.max_combinations``."""

    def build(
        self,
        pool: Iterable[int],
        size: int,
        count: Optional[int] = None,
        exclusions: AbstractSet[str] = frozenset(),
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Ticket]:
        combos = enumerate_combinations(pool, size, limit=self.config.max_combinations)
        wanted = len(combos) if count is None else count
        tickets: List[Ticket] = []
        for i, combo in enumerate(combos, start=1):
            if len(tickets) >= wanted:
                break
            if i % self.config.progress_every == 0:
                _report(on_progress, i, len(combos))
            if exclusions and signature(combo) in exclusions:
                continue
            tickets.append(combo)
        return tickets


@dataclass
class RandomBuilder(_Builder):
    """Uniform random unique tickets ("free mode")."""

    def build(
        self,
        pool: Iterable[int],
        size: int,
        count: int,
        exclusions: AbstractSet[str] = frozenset(),
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Ticket]:
        source = _source(pool)
        if size <= 0 or count <= 0 or len(source) < size:
            return []
        tickets: List[Ticket] = []
        seen: Set[str] = set()
        attempts, max_attempts = 0, count * self.config.random_attempts_factor
        while len(tickets) < count and attempts < max_attempts:
            attempts += 1
            if attempts % self.config.progress_every == 0:
                _report(on_progress, len(tickets), count)
            ticket = self._random_ticket(source, size)
            sig = signature(ticket)
            if sig in seen or sig in exclusions:
                continue
            seen.add(sig)
            tickets.append(ticket)
        return tickets


@dataclass
class BalancedMatrixBuilder(_Builder):
    """
    Large batches where every pool number occurs about equally often.

    Each number is replicated ``ceil(size * count / len(pool))`` times into a
    shuffled bag; tickets take distinct numbers off the bag in order and the bag
    is reshuffled whenever it runs out. The spread is statistical, not a
    combinatorial guarantee.
    """

    def build(
        self,
        pool: Iterable[int],
        size: int,
        count: int,
        exclusions: AbstractSet[str] = frozenset(),
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Ticket]:
        source = _source(pool)
        if size <= 0 or count <= 0 or len(source) < size:
            return []

        target = math.ceil(size * count / len(source))
        bag = np.repeat(source, target)
        self.rng.shuffle(bag)
        pos = 0

        tickets: List[Ticket] = []
        seen: Set[str] = set()
        attempts, max_attempts = 0, count * _TICKET_ATTEMPTS_FACTOR
        while len(tickets) < count and attempts < max_attempts:
            attempts += 1
            if attempts % self.config.progress_every == 0:
                _report(on_progress, len(tickets), count)

            chosen: Set[int] = set()
            draws = 0
            while len(chosen) < size and draws < self.config.balanced_draw_attempts:
                draws += 1
                if pos >= len(bag):
                    self.rng.shuffle(bag)
                    pos = 0
                chosen.add(int(bag[pos]))
                pos += 1
            if len(chosen) < size:
                rest = np.array([n for n in source if n not in chosen], dtype=int)
                chosen.update(int(n) for n in self.rng.choice(rest, size=size - len(chosen), replace=False))

            ticket = tuple(sorted(chosen))
            sig = signature(ticket)
            if sig in seen or sig in exclusions:
                continue
            seen.add(sig)
            tickets.append(ticket)
        return tickets


@dataclass
class _ClosingBuilder(_Builder):
    guarantee_size: Optional[int] = None

    def build(
        self,
        pool: Iterable[int],
        size: int,
        count: int,
        exclusions: AbstractSet[str] = frozenset(),
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Ticket]:
        source = _source(pool)
        if size <= 0 or count <= 0 or len(source) < size:
            return []
        if len(source) == size:
            only = tuple(int(v) for v in source)
            return [] if signature(only) in exclusions else [only]

        tickets = self._search(source, size, count, exclusions, on_progress)
        if len(tickets) < count:
            produced = {signature(t) for t in tickets}
            logger.debug(
                "%s produced %d/%d tickets; filling with a balanced matrix",
                type(self).__name__,
                len(tickets),
                count,
            )
            filler = BalancedMatrixBuilder(rng=self.rng, config=self.config)
            tickets.extend(
                filler.build(source, size, count - len(tickets), exclusions=set(exclusions) | produced)
            )
        return tickets[:count]

    def _search(
        self,
        source: np.ndarray,
        size: int,
        count: int,
        exclusions: AbstractSet[str],
        on_progress: Optional[ProgressCallback],
    ) -> List[Ticket]:
        raise NotImplementedError


@dataclass
class ReducedClosingBuilder(_ClosingBuilder):
    """
    Approximate covering design: aim for every ``guarantee_size``-subset of the
    pool to sit inside at least one ticket.

    Small subset spaces are covered greedily (best of several usage-weighted
    candidates, forced tickets for stubborn subsets). Larger spaces fall back to
    packing: a candidate is kept only when it shares fewer than
    ``guarantee_size`` numbers with every ticket already kept.
    """

    max_parity_gap: Optional[int] = None

    def _guarantee(self, size: int) -> int:
        t = self.guarantee_size if self.guarantee_size is not None else max(2, size - 1)
        return max(1, min(t, size))

    def _parity_ok(self, ticket: Sequence[int]) -> bool:
        if self.max_parity_gap is None:
            return True
        stats = basic_stats(ticket)
        return abs(stats.evens - stats.odds) <= self.max_parity_gap

    def _candidate(self, usage: np.ndarray, size: int) -> np.ndarray:
        return np.sort(np.argsort(usage + self.rng.random(usage.size), kind="stable")[:size])

    def _search(self, source, size, count, exclusions, on_progress):
        t = self._guarantee(size)
        subsets = combinations_count(len(source), t)
        if subsets <= self.config.covering_subset_cap and combinations_count(size, t) <= _MAX_SUBSETS_PER_TICKET:
            return self._cover(source, size, t, count, exclusions, on_progress)
        logger.debug("%d subsets of size %d; using packing heuristic", subsets, t)
        return self._pack(source, size, t, count, exclusions, on_progress)

    def _cover(self, source, size, t, count, exclusions, on_progress) -> List[Ticket]:
        m = source.size
        uncovered = set(itertools.combinations(range(m), t))
        usage = np.zeros(m, dtype=float)
        tickets: List[Ticket] = []
        seen: Set[str] = set()
        attempts, max_attempts = 0, count * self.config.reduced_attempts_factor

        while uncovered and len(tickets) < count and attempts < max_attempts:
            best_idx, best_gain = None, 0
            for _ in range(self.config.covering_candidates):
                attempts += 1
                if attempts % self.config.progress_every == 0:
                    _report(on_progress, len(tickets), count)
                idx = tuple(int(i) for i in self._candidate(usage, size))
                ticket = tuple(int(source[i]) for i in idx)
                sig = signature(ticket)
                if sig in seen or sig in exclusions or not self._parity_ok(ticket):
                    continue
                gain = sum(1 for sub in itertools.combinations(idx, t) if sub in uncovered)
                if gain > best_gain:
                    best_idx, best_gain = idx, gain

            if best_idx is None:
                attempts += 1
                best_idx = self._forced(uncovered, usage, size, source, seen, exclusions)
                if best_idx is None:
                    continue

            ticket = tuple(int(source[i]) for i in best_idx)
            seen.add(signature(ticket))
            tickets.append(ticket)
            usage[list(best_idx)] += 1
            uncovered.difference_update(itertools.combinations(best_idx, t))

        if uncovered:
            logger.debug("Covering stopped with %d subsets uncovered", len(uncovered))
        return tickets

    def _forced(self, uncovered, usage, size, source, seen, exclusions):
        """Build a ticket around one uncovered subset, filling with the least used numbers."""

        target = min(uncovered)
        rest = np.array([i for i in range(usage.size) if i not in target], dtype=int)
        order = rest[np.argsort(usage[rest] + self.rng.random(rest.size), kind="stable")]
        idx = tuple(sorted(target + tuple(int(i) for i in order[: size - len(target)])))
        sig = signature(int(source[i]) for i in idx)
        if sig in seen or sig in exclusions:
            return None
        return idx

    def _pack(self, source, size, t, count, exclusions, on_progress) -> List[Ticket]:
        m = source.size
        usage = np.zeros(m, dtype=float)
        membership = np.zeros((count, m), dtype=np.int32)
        tickets: List[Ticket] = []
        seen: Set[str] = set()
        attempts, max_attempts = 0, count * self.config.reduced_attempts_factor

        while len(tickets) < count and attempts < max_attempts:
            attempts += 1
            if attempts % self.config.progress_every == 0:
                _report(on_progress, len(tickets), count)
            idx = self._candidate(usage, size)
            ticket = tuple(int(v) for v in source[idx])
            sig = signature(ticket)
            if sig in seen or sig in exclusions or not self._parity_ok(ticket):
                continue
            n = len(tickets)
            if n and int((membership[:n, idx].sum(axis=1)).max()) >= t:
                continue
            membership[n, idx] = 1
            usage[idx] += 1
            seen.add(sig)
            tickets.append(ticket)
        return tickets


@dataclass
class DeterministicClosingBuilder(_ClosingBuilder):
    """
    Stricter spread: best-of-N usage-weighted candidates, rejecting tickets that
    overlap an accepted ticket in too many numbers.

    The allowed overlap starts at ``guarantee_size - 1`` (default
    ``max(2, size - 3)``) and is relaxed by one after every 50 rejections; after
    ``count * 20`` attempts candidates are accepted regardless.
    """

    candidates_per_attempt: int = 10

    def _search(self, source, size, count, exclusions, on_progress):
        m = source.size
        usage = np.zeros(m, dtype=float)
        membership = np.zeros((count, m), dtype=np.int32)
        tickets: List[Ticket] = []
        seen: Set[str] = set()

        if self.guarantee_size is not None:
            allowed = min(size - 1, max(1, self.guarantee_size - 1))
        else:
            allowed = min(size - 1, max(2, size - 3))
        attempts, max_attempts = 0, count * self.config.guaranteed_attempts_factor
        rejections = 0

        while len(tickets) < count and attempts < max_attempts:
            attempts += 1
            if attempts % self.config.progress_every == 0:
                _report(on_progress, len(tickets), count)
            n = len(tickets)

            best, best_overlap, best_score = None, 0, -math.inf
            for _ in range(self.candidates_per_attempt):
                weights = 1.0 / (usage + 1.0) + self.rng.random(m) * 0.8
                idx = np.sort(np.argsort(-weights, kind="stable")[:size])
                ticket = tuple(int(v) for v in source[idx])
                sig = signature(ticket)
                if sig in seen or sig in exclusions:
                    continue
                if n == 0:
                    overlap, score = 0, float(self.rng.random())
                else:
                    overlap = int(membership[:n, idx].sum(axis=1).max())
                    score = (size - overlap) * 10.0
                    if overlap > allowed:
                        score -= 1000
                if score > best_score:
                    best, best_overlap, best_score = (idx, ticket, sig), overlap, score

            if best is None:
                continue
            idx, ticket, sig = best
            if n == 0 or best_overlap <= allowed or attempts > count * 20:
                membership[n, idx] = 1
                usage[idx] += 1
                seen.add(sig)
                tickets.append(ticket)
            else:
                rejections += 1
                if rejections % 50 == 0 and allowed < size - 1:
                    allowed += 1
        return tickets


@dataclass
class SmartPatternBuilder(_Builder):
    """
    Random candidates kept only when they match the game's usual draw pattern.

    For Lotofácil 15-number tickets: sum 180-220, 7-9 odd numbers, 4-6 primes,
    no run longer than 5, and 8-10 numbers repeated from the previous draw when
    one is known. Other games only reject runs of three or more consecutive
    numbers (Lotomania has no run rule).
    """

    game: Optional[GameDomain] = None
    previous_draw: Optional[Sequence[int]] = None

    def build(
        self,
        pool: Iterable[int],
        size: int,
        count: int,
        exclusions: AbstractSet[str] = frozenset(),
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Ticket]:
        source = _source(pool)
        if size <= 0 or count <= 0 or len(source) < size:
            return []

        game_id = self.game.id if self.game is not None else None
        pattern = game_id == "lotofacil" and size == 15
        max_run = 5 if game_id == "lotofacil" else None if game_id == "lotomania" else 2

        previous = {int(n) for n in (self.previous_draw or ())}
        source_set = {int(n) for n in source}
        from_last = np.array(sorted(previous & source_set), dtype=int)
        others = np.array([n for n in source if n not in previous], dtype=int)

        tickets: List[Ticket] = []
        seen: Set[str] = set()
        attempts, max_attempts = 0, count * self.config.smart_attempts_factor
        while len(tickets) < count and attempts < max_attempts:
            attempts += 1
            if attempts % self.config.progress_every == 0:
                _report(on_progress, len(tickets), count)

            if pattern and from_last.size:
                ticket = self._with_repeats(from_last, others, source, size)
            else:
                ticket = self._random_ticket(source, size)
            sig = signature(ticket)
            if sig in seen or sig in exclusions:
                continue

            if pattern:
                stats = compute_stats(ticket, self.game, None)
                if not 180 <= stats.total <= 220:
                    continue
                if not 7 <= stats.odds <= 9:
                    continue
                if not 4 <= stats.primes <= 6:
                    continue
            if max_run is not None and has_long_sequence(ticket, max_run):
                continue

            seen.add(sig)
            tickets.append(ticket)
        return tickets

    def _with_repeats(self, from_last, others, source, size) -> Ticket:
        roll = self.rng.random()
        target = 8 if roll < 0.25 else 10 if roll > 0.75 else 9
        repeats = min(target, from_last.size)
        needed = size - repeats
        if needed > others.size:
            return self._random_ticket(source, size)
        picked = list(self.rng.choice(from_last, size=repeats, replace=False))
        if needed:
            picked += list(self.rng.choice(others, size=needed, replace=False))
        return tuple(sorted(int(v) for v in picked))


def make_builder(
    strategy: Strategy,
    *,
    rng: np.random.Generator,
    config: GenerationConfig = DEFAULT_CONFIG,
    game: Optional[GameDomain] = None,
    previous_draw: Optional[Sequence[int]] = None,
    guarantee_size: Optional[int] = None,
):
    """Map a strategy tag to a configured builder instance."""

    strategy = Strategy(strategy)
    if strategy is Strategy.EXHAUSTIVE:
        return ExhaustiveBuilder(rng=rng, config=config)
    if strategy is Strategy.BALANCED:
        return BalancedMatrixBuilder(rng=rng, config=config)
    if strategy is Strategy.REDUCED:
        parity_gap = 5 if game is not None and game.id == "lotofacil" else None
        return ReducedClosingBuilder(
            rng=rng, config=config, guarantee_size=guarantee_size, max_parity_gap=parity_gap
        )
    if strategy is Strategy.GUARANTEED:
        return DeterministicClosingBuilder(rng=rng, config=config, guarantee_size=guarantee_size)
    if strategy is Strategy.SMART_PATTERN:
        return SmartPatternBuilder(rng=rng, config=config, game=game, previous_draw=previous_draw)
    return RandomBuilder(rng=rng, config=config)


__all__ = [
    "Strategy",
    "ProgressCallback",
    "ExhaustiveBuilder",
    "RandomBuilder",
    "BalancedMatrixBuilder",
    "ReducedClosingBuilder",
    "DeterministicClosingBuilder",
    "SmartPatternBuilder",
    "make_builder",
]

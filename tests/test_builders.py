import itertools
from collections import Counter

import numpy as np
import pytest

from closings.builders import (
    BalancedMatrixBuilder,
    DeterministicClosingBuilder,
    ExhaustiveBuilder,
    RandomBuilder,
    ReducedClosingBuilder,
    SmartPatternBuilder,
    Strategy,
    make_builder,
)
from closings.config import GenerationConfig
from closings.games import get_game
from closings.stats import compute_stats, has_long_sequence
from closings.ticket import signature


def _assert_valid(tickets, pool, size):
    pool = set(pool)
    assert len({signature(t) for t in tickets}) == len(tickets)
    for ticket in tickets:
        assert len(ticket) == size
        assert len(set(ticket)) == size
        assert list(ticket) == sorted(ticket)
        assert set(ticket) <= pool


def test_balanced_matrix_spreads_numbers_evenly():
    pool = range(1, 26)
    tickets = BalancedMatrixBuilder(rng=np.random.default_rng(11)).build(pool, 15, 100)

    _assert_valid(tickets, pool, 15)
    assert len(tickets) == 100

    counts = Counter(n for t in tickets for n in t)
    average = 15 * 100 / 25
    assert set(counts) == set(pool)
    assert all(0.65 * average <= c <= 1.35 * average for c in counts.values())


def test_balanced_matrix_needs_enough_numbers():
    assert BalancedMatrixBuilder(rng=np.random.default_rng(1)).build([1, 2, 3], 6, 10) == []


def test_balanced_matrix_skips_excluded_tickets():
    excluded = {signature(range(1, 7))}
    tickets = BalancedMatrixBuilder(rng=np.random.default_rng(3)).build(range(1, 8), 6, 7, exclusions=excluded)

    expected = {c for c in itertools.combinations(range(1, 8), 6)} - {tuple(range(1, 7))}
    assert set(tickets) == expected


def test_reduced_closing_covers_every_subset():
    pool = range(1, 9)
    tickets = ReducedClosingBuilder(rng=np.random.default_rng(5), guarantee_size=5).build(pool, 6, 28)

    _assert_valid(tickets, pool, 6)
    covered = {sub for t in tickets for sub in itertools.combinations(t, 5)}
    assert covered == set(itertools.combinations(pool, 5))


def test_reduced_closing_respects_exclusions_and_reports_progress():
    pool = range(1, 19)
    excluded = {signature(c) for c in itertools.islice(itertools.combinations(pool, 15), 200)}
    progress = []
    builder = ReducedClosingBuilder(
        rng=np.random.default_rng(8), config=GenerationConfig(progress_every=5), max_parity_gap=5
    )

    tickets = builder.build(pool, 15, 50, exclusions=excluded, on_progress=progress.append)

    _assert_valid(tickets, pool, 15)
    assert len(tickets) == 50
    assert not excluded.intersection(signature(t) for t in tickets)
    assert progress and all(0 <= p <= 99 for p in progress)


def test_reduced_closing_packs_large_pools():
    tickets = ReducedClosingBuilder(rng=np.random.default_rng(2), guarantee_size=5).build(range(1, 61), 6, 30)

    _assert_valid(tickets, range(1, 61), 6)
    assert len(tickets) == 30
    for a, b in itertools.combinations(tickets, 2):
        assert len(set(a) & set(b)) < 5


def test_deterministic_closing_fills_requested_count():
    pool = range(1, 21)
    progress = []
    builder = DeterministicClosingBuilder(rng=np.random.default_rng(4), config=GenerationConfig(progress_every=1))

    tickets = builder.build(pool, 6, 15, on_progress=progress.append)

    _assert_valid(tickets, pool, 6)
    assert len(tickets) == 15
    assert progress == sorted(progress)


@pytest.mark.parametrize("builder_cls", [ReducedClosingBuilder, DeterministicClosingBuilder])
def test_closings_return_the_pool_when_it_is_one_ticket(builder_cls):
    builder = builder_cls(rng=np.random.default_rng(0))

    assert builder.build([3, 1, 2], 3, 5) == [(1, 2, 3)]
    assert builder.build([3, 1, 2], 3, 5, exclusions={"1-2-3"}) == []


def test_exhaustive_builder_skips_excluded():
    builder = ExhaustiveBuilder(rng=np.random.default_rng(0))
    everything = builder.build(range(1, 18), 15)

    assert len(everything) == 136
    assert len(builder.build(range(1, 18), 15, exclusions={signature(range(1, 16))})) == 135
    assert len(builder.build(range(1, 18), 15, count=10)) == 10


def test_random_builder_is_reproducible():
    first = RandomBuilder(rng=np.random.default_rng(42)).build(range(1, 61), 6, 20)
    second = RandomBuilder(rng=np.random.default_rng(42)).build(range(1, 61), 6, 20)

    _assert_valid(first, range(1, 61), 6)
    assert first == second


def test_smart_pattern_follows_lotofacil_rules():
    lotofacil = get_game("lotofacil")
    previous = (1, 2, 4, 5, 7, 9, 10, 12, 13, 15, 17, 19, 20, 22, 24)
    builder = SmartPatternBuilder(rng=np.random.default_rng(9), game=lotofacil, previous_draw=previous)

    tickets = builder.build(range(1, 26), 15, 10)

    _assert_valid(tickets, range(1, 26), 15)
    assert len(tickets) == 10
    for ticket in tickets:
        stats = compute_stats(ticket, lotofacil, previous)
        assert 180 <= stats.total <= 220
        assert 7 <= stats.odds <= 9
        assert 4 <= stats.primes <= 6
        assert stats.repeats in (8, 9, 10)
        assert not has_long_sequence(ticket, 5)


def test_smart_pattern_avoids_runs_elsewhere():
    builder = SmartPatternBuilder(rng=np.random.default_rng(6), game=get_game("megasena"))
    tickets = builder.build(range(1, 61), 6, 25)

    assert len(tickets) == 25
    assert not any(has_long_sequence(t, 2) for t in tickets)


@pytest.mark.parametrize(
    "strategy,expected",
    [
        (Strategy.EXHAUSTIVE, ExhaustiveBuilder),
        (Strategy.BALANCED, BalancedMatrixBuilder),
        (Strategy.REDUCED, ReducedClosingBuilder),
        (Strategy.GUARANTEED, DeterministicClosingBuilder),
        (Strategy.SMART_PATTERN, SmartPatternBuilder),
        (Strategy.RANDOM, RandomBuilder),
        ("reduced", ReducedClosingBuilder),
    ],
)
def test_make_builder_maps_strategies(strategy, expected):
    assert type(make_builder(strategy, rng=np.random.default_rng(0))) is expected


def test_make_builder_applies_lotofacil_parity_rule():
    builder = make_builder(Strategy.REDUCED, rng=np.random.default_rng(0), game=get_game("lotofacil"))

    assert builder.max_parity_gap == 5


def test_deterministic_closing_skips_excluded_tickets():
    pool = range(1, 10)
    excluded = {signature(c) for c in itertools.combinations(pool, 4) if 1 in c}
    builder = DeterministicClosingBuilder(rng=np.random.default_rng(12))

    tickets = builder.build(pool, 4, 30, exclusions=excluded)

    _assert_valid(tickets, pool, 4)
    assert len(tickets) == 30
    assert not excluded.intersection(signature(t) for t in tickets)


def test_exhaustive_reports_progress_through_excluded_combinations():
    pool = range(1, 9)
    combos = list(itertools.combinations(pool, 6))
    excluded = {signature(c) for c in combos[:-1]}
    progress = []
    builder = ExhaustiveBuilder(rng=np.random.default_rng(0), config=GenerationConfig(progress_every=5))

    tickets = builder.build(pool, 6, exclusions=excluded, on_progress=progress.append)

    assert tickets == [combos[-1]]
    assert progress == [17, 35, 53, 71, 89]

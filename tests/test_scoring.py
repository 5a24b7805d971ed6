import numpy as np
import pytest

from closings.games import GameDomain, get_game
from closings.scoring import filter_best, score_ticket, tickets_frame

IDEAL_LOTOFACIL = (2, 3, 5, 7, 8, 9, 10, 12, 14, 16, 18, 19, 21, 23, 25)  # 8 odd, sum 192, 6 primes
LOW_LOTOFACIL = tuple(range(1, 16))  # sum 120


def test_lotofacil_rewards_balanced_tickets():
    lotofacil = get_game("lotofacil")

    assert score_ticket(IDEAL_LOTOFACIL, lotofacil) == 97
    assert score_ticket(LOW_LOTOFACIL, lotofacil) == 85


def test_lotofacil_penalizes_unusual_repeat_counts():
    lotofacil = get_game("lotofacil")
    odd_heavy = (1, 2, 3, 4, 5, 7, 9, 11, 13, 15, 17, 19, 21, 23, 25)
    previous = (6, 8, 10, 12, 14, 16, 18, 20, 22, 24, 26)

    assert score_ticket(odd_heavy, lotofacil, previous_draw=previous) == 45


def test_megasena_and_quina_thresholds():
    assert score_ticket((1, 2, 3, 4, 5, 6), get_game("megasena")) == 79
    assert score_ticket((1, 2, 3, 4, 5), get_game("quina")) == 55
    assert score_ticket((10, 30, 50, 70, 80), get_game("quina")) == 95
    assert score_ticket((10, 11, 50, 70, 80), get_game("quina")) == 79


def test_unknown_games_get_a_neutral_score():
    custom = GameDomain(id="custom", name="Custom", total_numbers=30, min_size=6, max_size=6, cols=6)

    assert score_ticket((1, 2, 3, 4, 5, 6), custom) == 94


def test_scores_stay_in_range():
    lotofacil = get_game("lotofacil")
    rng = np.random.default_rng(7)
    previous = tuple(range(1, 16))

    for _ in range(300):
        ticket = tuple(sorted(int(v) for v in rng.choice(np.arange(1, 26), size=15, replace=False)))
        assert 40 <= score_ticket(ticket, lotofacil, previous) <= 99


def test_filter_best_keeps_top_scores():
    best = filter_best([LOW_LOTOFACIL, IDEAL_LOTOFACIL, LOW_LOTOFACIL[::-1]], get_game("lotofacil"), limit=2)

    assert best.original_count == 3
    assert best.tickets == [IDEAL_LOTOFACIL, LOW_LOTOFACIL]


def test_tickets_frame_tabulates_stats():
    lotofacil = get_game("lotofacil")
    df = tickets_frame([IDEAL_LOTOFACIL, LOW_LOTOFACIL], lotofacil, previous_draw=list(range(1, 16)))

    assert len(df) == 2
    assert list(df.columns[:15]) == [f"n{i}" for i in range(1, 16)]
    assert df.iloc[0]["n1"] == 2
    assert df.iloc[1]["total"] == 120
    assert df.iloc[1]["repeats"] == 15
    assert df["score"].between(40, 99).all()


@pytest.mark.parametrize("limit", [0, 1, 5])
def test_filter_best_limits(limit):
    tickets = [tuple(range(i, i + 6)) for i in range(1, 6)]

    assert len(filter_best(tickets, get_game("megasena"), limit=limit).tickets) == min(limit, 5)

"""
Heuristic ticket quality score and batch ranking.

Scores start at 95 and lose points when a ticket's statistics fall outside the
bands that historical draws of the game usually land in. The result is not a
probability; it only orders tickets of the same game.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import pandas as pd

from .games import GameDomain
from .stats import compute_stats, has_long_sequence
from .ticket import Ticket, as_ticket

logger = logging.getLogger(__name__)

BASE_SCORE = 95
MIN_SCORE, MAX_SCORE = 40, 99


def _clamp(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def score_ticket(
    ticket: Sequence[int], game: GameDomain, previous_draw: Optional[Sequence[int]] = None
) -> int:
    """Return an integer quality score in ``[40, 99]``."""

    score = BASE_SCORE
    stats = compute_stats(ticket, game, previous_draw)

    if game.id == "lotofacil":
        if stats.odds < 5 or stats.odds > 10:
            score -= 25
        if stats.odds in (7, 8):
            score += 5
        if stats.total < 170 or stats.total > 230:
            score -= 15
        if 190 <= stats.total <= 210:
            score += 5
        if stats.primes < 3 or stats.primes > 7:
            score -= 10
        if stats.repeats is not None:
            if stats.repeats < 7 or stats.repeats > 11:
                score -= 15
            if 8 <= stats.repeats <= 10:
                score += 5
    elif game.id == "megasena":
        if stats.evens < 2 or stats.evens > 4:
            score -= 15
        if stats.total < 120 or stats.total > 280:
            score -= 15
    elif game.id == "quina":
        if stats.total < 100 or stats.total > 300:
            score -= 25
        if has_long_sequence(ticket, 1):
            score -= 15

    # sum-derived offset keeps otherwise equal tickets apart
    return _clamp(_clamp(score) - stats.total % 5)


@dataclass(frozen=True)
class BestTickets:
    tickets: List[Ticket]
    original_count: int


def filter_best(
    tickets: Sequence[Sequence[int]],
    game: GameDomain,
    previous_draw: Optional[Sequence[int]] = None,
    limit: int = 20,
) -> BestTickets:
    """Keep the ``limit`` highest scoring tickets; ties keep their input order."""

    scored = [(score_ticket(t, game, previous_draw), as_ticket(t)) for t in tickets]
    order = sorted(range(len(scored)), key=lambda i: -scored[i][0])
    top = [scored[i][1] for i in order[: max(0, limit)]]
    logger.debug("Kept %d of %d tickets by score", len(top), len(scored))
    return BestTickets(tickets=top, original_count=len(scored))


def tickets_frame(
    tickets: Sequence[Sequence[int]],
    game: GameDomain,
    previous_draw: Optional[Sequence[int]] = None,
) -> pd.DataFrame:
    """Tabulate tickets as ``n1..nK`` columns plus their statistics and score."""

    rows = []
    for ticket in tickets:
        ordered = as_ticket(ticket)
        row = {f"n{i}": n for i, n in enumerate(ordered, start=1)}
        row.update(compute_stats(ordered, game, previous_draw).as_dict())
        row["score"] = score_ticket(ordered, game, previous_draw)
        rows.append(row)
    df = pd.DataFrame(rows)
    if "repeats" in df.columns:
        df["repeats"] = df["repeats"].astype("Int64")
    return df


__all__ = ["BASE_SCORE", "MIN_SCORE", "MAX_SCORE", "score_ticket", "BestTickets", "filter_best", "tickets_frame"]

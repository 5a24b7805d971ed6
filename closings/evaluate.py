"""
Checking tickets against drawn results, and hot numbers from past draws.

Draw numbers arrive as published ("dezenas": zero-padded strings or ints).
Column-encoded games (Super Sete) list one digit per column, so the i-th
value ``d`` becomes ``i * 10 + d`` to match how tickets store them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Sequence

import pandas as pd

from .games import GameDomain
from .ticket import as_ticket

logger = logging.getLogger(__name__)

# Tiers paying a fixed amount instead of splitting a pool among winners.
FIXED_PRIZE_HITS = {
    "lotofacil": frozenset({11, 12, 13}),
    "diadesorte": frozenset({4, 5}),
    "supersete": frozenset({3, 4, 5}),
}

# Top tier of each game; an unclaimed top tier rolls the jackpot over.
TOP_TIER_HITS = {
    "lotofacil": 15,
    "megasena": 6,
    "quina": 5,
    "lotomania": 20,
    "duplasena": 6,
    "supersete": 7,
}


@dataclass(frozen=True)
class PrizeTier:
    hits: int
    winners: int
    value: float


def _parse(value) -> Optional[int]:
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def result_numbers(dezenas: Optional[Sequence], game: GameDomain) -> FrozenSet[int]:
    """Numbers of a drawn result in ticket encoding; unparsable entries are skipped."""

    numbers = set()
    for col, raw in enumerate(dezenas or ()):
        value = _parse(raw)
        if value is None:
            logger.debug("Skipping unparsable draw value %r", raw)
            continue
        numbers.add(col * 10 + value if game.column_encoded else value)
    return frozenset(numbers)


def count_hits(ticket: Iterable[int], draw: Iterable[int]) -> int:
    return len(set(int(n) for n in ticket).intersection(int(n) for n in draw))


def is_fixed_prize(game: GameDomain, hits: int) -> bool:
    return hits in FIXED_PRIZE_HITS.get(game.id, frozenset())


def prize_for_hits(
    hits: int,
    prize_table: Iterable[PrizeTier],
    game: GameDomain,
    jackpot: Optional[float] = None,
) -> float:
    """
    Amount one ticket with ``hits`` matches collects.

    The tier's published value wins when it has winners or a value. A top tier
    nobody hit pays the accumulated ``jackpot`` if one is given; everything
    else pays 0.
    """

    tier = next((t for t in prize_table if t.hits == hits), None)
    if tier is None:
        return 0.0
    if tier.winners > 0 or tier.value > 0:
        return float(tier.value)
    if TOP_TIER_HITS.get(game.id) == hits and jackpot:
        return float(jackpot)
    return 0.0


def evaluate_tickets(
    tickets: Sequence[Sequence[int]],
    dezenas: Sequence,
    game: GameDomain,
    prize_table: Sequence[PrizeTier] = (),
    jackpot: Optional[float] = None,
) -> pd.DataFrame:
    """One row per ticket: its signature, hit count and prize."""

    draw = result_numbers(dezenas, game)
    rows = []
    for ticket in tickets:
        ordered = as_ticket(ticket)
        hits = count_hits(ordered, draw)
        rows.append(
            {
                "ticket": "-".join(str(n) for n in ordered),
                "hits": hits,
                "prize": prize_for_hits(hits, prize_table, game, jackpot),
            }
        )
    return pd.DataFrame(rows, columns=["ticket", "hits", "prize"])


def hot_numbers(draws: Iterable[Sequence], top_n: int = 20) -> List[int]:
    """
    The ``top_n`` most frequent numbers across ``draws``, returned ascending.

    Ties on frequency favour the smaller number.
    """

    values = [v for draw in draws for v in (_parse(raw) for raw in draw) if v is not None]
    if not values or top_n <= 0:
        return []
    counts = (
        pd.Series(values)
        .value_counts()
        .rename_axis("number")
        .reset_index(name="count")
        .sort_values(["count", "number"], ascending=[False, True], kind="mergesort")
    )
    return sorted(int(n) for n in counts["number"].head(top_n))


__all__ = [
    "PrizeTier",
    "FIXED_PRIZE_HITS",
    "TOP_TIER_HITS",
    "result_numbers",
    "count_hits",
    "is_fixed_prize",
    "prize_for_hits",
    "evaluate_tickets",
    "hot_numbers",
]

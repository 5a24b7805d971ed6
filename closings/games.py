"""
Game domains: number ranges, ticket sizes, grid layout and pricing.

A :class:`GameDomain` is read-only input for the engine. The registry below
mirrors the Caixa games the engine was built around; callers with their own
configuration source construct ``GameDomain`` values directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

PriceEntry = Tuple[int, Optional[float]]


@dataclass(frozen=True)
class GameDomain:
    """Immutable description of one lottery game."""

    id: str
    name: str
    total_numbers: int
    min_size: int
    max_size: int
    cols: int
    zero_based: bool = False
    column_encoded: bool = False
    price_table: Tuple[PriceEntry, ...] = ()

    def __post_init__(self) -> None:
        if self.total_numbers < 1:
            raise ValueError(f"{self.id}: total_numbers must be positive, got {self.total_numbers}")
        if not 1 <= self.min_size <= self.max_size:
            raise ValueError(
                f"{self.id}: ticket sizes must satisfy 1 <= min_size <= max_size "
                f"(got {self.min_size}..{self.max_size})"
            )
        if self.cols < 1:
            raise ValueError(f"{self.id}: cols must be positive, got {self.cols}")

    @property
    def rows(self) -> int:
        return -(-self.total_numbers // self.cols)

    def numbers(self) -> Tuple[int, ...]:
        """Every number a ticket of this game may contain, ascending."""

        if self.column_encoded:
            digits = -(-self.total_numbers // self.cols)
            return tuple(sorted(col * 10 + val for col in range(self.cols) for val in range(digits)))
        start = 0 if self.zero_based else 1
        return tuple(range(start, start + self.total_numbers))

    def contains(self, value: int) -> bool:
        return int(value) in _domain_set(self)

    def ticket_price(self, size: int) -> float:
        """Price of one ticket of ``size`` numbers, falling back to the base price."""

        for quantity, price in self.price_table:
            if quantity == size and price is not None:
                return float(price)
        if self.price_table and self.price_table[0][1] is not None:
            return float(self.price_table[0][1])
        return 0.0


_DOMAIN_SETS: Dict[GameDomain, frozenset] = {}


def _domain_set(game: GameDomain) -> frozenset:
    cached = _DOMAIN_SETS.get(game)
    if cached is None:
        cached = _DOMAIN_SETS[game] = frozenset(game.numbers())
    return cached


def batch_cost(game: GameDomain, tickets: Iterable[Sequence[int]]) -> float:
    """Total price of a batch, priced per ticket by its own size."""

    return round(sum(game.ticket_price(len(ticket)) for ticket in tickets), 2)


GAMES: Dict[str, GameDomain] = {
    "lotofacil": GameDomain(
        id="lotofacil",
        name="Lotofácil",
        total_numbers=25,
        min_size=15,
        max_size=20,
        cols=5,
        price_table=((15, 3.00), (16, 48.00), (17, 408.00), (18, 2448.00), (19, 11628.00), (20, 46512.00)),
    ),
    "megasena": GameDomain(
        id="megasena",
        name="Mega-Sena",
        total_numbers=60,
        min_size=6,
        max_size=15,
        cols=10,
        price_table=(
            (6, 5.00),
            (7, 35.00),
            (8, 140.00),
            (9, 420.00),
            (10, 1050.00),
            (11, 2310.00),
            (12, 4620.00),
            (13, 8580.00),
            (14, 15015.00),
            (15, 25025.00),
        ),
    ),
    "quina": GameDomain(
        id="quina",
        name="Quina",
        total_numbers=80,
        min_size=5,
        max_size=15,
        cols=10,
        price_table=(
            (5, 2.50),
            (6, 15.00),
            (7, 52.50),
            (8, 140.00),
            (9, 315.00),
            (10, 630.00),
            (11, 1155.00),
            (12, 1980.00),
            (13, 3217.50),
            (14, 5005.00),
            (15, 7507.50),
        ),
    ),
    "lotomania": GameDomain(
        id="lotomania",
        name="Lotomania",
        total_numbers=100,
        min_size=50,
        max_size=50,
        cols=10,
        zero_based=True,
        price_table=((50, 3.00),),
    ),
    "diadesorte": GameDomain(
        id="diadesorte",
        name="Dia de Sorte",
        total_numbers=31,
        min_size=7,
        max_size=15,
        cols=10,
        price_table=(
            (7, 2.50),
            (8, 20.00),
            (9, 90.00),
            (10, 300.00),
            (11, 825.00),
            (12, 1980.00),
            (13, 4290.00),
            (14, 8580.00),
            (15, 16087.50),
        ),
    ),
    "duplasena": GameDomain(
        id="duplasena",
        name="Dupla Sena",
        total_numbers=50,
        min_size=6,
        max_size=15,
        cols=10,
        price_table=(
            (6, 2.50),
            (7, 17.50),
            (8, 70.00),
            (9, 210.00),
            (10, 525.00),
            (11, 1155.00),
            (12, 2310.00),
            (13, 4290.00),
            (14, 7507.50),
            (15, 12512.50),
        ),
    ),
    # Numbers encode column * 10 + digit; "Max" priced entries carry no price.
    "supersete": GameDomain(
        id="supersete",
        name="Super Sete",
        total_numbers=70,
        min_size=7,
        max_size=21,
        cols=7,
        zero_based=True,
        column_encoded=True,
        price_table=((7, 2.50), (8, 5.00), (9, 10.00), (10, 20.00), (11, 40.00), (12, 80.00), (21, None)),
    ),
}

DEFAULT_GAME = GAMES["lotofacil"]


def get_game(game_id: str) -> GameDomain:
    """Return the registered game ``game_id`` or raise ValueError listing the choices."""

    key = game_id.strip().lower()
    if key not in GAMES:
        raise ValueError(f"Game {game_id!r} not supported. Choose from {sorted(GAMES)}")
    return GAMES[key]


__all__ = ["GameDomain", "GAMES", "DEFAULT_GAME", "get_game", "batch_cost"]

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional, Sequence, Set, Tuple, Union

from .games import GameDomain

Ticket = Tuple[int, ...]


def as_ticket(values: Iterable[int]) -> Ticket:
    return tuple(sorted(int(v) for v in values))


def signature(values: Iterable[int]) -> str:
    """Canonical key of a ticket: its values sorted ascending, dash separated."""

    return "-".join(str(v) for v in as_ticket(values))


def parse_signature(raw: str) -> Ticket:
    if not raw:
        return ()
    return tuple(int(tok) for tok in raw.split("-"))


def validate_ticket(
    values: Sequence[int], size: int, game: Optional[GameDomain] = None
) -> Ticket:
    """Return ``values`` as a sorted ticket or raise ValueError describing the first problem."""

    numeric = tuple(int(v) for v in values)
    if len(numeric) != size:
        raise ValueError(f"Ticket must hold {size} unique numbers, got {len(numeric)}")
    if len(set(numeric)) != size:
        raise ValueError("Ticket numbers must be unique")
    if game is not None:
        outside = sorted(v for v in numeric if not game.contains(v))
        if outside:
            raise ValueError(f"Numbers {outside} are outside the {game.name} domain")
    return tuple(sorted(numeric))


SignatureLike = Union[str, Sequence[int]]


def _key(item: SignatureLike) -> str:
    return item if isinstance(item, str) else signature(item)


class HistorySet:
    """
    Signatures already handed out in the current selection session.

    The set only grows until :meth:`clear`; the orchestrator is its single
    writer while builders receive plain frozen snapshots.
    """

    def __init__(self, tickets: Iterable[SignatureLike] = ()):
        self._tickets: Dict[str, Ticket] = {}
        for item in tickets:
            self.add(item)

    def contains(self, item: SignatureLike) -> bool:
        return _key(item) in self._tickets

    __contains__ = contains

    def add(self, item: SignatureLike) -> str:
        if isinstance(item, str):
            key, ticket = item, parse_signature(item)
        else:
            ticket = as_ticket(item)
            key = signature(ticket)
        self._tickets.setdefault(key, ticket)
        return key

    def merge(self, other: Union["HistorySet", Iterable[SignatureLike]]) -> None:
        items = other.tickets() if isinstance(other, HistorySet) else other
        for item in items:
            self.add(item)

    def clear(self) -> None:
        self._tickets.clear()

    def copy(self) -> "HistorySet":
        clone = HistorySet()
        clone._tickets = dict(self._tickets)
        return clone

    def signatures(self) -> frozenset:
        return frozenset(self._tickets)

    def tickets(self) -> Tuple[Ticket, ...]:
        return tuple(self._tickets.values())

    def project(self, fixed: Iterable[int]) -> Set[str]:
        """Signatures of the free part of every stored ticket that holds all ``fixed`` numbers."""

        fixed_set = {int(v) for v in fixed}
        if not fixed_set:
            return set(self._tickets)
        return {
            signature(n for n in ticket if n not in fixed_set)
            for ticket in self._tickets.values()
            if fixed_set.issubset(ticket)
        }

    def __len__(self) -> int:
        return len(self._tickets)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tickets)

    def __repr__(self) -> str:
        return f"HistorySet({len(self)} tickets)"


__all__ = ["Ticket", "as_ticket", "signature", "parse_signature", "validate_ticket", "HistorySet"]

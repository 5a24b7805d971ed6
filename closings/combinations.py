from __future__ import annotations

import itertools
import logging
import math
from typing import Iterable, List, Optional

from .config import MAX_COMBINATIONS
from .ticket import Ticket

logger = logging.getLogger(__name__)


def combinations_count(n: int, k: int) -> int:
    """C(n, k), or 0 when ``k`` is outside ``[0, n]``."""

    if k < 0 or n < 0 or k > n:
        return 0
    return math.comb(n, k)


def enumerate_combinations(
    pool: Iterable[int], k: int, *, limit: Optional[int] = MAX_COMBINATIONS
) -> List[Ticket]:
    """
    Every ``k``-subset of ``pool`` in lexicographic order, each ascending.

    Output stops at ``limit`` tickets (``None`` disables the cap) so
    large pools cannot exhaust memory. Only practical for pools of about 20
    numbers.
    """

    source = sorted({int(v) for v in pool})
    if k < 0 or k > len(source):
        return []

    total = combinations_count(len(source), k)
    if limit is not None and total > limit:
        logger.warning(
            "C(%d, %d) = %s combinations; truncating to the first %s",
            len(source),
            k,
            f"{total:,}",
            f"{limit:,}",
        )
    combos = itertools.combinations(source, k)
    if limit is not None:
        combos = itertools.islice(combos, limit)
    return [tuple(combo) for combo in combos]


__all__ = ["combinations_count", "enumerate_combinations"]

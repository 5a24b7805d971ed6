"""
Lottery closing generation engine.

Stable surface:
- GameDomain / get_game: read-only game layouts (range, sizes, grid, prices).
- GenerationOrchestrator + GenerationSession + GenerationRequest: batch generation
  with fixed numbers, backfill and per-session deduplication.
- Builders (BalancedMatrixBuilder, ReducedClosingBuilder, DeterministicClosingBuilder, ...):
  the individual strategies behind one ``build(pool, size, count, exclusions, on_progress)`` call.
- enumerate_combinations: capped exhaustive enumeration.
- compute_stats / score_ticket / filter_best: per-ticket statistics and ranking.
- HistorySet / signature: canonical ticket keys for deduplication.
- evaluate_tickets / count_hits / hot_numbers: checking tickets against a draw, hot numbers from past draws.

Everything else in this package should be treated as internal.
"""

from __future__ import annotations

from .builders import (
    BalancedMatrixBuilder,
    DeterministicClosingBuilder,
    ExhaustiveBuilder,
    RandomBuilder,
    ReducedClosingBuilder,
    SmartPatternBuilder,
    Strategy,
    make_builder,
)
from .combinations import combinations_count, enumerate_combinations
from .config import GenerationConfig
from .errors import (
    ExternalSuggestionFailure,
    GenerationSuperseded,
    InsufficientCoverageWarning,
    InternalGenerationError,
    InvalidInputError,
)
from .evaluate import PrizeTier, count_hits, evaluate_tickets, hot_numbers, prize_for_hits, result_numbers
from .games import GAMES, GameDomain, batch_cost, get_game
from .orchestrator import (
    GenerationOrchestrator,
    GenerationRequest,
    GenerationResult,
    GenerationSession,
    GenerationState,
)
from .scoring import filter_best, score_ticket, tickets_frame
from .stats import DetailedStats, compute_stats
from .ticket import HistorySet, Ticket, signature, validate_ticket

__all__ = [
    "BalancedMatrixBuilder",
    "DeterministicClosingBuilder",
    "ExhaustiveBuilder",
    "RandomBuilder",
    "ReducedClosingBuilder",
    "SmartPatternBuilder",
    "Strategy",
    "make_builder",
    "combinations_count",
    "enumerate_combinations",
    "GenerationConfig",
    "ExternalSuggestionFailure",
    "GenerationSuperseded",
    "InsufficientCoverageWarning",
    "InternalGenerationError",
    "InvalidInputError",
    "PrizeTier",
    "count_hits",
    "evaluate_tickets",
    "hot_numbers",
    "prize_for_hits",
    "result_numbers",
    "GAMES",
    "GameDomain",
    "batch_cost",
    "get_game",
    "GenerationOrchestrator",
    "GenerationRequest",
    "GenerationResult",
    "GenerationSession",
    "GenerationState",
    "filter_best",
    "score_ticket",
    "tickets_frame",
    "DetailedStats",
    "compute_stats",
    "HistorySet",
    "Ticket",
    "signature",
    "validate_ticket",
]

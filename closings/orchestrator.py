"""
Generation orchestrator: turns a selection session plus a request into a batch.

The session carries everything shared between calls (game, selection, ticket
size and the history of tickets already handed out) so several sessions can
run side by side without sharing state. Only the orchestrator writes to a
session's history.
"""

from __future__ import annotations

import logging
import threading
import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np

from .builders import BalancedMatrixBuilder, ProgressCallback, Strategy, make_builder
from .combinations import combinations_count
from .config import DEFAULT_CONFIG, GenerationConfig
from .errors import (
    ExternalSuggestionFailure,
    GenerationSuperseded,
    InsufficientCoverageWarning,
    InternalGenerationError,
    InvalidInputError,
)
from .games import GameDomain
from .scoring import filter_best
from .ticket import HistorySet, Ticket, as_ticket, signature, validate_ticket

logger = logging.getLogger(__name__)

SuggestionProvider = Callable[[GameDomain, int, int], Iterable[Sequence[int]]]


class GenerationState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class GenerationSession:
    """Selection session of one game; history resets whenever its inputs change."""

    game: GameDomain
    selection: Tuple[int, ...] = ()
    size: Optional[int] = None
    history: HistorySet = field(default_factory=HistorySet)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)
    _latest: int = field(default=0, init=False, repr=False, compare=False)

    def select(self, numbers: Iterable[int]) -> None:
        picked = as_ticket(set(numbers))
        outside = [n for n in picked if not self.game.contains(n)]
        if outside:
            raise InvalidInputError(f"Numbers {outside} are outside the {self.game.name} domain")
        if len(picked) > self.game.max_size:
            raise InvalidInputError(f"At most {self.game.max_size} numbers may be selected")
        if picked != self.selection:
            self.selection = picked
            self.history.clear()

    def import_numbers(self, numbers: Iterable[int]) -> Tuple[int, ...]:
        """Select the valid numbers of an imported list, keeping at most ``max_size`` of them."""

        valid: List[int] = []
        for n in numbers:
            n = int(n)
            if self.game.contains(n) and n not in valid:
                valid.append(n)
        if not valid:
            raise InvalidInputError("No valid numbers to import for this game")
        valid = valid[: self.game.max_size]
        self.select(valid)
        if self.size is None or len(valid) > self.size:
            self.set_size(min(self.game.max_size, max(self.game.min_size, len(valid))))
        return self.selection

    def set_size(self, size: int) -> None:
        if self.size is not None and size != self.size:
            self.history.clear()
        self.size = size

    def switch_game(self, game: GameDomain) -> None:
        self.game = game
        self.selection = ()
        self.size = None
        self.history.clear()

    def clear(self) -> None:
        self.selection = ()
        self.history.clear()

    def _next_generation(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def _is_current(self, generation_id: int) -> bool:
        return generation_id == self._latest


@dataclass(frozen=True)
class GenerationRequest:
    size: int
    count: Optional[int] = 10
    strategy: Strategy = Strategy.SMART_PATTERN
    previous_draw: Optional[Sequence[int]] = None
    guarantee_size: Optional[int] = None
    keep_best: Optional[int] = None
    use_suggestions: bool = False


@dataclass(frozen=True)
class GenerationResult:
    tickets: List[Ticket]
    generation_id: int
    strategy: Strategy
    fixed: Tuple[int, ...]
    from_strategy: int
    from_suggestions: int
    backfilled: int
    safety_filled: int
    original_count: int

    def __len__(self) -> int:
        return len(self.tickets)


class _Progress:
    """Maps a phase's 0-99 progress into its slice of the overall range."""

    def __init__(self, callback: Optional[ProgressCallback], check: Callable[[], None]):
        self.callback = callback
        self.check = check
        self.last = 0

    def emit(self, percent: int, *, check: bool = True) -> None:
        if check:
            self.check()
        percent = max(self.last, min(100, int(percent)))
        self.last = percent
        if self.callback is not None:
            self.callback(percent)

    def phase(self, start: int, end: int) -> ProgressCallback:
        return lambda p: self.emit(start + (end - start) * min(99, p) // 100)


class GenerationOrchestrator:
    """
    Runs one generation request at a time against a :class:`GenerationSession`.

    ``state`` follows IDLE -> GENERATING -> SUCCESS/ERROR. Invalid requests fail
    before the state changes; shortfalls are backfilled, never reported as errors.
    """

    def __init__(
        self,
        config: GenerationConfig = DEFAULT_CONFIG,
        *,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        suggestion_provider: Optional[SuggestionProvider] = None,
    ):
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.suggestion_provider = suggestion_provider
        self.state = GenerationState.IDLE

    def generate(
        self,
        session: GenerationSession,
        request: GenerationRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> GenerationResult:
        game = session.game
        strategy = Strategy(request.strategy)
        self._validate(game, session.selection, request, strategy)
        session.set_size(request.size)

        fixed, free = self._partition(game, session.selection, request.size)
        inner = request.size - len(fixed)
        count = request.count
        if count is None:
            count = min(combinations_count(len(free), inner), self.config.max_combinations)

        generation_id = session._next_generation()

        def check() -> None:
            if not session._is_current(generation_id):
                raise GenerationSuperseded(f"Generation {generation_id} was superseded")

        progress = _Progress(on_progress, check)
        self.state = GenerationState.GENERATING
        logger.info(
            "Generation %d: %s, %d tickets of %d from %d free numbers (%d fixed)",
            generation_id,
            strategy.value,
            count,
            request.size,
            len(free),
            len(fixed),
        )

        try:
            result = self._run(session, request, strategy, fixed, free, inner, count, generation_id, progress)
        except GenerationSuperseded:
            logger.info("Generation %d superseded; discarding its tickets", generation_id)
            raise
        except Exception as exc:
            self.state = GenerationState.ERROR
            logger.error("Generation %d failed: %s", generation_id, exc)
            raise InternalGenerationError(f"Ticket generation failed: {exc}") from exc

        with session._lock:
            check()
            session.history.merge(result.tickets)
        self.state = GenerationState.SUCCESS
        progress.emit(100, check=False)
        logger.info("Generation %d produced %d tickets", generation_id, len(result.tickets))
        return result

    def _validate(
        self,
        game: GameDomain,
        selection: Sequence[int],
        request: GenerationRequest,
        strategy: Strategy,
    ) -> None:
        if not game.min_size <= request.size <= game.max_size:
            raise InvalidInputError(
                f"{game.name} tickets hold {game.min_size} to {game.max_size} numbers, got {request.size}"
            )
        if request.count is None:
            if strategy is not Strategy.EXHAUSTIVE:
                raise InvalidInputError("A ticket count is required unless enumerating every combination")
        elif request.count < 1:
            raise InvalidInputError(f"Ticket count must be positive, got {request.count}")
        if request.keep_best is not None and request.keep_best < 1:
            raise InvalidInputError(f"keep_best must be positive, got {request.keep_best}")
        if len(game.numbers()) < request.size:
            raise InvalidInputError(
                f"{game.name} only has {len(game.numbers())} numbers; cannot fill tickets of {request.size}"
            )
        outside = [n for n in selection if not game.contains(n)]
        if outside:
            raise InvalidInputError(f"Numbers {outside} are outside the {game.name} domain")

    @staticmethod
    def _partition(
        game: GameDomain, selection: Sequence[int], size: int
    ) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
        domain = game.numbers()
        chosen = as_ticket(set(selection))
        if not chosen:
            return (), domain
        if len(chosen) < size:
            picked = set(chosen)
            return chosen, tuple(n for n in domain if n not in picked)
        return (), chosen

    def _run(
        self,
        session: GenerationSession,
        request: GenerationRequest,
        strategy: Strategy,
        fixed: Tuple[int, ...],
        free: Tuple[int, ...],
        inner: int,
        count: int,
        generation_id: int,
        progress: _Progress,
    ) -> GenerationResult:
        game = session.game
        with session._lock:
            history = session.history.copy()
        known: Set[str] = set(history.signatures())
        fixed_set = set(fixed)

        tickets: List[Ticket] = []
        from_suggestions = 0
        if request.use_suggestions and self.suggestion_provider is not None:
            for ticket in self._suggested(game, request.size, count, fixed_set, known):
                tickets.append(ticket)
                known.add(signature(ticket))
            from_suggestions = len(tickets)
        progress.emit(5)

        remaining = count - len(tickets)
        inner_tickets: List[Ticket] = []
        if remaining > 0:
            exclusions = history.project(fixed)
            exclusions.update(signature(n for n in t if n not in fixed_set) for t in tickets if fixed_set.issubset(t))
            builder = make_builder(
                strategy,
                rng=self.rng,
                config=self.config,
                game=game,
                previous_draw=request.previous_draw,
                guarantee_size=request.guarantee_size,
            )
            inner_tickets = builder.build(free, inner, remaining, exclusions, progress.phase(5, 80))
        from_strategy = len(inner_tickets)

        backfill: List[Ticket] = []
        if from_strategy < remaining:
            message = f"{strategy.value} produced {from_strategy} of {remaining} tickets; backfilling"
            logger.warning("Generation %d: %s", generation_id, message)
            warnings.warn(message, InsufficientCoverageWarning, stacklevel=3)
            exclusions = history.project(fixed)
            exclusions.update(signature(t) for t in inner_tickets)
            wider = [n for n in game.numbers() if n not in fixed_set]
            filler = BalancedMatrixBuilder(rng=self.rng, config=self.config)
            backfill = filler.build(wider, inner, remaining - from_strategy, exclusions, progress.phase(80, 90))

        seen: Set[str] = {signature(t) for t in tickets}
        for part in inner_tickets + backfill:
            ticket = as_ticket(fixed + part)
            sig = signature(ticket)
            if sig in seen or sig in known:
                continue
            seen.add(sig)
            tickets.append(ticket)
        tickets = tickets[:count]
        progress.emit(90)

        safety_filled = 0
        if len(tickets) < count:
            extra = self._safety_fill(game, fixed, inner, count - len(tickets), known | seen)
            safety_filled = len(extra)
            tickets.extend(extra)
            if len(tickets) < count:
                logger.warning(
                    "Generation %d: only %d of %d unique tickets available", generation_id, len(tickets), count
                )
        progress.emit(95)

        original_count = len(tickets)
        if request.keep_best is not None:
            tickets = filter_best(tickets, game, request.previous_draw, limit=request.keep_best).tickets

        for ticket in tickets:
            if len(ticket) != request.size or len(set(ticket)) != request.size:
                raise RuntimeError(f"Assembled ticket {ticket} does not hold {request.size} unique numbers")

        return GenerationResult(
            tickets=tickets,
            generation_id=generation_id,
            strategy=strategy,
            fixed=fixed,
            from_strategy=from_strategy,
            from_suggestions=from_suggestions,
            backfilled=len(backfill),
            safety_filled=safety_filled,
            original_count=original_count,
        )

    def _suggested(
        self, game: GameDomain, size: int, count: int, fixed: Set[int], known: Set[str]
    ) -> List[Ticket]:
        try:
            raw = self._call_provider(game, size, count)
        except ExternalSuggestionFailure as exc:
            logger.warning("Ignoring suggestion provider: %s", exc)
            return []

        adopted: List[Ticket] = []
        seen: Set[str] = set()
        for values in raw:
            try:
                ticket = validate_ticket(values, size, game)
            except (TypeError, ValueError) as exc:
                logger.debug("Dropping suggested ticket %r: %s", values, exc)
                continue
            sig = signature(ticket)
            if not fixed.issubset(ticket) or sig in known or sig in seen:
                continue
            seen.add(sig)
            adopted.append(ticket)
            if len(adopted) >= count:
                break
        logger.debug("Adopted %d suggested tickets", len(adopted))
        return adopted

    def _call_provider(self, game: GameDomain, size: int, count: int) -> List[Sequence[int]]:
        try:
            raw = list(self.suggestion_provider(game, size, count) or [])
        except Exception as exc:
            raise ExternalSuggestionFailure(f"suggestion provider raised {exc!r}") from exc
        if not raw:
            raise ExternalSuggestionFailure("suggestion provider returned no tickets")
        return raw

    def _safety_fill(
        self, game: GameDomain, fixed: Tuple[int, ...], inner: int, needed: int, known: Set[str]
    ) -> List[Ticket]:
        fixed_set = set(fixed)
        others = np.array([n for n in game.numbers() if n not in fixed_set], dtype=int)
        if inner > others.size:
            return []
        extra: List[Ticket] = []
        seen = set(known)
        for _ in range(self.config.safety_iterations):
            if len(extra) >= needed:
                break
            drawn = self.rng.choice(others, size=inner, replace=False)
            ticket = as_ticket(list(fixed) + [int(v) for v in drawn])
            sig = signature(ticket)
            if sig in seen:
                continue
            seen.add(sig)
            extra.append(ticket)
        return extra


__all__ = [
    "GenerationState",
    "GenerationSession",
    "GenerationRequest",
    "GenerationResult",
    "GenerationOrchestrator",
    "SuggestionProvider",
]

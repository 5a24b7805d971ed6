from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from .builders import Strategy
from .config import GenerationConfig
from .errors import InvalidInputError
from .evaluate import count_hits, hot_numbers, result_numbers
from .games import GAMES, batch_cost, get_game
from .orchestrator import GenerationOrchestrator, GenerationRequest, GenerationSession
from .scoring import tickets_frame


def parse_numbers(raw: Optional[str]) -> List[int]:
    """Parse ``"1 2 3"`` / ``"1,2,3"`` into integers; empty input gives an empty list."""

    if not raw:
        return []
    tokens = [t for t in raw.replace(",", " ").replace("-", " ").split() if t]
    try:
        return [int(tok) for tok in tokens]
    except ValueError as exc:
        raise InvalidInputError(f"Could not parse numbers from {raw!r}") from exc


def load_draws(path: Path) -> List[List[int]]:
    """Read past draws from a CSV; every numeric column holds one drawn number."""

    df = pd.read_csv(path).select_dtypes("number")
    return [[int(v) for v in row if pd.notna(v)] for row in df.itertuples(index=False)]


def save_tickets(df: pd.DataFrame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Generate lottery closings for a game.")
    parser.add_argument("--game", choices=sorted(GAMES), default="lotofacil", help="Game layout")
    parser.add_argument("--size", type=int, default=None, help="Numbers per ticket (default: game minimum)")
    parser.add_argument("--count", type=int, default=10, help="Tickets to generate (0 = every combination)")
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in Strategy],
        default=Strategy.SMART_PATTERN.value,
        help="Generation strategy",
    )
    parser.add_argument("--select", default=None, help='Selected numbers, e.g. "1 2 3 4"')
    parser.add_argument("--previous", default=None, help="Numbers of the previous draw")
    parser.add_argument("--draw", default=None, help="Drawn result to check the tickets against")
    parser.add_argument("--history", type=Path, default=None, help="CSV of past draws, one draw per row")
    parser.add_argument("--hot", type=int, default=0, help="Select the N most frequent numbers of --history")
    parser.add_argument("--guarantee", type=int, default=None, help="Guarantee size for closings")
    parser.add_argument("--best", type=int, default=None, help="Keep only the N best scored tickets")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument("--out", type=Path, default=None, help="Optional output CSV path")
    parser.add_argument("--quiet", action="store_true", help="Suppress the summary line")
    parser.add_argument("--verbose", action="store_true", help="Log generation details")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    game = get_game(args.game)
    session = GenerationSession(game)
    selection = parse_numbers(args.select)
    if args.hot:
        if args.history is None:
            parser.error("--hot needs --history")
        selection = hot_numbers(load_draws(args.history), top_n=args.hot)
    if selection:
        session.select(selection)
    previous = parse_numbers(args.previous) or None

    strategy = Strategy(args.strategy)
    count = None if args.count == 0 else args.count
    if count is None and strategy is not Strategy.EXHAUSTIVE:
        parser.error("--count 0 is only valid with --strategy exhaustive")

    orchestrator = GenerationOrchestrator(GenerationConfig.from_env(), seed=args.seed)
    result = orchestrator.generate(
        session,
        GenerationRequest(
            size=args.size or game.min_size,
            count=count,
            strategy=strategy,
            previous_draw=previous,
            guarantee_size=args.guarantee,
            keep_best=args.best,
        ),
    )

    df = tickets_frame(result.tickets, game, previous)
    if args.draw:
        draw = result_numbers(args.draw.replace(",", " ").split(), game)
        df["hits"] = [count_hits(t, draw) for t in result.tickets]
    if args.out:
        save_tickets(df, args.out)
        if not args.quiet:
            print(
                f"Wrote {len(df):,} tickets -> {args.out} "
                f"(cost: {batch_cost(game, result.tickets):,.2f})"
            )
    else:
        print(df.to_csv(index=False))


if __name__ == "__main__":
    main()

from __future__ import annotations

import os
from dataclasses import dataclass, replace

MAX_COMBINATIONS = 500_000


@dataclass(frozen=True)
class GenerationConfig:
    """Caps and retry budgets shared by the builders and the orchestrator."""

    max_combinations: int = MAX_COMBINATIONS
    balanced_draw_attempts: int = 1000
    safety_iterations: int = 1000
    progress_every: int = 200
    reduced_attempts_factor: int = 100
    guaranteed_attempts_factor: int = 500
    covering_subset_cap: int = 200_000
    covering_candidates: int = 30
    smart_attempts_factor: int = 2000
    random_attempts_factor: int = 500

    @classmethod
    def from_env(cls, base: "GenerationConfig | None" = None) -> "GenerationConfig":
        """
        Apply ``CLOSINGS_*`` environment overrides on top of ``base``.

        Recognised variables: ``CLOSINGS_MAX_COMBINATIONS``,
        ``CLOSINGS_SAFETY_ITERATIONS`` and ``CLOSINGS_PROGRESS_EVERY``.
        """

        config = base or cls()
        overrides = {}
        for field_name in ("max_combinations", "safety_iterations", "progress_every"):
            raw = os.environ.get(f"CLOSINGS_{field_name.upper()}")
            if raw is None or not raw.strip():
                continue
            try:
                value = int(raw)
            except ValueError as exc:
                raise ValueError(f"CLOSINGS_{field_name.upper()} must be an integer, got {raw!r}") from exc
            if value < 1:
                raise ValueError(f"CLOSINGS_{field_name.upper()} must be positive, got {value}")
            overrides[field_name] = value
        return replace(config, **overrides)


DEFAULT_CONFIG = GenerationConfig()

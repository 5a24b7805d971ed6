from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised before any generation work when a request cannot be satisfied."""


class InsufficientCoverageWarning(UserWarning):
    """Logged when the primary strategy falls short and backfill takes over."""


class ExternalSuggestionFailure(RuntimeError):
    """Raised when the optional suggestion provider fails or returns nothing usable."""


class InternalGenerationError(RuntimeError):
    """Raised when a strategy fails unexpectedly; no tickets are returned."""


class GenerationSuperseded(RuntimeError):
    """Raised when a newer request on the same session replaced this one."""


__all__ = [
    "InvalidInputError",
    "InsufficientCoverageWarning",
    "ExternalSuggestionFailure",
    "InternalGenerationError",
    "GenerationSuperseded",
]

import sys
from pathlib import Path

import pytest

# Ensure the repository root is importable when running tests directly from the repo.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from closings.games import GameDomain  # noqa: E402


@pytest.fixture
def mini_game() -> GameDomain:
    """Seven numbers, six per ticket: only seven tickets exist."""

    return GameDomain(id="mini", name="Mini", total_numbers=7, min_size=6, max_size=6, cols=7)

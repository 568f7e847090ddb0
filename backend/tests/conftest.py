import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from domain.models import Coordinate  # noqa: E402


@pytest.fixture
def home() -> Coordinate:
    return Coordinate(47.4979, 19.0402)

"""Pytest configuration and fixtures."""
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Tuple

import pytest

# Add repository root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rulescope.app.services.explanation import SessionSnapshot


@dataclass(frozen=True)
class Order:
    id: int
    total: float


@dataclass(frozen=True)
class Customer:
    id: int
    status: str


@dataclass(frozen=True)
class Approval:
    order_id: int


@dataclass
class FakeSession:
    """Stand-in for a live engine session: facts plus insertion provenance."""
    facts: List[Any] = field(default_factory=list)
    insertions: List[Tuple[Any, list]] = field(default_factory=list)
    snapshot_calls: int = 0

    def snapshot(self) -> SessionSnapshot:
        self.snapshot_calls += 1
        return SessionSnapshot(facts=tuple(self.facts), insertions=tuple(self.insertions))


@pytest.fixture
def rules_dir():
    return Path(__file__).parent.parent / "samples" / "rules"

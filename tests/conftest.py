"""
Pytest configuration for connection puzzle tests.

Provides shared fixtures for unit tests and BDD step definitions.
"""

from datetime import datetime, timedelta, timezone

import pytest

from connection_puzzle import (
    GameModel,
    GameSession,
    GraphNode,
    InMemoryPersistenceAdapter,
    EventPublisher,
    SolutionEntry,
    WrongConnection,
)


START = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


class ManualClock:
    """Deterministic clock; time only moves when a test advances it."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def build_model(**overrides) -> GameModel:
    """Three nodes, two required edges, one known wrong edge."""
    fields = dict(
        id="supply-chain",
        title="Supply Chain Disruption",
        nodes=[
            GraphNode(id="n1", label="Port closure", node_type="scenario"),
            GraphNode(id="n2", label="Reroute shipments", node_type="decision"),
            GraphNode(id="n3", label="Delivery delays", node_type="outcome"),
        ],
        solution=[
            SolutionEntry(source="n1", target="n2", points=15, rationale="Closure forces rerouting"),
            SolutionEntry(source="n2", target="n3", points=20, rationale="Longer routes delay delivery"),
        ],
        wrong_connections=[
            WrongConnection(
                source="n1", target="n3", explanation="Skips the decision step", penalty=5
            ),
        ],
        hints=[
            "What does a closed port force the company to do?",
            "What is the cost of a longer route?",
        ],
        completion_threshold=0.5,
    )
    fields.update(overrides)
    return GameModel(**fields)


@pytest.fixture
def clock():
    """Fresh manual clock for each test."""
    return ManualClock()


@pytest.fixture
def game_model():
    """Two-edge model that completes after one correct connection."""
    return build_model()


@pytest.fixture
def strict_model():
    """Two-edge model that needs both connections."""
    return build_model(completion_threshold=1.0)


@pytest.fixture
def adapter():
    """Fresh in-memory persistence adapter."""
    return InMemoryPersistenceAdapter()


@pytest.fixture
def publisher(adapter):
    """Publisher over the in-memory adapter, closed after the test."""
    publisher = EventPublisher(adapter)
    yield publisher
    publisher.close()


@pytest.fixture
def session(strict_model, clock):
    """Started session on the strict model."""
    session = GameSession(strict_model, clock=clock)
    session.start()
    return session


@pytest.fixture
def make_model():
    """Factory for model variants; keyword arguments replace fields."""
    return build_model

"""
Connection Puzzle Engine.

Headless runtime for the graph connection puzzle game: a learner
rebuilds an instructor-authored relationship graph by drawing
connections between concept nodes, and the engine classifies, scores,
hints, detects completion and derives a critical-thinking profile.

Persistence backends (in-memory, SQLite, SQLAlchemy) sit behind a
fire-and-forget publisher and never block gameplay.
"""

from .config import EngineSettings

from .exceptions import (
    ConnectionPuzzleError,
    MalformedContentError,
    ConfigurationError,
    PersistenceError,
)

from .models import (
    GameModel,
    GraphNode,
    SolutionEntry,
    WrongConnection,
    ScoringMode,
    ScoringWeights,
    Classification,
    GamePhase,
    GameSessionState,
    PerformanceProfile,
    SessionReport,
    LeadPayload,
    load_game_model,
)

from .services import (
    GameSession,
    ConnectionEvaluator,
    ScoringEngine,
    HintDispenser,
    CompletionDetector,
    AnalyticsAggregator,
    evaluate,
)

from .storage import (
    PersistenceAdapter,
    InMemoryPersistenceAdapter,
    SQLitePersistenceAdapter,
    SqlAlchemyPersistenceAdapter,
    EventPublisher,
    create_persistence_adapter,
)

from .engine import PuzzleEngine

__all__ = [
    # Engine
    "PuzzleEngine",
    "EngineSettings",
    # Exceptions
    "ConnectionPuzzleError",
    "MalformedContentError",
    "ConfigurationError",
    "PersistenceError",
    # Models
    "GameModel",
    "GraphNode",
    "SolutionEntry",
    "WrongConnection",
    "ScoringMode",
    "ScoringWeights",
    "Classification",
    "GamePhase",
    "GameSessionState",
    "PerformanceProfile",
    "SessionReport",
    "LeadPayload",
    "load_game_model",
    # Services
    "GameSession",
    "ConnectionEvaluator",
    "ScoringEngine",
    "HintDispenser",
    "CompletionDetector",
    "AnalyticsAggregator",
    "evaluate",
    # Storage
    "PersistenceAdapter",
    "InMemoryPersistenceAdapter",
    "SQLitePersistenceAdapter",
    "SqlAlchemyPersistenceAdapter",
    "EventPublisher",
    "create_persistence_adapter",
]

"""
Connection puzzle domain models.

Storage-agnostic Pydantic models for game content, interaction events,
session state, command results and outbound records.
"""

from .graph import (
    GameModel,
    GraphEdge,
    GraphNode,
    NodeType,
    ScoringMode,
    ScoringWeights,
    SolutionEntry,
    WrongConnection,
    load_game_model,
)

from .events import (
    Classification,
    ConnectionAttempted,
    EventKind,
    HintUsed,
    InteractionEvent,
    NodeInspected,
    connection_attempts,
    hints_used,
    solved_pairs,
)

from .profile import (
    OverallLabel,
    PerformanceProfile,
    SkillMetric,
)

from .session import (
    ConnectionOutcome,
    ConnectionResult,
    Evaluation,
    GamePhase,
    GameSessionState,
    HintResult,
    HintStatus,
    InspectResult,
    LogTally,
    TransitionResult,
)

from .records import (
    AnalyticsRecord,
    InteractionRecord,
    LeadPayload,
    SessionReport,
)

__all__ = [
    # Content
    "GameModel",
    "GraphEdge",
    "GraphNode",
    "NodeType",
    "ScoringMode",
    "ScoringWeights",
    "SolutionEntry",
    "WrongConnection",
    "load_game_model",
    # Events
    "Classification",
    "ConnectionAttempted",
    "EventKind",
    "HintUsed",
    "InteractionEvent",
    "NodeInspected",
    "connection_attempts",
    "hints_used",
    "solved_pairs",
    # Profile
    "OverallLabel",
    "PerformanceProfile",
    "SkillMetric",
    # Session
    "ConnectionOutcome",
    "ConnectionResult",
    "Evaluation",
    "GamePhase",
    "GameSessionState",
    "HintResult",
    "HintStatus",
    "InspectResult",
    "LogTally",
    "TransitionResult",
    # Records
    "AnalyticsRecord",
    "InteractionRecord",
    "LeadPayload",
    "SessionReport",
]

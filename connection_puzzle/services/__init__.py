"""
Connection puzzle services.

Gameplay components that act on a loaded GameModel and a session state.
"""

from .analytics import AnalyticsAggregator, AttemptSummary, summarize
from .completion import CompletionDetector, required_connections
from .evaluator import ConnectionEvaluator, evaluate
from .game_session import GameSession
from .hints import HintDispenser
from .reporting import build_lead_payload, build_session_report
from .scoring import CompletionBreakdown, ScoringEngine, resolve_weights

__all__ = [
    "AnalyticsAggregator",
    "AttemptSummary",
    "summarize",
    "CompletionDetector",
    "required_connections",
    "ConnectionEvaluator",
    "evaluate",
    "GameSession",
    "HintDispenser",
    "build_lead_payload",
    "build_session_report",
    "CompletionBreakdown",
    "ScoringEngine",
    "resolve_weights",
]

"""
Outbound records: persistence rows, the presentation report and the
lead-capture payload.

The engine computes these; it never formats them for display.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .events import EventKind
from .profile import PerformanceProfile


class InteractionRecord(BaseModel):
    """One interaction event as handed to the persistence adapter."""

    session_id: str
    game_id: Optional[str] = None
    learner_id: Optional[str] = None
    sequence: int
    interaction_type: EventKind
    interaction_data: Dict[str, Any] = Field(default_factory=dict)
    recorded_at: datetime

    model_config = ConfigDict(frozen=True)


class AnalyticsRecord(BaseModel):
    """The single analytics row written when a session completes."""

    session_id: str
    game_id: Optional[str] = None
    learner_id: Optional[str] = None
    completed_at: datetime
    elapsed_seconds: int = Field(..., ge=0)
    correct_connections: int = Field(..., ge=0)
    incorrect_connections: int = Field(..., ge=0)
    hints_used: int = Field(..., ge=0)
    total_interactions: int = Field(..., ge=0)
    completion_score: int = Field(..., ge=0, le=100)
    decision_path: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class SessionReport(BaseModel):
    """Profile plus raw counters for the report screen."""

    session_id: str
    game_id: Optional[str] = None
    profile: PerformanceProfile

    correct_connections: int
    incorrect_connections: int
    neutral_connections: int
    hints_used: int
    total_interactions: int
    elapsed_seconds: int
    completion_score: int

    accuracy_rate: float = Field(..., ge=0.0, le=100.0)
    connections_per_minute: float = Field(..., ge=0.0)
    reasoning_style: str
    processing_style: str
    insights: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class LeadPayload(BaseModel):
    """Profile payload for the external report/email pipeline."""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    game_id: Optional[str] = None
    game_title: str = ""
    completion_score: int = Field(..., ge=0, le=100)
    elapsed_seconds: int = Field(..., ge=0)
    overall_label: str
    profile: PerformanceProfile
    analytics: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

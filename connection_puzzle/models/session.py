"""
Session state and command results.

`GameSessionState` is an explicit, serializable value owned by the game
session state machine. The connection tally is a cache recomputed from
the event log after every append, never independent mutable state.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .events import (
    Classification,
    ConnectionAttempted,
    HintUsed,
    InteractionEvent,
    NodeInspected,
)
from .graph import SolutionEntry, WrongConnection
from .profile import PerformanceProfile


class GamePhase(str, Enum):
    """Phases of the game state machine."""
    INSTRUCTIONS = "instructions"
    ACTIVE = "active"
    COMPLETED = "completed"


class LogTally(BaseModel):
    """Counts derived from an interaction log."""

    correct: int = 0
    incorrect: int = 0
    neutral: int = 0
    hints: int = 0
    inspections: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def attempts(self) -> int:
        return self.correct + self.incorrect + self.neutral

    @classmethod
    def from_events(cls, events: list[InteractionEvent]) -> "LogTally":
        correct = incorrect = neutral = hints = inspections = 0
        for event in events:
            if isinstance(event, ConnectionAttempted):
                if event.classification == Classification.CORRECT:
                    correct += 1
                elif event.classification == Classification.WRONG:
                    incorrect += 1
                else:
                    neutral += 1
            elif isinstance(event, HintUsed):
                hints += 1
            elif isinstance(event, NodeInspected):
                inspections += 1
        return cls(
            correct=correct,
            incorrect=incorrect,
            neutral=neutral,
            hints=hints,
            inspections=inspections,
        )


class GameSessionState(BaseModel):
    """
    One learner's playthrough of one game instance.

    Only the game session mutates this object, and only through
    `append_event`. Once `phase` is COMPLETED the state is frozen.
    """

    session_id: str = Field(default_factory=lambda: uuid4().hex)
    game_id: Optional[str] = None
    phase: GamePhase = GamePhase.INSTRUCTIONS

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    score: int = 0
    events: list[InteractionEvent] = Field(default_factory=list)
    revealed_node_ids: list[str] = Field(default_factory=list)
    tally: LogTally = Field(default_factory=LogTally)

    completion_score: Optional[int] = None
    profile: Optional[PerformanceProfile] = None

    @property
    def hints_used(self) -> int:
        return self.tally.hints

    @property
    def correct_count(self) -> int:
        return self.tally.correct

    @property
    def incorrect_count(self) -> int:
        return self.tally.incorrect

    @property
    def neutral_count(self) -> int:
        return self.tally.neutral

    @property
    def is_frozen(self) -> bool:
        return self.phase == GamePhase.COMPLETED

    @property
    def next_sequence(self) -> int:
        return len(self.events)

    @property
    def last_timestamp(self) -> datetime | None:
        return self.events[-1].timestamp if self.events else None

    def append_event(self, event: InteractionEvent) -> None:
        """Append to the log and refresh the derived tally."""
        if self.is_frozen:
            raise ValueError(f"Session {self.session_id} is completed; its log is frozen")
        if event.sequence != self.next_sequence:
            raise ValueError(
                f"Out of order event: expected sequence {self.next_sequence}, got {event.sequence}"
            )
        last = self.last_timestamp
        if last is not None and event.timestamp < last:
            raise ValueError("Event timestamps must be non-decreasing")
        self.events.append(event)
        self.tally = LogTally.from_events(self.events)

    def elapsed_seconds(self, now: datetime | None = None) -> float:
        """Seconds between start and completion (or `now` while active)."""
        if self.started_at is None:
            return 0.0
        end = self.completed_at or now
        if end is None:
            return 0.0
        return max(0.0, (end - self.started_at).total_seconds())


# ============================================================================
# Command results
# ============================================================================

class TransitionResult(BaseModel):
    """Result of a phase transition command."""

    accepted: bool
    phase: GamePhase
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ConnectionOutcome(str, Enum):
    """What happened to an attempted connection."""
    CORRECT = "correct"
    WRONG = "wrong"
    NEUTRAL = "neutral"
    ALREADY_SOLVED = "already_solved"
    REJECTED = "rejected"

    @classmethod
    def from_classification(cls, classification: Classification) -> "ConnectionOutcome":
        return cls(classification.value)


class ConnectionResult(BaseModel):
    """Result of `attempt_connection`."""

    outcome: ConnectionOutcome
    source: str
    target: str
    score: int
    score_delta: int = 0
    feedback: Optional[str] = None
    completed: bool = False
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def recorded(self) -> bool:
        """Whether the attempt was appended to the log."""
        return self.outcome in (
            ConnectionOutcome.CORRECT,
            ConnectionOutcome.WRONG,
            ConnectionOutcome.NEUTRAL,
        )


class InspectResult(BaseModel):
    """Result of `inspect_node`."""

    accepted: bool
    node_id: str
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class HintStatus(str, Enum):
    """Outcome of a hint request."""
    GRANTED = "granted"
    EXHAUSTED = "exhausted"
    NOTHING_TO_REVEAL = "nothing_to_reveal"
    INVALID_PHASE = "invalid_phase"


class HintResult(BaseModel):
    """
    Result of a hint request.

    On GRANTED, `edge` names the solution edge to emphasize; the visual
    highlight and its timeout belong to the presentation layer.
    """

    status: HintStatus
    hints_used: int
    hints_remaining: int
    hint_index: Optional[int] = None
    edge: Optional[SolutionEntry] = None
    hint_text: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def granted(self) -> bool:
        return self.status == HintStatus.GRANTED


class Evaluation(BaseModel):
    """A classification plus the content entry that produced it."""

    classification: Classification
    solution_entry: Optional[SolutionEntry] = None
    wrong_entry: Optional[WrongConnection] = None

    model_config = ConfigDict(frozen=True)

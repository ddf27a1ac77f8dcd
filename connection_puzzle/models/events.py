"""
Interaction events.

The ordered, append-only sequence of these events is the single source
of truth for scoring, completion and analytics. Events are closed,
tagged variants discriminated by `kind`.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Classification(str, Enum):
    """Verdict of the connection evaluator on a drawn edge."""
    CORRECT = "correct"
    WRONG = "wrong"
    NEUTRAL = "neutral"  # not required, not flagged as an error


class EventKind(str, Enum):
    """Discriminator values of interaction events."""
    CONNECTION_ATTEMPTED = "connection_attempted"
    NODE_INSPECTED = "node_inspected"
    HINT_USED = "hint_used"


class _EventBase(BaseModel):
    sequence: int = Field(..., ge=0)
    timestamp: datetime

    model_config = ConfigDict(frozen=True)


class ConnectionAttempted(_EventBase):
    """The learner drew an edge and it was classified."""

    kind: Literal["connection_attempted"] = "connection_attempted"
    source: str
    target: str
    classification: Classification

    @property
    def pair(self) -> tuple[str, str]:
        return (self.source, self.target)


class NodeInspected(_EventBase):
    """The learner opened a node's details."""

    kind: Literal["node_inspected"] = "node_inspected"
    node_id: str


class HintUsed(_EventBase):
    """A hint was granted, naming one unsolved solution edge."""

    kind: Literal["hint_used"] = "hint_used"
    hint_index: int = Field(..., ge=0)
    source: Optional[str] = None
    target: Optional[str] = None


InteractionEvent = Annotated[
    Union[ConnectionAttempted, NodeInspected, HintUsed],
    Field(discriminator="kind"),
]


def connection_attempts(events: list[InteractionEvent]) -> list[ConnectionAttempted]:
    """Filter a log down to its connection attempts."""
    return [event for event in events if isinstance(event, ConnectionAttempted)]


def hints_used(events: list[InteractionEvent]) -> list[HintUsed]:
    """Filter a log down to its granted hints."""
    return [event for event in events if isinstance(event, HintUsed)]


def solved_pairs(events: list[InteractionEvent]) -> set[tuple[str, str]]:
    """Pairs the learner has already made correctly."""
    return {
        event.pair
        for event in connection_attempts(events)
        if event.classification == Classification.CORRECT
    }

"""
Base persistence interface for interaction logs and analytics rows.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import AnalyticsRecord, InteractionRecord, LeadPayload


class PersistenceAdapter(ABC):
    """
    Abstract base class for persistence backends.

    The engine only ever reaches these through the fire-and-forget
    publisher; a failing adapter never affects the in-memory session.
    Implementations may use SQLite, PostgreSQL, a hosted backend, etc.
    """

    async def connect(self) -> None:
        """Establish connection to the backend."""
        pass

    async def disconnect(self) -> None:
        """Close connection to the backend."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the backend is healthy and accessible."""
        pass

    @abstractmethod
    async def record_interaction(self, record: InteractionRecord) -> None:
        """Store one interaction event."""
        pass

    @abstractmethod
    async def record_analytics(self, record: AnalyticsRecord) -> None:
        """Store the analytics row of a completed session."""
        pass

    @abstractmethod
    async def record_lead(self, payload: LeadPayload) -> None:
        """Store a captured lead with its profile payload."""
        pass

    @abstractmethod
    async def list_interactions(self, session_id: str) -> List[InteractionRecord]:
        """Interactions of one session, ordered by sequence."""
        pass

    @abstractmethod
    async def list_analytics(self, session_id: Optional[str] = None) -> List[AnalyticsRecord]:
        """Analytics rows, optionally filtered by session."""
        pass

    @abstractmethod
    async def list_leads(self) -> List[LeadPayload]:
        """Captured leads in insertion order."""
        pass

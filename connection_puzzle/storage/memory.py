"""
In-memory persistence adapter for testing and development.
"""

import logging
from typing import List, Optional

from ..models import AnalyticsRecord, InteractionRecord, LeadPayload
from .base import PersistenceAdapter


logger = logging.getLogger(__name__)


class InMemoryPersistenceAdapter(PersistenceAdapter):
    """
    Keeps every record in process memory.

    Note: This is NOT for production. Use SQLitePersistenceAdapter or
    SqlAlchemyPersistenceAdapter instead.
    """

    def __init__(self) -> None:
        self.interactions: list[InteractionRecord] = []
        self.analytics: list[AnalyticsRecord] = []
        self.leads: list[LeadPayload] = []

    async def health_check(self) -> bool:
        return True

    async def record_interaction(self, record: InteractionRecord) -> None:
        self.interactions.append(record)
        logger.debug(f"Recorded interaction {record.session_id}#{record.sequence}")

    async def record_analytics(self, record: AnalyticsRecord) -> None:
        self.analytics.append(record)
        logger.debug(f"Recorded analytics for session {record.session_id}")

    async def record_lead(self, payload: LeadPayload) -> None:
        self.leads.append(payload)

    async def list_interactions(self, session_id: str) -> List[InteractionRecord]:
        records = [r for r in self.interactions if r.session_id == session_id]
        return sorted(records, key=lambda r: r.sequence)

    async def list_analytics(self, session_id: Optional[str] = None) -> List[AnalyticsRecord]:
        if session_id is None:
            return list(self.analytics)
        return [r for r in self.analytics if r.session_id == session_id]

    async def list_leads(self) -> List[LeadPayload]:
        return list(self.leads)

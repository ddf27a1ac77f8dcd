"""
SQLAlchemy-backed persistence for production databases.

Uses SQLAlchemy Core tables so the same adapter runs against PostgreSQL
in production and a file-backed SQLite database in tests.
Connection string from environment: CONNECTION_PUZZLE_DB_URL
"""

import logging
import os
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    insert,
    select,
    text,
)
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import PersistenceError
from ..models import AnalyticsRecord, InteractionRecord, LeadPayload
from .base import PersistenceAdapter


logger = logging.getLogger(__name__)

metadata = MetaData()

interactions_table = Table(
    "game_interactions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("session_id", String(64), nullable=False, index=True),
    Column("game_id", String(255)),
    Column("learner_id", String(255)),
    Column("sequence", Integer, nullable=False),
    Column("interaction_type", String(32), nullable=False),
    Column("interaction_data", JSON),
    Column("recorded_at", DateTime(timezone=True), nullable=False),
)

analytics_table = Table(
    "game_analytics",
    metadata,
    Column("session_id", String(64), primary_key=True),
    Column("game_id", String(255)),
    Column("learner_id", String(255)),
    Column("completed_at", DateTime(timezone=True), nullable=False),
    Column("elapsed_seconds", Integer, nullable=False),
    Column("correct_connections", Integer, nullable=False),
    Column("incorrect_connections", Integer, nullable=False),
    Column("hints_used", Integer, nullable=False),
    Column("total_interactions", Integer, nullable=False),
    Column("completion_score", Integer, nullable=False),
    Column("decision_path", JSON),
)

leads_table = Table(
    "game_leads",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False),
    Column("game_id", String(255)),
    Column("game_title", String(255)),
    Column("completion_score", Integer, nullable=False),
    Column("payload", JSON, nullable=False),
)


class SqlAlchemyPersistenceAdapter(PersistenceAdapter):
    """
    Persistence adapter over any SQLAlchemy-supported database.

    The engine is created lazily on first use; tables are created on
    connect() or on the first write.
    """

    def __init__(self, connection_string: str | None = None) -> None:
        self._connection_string = connection_string or os.getenv("CONNECTION_PUZZLE_DB_URL")
        if not self._connection_string:
            raise PersistenceError(
                "Database connection required. Set CONNECTION_PUZZLE_DB_URL env var "
                "or pass connection_string parameter."
            )
        self._engine = None
        self._schema_ready = False

    def _get_engine(self):
        """Lazy initialization of SQLAlchemy engine with connection pooling."""
        if self._engine is None:
            kwargs = {"pool_pre_ping": True}
            if not self._connection_string.startswith("sqlite"):
                kwargs.update(pool_size=5, max_overflow=10)

            self._engine = create_engine(self._connection_string, **kwargs)
            logger.info("SQLAlchemy connection pool initialized")
        return self._engine

    def _ensure_schema(self):
        engine = self._get_engine()
        if not self._schema_ready:
            metadata.create_all(engine)
            self._schema_ready = True
        return engine

    async def connect(self) -> None:
        try:
            self._ensure_schema()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to connect: {e}") from e

    async def disconnect(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._schema_ready = False

    async def health_check(self) -> bool:
        try:
            with self._get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    async def record_interaction(self, record: InteractionRecord) -> None:
        values = record.model_dump()
        values["interaction_type"] = record.interaction_type.value
        self._insert(interactions_table, values, "interaction")

    async def record_analytics(self, record: AnalyticsRecord) -> None:
        self._insert(analytics_table, record.model_dump(mode="json") | {
            "completed_at": record.completed_at,
        }, "analytics")

    async def record_lead(self, payload: LeadPayload) -> None:
        self._insert(leads_table, {
            "name": payload.name,
            "email": payload.email,
            "game_id": payload.game_id,
            "game_title": payload.game_title,
            "completion_score": payload.completion_score,
            "payload": payload.model_dump(mode="json"),
        }, "lead")

    async def list_interactions(self, session_id: str) -> List[InteractionRecord]:
        query = (
            select(interactions_table)
            .where(interactions_table.c.session_id == session_id)
            .order_by(interactions_table.c.sequence)
        )
        rows = self._fetch(query)
        return [
            InteractionRecord.model_validate({k: v for k, v in row.items() if k != "id"})
            for row in rows
        ]

    async def list_analytics(self, session_id: Optional[str] = None) -> List[AnalyticsRecord]:
        query = select(analytics_table).order_by(analytics_table.c.completed_at)
        if session_id is not None:
            query = query.where(analytics_table.c.session_id == session_id)
        return [AnalyticsRecord.model_validate(row) for row in self._fetch(query)]

    async def list_leads(self) -> List[LeadPayload]:
        query = select(leads_table.c.payload).order_by(leads_table.c.id)
        return [LeadPayload.model_validate(row["payload"]) for row in self._fetch(query)]

    def _insert(self, table: Table, values: dict, label: str) -> None:
        try:
            engine = self._ensure_schema()
            with engine.begin() as conn:
                conn.execute(insert(table).values(**values))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to record {label}: {e}") from e

    def _fetch(self, query) -> list[dict]:
        try:
            engine = self._ensure_schema()
            with engine.connect() as conn:
                return [dict(row._mapping) for row in conn.execute(query)]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Query failed: {e}") from e

"""
SQLite persistence for interaction logs, analytics rows and leads.

Schema:
    game_interactions: one row per interaction event
    game_analytics: one row per completed session
    game_leads: captured learner identities with their profile payload
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

from ..exceptions import PersistenceError
from ..models import AnalyticsRecord, InteractionRecord, LeadPayload
from .base import PersistenceAdapter


logger = logging.getLogger(__name__)


class SQLitePersistenceAdapter(PersistenceAdapter):
    """
    SQLite-backed persistence adapter.

    Usage:
        adapter = SQLitePersistenceAdapter("puzzle.db")
        publisher = EventPublisher(adapter)
        session = GameSession(game_model, publisher=publisher)
    """

    def __init__(self, db_path: str | Path = ":memory:"):
        """
        Initialize SQLite adapter.

        Args:
            db_path: Path to SQLite database, or ":memory:" for in-memory
        """
        self.db_path = str(db_path)
        self._is_memory = self.db_path == ":memory:"
        self._shared_conn: sqlite3.Connection | None = None

        if self._is_memory:
            # For in-memory databases, keep a single shared connection
            self._shared_conn = sqlite3.connect(":memory:", check_same_thread=False)
            self._shared_conn.row_factory = sqlite3.Row

        self._init_schema()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper cleanup."""
        if self._is_memory and self._shared_conn:
            try:
                yield self._shared_conn
                self._shared_conn.commit()
            except Exception:
                self._shared_conn.rollback()
                raise
        else:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS game_interactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id TEXT NOT NULL,
                    game_id TEXT,
                    learner_id TEXT,
                    sequence INTEGER NOT NULL,
                    interaction_type TEXT NOT NULL,
                    interaction_data TEXT,  -- JSON object
                    recorded_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_interactions_session
                    ON game_interactions(session_id, sequence);

                CREATE TABLE IF NOT EXISTS game_analytics (
                    session_id TEXT PRIMARY KEY,
                    game_id TEXT,
                    learner_id TEXT,
                    completed_at TEXT NOT NULL,
                    elapsed_seconds INTEGER NOT NULL,
                    correct_connections INTEGER NOT NULL,
                    incorrect_connections INTEGER NOT NULL,
                    hints_used INTEGER NOT NULL,
                    total_interactions INTEGER NOT NULL,
                    completion_score INTEGER NOT NULL,
                    decision_path TEXT  -- JSON array
                );

                CREATE TABLE IF NOT EXISTS game_leads (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL,
                    game_id TEXT,
                    game_title TEXT,
                    completion_score INTEGER NOT NULL,
                    payload TEXT NOT NULL,  -- JSON object
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                );
            """)

    async def health_check(self) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error as e:
            logger.warning(f"SQLite health check failed: {e}")
            return False

    async def disconnect(self) -> None:
        if self._shared_conn is not None:
            self._shared_conn.close()
            self._shared_conn = None

    async def record_interaction(self, record: InteractionRecord) -> None:
        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO game_interactions
                    (session_id, game_id, learner_id, sequence, interaction_type,
                     interaction_data, recorded_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    record.session_id,
                    record.game_id,
                    record.learner_id,
                    record.sequence,
                    record.interaction_type.value,
                    json.dumps(record.interaction_data),
                    record.recorded_at.isoformat(),
                ))
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to record interaction: {e}") from e

    async def record_analytics(self, record: AnalyticsRecord) -> None:
        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT OR REPLACE INTO game_analytics
                    (session_id, game_id, learner_id, completed_at, elapsed_seconds,
                     correct_connections, incorrect_connections, hints_used,
                     total_interactions, completion_score, decision_path)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    record.session_id,
                    record.game_id,
                    record.learner_id,
                    record.completed_at.isoformat(),
                    record.elapsed_seconds,
                    record.correct_connections,
                    record.incorrect_connections,
                    record.hints_used,
                    record.total_interactions,
                    record.completion_score,
                    json.dumps(record.decision_path),
                ))
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to record analytics: {e}") from e

    async def record_lead(self, payload: LeadPayload) -> None:
        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO game_leads
                    (name, email, game_id, game_title, completion_score, payload)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, (
                    payload.name,
                    payload.email,
                    payload.game_id,
                    payload.game_title,
                    payload.completion_score,
                    payload.model_dump_json(),
                ))
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to record lead: {e}") from e

    async def list_interactions(self, session_id: str) -> List[InteractionRecord]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM game_interactions WHERE session_id = ? ORDER BY sequence",
                (session_id,)
            ).fetchall()
        return [self._row_to_interaction(row) for row in rows]

    async def list_analytics(self, session_id: Optional[str] = None) -> List[AnalyticsRecord]:
        with self._get_connection() as conn:
            if session_id is None:
                rows = conn.execute(
                    "SELECT * FROM game_analytics ORDER BY completed_at"
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM game_analytics WHERE session_id = ?",
                    (session_id,)
                ).fetchall()
        return [self._row_to_analytics(row) for row in rows]

    async def list_leads(self) -> List[LeadPayload]:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT payload FROM game_leads ORDER BY id").fetchall()
        return [LeadPayload.model_validate_json(row["payload"]) for row in rows]

    def _row_to_interaction(self, row: sqlite3.Row) -> InteractionRecord:
        return InteractionRecord(
            session_id=row["session_id"],
            game_id=row["game_id"],
            learner_id=row["learner_id"],
            sequence=row["sequence"],
            interaction_type=row["interaction_type"],
            interaction_data=json.loads(row["interaction_data"]) if row["interaction_data"] else {},
            recorded_at=datetime.fromisoformat(row["recorded_at"]),
        )

    def _row_to_analytics(self, row: sqlite3.Row) -> AnalyticsRecord:
        return AnalyticsRecord(
            session_id=row["session_id"],
            game_id=row["game_id"],
            learner_id=row["learner_id"],
            completed_at=datetime.fromisoformat(row["completed_at"]),
            elapsed_seconds=row["elapsed_seconds"],
            correct_connections=row["correct_connections"],
            incorrect_connections=row["incorrect_connections"],
            hints_used=row["hints_used"],
            total_interactions=row["total_interactions"],
            completion_score=row["completion_score"],
            decision_path=json.loads(row["decision_path"]) if row["decision_path"] else [],
        )

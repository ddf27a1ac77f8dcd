"""
Unified entry point for the connection puzzle engine.

Provides a single facade for:
- Game content loading and validation
- Session creation with engine-wide defaults
- Fire-and-forget persistence of interactions, analytics and leads
- Lead capture for completed sessions
"""

import logging
from typing import Any, Mapping

from .config import EngineSettings
from .models import GameModel, LeadPayload, load_game_model
from .services import GameSession, build_lead_payload
from .storage import EventPublisher, PersistenceAdapter, create_persistence_adapter


logger = logging.getLogger(__name__)


class PuzzleEngine:
    """
    Connection puzzle engine.

    Configuration via environment variables (see EngineSettings):
    - CONNECTION_PUZZLE_MODE: 'memory', 'sqlite' or 'production'
    - CONNECTION_PUZZLE_DB_URL: database URL for production mode
    - CONNECTION_PUZZLE_SCORING_MODE, _MAX_HINTS, _COMPLETION_THRESHOLD, _TARGET_RATE
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        adapter: PersistenceAdapter | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Override settings read from the environment
            adapter: Override the persistence backend chosen by settings.mode
        """
        self._settings = settings or EngineSettings.from_env()
        self._adapter = adapter or create_persistence_adapter(self._settings)
        self._publisher = EventPublisher(self._adapter)
        self._games: dict[str, GameModel] = {}

        logger.info(f"PuzzleEngine initialized in '{self._settings.mode}' mode")

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def adapter(self) -> PersistenceAdapter:
        return self._adapter

    @property
    def publisher(self) -> EventPublisher:
        return self._publisher

    # ─────────────────────────────────────────────────────────────────────────
    # Content
    # ─────────────────────────────────────────────────────────────────────────

    def load_game(self, payload: Mapping[str, Any] | GameModel) -> GameModel:
        """
        Validate and register a game model.

        Raises:
            MalformedContentError: if the content is invalid
        """
        model = load_game_model(payload)
        if model.id is not None:
            self._games[model.id] = model
        return model

    def get_game(self, game_id: str) -> GameModel | None:
        """Get a previously loaded game by id."""
        return self._games.get(game_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Sessions
    # ─────────────────────────────────────────────────────────────────────────

    def new_session(
        self,
        game: GameModel | str,
        learner_id: str | None = None,
        **kwargs,
    ) -> GameSession:
        """
        Create a session wired to this engine's settings and publisher.

        Raises:
            KeyError: if `game` is an id that was never loaded
        """
        model = self._games[game] if isinstance(game, str) else game
        return GameSession.from_settings(
            model,
            self._settings,
            publisher=self._publisher,
            learner_id=learner_id,
            **kwargs,
        )

    def submit_lead(self, session: GameSession, name: str, email: str) -> LeadPayload | None:
        """
        Build and publish the lead payload for a completed session.

        Returns:
            The payload, or None if the session is not completed

        Raises:
            pydantic.ValidationError: if name or email is invalid
        """
        report = session.report()
        if report is None:
            logger.warning(f"Lead capture before completion of session {session.state.session_id}")
            return None

        payload = build_lead_payload(report, name, email, session.game_model)
        self._publisher.publish_lead(payload)
        return payload

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for pending background writes."""
        return self._publisher.drain(timeout)

    def close(self) -> None:
        self._publisher.close()

    def __enter__(self) -> "PuzzleEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

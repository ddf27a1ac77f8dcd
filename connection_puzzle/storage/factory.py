"""
Persistence backend selection.

Mode-based like the rest of the configuration:
    memory      in-process lists, nothing survives the process
    sqlite      sqlite3 file (or :memory:) at settings.sqlite_path
    production  SQLAlchemy against settings.database_url
"""

import logging

from ..config import EngineSettings
from ..exceptions import ConfigurationError
from .base import PersistenceAdapter
from .memory import InMemoryPersistenceAdapter
from .sql import SqlAlchemyPersistenceAdapter
from .sqlite import SQLitePersistenceAdapter


logger = logging.getLogger(__name__)


def create_persistence_adapter(settings: EngineSettings | None = None) -> PersistenceAdapter:
    """
    Build the adapter for the configured mode.

    Raises:
        ConfigurationError: for an unknown mode
    """
    settings = settings or EngineSettings.from_env()

    if settings.mode == "memory":
        adapter: PersistenceAdapter = InMemoryPersistenceAdapter()
    elif settings.mode == "sqlite":
        adapter = SQLitePersistenceAdapter(settings.sqlite_path)
    elif settings.mode == "production":
        adapter = SqlAlchemyPersistenceAdapter(settings.database_url)
    else:
        raise ConfigurationError(f"Unknown persistence mode: {settings.mode}")

    logger.info(f"Using {type(adapter).__name__} ({settings.mode} mode)")
    return adapter

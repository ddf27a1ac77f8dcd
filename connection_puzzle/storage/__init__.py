"""
Persistence adapters for interaction logs, analytics and leads.
"""

from .base import PersistenceAdapter
from .factory import create_persistence_adapter
from .memory import InMemoryPersistenceAdapter
from .publisher import EventPublisher
from .sql import SqlAlchemyPersistenceAdapter
from .sqlite import SQLitePersistenceAdapter

__all__ = [
    "PersistenceAdapter",
    "InMemoryPersistenceAdapter",
    "SQLitePersistenceAdapter",
    "SqlAlchemyPersistenceAdapter",
    "EventPublisher",
    "create_persistence_adapter",
]

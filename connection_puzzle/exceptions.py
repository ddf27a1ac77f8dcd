"""
Exception hierarchy for the connection puzzle engine.

Only malformed content and broken configuration halt. Routine gameplay
outcomes (no hints left, edge already solved, wrong phase) are returned
as typed results from the session commands instead.
"""


class ConnectionPuzzleError(Exception):
    """Base exception for connection puzzle operations."""
    pass


class MalformedContentError(ConnectionPuzzleError):
    """Raised when a game model cannot be offered to a learner."""

    def __init__(self, message: str, problems: list[str] | None = None):
        super().__init__(message)
        self.problems = problems or []


class ConfigurationError(ConnectionPuzzleError):
    """Raised when engine settings are invalid."""
    pass


class PersistenceError(ConnectionPuzzleError):
    """Raised by persistence adapters when a write or read fails."""
    pass

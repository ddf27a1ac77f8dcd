"""
Engine configuration.

Settings come from environment variables unless passed explicitly:
    CONNECTION_PUZZLE_MODE=memory|sqlite|production
    CONNECTION_PUZZLE_SCORING_MODE=flat|weighted
    CONNECTION_PUZZLE_MAX_HINTS=3
    CONNECTION_PUZZLE_COMPLETION_THRESHOLD=0.7
    CONNECTION_PUZZLE_TARGET_RATE=2.0
    CONNECTION_PUZZLE_SQLITE_PATH=:memory:
    CONNECTION_PUZZLE_DB_URL=postgresql://...

Content-level overrides on a GameModel (scoring weights, completion
threshold) take precedence over these engine-wide defaults.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping

from .exceptions import ConfigurationError
from .models import ScoringMode, ScoringWeights


ENV_PREFIX = "CONNECTION_PUZZLE_"

PERSISTENCE_MODES = ("memory", "sqlite", "production")


def _read(env: Mapping[str, str], name: str, default: str) -> str:
    return env.get(f"{ENV_PREFIX}{name}", default)


@dataclass
class EngineSettings:
    """Engine-wide defaults and persistence backend selection."""
    mode: str = "memory"
    scoring_mode: ScoringMode = ScoringMode.FLAT
    max_hints: int = 3
    completion_threshold: float = 0.7
    target_rate: float = 2.0

    sqlite_path: str = ":memory:"
    database_url: str | None = None

    scoring_overrides: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.mode not in PERSISTENCE_MODES:
            raise ConfigurationError(
                f"Unknown persistence mode {self.mode!r}; expected one of {PERSISTENCE_MODES}"
            )
        if self.max_hints < 0:
            raise ConfigurationError("max_hints must be >= 0")
        if not 0.0 < self.completion_threshold <= 1.0:
            raise ConfigurationError("completion_threshold must be in (0, 1]")
        if self.target_rate <= 0:
            raise ConfigurationError("target_rate must be positive")
        if self.mode == "production" and not self.database_url:
            raise ConfigurationError(
                "Database URL required in production mode. "
                f"Set {ENV_PREFIX}DB_URL or pass database_url."
            )

    def scoring_weights(self) -> ScoringWeights:
        """Default scoring weights for games that do not define their own."""
        return ScoringWeights(mode=self.scoring_mode, **self.scoring_overrides)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "EngineSettings":
        """
        Build settings from environment variables.

        Raises:
            ConfigurationError: on unparsable or out-of-range values
        """
        env = os.environ if env is None else env
        try:
            return cls(
                mode=_read(env, "MODE", "memory").lower(),
                scoring_mode=ScoringMode(_read(env, "SCORING_MODE", "flat").lower()),
                max_hints=int(_read(env, "MAX_HINTS", "3")),
                completion_threshold=float(_read(env, "COMPLETION_THRESHOLD", "0.7")),
                target_rate=float(_read(env, "TARGET_RATE", "2.0")),
                sqlite_path=_read(env, "SQLITE_PATH", ":memory:"),
                database_url=env.get(f"{ENV_PREFIX}DB_URL") or None,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid engine setting: {e}") from e

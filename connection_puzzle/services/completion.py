"""
Completion detection.

After every correct connection the detector compares the correct count
against ceil(|solution| * threshold). Meeting it, with at least one
correct connection, is the only automatic Active -> Completed trigger.
"""

import logging
import math

from ..models import (
    Classification,
    ConnectionAttempted,
    GameModel,
    InteractionEvent,
    LogTally,
)


logger = logging.getLogger(__name__)

DEFAULT_COMPLETION_THRESHOLD = 0.7


def required_connections(solution_size: int, threshold: float) -> int:
    """ceil(solution_size * threshold), ignoring float noise such as 7.000000000000001."""
    return math.ceil(round(solution_size * threshold, 9))


class CompletionDetector:
    """Watches correct connections against the completion threshold."""

    def __init__(self, game_model: GameModel, threshold: float | None = None) -> None:
        if game_model.completion_threshold is not None:
            threshold = game_model.completion_threshold
        elif threshold is None:
            threshold = DEFAULT_COMPLETION_THRESHOLD
        if not 0.0 < threshold <= 1.0:
            raise ValueError(f"Completion threshold must be in (0, 1], got {threshold}")

        self._threshold = threshold
        self._required = required_connections(len(game_model.solution), threshold)

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def required_count(self) -> int:
        return self._required

    def is_met(self, tally: LogTally) -> bool:
        # A zero-requirement graph never completes on its own
        return tally.correct >= 1 and tally.correct >= self._required

    def should_complete(self, event: InteractionEvent, tally: LogTally) -> bool:
        """Re-check after an appended event; only correct attempts can trigger."""
        if not isinstance(event, ConnectionAttempted):
            return False
        if event.classification != Classification.CORRECT:
            return False
        met = self.is_met(tally)
        if met:
            logger.info(
                f"Completion threshold met: {tally.correct} correct >= {self._required} required"
            )
        return met

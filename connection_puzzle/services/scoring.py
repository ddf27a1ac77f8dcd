"""
Scoring engine.

Maintains the running score incrementally as events are appended and
computes the 0-100 completion score at finalization. All constants come
from `ScoringWeights`; nothing is inlined here.
"""

import logging
from dataclasses import dataclass

from ..models import (
    Classification,
    ConnectionAttempted,
    GameModel,
    HintUsed,
    InteractionEvent,
    LogTally,
    ScoringMode,
    ScoringWeights,
)
from .evaluator import ConnectionEvaluator


logger = logging.getLogger(__name__)


def resolve_weights(game_model: GameModel, default: ScoringWeights | None = None) -> ScoringWeights:
    """Content-level weights override the engine default."""
    if game_model.scoring_weights is not None:
        return game_model.scoring_weights
    return default or ScoringWeights()


@dataclass(frozen=True)
class CompletionBreakdown:
    """Components of the completion score before clamping."""
    accuracy: float          # 0-1
    required_ratio: float    # 0-1
    accuracy_points: float
    time_bonus: float
    efficiency_bonus: float
    required_points: float

    @property
    def raw_total(self) -> float:
        return self.accuracy_points + self.time_bonus + self.efficiency_bonus + self.required_points

    @property
    def total(self) -> int:
        """Clamped to [0, 100] and rounded."""
        return int(round(min(100.0, max(0.0, self.raw_total))))


class ScoringEngine:
    """
    Running score and completion score for one game model.

    The running score is clamped to a minimum of 0 after every event and
    has no upper bound during play. `replay` recomputes it from a log and
    always agrees with the incrementally maintained value.
    """

    def __init__(
        self,
        game_model: GameModel,
        weights: ScoringWeights | None = None,
        evaluator: ConnectionEvaluator | None = None,
    ) -> None:
        self._model = game_model
        self._weights = weights or resolve_weights(game_model)
        self._evaluator = evaluator or ConnectionEvaluator(game_model)

    @property
    def weights(self) -> ScoringWeights:
        return self._weights

    def delta_for(self, event: InteractionEvent) -> int:
        """Signed score change contributed by one event."""
        if isinstance(event, ConnectionAttempted):
            if event.classification == Classification.CORRECT:
                return self._correct_points(event)
            if event.classification == Classification.WRONG:
                return -self._wrong_penalty(event)
            return 0
        if isinstance(event, HintUsed):
            return -self._weights.hint_penalty
        return 0

    def apply(self, score: int, event: InteractionEvent) -> int:
        """Score after appending `event`."""
        return max(0, score + self.delta_for(event))

    def replay(self, events: list[InteractionEvent]) -> int:
        """Recompute the running score from a full log."""
        score = 0
        for event in events:
            score = self.apply(score, event)
        return score

    def _correct_points(self, event: ConnectionAttempted) -> int:
        if self._weights.mode == ScoringMode.WEIGHTED:
            entry = self._evaluator.solution_entry(event.source, event.target)
            if entry is not None:
                return entry.points
        return self._weights.correct_points

    def _wrong_penalty(self, event: ConnectionAttempted) -> int:
        if self._weights.mode == ScoringMode.WEIGHTED:
            wrong = self._evaluator.wrong_entry(event.source, event.target)
            if wrong is not None:
                return wrong.penalty
        return self._weights.wrong_penalty

    # ─────────────────────────────────────────────────────────────────────────
    # Completion score
    # ─────────────────────────────────────────────────────────────────────────

    def completion_breakdown(self, tally: LogTally, elapsed_seconds: float) -> CompletionBreakdown:
        """
        Weighted combination of accuracy, time, hint efficiency and the
        share of required connections made.
        """
        w = self._weights
        judged = tally.correct + tally.incorrect
        accuracy = tally.correct / judged if judged > 0 else 0.0

        required = len(self._model.solution)
        required_ratio = min(1.0, tally.correct / required) if required > 0 else 0.0

        time_bonus = w.time_bonus_points if elapsed_seconds < w.time_bonus_threshold_seconds else 0.0

        if tally.hints == 0:
            efficiency_bonus = w.no_hint_bonus
        elif tally.hints <= 1:
            efficiency_bonus = w.one_hint_bonus
        else:
            efficiency_bonus = 0.0

        return CompletionBreakdown(
            accuracy=accuracy,
            required_ratio=required_ratio,
            accuracy_points=w.accuracy_weight * accuracy,
            time_bonus=time_bonus,
            efficiency_bonus=efficiency_bonus,
            required_points=w.required_ratio_weight * required_ratio,
        )

    def completion_score(self, tally: LogTally, elapsed_seconds: float) -> int:
        """Final 0-100 completion score."""
        breakdown = self.completion_breakdown(tally, elapsed_seconds)
        logger.debug(f"Completion score breakdown: {breakdown}")
        return breakdown.total

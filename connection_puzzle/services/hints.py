"""
Hint dispenser.

Each granted hint names one solution edge the learner has not yet made.
Selection is deterministic in solution order: the first unsolved edge
that has not been hinted yet, falling back to the first unsolved edge
once every unsolved edge has been hinted.
"""

import logging
from datetime import datetime

from ..models import (
    GameModel,
    GamePhase,
    GameSessionState,
    HintResult,
    HintStatus,
    HintUsed,
    SolutionEntry,
    hints_used,
    solved_pairs,
)


logger = logging.getLogger(__name__)

DEFAULT_MAX_HINTS = 3


class HintDispenser:
    """Issues at most `max_hints` hints per session."""

    def __init__(self, game_model: GameModel, max_hints: int = DEFAULT_MAX_HINTS) -> None:
        if max_hints < 0:
            raise ValueError("max_hints must be >= 0")
        self._model = game_model
        self._max_hints = max_hints

    @property
    def max_hints(self) -> int:
        return self._max_hints

    def remaining(self, state: GameSessionState) -> int:
        return max(0, self._max_hints - state.hints_used)

    def next_candidate(self, state: GameSessionState) -> SolutionEntry | None:
        """The edge the next hint would reveal, without granting it."""
        solved = solved_pairs(state.events)
        unsolved = [entry for entry in self._model.solution if entry.pair not in solved]
        if not unsolved:
            return None

        hinted = {
            (event.source, event.target)
            for event in hints_used(state.events)
        }
        for entry in unsolved:
            if entry.pair not in hinted:
                return entry
        # Unique choices exhausted
        return unsolved[0]

    def request_hint(
        self, state: GameSessionState, timestamp: datetime
    ) -> tuple[HintResult, HintUsed | None]:
        """
        Grant a hint if one is available.

        The state is not modified: a granted hint comes back as the
        `hint_used` event for the caller to record. Exhaustion and
        "nothing left to reveal" are ordinary outcomes, reported through
        the result status with no event.
        """
        if state.phase != GamePhase.ACTIVE:
            return self._result(state, HintStatus.INVALID_PHASE), None

        if state.hints_used >= self._max_hints:
            logger.info(f"Session {state.session_id}: no hints remaining")
            return self._result(state, HintStatus.EXHAUSTED), None

        entry = self.next_candidate(state)
        if entry is None:
            logger.info(f"Session {state.session_id}: every solution edge already made")
            return self._result(state, HintStatus.NOTHING_TO_REVEAL), None

        hint_index = state.hints_used
        event = HintUsed(
            sequence=state.next_sequence,
            timestamp=timestamp,
            hint_index=hint_index,
            source=entry.source,
            target=entry.target,
        )
        logger.info(
            f"Session {state.session_id}: hint {hint_index + 1}/{self._max_hints} "
            f"reveals {entry.source} -> {entry.target}"
        )
        result = HintResult(
            status=HintStatus.GRANTED,
            hints_used=hint_index + 1,
            hints_remaining=max(0, self._max_hints - hint_index - 1),
            hint_index=hint_index,
            edge=entry,
            hint_text=self._hint_text(hint_index),
        )
        return result, event

    def _hint_text(self, hint_index: int) -> str | None:
        if hint_index < len(self._model.hints):
            return self._model.hints[hint_index]
        return None

    def _result(self, state: GameSessionState, status: HintStatus) -> HintResult:
        return HintResult(
            status=status,
            hints_used=state.hints_used,
            hints_remaining=self.remaining(state),
        )

"""
Connection evaluation against the reference graph.

A drawn edge is CORRECT if it appears in the solution, WRONG if it is
not in the solution but is listed in the wrong-connection catalog, and
NEUTRAL otherwise. Direction matters: (A, B) and (B, A) are evaluated
independently.
"""

import logging
from typing import Iterable

from ..models import (
    Classification,
    Evaluation,
    GameModel,
    SolutionEntry,
    WrongConnection,
)


logger = logging.getLogger(__name__)


def evaluate(
    source: str,
    target: str,
    solution: Iterable[SolutionEntry],
    wrong_catalog: Iterable[WrongConnection],
) -> Classification:
    """Classify one directed edge. Pure function."""
    pair = (source, target)
    if any(entry.pair == pair for entry in solution):
        return Classification.CORRECT
    if any(wrong.pair == pair for wrong in wrong_catalog):
        return Classification.WRONG
    return Classification.NEUTRAL


class ConnectionEvaluator:
    """
    Indexed evaluator for one game model.

    Returns the matched solution or catalog entry along with the
    classification so the scoring engine can read per-edge points and
    penalties and the session can surface feedback.
    """

    def __init__(self, game_model: GameModel) -> None:
        self._solution: dict[tuple[str, str], SolutionEntry] = {
            entry.pair: entry for entry in game_model.solution
        }
        self._wrong: dict[tuple[str, str], WrongConnection] = {}
        for wrong in game_model.wrong_connections:
            # First authored entry wins for a repeated pair
            self._wrong.setdefault(wrong.pair, wrong)

    def evaluate(self, source: str, target: str) -> Evaluation:
        """Classify an edge and attach the entry that decided it."""
        pair = (source, target)
        entry = self._solution.get(pair)
        if entry is not None:
            return Evaluation(classification=Classification.CORRECT, solution_entry=entry)

        wrong = self._wrong.get(pair)
        if wrong is not None:
            return Evaluation(classification=Classification.WRONG, wrong_entry=wrong)

        logger.debug(f"Neutral connection: {source} -> {target}")
        return Evaluation(classification=Classification.NEUTRAL)

    def solution_entry(self, source: str, target: str) -> SolutionEntry | None:
        return self._solution.get((source, target))

    def wrong_entry(self, source: str, target: str) -> WrongConnection | None:
        return self._wrong.get((source, target))

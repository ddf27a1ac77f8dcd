"""
Game session state machine.

    instructions --start()--> active --threshold met / finish()--> completed
         ^                                                             |
         +------------------------------ reset() ----------------------+

Every command is synchronous and returns a typed result. Invalid
commands are rejected through that result, never raised. Persistence
goes through an optional EventPublisher and never blocks or fails a
command.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..config import EngineSettings
from ..models import (
    AnalyticsRecord,
    ConnectionAttempted,
    ConnectionOutcome,
    ConnectionResult,
    EventKind,
    GameModel,
    GamePhase,
    GameSessionState,
    HintResult,
    InspectResult,
    InteractionEvent,
    InteractionRecord,
    NodeInspected,
    PerformanceProfile,
    ScoringWeights,
    SessionReport,
    TransitionResult,
    solved_pairs,
)
from ..storage import EventPublisher
from .analytics import DEFAULT_TARGET_RATE, AnalyticsAggregator
from .completion import CompletionDetector
from .evaluator import ConnectionEvaluator
from .hints import DEFAULT_MAX_HINTS, HintDispenser
from .reporting import build_session_report
from .scoring import ScoringEngine, resolve_weights


logger = logging.getLogger(__name__)

StateListener = Callable[[GameSessionState], None]
Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GameSession:
    """
    One learner playing one game model.

    Owns the session state and the components that act on it. The
    state object is replaced wholesale on reset(); a completed state is
    never mutated again apart from caching its profile.

    Usage:
        session = GameSession(load_game_model(payload))
        session.start()
        result = session.attempt_connection("n1", "n2")
        if result.completed:
            profile = session.get_profile()
    """

    def __init__(
        self,
        game_model: GameModel,
        *,
        scoring_weights: ScoringWeights | None = None,
        max_hints: int = DEFAULT_MAX_HINTS,
        completion_threshold: float | None = None,
        target_rate: float = DEFAULT_TARGET_RATE,
        publisher: EventPublisher | None = None,
        learner_id: str | None = None,
        clock: Clock | None = None,
    ):
        self._model = game_model
        self._evaluator = ConnectionEvaluator(game_model)
        self._scoring = ScoringEngine(
            game_model,
            weights=resolve_weights(game_model, scoring_weights),
            evaluator=self._evaluator,
        )
        self._hints = HintDispenser(game_model, max_hints)
        self._completion = CompletionDetector(game_model, completion_threshold)
        self._analytics = AnalyticsAggregator(target_rate)

        self._publisher = publisher
        self._learner_id = learner_id
        self._clock = clock or _utc_now
        self._listeners: List[StateListener] = []

        self._state = self._new_state()
        self._previous: List[GameSessionState] = []

    @classmethod
    def from_settings(
        cls,
        game_model: GameModel,
        settings: EngineSettings,
        **kwargs,
    ) -> "GameSession":
        """Build a session with engine-wide defaults from settings."""
        return cls(
            game_model,
            scoring_weights=settings.scoring_weights(),
            max_hints=settings.max_hints,
            completion_threshold=settings.completion_threshold,
            target_rate=settings.target_rate,
            **kwargs,
        )

    # =========================================================
    # PROPERTIES
    # =========================================================

    @property
    def game_model(self) -> GameModel:
        return self._model

    @property
    def state(self) -> GameSessionState:
        return self._state

    @property
    def phase(self) -> GamePhase:
        return self._state.phase

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def hints_remaining(self) -> int:
        return self._hints.remaining(self._state)

    @property
    def required_connections(self) -> int:
        return self._completion.required_count

    @property
    def scoring(self) -> ScoringEngine:
        return self._scoring

    @property
    def previous_attempts(self) -> List[GameSessionState]:
        """States replaced by reset(), oldest first."""
        return list(self._previous)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener for every state change.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================
    # COMMANDS
    # =========================================================

    def start(self) -> TransitionResult:
        """instructions -> active."""
        state = self._state
        if state.phase != GamePhase.INSTRUCTIONS:
            return self._reject_transition("start", state.phase)

        state.started_at = self._now()
        state.phase = GamePhase.ACTIVE
        logger.info(f"Session {state.session_id} started on game {state.game_id}")
        self._notify()
        return TransitionResult(accepted=True, phase=state.phase)

    def attempt_connection(self, source: str, target: str) -> ConnectionResult:
        """Classify and record an edge drawn from `source` to `target`."""
        state = self._state
        if state.phase != GamePhase.ACTIVE:
            logger.warning(
                f"Session {state.session_id}: connection attempt in phase {state.phase.value}"
            )
            return self._reject_connection(source, target, "invalid_phase")

        problem = self._node_problem(source) or self._node_problem(target)
        if problem:
            logger.warning(f"Session {state.session_id}: {problem}")
            return self._reject_connection(source, target, problem)

        if (source, target) in solved_pairs(state.events):
            return ConnectionResult(
                outcome=ConnectionOutcome.ALREADY_SOLVED,
                source=source,
                target=target,
                score=state.score,
            )

        evaluation = self._evaluator.evaluate(source, target)
        event = ConnectionAttempted(
            sequence=state.next_sequence,
            timestamp=self._now(),
            source=source,
            target=target,
            classification=evaluation.classification,
        )
        delta = self._record(event)

        feedback = None
        if evaluation.solution_entry is not None:
            feedback = evaluation.solution_entry.rationale
        elif evaluation.wrong_entry is not None:
            feedback = evaluation.wrong_entry.explanation

        logger.debug(
            f"Session {state.session_id}: {source} -> {target} "
            f"{evaluation.classification.value} ({delta:+d}, score {state.score})"
        )

        completed = False
        if self._completion.should_complete(event, state.tally):
            self._complete()
            completed = True

        self._notify()
        return ConnectionResult(
            outcome=ConnectionOutcome.from_classification(evaluation.classification),
            source=source,
            target=target,
            score=state.score,
            score_delta=delta,
            feedback=feedback,
            completed=completed,
        )

    def inspect_node(self, node_id: str) -> InspectResult:
        """Reveal a node's details. No score effect."""
        state = self._state
        if state.phase != GamePhase.ACTIVE:
            return InspectResult(accepted=False, node_id=node_id, reason="invalid_phase")

        problem = self._node_problem(node_id)
        if problem:
            logger.warning(f"Session {state.session_id}: {problem}")
            return InspectResult(accepted=False, node_id=node_id, reason=problem)

        if node_id not in state.revealed_node_ids:
            state.revealed_node_ids.append(node_id)
        self._record(NodeInspected(
            sequence=state.next_sequence,
            timestamp=self._now(),
            node_id=node_id,
        ))
        self._notify()
        return InspectResult(accepted=True, node_id=node_id)

    def request_hint(self) -> HintResult:
        """Ask for a hint; a granted hint costs the hint penalty."""
        result, event = self._hints.request_hint(self._state, self._now())
        if event is not None:
            self._record(event)
            self._notify()
        return result

    def finish(self) -> TransitionResult:
        """active -> completed, regardless of the threshold."""
        state = self._state
        if state.phase != GamePhase.ACTIVE:
            return self._reject_transition("finish", state.phase)

        self._complete()
        self._notify()
        return TransitionResult(accepted=True, phase=state.phase)

    def reset(self) -> GameSessionState:
        """
        Start over with a fresh state in the instructions phase.

        A completed state gets its profile computed before it is archived.

        Returns:
            The replaced state
        """
        previous = self._state
        if previous.phase == GamePhase.COMPLETED:
            self._ensure_profile(previous)
        self._previous.append(previous)
        self._state = self._new_state()
        logger.info(
            f"Session {previous.session_id} reset; new session {self._state.session_id}"
        )
        self._notify()
        return previous

    # =========================================================
    # RESULTS
    # =========================================================

    def get_profile(self) -> Optional[PerformanceProfile]:
        """Performance profile of a completed session, computed once."""
        state = self._state
        if state.phase != GamePhase.COMPLETED:
            return None
        return self._ensure_profile(state)

    def report(self) -> Optional[SessionReport]:
        """Report for the presentation layer; None until completed."""
        if self.get_profile() is None:
            return None
        return build_session_report(self._state)

    # =========================================================
    # INTERNALS
    # =========================================================

    def _new_state(self) -> GameSessionState:
        return GameSessionState(
            game_id=self._model.id,
            revealed_node_ids=[node.id for node in self._model.nodes if node.revealed],
        )

    def _now(self) -> datetime:
        """Clock reading, never earlier than the last logged event."""
        now = self._clock()
        floor = self._state.last_timestamp or self._state.started_at
        if floor is not None and now < floor:
            return floor
        return now

    def _node_problem(self, node_id: str) -> str | None:
        node = self._model.get_node(node_id)
        if node is None:
            return f"unknown node {node_id!r}"
        if not node.unlocked:
            return f"node {node_id!r} is locked"
        return None

    def _ensure_profile(self, state: GameSessionState) -> PerformanceProfile:
        if state.profile is None:
            state.profile = self._analytics.aggregate(
                state.events,
                self._model.solution,
                self._model.wrong_connections,
                state.elapsed_seconds(),
                completion_score=state.completion_score or 0,
            )
        return state.profile

    def _record(self, event: InteractionEvent) -> int:
        """Append, rescore and publish. Returns the applied score delta."""
        state = self._state
        state.append_event(event)
        before = state.score
        state.score = self._scoring.apply(before, event)
        self._publish_event(event)
        return state.score - before

    def _complete(self) -> None:
        state = self._state
        state.completed_at = self._now()
        elapsed = state.elapsed_seconds()
        state.completion_score = self._scoring.completion_score(state.tally, elapsed)
        state.phase = GamePhase.COMPLETED
        logger.info(
            f"Session {state.session_id} completed: {state.tally.correct} correct, "
            f"score {state.score}, completion score {state.completion_score}"
        )

        if self._publisher is not None:
            self._publisher.publish_analytics(AnalyticsRecord(
                session_id=state.session_id,
                game_id=state.game_id,
                learner_id=self._learner_id,
                completed_at=state.completed_at,
                elapsed_seconds=int(elapsed),
                correct_connections=state.tally.correct,
                incorrect_connections=state.tally.incorrect,
                hints_used=state.tally.hints,
                total_interactions=len(state.events),
                completion_score=state.completion_score,
                decision_path=[event.model_dump(mode="json") for event in state.events],
            ))

    def _publish_event(self, event: InteractionEvent) -> None:
        if self._publisher is None:
            return
        state = self._state
        self._publisher.publish_interaction(InteractionRecord(
            session_id=state.session_id,
            game_id=state.game_id,
            learner_id=self._learner_id,
            sequence=event.sequence,
            interaction_type=EventKind(event.kind),
            interaction_data=event.model_dump(
                mode="json", exclude={"sequence", "timestamp", "kind"}
            ),
            recorded_at=event.timestamp,
        ))

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.warning(f"State listener {listener!r} failed: {e}")

    def _reject_transition(self, command: str, phase: GamePhase) -> TransitionResult:
        logger.warning(f"Invalid transition: {command}() in phase {phase.value}")
        return TransitionResult(
            accepted=False,
            phase=phase,
            reason=f"{command}() not allowed in phase {phase.value}",
        )

    def _reject_connection(self, source: str, target: str, reason: str) -> ConnectionResult:
        return ConnectionResult(
            outcome=ConnectionOutcome.REJECTED,
            source=source,
            target=target,
            score=self._state.score,
            reason=reason,
        )

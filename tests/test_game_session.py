"""
Unit tests for the game session state machine.
"""

import pytest

from connection_puzzle import EventPublisher, GameSession, GraphNode
from connection_puzzle.models import (
    ConnectionOutcome,
    EventKind,
    GamePhase,
    NodeInspected,
)


class TestTransitions:

    def test_starts_in_instructions(self, strict_model, clock):
        session = GameSession(strict_model, clock=clock)

        assert session.phase == GamePhase.INSTRUCTIONS
        assert session.state.started_at is None

    def test_start_records_timestamp(self, strict_model, clock):
        session = GameSession(strict_model, clock=clock)

        result = session.start()

        assert result.accepted
        assert result.phase == GamePhase.ACTIVE
        assert session.state.started_at == clock()

    def test_start_twice_is_rejected(self, session):
        result = session.start()

        assert not result.accepted
        assert result.phase == GamePhase.ACTIVE
        assert "start()" in result.reason

    def test_finish_before_start_is_rejected(self, strict_model, clock):
        session = GameSession(strict_model, clock=clock)

        result = session.finish()

        assert not result.accepted
        assert session.phase == GamePhase.INSTRUCTIONS

    def test_finish_completes_regardless_of_threshold(self, session, clock):
        session.attempt_connection("n1", "n2")
        clock.advance(30)

        result = session.finish()

        assert result.accepted
        assert session.phase == GamePhase.COMPLETED
        assert session.state.completed_at == clock()
        assert session.state.completion_score is not None

    def test_commands_rejected_before_start(self, strict_model, clock):
        session = GameSession(strict_model, clock=clock)

        assert session.attempt_connection("n1", "n2").outcome == ConnectionOutcome.REJECTED
        assert not session.inspect_node("n1").accepted
        assert session.state.events == []


class TestAttemptConnection:

    def test_correct_attempt(self, session):
        result = session.attempt_connection("n1", "n2")

        assert result.outcome == ConnectionOutcome.CORRECT
        assert result.score == 10
        assert result.score_delta == 10
        assert result.feedback == "Closure forces rerouting"
        assert not result.completed

    def test_wrong_attempt_carries_explanation(self, session):
        session.attempt_connection("n1", "n2")

        result = session.attempt_connection("n1", "n3")

        assert result.outcome == ConnectionOutcome.WRONG
        assert result.score == 5
        assert result.score_delta == -5
        assert result.feedback == "Skips the decision step"

    def test_neutral_attempt_recorded_without_score_change(self, session):
        result = session.attempt_connection("n3", "n1")

        assert result.outcome == ConnectionOutcome.NEUTRAL
        assert result.recorded
        assert session.score == 0
        assert session.state.neutral_count == 1

    def test_correct_edge_is_idempotent(self, session):
        session.attempt_connection("n1", "n2")
        events_before = len(session.state.events)

        result = session.attempt_connection("n1", "n2")

        assert result.outcome == ConnectionOutcome.ALREADY_SOLVED
        assert not result.recorded
        assert session.score == 10
        assert session.state.correct_count == 1
        assert len(session.state.events) == events_before

    def test_wrong_edge_is_penalized_every_time(self, session):
        session.attempt_connection("n1", "n2")
        session.inspect_node("n1")

        first = session.attempt_connection("n1", "n3")
        second = session.attempt_connection("n1", "n3")

        assert first.score_delta == -5
        assert second.score_delta == -5
        assert session.score == 0
        assert session.state.incorrect_count == 2

    def test_unknown_node_rejected_without_event(self, session):
        result = session.attempt_connection("n1", "nope")

        assert result.outcome == ConnectionOutcome.REJECTED
        assert "unknown node" in result.reason
        assert session.state.events == []

    def test_locked_node_rejected_without_event(self, make_model, clock):
        nodes = list(make_model().nodes) + [GraphNode(id="n4", unlocked=False)]
        session = GameSession(make_model(nodes=nodes), clock=clock)
        session.start()

        result = session.attempt_connection("n4", "n1")

        assert result.outcome == ConnectionOutcome.REJECTED
        assert "locked" in result.reason
        assert session.state.events == []

    def test_counts_always_match_attempts(self, session):
        for source, target in [("n1", "n3"), ("n3", "n1"), ("n1", "n2"), ("n3", "n2"), ("n1", "n3")]:
            session.attempt_connection(source, target)

        state = session.state
        attempts = [e for e in state.events if e.kind == EventKind.CONNECTION_ATTEMPTED.value]
        assert state.correct_count + state.incorrect_count + state.neutral_count == len(attempts)

    def test_score_equals_replay_of_log(self, session):
        for source, target in [("n1", "n3"), ("n1", "n2"), ("n1", "n3"), ("n3", "n1")]:
            session.attempt_connection(source, target)
        session.request_hint()

        assert session.score == session.scoring.replay(session.state.events)

    def test_sequences_and_timestamps_are_ordered(self, session, clock):
        session.attempt_connection("n1", "n3")
        clock.advance(5)
        session.inspect_node("n2")
        session.attempt_connection("n1", "n2")

        events = session.state.events
        assert [e.sequence for e in events] == list(range(len(events)))
        assert all(a.timestamp <= b.timestamp for a, b in zip(events, events[1:]))

    def test_clock_going_backwards_is_clamped(self, session, clock):
        clock.advance(10)
        session.attempt_connection("n1", "n3")
        clock.advance(-60)

        session.attempt_connection("n1", "n2")

        first, second = session.state.events
        assert second.timestamp == first.timestamp


class TestInspectNode:

    def test_marks_revealed_and_logs(self, session):
        result = session.inspect_node("n2")

        assert result.accepted
        assert session.state.revealed_node_ids == ["n2"]
        assert isinstance(session.state.events[0], NodeInspected)
        assert session.score == 0

    def test_repeat_inspection_logged_once_revealed(self, session):
        session.inspect_node("n2")
        session.inspect_node("n2")

        assert session.state.revealed_node_ids == ["n2"]
        assert session.state.tally.inspections == 2

    def test_does_not_mutate_content(self, session):
        session.inspect_node("n2")
        assert not session.game_model.get_node("n2").revealed

    def test_authored_revealed_nodes_start_revealed(self, make_model, clock):
        nodes = [GraphNode(id="n1", revealed=True), GraphNode(id="n2"), GraphNode(id="n3")]
        session = GameSession(make_model(nodes=nodes), clock=clock)

        assert session.state.revealed_node_ids == ["n1"]

    def test_unknown_node(self, session):
        result = session.inspect_node("ghost")

        assert not result.accepted
        assert session.state.events == []


class TestCompletion:

    def test_threshold_triggers_completion(self, game_model, clock):
        session = GameSession(game_model, clock=clock)
        session.start()

        result = session.attempt_connection("n1", "n2")

        assert result.completed
        assert session.phase == GamePhase.COMPLETED

    def test_completed_state_is_frozen(self, game_model, clock):
        session = GameSession(game_model, clock=clock)
        session.start()
        session.attempt_connection("n1", "n2")
        events = list(session.state.events)
        score = session.score

        session.attempt_connection("n2", "n3")
        session.inspect_node("n1")
        session.request_hint()

        assert session.state.events == events
        assert session.score == score

    def test_no_profile_before_completion(self, session):
        assert session.get_profile() is None
        assert session.report() is None

    def test_profile_is_stable(self, game_model, clock):
        session = GameSession(game_model, clock=clock)
        session.start()
        session.attempt_connection("n1", "n2")

        first = session.get_profile()
        second = session.get_profile()

        assert first is second
        assert first.completion_score == session.state.completion_score

    def test_completion_score_uses_elapsed_time(self, game_model, clock):
        fast = GameSession(game_model, clock=clock)
        fast.start()
        clock.advance(10)
        fast.attempt_connection("n1", "n2")

        slow = GameSession(game_model, clock=clock)
        slow.start()
        clock.advance(600)
        slow.attempt_connection("n1", "n2")

        assert fast.state.completion_score - slow.state.completion_score == 25

    def test_completion_is_monotone_under_more_correct_connections(self, make_model, clock):
        # Once the threshold is met, no extra event can un-complete the session
        session = GameSession(make_model(completion_threshold=0.5), clock=clock)
        session.start()
        session.attempt_connection("n1", "n3")
        session.attempt_connection("n1", "n2")
        assert session.phase == GamePhase.COMPLETED

        session.attempt_connection("n1", "n3")
        assert session.phase == GamePhase.COMPLETED


class TestReset:

    def test_reset_returns_previous_state_untouched(self, session):
        session.attempt_connection("n1", "n2")
        previous_events = list(session.state.events)

        previous = session.reset()

        assert previous.events == previous_events
        assert previous.phase == GamePhase.ACTIVE
        assert session.phase == GamePhase.INSTRUCTIONS
        assert session.state.events == []
        assert session.score == 0
        assert session.previous_attempts == [previous]

    def test_reset_from_completed(self, game_model, clock):
        session = GameSession(game_model, clock=clock)
        session.start()
        session.attempt_connection("n1", "n2")
        completed_id = session.state.session_id

        session.reset()
        assert session.start().accepted

        assert session.state.session_id != completed_id
        assert session.previous_attempts[0].phase == GamePhase.COMPLETED

    def test_reset_keeps_profile_of_completed_attempt(self, game_model, clock):
        session = GameSession(game_model, clock=clock)
        session.start()
        clock.advance(30)
        session.attempt_connection("n1", "n2")

        previous = session.reset()

        assert previous.phase == GamePhase.COMPLETED
        assert previous.profile is not None
        assert previous.profile.completion_score == previous.completion_score
        assert previous.profile.strategic_reasoning == pytest.approx(50.0)
        assert session.previous_attempts[0].profile is previous.profile

    def test_reset_of_unfinished_attempt_has_no_profile(self, session):
        session.attempt_connection("n1", "n2")

        previous = session.reset()

        assert previous.profile is None

    def test_reset_restores_hint_allowance(self, session):
        session.request_hint()
        session.reset()
        session.start()

        assert session.hints_remaining == 3


class TestSubscribers:

    def test_listener_sees_every_change(self, strict_model, clock):
        session = GameSession(strict_model, clock=clock)
        phases = []
        session.subscribe(lambda state: phases.append(state.phase))

        session.start()
        session.attempt_connection("n1", "n2")
        session.finish()

        assert phases == [GamePhase.ACTIVE, GamePhase.ACTIVE, GamePhase.COMPLETED]

    def test_rejected_commands_do_not_notify(self, strict_model, clock):
        session = GameSession(strict_model, clock=clock)
        calls = []
        session.subscribe(calls.append)

        session.finish()
        session.attempt_connection("n1", "n2")

        assert calls == []

    def test_failing_listener_does_not_break_engine(self, session):
        def broken(state):
            raise RuntimeError("render failed")

        seen = []
        session.subscribe(broken)
        session.subscribe(seen.append)

        result = session.attempt_connection("n1", "n2")

        assert result.outcome == ConnectionOutcome.CORRECT
        assert len(seen) == 1

    def test_unsubscribe(self, session):
        calls = []
        unsubscribe = session.subscribe(calls.append)
        unsubscribe()

        session.attempt_connection("n1", "n2")

        assert calls == []


class TestPublishing:

    def test_events_and_analytics_are_published(self, game_model, clock, adapter, publisher):
        session = GameSession(game_model, clock=clock, publisher=publisher, learner_id="learner-7")
        session.start()
        session.inspect_node("n1")
        session.attempt_connection("n1", "n2")

        assert publisher.drain(timeout=5)

        assert [r.sequence for r in adapter.interactions] == [0, 1]
        assert adapter.interactions[0].interaction_type == EventKind.NODE_INSPECTED
        assert adapter.interactions[1].interaction_data == {
            "source": "n1", "target": "n2", "classification": "correct",
        }
        assert adapter.interactions[1].learner_id == "learner-7"

        (record,) = adapter.analytics
        assert record.session_id == session.state.session_id
        assert record.correct_connections == 1
        assert record.total_interactions == 2
        assert record.completion_score == session.state.completion_score
        assert [step["kind"] for step in record.decision_path] == [
            "node_inspected", "connection_attempted",
        ]

    def test_rejected_attempts_are_not_published(self, strict_model, clock, adapter, publisher):
        session = GameSession(strict_model, clock=clock, publisher=publisher)
        session.start()
        session.attempt_connection("n1", "ghost")
        session.attempt_connection("n1", "n2")
        session.attempt_connection("n1", "n2")

        assert publisher.drain(timeout=5)
        assert [r.interaction_data["target"] for r in adapter.interactions] == ["n2"]

    def test_failing_adapter_never_affects_session(self, strict_model, clock):
        class BrokenAdapter:
            async def record_interaction(self, record):
                raise ConnectionError("database unreachable")

            async def record_analytics(self, record):
                raise ConnectionError("database unreachable")

        publisher = EventPublisher(BrokenAdapter())
        session = GameSession(strict_model, clock=clock, publisher=publisher)
        session.start()

        session.attempt_connection("n1", "n2")
        session.attempt_connection("n2", "n3")
        publisher.close(timeout=5)

        assert session.phase == GamePhase.COMPLETED
        assert session.state.correct_count == 2
        assert publisher.failures == 3


@pytest.mark.parametrize("script", [
    [("n1", "n3"), ("n1", "n3"), ("n3", "n1")],
    [("n3", "n2"), ("n1", "n2"), ("n1", "n2")],
    [("n1", "n2"), ("n1", "n3"), ("n2", "n3")],
])
def test_tally_invariant_holds_for_any_script(strict_model, clock, script):
    session = GameSession(strict_model, clock=clock)
    session.start()

    for source, target in script:
        session.attempt_connection(source, target)
        session.request_hint()

    state = session.state
    recorded = sum(1 for e in state.events if e.kind == "connection_attempted")
    assert state.correct_count + state.incorrect_count + state.neutral_count == recorded

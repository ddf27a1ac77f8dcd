"""
Unit tests for game content and session models.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from connection_puzzle import (
    GameModel,
    GraphNode,
    MalformedContentError,
    ScoringMode,
    ScoringWeights,
    SolutionEntry,
    WrongConnection,
    load_game_model,
)
from connection_puzzle.models import (
    Classification,
    ConnectionAttempted,
    GameSessionState,
    HintUsed,
    LogTally,
    NodeInspected,
    NodeType,
)


T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def authored_payload():
    """Payload as emitted by the authoring service."""
    return {
        "gameId": "g-1",
        "name": "Incident Response",
        "nodes": [
            {"id": "a", "type": "custom", "data": {"label": "Alert fires", "nodeType": "scenario"}},
            {"id": "b", "data": {"label": "Page on-call", "nodeType": "decision", "points": 5}},
            {"id": "c", "data": {"label": "Outage contained", "nodeType": "outcome"}},
        ],
        "instructorSolution": [
            {"source": "a", "target": "b", "relationship": "Alerts trigger paging", "pointValue": 12},
            {"source": "b", "target": "c"},
        ],
        "wrongConnections": [
            {"source": "a", "target": "c", "why_wrong": "Nobody acted yet", "penalty": -7},
        ],
        "hints": ["Who reacts to an alert?"],
        "completionThreshold": 0.5,
        "scoringWeights": {"mode": "weighted", "hintPenalty": 2},
    }


class TestLoadGameModel:
    """Loading and normalizing authored content."""

    def test_loads_camel_case_payload(self):
        model = load_game_model(authored_payload())

        assert model.id == "g-1"
        assert model.title == "Incident Response"
        assert [node.id for node in model.nodes] == ["a", "b", "c"]
        assert model.completion_threshold == 0.5
        assert model.hints == ("Who reacts to an alert?",)

    def test_flattens_flow_node_records(self):
        model = load_game_model(authored_payload())

        node = model.get_node("b")
        assert node.label == "Page on-call"
        assert node.node_type == NodeType.DECISION
        assert node.points == 5
        assert node.unlocked is True
        assert node.revealed is False

    def test_solution_aliases(self):
        model = load_game_model(authored_payload())

        first, second = model.solution
        assert first.points == 12
        assert first.rationale == "Alerts trigger paging"
        assert second.points == 10
        assert second.rationale is None

    def test_negative_penalty_read_as_magnitude(self):
        model = load_game_model(authored_payload())

        wrong = model.wrong_connections[0]
        assert wrong.penalty == 7
        assert wrong.explanation == "Nobody acted yet"

    def test_scoring_weights_from_camel_case(self):
        model = load_game_model(authored_payload())

        assert model.scoring_weights.mode == ScoringMode.WEIGHTED
        assert model.scoring_weights.hint_penalty == 2
        assert model.scoring_weights.correct_points == 10

    def test_existing_model_passes_through(self, game_model):
        assert load_game_model(game_model) is game_model

    def test_dangling_solution_reference_is_fatal(self):
        payload = authored_payload()
        payload["instructorSolution"].append({"source": "b", "target": "zz"})

        with pytest.raises(MalformedContentError) as exc_info:
            load_game_model(payload)

        assert any("zz" in problem for problem in exc_info.value.problems)

    def test_dangling_catalog_reference_is_fatal(self):
        payload = authored_payload()
        payload["wrongConnections"].append({"source": "ghost", "target": "a"})

        with pytest.raises(MalformedContentError):
            load_game_model(payload)

    def test_duplicate_solution_pair_is_fatal(self):
        payload = authored_payload()
        payload["instructorSolution"].append({"source": "a", "target": "b"})

        with pytest.raises(MalformedContentError) as exc_info:
            load_game_model(payload)

        assert any("Duplicate solution edge" in p for p in exc_info.value.problems)

    def test_duplicate_node_id_is_fatal(self):
        payload = authored_payload()
        payload["nodes"].append({"id": "a", "data": {"label": "Again"}})

        with pytest.raises(MalformedContentError):
            load_game_model(payload)

    def test_wrong_field_types_are_reported_as_malformed(self):
        payload = authored_payload()
        payload["nodes"] = "not a list"

        with pytest.raises(MalformedContentError) as exc_info:
            load_game_model(payload)

        assert exc_info.value.problems

    def test_threshold_out_of_range_is_malformed(self):
        payload = authored_payload()
        payload["completionThreshold"] = 1.5

        with pytest.raises(MalformedContentError):
            load_game_model(payload)

    def test_reversed_pair_is_not_a_duplicate(self):
        model = GameModel(
            nodes=[GraphNode(id="x"), GraphNode(id="y")],
            solution=[
                SolutionEntry(source="x", target="y"),
                SolutionEntry(source="y", target="x"),
            ],
        )
        assert len(model.solution) == 2


class TestContentImmutability:
    """Loaded content never changes."""

    def test_nodes_are_frozen(self, game_model):
        with pytest.raises(ValidationError):
            game_model.nodes[0].revealed = True

    def test_model_is_frozen(self, game_model):
        with pytest.raises(ValidationError):
            game_model.title = "Changed"


class TestScoringWeights:

    def test_defaults(self):
        weights = ScoringWeights()

        assert weights.mode == ScoringMode.FLAT
        assert (weights.correct_points, weights.wrong_penalty, weights.hint_penalty) == (10, 5, 3)
        assert weights.time_bonus_threshold_seconds == 300

    def test_snake_case_construction(self):
        weights = ScoringWeights(correct_points=7, wrong_penalty=2)
        assert weights.correct_points == 7
        assert weights.wrong_penalty == 2


class TestEvents:

    def test_discriminated_union_round_trips_through_state(self):
        state = GameSessionState()
        state.append_event(ConnectionAttempted(
            sequence=0, timestamp=T0, source="n1", target="n2",
            classification=Classification.CORRECT,
        ))
        state.append_event(HintUsed(sequence=1, timestamp=T0, hint_index=0))

        restored = GameSessionState.model_validate_json(state.model_dump_json())

        assert isinstance(restored.events[0], ConnectionAttempted)
        assert isinstance(restored.events[1], HintUsed)
        assert restored.tally == state.tally

    def test_events_are_frozen(self):
        event = NodeInspected(sequence=0, timestamp=T0, node_id="n1")
        with pytest.raises(ValidationError):
            event.node_id = "n2"


class TestGameSessionState:

    def setup_method(self):
        self.state = GameSessionState(game_id="g")

    def _attempt(self, sequence, classification, when=T0):
        return ConnectionAttempted(
            sequence=sequence, timestamp=when, source="a", target="b",
            classification=classification,
        )

    def test_tally_is_recomputed_from_log(self):
        self.state.append_event(self._attempt(0, Classification.CORRECT))
        self.state.append_event(self._attempt(1, Classification.WRONG))
        self.state.append_event(self._attempt(2, Classification.NEUTRAL))
        self.state.append_event(NodeInspected(sequence=3, timestamp=T0, node_id="a"))

        assert self.state.tally == LogTally(correct=1, incorrect=1, neutral=1, inspections=1)
        assert self.state.tally.attempts == 3

    def test_rejects_out_of_order_sequence(self):
        with pytest.raises(ValueError):
            self.state.append_event(self._attempt(5, Classification.CORRECT))

    def test_rejects_decreasing_timestamp(self):
        self.state.append_event(self._attempt(0, Classification.CORRECT, T0 + timedelta(seconds=5)))

        with pytest.raises(ValueError):
            self.state.append_event(self._attempt(1, Classification.CORRECT, T0))

    def test_equal_timestamps_are_ordered_by_sequence(self):
        self.state.append_event(self._attempt(0, Classification.WRONG))
        self.state.append_event(self._attempt(1, Classification.CORRECT))

        assert [event.sequence for event in self.state.events] == [0, 1]

    def test_elapsed_seconds(self):
        self.state.started_at = T0
        assert self.state.elapsed_seconds(T0 + timedelta(seconds=90)) == 90.0
        assert GameSessionState().elapsed_seconds(T0) == 0.0

"""
Graph content models for one puzzle instance.

These models are read-only once loaded: the node set, the instructor's
reference solution and the catalog of known wrong connections. They
accept both the snake_case field names and the camelCase keys emitted by
the content authoring service (including ReactFlow style node records).
"""

import logging
from enum import Enum
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..exceptions import MalformedContentError


logger = logging.getLogger(__name__)


class NodeType(str, Enum):
    """Classification tag of a concept node."""
    SCENARIO = "scenario"
    DECISION = "decision"
    OUTCOME = "outcome"
    INFORMATION = "information"


class ScoringMode(str, Enum):
    """How a correct connection is rewarded."""
    FLAT = "flat"          # every correct edge earns correct_points
    WEIGHTED = "weighted"  # each solution entry carries its own points


class GraphNode(BaseModel):
    """
    A concept node the learner can inspect and connect.

    `revealed` and `unlocked` are the authored initial values; the
    session tracks revealed nodes itself and never mutates the model.
    """

    id: str = Field(..., min_length=1)
    label: str = ""
    node_type: Optional[NodeType] = Field(
        None, validation_alias=AliasChoices("node_type", "nodeType")
    )
    revealed: bool = False
    unlocked: bool = True
    points: int = 0

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _flatten_flow_record(cls, data: Any) -> Any:
        # Flow canvas records keep the payload under "data"
        if isinstance(data, Mapping) and isinstance(data.get("data"), Mapping):
            merged = {key: value for key, value in data.items() if key != "data"}
            for key, value in data["data"].items():
                merged.setdefault(key, value)
            return merged
        return data


class GraphEdge(BaseModel):
    """A directed connection drawn by the learner."""

    source: str
    target: str

    model_config = ConfigDict(frozen=True)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.source, self.target)


class SolutionEntry(BaseModel):
    """One required edge of the instructor's reference graph."""

    source: str
    target: str
    points: int = Field(
        10, ge=0, validation_alias=AliasChoices("points", "pointValue", "point_value")
    )
    rationale: Optional[str] = Field(
        None, validation_alias=AliasChoices("rationale", "relationship")
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.source, self.target)


class WrongConnection(BaseModel):
    """A known incorrect edge with pedagogical feedback."""

    source: str
    target: str
    explanation: Optional[str] = Field(
        None, validation_alias=AliasChoices("explanation", "why_wrong", "whyWrong")
    )
    penalty: int = 5

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("penalty", mode="before")
    @classmethod
    def _penalty_magnitude(cls, value: Any) -> Any:
        """Authored catalogs write penalties as negative numbers."""
        if isinstance(value, (int, float)):
            return abs(int(value))
        return value

    @property
    def pair(self) -> tuple[str, str]:
        return (self.source, self.target)


class ScoringWeights(BaseModel):
    """
    Named scoring constants.

    Running score:
        correct   +correct_points (flat) or +entry.points (weighted)
        wrong     -wrong_penalty (flat) or -catalog penalty (weighted)
        hint      -hint_penalty

    Completion score (0-100):
        accuracy_weight * accuracy
        + time_bonus_points if elapsed < time_bonus_threshold_seconds
        + no_hint_bonus / one_hint_bonus
        + required_ratio_weight * (correct / required)
    """

    mode: ScoringMode = ScoringMode.FLAT
    correct_points: int = Field(10, ge=0)
    wrong_penalty: int = Field(5, ge=0)
    hint_penalty: int = Field(3, ge=0)

    accuracy_weight: float = Field(25.0, ge=0.0)
    time_bonus_points: float = Field(25.0, ge=0.0)
    time_bonus_threshold_seconds: float = Field(300.0, ge=0.0)
    no_hint_bonus: float = Field(20.0, ge=0.0)
    one_hint_bonus: float = Field(10.0, ge=0.0)
    required_ratio_weight: float = Field(30.0, ge=0.0)

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class GameModel(BaseModel):
    """
    The static content of one game instance.

    Validated on construction: every solution and catalog edge must
    reference known node ids, node ids must be unique and the solution
    may not list the same (source, target) pair twice.
    """

    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "gameId", "game_id"))
    title: str = Field("", validation_alias=AliasChoices("title", "name"))
    nodes: tuple[GraphNode, ...] = ()
    solution: tuple[SolutionEntry, ...] = Field(
        (), validation_alias=AliasChoices("solution", "instructorSolution", "instructor_solution")
    )
    wrong_connections: tuple[WrongConnection, ...] = Field(
        (), validation_alias=AliasChoices("wrong_connections", "wrongConnections")
    )
    hints: tuple[str, ...] = ()
    completion_threshold: Optional[float] = Field(
        None, gt=0.0, le=1.0,
        validation_alias=AliasChoices("completion_threshold", "completionThreshold"),
    )
    scoring_weights: Optional[ScoringWeights] = Field(
        None, validation_alias=AliasChoices("scoring_weights", "scoringWeights")
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_validator(mode="after")
    def _check_references(self) -> "GameModel":
        problems: list[str] = []

        seen_nodes: set[str] = set()
        for node in self.nodes:
            if node.id in seen_nodes:
                problems.append(f"Duplicate node id: {node.id}")
            seen_nodes.add(node.id)

        seen_pairs: set[tuple[str, str]] = set()
        for entry in self.solution:
            for node_id in entry.pair:
                if node_id not in seen_nodes:
                    problems.append(
                        f"Solution edge {entry.source} -> {entry.target} "
                        f"references unknown node: {node_id}"
                    )
            if entry.pair in seen_pairs:
                problems.append(f"Duplicate solution edge: {entry.source} -> {entry.target}")
            seen_pairs.add(entry.pair)

        for wrong in self.wrong_connections:
            for node_id in wrong.pair:
                if node_id not in seen_nodes:
                    problems.append(
                        f"Wrong connection {wrong.source} -> {wrong.target} "
                        f"references unknown node: {node_id}"
                    )
            if wrong.pair in seen_pairs:
                # Solution wins during evaluation
                logger.debug(f"Wrong connection shadowed by solution: {wrong.source} -> {wrong.target}")

        if problems:
            raise MalformedContentError(
                f"Game model {self.id or self.title!r} is malformed: {len(problems)} problem(s)",
                problems=problems,
            )
        return self

    @property
    def node_ids(self) -> frozenset[str]:
        return frozenset(node.id for node in self.nodes)

    def get_node(self, node_id: str) -> GraphNode | None:
        """Get a node by id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


def load_game_model(payload: Mapping[str, Any] | GameModel) -> GameModel:
    """
    Load and validate a game model from the authoring service payload.

    Raises:
        MalformedContentError: if the payload has dangling references,
            duplicate solution edges or fields of the wrong type.
    """
    if isinstance(payload, GameModel):
        return payload
    try:
        model = GameModel.model_validate(payload)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise MalformedContentError(
            f"Game model payload failed validation: {len(problems)} problem(s)",
            problems=problems,
        ) from exc

    logger.info(
        f"Loaded game model {model.id or model.title!r}: {len(model.nodes)} nodes, "
        f"{len(model.solution)} solution edges, {len(model.wrong_connections)} wrong connections"
    )
    return model

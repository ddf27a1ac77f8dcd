"""
Post-game analytics.

Transforms a completed session's interaction log into five normalized
critical-thinking metrics. Everything here is a deterministic function
of (events, solution, wrong catalog, elapsed seconds): classifications
are re-derived from the content rather than trusted from the log, and
there is no randomness.

Metrics:
- Pattern Recognition: share of judged attempts that were correct
- Strategic Reasoning: share of required connections made
- Metacognition: penalized by hint reliance and wrong attempts
- Cognitive Efficiency: correct connections per minute vs. a target rate
- Error Recovery: wrong attempts immediately followed by a correct one
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..models import (
    Classification,
    ConnectionAttempted,
    HintUsed,
    InteractionEvent,
    OverallLabel,
    PerformanceProfile,
    SkillMetric,
    SolutionEntry,
    WrongConnection,
)
from .evaluator import evaluate


logger = logging.getLogger(__name__)

DEFAULT_TARGET_RATE = 2.0  # correct connections per minute

HINT_IMPACT_CAP = 60.0
HINT_IMPACT_PER_HINT_WITHOUT_SOLUTION = 15.0
ERROR_IMPACT_WEIGHT = 40.0

EXCELLENT_MEAN = 80.0
GOOD_MEAN = 60.0


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))


@dataclass(frozen=True)
class AttemptSummary:
    """Counts the metrics are computed from."""
    correct: int
    incorrect: int
    neutral: int
    hints: int
    recovered: int  # wrong attempts whose next event is a correct attempt

    @property
    def attempts(self) -> int:
        return self.correct + self.incorrect + self.neutral


def summarize(
    events: Sequence[InteractionEvent],
    solution: Iterable[SolutionEntry],
    wrong_catalog: Iterable[WrongConnection],
) -> AttemptSummary:
    """Classify every attempt against the content and count outcomes."""
    solution = list(solution)
    wrong_catalog = list(wrong_catalog)

    classes: list[Classification | None] = []
    for event in events:
        if isinstance(event, ConnectionAttempted):
            classes.append(evaluate(event.source, event.target, solution, wrong_catalog))
        else:
            classes.append(None)

    correct = sum(1 for c in classes if c == Classification.CORRECT)
    incorrect = sum(1 for c in classes if c == Classification.WRONG)
    neutral = sum(1 for c in classes if c == Classification.NEUTRAL)
    hints = sum(1 for event in events if isinstance(event, HintUsed))

    recovered = 0
    for index, classification in enumerate(classes[:-1]):
        if classification == Classification.WRONG and classes[index + 1] == Classification.CORRECT:
            recovered += 1

    return AttemptSummary(
        correct=correct,
        incorrect=incorrect,
        neutral=neutral,
        hints=hints,
        recovered=recovered,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Individual metrics
# ─────────────────────────────────────────────────────────────────────────────

def pattern_recognition(summary: AttemptSummary) -> float:
    judged = summary.correct + summary.incorrect
    if judged == 0:
        return 0.0
    return _clamp(summary.correct / judged * 100.0)


def strategic_reasoning(summary: AttemptSummary, solution_size: int) -> float:
    if solution_size <= 0:
        return pattern_recognition(summary)
    return _clamp(summary.correct / solution_size * 100.0)


def metacognition(summary: AttemptSummary, solution_size: int) -> float:
    """100 minus capped hint impact minus error impact."""
    if solution_size > 0:
        hint_impact = min(HINT_IMPACT_CAP, summary.hints / solution_size * HINT_IMPACT_CAP)
    else:
        hint_impact = min(HINT_IMPACT_CAP, summary.hints * HINT_IMPACT_PER_HINT_WITHOUT_SOLUTION)

    if summary.attempts > 0:
        error_impact = summary.incorrect / summary.attempts * ERROR_IMPACT_WEIGHT
    else:
        error_impact = 0.0

    return _clamp(100.0 - hint_impact - error_impact)


def cognitive_efficiency(
    summary: AttemptSummary,
    elapsed_seconds: float,
    target_rate: float = DEFAULT_TARGET_RATE,
) -> float:
    elapsed_minutes = max(1.0 / 60.0, elapsed_seconds / 60.0)
    rate = summary.correct / elapsed_minutes
    return _clamp(min(100.0, rate / target_rate * 100.0))


def error_recovery(summary: AttemptSummary) -> float:
    if summary.incorrect == 0:
        return 100.0 if summary.correct > 0 else 0.0
    return _clamp(summary.recovered / summary.incorrect * 100.0)


def overall_label(mean: float) -> OverallLabel:
    if mean >= EXCELLENT_MEAN:
        return OverallLabel.EXCELLENT
    if mean >= GOOD_MEAN:
        return OverallLabel.GOOD
    return OverallLabel.DEVELOPING


# ─────────────────────────────────────────────────────────────────────────────
# Aggregator
# ─────────────────────────────────────────────────────────────────────────────

class AnalyticsAggregator:
    """Builds the PerformanceProfile for a finished session."""

    def __init__(self, target_rate: float = DEFAULT_TARGET_RATE) -> None:
        if target_rate <= 0:
            raise ValueError("target_rate must be positive")
        self._target_rate = target_rate

    @property
    def target_rate(self) -> float:
        return self._target_rate

    def aggregate(
        self,
        events: Sequence[InteractionEvent],
        solution: Iterable[SolutionEntry],
        wrong_catalog: Iterable[WrongConnection],
        elapsed_seconds: float,
        completion_score: int = 0,
    ) -> PerformanceProfile:
        """
        Compute the profile.

        Args:
            events: The full, ordered interaction log
            solution: Required solution edges
            wrong_catalog: Known wrong connections
            elapsed_seconds: Time between start and completion
            completion_score: Score from the scoring engine, carried through

        Returns:
            Frozen PerformanceProfile
        """
        solution = list(solution)
        summary = summarize(events, solution, wrong_catalog)
        size = len(solution)

        metrics = {
            SkillMetric.PATTERN_RECOGNITION: pattern_recognition(summary),
            SkillMetric.STRATEGIC_REASONING: strategic_reasoning(summary, size),
            SkillMetric.METACOGNITION: metacognition(summary, size),
            SkillMetric.COGNITIVE_EFFICIENCY: cognitive_efficiency(
                summary, elapsed_seconds, self._target_rate
            ),
            SkillMetric.ERROR_RECOVERY: error_recovery(summary),
        }

        # max/min keep the first of equal values, i.e. canonical order
        top_skill = max(metrics, key=lambda metric: metrics[metric])
        focus_area = min(metrics, key=lambda metric: metrics[metric])
        mean = sum(metrics.values()) / len(metrics)

        logger.info(
            f"Profile computed: mean={mean:.1f}, top={top_skill.value}, focus={focus_area.value}"
        )

        return PerformanceProfile(
            pattern_recognition=metrics[SkillMetric.PATTERN_RECOGNITION],
            strategic_reasoning=metrics[SkillMetric.STRATEGIC_REASONING],
            metacognition=metrics[SkillMetric.METACOGNITION],
            cognitive_efficiency=metrics[SkillMetric.COGNITIVE_EFFICIENCY],
            error_recovery=metrics[SkillMetric.ERROR_RECOVERY],
            completion_score=max(0, min(100, completion_score)),
            top_skill=top_skill,
            focus_area=focus_area,
            overall_label=overall_label(mean),
        )

"""
Performance profile produced once a session completes.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SkillMetric(str, Enum):
    """The five critical-thinking dimensions, in canonical order."""
    PATTERN_RECOGNITION = "Pattern Recognition"
    STRATEGIC_REASONING = "Strategic Reasoning"
    METACOGNITION = "Metacognition"
    COGNITIVE_EFFICIENCY = "Cognitive Efficiency"
    ERROR_RECOVERY = "Error Recovery"


class OverallLabel(str, Enum):
    """Coarse banding of the metric mean."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    DEVELOPING = "Developing"


class PerformanceProfile(BaseModel):
    """
    Five-metric critical-thinking scorecard.

    Every metric is a float in [0, 100]. Created once at completion and
    immutable thereafter.
    """

    pattern_recognition: float = Field(..., ge=0.0, le=100.0)
    strategic_reasoning: float = Field(..., ge=0.0, le=100.0)
    metacognition: float = Field(..., ge=0.0, le=100.0)
    cognitive_efficiency: float = Field(..., ge=0.0, le=100.0)
    error_recovery: float = Field(..., ge=0.0, le=100.0)

    completion_score: int = Field(0, ge=0, le=100)
    top_skill: SkillMetric
    focus_area: SkillMetric
    overall_label: OverallLabel

    model_config = ConfigDict(frozen=True)

    @property
    def metrics(self) -> dict[SkillMetric, float]:
        """Metric values keyed by dimension, in canonical order."""
        return {
            SkillMetric.PATTERN_RECOGNITION: self.pattern_recognition,
            SkillMetric.STRATEGIC_REASONING: self.strategic_reasoning,
            SkillMetric.METACOGNITION: self.metacognition,
            SkillMetric.COGNITIVE_EFFICIENCY: self.cognitive_efficiency,
            SkillMetric.ERROR_RECOVERY: self.error_recovery,
        }

    @property
    def mean(self) -> float:
        values = list(self.metrics.values())
        return sum(values) / len(values)

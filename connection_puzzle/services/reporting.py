"""
Report and lead-capture payloads.

Derives the raw counters, qualitative labels and insights that the
report screen shows next to the performance profile, and the payload
handed to the external email/report pipeline. No presentation
formatting happens here.
"""

import logging
from typing import Any

from ..models import (
    GameModel,
    GameSessionState,
    LeadPayload,
    SessionReport,
)


logger = logging.getLogger(__name__)

FAST_SESSION_SECONDS = 300
SLOW_SESSION_SECONDS = 900


def reasoning_style(accuracy_rate: float, hints_used: int, correct: int, incorrect: int) -> str:
    """Coarse label for how the learner approached the graph."""
    if hints_used == 0 and accuracy_rate > 80:
        return "Independent Analyzer"
    if hints_used > 0 and accuracy_rate > 70:
        return "Strategic Learner"
    if incorrect > correct:
        return "Experimental Explorer"
    return "Methodical Builder"


def processing_style(accuracy_rate: float, seconds_per_connection: float) -> str:
    """Coarse label for the speed/accuracy balance."""
    if seconds_per_connection < 15 and accuracy_rate > 75:
        return "Rapid Pattern Recognition"
    if seconds_per_connection < 30 and accuracy_rate > 60:
        return "Balanced Processing"
    if seconds_per_connection > 45:
        return "Deliberate Analysis"
    return "Developing Patterns"


def session_insights(accuracy_rate: float, hints_used: int, elapsed_seconds: float) -> list[str]:
    insights = []

    if accuracy_rate >= 80:
        insights.append("Excellent decision accuracy! You demonstrate strong analytical thinking.")
    elif accuracy_rate >= 60:
        insights.append("Good decision making with room for improvement in pattern recognition.")
    else:
        insights.append("Focus on understanding relationships between system components.")

    if hints_used == 0:
        insights.append("Outstanding! You solved this entirely through independent reasoning.")
    elif hints_used <= 1:
        insights.append("Great self-reliance with minimal external guidance needed.")

    if elapsed_seconds < FAST_SESSION_SECONDS:
        insights.append("Impressive speed! You quickly identified key connections.")
    elif elapsed_seconds > SLOW_SESSION_SECONDS:
        insights.append("Take time to understand, but consider practicing pattern recognition.")

    return insights


def build_session_report(state: GameSessionState) -> SessionReport:
    """
    Build the report for a completed session.

    Raises:
        ValueError: if the session has no profile yet
    """
    if state.profile is None:
        raise ValueError(f"Session {state.session_id} has no profile; complete it first")

    tally = state.tally
    elapsed = state.elapsed_seconds()
    judged = tally.correct + tally.incorrect
    accuracy_rate = tally.correct / judged * 100.0 if judged > 0 else 0.0
    per_minute = round(tally.correct / (elapsed / 60.0), 1) if elapsed > 0 else 0.0
    seconds_per_connection = elapsed / tally.correct if tally.correct > 0 else 0.0

    return SessionReport(
        session_id=state.session_id,
        game_id=state.game_id,
        profile=state.profile,
        correct_connections=tally.correct,
        incorrect_connections=tally.incorrect,
        neutral_connections=tally.neutral,
        hints_used=tally.hints,
        total_interactions=len(state.events),
        elapsed_seconds=int(elapsed),
        completion_score=state.completion_score or 0,
        accuracy_rate=accuracy_rate,
        connections_per_minute=per_minute,
        reasoning_style=reasoning_style(accuracy_rate, tally.hints, tally.correct, tally.incorrect),
        processing_style=processing_style(accuracy_rate, seconds_per_connection),
        insights=session_insights(accuracy_rate, tally.hints, elapsed),
    )


def build_lead_payload(
    report: SessionReport,
    name: str,
    email: str,
    game_model: GameModel | None = None,
) -> LeadPayload:
    """
    Payload for the lead-capture pipeline, keyed by learner identity.

    The game id comes from the report; `game_model` only supplies the
    title shown in the outgoing message.

    Raises:
        pydantic.ValidationError: if name or email is missing or malformed
    """
    analytics: dict[str, Any] = {
        "correct_connections": report.correct_connections,
        "incorrect_connections": report.incorrect_connections,
        "hints_used": report.hints_used,
        "total_interactions": report.total_interactions,
        "accuracy_rate": report.accuracy_rate,
        "connections_per_minute": report.connections_per_minute,
        "reasoning_style": report.reasoning_style,
        "processing_style": report.processing_style,
        "insights": list(report.insights),
    }
    payload = LeadPayload(
        name=name,
        email=email,
        game_id=report.game_id,
        game_title=game_model.title if game_model else "",
        completion_score=report.completion_score,
        elapsed_seconds=report.elapsed_seconds,
        overall_label=report.profile.overall_label.value,
        profile=report.profile,
        analytics=analytics,
    )
    logger.info(f"Lead payload built for session {report.session_id}")
    return payload

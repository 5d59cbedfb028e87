"""Weighted completeness scoring and the finish policy for adaptive sessions.

Every function here is pure: the same context always yields the same score,
gap list and decision. Thresholds come from ``config.settings`` so they can be
tuned without touching the scoring rules.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Sequence, Tuple

from config.settings import settings

from .fields import has_field
from .models import CompletionMetrics, ConversationContext, FinishDecision, RecommendedAction

ESSENTIAL_FIELDS: Tuple[str, ...] = (
    "companyInfo.name",
    "companyInfo.industry",
    "currentState.painPoints",
    "goals.primaryGoals",
    "goals.budgetRange",
)
IMPORTANT_FIELDS: Tuple[str, ...] = (
    "companyInfo.size",
    "companyInfo.stage",
    "currentState.devTeamSize",
    "goals.timeline",
    "goals.successMetrics",
    "contactInfo.email",
)
OPTIONAL_FIELDS: Tuple[str, ...] = (
    "companyInfo.revenue",
    "currentState.bugRate",
    "currentState.avgCycleTime",
    "currentState.deployFrequency",
    "currentState.cicdMaturity",
    "currentState.aiTools",
    "goals.externalPressure",
    "goals.decisionAuthority",
)
TIER_WEIGHTS = {"essential": 0.5, "important": 0.3, "optional": 0.2}


def _present(record: Mapping[str, Any], fields: Sequence[str]) -> List[str]:
    return [path for path in fields if has_field(record, path)]


def _missing(record: Mapping[str, Any], fields: Sequence[str]) -> List[str]:
    return [path for path in fields if not has_field(record, path)]


def calculate_completion(
    record: Mapping[str, Any],
    topics: Iterable[str] = (),
    metrics: Iterable[str] = (),
) -> CompletionMetrics:
    """Score the structured record and list missing essential/important fields."""

    essential = _present(record, ESSENTIAL_FIELDS)
    important = _present(record, IMPORTANT_FIELDS)
    optional = _present(record, OPTIONAL_FIELDS)
    raw = (
        len(essential) / len(ESSENTIAL_FIELDS) * 100 * TIER_WEIGHTS["essential"]
        + len(important) / len(IMPORTANT_FIELDS) * 100 * TIER_WEIGHTS["important"]
        + len(optional) / len(OPTIONAL_FIELDS) * 100 * TIER_WEIGHTS["optional"]
    )
    score = max(0, min(100, int(round(raw))))
    return CompletionMetrics(
        completeness_score=score,
        essential_fields_collected=len(essential),
        total_fields_collected=len(essential) + len(important) + len(optional),
        topics_covered=list(topics),
        metrics_collected=list(metrics),
        gaps_identified=_missing(record, ESSENTIAL_FIELDS) + _missing(record, IMPORTANT_FIELDS),
    )


def completion_for(context: ConversationContext) -> CompletionMetrics:  # Recompute from the context's record
    return calculate_completion(context.assessment_data, context.topics_covered, context.metrics_collected)


def missing_essentials(context: ConversationContext) -> List[str]:
    return _missing(context.assessment_data, ESSENTIAL_FIELDS)


def can_finish(context: ConversationContext) -> FinishDecision:
    """Decide whether the session may end."""

    completion = completion_for(context)
    score = completion.completeness_score
    asked = len(context.questions_asked)
    essentials_done = not missing_essentials(context)

    if asked >= settings.MAX_QUESTIONS:
        recommendation = None
        if score < settings.LOW_COMPLETENESS_SCORE:
            recommendation = "Consider addressing gaps in follow-up conversation"
        return FinishDecision(
            can_finish=True,
            reason=f"Maximum questions reached ({settings.MAX_QUESTIONS})",
            recommendation=recommendation,
        )
    if score >= settings.COMPLETENESS_FINISH_SCORE and asked >= settings.MIN_QUESTIONS_FOR_SCORE_FINISH:
        return FinishDecision(
            can_finish=True,
            reason=f"High completeness ({score}%) with sufficient questions ({asked})",
        )
    if essentials_done and asked >= settings.MIN_QUESTIONS_ALL_ESSENTIAL:
        return FinishDecision(
            can_finish=True,
            reason=(
                "All essential fields collected with sufficient questions "
                f"({settings.MIN_QUESTIONS_ALL_ESSENTIAL}+)"
            ),
        )

    if asked < settings.MIN_QUESTIONS_FOR_SCORE_FINISH:
        recommendation = "Continue asking essential questions"
    elif score < settings.LOW_COMPLETENESS_SCORE:
        recommendation = "Address gaps: " + ", ".join(completion.gaps_identified[:3])
    else:
        recommendation = f"Ask 1-2 more questions to reach {settings.COMPLETENESS_FINISH_SCORE}% threshold"
    return FinishDecision(
        can_finish=False,
        reason=f"Completeness {score}% after {asked} questions",
        recommendation=recommendation,
    )


def recommended_action(context: ConversationContext) -> RecommendedAction:
    """Pick the kind of question the router should favour next."""

    record = context.assessment_data
    if can_finish(context).can_finish and len(context.questions_asked) >= settings.CAN_FINISH_ACTION_MIN_QUESTIONS:
        return "can_finish"
    if missing_essentials(context):
        return "ask_essential"
    if (
        has_field(record, "currentState.painPoints")
        and not context.metrics_collected
        and "quantification" not in context.topics_covered
    ):
        return "ask_quantification"
    if _missing(record, IMPORTANT_FIELDS):
        return "ask_important"
    return "ask_optional"


def priority_gaps(context: ConversationContext) -> List[str]:
    """Essential gaps first, topped up with important gaps up to five entries."""

    gaps = missing_essentials(context)
    if len(gaps) < 3:
        gaps = gaps + _missing(context.assessment_data, IMPORTANT_FIELDS)[: 5 - len(gaps)]
    return gaps


def estimate_questions_remaining(context: ConversationContext) -> Tuple[int, int, str]:
    """Return ``(min, max, reason)`` for the number of questions still expected."""

    score = completion_for(context).completeness_score
    asked = len(context.questions_asked)
    if score >= settings.COMPLETENESS_FINISH_SCORE:
        return 0, 2, "High completeness, almost done"
    if score >= 60:
        return 2, 4, "Medium completeness, need to fill gaps"
    missing = len(missing_essentials(context))
    low = max(missing, 4)
    high = max(low, min(settings.MAX_QUESTIONS - asked, low + 2))
    return low, high, f"Low completeness, missing {missing} essential fields"


def completion_summary(context: ConversationContext) -> Tuple[int, str, str, str]:
    """Return ``(percentage, label, color, message)`` for progress displays."""

    score = completion_for(context).completeness_score
    if score >= settings.COMPLETENESS_FINISH_SCORE:
        return score, "Excellent", "green", "We have enough information for a detailed report."
    if score >= 60:
        return score, "Good", "yellow", "A few more answers will sharpen the report."
    return score, "In progress", "gray", "Let's keep going to build a complete picture."


__all__ = [
    "ESSENTIAL_FIELDS",
    "IMPORTANT_FIELDS",
    "OPTIONAL_FIELDS",
    "calculate_completion",
    "can_finish",
    "completion_for",
    "completion_summary",
    "estimate_questions_remaining",
    "missing_essentials",
    "priority_gaps",
    "recommended_action",
]

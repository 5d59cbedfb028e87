from __future__ import annotations  # Deterministic eligibility filtering and priority ranking

from typing import Iterable, List, Optional, Sequence

from agents.topics import is_topic_covered
from catalog.models import QuestionDefinition

from .completeness import priority_gaps, recommended_action
from .fields import has_field
from .models import ConversationContext, RecommendedAction

TIER_POINTS = {"essential": 100, "important": 50, "optional": 20}


def is_eligible(question: QuestionDefinition, context: ConversationContext) -> bool:
    """Check every eligibility predicate of ``question`` against ``context``."""

    if question.id in context.questions_answered_ids:
        return False
    if context.persona and "all" not in question.personas and context.persona not in question.personas:
        return False
    covered = context.topics_covered
    record = context.assessment_data
    if any(is_topic_covered(topic, covered) for topic in question.skip_if.topics):
        return False
    if any(has_field(record, path) for path in question.skip_if.fields):
        return False
    if not all(has_field(record, path) for path in question.requires.fields):
        return False
    if not all(is_topic_covered(topic, covered) for topic in question.requires.topics):
        return False
    return context.persona_confidence >= question.min_persona_confidence


def eligible_questions(questions: Iterable[QuestionDefinition], context: ConversationContext) -> List[QuestionDefinition]:
    return [item for item in questions if is_eligible(item, context)]


def priority_score(question: QuestionDefinition, context: ConversationContext, gaps: Optional[Sequence[str]] = None) -> int:
    """Deterministic weighted score used for direct picks and fallbacks."""

    score = TIER_POINTS.get(question.priority, 0)
    if context.persona and context.persona in question.personas:
        score += 30
    gap_list = priority_gaps(context) if gaps is None else gaps
    if any(question.category in gap for gap in gap_list):
        score += 40
    if context.weak_signals.lacks_metrics and question.is_quantification:
        score += 50
    if context.insights.urgency == "critical" and question.category == "budget":
        score += 30
    return score


def rank_questions(questions: Sequence[QuestionDefinition], context: ConversationContext) -> List[QuestionDefinition]:
    """Sort by priority score, highest first; catalog order breaks ties."""

    gaps = priority_gaps(context)
    indexed = list(enumerate(questions))
    indexed.sort(key=lambda pair: (-priority_score(pair[1], context, gaps), pair[0]))
    return [item for _, item in indexed]


def filter_for_action(questions: Sequence[QuestionDefinition], action: RecommendedAction) -> List[QuestionDefinition]:
    if action == "ask_essential":
        filtered = [item for item in questions if item.priority == "essential"]
    elif action == "ask_quantification":
        filtered = [item for item in questions if item.is_quantification]
    elif action == "ask_important":
        filtered = [item for item in questions if item.priority in ("essential", "important")]
    else:
        filtered = list(questions)
    return filtered or list(questions)


def select_rule_based(questions: Sequence[QuestionDefinition], context: ConversationContext) -> Optional[QuestionDefinition]:
    """Best candidate after narrowing to the recommended action."""

    if not questions:
        return None
    candidates = filter_for_action(questions, recommended_action(context))
    return rank_questions(candidates, context)[0]


__all__ = [
    "eligible_questions",
    "filter_for_action",
    "is_eligible",
    "priority_score",
    "rank_questions",
    "select_rule_based",
]

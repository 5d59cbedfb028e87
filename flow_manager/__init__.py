"""Quick assessment engine: context, scoring, routing and turn transitions."""
from .completeness import (
    ESSENTIAL_FIELDS,
    IMPORTANT_FIELDS,
    OPTIONAL_FIELDS,
    calculate_completion,
    can_finish,
    completion_summary,
    estimate_questions_remaining,
    priority_gaps,
    recommended_action,
)
from .context import apply_answer, build_initial_context, context_summary, mark_finished
from .models import (
    AskedQuestion,
    CompletionMetrics,
    ConversationContext,
    FinishDecision,
    FormattedQuestion,
    NextQuestionResult,
    RoutingDecision,
)
from .router import AdaptiveRouter, build_selector_prompt, format_question
from .selection import eligible_questions, is_eligible, priority_score, rank_questions, select_rule_based
from .turns import SessionFinishedError, UnknownQuestionError, advance, complete, next_question, start_session

__all__ = [
    "AdaptiveRouter",
    "AskedQuestion",
    "CompletionMetrics",
    "ConversationContext",
    "ESSENTIAL_FIELDS",
    "FinishDecision",
    "FormattedQuestion",
    "IMPORTANT_FIELDS",
    "NextQuestionResult",
    "OPTIONAL_FIELDS",
    "RoutingDecision",
    "SessionFinishedError",
    "UnknownQuestionError",
    "advance",
    "apply_answer",
    "build_initial_context",
    "build_selector_prompt",
    "calculate_completion",
    "can_finish",
    "complete",
    "completion_summary",
    "context_summary",
    "eligible_questions",
    "estimate_questions_remaining",
    "format_question",
    "is_eligible",
    "mark_finished",
    "next_question",
    "priority_gaps",
    "priority_score",
    "rank_questions",
    "recommended_action",
    "select_rule_based",
    "start_session",
]

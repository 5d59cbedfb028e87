"""Follow-up gating for the deep interview."""
from __future__ import annotations

import logging
from typing import Optional

from agents.weak_signals import detect_weak_signals
from catalog.answers import Answer, answer_text
from catalog.models import FollowUpTrigger, QuestionDefinition
from config.routes import OrchestratorSettings
from config.settings import settings
from graph.state import OrchestratorState, PendingQuestion


logger = logging.getLogger(__name__)


def is_shallow(question: QuestionDefinition, answer: Answer) -> bool:
    """Vague wording, or a free-text answer too short to be useful."""

    text = answer_text(answer)
    if detect_weak_signals(text, question).is_vague:
        return True
    return question.input_type == "text" and len(text.strip()) < settings.FOLLOWUP_SHORT_ANSWER_CHARS


def followup_id(base_question_id: str, index: int) -> str:
    return f"followup-{base_question_id}-{index}"


def matching_trigger(question: QuestionDefinition, answer: Answer) -> Optional[FollowUpTrigger]:
    for item in question.followups:
        try:
            fired = item.check(answer)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("follow-up trigger failed question=%s error=%s", question.id, exc)
            continue
        if fired:
            return item
    return None


def plan_followup(
    state: OrchestratorState,
    question: QuestionDefinition,
    answer: Answer,
    cfg: OrchestratorSettings,
) -> Optional[PendingQuestion]:
    """Generated follow-up for ``question`` when the gate allows one.

    The gate opens only for a shallow answer or a trigger flagged as an
    explicit opportunity, and never past ``max_followups_per_question``.
    """

    count = state.session_metadata.followup_counts.get(question.id, 0)
    if count >= cfg.max_followups_per_question:
        return None
    found = matching_trigger(question, answer)
    if found is None:
        return None
    if not (found.opportunity or is_shallow(question, answer)):
        return None
    return PendingQuestion(
        id=followup_id(question.id, count + 1),
        variation_id="v1",
        text=found.template,
        tone="conversational",
        input_type="text",
        block=question.block,
        area=question.category if question.block == "deep_dive" else None,
        weight=question.weight,
        is_followup=True,
        base_question_id=question.id,
        source="generated",
    )


__all__ = ["followup_id", "is_shallow", "matching_trigger", "plan_followup"]

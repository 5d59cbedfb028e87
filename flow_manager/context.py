from __future__ import annotations  # Conversation context construction and the apply-answer transition

import datetime as dt
import logging
from typing import Any, Dict, List, Mapping, Optional

from agents.insights import update_insights
from agents.persona_detector import detect_persona
from agents.topics import detect_topics_in_text
from agents.weak_signals import detect_weak_signals, merge_weak_signals
from catalog.answers import Answer, answer_payload, answer_text
from catalog.models import QuestionDefinition, safe_extract
from config.settings import settings

from .completeness import calculate_completion, can_finish
from .fields import deep_merge, has_field
from .models import AskedQuestion, ConversationContext, Provenance


logger = logging.getLogger(__name__)

APPEND_PATHS = ("currentState.painPoints", "goals.primaryGoals")
VALID_PERSONAS = ("engineering-tech", "it-devops", "product-business", "board-executive", "finance-ops")


def build_initial_context(
    *,
    persona: Optional[str] = None,
    partial_data: Optional[Mapping[str, Any]] = None,
    session_id: Optional[str] = None,
) -> ConversationContext:  # Fresh context with empty collections
    if persona is not None and persona not in VALID_PERSONAS:
        raise ValueError(f"unknown persona '{persona}'")
    data = deep_merge({}, partial_data or {})
    confidence = 0.0
    if persona:
        confidence = 0.8 if data else 0.6
    payload: Dict[str, Any] = {
        "persona": persona,
        "persona_confidence": confidence,
        "assessment_data": data,
        "questions_remaining": settings.INITIAL_QUESTION_BUDGET,
        "completion": calculate_completion(data),
    }
    if session_id:
        payload["session_id"] = session_id
    return ConversationContext(**payload)


def apply_answer(
    context: ConversationContext,
    question: QuestionDefinition,
    answer: Answer,
    *,
    text_shown: Optional[str] = None,
    source: Provenance = "catalog",
    now: Optional[dt.datetime] = None,
) -> ConversationContext:
    """Return the context produced by answering ``question``; the input is untouched."""

    timestamp = now or dt.datetime.now(dt.timezone.utc)
    raw_text = answer_text(answer)

    extracted = safe_extract(question, answer)
    record = deep_merge(context.assessment_data, extracted, append_paths=APPEND_PATHS)

    topics = _extend(context.topics_covered, question.tags)
    if question.input_type == "text":
        topics = _extend(topics, detect_topics_in_text(raw_text))
    metrics = list(context.metrics_collected)
    if question.is_quantification and extracted and question.tags:
        metric = question.tags[0]
        metrics = _extend(metrics, [metric])
        topics = _extend(topics, ["quantification", f"{metric}-quantified"])

    signals = merge_weak_signals(context.weak_signals, detect_weak_signals(raw_text, question))
    insights = update_insights(context.insights, question, raw_text, record)

    persona = context.persona
    confidence = context.persona_confidence
    if "role" in question.tags:
        detected, detected_confidence = detect_persona(raw_text)
        if detected and detected_confidence >= confidence:
            persona, confidence = detected, detected_confidence

    asked = list(context.questions_asked)
    asked.append(
        AskedQuestion(
            question_id=question.id,
            text=text_shown or question.text,
            answer=answer_payload(answer),
            timestamp=timestamp,
            source=source,
        )
    )
    answered = _extend(context.questions_answered_ids, [question.id])

    updated = context.model_copy(
        update={
            "assessment_data": record,
            "topics_covered": topics,
            "metrics_collected": metrics,
            "weak_signals": signals,
            "insights": insights,
            "persona": persona,
            "persona_confidence": confidence,
            "questions_asked": asked,
            "questions_answered_ids": answered,
            "questions_remaining": max(0, context.questions_remaining - 1),
            "updated_at": timestamp,
        }
    )
    completion = calculate_completion(record, topics, metrics)
    updated = updated.model_copy(update={"completion": completion})
    decision = can_finish(updated)
    logger.debug(
        "answer applied session=%s question=%s score=%d can_finish=%s",
        context.session_id,
        question.id,
        completion.completeness_score,
        decision.can_finish,
    )
    return updated.model_copy(update={"can_finish": decision.can_finish})


def mark_finished(context: ConversationContext, reason: str) -> ConversationContext:  # Terminal transition
    return context.model_copy(update={"finished": True, "can_finish": True, "finish_reason": reason})


def context_summary(context: ConversationContext) -> Dict[str, Any]:  # Compact session summary for callers and logs
    started = context.created_at
    duration = int((context.updated_at - started).total_seconds())
    return {
        "sessionId": context.session_id,
        "persona": context.persona,
        "questionsAsked": len(context.questions_asked),
        "completeness": context.completion.completeness_score,
        "essentialFieldsCollected": context.completion.essential_fields_collected,
        "totalFieldsCollected": context.completion.total_fields_collected,
        "topicsCovered": list(context.topics_covered),
        "durationSeconds": max(0, duration),
        "hasContact": has_field(context.assessment_data, "contactInfo.email"),
    }


def _extend(existing: List[str], items) -> List[str]:
    merged = list(existing)
    for item in items:
        if item not in merged:
            merged.append(item)
    return merged


__all__ = ["apply_answer", "build_initial_context", "context_summary", "mark_finished"]

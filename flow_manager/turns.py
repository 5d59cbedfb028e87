from __future__ import annotations  # Quick assessment turn transitions

import datetime as dt
import logging
from typing import Any, Mapping, Optional, Tuple

from catalog import coerce_answer
from observability.logger import log_event

from .context import apply_answer, build_initial_context, mark_finished
from .models import ConversationContext, NextQuestionResult
from .router import AdaptiveRouter


logger = logging.getLogger(__name__)


class UnknownQuestionError(KeyError):  # Answer refers to a question the catalog does not hold
    pass


class SessionFinishedError(RuntimeError):  # Turn submitted after the session ended
    pass


def start_session(
    router: AdaptiveRouter,
    *,
    persona: Optional[str] = None,
    partial_data: Optional[Mapping[str, Any]] = None,
    session_id: Optional[str] = None,
) -> Tuple[ConversationContext, NextQuestionResult]:  # Build the context and route the first question
    context = build_initial_context(persona=persona, partial_data=partial_data, session_id=session_id)
    log_event("session_start", context.session_id, node="start", outcome=persona or "no_persona")
    return _route(router, context)


def advance(
    router: AdaptiveRouter,
    context: ConversationContext,
    question_id: str,
    raw_answer: Any,
    *,
    text_shown: Optional[str] = None,
    now: Optional[dt.datetime] = None,
) -> Tuple[ConversationContext, NextQuestionResult]:
    """Apply one answer and route the next question.

    The incoming context is never modified. A repeated answer for a question
    already in the record is ignored and the session is simply re-routed.
    """

    if context.finished:
        raise SessionFinishedError(f"session {context.session_id} already finished")
    question = router.catalog.get(question_id)
    if question is None:
        raise UnknownQuestionError(question_id)

    if question_id in context.questions_answered_ids:
        logger.info("duplicate answer ignored session=%s question=%s", context.session_id, question_id)
        return _route(router, context)

    answer = coerce_answer(raw_answer, question.input_type)
    updated = apply_answer(context, question, answer, text_shown=text_shown, now=now)
    log_event(
        "answer_applied",
        context.session_id,
        node="advance",
        question_id=question_id,
        outcome=f"score={updated.completion.completeness_score}",
    )
    return _route(router, updated)


def next_question(router: AdaptiveRouter, context: ConversationContext) -> Tuple[ConversationContext, NextQuestionResult]:
    if context.finished:
        return context, NextQuestionResult(
            should_finish=True,
            finish_reason=context.finish_reason,
            completion=context.completion,
        )
    return _route(router, context)


def complete(context: ConversationContext, reason: str = "completed_by_user") -> ConversationContext:
    if context.finished:
        return context
    log_event("session_complete", context.session_id, node="complete", reason=reason)
    return mark_finished(context, reason)


def _route(router: AdaptiveRouter, context: ConversationContext) -> Tuple[ConversationContext, NextQuestionResult]:
    result = router.get_next_question(context)
    if result.should_finish:
        context = mark_finished(context, result.finish_reason or "all_essential_covered")
    return context, result


__all__ = [
    "SessionFinishedError",
    "UnknownQuestionError",
    "advance",
    "complete",
    "next_question",
    "start_session",
]

"""Adaptive next-question routing.

The router narrows the catalog deterministically, answers small decisions
itself and delegates larger ones to the question selector bound under
``config.registry.SELECTOR_KEY``. Whatever the selector returns is checked
against the candidates it was shown; anything else lands on the rule-based
ranking so a session never stalls on a bad reply.
"""
from __future__ import annotations

import json
import logging
import sqlite3
import time
from typing import List, Optional, Sequence, Tuple

from pydantic import ValidationError

from agents.types import SelectorChoice
from catalog import Catalog, QuestionDefinition, default_catalog
from catalog.providers import QuestionProvider
from config.registry import SELECTOR_KEY, get_model
from config.settings import settings
from llm_gateway import LlmOutputError, parse_structured
from observability.logger import log_event
from storage.decisions import insert_routing_decision

from .completeness import can_finish, completion_for, priority_gaps, recommended_action
from .models import (
    CompletionMetrics,
    ConversationContext,
    FinishReason,
    FormattedQuestion,
    NextQuestionResult,
    QuestionOptionOut,
    RecommendedAction,
    RoutingDecision,
)
from .selection import eligible_questions, rank_questions, select_rule_based


logger = logging.getLogger(__name__)

ACTION_GUIDANCE = {
    "ask_essential": "PRIORITY: Ask essential field question first",
    "ask_quantification": "PRIORITY: User mentioned pain but no metrics - quantify it",
    "ask_important": "PRIORITY: Ask important field to improve report quality",
    "ask_optional": "PRIORITY: Ask optional field for deeper insights",
    "can_finish": "Assessment complete, can finish",
}
SELECTOR_OPTIONS = {"temperature": 0.3, "max_tokens": 300}
DIRECT_PICK_LIMIT = 2


def format_question(question: QuestionDefinition, *, variation_id: Optional[str] = None) -> FormattedQuestion:
    """Presentation payload for ``question`` (canonical phrasing unless a variant is given)."""

    variant = question.variant(variation_id) if variation_id else None
    chosen = variant or question.variants[0]
    return FormattedQuestion(
        id=question.id,
        text=chosen.text,
        input_type=question.input_type,
        options=[QuestionOptionOut(value=item.value, label=item.label) for item in question.options],
        placeholder=chosen.placeholder,
        variation_id=variant.id if variant else None,
    )


def finish_reason(context: ConversationContext, completion: CompletionMetrics) -> FinishReason:
    asked = len(context.questions_asked)
    if asked >= settings.MAX_QUESTIONS:
        return "max_questions_reached"
    if (
        completion.completeness_score >= settings.COMPLETENESS_FINISH_SCORE
        and asked >= settings.MIN_QUESTIONS_FOR_SCORE_FINISH
    ):
        return "completeness_threshold_reached"
    return "all_essential_covered"


def build_selector_prompt(
    context: ConversationContext,
    candidates: Sequence[QuestionDefinition],
    action: RecommendedAction,
    gaps: Sequence[str],
    *,
    total_eligible: int,
    completion: Optional[CompletionMetrics] = None,
) -> str:
    """Render the bounded selection prompt; pure function of its inputs.

    ``completion`` defaults to the score stored on ``context``.
    """

    score = (completion or context.completion).completeness_score
    lines: List[str] = [
        "You are routing an adaptive business assessment. Pick the single best next question.",
        "",
        "CONTEXT:",
        f"- Persona: {context.persona or 'unknown'} ({int(round(context.persona_confidence * 100))}% confidence)",
        f"- Questions asked: {len(context.questions_asked)}",
        f"- Topics covered: {', '.join(context.topics_covered[:10]) or 'none'}",
        f"- Urgency: {context.insights.urgency}",
        f"- Completeness: {score}%",
        "",
        "RECENT Q&A:",
    ]
    recent = context.questions_asked[-settings.ROUTER_RECENT_EXCHANGES :]
    if recent:
        for item in recent:
            answer = item.answer if isinstance(item.answer, str) else json.dumps(item.answer, ensure_ascii=False)
            lines.append(f"Q: {item.text}")
            lines.append(f"A: {answer}")
    else:
        lines.append("(none yet)")

    signals = context.weak_signals.active()
    lines += ["", "WEAK SIGNALS:", ", ".join(signals) if signals else "none"]
    lines += ["", "GUIDANCE:", ACTION_GUIDANCE[action], "", "CANDIDATES:"]

    shown = candidates[: settings.ROUTER_CANDIDATE_LIMIT]
    for question in shown:
        lines.append(f"[{question.id}] ({question.priority})")
        lines.append(f"  Category: {question.category}")
        lines.append(f"  Text: {question.text}")
        lines.append(f"  Tags: {', '.join(question.tags) or '-'}")
    if total_eligible > len(shown):
        lines.append(f"... and {total_eligible - len(shown)} more")

    lines += ["", "GAPS:"]
    lines += [f"- {gap}" for gap in gaps[:2]] or ["- none"]
    lines += ["", 'Return ONLY valid JSON: {"questionId": "<id from candidates>", "reasoning": "<one sentence>"}']
    return "\n".join(lines)


class AdaptiveRouter:
    """Chooses the next catalog question for a quick assessment."""

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        providers: Sequence[QuestionProvider] = (),
        *,
        selector_key: str = SELECTOR_KEY,
        persist_decisions: bool = True,
    ) -> None:
        self.catalog = catalog if catalog is not None else default_catalog(providers)
        self.selector_key = selector_key
        self.persist_decisions = persist_decisions

    def get_next_question(self, context: ConversationContext) -> NextQuestionResult:
        completion = completion_for(context)
        decision = can_finish(context)
        if decision.can_finish:
            reason = finish_reason(context, completion)
            log_event("router_finish", context.session_id, decision="finish", reason=reason)
            return NextQuestionResult(should_finish=True, finish_reason=reason, completion=completion)

        eligible = eligible_questions(self.catalog, context)
        if not eligible:
            log_event("router_finish", context.session_id, decision="finish", reason="no_eligible_questions")
            return NextQuestionResult(
                should_finish=True,
                finish_reason="all_essential_covered",
                completion=completion,
            )

        action = recommended_action(context)
        if len(eligible) <= DIRECT_PICK_LIMIT:
            chosen = rank_questions(eligible, context)[0]
            routing = RoutingDecision(
                question_id=chosen.id,
                reasoning="Only viable option remaining",
                confidence=1.0,
                source="direct",
                recommended_action=action,
                candidates_considered=len(eligible),
            )
            latency_ms = None
        else:
            started = time.perf_counter()
            chosen, routing = self._delegate(context, eligible, action, completion)
            latency_ms = int((time.perf_counter() - started) * 1000)

        self._record(context, routing, latency_ms)
        return NextQuestionResult(
            next_question=format_question(chosen),
            routing=routing,
            completion=completion,
        )

    def _delegate(
        self,
        context: ConversationContext,
        eligible: Sequence[QuestionDefinition],
        action: RecommendedAction,
        completion: CompletionMetrics,
    ) -> Tuple[QuestionDefinition, RoutingDecision]:
        candidates = rank_questions(eligible, context)
        shown = candidates[: settings.ROUTER_CANDIDATE_LIMIT]
        prompt = build_selector_prompt(
            context,
            candidates,
            action,
            priority_gaps(context),
            total_eligible=len(eligible),
            completion=completion,
        )
        by_id = {item.id: item for item in shown}
        try:
            choice = self._ask_selector(prompt)
        except (ValidationError, LlmOutputError, ValueError) as exc:
            logger.warning("selector reply unusable session=%s: %s", context.session_id, exc)
            return self._fallback(context, eligible, action, 0.5, "fallback_invalid", "Selector reply was not valid JSON")
        except Exception as exc:  # noqa: BLE001
            logger.warning("selector call failed session=%s: %s", context.session_id, exc)
            return self._fallback(context, eligible, action, 0.7, "fallback_error", f"Selector unavailable: {type(exc).__name__}")

        chosen = by_id.get(choice.question_id)
        if chosen is None:
            logger.warning("selector chose unknown id session=%s id=%s", context.session_id, choice.question_id)
            return self._fallback(
                context,
                eligible,
                action,
                0.5,
                "fallback_invalid",
                f"Selector chose '{choice.question_id}' which was not offered",
            )
        return chosen, RoutingDecision(
            question_id=chosen.id,
            reasoning=choice.reasoning,
            confidence=0.85,
            source="model",
            recommended_action=action,
            candidates_considered=len(shown),
        )

    def _ask_selector(self, prompt: str) -> SelectorChoice:
        selector = get_model(self.selector_key)
        raw = selector(prompt=prompt, options=dict(SELECTOR_OPTIONS))
        if isinstance(raw, SelectorChoice):
            return raw
        if isinstance(raw, str):
            return parse_structured(SelectorChoice, raw)
        return SelectorChoice.model_validate(raw)

    def _fallback(
        self,
        context: ConversationContext,
        eligible: Sequence[QuestionDefinition],
        action: RecommendedAction,
        confidence: float,
        source: str,
        reasoning: str,
    ) -> Tuple[QuestionDefinition, RoutingDecision]:
        chosen = select_rule_based(eligible, context) or eligible[0]
        return chosen, RoutingDecision(
            question_id=chosen.id,
            reasoning=reasoning,
            confidence=confidence,
            source=source,  # type: ignore[arg-type]
            recommended_action=action,
            candidates_considered=len(eligible),
        )

    def _record(self, context: ConversationContext, routing: RoutingDecision, latency_ms: Optional[int] = None) -> None:
        log_event(
            "router_decision",
            context.session_id,
            decision="ask",
            question_id=routing.question_id,
            confidence=routing.confidence,
            source=routing.source,
            action=routing.recommended_action,
            ms=latency_ms,
        )
        if not self.persist_decisions:
            return
        try:
            insert_routing_decision(
                session_id=context.session_id,
                question_id=routing.question_id,
                source=routing.source,
                confidence=routing.confidence,
                recommended_action=routing.recommended_action,
                candidates_considered=routing.candidates_considered,
                reasoning=routing.reasoning,
                latency_ms=latency_ms,
            )
        except sqlite3.Error as exc:
            logger.error("routing decision not persisted session=%s: %s", context.session_id, exc)


__all__ = ["ACTION_GUIDANCE", "AdaptiveRouter", "build_selector_prompt", "finish_reason", "format_question"]

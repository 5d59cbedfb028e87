"""Choose and present the next deep interview question."""
from __future__ import annotations

import datetime as dt
import logging
import random
from typing import Any, Dict, List, Optional, Sequence, Tuple

from agents.types import NextStepDecision
from catalog import Catalog
from catalog.models import QuestionDefinition, QuestionVariant
from config.registry import NEXT_STEP_KEY, get_model
from config.routes import OrchestratorSettings
from graph.state import MachineState, OrchestratorState, PendingQuestion
from llm_gateway import parse_structured
from observability.logger import log_event
from services.priority_areas import area_question_counts, available_questions, fallback_question
from services.variants import asked_question_ids, record_variant_usage, select_variant, used_variants


logger = logging.getLogger(__name__)

PROMPT_QUESTION_LIMIT = 25
NEXT_STEP_MAX_TOKENS = 400

Choice = Tuple[Optional[QuestionDefinition], Optional[QuestionVariant], str, str]


def build_next_step_prompt(
    state: OrchestratorState,
    available: Sequence[QuestionDefinition],
    catalog: Catalog,
    cfg: OrchestratorSettings,
) -> str:
    """Render the bounded decision prompt; pure function of its inputs."""

    meta = state.session_metadata
    expertise = state.expertise
    problems = state.problems_and_opportunities
    lines: List[str] = [
        "# Deep interview orchestration",
        "",
        "## Current state",
        f"- Company: {state.company_snapshot.company_name or 'unknown'} ({state.company_snapshot.sector or 'sector unknown'})",
        f"- Expertise areas: {', '.join(expertise.areas) or 'not reported'}",
        f"- Levels: {', '.join(f'{area}: {level}' for area, level in expertise.levels.items()) or 'not reported'}",
        f"- Problem areas: {', '.join(problems.problem_areas) or 'not reported'}",
        f"- Opportunity areas: {', '.join(problems.opportunity_areas_sorted) or 'not reported'}",
        f"- Priority areas: {', '.join(meta.priority_areas) or 'none identified yet'}",
        f"- Questions asked: {meta.questions_asked} of {cfg.max_questions_total}",
        f"- Current block: {meta.current_block}",
        "",
        "## Deep dives so far",
    ]
    if state.deep_dives:
        for area, dive in state.deep_dives.items():
            lines.append(f"- {area}: {len(dive.answers)} answers, tags: [{', '.join(dive.tags)}]")
    else:
        lines.append("- none started")

    counts = area_question_counts(state, catalog)
    lines += ["", "## Areas explored"]
    lines += [f"- {area}: {count} questions" for area, count in counts.items()] or ["- none"]

    lines += ["", "## Last interaction"]
    if state.transcript:
        last = state.transcript[-1]
        lines.append(f"Q [{last.question_id}/{last.variation_id}]: {last.question_text}")
        lines.append(f"A: {last.answer}")
    else:
        lines.append("No answers yet.")

    lines += ["", "## AVAILABLE QUESTIONS (choose only from these)"]
    shown = list(available)[:PROMPT_QUESTION_LIMIT]
    for question in shown:
        used = used_variants(meta, question.id)
        free = [item.id for item in question.variants if item.id not in used]
        lines.append(
            f"- {question.id} ({question.block}/{question.category}, weight {question.weight}"
            f"{', required' if question.required else ''}): \"{question.text[:60]}\" variations: {', '.join(free) or 'all used'}"
        )
    if len(available) > len(shown):
        lines.append(f"... and {len(available) - len(shown)} more")

    asked = asked_question_ids(meta)
    lines += ["", f"## Already asked: {', '.join(asked) or 'none'}"]
    lines += [
        "",
        "## Rules",
        f"- Go deeper on priority areas until each has {cfg.min_questions_per_priority_area} answers.",
        f"- Never exceed {cfg.max_questions_per_area} questions in one area.",
        "- Pick a variation that has not been used yet.",
        "",
        'Return ONLY valid JSON: {"action": "ask_next" | "end", "question_id": "...", "variation_id": "...", "reasoning": "..."}',
    ]
    return "\n".join(lines)


def present(
    state: OrchestratorState,
    question: QuestionDefinition,
    variant: QuestionVariant,
    *,
    now: Optional[dt.datetime] = None,
) -> PendingQuestion:
    """Mark ``question`` as asked with ``variant`` and make it the current question."""

    meta = state.session_metadata
    record_variant_usage(meta, question.id, variant.id, now=now)
    meta.questions_asked += 1
    pending = PendingQuestion(
        id=question.id,
        variation_id=variant.id,
        text=variant.text,
        tone=variant.tone,
        input_type=question.input_type,
        options=[{"value": item.value, "label": item.label} for item in question.options],
        placeholder=variant.placeholder or question.placeholder,
        block=question.block,
        area=question.category if question.block == "deep_dive" else None,
        weight=question.weight,
    )
    state.current_question = pending
    state.phase = "collecting"
    return pending


def present_followup(state: OrchestratorState, followup: PendingQuestion, *, now: Optional[dt.datetime] = None) -> None:
    meta = state.session_metadata
    record_variant_usage(meta, followup.id, followup.variation_id, now=now)
    meta.questions_asked += 1
    if followup.base_question_id:
        base = followup.base_question_id
        meta.followup_counts[base] = meta.followup_counts.get(base, 0) + 1
    state.current_question = followup
    state.phase = "collecting"


def choose_next(
    state: OrchestratorState,
    available: Sequence[QuestionDefinition],
    catalog: Catalog,
    cfg: OrchestratorSettings,
    *,
    rng: Optional[random.Random] = None,
) -> Choice:
    """``(question, variant, source, reasoning)``; a ``None`` question means end."""

    meta = state.session_metadata
    try:
        model = get_model(NEXT_STEP_KEY)
    except KeyError:
        return _fallback(state, available, "fallback_unbound", "No decision model bound", cfg, rng)

    prompt = build_next_step_prompt(state, available, catalog, cfg)
    meta.llm_calls += 1
    try:
        raw = model(prompt=prompt, options={"temperature": cfg.temperature, "max_tokens": NEXT_STEP_MAX_TOKENS})
        decision = _as_decision(raw)
    except Exception as exc:  # noqa: BLE001
        logger.warning("next-step decision failed session=%s: %s", meta.session_id, exc)
        return _fallback(state, available, "fallback_error", f"Decision unavailable: {type(exc).__name__}", cfg, rng)

    if decision.action == "end":
        if meta.questions_asked >= cfg.min_questions_before_area_finish:
            return None, None, "model", decision.reasoning or "Model ended the interview"
        return _fallback(state, available, "fallback_invalid", "Model asked to end too early", cfg, rng)

    by_id = {item.id: item for item in available}
    question = by_id.get(decision.question_id or "")
    if question is None:
        logger.warning("next-step chose unavailable id session=%s id=%s", meta.session_id, decision.question_id)
        return _fallback(state, available, "fallback_invalid", f"'{decision.question_id}' is not available", cfg, rng)

    used = used_variants(meta, question.id)
    variant = question.variant(decision.variation_id) if decision.variation_id else None
    if variant is None or variant.id in used:
        variant = select_variant(question, used, rng=rng)
    return question, variant, "model", decision.reasoning


def run(
    machine: MachineState,
    *,
    catalog: Catalog,
    cfg: OrchestratorSettings,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    state = machine["state"]
    now = machine.get("now")
    followup = machine.get("followup")
    if followup is not None:
        present_followup(state, followup, now=now)
        state.last_reasoning = "Follow-up on the previous answer"
        log_event("deep_next", state.session_id, node="decide_next", question_id=followup.id, source="followup")
        return {"state": state, "decision_source": "followup"}

    available = available_questions(state, catalog, cfg)
    if not available:
        state.phase = "deciding_end"
        state.end_reason = "no_questions_available"
        return {"state": state, "decision_source": "exhausted"}

    question, variant, source, reasoning = choose_next(state, available, catalog, cfg, rng=rng)
    if question is None or variant is None:
        state.phase = "deciding_end"
        state.end_reason = "model_decided_end"
        state.last_reasoning = reasoning
        return {"state": state, "decision_source": source}

    present(state, question, variant, now=now)
    state.last_reasoning = reasoning
    log_event(
        "deep_next",
        state.session_id,
        node="decide_next",
        question_id=question.id,
        source=source,
        decision=variant.id,
    )
    return {"state": state, "decision_source": source}


def _as_decision(raw: Any) -> NextStepDecision:
    if isinstance(raw, NextStepDecision):
        return raw
    if isinstance(raw, str):
        return parse_structured(NextStepDecision, raw)
    return NextStepDecision.model_validate(raw)


def _fallback(
    state: OrchestratorState,
    available: Sequence[QuestionDefinition],
    source: str,
    reasoning: str,
    cfg: OrchestratorSettings,
    rng: Optional[random.Random],
) -> Choice:
    question = fallback_question(state, available)
    if question is None:
        return None, None, source, reasoning
    used = used_variants(state.session_metadata, question.id)
    variant = select_variant(question, used, rng=rng)
    return question, variant, source, reasoning


__all__ = ["build_next_step_prompt", "choose_next", "present", "present_followup", "run"]

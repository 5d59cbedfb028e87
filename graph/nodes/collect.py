"""Apply the respondent's answer to the interview state."""
from __future__ import annotations

import datetime as dt
import re
from typing import Any, Dict, List

from catalog import Catalog, coerce_answer
from catalog.answers import Answer, answer_payload
from catalog.models import QuestionDefinition, safe_extract
from config.routes import OrchestratorSettings
from flow_manager.fields import deep_merge
from graph.state import DeepDive, Interaction, MachineState, OrchestratorState, PendingQuestion, ProblemStory
from services.followups import plan_followup
from services.priority_areas import compute_priority_areas, should_end

DATA_SECTIONS = (
    "company_snapshot",
    "respondent",
    "expertise",
    "problems_and_opportunities",
    "deep_dives",
    "automation_opportunities",
    "closing",
)
HIGH_IMPACT_WORDS = ("critical", "losing", "urgent")
STORY_TITLE_CHARS = 60
_PARAGRAPHS = re.compile(r"\n\s*\n")


def structure_problem_stories(raw: str, areas: List[str]) -> List[ProblemStory]:
    """Split the free-text stories into paragraphs and label each one."""

    stories: List[ProblemStory] = []
    for chunk in _PARAGRAPHS.split(raw or ""):
        text = " ".join(chunk.split())
        if not text:
            continue
        lowered = text.lower()
        impact = "high" if any(word in lowered for word in HIGH_IMPACT_WORDS) else "medium"
        stories.append(
            ProblemStory(
                title=text[:STORY_TITLE_CHARS],
                areas_related=list(areas),
                impact=impact,
                description=text,
            )
        )
    return stories


def merge_extracted(state: OrchestratorState, extracted: Dict[str, Any]) -> OrchestratorState:
    if not extracted:
        return state
    data = state.model_dump(include=set(DATA_SECTIONS))
    merged = deep_merge(data, {key: value for key, value in extracted.items() if key in DATA_SECTIONS})
    return state.model_copy(update={key: getattr(OrchestratorState.model_validate(merged), key) for key in DATA_SECTIONS})


def _record_deep_answer(state: OrchestratorState, area: str, question_id: str, answer: Answer) -> None:
    dive = state.deep_dives.get(area)
    if dive is None:
        dive = DeepDive()
        state.deep_dives[area] = dive
    dive.answers[question_id] = answer_payload(answer)


def _apply_catalog_answer(
    state: OrchestratorState,
    question: QuestionDefinition,
    variation_id: str,
    answer: Answer,
    now: dt.datetime,
) -> OrchestratorState:
    state = merge_extracted(state, safe_extract(question, answer))
    if question.block == "deep_dive":
        _record_deep_answer(state, question.category, question.id, answer)
    if question.id == "prob-003-problem-stories":
        problems = state.problems_and_opportunities
        problems.problem_stories_structured = structure_problem_stories(
            problems.problem_stories_raw or "", problems.problem_areas
        )
    variant = question.variant(variation_id) or question.variants[0]
    state.transcript.append(
        Interaction(
            question_id=question.id,
            variation_id=variant.id,
            question_text=variant.text,
            answer=answer_payload(answer),
            answer_type=question.input_type,
            timestamp=now,
        )
    )
    if question.block and question.block != state.session_metadata.current_block:
        state.session_metadata.current_block = question.block
    return state


def _apply_followup_answer(state: OrchestratorState, pending: PendingQuestion, answer: Answer, now: dt.datetime) -> None:
    if pending.area:
        _record_deep_answer(state, pending.area, pending.id, answer)
    state.transcript.append(
        Interaction(
            question_id=pending.id,
            variation_id=pending.variation_id,
            question_text=pending.text,
            answer=answer_payload(answer),
            answer_type=pending.input_type,
            source="generated",
            timestamp=now,
        )
    )


def run(machine: MachineState, *, catalog: Catalog, cfg: OrchestratorSettings) -> Dict[str, Any]:
    state = machine["state"]
    incoming = machine["answer"]
    now = machine.get("now") or dt.datetime.now(dt.timezone.utc)
    pending = state.current_question

    followup = None
    if pending is not None and pending.is_followup and pending.id == incoming.question_id:
        answer = coerce_answer(incoming.answer, "text")
        _apply_followup_answer(state, pending, answer, now)
    else:
        question = catalog.get(incoming.question_id)
        if question is None:
            raise KeyError(incoming.question_id)
        answer = coerce_answer(incoming.answer, question.input_type)
        state = _apply_catalog_answer(state, question, incoming.variation_id, answer, now)
        followup = plan_followup(state, question, answer, cfg)

    meta = state.session_metadata
    meta.questions_answered += 1
    meta.priority_areas = compute_priority_areas(state)
    state.current_question = None

    end, reason = should_end(state, cfg)
    if end:
        state.end_reason = reason
        state.phase = "deciding_end"
        followup = None
    else:
        state.phase = "deciding_next"
    state.events.append({"node": "collect", "question_id": incoming.question_id, "phase": state.phase})
    return {"state": state, "followup": followup}


__all__ = ["merge_extracted", "run", "structure_problem_stories"]

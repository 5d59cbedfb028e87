"""Priority areas, question availability and the termination rule for deep interviews."""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from catalog import Catalog
from catalog.models import QuestionDefinition
from config.routes import OrchestratorSettings
from graph.state import OrchestratorState

from .variants import asked_question_ids

DEPTH_LEVELS = ("intermediate", "deep")
OPENING_BLOCKS = ("intro", "company_snapshot", "expertise", "problems_opportunities")
MIN_QUESTIONS_TO_END = 15


def compute_priority_areas(state: OrchestratorState) -> List[str]:
    """Expertise areas at intermediate or deep level that were also reported as problems."""

    problems = state.problems_and_opportunities.problem_areas
    levels = state.expertise.levels
    candidates = list(state.expertise.areas)
    for area in levels:
        if area not in candidates:
            candidates.append(area)
    return [area for area in candidates if levels.get(area) in DEPTH_LEVELS and area in problems]


def area_question_counts(state: OrchestratorState, catalog: Catalog) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for question_id in asked_question_ids(state.session_metadata):
        question = catalog.get(question_id)
        if question is not None and question.block == "deep_dive":
            counts[question.category] = counts.get(question.category, 0) + 1
    return counts


def covered_priority_areas(state: OrchestratorState, cfg: OrchestratorSettings) -> List[str]:
    return [
        area
        for area in state.session_metadata.priority_areas
        if area in state.deep_dives
        and len(state.deep_dives[area].answers) >= cfg.min_questions_per_priority_area
    ]


def should_end(state: OrchestratorState, cfg: OrchestratorSettings) -> Tuple[bool, Optional[str]]:
    """``(end, reason)`` for the question budget and priority coverage rules."""

    meta = state.session_metadata
    if meta.questions_asked >= cfg.max_questions_total:
        return True, "max_questions_reached"
    covered = covered_priority_areas(state, cfg)
    needed = min(2, len(meta.priority_areas))
    threshold = max(cfg.min_questions_before_area_finish, MIN_QUESTIONS_TO_END)
    if len(covered) >= needed and meta.questions_asked >= threshold:
        return True, "priority_areas_covered"
    return False, None


def available_questions(
    state: OrchestratorState,
    catalog: Catalog,
    cfg: OrchestratorSettings,
) -> List[QuestionDefinition]:
    """Catalog questions not yet presented, respecting the per-area cap."""

    asked = set(asked_question_ids(state.session_metadata))
    if state.current_question is not None:
        asked.add(state.current_question.id)
    counts = area_question_counts(state, catalog)
    result: List[QuestionDefinition] = []
    for question in catalog:
        if question.id in asked:
            continue
        if question.block == "deep_dive" and counts.get(question.category, 0) >= cfg.max_questions_per_area:
            continue
        result.append(question)
    return result


def fallback_question(
    state: OrchestratorState,
    available: Sequence[QuestionDefinition],
) -> Optional[QuestionDefinition]:
    """Deterministic next question.

    Order: unanswered required questions of the opening blocks, deep dives of
    priority areas, automation focus, closing, then whatever remains by weight.
    """

    if not available:
        return None
    for block in OPENING_BLOCKS:
        for question in available:
            if question.block == block and question.required:
                return question
    for area in state.session_metadata.priority_areas:
        for question in available:
            if question.block == "deep_dive" and question.category == area:
                return question
    for block in ("automation_focus", "closing"):
        in_block = [item for item in available if item.block == block]
        if in_block:
            return sorted(in_block, key=lambda item: (not item.required, -item.weight))[0]
    ranked = sorted(enumerate(available), key=lambda pair: (-pair[1].weight, pair[0]))
    return ranked[0][1]


__all__ = [
    "area_question_counts",
    "available_questions",
    "compute_priority_areas",
    "covered_priority_areas",
    "fallback_question",
    "should_end",
]

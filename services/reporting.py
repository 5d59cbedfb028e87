"""Final report for a deep interview."""
from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from graph.state import DeepDive, OrchestratorState

from .variants import asked_question_ids

AUTOMATION_HINTS = (
    ("manual_process", "Automate the manual process in {area}"),
    ("critical_spreadsheet", "Replace critical spreadsheets with a proper system in {area}"),
    ("ai_automation_opportunity", "Apply AI automation in {area}"),
)
BLOCK_PREFIXES = (
    ("intro-", "intro"),
    ("snap-", "company_snapshot"),
    ("exp-", "expertise"),
    ("prob-", "problems_opportunities"),
    ("mkt-", "deep_dive"),
    ("tech-", "deep_dive"),
    ("prod-", "deep_dive"),
    ("finops-", "deep_dive"),
    ("strat-", "deep_dive"),
    ("auto-", "automation_focus"),
    ("close-", "closing"),
)
FULL_INTERVIEW_QUESTIONS = 30


def complexity_score(dive: DeepDive) -> int:
    score = 5
    if "legacy_tech" in dive.tags:
        score += 2
    for tag in ("key_person_dependency", "manual_integration", "unstructured_data"):
        if tag in dive.tags:
            score += 1
    return min(10, score)


def maturity_score(dive: DeepDive) -> int:
    score = 5
    if "manual_process" in dive.tags:
        score -= 2
    if "critical_spreadsheet" in dive.tags:
        score -= 1
    if "missing_metric" in dive.tags:
        score -= 1
    if "ai_automation_opportunity" in dive.tags:
        score += 1
    return max(0, min(10, score))


def automation_hints(area: str, dive: DeepDive) -> List[str]:
    hints = [template.format(area=area) for tag, template in AUTOMATION_HINTS if tag in dive.tags]
    for item in dive.automation_opportunities:
        if item not in hints:
            hints.append(item)
    return hints


def block_for(question_id: str) -> str:
    if question_id.startswith("followup-"):
        return "followup"
    for prefix, block in BLOCK_PREFIXES:
        if question_id.startswith(prefix):
            return block
    return "unknown"


def build_report(state: OrchestratorState, *, now: Optional[dt.datetime] = None) -> Dict[str, Any]:
    """Structured output for a finished (or abandoned) deep interview."""

    completed_at = now or dt.datetime.now(dt.timezone.utc)
    meta = state.session_metadata
    duration = max(0, int(round((completed_at - meta.started_at).total_seconds())))

    deep_dives: List[Dict[str, Any]] = []
    detected: List[Dict[str, Any]] = []
    all_tags: List[str] = []
    tag_frequency: Dict[str, int] = {}
    for area, dive in state.deep_dives.items():
        deep_dives.append(
            {
                "area": area,
                "answers": dict(dive.answers),
                "tags": list(dive.tags),
                "process_overview": dive.process_overview,
                "bottlenecks": list(dive.bottlenecks),
                "details": dict(dive.details),
                "automation_opportunities": automation_hints(area, dive),
                "complexity_score": complexity_score(dive),
                "maturity_score": maturity_score(dive),
            }
        )
        for tag in dive.tags:
            tag_frequency[tag] = tag_frequency.get(tag, 0) + 1
            if tag not in all_tags:
                all_tags.append(tag)
            if tag == "ai_automation_opportunity":
                detected.append(
                    {
                        "area": area,
                        "type": "automation",
                        "description": f"Automation opportunity identified in {area}",
                        "priority": "high",
                        "tags": [tag],
                        "evidence": dict(dive.answers),
                    }
                )

    blocks: List[str] = []
    for question_id in asked_question_ids(meta):
        block = block_for(question_id)
        if block not in blocks:
            blocks.append(block)

    problems = state.problems_and_opportunities
    return {
        "sessionId": meta.session_id,
        "userId": meta.user_id,
        "completedAt": completed_at.isoformat(),
        "company": state.company_snapshot.model_dump(),
        "respondent": {
            "areas": list(state.expertise.areas),
            "levels": dict(state.expertise.levels),
            "subtopics": dict(state.expertise.subtopics),
            "consent": state.respondent.get("consent"),
        },
        "problems_and_opportunities": {
            "problem_areas": list(problems.problem_areas),
            "opportunity_areas_sorted": list(problems.opportunity_areas_sorted),
            "problem_stories": [item.model_dump() for item in problems.problem_stories_structured],
            "priority_areas": list(meta.priority_areas),
        },
        "deep_dives": deep_dives,
        "automation_opportunities": {
            **state.automation_opportunities.model_dump(),
            "detected_opportunities": detected,
        },
        "closing": state.closing.model_dump(),
        "metadata": {
            "total_questions": meta.questions_asked,
            "total_answers": meta.questions_answered,
            "llm_calls": meta.llm_calls,
            "started_at": meta.started_at.isoformat(),
            "completed_at": completed_at.isoformat(),
            "duration_seconds": duration,
            "variations_used": len(meta.variations_used),
            "unique_questions_asked": len(asked_question_ids(meta)),
            "blocks_completed": blocks,
            "areas_explored": list(state.expertise.areas),
            "deep_dive_areas": list(state.deep_dives),
            "all_tags": all_tags,
            "tag_frequency": tag_frequency,
            "completeness_percentage": min(100, round(meta.questions_asked / FULL_INTERVIEW_QUESTIONS * 100)),
            "end_reason": state.end_reason,
        },
    }


def session_status(state: OrchestratorState) -> Dict[str, Any]:
    meta = state.session_metadata
    return {
        "sessionId": meta.session_id,
        "phase": state.phase,
        "ended": state.ended,
        "endReason": state.end_reason,
        "currentBlock": meta.current_block,
        "questionsAsked": meta.questions_asked,
        "questionsAnswered": meta.questions_answered,
        "llmCalls": meta.llm_calls,
        "priorityAreas": list(meta.priority_areas),
        "currentQuestion": state.current_question.model_dump() if state.current_question else None,
    }


__all__ = ["automation_hints", "block_for", "build_report", "complexity_score", "maturity_score", "session_status"]

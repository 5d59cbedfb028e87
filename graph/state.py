"""Shared state definitions for the deep interview graph."""
from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, Dict, List, Literal, Optional, TypedDict

from pydantic import BaseModel, Field

Phase = Literal["collecting", "deciding_next", "deciding_end", "ended"]
Impact = Literal["low", "medium", "high"]
Provenance = Literal["catalog", "generated"]


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class CompanySnapshot(BaseModel):
    company_name: Optional[str] = None
    sector: Optional[str] = None
    business_model: List[str] = Field(default_factory=list)
    revenue_range: Optional[str] = None
    company_size: Optional[str] = None
    digital_maturity: Optional[float] = None
    ai_usage_current: Optional[str] = None


class Expertise(BaseModel):
    areas: List[str] = Field(default_factory=list)
    levels: Dict[str, str] = Field(default_factory=dict)
    subtopics: Dict[str, List[str]] = Field(default_factory=dict)


class ProblemStory(BaseModel):
    title: str
    areas_related: List[str] = Field(default_factory=list)
    impact: Impact = "medium"
    description: str


class ProblemsAndOpportunities(BaseModel):
    problem_areas: List[str] = Field(default_factory=list)
    opportunity_areas_sorted: List[str] = Field(default_factory=list)
    problem_stories_raw: Optional[str] = None
    problem_stories_structured: List[ProblemStory] = Field(default_factory=list)


class DeepDive(BaseModel):  # Everything learned about one business area
    answers: Dict[str, Any] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)
    process_overview: Optional[str] = None
    bottlenecks: List[str] = Field(default_factory=list)
    automation_opportunities: List[str] = Field(default_factory=list)
    details: Dict[str, Any] = Field(default_factory=dict)


class AutomationFocus(BaseModel):
    repetitive_tasks: Optional[str] = None
    manual_dependencies: Optional[str] = None
    ai_team_wish: Optional[str] = None


class Closing(BaseModel):
    single_most_important_fix: Optional[str] = None
    ai_readiness_score: Optional[float] = None
    report_focus_preference: Optional[str] = None


class VariationUsage(BaseModel):
    question_id: str
    variation_id: str
    timestamp: dt.datetime = Field(default_factory=_utcnow)


class SessionMetadata(BaseModel):
    session_id: str = Field(default_factory=lambda: f"deep-{uuid.uuid4().hex[:12]}")
    user_id: Optional[str] = None
    started_at: dt.datetime = Field(default_factory=_utcnow)
    questions_asked: int = 0
    questions_answered: int = 0
    variations_used: List[VariationUsage] = Field(default_factory=list)
    llm_calls: int = 0
    current_block: str = "intro"
    priority_areas: List[str] = Field(default_factory=list)
    followup_counts: Dict[str, int] = Field(default_factory=dict)


class PendingQuestion(BaseModel):  # Question currently shown to the respondent
    id: str
    variation_id: str
    text: str
    tone: str = "conversational"
    input_type: str
    options: List[Dict[str, str]] = Field(default_factory=list)
    placeholder: Optional[str] = None
    block: Optional[str] = None
    area: Optional[str] = None
    weight: int = 3
    is_followup: bool = False
    base_question_id: Optional[str] = None
    source: Provenance = "catalog"


class Interaction(BaseModel):  # Transcript entry for one answered question
    question_id: str
    variation_id: str
    question_text: str
    answer: Any = None
    answer_type: str = "text"
    tags: List[str] = Field(default_factory=list)
    source: Provenance = "catalog"
    timestamp: dt.datetime = Field(default_factory=_utcnow)


class OrchestratorState(BaseModel):
    """Serializable state tracked across deep interview turns."""

    company_snapshot: CompanySnapshot = Field(default_factory=CompanySnapshot)
    respondent: Dict[str, Any] = Field(default_factory=dict)
    expertise: Expertise = Field(default_factory=Expertise)
    problems_and_opportunities: ProblemsAndOpportunities = Field(default_factory=ProblemsAndOpportunities)
    deep_dives: Dict[str, DeepDive] = Field(default_factory=dict)
    automation_opportunities: AutomationFocus = Field(default_factory=AutomationFocus)
    closing: Closing = Field(default_factory=Closing)
    session_metadata: SessionMetadata = Field(default_factory=SessionMetadata)

    phase: Phase = "collecting"
    current_question: Optional[PendingQuestion] = None
    end_reason: Optional[str] = None
    last_reasoning: Optional[str] = None
    transcript: List[Interaction] = Field(default_factory=list)
    events: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def session_id(self) -> str:
        return self.session_metadata.session_id

    @property
    def ended(self) -> bool:
        return self.phase == "ended"


class AnswerInput(BaseModel):
    question_id: str
    variation_id: str
    answer: Any = None


class MachineState(TypedDict, total=False):  # Channels carried through one graph run
    state: OrchestratorState
    answer: AnswerInput
    now: dt.datetime
    followup: Optional[PendingQuestion]
    decision_source: str


__all__ = [
    "AnswerInput",
    "AutomationFocus",
    "Closing",
    "CompanySnapshot",
    "DeepDive",
    "Expertise",
    "Interaction",
    "MachineState",
    "OrchestratorState",
    "PendingQuestion",
    "Phase",
    "ProblemStory",
    "ProblemsAndOpportunities",
    "SessionMetadata",
    "VariationUsage",
]

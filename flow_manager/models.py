from __future__ import annotations  # Adaptive assessment state models

import datetime as dt
import uuid
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from agents.types import CamelModel, Insights, WeakSignals

Provenance = Literal["catalog", "generated"]
FinishReason = Literal["max_questions_reached", "completeness_threshold_reached", "all_essential_covered"]
RecommendedAction = Literal["ask_essential", "ask_quantification", "ask_important", "ask_optional", "can_finish"]
RoutingSource = Literal["direct", "model", "fallback_invalid", "fallback_error"]


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class AskedQuestion(CamelModel):  # Transcript entry for one answered question
    question_id: str
    text: str
    answer: Any = None
    timestamp: dt.datetime = Field(default_factory=_utcnow)
    source: Provenance = "catalog"


class CompletionMetrics(CamelModel):  # Scorer output, always recomputed from the record
    completeness_score: int = Field(default=0, ge=0, le=100)
    essential_fields_collected: int = 0
    total_fields_collected: int = 0
    topics_covered: List[str] = Field(default_factory=list)
    metrics_collected: List[str] = Field(default_factory=list)
    gaps_identified: List[str] = Field(default_factory=list)


class FinishDecision(CamelModel):
    can_finish: bool
    reason: str
    recommendation: Optional[str] = None


class ConversationContext(CamelModel):  # Accumulated record of one adaptive session
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)
    persona: Optional[str] = None
    persona_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    assessment_data: Dict[str, Any] = Field(default_factory=dict)
    questions_asked: List[AskedQuestion] = Field(default_factory=list)
    questions_answered_ids: List[str] = Field(default_factory=list)
    topics_covered: List[str] = Field(default_factory=list)
    metrics_collected: List[str] = Field(default_factory=list)
    weak_signals: WeakSignals = Field(default_factory=WeakSignals)
    insights: Insights = Field(default_factory=Insights)
    completion: CompletionMetrics = Field(default_factory=CompletionMetrics)
    questions_remaining: int = Field(default=15, ge=0)
    can_finish: bool = False
    finished: bool = False
    finish_reason: Optional[str] = None

    @field_validator("questions_answered_ids", "topics_covered", "metrics_collected", mode="before")
    @classmethod
    def _dedupe(cls, value: Any) -> List[str]:  # Keep first occurrence order, drop repeats
        if value is None:
            return []
        seen: List[str] = []
        for item in value:
            if item not in seen:
                seen.append(item)
        return seen


class QuestionOptionOut(CamelModel):
    value: str
    label: str


class FormattedQuestion(CamelModel):  # Presentation-ready question payload
    id: str
    text: str
    input_type: str
    options: List[QuestionOptionOut] = Field(default_factory=list)
    placeholder: Optional[str] = None
    variation_id: Optional[str] = None
    source: Provenance = "catalog"


class RoutingDecision(CamelModel):
    question_id: str
    reasoning: str
    confidence: float = Field(ge=0.0, le=1.0)
    source: RoutingSource = "direct"
    recommended_action: RecommendedAction = "ask_essential"
    candidates_considered: int = 0


class NextQuestionResult(CamelModel):
    next_question: Optional[FormattedQuestion] = None
    routing: Optional[RoutingDecision] = None
    should_finish: bool = False
    finish_reason: Optional[str] = None
    completion: CompletionMetrics = Field(default_factory=CompletionMetrics)


__all__ = [
    "AskedQuestion",
    "CompletionMetrics",
    "ConversationContext",
    "FinishDecision",
    "FinishReason",
    "FormattedQuestion",
    "NextQuestionResult",
    "Provenance",
    "QuestionOptionOut",
    "RecommendedAction",
    "RoutingDecision",
    "RoutingSource",
]

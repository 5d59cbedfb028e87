"""Pydantic schemas for the assessment API."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from agents.types import CamelModel
from flow_manager.models import CompletionMetrics, ConversationContext, FormattedQuestion, RoutingDecision
from graph.state import PendingQuestion, SessionMetadata


class StartAssessmentReq(CamelModel):
    persona: Optional[str] = None
    partial_data: Optional[Dict[str, Any]] = None
    session_id: Optional[str] = None


class AnswerReq(CamelModel):
    session_id: Optional[str] = None
    question_id: Optional[str] = None
    answer: Any = None
    question_text: Optional[str] = None


class SessionReq(CamelModel):
    session_id: Optional[str] = None


class AssessmentResp(CamelModel):
    session_id: str
    next_question: Optional[FormattedQuestion] = None
    routing: Optional[RoutingDecision] = None
    should_finish: bool = False
    finish_reason: Optional[str] = None
    completion: CompletionMetrics = Field(default_factory=CompletionMetrics)
    questions_remaining: int = 0
    can_finish: bool = False


class AssessmentStatusResp(CamelModel):
    session_id: str
    context: ConversationContext
    summary: Dict[str, Any] = Field(default_factory=dict)


class DeepStartReq(BaseModel):
    user_id: Optional[str] = None
    company_name: Optional[str] = None
    sector: Optional[str] = None


class DeepAnswerReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")
    question_id: Optional[str] = None
    variation_id: Optional[str] = None
    answer: Any = None


class DeepCompleteReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")


class DeepStartResp(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    first_question: PendingQuestion
    session_metadata: SessionMetadata


class DeepAnswerResp(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    action: Literal["ask_next", "end"]
    next_question: Optional[PendingQuestion] = None
    reasoning: Optional[str] = None
    decision_source: str = ""
    session_metadata: SessionMetadata
    events: List[Dict[str, Any]] = Field(default_factory=list)


class DeepCompleteResp(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    report: Dict[str, Any]
    summary: Dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "AnswerReq",
    "AssessmentResp",
    "AssessmentStatusResp",
    "DeepAnswerReq",
    "DeepAnswerResp",
    "DeepCompleteReq",
    "DeepCompleteResp",
    "DeepStartReq",
    "DeepStartResp",
    "SessionReq",
    "StartAssessmentReq",
]

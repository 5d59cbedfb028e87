"""Shared type definitions for agents."""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Urgency = Literal["low", "medium", "high", "critical"]
Complexity = Literal["simple", "moderate", "complex"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WeakSignals(CamelModel):
    is_vague: bool = False
    has_contradiction: bool = False
    has_hesitation: bool = False
    lacks_metrics: bool = False
    has_emotional_language: bool = False
    has_pressure_indicators: bool = False

    def active(self) -> List[str]:
        return [name for name, value in self.model_dump(by_alias=True).items() if value]


class Insights(CamelModel):
    urgency: Urgency = "medium"
    complexity: Complexity = "moderate"
    detected_patterns: List[str] = Field(default_factory=list)
    mentioned_tools: List[str] = Field(default_factory=list)
    mentioned_competitors: List[str] = Field(default_factory=list)
    has_quantifiable_impact: bool = False
    has_budget: bool = False
    has_decision_authority: bool = False


class SelectorChoice(CamelModel):
    question_id: str
    reasoning: str

    @field_validator("question_id")
    @classmethod
    def _require_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("questionId must not be empty")
        return value.strip()


class TagResult(CamelModel):
    tags: List[str]


class NextStepDecision(CamelModel):
    action: Literal["ask_next", "end"]
    question_id: Optional[str] = None
    variation_id: Optional[str] = None
    reasoning: str = ""
    state_updates: Dict[str, Any] = Field(default_factory=dict)

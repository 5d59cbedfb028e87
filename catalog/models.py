from __future__ import annotations  # Question definition models shared by both interview modes

import logging
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .answers import Answer, InputType


logger = logging.getLogger(__name__)

Priority = Literal["essential", "important", "optional"]
Tone = Literal["formal", "casual", "conversational", "strategic"]
Extractor = Callable[[Answer], Dict[str, Any]]
TriggerCheck = Callable[[Answer], bool]

PERSONAS: Tuple[str, ...] = (
    "engineering-tech",
    "it-devops",
    "product-business",
    "board-executive",
    "finance-ops",
)


class QuestionOption(BaseModel):  # Selectable option value/label pair
    model_config = ConfigDict(frozen=True)

    value: str
    label: str


class QuestionVariant(BaseModel):  # One phrasing of a question
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    tone: Tone = "conversational"
    placeholder: Optional[str] = None


class Eligibility(BaseModel):  # Field paths and topic tags checked by the router
    model_config = ConfigDict(frozen=True)

    fields: Tuple[str, ...] = ()
    topics: Tuple[str, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.fields and not self.topics


class FollowUpTrigger(BaseModel):  # Condition that unlocks a generated follow-up
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    check: TriggerCheck
    reason: str
    template: str
    opportunity: bool = False


def _no_extraction(_: Answer) -> Dict[str, Any]:
    return {}


class QuestionDefinition(BaseModel):  # Immutable catalog question
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    category: str
    variants: Tuple[QuestionVariant, ...]
    input_type: InputType
    options: Tuple[QuestionOption, ...] = ()
    priority: Priority = "optional"
    personas: Tuple[str, ...] = ("all",)
    tags: Tuple[str, ...] = ()
    requires: Eligibility = Field(default_factory=Eligibility)
    skip_if: Eligibility = Field(default_factory=Eligibility)
    min_persona_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    block: Optional[str] = None
    required: bool = False
    weight: int = Field(default=3, ge=1, le=5)
    followups: Tuple[FollowUpTrigger, ...] = ()
    extract: Extractor = _no_extraction

    @field_validator("variants", mode="before")
    @classmethod
    def _ensure_variants(cls, value: Any) -> Any:  # Require at least one phrasing
        if not value:
            raise ValueError("question needs at least one variant")
        return value

    @property
    def text(self) -> str:  # Canonical phrasing (first variant)
        return self.variants[0].text

    @property
    def placeholder(self) -> Optional[str]:
        return self.variants[0].placeholder

    @property
    def is_quantification(self) -> bool:
        return self.category == "quantification" or "metrics" in self.tags or "quantification" in self.tags

    def variant(self, variant_id: str) -> Optional[QuestionVariant]:  # Lookup variant by id
        for item in self.variants:
            if item.id == variant_id:
                return item
        return None


def safe_extract(question: QuestionDefinition, answer: Answer) -> Dict[str, Any]:
    """Run the question's extractor, degrading to no data on any failure."""

    try:
        extracted = question.extract(answer)
    except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
        logger.warning("extractor failed question=%s error=%s", question.id, exc)
        return {}
    if not isinstance(extracted, dict):
        logger.warning("extractor returned non-mapping question=%s", question.id)
        return {}
    return extracted


__all__ = [
    "Eligibility",
    "Extractor",
    "FollowUpTrigger",
    "PERSONAS",
    "Priority",
    "QuestionDefinition",
    "QuestionOption",
    "QuestionVariant",
    "Tone",
    "safe_extract",
]

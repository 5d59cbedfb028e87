"""Tagged answer variants and the coercion of raw API payloads into them."""
from __future__ import annotations

import math
from typing import Annotated, Any, List, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

InputType = Literal["text", "single_choice", "multi_choice", "scale"]


class TextAnswer(BaseModel):  # Free text reply
    kind: Literal["text"] = "text"
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> str:
        return _as_text(value)


class ChoiceAnswer(BaseModel):  # Single option picked from a list
    kind: Literal["choice"] = "choice"
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> str:
        return _as_text(value)


class MultiChoiceAnswer(BaseModel):  # Several options picked from a list
    kind: Literal["multi_choice"] = "multi_choice"
    values: List[str] = Field(default_factory=list)

    @field_validator("values", mode="before")
    @classmethod
    def _coerce_values(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [part for part in value.split(",")]
        if not isinstance(value, (list, tuple, set)):
            value = [value]
        cleaned: List[str] = []
        for item in value:
            text = _as_text(item)
            if text and text not in cleaned:
                cleaned.append(text)
        return cleaned


class ScaleAnswer(BaseModel):  # Numeric reply on a bounded scale
    kind: Literal["scale"] = "scale"
    value: float | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            if isinstance(value, (int, float)):
                number = float(value)
            else:
                number = float(str(value).strip().replace(",", "."))
        except (OverflowError, ValueError):
            return None
        return number if math.isfinite(number) else None


Answer = Annotated[
    Union[TextAnswer, ChoiceAnswer, MultiChoiceAnswer, ScaleAnswer],
    Field(discriminator="kind"),
]

_ANSWER_ADAPTER: TypeAdapter[Any] = TypeAdapter(Answer)

_KIND_FOR_INPUT = {
    "text": "text",
    "single_choice": "choice",
    "multi_choice": "multi_choice",
    "scale": "scale",
}


def coerce_answer(raw: Any, input_type: InputType) -> Answer:
    """Build the answer variant matching ``input_type`` from a raw payload.

    Tagged payloads (dicts carrying ``kind``) are validated as-is when they
    match the question's input type; anything else is wrapped according to the
    input type. Shapes that cannot be coerced degrade to an empty answer.
    """

    kind = _KIND_FOR_INPUT[input_type]
    if isinstance(raw, (TextAnswer, ChoiceAnswer, MultiChoiceAnswer, ScaleAnswer)):
        if raw.kind == kind:
            return raw
        raw = answer_payload(raw)
    if isinstance(raw, dict) and raw.get("kind") == kind:
        return _ANSWER_ADAPTER.validate_python(raw)
    if isinstance(raw, dict):
        raw = raw.get("values", raw.get("value"))
    if kind == "multi_choice":
        return MultiChoiceAnswer(values=raw)
    if kind == "scale":
        return ScaleAnswer(value=raw)
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if kind == "choice" and raw else ", ".join(_as_text(item) for item in raw)
    if kind == "choice":
        return ChoiceAnswer(value=raw)
    return TextAnswer(value=raw)


def answer_text(answer: Answer) -> str:
    """Flatten any answer variant into display text."""

    if answer.kind == "multi_choice":
        return ", ".join(answer.values)
    if answer.kind == "scale":
        if answer.value is None:
            return ""
        return str(int(answer.value)) if answer.value.is_integer() else str(answer.value)
    return answer.value


def answer_values(answer: Answer) -> List[str]:
    """List the selected values of an answer (one entry for single replies)."""

    if answer.kind == "multi_choice":
        return list(answer.values)
    text = answer_text(answer)
    return [text] if text else []


def answer_payload(answer: Answer) -> Any:
    """Raw JSON-friendly value stored in transcripts."""

    if answer.kind == "multi_choice":
        return list(answer.values)
    return answer.value


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return ""
    return str(value).strip()


__all__ = [
    "Answer",
    "ChoiceAnswer",
    "InputType",
    "MultiChoiceAnswer",
    "ScaleAnswer",
    "TextAnswer",
    "answer_payload",
    "answer_text",
    "answer_values",
    "coerce_answer",
]

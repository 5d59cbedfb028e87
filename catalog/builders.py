from __future__ import annotations  # Compact constructors for catalog entries and their extractors

import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .answers import Answer, answer_text, answer_values
from .models import (
    Eligibility,
    Extractor,
    FollowUpTrigger,
    QuestionDefinition,
    QuestionOption,
    QuestionVariant,
    TriggerCheck,
)

_NUMBER = re.compile(r"\d+")


def nest(path: str, value: Any) -> Dict[str, Any]:  # Build nested dict from dotted path
    result: Dict[str, Any] = {}
    cursor = result
    parts = path.split(".")
    for part in parts[:-1]:
        cursor = cursor.setdefault(part, {})
    cursor[parts[-1]] = value
    return result


def set_text(path: str) -> Extractor:  # Store the answer text at ``path``
    def _extract(answer: Answer) -> Dict[str, Any]:
        text = answer_text(answer)
        return nest(path, text) if text else {}

    return _extract


def set_list(path: str) -> Extractor:  # Store selected values as a list
    def _extract(answer: Answer) -> Dict[str, Any]:
        values = answer_values(answer)
        return nest(path, values) if values else {}

    return _extract


def set_first_int(path: str) -> Extractor:  # Store the first number found in the answer
    def _extract(answer: Answer) -> Dict[str, Any]:
        match = _NUMBER.search(answer_text(answer))
        return nest(path, int(match.group(0))) if match else {}

    return _extract


def set_scale(path: str) -> Extractor:
    def _extract(answer: Answer) -> Dict[str, Any]:
        if answer.kind == "scale" and answer.value is not None:
            return nest(path, answer.value)
        match = _NUMBER.search(answer_text(answer))
        value = float(match.group(0)) if match else math.inf
        return nest(path, value) if math.isfinite(value) else {}

    return _extract


def map_value(path: str, mapping: Mapping[str, float], default: float) -> Extractor:  # Translate a bucket into a number
    def _extract(answer: Answer) -> Dict[str, Any]:
        text = answer_text(answer)
        if not text:
            return {}
        return nest(path, mapping.get(text, default))

    return _extract


def pain_flag(label: str, accept: Sequence[str] = ("yes",)) -> Extractor:  # Record a pain point label on affirmative answers
    def _extract(answer: Answer) -> Dict[str, Any]:
        text = answer_text(answer).lower()
        if any(token in text for token in accept):
            return nest("currentState.painPoints", [label])
        return {}

    return _extract


def shorter_than(limit: int) -> TriggerCheck:
    return lambda answer: 0 < len(answer_text(answer)) < limit


def longer_than(limit: int) -> TriggerCheck:
    return lambda answer: len(answer_text(answer)) > limit


def mentions(*words: str) -> TriggerCheck:
    lowered = [word.lower() for word in words]
    return lambda answer: any(word in answer_text(answer).lower() for word in lowered)


def picked(*values: str) -> TriggerCheck:
    wanted = set(values)
    return lambda answer: bool(wanted.intersection(answer_values(answer)))


def trigger(check: TriggerCheck, reason: str, template: str, *, opportunity: bool = False) -> FollowUpTrigger:
    return FollowUpTrigger(check=check, reason=reason, template=template, opportunity=opportunity)


def opts(*pairs: Tuple[str, str]) -> Tuple[QuestionOption, ...]:
    return tuple(QuestionOption(value=value, label=label) for value, label in pairs)


def variants(*entries: Tuple[str, ...], placeholder: Optional[str] = None) -> Tuple[QuestionVariant, ...]:
    """Build variants from ``(text, tone)`` pairs; ids run v1, v2, v3."""

    built: List[QuestionVariant] = []
    for index, entry in enumerate(entries, start=1):
        text, tone = entry if len(entry) == 2 else (entry[0], "conversational")
        built.append(QuestionVariant(id=f"v{index}", text=text, tone=tone, placeholder=placeholder))
    return tuple(built)


def question(
    qid: str,
    category: str,
    text: str | Tuple[QuestionVariant, ...],
    *,
    input_type: str,
    priority: str = "optional",
    options: Iterable[QuestionOption] = (),
    personas: Iterable[str] = ("all",),
    tags: Iterable[str] = (),
    requires_fields: Iterable[str] = (),
    requires_topics: Iterable[str] = (),
    skip_fields: Iterable[str] = (),
    skip_topics: Iterable[str] = (),
    placeholder: Optional[str] = None,
    extract: Optional[Extractor] = None,
    **extra: Any,
) -> QuestionDefinition:
    built_variants = text if isinstance(text, tuple) else variants((text, "conversational"), placeholder=placeholder)
    payload: Dict[str, Any] = {
        "id": qid,
        "category": category,
        "variants": built_variants,
        "input_type": input_type,
        "priority": priority,
        "options": tuple(options),
        "personas": tuple(personas),
        "tags": tuple(tags),
        "requires": Eligibility(fields=tuple(requires_fields), topics=tuple(requires_topics)),
        "skip_if": Eligibility(fields=tuple(skip_fields), topics=tuple(skip_topics)),
    }
    if extract is not None:
        payload["extract"] = extract
    payload.update(extra)
    return QuestionDefinition(**payload)


__all__ = [
    "longer_than",
    "map_value",
    "mentions",
    "nest",
    "opts",
    "pain_flag",
    "picked",
    "question",
    "set_first_int",
    "set_list",
    "set_scale",
    "set_text",
    "shorter_than",
    "trigger",
    "variants",
]

"""Lexical heuristics that flag weak signals in a single answer."""
from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence

from agents.types import WeakSignals
from catalog.models import QuestionDefinition

VAGUE_TERMS: Sequence[str] = (
    "sort of",
    "kind of",
    "some",
    "a bit",
    "sometimes",
    "more or less",
    "alguns",
    "meio que",
    "mais ou menos",
    "tipo",
    "um pouco",
    "às vezes",
)
HESITATION_TERMS: Sequence[str] = (
    "i think",
    "maybe",
    "not sure",
    "hard to say",
    "it depends",
    "acho que",
    "talvez",
    "não sei",
    "difícil dizer",
    "depende",
)
EMOTIONAL_TERMS: Sequence[str] = (
    "frustrated",
    "stressed",
    "desperate",
    "worried",
    "anxious",
    "frustrado",
    "estressado",
    "desesperado",
    "preocupado",
    "ansioso",
    "crítico",
)
PRESSURE_TERMS: Sequence[str] = (
    "urgent",
    "yesterday",
    "asap",
    "immediately",
    "priority",
    "urgente",
    "ontem",
    "imediato",
    "rápido",
    "prioridade",
)
MIN_METRIC_ANSWER_CHARS = 20

_DIGIT = re.compile(r"\d")


def contains_any(text: str, terms: Iterable[str]) -> bool:
    """Case-insensitive substring match against ``terms``."""

    lowered = text.lower()
    return any(term in lowered for term in terms)


def detect_weak_signals(answer: str, question: Optional[QuestionDefinition] = None) -> WeakSignals:
    """Flag weak signals in one answer. Pure; absence of a signal is the default."""

    text = answer or ""
    lacks_metrics = (
        question is not None
        and question.is_quantification
        and len(text) > MIN_METRIC_ANSWER_CHARS
        and not _DIGIT.search(text)
    )
    return WeakSignals(
        is_vague=contains_any(text, VAGUE_TERMS),
        has_contradiction=False,
        has_hesitation=contains_any(text, HESITATION_TERMS),
        lacks_metrics=lacks_metrics,
        has_emotional_language=contains_any(text, EMOTIONAL_TERMS),
        has_pressure_indicators=contains_any(text, PRESSURE_TERMS),
    )


def merge_weak_signals(current: WeakSignals, new: WeakSignals) -> WeakSignals:
    """OR-merge flags so a raised signal is never cleared within a session."""

    merged = {
        name: getattr(current, name) or getattr(new, name)
        for name in WeakSignals.model_fields
    }
    return WeakSignals(**merged)


__all__ = ["contains_any", "detect_weak_signals", "merge_weak_signals"]

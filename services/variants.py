"""Variant selection and usage tracking for deep interview questions."""
from __future__ import annotations

import datetime as dt
import random
from typing import List, Optional, Sequence

from catalog.models import QuestionDefinition, QuestionVariant
from graph.state import SessionMetadata, VariationUsage


def used_variants(metadata: SessionMetadata, question_id: str) -> List[str]:
    return [item.variation_id for item in metadata.variations_used if item.question_id == question_id]


def asked_question_ids(metadata: SessionMetadata) -> List[str]:
    """Question ids in the order they were first presented."""

    seen: List[str] = []
    for item in metadata.variations_used:
        if item.question_id not in seen:
            seen.append(item.question_id)
    return seen


def select_variant(
    question: QuestionDefinition,
    used: Sequence[str],
    *,
    rng: Optional[random.Random] = None,
) -> QuestionVariant:
    """First unused variant; when every variant was used, any one at random."""

    for variant in question.variants:
        if variant.id not in used:
            return variant
    chooser = rng or random
    return chooser.choice(list(question.variants))


def record_variant_usage(
    metadata: SessionMetadata,
    question_id: str,
    variation_id: str,
    *,
    now: Optional[dt.datetime] = None,
) -> bool:
    """Append a usage record unless the pair is already recorded. Returns True when added."""

    for item in metadata.variations_used:
        if item.question_id == question_id and item.variation_id == variation_id:
            return False
    metadata.variations_used.append(
        VariationUsage(
            question_id=question_id,
            variation_id=variation_id,
            timestamp=now or dt.datetime.now(dt.timezone.utc),
        )
    )
    return True


__all__ = ["asked_question_ids", "record_variant_usage", "select_variant", "used_variants"]

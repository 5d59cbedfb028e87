"""Free-text tagging against a controlled vocabulary.

``extract_tags`` is the engine entry point: it skips trivially short answers,
asks the model bound under ``TAGS_KEY`` and keeps only known tags. Every
failure degrades to an empty list.
"""
from __future__ import annotations

import logging
from textwrap import dedent
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from langchain_core.prompts import ChatPromptTemplate

from config import LlmRoute
from config.registry import TAGS_KEY, get_model
from config.settings import settings
from llm_gateway import parse_structured
from llm_gateway import runnable as llm_runnable

from .toolkit import bullet_list, clamp_text
from .types import TagResult


logger = logging.getLogger(__name__)

TAG_VOCABULARY: Dict[str, str] = {
    "manual_process": "Work done by hand that could be systematised",
    "missing_metric": "No measurement of an important outcome",
    "key_person_dependency": "Knowledge or execution concentrated in one person",
    "operational_risk": "Failure here would disrupt operations",
    "ai_automation_opportunity": "A repetitive decision or task an AI agent could take over",
    "ai_content_opportunity": "Content creation or summarisation that AI could assist",
    "bottleneck": "A step that limits throughput",
    "no_clear_owner": "Nobody is accountable for the process",
    "unhappy_customer": "Customer complaints or churn",
    "legacy_tech": "Outdated systems that are hard to change",
    "cultural_barrier": "Resistance to change in the team",
    "budget_constraint": "Money limits what can be done",
    "unstructured_data": "Information lives in free text, email or documents",
    "frequent_rework": "Work is often redone",
    "critical_spreadsheet": "A spreadsheet the business depends on",
    "manual_integration": "Data copied between systems by hand",
}
TAG_OPTIONS = {"temperature": 0.3, "max_tokens": 512}
BATCH_SIZE = 3

TAGGER_GUIDANCE = dedent(
    """
    You label interview answers with tags from a fixed vocabulary.
    Use only tags from the list. Return an empty list when none apply.
    Reply with JSON only: {{"tags": [...]}}.
    """
).strip()


class TagExtractorAgent:  # Wraps the tagger route behind a plain callable
    def __init__(self, route: LlmRoute) -> None:
        self._route = route
        self._prompt = ChatPromptTemplate.from_messages(
            [
                ("system", TAGGER_GUIDANCE),
                (
                    "human",
                    (
                        "Vocabulary:\n{vocabulary}\n\n"
                        "Question: {question}\n"
                        "Answer: {answer}\n\n"
                        "Return the applicable tags."
                    ),
                ),
            ]
        )
        self._chain = self._prompt | llm_runnable(self._route, TagResult, options=dict(TAG_OPTIONS))

    def __call__(self, *, question: str, answer: str, vocabulary: Sequence[str] = ()) -> TagResult:
        names = list(vocabulary) or list(TAG_VOCABULARY)
        return self._chain.invoke(
            {
                "vocabulary": bullet_list(f"{name}: {TAG_VOCABULARY.get(name, '')}" for name in names),
                "question": clamp_text(question, 300),
                "answer": clamp_text(answer, 1200),
            }
        )


def extract_tags(question_text: str, answer: str, *, session_id: Optional[str] = None) -> List[str]:
    """Tags for one answer, in vocabulary order of appearance in the reply."""

    if len((answer or "").strip()) < settings.TAG_MIN_ANSWER_CHARS:
        return []
    try:
        raw = get_model(TAGS_KEY)(question=question_text, answer=answer, vocabulary=list(TAG_VOCABULARY))
        result = _as_result(raw)
    except Exception as exc:  # noqa: BLE001
        logger.warning("tag extraction failed session=%s: %s", session_id or "-", exc)
        return []
    tags: List[str] = []
    for tag in result.tags:
        name = str(tag).strip().lower()
        if name in TAG_VOCABULARY and name not in tags:
            tags.append(name)
        elif name not in TAG_VOCABULARY:
            logger.debug("dropping unknown tag %s", name)
    return tags


def batch_extract_tags(
    items: Iterable[Tuple[str, str]],
    *,
    session_id: Optional[str] = None,
) -> List[List[str]]:
    """Tag ``(question, answer)`` pairs in chunks of ``BATCH_SIZE``; output order matches input."""

    pending = list(items)
    results: List[List[str]] = []
    for start in range(0, len(pending), BATCH_SIZE):
        chunk = pending[start : start + BATCH_SIZE]
        results.extend(extract_tags(question, answer, session_id=session_id) for question, answer in chunk)
    return results


def _as_result(raw: Any) -> TagResult:
    if isinstance(raw, TagResult):
        return raw
    if isinstance(raw, str):
        return parse_structured(TagResult, raw)
    return TagResult.model_validate(raw)


__all__ = ["TAG_VOCABULARY", "TagExtractorAgent", "batch_extract_tags", "extract_tags"]

"""Derive urgency, complexity and qualification insights from answers."""
from __future__ import annotations

import re
from typing import Any, List, Mapping, Sequence

from agents.types import Insights
from catalog.models import QuestionDefinition

TOOL_KEYWORDS: Sequence[str] = (
    "github copilot",
    "cursor",
    "chatgpt",
    "claude",
    "copilot",
    "jira",
    "github",
    "gitlab",
)
COMPETITOR_KEYWORDS: Sequence[str] = ("competitor", "rival", "losing to", "switched to")
PATTERN_KEYWORDS = {
    "manual-work": ("manual", "by hand", "spreadsheet", "excel"),
    "key-person-risk": ("only one person", "single person", "bus factor", "depends on"),
    "legacy-stack": ("legacy", "monolith", "old system"),
}

_DIGIT = re.compile(r"\d")
_WORD_AI = re.compile(r"\bai\b")


def update_insights(
    insights: Insights,
    question: QuestionDefinition,
    answer: str,
    record: Mapping[str, Any],
) -> Insights:
    """Return a new ``Insights`` reflecting the latest answer.

    ``record`` is the structured assessment data after the answer was merged.
    Boolean insights only ever switch on; urgency and complexity follow the
    most recent relevant answer.
    """

    text = (answer or "").lower()
    update: dict[str, Any] = {}

    if "urgency" in question.tags or "timeline" in question.id:
        if any(token in text for token in ("immediate", "critical", "yes-critical")):
            update["urgency"] = "critical"
        elif any(token in text for token in ("short", "yes-moderate", "high")):
            update["urgency"] = "high"

    if question.id == "team-size-dev":
        team_size = _dev_team_size(record)
        if team_size is not None:
            if team_size > 50:
                update["complexity"] = "complex"
            elif team_size > 15:
                update["complexity"] = "moderate"
            else:
                update["complexity"] = "simple"

    tools = _append_unique(insights.mentioned_tools, _tools_in(text))
    if tools != insights.mentioned_tools:
        update["mentioned_tools"] = tools
    if any(word in text for word in COMPETITOR_KEYWORDS) and answer.strip():
        update["mentioned_competitors"] = _append_unique(insights.mentioned_competitors, [answer.strip()[:80]])
    patterns = [name for name, words in PATTERN_KEYWORDS.items() if any(word in text for word in words)]
    if patterns:
        update["detected_patterns"] = _append_unique(insights.detected_patterns, patterns)

    if question.is_quantification and _DIGIT.search(text):
        update["has_quantifiable_impact"] = True
    if question.id == "budget-range" and text and text != "none":
        update["has_budget"] = True
    if question.id == "decision-authority" and "yes" in text:
        update["has_decision_authority"] = True

    if not update:
        return insights
    return insights.model_copy(update=update)


def _tools_in(text: str) -> List[str]:
    found = [tool for tool in TOOL_KEYWORDS if tool in text]
    if _WORD_AI.search(text):
        found.append("ai")
    return found


def _dev_team_size(record: Mapping[str, Any]) -> int | None:
    current = record.get("currentState")
    if not isinstance(current, Mapping):
        return None
    value = current.get("devTeamSize")
    return value if isinstance(value, int) else None


def _append_unique(existing: Sequence[str], items: Sequence[str]) -> List[str]:
    merged = list(existing)
    for item in items:
        if item not in merged:
            merged.append(item)
    return merged


__all__ = ["update_insights"]

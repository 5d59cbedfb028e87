"""Semantic topic groups used to avoid asking about the same concept twice."""
from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

TOPIC_GROUPS: Dict[str, Sequence[str]] = {
    "velocity": ("velocity", "speed", "cycle-time", "time-to-market", "deploy-frequency", "slow delivery"),
    "quality": ("quality", "bugs", "errors", "defects", "reliability", "bug rate"),
    "cost": ("cost", "budget", "price", "expense", "financial"),
    "team": ("team", "people", "hiring", "talent", "developers"),
    "tech-debt": ("tech-debt", "technical debt", "refactoring", "legacy"),
    "scalability": ("scalability", "scale", "performance"),
    "process": ("process", "workflow", "cicd", "devops", "automation"),
    "competition": ("competition", "competitor", "market"),
    "compliance": ("compliance", "security", "gdpr", "lgpd"),
    "customer": ("customer", "client", "churn", "customer-impact"),
}


def detect_topics_in_text(text: str) -> List[str]:
    """Topic groups mentioned anywhere in a free-text answer."""

    lowered = (text or "").lower()
    if not lowered:
        return []
    return [topic for topic, keywords in TOPIC_GROUPS.items() if any(word in lowered for word in keywords)]


def is_topic_covered(topic: str, covered: Iterable[str]) -> bool:
    """True when ``topic`` or any member of its semantic group is covered."""

    seen = set(covered)
    if topic in seen:
        return True
    for group, keywords in TOPIC_GROUPS.items():
        if topic == group or topic in keywords:
            if group in seen or any(word in seen for word in keywords):
                return True
    return False


__all__ = ["TOPIC_GROUPS", "detect_topics_in_text", "is_topic_covered"]

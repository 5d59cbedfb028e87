"""Keyword scoring that infers the respondent persona from free text."""
from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

PERSONA_TERMS: Dict[str, Sequence[str]] = {
    "engineering-tech": (
        "cto", "vp engineering", "tech lead", "engineering", "architect", "developer",
        "ci/cd", "deployment", "pipeline", "kubernetes", "microservices",
    ),
    "finance-ops": ("cfo", "coo", "finance", "controller", "roi", "budget", "operational", "savings"),
    "board-executive": ("ceo", "founder", "board", "president", "managing director", "c-level", "strategy"),
    "product-business": ("product", "cpo", "product manager", "time-to-market", "customer experience", "growth"),
    "it-devops": ("it manager", "infrastructure", "devops", "sre", "operations", "reliability", "monitoring"),
}
MIN_CONFIDENCE = 0.3


def detect_persona(text: str) -> Tuple[Optional[str], float]:
    """Return ``(persona, confidence)``; ``(None, 0.0)`` when the signal is too weak."""

    lowered = (text or "").lower()
    scores = {persona: sum(1 for term in terms if term in lowered) for persona, terms in PERSONA_TERMS.items()}
    total = sum(scores.values())
    if total == 0:
        return None, 0.0
    persona = max(scores, key=lambda key: scores[key])
    confidence = scores[persona] / total
    if confidence < MIN_CONFIDENCE:
        return None, 0.0
    return persona, round(confidence, 2)


__all__ = ["detect_persona"]

"""Persistence helpers for routing decisions and tag extractions."""
from __future__ import annotations

import datetime as dt
import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .sqlite import get_conn


class RoutingDecisionPayload(BaseModel):
    session_id: str
    question_id: str
    source: str
    confidence: float
    recommended_action: str
    candidates_considered: int = 0
    reasoning: str = ""
    latency_ms: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TagExtractionPayload(BaseModel):
    session_id: str
    question_id: str
    tags: List[str]


def insert_routing_decision(**data: Any) -> int:
    """Insert a routing decision row and return its primary key."""

    payload = RoutingDecisionPayload(**data)
    timestamp = dt.datetime.now(dt.timezone.utc).isoformat()
    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute(
            """INSERT INTO routing_decisions
               (timestamp, session_id, question_id, source, confidence,
                recommended_action, candidates_considered, reasoning, latency_ms, metadata)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                timestamp,
                payload.session_id,
                payload.question_id,
                payload.source,
                payload.confidence,
                payload.recommended_action,
                payload.candidates_considered,
                payload.reasoning,
                payload.latency_ms,
                json.dumps(payload.metadata),
            ),
        )
        return int(cur.lastrowid)


def insert_tag_extraction(**data: Any) -> int:
    payload = TagExtractionPayload(**data)
    timestamp = dt.datetime.now(dt.timezone.utc).isoformat()
    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute(
            """INSERT INTO tag_extractions (timestamp, session_id, question_id, tags)
               VALUES (?, ?, ?, ?)""",
            (timestamp, payload.session_id, payload.question_id, json.dumps(payload.tags)),
        )
        return int(cur.lastrowid)


def recent_routing_decisions(limit: int = 20) -> List[Dict[str, Any]]:
    """Newest routing decisions first."""

    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute(
            """SELECT timestamp, session_id, question_id, source, confidence,
                      recommended_action, candidates_considered, reasoning, latency_ms
               FROM routing_decisions ORDER BY id DESC LIMIT ?""",
            (int(limit),),
        )
        columns = [item[0] for item in cur.description]
        return [dict(zip(columns, row)) for row in cur.fetchall()]


__all__ = [
    "RoutingDecisionPayload",
    "TagExtractionPayload",
    "insert_routing_decision",
    "insert_tag_extraction",
    "recent_routing_decisions",
]

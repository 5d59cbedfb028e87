"""Row-level persistence for assessment session snapshots."""
from __future__ import annotations

import datetime as dt
from typing import List, Optional, Tuple

from .sqlite import get_conn


def upsert_session(
    session_id: str,
    kind: str,
    payload: str,
    *,
    created_at: dt.datetime,
    updated_at: dt.datetime,
    expires_at: dt.datetime,
) -> None:
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO assessment_sessions
               (session_id, kind, payload, created_at, updated_at, expires_at)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(session_id) DO UPDATE SET
                 kind = excluded.kind,
                 payload = excluded.payload,
                 updated_at = excluded.updated_at,
                 expires_at = excluded.expires_at""",
            (
                session_id,
                kind,
                payload,
                created_at.isoformat(),
                updated_at.isoformat(),
                expires_at.isoformat(),
            ),
        )


def fetch_session(session_id: str) -> Optional[Tuple[str, str, str]]:
    """Return ``(kind, payload, expires_at)`` or ``None``."""

    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute(
            "SELECT kind, payload, expires_at FROM assessment_sessions WHERE session_id = ?",
            (session_id,),
        )
        row = cur.fetchone()
    if row is None:
        return None
    return str(row[0]), str(row[1]), str(row[2])


def touch_session(session_id: str, *, updated_at: dt.datetime, expires_at: dt.datetime) -> None:
    with get_conn() as conn:
        conn.execute(
            "UPDATE assessment_sessions SET updated_at = ?, expires_at = ? WHERE session_id = ?",
            (updated_at.isoformat(), expires_at.isoformat(), session_id),
        )


def delete_session(session_id: str) -> bool:
    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute("DELETE FROM assessment_sessions WHERE session_id = ?", (session_id,))
        return cur.rowcount > 0


def delete_expired(now: dt.datetime) -> int:
    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute("DELETE FROM assessment_sessions WHERE expires_at <= ?", (now.isoformat(),))
        return int(cur.rowcount)


def list_session_rows(now: dt.datetime) -> List[Tuple[str, str, str, str]]:
    """Active sessions as ``(session_id, kind, updated_at, expires_at)``."""

    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute(
            """SELECT session_id, kind, updated_at, expires_at FROM assessment_sessions
               WHERE expires_at > ? ORDER BY updated_at DESC""",
            (now.isoformat(),),
        )
        return [tuple(str(v) for v in row) for row in cur.fetchall()]  # type: ignore[misc]


__all__ = [
    "delete_expired",
    "delete_session",
    "fetch_session",
    "list_session_rows",
    "touch_session",
    "upsert_session",
]

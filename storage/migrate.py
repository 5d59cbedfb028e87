"""Schema for session snapshots, routing decisions and tag extractions."""
from __future__ import annotations

from typing import Optional, Tuple

from .sqlite import get_conn

SCHEMA_VERSION = 1

STATEMENTS: Tuple[str, ...] = (
    """
CREATE TABLE IF NOT EXISTS assessment_sessions (
  session_id TEXT PRIMARY KEY,
  kind TEXT NOT NULL,
  payload TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  expires_at TEXT NOT NULL
)""",
    "CREATE INDEX IF NOT EXISTS idx_assessment_sessions_expires ON assessment_sessions (expires_at)",
    """
CREATE TABLE IF NOT EXISTS routing_decisions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  timestamp TEXT NOT NULL,
  session_id TEXT NOT NULL,
  question_id TEXT NOT NULL,
  source TEXT NOT NULL,
  confidence REAL NOT NULL,
  recommended_action TEXT NOT NULL,
  candidates_considered INTEGER NOT NULL,
  reasoning TEXT NOT NULL,
  latency_ms INTEGER,
  metadata TEXT
)""",
    "CREATE INDEX IF NOT EXISTS idx_routing_decisions_session ON routing_decisions (session_id)",
    """
CREATE TABLE IF NOT EXISTS tag_extractions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  timestamp TEXT NOT NULL,
  session_id TEXT NOT NULL,
  question_id TEXT NOT NULL,
  tags TEXT NOT NULL
)""",
    "CREATE INDEX IF NOT EXISTS idx_tag_extractions_session ON tag_extractions (session_id)",
)


def migrate(db_path: Optional[str] = None) -> int:
    """Create missing tables and indexes; returns the schema version now in place."""

    with get_conn(db_path) as conn:
        for statement in STATEMENTS:
            conn.execute(statement)
        conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
    return SCHEMA_VERSION


def schema_version(db_path: Optional[str] = None) -> int:
    with get_conn(db_path) as conn:
        return int(conn.execute("PRAGMA user_version").fetchone()[0])


if __name__ == "__main__":
    migrate()

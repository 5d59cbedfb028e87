"""Lightweight CLI helpers for inspecting assessment telemetry tables."""
from __future__ import annotations

import argparse
import datetime as dt

from storage.decisions import recent_routing_decisions
from storage.migrate import migrate
from storage.sessions import delete_expired, list_session_rows


def tail_decisions(limit: int = 20) -> None:
    for row in recent_routing_decisions(limit):
        print(
            f"[{row['timestamp']}] {row['session_id']} -> {row['question_id']} "
            f"source={row['source']} confidence={row['confidence']:.2f} "
            f"action={row['recommended_action']} candidates={row['candidates_considered']}"
        )


def show_sessions() -> None:
    now = dt.datetime.now(dt.timezone.utc)
    rows = list_session_rows(now)
    for session_id, kind, updated_at, expires_at in rows:
        print(f"{session_id} kind={kind} updated={updated_at} expires={expires_at}")
    print(f"{len(rows)} active session(s)")


def purge_expired() -> None:
    removed = delete_expired(dt.datetime.now(dt.timezone.utc))
    print(f"removed {removed} expired session(s)")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-decisions", type=int, help="Show the latest routing decisions")
    parser.add_argument("--sessions", action="store_true", help="List active persisted sessions")
    parser.add_argument("--purge-expired", action="store_true", help="Delete expired session rows")
    args = parser.parse_args()

    migrate()
    if args.tail_decisions:
        tail_decisions(args.tail_decisions)
    if args.sessions:
        show_sessions()
    if args.purge_expired:
        purge_expired()


if __name__ == "__main__":
    main()

from __future__ import annotations

import datetime as dt
import sys

from observability import admin_cli
from storage.decisions import insert_routing_decision
from storage.sessions import upsert_session


def test_tail_decisions_prints_latest(capsys):
    insert_routing_decision(
        session_id="s1",
        question_id="company-name",
        source="model",
        confidence=0.85,
        recommended_action="ask_essential",
        candidates_considered=8,
    )
    admin_cli.tail_decisions(5)
    out = capsys.readouterr().out
    assert "s1 -> company-name source=model confidence=0.85" in out


def test_sessions_and_purge(monkeypatch, capsys):
    now = dt.datetime.now(dt.timezone.utc)
    upsert_session("live", "OrchestratorState", "{}", created_at=now, updated_at=now, expires_at=now + dt.timedelta(hours=1))
    upsert_session("stale", "OrchestratorState", "{}", created_at=now, updated_at=now, expires_at=now - dt.timedelta(hours=1))

    monkeypatch.setattr(sys, "argv", ["assessment-admin", "--sessions", "--purge-expired"])
    admin_cli.main()
    out = capsys.readouterr().out
    assert "live kind=OrchestratorState" in out
    assert "stale" not in out.splitlines()[0]
    assert "1 active session(s)" in out
    assert "removed 1 expired session(s)" in out

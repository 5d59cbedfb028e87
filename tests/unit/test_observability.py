from types import SimpleNamespace

import pytest

from observability.logger import describe, human_log_path, session_mode
from observability.tracing import span


def test_session_mode_from_id_prefix():
    assert session_mode("deep-3f2a") == "deep"
    assert session_mode("9b1c-quick") == "quick"


def test_human_log_path():
    assert human_log_path("logs/assessment.log") == "logs/assessment-human.log"
    assert human_log_path("events") == "events-human"


def test_describe_keeps_summary_fields_only():
    line = describe(
        {
            "mode": "deep",
            "session_id": "deep-1",
            "kind": "decision",
            "question_id": "snap-001",
            "source": "fallback_error",
            "confidence": None,
            "prompt": "long text",
        }
    )
    assert line == "[deep] session=deep-1 kind=decision question_id=snap-001 source=fallback_error"


def test_span_records_success_and_failure():
    state = SimpleNamespace(events=[])
    with span(state, "collect"):
        pass
    with pytest.raises(RuntimeError):
        with span(state, "tagging"):
            raise RuntimeError("boom")
    assert [(item["span"], item["ok"]) for item in state.events] == [("collect", True), ("tagging", False)]
    assert all(item["ms"] >= 0 for item in state.events)

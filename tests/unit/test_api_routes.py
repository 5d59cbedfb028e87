from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api import routes
from catalog import FIRST_QUESTION_ID
from config.routes import OrchestratorSettings
from graph.build import DeepInterview
from graph.nodes import decide_next


@pytest.fixture
def client(fake_models):
    routes.configure()
    app = FastAPI()
    app.include_router(routes.router)
    app.include_router(routes.deep_router)
    return TestClient(app)


def _start(client, **body):
    res = client.post("/api/assessments", json=body)
    assert res.status_code == 200, res.text
    return res.json()


def test_quick_flow(client):
    started = _start(client)
    session_id = started["sessionId"]
    question = started["nextQuestion"]
    assert started["routing"]["source"] == "model"
    assert started["questionsRemaining"] == 15

    res = client.post(
        "/api/assessments/answer",
        json={"sessionId": session_id, "questionId": question["id"], "answer": "Acme", "questionText": question["text"]},
    )
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["nextQuestion"]["id"] != question["id"]
    assert body["questionsRemaining"] == 14

    peek = client.post("/api/assessments/next-question", json={"sessionId": session_id})
    assert peek.status_code == 200
    assert peek.json()["nextQuestion"]["id"] == body["nextQuestion"]["id"]

    status = client.get(f"/api/assessments/{session_id}")
    assert status.status_code == 200
    assert status.json()["summary"]["questionsAsked"] == 1

    done = client.post("/api/assessments/complete", json={"sessionId": session_id})
    assert done.status_code == 200
    assert done.json()["context"]["finished"] is True

    late = client.post("/api/assessments/answer", json={"sessionId": session_id, "questionId": body["nextQuestion"]["id"], "answer": "Acme"})
    assert late.status_code == 409


def test_quick_start_with_persona(client):
    started = _start(client, persona="finance-ops", partialData={"companyInfo": {"name": "Acme"}})
    status = client.get(f"/api/assessments/{started['sessionId']}").json()
    assert status["context"]["persona"] == "finance-ops"
    assert status["context"]["personaConfidence"] == 0.8

    res = client.post("/api/assessments", json={"persona": "astronaut"})
    assert res.status_code == 400


def test_quick_validation_errors(client):
    session_id = _start(client)["sessionId"]
    missing = client.post("/api/assessments/answer", json={"sessionId": session_id, "answer": "x"})
    assert missing.status_code == 400
    assert missing.json()["detail"] == "questionId is required."

    no_answer = client.post("/api/assessments/answer", json={"sessionId": session_id, "questionId": "company-name"})
    assert no_answer.status_code == 400

    unknown = client.post("/api/assessments/answer", json={"sessionId": "nope", "questionId": "company-name", "answer": "x"})
    assert unknown.status_code == 404

    bad_question = client.post("/api/assessments/answer", json={"sessionId": session_id, "questionId": "no-such-question", "answer": "x"})
    assert bad_question.status_code == 404

    assert client.get("/api/assessments/nope").status_code == 404
    assert client.post("/api/assessments/complete", json={}).status_code == 400


def test_concurrent_turn_is_rejected(client):
    session_id = _start(client)["sessionId"]
    with routes.runtime().locks.hold(session_id):
        res = client.post("/api/assessments/answer", json={"sessionId": session_id, "questionId": "company-name", "answer": "Acme"})
    assert res.status_code == 409
    after = client.post("/api/assessments/answer", json={"sessionId": session_id, "questionId": "company-name", "answer": "Acme"})
    assert after.status_code == 200
    assert len(routes.runtime().locks) == 0


def test_unknown_sessions_leave_no_guard_behind(client):
    for n in range(3):
        res = client.post("/api/assessments/next-question", json={"sessionId": f"ghost-{n}"})
        assert res.status_code == 404
    assert len(routes.runtime().locks) == 0


def test_deep_flow(client):
    started = client.post("/api/deep-assessments", json={"user_id": "u-1", "company_name": "Acme"})
    assert started.status_code == 200, started.text
    body = started.json()
    session_id = body["sessionId"]
    assert body["first_question"]["id"] == FIRST_QUESTION_ID
    assert body["session_metadata"]["questions_asked"] == 1

    res = client.post(
        "/api/deep-assessments/answer",
        json={"sessionId": session_id, "question_id": FIRST_QUESTION_ID, "variation_id": "v1", "answer": "yes"},
    )
    assert res.status_code == 200, res.text
    turn = res.json()
    assert turn["action"] == "ask_next"
    assert turn["next_question"]["id"] == "snap-001-company-name"
    assert turn["decision_source"] == "fallback_error"
    assert any(item.get("span") == "collect" for item in turn["events"])

    status = client.get(f"/api/deep-assessments/{session_id}").json()
    assert status["questionsAnswered"] == 1
    assert status["currentQuestion"]["id"] == "snap-001-company-name"

    done = client.post("/api/deep-assessments/complete", json={"sessionId": session_id})
    assert done.status_code == 200
    report = done.json()
    assert report["summary"]["end_reason"] == "completed_by_user"
    assert report["report"]["respondent"]["consent"] is True

    late = client.post(
        "/api/deep-assessments/answer",
        json={"sessionId": session_id, "question_id": "snap-001-company-name", "variation_id": "v1", "answer": "Acme"},
    )
    assert late.status_code == 409


def test_deep_start_without_body(client):
    res = client.post("/api/deep-assessments")
    assert res.status_code == 200
    assert res.json()["first_question"]["id"] == FIRST_QUESTION_ID


def test_deep_validation_errors(client):
    session_id = client.post("/api/deep-assessments", json={}).json()["sessionId"]
    missing = client.post("/api/deep-assessments/answer", json={"sessionId": session_id, "question_id": FIRST_QUESTION_ID, "answer": "yes"})
    assert missing.status_code == 400

    unknown_session = client.post(
        "/api/deep-assessments/answer",
        json={"sessionId": "nope", "question_id": FIRST_QUESTION_ID, "variation_id": "v1", "answer": "yes"},
    )
    assert unknown_session.status_code == 404

    unknown_variation = client.post(
        "/api/deep-assessments/answer",
        json={"sessionId": session_id, "question_id": FIRST_QUESTION_ID, "variation_id": "v9", "answer": "yes"},
    )
    assert unknown_variation.status_code == 404

    assert client.get("/api/deep-assessments/nope").status_code == 404
    assert client.post("/api/deep-assessments/complete", json={"sessionId": "nope"}).status_code == 404


def test_deep_budget_ends_through_api(client):
    routes.configure(interview=DeepInterview(cfg=OrchestratorSettings(max_questions_total=2)))
    session_id = client.post("/api/deep-assessments", json={}).json()["sessionId"]
    first = client.post(
        "/api/deep-assessments/answer",
        json={"sessionId": session_id, "question_id": FIRST_QUESTION_ID, "variation_id": "v1", "answer": "yes"},
    ).json()
    pending = first["next_question"]
    second = client.post(
        "/api/deep-assessments/answer",
        json={"sessionId": session_id, "question_id": pending["id"], "variation_id": pending["variation_id"], "answer": "Acme"},
    ).json()
    assert second["action"] == "end"
    assert second["next_question"] is None
    status = client.get(f"/api/deep-assessments/{session_id}").json()
    assert status["ended"] is True
    assert status["endReason"] == "max_questions_reached"


def test_deep_answer_for_other_question_conflicts(client):
    session_id = client.post("/api/deep-assessments", json={}).json()["sessionId"]
    res = client.post(
        "/api/deep-assessments/answer",
        json={"sessionId": session_id, "question_id": "snap-001-company-name", "variation_id": "v1", "answer": "Acme"},
    )
    assert res.status_code == 409
    status = client.get(f"/api/deep-assessments/{session_id}").json()
    assert status["questionsAnswered"] == 0
    assert status["currentQuestion"]["id"] == FIRST_QUESTION_ID


def test_deep_oversized_scale_answer_is_ignored(client):
    rt = routes.runtime()
    session_id = client.post("/api/deep-assessments", json={}).json()["sessionId"]
    state = rt.deep_store.get(session_id)
    question = rt.interview.catalog.get("snap-006-digital-maturity")
    decide_next.present(state, question, question.variants[0])
    rt.deep_store.put(session_id, state)

    res = client.post(
        "/api/deep-assessments/answer",
        json={"sessionId": session_id, "question_id": question.id, "variation_id": "v1", "answer": 10**400},
    )
    assert res.status_code == 200, res.text
    assert res.json()["action"] == "ask_next"

from __future__ import annotations

import pytest

from flow_manager.context import build_initial_context, context_summary
from flow_manager.router import AdaptiveRouter
from flow_manager.turns import SessionFinishedError, UnknownQuestionError, advance, complete, next_question, start_session


def _auto_answer(question):
    if question.input_type == "multi_choice":
        return [question.options[0].value]
    if question.input_type == "single_choice":
        return question.options[0].value
    if question.input_type == "scale":
        return 3
    if question.id == "contact-info":
        return "cto@acme.io"
    return "Acme Payments, we are frustrated with slow releases"


def test_start_routes_first_question(fake_models):
    context, result = start_session(AdaptiveRouter())
    assert result.next_question is not None
    assert context.questions_remaining == 15
    assert not context.finished


def test_persona_confidence_at_start():
    assert build_initial_context(persona="finance-ops").persona_confidence == 0.6
    with_data = build_initial_context(persona="finance-ops", partial_data={"companyInfo": {"name": "Acme"}})
    assert with_data.persona_confidence == 0.8
    assert with_data.completion.essential_fields_collected == 1
    with pytest.raises(ValueError):
        build_initial_context(persona="astronaut")


def test_advance_never_mutates_input(fake_models):
    router = AdaptiveRouter()
    context, _ = start_session(router)
    updated, _ = advance(router, context, "company-name", "Acme")
    assert updated.assessment_data["companyInfo"]["name"] == "Acme"
    assert context.assessment_data == {}
    assert context.questions_asked == []
    assert updated.questions_remaining == 14


def test_duplicate_answer_is_ignored(fake_models):
    router = AdaptiveRouter()
    context, _ = start_session(router)
    once, _ = advance(router, context, "company-name", "Acme")
    twice, result = advance(router, once, "company-name", "Other name")
    assert twice.questions_answered_ids == ["company-name"]
    assert len(twice.questions_asked) == 1
    assert twice.assessment_data["companyInfo"]["name"] == "Acme"
    assert result.next_question.id != "company-name"


def test_unknown_question_and_finished_session(fake_models):
    router = AdaptiveRouter()
    context, _ = start_session(router)
    with pytest.raises(UnknownQuestionError):
        advance(router, context, "no-such-question", "x")
    finished = complete(context)
    assert finished.finished
    assert finished.finish_reason == "completed_by_user"
    with pytest.raises(SessionFinishedError):
        advance(router, finished, "company-name", "Acme")
    _, result = next_question(router, finished)
    assert result.should_finish


def test_role_answer_detects_persona(fake_models):
    router = AdaptiveRouter()
    context, _ = start_session(router)
    updated, _ = advance(router, context, "user-role", "I am the CTO and run engineering")
    assert updated.persona == "engineering-tech"
    assert updated.persona_confidence == 1.0
    assert updated.assessment_data["contactInfo"]["title"].startswith("I am the CTO")


def test_full_session_finishes_without_repeats(fake_models):
    router = AdaptiveRouter()
    context, result = start_session(router)
    seen = []
    while not result.should_finish:
        question = router.catalog.get(result.next_question.id)
        assert question.id not in seen
        seen.append(question.id)
        context, result = advance(router, context, question.id, _auto_answer(question))
    assert context.finished
    assert len(seen) <= 18
    assert len(set(context.questions_answered_ids)) == len(context.questions_answered_ids)
    summary = context_summary(context)
    assert summary["questionsAsked"] == len(seen)
    assert summary["completeness"] == context.completion.completeness_score

from __future__ import annotations

import json

import pytest

from catalog import FIRST_QUESTION_ID
from config.registry import NEXT_STEP_KEY, TAGS_KEY, bind_model
from config.routes import OrchestratorSettings
from graph import DeepInterview, InterviewEndedError, QuestionNotPendingError, UnknownQuestionError, UnknownVariationError
from graph.nodes import decide_next
from graph.nodes.collect import structure_problem_stories
from services.priority_areas import available_questions
from storage.sqlite import get_conn


def _answer_for(pending):
    if pending.input_type == "multi_choice":
        return [pending.options[0]["value"]]
    if pending.input_type == "single_choice":
        return pending.options[0]["value"]
    if pending.input_type == "scale":
        return 7
    return "Acme Logistics, a freight company with around three hundred staff."


def _at(interview, state, question_id):
    question = interview.catalog.get(question_id)
    decide_next.present(state, question, question.variants[0])
    return state


def test_start_presents_consent():
    state = DeepInterview().start(user_id="u-1", company_name="Acme", sector="retail")
    assert state.current_question.id == FIRST_QUESTION_ID
    assert state.current_question.variation_id == "v1"
    assert state.session_metadata.questions_asked == 1
    assert state.session_metadata.user_id == "u-1"
    assert state.company_snapshot.company_name == "Acme"
    assert state.phase == "collecting"


def test_consent_without_models_uses_fallback():
    interview = DeepInterview()
    state = interview.start()
    outcome = interview.submit(state, question_id=FIRST_QUESTION_ID, variation_id="v1", answer="yes")

    assert outcome.action == "ask_next"
    assert outcome.next_question.id == "snap-001-company-name"
    assert outcome.decision_source == "fallback_unbound"
    updated = outcome.state
    assert updated.respondent["consent"] is True
    assert updated.session_metadata.questions_asked == 2
    assert updated.session_metadata.questions_answered == 1
    assert updated.session_metadata.llm_calls == 0
    assert updated.transcript[0].question_id == FIRST_QUESTION_ID

    assert state.transcript == []
    assert state.session_metadata.questions_asked == 1
    assert state.current_question.id == FIRST_QUESTION_ID


def test_unknown_question_and_variation():
    interview = DeepInterview()
    state = interview.start()
    with pytest.raises(UnknownQuestionError):
        interview.submit(state, question_id="nope", variation_id="v1", answer="x")
    with pytest.raises(UnknownVariationError):
        interview.submit(state, question_id=FIRST_QUESTION_ID, variation_id="v9", answer="yes")


def test_answer_for_another_question_is_rejected_and_session_keeps_moving():
    interview = DeepInterview()
    state = interview.start()
    with pytest.raises(QuestionNotPendingError):
        interview.submit(state, question_id="snap-001-company-name", variation_id="v1", answer="Acme")
    assert state.transcript == []
    assert state.current_question.id == FIRST_QUESTION_ID

    seen = []
    for _ in range(6):
        pending = state.current_question
        outcome = interview.submit(state, question_id=pending.id, variation_id=pending.variation_id, answer=_answer_for(pending))
        assert outcome.decision_source != "duplicate"
        seen.append(pending.id)
        state = outcome.state
    assert len(set(seen)) == len(seen)
    assert state.session_metadata.questions_answered == 6


def test_duplicate_answer_returns_current_question():
    interview = DeepInterview()
    first = interview.submit(interview.start(), question_id=FIRST_QUESTION_ID, variation_id="v1", answer="yes")
    again = interview.submit(first.state, question_id=FIRST_QUESTION_ID, variation_id="v1", answer="no")
    assert again.decision_source == "duplicate"
    assert again.next_question.id == "snap-001-company-name"
    assert again.state is first.state
    assert again.state.respondent["consent"] is True


def test_model_pick_is_presented(make_recorder):
    decider = make_recorder({"action": "ask_next", "question_id": "snap-002-sector", "variation_id": "v2", "reasoning": "sector next"})
    bind_model(NEXT_STEP_KEY, decider)
    interview = DeepInterview()
    outcome = interview.submit(interview.start(), question_id=FIRST_QUESTION_ID, variation_id="v1", answer="yes")

    assert outcome.next_question.id == "snap-002-sector"
    assert outcome.next_question.variation_id == "v2"
    assert outcome.decision_source == "model"
    assert outcome.reasoning == "sector next"
    assert outcome.state.session_metadata.llm_calls == 1
    call = decider.calls[0]
    assert call["options"] == {"temperature": 0.7, "max_tokens": 400}
    assert "AVAILABLE QUESTIONS" in call["prompt"]


def test_unavailable_pick_falls_back(make_recorder):
    bind_model(NEXT_STEP_KEY, make_recorder({"action": "ask_next", "question_id": FIRST_QUESTION_ID, "reasoning": "again"}))
    interview = DeepInterview()
    outcome = interview.submit(interview.start(), question_id=FIRST_QUESTION_ID, variation_id="v1", answer="yes")
    assert outcome.decision_source == "fallback_invalid"
    assert outcome.next_question.id == "snap-001-company-name"


def test_decision_failure_falls_back(make_recorder):
    bind_model(NEXT_STEP_KEY, make_recorder(RuntimeError("offline")))
    interview = DeepInterview()
    outcome = interview.submit(interview.start(), question_id=FIRST_QUESTION_ID, variation_id="v1", answer="yes")
    assert outcome.decision_source == "fallback_error"
    assert outcome.state.session_metadata.llm_calls == 1


def test_early_end_request_is_ignored(make_recorder):
    bind_model(NEXT_STEP_KEY, make_recorder({"action": "end", "reasoning": "enough"}))
    interview = DeepInterview()
    outcome = interview.submit(interview.start(), question_id=FIRST_QUESTION_ID, variation_id="v1", answer="yes")
    assert outcome.action == "ask_next"
    assert outcome.decision_source == "fallback_invalid"
    assert not outcome.state.ended


def test_end_request_honored_after_enough_questions(make_recorder):
    bind_model(NEXT_STEP_KEY, make_recorder({"action": "end", "reasoning": "priority areas explored"}))
    interview = DeepInterview()
    state = interview.start()
    state.expertise.levels = {"finance-ops": "deep"}
    state.problems_and_opportunities.problem_areas = ["finance-ops"]
    state.session_metadata.questions_asked = 15

    outcome = interview.submit(state, question_id=FIRST_QUESTION_ID, variation_id="v1", answer="yes")
    assert outcome.action == "end"
    assert outcome.next_question is None
    assert outcome.decision_source == "model"
    assert outcome.state.end_reason == "model_decided_end"
    assert outcome.state.session_metadata.priority_areas == ["finance-ops"]
    with pytest.raises(InterviewEndedError):
        interview.submit(outcome.state, question_id="snap-001-company-name", variation_id="v1", answer="Acme")


def test_shallow_answer_gets_followup_then_resumes():
    interview = DeepInterview()
    state = _at(interview, interview.start(), "mkt-001-process")

    outcome = interview.submit(state, question_id="mkt-001-process", variation_id="v1", answer="We call them")
    pending = outcome.next_question
    assert pending.id == "followup-mkt-001-process-1"
    assert pending.is_followup
    assert outcome.decision_source == "followup"
    assert outcome.state.session_metadata.followup_counts == {"mkt-001-process": 1}
    assert "mkt-001-process" in outcome.state.deep_dives["marketing-sales"].answers

    detail = "Reps phone every inbound lead within a day and log the call in the CRM."
    resumed = interview.submit(outcome.state, question_id=pending.id, variation_id="v1", answer=detail)
    assert not resumed.next_question.is_followup
    assert resumed.state.transcript[-1].source == "generated"
    assert resumed.state.deep_dives["marketing-sales"].answers[pending.id] == detail


def test_followup_variation_must_match():
    interview = DeepInterview()
    state = _at(interview, interview.start(), "mkt-001-process")
    outcome = interview.submit(state, question_id="mkt-001-process", variation_id="v1", answer="We call them")
    with pytest.raises(UnknownVariationError):
        interview.submit(outcome.state, question_id=outcome.next_question.id, variation_id="v2", answer="More detail")


def test_text_answers_are_tagged_and_persisted(make_recorder):
    tagger = make_recorder({"tags": ["manual_process", "not_a_tag"]})
    bind_model(TAGS_KEY, tagger)
    interview = DeepInterview()
    state = _at(interview, interview.start(), "mkt-001-process")

    answer = "Leads arrive by email and the team qualifies them by phone."
    outcome = interview.submit(state, question_id="mkt-001-process", variation_id="v1", answer=answer)
    entry = next(item for item in outcome.state.transcript if item.question_id == "mkt-001-process")
    assert entry.tags == ["manual_process"]
    assert outcome.state.deep_dives["marketing-sales"].tags == ["manual_process"]

    with get_conn() as conn:
        rows = conn.execute("SELECT session_id, question_id, tags FROM tag_extractions").fetchall()
    assert rows == [(state.session_id, "mkt-001-process", json.dumps(["manual_process"]))]


def test_choice_answers_skip_tagging(make_recorder):
    tagger = make_recorder({"tags": ["manual_process"]})
    bind_model(TAGS_KEY, tagger)
    interview = DeepInterview()
    interview.submit(interview.start(), question_id=FIRST_QUESTION_ID, variation_id="v1", answer="yes")
    assert tagger.calls == []


def test_question_budget_ends_interview():
    interview = DeepInterview(cfg=OrchestratorSettings(max_questions_total=3))
    state = interview.start()
    outcome = None
    for _ in range(5):
        pending = state.current_question
        outcome = interview.submit(state, question_id=pending.id, variation_id=pending.variation_id, answer=_answer_for(pending))
        state = outcome.state
        if outcome.action == "end":
            break
    assert outcome.action == "end"
    assert state.end_reason == "max_questions_reached"
    assert state.session_metadata.questions_asked == 3
    assert state.session_metadata.questions_answered == 3
    assert state.current_question is None


def test_turn_records_node_spans():
    interview = DeepInterview()
    outcome = interview.submit(interview.start(), question_id=FIRST_QUESTION_ID, variation_id="v1", answer="yes")
    spans = [item["span"] for item in outcome.state.events if "span" in item]
    assert spans == ["collect", "decide_next", "tagging"]
    assert {"node": "collect", "question_id": FIRST_QUESTION_ID, "phase": "deciding_next"} in outcome.state.events


def test_problem_stories_are_structured():
    raw = "Our billing system is critical and keeps failing.\n\nHiring takes months because approvals bounce between managers for no clear reason."
    stories = structure_problem_stories(raw, ["finance-ops"])
    assert [item.impact for item in stories] == ["high", "medium"]
    assert len(stories[1].title) == 60
    assert stories[0].areas_related == ["finance-ops"]


def test_prompt_lists_bounded_candidates():
    interview = DeepInterview()
    state = interview.start()
    available = available_questions(state, interview.catalog, interview.cfg)
    prompt = decide_next.build_next_step_prompt(state, available, interview.catalog, interview.cfg)
    assert f"... and {len(available) - decide_next.PROMPT_QUESTION_LIMIT} more" in prompt
    assert f"Already asked: {FIRST_QUESTION_ID}" in prompt
    assert prompt.rstrip().endswith('"reasoning": "..."}')

from __future__ import annotations

import pytest

from catalog import Catalog, coerce_answer, default_catalog
from catalog.builders import question
from config.registry import SELECTOR_KEY, bind_model
from flow_manager.completeness import completion_for
from flow_manager.context import apply_answer, build_initial_context
from flow_manager.models import AskedQuestion, ConversationContext
from flow_manager.router import AdaptiveRouter, build_selector_prompt, format_question
from storage.decisions import recent_routing_decisions

ESSENTIALS = {
    "companyInfo": {"name": "Acme", "industry": "fintech"},
    "currentState": {"painPoints": ["Slow development velocity"]},
    "goals": {"primaryGoals": ["increase-velocity"], "budgetRange": "100k-500k"},
}


def _router() -> AdaptiveRouter:
    return AdaptiveRouter()


def test_fresh_context_gets_an_essential_question(fake_models):
    router = _router()
    result = router.get_next_question(build_initial_context())
    assert not result.should_finish
    assert router.catalog.get(result.next_question.id).priority == "essential"
    assert result.routing.source == "model"
    assert result.routing.confidence == pytest.approx(0.85)
    selector = fake_models[SELECTOR_KEY]
    assert selector.calls[0]["options"] == {"temperature": 0.3, "max_tokens": 300}
    assert recent_routing_decisions(1)[0]["question_id"] == result.next_question.id
    assert recent_routing_decisions(1)[0]["latency_ms"] >= 0


def test_all_essentials_after_ten_questions_finishes(fake_models):
    context = ConversationContext(
        assessment_data=ESSENTIALS,
        questions_asked=[AskedQuestion(question_id=f"q-{index}", text="Q?") for index in range(10)],
    )
    result = _router().get_next_question(context)
    assert result.should_finish
    assert result.finish_reason == "all_essential_covered"
    assert result.next_question is None
    assert fake_models[SELECTOR_KEY].calls == []


def test_vague_quantification_answer_sets_lacks_metrics():
    catalog = default_catalog()
    quant = catalog.get("cycle-time-days")
    context = build_initial_context()
    answer = coerce_answer("it takes quite a while honestly", quant.input_type)
    updated = apply_answer(context, quant, answer)
    assert updated.weak_signals.lacks_metrics
    assert not context.weak_signals.lacks_metrics
    assert "cycle-time" in updated.metrics_collected
    assert "quantification" in updated.topics_covered


def test_two_eligible_questions_pick_essential_without_model(make_recorder):
    optional = question("misc-optional", "misc", "Optional?", input_type="text")
    essential = question("misc-essential", "misc", "Essential?", input_type="text", priority="essential")
    selector = make_recorder({"questionId": "misc-optional", "reasoning": "should not be asked"})
    bind_model(SELECTOR_KEY, selector)

    router = AdaptiveRouter(Catalog([optional, essential]))
    result = router.get_next_question(build_initial_context())
    assert result.next_question.id == "misc-essential"
    assert result.routing.source == "direct"
    assert result.routing.confidence == 1.0
    assert result.routing.reasoning == "Only viable option remaining"
    assert selector.calls == []
    assert recent_routing_decisions(1)[0]["latency_ms"] is None


def test_unknown_id_falls_back_with_low_confidence(make_recorder):
    bind_model(SELECTOR_KEY, make_recorder({"questionId": "does-not-exist", "reasoning": "made up"}))
    router = _router()
    context = build_initial_context()
    result = router.get_next_question(context)
    assert result.routing.source == "fallback_invalid"
    assert result.routing.confidence <= 0.5
    assert router.catalog.get(result.next_question.id).priority == "essential"


def test_unparseable_reply_falls_back(make_recorder):
    bind_model(SELECTOR_KEY, make_recorder("I would ask about the budget"))
    result = _router().get_next_question(build_initial_context())
    assert result.routing.source == "fallback_invalid"
    assert result.routing.confidence == pytest.approx(0.5)


def test_selector_failure_falls_back(make_recorder):
    bind_model(SELECTOR_KEY, make_recorder(TimeoutError("slow")))
    result = _router().get_next_question(build_initial_context())
    assert result.routing.source == "fallback_error"
    assert result.routing.confidence == pytest.approx(0.7)


def test_unbound_selector_falls_back():
    result = _router().get_next_question(build_initial_context())
    assert result.routing.source == "fallback_error"
    assert result.next_question is not None


def test_fenced_reply_is_accepted(make_recorder):
    reply = '```json\n{"questionId": "company-name", "reasoning": "start with the basics"}\n```'
    bind_model(SELECTOR_KEY, make_recorder(reply))
    result = _router().get_next_question(build_initial_context())
    assert result.next_question.id == "company-name"
    assert result.routing.source == "model"
    assert result.routing.reasoning == "start with the basics"


def test_selector_prompt_is_bounded():
    router = _router()
    context = build_initial_context()
    candidates = list(router.catalog)
    prompt = build_selector_prompt(context, candidates, "ask_essential", ["companyInfo.name", "goals.budgetRange", "x"], total_eligible=len(candidates))
    assert "PRIORITY: Ask essential field question first" in prompt
    assert prompt.count("  Category: ") == 8
    assert f"... and {len(candidates) - 8} more" in prompt
    assert "- x" not in prompt
    assert prompt.strip().endswith('"reasoning": "<one sentence>"}')


def test_format_question_uses_requested_variant():
    formatted = format_question(default_catalog().get("company-industry-v2"))
    assert formatted.input_type == "single_choice"
    assert formatted.options[0].value == "fintech"
    assert formatted.variation_id is None


def test_selector_prompt_reports_recomputed_completeness(fake_models):
    context = ConversationContext(assessment_data=ESSENTIALS)
    expected = completion_for(context).completeness_score
    assert context.completion.completeness_score == 0
    assert expected > 0

    result = _router().get_next_question(context)
    assert result.routing.source == "model"
    assert f"- Completeness: {expected}%" in fake_models[SELECTOR_KEY].calls[0]["prompt"]

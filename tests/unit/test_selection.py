from __future__ import annotations

from agents.types import WeakSignals
from catalog import default_catalog
from flow_manager.models import ConversationContext
from flow_manager.selection import (
    eligible_questions,
    filter_for_action,
    is_eligible,
    priority_score,
    rank_questions,
    select_rule_based,
)

CATALOG = default_catalog()


def test_answered_questions_are_never_eligible():
    question = CATALOG.get("company-name")
    assert is_eligible(question, ConversationContext())
    assert not is_eligible(question, ConversationContext(questions_answered_ids=["company-name"]))


def test_persona_restricts_targeted_questions():
    context = ConversationContext(persona="finance-ops", persona_confidence=0.6)
    assert not is_eligible(CATALOG.get("tech-stack-primary"), context)
    assert is_eligible(CATALOG.get("company-name"), context)
    assert is_eligible(CATALOG.get("company-revenue-range"), context)


def test_skip_rules_on_fields_and_topics():
    filled = ConversationContext(assessment_data={"companyInfo": {"name": "Acme"}})
    assert not is_eligible(CATALOG.get("company-name"), filled)
    role_known = ConversationContext(topics_covered=["role"])
    assert not is_eligible(CATALOG.get("user-role"), role_known)


def test_required_topics_use_semantic_groups():
    budget_status = CATALOG.get("budget-status")
    assert not is_eligible(budget_status, ConversationContext())
    assert is_eligible(budget_status, ConversationContext(topics_covered=["budget"]))
    bugs = CATALOG.get("bugs-per-month")
    assert is_eligible(bugs, ConversationContext(topics_covered=["quality"]))


def test_eligible_questions_keep_catalog_order():
    context = ConversationContext(questions_answered_ids=["company-industry-v2"])
    eligible = eligible_questions(CATALOG, context)
    assert eligible[0].id == "company-stage-v2"
    assert all(item.id != "company-industry-v2" for item in eligible)


def test_missing_metrics_boost_quantification():
    question = CATALOG.get("deploy-frequency")
    plain = ConversationContext()
    flagged = ConversationContext(weak_signals=WeakSignals(lacks_metrics=True))
    assert priority_score(question, flagged) - priority_score(question, plain) == 50


def test_ranking_prefers_essentials():
    context = ConversationContext()
    ranked = rank_questions(eligible_questions(CATALOG, context), context)
    assert ranked[0].priority == "essential"
    assert ranked[0].id == "company-industry-v2"


def test_filter_for_action_falls_back_to_everything():
    questions = [CATALOG.get("company-name"), CATALOG.get("user-role")]
    assert filter_for_action(questions, "ask_quantification") == questions
    assert filter_for_action(questions, "ask_essential") == [CATALOG.get("company-name")]


def test_rule_based_selection():
    assert select_rule_based([], ConversationContext()) is None
    context = ConversationContext()
    chosen = select_rule_based(eligible_questions(CATALOG, context), context)
    assert chosen.priority == "essential"

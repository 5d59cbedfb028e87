from __future__ import annotations

import datetime as dt
import random

from catalog import TextAnswer, deep_catalog
from config.routes import OrchestratorSettings
from graph.state import DeepDive, OrchestratorState
from services.followups import followup_id, is_shallow, plan_followup
from services.priority_areas import available_questions, compute_priority_areas, fallback_question, should_end
from services.reporting import block_for, build_report, complexity_score, maturity_score, session_status
from services.variants import asked_question_ids, record_variant_usage, select_variant, used_variants

CATALOG = deep_catalog()
CFG = OrchestratorSettings()


def test_variant_selection_prefers_unused():
    question = CATALOG.get("mkt-001-process")
    assert select_variant(question, []).id == "v1"
    assert select_variant(question, ["v1"]).id == "v2"
    all_used = [item.id for item in question.variants]
    assert select_variant(question, all_used, rng=random.Random(3)).id in all_used


def test_variant_usage_is_recorded_once_per_pair():
    meta = OrchestratorState().session_metadata
    assert record_variant_usage(meta, "snap-001-company-name", "v1")
    assert not record_variant_usage(meta, "snap-001-company-name", "v1")
    assert record_variant_usage(meta, "snap-001-company-name", "v2")
    record_variant_usage(meta, "snap-002-sector", "v1")
    assert used_variants(meta, "snap-001-company-name") == ["v1", "v2"]
    assert asked_question_ids(meta) == ["snap-001-company-name", "snap-002-sector"]


def test_shallow_answer_plans_followup():
    state = OrchestratorState()
    question = CATALOG.get("mkt-001-process")
    answer = TextAnswer(value="We call them")
    assert is_shallow(question, answer)
    planned = plan_followup(state, question, answer, CFG)
    assert planned.id == followup_id("mkt-001-process", 1) == "followup-mkt-001-process-1"
    assert planned.is_followup
    assert planned.source == "generated"
    assert planned.area == "marketing-sales"
    assert planned.variation_id == "v1"


def test_detailed_answer_without_opportunity_gets_no_followup():
    question = CATALOG.get("mkt-001-process")
    answer = TextAnswer(value="Leads arrive by email and the team qualifies them by phone.")
    assert not is_shallow(question, answer)
    assert plan_followup(OrchestratorState(), question, answer, CFG) is None


def test_opportunity_trigger_opens_gate_for_detailed_answers():
    question = CATALOG.get("prob-003-problem-stories")
    story = "Last quarter our biggest client left because invoices were wrong for three months in a row and nobody noticed it in time."
    planned = plan_followup(OrchestratorState(), question, TextAnswer(value=story), CFG)
    assert planned is not None
    assert planned.area is None


def test_followup_cap_per_question():
    state = OrchestratorState()
    state.session_metadata.followup_counts["mkt-001-process"] = CFG.max_followups_per_question
    assert plan_followup(state, CATALOG.get("mkt-001-process"), TextAnswer(value="We call"), CFG) is None


def _with_expertise(state: OrchestratorState) -> OrchestratorState:
    state.expertise.areas = ["tech-engineering", "hr"]
    state.expertise.levels = {"tech-engineering": "deep", "hr": "basic", "finance-ops": "intermediate"}
    state.problems_and_opportunities.problem_areas = ["tech-engineering", "hr", "finance-ops"]
    return state


def test_priority_areas_need_depth_and_a_problem():
    assert compute_priority_areas(_with_expertise(OrchestratorState())) == ["tech-engineering", "finance-ops"]
    assert compute_priority_areas(OrchestratorState()) == []


def test_should_end_rules():
    state = OrchestratorState()
    state.session_metadata.questions_asked = CFG.max_questions_total
    assert should_end(state, CFG) == (True, "max_questions_reached")

    state.session_metadata.questions_asked = 16
    assert should_end(state, CFG) == (True, "priority_areas_covered")

    state.session_metadata.questions_asked = 10
    assert should_end(state, CFG) == (False, None)

    state.session_metadata.questions_asked = 16
    state.session_metadata.priority_areas = ["tech-engineering"]
    assert should_end(state, CFG) == (False, None)
    state.deep_dives["tech-engineering"] = DeepDive(answers={f"q{index}": "a" for index in range(5)})
    assert should_end(state, CFG) == (True, "priority_areas_covered")


def test_available_questions_respect_area_cap():
    state = OrchestratorState()
    record_variant_usage(state.session_metadata, "tech-001-dev-process", "v1")
    capped = OrchestratorSettings(max_questions_per_area=1)
    ids = [item.id for item in available_questions(state, CATALOG, capped)]
    assert "tech-001-dev-process" not in ids
    assert not any(item.startswith("tech-") for item in ids)
    assert any(item.startswith("mkt-") for item in ids)


def test_fallback_order():
    state = OrchestratorState()
    everything = list(CATALOG)
    assert fallback_question(state, everything).id == "intro-001-consent"

    later = [item for item in CATALOG if item.block in ("deep_dive", "automation_focus", "closing")]
    assert fallback_question(state, later).id == "auto-001-repetitive-tasks"

    state.session_metadata.priority_areas = ["finance-ops"]
    assert fallback_question(state, later).id == "finops-001-close"

    closing = [item for item in CATALOG if item.block == "closing"]
    assert fallback_question(state, closing).id == "close-001-single-fix"
    assert fallback_question(state, []) is None


def test_scores_and_blocks():
    assert complexity_score(DeepDive(tags=["legacy_tech", "manual_integration"])) == 8
    assert maturity_score(DeepDive(tags=["manual_process", "critical_spreadsheet", "missing_metric"])) == 1
    assert maturity_score(DeepDive(tags=["ai_automation_opportunity"])) == 6
    assert block_for("followup-mkt-001-process-1") == "followup"
    assert block_for("mkt-001-process") == "deep_dive"
    assert block_for("something-else") == "unknown"


def test_build_report():
    started = dt.datetime(2024, 5, 1, 9, 0, tzinfo=dt.timezone.utc)
    state = OrchestratorState()
    meta = state.session_metadata
    meta.started_at = started
    meta.questions_asked = 15
    meta.questions_answered = 14
    record_variant_usage(meta, "intro-001-consent", "v1")
    record_variant_usage(meta, "finops-001-close", "v2")
    state.respondent = {"consent": True}
    state.deep_dives["finance-ops"] = DeepDive(
        answers={"finops-001-close": "Mostly in spreadsheets"},
        tags=["ai_automation_opportunity", "manual_process"],
    )

    report = build_report(state, now=started + dt.timedelta(minutes=10))
    assert report["sessionId"] == meta.session_id
    assert report["respondent"]["consent"] is True
    dive = report["deep_dives"][0]
    assert dive["area"] == "finance-ops"
    assert "Automate the manual process in finance-ops" in dive["automation_opportunities"]
    assert dive["maturity_score"] == 4
    detected = report["automation_opportunities"]["detected_opportunities"]
    assert len(detected) == 1 and detected[0]["area"] == "finance-ops"
    metadata = report["metadata"]
    assert metadata["duration_seconds"] == 600
    assert metadata["completeness_percentage"] == 50
    assert metadata["blocks_completed"] == ["intro", "deep_dive"]
    assert metadata["tag_frequency"] == {"ai_automation_opportunity": 1, "manual_process": 1}
    assert metadata["unique_questions_asked"] == 2


def test_session_status_snapshot():
    status = session_status(OrchestratorState())
    assert status["phase"] == "collecting"
    assert status["ended"] is False
    assert status["currentQuestion"] is None

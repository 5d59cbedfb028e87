from __future__ import annotations

from agents.tag_extractor import TAG_VOCABULARY, batch_extract_tags, extract_tags
from config.registry import TAGS_KEY, bind_model


def test_short_answers_skip_the_model(make_recorder):
    tagger = make_recorder({"tags": ["bottleneck"]})
    bind_model(TAGS_KEY, tagger)
    assert extract_tags("Any blockers?", "no") == []
    assert tagger.calls == []


def test_unknown_tags_dropped_and_duplicates_removed(make_recorder):
    tagger = make_recorder({"tags": ["bottleneck", "Unknown", "bottleneck", "MANUAL_PROCESS"]})
    bind_model(TAGS_KEY, tagger)
    tags = extract_tags("Where does it get stuck?", "Approvals wait on one manager for days")
    assert tags == ["bottleneck", "manual_process"]
    call = tagger.calls[0]
    assert call["question"] == "Where does it get stuck?"
    assert call["vocabulary"] == list(TAG_VOCABULARY)


def test_string_replies_are_parsed(make_recorder):
    bind_model(TAGS_KEY, make_recorder('Tags: {"tags": ["legacy_tech"]}'))
    assert extract_tags("Stack?", "A twenty year old ERP nobody can change") == ["legacy_tech"]


def test_failures_degrade_to_no_tags(make_recorder):
    assert extract_tags("Stack?", "A twenty year old ERP nobody can change") == []
    bind_model(TAGS_KEY, make_recorder(ConnectionError("down")))
    assert extract_tags("Stack?", "A twenty year old ERP nobody can change") == []
    bind_model(TAGS_KEY, make_recorder("no json at all"))
    assert extract_tags("Stack?", "A twenty year old ERP nobody can change") == []


def test_batch_keeps_input_order(make_recorder):
    def _reply(answer, **_):
        return {"tags": ["critical_spreadsheet"] if "spreadsheet" in answer else []}

    bind_model(TAGS_KEY, make_recorder(_reply))
    items = [
        ("Q1", "Everything lives in a spreadsheet"),
        ("Q2", "We use a proper ERP for this"),
        ("Q3", "ok"),
        ("Q4", "The spreadsheet is emailed around weekly"),
    ]
    assert batch_extract_tags(items, session_id="s1") == [["critical_spreadsheet"], [], [], ["critical_spreadsheet"]]

from __future__ import annotations

import pytest

from catalog import (
    CatalogError,
    ChoiceAnswer,
    FIRST_QUESTION_ID,
    MultiChoiceAnswer,
    ScaleAnswer,
    StaticProvider,
    TextAnswer,
    answer_text,
    coerce_answer,
    deep_catalog,
    default_catalog,
    safe_extract,
)
from catalog.builders import question, variants


def test_coerce_answer_matches_input_type():
    assert coerce_answer("  hello ", "text") == TextAnswer(value="hello")
    assert coerce_answer(["x", "y"], "single_choice") == ChoiceAnswer(value="x")
    assert coerce_answer("a, b,a", "multi_choice").values == ["a", "b"]
    assert coerce_answer("7", "scale") == ScaleAnswer(value=7.0)


def test_coerce_answer_degrades_malformed_payloads():
    assert coerce_answer("abc", "scale").value is None
    assert coerce_answer(True, "scale").value is None
    assert coerce_answer({"unexpected": 1}, "text").value == ""
    assert coerce_answer(None, "multi_choice").values == []
    assert coerce_answer(10**400, "scale").value is None
    assert coerce_answer("1e999", "scale").value is None
    assert coerce_answer({"kind": "scale", "value": float("nan")}, "scale").value is None


def test_tagged_payload_is_validated_as_is():
    answer = coerce_answer({"kind": "choice", "value": "yes"}, "single_choice")
    assert isinstance(answer, ChoiceAnswer)
    assert answer.value == "yes"


def test_answer_text_flattens_variants():
    assert answer_text(ScaleAnswer(value=3.0)) == "3"
    assert answer_text(ScaleAnswer(value=2.5)) == "2.5"
    assert answer_text(MultiChoiceAnswer(values=["a", "b"])) == "a, b"


def test_provider_questions_extend_catalog():
    extra = question("custom-q", "custom", "Anything else?", input_type="text")
    base = default_catalog()
    extended = default_catalog([StaticProvider([extra])])
    assert len(extended) == len(base) + 1
    assert "custom-q" in extended
    assert extended.get("custom-q").text == "Anything else?"


def test_duplicate_ids_are_rejected():
    clash = question("company-name", "company", "Name again?", input_type="text")
    with pytest.raises(CatalogError):
        default_catalog([StaticProvider([clash])])


def test_question_requires_a_variant():
    with pytest.raises(ValueError):
        question("empty", "misc", (), input_type="text")


def test_variants_get_sequential_ids():
    built = variants(("First", "formal"), ("Second", "casual"))
    assert [item.id for item in built] == ["v1", "v2"]


def test_failing_extractor_yields_no_data():
    def _boom(_):
        raise KeyError("missing")

    broken = question("broken", "misc", "Broken?", input_type="text", extract=_boom)
    assert safe_extract(broken, TextAnswer(value="x")) == {}


def test_quantification_flag():
    catalog = default_catalog()
    assert catalog.get("cycle-time-days").is_quantification
    assert not catalog.get("company-name").is_quantification


def test_deep_catalog_opens_with_consent():
    catalog = deep_catalog()
    first = catalog.get(FIRST_QUESTION_ID)
    assert first is not None
    assert first.variants[0].id == "v1"
    assert first.block == "intro"
    assert all(len(item.variants) >= 1 for item in catalog)

from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest

from agents.question_selector import QuestionSelectorAgent
from agents.types import SelectorChoice, TagResult
from config.routes import LlmRoute
from llm_gateway import LlmGatewayError, LlmOutputError, chat, parse_structured


ROUTE = LlmRoute(name="test", base_url="http://llm.local", endpoint="/v1/chat", model="m", timeout_s=1, max_retries=1)


class FakeResponse:
    def __init__(self, status_code: int, payload: Any) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    @property
    def text(self) -> str:
        return json.dumps(self._payload) if not isinstance(self._payload, Exception) else ""


class FakeClient:
    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _content(text: str) -> FakeResponse:
    return FakeResponse(200, {"choices": [{"message": {"content": text}}]})


def test_parse_structured_tolerates_fences_and_prose():
    fenced = '```json\n{"questionId": "a", "reasoning": "r"}\n```'
    assert parse_structured(SelectorChoice, fenced).question_id == "a"
    prose = 'Sure! Here you go: {"questionId": "b", "reasoning": "r"} Let me know.'
    assert parse_structured(SelectorChoice, prose).question_id == "b"


def test_parse_structured_rejects_partial_replies():
    with pytest.raises(ValueError):
        parse_structured(SelectorChoice, "no json here")
    with pytest.raises(ValueError):
        parse_structured(SelectorChoice, '{"reasoning": "missing id"}')
    with pytest.raises(ValueError):
        parse_structured(SelectorChoice, '{"questionId": "  ", "reasoning": "blank"}')


def test_chat_returns_validated_model():
    client = FakeClient([_content('{"tags": ["bottleneck"]}')])
    result = chat([{"role": "user", "content": "tag this"}], TagResult, cfg=ROUTE, client=client, options={"temperature": 0.3})
    assert result.tags == ["bottleneck"]
    sent = client.requests[0]
    assert sent["url"] == "http://llm.local/v1/chat"
    assert sent["json"]["temperature"] == 0.3
    assert sent["json"]["messages"][0]["role"] == "system"
    assert sent["timeout"] == 1


def test_chat_retries_with_hint_after_invalid_reply():
    client = FakeClient([_content("not json"), _content('{"tags": []}')])
    result = chat([{"role": "user", "content": "tag this"}], TagResult, cfg=ROUTE, client=client)
    assert result.tags == []
    retry_messages = client.requests[1]["json"]["messages"]
    assert retry_messages[-1]["content"].startswith("The previous reply failed validation.")


def test_chat_gives_up_after_retries():
    route = ROUTE.model_copy(update={"max_retries": 0})
    client = FakeClient([_content('{"wrong": true}')])
    with pytest.raises(LlmOutputError):
        chat([{"role": "user", "content": "x"}], TagResult, cfg=route, client=client)


def test_transport_and_status_failures():
    with pytest.raises(LlmGatewayError):
        chat([{"role": "user", "content": "x"}], TagResult, cfg=ROUTE, client=FakeClient([TimeoutError("slow")]))
    with pytest.raises(LlmGatewayError):
        chat([{"role": "user", "content": "x"}], TagResult, cfg=ROUTE, client=FakeClient([FakeResponse(503, {})]))
    with pytest.raises(LlmOutputError):
        chat([{"role": "user", "content": "x"}], TagResult, cfg=ROUTE, client=FakeClient([FakeResponse(200, ValueError("bad"))]))


def test_selector_agent_renders_prompt_chain(monkeypatch):
    seen: Dict[str, Any] = {}

    def fake_chat(messages, schema, *, cfg, client=None, options=None):
        seen.update(messages=list(messages), schema=schema, options=options, route=cfg.name)
        return SelectorChoice(question_id="company-name", reasoning="basics first")

    monkeypatch.setattr("llm_gateway.llm_gateway.chat", fake_chat)
    agent = QuestionSelectorAgent(ROUTE, {"temperature": 0.3, "max_tokens": 300})
    choice = agent(prompt="CANDIDATES:\n[company-name] (essential)", options={"max_tokens": 200})
    assert choice.question_id == "company-name"
    assert seen["schema"] is SelectorChoice
    assert seen["options"] == {"temperature": 0.3, "max_tokens": 200}
    assert [item["role"] for item in seen["messages"]] == ["system", "user"]
    assert "[company-name]" in seen["messages"][1]["content"]

"""Structured chat completions against the configured LLM routes.

Every reply is parsed into a pydantic model. Invalid replies are retried with
a short corrective hint up to ``route.max_retries`` times; transport and HTTP
failures are never retried and surface as ``LlmGatewayError`` so the agents
can fall back to their deterministic choice.
"""
from __future__ import annotations

import json
import logging
import os
import re
import threading
from contextlib import nullcontext
from typing import Any, ContextManager, Dict, List, Optional, Protocol, Sequence, Type, TypeVar

import httpx
from langchain_core.messages import BaseMessage
from langchain_core.runnables import RunnableLambda
from pydantic import BaseModel, ValidationError

from config.routes import LlmRoute

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

Message = Dict[str, str]

_FENCE = re.compile(r"^```[\w-]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)
_ROLE_NAMES = {"human": "user", "ai": "assistant"}
_HINT_LIMIT = 200

_route_locks: Dict[str, threading.Lock] = {}
_route_locks_guard = threading.Lock()


class HttpResponse(Protocol):
    @property
    def status_code(self) -> int: ...

    @property
    def text(self) -> str: ...

    def json(self) -> Any: ...


class HttpClient(Protocol):
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> HttpResponse: ...


class LlmGatewayError(RuntimeError):
    """The route could not be reached or answered with an error status."""


class LlmOutputError(LlmGatewayError):
    """The route answered, but not with something the schema accepts."""


def call(
    task: str,
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> T:
    """Single-prompt shorthand for :func:`chat`."""

    return chat([{"role": "user", "content": task}], schema, cfg=cfg, client=client, options=options)


def chat(
    messages: Sequence[Message],
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> T:
    """Send ``messages`` to ``cfg`` and validate the reply against ``schema``.

    Raises:
        LlmGatewayError: transport failure or an HTTP status of 400 and up.
        LlmOutputError: the payload was not JSON, or every attempt produced a
            reply that ``schema`` rejected.
    """

    conversation = _conversation(messages, schema, cfg.enforce_json)
    with _serialized(cfg):
        return _exchange(conversation, schema, cfg, client, options or {})


def runnable(route: LlmRoute, schema: Type[T], *, options: Optional[Dict[str, Any]] = None) -> RunnableLambda:
    """Wrap ``route`` so it can close a ``prompt | model`` chain."""

    def _invoke(prompt: Any) -> T:
        return chat(_as_messages(prompt), schema, cfg=route, options=options)

    return RunnableLambda(_invoke)


def parse_structured(schema: Type[T], content: str) -> T:
    """Parse the first JSON object in ``content`` strictly against ``schema``.

    Markdown fences and prose around the object are tolerated; anything that
    is not a complete, schema-valid object raises ``ValueError`` or
    ``ValidationError``. There is no partial recovery.
    """

    text = content.strip()
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()
    start = text.find("{")
    if start < 0:
        raise ValueError("no JSON object in LLM reply")
    obj, _ = json.JSONDecoder().raw_decode(text, start)
    if not isinstance(obj, dict):
        raise ValueError("LLM reply is not a JSON object")
    return schema.model_validate(obj)


def _exchange(
    conversation: List[Message],
    schema: Type[T],
    route: LlmRoute,
    client: Optional[HttpClient],
    options: Dict[str, Any],
) -> T:
    attempts = route.max_retries + 1
    logger.info("llm start route=%s model=%s attempts=%d ask=%s", route.name, route.model, attempts, _headline(conversation))
    failure: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        sent = conversation if failure is None else conversation + [_retry_hint(failure, route.enforce_json)]
        reply = _fetch(route, _payload(route, sent, options), client)
        try:
            result = parse_structured(schema, reply)
        except (ValueError, ValidationError) as exc:
            logger.warning("llm reply rejected route=%s attempt=%d: %s", route.name, attempt, exc)
            failure = exc
            continue
        logger.info("llm done route=%s attempt=%d", route.name, attempt)
        return result
    raise LlmOutputError(f"route '{route.name}' gave no valid reply in {attempts} attempt(s)") from failure


def _conversation(messages: Sequence[Message], schema: Type[BaseModel], enforce_json: bool) -> List[Message]:
    conversation: List[Message] = []
    if enforce_json:
        shape = json.dumps(schema.model_json_schema(by_alias=True), indent=2)
        conversation.append({"role": "system", "content": "Reply with a single JSON object matching this schema:\n" + shape})
    for item in messages:
        if not isinstance(item, dict):
            raise TypeError("chat messages must be dicts with role and content")
        role = str(item.get("role", "")).strip()
        if not role:
            raise ValueError("chat message has no role")
        conversation.append({"role": role, "content": str(item.get("content", ""))})
    return conversation


def _payload(route: LlmRoute, messages: List[Message], options: Dict[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"model": route.model, "messages": messages, **options}
    if route.response_format:
        payload["response_format"] = {"type": route.response_format}
    return payload


def _headers(route: LlmRoute) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    api_key = os.getenv(route.api_key_env) if route.api_key_env else None
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    headers.update(route.extra_headers)
    return headers


def _fetch(route: LlmRoute, payload: Dict[str, Any], client: Optional[HttpClient]) -> str:
    url = f"{route.base_url}{route.endpoint}"
    headers = _headers(route)
    try:
        if client is None:
            with httpx.Client() as http:
                response = http.post(url, json=payload, headers=headers, timeout=route.timeout_s)
        else:
            response = client.post(url, json=payload, headers=headers, timeout=route.timeout_s)
    except Exception as exc:
        logger.error("llm transport failure route=%s: %s", route.name, exc)
        raise LlmGatewayError(f"route '{route.name}' is unreachable") from exc

    if response.status_code >= 400:
        logger.error("llm status route=%s status=%s", route.name, response.status_code)
        raise LlmGatewayError(f"route '{route.name}' returned status {response.status_code}")
    try:
        data = response.json()
    except ValueError as exc:
        raise LlmOutputError(f"route '{route.name}' returned a non-JSON payload") from exc
    return _reply_text(data)


def _reply_text(data: Any) -> str:
    # OpenAI-style choices first, then a bare {"content": ...} body.
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return message["content"]
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmOutputError("LLM payload has no message content")


def _retry_hint(failure: Exception, enforce_json: bool) -> Message:
    reason = str(failure).strip().splitlines()[0] if str(failure).strip() else ""
    if len(reason) > _HINT_LIMIT:
        reason = reason[: _HINT_LIMIT - 3] + "..."
    hint = "The previous reply failed validation."
    if reason:
        hint += f" Reason: {reason}."
    hint += " Return a single JSON object that matches the schema." if enforce_json else " Follow the requested format precisely."
    return {"role": "system", "content": hint}


def _headline(messages: Sequence[Message], width: int = 120) -> str:
    for message in reversed(messages):
        text = message.get("content", "").strip()
        if text:
            line = text.splitlines()[0]
            return line if len(line) <= width else line[: width - 3] + "..."
    return ""


def _serialized(route: LlmRoute) -> ContextManager[Any]:
    """One request at a time for routes marked ``sequential`` (local models)."""

    if not route.sequential:
        return nullcontext()
    with _route_locks_guard:
        return _route_locks.setdefault(route.name or f"{route.base_url}{route.endpoint}", threading.Lock())


def _as_messages(prompt: Any) -> List[Message]:
    if hasattr(prompt, "to_messages"):
        prompt = prompt.to_messages()
    items = prompt if isinstance(prompt, (list, tuple)) else [prompt]
    messages: List[Message] = []
    for item in items:
        if isinstance(item, dict):
            messages.append(item)
        elif isinstance(item, BaseMessage):
            content = item.content if isinstance(item.content, str) else json.dumps(item.content)
            messages.append({"role": _ROLE_NAMES.get(item.type, item.type), "content": content})
        else:
            raise TypeError(f"cannot send {type(item).__name__} to an LLM route")
    return messages

"""HTTP gateway that turns chat completions into validated pydantic models."""
from .llm_gateway import (
    HttpClient,
    HttpResponse,
    LlmGatewayError,
    LlmOutputError,
    call,
    chat,
    parse_structured,
    runnable,
)

__all__ = [
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "LlmOutputError",
    "call",
    "chat",
    "parse_structured",
    "runnable",
]

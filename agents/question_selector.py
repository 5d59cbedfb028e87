from __future__ import annotations  # Model-backed next-question selector for quick assessments

from textwrap import dedent
from typing import Any, Dict, Optional

from langchain_core.prompts import ChatPromptTemplate

from config import LlmRoute
from llm_gateway import runnable as llm_runnable

from .types import SelectorChoice


SELECTOR_GUIDANCE = dedent(
    """
    You are a senior consultant qualifying a software delivery lead.
    Choose exactly one question from the candidate list; never invent ids.
    Prefer questions that close the listed gaps and follow up on weak signals.
    Reply with JSON only.
    """
).strip()


class QuestionSelectorAgent:  # Wraps the selector route behind a plain callable
    def __init__(self, route: LlmRoute, options: Optional[Dict[str, Any]] = None) -> None:
        self._route = route
        self._options = dict(options or {})
        self._prompt = ChatPromptTemplate.from_messages(
            [
                ("system", "{instructions}"),
                ("human", "{prompt}"),
            ]
        )

    def __call__(self, *, prompt: str, options: Optional[Dict[str, Any]] = None) -> SelectorChoice:
        merged = {**self._options, **(options or {})}
        chain = self._prompt | llm_runnable(self._route, SelectorChoice, options=merged or None)
        return chain.invoke({"instructions": SELECTOR_GUIDANCE, "prompt": prompt})


__all__ = ["QuestionSelectorAgent", "SELECTOR_GUIDANCE"]

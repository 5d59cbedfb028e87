from __future__ import annotations  # Model-backed next-step decision for deep interviews

from textwrap import dedent
from typing import Any, Dict, Optional

from langchain_core.prompts import ChatPromptTemplate

from config import LlmRoute
from llm_gateway import runnable as llm_runnable

from .types import NextStepDecision


NEXT_STEP_GUIDANCE = dedent(
    """
    You run a structured diagnostic interview about business processes and automation.
    Pick the next question id from AVAILABLE QUESTIONS and optionally one of its unused variation ids.
    Cover required blocks first, then go deep on the respondent's priority areas.
    Use action "end" only when the interview has enough depth.
    Reply with JSON only: action, question_id, variation_id, reasoning, state_updates.
    """
).strip()


class NextStepAgent:
    def __init__(self, route: LlmRoute, options: Optional[Dict[str, Any]] = None) -> None:
        self._route = route
        self._options = dict(options or {})
        self._prompt = ChatPromptTemplate.from_messages(
            [
                ("system", "{instructions}"),
                ("human", "{prompt}"),
            ]
        )

    def __call__(self, *, prompt: str, options: Optional[Dict[str, Any]] = None) -> NextStepDecision:
        merged = {**self._options, **(options or {})}
        chain = self._prompt | llm_runnable(self._route, NextStepDecision, options=merged or None)
        return chain.invoke({"instructions": NEXT_STEP_GUIDANCE, "prompt": prompt})


__all__ = ["NEXT_STEP_GUIDANCE", "NextStepAgent"]

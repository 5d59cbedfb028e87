"""Graph execution helpers for the deep interview."""
from __future__ import annotations

import datetime as dt
import random
from functools import partial
from typing import Any, Callable, Dict, Literal, Optional

from langgraph.graph import END, StateGraph
from pydantic import BaseModel

from catalog import FIRST_QUESTION_ID, Catalog, CatalogError, deep_catalog
from config.routes import OrchestratorSettings
from observability.logger import log_event
from observability.tracing import span

from .nodes import collect, decide_end, decide_next, tagging
from .state import AnswerInput, CompanySnapshot, MachineState, OrchestratorState, PendingQuestion, SessionMetadata

Node = Callable[[MachineState], Dict[str, Any]]


class InterviewEndedError(RuntimeError):  # Answer submitted after the interview ended
    pass


class QuestionNotPendingError(RuntimeError):  # Answer for a question other than the one presented
    pass


class UnknownQuestionError(KeyError):
    pass


class UnknownVariationError(KeyError):
    pass


class TurnOutcome(BaseModel):
    state: OrchestratorState
    action: Literal["ask_next", "end"]
    next_question: Optional[PendingQuestion] = None
    reasoning: Optional[str] = None
    decision_source: str = ""


def _traced(name: str, fn: Node) -> Node:
    def _node(machine: MachineState) -> Dict[str, Any]:
        state = machine["state"]
        log_event("node.start", state.session_id, node=name)
        with span(state, name):
            update = fn(machine)
        log_event("node.end", state.session_id, node=name, outcome=update["state"].phase)
        return update

    return _node


def _phase(machine: MachineState) -> str:
    return machine["state"].phase


def build_graph(catalog: Catalog, cfg: OrchestratorSettings, *, rng: Optional[random.Random] = None):
    """Compile the per-turn graph: collect, decide (next or end), tag."""

    graph = StateGraph(MachineState)
    graph.add_node("collecting", _traced("collect", partial(collect.run, catalog=catalog, cfg=cfg)))
    graph.add_node("deciding_next", _traced("decide_next", partial(decide_next.run, catalog=catalog, cfg=cfg, rng=rng)))
    graph.add_node("deciding_end", _traced("decide_end", decide_end.run))
    graph.add_node("tagging", _traced("tagging", tagging.run))
    graph.set_entry_point("collecting")
    graph.add_conditional_edges(
        "collecting",
        _phase,
        {"deciding_next": "deciding_next", "deciding_end": "deciding_end"},
    )
    graph.add_conditional_edges(
        "deciding_next",
        _phase,
        {"collecting": "tagging", "deciding_end": "deciding_end"},
    )
    graph.add_edge("deciding_end", "tagging")
    graph.add_edge("tagging", END)
    return graph.compile()


class DeepInterview:
    """Deep interview engine: start a session and apply one answer per turn.

    Turns never modify the state passed in; each returns a fresh state.
    """

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        cfg: Optional[OrchestratorSettings] = None,
        *,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else deep_catalog()
        self.cfg = cfg or OrchestratorSettings()
        self.rng = rng
        self._graph = build_graph(self.catalog, self.cfg, rng=rng)

    def start(
        self,
        *,
        user_id: Optional[str] = None,
        company_name: Optional[str] = None,
        sector: Optional[str] = None,
        session_id: Optional[str] = None,
        now: Optional[dt.datetime] = None,
    ) -> OrchestratorState:
        started = now or dt.datetime.now(dt.timezone.utc)
        meta: Dict[str, Any] = {"user_id": user_id, "started_at": started}
        if session_id:
            meta["session_id"] = session_id
        state = OrchestratorState(
            company_snapshot=CompanySnapshot(company_name=company_name, sector=sector),
            session_metadata=SessionMetadata(**meta),
        )
        first = self.catalog.get(FIRST_QUESTION_ID)
        if first is None:
            raise CatalogError(f"first question '{FIRST_QUESTION_ID}' missing from catalog")
        decide_next.present(state, first, first.variants[0], now=started)
        log_event("deep_start", state.session_id, node="start", question_id=first.id, decision=first.variants[0].id)
        return state

    def submit(
        self,
        state: OrchestratorState,
        *,
        question_id: str,
        variation_id: str,
        answer: Any,
        now: Optional[dt.datetime] = None,
    ) -> TurnOutcome:
        if state.ended:
            raise InterviewEndedError(f"interview {state.session_id} already ended")
        self._validate(state, question_id, variation_id)

        if any(item.question_id == question_id for item in state.transcript):
            return TurnOutcome(
                state=state,
                action="ask_next",
                next_question=state.current_question,
                reasoning="Answer already recorded",
                decision_source="duplicate",
            )
        pending = state.current_question
        if pending is None or pending.id != question_id:
            raise QuestionNotPendingError(f"{question_id} is not the pending question")

        working = state.model_copy(deep=True)
        working.phase = "collecting"
        result = self._graph.invoke(
            {
                "state": working,
                "answer": AnswerInput(question_id=question_id, variation_id=variation_id, answer=answer),
                "now": now or dt.datetime.now(dt.timezone.utc),
                "followup": None,
                "decision_source": "",
            }
        )
        final: OrchestratorState = result["state"]
        if final.ended:
            return TurnOutcome(
                state=final,
                action="end",
                reasoning=final.last_reasoning or final.end_reason,
                decision_source=result.get("decision_source", ""),
            )
        return TurnOutcome(
            state=final,
            action="ask_next",
            next_question=final.current_question,
            reasoning=final.last_reasoning,
            decision_source=result.get("decision_source", ""),
        )

    def _validate(self, state: OrchestratorState, question_id: str, variation_id: str) -> None:
        pending = state.current_question
        if pending is not None and pending.is_followup and pending.id == question_id:
            if variation_id != pending.variation_id:
                raise UnknownVariationError(f"{question_id}/{variation_id}")
            return
        question = self.catalog.get(question_id)
        if question is None:
            raise UnknownQuestionError(question_id)
        if question.variant(variation_id) is None:
            raise UnknownVariationError(f"{question_id}/{variation_id}")


__all__ = [
    "DeepInterview",
    "InterviewEndedError",
    "QuestionNotPendingError",
    "TurnOutcome",
    "UnknownQuestionError",
    "UnknownVariationError",
    "build_graph",
]

"""FastAPI routes for quick and deep assessments."""
from __future__ import annotations

import datetime as dt
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Set

from fastapi import APIRouter, HTTPException

from api.schemas import (
    AnswerReq,
    AssessmentResp,
    AssessmentStatusResp,
    DeepAnswerReq,
    DeepAnswerResp,
    DeepCompleteReq,
    DeepCompleteResp,
    DeepStartReq,
    DeepStartResp,
    SessionReq,
    StartAssessmentReq,
)
from flow_manager.context import context_summary
from flow_manager.models import ConversationContext, NextQuestionResult
from flow_manager.router import AdaptiveRouter
from flow_manager.turns import SessionFinishedError, UnknownQuestionError, advance, complete, next_question, start_session
from graph.build import (
    DeepInterview,
    InterviewEndedError,
    QuestionNotPendingError,
    UnknownQuestionError as DeepUnknownQuestion,
    UnknownVariationError,
)
from graph.state import OrchestratorState
from observability.logger import log_event
from services.reporting import build_report, session_status
from services.sessions import InMemorySessionStore, SessionStore


router = APIRouter(prefix="/api/assessments")
deep_router = APIRouter(prefix="/api/deep-assessments")


class SessionLocks:
    """Per-session guard; a second in-flight turn on the same id gets a 409."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._active: Set[str] = set()

    def __len__(self) -> int:
        return len(self._active)

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        with self._guard:
            if session_id in self._active:
                raise HTTPException(status_code=409, detail="turn already in progress for this session")
            self._active.add(session_id)
        try:
            yield
        finally:
            with self._guard:
                self._active.discard(session_id)


class AssessmentRuntime:
    """Engines, stores and locks shared by the routes."""

    def __init__(
        self,
        *,
        adaptive: Optional[AdaptiveRouter] = None,
        interview: Optional[DeepInterview] = None,
        quick_store: Optional[SessionStore[ConversationContext]] = None,
        deep_store: Optional[SessionStore[OrchestratorState]] = None,
    ) -> None:
        self._adaptive = adaptive
        self._interview = interview
        self.quick_store = quick_store or InMemorySessionStore(ConversationContext)
        self.deep_store = deep_store or InMemorySessionStore(OrchestratorState)
        self.locks = SessionLocks()

    @property
    def adaptive(self) -> AdaptiveRouter:
        if self._adaptive is None:
            self._adaptive = AdaptiveRouter()
        return self._adaptive

    @property
    def interview(self) -> DeepInterview:
        if self._interview is None:
            self._interview = DeepInterview()
        return self._interview


_runtime = AssessmentRuntime()


def configure(**kwargs: Any) -> AssessmentRuntime:
    """Replace the shared runtime (engines and stores)."""

    global _runtime
    _runtime = AssessmentRuntime(**kwargs)
    return _runtime


def runtime() -> AssessmentRuntime:
    return _runtime


def _require(value: Optional[str], name: str) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise HTTPException(status_code=400, detail=f"{name} is required.")
    return value


def _assessment_resp(context: ConversationContext, result: NextQuestionResult) -> AssessmentResp:
    return AssessmentResp(
        session_id=context.session_id,
        next_question=result.next_question,
        routing=result.routing,
        should_finish=result.should_finish,
        finish_reason=result.finish_reason,
        completion=result.completion,
        questions_remaining=context.questions_remaining,
        can_finish=context.can_finish,
    )


def _load_context(session_id: str) -> ConversationContext:
    context = _runtime.quick_store.get(session_id)
    if context is None:
        raise HTTPException(status_code=404, detail="session not found")
    return context


def _load_state(session_id: str) -> OrchestratorState:
    state = _runtime.deep_store.get(session_id)
    if state is None:
        raise HTTPException(status_code=404, detail="session not found")
    return state


@router.post("", response_model=AssessmentResp)
def start_assessment(req: StartAssessmentReq) -> AssessmentResp:
    rt = _runtime
    try:
        context, result = start_session(
            rt.adaptive,
            persona=req.persona,
            partial_data=req.partial_data,
            session_id=req.session_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    rt.quick_store.put(context.session_id, context)
    return _assessment_resp(context, result)


@router.post("/answer", response_model=AssessmentResp)
def answer_assessment(req: AnswerReq) -> AssessmentResp:
    session_id = _require(req.session_id, "sessionId")
    question_id = _require(req.question_id, "questionId")
    if req.answer is None:
        raise HTTPException(status_code=400, detail="answer is required.")

    rt = _runtime
    with rt.locks.hold(session_id):
        context = _load_context(session_id)
        try:
            context, result = advance(rt.adaptive, context, question_id, req.answer, text_shown=req.question_text)
        except UnknownQuestionError as exc:
            raise HTTPException(status_code=404, detail=f"question '{question_id}' not found") from exc
        except SessionFinishedError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        rt.quick_store.put(session_id, context)
    return _assessment_resp(context, result)


@router.post("/next-question", response_model=AssessmentResp)
def next_assessment_question(req: SessionReq) -> AssessmentResp:
    session_id = _require(req.session_id, "sessionId")
    rt = _runtime
    with rt.locks.hold(session_id):
        context, result = next_question(rt.adaptive, _load_context(session_id))
        rt.quick_store.put(session_id, context)
    return _assessment_resp(context, result)


@router.get("/{session_id}", response_model=AssessmentStatusResp)
def assessment_status(session_id: str) -> AssessmentStatusResp:
    context = _load_context(session_id)
    return AssessmentStatusResp(session_id=session_id, context=context, summary=context_summary(context))


@router.post("/complete", response_model=AssessmentStatusResp)
def complete_assessment(req: SessionReq) -> AssessmentStatusResp:
    session_id = _require(req.session_id, "sessionId")
    rt = _runtime
    with rt.locks.hold(session_id):
        context = complete(_load_context(session_id))
        rt.quick_store.put(session_id, context)
    return AssessmentStatusResp(session_id=session_id, context=context, summary=context_summary(context))


@deep_router.post("", response_model=DeepStartResp, response_model_by_alias=True)
def start_deep_assessment(req: Optional[DeepStartReq] = None) -> DeepStartResp:
    req = req or DeepStartReq()
    rt = _runtime
    state = rt.interview.start(user_id=req.user_id, company_name=req.company_name, sector=req.sector)
    if state.current_question is None:
        raise HTTPException(status_code=500, detail="Unable to present the first question")
    rt.deep_store.put(state.session_id, state)
    return DeepStartResp(
        session_id=state.session_id,
        first_question=state.current_question,
        session_metadata=state.session_metadata,
    )


@deep_router.post("/answer", response_model=DeepAnswerResp, response_model_by_alias=True)
def answer_deep_assessment(req: DeepAnswerReq) -> DeepAnswerResp:
    session_id = _require(req.session_id, "sessionId")
    question_id = _require(req.question_id, "question_id")
    variation_id = _require(req.variation_id, "variation_id")
    if req.answer is None:
        raise HTTPException(status_code=400, detail="answer is required.")

    rt = _runtime
    with rt.locks.hold(session_id):
        state = _load_state(session_id)
        try:
            outcome = rt.interview.submit(state, question_id=question_id, variation_id=variation_id, answer=req.answer)
        except (DeepUnknownQuestion, UnknownVariationError) as exc:
            raise HTTPException(status_code=404, detail=f"unknown question or variation: {exc.args[0]}") from exc
        except (InterviewEndedError, QuestionNotPendingError) as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        rt.deep_store.put(session_id, outcome.state)
    return DeepAnswerResp(
        session_id=session_id,
        action=outcome.action,
        next_question=outcome.next_question,
        reasoning=outcome.reasoning,
        decision_source=outcome.decision_source,
        session_metadata=outcome.state.session_metadata,
        events=list(outcome.state.events),
    )


@deep_router.get("/{session_id}")
def deep_assessment_status(session_id: str) -> Dict[str, Any]:
    return session_status(_load_state(session_id))


@deep_router.post("/complete", response_model=DeepCompleteResp, response_model_by_alias=True)
def complete_deep_assessment(req: DeepCompleteReq) -> DeepCompleteResp:
    session_id = _require(req.session_id, "sessionId")
    rt = _runtime
    with rt.locks.hold(session_id):
        state = _load_state(session_id)
        if not state.ended:
            state = state.model_copy(
                update={"phase": "ended", "current_question": None, "end_reason": state.end_reason or "completed_by_user"}
            )
            rt.deep_store.put(session_id, state)
        now = dt.datetime.now(dt.timezone.utc)
        report = build_report(state, now=now)
    log_event("deep_complete", session_id, node="complete", reason=state.end_reason)
    meta = state.session_metadata
    return DeepCompleteResp(
        session_id=session_id,
        report=report,
        summary={
            "questions_asked": meta.questions_asked,
            "questions_answered": meta.questions_answered,
            "deep_dive_areas": list(state.deep_dives),
            "priority_areas": list(meta.priority_areas),
            "end_reason": state.end_reason,
            "completeness_percentage": report["metadata"]["completeness_percentage"],
        },
    )


__all__ = ["AssessmentRuntime", "SessionLocks", "configure", "deep_router", "router", "runtime"]

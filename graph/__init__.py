"""LangGraph state machine for the deep interview mode."""
from .build import (
    DeepInterview,
    InterviewEndedError,
    QuestionNotPendingError,
    TurnOutcome,
    UnknownQuestionError,
    UnknownVariationError,
    build_graph,
)
from .state import OrchestratorState, PendingQuestion

__all__ = [
    "DeepInterview",
    "InterviewEndedError",
    "OrchestratorState",
    "PendingQuestion",
    "QuestionNotPendingError",
    "TurnOutcome",
    "UnknownQuestionError",
    "UnknownVariationError",
    "build_graph",
]

"""Terminal transition for the deep interview."""
from __future__ import annotations

from typing import Any, Dict

from graph.state import MachineState
from observability.logger import log_event


def run(machine: MachineState) -> Dict[str, Any]:
    state = machine["state"]
    state.phase = "ended"
    state.current_question = None
    state.end_reason = state.end_reason or "ended"
    log_event(
        "deep_end",
        state.session_id,
        node="decide_end",
        reason=state.end_reason,
        outcome=f"asked={state.session_metadata.questions_asked}",
    )
    return {"state": state}


__all__ = ["run"]

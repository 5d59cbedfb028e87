"""Tag the latest free-text answer once the next step is decided."""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, Optional

from agents.tag_extractor import extract_tags
from graph.state import MachineState, OrchestratorState
from storage.decisions import insert_tag_extraction


logger = logging.getLogger(__name__)


def run(machine: MachineState) -> Dict[str, Any]:
    state = machine["state"]
    if not state.transcript:
        return {"state": state}
    last = state.transcript[-1]
    if last.answer_type != "text" or not isinstance(last.answer, str):
        return {"state": state}

    tags = extract_tags(last.question_text, last.answer, session_id=state.session_id)
    if not tags:
        return {"state": state}
    last.tags = tags
    area = _area_for(state, last.question_id)
    if area is not None:
        dive = state.deep_dives[area]
        dive.tags = dive.tags + [tag for tag in tags if tag not in dive.tags]
    try:
        insert_tag_extraction(session_id=state.session_id, question_id=last.question_id, tags=tags)
    except sqlite3.Error as exc:
        logger.error("tag extraction not persisted session=%s: %s", state.session_id, exc)
    return {"state": state}


def _area_for(state: OrchestratorState, question_id: str) -> Optional[str]:
    for area, dive in state.deep_dives.items():
        if question_id in dive.answers:
            return area
    return None


__all__ = ["run"]

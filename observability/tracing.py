"""Node timing spans appended to a deep interview's event list."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Protocol


class Traced(Protocol):
    events: List[Dict[str, Any]]


@contextmanager
def span(state: Traced, name: str) -> Iterator[None]:
    """Time the enclosed block and record ``{"span", "ms", "ok"}`` on ``state.events``.

    The entry is written even when the block raises.
    """

    started = time.perf_counter()
    ok = False
    try:
        yield
        ok = True
    finally:
        state.events.append({"span": name, "ms": int((time.perf_counter() - started) * 1000), "ok": ok})


__all__ = ["Traced", "span"]

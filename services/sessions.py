"""Session stores for both assessment modes.

A store owns expiry: a session lives ``SESSION_TTL_HOURS`` after its last
activity, and every ``get`` or ``put`` counts as activity. Values are
pydantic models; the SQLite store persists them as JSON snapshots.
"""
from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Callable, Dict, Generic, List, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel

from config.settings import settings
from storage import sessions as rows


logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
Clock = Callable[[], dt.datetime]


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class SessionInfo(BaseModel):
    session_id: str
    kind: str
    last_activity: dt.datetime
    expires_at: dt.datetime


class SessionStore(Protocol[M]):
    def get(self, session_id: str) -> Optional[M]: ...

    def put(self, session_id: str, value: M) -> None: ...

    def delete(self, session_id: str) -> bool: ...

    def cleanup_expired(self) -> int: ...

    def list_active(self) -> List[SessionInfo]: ...


class _Entry(Generic[M]):
    __slots__ = ("value", "created_at", "last_activity")

    def __init__(self, value: M, now: dt.datetime) -> None:
        self.value = value
        self.created_at = now
        self.last_activity = now


class InMemorySessionStore(Generic[M]):
    """Process-local store; suitable for a single worker and for tests."""

    def __init__(
        self,
        model: Type[M],
        *,
        ttl_hours: Optional[float] = None,
        now: Clock = _utcnow,
    ) -> None:
        self.model = model
        self.kind = model.__name__
        self._ttl = dt.timedelta(hours=ttl_hours if ttl_hours is not None else settings.SESSION_TTL_HOURS)
        self._now = now
        self._entries: Dict[str, _Entry[M]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[M]:
        current = self._now()
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            if current - entry.last_activity > self._ttl:
                del self._entries[session_id]
                logger.info("session expired session=%s", session_id)
                return None
            entry.last_activity = current
            return entry.value

    def put(self, session_id: str, value: M) -> None:
        current = self._now()
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                self._entries[session_id] = _Entry(value, current)
            else:
                entry.value = value
                entry.last_activity = current

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._entries.pop(session_id, None) is not None

    def cleanup_expired(self) -> int:
        current = self._now()
        with self._lock:
            stale = [key for key, entry in self._entries.items() if current - entry.last_activity > self._ttl]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.info("cleaned %d expired sessions", len(stale))
        return len(stale)

    def list_active(self) -> List[SessionInfo]:
        current = self._now()
        with self._lock:
            return [
                SessionInfo(
                    session_id=key,
                    kind=self.kind,
                    last_activity=entry.last_activity,
                    expires_at=entry.last_activity + self._ttl,
                )
                for key, entry in self._entries.items()
                if current - entry.last_activity <= self._ttl
            ]


class SqliteSessionStore(Generic[M]):
    """Durable store backed by the ``assessment_sessions`` table."""

    def __init__(
        self,
        model: Type[M],
        *,
        ttl_hours: Optional[float] = None,
        now: Clock = _utcnow,
    ) -> None:
        self.model = model
        self.kind = model.__name__
        self._ttl = dt.timedelta(hours=ttl_hours if ttl_hours is not None else settings.SESSION_TTL_HOURS)
        self._now = now

    def get(self, session_id: str) -> Optional[M]:
        found = rows.fetch_session(session_id)
        if found is None:
            return None
        kind, payload, expires_at = found
        current = self._now()
        if kind != self.kind:
            logger.warning("session kind mismatch session=%s stored=%s expected=%s", session_id, kind, self.kind)
            return None
        if dt.datetime.fromisoformat(expires_at) < current:
            rows.delete_session(session_id)
            logger.info("session expired session=%s", session_id)
            return None
        rows.touch_session(session_id, updated_at=current, expires_at=current + self._ttl)
        return self.model.model_validate_json(payload)

    def put(self, session_id: str, value: M) -> None:
        current = self._now()
        rows.upsert_session(
            session_id,
            self.kind,
            value.model_dump_json(),
            created_at=current,
            updated_at=current,
            expires_at=current + self._ttl,
        )

    def delete(self, session_id: str) -> bool:
        return rows.delete_session(session_id)

    def cleanup_expired(self) -> int:
        removed = rows.delete_expired(self._now())
        if removed:
            logger.info("cleaned %d expired sessions", removed)
        return removed

    def list_active(self) -> List[SessionInfo]:
        current = self._now()
        infos: List[SessionInfo] = []
        for session_id, kind, updated_at, expires_at in rows.list_session_rows(current):
            if kind != self.kind:
                continue
            infos.append(
                SessionInfo(
                    session_id=session_id,
                    kind=kind,
                    last_activity=dt.datetime.fromisoformat(updated_at),
                    expires_at=dt.datetime.fromisoformat(expires_at),
                )
            )
        return infos


__all__ = ["InMemorySessionStore", "SessionInfo", "SessionStore", "SqliteSessionStore"]

"""SQLite connection helper shared by the storage modules."""
from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from config.settings import settings

BUSY_TIMEOUT_S = 5.0


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)


@contextmanager
def get_conn(db_path: Optional[str] = None) -> Iterator[sqlite3.Connection]:
    """Connection to ``db_path`` (default ``settings.DB_PATH``).

    Commits when the block succeeds and rolls back when it raises. Concurrent
    API workers wait up to ``BUSY_TIMEOUT_S`` for a write lock.
    """

    path = db_path or settings.DB_PATH
    ensure_parent_dir(path)
    conn = sqlite3.connect(path, timeout=BUSY_TIMEOUT_S)
    try:
        yield conn
    except Exception:
        conn.rollback()
        raise
    else:
        conn.commit()
    finally:
        conn.close()


__all__ = ["BUSY_TIMEOUT_S", "ensure_parent_dir", "get_conn"]

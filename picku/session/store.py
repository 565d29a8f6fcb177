"""
In-process store for per-session search state.

The session cookie only carries the session id; the search counter, the links
of the displayed results and the user's selection live here, keyed by that id.
Entries expire after ``_DEFAULT_TTL`` seconds without access.
"""
from __future__ import annotations

import threading
import time
from typing import Any

_entries: dict[str, dict[str, Any]] = {}
_in_flight: set[str] = set()
_lock = threading.Lock()
_DEFAULT_TTL = 12 * 60 * 60  # 12 hours


def _purge_expired(now: float) -> None:
    expired = [sid for sid, e in _entries.items() if now - e["touched_at"] >= _DEFAULT_TTL]
    for sid in expired:
        del _entries[sid]


def get_entry(session_id: str) -> dict[str, Any] | None:
    """Return a copy of the stored state for the session, or ``None``."""
    with _lock:
        entry = _entries.get(session_id)
        now = time.time()
        if not entry or now - entry["touched_at"] >= _DEFAULT_TTL:
            return None
        entry["touched_at"] = now
        return {
            "request_count": entry["request_count"],
            "result_links": list(entry["result_links"]),
            "selected_links": list(entry["selected_links"]),
        }


def put_entry(
    session_id: str,
    request_count: int,
    result_links: list[str],
    selected_links: list[str],
) -> None:
    with _lock:
        now = time.time()
        _purge_expired(now)
        _entries[session_id] = {
            "request_count": request_count,
            "result_links": list(result_links),
            "selected_links": list(selected_links),
            "touched_at": now,
        }


def begin_search(session_id: str) -> bool:
    """Mark a search as running for the session. False if one already is."""
    with _lock:
        if session_id in _in_flight:
            return False
        _in_flight.add(session_id)
        return True


def end_search(session_id: str) -> None:
    with _lock:
        _in_flight.discard(session_id)


def clear_store() -> None:
    with _lock:
        _entries.clear()
        _in_flight.clear()

from __future__ import annotations

import time
from threading import Lock


class SessionRegistry:
    """Live interview runs keyed by session id, kept until swept after going inactive."""

    def __init__(self):
        self._lock = Lock()
        self._sessions: dict[str, dict] = {}

    def register(self, session_id: str, run) -> None:
        now_ts = time.time()
        with self._lock:
            self._sessions[session_id] = {
                "run": run,
                "user_email": str(getattr(run, "user_email", "") or "").lower(),
                "created_at": now_ts,
                "updated_at": now_ts,
                "active": True,
            }

    def touch(self, session_id: str) -> None:
        with self._lock:
            if session_id in self._sessions:
                self._sessions[session_id]["updated_at"] = time.time()

    def mark_inactive(self, session_id: str) -> None:
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is not None:
                entry["active"] = False
                entry["updated_at"] = time.time()

    def get(self, session_id: str) -> dict | None:
        with self._lock:
            item = self._sessions.get(session_id)
            return dict(item) if item else None

    def get_run(self, session_id: str):
        item = self.get(session_id)
        return item["run"] if item else None

    def active_runs(self, user_email: str | None = None) -> list:
        key = str(user_email or "").lower()
        with self._lock:
            return [
                data["run"]
                for data in self._sessions.values()
                if data.get("active") and (not key or data.get("user_email") == key)
            ]

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for data in self._sessions.values() if data.get("active"))

    def cleanup_inactive(self, ttl_sec: float) -> int:
        """Drop finished runs idle for at least ttl_sec (never less than 30s)."""
        cutoff = time.time() - max(30.0, float(ttl_sec or 900.0))
        with self._lock:
            stale = [
                session_id
                for session_id, data in self._sessions.items()
                if not data.get("active") and float(data.get("updated_at") or 0.0) <= cutoff
            ]
            for session_id in stale:
                self._sessions.pop(session_id, None)
        return len(stale)

from __future__ import annotations

import logging
from datetime import datetime
from threading import Lock
from typing import Protocol

from app.db.models import QA, Session, User
from app.errors import UpstreamUnavailableError

logger = logging.getLogger("app.db.store")


class Datastore(Protocol):
    def get_user_by_email(self, email: str) -> User | None:
        ...

    def create_user(self, user: User) -> User:
        ...

    def update_user_by_email(self, email: str, updates: dict) -> User | None:
        ...

    def update_users_by_customer_id(self, customer_id: str, updates: dict) -> int:
        ...

    def create_session(self, session: Session) -> Session:
        ...

    def get_session(self, session_id: str) -> Session | None:
        ...

    def update_session(self, session_id: str, updates: dict) -> Session | None:
        ...

    def list_sessions(self, user_id: str) -> list[Session]:
        ...

    def count_sessions_since(self, user_id: str, since: datetime) -> int:
        ...

    def add_qa(self, qa: QA) -> QA:
        ...

    def list_qas(self, session_id: str) -> list[QA]:
        ...


_USER_FIELDS = {"subscription_status", "subscription_plan", "stripe_customer_id", "subscription_id"}
_SESSION_FIELDS = {"ended_at", "score", "feedback"}


class InMemoryDatastore:
    """Process-local datastore used for development and tests."""

    def __init__(self):
        self._lock = Lock()
        self._users: dict[str, User] = {}
        self._sessions: dict[str, Session] = {}
        self._qas: dict[str, list[QA]] = {}

    def get_user_by_email(self, email: str) -> User | None:
        key = str(email or "").strip().lower()
        with self._lock:
            for user in self._users.values():
                if user.email.lower() == key:
                    return User(**vars(user))
        return None

    def create_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user
            return User(**vars(user))

    def update_user_by_email(self, email: str, updates: dict) -> User | None:
        key = str(email or "").strip().lower()
        with self._lock:
            for user in self._users.values():
                if user.email.lower() == key:
                    for name, value in updates.items():
                        if name in _USER_FIELDS:
                            setattr(user, name, value)
                    return User(**vars(user))
        return None

    def update_users_by_customer_id(self, customer_id: str, updates: dict) -> int:
        if not customer_id:
            return 0
        updated = 0
        with self._lock:
            for user in self._users.values():
                if user.stripe_customer_id != customer_id:
                    continue
                for name, value in updates.items():
                    if name in _USER_FIELDS:
                        setattr(user, name, value)
                updated += 1
        return updated

    def create_session(self, session: Session) -> Session:
        with self._lock:
            self._sessions[session.id] = session
            self._qas.setdefault(session.id, [])
            return Session(**vars(session))

    def get_session(self, session_id: str) -> Session | None:
        with self._lock:
            session = self._sessions.get(str(session_id or ""))
            return Session(**vars(session)) if session else None

    def update_session(self, session_id: str, updates: dict) -> Session | None:
        with self._lock:
            session = self._sessions.get(str(session_id or ""))
            if session is None:
                return None
            for name, value in updates.items():
                if name in _SESSION_FIELDS:
                    setattr(session, name, value)
            return Session(**vars(session))

    def list_sessions(self, user_id: str) -> list[Session]:
        with self._lock:
            rows = [Session(**vars(item)) for item in self._sessions.values() if item.user_id == user_id]
        rows.sort(key=lambda item: item.started_at, reverse=True)
        return rows

    def count_sessions_since(self, user_id: str, since: datetime) -> int:
        with self._lock:
            return sum(
                1
                for item in self._sessions.values()
                if item.user_id == user_id and item.started_at >= since
            )

    def add_qa(self, qa: QA) -> QA:
        with self._lock:
            self._qas.setdefault(qa.session_id, []).append(qa)
            return QA(**vars(qa))

    def list_qas(self, session_id: str) -> list[QA]:
        with self._lock:
            return [QA(**vars(item)) for item in self._qas.get(str(session_id or ""), [])]


class SupabaseDatastore:
    """Supabase-backed datastore.

    Tables:
    - users(id, email, subscription_status, subscription_plan, stripe_customer_id, subscription_id, created_at)
    - sessions(id, user_id, role, round_type, difficulty, started_at, ended_at, score, feedback)
    - qas(id, session_id, question, answer, ai_score, ai_feedback, created_at)
    """

    def __init__(self, url: str, key: str, client=None):
        if client is None:
            if not url or not key:
                raise RuntimeError("DATASTORE_BACKEND=supabase requires SUPABASE_URL and SUPABASE_KEY")
            from supabase import create_client

            client = create_client(url, key)
        self._client = client

    def _execute(self, operation: str, query):
        try:
            return query.execute()
        except Exception as exc:
            logger.warning("supabase %s failed | err=%s", operation, exc)
            raise UpstreamUnavailableError(f"Datastore unavailable during {operation}") from exc

    @staticmethod
    def _rows(res) -> list[dict]:
        return list(getattr(res, "data", None) or [])

    def get_user_by_email(self, email: str) -> User | None:
        res = self._execute(
            "get_user_by_email",
            self._client.table("users").select("*").eq("email", email).limit(1),
        )
        rows = self._rows(res)
        return User.from_row(rows[0]) if rows else None

    def create_user(self, user: User) -> User:
        res = self._execute("create_user", self._client.table("users").insert(user.to_dict()))
        rows = self._rows(res)
        return User.from_row(rows[0]) if rows else user

    def update_user_by_email(self, email: str, updates: dict) -> User | None:
        values = {name: value for name, value in updates.items() if name in _USER_FIELDS}
        res = self._execute(
            "update_user_by_email",
            self._client.table("users").update(values).eq("email", email),
        )
        rows = self._rows(res)
        return User.from_row(rows[0]) if rows else None

    def update_users_by_customer_id(self, customer_id: str, updates: dict) -> int:
        if not customer_id:
            return 0
        values = {name: value for name, value in updates.items() if name in _USER_FIELDS}
        res = self._execute(
            "update_users_by_customer_id",
            self._client.table("users").update(values).eq("stripe_customer_id", customer_id),
        )
        return len(self._rows(res))

    def create_session(self, session: Session) -> Session:
        res = self._execute("create_session", self._client.table("sessions").insert(session.to_dict()))
        rows = self._rows(res)
        return Session.from_row(rows[0]) if rows else session

    def get_session(self, session_id: str) -> Session | None:
        res = self._execute(
            "get_session",
            self._client.table("sessions").select("*").eq("id", session_id).limit(1),
        )
        rows = self._rows(res)
        return Session.from_row(rows[0]) if rows else None

    def update_session(self, session_id: str, updates: dict) -> Session | None:
        values = {}
        for name, value in updates.items():
            if name not in _SESSION_FIELDS:
                continue
            values[name] = value.isoformat() if isinstance(value, datetime) else value
        res = self._execute(
            "update_session",
            self._client.table("sessions").update(values).eq("id", session_id),
        )
        rows = self._rows(res)
        return Session.from_row(rows[0]) if rows else None

    def list_sessions(self, user_id: str) -> list[Session]:
        try:
            res = self._execute(
                "list_sessions",
                self._client.table("sessions").select("*").eq("user_id", user_id).order("started_at", desc=True),
            )
        except UpstreamUnavailableError:
            return []
        return [Session.from_row(row) for row in self._rows(res)]

    def count_sessions_since(self, user_id: str, since: datetime) -> int:
        res = self._execute(
            "count_sessions_since",
            self._client.table("sessions")
            .select("id", count="exact")
            .eq("user_id", user_id)
            .gte("started_at", since.isoformat()),
        )
        count = getattr(res, "count", None)
        return int(count) if count is not None else len(self._rows(res))

    def add_qa(self, qa: QA) -> QA:
        res = self._execute("add_qa", self._client.table("qas").insert(qa.to_dict()))
        rows = self._rows(res)
        return QA.from_row(rows[0]) if rows else qa

    def list_qas(self, session_id: str) -> list[QA]:
        res = self._execute(
            "list_qas",
            self._client.table("qas").select("*").eq("session_id", session_id).order("created_at"),
        )
        return [QA.from_row(row) for row in self._rows(res)]


def build_datastore(backend: str | None = None) -> Datastore:
    from core import config

    selected = str(backend or config.DATASTORE_BACKEND or "memory").strip().lower()
    if selected == "memory":
        return InMemoryDatastore()
    if selected == "supabase":
        return SupabaseDatastore(config.SUPABASE_URL, config.SUPABASE_KEY)
    raise RuntimeError(f"Unknown DATASTORE_BACKEND: {selected}")

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from app.db.models import QA, Session, User
from app.db.store import SupabaseDatastore, build_datastore
from app.errors import UpstreamUnavailableError
from app.seed import seed


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.calls = []

    def __getattr__(self, name):
        def _chain(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return _chain

    def execute(self):
        self.client.executed.append((self.table, self.calls))
        if self.client.fail:
            raise ConnectionError("supabase down")
        return self.client.responses.pop(0) if self.client.responses else SimpleNamespace(data=[], count=None)


class FakeClient:
    def __init__(self, responses=None, fail=False):
        self.responses = list(responses or [])
        self.fail = fail
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


def _session_row(**overrides):
    row = {
        "id": "s1",
        "user_id": "u1",
        "role": "trader",
        "round_type": "technical",
        "difficulty": "easy",
        "started_at": "2025-03-14T12:00:00Z",
        "ended_at": None,
        "score": None,
        "feedback": None,
    }
    row.update(overrides)
    return row


def test_get_user_by_email_maps_row():
    client = FakeClient([SimpleNamespace(data=[{"id": "u1", "email": "a@example.com", "subscription_status": "active"}])])
    store = SupabaseDatastore("", "", client=client)

    user = store.get_user_by_email("a@example.com")

    assert user.id == "u1"
    assert user.is_paid
    assert user.subscription_plan == "free"
    table, calls = client.executed[0]
    assert table == "users"
    assert ("eq", ("email", "a@example.com"), {}) in calls


def test_count_sessions_since_uses_exact_count():
    client = FakeClient([SimpleNamespace(data=[], count=2)])
    store = SupabaseDatastore("", "", client=client)

    count = store.count_sessions_since("u1", datetime(2025, 3, 1, tzinfo=timezone.utc))

    assert count == 2
    _, calls = client.executed[0]
    assert ("select", ("id",), {"count": "exact"}) in calls
    assert ("gte", ("started_at", "2025-03-01T00:00:00+00:00"), {}) in calls


def test_update_session_serializes_timestamps():
    ended = datetime(2025, 3, 14, 12, 30, tzinfo=timezone.utc)
    client = FakeClient([SimpleNamespace(data=[_session_row(ended_at="2025-03-14T12:30:00+00:00", score=8)])])
    store = SupabaseDatastore("", "", client=client)

    session = store.update_session("s1", {"ended_at": ended, "score": 8, "user_id": "ignored"})

    assert session.ended_at == ended
    assert session.score == 8
    _, calls = client.executed[0]
    assert calls[0] == ("update", ({"ended_at": "2025-03-14T12:30:00+00:00", "score": 8},), {})


def test_write_failure_is_upstream_error():
    store = SupabaseDatastore("", "", client=FakeClient(fail=True))
    with pytest.raises(UpstreamUnavailableError):
        store.create_session(Session(user_id="u1", role="trader", round_type="technical", difficulty="easy"))


def test_list_sessions_degrades_to_empty():
    store = SupabaseDatastore("", "", client=FakeClient(fail=True))
    assert store.list_sessions("u1") == []


def test_supabase_requires_credentials():
    with pytest.raises(RuntimeError):
        SupabaseDatastore("", "")


def test_unknown_backend():
    with pytest.raises(RuntimeError):
        build_datastore("mongo")


def test_memory_store_returns_copies(store):
    user = store.create_user(User(email="a@example.com"))
    fetched = store.get_user_by_email("A@example.com")
    fetched.subscription_status = "active"

    assert store.get_user_by_email("a@example.com").subscription_status == "free"
    assert store.update_user_by_email("a@example.com", {"subscription_status": "active", "email": "x"}).email == user.email


def test_memory_store_qas_keep_insertion_order(store):
    session = store.create_session(Session(user_id="u1", role="trader", round_type="technical", difficulty="easy"))
    for i in range(3):
        store.add_qa(QA(session_id=session.id, question=f"Q{i}"))

    assert [qa.question for qa in store.list_qas(session.id)] == ["Q0", "Q1", "Q2"]


def test_seed_creates_sample_history(store):
    created = seed(store)

    assert created == {"users": 3, "sessions": 6, "qas": 12}
    user = store.get_user_by_email("jane.smith@example.com")
    sessions = store.list_sessions(user.id)
    assert sorted(s.score for s in sessions) == [7, 8]
    assert all(s.is_closed for s in sessions)
    assert seed(store) == {"users": 0, "sessions": 0, "qas": 0}

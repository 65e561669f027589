from datetime import datetime, timedelta, timezone

import pytest

from app.db.models import Session, User
from app.errors import QuotaExceededError
from app.interview.quota import check_quota, month_start, usage_summary


def _add_sessions(store, user, started_at, n, score=None):
    for _ in range(n):
        store.create_session(
            Session(user_id=user.id, role="trader", round_type="technical", difficulty="easy", started_at=started_at, score=score)
        )


def test_month_start_is_first_of_month_utc():
    now = datetime(2025, 3, 14, 12, 30, tzinfo=timezone.utc)
    assert month_start(now) == datetime(2025, 3, 1, tzinfo=timezone.utc)

    # 23:30 on the last day in UTC-5 is already the next month in UTC
    local = datetime(2025, 3, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert month_start(local) == datetime(2025, 4, 1, tzinfo=timezone.utc)


def test_free_user_under_limit_passes(store, clock):
    user = store.create_user(User(email="a@example.com"))
    _add_sessions(store, user, clock(), 2)

    assert check_quota(store, user, clock(), free_limit=3) == 2


def test_free_user_at_limit_is_rejected(store, clock):
    user = store.create_user(User(email="a@example.com"))
    _add_sessions(store, user, clock(), 3)

    with pytest.raises(QuotaExceededError) as excinfo:
        check_quota(store, user, clock(), free_limit=3)

    assert excinfo.value.status_code == 403
    assert excinfo.value.limit == 3
    assert "Upgrade to Pro" in excinfo.value.message


def test_sessions_from_previous_month_do_not_count(store, clock):
    user = store.create_user(User(email="a@example.com"))
    _add_sessions(store, user, datetime(2025, 2, 27, tzinfo=timezone.utc), 5)
    _add_sessions(store, user, clock(), 1)

    assert check_quota(store, user, clock(), free_limit=3) == 1


def test_paid_user_is_unlimited(store, clock):
    user = store.create_user(User(email="p@example.com", subscription_status="active", subscription_plan="pro"))
    _add_sessions(store, user, clock(), 10)

    assert check_quota(store, user, clock(), free_limit=3) == 10
    usage = usage_summary(store, user, clock(), free_limit=3)
    assert usage["sessions_limit"] == 0
    assert usage["sessions_remaining"] is None
    assert usage["limit_reached"] is False


def test_inactive_subscription_is_limited_again(store, clock):
    user = store.create_user(User(email="c@example.com", subscription_status="inactive", subscription_plan="pro"))
    _add_sessions(store, user, clock(), 3)

    with pytest.raises(QuotaExceededError):
        check_quota(store, user, clock(), free_limit=3)


def test_usage_summary_for_free_user(store, clock):
    user = store.create_user(User(email="a@example.com"))
    _add_sessions(store, user, clock(), 1, score=8)
    _add_sessions(store, user, clock(), 1, score=7)

    usage = usage_summary(store, user, clock(), free_limit=3)

    assert usage["plan"] == "free"
    assert usage["sessions_used"] == 2
    assert usage["sessions_remaining"] == 1
    assert usage["limit_reached"] is False
    assert usage["total_sessions"] == 2
    assert usage["average_score"] == 7.5

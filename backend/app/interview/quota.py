from datetime import datetime, timezone

from app.db.models import User
from app.errors import QuotaExceededError


def month_start(now: datetime) -> datetime:
    current = now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)
    return datetime(current.year, current.month, 1, tzinfo=timezone.utc)


def monthly_limit_for(user: User, free_limit: int) -> int:
    # 0 means unlimited
    return 0 if user.is_paid else max(1, int(free_limit))


def sessions_this_month(store, user: User, now: datetime) -> int:
    return int(store.count_sessions_since(user.id, month_start(now)))


def check_quota(store, user: User, now: datetime, free_limit: int) -> int:
    """
    Read-then-decide monthly quota check. Returns the number of sessions
    already started this month. Two concurrent starts can both pass.
    """
    limit = monthly_limit_for(user, free_limit)
    used = sessions_this_month(store, user, now)
    if limit and used >= limit:
        raise QuotaExceededError(limit=limit)
    return used


def usage_summary(store, user: User, now: datetime, free_limit: int) -> dict:
    limit = monthly_limit_for(user, free_limit)
    used = sessions_this_month(store, user, now)
    sessions = store.list_sessions(user.id)
    scored = [s.score for s in sessions if s.score is not None]
    return {
        "plan": user.subscription_plan,
        "subscription_status": user.subscription_status,
        "sessions_used": used,
        "sessions_limit": limit,
        "sessions_remaining": max(0, limit - used) if limit else None,
        "limit_reached": bool(limit and used >= limit),
        "total_sessions": len(sessions),
        "average_score": round(sum(scored) / len(scored), 1) if scored else 0.0,
    }

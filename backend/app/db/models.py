from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Optional
import uuid


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class User:
    email: str
    id: str = field(default_factory=_new_id)
    subscription_status: str = "free"
    subscription_plan: str = "free"
    stripe_customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_paid(self) -> bool:
        return self.subscription_status == "active"

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["created_at"] = _format_timestamp(self.created_at)
        return payload

    @classmethod
    def from_row(cls, row: dict) -> "User":
        return cls(
            id=str(row["id"]),
            email=str(row.get("email") or ""),
            subscription_status=str(row.get("subscription_status") or "free"),
            subscription_plan=str(row.get("subscription_plan") or "free"),
            stripe_customer_id=row.get("stripe_customer_id"),
            subscription_id=row.get("subscription_id"),
            created_at=parse_timestamp(row.get("created_at")) or utc_now(),
        )


@dataclass
class Session:
    """
    One practice session. role/round_type/difficulty are fixed at creation;
    ended_at and score are written once, at completion.
    """
    user_id: str
    role: str
    round_type: str
    difficulty: str
    id: str = field(default_factory=_new_id)
    started_at: datetime = field(default_factory=utc_now)
    ended_at: Optional[datetime] = None
    score: Optional[int] = None
    feedback: Any = None

    @property
    def is_closed(self) -> bool:
        return self.ended_at is not None

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["started_at"] = _format_timestamp(self.started_at)
        payload["ended_at"] = _format_timestamp(self.ended_at)
        return payload

    @classmethod
    def from_row(cls, row: dict) -> "Session":
        score = row.get("score")
        return cls(
            id=str(row["id"]),
            user_id=str(row.get("user_id") or ""),
            role=str(row.get("role") or ""),
            round_type=str(row.get("round_type") or ""),
            difficulty=str(row.get("difficulty") or ""),
            started_at=parse_timestamp(row.get("started_at")) or utc_now(),
            ended_at=parse_timestamp(row.get("ended_at")),
            score=int(score) if score is not None else None,
            feedback=row.get("feedback"),
        )


@dataclass
class QA:
    session_id: str
    question: str
    answer: Optional[str] = None
    ai_score: Optional[float] = None
    ai_feedback: Optional[str] = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["created_at"] = _format_timestamp(self.created_at)
        return payload

    @classmethod
    def from_row(cls, row: dict) -> "QA":
        score = row.get("ai_score")
        return cls(
            id=str(row["id"]),
            session_id=str(row.get("session_id") or ""),
            question=str(row.get("question") or ""),
            answer=row.get("answer"),
            ai_score=float(score) if score is not None else None,
            ai_feedback=row.get("ai_feedback"),
            created_at=parse_timestamp(row.get("created_at")) or utc_now(),
        )

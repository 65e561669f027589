import logging
from datetime import datetime
from typing import Callable

from app.db.models import QA, Session, User, utc_now
from app.errors import QuotaExceededError, SessionClosedError, SessionNotFoundError, UserNotFoundError
from app.interview.quota import check_quota, usage_summary
from app.interview.scorer import aggregate_score
from app.system_metrics import increment_metric
from core.logger import log_event

logger = logging.getLogger("app.interview.session")


def _normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


class SessionService:
    """Persistence-side operations of a practice session: users, quota, QAs, completion."""

    def __init__(
        self,
        store,
        free_limit: int = 3,
        question_count: int = 5,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.free_limit = free_limit
        self.question_count = question_count
        self.clock = clock

    # ---------- users ----------

    def get_or_create_user(self, email: str) -> User:
        normalized = _normalize_email(email)
        user = self.store.get_user_by_email(normalized)
        if user:
            return user
        user = self.store.create_user(User(email=normalized, created_at=self.clock()))
        log_event("session", "user_created", "", user_id=user.id)
        return user

    def get_user_profile(self, email: str) -> User:
        user = self.store.get_user_by_email(_normalize_email(email))
        if not user:
            raise UserNotFoundError(f"No user with email {email}")
        return user

    def get_usage(self, email: str) -> dict:
        user = self.get_or_create_user(email)
        return usage_summary(self.store, user, self.clock(), self.free_limit)

    # ---------- sessions ----------

    def create_session(self, email: str, role: str, round_type: str, difficulty: str) -> Session:
        user = self.get_or_create_user(email)
        now = self.clock()
        try:
            used = check_quota(self.store, user, now, self.free_limit)
        except QuotaExceededError:
            increment_metric("quota_rejections")
            log_event("session", "quota_rejected", "", user_id=user.id)
            raise

        session = self.store.create_session(
            Session(
                user_id=user.id,
                role=str(role),
                round_type=str(round_type),
                difficulty=str(difficulty),
                started_at=now,
            )
        )
        increment_metric("sessions_created")
        log_event(
            "session",
            "created",
            session.id,
            user_id=user.id,
            role=session.role,
            round_type=session.round_type,
            difficulty=session.difficulty,
            used_this_month=used + 1,
        )
        return session

    def get_session(self, session_id: str) -> Session:
        session = self.store.get_session(session_id)
        if not session:
            raise SessionNotFoundError(f"Unknown session {session_id}")
        return session

    def get_user_sessions(self, email: str) -> list[Session]:
        user = self.store.get_user_by_email(_normalize_email(email))
        if not user:
            return []
        return self.store.list_sessions(user.id)

    def list_qas(self, session_id: str) -> list[QA]:
        return self.store.list_qas(session_id)

    def save_qa(self, session_id: str, question: str, answer: str, ai_score, ai_feedback: str) -> QA:
        session = self.get_session(session_id)
        if session.is_closed:
            raise SessionClosedError(f"Session {session_id} is already completed")
        existing = self.store.list_qas(session_id)
        if len(existing) >= self.question_count:
            raise SessionClosedError(f"Session {session_id} already holds {self.question_count} answers")

        score = None
        if ai_score is not None:
            score = max(0.0, min(10.0, float(ai_score)))
        qa = self.store.add_qa(
            QA(
                session_id=session_id,
                question=str(question or ""),
                answer=answer,
                ai_score=score,
                ai_feedback=ai_feedback,
                created_at=self.clock(),
            )
        )
        log_event("session", "qa_saved", session_id, index=len(existing), ai_score=score)
        return qa

    def complete_session(self, session_id: str, score=None, feedback=None) -> Session:
        session = self.get_session(session_id)
        if session.is_closed:
            return session

        qas = self.store.list_qas(session_id)
        computed = aggregate_score([qa.ai_score for qa in qas])
        if score is not None:
            try:
                mismatch = int(round(float(score))) != computed
            except (TypeError, ValueError):
                mismatch = True
            if mismatch:
                logger.warning(
                    "complete_session score override | session_id=%s given=%s computed=%s",
                    session_id,
                    score,
                    computed,
                )

        if feedback is None:
            feedback = {"completed": True, "averageScore": computed, "answered": len(qas)}

        updated = self.store.update_session(
            session_id,
            {"ended_at": self.clock(), "score": computed, "feedback": feedback},
        )
        increment_metric("sessions_completed")
        log_event("session", "completed", session_id, score=computed, answered=len(qas))
        return updated or self.get_session(session_id)

import logging
import threading
from datetime import datetime, timedelta

from core.state import RunState

logger = logging.getLogger("app.interview.state")


class InterviewRun:
    """
    One live practice session: setup -> in_progress -> completed.
    The lock serialises answer submission against countdown expiry.
    """

    def __init__(self, session_id: str, user_email: str, role: str, round_type: str, difficulty: str):
        self.session_id = session_id
        self.user_email = user_email
        self.role = role
        self.round_type = round_type
        self.difficulty = difficulty
        self.state = RunState.SETUP
        self.questions: list[dict] = []
        self.index = 0
        self.started_at: datetime | None = None
        self.deadline: datetime | None = None
        self.completion_reason: str | None = None
        self.lock = threading.RLock()

    def begin(self, questions: list[dict], now: datetime, duration_sec: int) -> None:
        self.questions = list(questions)
        self.index = 0
        self.started_at = now
        self.deadline = now + timedelta(seconds=duration_sec)
        self.state = RunState.IN_PROGRESS
        logger.info("[RUN %s] Transition SETUP → IN_PROGRESS | questions=%s", self.session_id, len(self.questions))

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def completed(self) -> bool:
        return self.state == RunState.COMPLETED

    @property
    def current_question(self) -> dict | None:
        if self.state != RunState.IN_PROGRESS or self.index >= self.total:
            return None
        return self.questions[self.index]

    def is_expired(self, now: datetime) -> bool:
        return self.deadline is not None and now >= self.deadline

    def remaining_seconds(self, now: datetime) -> int:
        if self.deadline is None or self.completed:
            return 0
        return max(0, int((self.deadline - now).total_seconds()))

    def advance(self) -> bool:
        """Move to the next question; False once every question has been answered."""
        self.index += 1
        return self.index < self.total

    def try_complete(self, reason: str) -> bool:
        with self.lock:
            if self.state == RunState.COMPLETED:
                logger.info("[RUN %s] Complete skipped (already completed) | reason=%s", self.session_id, reason)
                return False
            logger.info("[RUN %s] Transition %s → COMPLETED | reason=%s", self.session_id, self.state.value.upper(), reason)
            self.state = RunState.COMPLETED
            self.completion_reason = reason
            return True

    def snapshot(self, now: datetime) -> dict:
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "role": self.role,
            "round_type": self.round_type,
            "difficulty": self.difficulty,
            "index": self.index,
            "total": self.total,
            "question": self.current_question,
            "deadline_at": self.deadline.isoformat() if self.deadline else None,
            "remaining_sec": self.remaining_seconds(now),
            "completion_reason": self.completion_reason,
        }

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from app.db.models import utc_now
from app.db.store import build_datastore
from app.interview.engine import AIInterviewEngine
from app.interview.session import SessionService
from app.payments.processor import build_payment_processor
from app.router.engine import build_llm
from app.session.registry import SessionRegistry
from core import config


@dataclass
class Services:
    store: object
    payments: object
    llm: object
    clock: Callable[[], datetime] = utc_now
    free_limit: int = 3
    question_count: int = 5
    duration_sec: int = 1800
    registry: SessionRegistry = field(default_factory=SessionRegistry)
    sessions: SessionService = field(init=False)
    engine: AIInterviewEngine = field(init=False)

    def __post_init__(self):
        self.sessions = SessionService(
            self.store,
            free_limit=self.free_limit,
            question_count=self.question_count,
            clock=self.clock,
        )
        self.engine = AIInterviewEngine(
            self.sessions,
            self.llm,
            self.registry,
            duration_sec=self.duration_sec,
            question_count=self.question_count,
        )


def build_services(
    datastore_backend: str | None = None,
    payments_backend: str | None = None,
    llm_provider: str | None = None,
) -> Services:
    return Services(
        store=build_datastore(datastore_backend),
        payments=build_payment_processor(payments_backend),
        llm=build_llm(llm_provider),
        free_limit=config.FREE_TIER_MONTHLY_LIMIT,
        question_count=config.SESSION_QUESTION_COUNT,
        duration_sec=config.SESSION_DURATION_SEC,
    )

import json
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# config and main read these at import time
os.environ["ENV"] = "development"
os.environ["QA_MODE"] = "true"
os.environ["DATASTORE_BACKEND"] = "memory"
os.environ["PAYMENTS_BACKEND"] = "memory"
os.environ["LLM_PROVIDER"] = "offline"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AUTH_TOKEN_SECRET"] = "pytest-secret"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_pytest"


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class ScriptedModel:
    """Returns queued responses in order; raises once the queue is empty."""

    name = "scripted"

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.prompts: list[str] = []

    def push(self, *responses) -> None:
        self.responses.extend(responses)

    def generate(self, prompt: str, temperature: float = 0.7) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise RuntimeError("no scripted response left")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, (dict, list)):
            return json.dumps(item)
        return str(item)


class FailingModel:
    name = "failing"

    def __init__(self):
        self.calls = 0

    def generate(self, prompt: str, temperature: float = 0.7) -> str:
        self.calls += 1
        raise RuntimeError("model unavailable")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    from app.db.store import InMemoryDatastore

    return InMemoryDatastore()


@pytest.fixture
def scripted_model() -> ScriptedModel:
    return ScriptedModel()


@pytest.fixture
def failing_model() -> FailingModel:
    return FailingModel()


@pytest.fixture
def payments():
    from app.payments.processor import LocalPaymentProcessor

    return LocalPaymentProcessor(webhook_secret="whsec_pytest", base_url="http://localhost:3000")


@pytest.fixture
def make_services(store, payments, clock):
    from app.services.container import Services

    def _make(llm=None, free_limit: int = 3, question_count: int = 5, duration_sec: int = 1800):
        return Services(
            store=store,
            payments=payments,
            llm=llm or FailingModel(),
            clock=clock,
            free_limit=free_limit,
            question_count=question_count,
            duration_sec=duration_sec,
        )

    return _make


@pytest.fixture
def services(make_services):
    return make_services()


@pytest.fixture
def client(services):
    from fastapi.testclient import TestClient

    from app.main import create_app

    return TestClient(create_app(services))


@pytest.fixture
def auth_headers():
    from app.auth import issue_identity_token

    def _headers(email: str = "trader@example.com") -> dict:
        return {"Authorization": f"Bearer {issue_identity_token(email, secret='pytest-secret')}"}

    return _headers


@pytest.fixture
def sign_webhook():
    """Build a `stripe-signature` header (t=...,v1=...) for a raw body."""
    import hashlib
    import hmac
    import time

    def _sign(payload: bytes, secret: str = "whsec_pytest", timestamp: int | None = None) -> str:
        ts = int(timestamp if timestamp is not None else time.time())
        digest = hmac.new(secret.encode("utf-8"), f"{ts}.".encode("utf-8") + payload, hashlib.sha256).hexdigest()
        return f"t={ts},v1={digest}"

    return _sign

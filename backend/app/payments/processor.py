from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Protocol

import stripe

from app.errors import UpstreamUnavailableError, WebhookSignatureError

logger = logging.getLogger("app.payments.processor")

SIGNATURE_TOLERANCE_SEC = 300


@dataclass
class CheckoutSession:
    session_id: str
    url: str


class PaymentProcessor(Protocol):
    name: str

    def create_checkout_session(
        self,
        price_id: str,
        user_email: str,
        success_url: str,
        cancel_url: str,
        metadata: dict | None = None,
    ) -> CheckoutSession:
        ...

    def construct_event(self, payload: bytes, signature: str) -> dict:
        ...


def verify_webhook(payload: bytes, signature: str, secret: str, tolerance_sec: int = SIGNATURE_TOLERANCE_SEC) -> dict:
    """Check a `stripe-signature` header against the raw body and return the event as plain JSON."""
    try:
        stripe.Webhook.construct_event(payload=payload, sig_header=signature, secret=secret, tolerance=tolerance_sec)
    except Exception as exc:
        raise WebhookSignatureError("Invalid signature") from exc
    event = json.loads(payload.decode("utf-8"))
    if not isinstance(event, dict):
        raise WebhookSignatureError("Invalid event payload")
    return event


class LocalPaymentProcessor:
    """
    In-process processor for development and tests. Checkout sessions are
    fabricated; webhook events are verified exactly as the live processor does.
    """

    name = "memory"

    def __init__(self, webhook_secret: str, base_url: str = "http://localhost:3000", tolerance_sec: int = SIGNATURE_TOLERANCE_SEC):
        self.webhook_secret = webhook_secret
        self.base_url = base_url.rstrip("/")
        self.tolerance_sec = tolerance_sec
        self.created: list[dict] = []

    def create_checkout_session(
        self,
        price_id: str,
        user_email: str,
        success_url: str,
        cancel_url: str,
        metadata: dict | None = None,
    ) -> CheckoutSession:
        session_id = f"mock_session_{uuid.uuid4().hex[:16]}"
        self.created.append(
            {
                "id": session_id,
                "price_id": price_id,
                "customer_email": user_email,
                "metadata": dict(metadata or {}),
            }
        )
        return CheckoutSession(
            session_id=session_id,
            url=f"{self.base_url}/dashboard?mock_checkout=true&plan={price_id}",
        )

    def construct_event(self, payload: bytes, signature: str) -> dict:
        return verify_webhook(payload, signature, self.webhook_secret, self.tolerance_sec)


class StripeProcessor:
    name = "stripe"

    def __init__(self, secret_key: str, webhook_secret: str):
        if not secret_key:
            raise RuntimeError("PAYMENTS_BACKEND=stripe requires STRIPE_SECRET_KEY")
        stripe.api_key = secret_key
        self._stripe = stripe
        self.webhook_secret = webhook_secret

    def create_checkout_session(
        self,
        price_id: str,
        user_email: str,
        success_url: str,
        cancel_url: str,
        metadata: dict | None = None,
    ) -> CheckoutSession:
        try:
            session = self._stripe.checkout.Session.create(
                mode="subscription",
                payment_method_types=["card"],
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=success_url,
                cancel_url=cancel_url,
                customer_email=user_email,
                metadata={"userEmail": user_email, **dict(metadata or {})},
            )
        except Exception as exc:
            logger.warning("stripe checkout failed | price_id=%s err=%s", price_id, exc)
            raise UpstreamUnavailableError("Unable to initialize payment session right now.") from exc
        return CheckoutSession(session_id=str(session.id), url=str(session.url))

    def construct_event(self, payload: bytes, signature: str) -> dict:
        return verify_webhook(payload, signature, self.webhook_secret)


def build_payment_processor(backend: str | None = None) -> PaymentProcessor:
    from core import config

    selected = str(backend or config.PAYMENTS_BACKEND or "memory").strip().lower()
    if selected == "memory":
        return LocalPaymentProcessor(webhook_secret=config.STRIPE_WEBHOOK_SECRET, base_url=config.APP_BASE_URL)
    if selected == "stripe":
        return StripeProcessor(secret_key=config.STRIPE_SECRET_KEY, webhook_secret=config.STRIPE_WEBHOOK_SECRET)
    raise RuntimeError(f"Unknown PAYMENTS_BACKEND: {selected}")


def plan_price_ids() -> dict[str, str]:
    from core import config

    return {
        "pro": config.STRIPE_PRO_PRICE_ID,
        "enterprise": config.STRIPE_ENTERPRISE_PRICE_ID,
    }


def plan_for_price(price_id: str) -> str | None:
    for plan, candidate in plan_price_ids().items():
        if candidate == price_id:
            return plan
    return None

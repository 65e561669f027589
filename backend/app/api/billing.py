import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from app.api.deps import get_services
from app.errors import UpstreamUnavailableError, WebhookSignatureError
from app.payments.processor import plan_for_price, plan_price_ids
from app.payments.webhooks import handle_event
from app.schemas import CheckoutRequest
from app.services.container import Services
from app.system_metrics import increment_metric
from core import config

router = APIRouter(prefix="/api/stripe", tags=["billing"])
logger = logging.getLogger("app.api.billing")


@router.get("/plans")
def list_plans():
    return {"items": [{"plan": plan, "price_id": price_id} for plan, price_id in plan_price_ids().items()]}


@router.post("/create-checkout-session")
def create_checkout_session(req: CheckoutRequest, services: Services = Depends(get_services)):
    price_id = req.price_id.strip()
    user_email = str(req.user_email or "").strip().lower()
    if not price_id or not user_email:
        raise HTTPException(status_code=400, detail="Missing required fields")

    metadata = {"userEmail": user_email}
    plan = plan_for_price(price_id)
    if plan:
        metadata["plan"] = plan

    checkout = services.payments.create_checkout_session(
        price_id=price_id,
        user_email=user_email,
        success_url=f"{config.APP_BASE_URL}/dashboard?success=true",
        cancel_url=f"{config.APP_BASE_URL}/dashboard?canceled=true",
        metadata=metadata,
    )
    return {"sessionId": checkout.session_id, "url": checkout.url}


@router.post("/webhook")
async def stripe_webhook(request: Request, services: Services = Depends(get_services)):
    body = await request.body()
    signature = str(request.headers.get("stripe-signature") or "")

    try:
        event = services.payments.construct_event(body, signature)
    except WebhookSignatureError as exc:
        increment_metric("webhooks_rejected")
        logger.warning("Webhook signature verification failed: %s", exc)
        raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        return await asyncio.to_thread(handle_event, services.store, event)
    except UpstreamUnavailableError as exc:
        logger.warning("Error handling webhook | type=%s err=%s", event.get("type"), exc)
        raise HTTPException(status_code=500, detail="Webhook handler failed")
